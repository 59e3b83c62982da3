"""Tests for the structured logging utilities."""

import logging
import time
from unittest.mock import MagicMock, patch

from workbook_preview.utils.logging import (
    LogContext,
    PerformanceMetrics,
    StructuredLogFormatter,
    StructuredLogger,
    clear_context,
    configure_logging,
    get_document_id,
    get_extra_context,
    get_logger,
    get_request_id,
    set_document_id,
    set_extra_context,
    set_request_id,
    timed_operation,
)


class TestContextVariables:
    """Tests for context variable management."""

    def setup_method(self) -> None:
        """Clear context before each test."""
        clear_context()

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_context()

    def test_request_id_default_none(self) -> None:
        """Request ID should default to None."""
        assert get_request_id() is None

    def test_set_and_get_request_id(self) -> None:
        """Should be able to set and get request ID."""
        set_request_id("req-123")
        assert get_request_id() == "req-123"

    def test_set_and_get_document_id(self) -> None:
        """Should be able to set and get document ID."""
        set_document_id("sub-456")
        assert get_document_id() == "sub-456"

    def test_extra_context_default_empty(self) -> None:
        """Extra context should default to an empty dict."""
        assert get_extra_context() == {}

    def test_clear_context(self) -> None:
        """clear_context should reset every context variable."""
        set_request_id("req-123")
        set_document_id("sub-456")
        set_extra_context({"sheet_name": "Summary"})

        clear_context()

        assert get_request_id() is None
        assert get_document_id() is None
        assert get_extra_context() == {}


class TestPerformanceMetrics:
    """Tests for PerformanceMetrics dataclass."""

    def test_finish_calculates_duration(self) -> None:
        """Finish should calculate duration."""
        metrics = PerformanceMetrics(operation="render")
        time.sleep(0.01)
        metrics.finish()
        assert metrics.duration_seconds > 0
        assert metrics.end_time is not None

    def test_to_dict_with_counters(self) -> None:
        """to_dict should include non-zero counters."""
        metrics = PerformanceMetrics(operation="render")
        metrics.duration_seconds = 0.5
        metrics.bytes_fetched = 2048
        metrics.cells_rendered = 3000
        metrics.custom_metrics = {"sheets": 2}

        result = metrics.to_dict()
        assert result["operation"] == "render"
        assert result["bytes_fetched"] == 2048
        assert result["cells_rendered"] == 3000
        assert result["custom_metrics"] == {"sheets": 2}

    def test_to_dict_excludes_zero_values(self) -> None:
        """to_dict should exclude zero counters."""
        result = PerformanceMetrics(operation="render").to_dict()
        assert "bytes_fetched" not in result
        assert "cells_rendered" not in result


class TestStructuredLogger:
    """Tests for StructuredLogger class."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.logger = get_logger("test_logger")

    def test_get_logger_returns_structured_logger(self) -> None:
        """get_logger should return StructuredLogger."""
        assert isinstance(get_logger(__name__), StructuredLogger)

    def test_build_message_with_kwargs(self) -> None:
        """_build_message with kwargs should include key-value pairs."""
        msg = self.logger._build_message("Cache miss", key="k", size=42)
        assert msg == "Cache miss | key=k, size=42"

    @patch.object(logging.Logger, "info")
    def test_info_logging(self, mock_info: MagicMock) -> None:
        """Info method should log at INFO level."""
        self.logger.info("Preview served", cache="HIT")
        mock_info.assert_called_once()
        assert "cache=HIT" in mock_info.call_args[0][0]

    @patch.object(logging.Logger, "log")
    def test_log_fetch_success(self, mock_log: MagicMock) -> None:
        """Successful fetches should log at INFO level with the size."""
        self.logger.log_fetch(
            source="http",
            document_id="sub-1",
            duration_seconds=0.25,
            size_bytes=1024,
        )
        level, message = mock_log.call_args[0]
        assert level == logging.INFO
        assert "source=http" in message
        assert "size_bytes=1024" in message
        assert "duration_seconds=0.250" in message

    @patch.object(logging.Logger, "log")
    def test_log_fetch_failure(self, mock_log: MagicMock) -> None:
        """Failed fetches should log at ERROR level with the error."""
        self.logger.log_fetch(
            source="local",
            document_id="sub-1",
            duration_seconds=0.1,
            success=False,
            error_message="Document not found",
        )
        level, message = mock_log.call_args[0]
        assert level == logging.ERROR
        assert "error=Document not found" in message

    @patch.object(logging.Logger, "info")
    def test_log_render_result(self, mock_info: MagicMock) -> None:
        """Render results should include the counters."""
        self.logger.log_render_result(
            document_id="sub-1",
            sheet_name="Summary",
            cell_count=90,
            has_formulas=True,
            html_size=4096,
            duration_seconds=0.05,
        )
        message = mock_info.call_args[0][0]
        assert "cell_count=90" in message
        assert "has_formulas=True" in message


class TestLogContext:
    """Tests for LogContext context manager."""

    def setup_method(self) -> None:
        """Clear context before each test."""
        clear_context()

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_context()

    def test_context_sets_and_restores_values(self) -> None:
        """LogContext should set values inside and restore them after."""
        set_document_id("outer")
        with LogContext(document_id="inner", sheet_name="Summary"):
            assert get_document_id() == "inner"
            assert get_extra_context() == {"sheet_name": "Summary"}
        assert get_document_id() == "outer"
        assert get_extra_context() == {}

    def test_nested_contexts(self) -> None:
        """Nested contexts should merge extra values."""
        with LogContext(a=1), LogContext(b=2):
            assert get_extra_context() == {"a": 1, "b": 2}


class TestStructuredLogFormatter:
    """Tests for StructuredLogFormatter."""

    def teardown_method(self) -> None:
        """Clear context after each test."""
        clear_context()

    def test_prefixes_context(self) -> None:
        """Formatter should prefix records with context values."""
        formatter = StructuredLogFormatter("%(message)s")
        record = logging.LogRecord("t", logging.INFO, "", 0, "hello", None, None)

        with LogContext(request_id="req-1", document_id="sub-1", sheet_name="P&L"):
            output = formatter.format(record)

        assert output == "[request_id=req-1 document_id=sub-1 sheet_name=P&L] hello"
        assert record.msg == "hello"


class TestTimedOperation:
    """Tests for timed_operation context manager."""

    @patch.object(StructuredLogger, "log_performance")
    def test_timed_operation_logs_metrics(self, mock_log: MagicMock) -> None:
        """timed_operation should log the finished metrics."""
        logger = get_logger("test")
        with timed_operation(logger, "render") as metrics:
            metrics.cells_rendered = 12

        mock_log.assert_called_once()
        logged = mock_log.call_args[0][0]
        assert logged.operation == "render"
        assert logged.end_time is not None


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure_with_string_level(self) -> None:
        """configure_logging should accept level names."""
        configure_logging(level="debug")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredLogFormatter)
        configure_logging(level=logging.INFO)
