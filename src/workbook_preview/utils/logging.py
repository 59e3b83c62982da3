"""Structured logging utilities for the workbook preview service.

This module provides:
- Request ID and document ID tracking using contextvars
- Structured logging with consistent format and metadata
- Performance metrics logging helpers

Usage:
    from workbook_preview.utils.logging import (
        get_logger,
        set_request_id,
        LogContext,
    )

    logger = get_logger(__name__)

    set_request_id("abc-123")

    with LogContext(document_id="sub-456", sheet_name="P&L"):
        logger.info("Rendering preview")

    with timed_operation(logger, "render") as metrics:
        metrics.cells_rendered = 3000
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Context variables for request tracking
_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_document_id_var: ContextVar[str | None] = ContextVar("document_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_var.get()


def set_request_id(request_id: str | None) -> None:
    """Set the request ID in context.

    Args:
        request_id: The request ID to set, or None to clear.
    """
    _request_id_var.set(request_id)


def get_document_id() -> str | None:
    """Get the current document ID from context."""
    return _document_id_var.get()


def set_document_id(document_id: str | None) -> None:
    """Set the document ID in context.

    Args:
        document_id: The document ID to set, or None to clear.
    """
    _document_id_var.set(document_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars."""
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars."""
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _request_id_var.set(None)
    _document_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for performance metrics during preview processing.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        bytes_fetched: Workbook bytes fetched (if applicable).
        cells_rendered: Number of grid positions rendered (if applicable).
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    bytes_fetched: int = 0
    cells_rendered: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging, omitting zero counters."""
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.bytes_fetched > 0:
            result["bytes_fetched"] = self.bytes_fetched
        if self.cells_rendered > 0:
            result["cells_rendered"] = self.cells_rendered
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that prefixes records with the context variables."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        prefix_parts = []
        request_id = get_request_id()
        if request_id:
            prefix_parts.append(f"request_id={request_id}")
        document_id = get_document_id()
        if document_id:
            prefix_parts.append(f"document_id={document_id}")

        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Logger wrapper that appends ``key=value`` pairs to messages.

    Adds helpers for performance metrics, upstream fetches and render
    results on top of the standard logging methods.
    """

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(
            f"Performance: {metrics.operation}",
            **metrics.to_dict(),
        )

    def log_fetch(
        self,
        source: str,
        document_id: str,
        duration_seconds: float,
        size_bytes: int | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        """Log a workbook fetch from an external source.

        Args:
            source: Source name (e.g., "local", "http").
            document_id: Document whose bytes were fetched.
            duration_seconds: Time taken for the fetch.
            size_bytes: Bytes received (if successful).
            success: Whether the fetch succeeded.
            error_message: Error message if the fetch failed.
        """
        kwargs: dict[str, Any] = {
            "source": source,
            "document_id": document_id,
            "duration_seconds": f"{duration_seconds:.3f}",
            "success": success,
        }
        if size_bytes is not None:
            kwargs["size_bytes"] = size_bytes
        if error_message:
            kwargs["error"] = error_message

        level = logging.INFO if success else logging.ERROR
        self._logger.log(level, self._build_message("Workbook fetch", **kwargs))

    def log_render_result(
        self,
        document_id: str,
        sheet_name: str,
        cell_count: int,
        has_formulas: bool,
        html_size: int,
        duration_seconds: float,
    ) -> None:
        """Log a completed preview render.

        Args:
            document_id: Document identifier.
            sheet_name: Worksheet that was rendered.
            cell_count: Grid positions rendered.
            has_formulas: Whether any rendered cell carried a formula.
            html_size: Length of the emitted HTML.
            duration_seconds: Load and render time.
        """
        self.info(
            "Preview rendered",
            document_id=document_id,
            sheet_name=sheet_name,
            cell_count=cell_count,
            has_formulas=has_formulas,
            html_size=html_size,
            duration_seconds=f"{duration_seconds:.3f}",
        )


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(document_id="123", sheet_name="Summary"):
            logger.info("Rendering...")
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_document_id: str | None = None
        self._old_request_id: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_document_id = get_document_id()
        self._old_request_id = get_request_id()

        new_context = dict(self._new_context)
        document_id = new_context.pop("document_id", None)
        request_id = new_context.pop("request_id", None)

        if document_id is not None:
            set_document_id(document_id)
        if request_id is not None:
            set_request_id(request_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_document_id(self._old_document_id)
        set_request_id(self._old_request_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "render") as metrics:
            metrics.cells_rendered = 1000

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Preview served", document_id="abc", cache="HIT")
    """
    return StructuredLogger(name)
