"""Utilities package for the workbook preview service.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from workbook_preview.utils.exceptions import (
    DocumentNotFoundError,
    ErrorCode,
    HTTPStatusMixin,
    NotFoundError,
    PreviewError,
    RenderError,
    TransientFetchError,
    ValidationError,
    WorkbookLoadError,
    WorksheetNotFoundError,
)
from workbook_preview.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "DocumentNotFoundError",
    "ErrorCode",
    "HTTPStatusMixin",
    "NotFoundError",
    "PreviewError",
    "RenderError",
    "TransientFetchError",
    "ValidationError",
    "WorkbookLoadError",
    "WorksheetNotFoundError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
