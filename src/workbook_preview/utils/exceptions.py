"""Centralized exception classes for the workbook preview service.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    PreviewError (base)
    ├── NotFoundError
    │   ├── DocumentNotFoundError
    │   └── WorksheetNotFoundError
    ├── TransientFetchError
    ├── RenderError
    │   └── WorkbookLoadError
    └── ValidationError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.

Details never include cell contents, only identifiers such as the
document ID and the requested sheet name.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Document/worksheet lookup errors
    - E2xxx: Request validation errors
    - E4xxx: Workbook loading/rendering errors
    - E5xxx: External service errors
    - E9xxx: Internal/unexpected errors
    """

    # Lookup errors (E1xxx)
    DOCUMENT_NOT_FOUND = "E1001"
    WORKSHEET_NOT_FOUND = "E1002"

    # Validation errors (E2xxx)
    INVALID_REQUEST = "E2001"

    # Render errors (E4xxx)
    RENDER_FAILED = "E4001"
    WORKBOOK_LOAD_FAILED = "E4002"
    WORKBOOK_TOO_LARGE = "E4003"

    # External service errors (E5xxx)
    FETCH_FAILED = "E5001"
    FETCH_TIMEOUT = "E5002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    UNEXPECTED_ERROR = "E9999"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class PreviewError(Exception, HTTPStatusMixin):
    """Base exception for all workbook preview errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


def _document_details(
    details: dict[str, Any] | None,
    document_id: str | None,
    sheet_name: str | None = None,
) -> dict[str, Any]:
    details = details or {}
    if document_id:
        details["document_id"] = document_id
    if sheet_name:
        details["sheet_name"] = sheet_name
    return details


# =============================================================================
# Lookup Errors (E1xxx)
# =============================================================================


class NotFoundError(PreviewError):
    """Base class for missing documents and worksheets."""

    http_status: int = 404


class DocumentNotFoundError(NotFoundError):
    """Raised when the requested document has no workbook bytes."""

    def __init__(
        self,
        document_id: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the document ID.

        Args:
            document_id: The document that was not found.
            message: Optional custom message.
            details: Additional details.
        """
        super().__init__(
            message=message or f"Document not found: {document_id}",
            error_code=ErrorCode.DOCUMENT_NOT_FOUND,
            details=_document_details(details, document_id),
        )
        self.document_id = document_id


class WorksheetNotFoundError(NotFoundError):
    """Raised when a named worksheet does not exist in the workbook."""

    def __init__(
        self,
        sheet_name: str,
        document_id: str | None = None,
        available_sheets: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the sheet name.

        Args:
            sheet_name: The worksheet name that was requested.
            document_id: Document the worksheet was looked up in.
            available_sheets: Sheet names the workbook actually holds.
            details: Additional details.
        """
        details = _document_details(details, document_id, sheet_name)
        if available_sheets is not None:
            details["available_sheets"] = available_sheets
        super().__init__(
            message=f"Worksheet not found: {sheet_name}",
            error_code=ErrorCode.WORKSHEET_NOT_FOUND,
            details=details,
        )
        self.sheet_name = sheet_name
        self.document_id = document_id


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================


class ValidationError(PreviewError):
    """General validation error for request input."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_REQUEST,
            details=details,
        )
        self.field = field


# =============================================================================
# Render Errors (E4xxx)
# =============================================================================


class RenderError(PreviewError):
    """Raised when walking a worksheet fails; nothing is cached."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        sheet_name: str | None = None,
        error_code: ErrorCode = ErrorCode.RENDER_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the render location.

        Args:
            message: Error message.
            document_id: Document being rendered.
            sheet_name: Worksheet being rendered.
            error_code: Error code.
            details: Additional details.
        """
        super().__init__(
            message=message,
            error_code=error_code,
            details=_document_details(details, document_id, sheet_name),
        )
        self.document_id = document_id
        self.sheet_name = sheet_name


class WorkbookLoadError(RenderError):
    """Raised when workbook bytes cannot be parsed or are too large."""

    http_status: int = 422

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        error_code: ErrorCode = ErrorCode.WORKBOOK_LOAD_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the document ID.

        Args:
            message: Error message.
            document_id: Document whose bytes failed to load.
            error_code: Error code.
            details: Additional details.
        """
        super().__init__(
            message=message,
            document_id=document_id,
            error_code=error_code,
            details=details,
        )


# =============================================================================
# External Service Errors (E5xxx)
# =============================================================================


class TransientFetchError(PreviewError):
    """Raised when fetching workbook bytes fails for a recoverable reason."""

    http_status: int = 502

    def __init__(
        self,
        document_id: str,
        message: str | None = None,
        error_code: ErrorCode = ErrorCode.FETCH_FAILED,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with fetch details.

        Args:
            document_id: Document whose bytes could not be fetched.
            message: Optional custom message.
            error_code: Error code.
            status_code: Upstream HTTP status, if any.
            details: Additional details.
        """
        details = _document_details(details, document_id)
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__(
            message=message or f"Failed to fetch workbook: {document_id}",
            error_code=error_code,
            details=details,
        )
        self.document_id = document_id
        self.status_code = status_code
