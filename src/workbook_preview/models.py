"""Pydantic models for API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from workbook_preview.utils.exceptions import ErrorCode


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str
    cache: dict[str, Any] | None = Field(
        default=None, description="Preview cache occupancy and counters"
    )


class PreviewMetadataResponse(BaseModel):
    """Workbook metadata returned with a preview."""

    model_config = ConfigDict(populate_by_name=True)

    sheet_names: list[str] = Field(
        ..., alias="sheetNames", description="All worksheet names, in order"
    )
    company: str = Field(..., description="Company label of the workbook")
    created_date: str = Field(
        ..., alias="createdDate", description="When the preview was rendered"
    )
    total_sheets: int = Field(
        ..., alias="totalSheets", description="Number of worksheets"
    )


class PreviewResponse(BaseModel):
    """Response model for the preview endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    html: str = Field(..., description="Rendered HTML table")
    metadata: PreviewMetadataResponse = Field(..., description="Workbook metadata")
    cell_count: int = Field(
        ..., alias="cellCount", description="Grid positions rendered"
    )
    has_formulas: bool = Field(
        ...,
        alias="hasFormulas",
        description="Whether any rendered cell carries a formula",
    )


class CacheClearResponse(BaseModel):
    """Response model for clearing the preview cache."""

    cleared: int = Field(..., description="Number of entries removed")


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    This model provides structured error responses with:
    - Human-readable error message
    - Machine-readable error code
    - Optional additional details for debugging
    - Optional request ID for correlation
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for error correlation",
    )

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        detail: str,
        details: dict[str, Any] | None = None,
        request_id: str | None = None,
    ) -> "ErrorDetail":
        """Create an ErrorDetail from an ErrorCode enum value.

        Args:
            error_code: The error code enum.
            detail: Human-readable error message.
            details: Optional additional details.
            request_id: Optional request ID.

        Returns:
            ErrorDetail instance.
        """
        return cls(
            detail=detail,
            error_code=error_code.value,
            details=details,
            request_id=request_id,
        )
