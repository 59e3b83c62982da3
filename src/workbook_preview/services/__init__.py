"""Services for the workbook preview pipeline."""

from workbook_preview.services.preview_cache import PreviewCache
from workbook_preview.services.preview_service import (
    CacheStatus,
    PreviewOutcome,
    PreviewRequest,
    PreviewService,
    build_cache_key,
)

__all__ = [
    "CacheStatus",
    "PreviewCache",
    "PreviewOutcome",
    "PreviewRequest",
    "PreviewService",
    "build_cache_key",
]
