"""Serve workbook previews, rendering on cache misses.

A request runs one lookup-or-render cycle. The only suspension point is the
fetch of workbook bytes; loading, rendering and the cache write happen
synchronously afterwards, so a request cancelled mid-fetch leaves the cache
untouched and a failed render never writes to it.

Two concurrent misses for the same key both fetch and render; the later
write replaces the earlier one.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from workbook_preview.preview_document import (
    PreviewMetadata,
    PreviewResult,
    RenderLimits,
)
from workbook_preview.services.grid_renderer import GridRenderer
from workbook_preview.services.metadata_extractor import extract_metadata
from workbook_preview.services.preview_cache import PreviewCache
from workbook_preview.services.workbook_loader import load_workbook_bytes
from workbook_preview.services.workbook_source import WorkbookSource
from workbook_preview.utils.exceptions import (
    ErrorCode,
    PreviewError,
    RenderError,
    ValidationError,
    WorkbookLoadError,
)
from workbook_preview.utils.logging import LogContext, get_logger, timed_operation

logger = get_logger(__name__)

DEFAULT_SHEET_PLACEHOLDER = "default"


class CacheStatus(str, Enum):
    """Whether a preview came from the cache."""

    HIT = "HIT"
    MISS = "MISS"


@dataclass(frozen=True)
class PreviewRequest:
    """Identity of a preview: document, sheet and window."""

    document_id: str
    sheet_name: str | None = None
    max_rows: int = 100
    max_cols: int = 30

    def __post_init__(self) -> None:
        if not self.document_id:
            raise ValidationError(
                "Document ID must not be empty", field="submission_id"
            )
        if self.max_rows < 1:
            raise ValidationError("rows must be at least 1", field="rows")
        if self.max_cols < 1:
            raise ValidationError("cols must be at least 1", field="cols")

    @property
    def limits(self) -> RenderLimits:
        return RenderLimits(max_rows=self.max_rows, max_cols=self.max_cols)


@dataclass(frozen=True)
class PreviewOutcome:
    """A preview and where it came from."""

    result: PreviewResult
    cache_status: CacheStatus


def build_cache_key(
    document_id: str,
    sheet_name: str | None,
    max_rows: int,
    max_cols: int,
) -> str:
    """Cache key for a preview request.

    JSON encoding keeps the key injective: IDs or sheet names containing
    separators cannot collide, and the default sheet (``null``) never
    collides with a sheet literally named "default".
    """
    return json.dumps(
        [document_id, sheet_name, max_rows, max_cols],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class PreviewService:
    """Cache-fronted pipeline from document ID to rendered preview."""

    def __init__(
        self,
        cache: PreviewCache,
        source: WorkbookSource,
        renderer: GridRenderer | None = None,
        max_file_size_bytes: int | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            cache: Process-wide preview cache.
            source: Provider of workbook bytes.
            renderer: Grid renderer (a default one when None).
            max_file_size_bytes: Reject larger workbooks; no limit when None.
            now: Wall-clock source for the preview's creation date.
        """
        self.cache = cache
        self.source = source
        self.renderer = renderer or GridRenderer()
        self.max_file_size_bytes = max_file_size_bytes
        self._now = now or (lambda: datetime.now(UTC))

    async def get_preview(self, request: PreviewRequest) -> PreviewOutcome:
        """Return the preview for ``request``, rendering it on a cache miss.

        Raises:
            NotFoundError: The document or worksheet does not exist.
            TransientFetchError: The workbook bytes could not be fetched.
            RenderError: The workbook could not be loaded or rendered.
        """
        key = build_cache_key(
            request.document_id,
            request.sheet_name,
            request.max_rows,
            request.max_cols,
        )
        with LogContext(
            document_id=request.document_id,
            sheet_name=request.sheet_name or DEFAULT_SHEET_PLACEHOLDER,
        ):
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("Preview cache hit", cache_size=len(self.cache))
                return PreviewOutcome(result=cached, cache_status=CacheStatus.HIT)

            logger.info("Preview cache miss")
            data = await self._fetch(request.document_id)
            result = self._render(request, data)
            self.cache.set(key, result)
            return PreviewOutcome(result=result, cache_status=CacheStatus.MISS)

    async def _fetch(self, document_id: str) -> bytes:
        start = time.monotonic()
        try:
            data = await self.source.fetch_workbook_bytes(document_id)
        except PreviewError as e:
            logger.log_fetch(
                source=self.source.name,
                document_id=document_id,
                duration_seconds=time.monotonic() - start,
                success=False,
                error_message=e.message,
            )
            raise

        logger.log_fetch(
            source=self.source.name,
            document_id=document_id,
            duration_seconds=time.monotonic() - start,
            size_bytes=len(data),
        )
        limit = self.max_file_size_bytes
        if limit is not None and len(data) > limit:
            raise WorkbookLoadError(
                f"Workbook size ({len(data)} bytes) exceeds maximum "
                f"allowed size ({limit} bytes)",
                document_id=document_id,
                error_code=ErrorCode.WORKBOOK_TOO_LARGE,
            )
        return data

    def _render(self, request: PreviewRequest, data: bytes) -> PreviewResult:
        with timed_operation(logger, "render_preview") as metrics:
            try:
                workbook = load_workbook_bytes(data, document_id=request.document_id)
                grid = self.renderer.render(
                    workbook, request.sheet_name, request.limits
                )
                workbook_metadata = extract_metadata(workbook)
            except PreviewError:
                raise
            except Exception as e:
                raise RenderError(
                    f"Failed to build preview: {type(e).__name__}",
                    document_id=request.document_id,
                    sheet_name=request.sheet_name,
                ) from e
            metrics.bytes_fetched = len(data)
            metrics.cells_rendered = grid.cell_count

        result = PreviewResult(
            html=grid.html,
            metadata=PreviewMetadata(
                sheet_names=workbook_metadata.sheet_names,
                company=workbook_metadata.company,
                total_sheets=workbook_metadata.total_sheets,
                created_date=self._now().isoformat(),
            ),
            cell_count=grid.cell_count,
            has_formulas=grid.has_formulas,
        )
        logger.log_render_result(
            document_id=request.document_id,
            sheet_name=grid.sheet_name,
            cell_count=grid.cell_count,
            has_formulas=grid.has_formulas,
            html_size=len(grid.html),
            duration_seconds=metrics.duration_seconds,
        )
        return result
