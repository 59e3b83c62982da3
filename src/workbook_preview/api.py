"""FastAPI application serving workbook previews."""

import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workbook_preview.config import settings, validate_settings_on_startup
from workbook_preview.models import (
    CacheClearResponse,
    ErrorDetail,
    HealthResponse,
    PreviewResponse,
)
from workbook_preview.services.preview_cache import PreviewCache
from workbook_preview.services.preview_service import PreviewRequest, PreviewService
from workbook_preview.services.workbook_source import (
    WorkbookSource,
    build_workbook_source,
)
from workbook_preview.utils.exceptions import ErrorCode, PreviewError
from workbook_preview.utils.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

VERSION = "0.1.0"

# Configure structured logging using settings
configure_logging(
    level=settings.log_level_int,
    use_structured_formatter=True,
)
logger = get_logger(__name__)


def create_app(workbook_source: WorkbookSource | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        workbook_source: Source of workbook bytes. Built from settings when
            None; a source passed in is not closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        cache = PreviewCache(
            max_entries=settings.cache_max_entries,
            max_size_bytes=settings.cache_max_size_bytes,
            ttl_seconds=settings.cache_ttl_seconds,
        )
        source = workbook_source or build_workbook_source(settings)
        app.state.preview_service = PreviewService(
            cache,
            source,
            max_file_size_bytes=settings.max_file_size_bytes,
        )
        try:
            yield
        finally:
            if workbook_source is None:
                await source.aclose()
            app.state.preview_service = None

    app = FastAPI(
        title="Workbook Preview API",
        description=(
            "Renders bounded, styled HTML previews of spreadsheet workbooks "
            "and serves repeated requests from an in-memory cache."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Cache", "X-Request-ID"],
    )

    validate_settings_on_startup(settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Assign a request ID, expose it in the response and in log context."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()

    @app.exception_handler(PreviewError)
    async def preview_exception_handler(
        request: Request, exc: PreviewError
    ) -> JSONResponse:
        """Return structured error responses for preview errors."""
        request_id = getattr(request.state, "request_id", get_request_id())
        log = logger.warning if exc.http_status < 500 else logger.error
        log(
            f"Preview error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=ErrorDetail(
                detail=exc.message,
                error_code=exc.error_code.value,
                details=exc.details if exc.details else None,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        """Custom exception handler for HTTP exceptions."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorDetail(
                detail=str(exc.detail),
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler that hides internals unless in debug mode."""
        request_id = getattr(request.state, "request_id", get_request_id())
        logger.exception(
            f"Unexpected error: {type(exc).__name__}",
            error_type=type(exc).__name__,
        )
        if settings.debug:
            detail = f"Internal server error: {type(exc).__name__}: {exc}"
        else:
            detail = "Internal server error. Please try again later."

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorDetail.from_error_code(
                ErrorCode.UNEXPECTED_ERROR,
                detail,
                request_id=request_id,
            ).model_dump(exclude_none=True),
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Check the health status of the service, including cache occupancy."""
        service: PreviewService | None = request.app.state.preview_service
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": VERSION,
            "cache": service.cache.stats().to_dict() if service else None,
        }

    @app.get(
        "/preview",
        response_model=PreviewResponse,
        tags=["Preview"],
        responses={
            404: {"model": ErrorDetail, "description": "Document or sheet not found"},
            422: {"model": ErrorDetail, "description": "Workbook unreadable"},
            502: {"model": ErrorDetail, "description": "Workbook fetch failed"},
        },
    )
    async def get_preview(
        request: Request,
        response: Response,
        submission_id: Annotated[
            str, Query(min_length=1, description="Document to preview")
        ],
        sheet_name: Annotated[
            str | None, Query(description="Worksheet; the first one when omitted")
        ] = None,
        rows: Annotated[
            int,
            Query(ge=1, le=settings.max_rows_limit, description="Rows to render"),
        ] = settings.default_max_rows,
        cols: Annotated[
            int,
            Query(ge=1, le=settings.max_cols_limit, description="Columns to render"),
        ] = settings.default_max_cols,
    ) -> dict[str, Any]:
        """Render (or serve from cache) an HTML preview of a workbook.

        The response carries ``X-Cache: HIT|MISS`` and a Cache-Control header
        allowing shared caches to keep and revalidate the preview.

        Raises:
            DocumentNotFoundError: 404 if the document has no workbook
            WorksheetNotFoundError: 404 if the sheet does not exist
            WorkbookLoadError: 422 if the workbook cannot be read
            TransientFetchError: 502 if fetching the workbook failed
        """
        service: PreviewService = request.app.state.preview_service
        outcome = await service.get_preview(
            PreviewRequest(
                document_id=submission_id,
                sheet_name=sheet_name or None,
                max_rows=rows,
                max_cols=cols,
            )
        )

        response.headers["X-Cache"] = outcome.cache_status.value
        response.headers["Cache-Control"] = settings.cache_control_header
        logger.info(
            "Preview served",
            document_id=submission_id,
            cache=outcome.cache_status.value,
            cell_count=outcome.result.cell_count,
        )
        return outcome.result.to_dict()

    @app.delete(
        "/preview/cache",
        response_model=CacheClearResponse,
        tags=["Preview"],
    )
    async def clear_preview_cache(request: Request) -> dict[str, Any]:
        """Drop every cached preview."""
        service: PreviewService = request.app.state.preview_service
        cleared = service.cache.clear()
        logger.info("Preview cache cleared", cleared=cleared)
        return {"cleared": cleared}

    logger.info("FastAPI application created successfully")
    return app


# Create the application instance
app = create_app()
