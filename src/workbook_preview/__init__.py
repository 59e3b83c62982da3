"""Workbook Preview - cached HTML previews of spreadsheet workbooks."""

from workbook_preview.api import app, create_app

__all__ = ["app", "create_app"]
__version__ = "0.1.0"


def main() -> None:
    """Run the FastAPI server using uvicorn."""
    import uvicorn

    from workbook_preview.config import settings

    uvicorn.run(
        "workbook_preview.api:app",
        host=settings.server_host,
        port=settings.server_port,
    )
