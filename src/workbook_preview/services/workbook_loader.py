"""Parse workbook bytes with openpyxl."""

from __future__ import annotations

import zipfile
from io import BytesIO
from xml.etree import ElementTree

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.xml.constants import XPROPS_NS

from workbook_preview.preview_document import LoadedWorkbook
from workbook_preview.utils.exceptions import WorkbookLoadError
from workbook_preview.utils.logging import get_logger

logger = get_logger(__name__)

APP_PROPERTIES_PART = "docProps/app.xml"


def read_company_property(data: bytes) -> str | None:
    """Read the ``Company`` extended property from the package, if set.

    openpyxl does not expose extended properties on the loaded workbook,
    so the part is read straight from the zip container.
    """
    with zipfile.ZipFile(BytesIO(data)) as archive:
        if APP_PROPERTIES_PART not in archive.namelist():
            return None
        raw = archive.read(APP_PROPERTIES_PART)

    try:
        root = ElementTree.fromstring(raw)
    except ElementTree.ParseError as e:
        logger.warning("Ignoring unreadable extended properties", error=str(e))
        return None

    company = root.findtext(f"{{{XPROPS_NS}}}Company")
    return company or None


def load_workbook_bytes(data: bytes, document_id: str | None = None) -> LoadedWorkbook:
    """Load a workbook from raw bytes.

    The workbook is loaded twice: once keeping formulas as cell values and
    once with the values cached by the spreadsheet application.

    Args:
        data: Raw .xlsx/.xlsm bytes.
        document_id: Document the bytes belong to (for error details).

    Returns:
        LoadedWorkbook holding both views and the company property.

    Raises:
        WorkbookLoadError: If the bytes are not a readable workbook.
    """
    if not data:
        raise WorkbookLoadError("Workbook is empty", document_id=document_id)

    try:
        formulas = load_workbook(filename=BytesIO(data), data_only=False)
        values = load_workbook(filename=BytesIO(data), data_only=True)
        company = read_company_property(data)
    except (
        InvalidFileException,
        zipfile.BadZipFile,
        KeyError,
        ValueError,
        # Malformed package XML (ElementTree and lxml parse errors).
        SyntaxError,
    ) as e:
        raise WorkbookLoadError(
            f"Unable to read workbook: {type(e).__name__}",
            document_id=document_id,
        ) from e

    return LoadedWorkbook(
        formulas=formulas,
        values=values,
        company=company,
        document_id=document_id,
    )
