"""Derive the document label and sheet list shown with a preview."""

from __future__ import annotations

from workbook_preview.preview_document import LoadedWorkbook, WorkbookMetadata
from workbook_preview.services.value_formatter import number_to_text

DEFAULT_COMPANY = "Your Company"
COMPANY_CANDIDATE_CELLS = ("A1", "B1", "A2", "B2")
MIN_LABEL_LENGTH = 2
MAX_LABEL_LENGTH = 100


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return number_to_text(value)
    return str(value)


def find_company_label(workbook: LoadedWorkbook) -> str:
    """Company property, else the first plausible header cell, else a default."""
    if workbook.company and workbook.company.strip():
        return workbook.company

    names = workbook.sheet_names
    if not names:
        return DEFAULT_COMPANY

    sheet = workbook.value_worksheet(names[0])
    for coordinate in COMPANY_CANDIDATE_CELLS:
        text = _cell_text(sheet[coordinate].value)
        if MIN_LABEL_LENGTH < len(text) < MAX_LABEL_LENGTH:
            return text

    return DEFAULT_COMPANY


def extract_metadata(workbook: LoadedWorkbook) -> WorkbookMetadata:
    """Collect company label, sheet names and sheet count."""
    names = tuple(workbook.sheet_names)
    return WorkbookMetadata(
        company=find_company_label(workbook),
        sheet_names=names,
        total_sheets=len(names),
    )
