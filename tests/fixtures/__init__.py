"""Helpers that build sample workbooks in memory.

Example usage:
    from tests.fixtures import make_report_workbook, workbook_to_bytes

    data = workbook_to_bytes(make_report_workbook())
"""

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

REPORT_COMPANY = "Acme Holdings"


def workbook_to_bytes(wb: Workbook) -> bytes:
    """Serialize a workbook to .xlsx bytes."""
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_grid_workbook(rows: int = 5, cols: int = 5, title: str = "Data") -> Workbook:
    """Workbook whose only sheet is filled with ``r{row}c{col}`` strings."""
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for r in range(1, rows + 1):
        for c in range(1, cols + 1):
            ws.cell(row=r, column=c, value=f"r{r}c{c}")
    return wb


def make_report_workbook() -> Workbook:
    """Two-sheet workbook with a header, an input, a formula and an error.

    Summary:
        A1  "Acme Holdings" on the header fill, bold
        B1  "Q1"
        A2  1250, blue font (input)
        B2  0.485 formatted as a percentage
        A3  =Inputs!A1 (cross-sheet reference)
        B3  #DIV/0!
    Inputs:
        A1  42
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"
    ws["A1"] = REPORT_COMPANY
    ws["A1"].fill = PatternFill(fill_type="solid", fgColor="FF14406B")
    ws["A1"].font = Font(bold=True, color="FFFFFFFF")
    ws["B1"] = "Q1"
    ws["A2"] = 1250
    ws["A2"].font = Font(color="FF0000FF")
    ws["B2"] = 0.485
    ws["B2"].number_format = "0.0%"
    ws["A3"] = "=Inputs!A1"
    ws["B3"] = "#DIV/0!"

    inputs = wb.create_sheet("Inputs")
    inputs["A1"] = 42
    return wb
