"""Render a bounded window of a worksheet as an HTML table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from openpyxl.cell import Cell
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula
from openpyxl.worksheet.worksheet import Worksheet

from workbook_preview.preview_document import (
    CellError,
    CellStyle,
    LoadedWorkbook,
    RenderedGrid,
    RenderLimits,
    ValueType,
)
from workbook_preview.services.cell_classifier import classify_cell
from workbook_preview.services.cell_style import extract_cell_style
from workbook_preview.services.value_formatter import escape_html, format_cell_value
from workbook_preview.utils.exceptions import (
    PreviewError,
    RenderError,
    WorksheetNotFoundError,
)
from workbook_preview.utils.logging import get_logger

logger = get_logger(__name__)

TABLE_CLASS = "excel-table"
BASE_CELL_CLASS = "c"
BOLD_CELL_CLASS = "b"


def column_letter(index: int) -> str:
    """Spreadsheet column name for a 1-based index (1 -> A, 27 -> AA)."""
    if index < 1:
        raise ValueError(f"Column index must be at least 1, got {index}")
    letters = []
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


def style_declarations(style: CellStyle) -> list[str]:
    """Inline CSS for the style keys that are set, in a fixed order."""
    declarations = []
    if style.background_color:
        declarations.append(f"background-color:{style.background_color}")
    if style.font_color:
        declarations.append(f"color:{style.font_color}")
    if style.font_size_px:
        declarations.append(f"font-size:{style.font_size_px}px")
    if style.text_align:
        declarations.append(f"text-align:{style.text_align}")
    return declarations


def is_formula_cell(cell: Cell) -> bool:
    return cell.data_type == "f" and cell.value is not None


def formula_source(cell: Cell) -> str | None:
    """Formula text of a cell without the leading ``=``, or None.

    Data-table formulas carry no formula text and yield None even though
    the cell counts as a formula cell.
    """
    if not is_formula_cell(cell):
        return None
    value = cell.value
    if isinstance(value, DataTableFormula):
        return None
    raw = value.text if isinstance(value, ArrayFormula) else value
    text = str(raw) if raw is not None else ""
    return text[1:] if text.startswith("=") else text


def typed_value(cell: Cell) -> tuple[Any, ValueType]:
    """Value of a cached-values cell with its type tag."""
    value = cell.value
    if value is None:
        return None, ValueType.NULL
    if cell.data_type == "e":
        return CellError(str(value)), ValueType.ERROR
    if cell.is_date:
        return value, ValueType.DATE
    if isinstance(value, bool):
        return value, ValueType.BOOLEAN
    if isinstance(value, (int, float)):
        return value, ValueType.NUMBER
    return value, ValueType.STRING


@dataclass
class _GridState:
    cell_count: int = 0
    has_formulas: bool = False


class GridRenderer:
    """Walk a worksheet window and emit the preview table."""

    def resolve_sheet_name(
        self, workbook: LoadedWorkbook, sheet_name: str | None
    ) -> str:
        """Return the requested sheet name, or the first sheet's name."""
        names = workbook.sheet_names
        if sheet_name is None:
            if not names:
                raise RenderError(
                    "Workbook has no worksheets", document_id=workbook.document_id
                )
            return names[0]
        if not workbook.has_sheet(sheet_name):
            raise WorksheetNotFoundError(
                sheet_name,
                document_id=workbook.document_id,
                available_sheets=names,
            )
        return sheet_name

    def render(
        self,
        workbook: LoadedWorkbook,
        sheet_name: str | None,
        limits: RenderLimits,
    ) -> RenderedGrid:
        """Render the window of one worksheet.

        Args:
            workbook: The loaded workbook.
            sheet_name: Worksheet to render; the first one when None.
            limits: Maximum rows and columns to render.

        Returns:
            RenderedGrid with the table HTML and counters.

        Raises:
            WorksheetNotFoundError: If ``sheet_name`` is not in the workbook.
            RenderError: If walking the cells fails.
        """
        resolved = self.resolve_sheet_name(workbook, sheet_name)
        state = _GridState()
        try:
            html = self._render_table(
                workbook.worksheet(resolved),
                workbook.value_worksheet(resolved),
                limits,
                state,
            )
        except PreviewError:
            raise
        except Exception as e:
            raise RenderError(
                f"Failed to render worksheet: {type(e).__name__}",
                document_id=workbook.document_id,
                sheet_name=resolved,
            ) from e

        logger.debug(
            "Worksheet rendered",
            sheet_name=resolved,
            cell_count=state.cell_count,
            has_formulas=state.has_formulas,
        )
        return RenderedGrid(
            html=html,
            cell_count=state.cell_count,
            has_formulas=state.has_formulas,
            sheet_name=resolved,
        )

    def _render_table(
        self,
        sheet: Worksheet,
        value_sheet: Worksheet,
        limits: RenderLimits,
        state: _GridState,
    ) -> str:
        parts = [f'<table class="{TABLE_CLASS}">', "<thead><tr><th></th>"]
        for col in range(1, limits.max_cols + 1):
            parts.append(f"<th>{column_letter(col)}</th>")
        parts.append("</tr></thead><tbody>")

        # Rows past the last populated row are not rendered.
        row_limit = min(sheet.max_row, limits.max_rows)
        bounds = {
            "min_row": 1,
            "max_row": row_limit,
            "min_col": 1,
            "max_col": limits.max_cols,
        }
        rows = zip(
            sheet.iter_rows(**bounds),
            value_sheet.iter_rows(**bounds),
            strict=True,
        )
        for row_number, (cells, value_cells) in enumerate(rows, start=1):
            parts.append(f"<tr><th>{row_number}</th>")
            for cell, value_cell in zip(cells, value_cells, strict=True):
                parts.append(self._render_cell(cell, value_cell, state))
            parts.append("</tr>")

        parts.append("</tbody></table>")
        return "".join(parts)

    def _render_cell(self, cell: Cell, value_cell: Cell, state: _GridState) -> str:
        state.cell_count += 1

        has_formula = is_formula_cell(cell)
        formula = formula_source(cell)
        if has_formula:
            state.has_formulas = True

        style = extract_cell_style(cell)
        value, value_type = typed_value(value_cell)
        role = classify_cell(style, has_formula, formula, value)

        classes = [BASE_CELL_CLASS]
        if style.bold:
            classes.append(BOLD_CELL_CLASS)
        if role.css_class:
            classes.append(role.css_class)

        attrs = ""
        if len(classes) > 1:
            attrs += f' class="{" ".join(classes)}"'
        declarations = style_declarations(style)
        if declarations:
            attrs += f' style="{";".join(declarations)}"'
        if formula is not None:
            attrs += f' data-f="{escape_html(formula)}"'

        content = format_cell_value(value, value_type, value_cell.number_format)
        return f"<td{attrs}>{content}</td>"
