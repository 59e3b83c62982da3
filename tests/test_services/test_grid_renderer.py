"""Tests for the HTML grid renderer."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from types import SimpleNamespace

import pytest
from openpyxl import Workbook
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula

from tests.fixtures import make_grid_workbook, make_report_workbook
from workbook_preview.preview_document import (
    CellStyle,
    LoadedWorkbook,
    RenderLimits,
)
from workbook_preview.services import grid_renderer
from workbook_preview.services.grid_renderer import (
    GridRenderer,
    column_letter,
    formula_source,
    is_formula_cell,
    style_declarations,
)
from workbook_preview.utils.exceptions import RenderError, WorksheetNotFoundError

Loader = Callable[[Workbook], LoadedWorkbook]


@pytest.mark.parametrize(
    ("index", "expected"),
    [(1, "A"), (26, "Z"), (27, "AA"), (52, "AZ"), (53, "BA"), (703, "AAA")],
)
def test_column_letter(index: int, expected: str) -> None:
    assert column_letter(index) == expected


def test_column_letter_rejects_zero() -> None:
    with pytest.raises(ValueError):
        column_letter(0)


def test_style_declarations_order() -> None:
    style = CellStyle(
        background_color="#D9D9D9",
        font_color="#0000FF",
        bold=True,
        font_size_px=12,
        text_align="right",
    )

    assert style_declarations(style) == [
        "background-color:#D9D9D9",
        "color:#0000FF",
        "font-size:12px",
        "text-align:right",
    ]


class TestGridRenderer:
    def test_window_limits_rows_and_columns(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_grid_workbook(rows=5, cols=5))

        grid = GridRenderer().render(workbook, None, RenderLimits(2, 2))

        assert grid.cell_count == 4
        assert grid.sheet_name == "Data"
        assert "<th>A</th><th>B</th></tr>" in grid.html
        assert "<th>C</th>" not in grid.html
        assert "r2c2" in grid.html
        assert "r3c1" not in grid.html
        assert "r1c3" not in grid.html

    def test_table_structure(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_grid_workbook(rows=1, cols=1))

        html = GridRenderer().render(workbook, None, RenderLimits(1, 1)).html

        assert html.startswith(
            '<table class="excel-table"><thead><tr><th></th><th>A</th></tr>'
            "</thead><tbody><tr><th>1</th><td"
        )
        assert html.endswith("r1c1</td></tr></tbody></table>")

    def test_stops_at_last_populated_row(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_grid_workbook(rows=3, cols=2))

        grid = GridRenderer().render(workbook, None, RenderLimits(100, 2))

        assert grid.cell_count == 6
        assert "<th>3</th>" in grid.html
        assert "<th>4</th>" not in grid.html

    def test_renders_blank_columns_up_to_the_limit(
        self, load_workbook: Loader
    ) -> None:
        workbook = load_workbook(make_grid_workbook(rows=1, cols=1))

        grid = GridRenderer().render(workbook, None, RenderLimits(1, 3))

        assert grid.cell_count == 3
        assert "<th>C</th>" in grid.html

    def test_report_cells(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_report_workbook())

        grid = GridRenderer().render(workbook, "Summary", RenderLimits(3, 2))
        html = grid.html

        assert grid.has_formulas is True
        assert (
            '<td class="c b h" style="background-color:#14406B;color:#FFFFFF">'
            "Acme Holdings</td>"
        ) in html
        assert '<td class="c i" style="color:#0000FF">1250</td>' in html
        assert ">48.5%</td>" in html
        assert '<td class="c l" style="font-size:8px" data-f="Inputs!A1">' in html
        assert '<td style="font-size:8px">Q1</td>' in html
        assert '<td class="c e"' in html
        assert '<span class="e">#DIV/0!</span>' in html

    def test_sheet_without_formulas(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_report_workbook())

        grid = GridRenderer().render(workbook, "Inputs", RenderLimits(5, 5))

        assert grid.has_formulas is False
        assert grid.sheet_name == "Inputs"
        assert ">42</td>" in grid.html

    def test_formula_text_is_escaped(self, load_workbook: Loader) -> None:
        wb = Workbook()
        wb.active["A1"] = '=HYPERLINK("https://x.test","x")'
        workbook = load_workbook(wb)

        html = GridRenderer().render(workbook, None, RenderLimits(1, 1)).html

        assert 'data-f="HYPERLINK(&quot;https://x.test&quot;,&quot;x&quot;)"' in html
        assert 'class="c l"' in html

    def test_string_values_are_escaped(self, load_workbook: Loader) -> None:
        wb = Workbook()
        wb.active["A1"] = "<script>alert(1)</script>"
        workbook = load_workbook(wb)

        html = GridRenderer().render(workbook, None, RenderLimits(1, 1)).html

        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html

    def test_dates_are_formatted(self, load_workbook: Loader) -> None:
        wb = Workbook()
        wb.active["A1"] = datetime(2024, 3, 9)
        workbook = load_workbook(wb)

        html = GridRenderer().render(workbook, None, RenderLimits(1, 1)).html

        assert ">3/9/2024</td>" in html

    def test_unknown_sheet(self, load_workbook: Loader) -> None:
        workbook = load_workbook(make_report_workbook())

        with pytest.raises(WorksheetNotFoundError) as exc_info:
            GridRenderer().render(workbook, "Missing", RenderLimits())

        assert exc_info.value.details["available_sheets"] == ["Summary", "Inputs"]
        assert exc_info.value.details["document_id"] == "doc-1"

    def test_workbook_without_sheets(self) -> None:
        wb = Workbook()
        wb.remove(wb.active)
        workbook = LoadedWorkbook(formulas=wb, values=wb)

        with pytest.raises(RenderError):
            GridRenderer().render(workbook, None, RenderLimits())

    def test_unexpected_failure_is_wrapped(
        self, load_workbook: Loader, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _boom(cell: object) -> CellStyle:
            raise RuntimeError("bad style")

        monkeypatch.setattr(grid_renderer, "extract_cell_style", _boom)
        workbook = load_workbook(make_grid_workbook())

        with pytest.raises(RenderError) as exc_info:
            GridRenderer().render(workbook, None, RenderLimits())

        assert exc_info.value.details["sheet_name"] == "Data"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


def _chart_first_workbook() -> LoadedWorkbook:
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws["A1"] = "Revenue"
    wb.create_chartsheet("Chart", 0)
    return LoadedWorkbook(formulas=wb, values=wb, document_id="doc-1")


class TestChartsheets:
    def test_first_worksheet_skips_chartsheets(self) -> None:
        grid = GridRenderer().render(_chart_first_workbook(), None, RenderLimits(2, 2))

        assert grid.sheet_name == "Data"
        assert "Revenue" in grid.html

    def test_chartsheet_name_is_not_found(self) -> None:
        with pytest.raises(WorksheetNotFoundError) as exc_info:
            GridRenderer().render(_chart_first_workbook(), "Chart", RenderLimits())

        assert exc_info.value.details["available_sheets"] == ["Data"]


class TestFormulaSource:
    def test_plain_formula_drops_equals_sign(self) -> None:
        cell = SimpleNamespace(data_type="f", value="=SUM(A1:A3)")

        assert formula_source(cell) == "SUM(A1:A3)"

    def test_array_formula_text(self) -> None:
        cell = SimpleNamespace(data_type="f", value=ArrayFormula("B1:B3", "=A1:A3*2"))

        assert formula_source(cell) == "A1:A3*2"

    def test_data_table_formula_has_no_source(self) -> None:
        cell = SimpleNamespace(data_type="f", value=DataTableFormula("B2:C5"))

        assert is_formula_cell(cell) is True
        assert formula_source(cell) is None

    def test_non_formula_cell(self) -> None:
        cell = SimpleNamespace(data_type="n", value=3)

        assert is_formula_cell(cell) is False
        assert formula_source(cell) is None
