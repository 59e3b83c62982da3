"""Tests for cell value formatting."""

from __future__ import annotations

from datetime import datetime

from workbook_preview.preview_document import CellError, ValueType
from workbook_preview.services.value_formatter import (
    escape_html,
    format_cell_value,
    format_number,
)


class TestEscapeHtml:
    def test_escapes_special_characters(self) -> None:
        assert escape_html("<a href=\"x\">Tom & Jerry's</a>") == (
            "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#39;s&lt;/a&gt;"
        )

    def test_none_is_empty(self) -> None:
        assert escape_html(None) == ""


class TestFormatNumber:
    def test_percentage(self) -> None:
        assert format_number(0.485, "0.0%") == "48.5%"

    def test_currency(self) -> None:
        assert format_number(2500, "$#,##0") == "$2,500"
        assert format_number(2500, "$#,##0.00") == "$2,500"
        assert format_number(1234.5, "€#,##0.00") == "€1,234.5"

    def test_grouping(self) -> None:
        assert format_number(1234567.8, "#,##0") == "1,234,568"

    def test_unrecognized_pattern_uses_default_text(self) -> None:
        assert format_number(7.0, "0.000E+00") == "7"


class TestFormatCellValue:
    def test_empty_values(self) -> None:
        assert format_cell_value(None, ValueType.NULL) == ""
        assert format_cell_value("", ValueType.STRING) == ""

    def test_zero_is_rendered(self) -> None:
        assert format_cell_value(0, ValueType.NUMBER) == "0"

    def test_general_format_counts_as_absent(self) -> None:
        assert format_cell_value(1250.0, ValueType.NUMBER, "General") == "1250"

    def test_number_with_format(self) -> None:
        assert format_cell_value(0.485, ValueType.NUMBER, "0.0%") == "48.5%"

    def test_boolean(self) -> None:
        assert format_cell_value(True, ValueType.BOOLEAN) == "TRUE"
        assert format_cell_value(False, ValueType.BOOLEAN) == "FALSE"

    def test_date(self) -> None:
        value = datetime(2024, 1, 5, 13, 30)

        assert format_cell_value(value, ValueType.DATE) == "1/5/2024"

    def test_error_is_wrapped(self) -> None:
        value = CellError("#DIV/0!")

        assert format_cell_value(value, ValueType.ERROR) == (
            '<span class="e">#DIV/0!</span>'
        )

    def test_string_is_escaped(self) -> None:
        assert format_cell_value("<b>", ValueType.STRING) == "&lt;b&gt;"
