"""Render typed cell values to HTML-safe display strings."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from workbook_preview.preview_document import CellError, ValueType

CURRENCY_SYMBOLS = ("$", "€", "£", "¥")
GROUPING_MARKER = "#,##0"
GENERAL_FORMAT = "General"

# Ampersand first, so entities produced by later steps are not re-escaped.
_HTML_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def escape_html(value: Any) -> str:
    """Escape a value for use in HTML text and double-quoted attributes."""
    if value is None:
        return ""
    text = str(value)
    for raw, entity in _HTML_REPLACEMENTS:
        text = text.replace(raw, entity)
    return text


def number_to_text(value: int | float) -> str:
    """Default string form of a number; integral floats drop the ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _grouped(value: float, max_fraction_digits: int) -> str:
    text = f"{value:,.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_number(value: int | float, number_format: str) -> str:
    """Apply the supported subset of spreadsheet number formats.

    Args:
        value: The numeric value.
        number_format: The cell's number-format pattern.

    Returns:
        The display string (contains no HTML-special characters).
    """
    for symbol in CURRENCY_SYMBOLS:
        if symbol in number_format:
            return f"{symbol}{_grouped(value, 2)}"

    if "%" in number_format:
        return f"{value * 100:.1f}%"

    if GROUPING_MARKER in number_format:
        return f"{value:,.0f}"

    return number_to_text(value)


def format_date(value: date) -> str:
    """Calendar date in en-US order, without a time component."""
    return f"{value.month}/{value.day}/{value.year}"


def format_cell_value(
    value: Any,
    value_type: ValueType,
    number_format: str | None = None,
) -> str:
    """Render a cell value for display.

    Args:
        value: The cell's (computed) value.
        value_type: Type tag of the value.
        number_format: Number-format pattern; ``General`` counts as absent.

    Returns:
        HTML-safe display string.
    """
    if value is None or value == "":
        return ""

    if isinstance(value, CellError):
        return f'<span class="e">{escape_html(value.code)}</span>'

    if value_type is ValueType.DATE and isinstance(value, (datetime, date)):
        return format_date(value)

    if value_type is ValueType.BOOLEAN:
        return "TRUE" if value else "FALSE"

    if value_type is ValueType.NUMBER and isinstance(value, (int, float)):
        if number_format and number_format != GENERAL_FORMAT:
            return escape_html(format_number(value, number_format))
        return number_to_text(value)

    return escape_html(value)
