"""Reduce an openpyxl cell's fill, font and alignment to a CellStyle."""

from __future__ import annotations

import math
from typing import Any

from workbook_preview.preview_document import CellStyle

POINTS_TO_PIXELS = 0.75
SUPPORTED_ALIGNMENTS = frozenset({"left", "center", "right", "justify"})
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def normalize_argb(value: Any) -> str | None:
    """Convert an ARGB (or plain RGB) hex string to ``#RRGGBB``.

    ``"FF14406B"`` becomes ``"#14406B"``. Anything that is not an 8 or 6
    digit hex string yields None.
    """
    if not isinstance(value, str):
        return None
    digits = value.strip().lstrip("#")
    if len(digits) not in (6, 8) or not set(digits) <= _HEX_DIGITS:
        return None
    if len(digits) == 8:
        digits = digits[2:]
    return f"#{digits.upper()}"


def _rgb_color(color: Any) -> str | None:
    # Theme and indexed colors carry no literal RGB value.
    if color is None or getattr(color, "type", None) != "rgb":
        return None
    return normalize_argb(getattr(color, "rgb", None))


def _background_color(cell: Any) -> str | None:
    fill = getattr(cell, "fill", None)
    if fill is None or getattr(fill, "fill_type", None) != "solid":
        return None
    return _rgb_color(getattr(fill, "fgColor", None))


def _font_size_px(font: Any) -> int | None:
    size = getattr(font, "sz", None)
    if not isinstance(size, (int, float)) or isinstance(size, bool) or size <= 0:
        return None
    return int(math.floor(size * POINTS_TO_PIXELS + 0.5))


def _text_align(cell: Any) -> str | None:
    alignment = getattr(cell, "alignment", None)
    horizontal = getattr(alignment, "horizontal", None)
    if horizontal in SUPPORTED_ALIGNMENTS:
        return str(horizontal)
    return None


def extract_cell_style(cell: Any) -> CellStyle:
    """Extract the normalized style of a cell.

    Never raises: cells without style information (or with style objects
    of an unexpected shape) produce an empty CellStyle.

    Args:
        cell: An openpyxl cell, or any object exposing ``fill``, ``font``
            and ``alignment`` in the same shape.

    Returns:
        The normalized CellStyle.
    """
    font = getattr(cell, "font", None)
    return CellStyle(
        background_color=_background_color(cell),
        font_color=_rgb_color(getattr(font, "color", None)),
        bold=bool(getattr(font, "b", False)),
        font_size_px=_font_size_px(font),
        text_align=_text_align(cell),
    )
