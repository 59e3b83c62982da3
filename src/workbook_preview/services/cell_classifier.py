"""Assign a semantic role to a cell from its style and value shape.

Rules are evaluated top to bottom and the first matching rule wins, so a
bold cell on the header fill is a header even when it holds an error.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from workbook_preview.preview_document import CellError, CellStyle, SemanticRole

HEADER_FILL = "#14406B"
DATELINE_FILL = "#D9D9D9"
INPUT_FONT_COLOR = "#0000FF"


@dataclass(frozen=True)
class CellFacts:
    """Everything the classification rules look at."""

    style: CellStyle
    has_formula: bool
    formula: str | None
    value: Any


def _same_color(color: str | None, expected: str) -> bool:
    return color is not None and color.upper() == expected


def _is_header(facts: CellFacts) -> bool:
    return _same_color(facts.style.background_color, HEADER_FILL) and facts.style.bold


def _is_dateline(facts: CellFacts) -> bool:
    return _same_color(facts.style.background_color, DATELINE_FILL)


def _is_input(facts: CellFacts) -> bool:
    if facts.has_formula:
        return False
    return _same_color(facts.style.font_color, INPUT_FONT_COLOR)


def _is_link(facts: CellFacts) -> bool:
    if not facts.has_formula:
        return False
    formula = facts.formula or ""
    return "!" in formula or "HYPERLINK" in formula


def _is_error(facts: CellFacts) -> bool:
    return isinstance(facts.value, CellError)


CLASSIFICATION_RULES: tuple[tuple[Callable[[CellFacts], bool], SemanticRole], ...] = (
    (_is_header, SemanticRole.HEADER),
    (_is_dateline, SemanticRole.DATELINE),
    (_is_input, SemanticRole.INPUT),
    (_is_link, SemanticRole.LINK),
    (_is_error, SemanticRole.ERROR),
)


def classify_cell(
    style: CellStyle,
    has_formula: bool,
    formula: str | None,
    value: Any,
) -> SemanticRole:
    """Classify a cell.

    Args:
        style: The cell's normalized style.
        has_formula: Whether the cell carries a formula.
        formula: The formula source, if any.
        value: The cell's (computed) value; a CellError marks an error cell.

    Returns:
        The first matching role, or SemanticRole.STANDARD.
    """
    facts = CellFacts(
        style=style, has_formula=has_formula, formula=formula, value=value
    )
    for predicate, role in CLASSIFICATION_RULES:
        if predicate(facts):
            return role
    return SemanticRole.STANDARD
