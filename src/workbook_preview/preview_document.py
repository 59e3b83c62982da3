"""Dataclasses representing a workbook preview and its building blocks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet


class SemanticRole(str, Enum):
    """Visual/functional purpose of a cell in the rendered grid."""

    STANDARD = "standard"
    HEADER = "header"
    DATELINE = "dateline"
    INPUT = "input"
    LINK = "link"
    ERROR = "error"

    @property
    def css_class(self) -> str | None:
        """Single-letter class added to the cell, None for standard cells."""
        if self is SemanticRole.STANDARD:
            return None
        return self.value[0]


class ValueType(str, Enum):
    """Type tag of a cell's (computed) value."""

    NULL = "null"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    ERROR = "error"


@dataclass(frozen=True)
class CellError:
    """A spreadsheet error value such as ``#DIV/0!`` or ``#REF!``."""

    code: str

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class CellStyle:
    """Normalized subset of a cell's style. None means inherit the default."""

    background_color: str | None = None
    font_color: str | None = None
    bold: bool = False
    font_size_px: int | None = None
    text_align: str | None = None


@dataclass(frozen=True)
class RenderLimits:
    """Window of the worksheet that gets rendered."""

    max_rows: int = 100
    max_cols: int = 30


@dataclass(frozen=True)
class RenderedGrid:
    """Output of the grid renderer for one worksheet."""

    html: str
    cell_count: int
    has_formulas: bool
    sheet_name: str


@dataclass(frozen=True)
class WorkbookMetadata:
    """Descriptive metadata shown next to the preview."""

    company: str
    sheet_names: tuple[str, ...]
    total_sheets: int


@dataclass(frozen=True)
class PreviewMetadata:
    """Metadata block of a preview result."""

    sheet_names: tuple[str, ...]
    company: str
    total_sheets: int
    created_date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheetNames": list(self.sheet_names),
            "company": self.company,
            "createdDate": self.created_date,
            "totalSheets": self.total_sheets,
        }


@dataclass(frozen=True)
class PreviewResult:
    """A rendered preview. Immutable; this is the value held by the cache."""

    html: str
    metadata: PreviewMetadata
    cell_count: int
    has_formulas: bool

    @property
    def size_bytes(self) -> int:
        """Size charged against the cache's byte budget."""
        return len(self.html)

    def to_dict(self) -> dict[str, Any]:
        return {
            "html": self.html,
            "metadata": self.metadata.to_dict(),
            "cellCount": self.cell_count,
            "hasFormulas": self.has_formulas,
        }


@dataclass
class LoadedWorkbook:
    """A parsed workbook, owned by a single render call.

    ``formulas`` keeps formula sources as cell values; ``values`` holds the
    results cached by the spreadsheet application when the file was saved.
    Both are loaded from the same bytes so their worksheets line up.
    """

    formulas: Workbook
    values: Workbook
    company: str | None = None
    document_id: str | None = None

    @property
    def sheet_names(self) -> list[str]:
        """Worksheet names in workbook order. Chartsheets are excluded."""
        return [ws.title for ws in self.formulas.worksheets]

    def has_sheet(self, name: str) -> bool:
        return name in self.sheet_names

    def worksheet(self, name: str) -> Worksheet:
        return self.formulas[name]

    def value_worksheet(self, name: str) -> Worksheet:
        return self.values[name]
