from __future__ import annotations

from collections.abc import Callable

import pytest
from openpyxl import Workbook

from tests.fixtures import make_grid_workbook, make_report_workbook, workbook_to_bytes
from workbook_preview.preview_document import LoadedWorkbook
from workbook_preview.services.workbook_loader import load_workbook_bytes


@pytest.fixture
def report_bytes() -> bytes:
    return workbook_to_bytes(make_report_workbook())


@pytest.fixture
def grid_bytes() -> bytes:
    return workbook_to_bytes(make_grid_workbook())


@pytest.fixture
def load_workbook() -> Callable[[Workbook], LoadedWorkbook]:
    """Save an in-memory workbook and load it back the way the service does."""

    def _load(wb: Workbook) -> LoadedWorkbook:
        return load_workbook_bytes(workbook_to_bytes(wb), document_id="doc-1")

    return _load
