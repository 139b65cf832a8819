from __future__ import annotations

from pathlib import Path

import pytest

from tests.fixtures import (
    REFERENCE_ROWS,
    REFERENCE_STRINGS,
    build_package,
    shared_strings_xml,
    worksheet_xml,
)
from xlsx_to_csv.config import Settings
from xlsx_to_csv.utils.logging import clear_context


@pytest.fixture(autouse=True)
def _reset_log_context() -> None:
    """Keep run/entry context from leaking between tests."""
    clear_context()


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def reference_package(tmp_path: Path) -> Path:
    """Package with the 3x2 reference sheet and its shared strings."""
    return build_package(
        tmp_path / "reference.xlsx",
        sheets={"Sheet1": worksheet_xml("A1:C3", REFERENCE_ROWS)},
        shared_strings=shared_strings_xml(REFERENCE_STRINGS),
    )


@pytest.fixture
def multi_sheet_package(tmp_path: Path) -> Path:
    """Package with two named sheets holding numbers only."""
    first = worksheet_xml(
        "A1:B1", '<row r="1"><c r="A1"><v>1</v></c><c r="B1"><v>2</v></c></row>'
    )
    second = worksheet_xml(
        "A1:A2",
        '<row r="1"><c r="A1"><v>10</v></c></row>'
        '<row r="2"><c r="A2"><v>20</v></c></row>',
    )
    return build_package(
        tmp_path / "multi.xlsx",
        sheets={"First": first, "Q3 Sales": second},
    )
