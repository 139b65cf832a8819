"""Helpers that build spreadsheet packages for tests.

Packages are assembled from literal XML with `zipfile`, so tests control
exactly which elements, attributes and entries a worksheet contains.

Example usage:
    from tests.fixtures import build_package, shared_strings_xml, worksheet_xml

    path = build_package(
        tmp_path / "book.xlsx",
        sheets={"Data": worksheet_xml("A1:B1", '<row r="1">...</row>')},
        shared_strings=shared_strings_xml(["x"]),
    )
"""

from __future__ import annotations

import zipfile
from pathlib import Path
from xml.sax.saxutils import escape

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
WORKSHEET_REL_TYPE = f"{REL_NS}/worksheet"


def shared_strings_xml(strings: list[str], unique_count: int | None = None) -> str:
    """Return a dictionary document holding one plain entry per string."""
    count = len(strings) if unique_count is None else unique_count
    items = "".join(f"<si><t>{escape(s)}</t></si>" for s in strings)
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<sst xmlns="{MAIN_NS}" count="{count}" uniqueCount="{count}">'
        f"{items}</sst>"
    )


def worksheet_xml(dimension: str | None, rows: str) -> str:
    """Return a worksheet document with an optional dimension element."""
    dim = f'<dimension ref="{dimension}"/>' if dimension is not None else ""
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"{dim}<sheetData>{rows}</sheetData></worksheet>"
    )


def workbook_xml(names: list[str]) -> str:
    sheets = "".join(
        f'<sheet name="{escape(name)}" sheetId="{i}" r:id="rId{i}"/>'
        for i, name in enumerate(names, start=1)
    )
    return (
        f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">'
        f"<sheets>{sheets}</sheets></workbook>"
    )


def workbook_rels_xml(count: int) -> str:
    rels = "".join(
        f'<Relationship Id="rId{i}" Type="{WORKSHEET_REL_TYPE}" '
        f'Target="worksheets/sheet{i}.xml"/>'
        for i in range(1, count + 1)
    )
    return f'<Relationships xmlns="{PKG_REL_NS}">{rels}</Relationships>'


def build_package(
    path: Path,
    sheets: dict[str, str],
    shared_strings: str | None = None,
    include_workbook: bool = True,
) -> Path:
    """Write a package whose sheets are stored as sheet1.xml, sheet2.xml, ...

    Args:
        path: Destination of the .xlsx file.
        sheets: Sheet name to worksheet XML, in workbook order.
        shared_strings: Dictionary document, or None to omit the entry.
        include_workbook: Whether to write the workbook and its rels.

    Returns:
        `path`, for chaining.
    """
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        if include_workbook:
            zf.writestr("xl/workbook.xml", workbook_xml(list(sheets)))
            zf.writestr("xl/_rels/workbook.xml.rels", workbook_rels_xml(len(sheets)))
        for number, xml in enumerate(sheets.values(), start=1):
            zf.writestr(f"xl/worksheets/sheet{number}.xml", xml)
        if shared_strings is not None:
            zf.writestr("xl/sharedStrings.xml", shared_strings)
    return path


# The worked example: a 3x2 grid whose second row omits B2.
REFERENCE_STRINGS = ["Col1", "Col2", "Col3", "a"]
REFERENCE_ROWS = (
    '<row r="1">'
    '<c r="A1" t="s"><v>0</v></c>'
    '<c r="B1" t="s"><v>1</v></c>'
    '<c r="C1" t="s"><v>2</v></c>'
    "</row>"
    '<row r="2">'
    '<c r="A2" t="s"><v>3</v></c>'
    '<c r="C2" t="s"><v>3</v></c>'
    "</row>"
)
REFERENCE_CSV = '"Col1","Col2","Col3"\r\n"a",,"a"\r\n'
