"""Tests for spreadsheet package access."""

from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from tests.fixtures import MAIN_NS, PKG_REL_NS, REL_NS, build_package, worksheet_xml
from xlsx_to_csv.services.archive import PackageArchive, SheetInfo
from xlsx_to_csv.utils.exceptions import (
    ErrorCode,
    InputError,
    MalformedDocumentError,
    MissingInputError,
)


class TestPackageArchive:
    """Tests for opening packages and reading entries."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A nonexistent path is reported as not found."""
        with pytest.raises(MissingInputError) as exc_info:
            PackageArchive(tmp_path / "nope.xlsx")

        assert exc_info.value.error_code == ErrorCode.PACKAGE_NOT_FOUND
        assert exc_info.value.get_exit_code() == 2

    def test_not_a_zip(self, tmp_path: Path) -> None:
        """A file that is not a zip container is rejected."""
        path = tmp_path / "fake.xlsx"
        path.write_text("Name,Amount\nAlice,1\n")

        with pytest.raises(InputError) as exc_info:
            PackageArchive(path)

        assert exc_info.value.error_code == ErrorCode.INVALID_PACKAGE

    def test_read_entry(self, reference_package: Path) -> None:
        """Entries are read as bytes; absent entries are None."""
        with PackageArchive(reference_package) as archive:
            data = archive.read_entry("xl/sharedStrings.xml")
            assert data is not None
            assert b"Col1" in data
            assert archive.read_entry("xl/styles.xml") is None
            assert archive.has_entry("xl/worksheets/sheet1.xml")
            assert not archive.has_entry("XL/WORKSHEETS/SHEET1.XML")


class TestSheetResolution:
    """Tests for listing and resolving sheets."""

    def test_sheets_in_workbook_order(self, multi_sheet_package: Path) -> None:
        """Sheets are listed with their names and entries."""
        with PackageArchive(multi_sheet_package) as archive:
            assert archive.sheets() == [
                SheetInfo("First", "1", "xl/worksheets/sheet1.xml"),
                SheetInfo("Q3 Sales", "2", "xl/worksheets/sheet2.xml"),
            ]
            assert archive.sheet_names() == ["First", "Q3 Sales"]

    @pytest.mark.parametrize(
        ("identifier", "entry"),
        [
            (None, "xl/worksheets/sheet1.xml"),
            (1, "xl/worksheets/sheet1.xml"),
            (2, "xl/worksheets/sheet2.xml"),
            ("2", "xl/worksheets/sheet2.xml"),
            ("0", "xl/worksheets/sheet1.xml"),
            ("First", "xl/worksheets/sheet1.xml"),
            ("Q3 Sales", "xl/worksheets/sheet2.xml"),
        ],
    )
    def test_resolve(
        self, multi_sheet_package: Path, identifier: str | int | None, entry: str
    ) -> None:
        """Numbers map to sheetN entries and names go through the workbook."""
        with PackageArchive(multi_sheet_package) as archive:
            assert archive.resolve_sheet(identifier) == entry

    @pytest.mark.parametrize("identifier", [3, "9", "Missing", "first"])
    def test_unknown_sheet(
        self, multi_sheet_package: Path, identifier: str | int
    ) -> None:
        """Unknown numbers and names are reported as missing sheets."""
        with PackageArchive(multi_sheet_package) as archive:
            with pytest.raises(MissingInputError) as exc_info:
                archive.resolve_sheet(identifier)

        assert exc_info.value.error_code == ErrorCode.SHEET_NOT_FOUND

    def test_package_without_workbook(self, tmp_path: Path) -> None:
        """Without a workbook document the first sheet is sheet1.xml."""
        path = build_package(
            tmp_path / "bare.xlsx",
            sheets={"ignored": worksheet_xml("A1", "")},
            include_workbook=False,
        )

        with PackageArchive(path) as archive:
            assert archive.sheet_names() == []
            assert archive.resolve_sheet() == "xl/worksheets/sheet1.xml"

    def test_absolute_and_renamed_targets(self, tmp_path: Path) -> None:
        """Relationship targets may be absolute or use any file name."""
        path = tmp_path / "renamed.xlsx"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr(
                "xl/workbook.xml",
                f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}"><sheets>'
                '<sheet name="Data" sheetId="4" r:id="rId7"/>'
                '<sheet name="Other" sheetId="5" r:id="rId8"/>'
                "</sheets></workbook>",
            )
            zf.writestr(
                "xl/_rels/workbook.xml.rels",
                f'<Relationships xmlns="{PKG_REL_NS}">'
                '<Relationship Id="rId7" Target="/xl/worksheets/data.xml"/>'
                '<Relationship Id="rId8" Target="./worksheets/../worksheets/o.xml"/>'
                "</Relationships>",
            )
            zf.writestr("xl/worksheets/data.xml", worksheet_xml("A1", ""))
            zf.writestr("xl/worksheets/o.xml", worksheet_xml("A1", ""))

        with PackageArchive(path) as archive:
            assert archive.resolve_sheet() == "xl/worksheets/data.xml"
            assert archive.resolve_sheet("Other") == "xl/worksheets/o.xml"

    def test_malformed_workbook(self, tmp_path: Path) -> None:
        """A broken workbook document is reported with its position."""
        path = tmp_path / "broken.xlsx"
        with zipfile.ZipFile(path, "w") as zf:
            zf.writestr("xl/workbook.xml", "<workbook><sheets></workbook>")
            zf.writestr("xl/worksheets/sheet1.xml", worksheet_xml("A1", ""))

        with PackageArchive(path) as archive:
            with pytest.raises(MalformedDocumentError) as exc_info:
                archive.sheet_names()

        assert exc_info.value.entry_name == "xl/workbook.xml"
        assert exc_info.value.line == 1
