"""Access to the entries of a spreadsheet package.

An ``.xlsx`` file is a zip container of XML documents::

    xl/workbook.xml               sheet names and relationship ids
    xl/_rels/workbook.xml.rels    relationship id -> worksheet entry
    xl/sharedStrings.xml          shared string dictionary
    xl/worksheets/sheet1.xml      cell data of one worksheet

Entry lookup is case-sensitive, as zip names are.
"""

from __future__ import annotations

import posixpath
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from xlsx_to_csv.utils.exceptions import (
    ErrorCode,
    InputError,
    MalformedDocumentError,
    MissingInputError,
)
from xlsx_to_csv.utils.logging import get_logger

logger = get_logger(__name__)

WORKBOOK_ENTRY = "xl/workbook.xml"
WORKBOOK_RELS_ENTRY = "xl/_rels/workbook.xml.rels"
WORKSHEET_ENTRY_TEMPLATE = "xl/worksheets/sheet{number}.xml"


@dataclass(frozen=True)
class SheetInfo:
    """A worksheet listed in the workbook."""

    name: str
    sheet_id: str | None
    entry: str | None


class PackageArchive:
    """Read-only view of a spreadsheet package.

    Usage:
        with PackageArchive(path) as archive:
            data = archive.read_entry("xl/sharedStrings.xml")
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if not self.path.is_file():
            raise MissingInputError(
                f"Spreadsheet package not found: {self.path}",
                package_path=str(self.path),
            )
        try:
            self._zip = zipfile.ZipFile(self.path)
        except zipfile.BadZipFile as exc:
            raise InputError(
                f"Not a spreadsheet package (invalid zip container): {self.path}",
                error_code=ErrorCode.INVALID_PACKAGE,
                package_path=str(self.path),
            ) from exc
        self._names = set(self._zip.namelist())

    def __enter__(self) -> PackageArchive:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._zip.close()

    def has_entry(self, name: str) -> bool:
        return name in self._names

    def read_entry(self, name: str) -> bytes | None:
        """Return the decompressed bytes of `name`, or None if absent."""
        if name not in self._names:
            return None
        try:
            data = self._zip.read(name)
        except (zipfile.BadZipFile, OSError) as exc:
            raise InputError(
                f"Cannot decompress entry {name}: {exc}",
                error_code=ErrorCode.INVALID_PACKAGE,
                package_path=str(self.path),
                details={"entry_name": name},
            ) from exc
        logger.debug("Read package entry", entry=name, size=len(data))
        return data

    # ------------------------------------------------------------------ #
    # Sheets
    # ------------------------------------------------------------------ #

    def sheets(self) -> list[SheetInfo]:
        """List the worksheets in workbook order.

        Returns an empty list when the package has no workbook document.
        """
        workbook = self.read_entry(WORKBOOK_ENTRY)
        if workbook is None:
            return []
        targets = self._relationship_targets()

        sheets = []
        for element in _parse(workbook, WORKBOOK_ENTRY).iter():
            if _local_name(element.tag) != "sheet":
                continue
            rel_id = _attribute(element, "id")
            sheets.append(
                SheetInfo(
                    name=element.get("name", ""),
                    sheet_id=element.get("sheetId"),
                    entry=targets.get(rel_id) if rel_id else None,
                )
            )
        return sheets

    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets()]

    def resolve_sheet(self, identifier: str | int | None = None) -> str:
        """Map a sheet identifier to the entry holding its worksheet.

        Args:
            identifier: None for the first sheet, a 1-based number
                (``xl/worksheets/sheet{n}.xml``), or a sheet name.

        Raises:
            MissingInputError: If the sheet does not exist in the package.
        """
        if identifier is None:
            entry = self._first_sheet_entry()
        elif isinstance(identifier, int) or _is_number(identifier):
            number = int(identifier)
            entry = WORKSHEET_ENTRY_TEMPLATE.format(number=number if number else 1)
        else:
            entry = self._entry_for_name(identifier)

        if entry is None or not self.has_entry(entry):
            raise MissingInputError(
                f"Sheet {identifier if identifier is not None else 1} "
                f"not found in {self.path.name}",
                package_path=str(self.path),
                entry_name=entry,
                error_code=ErrorCode.SHEET_NOT_FOUND,
            )
        logger.debug("Resolved sheet", identifier=identifier, entry=entry)
        return entry

    def _first_sheet_entry(self) -> str:
        for sheet in self.sheets():
            if sheet.entry:
                return sheet.entry
        return WORKSHEET_ENTRY_TEMPLATE.format(number=1)

    def _entry_for_name(self, name: str) -> str | None:
        for sheet in self.sheets():
            if sheet.name == name:
                return sheet.entry
        return None

    def _relationship_targets(self) -> dict[str, str]:
        rels = self.read_entry(WORKBOOK_RELS_ENTRY)
        if rels is None:
            return {}
        targets = {}
        for element in _parse(rels, WORKBOOK_RELS_ENTRY).iter():
            if _local_name(element.tag) != "Relationship":
                continue
            rel_id = element.get("Id")
            target = element.get("Target")
            if rel_id and target:
                targets[rel_id] = _resolve_target(target)
        return targets


def _parse(data: bytes, entry_name: str) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        line, column = exc.position
        raise MalformedDocumentError(
            str(exc), entry_name=entry_name, line=line, column=column
        ) from exc


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _attribute(element: ET.Element, local_name: str) -> str | None:
    # Relationship ids live in a namespace whose URI differs between
    # transitional and strict documents; match on the local name only.
    for key, value in element.attrib.items():
        if key.startswith("{") and _local_name(key) == local_name:
            return value
    return None


def _resolve_target(target: str) -> str:
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join("xl", target))


def _is_number(identifier: str) -> bool:
    text = identifier.strip()
    return text.isascii() and text.isdigit()
