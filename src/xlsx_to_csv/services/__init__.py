"""Conversion services for xlsx-to-csv."""

from xlsx_to_csv.services.archive import PackageArchive
from xlsx_to_csv.services.csv_emitter import CsvRowEmitter
from xlsx_to_csv.services.shared_strings import SharedStringLoader
from xlsx_to_csv.services.worksheet_dispatcher import WorksheetDispatcher
from xlsx_to_csv.services.xml_events import XmlEventSource

__all__ = [
    "CsvRowEmitter",
    "PackageArchive",
    "SharedStringLoader",
    "WorksheetDispatcher",
    "XmlEventSource",
]
