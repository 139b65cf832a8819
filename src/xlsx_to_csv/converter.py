"""Two-pass conversion of one worksheet to CSV.

Pass 1 loads the shared string dictionary to completion; pass 2 streams the
worksheet and resolves indices against it. Each pass owns its own parse
state, so conversions of different sheets never share mutable state.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TextIO
from uuid import uuid4

from xlsx_to_csv.config import Settings
from xlsx_to_csv.models import ConversionResult, SharedStringTable, SheetDimension
from xlsx_to_csv.services.archive import PackageArchive
from xlsx_to_csv.services.csv_emitter import CsvRowEmitter
from xlsx_to_csv.services.shared_strings import SharedStringLoader
from xlsx_to_csv.services.worksheet_dispatcher import WorksheetDispatcher
from xlsx_to_csv.services.xml_events import XmlEventSource
from xlsx_to_csv.utils.exceptions import ErrorCode, MissingInputError, XlsxCsvError
from xlsx_to_csv.utils.logging import (
    LogContext,
    ProgressTracker,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)


class SheetConverter:
    """Converts worksheets of spreadsheet packages to CSV."""

    def __init__(
        self,
        settings: Settings | None = None,
        event_source: XmlEventSource | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.event_source = event_source or XmlEventSource(self.settings.chunk_size)

    def convert(
        self,
        package_path: str | Path,
        output: TextIO,
        sheet: str | int | None = None,
    ) -> ConversionResult:
        """Write one worksheet of `package_path` to `output` as CSV.

        Args:
            package_path: Path to the .xlsx package.
            output: Text destination opened with ``newline=""``.
            sheet: None for the first sheet, a 1-based sheet number, or a
                sheet name.

        Returns:
            Summary of the conversion.

        Raises:
            XlsxCsvError: On any fatal condition. Rows already written to
                `output` are left in place.
        """
        run_id = uuid4().hex[:8]
        with LogContext(run_id=run_id), PackageArchive(package_path) as archive:
            entry = archive.resolve_sheet(sheet)
            table = self.load_shared_strings(archive)
            return self.convert_entry(archive, entry, table, output)

    def load_shared_strings(self, archive: PackageArchive) -> SharedStringTable | None:
        """Run pass 1. Returns None when the package has no dictionary."""
        entry = self.settings.shared_strings_entry
        data = archive.read_entry(entry)
        if data is None:
            logger.info("Package has no shared string table", entry=entry)
            return None

        loader = SharedStringLoader(self.settings.max_cell_length, entry_name=entry)
        with LogContext(entry=entry), timed_operation(logger, "shared_strings") as m:
            table = loader.load(self.event_source.iter_events(data, entry))
            m.bytes_parsed = len(data)
            m.strings_loaded = len(table)
        return table

    def convert_entry(
        self,
        archive: PackageArchive,
        entry: str,
        table: SharedStringTable | None,
        output: TextIO,
    ) -> ConversionResult:
        """Run pass 2 over worksheet `entry` with a finished string table."""
        data = archive.read_entry(entry)
        if data is None:
            raise MissingInputError(
                f"Worksheet entry {entry} not found in {archive.path.name}",
                package_path=str(archive.path),
                entry_name=entry,
                error_code=ErrorCode.SHEET_NOT_FOUND,
            )

        settings = self.settings
        emitter = CsvRowEmitter(
            output,
            delimiter=settings.delimiter,
            line_terminator=settings.line_terminator,
            quote_strings=settings.quote_strings,
        )
        dispatcher = WorksheetDispatcher(
            emitter,
            table=table,
            entry_name=entry,
            max_cell_length=settings.max_cell_length,
        )

        started = time.perf_counter()
        with LogContext(entry=entry):
            try:
                with timed_operation(logger, "worksheet") as metrics:
                    for event in self.event_source.iter_events(data, entry):
                        dispatcher.dispatch(event)
                        if dispatcher.progress is None and dispatcher.dimension:
                            dispatcher.progress = self._tracker(dispatcher.dimension)
                    emitter.flush()
                    metrics.bytes_parsed = len(data)
                    metrics.events_processed = dispatcher.events_processed
                    metrics.rows_written = emitter.rows_written
                    metrics.cells_written = dispatcher.cells_written
            except XlsxCsvError as exc:
                logger.log_conversion_result(
                    entry=entry,
                    success=False,
                    duration_seconds=time.perf_counter() - started,
                    rows_written=emitter.rows_written,
                    columns=emitter.width,
                    error_code=exc.error_code.value,
                )
                raise

        duration = time.perf_counter() - started
        if dispatcher.progress is not None:
            dispatcher.progress.complete()
        logger.log_conversion_result(
            entry=entry,
            success=True,
            duration_seconds=duration,
            rows_written=emitter.rows_written,
            columns=emitter.width,
        )
        return ConversionResult(
            package_path=str(archive.path),
            sheet_entry=entry,
            dimension=dispatcher.dimension,
            rows_written=emitter.rows_written,
            cells_written=dispatcher.cells_written,
            shared_strings=len(table) if table is not None else 0,
            duration_seconds=duration,
            has_shared_strings=table is not None,
        )

    def _tracker(self, dimension: SheetDimension) -> ProgressTracker:
        return ProgressTracker(
            logger,
            "Writing rows",
            total=dimension.max_row,
            log_interval=self.settings.progress_interval,
        )


def convert_sheet(
    package_path: str | Path,
    output: TextIO,
    sheet: str | int | None = None,
    settings: Settings | None = None,
) -> ConversionResult:
    """Convert one worksheet of `package_path` to CSV written to `output`."""
    return SheetConverter(settings).convert(package_path, output, sheet)
