"""Command-line entry point.

Usage:
    xlsx-to-csv book.xlsx > sheet1.csv
    xlsx-to-csv book.xlsx --sheet 2 --output sheet2.csv
    xlsx-to-csv book.xlsx --sheet "Q3 Sales" --delimiter ";"
    xlsx-to-csv book.xlsx --list-sheets

CSV goes to stdout unless --output is given; diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import io
import sys
from collections.abc import Sequence
from typing import TextIO

from pydantic import ValidationError

from xlsx_to_csv import __version__
from xlsx_to_csv.config import Settings, validate_settings_on_startup
from xlsx_to_csv.converter import SheetConverter
from xlsx_to_csv.services.archive import PackageArchive
from xlsx_to_csv.utils.exceptions import ErrorCode, OutputError, XlsxCsvError
from xlsx_to_csv.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="xlsx-to-csv",
        description="Convert one worksheet of an .xlsx file to CSV.",
    )
    parser.add_argument("input", help="Path to the .xlsx file")
    parser.add_argument(
        "-s",
        "--sheet",
        default=None,
        help="Sheet number (1-based) or sheet name (default: first sheet)",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Path to the output CSV (default: stdout)",
    )
    parser.add_argument(
        "--delimiter",
        default=None,
        help="Field separator (default: ,)",
    )
    parser.add_argument(
        "--list-sheets",
        action="store_true",
        help="Print the sheet names in workbook order and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Diagnostic verbosity on stderr (default: WARNING)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the converter and return the process exit status."""
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.delimiter is not None:
        overrides["delimiter"] = args.delimiter
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        print(f"[{ErrorCode.CONFIGURATION_ERROR.value}] {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level_int)
    validate_settings_on_startup(settings)

    try:
        if args.list_sheets:
            return _list_sheets(args.input)
        return _convert(args.input, args.sheet, args.output, settings)
    except XlsxCsvError as exc:
        if settings.debug:
            logger.exception("Conversion aborted", error_code=exc.error_code.value)
        print(str(exc), file=sys.stderr)
        return exc.get_exit_code()


def _list_sheets(path: str) -> int:
    with PackageArchive(path) as archive:
        for name in archive.sheet_names():
            print(name)
    return 0


def _convert(
    path: str,
    sheet: str | None,
    output_path: str | None,
    settings: Settings,
) -> int:
    converter = SheetConverter(settings)
    if output_path is None:
        stream = _stdout()
        try:
            result = converter.convert(path, stream, sheet)
        finally:
            stream.flush()
            if stream is not sys.stdout:
                stream.detach()
    else:
        try:
            output = open(output_path, "w", encoding="utf-8", newline="")
        except OSError as exc:
            raise OutputError(
                f"Cannot open output file: {exc}", destination=output_path
            ) from exc
        with output:
            result = converter.convert(path, output, sheet)

    logger.info(
        "Wrote CSV",
        entry=result.sheet_entry,
        rows=result.rows_written,
        destination=output_path or "<stdout>",
    )
    return 0


def _stdout() -> TextIO:
    # Line terminators must reach stdout untranslated.
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        return sys.stdout
    sys.stdout.flush()
    return io.TextIOWrapper(buffer, encoding="utf-8", newline="", write_through=True)


if __name__ == "__main__":
    sys.exit(main())
