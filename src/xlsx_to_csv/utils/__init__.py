"""Utilities package for xlsx-to-csv.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from xlsx_to_csv.utils.exceptions import (
    CellTooLongError,
    DocumentError,
    ErrorCode,
    ExitCodeMixin,
    InputError,
    MalformedDocumentError,
    MissingInputError,
    MissingSharedStringTableError,
    OutputError,
    SharedStringError,
    SharedStringIndexError,
    XlsxCsvError,
)
from xlsx_to_csv.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Exceptions
    "CellTooLongError",
    "DocumentError",
    "ErrorCode",
    "ExitCodeMixin",
    "InputError",
    "MalformedDocumentError",
    "MissingInputError",
    "MissingSharedStringTableError",
    "OutputError",
    "SharedStringError",
    "SharedStringIndexError",
    "XlsxCsvError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
