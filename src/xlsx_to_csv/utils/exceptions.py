"""Centralized exception classes for xlsx-to-csv conversion.

This module provides a hierarchy of custom exceptions with error codes,
process exit code mapping, and structured error details for consistent
error handling throughout the converter.

Exception Hierarchy:
    XlsxCsvError (base)
    ├── InputError
    │   └── MissingInputError
    ├── DocumentError
    │   ├── MalformedDocumentError
    │   └── CellTooLongError
    ├── SharedStringError
    │   ├── SharedStringIndexError
    │   └── MissingSharedStringTableError
    └── OutputError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: Input package errors
    - E2xxx: Worksheet/XML document errors
    - E3xxx: Shared string table errors
    - E4xxx: Output errors
    - E9xxx: Internal/unexpected errors
    """

    # Input errors (E1xxx)
    PACKAGE_NOT_FOUND = "E1001"
    INVALID_PACKAGE = "E1002"
    SHEET_NOT_FOUND = "E1003"

    # Document errors (E2xxx)
    MALFORMED_DOCUMENT = "E2001"
    CELL_TOO_LONG = "E2002"
    MISSING_DIMENSION = "E2003"

    # Shared string errors (E3xxx)
    SHARED_STRING_INDEX_OUT_OF_RANGE = "E3001"
    SHARED_STRING_TABLE_MISSING = "E3002"

    # Output errors (E4xxx)
    OUTPUT_WRITE_FAILED = "E4001"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class ExitCodeMixin:
    """Mixin that provides a process exit status for exceptions.

    Subclasses set the `exit_code` class attribute; the CLI returns it when
    the conversion aborts.
    """

    exit_code: int = 1

    def get_exit_code(self) -> int:
        """Get the process exit status for this exception.

        Returns:
            Exit status appropriate for this error.
        """
        return self.exit_code


class XlsxCsvError(Exception, ExitCodeMixin):
    """Base exception for all conversion errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        exit_code: Process exit status used by the CLI (default 1).
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for structured logging.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Input Errors (E1xxx)
# =============================================================================


class InputError(XlsxCsvError):
    """Base class for problems with the input package."""

    exit_code: int = 2

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_PACKAGE,
        package_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with package path information.

        Args:
            message: Error message.
            error_code: Error code.
            package_path: Path to the spreadsheet package.
            details: Additional details.
        """
        details = details or {}
        if package_path:
            details["package_path"] = package_path
        super().__init__(message, error_code, details)
        self.package_path = package_path


class MissingInputError(InputError):
    """Raised when the package or the requested sheet entry is absent."""

    def __init__(
        self,
        message: str,
        package_path: str | None = None,
        entry_name: str | None = None,
        error_code: ErrorCode = ErrorCode.PACKAGE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing package or entry.

        Args:
            message: Error message.
            package_path: Path to the spreadsheet package.
            entry_name: Archive entry that could not be found, if any.
            error_code: PACKAGE_NOT_FOUND or SHEET_NOT_FOUND.
            details: Additional details.
        """
        details = details or {}
        if entry_name:
            details["entry_name"] = entry_name
        super().__init__(
            message=message,
            error_code=error_code,
            package_path=package_path,
            details=details,
        )
        self.entry_name = entry_name


# =============================================================================
# Document Errors (E2xxx)
# =============================================================================


class DocumentError(XlsxCsvError):
    """Base class for errors inside one XML document of the package."""

    exit_code: int = 3

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.MALFORMED_DOCUMENT,
        entry_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the entry being parsed.

        Args:
            message: Error message.
            error_code: Error code.
            entry_name: Archive entry of the document.
            details: Additional details.
        """
        details = details or {}
        if entry_name:
            details["entry_name"] = entry_name
        super().__init__(message, error_code, details)
        self.entry_name = entry_name


class MalformedDocumentError(DocumentError):
    """Raised when the tokenizer reports a structural XML error."""

    def __init__(
        self,
        message: str,
        entry_name: str | None = None,
        line: int | None = None,
        column: int | None = None,
        error_code: ErrorCode = ErrorCode.MALFORMED_DOCUMENT,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the error position.

        Args:
            message: Error message from the tokenizer.
            entry_name: Archive entry of the document.
            line: 1-based line of the error, when known.
            column: 0-based column of the error, when known.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column
        if entry_name and line is not None:
            message = f"{entry_name}:{line}:{column or 0}: {message}"
        super().__init__(
            message=message,
            error_code=error_code,
            entry_name=entry_name,
            details=details,
        )
        self.line = line
        self.column = column


class CellTooLongError(DocumentError):
    """Raised when a cell's text exceeds the maximum cell length."""

    def __init__(
        self,
        limit: int,
        entry_name: str | None = None,
        cell: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the exceeded limit.

        Args:
            limit: Maximum number of characters allowed in a cell.
            entry_name: Archive entry of the document.
            cell: Reference of the offending cell (e.g. "B7").
            details: Additional details.
        """
        details = details or {}
        details["max_cell_length"] = limit
        if cell:
            details["cell"] = cell
        location = f" in cell {cell}" if cell else ""
        super().__init__(
            message=f"Cell text{location} exceeds {limit} characters",
            error_code=ErrorCode.CELL_TOO_LONG,
            entry_name=entry_name,
            details=details,
        )
        self.limit = limit
        self.cell = cell


# =============================================================================
# Shared String Errors (E3xxx)
# =============================================================================


class SharedStringError(XlsxCsvError):
    """Base class for shared string table errors."""

    exit_code: int = 4


class SharedStringIndexError(SharedStringError):
    """Raised when a cell references an index outside the table."""

    def __init__(
        self,
        index: str,
        table_size: int,
        cell: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the bad index.

        Args:
            index: Raw index text found in the cell.
            table_size: Number of entries in the shared string table.
            cell: Reference of the offending cell.
            details: Additional details.
        """
        details = details or {}
        details["index"] = index
        details["table_size"] = table_size
        if cell:
            details["cell"] = cell
        super().__init__(
            message=(
                f"Shared string index {index!r} is out of range for a table "
                f"of {table_size} entries; the package is corrupt"
            ),
            error_code=ErrorCode.SHARED_STRING_INDEX_OUT_OF_RANGE,
            details=details,
        )
        self.index = index
        self.table_size = table_size


class MissingSharedStringTableError(SharedStringError):
    """Raised when a cell references shared strings but none were loaded."""

    def __init__(
        self,
        cell: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the referencing cell.

        Args:
            cell: Reference of the cell that needed the table.
            details: Additional details.
        """
        details = details or {}
        if cell:
            details["cell"] = cell
        location = f"Cell {cell}" if cell else "A cell"
        super().__init__(
            message=(
                f"{location} references the shared string table, "
                "but the package has none"
            ),
            error_code=ErrorCode.SHARED_STRING_TABLE_MISSING,
            details=details,
        )
        self.cell = cell


# =============================================================================
# Output Errors (E4xxx)
# =============================================================================


class OutputError(XlsxCsvError):
    """Raised when the CSV destination cannot be opened or written."""

    exit_code: int = 5

    def __init__(
        self,
        message: str,
        destination: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the destination.

        Args:
            message: Error message.
            destination: Output path or stream description.
            details: Additional details.
        """
        details = details or {}
        if destination:
            details["destination"] = destination
        super().__init__(
            message=message,
            error_code=ErrorCode.OUTPUT_WRITE_FAILED,
            details=details,
        )
        self.destination = destination
