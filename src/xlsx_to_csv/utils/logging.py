"""Structured logging utilities for xlsx-to-csv.

This module provides:
- Run and entry tracking using contextvars for correlation across passes
- Structured logging with consistent format and metadata
- Performance metrics logging helpers
- Progress tracking for long worksheets

Usage:
    from xlsx_to_csv.utils.logging import (
        get_logger,
        set_run_id,
        LogContext,
    )

    logger = get_logger(__name__)

    # Set run ID for correlation
    set_run_id("abc-123")

    # Log with context
    with LogContext(entry="xl/worksheets/sheet1.xml", pass_name="worksheet"):
        logger.info("Converting sheet")
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Context variables for run tracking
_run_id_var: ContextVar[str | None] = ContextVar("run_id", default=None)
_entry_var: ContextVar[str | None] = ContextVar("entry", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_run_id() -> str | None:
    """Get the current conversion run ID from context.

    Returns:
        The current run ID or None if not set.
    """
    return _run_id_var.get()


def set_run_id(run_id: str | None) -> None:
    """Set the conversion run ID in context.

    Args:
        run_id: The run ID to set, or None to clear.
    """
    _run_id_var.set(run_id)


def get_entry() -> str | None:
    """Get the archive entry currently being parsed.

    Returns:
        The entry name or None if not set.
    """
    return _entry_var.get()


def set_entry(entry: str | None) -> None:
    """Set the archive entry currently being parsed.

    Args:
        entry: The entry name, or None to clear.
    """
    _entry_var.set(entry)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars.

    Returns:
        Dictionary of extra context values.
    """
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars.

    Args:
        context: Dictionary of extra context values.
    """
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _run_id_var.set(None)
    _entry_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for performance metrics of one conversion step.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        bytes_parsed: Size of the XML document fed to the tokenizer.
        events_processed: Number of tokenizer events dispatched.
        rows_written: Number of CSV lines written.
        cells_written: Number of source cells turned into fields.
        strings_loaded: Number of shared strings loaded.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    bytes_parsed: int = 0
    events_processed: int = 0
    rows_written: int = 0
    cells_written: int = 0
    strings_loaded: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging.

        Returns:
            Dictionary with all non-zero metrics.
        """
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.bytes_parsed > 0:
            result["bytes_parsed"] = self.bytes_parsed
        if self.events_processed > 0:
            result["events_processed"] = self.events_processed
        if self.rows_written > 0:
            result["rows_written"] = self.rows_written
        if self.cells_written > 0:
            result["cells_written"] = self.cells_written
        if self.strings_loaded > 0:
            result["strings_loaded"] = self.strings_loaded
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that includes context variables.

    Adds run_id and entry to log records when available, creating a
    consistent structured format for all log messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        run_id = get_run_id()
        entry = get_entry()

        prefix_parts = []
        if run_id:
            prefix_parts.append(f"run_id={run_id}")
        if entry:
            prefix_parts.append(f"entry={entry}")

        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Logger wrapper with structured key-value messages.

    Wraps a standard Python logger with additional methods for:
    - Logging with automatic key=value suffixes
    - Performance metrics logging
    - Progress tracking
    """

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(
        self,
        message: str,
        **kwargs: Any,
    ) -> str:
        """Build a message with structured key-value pairs.

        Args:
            message: Base message.
            **kwargs: Additional key-value pairs to include.

        Returns:
            Formatted message string.
        """
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(
            f"Performance: {metrics.operation}",
            **metrics.to_dict(),
        )

    def log_progress(
        self,
        stage: str,
        current: int,
        total: int,
        details: str | None = None,
    ) -> None:
        """Log progress for long-running operations.

        Args:
            stage: Current processing stage.
            current: Current progress count.
            total: Total items to process.
            details: Optional additional details.
        """
        percentage = (current / total * 100) if total > 0 else 0
        kwargs: dict[str, Any] = {
            "current": current,
            "total": total,
            "percentage": f"{percentage:.1f}%",
        }
        if details:
            kwargs["details"] = details
        self.info(f"Progress: {stage}", **kwargs)

    def log_conversion_result(
        self,
        entry: str,
        success: bool,
        duration_seconds: float,
        rows_written: int,
        columns: int,
        error_code: str | None = None,
    ) -> None:
        """Log the outcome of a sheet conversion.

        Args:
            entry: Worksheet entry that was converted.
            success: Whether the conversion completed.
            duration_seconds: Total processing time.
            rows_written: CSV lines written before completion or abort.
            columns: Grid width of the sheet.
            error_code: Error code when the conversion aborted.
        """
        kwargs: dict[str, Any] = {
            "entry": entry,
            "success": success,
            "duration_seconds": f"{duration_seconds:.3f}",
            "rows_written": rows_written,
            "columns": columns,
        }
        if error_code:
            kwargs["error_code"] = error_code

        level = logging.INFO if success else logging.ERROR
        self._logger.log(level, self._build_message("Conversion finished", **kwargs))


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(entry="xl/sharedStrings.xml", pass_name="strings"):
            logger.info("Loading...")  # Will include entry and pass_name
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_entry: str | None = None
        self._old_run_id: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_entry = get_entry()
        self._old_run_id = get_run_id()

        new_context = dict(self._new_context)
        entry = new_context.pop("entry", None)
        run_id = new_context.pop("run_id", None)

        if entry is not None:
            set_entry(entry)
        if run_id is not None:
            set_run_id(run_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_entry(self._old_entry)
        set_run_id(self._old_run_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "shared_strings") as metrics:
            metrics.strings_loaded = len(table)

        # Logs: "Performance: shared_strings | duration_seconds=..."

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure logging for the application.

    Log output goes to stderr so it never mixes with CSV written to stdout.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Loaded shared strings", count=42)
    """
    return StructuredLogger(name)


class ProgressTracker:
    """Helper for tracking and logging progress of multi-step operations.

    Usage:
        tracker = ProgressTracker(logger, "Writing rows", total=max_row)
        for row in rows:
            write(row)
            tracker.update()
        tracker.complete()
    """

    def __init__(
        self,
        logger: StructuredLogger,
        stage: str,
        total: int,
        log_interval: int = 1,
    ) -> None:
        """Initialize the progress tracker.

        Args:
            logger: Logger to use.
            stage: Description of the stage being tracked.
            total: Total number of items (may be an estimate).
            log_interval: Log every N updates (1 = every update).
        """
        self._logger = logger
        self._stage = stage
        self._total = total
        self._current = 0
        self._log_interval = max(1, log_interval)
        self._start_time = time.time()

    @property
    def current(self) -> int:
        """Number of items completed so far."""
        return self._current

    def update(
        self,
        increment: int = 1,
        details: str | None = None,
    ) -> None:
        """Update progress.

        Args:
            increment: Number of items completed.
            details: Optional details about current item.
        """
        self._current += increment
        if self._current % self._log_interval == 0 or self._current == self._total:
            self._logger.log_progress(
                self._stage,
                self._current,
                self._total,
                details,
            )

    def complete(self) -> float:
        """Mark progress as complete.

        Returns:
            Total duration in seconds.
        """
        duration = time.time() - self._start_time
        self._logger.info(
            f"Completed: {self._stage}",
            total_items=self._current,
            duration_seconds=f"{duration:.2f}",
        )
        return duration
