"""Configuration management for xlsx-to-csv.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
XLSX2CSV_ prefix, or via a .env file in the working directory. Command-line
flags override the values loaded here.

Environment Variables:
    XLSX2CSV_DELIMITER: Field separator (default: ,)
    XLSX2CSV_LINE_TERMINATOR: Line terminator (default: CRLF)
    XLSX2CSV_QUOTE_STRINGS: Always quote text cells (default: true)
    XLSX2CSV_CHUNK_SIZE: Bytes fed to the XML tokenizer per step (default: 65536)
    XLSX2CSV_MAX_CELL_LENGTH: Maximum characters per cell (default: 32767)
    XLSX2CSV_SHARED_STRINGS_ENTRY: Shared string entry name
        (default: xl/sharedStrings.xml)
    XLSX2CSV_PROGRESS_INTERVAL: Rows between progress log lines (default: 10000)
    XLSX2CSV_LOG_LEVEL: Logging level (default: WARNING)
    XLSX2CSV_DEBUG: Enable debug mode (default: false)
"""

import logging
from typing import Any

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Total number of characters that a spreadsheet cell can contain.
MAX_CELL_LENGTH = 32767


class Settings(BaseSettings):
    """Converter settings loaded from environment variables.

    Example .env file:
        XLSX2CSV_DELIMITER=;
        XLSX2CSV_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="XLSX2CSV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # CSV Output Settings
    # =========================================================================

    delimiter: str = ","
    """Field separator written between cells."""

    line_terminator: str = "\r\n"
    """Terminator written after every row."""

    quote_strings: bool = True
    """Quote every text cell, not only those containing special characters."""

    # =========================================================================
    # Parsing Settings
    # =========================================================================

    chunk_size: int = 65536
    """Number of bytes handed to the XML tokenizer per feed."""

    max_cell_length: int = MAX_CELL_LENGTH
    """Maximum number of characters accepted in a single cell."""

    shared_strings_entry: str = "xl/sharedStrings.xml"
    """Archive entry holding the shared string dictionary."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    progress_interval: int = 10000
    """Number of rows between progress log lines."""

    log_level: str = "WARNING"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with tracebacks on fatal errors."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Validate the delimiter is one character that can separate fields."""
        if len(v) != 1:
            raise ValueError(f"delimiter must be a single character, got {v!r}")
        if v in {'"', "\r", "\n"}:
            raise ValueError(f"delimiter cannot be {v!r}")
        return v

    @field_validator("line_terminator")
    @classmethod
    def validate_line_terminator(cls, v: str) -> str:
        """Validate the line terminator is a newline sequence."""
        if v not in {"\r\n", "\n"}:
            raise ValueError("line_terminator must be CRLF or LF")
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Validate chunk size is positive and reasonable."""
        if not 1024 <= v <= 64 * 1024 * 1024:
            raise ValueError(
                f"chunk_size must be between 1024 and {64 * 1024 * 1024}, got {v}"
            )
        return v

    @field_validator("max_cell_length")
    @classmethod
    def validate_max_cell_length(cls, v: int) -> int:
        """Validate the cell limit does not exceed the format's maximum."""
        if not 1 <= v <= MAX_CELL_LENGTH:
            raise ValueError(
                f"max_cell_length must be between 1 and {MAX_CELL_LENGTH}, got {v}"
            )
        return v

    @field_validator("progress_interval")
    @classmethod
    def validate_progress_interval(cls, v: int) -> int:
        """Validate progress interval is positive."""
        if v < 1:
            raise ValueError(f"progress_interval must be at least 1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_delimiter_vs_terminator(self) -> "Settings":
        """Validate the delimiter does not occur in the line terminator."""
        if self.delimiter in self.line_terminator:
            raise ValueError("delimiter cannot be part of line_terminator")
        return self

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging.

        Returns:
            Dictionary representation of all settings.
        """
        return {
            "delimiter": self.delimiter,
            "line_terminator": repr(self.line_terminator),
            "quote_strings": self.quote_strings,
            "chunk_size": self.chunk_size,
            "max_cell_length": self.max_cell_length,
            "shared_strings_entry": self.shared_strings_entry,
            "progress_interval": self.progress_interval,
            "log_level": self.log_level,
            "debug": self.debug,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Log warnings for settings that produce non-standard CSV.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.delimiter != ",":
        logger.warning(
            f"Using non-standard delimiter {s.delimiter!r}; "
            "consumers expecting RFC 4180 CSV may misread the output."
        )

    if s.line_terminator != "\r\n":
        logger.warning("Rows are terminated with LF instead of CRLF.")

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"chunk_size={s.chunk_size}, quote_strings={s.quote_strings}"
    )
