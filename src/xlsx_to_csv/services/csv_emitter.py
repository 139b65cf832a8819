"""CSV row emitter with fixed-width rows.

Fields are written straight to the destination as the worksheet streams by;
the emitter only remembers how many fields the current row already holds.
That count is what keeps every row exactly `width` fields wide: gaps are
filled with empty fields, and values beyond the declared width are dropped.
"""

from typing import TextIO

from xlsx_to_csv.utils.exceptions import OutputError


def needs_quoting(value: str, delimiter: str = ",") -> bool:
    """Whether `value` must be quoted.

    A field is quoted when it holds an ASCII control character (including
    CR, LF and DEL), a double quote, or the delimiter.
    """
    for char in value:
        if char < " " or char == "\x7f" or char == '"' or char == delimiter:
            return True
    return False


def format_field(value: str, delimiter: str = ",", force_quote: bool = False) -> str:
    """Return `value` as a CSV field, quoting and doubling quotes if needed."""
    if force_quote or needs_quoting(value, delimiter):
        return '"' + value.replace('"', '""') + '"'
    return value


class CsvRowEmitter:
    """Writes fixed-width CSV rows to a text stream.

    The destination must be opened with ``newline=""`` so the line
    terminator is written untranslated.
    """

    def __init__(
        self,
        output: TextIO,
        width: int = 0,
        delimiter: str = ",",
        line_terminator: str = "\r\n",
        quote_strings: bool = True,
    ) -> None:
        self.output = output
        self.width = width
        self.delimiter = delimiter
        self.line_terminator = line_terminator
        self.quote_strings = quote_strings
        self.rows_written = 0
        self.fields_in_row = 0
        self.dropped_in_row = 0

    def set_width(self, width: int) -> None:
        """Fix the number of fields per row (the sheet's last column)."""
        self.width = max(0, width)

    def write_value(self, value: str, is_text: bool = False) -> bool:
        """Write one cell value as the next field of the current row.

        Returns:
            False if the row is already `width` fields wide and the value
            was dropped.
        """
        if self.fields_in_row >= self.width:
            self.dropped_in_row += 1
            return False
        force = is_text and self.quote_strings
        self._write_field(format_field(value, self.delimiter, force_quote=force))
        return True

    def write_empty(self, count: int = 1) -> None:
        """Write up to `count` empty fields, never exceeding the width."""
        count = min(count, self.width - self.fields_in_row)
        for _ in range(count):
            self._write_field("")

    def end_row(self) -> int:
        """Pad the row to full width and terminate it.

        Returns:
            Number of values dropped from this row for lying beyond the width.
        """
        self.write_empty(self.width - self.fields_in_row)
        self._write(self.line_terminator)
        self.rows_written += 1
        dropped = self.dropped_in_row
        self.fields_in_row = 0
        self.dropped_in_row = 0
        return dropped

    def flush(self) -> None:
        try:
            self.output.flush()
        except OSError as exc:
            raise OutputError(
                f"Failed to flush CSV output: {exc}",
                destination=_describe(self.output),
            ) from exc

    def _write_field(self, text: str) -> None:
        if self.fields_in_row:
            self._write(self.delimiter + text)
        else:
            self._write(text)
        self.fields_in_row += 1

    def _write(self, text: str) -> None:
        try:
            self.output.write(text)
        except OSError as exc:
            raise OutputError(
                f"Failed to write CSV output: {exc}",
                destination=_describe(self.output),
            ) from exc


def _describe(stream: TextIO) -> str:
    return str(getattr(stream, "name", type(stream).__name__))
