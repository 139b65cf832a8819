"""Tests for the fixed-width CSV row emitter."""

import csv
import io
from unittest.mock import MagicMock

import pytest

from xlsx_to_csv.services.csv_emitter import CsvRowEmitter, format_field, needs_quoting
from xlsx_to_csv.utils.exceptions import ErrorCode, OutputError


class TestQuoting:
    """Tests for needs_quoting and format_field."""

    @pytest.mark.parametrize(
        "value",
        ["a,b", 'say "hi"', "line\nbreak", "cr\rhere", "tab\tbed", "del\x7f"],
    )
    def test_special_characters_need_quoting(self, value: str) -> None:
        """Control characters, quotes and the delimiter force quoting."""
        assert needs_quoting(value)

    @pytest.mark.parametrize("value", ["", "plain", "3.14", "ümlaut é", "semi;colon"])
    def test_plain_values_are_verbatim(self, value: str) -> None:
        """Values without special characters are written unchanged."""
        assert format_field(value) == value

    def test_custom_delimiter(self) -> None:
        """The active delimiter is what triggers quoting."""
        assert needs_quoting("semi;colon", delimiter=";")
        assert not needs_quoting("a,b", delimiter=";")

    def test_quotes_are_doubled(self) -> None:
        """Embedded quotes are doubled inside the enclosing quotes."""
        assert format_field('He said "hi", bye') == '"He said ""hi"", bye"'

    def test_force_quote(self) -> None:
        """force_quote encloses values that need no quoting."""
        assert format_field("Col1", force_quote=True) == '"Col1"'

    def test_round_trip_through_csv_reader(self) -> None:
        """A standard CSV reader recovers the original literal."""
        literal = 'He said "hi", bye\r\nand left'
        line = format_field(literal) + "," + format_field("x") + "\r\n"

        rows = list(csv.reader(io.StringIO(line, newline="")))

        assert rows == [[literal, "x"]]


class TestCsvRowEmitter:
    """Tests for CsvRowEmitter."""

    def test_pads_short_rows_to_width(self) -> None:
        """A row with fewer values is padded with empty fields."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=4)

        emitter.write_value("1")
        emitter.end_row()

        assert out.getvalue() == "1,,,\r\n"

    def test_empty_row(self) -> None:
        """An empty row still has width-1 separators."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=3)

        emitter.end_row()

        assert out.getvalue() == ",,\r\n"
        assert emitter.rows_written == 1

    def test_drops_values_beyond_width(self) -> None:
        """Values past the last column are dropped and counted."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=2)

        assert emitter.write_value("a")
        assert emitter.write_value("b")
        assert not emitter.write_value("c")
        dropped = emitter.end_row()

        assert out.getvalue() == "a,b\r\n"
        assert dropped == 1

    def test_write_empty_is_clamped(self) -> None:
        """Gap filling never exceeds the width."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=3)

        emitter.write_empty(10)
        emitter.end_row()

        assert out.getvalue() == ",,\r\n"

    def test_text_cells_quoted_when_quote_strings(self) -> None:
        """Text cells are always quoted; numbers are not."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=2)

        emitter.write_value("a", is_text=True)
        emitter.write_value("42")
        emitter.end_row()

        assert out.getvalue() == '"a",42\r\n'

    def test_minimal_quoting(self) -> None:
        """With quote_strings off, only special text is quoted."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=2, quote_strings=False)

        emitter.write_value("a", is_text=True)
        emitter.write_value("b,c", is_text=True)
        emitter.end_row()

        assert out.getvalue() == 'a,"b,c"\r\n'

    def test_delimiter_and_terminator(self) -> None:
        """Delimiter and line terminator are configurable."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=2, delimiter=";", line_terminator="\n")

        emitter.write_value("1")
        emitter.write_value("2")
        emitter.end_row()

        assert out.getvalue() == "1;2\n"

    def test_counters_reset_per_row(self) -> None:
        """Each row starts with no fields."""
        out = io.StringIO()
        emitter = CsvRowEmitter(out, width=2)

        emitter.write_value("a")
        emitter.end_row()
        emitter.write_empty(1)
        emitter.write_value("b")
        emitter.end_row()

        assert out.getvalue() == "a,\r\n,b\r\n"
        assert emitter.rows_written == 2

    def test_write_failure_raises_output_error(self) -> None:
        """OSError from the destination becomes OutputError."""
        stream = MagicMock()
        stream.write.side_effect = OSError("disk full")
        stream.name = "out.csv"
        emitter = CsvRowEmitter(stream, width=1)

        with pytest.raises(OutputError) as exc_info:
            emitter.write_value("x")

        assert exc_info.value.error_code == ErrorCode.OUTPUT_WRITE_FAILED
        assert exc_info.value.destination == "out.csv"
        assert exc_info.value.get_exit_code() == 5
