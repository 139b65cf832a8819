"""Dataclasses shared by the conversion passes."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from xlsx_to_csv.config import MAX_CELL_LENGTH
from xlsx_to_csv.utils.exceptions import CellTooLongError

# =============================================================================
# XML events
# =============================================================================


@dataclass(frozen=True, slots=True)
class StartElement:
    """An element was opened. Names are namespace-local."""

    name: str
    attributes: tuple[tuple[str, str], ...] = ()

    def get(self, attribute: str, default: str | None = None) -> str | None:
        """Return the value of `attribute`, or `default` when absent."""
        for key, value in self.attributes:
            if key == attribute:
                return value
        return default


@dataclass(frozen=True, slots=True)
class EndElement:
    """An element was closed."""

    name: str


@dataclass(frozen=True, slots=True)
class Characters:
    """A fragment of character data; one text node may arrive in pieces."""

    text: str


XmlEvent = StartElement | EndElement | Characters


# =============================================================================
# Spreadsheet values
# =============================================================================


@dataclass(frozen=True, slots=True)
class CellReference:
    """A 1-indexed (col, row) coordinate such as C3 -> (3, 3)."""

    col: int
    row: int


@dataclass(frozen=True, slots=True)
class SheetDimension:
    """Declared used-range extent of a worksheet."""

    max_col: int
    max_row: int

    @property
    def width(self) -> int:
        """Number of fields in every emitted row."""
        return self.max_col


@dataclass(frozen=True)
class SharedStringTable:
    """Ordered, immutable pool of strings referenced by index from cells."""

    strings: tuple[str, ...] = ()

    @classmethod
    def from_iterable(cls, strings: Iterable[str]) -> SharedStringTable:
        return cls(tuple(strings))

    def __len__(self) -> int:
        return len(self.strings)

    def __getitem__(self, index: int) -> str:
        return self.strings[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self.strings)


# =============================================================================
# Parse state
# =============================================================================


class TextAccumulator:
    """Growable text buffer bounded by a maximum number of characters.

    Fragments are kept in a list that is cleared, not reallocated, between
    cells.
    """

    def __init__(self, limit: int = MAX_CELL_LENGTH) -> None:
        self._limit = limit
        self._parts: list[str] = []
        self._length = 0

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return self._length

    def append(self, text: str) -> None:
        """Append a fragment.

        Raises:
            CellTooLongError: If the accumulated text would exceed the limit.
        """
        self._length += len(text)
        if self._length > self._limit:
            raise CellTooLongError(self._limit)
        self._parts.append(text)

    def getvalue(self) -> str:
        return "".join(self._parts)

    def clear(self) -> None:
        self._parts.clear()
        self._length = 0


@dataclass
class ParseState:
    """Mutable scratch state owned by exactly one pass.

    Attributes:
        depth: Number of currently open ancestor elements.
        current_col: Column of the cell being parsed.
        current_row: Row of the cell being parsed.
        expected_col: Next column to be written in the current row.
        lookup_shared: Whether the current cell's value is a shared index.
        is_text: Whether the current cell holds text rather than a number.
        value_written: Whether the current cell already produced a field.
        capturing: Whether character data is being accumulated.
        in_phonetic: Whether a phonetic run (rPh) is open.
        text: Accumulator for the value being captured.
    """

    depth: int = 0
    current_col: int = 0
    current_row: int = 0
    expected_col: int = 1
    lookup_shared: bool = False
    is_text: bool = False
    value_written: bool = False
    capturing: bool = False
    in_phonetic: bool = False
    text: TextAccumulator = field(default_factory=TextAccumulator)

    @classmethod
    def for_pass(cls, max_cell_length: int = MAX_CELL_LENGTH) -> ParseState:
        """Create fresh state for one pass."""
        return cls(text=TextAccumulator(max_cell_length))

    def start_capture(self) -> None:
        self.capturing = True
        self.text.clear()

    def stop_capture(self) -> str:
        self.capturing = False
        return self.text.getvalue()


@dataclass
class ConversionResult:
    """Summary of one worksheet conversion."""

    package_path: str
    sheet_entry: str
    dimension: SheetDimension | None
    rows_written: int = 0
    cells_written: int = 0
    shared_strings: int = 0
    duration_seconds: float = 0.0
    has_shared_strings: bool = False
