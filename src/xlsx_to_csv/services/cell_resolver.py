"""Resolution of captured cell text into display values."""

from enum import Enum

from xlsx_to_csv.models import SharedStringTable
from xlsx_to_csv.utils.exceptions import (
    MissingSharedStringTableError,
    SharedStringIndexError,
)


class CellType(str, Enum):
    """Values of the cell type attribute (``<c t="...">``)."""

    NUMBER = "n"
    SHARED_STRING = "s"
    INLINE_STRING = "inlineStr"
    FORMULA_STRING = "str"
    BOOLEAN = "b"
    ERROR = "e"
    DATE = "d"

    @classmethod
    def from_attribute(cls, value: str | None) -> "CellType":
        """Map a raw attribute to a CellType; absent or unknown means number."""
        if value is None:
            return cls.NUMBER
        try:
            return cls(value)
        except ValueError:
            return cls.NUMBER

    @property
    def is_text(self) -> bool:
        """Whether values of this type are text rather than stored numbers."""
        return self in _TEXT_TYPES


_TEXT_TYPES = frozenset(
    {CellType.SHARED_STRING, CellType.INLINE_STRING, CellType.FORMULA_STRING}
)


def resolve_cell_value(
    raw: str,
    lookup_shared: bool,
    table: SharedStringTable | None,
    cell: str | None = None,
) -> str:
    """Turn captured cell text into the value written to CSV.

    Shared-string cells hold a 0-based index into `table`. Every other value
    is returned exactly as stored; serial dates, fractional times and
    booleans are not reformatted.

    Args:
        raw: Text captured from the cell's value element.
        lookup_shared: Whether `raw` is a shared string index.
        table: Shared string table from the first pass, or None if the
            package has no dictionary.
        cell: Cell reference used in error messages.

    Raises:
        MissingSharedStringTableError: If a lookup is needed but `table` is None.
        SharedStringIndexError: If the index is not a non-negative integer
            below ``len(table)``.
    """
    if not lookup_shared:
        return raw

    if table is None:
        raise MissingSharedStringTableError(cell=cell)

    index_text = raw.strip()
    if not index_text.isascii() or not index_text.isdigit():
        raise SharedStringIndexError(raw, len(table), cell=cell)

    index = int(index_text)
    if index >= len(table):
        raise SharedStringIndexError(raw, len(table), cell=cell)
    return table[index]
