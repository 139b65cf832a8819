"""Conversion between spreadsheet cell references and integer coordinates.

Columns are written in bijective base 26: A..Z are 1..26, AA follows Z, and
so on up to XFD (16384), the widest sheet the format allows.
"""

from xlsx_to_csv.models import CellReference

# Widest column the format allows (XFD).
MAX_COLUMN = 16384


def decode_cell_ref(ref: str) -> CellReference:
    """Decode a reference such as ``"C3"`` into ``CellReference(3, 3)``.

    Leading letters (case-insensitive) form the column. The rest, parsed as a
    decimal integer, is the row; it is 0 when absent or not a number. A
    reference without leading letters yields column 0.
    """
    col = 0
    i = 0
    for char in ref:
        if not ("A" <= char <= "Z" or "a" <= char <= "z"):
            break
        col = col * 26 + (ord(char.upper()) - ord("A") + 1)
        i += 1
    return CellReference(col=col, row=_parse_row(ref[i:]))


def decode_range_ref(ref: str) -> CellReference:
    """Decode the upper-right bound of a range such as ``"A1:C3"``.

    Only the extent matters for the grid, so the part before the colon is
    ignored. A single-cell range (``"A1"``) decodes like a cell reference.
    """
    _, _, upper = ref.rpartition(":")
    return decode_cell_ref(upper)


def column_letters(col: int) -> str:
    """Return the letters of a 1-based column index (``28 -> "AB"``)."""
    if col < 1:
        raise ValueError(f"Column index must be at least 1, got {col}")
    letters = []
    while col:
        col, remainder = divmod(col - 1, 26)
        letters.append(chr(ord("A") + remainder))
    return "".join(reversed(letters))


def format_cell_ref(ref: CellReference) -> str:
    """Render a CellReference back to letter+digit form for messages."""
    if ref.col < 1:
        return str(ref.row)
    return f"{column_letters(ref.col)}{ref.row or ''}"


def _parse_row(text: str) -> int:
    # Leading ASCII digits only; anything else yields 0.
    digits = []
    for char in text.strip():
        if not "0" <= char <= "9":
            break
        digits.append(char)
    if not digits:
        return 0
    return int("".join(digits))
