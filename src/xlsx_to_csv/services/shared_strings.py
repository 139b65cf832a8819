"""Shared string dictionary loader (first conversion pass).

Spreadsheet producers store each distinct text value once, in
``xl/sharedStrings.xml``, and cells refer to it by 0-based index::

    <sst uniqueCount="2">
      <si><t>Col1</t></si>
      <si><r><t>Hello</t></r><r><t xml:space="preserve"> World</t></r></si>
    </sst>

Formatted text is split into runs (``si/r/t``); the display string is every
run concatenated in document order. Phonetic guides (``si/rPh/t``) annotate
the string and are not part of it.
"""

from collections.abc import Iterable

from xlsx_to_csv.config import MAX_CELL_LENGTH
from xlsx_to_csv.models import (
    Characters,
    EndElement,
    ParseState,
    SharedStringTable,
    StartElement,
    XmlEvent,
)
from xlsx_to_csv.utils.exceptions import CellTooLongError
from xlsx_to_csv.utils.logging import get_logger

logger = get_logger(__name__)

# Depths (number of open ancestors) at which elements open.
_ROOT_DEPTH = 0
_ENTRY_DEPTH = 1
_TEXT_DEPTH = 2
_RUN_TEXT_DEPTH = 3


class SharedStringLoader:
    """Builds a SharedStringTable from the events of the dictionary document."""

    def __init__(
        self,
        max_cell_length: int = MAX_CELL_LENGTH,
        entry_name: str | None = None,
    ) -> None:
        self.max_cell_length = max_cell_length
        self.entry_name = entry_name

    def load(self, events: Iterable[XmlEvent]) -> SharedStringTable:
        """Consume `events` to completion and return the finished table."""
        state = ParseState.for_pass(self.max_cell_length)
        strings: list[str] = []
        declared: int | None = None

        for event in events:
            if isinstance(event, StartElement):
                if state.depth == _ROOT_DEPTH and event.name == "sst":
                    declared = _parse_count(event.get("uniqueCount"))
                elif state.depth == _ENTRY_DEPTH and event.name == "si":
                    state.text.clear()
                elif state.depth == _TEXT_DEPTH and event.name == "rPh":
                    state.in_phonetic = True
                elif event.name == "t" and (
                    state.depth == _TEXT_DEPTH
                    or (state.depth == _RUN_TEXT_DEPTH and not state.in_phonetic)
                ):
                    state.capturing = True
                state.depth += 1

            elif isinstance(event, EndElement):
                state.depth -= 1
                if event.name == "t" and state.capturing:
                    state.capturing = False
                elif state.depth == _TEXT_DEPTH and event.name == "rPh":
                    state.in_phonetic = False
                elif state.depth == _ENTRY_DEPTH and event.name == "si":
                    strings.append(state.text.getvalue())
                    state.text.clear()

            elif isinstance(event, Characters) and state.capturing:
                self._append(state, event.text, len(strings))

        if declared and declared != len(strings):
            logger.warning(
                "Shared string count differs from declared uniqueCount",
                declared=declared,
                loaded=len(strings),
            )
        logger.debug("Loaded shared strings", count=len(strings))
        return SharedStringTable.from_iterable(strings)

    def _append(self, state: ParseState, text: str, index: int) -> None:
        try:
            state.text.append(text)
        except CellTooLongError as exc:
            raise CellTooLongError(
                exc.limit,
                entry_name=self.entry_name,
                details={"shared_string_index": index},
            ) from exc


def _parse_count(value: str | None) -> int | None:
    # Sizing hint only; a missing or bogus count never fails the load.
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
