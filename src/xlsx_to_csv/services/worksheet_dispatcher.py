"""Worksheet event dispatcher (second conversion pass).

A worksheet stores only the cells that hold something::

    <worksheet>
      <dimension ref="A1:C3"/>
      <sheetData>
        <row r="2">
          <c r="A2" t="s"><v>3</v></c>
          <c r="C2" t="s"><v>3</v></c>
        </row>
      </sheetData>
    </worksheet>

The dispatcher rebuilds the dense grid while streaming: no tree is built,
and the only state kept is the current nesting depth, the position inside
the current row and the text of the value being read. Elements are
recognised by their depth together with their name; `depth` is the number
of open ancestors when an element opens, so with the worksheet root at 0:

    depth 1  dimension      grid width from its ref attribute
    depth 2  row            new CSV line
    depth 3  c              cell; fills the gap since the previous cell
    depth 4  v / is         value text (is holds inline strings)
"""

from collections.abc import Iterable

from xlsx_to_csv.config import MAX_CELL_LENGTH
from xlsx_to_csv.models import (
    CellReference,
    Characters,
    EndElement,
    ParseState,
    SharedStringTable,
    SheetDimension,
    StartElement,
    XmlEvent,
)
from xlsx_to_csv.services.cell_resolver import CellType, resolve_cell_value
from xlsx_to_csv.services.coordinates import (
    decode_cell_ref,
    decode_range_ref,
    format_cell_ref,
)
from xlsx_to_csv.services.csv_emitter import CsvRowEmitter
from xlsx_to_csv.utils.exceptions import (
    CellTooLongError,
    ErrorCode,
    MalformedDocumentError,
)
from xlsx_to_csv.utils.logging import ProgressTracker, get_logger

logger = get_logger(__name__)

_DIMENSION_DEPTH = 1
_ROW_DEPTH = 2
_CELL_DEPTH = 3
_VALUE_DEPTH = 4
_INLINE_TEXT_DEPTH = 5
_INLINE_RUN_TEXT_DEPTH = 6


class WorksheetDispatcher:
    """Turns worksheet events into fixed-width CSV rows.

    Args:
        emitter: Destination for fields and rows.
        table: Shared string table from the first pass, or None if the
            package has no dictionary.
        entry_name: Archive entry of the worksheet, for messages.
        max_cell_length: Maximum characters accepted per value.
        progress: Optional tracker updated once per written row.
    """

    def __init__(
        self,
        emitter: CsvRowEmitter,
        table: SharedStringTable | None = None,
        entry_name: str | None = None,
        max_cell_length: int = MAX_CELL_LENGTH,
        progress: ProgressTracker | None = None,
    ) -> None:
        self.emitter = emitter
        self.table = table
        self.entry_name = entry_name
        self.progress = progress
        self.state = ParseState.for_pass(max_cell_length)
        self.dimension: SheetDimension | None = None
        self.cells_written = 0
        self.events_processed = 0

    def run(self, events: Iterable[XmlEvent]) -> SheetDimension | None:
        """Dispatch every event of the worksheet and return its dimension."""
        for event in events:
            self.dispatch(event)
        return self.dimension

    def dispatch(self, event: XmlEvent) -> None:
        """Advance the state machine by one event."""
        self.events_processed += 1
        state = self.state

        if isinstance(event, StartElement):
            self._open(event, state.depth)
            state.depth += 1
        elif isinstance(event, EndElement):
            state.depth -= 1
            self._close(event.name, state.depth)
        elif isinstance(event, Characters):
            if state.capturing:
                self._capture(event.text)
        else:
            raise TypeError(f"Unexpected event type: {type(event).__name__}")

    # ------------------------------------------------------------------ #
    # Element open / close
    # ------------------------------------------------------------------ #

    def _open(self, event: StartElement, depth: int) -> None:
        name = event.name
        if depth == _DIMENSION_DEPTH and name == "dimension":
            self._set_dimension(event.get("ref"))
        elif depth == _ROW_DEPTH and name == "row":
            self._start_row(event)
        elif depth == _CELL_DEPTH and name == "c":
            self._start_cell(event)
        elif depth == _VALUE_DEPTH and name in ("v", "is"):
            self.state.start_capture()
            if name == "is":
                # Inline text is captured from its t children only.
                self.state.capturing = False
        elif depth == _INLINE_TEXT_DEPTH and name == "rPh":
            self.state.in_phonetic = True
        elif name == "t" and (
            depth == _INLINE_TEXT_DEPTH
            or (depth == _INLINE_RUN_TEXT_DEPTH and not self.state.in_phonetic)
        ):
            self.state.capturing = True

    def _close(self, name: str, depth: int) -> None:
        if depth == _VALUE_DEPTH and name in ("v", "is"):
            self._finish_value()
        elif depth == _CELL_DEPTH and name == "c":
            self._finish_cell()
        elif depth == _ROW_DEPTH and name == "row":
            self._finish_row()
        elif name == "t" and depth in (_INLINE_TEXT_DEPTH, _INLINE_RUN_TEXT_DEPTH):
            self.state.capturing = False
        elif depth == _INLINE_TEXT_DEPTH and name == "rPh":
            self.state.in_phonetic = False

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    def _set_dimension(self, ref: str | None) -> None:
        if not ref:
            logger.warning("Dimension element has no ref attribute")
            return
        extent = decode_range_ref(ref)
        self.dimension = SheetDimension(max_col=extent.col, max_row=extent.row)
        self.emitter.set_width(self.dimension.width)
        logger.debug(
            "Sheet dimension",
            ref=ref,
            max_col=extent.col,
            max_row=extent.row,
        )

    def _require_dimension(self) -> SheetDimension:
        if self.dimension is None:
            raise MalformedDocumentError(
                "Worksheet declares no dimension before its first row",
                entry_name=self.entry_name,
                error_code=ErrorCode.MISSING_DIMENSION,
            )
        return self.dimension

    def _start_row(self, event: StartElement) -> None:
        self._require_dimension()
        self.state.expected_col = 1
        row_attr = event.get("r")
        if row_attr is not None:
            self.state.current_row = decode_cell_ref(row_attr).row
        else:
            self.state.current_row += 1

    def _start_cell(self, event: StartElement) -> None:
        state = self.state
        dimension = self._require_dimension()

        ref = event.get("r")
        if ref is not None:
            position = decode_cell_ref(ref)
            state.current_col = position.col
            if position.row:
                state.current_row = position.row
        else:
            state.current_col = state.expected_col

        gap = min(state.current_col, dimension.max_col + 1) - state.expected_col
        if gap > 0:
            self.emitter.write_empty(gap)

        cell_type = CellType.from_attribute(event.get("t"))
        state.lookup_shared = cell_type is CellType.SHARED_STRING
        state.is_text = cell_type.is_text
        state.value_written = False
        state.expected_col = state.current_col + 1

    def _capture(self, text: str) -> None:
        try:
            self.state.text.append(text)
        except CellTooLongError as exc:
            raise CellTooLongError(
                exc.limit, entry_name=self.entry_name, cell=self._cell_name()
            ) from exc

    def _finish_value(self) -> None:
        state = self.state
        raw = state.stop_capture()
        if state.value_written:
            return
        value = resolve_cell_value(
            raw, state.lookup_shared, self.table, cell=self._cell_name()
        )
        if self.emitter.write_value(value, is_text=state.is_text):
            self.cells_written += 1
        state.value_written = True

    def _finish_cell(self) -> None:
        # A cell without a value (e.g. only a style) still occupies its column.
        if not self.state.value_written:
            self.emitter.write_empty(1)
            self.state.value_written = True

    def _finish_row(self) -> None:
        dropped = self.emitter.end_row()
        if dropped:
            logger.warning(
                "Dropped cells beyond the declared dimension",
                row=self.state.current_row,
                dropped=dropped,
                max_col=self.dimension.max_col if self.dimension else 0,
            )
        if self.progress is not None:
            self.progress.update()

    def _cell_name(self) -> str:
        return format_cell_ref(
            CellReference(col=self.state.current_col, row=self.state.current_row)
        )
