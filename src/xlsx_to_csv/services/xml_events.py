"""Streaming XML tokenizer producing tagged events.

The conversion passes only need ordered open/close/text events with
attributes, so the tokenizer is reduced to one narrow interface:
`XmlEventSource.iter_events(data)`. Internally it drives the incremental
expat reader from `xml.sax`, feeding the document in chunks and draining
the events collected for each chunk, so memory stays bounded by the chunk
size plus the events of one chunk.

Element and attribute names are reported without their namespace, which is
how SpreadsheetML documents are addressed (`row`, `c`, `v`, ...) regardless
of the prefix a producer chose.
"""

from collections.abc import Iterator
from xml.sax import SAXParseException, handler, make_parser
from xml.sax.xmlreader import AttributesNSImpl, IncrementalParser

from xlsx_to_csv.models import Characters, EndElement, StartElement, XmlEvent
from xlsx_to_csv.utils.exceptions import MalformedDocumentError
from xlsx_to_csv.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 65536


class _EventCollector(handler.ContentHandler):
    """Buffers SAX callbacks as XmlEvent objects."""

    def __init__(self) -> None:
        super().__init__()
        self.events: list[XmlEvent] = []

    def startElementNS(
        self,
        name: tuple[str | None, str],
        qname: str | None,
        attrs: AttributesNSImpl,
    ) -> None:
        attributes = tuple(
            (attr_name[1], value) for attr_name, value in attrs.items()
        )
        self.events.append(StartElement(name[1], attributes))

    def endElementNS(self, name: tuple[str | None, str], qname: str | None) -> None:
        self.events.append(EndElement(name[1]))

    def characters(self, content: str) -> None:
        self.events.append(Characters(content))

    def drain(self) -> list[XmlEvent]:
        events = self.events
        self.events = []
        return events


class XmlEventSource:
    """Tokenizes one XML document into StartElement/EndElement/Characters."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def iter_events(
        self, data: bytes, entry_name: str | None = None
    ) -> Iterator[XmlEvent]:
        """Yield the events of `data` in document order.

        Args:
            data: Complete bytes of the XML document.
            entry_name: Archive entry name, used in error messages.

        Raises:
            MalformedDocumentError: If the document is not well-formed.
        """
        parser = self._make_parser()
        collector = _EventCollector()
        parser.setContentHandler(collector)

        try:
            # At least one feed, so an empty entry is reported at close().
            for start in range(0, max(len(data), 1), self.chunk_size):
                parser.feed(data[start : start + self.chunk_size])
                yield from collector.drain()
            parser.close()
        except SAXParseException as exc:
            logger.debug(
                "XML tokenizer rejected document",
                entry=entry_name,
                line=exc.getLineNumber(),
                column=exc.getColumnNumber(),
            )
            raise MalformedDocumentError(
                exc.getMessage(),
                entry_name=entry_name,
                line=exc.getLineNumber(),
                column=exc.getColumnNumber(),
            ) from exc
        yield from collector.drain()

    @staticmethod
    def _make_parser() -> IncrementalParser:
        parser = make_parser()
        parser.setFeature(handler.feature_namespaces, True)
        # Never resolve external entities or DTDs from a package.
        parser.setFeature(handler.feature_external_ges, False)
        parser.setFeature(handler.feature_external_pes, False)
        return parser
