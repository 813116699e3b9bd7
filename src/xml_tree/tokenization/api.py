"""Event source: raw document bytes in, lexical events out.

Decoding happens eagerly when the source is created; lexing and namespace
processing run lazily as events are pulled.
"""

from typing import Iterator, Optional

from xml_tree.character import DecodedDocument, decode_document
from xml_tree.shared import ParseOptions

from .events import LexEvent
from .lexer import XMLLexer
from .namespaces import NamespaceProcessor


class EventSource:
    """Single-pass iterator over the lexical events of one document.

    Once exhausted it stays exhausted; create a new source to scan again.

    Example:
        >>> [type(e).__name__ for e in EventSource(b"<a>hi</a>")]
        ['StartTag', 'CharacterData', 'EndTag']
    """

    def __init__(
        self,
        content: bytes,
        options: Optional[ParseOptions] = None,
        parse_id: Optional[str] = None
    ) -> None:
        """Decode ``content`` and prepare the lexer.

        Raises:
            XMLSyntaxError: The bytes cannot be decoded
        """
        self.options = options or ParseOptions()
        self.document: DecodedDocument = decode_document(content, self.options.encoding)
        self.lexer = XMLLexer(parse_id=parse_id)
        events: Iterator[LexEvent] = self.lexer.tokenize(self.document.text)
        if self.options.process_namespaces:
            events = NamespaceProcessor().process(events)
        self._events = events

    def __iter__(self) -> "EventSource":
        return self

    def __next__(self) -> LexEvent:
        return next(self._events)

    @property
    def depth(self) -> int:
        """Lexer nesting depth at the current scan position."""
        return self.lexer.depth


def iter_events(content: bytes, options: Optional[ParseOptions] = None) -> EventSource:
    """Return a lazy, single-pass stream of lexical events for ``content``."""
    return EventSource(content, options)
