"""Stack-based tree construction from lexical events.

The builder consumes events in a single pass without lookahead. It keeps an
explicit stack of open elements (innermost on top), the cumulative namespace
mapping, and a slot for the finished root. Any structural problem aborts the
build with a ``StructuralError``; no partial tree is ever returned.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional, Tuple

from xml_tree.shared import (
    ParseOptions,
    ParseStatistics,
    SourcePosition,
    StructuralError,
    get_logger,
)
from xml_tree.tokenization import (
    CharacterData,
    Comment,
    EndTag,
    LexEvent,
    NamespaceDeclEnd,
    NamespaceDeclStart,
    ProcessingInstruction,
    SelfClosingTag,
    StartTag,
)

from .node import ElementNode

_UNBOUND = object()


class BuilderState(Enum):
    """Lifecycle of a tree build."""

    EMPTY = auto()      # No element seen yet
    BUILDING = auto()   # At least one element open
    COMPLETE = auto()   # Root closed, trailing comments/PIs still allowed
    DONE = auto()       # close() called, no further events accepted


@dataclass
class ParserState:
    """Mutable context threaded through every event handler."""

    stack: List[ElementNode] = field(default_factory=list)
    namespaces: Dict[Optional[str], str] = field(default_factory=dict)
    # (prefix, previous binding) for every declaration still in effect
    saved_bindings: List[Tuple[Optional[str], object]] = field(default_factory=list)
    # Character data chunks of the current text run
    text_chunks: List[str] = field(default_factory=list)
    root: Optional[ElementNode] = None
    state: BuilderState = BuilderState.EMPTY

    @property
    def depth(self) -> int:
        return len(self.stack)


class TreeBuilder:
    """Builds exactly one ElementNode tree from a stream of lexical events.

    Example:
        >>> builder = TreeBuilder()
        >>> for event in [StartTag("a"), CharacterData("hi"), EndTag("a")]:
        ...     builder.feed(event)
        >>> builder.close().text
        'hi'
    """

    def __init__(
        self,
        options: Optional[ParseOptions] = None,
        parse_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            options: Parse options; ``trim_text`` and ``max_depth`` apply here
            parse_id: Optional id of the parse call, used in log records
        """
        self.options = options or ParseOptions()
        self.logger = get_logger(__name__, parse_id, "tree_builder")
        self.context = ParserState()
        self.statistics = ParseStatistics()

    @property
    def state(self) -> BuilderState:
        return self.context.state

    @property
    def depth(self) -> int:
        """Number of elements currently open."""
        return self.context.depth

    def build(self, events: Iterable[LexEvent]) -> ElementNode:
        """Consume every event and return the root element.

        Raises:
            StructuralError: The events do not describe exactly one tree
            XMLSyntaxError: Propagated from the event source
        """
        start_time = time.perf_counter()
        try:
            for event in events:
                self.feed(event)
            root = self.close()
        finally:
            self.statistics.processing_time_ms = (time.perf_counter() - start_time) * 1000

        self.logger.debug(
            "Tree building completed",
            extra=self.statistics.to_dict()
        )
        return root

    def feed(self, event: LexEvent) -> None:
        """Apply one event to the builder state."""
        context = self.context
        if context.state is BuilderState.DONE:
            raise StructuralError(
                f"Event {type(event).__name__} received after the build was closed",
                event.position
            )
        self.statistics.events_processed += 1

        if isinstance(event, StartTag):
            self._start_element(context, event.name, event.attributes, event.position)
        elif isinstance(event, EndTag):
            self._end_element(context, event.name, event.position)
        elif isinstance(event, SelfClosingTag):
            self._start_element(context, event.name, event.attributes, event.position)
            self._end_element(context, event.name, event.position)
        elif isinstance(event, CharacterData):
            self._characters(context, event)
        elif isinstance(event, NamespaceDeclStart):
            self._start_namespace(context, event)
        elif isinstance(event, NamespaceDeclEnd):
            self._end_namespace(context, event)
        elif isinstance(event, (Comment, ProcessingInstruction)):
            # No tree content, but flushes the current text run
            self._flush_text(context)
        else:
            raise TypeError(f"Unknown event type: {type(event).__name__}")

    def close(self) -> ElementNode:
        """Finish the build and return the root element.

        Raises:
            StructuralError: No element was seen, or elements are still open
        """
        context = self.context
        if context.state is BuilderState.EMPTY:
            raise StructuralError("Document contains no root element")
        if context.state is BuilderState.BUILDING:
            open_tags = ", ".join(node.tag for node in context.stack)
            raise StructuralError(
                f"Unexpected end of document: {context.depth} unclosed element(s): {open_tags}"
            )
        context.state = BuilderState.DONE
        if context.root is None:
            raise StructuralError("Build closed without a root element")
        return context.root

    # Event handlers

    def _start_element(
        self,
        context: ParserState,
        tag: str,
        attributes: List[Tuple[str, str]],
        position: Optional[SourcePosition]
    ) -> None:
        if context.state is BuilderState.COMPLETE:
            raise StructuralError(
                f"Element <{tag}> found after the root element was closed", position
            )
        if self.options.max_depth is not None and context.depth >= self.options.max_depth:
            raise StructuralError(
                f"Maximum element depth {self.options.max_depth} exceeded at <{tag}>",
                position
            )

        self._flush_text(context)
        element = ElementNode(
            tag=tag,
            attributes=dict(attributes),
            namespace_scope=dict(context.namespaces),
        )
        context.stack.append(element)
        context.state = BuilderState.BUILDING

        self.statistics.elements_created += 1
        if context.depth > self.statistics.max_depth:
            self.statistics.max_depth = context.depth

    def _end_element(
        self,
        context: ParserState,
        tag: str,
        position: Optional[SourcePosition]
    ) -> None:
        if not context.stack:
            raise StructuralError(f"End tag </{tag}> without an open element", position)
        if context.stack[-1].tag != tag:
            raise StructuralError(
                f"End tag </{tag}> does not match open element <{context.stack[-1].tag}>",
                position
            )

        self._flush_text(context)
        element = context.stack.pop()
        if context.stack:
            context.stack[-1].children.append(element)
        else:
            context.root = element
            context.state = BuilderState.COMPLETE

    def _characters(self, context: ParserState, event: CharacterData) -> None:
        if not context.stack:
            if not event.text.strip():
                return
            raise StructuralError("Text outside the root element", event.position)
        context.text_chunks.append(event.text)

    def _flush_text(self, context: ParserState) -> None:
        """Move the buffered text run onto the element on top of the stack."""
        if not context.text_chunks:
            return
        text = "".join(context.text_chunks)
        context.text_chunks.clear()
        if self.options.trim_text:
            text = text.strip()
        if text:
            context.stack[-1].text += text
            self.statistics.characters_processed += len(text)

    def _start_namespace(self, context: ParserState, event: NamespaceDeclStart) -> None:
        context.saved_bindings.append(
            (event.prefix, context.namespaces.get(event.prefix, _UNBOUND))
        )
        context.namespaces[event.prefix] = event.uri

    def _end_namespace(self, context: ParserState, event: NamespaceDeclEnd) -> None:
        for index in range(len(context.saved_bindings) - 1, -1, -1):
            prefix, previous = context.saved_bindings[index]
            if prefix == event.prefix:
                del context.saved_bindings[index]
                break
        else:
            raise StructuralError(
                f"Namespace prefix {event.prefix!r} closed without a declaration",
                event.position
            )

        if previous is _UNBOUND:
            context.namespaces.pop(event.prefix, None)
        else:
            context.namespaces[event.prefix] = previous
