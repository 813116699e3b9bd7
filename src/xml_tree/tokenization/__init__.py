"""Lexing engine for XML tree parsing.

This module turns decoded document text into a stream of lexical events
using a strict character state machine, followed by an optional namespace
processing pass.

Key Components:
    XMLLexer: Character state machine producing raw events
    NamespaceProcessor: Scopes ``xmlns`` declarations and qualifies names
    EventSource: Bytes-to-events pipeline, single pass
    StartTag, EndTag, SelfClosingTag, CharacterData, NamespaceDeclStart,
    NamespaceDeclEnd, Comment, ProcessingInstruction: the event types
"""

from .api import EventSource, iter_events
from .events import (
    AttributeList,
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
from .lexer import LexerState, XMLLexer, resolve_reference
from .namespaces import (
    XML_NAMESPACE,
    NamespaceProcessor,
    qualify,
    split_qualified,
)

__all__ = [
    "AttributeList",
    "CharacterData",
    "Comment",
    "EndTag",
    "EventSource",
    "LexEvent",
    "LexerState",
    "NamespaceDeclEnd",
    "NamespaceDeclStart",
    "NamespaceProcessor",
    "ProcessingInstruction",
    "SelfClosingTag",
    "StartTag",
    "XMLLexer",
    "XML_NAMESPACE",
    "iter_events",
    "qualify",
    "resolve_reference",
    "split_qualified",
]
