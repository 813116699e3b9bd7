"""Lexical events emitted by the lexer and consumed by the tree builder."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from xml_tree.shared import SourcePosition

# Ordered (name, value) pairs, in document order
AttributeList = List[Tuple[str, str]]


@dataclass
class StartTag:
    """Opening tag ``<name ...>``."""

    name: str
    attributes: AttributeList = field(default_factory=list)
    position: Optional[SourcePosition] = None


@dataclass
class EndTag:
    """Closing tag ``</name>``."""

    name: str
    position: Optional[SourcePosition] = None


@dataclass
class SelfClosingTag:
    """Empty-element tag ``<name .../>``.

    Equivalent to a StartTag immediately followed by its EndTag.
    """

    name: str
    attributes: AttributeList = field(default_factory=list)
    position: Optional[SourcePosition] = None


@dataclass
class CharacterData:
    """One chunk of character data; a text run may span several chunks."""

    text: str
    position: Optional[SourcePosition] = None


@dataclass
class NamespaceDeclStart:
    """A namespace binding that takes effect at the next start tag.

    ``prefix`` is None for the default namespace.
    """

    prefix: Optional[str]
    uri: str
    position: Optional[SourcePosition] = None


@dataclass
class NamespaceDeclEnd:
    """The binding made by the matching NamespaceDeclStart goes out of scope."""

    prefix: Optional[str]
    position: Optional[SourcePosition] = None


@dataclass
class Comment:
    """``<!-- ... -->``; carries no tree content."""

    text: str
    position: Optional[SourcePosition] = None


@dataclass
class ProcessingInstruction:
    """``<?target data?>``; carries no tree content."""

    target: str
    data: str = ""
    position: Optional[SourcePosition] = None


LexEvent = Union[
    StartTag,
    EndTag,
    SelfClosingTag,
    CharacterData,
    NamespaceDeclStart,
    NamespaceDeclEnd,
    Comment,
    ProcessingInstruction,
]
