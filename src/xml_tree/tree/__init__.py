"""Tree layer for XML tree parsing.

This module provides the element node type, the stack-based tree builder
that consumes lexical events, traversal and display helpers, and the
serializer that writes a tree back as XML text.

Key Components:
    ElementNode: One XML element with attributes, text and children
    TreeBuilder: Stack machine turning lexical events into one tree
    PreorderIterator: Explicit-stack depth-first traversal
    serialize: Tree back to XML text
"""

from .builder import BuilderState, ParserState, TreeBuilder
from .node import ElementNode
from .serializer import (
    XMLWriter,
    escape_attribute,
    escape_text,
    serialize,
    serialize_to_bytes,
)
from .traversal import (
    PreorderIterator,
    display,
    iter_children,
    visit_preorder,
)

__all__ = [
    "BuilderState",
    "ElementNode",
    "ParserState",
    "PreorderIterator",
    "TreeBuilder",
    "XMLWriter",
    "display",
    "escape_attribute",
    "escape_text",
    "iter_children",
    "serialize",
    "serialize_to_bytes",
    "visit_preorder",
]
