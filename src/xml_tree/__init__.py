"""XML Tree.

Parses an XML document into a tree of plain element nodes, then walks,
dumps or writes that tree back out as XML.

Progressive API Disclosure:
- Level 1: Simple functions - parse_from_bytes(), parse_string(), parse_file()
- Level 2: Configured parser - XMLTreeParser class
- Level 3: Output - serialize(), display(), visit_preorder()
"""

__version__ = "0.1.0"
__author__ = "XML Tree Team"

# Level 1 and 2: parsing
from .api import XMLTreeParser, parse_file, parse_from_bytes, parse_string

# Errors raised by every entry point
from .shared.errors import (
    SerializationError,
    StructuralError,
    XMLSyntaxError,
    XMLTreeError,
)

# Configuration classes for advanced usage
from .shared.config import DisplayOptions, ParseOptions, SerializeOptions

# Tree and output
from .tree import ElementNode, display, serialize, visit_preorder

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse_from_bytes",
    "parse_string",
    "parse_file",

    # Level 2: Configured parser
    "XMLTreeParser",

    # Tree and output
    "ElementNode",
    "serialize",
    "display",
    "visit_preorder",

    # Configuration
    "ParseOptions",
    "SerializeOptions",
    "DisplayOptions",

    # Errors
    "XMLTreeError",
    "XMLSyntaxError",
    "StructuralError",
    "SerializationError",
]
