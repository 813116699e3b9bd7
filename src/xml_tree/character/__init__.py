"""Character layer: turns raw document bytes into normalised text."""

from .encoding import (
    BOMDetector,
    DecodedDocument,
    DetectionMethod,
    DocumentDecoder,
    XMLDeclarationParser,
    decode_document,
    normalize_line_endings,
)

__all__ = [
    "BOMDetector",
    "DecodedDocument",
    "DetectionMethod",
    "DocumentDecoder",
    "XMLDeclarationParser",
    "decode_document",
    "normalize_line_endings",
]
