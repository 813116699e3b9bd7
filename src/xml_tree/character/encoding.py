"""Encoding detection and strict decoding of raw document bytes.

Detection runs in a fixed order: byte order mark, then the ``encoding``
pseudo-attribute of the XML declaration, then the UTF-8 default. Decoding is
strict; any undecodable byte aborts the parse with an ``XMLSyntaxError``
pointing at the offending byte.
"""

import codecs
import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional

from xml_tree.shared import SourcePosition, XMLSyntaxError, get_logger

DEFAULT_ENCODING = "utf-8"

logger = get_logger(__name__, component="encoding")


class DetectionMethod(Enum):
    """How the document encoding was determined."""
    EXPLICIT = "explicit"
    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    DEFAULT = "default"


@dataclass
class DecodedDocument:
    """Decoded document text and how its encoding was found.

    Attributes:
        text: Document text with line endings normalised to ``\\n``
        encoding: Canonical codec name used for decoding
        method: Detection method used
        byte_length: Size of the raw input in bytes
    """
    text: str
    encoding: str
    method: DetectionMethod
    byte_length: int


class BOMDetector:
    """Byte Order Mark (BOM) detection for the Unicode encodings."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        codecs.BOM_UTF8: "utf-8",
        codecs.BOM_UTF16_LE: "utf-16-le",
        codecs.BOM_UTF16_BE: "utf-16-be",
        codecs.BOM_UTF32_LE: "utf-32-le",
        codecs.BOM_UTF32_BE: "utf-32-be",
    }

    def detect(self, data: bytes) -> Optional[bytes]:
        """Return the BOM that ``data`` starts with, if any."""
        if not data:
            return None

        # UTF-32 LE starts with the UTF-16 LE mark, so try longer marks first
        for bom_bytes in sorted(self.BOM_PATTERNS, key=len, reverse=True):
            if data.startswith(bom_bytes):
                return bom_bytes
        return None

    def encoding_for(self, bom: bytes) -> str:
        """Codec name for a BOM returned by ``detect``."""
        return self.BOM_PATTERNS[bom]


class XMLDeclarationParser:
    """Reads the encoding named in an XML declaration."""

    XML_DECLARATION_PATTERN = re.compile(
        rb'^<\?xml\s[^>]*?encoding\s*=\s*["\']([A-Za-z][A-Za-z0-9._-]*)["\'][^>]*\?>'
    )

    def parse_declaration(self, data: bytes) -> Optional[str]:
        """Return the declared encoding name, or None when absent.

        Raises:
            XMLSyntaxError: The declared encoding is not known to Python
        """
        match = self.XML_DECLARATION_PATTERN.match(data)
        if not match:
            return None
        name = match.group(1).decode("ascii")
        try:
            return codecs.lookup(name).name
        except LookupError:
            raise XMLSyntaxError(
                f"Unknown encoding declared: {name}",
                SourcePosition(1, match.start(1) + 1, match.start(1))
            ) from None


def normalize_line_endings(text: str) -> str:
    """Translate ``\\r\\n`` and lone ``\\r`` to ``\\n``."""
    if "\r" not in text:
        return text
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _byte_position(data: bytes, offset: int) -> SourcePosition:
    line_start = data.rfind(b"\n", 0, offset) + 1
    return SourcePosition(
        line=data.count(b"\n", 0, offset) + 1,
        column=offset - line_start + 1,
        offset=offset
    )


class DocumentDecoder:
    """Decodes raw document bytes into normalised text."""

    def __init__(self) -> None:
        self.bom_detector = BOMDetector()
        self.declaration_parser = XMLDeclarationParser()

    def decode(self, data: bytes, encoding: Optional[str] = None) -> DecodedDocument:
        """Decode ``data``, detecting the encoding unless one is given.

        Args:
            data: Raw document bytes
            encoding: Optional explicit encoding

        Returns:
            DecodedDocument with the decoded text

        Raises:
            XMLSyntaxError: Unknown encoding or undecodable bytes
        """
        body_start = 0
        bom = self.bom_detector.detect(data)

        if encoding is not None:
            method = DetectionMethod.EXPLICIT
            if bom is not None:
                body_start = len(bom)
        elif bom is not None:
            method = DetectionMethod.BOM
            encoding = self.bom_detector.encoding_for(bom)
            body_start = len(bom)
        else:
            encoding = self.declaration_parser.parse_declaration(data)
            method = (
                DetectionMethod.XML_DECLARATION if encoding
                else DetectionMethod.DEFAULT
            )
            encoding = encoding or DEFAULT_ENCODING

        try:
            codec_name = codecs.lookup(encoding).name
        except LookupError:
            raise XMLSyntaxError(f"Unknown encoding: {encoding}") from None

        try:
            text = data[body_start:].decode(codec_name)
        except UnicodeDecodeError as e:
            offset = body_start + e.start
            raise XMLSyntaxError(
                f"Invalid {codec_name} byte sequence: {e.reason}",
                _byte_position(data, offset)
            ) from e

        logger.debug(
            "Decoded document",
            extra={
                "encoding": codec_name,
                "method": method.value,
                "byte_length": len(data),
            }
        )

        return DecodedDocument(
            text=normalize_line_endings(text),
            encoding=codec_name,
            method=method,
            byte_length=len(data)
        )


def decode_document(data: bytes, encoding: Optional[str] = None) -> DecodedDocument:
    """Decode document bytes with a fresh ``DocumentDecoder``."""
    return DocumentDecoder().decode(data, encoding)
