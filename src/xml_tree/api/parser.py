"""Entry points that turn XML documents into element trees.

Three levels of API are offered:

1. ``parse_from_bytes`` - the ingestion entry point, raw bytes in
2. ``parse_string`` / ``parse_file`` - convenience wrappers
3. ``XMLTreeParser`` - reusable parser object that keeps usage statistics

Every function either returns the complete root element or raises an
``XMLSyntaxError`` / ``StructuralError``. No partial tree is ever returned.
"""

import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from xml_tree.shared import (
    ParseError,
    ParseOptions,
    ParseStatistics,
    get_logger,
)
from xml_tree.tokenization import EventSource
from xml_tree.tree import ElementNode, TreeBuilder

MS_PER_SECOND = 1000

logger = get_logger(__name__, component="api")


def _new_parse_id() -> str:
    return uuid.uuid4().hex[:12]


def _run_parse(
    content: bytes,
    options: ParseOptions,
    parse_id: str
) -> Tuple[ElementNode, ParseStatistics]:
    """Decode, lex and build one document.

    Returns the root together with the statistics of the build.
    """
    start_time = time.perf_counter()
    parse_logger = get_logger(__name__, parse_id, "parse")
    parse_logger.info(
        "Starting parse",
        extra={"content_bytes": len(content), "trim_text": options.trim_text}
    )

    builder = TreeBuilder(options, parse_id=parse_id)
    try:
        source = EventSource(content, options, parse_id=parse_id)
        root = builder.build(source)
    except ParseError as e:
        parse_logger.warning(
            "Parse failed",
            extra={"error_type": type(e).__name__, "error": str(e)}
        )
        raise

    statistics = builder.statistics
    statistics.processing_time_ms = (time.perf_counter() - start_time) * MS_PER_SECOND
    parse_logger.info(
        "Parse completed",
        extra={
            "root_tag": root.tag,
            "elements": statistics.elements_created,
            "processing_time_ms": statistics.processing_time_ms,
        }
    )
    return root, statistics


def parse_from_bytes(content: bytes, options: Optional[ParseOptions] = None) -> ElementNode:
    """Parse a complete XML document held in memory.

    Args:
        content: Raw document bytes; the encoding is detected from a BOM or
            the XML declaration unless ``options.encoding`` is set
        options: Parse options, defaults to ``ParseOptions()``

    Returns:
        Root element of the document

    Raises:
        XMLSyntaxError: The document is not lexically well-formed
        StructuralError: The events do not form exactly one element tree

    Examples:
        >>> root = parse_from_bytes(b'<root><child id="1">hi</child></root>')
        >>> root.children[0].attributes
        {'id': '1'}
    """
    if not isinstance(content, (bytes, bytearray, memoryview)):
        raise TypeError(
            f"parse_from_bytes expects bytes, got {type(content).__name__}; "
            "use parse_string for text"
        )
    root, _ = _run_parse(bytes(content), options or ParseOptions(), _new_parse_id())
    return root


def parse_string(text: str, options: Optional[ParseOptions] = None) -> ElementNode:
    """Parse a document that is already decoded to text.

    The text is re-encoded as UTF-8, so any ``encoding`` in its XML
    declaration is ignored.

    Examples:
        >>> parse_string("<a>caf\\u00e9</a>").text
        'café'
    """
    options = replace_encoding(options or ParseOptions(), "utf-8")
    return parse_from_bytes(text.encode("utf-8"), options)


def parse_file(path: Union[str, Path], options: Optional[ParseOptions] = None) -> ElementNode:
    """Read a whole file and parse it.

    The file is opened in binary mode and closed before parsing starts.

    Raises:
        OSError: The file cannot be read
        XMLSyntaxError, StructuralError: As for ``parse_from_bytes``
    """
    path_obj = Path(path)
    logger.debug("Reading file", extra={"file_path": str(path_obj)})
    with path_obj.open("rb") as file:
        content = file.read()
    return parse_from_bytes(content, options)


def replace_encoding(options: ParseOptions, encoding: str) -> ParseOptions:
    """Return ``options`` with its explicit encoding set to ``encoding``."""
    if options.encoding == encoding:
        return options
    return replace(options, encoding=encoding)


class XMLTreeParser:
    """Reusable parser holding a fixed set of options.

    Keeps the statistics of the most recent parse and running totals across
    calls.

    Examples:
        >>> parser = XMLTreeParser(ParseOptions(trim_text=True))
        >>> parser.parse(b"<a>  x  </a>").text
        'x'
        >>> parser.statistics.elements_created
        1
    """

    def __init__(
        self,
        options: Optional[ParseOptions] = None,
        parse_id: Optional[str] = None
    ) -> None:
        """Initialize parser.

        Args:
            options: Parse options used for every call
            parse_id: Optional fixed id for log records; a fresh id is
                generated per call otherwise
        """
        self.options = options or ParseOptions()
        self.parse_id = parse_id
        self.logger = get_logger(__name__, parse_id, "xml_tree_parser")

        self._last_statistics = ParseStatistics()
        self._parse_count = 0
        self._failed_parses = 0
        self._total_processing_time = 0.0

    def parse(self, content: Union[bytes, str, Path]) -> ElementNode:
        """Parse ``content``.

        Bytes are parsed as-is, ``str`` as already-decoded text, and a
        ``Path`` is read from disk.
        """
        if isinstance(content, Path):
            with content.open("rb") as file:
                data = file.read()
            options = self.options
        elif isinstance(content, str):
            data = content.encode("utf-8")
            options = replace_encoding(self.options, "utf-8")
        else:
            data = bytes(content)
            options = self.options

        self._parse_count += 1
        try:
            root, statistics = _run_parse(data, options, self.parse_id or _new_parse_id())
        except ParseError:
            self._failed_parses += 1
            raise

        self._last_statistics = statistics
        self._total_processing_time += statistics.processing_time_ms
        return root

    @property
    def statistics(self) -> ParseStatistics:
        """Statistics of the most recent successful parse."""
        return self._last_statistics

    def usage(self) -> Dict[str, Any]:
        """Running totals across every call to ``parse``."""
        successful = self._parse_count - self._failed_parses
        return {
            "total_parses": self._parse_count,
            "successful_parses": successful,
            "failed_parses": self._failed_parses,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / successful if successful > 0 else 0.0
            ),
        }

    def reset_statistics(self) -> None:
        """Reset usage counters."""
        self._last_statistics = ParseStatistics()
        self._parse_count = 0
        self._failed_parses = 0
        self._total_processing_time = 0.0
        self.logger.info("Parser statistics reset")
