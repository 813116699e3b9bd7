"""Error taxonomy for XML tree parsing and serialization.

Every failure of a parse call is surfaced as one of the exceptions defined
here. No partial tree is ever returned alongside an error.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class SourcePosition:
    """Location inside the parsed document.

    ``line`` and ``column`` are 1-based. ``offset`` is 0-based and counts
    characters of the decoded text, or bytes for encoding errors.
    """

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class XMLTreeError(Exception):
    """Base class for all errors raised by the package."""


class ParseError(XMLTreeError):
    """A parse call failed; carries an optional source position."""

    def __init__(self, message: str, position: Optional[SourcePosition] = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} ({self.position})"


class XMLSyntaxError(ParseError):
    """Malformed byte stream or markup."""


class StructuralError(ParseError):
    """Lexically valid input that does not form a single element tree."""


class MismatchedTagError(XMLSyntaxError, StructuralError):
    """End tag does not match the innermost open element."""

    def __init__(
        self,
        expected: str,
        found: str,
        position: Optional[SourcePosition] = None
    ) -> None:
        super().__init__(
            f"Mismatched end tag: expected </{expected}>, found </{found}>",
            position
        )
        self.expected = expected
        self.found = found


class SerializationError(XMLTreeError):
    """A tree could not be written back as XML text."""


class ConfigError(XMLTreeError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []
