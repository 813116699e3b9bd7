"""Strict XML lexer built on a character state machine.

This module scans decoded document text one character at a time and emits
lexical events (tags, character data, comments, processing instructions).
Unlike a recovering tokenizer it stops at the first malformed construct and
raises an ``XMLSyntaxError`` that carries the source position.
"""

from enum import Enum, auto
from typing import Callable, Dict, Iterator, List, Optional

from xml_tree.shared import (
    MismatchedTagError,
    SourcePosition,
    StructuralError,
    XMLSyntaxError,
    get_logger,
)

from .events import (
    AttributeList,
    CharacterData,
    Comment,
    EndTag,
    LexEvent,
    ProcessingInstruction,
    SelfClosingTag,
    StartTag,
)

# Constants for tokenization
UNICODE_START_OFFSET = 0x80  # Start of non-ASCII name characters
MAX_REFERENCE_LENGTH = 32  # Longest entity/character reference name accepted
WHITESPACE = " \t\n\r"

PREDEFINED_ENTITIES: Dict[str, str] = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}

_COMMENT_OPEN = "--"
_CDATA_OPEN = "[CDATA["
_DOCTYPE_OPEN = "DOCTYPE"


class LexerState(Enum):
    """State machine states for XML lexing."""

    TEXT_CONTENT = auto()        # Character data between tags
    REFERENCE = auto()           # Inside &...; in character data
    TAG_OPENING = auto()         # Just after <
    START_TAG_NAME = auto()      # Reading an element name
    BEFORE_ATTR_NAME = auto()    # Whitespace inside a start tag
    ATTR_NAME = auto()           # Reading an attribute name
    AFTER_ATTR_NAME = auto()     # Whitespace between name and =
    BEFORE_ATTR_VALUE = auto()   # After =, before the opening quote
    ATTR_VALUE = auto()          # Inside a quoted attribute value
    AFTER_ATTR_VALUE = auto()    # Just after the closing quote
    SELF_CLOSING = auto()        # Saw / inside a start tag
    END_TAG_NAME = auto()        # Reading name after </
    AFTER_END_TAG_NAME = auto()  # Whitespace before > of an end tag
    MARKUP_DECLARATION = auto()  # After <! deciding between comment/CDATA/DOCTYPE
    COMMENT = auto()             # Inside <!-- ... -->
    CDATA = auto()               # Inside <![CDATA[ ... ]]>
    DOCTYPE = auto()             # Inside <!DOCTYPE ...>, skipped
    PI_TARGET = auto()           # Reading target after <?
    PI_CONTENT = auto()          # Inside processing instruction data


_STATE_DESCRIPTIONS = {
    LexerState.REFERENCE: "entity reference",
    LexerState.COMMENT: "comment",
    LexerState.CDATA: "CDATA section",
    LexerState.DOCTYPE: "DOCTYPE declaration",
    LexerState.PI_TARGET: "processing instruction",
    LexerState.PI_CONTENT: "processing instruction",
    LexerState.ATTR_VALUE: "attribute value",
    LexerState.END_TAG_NAME: "end tag",
    LexerState.AFTER_END_TAG_NAME: "end tag",
    LexerState.MARKUP_DECLARATION: "markup declaration",
}


def is_name_start_char(char: str) -> bool:
    """Check if character can start an XML name."""
    return (char.isalpha() or
            char == "_" or
            char == ":" or
            ord(char) >= UNICODE_START_OFFSET)


def is_name_char(char: str) -> bool:
    """Check if character can be part of an XML name."""
    return (is_name_start_char(char) or
            char.isdigit() or
            char in ".-")


def is_xml_char(codepoint: int) -> bool:
    """Check if a code point is allowed in an XML 1.0 document."""
    return (
        codepoint in (0x9, 0xA, 0xD)
        or 0x20 <= codepoint <= 0xD7FF
        or 0xE000 <= codepoint <= 0xFFFD
        or 0x10000 <= codepoint <= 0x10FFFF
    )


def resolve_reference(name: str, position: Optional[SourcePosition] = None) -> str:
    """Expand the body of an ``&name;`` reference.

    Args:
        name: Reference body without ``&`` and ``;``
        position: Position reported on failure

    Returns:
        Replacement text

    Raises:
        XMLSyntaxError: Unknown entity or invalid character reference
    """
    if name in PREDEFINED_ENTITIES:
        return PREDEFINED_ENTITIES[name]

    if name.startswith("#"):
        digits = name[1:]
        base = 10
        if digits[:1] in ("x", "X") and len(digits) > 1:
            digits = digits[1:]
            base = 16
        try:
            codepoint = int(digits, base)
        except ValueError:
            raise XMLSyntaxError(
                f"Invalid character reference &{name};", position
            ) from None
        if not is_xml_char(codepoint):
            raise XMLSyntaxError(
                f"Character reference &{name}; refers to an invalid character",
                position
            )
        return chr(codepoint)

    raise XMLSyntaxError(f"Undefined entity &{name};", position)


class XMLLexer:
    """Strict XML lexer producing a lazy stream of lexical events.

    Element names are reported as they appear in the source (``prefix:local``);
    namespace processing is a separate pass. A lexer instance may be reused,
    each call to ``tokenize`` starts from a clean state.
    """

    def __init__(self, parse_id: Optional[str] = None) -> None:
        """Initialize the XML lexer.

        Args:
            parse_id: Optional id of the parse call, used in log records
        """
        self.parse_id = parse_id
        self.logger = get_logger(__name__, parse_id, "xml_lexer")
        self._handlers: Dict[LexerState, Callable[[str], None]] = {
            LexerState.TEXT_CONTENT: self._process_text_content,
            LexerState.REFERENCE: self._process_reference,
            LexerState.TAG_OPENING: self._process_tag_opening,
            LexerState.START_TAG_NAME: self._process_start_tag_name,
            LexerState.BEFORE_ATTR_NAME: self._process_before_attr_name,
            LexerState.ATTR_NAME: self._process_attr_name,
            LexerState.AFTER_ATTR_NAME: self._process_after_attr_name,
            LexerState.BEFORE_ATTR_VALUE: self._process_before_attr_value,
            LexerState.ATTR_VALUE: self._process_attr_value,
            LexerState.AFTER_ATTR_VALUE: self._process_after_attr_value,
            LexerState.SELF_CLOSING: self._process_self_closing,
            LexerState.END_TAG_NAME: self._process_end_tag_name,
            LexerState.AFTER_END_TAG_NAME: self._process_after_end_tag_name,
            LexerState.MARKUP_DECLARATION: self._process_markup_declaration,
            LexerState.COMMENT: self._process_comment,
            LexerState.CDATA: self._process_cdata,
            LexerState.DOCTYPE: self._process_doctype,
            LexerState.PI_TARGET: self._process_pi_target,
            LexerState.PI_CONTENT: self._process_pi_content,
        }
        self._reset_state()

    def _reset_state(self) -> None:
        """Reset lexer state for new processing."""
        self.state = LexerState.TEXT_CONTENT
        self._line = 1
        self._column = 1
        self._offset = 0
        self._token_start = SourcePosition(1, 1, 0)
        self._text_start = SourcePosition(1, 1, 0)
        self._buffer = ""
        self._chars: List[str] = []
        self._text_chars: List[str] = []
        self._tag_name = ""
        self._attr_name = ""
        self._attr_start = SourcePosition(1, 1, 0)
        self._attributes: AttributeList = []
        self._quote_char = ""
        self._doctype_depth = 0
        self._doctype_recent = ""
        self._doctype_skip = ""
        self._doctype_name_pending = False
        self._pi_target = ""
        self._open_elements: List[str] = []
        self._root_seen = False
        self._pending: List[LexEvent] = []
        self.character_count = 0

    @property
    def depth(self) -> int:
        """Number of elements currently open at the scan position."""
        return len(self._open_elements)

    def tokenize(self, text: str) -> Iterator[LexEvent]:
        """Scan ``text`` and yield lexical events in document order.

        Args:
            text: Decoded document text with normalised line endings

        Yields:
            Lexical events

        Raises:
            XMLSyntaxError: Malformed markup
            MismatchedTagError: End tag does not match the open element
        """
        self._reset_state()
        self.logger.debug(
            "Starting lexing",
            extra={"char_count": len(text)}
        )

        pending = self._pending
        for char in text:
            self._handlers[self.state](char)
            self._update_position(char)
            if pending:
                yield from pending
                pending.clear()

        self._finish()
        if pending:
            yield from pending
            pending.clear()

        self.character_count = len(text)
        self.logger.debug(
            "Lexing completed",
            extra={"char_count": self.character_count, "line_count": self._line}
        )

    def _finish(self) -> None:
        """Flush trailing text and reject input that ends inside markup."""
        if self.state != LexerState.TEXT_CONTENT:
            what = _STATE_DESCRIPTIONS.get(self.state, "tag")
            raise XMLSyntaxError(
                f"Unexpected end of input inside {what}", self._token_start
            )
        self._flush_text()

    def _position(self) -> SourcePosition:
        return SourcePosition(self._line, self._column, self._offset)

    def _update_position(self, char: str) -> None:
        """Advance position tracking past ``char``."""
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _error(self, message: str) -> XMLSyntaxError:
        return XMLSyntaxError(message, self._position())

    def _check_char(self, char: str) -> None:
        if not is_xml_char(ord(char)):
            raise self._error(f"Invalid character U+{ord(char):04X}")

    # Character data

    def _process_text_content(self, char: str) -> None:
        """Process character in text content state."""
        if char == "<":
            self._flush_text()
            self._token_start = self._position()
            self.state = LexerState.TAG_OPENING
        elif char == "&":
            self._flush_text()
            self._token_start = self._position()
            self._buffer = ""
            self.state = LexerState.REFERENCE
        else:
            self._check_char(char)
            text_chars = self._text_chars
            if not text_chars:
                self._text_start = self._position()
            elif char == ">" and text_chars[-2:] == ["]", "]"]:
                raise self._error("']]>' is not allowed in character data")
            text_chars.append(char)

    def _process_reference(self, char: str) -> None:
        """Process character inside an entity or character reference."""
        if char == ";":
            if not self._buffer:
                raise XMLSyntaxError("Empty entity reference", self._token_start)
            replacement = resolve_reference(self._buffer, self._token_start)
            self._emit_text(replacement, self._token_start)
            self._buffer = ""
            self.state = LexerState.TEXT_CONTENT
        elif (is_name_char(char) or char == "#") and len(self._buffer) < MAX_REFERENCE_LENGTH:
            self._buffer += char
        else:
            raise XMLSyntaxError(
                f"Unterminated entity reference &{self._buffer}", self._token_start
            )

    def _flush_text(self) -> None:
        """Emit accumulated character data as one chunk."""
        if self._text_chars:
            self._emit_text("".join(self._text_chars), self._text_start)
            self._text_chars = []

    def _emit_text(self, text: str, position: SourcePosition) -> None:
        # Whitespace between prolog, root and trailing misc is not content
        if not self._open_elements and not text.strip(WHITESPACE):
            return
        self._pending.append(CharacterData(text, position))

    # Tags

    def _process_tag_opening(self, char: str) -> None:
        """Process character just after ``<``."""
        if char == "/":
            self._buffer = ""
            self.state = LexerState.END_TAG_NAME
        elif char == "!":
            self._buffer = ""
            self.state = LexerState.MARKUP_DECLARATION
        elif char == "?":
            self._buffer = ""
            self.state = LexerState.PI_TARGET
        elif is_name_start_char(char):
            self._buffer = char
            self._attributes = []
            self.state = LexerState.START_TAG_NAME
        else:
            raise self._error(f"Invalid character after '<': {char!r}")

    def _process_start_tag_name(self, char: str) -> None:
        """Process character in an element name."""
        if is_name_char(char):
            self._buffer += char
            return

        self._tag_name = self._buffer
        self._buffer = ""
        if char in WHITESPACE:
            self.state = LexerState.BEFORE_ATTR_NAME
        elif char == ">":
            self._emit_start_tag()
        elif char == "/":
            self.state = LexerState.SELF_CLOSING
        else:
            raise self._error(f"Invalid character in tag name: {char!r}")

    def _process_before_attr_name(self, char: str) -> None:
        """Process character between attributes of a start tag."""
        if char in WHITESPACE:
            return
        if char == ">":
            self._emit_start_tag()
        elif char == "/":
            self.state = LexerState.SELF_CLOSING
        elif is_name_start_char(char):
            self._buffer = char
            self.state = LexerState.ATTR_NAME
        else:
            raise self._error(f"Invalid character in start tag: {char!r}")

    def _process_attr_name(self, char: str) -> None:
        """Process character in an attribute name."""
        if is_name_char(char):
            self._buffer += char
        elif char == "=":
            self._attr_name = self._buffer
            self.state = LexerState.BEFORE_ATTR_VALUE
        elif char in WHITESPACE:
            self._attr_name = self._buffer
            self.state = LexerState.AFTER_ATTR_NAME
        elif char in ">/":
            raise self._error(f"Attribute {self._buffer} has no value")
        else:
            raise self._error(f"Invalid character in attribute name: {char!r}")

    def _process_after_attr_name(self, char: str) -> None:
        """Process whitespace between an attribute name and ``=``."""
        if char in WHITESPACE:
            return
        if char == "=":
            self.state = LexerState.BEFORE_ATTR_VALUE
        else:
            raise self._error(f"Expected '=' after attribute {self._attr_name}")

    def _process_before_attr_value(self, char: str) -> None:
        """Process character between ``=`` and the opening quote."""
        if char in WHITESPACE:
            return
        if char in ('"', "'"):
            self._quote_char = char
            self._chars = []
            self._attr_start = self._position()
            self.state = LexerState.ATTR_VALUE
        else:
            raise self._error(f"Value of attribute {self._attr_name} must be quoted")

    def _process_attr_value(self, char: str) -> None:
        """Process character inside a quoted attribute value."""
        if char == self._quote_char:
            self._add_attribute(self._attr_name, "".join(self._chars))
            self._chars = []
            self.state = LexerState.AFTER_ATTR_VALUE
        elif char == "<":
            raise self._error(f"'<' not allowed in value of attribute {self._attr_name}")
        else:
            self._check_char(char)
            self._chars.append(char)

    def _process_after_attr_value(self, char: str) -> None:
        """Process character right after an attribute value."""
        if char in WHITESPACE:
            self.state = LexerState.BEFORE_ATTR_NAME
        elif char == ">":
            self._emit_start_tag()
        elif char == "/":
            self.state = LexerState.SELF_CLOSING
        else:
            raise self._error("Expected whitespace between attributes")

    def _process_self_closing(self, char: str) -> None:
        """Process character after ``/`` in a start tag."""
        if char != ">":
            raise self._error("Expected '>' after '/' in empty-element tag")
        self._mark_root_seen()
        self._pending.append(
            SelfClosingTag(self._tag_name, self._attributes, self._token_start)
        )
        self._attributes = []
        self.state = LexerState.TEXT_CONTENT

    def _add_attribute(self, name: str, raw_value: str) -> None:
        if any(existing == name for existing, _ in self._attributes):
            raise XMLSyntaxError(f"Duplicate attribute {name}", self._attr_start)
        self._attributes.append((name, self._decode_attribute_value(raw_value)))

    def _decode_attribute_value(self, raw_value: str) -> str:
        """Expand references and normalise whitespace in an attribute value."""
        if "&" not in raw_value and "\t" not in raw_value and "\n" not in raw_value:
            return raw_value

        parts: List[str] = []
        index = 0
        while index < len(raw_value):
            char = raw_value[index]
            if char == "&":
                end = raw_value.find(";", index + 1)
                if end == -1:
                    raise XMLSyntaxError(
                        f"Unterminated entity reference in value of attribute "
                        f"{self._attr_name}",
                        self._attr_start
                    )
                parts.append(resolve_reference(raw_value[index + 1:end], self._attr_start))
                index = end + 1
                continue
            parts.append(" " if char in "\t\n" else char)
            index += 1
        return "".join(parts)

    def _mark_root_seen(self) -> None:
        if not self._open_elements:
            self._root_seen = True

    def _emit_start_tag(self) -> None:
        self._mark_root_seen()
        self._pending.append(
            StartTag(self._tag_name, self._attributes, self._token_start)
        )
        self._open_elements.append(self._tag_name)
        self._attributes = []
        self.state = LexerState.TEXT_CONTENT

    def _process_end_tag_name(self, char: str) -> None:
        """Process character in the name of an end tag."""
        if (is_name_char(char) if self._buffer else is_name_start_char(char)):
            self._buffer += char
        elif not self._buffer:
            raise self._error(f"Invalid character after '</': {char!r}")
        elif char in WHITESPACE:
            self.state = LexerState.AFTER_END_TAG_NAME
        elif char == ">":
            self._emit_end_tag()
        else:
            raise self._error(f"Invalid character in end tag: {char!r}")

    def _process_after_end_tag_name(self, char: str) -> None:
        """Process whitespace before ``>`` of an end tag."""
        if char in WHITESPACE:
            return
        if char != ">":
            raise self._error(f"Expected '>' to close end tag </{self._buffer}")
        self._emit_end_tag()

    def _emit_end_tag(self) -> None:
        name = self._buffer
        if not self._open_elements:
            raise StructuralError(
                f"End tag </{name}> has no matching start tag", self._token_start
            )
        expected = self._open_elements[-1]
        if name != expected:
            raise MismatchedTagError(expected, name, self._token_start)
        self._open_elements.pop()
        self._pending.append(EndTag(name, self._token_start))
        self._buffer = ""
        self.state = LexerState.TEXT_CONTENT

    # Comments, CDATA, DOCTYPE

    def _process_markup_declaration(self, char: str) -> None:
        """Decide what follows ``<!``."""
        self._buffer += char
        if self._buffer == _COMMENT_OPEN:
            self._buffer = ""
            self._chars = []
            self.state = LexerState.COMMENT
        elif self._buffer == _CDATA_OPEN:
            self._buffer = ""
            self._chars = []
            self.state = LexerState.CDATA
        elif self._buffer == _DOCTYPE_OPEN:
            if self._root_seen:
                raise XMLSyntaxError(
                    "DOCTYPE declaration must precede the root element",
                    self._token_start
                )
            self._buffer = ""
            self._doctype_depth = 0
            self._doctype_recent = ""
            self._doctype_skip = ""
            self._doctype_name_pending = True
            self._quote_char = ""
            self.state = LexerState.DOCTYPE
        elif not any(
            opener.startswith(self._buffer)
            for opener in (_COMMENT_OPEN, _CDATA_OPEN, _DOCTYPE_OPEN)
        ):
            raise XMLSyntaxError(
                f"Invalid markup declaration <!{self._buffer}", self._token_start
            )

    def _ends_with(self, terminator: str) -> bool:
        return "".join(self._chars[-len(terminator):]) == terminator

    def _process_comment(self, char: str) -> None:
        """Process character in comment content."""
        self._check_char(char)
        self._chars.append(char)
        if char != ">" or not self._ends_with("-->"):
            return

        content = "".join(self._chars[:-3])
        if "--" in content or content.endswith("-"):
            raise XMLSyntaxError("'--' is not allowed inside a comment", self._token_start)
        self._pending.append(Comment(content, self._token_start))
        self._chars = []
        self.state = LexerState.TEXT_CONTENT

    def _process_cdata(self, char: str) -> None:
        """Process character in CDATA content."""
        self._check_char(char)
        self._chars.append(char)
        if char != ">" or not self._ends_with("]]>"):
            return

        content = "".join(self._chars[:-3])
        if content:
            if not self._open_elements:
                raise StructuralError(
                    "CDATA section outside the root element", self._token_start
                )
            self._pending.append(CharacterData(content, self._token_start))
        self._chars = []
        self.state = LexerState.TEXT_CONTENT

    def _process_doctype(self, char: str) -> None:
        """Skip a DOCTYPE declaration, including any internal subset.

        Comments and processing instructions inside the internal subset are
        skipped whole, so quote characters in them are not literals.
        """
        if self._doctype_name_pending:
            if char not in WHITESPACE:
                raise self._error("Expected whitespace after <!DOCTYPE")
            self._doctype_name_pending = False
            return

        if self._doctype_skip:
            self._doctype_recent = (self._doctype_recent + char)[-3:]
            if self._doctype_recent.endswith(self._doctype_skip):
                self._doctype_skip = ""
                self._doctype_recent = ""
            return

        if self._quote_char:
            if char == self._quote_char:
                self._quote_char = ""
            return

        self._doctype_recent = (self._doctype_recent + char)[-4:]
        if self._doctype_depth > 0:
            if self._doctype_recent.endswith("<!--"):
                self._doctype_skip = "-->"
                self._doctype_recent = ""
                return
            if self._doctype_recent.endswith("<?"):
                self._doctype_skip = "?>"
                self._doctype_recent = ""
                return

        if char in ('"', "'"):
            self._quote_char = char
            self._doctype_recent = ""
        elif char == "[":
            self._doctype_depth += 1
        elif char == "]":
            self._doctype_depth -= 1
        elif char == ">" and self._doctype_depth <= 0:
            self.logger.debug("Skipped DOCTYPE declaration")
            self.state = LexerState.TEXT_CONTENT

    # Processing instructions

    def _process_pi_target(self, char: str) -> None:
        """Process character in a processing instruction target."""
        if (is_name_char(char) if self._buffer else is_name_start_char(char)):
            self._buffer += char
            return
        if not self._buffer:
            raise self._error("Processing instruction has no target")

        self._pi_target = self._buffer
        self._buffer = ""
        if self._pi_target.lower() == "xml" and self._token_start.offset != 0:
            raise XMLSyntaxError(
                "XML declaration is only allowed at the start of the document",
                self._token_start
            )
        if char in WHITESPACE:
            self._chars = []
        elif char == "?":
            self._chars = ["?"]
        else:
            raise self._error(f"Invalid character in processing instruction target: {char!r}")
        self.state = LexerState.PI_CONTENT

    def _process_pi_content(self, char: str) -> None:
        """Process character in processing instruction data."""
        self._check_char(char)
        self._chars.append(char)
        if char != ">" or not self._ends_with("?>"):
            return

        data = "".join(self._chars[:-2]).lstrip(WHITESPACE)
        self._pending.append(
            ProcessingInstruction(self._pi_target, data, self._token_start)
        )
        self._chars = []
        self.state = LexerState.TEXT_CONTENT
