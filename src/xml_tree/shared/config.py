"""Configuration classes for parsing, serialization and display.

Each options object validates itself on construction. ``ToolConfig`` groups
them for the command-line tool and can be loaded from a JSON file.
"""

import codecs
import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ConfigValidationError


@dataclass(frozen=True)
class ParseOptions:
    """Options controlling how bytes become an element tree."""

    # Strip leading/trailing whitespace from each run of character data
    trim_text: bool = False
    process_namespaces: bool = True
    # Explicit encoding, overrides BOM and XML declaration detection
    encoding: Optional[str] = None
    max_depth: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate parse options."""
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("max_depth must be > 0 or None")
        if self.encoding is not None:
            try:
                codecs.lookup(self.encoding)
            except LookupError:
                raise ValueError(f"Unknown encoding: {self.encoding}") from None


@dataclass(frozen=True)
class SerializeOptions:
    """Options controlling XML text output."""

    indent: str = "    "
    xml_declaration: bool = False
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate serialize options."""
        if self.indent.strip():
            raise ValueError("indent must contain only whitespace")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown encoding: {self.encoding}") from None


@dataclass(frozen=True)
class DisplayOptions:
    """Options for the human-readable tree dump."""

    indent: str = "    "
    show_namespaces: bool = False
    max_text_length: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate display options."""
        if self.max_text_length is not None and self.max_text_length <= 0:
            raise ValueError("max_text_length must be > 0 or None")


_SECTIONS = {
    "parse": ParseOptions,
    "serialize": SerializeOptions,
    "display": DisplayOptions,
}


@dataclass(frozen=True)
class ToolConfig:
    """Complete configuration for the command-line tool."""

    parse: ParseOptions = field(default_factory=ParseOptions)
    serialize: SerializeOptions = field(default_factory=SerializeOptions)
    display: DisplayOptions = field(default_factory=DisplayOptions)

    def override(self, **kwargs: Any) -> "ToolConfig":
        """Create a new configuration with specific overrides.

        Keys use ``section__field`` notation.

        Example:
            >>> config = ToolConfig().override(parse__trim_text=True)
            >>> config.parse.trim_text
            True
        """
        nested: Dict[str, Dict[str, Any]] = {}
        for key, value in kwargs.items():
            section, sep, field_name = key.partition("__")
            if not sep:
                raise ConfigValidationError(
                    f"Override key must look like section__field: {key}",
                    field_name=key,
                    suggestions=[f"{name}__{key}" for name in _SECTIONS]
                )
            nested.setdefault(section, {})[field_name] = value
        return self._apply(nested)

    def _apply(self, nested: Dict[str, Dict[str, Any]]) -> "ToolConfig":
        new_sections = {}
        for section, values in nested.items():
            if section not in _SECTIONS:
                raise ConfigValidationError(
                    f"Unknown configuration section: {section}",
                    field_name=section,
                    suggestions=sorted(_SECTIONS)
                )
            known = {f.name for f in fields(_SECTIONS[section])}
            unknown = sorted(set(values) - known)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown {section} option(s): {', '.join(unknown)}",
                    field_name=f"{section}.{unknown[0]}",
                    suggestions=sorted(known)
                )
            try:
                new_sections[section] = replace(getattr(self, section), **values)
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name=section) from e
        return replace(self, **new_sections)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolConfig":
        """Create configuration from dictionary.

        Missing sections and fields keep their defaults.
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration must be a JSON object")
        for section, values in data.items():
            if not isinstance(values, dict):
                raise ConfigValidationError(
                    f"Configuration section {section} must be an object",
                    field_name=section
                )
        return cls()._apply(data)

    @classmethod
    def from_json(cls, json_str: str) -> "ToolConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ToolConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            with path.open(encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigValidationError(
                f"Could not read config file {path}: {e}",
                field_name=str(path)
            ) from e
        return cls.from_json(content)
