"""Shared utilities for XML tree parsing.

This module provides the error taxonomy, configuration objects, statistics
and logging helpers used across all processing layers.
"""

from .config import (
    DisplayOptions,
    ParseOptions,
    SerializeOptions,
    ToolConfig,
)
from .errors import (
    ConfigError,
    ConfigValidationError,
    MismatchedTagError,
    ParseError,
    SerializationError,
    SourcePosition,
    StructuralError,
    XMLSyntaxError,
    XMLTreeError,
)
from .logging import (
    ComponentLogger,
    configure_logging,
    get_logger,
)
from .result import ParseStatistics

__all__ = [
    "ComponentLogger",
    "ConfigError",
    "ConfigValidationError",
    "DisplayOptions",
    "MismatchedTagError",
    "ParseError",
    "ParseOptions",
    "ParseStatistics",
    "SerializationError",
    "SerializeOptions",
    "SourcePosition",
    "StructuralError",
    "ToolConfig",
    "XMLSyntaxError",
    "XMLTreeError",
    "configure_logging",
    "get_logger",
]
