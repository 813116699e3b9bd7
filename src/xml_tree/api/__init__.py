"""Public parsing API and interop adapters."""

from .adapters import (
    AdapterError,
    AdapterMetadata,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
)
from .parser import XMLTreeParser, parse_file, parse_from_bytes, parse_string

__all__ = [
    "AdapterError",
    "AdapterMetadata",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "XMLTreeParser",
    "get_adapter",
    "parse_file",
    "parse_from_bytes",
    "parse_string",
]
