"""Conversion between ElementNode trees and other XML libraries.

Both supported libraries use the same ``{uri}local`` convention for
namespaced names, so tags and attribute names pass through unchanged.
Text is mapped lossily in the same way the parser stores it: an element's
text and the tails of its children are concatenated into ``ElementNode.text``,
and on the way out all of it becomes the target element's ``text``.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from xml_tree.shared import XMLTreeError, get_logger
from xml_tree.tree import ElementNode


class AdapterError(XMLTreeError):
    """A tree could not be converted to or from a target library."""


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    target_library: str
    description: str


class IntegrationAdapter(ABC):
    """Interface for bidirectional conversion with a target library."""

    def __init__(self, parse_id: Optional[str] = None) -> None:
        self.parse_id = parse_id
        self.logger = get_logger(__name__, parse_id, f"{self.metadata.name}_adapter")
        self.conversions = 0
        self.total_conversion_time_ms = 0.0

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Describe the adapter."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the target library can be imported."""

    @abstractmethod
    def to_target(self, node: ElementNode) -> Any:
        """Convert ``node`` and its subtree to the target library's element."""

    @abstractmethod
    def from_target(self, element: Any) -> ElementNode:
        """Convert a target library element and its subtree to an ElementNode."""

    def _record(self, start_time: float, direction: str, root_tag: str) -> None:
        elapsed = (time.perf_counter() - start_time) * 1000
        self.conversions += 1
        self.total_conversion_time_ms += elapsed
        self.logger.debug(
            "Conversion completed",
            extra={"direction": direction, "root_tag": root_tag, "conversion_time_ms": elapsed}
        )

    @staticmethod
    def _collect_text(element: Any) -> Tuple[str, List[Any]]:
        """Direct text of ``element`` and its element children.

        Comments and processing instructions are dropped, but their tails
        still count as text of ``element``.
        """
        parts = [element.text or ""]
        children = []
        for child in element:
            if isinstance(child.tag, str):
                children.append(child)
            parts.append(child.tail or "")
        return "".join(parts), children


class ElementTreeAdapter(IntegrationAdapter):
    """Adapter for ``xml.etree.ElementTree``.

    ElementTree keeps no prefix bindings, so converted nodes have an empty
    ``namespace_scope`` and the serializer reconstructs prefixes for them.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            target_library="xml.etree.ElementTree",
            description="Conversion between ElementNode and ElementTree elements",
        )

    def is_available(self) -> bool:
        return True

    def to_target(self, node: ElementNode) -> Any:
        import xml.etree.ElementTree as ET

        start_time = time.perf_counter()
        root = ET.Element(node.tag, dict(node.attributes))
        pending = [(node, root)]
        while pending:
            source, target = pending.pop()
            if source.text:
                target.text = source.text
            for child in source.children:
                target_child = ET.SubElement(target, child.tag, dict(child.attributes))
                pending.append((child, target_child))

        self._record(start_time, "to_target", node.tag)
        return root

    def from_target(self, element: Any) -> ElementNode:
        start_time = time.perf_counter()
        if not isinstance(getattr(element, "tag", None), str):
            raise AdapterError(f"Not an ElementTree element: {element!r}")

        root = ElementNode(tag=element.tag, attributes=dict(element.attrib))
        pending = [(element, root)]
        while pending:
            source, target = pending.pop()
            target.text, children = self._collect_text(source)
            for child in children:
                node = ElementNode(tag=child.tag, attributes=dict(child.attrib))
                target.children.append(node)
                pending.append((child, node))

        self._record(start_time, "from_target", root.tag)
        return root


class LxmlAdapter(IntegrationAdapter):
    """Adapter for ``lxml.etree``.

    Prefix bindings travel through ``nsmap`` in both directions; each lxml
    element is created with only the bindings its parent does not already
    have, so the resulting document declares namespaces where the source did.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Conversion between ElementNode and lxml.etree elements",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    @staticmethod
    def _new_bindings(
        scope: Dict[Optional[str], str],
        parent_scope: Dict[Optional[str], str]
    ) -> Dict[Optional[str], str]:
        # lxml cannot express an empty default namespace declaration
        return {
            prefix: uri for prefix, uri in scope.items()
            if uri and parent_scope.get(prefix) != uri
        }

    def to_target(self, node: ElementNode) -> Any:
        from lxml import etree

        start_time = time.perf_counter()
        try:
            root = etree.Element(
                node.tag, dict(node.attributes),
                nsmap=self._new_bindings(node.namespace_scope, {})
            )
            pending = [(node, root)]
            while pending:
                source, target = pending.pop()
                if source.text:
                    target.text = source.text
                for child in source.children:
                    target_child = etree.SubElement(
                        target, child.tag, dict(child.attributes),
                        nsmap=self._new_bindings(child.namespace_scope, source.namespace_scope)
                    )
                    pending.append((child, target_child))
        except ValueError as e:
            raise AdapterError(f"Cannot convert <{node.tag}> to lxml: {e}") from e

        self._record(start_time, "to_target", node.tag)
        return root

    def from_target(self, element: Any) -> ElementNode:
        start_time = time.perf_counter()
        if not isinstance(getattr(element, "tag", None), str):
            raise AdapterError(f"Not an lxml element: {element!r}")

        root = ElementNode(
            tag=element.tag,
            attributes=dict(element.attrib),
            namespace_scope=dict(element.nsmap),
        )
        pending = [(element, root)]
        while pending:
            source, target = pending.pop()
            target.text, children = self._collect_text(source)
            for child in children:
                node = ElementNode(
                    tag=child.tag,
                    attributes=dict(child.attrib),
                    namespace_scope=dict(child.nsmap),
                )
                target.children.append(node)
                pending.append((child, node))

        self._record(start_time, "from_target", root.tag)
        return root


_ADAPTERS = {
    "elementtree": ElementTreeAdapter,
    "lxml": LxmlAdapter,
}


def get_adapter(name: str, parse_id: Optional[str] = None) -> IntegrationAdapter:
    """Create the adapter registered under ``name``.

    Raises:
        AdapterError: Unknown name, or the target library is not installed
    """
    try:
        adapter_class = _ADAPTERS[name]
    except KeyError:
        known = ", ".join(sorted(_ADAPTERS))
        raise AdapterError(f"Unknown adapter {name!r}; available: {known}") from None
    adapter = adapter_class(parse_id)
    if not adapter.is_available():
        raise AdapterError(f"Adapter {name!r} requires {adapter.metadata.target_library}")
    return adapter
