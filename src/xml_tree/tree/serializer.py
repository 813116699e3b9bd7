"""Serialization of element trees back to XML text.

Namespaced names are re-qualified through a reverse lookup of each
element's ``namespace_scope`` (uri -> prefix, first match wins). URIs with no
binding in scope get a reconstructed ``nsN`` prefix declared on the element
that first needs it.

Known limitations kept on purpose: an element's own text is only written
when it has no children, and text escaping covers ``&`` and ``<`` only.
"""

from typing import Dict, List, Optional, Tuple, Union

from xml_tree.shared import SerializationError, SerializeOptions, get_logger
from xml_tree.tokenization.namespaces import XML_NAMESPACE, split_qualified

from .node import ElementNode

Scope = Dict[Optional[str], str]

logger = get_logger(__name__, component="serializer")

_MISSING = object()

_ATTRIBUTE_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    '"': "&quot;",
    "\n": "&#10;",
    "\t": "&#9;",
}


def escape_text(text: str) -> str:
    """Escape character data: ``&`` and ``<`` only."""
    return text.replace("&", "&amp;").replace("<", "&lt;")


def escape_attribute(value: str) -> str:
    """Escape a value for a double-quoted attribute."""
    if not any(char in value for char in _ATTRIBUTE_ESCAPES):
        return value
    return "".join(_ATTRIBUTE_ESCAPES.get(char, char) for char in value)


def reverse_lookup(scope: Scope, uri: str, allow_default: bool = True) -> Union[str, None, object]:
    """Find the prefix bound to ``uri``.

    Returns the prefix, None for the default namespace, or a sentinel when
    the URI is not bound in ``scope``.
    """
    for prefix, bound in scope.items():
        if bound == uri and (prefix is not None or allow_default):
            return prefix
    return _MISSING


class XMLWriter:
    """Accumulates the serialized form of one tree."""

    def __init__(self, options: Optional[SerializeOptions] = None) -> None:
        self.options = options or SerializeOptions()
        self._parts: List[str] = []
        self._generated = 0

    def getvalue(self) -> str:
        return "".join(self._parts)

    def write_declaration(self) -> None:
        self._parts.append(f'<?xml version="1.0" encoding="{self.options.encoding}"?>\n')

    def write_tree(self, root: ElementNode) -> None:
        """Append ``root`` and its subtree, depth-first pre-order."""
        indent = self.options.indent
        # Entries are either pending elements or literal closing-tag text.
        # Pending elements carry the parent scope as written and the
        # reconstructed bindings inherited from ancestors.
        stack: List[Union[str, Tuple[ElementNode, int, Optional[Scope], Scope]]] = [
            (root, 0, None, {})
        ]

        while stack:
            item = stack.pop()
            if isinstance(item, str):
                self._parts.append(item)
                continue

            node, depth, parent_scope, generated = item
            scope: Scope = dict(node.namespace_scope)
            for prefix, uri in generated.items():
                scope.setdefault(prefix, uri)
            qname = self._qualify(node.tag, scope, attribute=False)
            attributes = [
                (self._qualify(name, scope, attribute=True), value)
                for name, value in node.attributes.items()
            ]

            pad = indent * depth
            self._parts.append(f"{pad}<{qname}")
            for name, value in attributes:
                self._parts.append(f' {name}="{escape_attribute(value)}"')
            for prefix, uri in self._declarations(scope, parent_scope):
                name = "xmlns" if prefix is None else f"xmlns:{prefix}"
                self._parts.append(f' {name}="{escape_attribute(uri)}"')

            if node.children:
                self._parts.append(">\n")
                stack.append(f"{pad}</{qname}>\n")
                inherited = {
                    prefix: uri for prefix, uri in scope.items()
                    if prefix not in node.namespace_scope
                }
                for child in reversed(node.children):
                    stack.append((child, depth + 1, scope, inherited))
            else:
                self._parts.append(f">{escape_text(node.text)}</{qname}>\n")

    @staticmethod
    def _declarations(scope: Scope, parent_scope: Optional[Scope]) -> List[Tuple[Optional[str], str]]:
        if parent_scope is None:
            return [
                (prefix, uri) for prefix, uri in scope.items()
                if not (prefix is None and uri == "")
            ]
        return [
            (prefix, uri) for prefix, uri in scope.items()
            if parent_scope.get(prefix, _MISSING) != uri
        ]

    def _qualify(self, name: str, scope: Scope, attribute: bool) -> str:
        """Turn a composite ``{uri}local`` name into ``prefix:local``.

        May add bindings to ``scope``: a reconstructed prefix for an unbound
        URI, or an empty default namespace for an unqualified element that
        would otherwise fall into an inherited default namespace.
        """
        uri, local_name = split_qualified(name)
        if not local_name:
            raise SerializationError(f"Invalid element or attribute name: {name!r}")

        if uri is None:
            if not attribute and scope.get(None):
                scope[None] = ""
            return local_name
        if uri == XML_NAMESPACE:
            return f"xml:{local_name}"

        prefix = reverse_lookup(scope, uri, allow_default=not attribute)
        if prefix is _MISSING:
            prefix = self._new_prefix(scope)
            scope[prefix] = uri
            logger.debug(
                "Reconstructed namespace prefix",
                extra={"prefix": prefix, "uri": uri}
            )
        if prefix is None:
            return local_name
        return f"{prefix}:{local_name}"

    def _new_prefix(self, scope: Scope) -> str:
        while f"ns{self._generated}" in scope:
            self._generated += 1
        prefix = f"ns{self._generated}"
        self._generated += 1
        return prefix


def serialize(node: ElementNode, options: Optional[SerializeOptions] = None) -> str:
    """Serialize ``node`` and its subtree to XML text.

    Output is deterministic for a given tree: one element per line, children
    indented one level per depth.

    Example:
        >>> serialize(ElementNode("a", text="x & y"))
        '<a>x &amp; y</a>\\n'
    """
    writer = XMLWriter(options)
    if writer.options.xml_declaration:
        writer.write_declaration()
    writer.write_tree(node)
    return writer.getvalue()


def serialize_to_bytes(node: ElementNode, options: Optional[SerializeOptions] = None) -> bytes:
    """Serialize ``node`` and encode the text with ``options.encoding``."""
    options = options or SerializeOptions()
    return serialize(node, options).encode(options.encoding, "xmlcharrefreplace")
