"""Namespace processing pass over the raw lexer event stream.

Turns ``xmlns`` attributes into scoped namespace declaration events and
rewrites qualified names into the composite ``{uri}local`` form, so that the
tree builder only ever sees a single string per tag or attribute name.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from xml_tree.shared import SourcePosition, XMLSyntaxError

from .events import (
    AttributeList,
    EndTag,
    LexEvent,
    NamespaceDeclEnd,
    NamespaceDeclStart,
    SelfClosingTag,
    StartTag,
)

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"

_UNBOUND = object()


def qualify(uri: Optional[str], local_name: str) -> str:
    """Build the composite ``{uri}local`` name; bare name without a URI."""
    if uri:
        return f"{{{uri}}}{local_name}"
    return local_name


def split_qualified(tag: str) -> Tuple[Optional[str], str]:
    """Split a composite name into ``(uri, local)``; uri is None when absent."""
    if tag.startswith("{"):
        uri, sep, local_name = tag[1:].partition("}")
        if sep:
            return uri, local_name
    return None, tag


class NamespaceProcessor:
    """Resolves prefixes against the bindings in scope at each element.

    Declarations on an element are announced with ``NamespaceDeclStart``
    before its start tag and withdrawn with ``NamespaceDeclEnd`` (in reverse
    order) after its end tag.
    """

    def __init__(self) -> None:
        self._scope: Dict[Optional[str], str] = {}
        # One entry per open element: (prefix, previous binding) pairs
        self._frames: List[List[Tuple[Optional[str], object]]] = []

    @property
    def scope(self) -> Dict[Optional[str], str]:
        """Copy of the bindings currently in scope."""
        return dict(self._scope)

    def process(self, events: Iterable[LexEvent]) -> Iterator[LexEvent]:
        """Yield ``events`` with namespaces resolved.

        Raises:
            XMLSyntaxError: Unbound prefix, reserved prefix misuse, malformed
                qualified name or duplicate expanded attribute
        """
        for event in events:
            if isinstance(event, (StartTag, SelfClosingTag)):
                yield from self._open(event)
                if isinstance(event, SelfClosingTag):
                    yield from self._close()
            elif isinstance(event, EndTag):
                yield EndTag(self._resolve_element(event.name, event.position), event.position)
                yield from self._close()
            else:
                yield event

    def _open(self, event) -> Iterator[LexEvent]:
        declarations, attributes = self._split_declarations(event.attributes, event.position)

        frame: List[Tuple[Optional[str], object]] = []
        for prefix, uri in declarations:
            frame.append((prefix, self._scope.get(prefix, _UNBOUND)))
            self._scope[prefix] = uri
            yield NamespaceDeclStart(prefix, uri, event.position)
        self._frames.append(frame)

        name = self._resolve_element(event.name, event.position)
        resolved = self._resolve_attributes(attributes, event.position)
        yield type(event)(name, resolved, event.position)

    def _close(self) -> Iterator[LexEvent]:
        frame = self._frames.pop()
        for prefix, previous in reversed(frame):
            if previous is _UNBOUND:
                del self._scope[prefix]
            else:
                self._scope[prefix] = previous
            yield NamespaceDeclEnd(prefix)

    def _split_declarations(
        self,
        attributes: AttributeList,
        position: Optional[SourcePosition]
    ) -> Tuple[List[Tuple[Optional[str], str]], AttributeList]:
        declarations: List[Tuple[Optional[str], str]] = []
        regular: AttributeList = []
        for name, value in attributes:
            if name == "xmlns":
                if value in (XML_NAMESPACE, XMLNS_NAMESPACE):
                    raise XMLSyntaxError(f"Reserved namespace {value} cannot be the default", position)
                declarations.append((None, value))
            elif name.startswith("xmlns:"):
                prefix = name[6:]
                self._check_declaration(prefix, value, position)
                declarations.append((prefix, value))
            else:
                regular.append((name, value))
        return declarations, regular

    @staticmethod
    def _check_declaration(prefix: str, uri: str, position: Optional[SourcePosition]) -> None:
        if not prefix or ":" in prefix:
            raise XMLSyntaxError(f"Invalid namespace prefix: {prefix!r}", position)
        if prefix == "xmlns":
            raise XMLSyntaxError("The xmlns prefix cannot be declared", position)
        if prefix == "xml" and uri != XML_NAMESPACE:
            raise XMLSyntaxError("The xml prefix cannot be rebound", position)
        if not uri:
            raise XMLSyntaxError(f"Namespace prefix {prefix} cannot be undeclared", position)

    def _lookup(self, prefix: str, name: str, position: Optional[SourcePosition]) -> str:
        if prefix == "xml":
            return XML_NAMESPACE
        uri = self._scope.get(prefix)
        if uri is None:
            raise XMLSyntaxError(f"Unbound namespace prefix {prefix!r} in {name}", position)
        return uri

    @staticmethod
    def _split_name(name: str, position: Optional[SourcePosition]) -> Tuple[Optional[str], str]:
        prefix, sep, local_name = name.partition(":")
        if not sep:
            return None, name
        if not prefix or not local_name or ":" in local_name:
            raise XMLSyntaxError(f"Invalid qualified name: {name}", position)
        return prefix, local_name

    def _resolve_element(self, name: str, position: Optional[SourcePosition]) -> str:
        prefix, local_name = self._split_name(name, position)
        if prefix is None:
            return qualify(self._scope.get(None), local_name)
        return qualify(self._lookup(prefix, name, position), local_name)

    def _resolve_attributes(
        self,
        attributes: AttributeList,
        position: Optional[SourcePosition]
    ) -> AttributeList:
        resolved: AttributeList = []
        seen = set()
        for name, value in attributes:
            prefix, local_name = self._split_name(name, position)
            # Unprefixed attributes are in no namespace, even under a default one
            if prefix is not None:
                name = qualify(self._lookup(prefix, name, position), local_name)
            if name in seen:
                raise XMLSyntaxError(f"Duplicate attribute {name}", position)
            seen.add(name)
            resolved.append((name, value))
        return resolved
