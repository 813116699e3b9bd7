"""Element nodes of a parsed XML tree."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from xml_tree.tokenization.namespaces import XML_NAMESPACE, split_qualified


@dataclass(eq=False)
class ElementNode:
    """One XML element with its attributes, text and child elements.

    ``tag`` is either a bare local name or ``{uri}local`` for elements in a
    namespace. ``namespace_scope`` is a snapshot of the prefix bindings in
    scope when the element opened; the default namespace uses the key None.
    ``text`` holds every direct text fragment concatenated, wherever it
    appeared relative to the children.

    Nodes have no parent reference; each node is owned by its parent.
    """

    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    namespace_scope: Dict[Optional[str], str] = field(default_factory=dict)
    text: str = ""
    children: List["ElementNode"] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate element values."""
        if not self.tag:
            raise ValueError("Element tag cannot be empty")

    def __repr__(self) -> str:
        return f"<ElementNode {self.tag} children={len(self.children)}>"

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator["ElementNode"]:
        return iter(self.children)

    @property
    def local_name(self) -> str:
        """Tag name without namespace."""
        return split_qualified(self.tag)[1]

    @property
    def namespace_uri(self) -> Optional[str]:
        """Namespace URI of the tag, or None."""
        return split_qualified(self.tag)[0]

    @property
    def prefix(self) -> Optional[str]:
        """Prefix bound to this element's namespace in its own scope.

        None for elements without a namespace or in the default namespace.
        """
        uri = self.namespace_uri
        if uri is None:
            return None
        if uri == XML_NAMESPACE:
            return "xml"
        for prefix, bound in self.namespace_scope.items():
            if bound == uri:
                return prefix
        return None

    def add_child(self, child: "ElementNode") -> None:
        """Append a child element."""
        if not isinstance(child, ElementNode):
            raise TypeError("Child must be an ElementNode instance")
        self.children.append(child)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def find(self, tag: str) -> Optional["ElementNode"]:
        """Find first descendant element with matching tag, in document order."""
        for node in self.iter_descendants():
            if node.tag == tag:
                return node
        return None

    def find_all(self, tag: str) -> List["ElementNode"]:
        """Find all descendant elements with matching tag."""
        return [node for node in self.iter_descendants() if node.tag == tag]

    def iter(self) -> Iterator["ElementNode"]:
        """Iterate over this element and all descendants, pre-order."""
        from .traversal import visit_preorder
        return visit_preorder(self)

    def iter_descendants(self) -> Iterator["ElementNode"]:
        """Iterate over all descendants, pre-order, excluding this element."""
        from .traversal import iter_children
        return iter_children(self)

    def collect(self) -> List["ElementNode"]:
        """Return this element and all descendants as a pre-order list."""
        return list(self.iter())

    def is_equivalent(self, other: "ElementNode", compare_scope: bool = False) -> bool:
        """Compare two trees by tag, attributes, text and child order.

        Args:
            other: Tree to compare against
            compare_scope: Also require equal namespace scopes
        """
        pairs = [(self, other)]
        while pairs:
            left, right = pairs.pop()
            if (
                left.tag != right.tag
                or left.attributes != right.attributes
                or left.text != right.text
                or len(left.children) != len(right.children)
            ):
                return False
            if compare_scope and left.namespace_scope != right.namespace_scope:
                return False
            pairs.extend(zip(left.children, right.children))
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "tag": self.tag,
            "attributes": dict(self.attributes),
        }
        if self.namespace_scope:
            result["namespaces"] = {
                (prefix or ""): uri for prefix, uri in self.namespace_scope.items()
            }
        if self.text:
            result["text"] = self.text
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result
