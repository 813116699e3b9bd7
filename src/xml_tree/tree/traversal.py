"""Depth-first traversal and human-readable display of element trees."""

from typing import Iterator, List, Tuple

from xml_tree.shared import DisplayOptions

from .node import ElementNode


class PreorderIterator:
    """Pre-order, depth-first iterator driven by an explicit stack.

    Each instance walks the tree once; build a new one (or call
    ``visit_preorder`` again) to restart.
    """

    def __init__(self, root: ElementNode, include_root: bool = True) -> None:
        if include_root:
            self._stack: List[ElementNode] = [root]
        else:
            self._stack = list(reversed(root.children))

    def __iter__(self) -> "PreorderIterator":
        return self

    def __next__(self) -> ElementNode:
        if not self._stack:
            raise StopIteration
        node = self._stack.pop()
        # Reversed so the first child is popped next
        self._stack.extend(reversed(node.children))
        return node


def visit_preorder(node: ElementNode) -> PreorderIterator:
    """Enumerate ``node`` and all its descendants in document order."""
    return PreorderIterator(node)


def iter_children(node: ElementNode) -> PreorderIterator:
    """Enumerate all descendants of ``node`` in document order, excluding it."""
    return PreorderIterator(node, include_root=False)


def _walk_with_levels(node: ElementNode) -> Iterator[Tuple[ElementNode, int, int]]:
    """Yield (node, depth, 1-based position among siblings), pre-order."""
    stack: List[Tuple[ElementNode, int, int]] = [(node, 0, 1)]
    while stack:
        current, level, number = stack.pop()
        yield current, level, number
        children = current.children
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], level + 1, index + 1))


def display(node: ElementNode, options: DisplayOptions = DisplayOptions()) -> Iterator[str]:
    """Yield an indented, human-readable description of the tree.

    Each element produces a numbered ``Tag:`` line, followed one level deeper
    by its text (when not empty) and its attributes. Not round-trip safe.

    Example:
        >>> root = ElementNode("root", children=[ElementNode("a", {"id": "1"}, text="x")])
        >>> for line in display(root):
        ...     print(line)
        1. Tag: root
            1. Tag: a
                Text: "x"
                Attributes:
                    "id" --> "1"
    """
    indent = options.indent
    for current, level, number in _walk_with_levels(node):
        filler = indent * level
        yield f"{filler}{number}. Tag: {current.tag}"

        filler = indent * (level + 1)
        if current.text:
            text = current.text
            if options.max_text_length is not None and len(text) > options.max_text_length:
                text = text[:options.max_text_length] + "..."
            yield f'{filler}Text: "{text}"'
        if current.attributes:
            yield f"{filler}Attributes:"
            for name, value in current.attributes.items():
                yield f'{filler}{indent}"{name}" --> "{value}"'
        if options.show_namespaces and current.namespace_scope:
            yield f"{filler}Namespaces:"
            for prefix, uri in current.namespace_scope.items():
                yield f'{filler}{indent}"{prefix or ""}" --> "{uri}"'
