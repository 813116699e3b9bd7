"""Tests for ElementNode."""

import pytest

from xml_tree.tokenization import XML_NAMESPACE
from xml_tree.tree import ElementNode


@pytest.fixture
def sample_tree() -> ElementNode:
    """root -> (a -> (b), c, a)"""
    b = ElementNode("b", text="deep")
    first_a = ElementNode("a", {"id": "1"}, children=[b])
    c = ElementNode("c")
    second_a = ElementNode("a", {"id": "2"})
    return ElementNode("root", children=[first_a, c, second_a])


class TestElementNodeCreation:
    """Test construction and basic protocol."""

    def test_defaults(self):
        """Test that an element without content has empty text and no children."""
        node = ElementNode("a")

        assert node.text == ""
        assert node.children == []
        assert node.attributes == {}
        assert node.namespace_scope == {}
        assert len(node) == 0

    def test_empty_tag_raises_error(self):
        """Test that an empty tag raises ValueError."""
        with pytest.raises(ValueError, match="Element tag cannot be empty"):
            ElementNode("")

    def test_defaults_not_shared(self):
        """Test that mutable defaults are per instance."""
        first = ElementNode("a")
        second = ElementNode("b")

        first.attributes["x"] = "1"
        first.add_child(ElementNode("c"))

        assert second.attributes == {}
        assert second.children == []

    def test_identity_equality(self):
        """Test that nodes compare by identity."""
        assert ElementNode("a") != ElementNode("a")

    def test_add_child_type_check(self):
        """Test adding a non-node raises TypeError."""
        with pytest.raises(TypeError, match="Child must be an ElementNode instance"):
            ElementNode("a").add_child("b")  # type: ignore

    def test_iterates_children(self, sample_tree):
        """Test that iterating a node yields its direct children."""
        assert [child.tag for child in sample_tree] == ["a", "c", "a"]
        assert repr(sample_tree) == "<ElementNode root children=3>"


class TestElementNodeNames:
    """Test namespace-related properties."""

    def test_plain_name(self):
        """Test a tag without namespace."""
        node = ElementNode("item")

        assert node.local_name == "item"
        assert node.namespace_uri is None
        assert node.prefix is None

    def test_prefixed_name(self):
        """Test a namespaced tag bound to a prefix in scope."""
        node = ElementNode("{urn:p}item", namespace_scope={None: "urn:d", "p": "urn:p"})

        assert node.local_name == "item"
        assert node.namespace_uri == "urn:p"
        assert node.prefix == "p"

    def test_default_namespace_has_no_prefix(self):
        """Test a tag in the default namespace."""
        node = ElementNode("{urn:d}item", namespace_scope={None: "urn:d"})

        assert node.prefix is None

    def test_xml_namespace_prefix(self):
        """Test the implicit xml prefix."""
        assert ElementNode(f"{{{XML_NAMESPACE}}}x").prefix == "xml"


class TestElementNodeQueries:
    """Test lookup helpers."""

    def test_get_attribute(self, sample_tree):
        """Test attribute access with default."""
        first_a = sample_tree.children[0]

        assert first_a.get("id") == "1"
        assert first_a.get("missing") is None
        assert first_a.get("missing", "x") == "x"

    def test_find(self, sample_tree):
        """Test first match in document order."""
        assert sample_tree.find("a").get("id") == "1"
        assert sample_tree.find("b").text == "deep"
        assert sample_tree.find("zzz") is None

    def test_find_excludes_self(self, sample_tree):
        """Test that find searches descendants only."""
        assert sample_tree.find("root") is None

    def test_find_all(self, sample_tree):
        """Test all matches in document order."""
        assert [node.get("id") for node in sample_tree.find_all("a")] == ["1", "2"]

    def test_iter_and_collect(self, sample_tree):
        """Test pre-order enumeration including and excluding self."""
        assert [node.tag for node in sample_tree.iter()] == ["root", "a", "b", "c", "a"]
        assert [node.tag for node in sample_tree.iter_descendants()] == ["a", "b", "c", "a"]
        assert [node.tag for node in sample_tree.collect()] == ["root", "a", "b", "c", "a"]


class TestElementNodeComparison:
    """Test structural comparison and conversion."""

    def test_equivalent_trees(self, sample_tree):
        """Test that separately built identical trees are equivalent."""
        other = ElementNode("root", children=[
            ElementNode("a", {"id": "1"}, children=[ElementNode("b", text="deep")]),
            ElementNode("c"),
            ElementNode("a", {"id": "2"}),
        ])

        assert sample_tree.is_equivalent(other)
        assert other.is_equivalent(sample_tree)

    @pytest.mark.parametrize("change", ["tag", "attribute", "text", "child"])
    def test_different_trees(self, sample_tree, change):
        """Test that each kind of difference is detected."""
        other = ElementNode("root", children=[
            ElementNode("a", {"id": "1"}, children=[ElementNode("b", text="deep")]),
            ElementNode("c"),
            ElementNode("a", {"id": "2"}),
        ])
        target = other.children[0].children[0]
        if change == "tag":
            target.tag = "B"
        elif change == "attribute":
            target.attributes["x"] = "1"
        elif change == "text":
            target.text = "shallow"
        else:
            target.add_child(ElementNode("extra"))

        assert not sample_tree.is_equivalent(other)

    def test_scope_comparison_optional(self):
        """Test that namespace scopes only matter when requested."""
        left = ElementNode("a", namespace_scope={"p": "urn:p"})
        right = ElementNode("a")

        assert left.is_equivalent(right)
        assert not left.is_equivalent(right, compare_scope=True)

    def test_attribute_order_ignored(self):
        """Test that attribute order does not affect equivalence."""
        left = ElementNode("a", {"x": "1", "y": "2"})
        right = ElementNode("a", {"y": "2", "x": "1"})

        assert left.is_equivalent(right)

    def test_to_dict(self):
        """Test dictionary conversion."""
        node = ElementNode(
            "{urn:d}r",
            {"k": "v"},
            namespace_scope={None: "urn:d"},
            children=[ElementNode("c", text="t")],
        )

        assert node.to_dict() == {
            "tag": "{urn:d}r",
            "attributes": {"k": "v"},
            "namespaces": {"": "urn:d"},
            "children": [{"tag": "c", "attributes": {}, "text": "t"}],
        }
