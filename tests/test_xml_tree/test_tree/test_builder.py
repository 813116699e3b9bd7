"""Tests for the stack-based tree builder."""

import pytest

from xml_tree.shared import ParseOptions, StructuralError
from xml_tree.tokenization import (
    CharacterData,
    Comment,
    EndTag,
    NamespaceDeclEnd,
    NamespaceDeclStart,
    ProcessingInstruction,
    SelfClosingTag,
    StartTag,
    iter_events,
)
from xml_tree.tree import BuilderState, TreeBuilder


def build(events, **options):
    return TreeBuilder(ParseOptions(**options)).build(events)


class TestTreeBuilderConstruction:
    """Test tree construction from events."""

    def test_example_document(self):
        """Test a root with two attributed children."""
        root = build([
            StartTag("root"),
            StartTag("child", [("id", "1")]),
            CharacterData("hello"),
            EndTag("child"),
            StartTag("child", [("id", "2")]),
            CharacterData("world"),
            EndTag("child"),
            EndTag("root"),
        ])

        assert root.tag == "root"
        assert [child.tag for child in root.children] == ["child", "child"]
        assert [child.attributes for child in root.children] == [{"id": "1"}, {"id": "2"}]
        assert [child.text for child in root.children] == ["hello", "world"]

    def test_self_closing_element(self):
        """Test that an empty element has empty text and no children."""
        root = build([SelfClosingTag("a")])

        assert root.tag == "a"
        assert root.text == ""
        assert root.children == []
        assert root.attributes == {}

    def test_attribute_order_preserved(self):
        """Test that the attribute mapping keeps document order."""
        root = build([SelfClosingTag("a", [("z", "1"), ("a", "2"), ("m", "3")])])

        assert list(root.attributes) == ["z", "a", "m"]

    def test_build_from_event_source(self):
        """Test building directly from lexed bytes."""
        root = TreeBuilder().build(iter_events(b"<r><c>t</c></r>"))

        assert root.children[0].text == "t"

    def test_comments_and_pis_ignored(self):
        """Test that comments and processing instructions leave no trace."""
        root = build([
            ProcessingInstruction("xml", 'version="1.0"'),
            Comment("before"),
            StartTag("a"),
            Comment("inside"),
            EndTag("a"),
            Comment("after"),
        ])

        assert root.children == []
        assert root.text == ""


class TestTreeBuilderText:
    """Test text buffering and trimming."""

    def test_chunks_concatenated(self):
        """Test that several chunks form a single text value."""
        root = build([StartTag("a"), CharacterData("x"), CharacterData("&"),
                      CharacterData("y"), EndTag("a")])

        assert root.text == "x&y"

    def test_trim_applies_to_whole_run(self):
        """Test that trimming strips the joined run, not each chunk."""
        events = [StartTag("a"), CharacterData("  hello"), CharacterData(" "),
                  CharacterData("world  "), EndTag("a")]

        assert build(events).text == "  hello world  "
        assert build(events, trim_text=True).text == "hello world"

    def test_mixed_content_concatenated(self):
        """Test that text around child elements is joined onto the parent."""
        events = [StartTag("a"), CharacterData(" x "), SelfClosingTag("b"),
                  CharacterData(" y "), EndTag("a")]

        root = build(events)
        trimmed = build(events, trim_text=True)

        assert root.text == " x  y "
        assert trimmed.text == "xy"
        assert trimmed.children[0].text == ""

    def test_comment_splits_text_run(self):
        """Test that a comment ends the current text run."""
        events = [StartTag("a"), CharacterData(" a "), Comment("c"),
                  CharacterData(" b "), EndTag("a")]

        assert build(events, trim_text=True).text == "ab"

    def test_whitespace_only_run_trimmed_away(self):
        """Test that indentation disappears when trimming."""
        root = build([StartTag("a"), CharacterData("\n    "), SelfClosingTag("b"),
                      CharacterData("\n"), EndTag("a")], trim_text=True)

        assert root.text == ""

    def test_whitespace_outside_root_tolerated(self):
        """Test that whitespace-only text with an empty stack is ignored."""
        root = build([CharacterData("\n"), SelfClosingTag("a"), CharacterData("  ")])

        assert root.tag == "a"

    def test_text_outside_root_rejected(self):
        """Test that real text with an empty stack is a structural error."""
        with pytest.raises(StructuralError, match="Text outside the root element"):
            build([SelfClosingTag("a"), CharacterData("junk")])


class TestTreeBuilderNamespaces:
    """Test namespace scope snapshots."""

    def test_scope_limited_to_declaring_subtree(self):
        """Test that a declaration reaches descendants but not earlier siblings."""
        root = build([
            StartTag("r"),
            SelfClosingTag("before"),
            NamespaceDeclStart("p", "urn:p"),
            StartTag("a"),
            SelfClosingTag("{urn:p}d"),
            EndTag("a"),
            NamespaceDeclEnd("p"),
            SelfClosingTag("after"),
            EndTag("r"),
        ])

        before, a, after = root.children
        assert root.namespace_scope == {}
        assert before.namespace_scope == {}
        assert a.namespace_scope == {"p": "urn:p"}
        assert a.children[0].namespace_scope == {"p": "urn:p"}
        assert after.namespace_scope == {}

    def test_previous_binding_restored(self):
        """Test that an inner redeclaration is undone at its end."""
        root = build([
            NamespaceDeclStart("p", "u1"),
            StartTag("r"),
            NamespaceDeclStart("p", "u2"),
            SelfClosingTag("c"),
            NamespaceDeclEnd("p"),
            SelfClosingTag("d"),
            EndTag("r"),
            NamespaceDeclEnd("p"),
        ])

        assert root.children[0].namespace_scope == {"p": "u2"}
        assert root.children[1].namespace_scope == {"p": "u1"}

    def test_scope_snapshots_are_independent(self):
        """Test that each element owns its own scope dictionary."""
        root = build([NamespaceDeclStart(None, "urn:d"), StartTag("r"),
                      SelfClosingTag("c"), EndTag("r"), NamespaceDeclEnd(None)])

        root.children[0].namespace_scope["x"] = "y"

        assert root.namespace_scope == {None: "urn:d"}

    def test_unmatched_namespace_end(self):
        """Test that ending an undeclared prefix is a structural error."""
        with pytest.raises(StructuralError, match="closed without a declaration"):
            build([StartTag("a"), NamespaceDeclEnd("p")])


class TestTreeBuilderStates:
    """Test the builder state machine and its error cases."""

    def test_state_transitions(self):
        """Test EMPTY -> BUILDING -> COMPLETE -> DONE."""
        builder = TreeBuilder()
        assert builder.state is BuilderState.EMPTY

        builder.feed(StartTag("a"))
        assert builder.state is BuilderState.BUILDING

        builder.feed(EndTag("a"))
        assert builder.state is BuilderState.COMPLETE

        builder.close()
        assert builder.state is BuilderState.DONE

    def test_depth_changes_by_one(self):
        """Test that each start pushes one element and each end pops one."""
        builder = TreeBuilder()
        depths = []
        for event in [StartTag("a"), StartTag("b"), StartTag("c"),
                      EndTag("c"), EndTag("b"), StartTag("d"), EndTag("d"), EndTag("a")]:
            before = builder.depth
            builder.feed(event)
            depths.append(builder.depth - before)

        assert depths == [1, 1, 1, -1, -1, 1, -1, -1]
        assert builder.depth == 0

    def test_empty_document(self):
        """Test that no elements at all is a structural error."""
        with pytest.raises(StructuralError, match="Document contains no root element"):
            build([Comment("nothing")])

    def test_unclosed_elements(self):
        """Test that open elements at the end are a structural error."""
        with pytest.raises(StructuralError, match="2 unclosed element\\(s\\): a, b"):
            build([StartTag("a"), StartTag("b")])

    def test_end_tag_on_empty_stack(self):
        """Test that the depth can never go negative."""
        with pytest.raises(StructuralError, match="without an open element"):
            build([EndTag("a")])

    def test_mismatched_end_tag(self):
        """Test the builder's own end-tag check."""
        with pytest.raises(StructuralError, match="does not match open element <b>"):
            build([StartTag("a"), StartTag("b"), EndTag("a")])

    def test_second_root(self):
        """Test that a start tag after the root closed is rejected."""
        with pytest.raises(StructuralError, match="after the root element was closed"):
            build([SelfClosingTag("a"), SelfClosingTag("b")])

    def test_feed_after_close(self):
        """Test that a closed builder accepts no more events."""
        builder = TreeBuilder()
        builder.feed(SelfClosingTag("a"))
        builder.close()

        with pytest.raises(StructuralError, match="received after the build was closed"):
            builder.feed(Comment("late"))

    def test_max_depth(self):
        """Test the configured nesting limit."""
        with pytest.raises(StructuralError, match="Maximum element depth 2 exceeded at <c>"):
            build([StartTag("a"), StartTag("b"), StartTag("c")], max_depth=2)

    def test_unknown_event(self):
        """Test that unknown objects are rejected."""
        with pytest.raises(TypeError, match="Unknown event type: str"):
            TreeBuilder().feed("<a>")  # type: ignore

    def test_statistics(self):
        """Test counters gathered during a build."""
        builder = TreeBuilder()
        builder.build([StartTag("a"), StartTag("b"), CharacterData("xyz"),
                       EndTag("b"), SelfClosingTag("c"), EndTag("a")])

        stats = builder.statistics
        assert stats.events_processed == 6
        assert stats.elements_created == 3
        assert stats.max_depth == 2
        assert stats.characters_processed == 3
        assert stats.processing_time_ms >= 0
        assert stats.to_dict()["elements_created"] == 3
