"""Test module for xml_tree package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import xml_tree

    # Assert
    assert xml_tree is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    # Arrange & Act
    import xml_tree

    # Assert
    assert isinstance(xml_tree.__version__, str)
    assert xml_tree.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    import xml_tree

    assert xml_tree.__author__ == "XML Tree Team"


def test_package_exports_entry_points() -> None:
    """Test that the root package re-exports the core entry points."""
    import xml_tree

    for name in ("parse_from_bytes", "parse_string", "parse_file", "XMLTreeParser",
                 "serialize", "display", "visit_preorder", "ElementNode"):
        assert name in xml_tree.__all__
        assert callable(getattr(xml_tree, name))


def test_root_exports_round_trip() -> None:
    """Test parsing and serializing through the root package only."""
    import xml_tree

    root = xml_tree.parse_from_bytes(b"<a>x</a>")

    assert xml_tree.serialize(root) == "<a>x</a>\n"
