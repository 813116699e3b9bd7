"""Tests for the configuration system."""

import json
from dataclasses import FrozenInstanceError

import pytest

from xml_tree.shared.config import (
    DisplayOptions,
    ParseOptions,
    SerializeOptions,
    ToolConfig,
)
from xml_tree.shared.errors import ConfigValidationError


class TestParseOptions:
    """Test suite for ParseOptions."""

    def test_default_configuration(self):
        """Test default parse option values."""
        options = ParseOptions()

        assert options.trim_text is False
        assert options.process_namespaces is True
        assert options.encoding is None
        assert options.max_depth is None

    def test_options_are_frozen(self):
        """Test that options cannot be mutated after creation."""
        options = ParseOptions()

        with pytest.raises(FrozenInstanceError):
            options.trim_text = True  # type: ignore

    def test_invalid_max_depth(self):
        """Test that a non-positive max_depth is rejected."""
        with pytest.raises(ValueError, match="max_depth must be > 0"):
            ParseOptions(max_depth=0)

    def test_unknown_encoding(self):
        """Test that an unknown encoding name is rejected."""
        with pytest.raises(ValueError, match="Unknown encoding: no-such-codec"):
            ParseOptions(encoding="no-such-codec")


class TestSerializeAndDisplayOptions:
    """Test suite for SerializeOptions and DisplayOptions."""

    def test_serialize_defaults(self):
        """Test default serialize option values."""
        options = SerializeOptions()

        assert options.indent == "    "
        assert options.xml_declaration is False
        assert options.encoding == "utf-8"

    def test_indent_must_be_whitespace(self):
        """Test that a visible indent string is rejected."""
        with pytest.raises(ValueError, match="indent must contain only whitespace"):
            SerializeOptions(indent="--")

    def test_empty_indent_allowed(self):
        """Test that an empty indent is accepted."""
        assert SerializeOptions(indent="").indent == ""

    def test_display_max_text_length(self):
        """Test max_text_length validation."""
        assert DisplayOptions(max_text_length=10).max_text_length == 10
        with pytest.raises(ValueError, match="max_text_length must be > 0"):
            DisplayOptions(max_text_length=0)


class TestToolConfig:
    """Test suite for ToolConfig."""

    def test_default_sections(self):
        """Test that every section defaults to its own defaults."""
        config = ToolConfig()

        assert config.parse == ParseOptions()
        assert config.serialize == SerializeOptions()
        assert config.display == DisplayOptions()

    def test_override(self):
        """Test section__field overrides produce a new config."""
        config = ToolConfig()
        new_config = config.override(parse__trim_text=True, serialize__indent="  ")

        assert new_config.parse.trim_text is True
        assert new_config.serialize.indent == "  "
        assert config.parse.trim_text is False

    def test_override_key_without_section(self):
        """Test that a key without a section is rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ToolConfig().override(trim_text=True)

        assert "parse__trim_text" in exc_info.value.suggestions

    def test_override_unknown_section(self):
        """Test that an unknown section is rejected."""
        with pytest.raises(ConfigValidationError, match="Unknown configuration section: output"):
            ToolConfig().override(output__indent="  ")

    def test_override_unknown_field(self):
        """Test that an unknown field is rejected with the known fields as suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ToolConfig().override(parse__trim=True)

        assert exc_info.value.field_name == "parse.trim"
        assert "trim_text" in exc_info.value.suggestions

    def test_override_invalid_value(self):
        """Test that validation errors surface as ConfigValidationError."""
        with pytest.raises(ConfigValidationError, match="max_depth must be > 0"):
            ToolConfig().override(parse__max_depth=-1)

    def test_dict_round_trip(self):
        """Test to_dict and from_dict."""
        config = ToolConfig().override(parse__trim_text=True, display__show_namespaces=True)

        data = config.to_dict()
        assert data["parse"]["trim_text"] is True
        assert ToolConfig.from_dict(data) == config

    def test_from_dict_partial(self):
        """Test that missing sections and fields keep their defaults."""
        config = ToolConfig.from_dict({"serialize": {"xml_declaration": True}})

        assert config.serialize.xml_declaration is True
        assert config.serialize.indent == "    "
        assert config.parse == ParseOptions()

    def test_from_dict_rejects_non_object_section(self):
        """Test that a section must be a mapping."""
        with pytest.raises(ConfigValidationError, match="section parse must be an object"):
            ToolConfig.from_dict({"parse": True})

    def test_json_round_trip(self):
        """Test to_json and from_json."""
        config = ToolConfig().override(parse__max_depth=50)

        restored = ToolConfig.from_json(config.to_json())

        assert restored.parse.max_depth == 50
        assert json.loads(config.to_json())["parse"]["max_depth"] == 50

    def test_from_json_invalid(self):
        """Test that malformed JSON is reported as a configuration error."""
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ToolConfig.from_json("{not json")

    def test_from_file(self, tmp_path):
        """Test loading configuration from a JSON file."""
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"parse": {"trim_text": True}}), encoding="utf-8")

        config = ToolConfig.from_file(config_path)

        assert config.parse.trim_text is True

    def test_from_missing_file(self, tmp_path):
        """Test that an unreadable file is reported as a configuration error."""
        with pytest.raises(ConfigValidationError, match="Could not read config file"):
            ToolConfig.from_file(tmp_path / "missing.json")
