"""Tests for global options and -Xxew argument parsing."""

import json

import pytest

from element_wrapper.core.config import (
    ConfigurationError,
    ConfigManager,
    WrapperConfig,
    load_config,
    parse_plugin_args,
    resolve_collection_type,
    resolve_instantiation_mode,
)
from element_wrapper.core.model import CollectionKind, InstantiationMode


class TestParsePluginArgs:
    """Command-line token parsing."""

    def test_inline_and_separate_values(self):
        overrides = parse_plugin_args(
            [
                "-Xxew",
                "-Xxew:instantiate lazy",
                "-Xxew:plural",
                "-Xxew:collection",
                "java.util.LinkedList",
                "-d",
                "out",
            ]
        )
        assert overrides == {
            "instantiate": "lazy",
            "plural": True,
            "collection": "java.util.LinkedList",
        }

    def test_collection_interface_alias(self):
        overrides = parse_plugin_args(["-Xxew:collectionInterface java.util.Collection"])
        assert overrides == {"collection_interface": "java.util.Collection"}

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="Unknown option"):
            parse_plugin_args(["-Xxew:frobnicate"])

    def test_missing_value(self):
        with pytest.raises(ConfigurationError, match="requires a value"):
            parse_plugin_args(["-Xxew:instantiate", "-Xxew:plural"])

    def test_flag_with_value(self):
        with pytest.raises(ConfigurationError, match="takes no value"):
            parse_plugin_args(["-Xxew:plural yes"])


class TestResolvers:
    """Collection type and instantiation mode lookups."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("list", (CollectionKind.ORDERED, "list")),
            ("java.util.ArrayList", (CollectionKind.ORDERED, "list")),
            ("LinkedList", (CollectionKind.ORDERED, "deque")),
            ("HashSet", (CollectionKind.UNORDERED, "set")),
            ("java.util.TreeSet", (CollectionKind.SORTED, "SortedSet")),
        ],
    )
    def test_collection_types(self, value, expected):
        assert resolve_collection_type(value) == expected

    def test_unsupported_collection(self):
        with pytest.raises(ConfigurationError, match="Unsupported collection type"):
            resolve_collection_type("java.util.HashMap")

    def test_instantiation_modes(self):
        assert resolve_instantiation_mode("LAZY") == InstantiationMode.LAZY
        assert resolve_instantiation_mode(InstantiationMode.NONE) == InstantiationMode.NONE
        with pytest.raises(ConfigurationError, match="Invalid instantiation mode"):
            resolve_instantiation_mode("sometimes")


class TestLoadConfig:
    """Merged and validated configuration."""

    def test_defaults(self):
        config = load_config()
        assert config.collection_kind == CollectionKind.ORDERED
        assert config.collection_type == "list"
        assert config.effective_interface == "list"
        assert config.instantiation == InstantiationMode.EAGER
        assert config.plural is False
        assert config.max_suffix == 9999

    def test_args_override_mapping(self):
        config = load_config({"instantiate": "lazy"}, args=["-Xxew:instantiate none"])
        assert config.instantiation == InstantiationMode.NONE

    def test_json_file(self, tmp_path):
        path = tmp_path / "xew.json"
        path.write_text(json.dumps({"collection": "set", "plural": True, "extra": 1}))

        config = load_config(config_file=path)

        assert config.collection_kind == CollectionKind.UNORDERED
        assert config.plural is True
        assert config.custom == {"extra": 1}

    def test_json_file_must_be_object(self, tmp_path):
        path = tmp_path / "xew.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_config(config_file=path)

    def test_every_error_is_reported(self):
        with pytest.raises(ConfigurationError) as excinfo:
            load_config({"collection": "HashMap", "instantiate": "sometimes", "plural": "yes"})
        message = str(excinfo.value)
        assert "Unsupported collection type" in message
        assert "Invalid instantiation mode" in message
        assert "'plural' must be a boolean" in message

    def test_missing_control_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Control file not found"):
            load_config(args=[f"-Xxew:control {tmp_path / 'missing.xew'}"])

    def test_invalid_collection_interface(self):
        with pytest.raises(ConfigurationError, match="Invalid collection interface"):
            load_config({"collectionInterface": "not a type"})

    def test_validate_config_directly(self):
        with pytest.raises(ConfigurationError, match="Invalid max_suffix"):
            ConfigManager().validate_config(WrapperConfig(max_suffix=0))
