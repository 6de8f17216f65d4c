"""
Configuration management for the element wrapper pass.

Handles loading and merging global options from JSON files, mappings
and ``-Xxew:`` command-line tokens, providing defaults and validation.
"""

import json
import re
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple, Union
from dataclasses import dataclass, field, fields

from .model import CollectionKind, InstantiationMode
from ..logging_config import get_logger

logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Exception raised for invalid options, control files or annotations."""

    pass


# Supported collection types: lowercase alias -> (kind, concrete type)
COLLECTION_TYPES: Dict[str, Tuple[CollectionKind, str]] = {
    "list": (CollectionKind.ORDERED, "list"),
    "arraylist": (CollectionKind.ORDERED, "list"),
    "linkedlist": (CollectionKind.ORDERED, "deque"),
    "deque": (CollectionKind.ORDERED, "deque"),
    "tuple": (CollectionKind.ORDERED, "tuple"),
    "set": (CollectionKind.UNORDERED, "set"),
    "hashset": (CollectionKind.UNORDERED, "set"),
    "linkedhashset": (CollectionKind.UNORDERED, "set"),
    "frozenset": (CollectionKind.UNORDERED, "frozenset"),
    "sortedset": (CollectionKind.SORTED, "SortedSet"),
    "treeset": (CollectionKind.SORTED, "SortedSet"),
    "sortedlist": (CollectionKind.SORTED, "SortedList"),
}

_DOTTED_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


def resolve_collection_type(value: str) -> Tuple[CollectionKind, str]:
    """
    Map a user-supplied collection type to its kind and concrete type.

    Raises:
        ConfigurationError: If the type is not a supported collection
    """
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Invalid collection type: {value!r}")

    key = value.strip()
    if key.startswith("java.util."):
        key = key[len("java.util."):]

    try:
        return COLLECTION_TYPES[key.lower()]
    except KeyError:
        supported = ", ".join(sorted(COLLECTION_TYPES))
        raise ConfigurationError(
            f"Unsupported collection type: {value!r} (supported: {supported})"
        ) from None


def resolve_instantiation_mode(value: Union[str, InstantiationMode]) -> InstantiationMode:
    """Parse an instantiation mode, rejecting anything outside eager/lazy/none."""
    if isinstance(value, InstantiationMode):
        return value
    try:
        return InstantiationMode(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid instantiation mode: {value!r} (expected eager, lazy or none)"
        ) from None


def validate_collection_interface(value: str) -> str:
    if not isinstance(value, str) or not _DOTTED_NAME.match(value.strip()):
        raise ConfigurationError(f"Invalid collection interface: {value!r}")
    return value.strip()


@dataclass
class WrapperConfig:
    """Global options for the wrapper pass."""

    # Collection handling
    collection: str = "list"
    collection_interface: Optional[str] = None  # defaults to the collection
    instantiate: str = "eager"

    # Naming and placement
    plural: bool = False
    nested: bool = False
    max_suffix: int = 9999

    # External files
    control: Optional[str] = None
    summary: Optional[str] = None

    # Unknown keys from configuration files
    custom: Dict[str, Any] = field(default_factory=dict)

    @property
    def collection_kind(self) -> CollectionKind:
        return resolve_collection_type(self.collection)[0]

    @property
    def collection_type(self) -> str:
        return resolve_collection_type(self.collection)[1]

    @property
    def instantiation(self) -> InstantiationMode:
        return resolve_instantiation_mode(self.instantiate)

    @property
    def effective_interface(self) -> str:
        return self.collection_interface or self.collection_type


# Built-in defaults, the lowest layer of every lookup
DEFAULT_OPTIONS: Dict[str, Any] = {
    "collection": "list",
    "collection_interface": None,
    "instantiate": "eager",
    "plural": False,
    "nested": False,
    "max_suffix": 9999,
}

# -Xxew:<option> -> (config key, takes a value)
PLUGIN_OPTIONS: Dict[str, Tuple[str, bool]] = {
    "collection": ("collection", True),
    "collectionInterface": ("collection_interface", True),
    "instantiate": ("instantiate", True),
    "plural": ("plural", False),
    "nested": ("nested", False),
    "control": ("control", True),
    "summary": ("summary", True),
}

PLUGIN_PREFIX = "-Xxew"


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager."""
        self._defaults: Dict[str, Any] = dict(DEFAULT_OPTIONS)

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> WrapperConfig:
        """
        Get complete, validated configuration.

        Args:
            custom_config: Custom configuration overrides
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration

        Raises:
            ConfigurationError: If any value is invalid
        """
        base_config = self._defaults.copy()

        if config_file:
            base_config.update(self._load_config_file(config_file))

        if custom_config:
            base_config.update(custom_config)

        config = self._dict_to_config(base_config)
        self.validate_config(config)
        return config

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")

        if not path.suffix.lower() == ".json":
            raise ConfigurationError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in configuration file {path}: {e}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to load configuration file {path}: {e}"
            ) from e

        if not isinstance(config, dict):
            raise ConfigurationError(
                f"Configuration file must contain a JSON object: {path}"
            )

        logger.debug("Loaded configuration file %s", path)
        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> WrapperConfig:
        """Convert dictionary to WrapperConfig instance."""
        known_fields = {f.name for f in fields(WrapperConfig)}
        aliases = {"collectionInterface": "collection_interface", "maxSuffix": "max_suffix"}

        config_args = {}
        custom_args = {}

        for key, value in config_dict.items():
            key = aliases.get(key, key)
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get("custom") or {})
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        return WrapperConfig(**config_args)

    def validate_config(self, config: WrapperConfig) -> None:
        """
        Validate a configuration.

        Raises:
            ConfigurationError: Listing every invalid value found
        """
        errors = []

        try:
            resolve_collection_type(config.collection)
        except ConfigurationError as e:
            errors.append(str(e))

        if config.collection_interface is not None:
            try:
                validate_collection_interface(config.collection_interface)
            except ConfigurationError as e:
                errors.append(str(e))

        try:
            resolve_instantiation_mode(config.instantiate)
        except ConfigurationError as e:
            errors.append(str(e))

        for flag in ("plural", "nested"):
            if not isinstance(getattr(config, flag), bool):
                errors.append(f"Option '{flag}' must be a boolean")

        if not isinstance(config.max_suffix, int) or config.max_suffix < 1:
            errors.append(f"Invalid max_suffix: {config.max_suffix!r}")

        if config.control is not None and not Path(config.control).is_file():
            errors.append(f"Control file not found: {config.control}")

        if errors:
            for error in errors:
                logger.error(error)
            raise ConfigurationError("; ".join(errors))


def parse_plugin_args(args: List[str]) -> Dict[str, Any]:
    """
    Parse ``-Xxew:`` tokens into configuration overrides.

    A value may share the token (``-Xxew:instantiate lazy``) or follow
    in the next one. Tokens that do not start with ``-Xxew`` belong to
    the host generator and are skipped.

    Raises:
        ConfigurationError: On unknown options or missing values
    """
    overrides: Dict[str, Any] = {}
    tokens = list(args)
    index = 0

    while index < len(tokens):
        token = tokens[index].strip()
        index += 1

        if token == PLUGIN_PREFIX or not token.startswith(PLUGIN_PREFIX + ":"):
            continue

        option, _, inline_value = token[len(PLUGIN_PREFIX) + 1:].partition(" ")
        inline_value = inline_value.strip()

        if option not in PLUGIN_OPTIONS:
            raise ConfigurationError(f"Unknown option: {token}")

        key, takes_value = PLUGIN_OPTIONS[option]

        if not takes_value:
            if inline_value:
                raise ConfigurationError(f"Option {PLUGIN_PREFIX}:{option} takes no value")
            overrides[key] = True
            continue

        if inline_value:
            value = inline_value
        elif index < len(tokens) and not tokens[index].startswith("-"):
            value = tokens[index].strip()
            index += 1
        else:
            raise ConfigurationError(f"Option {PLUGIN_PREFIX}:{option} requires a value")

        overrides[key] = value
        logger.debug("Parsed option %s = %s", option, value)

    return overrides


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
    args: Optional[List[str]] = None,
) -> WrapperConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Custom configuration overrides
        config_file: Path to JSON configuration file
        args: ``-Xxew:`` tokens, applied on top of ``custom_config``

    Returns:
        Merged and validated configuration
    """
    merged = dict(custom_config or {})
    if args:
        merged.update(parse_plugin_args(args))
    return get_config_manager().get_config(merged, config_file)

