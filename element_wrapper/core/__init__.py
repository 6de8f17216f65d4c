"""
Core components of the element wrapper pass.

Provides the class model, configuration, naming and template utilities
shared by the pass stages.
"""

from .model import (
    ClassModel,
    CollectionKind,
    ContentKind,
    Episode,
    InstantiationMode,
    ModelGraph,
    Multiplicity,
    ObjectFactory,
    PropertyModel,
)
from .naming import NameSanitizer, NamingCase, NamingEngine, Pluralizer, PlacementError
from .config import (
    WrapperConfig,
    ConfigManager,
    ConfigurationError,
    load_config,
    parse_plugin_args,
)
from .templates import TemplateEngine, TemplateError, get_default_template_engine

__all__ = [
    # Class model
    "ClassModel",
    "CollectionKind",
    "ContentKind",
    "Episode",
    "InstantiationMode",
    "ModelGraph",
    "Multiplicity",
    "ObjectFactory",
    "PropertyModel",
    # Naming
    "NameSanitizer",
    "NamingCase",
    "NamingEngine",
    "Pluralizer",
    "PlacementError",
    # Configuration
    "WrapperConfig",
    "ConfigManager",
    "ConfigurationError",
    "load_config",
    "parse_plugin_args",
    # Templates
    "TemplateEngine",
    "TemplateError",
    "get_default_template_engine",
]
