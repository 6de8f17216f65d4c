"""
Element wrapper pass for schema-to-class code generators.

Rewrites a generated class model so that every repeated element is held
by a dedicated wrapper class instead of a bare multi-valued field.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .core import (
    ClassModel,
    CollectionKind,
    ConfigurationError,
    ContentKind,
    Episode,
    InstantiationMode,
    ModelGraph,
    Multiplicity,
    PlacementError,
    PropertyModel,
    WrapperConfig,
    load_config,
)
from .customization import ControlFile, CustomizationResolver, WrapperDirective
from .selector import Candidate, CandidateSelector
from .synthesizer import CandidateState, SynthesisError, WrapperSynthesizer
from .placement import PlacementResolver
from .summary import SummaryCounters, SummaryReporter
from .wrapper_pass import PassResult, WrapperPass, build_config
from .binding import BindingError, BoundObject, ModelBinder
from .utils import load_model, model_from_dict

__version__ = "0.1.0"


def wrap_elements(
    graph: ModelGraph,
    options: Optional[Union[WrapperConfig, Dict[str, Any], str, Path, List[str]]] = None,
    control_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> PassResult:
    """
    Run the wrapper pass over a class model.

    Args:
        graph: Class model to rewrite in place
        options: WrapperConfig, mapping, JSON config path or ``-Xxew:`` tokens
        control_file: Control file path, overriding ``options``
        **overrides: Individual options, e.g. ``plural=True``

    Returns:
        PassResult with the rewritten model and summary counters
    """
    if control_file is not None:
        overrides["control"] = str(control_file)
    config = build_config(options, **overrides)
    return WrapperPass(config).run(graph)


__all__ = [
    "ClassModel",
    "CollectionKind",
    "ContentKind",
    "Episode",
    "InstantiationMode",
    "ModelGraph",
    "Multiplicity",
    "PropertyModel",
    "WrapperConfig",
    "load_config",
    "ConfigurationError",
    "PlacementError",
    "SynthesisError",
    "BindingError",
    "ControlFile",
    "CustomizationResolver",
    "WrapperDirective",
    "Candidate",
    "CandidateSelector",
    "CandidateState",
    "WrapperSynthesizer",
    "PlacementResolver",
    "SummaryCounters",
    "SummaryReporter",
    "PassResult",
    "WrapperPass",
    "BoundObject",
    "ModelBinder",
    "load_model",
    "model_from_dict",
    "wrap_elements",
]
