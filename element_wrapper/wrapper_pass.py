"""
The element wrapper pass.

Runs between class-model construction and source emission: every
multi-valued property is moved onto a dedicated wrapper class and its
owner keeps a single-valued reference to that class.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .core.config import WrapperConfig, load_config
from .core.model import ClassModel, ModelGraph
from .core.naming import NamingEngine
from .customization import ControlFile, CustomizationResolver
from .placement import PlacementResolver
from .selector import CandidateSelector
from .summary import SummaryCounters, SummaryReporter
from .synthesizer import SynthesisRecord, WrapperSynthesizer
from .logging_config import get_logger

logger = get_logger(__name__)


class PassResult:
    """Container for the rewritten model and pass diagnostics."""

    def __init__(
        self,
        graph: ModelGraph,
        counters: SummaryCounters,
        records: List[SynthesisRecord],
        renamed: List[ClassModel],
    ):
        """
        Initialize pass result.

        Args:
            graph: The mutated model
            counters: Summary counters of this pass
            records: One record per synthesized candidate
            renamed: Classes renamed by the final collision check
        """
        self.graph = graph
        self.counters = counters
        self.records = records
        self.renamed = renamed

    @property
    def wrappers(self) -> List[ClassModel]:
        """Wrapper classes created by this pass, in creation order."""
        return [r.wrapper for r in self.records if r.wrapper is not None and not r.deleted]

    @property
    def summary(self) -> SummaryReporter:
        return SummaryReporter(self.counters)


class WrapperPass:
    """Orchestrates resolution, selection, synthesis and placement."""

    def __init__(
        self,
        config: Optional[WrapperConfig] = None,
        control: Optional[ControlFile] = None,
        naming: Optional[NamingEngine] = None,
    ):
        self.config = config or load_config()
        if control is None and self.config.control:
            control = ControlFile.load(self.config.control)
        self.control = control
        self.naming = naming or NamingEngine(max_suffix=self.config.max_suffix)

    def run(self, graph: ModelGraph) -> PassResult:
        """
        Rewrite ``graph`` in place.

        Raises:
            ConfigurationError: Before any mutation, on bad customization
            PlacementError: If a name collision cannot be resolved
            SynthesisError: On an internal invariant violation
        """
        logger.info("Running element wrapper pass over %d class(es)", len(graph))
        counters = SummaryCounters()

        resolver = CustomizationResolver(self.config, self.control)
        resolver.validate(graph)

        candidates = CandidateSelector(resolver).select(graph, counters)
        records = WrapperSynthesizer(graph, self.naming, counters).synthesize_all(candidates)
        renamed = PlacementResolver(graph, self.naming, counters).resolve()

        result = PassResult(graph, counters, records, renamed)
        result.summary.log()
        if self.config.summary:
            result.summary.write(self.config.summary)

        return result


def build_config(
    options: Optional[Union[WrapperConfig, Dict[str, Any], str, Path, List[str]]] = None,
    **overrides: Any,
) -> WrapperConfig:
    """
    Build a configuration from any of the accepted option forms.

    Args:
        options: A WrapperConfig, a mapping, a JSON config path, or a
            list of ``-Xxew:`` tokens
        **overrides: Individual options applied last
    """
    if isinstance(options, WrapperConfig):
        if not overrides:
            return options
        merged = {k: v for k, v in vars(options).items() if k != "custom"}
        merged.update(options.custom)
        merged.update(overrides)
        return load_config(merged)
    if isinstance(options, (str, Path)):
        return load_config(overrides, config_file=options)
    if isinstance(options, list):
        config = load_config(args=options)
        return build_config(config, **overrides) if overrides else config
    if isinstance(options, dict) or options is None:
        return load_config({**(options or {}), **overrides})
    raise TypeError(f"Invalid options type: {type(options)}")
