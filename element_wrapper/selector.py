"""
Candidate selection for the element wrapper pass.

Walks the class model in declaration order and pairs every
multi-valued property with its resolved directive.
"""

from dataclasses import dataclass, field
from typing import List

from .core.model import ClassModel, ContentKind, ModelGraph, PropertyModel
from .customization import CustomizationResolver, WrapperDirective
from .summary import SummaryCounters
from .logging_config import get_logger

logger = get_logger(__name__)

# Content that is open-ended regardless of declared multiplicity
OPEN_ENDED_KINDS = {ContentKind.ANY, ContentKind.REFERENCE}


@dataclass
class Candidate:
    """A property provisionally eligible for wrapping."""

    owner: ClassModel
    prop: PropertyModel
    directive: WrapperDirective
    path: str = field(init=False)

    def __post_init__(self):
        # Fixed at selection; synthesis re-owns the property
        self.path = self.prop.path

    @property
    def kind(self) -> ContentKind:
        return self.prop.content_kind


def is_multi_valued(prop: PropertyModel) -> bool:
    """True for repeated properties and inherently open-ended content."""
    if prop.is_attribute or prop.synthetic or prop.is_wrapper_reference:
        return False
    return prop.is_repeated or prop.content_kind in OPEN_ENDED_KINDS


class CandidateSelector:
    """Finds every property eligible for wrapping."""

    def __init__(self, resolver: CustomizationResolver):
        self.resolver = resolver

    def select(self, graph: ModelGraph, counters: SummaryCounters) -> List[Candidate]:
        """
        Return wrap-eligible candidates in declaration order.

        Every multi-valued property counts as considered; the ones whose
        directive suppresses wrapping are logged and left alone.
        """
        selected = []

        for cls in graph.iter_classes():
            if cls.is_wrapper:
                continue

            for prop in list(cls.properties):
                if not is_multi_valued(prop):
                    continue

                counters.candidates += 1
                directive = self.resolver.resolve(prop)

                if not directive.wrap:
                    logger.info(
                        "Skipping %s: wrapping suppressed by %s", prop.path, directive.source
                    )
                    continue

                logger.debug("Selected %s (%s content)", prop.path, prop.content_kind.value)
                selected.append(Candidate(owner=cls, prop=prop, directive=directive))

        logger.info(
            "%d of %d candidate(s) selected for wrapping", len(selected), counters.candidates
        )
        return selected
