"""
Final collision check over the rewritten model.

Classes are visited in declaration order with wrappers following in
the order they were synthesized. The first class to claim a qualified
name keeps it; later claimants are suffixed inside their own scope.
"""

from typing import List, Set

from .core.model import ClassModel, ModelGraph
from .core.naming import NamingEngine, PlacementError
from .summary import SummaryCounters
from .logging_config import get_logger

logger = get_logger(__name__)

__all__ = ["PlacementResolver", "PlacementError"]


class PlacementResolver:
    """Guarantees every qualified class name is unique."""

    def __init__(self, graph: ModelGraph, naming: NamingEngine, counters: SummaryCounters):
        self.graph = graph
        self.naming = naming
        self.counters = counters

    def resolve(self) -> List[ClassModel]:
        """
        Rename later duplicates until the model is collision-free.

        Returns:
            The classes that were renamed, in rename order

        Raises:
            PlacementError: If a duplicate cannot be disambiguated
        """
        claimed: Set[str] = set()
        renamed = []

        for cls in self.graph.iter_classes():
            if cls.qualified_name in claimed:
                self._rename(cls, claimed)
                renamed.append(cls)
            claimed.add(cls.qualified_name)

        if renamed:
            logger.info("Resolved %d class name collision(s)", len(renamed))
        return renamed

    def _rename(self, cls: ClassModel, claimed: Set[str]) -> None:
        old_name = cls.qualified_name
        prefix = f"{cls.scope}." if cls.scope else ""
        taken = {
            other.name
            for other in self.graph.iter_classes()
            if other.scope == cls.scope and other.parent is cls.parent
        }
        # Names claimed through another route, e.g. a package named like a class
        taken.update(
            name[len(prefix):]
            for name in claimed
            if name.startswith(prefix) and "." not in name[len(prefix):]
        )
        new_name = self.naming.disambiguate(cls.name, taken, cls.scope, self.counters.renames)

        self.graph.rename_class(cls, new_name)
        logger.warning("Renamed %s to %s to avoid a collision", old_name, cls.qualified_name)
