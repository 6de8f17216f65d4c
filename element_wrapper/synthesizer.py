"""
Wrapper class synthesis.

Each selected candidate goes through
``SELECTED -> NEW_CLASS_CREATED -> PROPERTY_RELINKED -> FINALIZED``.
Names and placement are planned before the model is touched, so a
naming failure never leaves a half-linked wrapper behind.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .core.model import (
    ClassModel,
    ContentKind,
    ModelGraph,
    Multiplicity,
    PropertyModel,
)
from .core.naming import NamingEngine
from .selector import Candidate
from .summary import SummaryCounters
from .logging_config import get_logger

logger = get_logger(__name__)


class SynthesisError(Exception):
    """Internal invariant violated while rewriting a candidate."""

    pass


class CandidateState(Enum):
    SELECTED = "selected"
    NEW_CLASS_CREATED = "new_class_created"
    PROPERTY_RELINKED = "property_relinked"
    FINALIZED = "finalized"


_NEXT_STATE = {
    CandidateState.SELECTED: CandidateState.NEW_CLASS_CREATED,
    CandidateState.NEW_CLASS_CREATED: CandidateState.PROPERTY_RELINKED,
    CandidateState.PROPERTY_RELINKED: CandidateState.FINALIZED,
}

MIXED_TEXT_FIELD = "any_text"
LOOSE_VALUE_TYPE = "object"


@dataclass
class WrapperPlan:
    """Names and placement decided before any mutation."""

    class_name: str
    explicit_name: bool
    package: str
    parent: Optional[ClassModel]
    item_field: str
    reference_field: str


@dataclass
class SynthesisRecord:
    """Outcome of one candidate."""

    candidate: Candidate
    state: CandidateState = CandidateState.SELECTED
    wrapper: Optional[ClassModel] = None
    reference: Optional[PropertyModel] = None
    deleted: bool = False
    explicit_name: bool = False

    def advance(self, expected: CandidateState) -> None:
        """Move to the state following ``expected``."""
        if self.state != expected:
            raise SynthesisError(
                f"{self.candidate.path}: expected state {expected.value}, "
                f"found {self.state.value}"
            )
        self.state = _NEXT_STATE[expected]


class WrapperSynthesizer:
    """Creates wrapper classes and relinks candidates onto them."""

    def __init__(self, graph: ModelGraph, naming: NamingEngine, counters: SummaryCounters):
        self.graph = graph
        self.naming = naming
        self.counters = counters
        self._wrapped: Dict[Tuple[int, str], ClassModel] = {}
        self._strategies: Dict[ContentKind, Callable[[PropertyModel, ClassModel, Candidate], None]] = {
            ContentKind.ELEMENT: self._rewrite_element,
            ContentKind.ANY: self._rewrite_any,
            ContentKind.MIXED: self._rewrite_mixed,
            ContentKind.REFERENCE: self._rewrite_reference,
        }
        missing = set(ContentKind) - set(self._strategies)
        if missing:
            raise SynthesisError(f"No rewrite strategy for {sorted(k.value for k in missing)}")

    def synthesize_all(self, candidates: List[Candidate]) -> List[SynthesisRecord]:
        """Rewrite candidates in selection order."""
        records = [self.synthesize(candidate) for candidate in candidates]
        logger.info(
            "Created %d wrapper class(es), removed %d inherited duplicate(s)",
            self.counters.modifications,
            self.counters.deletions,
        )
        return records

    def synthesize(self, candidate: Candidate) -> SynthesisRecord:
        record = SynthesisRecord(candidate)

        inherited = self._inherited_wrapper(candidate)
        if inherited is not None:
            return self._merge_into_inherited(record, inherited)

        plan = self._plan(candidate)
        record.explicit_name = plan.explicit_name

        # Step 1: new class
        wrapper = ClassModel(
            name=plan.class_name,
            package=plan.package,
            source=candidate.owner.source,
            is_wrapper=True,
            element_name=candidate.prop.name,
            description=f"Wrapper for {candidate.path}",
        )
        self.graph.add_class(wrapper, plan.parent)
        record.wrapper = wrapper
        record.advance(CandidateState.SELECTED)
        logger.debug("Created wrapper %s for %s", wrapper.qualified_name, candidate.path)

        # Steps 2-3: move the property, leave a single-valued reference
        record.reference = self._relink(candidate, wrapper, plan)
        record.advance(CandidateState.NEW_CLASS_CREATED)

        # Steps 4-6: value objects, episode, counters
        self._finalize(record)
        record.advance(CandidateState.PROPERTY_RELINKED)

        self._wrapped[(id(candidate.owner), candidate.prop.name)] = wrapper
        return record

    def _plan(self, candidate: Candidate) -> WrapperPlan:
        directive = candidate.directive
        owner, prop = candidate.owner, candidate.prop

        parent = owner if directive.nested else None
        package = owner.package

        class_name = self.naming.wrapper_class_name(
            prop.name, directive.plural, directive.class_name
        )
        explicit = directive.class_name is not None
        if not explicit:
            scope = owner.qualified_name if parent is not None else package
            class_name = self.naming.disambiguate(
                class_name,
                self.graph.names_in_scope(package, parent),
                scope,
                self.counters.renames,
            )

        taken = [p.field_name for p in owner.properties if p is not prop]
        reference_field = self.naming.disambiguate(
            self.naming.reference_field_name(class_name),
            taken,
            owner.qualified_name,
            self.counters.renames,
        )

        return WrapperPlan(
            class_name=class_name,
            explicit_name=explicit,
            package=package,
            parent=parent,
            item_field=self.naming.item_field_name(prop.name, directive.field_name),
            reference_field=reference_field,
        )

    def _relink(
        self, candidate: Candidate, wrapper: ClassModel, plan: WrapperPlan
    ) -> PropertyModel:
        owner, prop, directive = candidate.owner, candidate.prop, candidate.directive

        slot = self.graph.move_property(prop, wrapper, plan.item_field)
        prop.multiplicity = Multiplicity.REPEATED
        prop.collection_kind = directive.collection_kind
        prop.collection_type = directive.collection_type
        prop.collection_interface = directive.collection_interface
        prop.instantiation = directive.instantiation

        self._strategies[prop.content_kind](prop, wrapper, candidate)

        reference = PropertyModel(
            name=plan.reference_field,
            value_type=wrapper.qualified_name,
            multiplicity=Multiplicity.SINGLE,
            field_name=plan.reference_field,
            nillable=prop.nillable,
            required=prop.required,
            reference=wrapper,
            description=prop.description,
        )
        owner.insert_property(slot, reference)

        if reference.reference is None or prop.owner is not wrapper:
            raise SynthesisError(f"{candidate.path}: relink left the wrapper detached")
        return reference

    def _finalize(self, record: SynthesisRecord) -> None:
        owner = record.candidate.owner
        wrapper = record.wrapper
        if wrapper is None or record.reference is None:
            raise SynthesisError(f"{record.candidate.path}: finalized without a wrapper")

        if owner.implementation:
            impl_package = owner.implementation.rpartition(".")[0]
            implementation = f"{wrapper.name}Impl"
            if impl_package:
                implementation = f"{impl_package}.{implementation}"
            wrapper.implementation = implementation
            record.reference.implementation_type = implementation
            self.graph.factory_for(wrapper.package).register(
                wrapper.qualified_name, implementation
            )

        if self.graph.episode is not None:
            self.graph.episode.add(wrapper.qualified_name)

        self.counters.modifications += 1

    def _inherited_wrapper(self, candidate: Candidate) -> Optional[ClassModel]:
        for base in candidate.owner.ancestors():
            wrapper = self._wrapped.get((id(base), candidate.prop.name))
            if wrapper is not None:
                return wrapper
        return None

    def _merge_into_inherited(
        self, record: SynthesisRecord, wrapper: ClassModel
    ) -> SynthesisRecord:
        """Drop a redeclared slot; the base class reference already covers it."""
        record.wrapper = wrapper
        record.advance(CandidateState.SELECTED)

        self.graph.delete_property(record.candidate.prop)
        record.deleted = True
        record.advance(CandidateState.NEW_CLASS_CREATED)

        self.counters.deletions += 1
        record.advance(CandidateState.PROPERTY_RELINKED)

        logger.warning(
            "Removed %s: inherits wrapper %s", record.candidate.path, wrapper.qualified_name
        )
        return record

    # Content-kind strategies

    def _rewrite_element(self, prop: PropertyModel, wrapper: ClassModel, candidate: Candidate) -> None:
        pass

    def _rewrite_any(self, prop: PropertyModel, wrapper: ClassModel, candidate: Candidate) -> None:
        # Wildcard content is never down-cast
        if not prop.value_type:
            prop.value_type = LOOSE_VALUE_TYPE

    def _rewrite_mixed(self, prop: PropertyModel, wrapper: ClassModel, candidate: Candidate) -> None:
        text = PropertyModel(
            name=MIXED_TEXT_FIELD,
            value_type="str",
            multiplicity=Multiplicity.REPEATED,
            content_kind=ContentKind.MIXED,
            synthetic=True,
            collection_kind=prop.collection_kind,
            collection_type=prop.collection_type,
            collection_interface=prop.collection_interface,
            instantiation=prop.instantiation,
            description="Text runs around the typed children, in document order",
        )
        wrapper.add_property(text)

    def _rewrite_reference(self, prop: PropertyModel, wrapper: ClassModel, candidate: Candidate) -> None:
        # The abstract head stays the value type; members resolve via substitutes
        if not prop.substitutes:
            logger.warning("Substitution head %s has no registered members", candidate.path)
