"""
Core class-model representation for the element wrapper pass.

A schema reader builds this graph of classes and properties before any
source text is emitted. The wrapper pass mutates it in place; nothing is
ever deallocated, removal only detaches a node from its parent.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Any
from enum import Enum


class ContentKind(Enum):
    """Kinds of content a property can carry."""

    ELEMENT = "element"
    ANY = "any"  # xs:any / xs:anyType wildcard
    MIXED = "mixed"  # text interleaved with elements
    REFERENCE = "reference"  # substitution-group head


class Multiplicity(Enum):
    """Cardinality of a property."""

    SINGLE = "single"
    REPEATED = "repeated"


class CollectionKind(Enum):
    """Families of collection types a wrapped field can use."""

    ORDERED = "ordered"
    UNORDERED = "unordered"
    SORTED = "sorted"


class InstantiationMode(Enum):
    """When a wrapper allocates its backing container."""

    EAGER = "eager"
    LAZY = "lazy"
    NONE = "none"


@dataclass(eq=False)
class PropertyModel:
    """Represents a single field-like member of a generated class."""

    name: str  # XML element or attribute name
    value_type: str
    multiplicity: Multiplicity = Multiplicity.SINGLE
    content_kind: ContentKind = ContentKind.ELEMENT
    field_name: Optional[str] = None
    nillable: bool = False
    required: bool = False
    is_attribute: bool = False
    description: Optional[str] = None

    # Value-transform hook bound to this property
    adapter: Optional[str] = None

    # Value-object split: implementation behind the public interface type
    implementation_type: Optional[str] = None

    # Substitution-group heads: element name -> concrete type
    substitutes: Dict[str, str] = field(default_factory=dict)

    # In-schema customization annotation
    customization: Optional[Any] = None

    # Resolved only for wrapped item fields
    collection_kind: Optional[CollectionKind] = None
    collection_type: Optional[str] = None
    collection_interface: Optional[str] = None
    instantiation: Optional[InstantiationMode] = None

    # Set on the single-valued slot that points at a wrapper class
    reference: Optional["ClassModel"] = field(default=None, repr=False)
    synthetic: bool = False

    owner: Optional["ClassModel"] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.field_name:
            self.field_name = self.name

    @property
    def is_repeated(self) -> bool:
        return self.multiplicity == Multiplicity.REPEATED

    @property
    def is_wrapper_reference(self) -> bool:
        return self.reference is not None

    @property
    def path(self) -> str:
        """Stable dotted path of this property, e.g. ``pkg.Owner.article``."""
        if self.owner is None:
            return self.name
        return f"{self.owner.qualified_name}.{self.name}"

    @property
    def type_name(self) -> str:
        """Declared type, following wrapper renames."""
        if self.reference is not None:
            return self.reference.qualified_name
        return self.value_type


@dataclass(eq=False)
class ClassModel:
    """Represents one generated class."""

    name: str
    package: str = ""
    properties: List[PropertyModel] = field(default_factory=list)
    parent: Optional["ClassModel"] = field(default=None, repr=False)
    base: Optional["ClassModel"] = field(default=None, repr=False)
    source: Optional[str] = None
    customization: Optional[Any] = None
    implementation: Optional[str] = None
    is_wrapper: bool = False
    element_name: Optional[str] = None
    description: Optional[str] = None
    nested: List["ClassModel"] = field(default_factory=list, repr=False)

    def __post_init__(self):
        for prop in self.properties:
            prop.owner = self

    @property
    def scope(self) -> str:
        """Name of the scope this class is declared in."""
        if self.parent is not None:
            return self.parent.qualified_name
        return self.package

    @property
    def local_name(self) -> str:
        """Name relative to the package, including enclosing classes."""
        if self.parent is not None:
            return f"{self.parent.local_name}.{self.name}"
        return self.name

    @property
    def qualified_name(self) -> str:
        if self.package:
            return f"{self.package}.{self.local_name}"
        return self.local_name

    def add_property(self, prop: PropertyModel) -> None:
        """Append a property to this class."""
        prop.owner = self
        self.properties.append(prop)

    def insert_property(self, index: int, prop: PropertyModel) -> None:
        prop.owner = self
        self.properties.insert(index, prop)

    def remove_property(self, prop: PropertyModel) -> int:
        """Detach a property and return the slot it occupied."""
        index = self.index_of(prop)
        del self.properties[index]
        prop.owner = None
        return index

    def index_of(self, prop: PropertyModel) -> int:
        for index, candidate in enumerate(self.properties):
            if candidate is prop:
                return index
        raise ValueError(f"Property '{prop.name}' is not owned by {self.qualified_name}")

    def get_property(self, name: str) -> Optional[PropertyModel]:
        """Get property by element name."""
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def field_names(self) -> List[str]:
        return [prop.field_name for prop in self.properties]

    def ancestors(self) -> Iterator["ClassModel"]:
        """Base classes, nearest first."""
        current = self.base
        while current is not None:
            yield current
            current = current.base


class Episode:
    """Ordered set of class references reusable across compilation runs."""

    def __init__(self, refs: Optional[List[str]] = None):
        self._refs: Dict[str, None] = dict.fromkeys(refs or [])

    def add(self, ref: str) -> None:
        self._refs[ref] = None

    def remove(self, ref: str) -> None:
        self._refs.pop(ref, None)

    def rename(self, old: str, new: str) -> None:
        """Replace a reference keeping its position."""
        if old not in self._refs:
            return
        self._refs = {new if ref == old else ref: None for ref in self._refs}

    @property
    def refs(self) -> List[str]:
        return list(self._refs)

    def __contains__(self, ref: str) -> bool:
        return ref in self._refs

    def __len__(self) -> int:
        return len(self._refs)


class ObjectFactory:
    """Factory entries for one package: interface -> implementation."""

    def __init__(self, package: str):
        self.package = package
        self.entries: Dict[str, str] = {}

    def register(self, interface: str, implementation: str) -> None:
        self.entries[interface] = implementation

    def rename(self, old: str, new: str) -> None:
        if old in self.entries:
            self.entries = {
                new if key == old else key: value for key, value in self.entries.items()
            }

    def implementation_for(self, interface: str) -> Optional[str]:
        return self.entries.get(interface)


class ModelGraph:
    """
    Mutable graph of every class the generator intends to emit.

    Classes are kept in declaration order; wrapper classes are appended
    in the order they are synthesized.
    """

    def __init__(
        self,
        classes: Optional[List[ClassModel]] = None,
        episode: Optional[Episode] = None,
    ):
        self.classes: List[ClassModel] = []
        self.episode = episode
        self.factories: Dict[str, ObjectFactory] = {}
        for cls in classes or []:
            self.add_class(cls)

    def add_class(self, cls: ClassModel, parent: Optional[ClassModel] = None) -> ClassModel:
        """Add a top-level class, or nest it inside ``parent``."""
        if parent is not None:
            cls.parent = parent
            cls.package = parent.package
            parent.nested.append(cls)
        else:
            self.classes.append(cls)
        return cls

    def iter_classes(self) -> Iterator[ClassModel]:
        """All classes in declaration order, nested classes after their parent."""

        def walk(cls: ClassModel) -> Iterator[ClassModel]:
            yield cls
            for child in list(cls.nested):
                yield from walk(child)

        for cls in list(self.classes):
            yield from walk(cls)

    def iter_properties(self) -> Iterator[Tuple[ClassModel, PropertyModel]]:
        for cls in self.iter_classes():
            for prop in list(cls.properties):
                yield cls, prop

    def find_class(self, qualified_name: str) -> Optional[ClassModel]:
        for cls in self.iter_classes():
            if cls.qualified_name == qualified_name:
                return cls
        return None

    def find_property(self, path: str) -> Optional[PropertyModel]:
        for _, prop in self.iter_properties():
            if prop.path == path:
                return prop
        return None

    def names_in_scope(self, package: str, parent: Optional[ClassModel] = None) -> List[str]:
        """Class names already claimed in a package or inside a class."""
        if parent is not None:
            return [child.name for child in parent.nested]
        return [cls.name for cls in self.classes if cls.package == package]

    def move_property(
        self, prop: PropertyModel, target: ClassModel, new_field_name: Optional[str] = None
    ) -> int:
        """Re-own a property; returns the slot it left on its old owner."""
        if prop.owner is None:
            raise ValueError(f"Property '{prop.name}' has no owner to move from")
        index = prop.owner.remove_property(prop)
        if new_field_name:
            prop.field_name = new_field_name
        target.add_property(prop)
        return index

    def delete_property(self, prop: PropertyModel) -> int:
        """Logically remove a property from its owner."""
        if prop.owner is None:
            raise ValueError(f"Property '{prop.name}' has no owner to delete from")
        return prop.owner.remove_property(prop)

    def rename_class(self, cls: ClassModel, new_name: str) -> None:
        """Rename a class, keeping episode and factory entries consistent."""
        renamed = [(c, c.qualified_name) for c in self._subtree(cls)]
        old_name = cls.name
        cls.name = new_name

        if cls.implementation:
            impl_package, _, impl_name = cls.implementation.rpartition(".")
            if impl_name == f"{old_name}Impl":
                new_impl = f"{new_name}Impl"
                if impl_package:
                    new_impl = f"{impl_package}.{new_impl}"
                for _, prop in self.iter_properties():
                    if prop.reference is cls:
                        prop.implementation_type = new_impl
                cls.implementation = new_impl

        for member, old_qualified in renamed:
            new_qualified = member.qualified_name
            if self.episode is not None and old_qualified in self.episode:
                # Another class may still own the old reference
                if self.find_class(old_qualified) is None:
                    self.episode.rename(old_qualified, new_qualified)
                else:
                    self.episode.add(new_qualified)
            factory = self.factories.get(member.package)
            if factory is not None and old_qualified in factory.entries:
                factory.rename(old_qualified, new_qualified)
                if member.implementation:
                    factory.register(new_qualified, member.implementation)

    def factory_for(self, package: str) -> ObjectFactory:
        if package not in self.factories:
            self.factories[package] = ObjectFactory(package)
        return self.factories[package]

    def _subtree(self, cls: ClassModel) -> Iterator[ClassModel]:
        yield cls
        for child in cls.nested:
            yield from self._subtree(child)

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_classes())
