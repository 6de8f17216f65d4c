"""
XML (un)marshalling driven by a rewritten class model.

Used to check that a model still reads and writes the documents its
schema describes. Wrapper references are transparent: the wrapper's
items are written inline as the original repeated elements, so a
document survives a round trip unchanged.
"""

import copy
from collections import deque
from typing import Any, Dict, Iterable, List, Optional
from xml.etree import ElementTree as ET

from .core.model import (
    ClassModel,
    CollectionKind,
    ContentKind,
    InstantiationMode,
    ModelGraph,
    PropertyModel,
)
from .synthesizer import MIXED_TEXT_FIELD
from .logging_config import get_logger

logger = get_logger(__name__)


class BindingError(Exception):
    """Exception raised when a document does not fit the model."""

    pass


_FACTORIES = {
    "list": list,
    "deque": deque,
    "tuple": list,
}


def _new_container(prop: PropertyModel):
    # Unordered and sorted kinds keep document order so marshalling is stable
    if prop.collection_kind == CollectionKind.ORDERED:
        return _FACTORIES.get(prop.collection_type or "list", list)()
    return []


def _ensure_container(obj: "BoundObject", prop: PropertyModel) -> None:
    if not obj.has_container(prop.field_name):
        obj.set_items(_new_container(prop), prop.field_name)


class BoundObject:
    """Instance of a model class holding field values by field name."""

    def __init__(self, cls: ClassModel):
        self.model = cls
        self.values: Dict[str, Any] = {}
        if cls.is_wrapper:
            for prop in cls.properties:
                if prop.instantiation == InstantiationMode.EAGER:
                    self.values[prop.field_name] = _new_container(prop)

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.values.get(field_name, default)

    def has_container(self, field_name: str) -> bool:
        """True once the backing container of a wrapped field exists."""
        return field_name in self.values

    def items(self, field_name: Optional[str] = None):
        """
        Backing container of a wrapped field.

        Lazy wrappers allocate it on first use. Wrappers without
        instantiation never allocate: the container is whatever the
        caller passed to :meth:`set_items`, or None.
        """
        prop = self._wrapped_field(field_name)
        if prop.field_name not in self.values:
            if prop.instantiation == InstantiationMode.NONE:
                return None
            self.values[prop.field_name] = _new_container(prop)
        return self.values[prop.field_name]

    def set_items(self, container: Any, field_name: Optional[str] = None) -> None:
        """Install the backing container of a wrapped field."""
        prop = self._wrapped_field(field_name)
        self.values[prop.field_name] = container

    def append(self, value: Any, field_name: Optional[str] = None) -> None:
        container = self.items(field_name)
        if container is None:
            prop = self._wrapped_field(field_name)
            raise BindingError(
                f"{self.model.qualified_name}.{prop.field_name} has no container; "
                "call set_items() first"
            )
        container.append(value)

    def _wrapped_field(self, field_name: Optional[str]) -> PropertyModel:
        for prop in self.model.properties:
            if prop.synthetic and field_name is None:
                continue
            if field_name is None or prop.field_name == field_name:
                return prop
        raise BindingError(f"{self.model.qualified_name} has no field {field_name!r}")

    def __repr__(self) -> str:
        return f"BoundObject({self.model.qualified_name}, {self.values!r})"


class ModelBinder:
    """Reads and writes XML documents through a model graph."""

    def __init__(self, graph: ModelGraph, root_class: Optional[str] = None):
        self.graph = graph
        self.root_class = root_class

    # Unmarshalling

    def unmarshal(self, xml_text: str) -> BoundObject:
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise BindingError(f"Invalid XML: {e}") from e
        return self._read_object(self._root_model(root.tag), root)

    def _root_model(self, tag: str) -> ClassModel:
        if self.root_class:
            cls = self.graph.find_class(self.root_class)
            if cls is None:
                raise BindingError(f"Unknown root class {self.root_class}")
            return cls
        for cls in self.graph.iter_classes():
            if not cls.is_wrapper and (cls.element_name or cls.name) == tag:
                return cls
        raise BindingError(f"No class is bound to root element <{tag}>")

    def _class_for(self, type_name: str) -> Optional[ClassModel]:
        for cls in self.graph.iter_classes():
            if type_name in (cls.qualified_name, cls.name):
                return cls
        return None

    def _read_object(self, cls: ClassModel, elem: ET.Element) -> BoundObject:
        obj = BoundObject(cls)
        children = list(elem)
        position = 0

        for prop in cls.properties:
            if prop.is_attribute:
                if prop.name in elem.attrib:
                    obj.values[prop.field_name] = elem.attrib[prop.name]
                continue

            if prop.reference is not None:
                wrapper = BoundObject(prop.reference)
                position = self._read_wrapper(wrapper, elem, children, position)
                obj.values[prop.field_name] = wrapper
                continue

            if prop.content_kind == ContentKind.MIXED:
                position = self._read_mixed(obj, prop, elem, children, position)
                continue

            if prop.is_repeated:
                while position < len(children) and self._accepts(prop, children[position]):
                    obj.append(self._read_value(prop, children[position]), prop.field_name)
                    position += 1
            elif position < len(children) and self._accepts(prop, children[position]):
                obj.values[prop.field_name] = self._read_value(prop, children[position])
                position += 1

        if not cls.is_wrapper and position < len(children):
            raise BindingError(
                f"Unexpected element <{children[position].tag}> in {cls.qualified_name}"
            )

        if not children and not any(not p.is_attribute for p in cls.properties):
            if elem.text and elem.text.strip():
                obj.values["value"] = elem.text
        return obj

    def _read_wrapper(
        self, wrapper: BoundObject, parent: ET.Element, children: List[ET.Element], position: int
    ) -> int:
        for prop in wrapper.model.properties:
            if prop.synthetic:
                continue
            if prop.content_kind == ContentKind.MIXED:
                return self._read_mixed(wrapper, prop, parent, children, position)
            _ensure_container(wrapper, prop)
            while position < len(children) and self._accepts(prop, children[position]):
                wrapper.append(self._read_value(prop, children[position]), prop.field_name)
                position += 1
        return position

    def _read_mixed(
        self,
        obj: BoundObject,
        prop: PropertyModel,
        parent: ET.Element,
        children: List[ET.Element],
        position: int,
    ) -> int:
        text = obj.model.get_property(MIXED_TEXT_FIELD)
        has_text = text is not None
        _ensure_container(obj, prop)
        if has_text:
            _ensure_container(obj, text)
            obj.append(parent.text or "", MIXED_TEXT_FIELD)
        while position < len(children):
            child = children[position]
            obj.append(self._read_value(prop, child), prop.field_name)
            if has_text:
                obj.append(child.tail or "", MIXED_TEXT_FIELD)
            position += 1
        return position

    def _accepts(self, prop: PropertyModel, elem: ET.Element) -> bool:
        if prop.content_kind == ContentKind.ANY:
            return True
        if prop.content_kind == ContentKind.REFERENCE:
            return elem.tag == prop.name or elem.tag in prop.substitutes
        return elem.tag == prop.name

    def _read_value(self, prop: PropertyModel, elem: ET.Element) -> Any:
        if prop.content_kind == ContentKind.ANY:
            return copy.deepcopy(elem)

        type_name = prop.value_type
        if prop.substitutes and elem.tag in prop.substitutes:
            type_name = prop.substitutes[elem.tag]

        cls = self._class_for(type_name)
        if cls is None:
            if prop.content_kind == ContentKind.MIXED:
                return copy.deepcopy(elem)
            return elem.text or ""

        obj = self._read_object(cls, elem)
        obj.values.setdefault("__element__", elem.tag)
        return obj

    # Marshalling

    def marshal(self, obj: BoundObject) -> str:
        root = ET.Element(obj.model.element_name or obj.model.name)
        self._write_object(obj, root)
        return ET.tostring(root, encoding="unicode")

    def _write_object(self, obj: BoundObject, elem: ET.Element) -> None:
        if "value" in obj.values:
            elem.text = obj.values["value"]

        for prop in obj.model.properties:
            value = obj.values.get(prop.field_name)
            if value is None:
                continue

            if prop.is_attribute:
                elem.set(prop.name, value)
            elif prop.reference is not None:
                self._write_wrapper(value, elem)
            elif prop.content_kind == ContentKind.MIXED:
                self._write_mixed(obj, prop, elem)
            elif prop.is_repeated:
                for item in value:
                    self._write_value(prop, item, elem)
            else:
                self._write_value(prop, value, elem)

    def _write_wrapper(self, wrapper: BoundObject, parent: ET.Element) -> None:
        for prop in wrapper.model.properties:
            if prop.synthetic:
                continue
            if prop.content_kind == ContentKind.MIXED:
                self._write_mixed(wrapper, prop, parent)
                continue
            for value in wrapper.get(prop.field_name) or ():
                self._write_value(prop, value, parent)

    def _write_mixed(self, obj: BoundObject, prop: PropertyModel, parent: ET.Element) -> None:
        texts: List[str] = list(obj.get(MIXED_TEXT_FIELD) or [])
        values: Iterable[Any] = obj.get(prop.field_name) or ()
        if texts:
            parent.text = (parent.text or "") + texts[0]
        for index, value in enumerate(values, start=1):
            child = self._write_value(prop, value, parent)
            if index < len(texts):
                child.tail = texts[index]

    def _write_value(self, prop: PropertyModel, value: Any, parent: ET.Element) -> ET.Element:
        if isinstance(value, ET.Element):
            child = copy.deepcopy(value)
            child.tail = None
            parent.append(child)
            return child

        if isinstance(value, BoundObject):
            child = ET.SubElement(parent, value.values.get("__element__", prop.name))
            self._write_object(value, child)
            return child

        child = ET.SubElement(parent, prop.name)
        child.text = str(value)
        return child
