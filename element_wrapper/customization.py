"""
Customization resolution for the element wrapper pass.

Merges the control file, in-schema annotations and global options into
one :class:`WrapperDirective` per candidate property. Lookup is layered
per setting; the first layer that defines a setting decides it:

1. control file entry matching the property path
2. annotation on the property
3. annotation on the owning class
4. global options
5. built-in defaults
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .core.config import (
    DEFAULT_OPTIONS,
    ConfigurationError,
    WrapperConfig,
    resolve_collection_type,
    resolve_instantiation_mode,
)
from .core.model import (
    ClassModel,
    CollectionKind,
    InstantiationMode,
    ModelGraph,
    PropertyModel,
)
from .logging_config import get_logger

logger = get_logger(__name__)

# Annotation key -> expected value type
ANNOTATION_KEYS: Dict[str, type] = {
    "wrap": bool,
    "collection": str,
    "instantiate": str,
    "class": str,
    "field": str,
    "nested": bool,
    "plural": bool,
}

# Bare control-file tokens -> (setting, value)
FLAG_TOKENS: Dict[str, Tuple[str, bool]] = {
    "wrap": ("wrap", True),
    "include": ("wrap", True),
    "skip": ("wrap", False),
    "exclude": ("wrap", False),
    "no-wrap": ("wrap", False),
    "nested": ("nested", True),
    "toplevel": ("nested", False),
    "plural": ("plural", True),
    "singular": ("plural", False),
}

VALUE_TOKENS = {"class", "field", "collection", "instantiate"}

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_PATH = re.compile(r"^[A-Za-z_][\w-]*(\.[A-Za-z_][\w-]*)+$")
_ENTRY = re.compile(r"^(?P<path>/.+/|[^\s=:]+)\s*[=:]\s*(?P<tokens>.*)$")
_REGEX_PATH = re.compile(r"^\s*/.*?/(?=\s*[=:])")
_COMMENT = re.compile(r"(^|\s)#.*$")


def _strip_comment(raw: str) -> str:
    # '#' opens a comment at line start or after whitespace, never inside /regex/
    match = _REGEX_PATH.match(raw)
    head, rest = (raw[: match.end()], raw[match.end():]) if match else ("", raw)
    return (head + _COMMENT.sub("", rest, count=1)).strip()


@dataclass(frozen=True)
class WrapperDirective:
    """Resolved wrap decision and style for one candidate."""

    wrap: bool = True
    collection_kind: CollectionKind = CollectionKind.ORDERED
    collection_type: str = "list"
    collection_interface: str = "list"
    instantiation: InstantiationMode = InstantiationMode.EAGER
    class_name: Optional[str] = None
    field_name: Optional[str] = None
    nested: bool = False
    plural: bool = False
    source: str = "default"  # layer that decided ``wrap``


@dataclass
class ControlEntry:
    """One line of a control file."""

    line: int
    path: str
    settings: Dict[str, Any]
    pattern: Optional["re.Pattern[str]"] = None
    matched: bool = False

    def matches(self, prop: PropertyModel) -> bool:
        paths = _candidate_paths(prop)
        if self.pattern is not None:
            return any(self.pattern.fullmatch(path) for path in paths)
        return self.path in paths


def _candidate_paths(prop: PropertyModel) -> Tuple[str, ...]:
    """Qualified path and package-relative path of a property."""
    if prop.owner is None:
        return (prop.name,)
    return (prop.path, f"{prop.owner.local_name}.{prop.name}")


class ControlFile:
    """Parsed control file: property paths mapped to directives."""

    def __init__(self, entries: List[ControlEntry], source: str = "<control>"):
        self.entries = entries
        self.source = source

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ControlFile":
        """Read and parse a control file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read control file {path}: {e}") from e
        return cls.parse(text, str(path))

    @classmethod
    def parse(cls, text: str, source: str = "<control>") -> "ControlFile":
        """
        Parse control file text.

        Raises:
            ConfigurationError: On malformed paths or unknown tokens
        """
        entries = []
        for line_no, raw in enumerate(text.splitlines(), start=1):
            line = _strip_comment(raw)
            if not line:
                continue
            entries.append(cls._parse_line(line, line_no, source))

        logger.debug("Parsed %d control entr(ies) from %s", len(entries), source)
        return cls(entries, source)

    @staticmethod
    def _parse_line(line: str, line_no: int, source: str) -> ControlEntry:
        where = f"{source}:{line_no}"
        match = _ENTRY.match(line)
        if not match:
            raise ConfigurationError(f"{where}: malformed control entry: {line!r}")

        path = match.group("path")
        pattern = None
        if path.startswith("/"):
            try:
                pattern = re.compile(path[1:-1])
            except re.error as e:
                raise ConfigurationError(f"{where}: invalid pattern {path}: {e}") from e
        elif not _PATH.match(path):
            raise ConfigurationError(f"{where}: malformed property path: {path!r}")

        tokens = match.group("tokens").split()
        if not tokens:
            raise ConfigurationError(f"{where}: no directive for path {path}")

        settings: Dict[str, Any] = {}
        for token in tokens:
            key, sep, value = token.partition("=")
            if not sep:
                if token not in FLAG_TOKENS:
                    raise ConfigurationError(
                        f"{where}: unknown directive {token!r} for path {path}"
                    )
                setting, flag = FLAG_TOKENS[token]
                settings[setting] = flag
                continue

            if key not in VALUE_TOKENS or not value:
                raise ConfigurationError(f"{where}: unknown directive {token!r} for path {path}")
            try:
                settings[key] = _check_value(key, value)
            except ConfigurationError as e:
                raise ConfigurationError(f"{where}: {e} for path {path}") from None

        return ControlEntry(line=line_no, path=path, settings=settings, pattern=pattern)

    def settings_for(self, prop: PropertyModel) -> Dict[str, Any]:
        """Merged settings of every entry matching ``prop``; later lines win."""
        merged: Dict[str, Any] = {}
        for entry in self.entries:
            if entry.matches(prop):
                merged.update(entry.settings)
        return merged

    def check_references(self, graph: ModelGraph) -> None:
        """
        Ensure every entry matches at least one property of the model.

        Raises:
            ConfigurationError: Naming the first unmatched path
        """
        props = [prop for _, prop in graph.iter_properties()]
        for entry in self.entries:
            entry.matched = any(entry.matches(prop) for prop in props)
            if not entry.matched:
                logger.error("Control entry %s:%d matches no property", self.source, entry.line)
                raise ConfigurationError(
                    f"{self.source}:{entry.line}: path {entry.path} matches no property"
                )


def _check_value(key: str, value: Any) -> Any:
    """Validate one directive value shared by control file and annotations."""
    if key == "collection":
        resolve_collection_type(value)
    elif key == "instantiate":
        resolve_instantiation_mode(value)
    elif key in ("class", "field") and not _IDENTIFIER.match(value):
        raise ConfigurationError(f"invalid {key} name {value!r}")
    return value


def validate_annotation(annotation: Any, where: str) -> Dict[str, Any]:
    """
    Check an in-schema customization annotation.

    Args:
        annotation: Annotation attached to a property or class
        where: Property path or class name for error messages

    Returns:
        The annotation as a plain dict (empty when absent)

    Raises:
        ConfigurationError: If the annotation is structurally invalid
    """
    if annotation is None:
        return {}
    if not isinstance(annotation, dict):
        raise ConfigurationError(f"Malformed customization on {where}: expected a mapping")

    for key, value in annotation.items():
        if key not in ANNOTATION_KEYS:
            raise ConfigurationError(f"Unknown customization '{key}' on {where}")
        if not isinstance(value, ANNOTATION_KEYS[key]):
            raise ConfigurationError(
                f"Customization '{key}' on {where} must be {ANNOTATION_KEYS[key].__name__}"
            )
        try:
            _check_value(key, value)
        except ConfigurationError as e:
            raise ConfigurationError(f"Customization on {where}: {e}") from None

    return dict(annotation)


class CustomizationResolver:
    """Produces exactly one WrapperDirective per property."""

    def __init__(self, config: WrapperConfig, control: Optional[ControlFile] = None):
        self.config = config
        self.control = control
        self._class_annotations: Dict[int, Dict[str, Any]] = {}

    def validate(self, graph: ModelGraph) -> None:
        """
        Validate all customization sources before the model is touched.

        Raises:
            ConfigurationError: On unmatched control paths or bad annotations
        """
        if self.control is not None:
            self.control.check_references(graph)

        for cls in graph.iter_classes():
            self._class_annotation(cls)
            for prop in cls.properties:
                validate_annotation(prop.customization, prop.path)

    def resolve(self, prop: PropertyModel) -> WrapperDirective:
        """Resolve the directive for a single property."""
        layers = self._layers(prop)

        wrap, source = self._first_present("wrap", layers)
        collection, _ = self._first_present("collection", layers)
        instantiate, _ = self._first_present("instantiate", layers)
        class_name, _ = self._first_present("class", layers)
        field_name, _ = self._first_present("field", layers)
        nested, _ = self._first_present("nested", layers)
        plural, _ = self._first_present("plural", layers)

        kind, collection_type = resolve_collection_type(collection)
        interface = self.config.collection_interface or collection_type

        directive = WrapperDirective(
            wrap=wrap,
            collection_kind=kind,
            collection_type=collection_type,
            collection_interface=interface,
            instantiation=resolve_instantiation_mode(instantiate),
            class_name=class_name,
            field_name=field_name,
            nested=nested,
            plural=plural,
            source=source,
        )
        logger.debug("Directive for %s: %s", prop.path, directive)
        return directive

    def _layers(self, prop: PropertyModel) -> List[Tuple[str, Dict[str, Any]]]:
        control = self.control.settings_for(prop) if self.control is not None else {}
        owner_annotation = self._class_annotation(prop.owner) if prop.owner is not None else {}
        options = {
            "collection": self.config.collection,
            "instantiate": self.config.instantiate,
            "nested": self.config.nested,
            "plural": self.config.plural,
        }
        defaults = dict(DEFAULT_OPTIONS, wrap=True, **{"class": None, "field": None})
        return [
            ("control", control),
            ("annotation", validate_annotation(prop.customization, prop.path)),
            ("class annotation", owner_annotation),
            ("options", options),
            ("default", defaults),
        ]

    def _class_annotation(self, cls: ClassModel) -> Dict[str, Any]:
        key = id(cls)
        if key not in self._class_annotations:
            self._class_annotations[key] = validate_annotation(
                cls.customization, cls.qualified_name
            )
        return self._class_annotations[key]

    @staticmethod
    def _first_present(key: str, layers: List[Tuple[str, Dict[str, Any]]]) -> Tuple[Any, str]:
        for source, values in layers:
            if values.get(key) is not None:
                return values[key], source
        return None, "default"
