"""
Naming utilities for the element wrapper pass.

Handles case conversion, reserved-word escaping, English pluralization
and deterministic collision suffixes for synthesized classes and fields.
"""

import re
from typing import Collection, Dict, Iterable, List, Optional, Set, Tuple
from enum import Enum

from ..logging_config import get_logger

logger = get_logger(__name__)


class PlacementError(Exception):
    """Exception raised when a name collision cannot be resolved."""

    pass


class NamingCase(Enum):
    """Different naming case styles."""
    SNAKE_CASE = "snake"      # user_name
    PASCAL_CASE = "pascal"    # UserName


# Python reserved keywords
PYTHON_RESERVED_WORDS = {
    "False", "None", "True", "and", "as", "assert", "async", "await",
    "break", "class", "continue", "def", "del", "elif", "else", "except",
    "finally", "for", "from", "global", "if", "import", "in", "is",
    "lambda", "nonlocal", "not", "or", "pass", "raise", "return", "try",
    "while", "with", "yield",
}

# Builtin type names generated fields should not shadow
PYTHON_BUILTIN_TYPES = {
    "bool", "bytes", "dict", "float", "int", "list", "object", "set",
    "str", "tuple", "type",
}

# Fixed escape table: reserved identifier -> generated identifier
RESERVED_WORD_ESCAPES: Dict[str, str] = {
    word: f"{word}_" for word in sorted(PYTHON_RESERVED_WORDS | PYTHON_BUILTIN_TYPES)
}


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, escapes: Optional[Dict[str, str]] = None):
        """
        Initialize name sanitizer.

        Args:
            escapes: Mapping of reserved identifiers to their replacement
        """
        self.escapes = RESERVED_WORD_ESCAPES if escapes is None else escapes

    def sanitize_name(self, name: str, target_case: NamingCase = NamingCase.SNAKE_CASE) -> str:
        """
        Sanitize a name for safe use in generated code.

        Args:
            name: Original name to sanitize
            target_case: Desired case style

        Returns:
            Sanitized, escaped name
        """
        cleaned = self._clean_basic(name)
        converted = self._convert_case(cleaned, target_case)
        return self.escape(converted)

    def escape(self, name: str) -> str:
        """Escape a reserved identifier through the fixed table."""
        return self.escapes.get(name, name)

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        # Remove non-alphanumeric chars except underscore and hyphen
        cleaned = re.sub(r'[^a-zA-Z0-9_-]', '_', name)

        cleaned = cleaned.strip('_-')

        if cleaned and cleaned[0].isdigit():
            cleaned = f"_{cleaned}"

        if not cleaned:
            cleaned = "field"

        return cleaned

    def _convert_case(self, name: str, target_case: NamingCase) -> str:
        """Convert name to target case style."""
        if target_case == NamingCase.SNAKE_CASE:
            return self._to_snake_case(name)
        elif target_case == NamingCase.PASCAL_CASE:
            return self._to_pascal_case(name)
        return name

    def _to_snake_case(self, name: str) -> str:
        """Convert to snake_case."""
        name = name.replace('-', '_')

        # Insert underscore before uppercase letters
        name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)

        name = name.lower()
        name = re.sub(r'_+', '_', name)

        return name.strip('_')

    def _to_pascal_case(self, name: str) -> str:
        """Convert to PascalCase."""
        parts = self._to_snake_case(name).split('_')
        return ''.join(part[:1].upper() + part[1:] for part in parts if part)


# Irregular nouns: singular -> plural
IRREGULAR_PLURALS: Dict[str, str] = {
    "child": "children",
    "person": "people",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "foot": "feet",
    "tooth": "teeth",
    "ox": "oxen",
    "datum": "data",
    "medium": "media",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "criterion": "criteria",
    "phenomenon": "phenomena",
    "leaf": "leaves",
    "life": "lives",
    "knife": "knives",
    "wife": "wives",
    "half": "halves",
    "shelf": "shelves",
}

UNCOUNTABLE_NOUNS: Set[str] = {
    "information", "equipment", "data", "metadata", "news", "series",
    "species", "software", "hardware", "feedback", "content", "text",
}

_LAST_WORD = re.compile(r"[A-Za-z][a-z0-9]*$")


class Pluralizer:
    """English pluralization heuristic driven by configurable tables."""

    def __init__(
        self,
        irregular: Optional[Dict[str, str]] = None,
        uncountable: Optional[Iterable[str]] = None,
    ):
        self.irregular = dict(IRREGULAR_PLURALS)
        self.irregular.update({k.lower(): v.lower() for k, v in (irregular or {}).items()})
        self.uncountable = set(UNCOUNTABLE_NOUNS)
        self.uncountable.update(word.lower() for word in (uncountable or ()))
        self._plural_forms = set(self.irregular.values())

    def pluralize(self, word: str) -> str:
        """
        Return the plural of ``word``; plural input is returned unchanged.

        Only the last word of a camelCase/PascalCase name is inflected.
        """
        match = _LAST_WORD.search(word)
        if not match:
            return word

        head, segment = word[: match.start()], match.group(0)
        plural = self._pluralize_segment(segment.lower())
        if segment[0].isupper():
            plural = plural[0].upper() + plural[1:]
        return head + plural

    def is_plural(self, word: str) -> bool:
        match = _LAST_WORD.search(word)
        segment = match.group(0).lower() if match else word.lower()
        return self._pluralize_segment(segment) == segment

    def _pluralize_segment(self, word: str) -> str:
        if word in self.uncountable or word in self._plural_forms:
            return word
        if word in self.irregular:
            return self.irregular[word]
        if word.endswith("s") and not word.endswith(("ss", "us", "is")):
            return word
        if word.endswith("is"):
            return word[:-2] + "es"
        if len(word) > 1 and word.endswith("y") and word[-2] not in "aeiou":
            return word[:-1] + "ies"
        if word.endswith(("s", "x", "z", "ch", "sh")):
            return word + "es"
        return word + "s"


class NamingEngine:
    """Derives wrapper class and field names from element names."""

    def __init__(
        self,
        sanitizer: Optional[NameSanitizer] = None,
        pluralizer: Optional[Pluralizer] = None,
        max_suffix: int = 9999,
    ):
        self.sanitizer = sanitizer or NameSanitizer()
        self.pluralizer = pluralizer or Pluralizer()
        self.max_suffix = max_suffix

    def collection_name(self, element_name: str, plural: bool = False) -> str:
        """Name of the collection an element is gathered into."""
        if plural:
            return self.pluralizer.pluralize(element_name)
        if element_name.endswith("s"):
            return f"{element_name}List"
        return f"{element_name}s"

    def wrapper_class_name(
        self, element_name: str, plural: bool = False, explicit: Optional[str] = None
    ) -> str:
        if explicit:
            return self.sanitizer.escape(explicit)
        return self.sanitizer.sanitize_name(
            self.collection_name(element_name, plural), NamingCase.PASCAL_CASE
        )

    def reference_field_name(self, class_name: str) -> str:
        """Owner-side field holding the wrapper instance."""
        return self.sanitizer.sanitize_name(class_name, NamingCase.SNAKE_CASE)

    def item_field_name(self, element_name: str, explicit: Optional[str] = None) -> str:
        """Field on the wrapper holding the repeated values."""
        if explicit:
            return self.sanitizer.escape(explicit)
        return self.sanitizer.sanitize_name(element_name, NamingCase.SNAKE_CASE)

    def disambiguate(
        self,
        name: str,
        taken: Collection[str],
        scope: str = "",
        renames: Optional[List[Tuple[str, str, str]]] = None,
    ) -> str:
        """
        Return ``name`` or the smallest free ``name<N>`` in a scope.

        Args:
            name: Requested identifier
            taken: Identifiers already claimed in the scope
            scope: Scope label used in logs and rename records
            renames: Collector receiving ``(scope, requested, assigned)``

        Raises:
            PlacementError: If every suffix up to ``max_suffix`` is taken
        """
        if name not in taken:
            return name

        for counter in range(1, self.max_suffix + 1):
            candidate = f"{name}{counter}"
            if candidate not in taken:
                logger.debug("Renamed %s to %s in scope '%s'", name, candidate, scope)
                if renames is not None:
                    renames.append((scope, name, candidate))
                return candidate

        raise PlacementError(
            f"Cannot find a free name for '{name}' in scope '{scope}' "
            f"after {self.max_suffix} attempts"
        )
