"""Tests for name derivation, escaping and collision suffixes."""

import pytest

from element_wrapper.core.naming import (
    NameSanitizer,
    NamingCase,
    NamingEngine,
    PlacementError,
    Pluralizer,
)


class TestPluralizer:
    """English pluralization heuristic."""

    @pytest.mark.parametrize(
        "word, expected",
        [
            ("article", "articles"),
            ("entry", "entries"),
            ("box", "boxes"),
            ("match", "matches"),
            ("status", "statuses"),
            ("analysis", "analyses"),
            ("key", "keys"),
            ("child", "children"),
            ("Person", "People"),
            ("information", "information"),
        ],
    )
    def test_pluralize(self, word, expected):
        assert Pluralizer().pluralize(word) == expected

    def test_only_last_camel_segment_is_inflected(self):
        assert Pluralizer().pluralize("contactEntry") == "contactEntries"
        assert Pluralizer().pluralize("PhoneNumber") == "PhoneNumbers"

    @pytest.mark.parametrize(
        "word", ["article", "entry", "status", "child", "analysis", "leaf", "series", "index"]
    )
    def test_plural_is_a_fixed_point(self, word):
        pluralizer = Pluralizer()
        plural = pluralizer.pluralize(word)
        assert pluralizer.pluralize(plural) == plural
        assert pluralizer.is_plural(plural)

    def test_custom_tables(self):
        pluralizer = Pluralizer(irregular={"cactus": "cacti"}, uncountable=["rice"])
        assert pluralizer.pluralize("cactus") == "cacti"
        assert pluralizer.pluralize("cacti") == "cacti"
        assert pluralizer.pluralize("rice") == "rice"


class TestNameSanitizer:
    """Case conversion and reserved-word escaping."""

    @pytest.mark.parametrize("word", ["class", "return", "import", "type", "list"])
    def test_reserved_words_are_escaped(self, word):
        assert NameSanitizer().sanitize_name(word) == f"{word}_"

    def test_case_conversion(self):
        sanitizer = NameSanitizer()
        assert sanitizer.sanitize_name("contactInfo", NamingCase.SNAKE_CASE) == "contact_info"
        assert sanitizer.sanitize_name("contact-info", NamingCase.PASCAL_CASE) == "ContactInfo"

    def test_invalid_characters(self):
        sanitizer = NameSanitizer()
        assert sanitizer.sanitize_name("first name") == "first_name"
        assert sanitizer.sanitize_name("$$") == "field"


class TestNamingEngine:
    """Wrapper class and field names."""

    def test_default_names(self):
        naming = NamingEngine()
        assert naming.wrapper_class_name("article") == "Articles"
        assert naming.reference_field_name("Articles") == "articles"
        assert naming.item_field_name("article") == "article"

    def test_non_plural_name_for_element_ending_in_s(self):
        naming = NamingEngine()
        assert naming.collection_name("address") == "addressList"
        assert naming.wrapper_class_name("address") == "AddressList"

    def test_plural_names(self):
        naming = NamingEngine()
        assert naming.wrapper_class_name("entry", plural=True) == "Entries"
        assert naming.wrapper_class_name("entries", plural=True) == "Entries"
        assert naming.reference_field_name("Entries") == "entries"

    def test_explicit_names_win(self):
        naming = NamingEngine()
        assert naming.wrapper_class_name("entry", plural=True, explicit="Log") == "Log"
        assert naming.item_field_name("entry", explicit="record") == "record"

    def test_explicit_class_name_is_escaped(self):
        assert NamingEngine().wrapper_class_name("entry", explicit="None") == "None_"

    def test_reserved_item_field(self):
        assert NamingEngine().item_field_name("return") == "return_"

    def test_disambiguate_keeps_free_name(self):
        renames = []
        assert NamingEngine().disambiguate("Items", ["Other"], "pkg", renames) == "Items"
        assert renames == []

    def test_disambiguate_picks_smallest_free_suffix(self):
        renames = []
        name = NamingEngine().disambiguate("Items", ["Items", "Items1", "Items3"], "pkg", renames)
        assert name == "Items2"
        assert renames == [("pkg", "Items", "Items2")]

    def test_disambiguate_exhausted(self):
        naming = NamingEngine(max_suffix=2)
        with pytest.raises(PlacementError, match="Cannot find a free name for 'A'"):
            naming.disambiguate("A", {"A", "A1", "A2"}, "pkg")
