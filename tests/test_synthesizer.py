"""Tests for wrapper class synthesis."""

import pytest

from element_wrapper import (
    ContentKind,
    Episode,
    InstantiationMode,
    ModelGraph,
    Multiplicity,
    wrap_elements,
)
from element_wrapper.core.model import CollectionKind
from element_wrapper.customization import WrapperDirective
from element_wrapper.selector import Candidate
from element_wrapper.synthesizer import (
    CandidateState,
    MIXED_TEXT_FIELD,
    SynthesisError,
    SynthesisRecord,
)

from builders import any_content, klass, publisher_graph, repeated, single


class TestDefaultWrapping:
    """Wrapping with no customization."""

    def test_wrapper_class_and_reference(self, graph):
        result = wrap_elements(graph)

        publisher = graph.find_class("pub.Publisher")
        wrapper = graph.find_class("pub.Articles")

        assert wrapper is not None
        assert wrapper.is_wrapper
        assert [p.name for p in publisher.properties] == ["name", "articles"]

        reference = publisher.get_property("articles")
        assert reference.reference is wrapper
        assert reference.multiplicity == Multiplicity.SINGLE
        assert reference.type_name == "pub.Articles"

        item = wrapper.get_property("article")
        assert item.owner is wrapper
        assert item.field_name == "article"
        assert item.value_type == "Article"
        assert item.multiplicity == Multiplicity.REPEATED
        assert item.collection_kind == CollectionKind.ORDERED
        assert item.collection_type == "list"
        assert item.collection_interface == "list"
        assert item.instantiation == InstantiationMode.EAGER

        assert result.wrappers == [wrapper]
        assert all(r.state == CandidateState.FINALIZED for r in result.records)

    def test_reference_keeps_the_original_slot(self):
        graph = ModelGraph(
            [klass("Book", single("title"), repeated("author"), single("isbn"))]
        )
        wrap_elements(graph)
        assert graph.find_class("pub.Book").field_names() == ["title", "authors", "isbn"]

    def test_reference_copies_nillable_and_required(self):
        graph = ModelGraph([klass("Book", repeated("author", nillable=True, required=True))])
        wrap_elements(graph)
        reference = graph.find_class("pub.Book").get_property("authors")
        assert reference.nillable and reference.required

    def test_adapter_travels_with_the_property(self):
        graph = ModelGraph([klass("Log", repeated("stamp", adapter="IsoDateAdapter"))])
        wrap_elements(graph)
        assert graph.find_class("pub.Stamps").get_property("stamp").adapter == "IsoDateAdapter"

    def test_every_wrapped_property_leaves_one_reference(self):
        graph = ModelGraph([klass("Book", repeated("author"), repeated("tag"))])
        result = wrap_elements(graph)

        book = graph.find_class("pub.Book")
        assert len(result.wrappers) == 2
        assert all(p.is_wrapper_reference for p in book.properties)
        assert not any(p.is_repeated for p in book.properties)


class TestNaming:
    """Names chosen for wrapper classes and fields."""

    def test_plural_names(self):
        graph = ModelGraph([klass("Feed", repeated("entry", "Entry")), klass("Entry")])
        wrap_elements(graph, plural=True)

        feed = graph.find_class("pub.Feed")
        assert graph.find_class("pub.Entries") is not None
        assert feed.get_property("entries").type_name == "pub.Entries"

    def test_plural_field_names_with_reserved_item(self):
        graph = ModelGraph(
            [klass("Conversion", any_content("accept"), repeated("return", "Entry")), klass("Entry")]
        )
        wrap_elements(graph, ["-Xxew:plural"])

        conversion = graph.find_class("pub.Conversion")
        assert conversion.field_names() == ["accepts", "returns"]
        assert graph.find_class("pub.Returns").get_property("return").field_name == "return_"

    def test_collisions_are_suffixed_deterministically(self):
        def build():
            return ModelGraph([klass("A", repeated("item")), klass("B", repeated("item"))])

        first, second = build(), build()
        result = wrap_elements(first)
        wrap_elements(second)

        names = [cls.qualified_name for cls in first.iter_classes()]
        assert names == ["pub.A", "pub.B", "pub.Items", "pub.Items1"]
        assert names == [cls.qualified_name for cls in second.iter_classes()]
        assert first.find_class("pub.B").get_property("items1").reference.name == "Items1"
        assert result.counters.renames == [("pub", "Items", "Items1")]

    def test_reference_field_avoids_existing_fields(self):
        graph = ModelGraph([klass("Book", single("authors"), repeated("author"))])
        wrap_elements(graph)
        assert graph.find_class("pub.Book").field_names() == ["authors", "authors1"]

    def test_explicit_class_and_field(self):
        graph = publisher_graph()
        graph.find_property("pub.Publisher.article").customization = {
            "class": "Catalogue",
            "field": "entry",
        }
        wrap_elements(graph)

        catalogue = graph.find_class("pub.Catalogue")
        assert catalogue.properties[0].field_name == "entry"
        assert graph.find_class("pub.Publisher").get_property("catalogue").reference is catalogue

    def test_explicit_class_name_is_escaped(self):
        graph = publisher_graph()
        graph.find_property("pub.Publisher.article").customization = {"class": "None"}
        wrap_elements(graph)

        wrapper = graph.find_class("pub.None_")
        assert graph.find_class("pub.Publisher").get_property("none").reference is wrapper
        assert graph.names_in_scope("pub") == ["Publisher", "Article", "None_"]


class TestPlacement:
    """Top-level and nested wrapper classes."""

    def test_nested_wrapper(self):
        graph = publisher_graph()
        wrap_elements(graph, nested=True)

        publisher = graph.find_class("pub.Publisher")
        wrapper = graph.find_class("pub.Publisher.Articles")

        assert wrapper.parent is publisher
        assert publisher.nested == [wrapper]
        assert wrapper not in graph.classes
        assert [c.qualified_name for c in graph.iter_classes()] == [
            "pub.Publisher",
            "pub.Publisher.Articles",
            "pub.Article",
        ]

    def test_nested_wrappers_only_collide_within_their_owner(self):
        graph = ModelGraph([klass("A", repeated("item")), klass("B", repeated("item"))])
        result = wrap_elements(graph, nested=True)

        assert graph.find_class("pub.A.Items") is not None
        assert graph.find_class("pub.B.Items") is not None
        assert result.counters.renames == []


class TestContentKinds:
    """Per-kind rewrite strategies."""

    def test_wildcard_stays_loose(self):
        graph = ModelGraph([klass("Envelope", any_content("payload"))])
        wrap_elements(graph)

        item = graph.find_class("pub.Payloads").get_property("payload")
        assert item.content_kind == ContentKind.ANY
        assert item.value_type == "object"
        assert item.is_repeated

    def test_mixed_content_gets_text_runs(self):
        graph = ModelGraph(
            [
                klass(
                    "Para",
                    repeated("content", "object", content_kind=ContentKind.MIXED),
                    element="para",
                )
            ]
        )
        wrap_elements(graph)

        wrapper = graph.find_class("pub.Contents")
        text = wrapper.get_property(MIXED_TEXT_FIELD)
        assert [p.name for p in wrapper.properties] == ["content", MIXED_TEXT_FIELD]
        assert text.synthetic
        assert text.value_type == "str"
        assert text.instantiation == InstantiationMode.EAGER

    def test_substitution_head_keeps_its_members(self):
        substitutes = {"address": "Address", "phoneNumber": "PhoneNumber"}
        graph = ModelGraph(
            [
                klass(
                    "Customer",
                    repeated(
                        "contactInfo",
                        "ContactInfo",
                        content_kind=ContentKind.REFERENCE,
                        substitutes=substitutes,
                    ),
                )
            ]
        )
        wrap_elements(graph)

        item = graph.find_class("pub.ContactInfos").get_property("contactInfo")
        assert item.value_type == "ContactInfo"
        assert item.field_name == "contact_info"
        assert item.substitutes == substitutes
        assert graph.find_class("pub.Customer").field_names() == ["contact_infos"]

    def test_substitution_head_without_members_warns(self, caplog):
        graph = ModelGraph(
            [klass("Customer", single("contact", "Contact", content_kind=ContentKind.REFERENCE))]
        )
        wrap_elements(graph)
        assert "Substitution head pub.Customer.contact has no registered members" in caplog.text


class TestValueObjectsAndEpisodes:
    """Bookkeeping outside the class list."""

    def test_implementation_class_and_factory_entry(self):
        graph = publisher_graph(implementation="pub.impl.PublisherImpl")
        wrap_elements(graph)

        wrapper = graph.find_class("pub.Articles")
        reference = graph.find_class("pub.Publisher").get_property("articles")

        assert wrapper.implementation == "pub.impl.ArticlesImpl"
        assert reference.implementation_type == "pub.impl.ArticlesImpl"
        assert graph.factories["pub"].implementation_for("pub.Articles") == "pub.impl.ArticlesImpl"

    def test_no_factory_without_value_objects(self):
        graph = publisher_graph()
        wrap_elements(graph)
        assert graph.factories == {}

    def test_wrappers_join_the_episode(self):
        graph = publisher_graph()
        graph.episode = Episode(["pub.Publisher", "pub.Article"])
        wrap_elements(graph)
        assert graph.episode.refs == ["pub.Publisher", "pub.Article", "pub.Articles"]


class TestInheritedDuplicates:
    """Properties redeclared on a subclass of an already wrapped base."""

    def test_redeclared_property_is_deleted(self, caplog):
        group = klass("Group", repeated("member"))
        alliance = klass("Alliance", single("name"), repeated("member"), base=group)
        graph = ModelGraph([group, alliance])

        result = wrap_elements(graph)

        assert alliance.field_names() == ["name"]
        assert graph.find_class("pub.Members1") is None
        assert result.counters.candidates == 2
        assert result.counters.modifications == 1
        assert result.counters.deletions == 1
        assert [r.deleted for r in result.records] == [False, True]
        assert result.wrappers == [graph.find_class("pub.Members")]
        assert "Removed pub.Alliance.member: inherits wrapper pub.Members" in caplog.text


class TestSynthesisRecord:
    """Candidate state machine."""

    def test_out_of_order_transition(self):
        owner = klass("Book", repeated("author"))
        record = SynthesisRecord(Candidate(owner, owner.properties[0], WrapperDirective()))

        record.advance(CandidateState.SELECTED)
        assert record.state == CandidateState.NEW_CLASS_CREATED
        with pytest.raises(SynthesisError, match="expected state property_relinked"):
            record.advance(CandidateState.PROPERTY_RELINKED)
