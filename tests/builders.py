"""Small constructors for class-model fixtures."""

from element_wrapper import (
    ClassModel,
    ContentKind,
    ModelGraph,
    Multiplicity,
    PropertyModel,
)


def single(name, value_type="str", **kwargs):
    return PropertyModel(name=name, value_type=value_type, **kwargs)


def repeated(name, value_type="str", **kwargs):
    return PropertyModel(
        name=name, value_type=value_type, multiplicity=Multiplicity.REPEATED, **kwargs
    )


def any_content(name, **kwargs):
    return PropertyModel(name=name, value_type="", content_kind=ContentKind.ANY, **kwargs)


def klass(name, *properties, package="pub", element=None, **kwargs):
    return ClassModel(
        name=name,
        package=package,
        properties=list(properties),
        element_name=element,
        **kwargs,
    )


def publisher_graph(**publisher_kwargs):
    """Publisher with a repeated ``article`` element of type Article."""
    return ModelGraph(
        [
            klass(
                "Publisher",
                single("name"),
                repeated("article", "Article"),
                element="publisher",
                **publisher_kwargs,
            ),
            klass("Article", single("title"), element="article"),
        ]
    )
