"""Utility functions for loading class-model descriptions.

The wrapper pass normally receives its model from a schema reader. For
fixtures and for hosts that exchange the model as data, this module
builds a :class:`ModelGraph` from a JSON description loaded from a file
or URL.
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from .core.model import (
    ClassModel,
    ContentKind,
    Episode,
    ModelGraph,
    Multiplicity,
    PropertyModel,
)
from .logging_config import get_logger

logger = get_logger(__name__)


class ModelLoaderError(Exception):
    """Custom exception for model loading errors."""

    pass


def _property_from_dict(data: dict[str, Any], owner_name: str) -> PropertyModel:
    if "name" not in data:
        raise ModelLoaderError(f"Property without name in class {owner_name}")

    try:
        kind = ContentKind(data.get("kind", "element"))
    except ValueError as e:
        raise ModelLoaderError(
            f"Unknown content kind {data.get('kind')!r} for {owner_name}.{data['name']}"
        ) from e

    return PropertyModel(
        name=data["name"],
        value_type=data.get("type", "str"),
        multiplicity=Multiplicity.REPEATED if data.get("repeated") else Multiplicity.SINGLE,
        content_kind=kind,
        field_name=data.get("field"),
        nillable=bool(data.get("nillable", False)),
        required=bool(data.get("required", False)),
        is_attribute=bool(data.get("attribute", False)),
        adapter=data.get("adapter"),
        implementation_type=data.get("implementation_type"),
        substitutes=dict(data.get("substitutes", {})),
        customization=data.get("customization"),
    )


def _class_from_dict(data: dict[str, Any], package: str) -> ClassModel:
    if "name" not in data:
        raise ModelLoaderError("Class without name in model description")

    return ClassModel(
        name=data["name"],
        package=data.get("package", package),
        properties=[
            _property_from_dict(prop, data["name"]) for prop in data.get("properties", [])
        ],
        source=data.get("source"),
        customization=data.get("customization"),
        implementation=data.get("implementation"),
        element_name=data.get("element"),
    )


def model_from_dict(data: dict[str, Any]) -> ModelGraph:
    """Build a model graph from its JSON description.

    Args:
        data: Mapping with ``classes`` (list of class descriptions), an
            optional default ``package`` and an optional ``episode``
            (``true`` or a list of initial class references).

    Returns:
        The model graph, classes in description order.

    Raises:
        ModelLoaderError: If the description is structurally invalid.
    """
    if not isinstance(data, dict) or not isinstance(data.get("classes"), list):
        raise ModelLoaderError("Model description must be an object with a 'classes' list")

    package = data.get("package", "")
    episode_data = data.get("episode")
    episode = None
    if episode_data is True:
        episode = Episode()
    elif isinstance(episode_data, list):
        episode = Episode(episode_data)

    graph = ModelGraph(episode=episode)
    bases: list[tuple[ClassModel, str]] = []

    def add(class_data: dict[str, Any], parent: ClassModel | None) -> None:
        cls = _class_from_dict(class_data, parent.package if parent else package)
        graph.add_class(cls, parent)
        if class_data.get("base"):
            bases.append((cls, class_data["base"]))
        for child in class_data.get("nested", []):
            add(child, cls)

    for class_data in data["classes"]:
        add(class_data, None)

    for cls, base_name in bases:
        base = graph.find_class(base_name)
        if base is None:
            raise ModelLoaderError(f"Unknown base class {base_name!r} for {cls.qualified_name}")
        cls.base = base

    logger.debug("Built model with %d class(es)", len(graph))
    return graph


def load_model_from_file(file_path: str | Path) -> tuple[str, ModelGraph]:
    """Load a model description from a local JSON file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        Tuple of (source description, model graph).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ModelLoaderError: If file cannot be read or the description is invalid.
    """
    file_path = Path(file_path)
    logger.debug("Attempting to load model from file: %s", file_path)

    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in file %s: %s", file_path, e)
        raise ModelLoaderError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        logger.error("Error reading file %s: %s", file_path, e)
        raise ModelLoaderError(f"Error reading file {file_path}: {e}") from e

    logger.info("Loaded model description from %s", file_path)
    return str(file_path), model_from_dict(data)


def load_model_from_url(url: str, timeout: int = 30) -> tuple[str, ModelGraph]:
    """Load a model description from a URL.

    Args:
        url: URL to fetch the JSON description from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source description, model graph).

    Raises:
        ModelLoaderError: If URL is invalid, request fails, or response isn't valid JSON.
    """
    logger.debug("Attempting to load model from URL: %s", url)

    parsed_url = urlparse(url)
    if not all([parsed_url.scheme, parsed_url.netloc]):
        logger.error("Invalid URL format: %s", url)
        raise ModelLoaderError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        logger.error("Request timeout for URL: %s", url)
        raise ModelLoaderError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error("HTTP error %s for URL: %s", e.response.status_code, url)
        raise ModelLoaderError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        logger.error("Request error for URL %s: %s", url, e)
        raise ModelLoaderError(f"Request error for URL {url}: {e}") from e
    except ValueError as e:
        logger.error("Invalid JSON response from URL %s: %s", url, e)
        raise ModelLoaderError(f"Invalid JSON response from URL {url}: {e}") from e

    logger.info("Loaded model description from %s", url)
    return url, model_from_dict(data)


def load_model(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: int = 30,
) -> tuple[str, ModelGraph]:
    """Load a model description from either a file or URL.

    Raises:
        ModelLoaderError: If neither or both sources are provided, or loading fails.
    """
    if not file_path and not url:
        raise ModelLoaderError("Either file_path or url must be provided")

    if file_path and url:
        raise ModelLoaderError("Cannot specify both file_path and url")

    if file_path:
        return load_model_from_file(file_path)
    return load_model_from_url(url, timeout)
