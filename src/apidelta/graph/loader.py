"""Read an already flattened graph from a JSON or YAML document."""

# apidelta:domain=graph

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import yaml

if TYPE_CHECKING:
    from pathlib import Path

    from apidelta.graph.model import FlattenedGraph

logger = logging.getLogger(__name__)

JSON_SUFFIXES: frozenset[str] = frozenset({".json", ".jsonld"})
YAML_SUFFIXES: frozenset[str] = frozenset({".yaml", ".yml"})


class GraphLoadError(ValueError):
    """Raised when a graph document cannot be read or parsed."""


def load_graph_file(path: Path) -> FlattenedGraph:
    """Load a flattened graph from *path*.

    ``.yaml``/``.yml`` files are parsed as YAML, anything else as JSON.

    Raises:
        GraphLoadError: If the file is unreadable, malformed, or its top-level
            value is not a mapping.
    """
    logger.debug("Loading graph from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read graph file {path}: {exc}"
        raise GraphLoadError(msg) from exc

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"Cannot parse graph file {path}: {exc}"
        raise GraphLoadError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Graph file {path} must contain a mapping, got {type(data).__name__}"
        raise GraphLoadError(msg)
    return data
