"""Keys and type aliases of the flattened JSON-LD graph and of its delta encoding."""

# apidelta:domain=graph

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Flattened graph
# ---------------------------------------------------------------------------

KEY_GRAPH = "@graph"
KEY_CONTEXT = "@context"
KEY_NODE_ID = "@id"
KEY_NODE_TYPE = "@type"

# The context block is reported as a pseudo-node with a reserved id and type.
CONTEXT_NODE_ID = KEY_CONTEXT
CONTEXT_TYPE: tuple[str, ...] = ("context",)

Node = dict[str, Any]
Context = dict[str, Any]
FlattenedGraph = dict[str, Any]

# ---------------------------------------------------------------------------
# Delta encoding
# ---------------------------------------------------------------------------

# Marker added to a delta mapping to say that the diffed value is a list.
ARRAY_KEY = "_t"
ARRAY_VALUE = "a"

# Third element of a three-element delta.
MARKER_REMOVED = 0
MARKER_TEXT_DIFF = 2
MARKER_MOVED = 3


def is_reference(value: object) -> bool:
    """Return True if *value* is a pointer to another node (``{"@id": ...}``)."""
    return isinstance(value, dict) and KEY_NODE_ID in value


def is_array_delta(value: object) -> bool:
    """Return True if *value* is the delta of a list-valued property."""
    return isinstance(value, dict) and value.get(ARRAY_KEY) == ARRAY_VALUE
