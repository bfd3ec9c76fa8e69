"""Minimal shape checks on a flattened graph before it is diffed."""

# apidelta:domain=graph

from __future__ import annotations

from apidelta.graph.model import KEY_CONTEXT, KEY_GRAPH


class GraphValidationError(ValueError):
    """Raised when a graph does not have the shape required for diffing."""


def validate_graph(graph: object, side: str) -> None:
    """Check that *graph* has a non-empty node list.

    *side* (``"base"`` or ``"new"``) only appears in the error message.
    The context block is optional; when present it must be a mapping.

    Raises:
        GraphValidationError: If the graph is absent, has no ``@graph``
            property, the node list is empty, or the context is not a mapping.
    """
    prefix = f"Error validating {side} graph"
    if not graph or not isinstance(graph, dict):
        msg = f"{prefix}: invalid object"
        raise GraphValidationError(msg)

    nodes = graph.get(KEY_GRAPH)
    if nodes is None:
        msg = f"{prefix}: {KEY_GRAPH} property is missing"
        raise GraphValidationError(msg)
    if not isinstance(nodes, list) or len(nodes) == 0:
        msg = f"{prefix}: {KEY_GRAPH} property must be an array of json nodes"
        raise GraphValidationError(msg)

    context = graph.get(KEY_CONTEXT)
    if context is not None and not isinstance(context, dict):
        msg = f"{prefix}: {KEY_CONTEXT} property must be a json object"
        raise GraphValidationError(msg)
