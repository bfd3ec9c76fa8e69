"""Validate, diff and decode two flattened graphs in one call."""

# apidelta:domain=graph

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apidelta.graph.delta_parser import parse_delta
from apidelta.graph.differ import DEFAULT_TEXT_DIFF_MIN_LENGTH, GraphDiffer
from apidelta.graph.validator import validate_graph

if TYPE_CHECKING:
    from apidelta.changes.node_changes import NodeChanges
    from apidelta.graph.model import FlattenedGraph

logger = logging.getLogger(__name__)


def find_graph_changes(
    base: FlattenedGraph,
    new: FlattenedGraph,
    *,
    text_diff_min_length: int = DEFAULT_TEXT_DIFF_MIN_LENGTH,
) -> list[NodeChanges]:
    """Return the changed nodes between *base* and *new*.

    Raises:
        GraphValidationError: If either graph lacks a non-empty node list.
        InvalidDeltaError: If the delta does not follow the known encoding.
    """
    validate_graph(base, "base")
    validate_graph(new, "new")

    delta = GraphDiffer(text_diff_min_length).diff(base, new)
    node_changes = parse_delta(delta)
    logger.info("Found %d changed nodes", len(node_changes))
    return node_changes
