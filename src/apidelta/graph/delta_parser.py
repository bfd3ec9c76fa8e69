"""Decode a graph delta into per-node change records."""

# apidelta:domain=graph

from __future__ import annotations

import difflib
import json
import logging
from enum import Enum
from typing import Any

from apidelta.changes.node_changes import NodeChanges
from apidelta.graph.model import (
    ARRAY_KEY,
    CONTEXT_NODE_ID,
    CONTEXT_TYPE,
    KEY_CONTEXT,
    KEY_GRAPH,
    KEY_NODE_ID,
    KEY_NODE_TYPE,
    MARKER_MOVED,
    MARKER_REMOVED,
    MARKER_TEXT_DIFF,
    is_array_delta,
    is_reference,
)

logger = logging.getLogger(__name__)


class InvalidDeltaError(RuntimeError):
    """Raised when a delta does not match any of the known encodings.

    This means the differ broke its output contract; it is never recoverable.
    """


class DeltaType(Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    TEXT_DIFF = "text_diff"
    MOVED = "moved"


def get_delta_type(delta: object) -> DeltaType:
    """Identify a delta by its length and trailing marker.

    Raises:
        InvalidDeltaError: For any other shape.
    """
    if isinstance(delta, list):
        if len(delta) == 1:
            return DeltaType.ADDED
        if len(delta) == 2:
            return DeltaType.MODIFIED
        if len(delta) == 3:
            marker = delta[2]
            if marker == MARKER_REMOVED:
                return DeltaType.REMOVED
            if marker == MARKER_TEXT_DIFF:
                return DeltaType.TEXT_DIFF
            if marker == MARKER_MOVED:
                return DeltaType.MOVED
    msg = f"Invalid delta structure found: {json.dumps(delta, indent=2, default=str)}"
    raise InvalidDeltaError(msg)


def _restore_text(lines: list[str]) -> tuple[str, str]:
    """Rebuild the old and new text from a line-oriented ndiff delta."""
    return "".join(difflib.restore(lines, 1)), "".join(difflib.restore(lines, 2))


def _node_type(value: object) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return list(value)
    return []


def _has_type(node_type: list[str]) -> bool:
    """Nodes without a type are structural wrappers; their changes are noise."""
    return any(node_type)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_delta(delta: dict[str, Any] | None) -> list[NodeChanges]:
    """Turn the delta of two graphs into a list of :class:`NodeChanges`.

    Only nodes that ended up with added or removed properties are returned;
    nodes that only moved are dropped.
    """
    node_changes: list[NodeChanges] = []
    if not delta:
        logger.info("No delta reported by the graph differ")
        return node_changes

    graph_delta = delta.get(KEY_GRAPH)
    if graph_delta is not None:
        logger.debug("Parsing delta of graph nodes")
        node_changes.extend(parse_graph_delta(graph_delta))

    context_delta = delta.get(KEY_CONTEXT)
    if context_delta is not None:
        logger.debug("Parsing delta of context node")
        context_changes = parse_node_property_delta(
            CONTEXT_NODE_ID, list(CONTEXT_TYPE), context_delta
        )
        if context_changes is not None:
            node_changes.append(context_changes)

    return node_changes


def parse_graph_delta(graph_delta: dict[str, Any]) -> list[NodeChanges]:
    """Parse the delta of the node list."""
    graph_changes: list[NodeChanges] = []
    for key, node_delta in graph_delta.items():
        if key == ARRAY_KEY:
            continue
        if isinstance(node_delta, list):
            changes = parse_node_delta(node_delta, get_delta_type(node_delta))
        elif isinstance(node_delta, dict):
            changes = parse_node_property_delta(
                node_delta.get(KEY_NODE_ID),
                _node_type(node_delta.get(KEY_NODE_TYPE)),
                node_delta,
            )
        else:
            msg = f"Invalid delta of graph node at '{key}': {node_delta!r}"
            raise InvalidDeltaError(msg)

        if changes is None or not changes.has_changes():
            continue
        if not _has_type(changes.type):
            logger.debug("Ignoring changes of untyped node: %s", changes.id)
            continue
        graph_changes.append(changes)
    return graph_changes


# ---------------------------------------------------------------------------
# Node level
# ---------------------------------------------------------------------------


def parse_node_delta(delta: list[Any], delta_type: DeltaType) -> NodeChanges | None:
    """Parse the addition, removal or move of a whole node.

    Returns ``None`` for a move.

    Raises:
        InvalidDeltaError: For a modification or text diff, which cannot
            happen at node level because nodes are matched by id.
    """
    node = delta[0]
    if not isinstance(node, dict):
        msg = f"Invalid node in delta: {node!r}"
        raise InvalidDeltaError(msg)

    node_id = node.get(KEY_NODE_ID)
    node_type = _node_type(node.get(KEY_NODE_TYPE))
    logger.debug("Parsing delta of node: %s, delta type: %s", node_id, delta_type.name)
    props = {k: v for k, v in node.items() if k not in (KEY_NODE_ID, KEY_NODE_TYPE)}

    if delta_type is DeltaType.ADDED:
        return NodeChanges(id=node_id, type=node_type, added=props)
    if delta_type is DeltaType.REMOVED:
        return NodeChanges(id=node_id, type=node_type, removed=props)
    if delta_type is DeltaType.MOVED:
        logger.debug("Ignoring the move of node: %s", node_id)
        return None

    msg = f"Invalid delta type for node: {delta_type.name}, node: {node_id}"
    raise InvalidDeltaError(msg)


def parse_node_property_delta(
    node_id: str | None,
    node_type: list[str],
    node_delta: dict[str, Any],
) -> NodeChanges | None:
    """Parse the property deltas of one node (or of the context block).

    Returns ``None`` when nothing but moves were found.
    """
    changes = NodeChanges(id=node_id or "", type=node_type)
    for key, value in node_delta.items():
        if key in (KEY_NODE_ID, KEY_NODE_TYPE):
            continue
        if isinstance(value, list):
            parse_property_delta(key, value, get_delta_type(value), changes)
        elif is_array_delta(value):
            parse_array_delta(key, value, changes)
        elif is_reference(value):
            parse_reference_delta(key, value, changes)
        else:
            msg = f"Invalid delta of node: {node_id}, property: {key}: {value!r}"
            raise InvalidDeltaError(msg)

    if not changes.has_changes():
        logger.debug("Only moves found in node: %s", node_id)
        return None
    return changes


# ---------------------------------------------------------------------------
# Property level
# ---------------------------------------------------------------------------


def parse_property_delta(
    key: str,
    delta: list[Any],
    delta_type: DeltaType,
    changes: NodeChanges,
) -> None:
    """Record a scalar (or whole-value) property delta."""
    logger.debug(
        "Adding delta of node: %s, property: %s, delta type: %s",
        changes.id,
        key,
        delta_type.name,
    )
    if delta_type is DeltaType.ADDED:
        changes.added[key] = delta[0]
    elif delta_type is DeltaType.MODIFIED:
        changes.removed[key] = delta[0]
        changes.added[key] = delta[1]
    elif delta_type is DeltaType.REMOVED:
        changes.removed[key] = delta[0]
    elif delta_type is DeltaType.TEXT_DIFF:
        old_text, new_text = _restore_text(delta[0])
        changes.removed[key] = old_text
        changes.added[key] = new_text
    else:
        msg = (
            f"Invalid delta type for node property: {delta_type.name}, "
            f"node: {changes.id}, property: {key}"
        )
        raise InvalidDeltaError(msg)


def parse_array_delta(key: str, delta: dict[str, Any], changes: NodeChanges) -> None:
    """Record the per-index deltas of a list-valued property."""
    for index_key, value in delta.items():
        if index_key == ARRAY_KEY:
            continue
        delta_type = get_delta_type(value)
        logger.debug(
            "Adding delta of node: %s, array property: %s, array key: %s, delta type: %s",
            changes.id,
            key,
            index_key,
            delta_type.name,
        )
        add_array_delta(key, value, delta_type, changes)


def add_array_delta(
    key: str,
    delta: list[Any],
    delta_type: DeltaType,
    changes: NodeChanges,
) -> None:
    if delta_type is DeltaType.ADDED:
        changes.added.setdefault(key, []).append(delta[0])
    elif delta_type is DeltaType.REMOVED:
        changes.removed.setdefault(key, []).append(delta[0])
    elif delta_type is DeltaType.MOVED:
        logger.debug("Ignoring the moves of node: %s, property: %s", changes.id, key)
    else:
        msg = (
            f"Invalid delta type for node array property value: {delta_type.name}, "
            f"node: {changes.id}, property: {key}"
        )
        raise InvalidDeltaError(msg)


def parse_reference_delta(key: str, delta: dict[str, Any], changes: NodeChanges) -> None:
    """Record a change of a property that points to another node.

    Values are recorded as ``{"@id": ...}`` so that reference changes can be
    told apart from scalar changes.
    """
    values = delta[KEY_NODE_ID]
    delta_type = get_delta_type(values)
    logger.debug(
        "Adding delta of node: %s, reference property: %s, delta type: %s",
        changes.id,
        key,
        delta_type.name,
    )
    if delta_type is DeltaType.ADDED:
        changes.added[key] = {KEY_NODE_ID: values[0]}
    elif delta_type is DeltaType.MODIFIED:
        changes.removed[key] = {KEY_NODE_ID: values[0]}
        changes.added[key] = {KEY_NODE_ID: values[1]}
    elif delta_type is DeltaType.REMOVED:
        changes.removed[key] = {KEY_NODE_ID: values[0]}
    elif delta_type is DeltaType.TEXT_DIFF:
        old_id, new_id = _restore_text(values[0])
        changes.removed[key] = {KEY_NODE_ID: old_id}
        changes.added[key] = {KEY_NODE_ID: new_id}
    else:
        msg = (
            f"Invalid delta type for node reference property: {delta_type.name}, "
            f"node: {changes.id}, property: {key}"
        )
        raise InvalidDeltaError(msg)
