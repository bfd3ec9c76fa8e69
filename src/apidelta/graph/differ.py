"""Structural delta between two flattened graphs.

Nodes are matched by ``@id``, never by position, so reordering the node
list (or the values of a list-valued property) is reported as a move and
never as an add/remove pair.  The result uses the compact positional
encoding documented in :mod:`apidelta.graph.model`:

- ``[new]`` added, ``[old, new]`` modified, ``[old, 0, 0]`` removed
- ``[ndiff_lines, 0, 2]`` long text modified
- ``[value, new_index, 3]`` moved inside a list

List deltas are dicts tagged ``{"_t": "a"}`` whose keys are ``"<i>"`` for an
index in the new list and ``"_<i>"`` for an index in the old list.  Node
deltas carry the node's ``@id`` and ``@type`` next to the property deltas.
"""

# apidelta:domain=graph

from __future__ import annotations

import difflib
import json
import logging
from typing import Any

from apidelta.graph.model import (
    ARRAY_KEY,
    ARRAY_VALUE,
    KEY_CONTEXT,
    KEY_GRAPH,
    KEY_NODE_ID,
    KEY_NODE_TYPE,
    MARKER_MOVED,
    MARKER_REMOVED,
    MARKER_TEXT_DIFF,
    FlattenedGraph,
    is_reference,
)

logger = logging.getLogger(__name__)

# Minimum length of both strings before a change is encoded as a text diff.
DEFAULT_TEXT_DIFF_MIN_LENGTH = 6000

Delta = Any


def _scalar_equal(left: object, right: object) -> bool:
    """JSON equality: ``True`` is not ``1``."""
    return left == right and isinstance(left, bool) == isinstance(right, bool)


def values_equal(left: object, right: object) -> bool:
    """Deep JSON equality of two values."""
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return False
    return _scalar_equal(left, right)


def _item_hash(item: object) -> tuple[str, str]:
    """Identity of a list item: the ``@id`` of an object, otherwise its canonical JSON."""
    if isinstance(item, dict) and isinstance(item.get(KEY_NODE_ID), str):
        return ("id", item[KEY_NODE_ID])
    return ("value", json.dumps(item, sort_keys=True, default=str))


class GraphDiffer:
    """Compute the raw delta between two flattened graphs."""

    def __init__(self, text_diff_min_length: int = DEFAULT_TEXT_DIFF_MIN_LENGTH) -> None:
        self.text_diff_min_length = text_diff_min_length

    def diff(self, base: FlattenedGraph, new: FlattenedGraph) -> dict[str, Delta]:
        """Return the delta of ``@graph`` and ``@context``; empty when the graphs are equal."""
        delta: dict[str, Delta] = {}

        graph_delta = self._diff_list(
            base.get(KEY_GRAPH) or [], new.get(KEY_GRAPH) or [], nodes=True
        )
        if graph_delta is not None:
            delta[KEY_GRAPH] = graph_delta

        context_delta = self._diff_mapping(base.get(KEY_CONTEXT) or {}, new.get(KEY_CONTEXT) or {})
        if context_delta:
            delta[KEY_CONTEXT] = context_delta

        return delta

    # -----------------------------------------------------------------------
    # Values
    # -----------------------------------------------------------------------

    def _diff_value(self, old: Any, new: Any) -> Delta | None:
        if isinstance(old, list) and isinstance(new, list):
            return self._diff_list(old, new)

        if isinstance(old, dict) and isinstance(new, dict):
            if values_equal(old, new):
                return None
            if is_reference(old) and is_reference(new) and len(old) == len(new) == 1:
                return {KEY_NODE_ID: [old[KEY_NODE_ID], new[KEY_NODE_ID]]}
            return [old, new]

        if (
            isinstance(old, str)
            and isinstance(new, str)
            and old != new
            and len(old) >= self.text_diff_min_length
            and len(new) >= self.text_diff_min_length
        ):
            old_lines = old.splitlines(keepends=True)
            lines = list(difflib.ndiff(old_lines, new.splitlines(keepends=True)))
            return [lines, 0, MARKER_TEXT_DIFF]

        if values_equal(old, new):
            return None
        return [old, new]

    def _diff_mapping(self, old: dict[str, Any], new: dict[str, Any]) -> dict[str, Delta]:
        delta: dict[str, Delta] = {}
        for key, old_value in old.items():
            if key not in new:
                delta[key] = [old_value, 0, MARKER_REMOVED]
                continue
            value_delta = self._diff_value(old_value, new[key])
            if value_delta is not None:
                delta[key] = value_delta
        for key, new_value in new.items():
            if key not in old:
                delta[key] = [new_value]
        return delta

    def _diff_node(self, old: dict[str, Any], new: dict[str, Any]) -> dict[str, Delta] | None:
        """Diff the properties of two nodes with the same ``@id``.

        A node that differs is annotated with its ``@id`` and ``@type`` so that
        consumers never look a node up by its list index.
        """
        props = {
            key: value
            for key, value in self._diff_mapping(old, new).items()
            if key not in (KEY_NODE_ID, KEY_NODE_TYPE)
        }
        if not props:
            return None
        return {KEY_NODE_ID: new.get(KEY_NODE_ID), KEY_NODE_TYPE: new.get(KEY_NODE_TYPE), **props}

    # -----------------------------------------------------------------------
    # Lists
    # -----------------------------------------------------------------------

    def _diff_list(self, old: list[Any], new: list[Any], *, nodes: bool = False) -> Delta | None:
        """Diff two lists by item identity.

        Items kept in relative order are matched first; the remaining items are
        paired by identity and reported as moves.  Unpaired items are removed
        or added.  For the node list, a matched node whose content differs gets
        a node delta at its new index; in property lists such an item is
        reported as removed plus added.
        """
        old_hashes = [_item_hash(item) for item in old]
        new_hashes = [_item_hash(item) for item in new]

        matcher = difflib.SequenceMatcher(None, old_hashes, new_hashes, autojunk=False)
        pairs: list[tuple[int, int]] = []
        for block in matcher.get_matching_blocks():
            pairs.extend((block.a + k, block.b + k) for k in range(block.size))

        kept_old = {i for i, _ in pairs}
        kept_new = {j for _, j in pairs}
        leftover_new: dict[tuple[str, str], list[int]] = {}
        for j, item_hash in enumerate(new_hashes):
            if j not in kept_new:
                leftover_new.setdefault(item_hash, []).append(j)

        removed: list[int] = []
        moved: list[tuple[int, int]] = []
        for i, item_hash in enumerate(old_hashes):
            if i in kept_old:
                continue
            candidates = leftover_new.get(item_hash)
            if candidates:
                moved.append((i, candidates.pop(0)))
            else:
                removed.append(i)
        added = sorted(j for candidates in leftover_new.values() for j in candidates)

        old_entries: dict[str, Delta] = {}
        new_entries: dict[str, Delta] = {}

        for i in removed:
            old_entries[f"_{i}"] = [old[i], 0, MARKER_REMOVED]
        for i, j in moved:
            old_entries[f"_{i}"] = [old[i], j, MARKER_MOVED]
        for j in added:
            new_entries[str(j)] = [new[j]]

        for i, j in sorted(pairs + moved, key=lambda p: p[1]):
            if values_equal(old[i], new[j]):
                continue
            if nodes and isinstance(old[i], dict) and isinstance(new[j], dict):
                node_delta = self._diff_node(old[i], new[j])
                if node_delta is not None:
                    new_entries[str(j)] = node_delta
            else:
                # Same identity, different content: replaces any move entry.
                old_entries[f"_{i}"] = [old[i], 0, MARKER_REMOVED]
                new_entries[str(j)] = [new[j]]

        if not old_entries and not new_entries:
            return None

        logger.debug(
            "List delta: %d removed, %d moved, %d added",
            len(removed),
            len(moved),
            len(added),
        )
        delta: dict[str, Delta] = {ARRAY_KEY: ARRAY_VALUE}
        delta.update(sorted(old_entries.items(), key=lambda kv: int(kv[0][1:])))
        delta.update(sorted(new_entries.items(), key=lambda kv: int(kv[0])))
        return delta


def diff_graphs(
    base: FlattenedGraph,
    new: FlattenedGraph,
    *,
    text_diff_min_length: int = DEFAULT_TEXT_DIFF_MIN_LENGTH,
) -> dict[str, Delta]:
    """Shortcut for ``GraphDiffer(text_diff_min_length).diff(base, new)``."""
    return GraphDiffer(text_diff_min_length).diff(base, new)
