"""Human-readable and JSON rendering of API changes."""

# apidelta:domain=render

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from rich.text import Text

from apidelta.changes.api_changes import ApiChanges
from apidelta.changes.category import RuleCategory
from apidelta.changes.collection_changes import ApiCollectionChanges

if TYPE_CHECKING:
    from rich.console import Console

    from apidelta.changes.node_changes import NodeChanges

NO_CHANGES = "No changes."
INDENT = "  "

CATEGORY_STYLES: dict[RuleCategory, str] = {
    RuleCategory.BREAKING: "red",
    RuleCategory.NON_BREAKING: "green",
    RuleCategory.IGNORED: "dim",
}

# (style, depth, text); an empty text is a blank line.
Line = tuple[str, int, str]


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, default=str)


# ---------------------------------------------------------------------------
# Line generators
# ---------------------------------------------------------------------------


def _node_lines(node: NodeChanges, depth: int, *, categorized: bool) -> Iterator[Line]:
    """Lines of one node: its non-ignored rules if categorized, else its raw property changes."""
    if categorized:
        reported = [c for c in node.categorized_changes if c.category is not RuleCategory.IGNORED]
        if not reported:
            return
        yield ("bold", depth, f"{node.id}:")
        for change in reported:
            values = " → ".join(_format_value(v) for v in change.display_values())
            suffix = f": {values}" if values else ""
            yield (
                CATEGORY_STYLES[change.category],
                depth + 1,
                f"- [{change.category.value}] {change.rule_name}{suffix}",
            )
        return

    types = ", ".join(map(str, node.type))
    yield ("bold", depth, f"{node.id} ({types}):")
    for key in sorted(node.removed.keys() | node.added.keys()):
        if key in node.removed:
            yield ("red", depth + 1, f"- {key}: {_format_value(node.removed[key])}")
        if key in node.added:
            yield ("green", depth + 1, f"+ {key}: {_format_value(node.added[key])}")


def _category_lines(
    changes: ApiChanges | ApiCollectionChanges, depth: int, prefix: str
) -> Iterator[Line]:
    for category, count in changes.category_summary().items():
        if count:
            yield (CATEGORY_STYLES[category], depth, f"{prefix}{category.value} Changes: {count}")


def _api_lines(changes: ApiChanges, depth: int = 0) -> Iterator[Line]:
    if not changes.has_changes():
        yield ("", depth, NO_CHANGES)
        return

    categorized = changes.has_categorized_changes()
    for node in changes.node_changes:
        yield from _node_lines(node, depth, categorized=categorized)

    yield ("", depth, "")
    yield ("bold", depth, "Summary:")
    if categorized:
        yield from _category_lines(changes, depth + 1, "")
    else:
        yield ("", depth + 1, f"Changed Nodes: {len(changes.node_changes)}")


def _collection_lines(changes: ApiCollectionChanges, depth: int = 0) -> Iterator[Line]:
    if not changes.has_changes() and not changes.has_errors():
        yield ("", depth, NO_CHANGES)
        return

    if changes.changed:
        yield ("bold", depth, "Changed APIs:")
        for name, api_changes in changes.changed.items():
            yield ("bold", depth + 1, f"File: {name}")
            yield from _api_lines(api_changes, depth + 2)
        yield ("", depth, "")

    if changes.added:
        yield ("bold", depth, "Added APIs:")
        for name in changes.added:
            yield ("green", depth + 1, f"+ {name}")
        yield ("", depth, "")

    if changes.removed:
        yield ("bold", depth, "Removed APIs:")
        for name in changes.removed:
            yield ("red", depth + 1, f"- {name}")
        yield ("", depth, "")

    if changes.errored:
        yield ("bold", depth, "Errored APIs:")
        for name, error in changes.errored.items():
            yield ("yellow", depth + 1, f"{name}: {error}")
        yield ("", depth, "")

    yield ("bold", depth, "Summary:")
    counts = (
        ("APIs Changed", len(changes.changed)),
        ("APIs Added", len(changes.added)),
        ("APIs Removed", len(changes.removed)),
        ("Parsing Errors", len(changes.errored)),
    )
    for label, count in counts:
        if count:
            yield ("", depth + 1, f"{label}: {count}")
    yield from _category_lines(changes, depth + 1, "- ")


def _lines(changes: ApiChanges | ApiCollectionChanges) -> Iterator[Line]:
    if isinstance(changes, ApiCollectionChanges):
        return _collection_lines(changes)
    return _api_lines(changes)


# ---------------------------------------------------------------------------
# Public formatters
# ---------------------------------------------------------------------------


def _join(lines: Iterator[Line], indent: int) -> str:
    pad = " " * indent
    out = [f"{pad}{INDENT * depth}{text}" if text else "" for _, depth, text in lines]
    return "\n".join(out) + "\n"


def format_api_changes(changes: ApiChanges, indent: int = 0) -> str:
    """Render one document's changes as plain text.

    *indent* spaces are prepended to every non-empty line.
    """
    return _join(_api_lines(changes), indent)


def format_collection_changes(changes: ApiCollectionChanges, indent: int = 0) -> str:
    """Render a collection comparison as plain text; empty sections are left out."""
    return _join(_collection_lines(changes), indent)


def format_text(changes: ApiChanges | ApiCollectionChanges, indent: int = 0) -> str:
    return _join(_lines(changes), indent)


def format_json(changes: ApiChanges | ApiCollectionChanges) -> str:
    """Serialize *changes* to a JSON string (see ``to_dict``)."""
    return json.dumps(changes.to_dict(), indent=2, default=str)


def render(changes: ApiChanges | ApiCollectionChanges, console: Console, indent: int = 0) -> None:
    """Print *changes* to a Rich console with colour per category."""
    pad = " " * indent
    for style, depth, text in _lines(changes):
        if not text:
            console.print()
            continue
        console.print(Text(f"{pad}{INDENT * depth}{text}", style=style), soft_wrap=True)
