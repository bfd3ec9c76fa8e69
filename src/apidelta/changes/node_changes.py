"""Differences of a single graph node."""

# apidelta:domain=changes

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from apidelta.changes.categorized_change import CategorizedChange
from apidelta.changes.category import CategorySummary, RuleCategory, empty_category_summary


@dataclass
class NodeChanges:
    """Properties added to and removed from one node, plus the rules that fired on it.

    A modified property appears in both maps: the old value in ``removed``
    and the new value in ``added``.
    """

    id: str
    type: list[str]
    added: dict[str, Any] = field(default_factory=dict)
    removed: dict[str, Any] = field(default_factory=dict)
    categorized_changes: list[CategorizedChange] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    def has_categorized_changes(self) -> bool:
        return len(self.categorized_changes) > 0

    def has_breaking_changes(self) -> bool:
        return any(c.category is RuleCategory.BREAKING for c in self.categorized_changes)

    def has_ignored_changes(self) -> bool:
        return any(c.category is RuleCategory.IGNORED for c in self.categorized_changes)

    def get_change_count_by_category(self, category: RuleCategory) -> int:
        return sum(1 for c in self.categorized_changes if c.category is category)

    def get_breaking_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.BREAKING)

    def get_non_breaking_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.NON_BREAKING)

    def get_ignored_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.IGNORED)

    def category_summary(self) -> CategorySummary:
        summary = empty_category_summary()
        for change in self.categorized_changes:
            summary[change.category] += 1
        return summary

    def to_fact(self) -> dict[str, Any]:
        """Return a detached copy of the change record for rule evaluation."""
        return {
            "id": self.id,
            "type": list(self.type),
            "added": copy.deepcopy(self.added),
            "removed": copy.deepcopy(self.removed),
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": list(self.type),
            "added": copy.deepcopy(self.added),
            "removed": copy.deepcopy(self.removed),
            "categorized_changes": [c.to_dict() for c in self.categorized_changes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeChanges:
        return cls(
            id=data["id"],
            type=list(data.get("type") or []),
            added=dict(data.get("added") or {}),
            removed=dict(data.get("removed") or {}),
            categorized_changes=[
                CategorizedChange.from_dict(c) for c in data.get("categorized_changes") or []
            ],
        )
