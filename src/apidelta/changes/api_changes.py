"""Changes between two versions of one API document."""

# apidelta:domain=changes

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from apidelta.changes.category import (
    CategorySummary,
    RuleCategory,
    merge_category_summaries,
    summary_to_dict,
)
from apidelta.changes.node_changes import NodeChanges


@dataclass
class ApiChanges:
    """Node changes found between a base and a new API document."""

    base_ref: str
    new_ref: str
    node_changes: list[NodeChanges] = field(default_factory=list)

    def has_changes(self) -> bool:
        return len(self.node_changes) > 0

    def has_categorized_changes(self) -> bool:
        return any(n.has_categorized_changes() for n in self.node_changes)

    def get_nodes_with_categorized_changes(self) -> list[NodeChanges]:
        return [n for n in self.node_changes if n.has_categorized_changes()]

    def has_breaking_changes(self) -> bool:
        return any(n.has_breaking_changes() for n in self.node_changes)

    def get_change_count_by_category(self, category: RuleCategory) -> int:
        return sum(n.get_change_count_by_category(category) for n in self.node_changes)

    def get_breaking_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.BREAKING)

    def get_non_breaking_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.NON_BREAKING)

    def get_ignored_changes_count(self) -> int:
        return self.get_change_count_by_category(RuleCategory.IGNORED)

    def category_summary(self) -> CategorySummary:
        return merge_category_summaries([n.category_summary() for n in self.node_changes])

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-compatible dict.

        ``has_changes``, ``has_breaking_changes`` and ``summary`` are derived
        and ignored by :meth:`from_dict`.
        """
        return {
            "base_ref": self.base_ref,
            "new_ref": self.new_ref,
            "has_changes": self.has_changes(),
            "has_breaking_changes": self.has_breaking_changes(),
            "summary": summary_to_dict(self.category_summary()),
            "node_changes": [n.to_dict() for n in self.node_changes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiChanges:
        return cls(
            base_ref=data["base_ref"],
            new_ref=data["new_ref"],
            node_changes=[NodeChanges.from_dict(n) for n in data.get("node_changes") or []],
        )
