"""Result of comparing two trees of API documents."""

# apidelta:domain=changes

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from apidelta.changes.api_changes import ApiChanges
from apidelta.changes.category import (
    CategorySummary,
    merge_category_summaries,
    summary_to_dict,
)


@dataclass
class ApiCollectionChanges:
    """Per-document changes between two document trees.

    Keys of ``changed`` and ``errored`` and the entries of ``added`` and
    ``removed`` are document ids: paths relative to the tree root.
    """

    base_path: str
    new_path: str
    changed: dict[str, ApiChanges] = field(default_factory=dict)
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    errored: dict[str, str] = field(default_factory=dict)

    def has_changes(self) -> bool:
        if self.added or self.removed:
            return True
        return any(api.has_changes() for api in self.changed.values())

    def has_errors(self) -> bool:
        return len(self.errored) > 0

    def has_breaking_changes(self) -> bool:
        return any(api.has_breaking_changes() for api in self.changed.values())

    def category_summary(self) -> CategorySummary:
        return merge_category_summaries([api.category_summary() for api in self.changed.values()])

    def to_dict(self) -> dict[str, object]:
        return {
            "base_path": self.base_path,
            "new_path": self.new_path,
            "has_changes": self.has_changes(),
            "summary": summary_to_dict(self.category_summary()),
            "changed": {name: api.to_dict() for name, api in self.changed.items()},
            "added": list(self.added),
            "removed": list(self.removed),
            "errored": dict(self.errored),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApiCollectionChanges:
        return cls(
            base_path=data["base_path"],
            new_path=data["new_path"],
            changed={
                name: ApiChanges.from_dict(api)
                for name, api in (data.get("changed") or {}).items()
            },
            added=list(data.get("added") or []),
            removed=list(data.get("removed") or []),
            errored=dict(data.get("errored") or {}),
        )
