"""A node change that a rule has categorized."""

# apidelta:domain=changes

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from apidelta.changes.category import RuleCategory


@dataclass(frozen=True)
class CategorizedChange:
    """Record of one rule that fired on a node.

    ``change`` is the ``(old_value, new_value)`` pair of the rule's changed
    property.  Either side is ``None`` when the property was purely added or
    purely removed.  It may only be omitted for ignored changes.
    """

    rule_name: str
    rule_event: str
    category: RuleCategory
    change: tuple[Any, Any] | None = None

    def __post_init__(self) -> None:
        if self.category is not RuleCategory.IGNORED and self.change is None:
            msg = f"Changed values are required for {self.category.value} rule '{self.rule_name}'"
            raise ValueError(msg)

    def display_values(self) -> tuple[Any, ...]:
        """Return the values of ``change`` that are present (zero, one or two)."""
        if self.change is None:
            return ()
        return tuple(v for v in self.change if v is not None)

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_name": self.rule_name,
            "rule_event": self.rule_event,
            "category": self.category.value,
            "change": list(self.change) if self.change is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategorizedChange:
        change = data.get("change")
        return cls(
            rule_name=data["rule_name"],
            rule_event=data["rule_event"],
            category=RuleCategory(data["category"]),
            change=(change[0], change[1]) if change is not None else None,
        )
