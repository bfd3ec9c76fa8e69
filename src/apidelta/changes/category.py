"""Severity categories assigned to a change by a matching rule."""

# apidelta:domain=changes

from __future__ import annotations

from enum import Enum


class RuleCategory(str, Enum):
    """Category declared in a rule's event params."""

    BREAKING = "Breaking"
    NON_BREAKING = "Non-Breaking"
    IGNORED = "Ignored"


CategorySummary = dict[RuleCategory, int]


def empty_category_summary() -> CategorySummary:
    """Return a summary with every category present and counted as zero."""
    return {category: 0 for category in RuleCategory}


def merge_category_summaries(summaries: list[CategorySummary]) -> CategorySummary:
    """Add up several category summaries."""
    total = empty_category_summary()
    for summary in summaries:
        for category, count in summary.items():
            total[category] += count
    return total


def summary_to_dict(summary: CategorySummary) -> dict[str, int]:
    """Serialize a summary with the category values as keys."""
    return {category.value: count for category, count in summary.items()}
