"""Change records: categorized changes, per-node, per-document and per-collection aggregates."""

from apidelta.changes.api_changes import ApiChanges
from apidelta.changes.categorized_change import CategorizedChange
from apidelta.changes.category import (
    CategorySummary,
    RuleCategory,
    empty_category_summary,
    merge_category_summaries,
    summary_to_dict,
)
from apidelta.changes.collection_changes import ApiCollectionChanges
from apidelta.changes.node_changes import NodeChanges

__all__ = [
    "ApiChanges",
    "ApiCollectionChanges",
    "CategorizedChange",
    "CategorySummary",
    "NodeChanges",
    "RuleCategory",
    "empty_category_summary",
    "merge_category_summaries",
    "summary_to_dict",
]
