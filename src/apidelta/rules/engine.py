"""Evaluate a rule set against node changes and record the rules that fire."""

# apidelta:domain=rules

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from apidelta.changes.categorized_change import CategorizedChange
from apidelta.rules.conditions import DIFF_FACT_ID, evaluate

if TYPE_CHECKING:
    from apidelta.changes.node_changes import NodeChanges
    from apidelta.rules.ruleset import RuleSet

logger = logging.getLogger(__name__)


class RuleEngine:
    """Read-only evaluator bound to one rule set; safe to share across threads."""

    def __init__(self, ruleset: RuleSet) -> None:
        self.ruleset = ruleset

    def categorize(self, node: NodeChanges) -> list[CategorizedChange]:
        """Return a categorized change for every rule whose conditions hold on *node*.

        The node is not modified; rules see a detached copy of its change record.
        """
        facts = {DIFF_FACT_ID: node.to_fact()}
        logger.debug("Running rules on node: %s", node.id)

        categorized: list[CategorizedChange] = []
        for rule in self.ruleset:
            if not evaluate(rule.conditions, facts):
                continue
            logger.debug("Rule '%s' passed on node '%s'", rule.name, node.id)
            change = None
            if rule.changed_property is not None:
                change = (
                    node.removed.get(rule.changed_property),
                    node.added.get(rule.changed_property),
                )
            categorized.append(
                CategorizedChange(
                    rule_name=rule.name,
                    rule_event=rule.event_type,
                    category=rule.category,
                    change=change,
                )
            )
        return categorized


def apply_rules(
    nodes: list[NodeChanges],
    ruleset: RuleSet,
    *,
    max_workers: int | None = None,
) -> list[NodeChanges]:
    """Categorize every node concurrently and append the results to its own record.

    Returns *nodes* for chaining.
    """
    if not nodes:
        logger.info("No changes to apply the rules on")
        return nodes
    if not ruleset.has_rules():
        logger.info("No rules to apply on the changes")
        return nodes

    engine = RuleEngine(ruleset)
    logger.info("Applying %d rules on %d changed nodes", len(ruleset), len(nodes))
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(engine.categorize, nodes))

    for node, categorized in zip(nodes, results):
        node.categorized_changes.extend(categorized)
    return nodes
