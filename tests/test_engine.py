"""Tests for apidelta.rules.engine — per-node categorization."""

from __future__ import annotations

import copy
from typing import Any

from apidelta.changes.categorized_change import CategorizedChange
from apidelta.changes.category import RuleCategory
from apidelta.changes.node_changes import NodeChanges
from apidelta.rules.engine import RuleEngine, apply_rules
from apidelta.rules.ruleset import RuleSet


def _rule(name: str, conditions: dict[str, Any], category: str = "Breaking",
          changed_property: str | None = "core:name", **extra: Any) -> dict[str, Any]:
    params: dict[str, Any] = {"category": category}
    if changed_property is not None:
        params["changedProperty"] = changed_property
    return {
        "name": name,
        "conditions": conditions,
        "event": {"type": f"{name}-event", "params": params},
        **extra,
    }


NAME_ADDED = {
    "all": [{"fact": "diff", "path": "$.added", "operator": "hasProperty", "value": "core:name"}]
}
NAME_REMOVED = {
    "all": [{"fact": "diff", "path": "$.removed", "operator": "hasProperty", "value": "core:name"}]
}
IS_EXAMPLE = {
    "all": [{"fact": "diff", "path": "$.type", "operator": "contains", "value": "Example"}]
}


def _node(**kwargs: Any) -> NodeChanges:
    return NodeChanges(id=kwargs.pop("id", "#/a"), type=kwargs.pop("type", ["T"]), **kwargs)


class TestRuleEngineCategorize:
    def test_fires_with_changed_values(self) -> None:
        engine = RuleEngine(RuleSet.from_data([_rule("renamed", NAME_ADDED)]))
        node = _node(added={"core:name": "new"}, removed={"core:name": "old"})

        assert engine.categorize(node) == [
            CategorizedChange(
                rule_name="renamed",
                rule_event="renamed-event",
                category=RuleCategory.BREAKING,
                change=("old", "new"),
            )
        ]

    def test_purely_added_property(self) -> None:
        engine = RuleEngine(RuleSet.from_data([_rule("added", NAME_ADDED, "Non-Breaking")]))
        [change] = engine.categorize(_node(added={"core:name": "new"}))
        assert change.change == (None, "new")
        assert change.category is RuleCategory.NON_BREAKING

    def test_purely_removed_property(self) -> None:
        engine = RuleEngine(RuleSet.from_data([_rule("removed", NAME_REMOVED)]))
        [change] = engine.categorize(_node(removed={"core:name": "old"}))
        assert change.change == ("old", None)

    def test_no_match(self) -> None:
        engine = RuleEngine(RuleSet.from_data([_rule("renamed", NAME_ADDED)]))
        assert engine.categorize(_node(added={"core:description": "d"})) == []

    def test_multiple_matches_are_all_kept(self) -> None:
        engine = RuleEngine(
            RuleSet.from_data([_rule("added", NAME_ADDED), _rule("removed", NAME_REMOVED)])
        )
        node = _node(added={"core:name": "new"}, removed={"core:name": "old"})
        assert [c.rule_name for c in engine.categorize(node)] == ["added", "removed"]

    def test_priority_order(self) -> None:
        engine = RuleEngine(
            RuleSet.from_data(
                [_rule("added", NAME_ADDED), _rule("removed", NAME_REMOVED, priority=3)]
            )
        )
        node = _node(added={"core:name": "new"}, removed={"core:name": "old"})
        assert [c.rule_name for c in engine.categorize(node)] == ["removed", "added"]

    def test_ignored_without_changed_property(self) -> None:
        engine = RuleEngine(
            RuleSet.from_data([_rule("examples", IS_EXAMPLE, "Ignored", changed_property=None)])
        )
        [change] = engine.categorize(_node(type=["Example"], added={"v": 1}))
        assert change.category is RuleCategory.IGNORED
        assert change.change is None

    def test_does_not_modify_node(self) -> None:
        engine = RuleEngine(RuleSet.from_data([_rule("renamed", NAME_ADDED)]))
        node = _node(added={"core:name": {"nested": ["value"]}})
        before = copy.deepcopy(node)
        engine.categorize(node)
        assert node == before


class TestApplyRules:
    def test_attaches_changes_to_each_node(self) -> None:
        ruleset = RuleSet.from_data([_rule("renamed", NAME_ADDED)])
        nodes = [
            _node(id=f"#/n{i}", added={"core:name": f"n{i}"} if i % 2 == 0 else {})
            for i in range(20)
        ]
        result = apply_rules(nodes, ruleset, max_workers=4)

        assert result is nodes
        for i, node in enumerate(nodes):
            if i % 2 == 0:
                assert [c.change for c in node.categorized_changes] == [(None, f"n{i}")]
            else:
                assert node.categorized_changes == []

    def test_empty_ruleset_leaves_nodes_uncategorized(self) -> None:
        nodes = [_node(added={"core:name": "x"})]
        apply_rules(nodes, RuleSet.from_data([]))
        assert nodes[0].categorized_changes == []

    def test_no_nodes(self) -> None:
        assert apply_rules([], RuleSet.from_data([_rule("renamed", NAME_ADDED)])) == []

    def test_accumulates_per_node(self) -> None:
        ruleset = RuleSet.from_data([_rule("renamed", NAME_ADDED)])
        node = _node(added={"core:name": "x"})
        apply_rules([node, node], ruleset)
        assert len(node.categorized_changes) == 2
