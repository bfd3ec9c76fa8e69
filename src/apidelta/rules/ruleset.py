"""Categorization rules: load a JSON array of rules and validate it."""

# apidelta:domain=rules

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from apidelta.changes.category import RuleCategory
from apidelta.rules.conditions import Condition, ConditionError, parse_conditions

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).with_name("default_rules.json")
DEFAULT_PRIORITY = 1

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class RuleSetError(ValueError):
    """Base class of every rule source problem."""


class RulesFileError(RuleSetError):
    """The rule source is unreadable or not valid JSON."""


class RulesFormatError(RuleSetError):
    """The rule source is valid JSON but not an array."""


class RuleNameError(RuleSetError):
    """A rule has no name."""


class RuleEventError(RuleSetError):
    """A rule has no ``event.type`` or no ``event.params``."""


class RuleCategoryError(RuleSetError):
    """A rule has a missing or unknown category."""


class RuleChangedPropertyError(RuleSetError):
    """A rule that is not ignored does not name its changed property."""


class RuleConditionError(RuleSetError):
    """A rule's condition tree is malformed."""


class RulePriorityError(RuleSetError):
    """A rule has a priority that is not a positive integer."""


# ---------------------------------------------------------------------------
# Rule
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """One categorization rule.

    ``changed_property`` names the node property whose old/new values are
    reported when the rule fires; it is only optional for ignored rules.
    """

    name: str
    conditions: Condition
    event_type: str
    category: RuleCategory
    changed_property: str | None = None
    priority: int = DEFAULT_PRIORITY


def _parse_rule(idx: int, data: object) -> Rule:
    if not isinstance(data, dict):
        msg = f"Rule at index {idx} must be a json object"
        raise RuleNameError(msg)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        msg = f"Name is required for every rule, missing in rule at index {idx}"
        raise RuleNameError(msg)

    event = data.get("event")
    if not isinstance(event, dict) or not isinstance(event.get("params"), dict):
        msg = f"Event params are required in rule: {name}"
        raise RuleEventError(msg)
    event_type = event.get("type")
    if not isinstance(event_type, str) or not event_type.strip():
        msg = f"Event type is required in rule: {name}"
        raise RuleEventError(msg)
    params = event["params"]

    category_raw = params.get("category")
    if not category_raw:
        msg = f"Category is required in rule: {name}"
        raise RuleCategoryError(msg)
    try:
        category = RuleCategory(category_raw)
    except ValueError as exc:
        expected = [c.value for c in RuleCategory]
        msg = f"Invalid category '{category_raw}' in rule: {name}, expected one of {expected}"
        raise RuleCategoryError(msg) from exc

    changed_property = params.get("changedProperty")
    if changed_property is not None and not isinstance(changed_property, str):
        msg = f"Changed property must be a string in rule: {name}"
        raise RuleChangedPropertyError(msg)
    if not changed_property or not changed_property.strip():
        if category is not RuleCategory.IGNORED:
            msg = f"Changed property is required in rule: {name}"
            raise RuleChangedPropertyError(msg)
        changed_property = None

    priority = data.get("priority", DEFAULT_PRIORITY)
    if isinstance(priority, bool) or not isinstance(priority, int) or priority < 1:
        msg = f"Priority must be a positive integer in rule: {name}"
        raise RulePriorityError(msg)

    try:
        conditions = parse_conditions(data.get("conditions"))
    except ConditionError as exc:
        msg = f"Error parsing the conditions of rule: {name}: {exc}"
        raise RuleConditionError(msg) from exc

    return Rule(
        name=name,
        conditions=conditions,
        event_type=event_type,
        category=category,
        changed_property=changed_property,
        priority=priority,
    )


# ---------------------------------------------------------------------------
# RuleSet
# ---------------------------------------------------------------------------


class RuleSet:
    """Validated rules, ordered by descending priority (file order within a priority)."""

    def __init__(self, rules: list[Rule], source: str | None = None) -> None:
        self.rules: tuple[Rule, ...] = tuple(sorted(rules, key=lambda r: -r.priority))
        self.source = source

    @classmethod
    def from_data(cls, data: object, source: str | None = None) -> RuleSet:
        """Build a rule set from already decoded JSON.

        Raises:
            RuleSetError: Subclass naming the first problem found.
        """
        if not isinstance(data, list):
            msg = "Rules must be defined as a json array"
            raise RulesFormatError(msg)

        rules = [_parse_rule(idx, rule) for idx, rule in enumerate(data)]
        seen: set[str] = set()
        for rule in rules:
            if rule.name in seen:
                logger.warning("Duplicate rule name '%s' in %s", rule.name, source or "rules")
            seen.add(rule.name)
        return cls(rules, source=source)

    @classmethod
    def from_path(cls, path: Path | str | None = None) -> RuleSet:
        """Load rules from *path*, or the shipped default rules when it is ``None``."""
        rules_path = Path(path) if path is not None else DEFAULT_RULES_PATH
        logger.debug("Loading rules from %s", rules_path)
        try:
            with rules_path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            msg = f"Error parsing the rules file: {exc}"
            raise RulesFileError(msg) from exc
        return cls.from_data(data, source=str(rules_path))

    def has_rules(self) -> bool:
        return len(self.rules) > 0

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __repr__(self) -> str:
        return f"RuleSet({len(self.rules)} rules, source={self.source!r})"

