"""Boolean condition trees of categorization rules.

Conditions are plain data in the json-rules-engine layout::

    {"all": [
        {"fact": "diff", "path": "$.type", "operator": "contains",
         "value": "apiContract:Operation"},
        {"not": {"fact": "diff", "path": "$.added",
                 "operator": "hasProperty", "value": "core:name"}}
    ]}

They are parsed once into frozen dataclasses and interpreted against a
mapping of fact id to fact value.
"""

# apidelta:domain=rules

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

logger = logging.getLogger(__name__)

# Single fact every rule is evaluated against: the change record of one node.
DIFF_FACT_ID = "diff"

# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_property(fact_value: object, key: object) -> bool:
    return isinstance(fact_value, Mapping) and isinstance(key, str) and key in fact_value


def _compare(check: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def operator(fact_value: Any, value: Any) -> bool:
        return _is_number(fact_value) and _is_number(value) and check(fact_value, value)

    return operator


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equal": lambda fact_value, value: fact_value == value,
    "notEqual": lambda fact_value, value: fact_value != value,
    "in": lambda fact_value, value: isinstance(value, list) and fact_value in value,
    "notIn": lambda fact_value, value: isinstance(value, list) and fact_value not in value,
    "contains": lambda fact_value, value: isinstance(fact_value, list) and value in fact_value,
    "doesNotContain": (
        lambda fact_value, value: isinstance(fact_value, list) and value not in fact_value
    ),
    "lessThan": _compare(lambda a, b: a < b),
    "lessThanInclusive": _compare(lambda a, b: a <= b),
    "greaterThan": _compare(lambda a, b: a > b),
    "greaterThanInclusive": _compare(lambda a, b: a >= b),
    "hasProperty": _has_property,
    "hasNoProperty": lambda fact_value, key: not _has_property(fact_value, key),
}

# ---------------------------------------------------------------------------
# Condition tree
# ---------------------------------------------------------------------------


class ConditionError(ValueError):
    """Raised when a condition tree is malformed."""


@dataclass(frozen=True)
class FactReference:
    """A condition value read from a fact instead of given literally."""

    fact: str
    path: str | None = None


@dataclass(frozen=True)
class FactCondition:
    """Leaf: ``operator(resolve(fact, path), value)``."""

    fact: str
    operator: str
    value: Any
    path: str | None = None


@dataclass(frozen=True)
class AllCondition:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class AnyCondition:
    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class NotCondition:
    condition: Condition


Condition = Union[FactCondition, AllCondition, AnyCondition, NotCondition]

_BOOLEAN_KEYS = ("all", "any", "not")

# Operators whose value names a key of the fact value.
_PROPERTY_OPERATORS = frozenset({"hasProperty", "hasNoProperty"})


def parse_conditions(
    data: object, *, facts: frozenset[str] = frozenset({DIFF_FACT_ID})
) -> Condition:
    """Build a condition tree from its JSON form.

    The top level must be an ``all``, ``any`` or ``not`` block.

    Raises:
        ConditionError: On unknown operators, unknown facts or malformed nodes.
    """
    if not isinstance(data, dict) or not any(key in data for key in _BOOLEAN_KEYS):
        msg = "conditions must be an object with an 'all', 'any' or 'not' property"
        raise ConditionError(msg)
    return _parse_node(data, facts)


def _parse_node(data: object, facts: frozenset[str]) -> Condition:
    if not isinstance(data, dict):
        msg = f"condition must be an object, got {type(data).__name__}"
        raise ConditionError(msg)

    present = [key for key in _BOOLEAN_KEYS if key in data]
    if len(present) > 1:
        msg = f"condition may have only one of 'all', 'any' or 'not', got {present}"
        raise ConditionError(msg)

    if "all" in data or "any" in data:
        key = present[0]
        children = data[key]
        if not isinstance(children, list):
            msg = f"'{key}' must be an array of conditions"
            raise ConditionError(msg)
        parsed = tuple(_parse_node(child, facts) for child in children)
        return AllCondition(parsed) if key == "all" else AnyCondition(parsed)

    if "not" in data:
        return NotCondition(_parse_node(data["not"], facts))

    return _parse_leaf(data, facts)


def _parse_leaf(data: dict[str, Any], facts: frozenset[str]) -> FactCondition:
    for key in ("fact", "operator", "value"):
        if key not in data:
            msg = f"condition is missing the '{key}' property: {data}"
            raise ConditionError(msg)

    fact = data["fact"]
    if fact not in facts:
        msg = f"unknown fact '{fact}', expected one of {sorted(facts)}"
        raise ConditionError(msg)

    operator = data["operator"]
    if operator not in OPERATORS:
        msg = f"unknown operator '{operator}', expected one of {sorted(OPERATORS)}"
        raise ConditionError(msg)

    path = data.get("path")
    if path is not None:
        _parse_path(str(path))

    value = data["value"]
    if isinstance(value, dict) and "fact" in value:
        if value["fact"] not in facts:
            msg = f"unknown fact '{value['fact']}' in condition value"
            raise ConditionError(msg)
        ref_path = value.get("path")
        if ref_path is not None:
            _parse_path(str(ref_path))
        value = FactReference(fact=value["fact"], path=ref_path)
    elif operator in _PROPERTY_OPERATORS and not isinstance(value, str):
        msg = f"operator '{operator}' needs a property name as value, got {value!r}"
        raise ConditionError(msg)

    return FactCondition(fact=fact, operator=operator, value=value, path=path)


# ---------------------------------------------------------------------------
# Path addressing
# ---------------------------------------------------------------------------

_SEGMENT_RE = re.compile(
    r"""
    \.(?P<name>[^.\[\]]+)           # .key, .core:name
    | \['(?P<single>[^']*)'\]       # ['key']
    | \["(?P<double>[^"]*)"\]       # ["key"]
    | \[(?P<index>\d+)\]            # [0]
    """,
    re.VERBOSE,
)


@functools.lru_cache(maxsize=256)
def _parse_path(path: str) -> tuple[str | int, ...]:
    """Split ``$.a['b:c'][0]`` into ``("a", "b:c", 0)``."""
    if not path.startswith("$"):
        msg = f"path must start with '$': {path!r}"
        raise ConditionError(msg)

    segments: list[str | int] = []
    pos = 1
    while pos < len(path):
        match = _SEGMENT_RE.match(path, pos)
        if match is None:
            msg = f"invalid path {path!r} at position {pos}"
            raise ConditionError(msg)
        if match.group("index") is not None:
            segments.append(int(match.group("index")))
        else:
            segments.append(
                match.group("name") or match.group("single") or match.group("double") or ""
            )
        pos = match.end()
    return tuple(segments)


def resolve_path(value: object, path: str | None) -> object:
    """Follow *path* into *value*; a missing segment yields ``None``."""
    if path is None:
        return value
    current = value
    for segment in _parse_path(path):
        if isinstance(segment, int):
            if not isinstance(current, list) or segment >= len(current):
                return None
            current = current[segment]
        elif isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        else:
            return None
    return current


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate(condition: Condition, facts: Mapping[str, object]) -> bool:
    """Evaluate *condition* against *facts* (fact id to fact value)."""
    if isinstance(condition, AllCondition):
        return all(evaluate(child, facts) for child in condition.conditions)
    if isinstance(condition, AnyCondition):
        return any(evaluate(child, facts) for child in condition.conditions)
    if isinstance(condition, NotCondition):
        return not evaluate(condition.condition, facts)

    fact_value = resolve_path(facts.get(condition.fact), condition.path)
    value = condition.value
    if isinstance(value, FactReference):
        value = resolve_path(facts.get(value.fact), value.path)
    return OPERATORS[condition.operator](fact_value, value)
