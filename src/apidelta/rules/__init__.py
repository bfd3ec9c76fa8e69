"""Rules domain: rule sets, condition trees and the categorization engine."""

from apidelta.rules.conditions import (
    DIFF_FACT_ID,
    OPERATORS,
    AllCondition,
    AnyCondition,
    Condition,
    ConditionError,
    FactCondition,
    FactReference,
    NotCondition,
    evaluate,
    parse_conditions,
    resolve_path,
)
from apidelta.rules.engine import RuleEngine, apply_rules
from apidelta.rules.ruleset import (
    DEFAULT_RULES_PATH,
    Rule,
    RuleCategoryError,
    RuleChangedPropertyError,
    RuleConditionError,
    RuleEventError,
    RuleNameError,
    RulePriorityError,
    RuleSet,
    RuleSetError,
    RulesFileError,
    RulesFormatError,
)

__all__ = [
    "DEFAULT_RULES_PATH",
    "DIFF_FACT_ID",
    "OPERATORS",
    "AllCondition",
    "AnyCondition",
    "Condition",
    "ConditionError",
    "FactCondition",
    "FactReference",
    "NotCondition",
    "Rule",
    "RuleCategoryError",
    "RuleChangedPropertyError",
    "RuleConditionError",
    "RuleEngine",
    "RuleEventError",
    "RuleNameError",
    "RulePriorityError",
    "RuleSet",
    "RuleSetError",
    "RulesFileError",
    "RulesFormatError",
    "apply_rules",
    "evaluate",
    "parse_conditions",
    "resolve_path",
]
