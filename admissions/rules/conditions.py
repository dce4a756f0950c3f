"""Condition evaluation against a flat map of form values.

Evaluation never raises: a missing form value makes a condition false, an
unknown operator makes it true, and operands that cannot be compared
compare false.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, Iterable

from admissions.attributes.models import (
    AttributeRule,
    Condition,
    ConditionOperator,
    VisibilityAction,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Coercion
# =============================================================================


def to_text(value: Any) -> str:
    """Text form of a scalar, matching how form inputs render values."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else to_text(v) for v in value)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric form of a value; NaN when it has none.

    ISO dates become day ordinals so that date fields can be ordered.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (date, datetime)):
        return float(value.toordinal())
    if value is None:
        return 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            pass
        try:
            return float(date.fromisoformat(text[:10]).toordinal())
        except ValueError:
            return math.nan
    if isinstance(value, (list, tuple)):
        if not value:
            return 0.0
        if len(value) == 1:
            return to_number(value[0])
    return math.nan


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that lets a number equal its text form (``5 == "5"``)."""
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, (date, datetime)):
        left = left.isoformat()
    if isinstance(right, (date, datetime)):
        right = right.isoformat()
    if isinstance(left, (list, tuple)) and not isinstance(right, (list, tuple)):
        return loose_equals(to_text(left), right)
    if isinstance(right, (list, tuple)) and not isinstance(left, (list, tuple)):
        return loose_equals(left, to_text(right))

    if isinstance(left, bool):
        left = int(left)
    if isinstance(right, bool):
        right = int(right)

    left_numeric = isinstance(left, (int, float))
    right_numeric = isinstance(right, (int, float))
    if left_numeric and isinstance(right, str):
        return left == to_number(right)
    if right_numeric and isinstance(left, str):
        return to_number(left) == right
    return left == right


# =============================================================================
# Operators
# =============================================================================


def _contains(field_value: Any, expected: Any) -> bool:
    if isinstance(field_value, (list, tuple)):
        return expected in field_value
    if isinstance(field_value, str):
        return to_text(expected) in field_value
    if isinstance(field_value, (set, frozenset, Mapping)):
        # multiselect state is a mapping; an option counts once its key is present
        try:
            return expected in field_value
        except TypeError:
            return False
    return False


def _compare(check: Callable[[float, float], bool]) -> Callable[[Any, Any], bool]:
    def compare(field_value: Any, expected: Any) -> bool:
        return check(to_number(field_value), to_number(expected))

    return compare


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS.value: loose_equals,
    ConditionOperator.NOT_EQUALS.value: lambda a, b: not loose_equals(a, b),
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.NOT_CONTAINS.value: lambda a, b: not _contains(a, b),
    ConditionOperator.GREATER_THAN.value: _compare(lambda a, b: a > b),
    ConditionOperator.LESS_THAN.value: _compare(lambda a, b: a < b),
    ConditionOperator.GREATER_THAN_OR_EQUAL.value: _compare(lambda a, b: a >= b),
    ConditionOperator.LESS_THAN_OR_EQUAL.value: _compare(lambda a, b: a <= b),
}


def apply_operator(operator: str, field_value: Any, expected: Any) -> bool:
    """Apply a condition operator; unknown operators are true."""
    check = OPERATORS.get(operator)
    if check is None:
        logger.debug("Unknown operator %r evaluates to true", operator)
        return True
    return check(field_value, expected)


# =============================================================================
# Conditions
# =============================================================================


def evaluate_condition(condition: Condition, values: Mapping[int, Any]) -> bool:
    """Evaluate one condition against the current form values."""
    field_value = values.get(condition.evaluated_attribute_id)
    if field_value is None:
        return False
    return apply_operator(condition.operator, field_value, condition.value1)


def combine(results: Iterable[bool], logic_operator: str) -> bool:
    """AND requires every result; anything else requires at least one."""
    if str(logic_operator).upper() == "AND":
        return all(results)
    return any(results)


def evaluate_conditions(
    conditions: list[Condition], logic_operator: str, values: Mapping[int, Any]
) -> bool:
    return combine((evaluate_condition(c, values) for c in conditions), logic_operator)


def evaluate_visibility(rule: AttributeRule | None, values: Mapping[int, Any]) -> bool:
    """Whether a field (or option) governed by ``rule`` is visible.

    No rule, or a rule without conditions, means visible. Otherwise SHOW
    shows when the conditions hold, HIDE hides when they hold, and any
    other action hides.
    """
    if rule is None or not rule.conditions:
        return True
    holds = evaluate_conditions(rule.conditions, rule.logic_operator, values)
    if rule.action == VisibilityAction.HIDE.value:
        return not holds
    return rule.action == VisibilityAction.SHOW.value and holds
