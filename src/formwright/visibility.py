"""Conditional visibility evaluation"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

from .enums import ConditionOperator, LogicalOperator
from .models import Condition, FormField, FormStructure
from .utils import is_empty_value, parse_number

logger = logging.getLogger(__name__)


def _looks_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip())
            return True
        except ValueError:
            return False
    return False


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, (list, tuple)):
        if not isinstance(expected, (list, tuple)):
            return False
        return [str(item) for item in actual] == [str(item) for item in expected]
    if _looks_numeric(actual) and _looks_numeric(expected):
        return parse_number(actual) == parse_number(expected)
    if isinstance(actual, bool) or isinstance(expected, bool):
        return str(actual).lower() == str(expected).lower()
    return str(actual if actual is not None else "") == str(expected if expected is not None else "")


def _contains(actual: Any, expected: Any) -> bool:
    if is_empty_value(actual):
        return False
    if isinstance(actual, (list, tuple, set)):
        return any(str(item) == str(expected) for item in actual)
    return str(expected) in str(actual)


def evaluate_condition(condition: Condition, values: Mapping[str, Any]) -> bool:
    actual = values.get(condition.field_id) if condition.field_id else None
    expected = condition.value

    match condition.operator:
        case ConditionOperator.EQUALS:
            return _equals(actual, expected)
        case ConditionOperator.NOT_EQUALS:
            return not _equals(actual, expected)
        case ConditionOperator.CONTAINS:
            return _contains(actual, expected)
        case ConditionOperator.NOT_CONTAINS:
            return not _contains(actual, expected)
        case ConditionOperator.GREATER_THAN:
            return not is_empty_value(actual) and parse_number(actual) > parse_number(expected)
        case ConditionOperator.LESS_THAN:
            return not is_empty_value(actual) and parse_number(actual) < parse_number(expected)
        case ConditionOperator.IS_EMPTY:
            return is_empty_value(actual)
        case ConditionOperator.IS_NOT_EMPTY:
            return not is_empty_value(actual)
        case _:
            logger.warning(f"Unsupported condition operator '{condition.operator}', treating as met")
            return True


def is_field_visible(field: FormField, values: Mapping[str, Any]) -> bool:
    """Whether a field is shown for the given answers.

    Conditions fold left: every condition after the first joins the running
    result with its own logical operator, AND when unset.
    """
    visibility = field.conditional_visibility
    if not visibility or not visibility.enabled or not visibility.conditions:
        return True

    conditions = visibility.conditions
    result = evaluate_condition(conditions[0], values)
    for condition in conditions[1:]:
        met = evaluate_condition(condition, values)
        if condition.logical_operator == LogicalOperator.OR:
            result = result or met
        else:
            result = result and met
    return result


def visible_field_ids(structure: FormStructure, values: Mapping[str, Any]) -> List[str]:
    return [
        field.id
        for field in structure.all_fields()
        if field.id is not None and is_field_visible(field, values)
    ]
