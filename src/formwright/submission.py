"""Validation of submitted answers against field rules"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from .enums import FieldType, ValidationRuleType
from .errors import ExpressionError
from .expressions import compile_expression
from .models import CamelModel, FormField, FormStructure, ValidationRule
from .utils import is_empty_value, parse_number
from .visibility import is_field_visible

logger = logging.getLogger(__name__)


class SubmissionError(CamelModel):
    field_id: str
    rule: str
    message: str


class SubmissionResult(BaseModel):
    valid: bool = True
    errors: List[SubmissionError] = Field(default_factory=list)


def _length(value: Any) -> int:
    if isinstance(value, (list, tuple, set, dict)):
        return len(value)
    return len(str(value))


def _check_rule(field: FormField, rule: ValidationRule, value: Any, values: Mapping[str, Any]) -> Optional[str]:
    """Return the failure message for a rule, or None when it holds."""
    label = field.label or field.id

    if rule.type == ValidationRuleType.REQUIRED:
        if is_empty_value(value):
            return rule.message or f"{label} is required"
        return None

    # remaining rules only apply to answered fields
    if is_empty_value(value):
        return None

    match rule.type:
        case ValidationRuleType.MIN:
            if parse_number(value) < parse_number(rule.value):
                return rule.message or f"{label} must be at least {rule.value}"
        case ValidationRuleType.MAX:
            if parse_number(value) > parse_number(rule.value):
                return rule.message or f"{label} must be at most {rule.value}"
        case ValidationRuleType.MIN_LENGTH:
            if _length(value) < int(parse_number(rule.value)):
                return rule.message or f"{label} must be at least {rule.value} characters"
        case ValidationRuleType.MAX_LENGTH:
            if _length(value) > int(parse_number(rule.value)):
                return rule.message or f"{label} must be at most {rule.value} characters"
        case ValidationRuleType.PATTERN:
            if not rule.pattern:
                return None
            try:
                matched = re.fullmatch(rule.pattern, str(value))
            except re.error as e:
                logger.warning(f"Invalid pattern on field {field.id}: {e}")
                return f"{label} has an invalid validation pattern"
            if not matched:
                return rule.message or f"{label} has an invalid format"
        case ValidationRuleType.CUSTOM:
            if not rule.custom_function:
                return None
            try:
                ok = compile_expression(rule.custom_function).evaluate({**values, "value": value})
            except ExpressionError as e:
                logger.warning(f"Custom rule failed on field {field.id}: {e}")
                ok = False
            if not ok:
                return rule.message or f"{label} is invalid"
        case _:
            logger.debug(f"Ignoring unknown rule type '{rule.type}' on field {field.id}")

    return None


def validate_submission(structure: FormStructure, values: Mapping[str, Any]) -> SubmissionResult:
    """Check every visible field's answer against its rules.

    Fields hidden by conditional visibility, ``hidden`` fields and layout
    elements are skipped. All failures are returned; nothing is raised.
    """
    result = SubmissionResult()

    for field in structure.all_fields():
        if field.id is None or field.field_type == FieldType.HIDDEN:
            continue
        info = field.type_info
        if info is not None and not info.supports_validation and not field.required:
            continue
        if not is_field_visible(field, values):
            continue

        value = values.get(field.id)
        rules = list(field.validation)
        if field.required and not any(rule.type == ValidationRuleType.REQUIRED for rule in rules):
            rules.insert(0, ValidationRule(type=ValidationRuleType.REQUIRED.value))

        for rule in rules:
            message = _check_rule(field, rule, value, values)
            if message:
                result.errors.append(SubmissionError(field_id=field.id, rule=str(rule.type), message=message))

    result.valid = not result.errors
    return result
