"""Calculated field evaluation and carryforward"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .enums import CarryforwardMode
from .errors import ExpressionError
from .expressions import compile_expression
from .graph import build_dependency_graph, topological_order
from .models import FormField, FormStructure
from .utils import is_empty_value, parse_number

logger = logging.getLogger(__name__)


def evaluate_calculated_field(field: FormField, values: Mapping[str, Any]) -> Any:
    """Evaluate a field's formula against the current answers.

    References are parsed permissively as numbers, so blank or non-numeric
    answers count as 0.

    Raises:
        ExpressionError: the field has no enabled formula or it fails to evaluate
    """
    calculated = field.calculated_config
    if not calculated or not calculated.enabled or not calculated.formula:
        raise ExpressionError(f"Field {field.id} has no enabled formula")

    expression = compile_expression(calculated.formula)
    names = {ref: parse_number(values.get(ref)) for ref in expression.references}
    result = expression.evaluate(names)

    if calculated.precision is not None and isinstance(result, (int, float)) and not isinstance(result, bool):
        result = round(result, calculated.precision)
    return result


def compute_calculated_values(structure: FormStructure, values: Mapping[str, Any]) -> Dict[str, Optional[Any]]:
    """Evaluate every enabled calculated field in dependency order.

    Each result is visible to the fields evaluated after it. A field whose
    formula fails yields None.
    """
    fields = structure.field_map()
    graph = build_dependency_graph(fields.values())

    try:
        order = topological_order(graph)
    except ExpressionError as e:
        logger.error(f"Cannot order calculated fields, falling back to form order: {e}")
        order = list(graph)

    working = dict(values)
    results: Dict[str, Optional[Any]] = {}
    for field_id in order:
        field = fields[field_id]
        calculated = field.calculated_config
        if not calculated or not calculated.enabled:
            continue

        try:
            results[field_id] = evaluate_calculated_field(field, working)
        except ExpressionError as e:
            logger.warning(f"Calculation failed for field {field_id}: {e}")
            results[field_id] = None
        working[field_id] = results[field_id]

    return results


def apply_carryforward(
    structure: FormStructure, values: Mapping[str, Any], initial: bool = False
) -> Dict[str, Any]:
    """Copy values from carryforward source fields into their targets.

    ``mirror`` always copies. ``default`` only fills an empty target, and only
    on the initial pass so later edits are not overwritten.
    """
    updated = dict(values)
    for field in structure.all_fields():
        carryforward = field.carryforward_config
        if field.id is None or not carryforward or not carryforward.enabled or not carryforward.source:
            continue
        if carryforward.source not in values:
            continue

        source_value = values[carryforward.source]
        if carryforward.mode == CarryforwardMode.MIRROR:
            updated[field.id] = source_value
        elif initial and is_empty_value(updated.get(field.id)):
            updated[field.id] = source_value

    return updated
