"""Form diagnostics engine.

Runs the schema validator, a dependency cycle check and a simulated render of
every field over a form definition and folds everything into a single
``DiagnosticReport``. Diagnostics never raise: an unexpected failure becomes a
``FatalError`` entry and a ``crashed`` status.
"""

from __future__ import annotations

import copy
import logging
import time
from collections import Counter
from typing import Any, List, Mapping, Optional

from pydantic import Field, ValidationError

from .config import DiagnosticsSettings
from .consts import SELECTION_FIELD_TYPES, UNARY_OPERATORS, VALUE_RULE_TYPES
from .enums import DiagnosticErrorType, DiagnosticStatus, PrefillSource, Severity
from .graph import build_dependency_graph, find_cycle_groups, find_unknown_references
from .models import CamelModel, FormField, FormPage, FormSection, FormStructure
from .schema import validate_form_schema

logger = logging.getLogger(__name__)

CIRCULAR_DEPENDENCY_MESSAGE = "Circular dependency detected in conditional logic or calculations"


class DiagnosticError(CamelModel):
    type: DiagnosticErrorType
    field_id: Optional[str] = None
    field_label: Optional[str] = None
    section_id: Optional[str] = None
    section_title: Optional[str] = None
    page_id: Optional[str] = None
    page_title: Optional[str] = None
    message: str
    severity: Severity = Severity.ERROR


class DiagnosticReport(CamelModel):
    status: DiagnosticStatus = DiagnosticStatus.PASSED
    errors: List[DiagnosticError] = Field(default_factory=list)
    warnings: List[DiagnosticError] = Field(default_factory=list)
    field_count: int = 0
    section_count: int = 0
    page_count: int = 0
    # milliseconds
    execution_time: float = 0

    @property
    def passed(self) -> bool:
        return self.status == DiagnosticStatus.PASSED


def _field_error(
    error_type: DiagnosticErrorType,
    message: str,
    field: FormField,
    section: FormSection | None = None,
    page: FormPage | None = None,
    severity: Severity = Severity.ERROR,
) -> DiagnosticError:
    return DiagnosticError(
        type=error_type,
        field_id=field.id,
        field_label=field.label,
        section_id=section.id if section else None,
        section_title=section.title if section else None,
        page_id=page.id if page else None,
        page_title=page.title if page else None,
        message=message,
        severity=severity,
    )


def _is_blank(text: Optional[str]) -> bool:
    return not text or not text.strip()


def simulate_render(field: FormField) -> Optional[str]:
    """Return the first configuration problem that would break rendering, if any."""
    if field.type_info is None:
        return f"Unknown field type: {field.field_type if field.field_type is not None else 'missing'}"

    if field.field_type in SELECTION_FIELD_TYPES:
        if not field.options:
            return f"Field type '{field.field_type}' requires options"

        counts = Counter(option.value for option in field.options)
        duplicates = [value for value, count in counts.items() if count > 1]
        if duplicates:
            return f"Duplicate option values found: {', '.join(duplicates)}"

        for i, option in enumerate(field.options, start=1):
            if _is_blank(option.label):
                return f"Option {i} has empty label"
            if _is_blank(option.value):
                return f"Option {i} has empty value"

    calculated = field.calculated_config
    if calculated and calculated.enabled:
        if not calculated.formula:
            return "Calculated field requires a formula"
        if calculated.dependencies is not None and len(calculated.dependencies) == 0:
            return "Calculated field should specify dependencies"

    visibility = field.conditional_visibility
    if visibility and visibility.enabled:
        if not visibility.conditions:
            return "Conditional visibility requires at least one condition"
        for i, condition in enumerate(visibility.conditions, start=1):
            if not condition.field_id:
                return f"Condition {i} missing field ID"
            if not condition.operator:
                return f"Condition {i} missing operator"
            if condition.value is None and condition.operator not in UNARY_OPERATORS:
                return f"Condition {i} missing value"

    prefill = field.prefill_config
    if prefill and prefill.enabled:
        if not prefill.source:
            return "Prefill configuration requires a source"
        if prefill.source == PrefillSource.API.value and not prefill.endpoint:
            return "API prefill requires an endpoint"
        if prefill.source == PrefillSource.LOOKUP.value and not prefill.key:
            return "Lookup prefill requires a key"

    for i, rule in enumerate(field.validation, start=1):
        if not rule.type:
            return f"Validation rule {i} missing type"
        if rule.type in VALUE_RULE_TYPES and rule.value is None:
            return f"Validation rule {i} of type '{rule.type}' requires a value"
        if rule.type == "pattern" and not rule.pattern:
            return f"Validation rule {i} of type 'pattern' requires a pattern"
        if rule.type == "custom" and not rule.custom_function:
            return f"Validation rule {i} of type 'custom' requires a custom function"

    return None


def _to_raw(structure: FormStructure | Mapping[str, Any]) -> Any:
    if isinstance(structure, FormStructure):
        return structure.model_dump(mode="json", by_alias=True, exclude_none=True)
    return structure


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _unloadable_field_error(field: Any, section: Mapping, page: Mapping, error: ValidationError) -> DiagnosticError:
    raw_field = field if isinstance(field, Mapping) else {}
    problems = "; ".join(
        f"{'.'.join(str(part) for part in e['loc']) or 'field'}: {e['msg']}" for e in error.errors()
    )
    return DiagnosticError(
        type=DiagnosticErrorType.RENDER_ERROR,
        field_id=_text(raw_field.get("id")),
        field_label=_text(raw_field.get("label")),
        section_id=_text(section.get("id")),
        section_title=_text(section.get("title")),
        page_id=_text(page.get("id")),
        page_title=_text(page.get("title")),
        message=f"Field configuration could not be loaded: {problems}",
    )


def _drop_unloadable_fields(raw: Any, report: DiagnosticReport) -> Any:
    """Return a copy of the raw form without the fields the builder models reject.

    Every dropped field is reported as a RenderError so the remaining checks
    still run over the rest of the form.
    """
    if not isinstance(raw, Mapping) or not isinstance(raw.get("pages"), list):
        return raw

    raw = copy.deepcopy(dict(raw))
    for page in raw["pages"]:
        if not isinstance(page, dict) or not isinstance(page.get("sections"), list):
            continue
        for section in page["sections"]:
            if not isinstance(section, dict) or not isinstance(section.get("fields"), list):
                continue
            kept = []
            for field in section["fields"]:
                try:
                    FormField.model_validate(field)
                except ValidationError as e:
                    logger.debug(f"Dropping unloadable field in section {section.get('id')}: {e}")
                    report.errors.append(_unloadable_field_error(field, section, page, e))
                    continue
                kept.append(field)
            section["fields"] = kept
    return raw


def _check_structure(
    report: DiagnosticReport, structure: FormStructure, settings: DiagnosticsSettings
) -> None:
    report.page_count = len(structure.pages)
    report.section_count = len(structure.all_sections())
    report.field_count = len(structure.all_fields())

    located = list(structure.iter_fields())
    all_fields = [field for _page, _section, field in located]

    first_occurrence = {}
    for page, section, field in located:
        first_occurrence.setdefault(field.id, (page, section, field))

    for group in find_cycle_groups(build_dependency_graph(all_fields)):
        page, section, field = first_occurrence[group[0]]
        logger.debug(f"Dependency cycle between fields: {', '.join(group)}")
        report.errors.append(
            _field_error(DiagnosticErrorType.CONFIG_ERROR, CIRCULAR_DEPENDENCY_MESSAGE, field, section, page)
        )

    for page, section, field in located:
        message = simulate_render(field)
        if message:
            report.errors.append(_field_error(DiagnosticErrorType.RENDER_ERROR, message, field, section, page))

    for section in structure.all_sections():
        if _is_blank(section.title):
            report.warnings.append(
                DiagnosticError(
                    type=DiagnosticErrorType.CONFIG_ERROR,
                    section_id=section.id,
                    message="Section title is recommended for better form organization",
                    severity=Severity.WARNING,
                )
            )

    for page in structure.pages:
        if _is_blank(page.description):
            report.warnings.append(
                DiagnosticError(
                    type=DiagnosticErrorType.CONFIG_ERROR,
                    page_id=page.id,
                    page_title=page.title,
                    message="Page description is recommended for better user experience",
                    severity=Severity.WARNING,
                )
            )

    complex_types = {t.value for t in settings.complex_field_types}
    for page, section, field in located:
        if field.field_type in complex_types and _is_blank(field.help_text):
            report.warnings.append(
                _field_error(
                    DiagnosticErrorType.CONFIG_ERROR,
                    f"Complex field type '{field.field_type}' should include help text",
                    field,
                    section,
                    page,
                    severity=Severity.WARNING,
                )
            )

    if settings.warn_unknown_references:
        locations = {id(field): (page, section) for page, section, field in located}
        for field, ref in find_unknown_references(all_fields):
            page, section = locations[id(field)]
            report.warnings.append(
                _field_error(
                    DiagnosticErrorType.CONFIG_ERROR,
                    f"Field references unknown field ID '{ref}'",
                    field,
                    section,
                    page,
                    severity=Severity.WARNING,
                )
            )


def run_form_diagnostics(
    structure: FormStructure | Mapping[str, Any],
    settings: DiagnosticsSettings | None = None,
) -> DiagnosticReport:
    """Diagnose a form definition.

    Args:
        structure: A parsed ``FormStructure`` or the raw JSON mapping
        settings: Diagnostics settings, defaults when omitted

    Returns:
        DiagnosticReport with status passed (no errors), failed (errors) or
        crashed (an unexpected exception stopped the run)
    """
    settings = settings or DiagnosticsSettings()
    start = time.perf_counter()
    report = DiagnosticReport()

    try:
        raw = _to_raw(structure)

        result = validate_form_schema(raw)
        if not result.valid:
            report.errors.extend(
                DiagnosticError(type=DiagnosticErrorType.SCHEMA_ERROR, message=message)
                for message in result.errors
            )

        if not isinstance(structure, FormStructure):
            structure = FormStructure.model_validate(_drop_unloadable_fields(raw, report))

        _check_structure(report, structure, settings)

        if report.errors:
            report.status = DiagnosticStatus.FAILED
    except Exception as e:
        logger.error(f"Form diagnostics crashed: {e}", exc_info=True)
        report.status = DiagnosticStatus.CRASHED
        report.errors.append(
            DiagnosticError(type=DiagnosticErrorType.FATAL_ERROR, message=str(e) or "Unknown fatal error")
        )

    report.execution_time = round((time.perf_counter() - start) * 1000, 3)
    logger.info(
        f"Diagnostics {report.status.value}: {len(report.errors)} error(s), "
        f"{len(report.warnings)} warning(s) in {report.execution_time}ms"
    )
    return report
