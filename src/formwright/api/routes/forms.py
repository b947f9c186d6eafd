from typing import Any, Dict, List

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ...calculations import apply_carryforward, compute_calculated_values
from ...diagnostics import run_form_diagnostics
from ...models import FormStructure
from ...schema import validate_form_schema
from ...submission import validate_submission
from ...visibility import visible_field_ids

router = APIRouter(prefix="/forms", tags=["forms"])


class FormValuesRequest(BaseModel):
    form: FormStructure
    values: Dict[str, Any] = Field(default_factory=dict)


class CalculateRequest(FormValuesRequest):
    initial: bool = False


class ValidateResponse(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    data: Dict[str, Any] | None = None


@router.post("/validate", response_model=ValidateResponse)
def validate_form(form: Dict[str, Any]):
    result = validate_form_schema(form)
    if result.valid:
        return ValidateResponse(valid=True, data=result.data.model_dump(mode="json", by_alias=True))
    return ValidateResponse(valid=False, errors=result.errors)


@router.post("/diagnostics")
def diagnose_form(form: Dict[str, Any], request: Request):
    report = run_form_diagnostics(form, settings=request.app.state.config.diagnostics)
    return report.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/visibility")
def form_visibility(body: FormValuesRequest):
    return {"visibleFieldIds": visible_field_ids(body.form, body.values)}


@router.post("/calculate")
def calculate_form(body: CalculateRequest):
    values = apply_carryforward(body.form, body.values, initial=body.initial)
    calculated = compute_calculated_values(body.form, values)
    values.update(calculated)
    return {"values": values, "calculated": calculated}


@router.post("/submissions/validate")
def validate_form_submission(body: FormValuesRequest):
    result = validate_submission(body.form, body.values)
    return result.model_dump(mode="json", by_alias=True)
