"""Strict form schema validation.

``validate_form_schema`` turns a form structure of unknown shape into a
``ValidatedForm`` or a list of human-readable errors. It never raises: every
violation pydantic finds is reported, not just the first one.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .enums import (
    CarryforwardMode,
    ConditionOperator,
    FieldType,
    FieldWidth,
    FormType,
    LogicalOperator,
    LookupDataSource,
    OutputFormat,
    PrefillSource,
    ValidationRuleType,
)
from .models import FieldMetadata

logger = logging.getLogger(__name__)

VALID_FIELD_TYPES = tuple(t.value for t in FieldType)
VALID_FORM_TYPES = tuple(t.value for t in FormType)


def _required_text(message: str):
    def check(v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("empty_text", message)
        return v

    return AfterValidator(check)


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== Options ====================


class ValidatedOption(_CamelModel):
    label: Annotated[str, _required_text("Option label cannot be empty")]
    value: Annotated[str, _required_text("Option value cannot be empty")]
    disabled: bool = False
    metadata: Optional[Dict[str, Any]] = None


class ValidatedMatrixOption(ValidatedOption):
    type: str

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v):
        if v not in ("row", "column"):
            raise PydanticCustomError("matrix_option_type", "Matrix option type must be 'row' or 'column'")
        return v


# ==================== Field configs ====================


class ValidatedRule(_CamelModel):
    type: ValidationRuleType
    value: Union[bool, float, str, None] = None
    message: Optional[str] = None
    pattern: Optional[str] = None
    custom_function: Optional[str] = None


class ValidatedCondition(_CamelModel):
    field_id: Annotated[str, _required_text("Condition field ID cannot be empty")]
    operator: ConditionOperator
    value: Union[bool, float, str, None] = None
    logical_operator: Optional[LogicalOperator] = None


class ValidatedVisibility(_CamelModel):
    enabled: bool = False
    conditions: List[ValidatedCondition] = Field(default_factory=list)


class ValidatedCalculatedConfig(_CamelModel):
    enabled: bool = True
    formula: Optional[str] = Field(default=None, validate_default=True)
    dependencies: Optional[List[str]] = None
    output_format: Optional[OutputFormat] = None
    precision: Optional[int] = Field(default=None, ge=0, le=10)

    @field_validator("formula")
    @classmethod
    def validate_formula(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise PydanticCustomError("missing_formula", "Calculated field must have a formula")
        return v


class ValidatedLookupConfig(_CamelModel):
    enabled: bool = True
    data_source: Optional[LookupDataSource] = Field(default=None, validate_default=True)
    endpoint: Optional[str] = None
    table: Optional[str] = None
    key_field: Optional[str] = None
    value_field: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    cache_timeout: Optional[float] = None

    @field_validator("data_source", mode="before")
    @classmethod
    def validate_data_source(cls, v):
        if v not in tuple(s.value for s in LookupDataSource) and not isinstance(v, LookupDataSource):
            raise PydanticCustomError(
                "lookup_data_source",
                "Lookup dataSource must be 'api', 'database', or 'static'",
            )
        return v


class ValidatedPrefillConfig(_CamelModel):
    enabled: bool = False
    source: PrefillSource
    key: Optional[str] = None
    endpoint: Optional[str] = None
    field_map: Optional[Dict[str, str]] = None
    fallback_value: Union[bool, float, str, None] = None
    cache_timeout: float = Field(default=300, ge=0)
    retry_attempts: int = Field(default=3, ge=1)


class ValidatedCarryforwardConfig(_CamelModel):
    enabled: bool = False
    source: Optional[str] = None
    mode: CarryforwardMode = CarryforwardMode.DEFAULT


# ==================== Field variants ====================


class _BaseField(_Model):
    id: Annotated[str, _required_text("Field ID cannot be empty")]
    label: Annotated[str, _required_text("Field label cannot be empty")]
    section_id: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = False
    width: Optional[FieldWidth] = None
    field_order: Optional[int] = Field(default=None, ge=0)
    default_value: Any = None
    validation: List[ValidatedRule] = Field(default_factory=list)
    conditional_visibility: Optional[ValidatedVisibility] = None
    prefill_config: Optional[ValidatedPrefillConfig] = None
    carryforward_config: Optional[ValidatedCarryforwardConfig] = None
    metadata: FieldMetadata = Field(default_factory=FieldMetadata)


class TextField(_BaseField):
    field_type: Literal["text", "textarea", "email", "password", "phone", "url"]
    lookup_config: Optional[ValidatedLookupConfig] = None


class NumericField(_BaseField):
    field_type: Literal["number", "currency", "percentage"]
    calculated_config: Optional[ValidatedCalculatedConfig] = None
    lookup_config: Optional[ValidatedLookupConfig] = None


class ChoiceField(_BaseField):
    field_type: Literal["select", "multiselect", "radio", "checkbox"]
    options: Optional[List[ValidatedOption]] = Field(default=None, validate_default=True)
    lookup_config: Optional[ValidatedLookupConfig] = None

    @field_validator("options")
    @classmethod
    def validate_options(cls, v, info: ValidationInfo):
        if not v:
            raise PydanticCustomError(
                "missing_options",
                "Field type '{field_type}' requires a non-empty options array",
                {"field_type": info.data.get("field_type", "selection")},
            )

        duplicates = [value for value, count in Counter(o.value for o in v).items() if count > 1]
        if duplicates:
            raise PydanticCustomError(
                "duplicate_options",
                "Duplicate option values found: {values}",
                {"values": ", ".join(duplicates)},
            )
        return v


class ToggleField(_BaseField):
    field_type: Literal["toggle"]


class TemporalField(_BaseField):
    field_type: Literal["date", "datetime", "time"]
    calculated_config: Optional[ValidatedCalculatedConfig] = None


class UploadField(_BaseField):
    field_type: Literal["file", "image"]


class SignatureField(_BaseField):
    field_type: Literal["signature"]


class InteractiveField(_BaseField):
    field_type: Literal["rating", "slider"]
    calculated_config: Optional[ValidatedCalculatedConfig] = None


class MatrixField(_BaseField):
    field_type: Literal["matrix"]
    options: Optional[List[ValidatedMatrixOption]] = Field(default=None, validate_default=True)

    @field_validator("options")
    @classmethod
    def validate_options(cls, v):
        if not v:
            raise PydanticCustomError("missing_options", "Matrix field requires a non-empty options array")

        missing = [kind for kind in ("row", "column") if not any(o.type == kind for o in v)]
        if missing:
            raise PydanticCustomError(
                "matrix_axes",
                "Matrix field must have at least one {missing} option",
                {"missing": " and one ".join(missing)},
            )
        return v


class LocationField(_BaseField):
    field_type: Literal["address", "location"]
    lookup_config: Optional[ValidatedLookupConfig] = None


class CalculatedField(_BaseField):
    field_type: Literal["calculated"]
    calculated_config: Optional[ValidatedCalculatedConfig] = Field(default=None, validate_default=True)

    @field_validator("calculated_config")
    @classmethod
    def validate_config(cls, v):
        if v is None:
            raise PydanticCustomError("missing_config", "Calculated field requires calculated_config")
        return v


class LookupField(_BaseField):
    field_type: Literal["lookup"]
    lookup_config: Optional[ValidatedLookupConfig] = Field(default=None, validate_default=True)

    @field_validator("lookup_config")
    @classmethod
    def validate_config(cls, v):
        if v is None:
            raise PydanticCustomError("missing_config", "Lookup field requires lookup_config")
        return v


class HiddenField(_BaseField):
    field_type: Literal["hidden"]
    calculated_config: Optional[ValidatedCalculatedConfig] = None
    lookup_config: Optional[ValidatedLookupConfig] = None


class LayoutField(_BaseField):
    field_type: Literal["section_break", "page_break", "html_content"]
    content: Optional[str] = None


ValidatedField = Annotated[
    Union[
        TextField,
        NumericField,
        ChoiceField,
        ToggleField,
        TemporalField,
        UploadField,
        SignatureField,
        InteractiveField,
        MatrixField,
        LocationField,
        CalculatedField,
        LookupField,
        HiddenField,
        LayoutField,
    ],
    Field(discriminator="field_type"),
]


# ==================== Structure ====================


class ValidatedSection(_Model):
    id: Annotated[str, _required_text("Section ID cannot be empty")]
    title: Annotated[str, _required_text("Section title cannot be empty")]
    description: Optional[str] = None
    section_order: Optional[int] = Field(default=None, ge=0)
    settings: Optional[Dict[str, Any]] = None
    fields: List[ValidatedField] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def coerce_fields(cls, v):
        return [] if v is None else v


class ValidatedPage(_Model):
    id: Annotated[str, _required_text("Page ID cannot be empty")]
    title: Annotated[str, _required_text("Page title cannot be empty")]
    description: Optional[str] = None
    page_order: Optional[int] = Field(default=None, ge=0)
    settings: Optional[Dict[str, Any]] = None
    sections: List[ValidatedSection]

    @field_validator("sections")
    @classmethod
    def validate_sections(cls, v):
        if not v:
            raise PydanticCustomError("empty_page", "Page must have at least one section")
        return v


class ValidatedForm(_Model):
    id: Annotated[str, _required_text("Form ID cannot be empty")]
    name: Annotated[str, _required_text("Form name cannot be empty")]
    description: Optional[str] = None
    form_type: FormType = Field(alias="formType")
    pages: List[ValidatedPage]

    @field_validator("form_type", mode="before")
    @classmethod
    def validate_form_type(cls, v):
        if v not in VALID_FORM_TYPES and not isinstance(v, FormType):
            raise PydanticCustomError(
                "form_type",
                "Form type must be one of: {types}",
                {"types": ", ".join(VALID_FORM_TYPES)},
            )
        return v

    @field_validator("pages")
    @classmethod
    def validate_pages(cls, v):
        if not v:
            raise PydanticCustomError("empty_form", "Form must have at least one page")
        return v

    def all_fields(self) -> list:
        return [field for page in self.pages for section in page.sections for field in section.fields]


# ==================== Results ====================


@dataclass(frozen=True)
class ValidationSuccess:
    data: ValidatedForm
    valid: Literal[True] = True
    errors: None = None


@dataclass(frozen=True)
class ValidationFailure:
    errors: List[str]
    valid: Literal[False] = False
    data: None = None


ValidationResult = Union[ValidationSuccess, ValidationFailure]


def _format_error(error: dict) -> str:
    error_type = error["type"]
    if error_type == "union_tag_invalid":
        message = f"Field type must be one of: {', '.join(VALID_FIELD_TYPES)}"
    elif error_type == "union_tag_not_found":
        message = "Field type is required"
    else:
        message = error["msg"]

    loc = [str(item) for item in error["loc"]]
    path = ".".join(loc)
    return f"{path} - {message}" if path else message


def _find_duplicate_field_ids(data: Any) -> List[str]:
    if not isinstance(data, dict):
        return []

    ids = []
    for page in data.get("pages") or []:
        if not isinstance(page, dict):
            continue
        for section in page.get("sections") or []:
            if not isinstance(section, dict):
                continue
            for field in section.get("fields") or []:
                if isinstance(field, dict) and isinstance(field.get("id"), str) and field["id"]:
                    ids.append(field["id"])

    return [field_id for field_id, count in Counter(ids).items() if count > 1]


def validate_form_schema(form: Any) -> ValidationResult:
    """Validate a form structure of unknown shape.

    Args:
        form: Parsed JSON (or any object) claiming to be a form definition

    Returns:
        ValidationSuccess with the typed form, or ValidationFailure listing
        every violation as "<dotted.path> - <message>".
    """
    logger.debug("Starting form schema validation")

    errors: List[str] = []
    validated: ValidatedForm | None = None

    try:
        validated = ValidatedForm.model_validate(form)
    except ValidationError as e:
        errors.extend(_format_error(error) for error in e.errors())
    except Exception as e:
        logger.error(f"Unexpected error during schema validation: {e}", exc_info=True)
        return ValidationFailure(errors=[f"Unexpected validation error: {e}"])

    for field_id in _find_duplicate_field_ids(form):
        errors.append(f"Duplicate field ID: {field_id}")

    if errors:
        logger.info(f"Form schema validation failed with {len(errors)} error(s)")
        return ValidationFailure(errors=errors)

    logger.debug("Form schema validation successful")
    return ValidationSuccess(data=validated)


def validate_field_type(field_type: str) -> bool:
    return field_type in VALID_FIELD_TYPES


def get_valid_field_types() -> tuple[str, ...]:
    return VALID_FIELD_TYPES


def get_valid_form_types() -> tuple[str, ...]:
    return VALID_FORM_TYPES
