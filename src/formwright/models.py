"""Form builder schema models.

These are the lenient shapes the builder edits in memory: every config is
optional and enum-like values are kept as plain strings, so a half-finished
form still loads and can be diagnosed. ``formwright.schema`` holds the strict,
validated counterpart.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import CarryforwardMode, FieldType, FieldWidth
from .field_types import FieldTypeInfo, get_field_type_info


class CamelModel(BaseModel):
    """Config blocks use camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldOption(CamelModel):
    label: str = ""
    value: str = ""
    disabled: bool = False
    # "row" / "column" for matrix fields
    type: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("label", "value", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ValidationRule(CamelModel):
    type: Optional[str] = None
    value: Any = None
    message: Optional[str] = None
    pattern: Optional[str] = None
    custom_function: Optional[str] = None


class Condition(CamelModel):
    field_id: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None
    logical_operator: Optional[str] = None


class ConditionalVisibility(CamelModel):
    enabled: bool = False
    conditions: Optional[List[Condition]] = None


class CalculatedConfig(CamelModel):
    enabled: bool = False
    formula: Optional[str] = None
    dependencies: Optional[List[str]] = None
    output_format: Optional[str] = None
    precision: Optional[int] = None


class LookupConfig(CamelModel):
    enabled: bool = False
    data_source: Optional[str] = None
    endpoint: Optional[str] = None
    table: Optional[str] = None
    key_field: Optional[str] = None
    value_field: Optional[str] = None
    filters: Optional[Dict[str, Any]] = None
    cache_timeout: Optional[float] = None


class PrefillConfig(CamelModel):
    enabled: bool = False
    source: Optional[str] = None
    key: Optional[str] = None
    endpoint: Optional[str] = None
    field_map: Optional[Dict[str, str]] = None
    # None means no fallback is configured
    fallback_value: Any = None
    # None falls back to the service defaults
    cache_timeout: Optional[float] = None
    retry_attempts: Optional[int] = None


class CarryforwardConfig(CamelModel):
    enabled: bool = False
    source: Optional[str] = None
    mode: CarryforwardMode = CarryforwardMode.DEFAULT


class XmlMapping(CamelModel):
    field_id: Optional[str] = None
    path: Optional[str] = None
    required: Optional[bool] = None
    format: Optional[str] = None


class FieldMetadata(BaseModel):
    """UAD / URAR / MISMO compliance annotations. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uad_field_id: Optional[str] = None
    report_field_id: Optional[str] = Field(default=None, alias="reportFieldId")
    mismo_field_id: Optional[str] = Field(default=None, alias="mismoFieldId")
    mismo_path: Optional[str] = None
    cardinality: Optional[str] = None
    conditionality: Optional[str] = None
    output_format: Optional[str] = Field(default=None, alias="outputFormat")
    xml: Optional[XmlMapping] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    custom: Optional[Dict[str, Any]] = None


class FormField(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    field_type: Optional[str] = None
    label: str = ""
    section_id: Optional[str] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = False
    width: Optional[str] = None
    field_order: Optional[int] = None
    default_value: Any = None
    options: Optional[List[FieldOption]] = None
    validation: List[ValidationRule] = Field(default_factory=list)
    conditional_visibility: Optional[ConditionalVisibility] = None
    calculated_config: Optional[CalculatedConfig] = None
    lookup_config: Optional[LookupConfig] = None
    prefill_config: Optional[PrefillConfig] = None
    carryforward_config: Optional[CarryforwardConfig] = None
    metadata: FieldMetadata = Field(default_factory=FieldMetadata)

    @field_validator("label", mode="before")
    @classmethod
    def coerce_label(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("validation", mode="before")
    @classmethod
    def coerce_validation(cls, v):
        if v is None:
            return []
        if isinstance(v, dict):
            # older builder versions stored a single rule object
            return [v] if v.get("type") else []
        return v

    @field_validator("metadata", mode="before")
    @classmethod
    def coerce_metadata(cls, v):
        return {} if v is None else v

    @property
    def type_info(self) -> FieldTypeInfo | None:
        return get_field_type_info(self.field_type)

    def references(self) -> List[str]:
        """Field IDs this field's visibility or calculation depends on."""
        refs: List[str] = []
        visibility = self.conditional_visibility
        if visibility and visibility.enabled and visibility.conditions:
            refs.extend(c.field_id for c in visibility.conditions if c.field_id)
        calculated = self.calculated_config
        if calculated and calculated.enabled and calculated.dependencies:
            refs.extend(d for d in calculated.dependencies if d)
        return refs


class FormSection(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    section_order: Optional[int] = None
    settings: Optional[Dict[str, Any]] = None
    fields: List[FormField] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def coerce_fields(cls, v):
        return [] if v is None else v


class FormPage(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    page_order: Optional[int] = None
    settings: Optional[Dict[str, Any]] = None
    sections: List[FormSection] = Field(default_factory=list)

    @field_validator("sections", mode="before")
    @classmethod
    def coerce_sections(cls, v):
        return [] if v is None else v


class FormStructure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    form_type: Optional[str] = Field(default=None, alias="formType")
    pages: List[FormPage] = Field(default_factory=list)

    def iter_sections(self) -> Iterator[tuple[FormPage, FormSection]]:
        for page in self.pages:
            for section in page.sections:
                yield page, section

    def iter_fields(self) -> Iterator[tuple[FormPage, FormSection, FormField]]:
        for page, section in self.iter_sections():
            for field in section.fields:
                yield page, section, field

    def all_fields(self) -> List[FormField]:
        return [field for _page, _section, field in self.iter_fields()]

    def all_sections(self) -> List[FormSection]:
        return [section for _page, section in self.iter_sections()]

    def field_map(self) -> Dict[str, FormField]:
        # first occurrence wins when IDs are duplicated
        fields: Dict[str, FormField] = {}
        for field in self.all_fields():
            if field.id is not None:
                fields.setdefault(field.id, field)
        return fields


def create_default_field(
    field_type: FieldType, section_id: str, order: int, field_id: Optional[str] = None
) -> FormField:
    """Build a new field the way the builder palette drops it onto a section."""
    info = get_field_type_info(field_type)
    if info is None:
        raise ValueError(f"Unknown field type: {field_type}")

    return FormField(
        id=field_id or f"field-{uuid.uuid4().hex[:12]}",
        section_id=section_id,
        field_type=FieldType(field_type).value,
        label=f"New {info.label} Field",
        required=False,
        width=FieldWidth.FULL.value,
        field_order=order,
        options=[] if info.supports_options else None,
        validation=[],
        conditional_visibility=ConditionalVisibility(enabled=False),
        calculated_config=CalculatedConfig(enabled=False) if info.supports_calculation else None,
        lookup_config=LookupConfig(enabled=False, data_source="static") if info.supports_lookup else None,
        prefill_config=PrefillConfig(enabled=False, source="internal"),
        carryforward_config=CarryforwardConfig(enabled=False),
    )
