"""Capability table for every field kind"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import FieldCategory, FieldType


@dataclass(frozen=True, slots=True)
class FieldTypeInfo:
    label: str
    category: FieldCategory
    description: str
    supports_validation: bool = True
    supports_options: bool = False
    supports_calculation: bool = False
    supports_lookup: bool = False


_INPUT = FieldCategory.INPUT
_SELECTION = FieldCategory.SELECTION
_DATE = FieldCategory.DATE
_FILE = FieldCategory.FILE
_INTERACTIVE = FieldCategory.INTERACTIVE
_LOCATION = FieldCategory.LOCATION
_CALCULATED = FieldCategory.CALCULATED
_LAYOUT = FieldCategory.LAYOUT

FIELD_TYPE_INFO: dict[FieldType, FieldTypeInfo] = {
    FieldType.TEXT: FieldTypeInfo("Text", _INPUT, "Single line text input", supports_lookup=True),
    FieldType.TEXTAREA: FieldTypeInfo("Textarea", _INPUT, "Multi-line text input"),
    FieldType.EMAIL: FieldTypeInfo("Email", _INPUT, "Email address input with validation"),
    FieldType.PASSWORD: FieldTypeInfo("Password", _INPUT, "Password input field"),
    FieldType.PHONE: FieldTypeInfo("Phone", _INPUT, "Phone number input with formatting"),
    FieldType.URL: FieldTypeInfo("URL", _INPUT, "Website URL input"),
    FieldType.NUMBER: FieldTypeInfo(
        "Number", _INPUT, "Numeric input field", supports_calculation=True, supports_lookup=True
    ),
    FieldType.CURRENCY: FieldTypeInfo(
        "Currency", _INPUT, "Currency amount input", supports_calculation=True, supports_lookup=True
    ),
    FieldType.PERCENTAGE: FieldTypeInfo(
        "Percentage", _INPUT, "Percentage value input", supports_calculation=True
    ),
    FieldType.SELECT: FieldTypeInfo(
        "Select", _SELECTION, "Dropdown selection", supports_options=True, supports_lookup=True
    ),
    FieldType.MULTISELECT: FieldTypeInfo(
        "Multi-Select", _SELECTION, "Multiple option selection", supports_options=True, supports_lookup=True
    ),
    FieldType.RADIO: FieldTypeInfo(
        "Radio", _SELECTION, "Single choice radio buttons", supports_options=True
    ),
    FieldType.CHECKBOX: FieldTypeInfo(
        "Checkbox", _SELECTION, "Multiple choice checkboxes", supports_options=True
    ),
    FieldType.TOGGLE: FieldTypeInfo(
        "Toggle", _SELECTION, "On/off toggle switch", supports_validation=False
    ),
    FieldType.DATE: FieldTypeInfo("Date", _DATE, "Date picker", supports_calculation=True),
    FieldType.DATETIME: FieldTypeInfo(
        "Date & Time", _DATE, "Date and time picker", supports_calculation=True
    ),
    FieldType.TIME: FieldTypeInfo("Time", _DATE, "Time picker"),
    FieldType.FILE: FieldTypeInfo("File Upload", _FILE, "File upload field"),
    FieldType.IMAGE: FieldTypeInfo("Image Upload", _FILE, "Image upload with preview"),
    FieldType.SIGNATURE: FieldTypeInfo("Signature", _FILE, "Digital signature capture"),
    FieldType.RATING: FieldTypeInfo(
        "Rating", _INTERACTIVE, "Star rating input", supports_calculation=True
    ),
    FieldType.SLIDER: FieldTypeInfo(
        "Slider", _INTERACTIVE, "Range slider input", supports_calculation=True
    ),
    FieldType.MATRIX: FieldTypeInfo(
        "Matrix", _INTERACTIVE, "Matrix/grid of options", supports_options=True
    ),
    FieldType.ADDRESS: FieldTypeInfo(
        "Address", _LOCATION, "Address input with autocomplete", supports_lookup=True
    ),
    FieldType.LOCATION: FieldTypeInfo("Location", _LOCATION, "GPS coordinates picker"),
    FieldType.CALCULATED: FieldTypeInfo(
        "Calculated",
        _CALCULATED,
        "Auto-calculated field",
        supports_validation=False,
        supports_calculation=True,
    ),
    FieldType.LOOKUP: FieldTypeInfo(
        "Lookup", _CALCULATED, "Data lookup field", supports_validation=False, supports_lookup=True
    ),
    FieldType.HIDDEN: FieldTypeInfo(
        "Hidden",
        _CALCULATED,
        "Hidden field for data storage",
        supports_validation=False,
        supports_calculation=True,
        supports_lookup=True,
    ),
    FieldType.SECTION_BREAK: FieldTypeInfo(
        "Section Break", _LAYOUT, "Visual section separator", supports_validation=False
    ),
    FieldType.PAGE_BREAK: FieldTypeInfo(
        "Page Break", _LAYOUT, "Page separator for multi-page forms", supports_validation=False
    ),
    FieldType.HTML_CONTENT: FieldTypeInfo(
        "HTML Content", _LAYOUT, "Custom HTML content block", supports_validation=False
    ),
}

CATEGORY_LABELS: dict[FieldCategory, str] = {
    FieldCategory.INPUT: "Text Inputs",
    FieldCategory.SELECTION: "Selection",
    FieldCategory.DATE: "Date & Time",
    FieldCategory.FILE: "File Upload",
    FieldCategory.INTERACTIVE: "Interactive",
    FieldCategory.LOCATION: "Location",
    FieldCategory.CALCULATED: "Calculated",
    FieldCategory.LAYOUT: "Layout",
}


def get_field_type_info(field_type: FieldType | str) -> FieldTypeInfo | None:
    """Return the capability entry for a field kind, or None when unknown."""
    try:
        return FIELD_TYPE_INFO[FieldType(field_type)]
    except ValueError:
        return None


def get_field_types_by_category() -> dict[FieldCategory, list[FieldType]]:
    grouped: dict[FieldCategory, list[FieldType]] = {category: [] for category in CATEGORY_LABELS}
    for field_type, info in FIELD_TYPE_INFO.items():
        grouped[info.category].append(field_type)
    return grouped
