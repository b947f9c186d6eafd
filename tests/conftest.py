import copy

import pytest

VALID_FORM = {
    "id": "form-1",
    "name": "Residential Appraisal",
    "description": "Single family appraisal report",
    "formType": "UAD_3_6",
    "pages": [
        {
            "id": "page-1",
            "title": "Subject",
            "description": "Subject property details",
            "sections": [
                {
                    "id": "section-1",
                    "title": "Property",
                    "fields": [
                        {
                            "id": "address",
                            "field_type": "text",
                            "label": "Address",
                            "required": True,
                            "validation": [{"type": "maxLength", "value": 80}],
                        },
                        {
                            "id": "property_type",
                            "field_type": "select",
                            "label": "Property Type",
                            "options": [
                                {"label": "Condo", "value": "condo"},
                                {"label": "Single Family", "value": "sfr"},
                            ],
                        },
                        {
                            "id": "hoa_fee",
                            "field_type": "currency",
                            "label": "HOA Fee",
                            "conditional_visibility": {
                                "enabled": True,
                                "conditions": [
                                    {"fieldId": "property_type", "operator": "equals", "value": "condo"}
                                ],
                            },
                            "validation": [{"type": "min", "value": 0}],
                        },
                        {"id": "gla", "field_type": "number", "label": "Gross Living Area"},
                        {"id": "price", "field_type": "currency", "label": "Sale Price"},
                        {
                            "id": "price_per_sqft",
                            "field_type": "calculated",
                            "label": "Price per Sq Ft",
                            "help_text": "Sale price divided by gross living area",
                            "calculated_config": {
                                "enabled": True,
                                "formula": "{price} / {gla}",
                                "dependencies": ["price", "gla"],
                                "precision": 2,
                            },
                        },
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def valid_form():
    return copy.deepcopy(VALID_FORM)


@pytest.fixture
def make_form():
    """Build a copy of the valid form whose only section holds the given fields."""

    def build(*fields: dict) -> dict:
        form = copy.deepcopy(VALID_FORM)
        form["pages"][0]["sections"][0]["fields"] = list(fields)
        return form

    return build
