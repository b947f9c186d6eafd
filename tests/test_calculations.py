"""Tests for calculated fields and carryforward"""

import pytest

from formwright.calculations import apply_carryforward, compute_calculated_values, evaluate_calculated_field
from formwright.errors import ExpressionError
from formwright.models import FormField, FormStructure


def calc(field_id, formula, precision=None, enabled=True):
    return {
        "id": field_id,
        "field_type": "calculated",
        "label": field_id,
        "calculated_config": {"enabled": enabled, "formula": formula, "precision": precision},
    }


class TestEvaluateCalculatedField:
    def test_formula_with_precision(self):
        field = FormField.model_validate(calc("ppsf", "{price} / {gla}", precision=2))

        assert evaluate_calculated_field(field, {"price": "$350,000", "gla": "1,500"}) == 233.33

    def test_blank_references_count_as_zero(self):
        field = FormField.model_validate(calc("total", "{a} + {b}"))

        assert evaluate_calculated_field(field, {"a": "12"}) == 12

    def test_disabled_formula_raises(self):
        field = FormField.model_validate(calc("total", "{a}", enabled=False))

        with pytest.raises(ExpressionError):
            evaluate_calculated_field(field, {"a": 1})


class TestComputeCalculatedValues:
    """Tests for evaluating a whole form"""

    def test_valid_form(self, valid_form):
        structure = FormStructure.model_validate(valid_form)

        assert compute_calculated_values(structure, {"price": 300000, "gla": 2000}) == {"price_per_sqft": 150}

    def test_chained_in_dependency_order(self, make_form):
        structure = FormStructure.model_validate(
            make_form(
                calc("adjusted", "{base} + {adjustment}"),
                calc("adjustment", "{base} * 0.1"),
                {"id": "base", "field_type": "number", "label": "Base"},
            )
        )

        results = compute_calculated_values(structure, {"base": 100})

        assert results["adjustment"] == pytest.approx(10)
        assert results["adjusted"] == pytest.approx(110)

    def test_failure_yields_none(self, valid_form):
        structure = FormStructure.model_validate(valid_form)

        assert compute_calculated_values(structure, {"price": 300000, "gla": 0}) == {"price_per_sqft": None}

    def test_cycle_falls_back_to_form_order(self, make_form):
        structure = FormStructure.model_validate(make_form(calc("a", "{b} + 1"), calc("b", "{a} + 1")))

        assert compute_calculated_values(structure, {}) == {"a": 1, "b": 2}


class TestApplyCarryforward:
    """Tests for carryforward"""

    @pytest.fixture
    def structure(self, make_form):
        return FormStructure.model_validate(
            make_form(
                {"id": "subject_address", "field_type": "text", "label": "Subject Address"},
                {
                    "id": "mirror",
                    "field_type": "text",
                    "label": "Mirror",
                    "carryforward_config": {"enabled": True, "source": "subject_address", "mode": "mirror"},
                },
                {
                    "id": "default",
                    "field_type": "text",
                    "label": "Default",
                    "carryforward_config": {"enabled": True, "source": "subject_address"},
                },
            )
        )

    def test_initial_pass_fills_empty_targets(self, structure):
        values = apply_carryforward(structure, {"subject_address": "1 Main St"}, initial=True)

        assert values["mirror"] == "1 Main St"
        assert values["default"] == "1 Main St"

    def test_default_mode_keeps_existing_value(self, structure):
        values = apply_carryforward(
            structure, {"subject_address": "1 Main St", "default": "Edited"}, initial=True
        )

        assert values["default"] == "Edited"

    def test_later_passes_only_mirror(self, structure):
        values = apply_carryforward(structure, {"subject_address": "2 Oak Ave", "mirror": "old"})

        assert values["mirror"] == "2 Oak Ave"
        assert "default" not in values

    def test_missing_source_is_skipped(self, structure):
        assert apply_carryforward(structure, {}, initial=True) == {}
