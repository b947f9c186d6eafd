"""Tests for sales grid summaries"""

import pytest

from formwright.enums import ApplyTo, FormulaType, GridRowType, GridType
from formwright.sales_grid import (
    SalesGridConfig,
    SalesGridFormula,
    compute_summary_rows,
    default_grid_config,
    default_summary_rows,
    evaluate_formula,
    parse_cell_value,
)


@pytest.fixture
def values():
    return {
        "gross_living_area": {"subject": "1,800", "comparable_1": "-2,000", "comparable_2": "1,500"},
        "sale_price": {"subject": "", "comparable_1": "$350,000", "comparable_2": "$325,500.50"},
    }


@pytest.mark.parametrize(
    "text,expected",
    [("10", 10.0), ("$5.50", 5.5), ("$1,250.50", 1250.5), ("", 0.0), (None, 0.0), ("n/a", 0.0), (3, 3.0)],
)
def test_parse_cell_value(text, expected):
    assert parse_cell_value(text) == expected


class TestEvaluateFormula:
    """Tests for evaluate_formula"""

    def test_sum_of_mixed_text(self):
        formula = SalesGridFormula(type=FormulaType.SUM, target_rows=["a", "b"])

        assert evaluate_formula(formula, {"a": {"comparable_1": "10"}, "b": {"comparable_1": "$5.50"}}, "comparable_1") == 15.5

    @pytest.mark.parametrize(
        "formula_type,expected",
        [("sum", 12.0), ("average", 4.0), ("min", -2.0), ("max", 8.0)],
    )
    def test_aggregates(self, formula_type, expected):
        formula = SalesGridFormula(type=formula_type, target_rows=["a", "b", "c"])
        grid = {"a": {"x": "8"}, "b": {"x": "-2"}, "c": {"x": "6"}}

        assert evaluate_formula(formula, grid, "x") == expected

    @pytest.mark.parametrize("formula_type", ["sum", "average", "min", "max"])
    def test_no_targets_is_zero(self, formula_type):
        assert evaluate_formula(SalesGridFormula(type=formula_type), {}, "x") == 0

    def test_custom_formula(self):
        formula = SalesGridFormula(type=FormulaType.CUSTOM, custom_formula="a * 2 + {b-row}")

        assert evaluate_formula(formula, {"a": {"x": "$10"}, "b-row": {"x": "1"}}, "x") == 21.0

    @pytest.mark.parametrize(
        "custom_formula",
        ["a / b", "unknown_row + 1", "a > b", "__import__('os')", "", None],
    )
    def test_custom_failures_are_zero(self, custom_formula, caplog):
        formula = SalesGridFormula(type=FormulaType.CUSTOM, custom_formula=custom_formula)

        assert evaluate_formula(formula, {"a": {"x": "1"}, "b": {"x": "0"}}, "x") == 0.0
        assert "Summary formula failed" in caplog.text


class TestSalesGridConfig:
    """Tests for grid configuration"""

    @pytest.mark.parametrize("count,expected", [(None, 3), (0, 1), (-4, 1), (4, 4), (10, 6)])
    def test_comparable_count_is_clamped(self, count, expected):
        config = SalesGridConfig.model_validate({"comparableCount": count})

        assert config.comparable_count == expected

    def test_columns(self):
        config = SalesGridConfig(comparable_count=2)

        assert config.columns == ["subject", "comparable_1", "comparable_2"]
        assert SalesGridConfig(comparable_count=2, show_subject=False).columns == ["comparable_1", "comparable_2"]

    def test_target_columns(self):
        config = SalesGridConfig(comparable_count=3)

        assert config.target_columns(SalesGridFormula(apply_to=ApplyTo.COMPARABLES)) == [
            "comparable_1",
            "comparable_2",
            "comparable_3",
        ]
        assert config.target_columns(
            SalesGridFormula(apply_to=ApplyTo.SPECIFIC, columns=["comparable_3", "subject", "comparable_9"])
        ) == ["subject", "comparable_3"]

    def test_column_labels(self):
        config = default_grid_config()
        config.comparable_count = 4

        assert config.column_label("subject") == "Subject"
        assert config.column_label("comparable_2") == "Comparable 2"
        assert config.column_label("comparable_4") == "Comparable 4"


class TestComputeSummaryRows:
    """Tests for compute_summary_rows"""

    def test_default_summaries_feed_forward(self, values):
        config = SalesGridConfig(comparable_count=2, summary_rows=default_summary_rows())

        results = compute_summary_rows(config, values)

        assert results["net_adjustments"] == {"comparable_1": 348000.0, "comparable_2": 327000.5}
        assert results["adjusted_price"] == {"comparable_1": 698000.0, "comparable_2": 652501.0}

    def test_apply_to_all_includes_subject(self, values):
        config = SalesGridConfig.model_validate(
            {
                "comparableCount": 1,
                "summaryRows": [
                    {"id": "gla_total", "formula": {"type": "sum", "targetRows": ["gross_living_area"]}}
                ],
            }
        )

        results = compute_summary_rows(config, values)

        assert results == {"gla_total": {"subject": 1800.0, "comparable_1": -2000.0}}

    def test_summary_without_formula(self, values):
        config = SalesGridConfig.model_validate({"summaryRows": [{"id": "notes", "label": "Notes"}]})

        assert compute_summary_rows(config, values) == {"notes": {}}

    def test_input_values_are_not_mutated(self, values):
        config = SalesGridConfig(comparable_count=2, summary_rows=default_summary_rows())

        compute_summary_rows(config, values)

        assert set(values) == {"gross_living_area", "sale_price"}


class TestDefaults:
    def test_sales_grid(self):
        config = default_grid_config()

        assert config.type == GridType.SALES
        assert config.comparable_count == 3
        assert [row.id for row in config.rows] == [
            "view",
            "condition",
            "gross_living_area",
            "sale_price",
            "sale_date",
            "price_per_sf",
        ]
        assert config.rows[0].type == GridRowType.DROPDOWN
        assert [o.value for o in config.rows[0].options] == ["excellent", "good", "average", "poor"]
        assert config.column_labels.comparables == ["Comparable 1", "Comparable 2", "Comparable 3"]
        assert config.summary_rows == []

    @pytest.mark.parametrize(
        "grid_type,first_rows",
        [("rental", ["property_type", "rent_amount"]), ("listing", ["property_type", "list_price"])],
    )
    def test_other_grid_types(self, grid_type, first_rows):
        config = default_grid_config(grid_type)

        assert [row.id for row in config.rows[:2]] == first_rows

    def test_unknown_grid_type(self):
        with pytest.raises(ValueError):
            default_grid_config("auction")

    def test_fresh_copies(self):
        first = default_grid_config()
        first.rows.pop()

        assert len(default_grid_config().rows) == 6
