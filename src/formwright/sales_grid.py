"""Sales comparison grid summaries.

A grid has one row per property attribute and one column per property: the
subject and ``comparable_1`` .. ``comparable_N``. Cell values are free text as
typed by the appraiser. Summary rows aggregate other rows per column; a
summary row may reference summary rows defined before it.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from pydantic import Field, field_validator

from .consts import COMPARABLE_COLUMN_PREFIX, MAX_COMPARABLES, MIN_COMPARABLES, SUBJECT_COLUMN
from .enums import ApplyTo, FormulaType, GridRowType, GridType
from .errors import ExpressionError
from .expressions import compile_expression
from .models import CamelModel
from .utils import parse_number

logger = logging.getLogger(__name__)

DEFAULT_COMPARABLE_COUNT = 3

GridValues = Dict[str, Dict[str, Any]]


class SalesGridRowOption(CamelModel):
    label: str
    value: str


class SalesGridRow(CamelModel):
    id: str
    label: str = ""
    type: GridRowType = GridRowType.TEXT
    guidance: Optional[str] = None
    unit: Optional[str] = None
    options: Optional[List[SalesGridRowOption]] = None


class SalesGridFormula(CamelModel):
    type: FormulaType = FormulaType.SUM
    target_rows: List[str] = Field(default_factory=list)
    apply_to: ApplyTo = ApplyTo.ALL
    # used when apply_to is "specific"
    columns: Optional[List[str]] = None
    custom_formula: Optional[str] = None


class SalesGridSummaryRow(CamelModel):
    id: str
    label: str = ""
    formula: Optional[SalesGridFormula] = None


class ColumnLabels(CamelModel):
    subject: str = "Subject"
    comparables: List[str] = Field(default_factory=list)


class SalesGridConfig(CamelModel):
    type: GridType = GridType.SALES
    comparable_count: int = DEFAULT_COMPARABLE_COUNT
    show_subject: bool = True
    column_labels: ColumnLabels = Field(default_factory=ColumnLabels)
    rows: List[SalesGridRow] = Field(default_factory=list)
    summary_rows: List[SalesGridSummaryRow] = Field(default_factory=list)

    @field_validator("comparable_count", mode="before")
    @classmethod
    def clamp_comparable_count(cls, v):
        if v is None:
            return DEFAULT_COMPARABLE_COUNT
        return max(MIN_COMPARABLES, min(MAX_COMPARABLES, int(v)))

    @field_validator("rows", "summary_rows", mode="before")
    @classmethod
    def coerce_rows(cls, v):
        return [] if v is None else v

    @property
    def comparable_columns(self) -> List[str]:
        return [f"{COMPARABLE_COLUMN_PREFIX}{i}" for i in range(1, self.comparable_count + 1)]

    @property
    def columns(self) -> List[str]:
        subject = [SUBJECT_COLUMN] if self.show_subject else []
        return subject + self.comparable_columns

    def column_label(self, column: str) -> str:
        if column == SUBJECT_COLUMN:
            return self.column_labels.subject
        index = int(column.removeprefix(COMPARABLE_COLUMN_PREFIX)) - 1
        if 0 <= index < len(self.column_labels.comparables):
            return self.column_labels.comparables[index]
        return f"Comparable {index + 1}"

    def target_columns(self, formula: SalesGridFormula) -> List[str]:
        match formula.apply_to:
            case ApplyTo.COMPARABLES:
                return self.comparable_columns
            case ApplyTo.SPECIFIC:
                return [c for c in self.columns if c in (formula.columns or [])]
            case _:
                return self.columns


def parse_cell_value(text: Any) -> float:
    """Parse a grid cell permissively: "$1,250.50" -> 1250.5, junk -> 0."""
    return parse_number(text, default=0.0)


def _cell(values: Mapping[str, Mapping[str, Any]], row_id: str, column: str) -> float:
    return parse_cell_value((values.get(row_id) or {}).get(column))


def _evaluate_custom(formula: SalesGridFormula, values: Mapping[str, Mapping[str, Any]], column: str) -> float:
    expression = compile_expression(formula.custom_formula or "", allowed_names=values.keys())
    names = {row_id: _cell(values, row_id, column) for row_id in expression.references}
    result = expression.evaluate(names)
    if isinstance(result, bool) or not isinstance(result, (int, float)):
        raise ExpressionError(f"Formula did not produce a number: {formula.custom_formula}")
    return float(result)


def evaluate_formula(formula: SalesGridFormula, values: Mapping[str, Mapping[str, Any]], column: str) -> float:
    """Evaluate one summary formula for one column.

    Never raises: any failure is logged and evaluates to 0.
    """
    try:
        numbers = [_cell(values, row_id, column) for row_id in formula.target_rows]

        match formula.type:
            case FormulaType.SUM:
                result = sum(numbers)
            case FormulaType.AVERAGE:
                result = sum(numbers) / len(numbers) if numbers else 0.0
            case FormulaType.MIN:
                result = min(numbers) if numbers else 0.0
            case FormulaType.MAX:
                result = max(numbers) if numbers else 0.0
            case FormulaType.CUSTOM:
                result = _evaluate_custom(formula, values, column)
            case _:
                raise ExpressionError(f"Unknown formula type: {formula.type}")

        if not math.isfinite(result):
            raise ExpressionError(f"Formula produced a non-finite result for column {column}")
        return result
    except Exception as e:
        logger.warning(f"Summary formula failed for column {column}, using 0: {e}")
        return 0.0


def compute_summary_rows(config: SalesGridConfig, values: Mapping[str, Mapping[str, Any]]) -> GridValues:
    """Evaluate every summary row, in order, for the columns it applies to.

    Returns:
        ``{summary_row_id: {column: number}}``
    """
    working: GridValues = {row.id: dict(values.get(row.id) or {}) for row in config.rows}
    for row_id, cells in values.items():
        working.setdefault(row_id, dict(cells or {}))

    results: GridValues = {}
    for summary in config.summary_rows:
        row_results: Dict[str, Any] = {}
        if summary.formula is not None:
            for column in config.target_columns(summary.formula):
                row_results[column] = evaluate_formula(summary.formula, working, column)

        results[summary.id] = row_results
        working[summary.id] = dict(row_results)

    return results


def _quality_options() -> List[SalesGridRowOption]:
    return [
        SalesGridRowOption(label="Excellent", value="excellent"),
        SalesGridRowOption(label="Good", value="good"),
        SalesGridRowOption(label="Average", value="average"),
        SalesGridRowOption(label="Poor", value="poor"),
    ]


def _default_rows(grid_type: GridType) -> List[SalesGridRow]:
    match grid_type:
        case GridType.RENTAL:
            return [
                SalesGridRow(id="property_type", label="Property Type", type=GridRowType.TEXT),
                SalesGridRow(id="rent_amount", label="Rent Amount", type=GridRowType.CURRENCY),
                SalesGridRow(id="lease_term", label="Lease Term", type=GridRowType.TEXT),
                SalesGridRow(id="concessions", label="Concessions", type=GridRowType.TEXT),
                SalesGridRow(id="date_available", label="Date Available", type=GridRowType.TEXT),
            ]
        case GridType.LISTING:
            return [
                SalesGridRow(id="property_type", label="Property Type", type=GridRowType.TEXT),
                SalesGridRow(id="list_price", label="List Price", type=GridRowType.CURRENCY),
                SalesGridRow(id="dom", label="DOM", type=GridRowType.NUMBER),
                SalesGridRow(id="status", label="Status", type=GridRowType.TEXT),
                SalesGridRow(id="price_per_sf", label="Price/SF", type=GridRowType.NUMBER),
                SalesGridRow(id="list_date", label="List Date", type=GridRowType.TEXT),
            ]
        case _:
            return [
                SalesGridRow(id="view", label="View", type=GridRowType.DROPDOWN, options=_quality_options()),
                SalesGridRow(
                    id="condition", label="Condition", type=GridRowType.DROPDOWN, options=_quality_options()
                ),
                SalesGridRow(
                    id="gross_living_area",
                    label="Gross Living Area",
                    type=GridRowType.NUMBER,
                    guidance="Enter square footage",
                    unit="sqft",
                ),
                SalesGridRow(
                    id="sale_price", label="Sale Price", type=GridRowType.CURRENCY, guidance="Enter in dollars"
                ),
                SalesGridRow(id="sale_date", label="Sale Date", type=GridRowType.TEXT, guidance="Enter sale date"),
                SalesGridRow(
                    id="price_per_sf",
                    label="Price/SF",
                    type=GridRowType.NUMBER,
                    guidance="Enter price per square foot",
                ),
            ]


def default_summary_rows() -> List[SalesGridSummaryRow]:
    """Summary rows the builder offers when summaries are switched on."""
    return [
        SalesGridSummaryRow(
            id="net_adjustments",
            label="Net Adjustments",
            formula=SalesGridFormula(
                type=FormulaType.SUM,
                target_rows=["gross_living_area", "sale_price"],
                apply_to=ApplyTo.COMPARABLES,
            ),
        ),
        SalesGridSummaryRow(
            id="adjusted_price",
            label="Adjusted Sales Price",
            formula=SalesGridFormula(
                type=FormulaType.CUSTOM,
                target_rows=["sale_price", "net_adjustments"],
                custom_formula="sale_price + net_adjustments",
                apply_to=ApplyTo.COMPARABLES,
            ),
        ),
    ]


def default_grid_config(grid_type: GridType | str = GridType.SALES) -> SalesGridConfig:
    """Return a fresh default configuration for a grid type."""
    grid_type = GridType(grid_type)
    return SalesGridConfig(
        type=grid_type,
        comparable_count=DEFAULT_COMPARABLE_COUNT,
        show_subject=True,
        column_labels=ColumnLabels(
            subject="Subject",
            comparables=[f"Comparable {i}" for i in range(1, DEFAULT_COMPARABLE_COUNT + 1)],
        ),
        rows=_default_rows(grid_type),
        summary_rows=[],
    )
