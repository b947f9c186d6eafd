from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...enums import GridType
from ...sales_grid import SalesGridConfig, compute_summary_rows, default_grid_config

router = APIRouter(prefix="/sales-grid", tags=["sales-grid"])


class SummaryRequest(BaseModel):
    config: SalesGridConfig
    values: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


@router.post("/summary")
def summarize_grid(body: SummaryRequest):
    return {"summaryRows": compute_summary_rows(body.config, body.values)}


@router.get("/defaults/{grid_type}")
def grid_defaults(grid_type: str):
    try:
        grid = GridType(grid_type)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown grid type: {grid_type}")
    return default_grid_config(grid).model_dump(mode="json", by_alias=True, exclude_none=True)
