from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from ...models import FormField

router = APIRouter(prefix="/prefill", tags=["prefill"])


class PrefillRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fields: List[FormField]
    context_key: Optional[str] = Field(default=None, alias="contextKey")


class CacheStatsResponse(BaseModel):
    size: int
    keys: List[str]


class CacheClearResponse(BaseModel):
    success: bool = True
    removed: int


@router.post("")
def prefill_fields(body: PrefillRequest, request: Request):
    service = request.app.state.prefill_service
    results = service.prefill_fields(body.fields, body.context_key)
    return {"results": {field_id: result.model_dump(mode="json") for field_id, result in results.items()}}


@router.get("/cache", response_model=CacheStatsResponse)
def cache_stats(request: Request):
    return CacheStatsResponse(**request.app.state.prefill_service.cache_stats())


@router.delete("/cache", response_model=CacheClearResponse)
def clear_cache(request: Request, pattern: Optional[str] = None):
    removed = request.app.state.prefill_service.clear_cache(pattern)
    return CacheClearResponse(removed=removed)
