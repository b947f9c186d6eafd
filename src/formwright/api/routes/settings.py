from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ...settings import AppSettings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=AppSettings)
def get_settings(request: Request):
    return request.app.state.settings_service.get_all_settings()


@router.put("", response_model=AppSettings)
def update_settings(updates: Dict[str, Any], request: Request):
    service = request.app.state.settings_service
    if not service.update_settings(updates):
        raise HTTPException(status_code=500, detail="Failed to update settings")
    return service.get_all_settings()
