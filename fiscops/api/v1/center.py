"""/v1/settings and /v1/center - dashboard configuration and active center"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from fiscops.api.dependencies import get_loaded_dashboard
from fiscops.api.v1.schemas import CenterRequest, CenterResponse
from fiscops.domain.settings import DashboardSettings
from fiscops.ui.controller import Dashboard

router = APIRouter()


@router.get("/settings", response_model=DashboardSettings)
async def get_settings(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    return dashboard.settings


@router.patch("/settings", response_model=DashboardSettings)
async def update_settings(
    override: Dict[str, Any] = Body(...),
    dashboard: Dashboard = Depends(get_loaded_dashboard),
):
    """Partial override, merged into what is already stored and kept locally"""
    try:
        return dashboard.update_settings(override)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid settings: {e}")


@router.get("/center", response_model=CenterResponse)
async def get_center(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    return CenterResponse(center_id=dashboard.center_id)


@router.put("/center", response_model=CenterResponse)
async def switch_center(body: CenterRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """Persist the active center and reload its records"""
    center_id = body.center_id.strip()
    if not center_id:
        raise HTTPException(status_code=422, detail="center_id must not be blank")
    await dashboard.switch_center(center_id)
    return CenterResponse(center_id=dashboard.center_id)
