"""GET /v1/dashboard and POST /v1/ui/* - view state transitions, each answered with a full re-render"""

from fastapi import APIRouter, Depends, HTTPException

from fiscops.api.dependencies import get_loaded_dashboard
from fiscops.api.v1.schemas import FilterRequest, OpenRequest, PageRequest, SearchRequest, ViewRequest
from fiscops.domain.exceptions import UnknownTaxpayerError
from fiscops.domain.models import STATUSES
from fiscops.ui.controller import Dashboard
from fiscops.ui.state import ALL

router = APIRouter()


@router.get("/dashboard")
async def get_dashboard_view(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """Current view model"""
    return dashboard.render()


@router.post("/ui/view")
async def select_view(body: ViewRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    dashboard.select_view(body.view)
    return dashboard.render()


@router.post("/ui/search")
async def search(body: SearchRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """Case-insensitive search on name, sector and company type"""
    dashboard.search(body.query)
    return dashboard.render()


@router.post("/ui/filters")
async def set_filters(body: FilterRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    if body.segment is not None and body.segment != ALL and body.segment not in dashboard.settings.segment_names:
        raise HTTPException(status_code=422, detail=f"Unknown segment: {body.segment}")
    if body.status is not None and body.status != ALL and body.status not in STATUSES:
        raise HTTPException(status_code=422, detail=f"Unknown status: {body.status}")

    dashboard.filter(segment=body.segment, status=body.status)
    return dashboard.render()


@router.post("/ui/page")
async def change_page(body: PageRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """next / previous, or goto a page (clamped to the last one on render)"""
    if body.action == "next":
        dashboard.next_page()
    elif body.action == "previous":
        dashboard.previous_page()
    else:
        if body.page is None:
            raise HTTPException(status_code=422, detail="page is required for goto")
        dashboard.goto_page(body.page)
    return dashboard.render()


@router.post("/ui/open")
async def open_record(body: OpenRequest, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    try:
        dashboard.open_record(body.taxpayer_id)
    except UnknownTaxpayerError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return dashboard.render()


@router.post("/ui/close")
async def close_record(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    dashboard.close_record()
    return dashboard.render()
