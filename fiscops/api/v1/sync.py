"""/v1/sync - save status and manual save"""

from fastapi import APIRouter, Depends, Query

from fiscops.api.dependencies import get_loaded_dashboard
from fiscops.api.v1.schemas import SyncStatus
from fiscops.ui.controller import Dashboard

router = APIRouter()


@router.get("/sync", response_model=SyncStatus)
async def get_sync_status(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """Pending timer, write in flight, and outcome of the last write"""
    return SyncStatus(**dashboard.sync_status())


@router.post("/sync", response_model=SyncStatus)
async def request_sync(
    flush: bool = Query(False, description="Write now instead of waiting for the debounce window"),
    dashboard: Dashboard = Depends(get_loaded_dashboard),
):
    """
    Manual save, also the way to retry after a failed sync.

    Without flush the request joins the debounce window like any mutation.
    """
    if flush:
        await dashboard.flush()
    else:
        dashboard.request_save()
    return SyncStatus(**dashboard.sync_status())
