"""/v1/taxpayers - create, inspect and annotate cases"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from fiscops.api.dependencies import get_loaded_dashboard, get_request_id
from fiscops.api.v1.schemas import TaxpayerCreate, TaxpayerEdit, TaxpayerSchema
from fiscops.domain.exceptions import InvalidEditError, UnknownTaxpayerError
from fiscops.ui.controller import Dashboard
from fiscops.ui.views import taxpayer_row

router = APIRouter()


@router.post("/taxpayers", status_code=201)
async def create_taxpayer(body: TaxpayerCreate, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """
    Add a case at the head of the portfolio.

    The segment is inferred from the sector; a save is scheduled.
    """
    taxpayer = dashboard.create_taxpayer(**body.model_dump())
    return {
        "taxpayer": TaxpayerSchema(**taxpayer_row(taxpayer, dashboard.settings)),
        "dashboard": dashboard.render(),
    }


@router.get("/taxpayers/{taxpayer_id}")
async def get_taxpayer(taxpayer_id: str, dashboard: Dashboard = Depends(get_loaded_dashboard)):
    """Detail panel: index, recommendation and share of the objective"""
    try:
        return dashboard.detail(taxpayer_id)
    except UnknownTaxpayerError:
        raise HTTPException(status_code=404, detail="Taxpayer not found")


@router.patch("/taxpayers/{taxpayer_id}")
async def edit_taxpayer(
    taxpayer_id: str,
    body: TaxpayerEdit,
    request: Request,
    dashboard: Dashboard = Depends(get_loaded_dashboard),
):
    """
    Commit notes, segment and status.

    Stamps the last action time, logs an action, schedules a save and
    closes the detail panel.
    """
    try:
        taxpayer = dashboard.edit_taxpayer(taxpayer_id, body.notes, body.segment, body.status)
    except UnknownTaxpayerError:
        raise HTTPException(status_code=404, detail="Taxpayer not found")
    except InvalidEditError as e:
        logging.warning(f"Rejected edit: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "taxpayer": TaxpayerSchema(**taxpayer_row(taxpayer, dashboard.settings)),
        "dashboard": dashboard.render(),
    }
