"""HTML pages - dashboard, sign-in form and the form posts behind the dashboard controls"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from fiscops.api.dependencies import get_dashboard
from fiscops.api.v1.auth import SIGNUP_DONE
from fiscops.domain.exceptions import AuthError, InvalidEditError, UnknownTaxpayerError
from fiscops.domain.models import STATUSES
from fiscops.ui.controller import Dashboard
from fiscops.ui.html import render_login, render_page
from fiscops.ui.state import ALL, VIEWS

router = APIRouter()


def _back_to_page() -> RedirectResponse:
    return RedirectResponse("/", status_code=303)


async def get_page_dashboard(dashboard: Dashboard = Depends(get_dashboard)) -> Optional[Dashboard]:
    """Loaded dashboard, or None while signed out so the form post lands back on the sign-in page"""
    if not dashboard.authenticated:
        return None
    await dashboard.ensure_loaded()
    return dashboard


@router.get("/", response_class=HTMLResponse)
async def dashboard_page(dashboard: Dashboard = Depends(get_dashboard)):
    """Full dashboard, or the sign-in form while signed out in remote mode"""
    if not dashboard.authenticated:
        return HTMLResponse(render_login())
    await dashboard.ensure_loaded()
    return HTMLResponse(render_page(dashboard.render()))


@router.get("/login", response_class=HTMLResponse)
async def login_page():
    return HTMLResponse(render_login())


@router.post("/login", response_class=HTMLResponse)
async def submit_login(
    email: str = Form(""),
    password: str = Form(""),
    intent: str = Form("login"),
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Both buttons post here; errors are shown inline under the form"""
    try:
        if intent == "signup":
            await dashboard.sign_up(email, password)
            return HTMLResponse(render_login(SIGNUP_DONE))
        await dashboard.sign_in(email, password)
    except AuthError as e:
        logging.info(f"Sign-in form rejected: {e.message}")
        return HTMLResponse(render_login(e.message))

    return _back_to_page()


# Dashboard controls: each form post applies one event and redirects to the page


@router.post("/ui/view")
async def select_view(view: str = Form(...), dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    if dashboard is not None:
        if view not in VIEWS:
            raise HTTPException(status_code=422, detail=f"Unknown view: {view}")
        dashboard.select_view(view)
    return _back_to_page()


@router.post("/ui/search")
async def search(query: str = Form(""), dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    if dashboard is not None:
        dashboard.search(query)
    return _back_to_page()


@router.post("/ui/filters")
async def set_filters(
    segment: str = Form(ALL),
    status: str = Form(ALL),
    dashboard: Optional[Dashboard] = Depends(get_page_dashboard),
):
    if dashboard is not None:
        if segment != ALL and segment not in dashboard.settings.segment_names:
            raise HTTPException(status_code=422, detail=f"Unknown segment: {segment}")
        if status != ALL and status not in STATUSES:
            raise HTTPException(status_code=422, detail=f"Unknown status: {status}")
        dashboard.filter(segment=segment, status=status)
    return _back_to_page()


@router.post("/ui/page")
async def change_page(
    action: str = Form(...),
    page: Optional[int] = Form(None),
    dashboard: Optional[Dashboard] = Depends(get_page_dashboard),
):
    if dashboard is None:
        return _back_to_page()
    if action == "next":
        dashboard.next_page()
    elif action == "previous":
        dashboard.previous_page()
    elif action == "goto" and page is not None:
        dashboard.goto_page(page)
    else:
        raise HTTPException(status_code=422, detail=f"Invalid page action: {action}")
    return _back_to_page()


@router.post("/ui/open")
async def open_record(taxpayer_id: str = Form(...), dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    if dashboard is not None:
        try:
            dashboard.open_record(taxpayer_id)
        except UnknownTaxpayerError:
            raise HTTPException(status_code=404, detail="Taxpayer not found")
    return _back_to_page()


@router.post("/ui/close")
async def close_record(dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    if dashboard is not None:
        dashboard.close_record()
    return _back_to_page()


@router.post("/taxpayers/new")
async def create_taxpayer(dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    """Blank case at the head of the portfolio"""
    if dashboard is not None:
        dashboard.create_taxpayer()
    return _back_to_page()


@router.post("/taxpayers/{taxpayer_id}/edit")
async def edit_taxpayer(
    taxpayer_id: str,
    notes: str = Form(""),
    segment: str = Form(...),
    status: str = Form(...),
    dashboard: Optional[Dashboard] = Depends(get_page_dashboard),
):
    if dashboard is None:
        return _back_to_page()
    try:
        dashboard.edit_taxpayer(taxpayer_id, notes, segment, status)
    except UnknownTaxpayerError:
        raise HTTPException(status_code=404, detail="Taxpayer not found")
    except InvalidEditError as e:
        logging.warning(f"Rejected edit form: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    return _back_to_page()


@router.post("/sync")
async def request_sync(dashboard: Optional[Dashboard] = Depends(get_page_dashboard)):
    """Enregistrer: joins the debounce window like any mutation"""
    if dashboard is not None:
        dashboard.request_save()
    return _back_to_page()
