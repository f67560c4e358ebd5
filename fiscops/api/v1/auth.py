"""/v1/auth - session check, sign in, sign up, sign out"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from fiscops.api.dependencies import get_dashboard, get_request_id
from fiscops.api.v1.schemas import Credentials, SessionResponse
from fiscops.domain.exceptions import AuthError
from fiscops.ui.controller import Dashboard

router = APIRouter()

SIGNUP_DONE = "Compte créé. Connecte-toi."


def _session(dashboard: Dashboard, message: str = "") -> SessionResponse:
    return SessionResponse(
        storage_mode=dashboard.storage_mode,
        authenticated=dashboard.authenticated,
        email=dashboard.session.email if dashboard.session else None,
        message=message,
    )


@router.get("/auth/session", response_model=SessionResponse)
async def get_session(dashboard: Dashboard = Depends(get_dashboard)):
    """Always authenticated in local mode"""
    await dashboard.check_session()
    return _session(dashboard)


@router.post("/auth/login", response_model=SessionResponse)
async def login(body: Credentials, request: Request, dashboard: Dashboard = Depends(get_dashboard)):
    """Sign in and load the center's records; the provider's message is returned on failure"""
    try:
        await dashboard.sign_in(body.email, body.password)
    except AuthError as e:
        logging.warning(f"Sign-in rejected: {e.message}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=401, detail=e.message)
    return _session(dashboard)


@router.post("/auth/signup", response_model=SessionResponse)
async def signup(body: Credentials, dashboard: Dashboard = Depends(get_dashboard)):
    try:
        await dashboard.sign_up(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return _session(dashboard, SIGNUP_DONE)


@router.post("/auth/logout", response_model=SessionResponse)
async def logout(dashboard: Dashboard = Depends(get_dashboard)):
    try:
        await dashboard.sign_out()
    except AuthError as e:
        # The local session is dropped either way
        logging.warning(f"Sign-out not acknowledged: {e.message}")
    return _session(dashboard)
