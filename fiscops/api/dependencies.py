"""Dependency injection for FastAPI endpoints"""

from fastapi import HTTPException, Request

from fiscops.ui.controller import Dashboard


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_dashboard(request: Request) -> Dashboard:
    """Process-wide controller, loaded or not"""
    return request.app.state.dashboard


async def get_loaded_dashboard(request: Request) -> Dashboard:
    """Controller with records loaded; 401 while signed out in remote mode"""
    dashboard: Dashboard = request.app.state.dashboard
    if not dashboard.authenticated:
        raise HTTPException(status_code=401, detail="Connexion requise")
    await dashboard.ensure_loaded()
    return dashboard
