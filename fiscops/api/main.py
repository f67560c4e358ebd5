"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import httpx
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from starlette.responses import Response

from fiscops.api import pages
from fiscops.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fiscops.api.v1 import auth, center, report, sync, taxpayers, ui
from fiscops.config import Settings, settings
from fiscops.infrastructure.clients.data_service import DataServiceClient
from fiscops.infrastructure.clients.identity import IdentityClient
from fiscops.infrastructure.database.session import SessionLocal, engine, init_db
from fiscops.infrastructure.observability.logging import setup_logging
from fiscops.infrastructure.storage.local import LocalRecordStore
from fiscops.infrastructure.storage.remote import RemoteRecordStore
from fiscops.ui.controller import Dashboard

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


def build_dashboard(
    app_settings: Settings,
    session_factory: Callable[[], Session],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dashboard:
    """Wire stores and clients for the configured storage mode"""
    local_store = LocalRecordStore(session_factory, default_center_id=app_settings.default_center_id)
    if app_settings.storage_mode == "local":
        return Dashboard(local_store, app_settings.save_delay_seconds)

    client_args = dict(
        base_url=app_settings.data_service_url,
        api_key=app_settings.data_service_key,
        timeout=app_settings.http_timeout_seconds,
        transport=transport,
    )
    data_client = DataServiceClient(**client_args)
    return Dashboard(
        local_store,
        app_settings.save_delay_seconds,
        remote_store=RemoteRecordStore(data_client),
        identity=IdentityClient(**client_args),
        data_client=data_client,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Pending debounced write would be lost with the event loop
    dashboard: Dashboard = app.state.dashboard
    if dashboard.saver.pending:
        logging.info("Flushing pending save on shutdown")
        await dashboard.flush()


def create_app(
    app_settings: Optional[Settings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    app_settings = app_settings or settings
    if session_factory is None:
        init_db(engine)
        session_factory = SessionLocal

    app = FastAPI(
        title="FiscOps",
        description="Tax collection dashboard for a tax center",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.dashboard = build_dashboard(app_settings, session_factory, transport)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": app_settings.service_name,
            "storage_mode": app_settings.storage_mode,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(pages.router, tags=["pages"])
    app.include_router(ui.router, prefix="/v1", tags=["ui"])
    app.include_router(taxpayers.router, prefix="/v1", tags=["taxpayers"])
    app.include_router(sync.router, prefix="/v1", tags=["sync"])
    app.include_router(report.router, prefix="/v1", tags=["report"])
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(center.router, prefix="/v1", tags=["settings"])

    return app


app = create_app()
