"""Pytest fixtures for testing"""

import os

# Keep the module-level app off the working directory database
os.environ.setdefault("LOCAL_DATABASE_URL", "sqlite://")

import random
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fiscops.api.main import create_app
from fiscops.config import Settings
from fiscops.domain.models import Taxpayer
from fiscops.infrastructure.database.models import Base
from fiscops.infrastructure.database.session import init_db
from fiscops.infrastructure.storage.local import LocalRecordStore


@pytest.fixture
def session_factory() -> Generator[Callable[[], Session], None, None]:
    """In-memory database shared by every session of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def local_settings() -> Settings:
    return Settings(
        data_service_url="",
        data_service_key="",
        local_save_delay_seconds=0.05,
        remote_save_delay_seconds=0.05,
    )


@pytest.fixture
def local_store(session_factory) -> LocalRecordStore:
    return LocalRecordStore(session_factory, rng=random.Random(42))


@pytest.fixture
def client(local_settings: Settings, session_factory) -> Generator[TestClient, None, None]:
    """
    Test client in local mode.

    Used as a context manager so debounced saves run on the app's event loop.
    """
    app = create_app(local_settings, session_factory)
    with TestClient(app) as test_client:
        yield test_client


def make_taxpayer(id: str = "T1", debt: float = 0, age_days: int = 0, **overrides) -> Taxpayer:
    fields = dict(
        id=id,
        name=f"Contribuable {id}",
        sector="Commerce",
        company_type="PME",
        revenue=100_000_000,
        debt=debt,
        age_days=age_days,
        status="Normal",
        segment="IFU 2",
    )
    fields.update(overrides)
    return Taxpayer(**fields)


@pytest.fixture
def taxpayer_factory() -> Callable[..., Taxpayer]:
    return make_taxpayer


@pytest.fixture
def sample_taxpayers() -> list[Taxpayer]:
    """Small portfolio covering critical and non-critical cases"""
    return [
        make_taxpayer("A", debt=80_000_000, age_days=180, sector="BTP", segment="IFU 1", revenue=900_000_000),
        make_taxpayer("B", debt=25_000_000, age_days=45),
        make_taxpayer("C", debt=50_000_000, age_days=10, sector="Pétrole", segment="IFU 3"),
        make_taxpayer("D", debt=1_000_000, age_days=90, status="En cours"),
        make_taxpayer("E", debt=0, age_days=0, revenue=0, sector="Nettoyage", segment="IFU 5"),
    ]
