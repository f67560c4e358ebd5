"""Database session management for the local state store"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from fiscops.config import settings
from fiscops.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """SQLite needs cross-thread access since handlers may run in a threadpool"""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


def init_db(bind: Engine) -> None:
    Base.metadata.create_all(bind=bind)


engine = build_engine(settings.local_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
