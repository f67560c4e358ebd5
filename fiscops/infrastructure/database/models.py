"""SQLAlchemy ORM models for the local key/value state"""

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class LocalEntry(Base):
    """One named blob of local state (records, settings override, center id)"""

    __tablename__ = "local_state"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
