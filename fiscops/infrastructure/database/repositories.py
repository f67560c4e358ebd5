"""Data access layer for the local key/value state"""

from typing import Optional

from sqlalchemy.orm import Session

from fiscops.infrastructure.database.models import LocalEntry


class LocalStateRepository:
    """Repository for named local blobs"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        """Raw stored string, None when the key was never written"""
        entry = self.db.get(LocalEntry, key)
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        """Insert or overwrite a blob (caller commits)"""
        entry = self.db.get(LocalEntry, key)
        if entry is None:
            self.db.add(LocalEntry(key=key, value=value))
        else:
            entry.value = value
        self.db.flush()
