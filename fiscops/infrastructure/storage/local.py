"""Local record and settings store backed by the key/value table"""

import json
import logging
import random
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fiscops.domain.exceptions import StorageError
from fiscops.domain.models import RecordData, SyncResult
from fiscops.domain.records import data_from_blob, data_to_blob
from fiscops.domain.seed import seed_data
from fiscops.domain.settings import DashboardSettings, merge_settings
from fiscops.infrastructure.database.repositories import LocalStateRepository
from fiscops.infrastructure.observability.metrics import load_fallback_counter

logger = logging.getLogger(__name__)

RECORDS_KEY = "fiscops_data_v2"
SETTINGS_KEY = "fiscops_settings_v2"
CENTER_KEY = "fiscops_center_id"


def safe_parse(raw: Optional[str]) -> Any:
    """Decoded JSON, or None when absent or malformed"""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


class LocalRecordStore:
    """Records, settings override and center id persisted on this machine"""

    backend = "local"

    def __init__(
        self,
        session_factory: Callable[[], Session],
        default_center_id: str = "OWENDO",
        rng: Optional[random.Random] = None,
    ):
        self.session_factory = session_factory
        self.default_center_id = default_center_id
        self.rng = rng

    def _read(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            return LocalStateRepository(db).get(key)
        except SQLAlchemyError as e:
            raise StorageError(f"Local read failed for {key}: {e}") from e
        finally:
            db.close()

    def _write(self, key: str, value: str) -> None:
        db = self.session_factory()
        try:
            LocalStateRepository(db).set(key, value)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Local write failed for {key}: {e}") from e
        finally:
            db.close()

    # --- records ---

    async def load(self, center_id: str, settings: DashboardSettings) -> RecordData:
        """
        Stored records, or a freshly seeded dataset persisted on the spot.

        A blob that is missing, not JSON or without taxpayers counts as absent.
        The local blob is not scoped by center.
        """
        blob = safe_parse(self._read(RECORDS_KEY))
        if isinstance(blob, dict) and blob.get("taxpayers") is not None:
            try:
                return data_from_blob(blob)
            except (KeyError, TypeError) as e:
                logger.warning(f"Stored records unreadable, reseeding: {e}")

        data = seed_data(settings, self.rng)
        self._write(RECORDS_KEY, json.dumps(data_to_blob(data)))
        load_fallback_counter.labels(reason="seeded").inc()
        logger.info("Seeded local records", extra={"taxpayers": len(data.taxpayers)})
        return data

    async def save(self, data: RecordData, center_id: str) -> SyncResult:
        """
        Overwrite the records blob.

        Raises:
            StorageError: on database failure
        """
        self._write(RECORDS_KEY, json.dumps(data_to_blob(data)))
        return SyncResult(ok=True, backend=self.backend, written=len(data.taxpayers))

    # --- settings ---

    def load_settings(self) -> DashboardSettings:
        """Persisted override merged over defaults; invalid overrides are ignored"""
        override = safe_parse(self._read(SETTINGS_KEY))
        if not isinstance(override, dict):
            return merge_settings(None)
        try:
            return merge_settings(override)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid settings override: {e}")
            return merge_settings(None)

    def load_settings_override(self) -> Dict[str, Any]:
        override = safe_parse(self._read(SETTINGS_KEY))
        return override if isinstance(override, dict) else {}

    def save_settings(self, override: Dict[str, Any]) -> None:
        self._write(SETTINGS_KEY, json.dumps(override))

    # --- center ---

    def get_center_id(self) -> str:
        return self._read(CENTER_KEY) or self.default_center_id

    def set_center_id(self, center_id: str) -> None:
        self._write(CENTER_KEY, center_id)
