"""Dashboard controller: owns application state and turns events into transitions"""

import logging
from typing import Any, Dict, Optional

from fiscops.domain.exceptions import AuthError, RemoteStoreError, StorageError
from fiscops.domain.models import RecordData, SyncResult, Taxpayer
from fiscops.domain.records import create_taxpayer, edit_taxpayer, find_taxpayer, reassign_segments
from fiscops.domain.seed import seed_data
from fiscops.domain.settings import DashboardSettings, deep_merge, merge_settings
from fiscops.infrastructure.clients.data_service import DataServiceClient
from fiscops.infrastructure.clients.identity import AuthSession, IdentityClient
from fiscops.infrastructure.observability.logging import log_load, log_sync
from fiscops.infrastructure.observability.metrics import auth_failure_counter, load_fallback_counter, record_sync
from fiscops.infrastructure.storage.local import LocalRecordStore
from fiscops.infrastructure.storage.remote import RemoteRecordStore
from fiscops.infrastructure.sync import DebouncedSaver
from fiscops.ui import state as transitions
from fiscops.ui.state import ALL, ViewState, filter_taxpayers, page_count
from fiscops.ui.views import project, project_overlay

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Single process-wide application state.

    Holds settings, record data and view state. Every UI event replaces the
    view state through a pure transition; every record mutation replaces the
    record data and schedules a debounced save.
    """

    def __init__(
        self,
        local_store: LocalRecordStore,
        save_delay: float,
        remote_store: Optional[RemoteRecordStore] = None,
        identity: Optional[IdentityClient] = None,
        data_client: Optional[DataServiceClient] = None,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.identity = identity
        self.data_client = data_client

        self.settings: DashboardSettings = local_store.load_settings()
        self.center_id: str = local_store.get_center_id()
        self.data = RecordData()
        self.ui = ViewState()
        self.loaded = False
        self.data_source = "store"
        self.session: Optional[AuthSession] = None

        self.saver = DebouncedSaver(self._save, save_delay, backend=self.store.backend)

    @property
    def storage_mode(self) -> str:
        return "remote" if self.remote_store is not None else "local"

    @property
    def store(self) -> LocalRecordStore | RemoteRecordStore:
        return self.remote_store if self.remote_store is not None else self.local_store

    @property
    def authenticated(self) -> bool:
        """Local mode needs no authentication"""
        return self.storage_mode == "local" or self.session is not None

    # --- loading & saving ---

    async def ensure_loaded(self) -> None:
        if not self.loaded and self.authenticated:
            await self.reload()

    async def reload(self) -> None:
        """Load records of the active center; remote failures fall back to synthetic data"""
        try:
            self.data = await self.store.load(self.center_id, self.settings)
            self.data_source = "store"
        except RemoteStoreError as e:
            logger.error(f"Load failed, using synthetic data: {e}", extra={"center_id": self.center_id})
            load_fallback_counter.labels(reason="remote_error").inc()
            self.data = seed_data(self.settings)
            self.data_source = "synthetic"
        self.loaded = True
        log_load(self.data_source, self.center_id, len(self.data.taxpayers))

    async def _save(self) -> SyncResult:
        # Reads self.data at expiry, not at schedule time
        try:
            result = await self.store.save(self.data, self.center_id)
        except StorageError as e:
            result = SyncResult(ok=False, backend=self.store.backend, error=str(e))
        record_sync(result)
        log_sync(result, self.center_id)
        return result

    def request_save(self) -> None:
        self.saver.schedule()

    async def flush(self) -> SyncResult:
        return await self.saver.flush()

    def sync_status(self) -> Dict[str, Any]:
        last = self.saver.last_result
        return {
            "backend": self.store.backend,
            "pending": self.saver.pending,
            "in_progress": self.saver.in_progress,
            "failed": bool(last and not last.ok),
            "error": last.error if last else None,
            "failed_chunks": list(last.failed_chunks) if last else [],
            "last_written": last.written if last else 0,
        }

    # --- rendering ---

    def render(self) -> Dict[str, Any]:
        """Project current state; the page number is normalized into range first"""
        total = len(filter_taxpayers(self.data.taxpayers, self.ui))
        pages = page_count(total, self.settings.ui.page_size)
        if self.ui.page > pages:
            self.ui = transitions.goto_page(self.ui, pages)
        return project(
            self.settings,
            self.data,
            self.ui,
            storage_mode=self.storage_mode,
            data_source=self.data_source,
            sync=self.sync_status(),
        )

    def detail(self, taxpayer_id: str) -> Dict[str, Any]:
        find_taxpayer(self.data, taxpayer_id)
        return project_overlay(self.settings, self.data, taxpayer_id)

    # --- UI events ---

    def select_view(self, view: str) -> None:
        self.ui = transitions.select_view(self.ui, view)

    def search(self, query: str) -> None:
        self.ui = transitions.set_search(self.ui, query)

    def filter(self, segment: Optional[str] = None, status: Optional[str] = None) -> None:
        if segment is not None:
            self.ui = transitions.set_segment_filter(self.ui, segment)
        if status is not None:
            self.ui = transitions.set_status_filter(self.ui, status)

    def next_page(self) -> None:
        total = len(filter_taxpayers(self.data.taxpayers, self.ui))
        self.ui = transitions.next_page(self.ui, page_count(total, self.settings.ui.page_size))

    def previous_page(self) -> None:
        self.ui = transitions.previous_page(self.ui)

    def goto_page(self, page: int) -> None:
        self.ui = transitions.goto_page(self.ui, page)

    def open_record(self, taxpayer_id: str) -> None:
        find_taxpayer(self.data, taxpayer_id)
        self.ui = transitions.open_record(self.ui, taxpayer_id)

    def close_record(self) -> None:
        self.ui = transitions.close_record(self.ui)

    # --- record mutations ---

    def create_taxpayer(self, **fields: Any) -> Taxpayer:
        self.data, taxpayer = create_taxpayer(self.data, self.settings, **fields)
        self.request_save()
        return taxpayer

    def edit_taxpayer(self, taxpayer_id: str, notes: str, segment: str, status: str) -> Taxpayer:
        self.data, taxpayer = edit_taxpayer(self.data, self.settings, taxpayer_id, notes, segment, status)
        self.request_save()
        self.ui = transitions.close_record(self.ui)
        return taxpayer

    # --- settings & center ---

    def update_settings(self, override: Dict[str, Any]) -> DashboardSettings:
        """
        Merge a partial override into the persisted one and apply it.

        Cases left in a segment the new settings no longer declare are
        assigned again from their sector, and a save is scheduled.

        Raises:
            pydantic.ValidationError: when the result is not valid settings
        """
        stored = deep_merge(self.local_store.load_settings_override(), override)
        new_settings = merge_settings(stored)
        self.local_store.save_settings(stored)
        self.settings = new_settings

        self.data, changed = reassign_segments(self.data, new_settings)
        if changed:
            logger.info(f"Reassigned {changed} taxpayers after a segment change", extra={"center_id": self.center_id})
            self.request_save()
        if self.ui.segment_filter != ALL and self.ui.segment_filter not in new_settings.segment_names:
            self.ui = transitions.set_segment_filter(self.ui, ALL)
        return new_settings

    async def switch_center(self, center_id: str) -> None:
        """Persist the new center and reload its records (pending writes go to the old one first)"""
        if self.saver.pending:
            await self.flush()
        self.local_store.set_center_id(center_id)
        self.center_id = center_id
        self.ui = ViewState()
        self.loaded = False
        await self.ensure_loaded()

    # --- authentication ---

    async def check_session(self) -> bool:
        if self.storage_mode == "local":
            return True
        if self.session is None or self.identity is None:
            return False
        try:
            valid = await self.identity.check_session(self.session)
        except AuthError as e:
            logger.warning(f"Session check failed: {e.message}")
            return False
        if not valid:
            self._drop_session()
        return valid

    async def sign_in(self, email: str, password: str) -> None:
        """
        Raises:
            AuthError: message is meant to be shown next to the form
        """
        if self.identity is None:
            return
        try:
            self.session = await self.identity.sign_in(email.strip(), password)
        except AuthError:
            auth_failure_counter.labels(operation="sign_in").inc()
            raise
        if self.data_client is not None:
            self.data_client.access_token = self.session.access_token
        self.loaded = False
        await self.ensure_loaded()

    async def sign_up(self, email: str, password: str) -> None:
        if self.identity is None:
            return
        try:
            await self.identity.sign_up(email.strip(), password)
        except AuthError:
            auth_failure_counter.labels(operation="sign_up").inc()
            raise

    async def sign_out(self) -> None:
        if self.identity is None or self.session is None:
            return
        if self.saver.pending:
            await self.flush()
        try:
            await self.identity.sign_out(self.session)
        finally:
            self._drop_session()

    def _drop_session(self) -> None:
        # A write still waiting here would persist the cleared records
        self.saver.cancel()
        self.session = None
        if self.data_client is not None:
            self.data_client.access_token = None
        self.loaded = False
        self.data = RecordData()
        self.ui = ViewState()
