"""Unit tests for the dashboard controller with mocked stores and identity provider"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fiscops.domain.exceptions import RemoteStoreError, StorageError
from fiscops.domain.models import RecordData, SyncResult
from fiscops.infrastructure.clients.identity import AuthSession
from fiscops.infrastructure.storage.local import LocalRecordStore
from fiscops.ui.controller import Dashboard


@pytest.fixture
def remote_store(sample_taxpayers) -> MagicMock:
    store = MagicMock()
    store.backend = "remote"
    store.load = AsyncMock(return_value=RecordData(taxpayers=sample_taxpayers))
    store.save = AsyncMock(return_value=SyncResult(ok=True, backend="remote", written=5))
    return store


@pytest.fixture
def identity() -> MagicMock:
    client = MagicMock()
    client.sign_in = AsyncMock(return_value=AuthSession(access_token="tok", email="agent@dgi.ga"))
    client.sign_out = AsyncMock(return_value=None)
    client.check_session = AsyncMock(return_value=True)
    return client


@pytest.fixture
def remote_dashboard(local_store, remote_store, identity) -> Dashboard:
    return Dashboard(local_store, 10, remote_store=remote_store, identity=identity, data_client=MagicMock())


async def test_sign_in_loads_active_center(remote_dashboard: Dashboard, remote_store: MagicMock):
    assert not remote_dashboard.authenticated

    await remote_dashboard.sign_in(" agent@dgi.ga ", "secret")

    assert remote_dashboard.authenticated
    assert remote_dashboard.data_client.access_token == "tok"
    remote_store.load.assert_awaited_once()
    assert remote_store.load.await_args.args[0] == "OWENDO"
    assert len(remote_dashboard.data.taxpayers) == 5


async def test_remote_load_failure_uses_synthetic_data(remote_dashboard: Dashboard, remote_store: MagicMock):
    remote_store.load.side_effect = RemoteStoreError("503")

    await remote_dashboard.sign_in("agent@dgi.ga", "secret")

    assert remote_dashboard.data_source == "synthetic"
    assert len(remote_dashboard.data.taxpayers) == 120
    remote_store.save.assert_not_awaited()


async def test_sign_out_flushes_pending_save_first(remote_dashboard: Dashboard, remote_store, identity):
    await remote_dashboard.sign_in("agent@dgi.ga", "secret")
    remote_dashboard.create_taxpayer(name="Dernier dossier")
    assert remote_dashboard.saver.pending

    await remote_dashboard.sign_out()

    remote_store.save.assert_awaited_once()
    saved = remote_store.save.await_args.args[0]
    assert saved.taxpayers[0].name == "Dernier dossier"
    identity.sign_out.assert_awaited_once()
    assert not remote_dashboard.authenticated
    assert remote_dashboard.data == RecordData()


async def test_expired_session_is_dropped(remote_dashboard: Dashboard, identity):
    await remote_dashboard.sign_in("agent@dgi.ga", "secret")
    identity.check_session.return_value = False

    assert await remote_dashboard.check_session() is False
    assert remote_dashboard.session is None


async def test_expired_session_discards_pending_save(local_store, remote_store, identity, sample_taxpayers):
    remote_store.load.return_value = RecordData(taxpayers=sample_taxpayers, week_plan={"w1": ["A"]})
    dashboard = Dashboard(local_store, 0.05, remote_store=remote_store, identity=identity, data_client=MagicMock())
    await dashboard.sign_in("agent@dgi.ga", "secret")
    dashboard.edit_taxpayer("A", "Relance", "IFU 1", "En cours")
    identity.check_session.return_value = False

    assert await dashboard.check_session() is False
    await asyncio.sleep(0.2)

    # The cleared records must never reach the remote store
    remote_store.save.assert_not_awaited()
    assert not dashboard.saver.pending


async def test_switch_center_writes_old_center_then_reloads(remote_dashboard: Dashboard, remote_store):
    await remote_dashboard.sign_in("agent@dgi.ga", "secret")
    remote_dashboard.edit_taxpayer("A", "Relance", "IFU 1", "En cours")

    await remote_dashboard.switch_center("LIBREVILLE")

    assert remote_store.save.await_args.args[1] == "OWENDO"
    assert remote_store.load.await_args.args[0] == "LIBREVILLE"
    assert remote_dashboard.local_store.get_center_id() == "LIBREVILLE"


@patch.object(LocalRecordStore, "save", new_callable=AsyncMock)
async def test_local_write_failure_is_reported(mock_save: AsyncMock, local_store):
    mock_save.side_effect = StorageError("database is locked")
    dashboard = Dashboard(local_store, 10)
    await dashboard.ensure_loaded()

    result = await dashboard.flush()

    assert result.ok is False
    status = dashboard.sync_status()
    assert status["failed"] is True
    assert status["error"] == "database is locked"


async def test_update_settings_merges_with_stored_override(local_store):
    dashboard = Dashboard(local_store, 10)

    dashboard.update_settings({"thresholds": {"critical_debt": 1_000}})
    settings = dashboard.update_settings({"thresholds": {"critical_age_days": 30}})

    assert settings.thresholds.critical_debt == 1_000
    assert settings.thresholds.critical_age_days == 30
    assert local_store.load_settings() == settings


async def test_update_settings_reassigns_undeclared_segments(local_store):
    dashboard = Dashboard(local_store, 10)
    await dashboard.ensure_loaded()
    dashboard.filter(segment="IFU 3")

    settings = dashboard.update_settings(
        {
            "segment_names": ["Grandes entreprises", "Autres"],
            "segment_definitions": {
                "Grandes entreprises": {"label": "BTP et pétrole", "keywords": ["BTP", "Pétrole"]},
                "Autres": {"label": "Autres secteurs", "keywords": []},
            },
        }
    )

    assert {t.segment for t in dashboard.data.taxpayers} <= set(settings.segment_names)
    assert dashboard.saver.pending
    assert dashboard.ui.segment_filter == "Tous"
    dashboard.saver.cancel()


async def test_update_settings_without_segment_change_schedules_nothing(local_store):
    dashboard = Dashboard(local_store, 10)
    await dashboard.ensure_loaded()

    dashboard.update_settings({"thresholds": {"critical_debt": 1_000}})

    assert not dashboard.saver.pending
