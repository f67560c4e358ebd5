"""Unit tests for the remote store and identity clients, over a mocked transport"""

import json

import httpx
import pytest

from fiscops.domain.exceptions import AuthError, RemoteStoreError
from fiscops.domain.models import Action, RecordData
from fiscops.domain.settings import DEFAULT_SETTINGS
from fiscops.infrastructure.clients.data_service import DataServiceClient
from fiscops.infrastructure.clients.identity import AuthSession, IdentityClient
from fiscops.infrastructure.storage.remote import RemoteRecordStore, chunked

BASE_URL = "https://data.test"

TAXPAYER_ROW = {
    "center_id": "OWENDO",
    "external_id": "X1",
    "name": "Société Forestière",
    "sector": "Bois",
    "company_type": "GE",
    "ca": 2_000_000_000,
    "debt": 75_000_000,
    "age_days": 120,
    "status": "Critique",
    "ifu": "IFU 3",
    "notes": None,
    "last_action_at": "2026-02-01T08:00:00+00:00",
}


def _store(handler) -> RemoteRecordStore:
    client = DataServiceClient(base_url=BASE_URL, api_key="anon", transport=httpx.MockTransport(handler))
    return RemoteRecordStore(client)


def test_chunked():
    rows = [{"i": i} for i in range(450)]
    assert [len(c) for c in chunked(rows)] == [200, 200, 50]
    assert chunked([]) == []


async def test_load_maps_columns_and_scopes_by_center():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        if table == "taxpayers":
            return httpx.Response(200, json=[TAXPAYER_ROW])
        if table == "actions":
            return httpx.Response(
                200,
                json=[{"id": 7, "type": "dossier_update", "taxpayer_external_id": "X1", "at": "2026-02-01", "meta": None}],
            )
        return httpx.Response(200, json=[{"center_id": "OWENDO", "payload": {"lundi": ["X1"]}}])

    data = await _store(handler).load("OWENDO", DEFAULT_SETTINGS)

    taxpayer = data.taxpayers[0]
    assert taxpayer.id == "X1"
    assert taxpayer.revenue == 2_000_000_000
    assert taxpayer.segment == "IFU 3"
    assert taxpayer.notes == ""
    assert data.actions_log == [Action(id="7", type="dossier_update", taxpayer_id="X1", at="2026-02-01", meta={})]
    assert data.week_plan == {"lundi": ["X1"]}

    assert all(r.url.params["center_id"] == "eq.OWENDO" for r in seen)
    assert seen[0].url.params["order"] == "updated_at.desc"
    assert seen[0].url.params["limit"] == "2000"
    assert seen[0].headers["apikey"] == "anon"


async def test_load_tolerates_missing_week_plan():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("week_plans"):
            return httpx.Response(500)
        return httpx.Response(200, json=[])

    data = await _store(handler).load("OWENDO", DEFAULT_SETTINGS)

    assert data == RecordData()


async def test_load_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(RemoteStoreError):
        await _store(handler).load("OWENDO", DEFAULT_SETTINGS)


async def test_save_upserts_in_chunks(taxpayer_factory):
    posts = []

    def handler(request: httpx.Request) -> httpx.Response:
        posts.append(request)
        return httpx.Response(201)

    taxpayers = [taxpayer_factory(f"T{i}") for i in range(450)]
    actions = [Action(id=str(i), type="dossier_update", taxpayer_id="T1", at="2026-01-01") for i in range(3)]

    result = await _store(handler).save(RecordData(taxpayers=taxpayers, actions_log=actions), "OWENDO")

    taxpayer_posts = [r for r in posts if r.url.path == "/rest/v1/taxpayers"]
    assert [len(json.loads(r.content)) for r in taxpayer_posts] == [200, 200, 50]
    assert taxpayer_posts[0].url.params["on_conflict"] == "center_id,external_id"
    assert "resolution=merge-duplicates" in taxpayer_posts[0].headers["Prefer"]

    first_row = json.loads(taxpayer_posts[0].content)[0]
    assert first_row["center_id"] == "OWENDO"
    assert first_row["external_id"] == "T0"
    assert first_row["ca"] == 100_000_000
    assert first_row["ifu"] == "IFU 2"

    action_posts = [r for r in posts if r.url.path == "/rest/v1/actions"]
    assert len(action_posts) == 1
    assert json.loads(action_posts[0].content)[0]["taxpayer_external_id"] == "T1"

    assert result.ok is True
    assert result.written == 450
    assert result.failed_chunks == []


async def test_save_continues_after_a_rejected_chunk(taxpayer_factory):
    calls = {"taxpayers": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/rest/v1/taxpayers":
            calls["taxpayers"] += 1
            if calls["taxpayers"] == 2:
                return httpx.Response(400, json={"message": "bad row"})
        return httpx.Response(201)

    taxpayers = [taxpayer_factory(f"T{i}") for i in range(450)]

    result = await _store(handler).save(RecordData(taxpayers=taxpayers), "OWENDO")

    assert calls["taxpayers"] == 3
    assert result.ok is False
    assert result.failed_chunks == [1]
    assert result.written == 250
    assert "400" in result.error


async def test_save_network_error_is_reported_not_raised(taxpayer_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _store(handler).save(RecordData(taxpayers=[taxpayer_factory()]), "OWENDO")

    assert result.ok is False
    assert result.failed_chunks == [0]
    assert "unreachable" in result.error


async def test_identity_sign_in():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        body = json.loads(request.content)
        if body["password"] != "secret":
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})
        return httpx.Response(200, json={"access_token": "tok", "refresh_token": "ref", "user": {"email": body["email"]}})

    identity = IdentityClient(base_url=BASE_URL, api_key="anon", transport=httpx.MockTransport(handler))

    session = await identity.sign_in("agent@dgi.ga", "secret")
    assert session == AuthSession(access_token="tok", email="agent@dgi.ga", refresh_token="ref")

    with pytest.raises(AuthError) as exc_info:
        await identity.sign_in("agent@dgi.ga", "wrong")
    assert exc_info.value.message == "Invalid login credentials"


async def test_identity_check_session():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers["Authorization"] == "Bearer good":
            return httpx.Response(200, json={"email": "agent@dgi.ga"})
        return httpx.Response(401, json={"msg": "JWT expired"})

    identity = IdentityClient(base_url=BASE_URL, api_key="anon", transport=httpx.MockTransport(handler))

    assert await identity.check_session(AuthSession(access_token="good")) is True
    assert await identity.check_session(AuthSession(access_token="stale")) is False
