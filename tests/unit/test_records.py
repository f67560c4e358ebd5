"""Unit tests for record mutations and the stored blob"""

import pytest

from fiscops.domain.exceptions import InvalidEditError, UnknownTaxpayerError
from fiscops.domain.models import RecordData
from fiscops.domain.records import (
    EDIT_ACTION_TYPE,
    create_taxpayer,
    data_from_blob,
    data_to_blob,
    edit_taxpayer,
    new_taxpayer_id,
    reassign_segments,
)
from fiscops.domain.settings import DEFAULT_SETTINGS, merge_settings


@pytest.fixture
def data(sample_taxpayers) -> RecordData:
    return RecordData(taxpayers=sample_taxpayers)


def test_new_taxpayer_id_format():
    taxpayer_id = new_taxpayer_id()
    assert taxpayer_id.startswith("T")
    assert len(taxpayer_id) == 9
    assert taxpayer_id[1:] == taxpayer_id[1:].upper()


def test_create_taxpayer_goes_first(data):
    new_data, taxpayer = create_taxpayer(data, DEFAULT_SETTINGS, name="SOGATRA", sector="Transport", debt=5_000_000)

    assert new_data.taxpayers[0] is taxpayer
    assert len(new_data.taxpayers) == len(data.taxpayers) + 1
    assert taxpayer.segment == "IFU 3"
    assert taxpayer.status == "Normal"
    assert taxpayer.notes == ""
    assert taxpayer.last_action_at is None
    # Original snapshot untouched
    assert len(data.taxpayers) == 5


def test_create_taxpayer_defaults(data):
    _, taxpayer = create_taxpayer(data, DEFAULT_SETTINGS)

    assert taxpayer.name == "Nouveau contribuable"
    assert taxpayer.segment == "IFU 2"
    assert taxpayer.revenue == 0 and taxpayer.debt == 0 and taxpayer.age_days == 0


def test_edit_taxpayer_commits_fields_and_logs_action(data):
    at = "2026-03-02T10:00:00+00:00"
    new_data, updated = edit_taxpayer(data, DEFAULT_SETTINGS, "B", "Relance envoyée", "IFU 4", "En cours", at=at)

    assert updated.notes == "Relance envoyée"
    assert updated.segment == "IFU 4"
    assert updated.status == "En cours"
    assert updated.last_action_at == at
    assert new_data.taxpayers[1] == updated

    action = new_data.actions_log[-1]
    assert action.type == EDIT_ACTION_TYPE
    assert action.taxpayer_id == "B"
    assert action.at == at
    assert action.meta == {"status": "En cours", "segment": "IFU 4"}
    assert data.actions_log == []


def test_edit_unknown_taxpayer(data):
    with pytest.raises(UnknownTaxpayerError):
        edit_taxpayer(data, DEFAULT_SETTINGS, "nope", "", "IFU 1", "Normal")


def test_edit_rejects_values_outside_configured_sets(data):
    with pytest.raises(InvalidEditError):
        edit_taxpayer(data, DEFAULT_SETTINGS, "A", "", "IFU 42", "Normal")
    with pytest.raises(InvalidEditError):
        edit_taxpayer(data, DEFAULT_SETTINGS, "A", "", "IFU 1", "Archivé")


def test_blob_shape(data):
    new_data, _ = edit_taxpayer(data, DEFAULT_SETTINGS, "A", "note", "IFU 1", "Payé")
    blob = data_to_blob(new_data)

    assert set(blob) == {"taxpayers", "actionsLog", "weekPlan"}
    assert blob["taxpayers"][0]["company_type"] == "PME"
    assert data_from_blob(blob) == new_data


def test_blob_tolerates_missing_optional_keys():
    blob = {
        "taxpayers": [
            {
                "id": "X", "name": "X", "sector": "BTP", "company_type": "GE", "revenue": 1,
                "debt": 1, "age_days": 1, "status": "Normal", "segment": "IFU 1", "legacy": True,
            }
        ]
    }

    data = data_from_blob(blob)

    assert data.taxpayers[0].notes == ""
    assert data.actions_log == []
    assert data.week_plan == {}


def test_reassign_segments_only_touches_undeclared_ones(data: RecordData):
    settings = merge_settings(
        {
            "segment_names": ["IFU 1", "Autres"],
            "segment_definitions": {"Autres": {"label": "Autres secteurs", "keywords": []}},
        }
    )

    updated, changed = reassign_segments(data, settings)

    # A keeps IFU 1, every other case is inferred again from its sector
    assert changed == 4
    segments = {t.id: t.segment for t in updated.taxpayers}
    assert segments["A"] == "IFU 1"
    assert segments["C"] == "Autres"
    assert set(segments.values()) <= set(settings.segment_names)
    assert updated.actions_log == data.actions_log


def test_reassign_segments_keeps_data_when_nothing_changes(data: RecordData):
    updated, changed = reassign_segments(data, DEFAULT_SETTINGS)

    assert changed == 0
    assert updated is data
