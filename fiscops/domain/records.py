"""Record mutations and the JSON blob shape shared by every storage backend"""

import uuid
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fiscops.domain.exceptions import InvalidEditError, UnknownTaxpayerError
from fiscops.domain.models import DEFAULT_STATUS, STATUSES, Action, RecordData, Taxpayer
from fiscops.domain.scoring import segment_for
from fiscops.domain.settings import DashboardSettings

EDIT_ACTION_TYPE = "dossier_update"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_taxpayer_id() -> str:
    return "T" + uuid.uuid4().hex[:8].upper()


def find_taxpayer(data: RecordData, taxpayer_id: str) -> Taxpayer:
    for taxpayer in data.taxpayers:
        if taxpayer.id == taxpayer_id:
            return taxpayer
    raise UnknownTaxpayerError(f"Unknown taxpayer: {taxpayer_id}")


def create_taxpayer(
    data: RecordData,
    settings: DashboardSettings,
    name: str = "Nouveau contribuable",
    sector: str = "Commerce",
    company_type: str = "PME",
    revenue: float = 0,
    debt: float = 0,
    age_days: int = 0,
) -> Tuple[RecordData, Taxpayer]:
    """New case with a fresh id, placed at the head of the list"""
    taxpayer = Taxpayer(
        id=new_taxpayer_id(),
        name=name,
        sector=sector,
        company_type=company_type,
        revenue=revenue,
        debt=debt,
        age_days=age_days,
        status=DEFAULT_STATUS,
        segment=segment_for(sector, settings),
        notes="",
    )
    return replace(data, taxpayers=[taxpayer] + list(data.taxpayers)), taxpayer


def edit_taxpayer(
    data: RecordData,
    settings: DashboardSettings,
    taxpayer_id: str,
    notes: str,
    segment: str,
    status: str,
    at: Optional[str] = None,
) -> Tuple[RecordData, Taxpayer]:
    """
    Commit notes/segment/status of a case.

    Stamps last_action_at and appends a dossier_update action to the log.

    Raises:
        UnknownTaxpayerError: no such taxpayer
        InvalidEditError: segment or status outside the configured sets
    """
    current = find_taxpayer(data, taxpayer_id)
    if segment not in settings.segment_names:
        raise InvalidEditError(f"Unknown segment: {segment}")
    if status not in STATUSES:
        raise InvalidEditError(f"Unknown status: {status}")

    at = at or utc_now_iso()
    updated = replace(current, notes=notes, segment=segment, status=status, last_action_at=at)
    action = Action(
        id=uuid.uuid4().hex,
        type=EDIT_ACTION_TYPE,
        taxpayer_id=taxpayer_id,
        at=at,
        meta={"status": status, "segment": segment},
    )

    taxpayers = [updated if t.id == taxpayer_id else t for t in data.taxpayers]
    return replace(data, taxpayers=taxpayers, actions_log=list(data.actions_log) + [action]), updated


def reassign_segments(data: RecordData, settings: DashboardSettings) -> Tuple[RecordData, int]:
    """Infer again the segment of cases whose segment is no longer configured"""
    changed = 0
    taxpayers = []
    for taxpayer in data.taxpayers:
        if taxpayer.segment not in settings.segment_names:
            taxpayer = replace(taxpayer, segment=segment_for(taxpayer.sector, settings))
            changed += 1
        taxpayers.append(taxpayer)
    if not changed:
        return data, 0
    return replace(data, taxpayers=taxpayers), changed


# --- JSON blob ---

_TAXPAYER_FIELDS = {f.name for f in fields(Taxpayer)}


def taxpayer_from_dict(raw: Dict[str, Any]) -> Taxpayer:
    """Unknown keys are ignored; missing optional ones take their defaults"""
    return Taxpayer(**{k: v for k, v in raw.items() if k in _TAXPAYER_FIELDS})


def data_to_blob(data: RecordData) -> Dict[str, Any]:
    return {
        "taxpayers": [asdict(t) for t in data.taxpayers],
        "actionsLog": [asdict(a) for a in data.actions_log],
        "weekPlan": data.week_plan,
    }


def data_from_blob(blob: Dict[str, Any]) -> RecordData:
    """
    Rebuild records from a decoded blob.

    Raises:
        KeyError, TypeError: when the blob does not have the expected shape
    """
    return RecordData(
        taxpayers=[taxpayer_from_dict(t) for t in blob["taxpayers"]],
        actions_log=[Action(**a) for a in blob.get("actionsLog") or []],
        week_plan=blob.get("weekPlan") or {},
    )
