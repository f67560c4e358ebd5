"""Remote record store: center-scoped reads and chunked best-effort upserts"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fiscops.domain.exceptions import RemoteStoreError
from fiscops.domain.models import DEFAULT_STATUS, Action, RecordData, SyncResult, Taxpayer
from fiscops.domain.settings import DashboardSettings
from fiscops.infrastructure.clients.data_service import DataServiceClient

logger = logging.getLogger(__name__)

TAXPAYER_LIMIT = 2000
ACTION_LIMIT = 5000
CHUNK_SIZE = 200


def taxpayer_from_row(row: Dict[str, Any]) -> Taxpayer:
    """External column names to internal fields, no transformation"""
    return Taxpayer(
        id=row["external_id"],
        name=row.get("name") or "",
        sector=row.get("sector") or "",
        company_type=row.get("company_type") or "",
        revenue=row.get("ca") or 0,
        debt=row.get("debt") or 0,
        age_days=row.get("age_days") or 0,
        status=row.get("status") or DEFAULT_STATUS,
        segment=row.get("ifu") or "",
        notes=row.get("notes") or "",
        last_action_at=row.get("last_action_at"),
    )


def taxpayer_to_row(taxpayer: Taxpayer, center_id: str, updated_at: str) -> Dict[str, Any]:
    return {
        "center_id": center_id,
        "external_id": taxpayer.id,
        "name": taxpayer.name,
        "sector": taxpayer.sector,
        "company_type": taxpayer.company_type,
        "ca": taxpayer.revenue,
        "debt": taxpayer.debt,
        "age_days": taxpayer.age_days,
        "status": taxpayer.status,
        "ifu": taxpayer.segment,
        "notes": taxpayer.notes or "",
        "last_action_at": taxpayer.last_action_at,
        "updated_at": updated_at,
    }


def action_from_row(row: Dict[str, Any]) -> Action:
    return Action(
        id=str(row["id"]),
        type=row.get("type") or "",
        taxpayer_id=row.get("taxpayer_external_id") or "",
        at=row.get("at") or "",
        meta=row.get("meta") or {},
    )


def action_to_row(action: Action, center_id: str) -> Dict[str, Any]:
    return {
        "id": action.id,
        "center_id": center_id,
        "type": action.type,
        "taxpayer_external_id": action.taxpayer_id,
        "at": action.at,
        "meta": action.meta,
    }


def chunked(rows: List[Dict[str, Any]], size: int = CHUNK_SIZE) -> List[List[Dict[str, Any]]]:
    return [rows[i:i + size] for i in range(0, len(rows), size)]


class RemoteRecordStore:
    """Records of one center kept in the remote data service"""

    backend = "remote"

    def __init__(self, client: DataServiceClient):
        self.client = client

    async def load(self, center_id: str, settings: DashboardSettings) -> RecordData:
        """
        Fetch taxpayers, actions and week plan of a center.

        Raises:
            RemoteStoreError: taxpayers or actions could not be read
        """
        taxpayer_rows = await self.client.select(
            "taxpayers", {"center_id": center_id}, order="updated_at.desc", limit=TAXPAYER_LIMIT
        )
        action_rows = await self.client.select(
            "actions", {"center_id": center_id}, order="at.desc", limit=ACTION_LIMIT
        )

        # The week plan row is optional, a failed read is not fatal
        week_plan: Dict[str, Any] = {}
        try:
            plan_rows = await self.client.select("week_plans", {"center_id": center_id}, limit=1)
            if plan_rows:
                week_plan = plan_rows[0].get("payload") or {}
        except RemoteStoreError as e:
            logger.warning(f"Week plan unavailable for {center_id}: {e}")

        try:
            return RecordData(
                taxpayers=[taxpayer_from_row(r) for r in taxpayer_rows],
                actions_log=[action_from_row(r) for r in action_rows],
                week_plan=week_plan,
            )
        except (KeyError, TypeError) as e:
            raise RemoteStoreError(f"Malformed row from data service: {e}") from e

    async def save(self, data: RecordData, center_id: str) -> SyncResult:
        """
        Upsert everything, one chunk at a time.

        Best effort: a rejected chunk is logged and recorded in the result,
        the following chunks are still sent. Nothing is raised.
        """
        updated_at = datetime.now(timezone.utc).isoformat()
        failed: List[int] = []
        errors: List[str] = []
        written = 0

        taxpayer_rows = [taxpayer_to_row(t, center_id, updated_at) for t in data.taxpayers]
        for index, chunk in enumerate(chunked(taxpayer_rows)):
            try:
                await self.client.upsert("taxpayers", chunk, on_conflict="center_id,external_id")
                written += len(chunk)
            except RemoteStoreError as e:
                logger.error(f"Taxpayer chunk {index} rejected: {e}", extra={"center_id": center_id})
                failed.append(index)
                errors.append(str(e))

        action_rows = [action_to_row(a, center_id) for a in data.actions_log]
        for index, chunk in enumerate(chunked(action_rows)):
            try:
                await self.client.upsert("actions", chunk, on_conflict="id")
            except RemoteStoreError as e:
                logger.error(f"Action chunk {index} rejected: {e}", extra={"center_id": center_id})
                errors.append(str(e))

        try:
            await self.client.upsert(
                "week_plans",
                {"center_id": center_id, "payload": data.week_plan or {}, "updated_at": updated_at},
                on_conflict="center_id",
            )
        except RemoteStoreError as e:
            logger.error(f"Week plan rejected: {e}", extra={"center_id": center_id})
            errors.append(str(e))

        return SyncResult(
            ok=not errors,
            backend=self.backend,
            written=written,
            failed_chunks=failed,
            error="; ".join(errors) or None,
        )
