"""Projection of the application state into a view model"""

from dataclasses import asdict
from typing import Any, Dict, Optional

from fiscops.domain.models import STATUSES, RecordData, Taxpayer
from fiscops.domain.scoring import (
    compute_totals,
    decision_index,
    pct_objective,
    recommendation,
    reference_comparison,
    segment_breakdown,
    top_priorities,
)
from fiscops.domain.settings import DashboardSettings
from fiscops.reporting.report import build_report
from fiscops.ui.state import ALL, VIEWS, ViewState, filter_taxpayers, paginate

VIEW_LABELS = {
    "portefeuille": "Portefeuille",
    "segments": "Segments",
    "plan": "Plan semaine",
    "ifu": "IFU",
    "rapport": "Rapport",
}

WEEK_PLAN_PLACEHOLDER = "Plan semaine (phase test) - à activer avec le module actions."


def taxpayer_row(taxpayer: Taxpayer, settings: DashboardSettings) -> Dict[str, Any]:
    row = asdict(taxpayer)
    row["index"] = decision_index(taxpayer, settings.scoring)
    return row


def _portfolio(settings: DashboardSettings, data: RecordData, state: ViewState) -> Dict[str, Any]:
    page = paginate(filter_taxpayers(data.taxpayers, state), state.page, settings.ui.page_size)
    return {
        "kind": "portefeuille",
        "rows": [taxpayer_row(t, settings) for t in page.items],
        "page": page.page,
        "pages": page.pages,
        "total": page.total,
        "page_size": settings.ui.page_size,
    }


def _ifu(settings: DashboardSettings, data: RecordData) -> Dict[str, Any]:
    return {
        "kind": "ifu",
        "rows": [asdict(r) for r in segment_breakdown(data.taxpayers, settings)],
    }


def _segments(settings: DashboardSettings, data: RecordData) -> Dict[str, Any]:
    reference = settings.reference
    return {
        "kind": "segments",
        "reference_year": reference.year,
        "rows": [asdict(r) for r in reference_comparison(data.taxpayers, settings)],
        "reference_total": reference.total,
        "spontaneous": reference.spontaneous,
        "enforced": reference.enforced,
    }


def _report(settings: DashboardSettings, data: RecordData) -> Dict[str, Any]:
    totals = compute_totals(data.taxpayers, settings.thresholds)
    priorities = top_priorities(data.taxpayers, 10, settings.scoring)
    report = build_report(settings, totals, priorities)
    return {"kind": "rapport", "lines": report.lines()}


def project_overlay(settings: DashboardSettings, data: RecordData, selected_id: Optional[str]) -> Optional[Dict[str, Any]]:
    """Detail panel of the open record, None when nothing (or an unknown id) is open"""
    if selected_id is None:
        return None
    taxpayer = next((t for t in data.taxpayers if t.id == selected_id), None)
    if taxpayer is None:
        return None

    index = decision_index(taxpayer, settings.scoring)
    return {
        "taxpayer": asdict(taxpayer),
        "segment_label": settings.segment_label(taxpayer.segment),
        "index": index,
        "recommendation": recommendation(index, settings.thresholds),
        "pct_objective": pct_objective(taxpayer.debt, settings.objective_annual),
        "segment_options": list(settings.segment_names),
        "status_options": list(STATUSES),
    }


def project_view(settings: DashboardSettings, data: RecordData, state: ViewState) -> Dict[str, Any]:
    if state.view == "portefeuille":
        return _portfolio(settings, data, state)
    if state.view == "ifu":
        return _ifu(settings, data)
    if state.view == "segments":
        return _segments(settings, data)
    if state.view == "rapport":
        return _report(settings, data)
    return {"kind": "plan", "message": WEEK_PLAN_PLACEHOLDER}


def project(
    settings: DashboardSettings,
    data: RecordData,
    state: ViewState,
    storage_mode: str = "local",
    data_source: str = "store",
    sync: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Full re-render of the dashboard from current state"""
    totals = compute_totals(data.taxpayers, settings.thresholds)
    priorities = top_priorities(data.taxpayers, 10, settings.scoring)

    return {
        "header": {
            "center_name": settings.center_name,
            "period_label": settings.period_label,
            "storage_mode": storage_mode,
            "data_source": data_source,
        },
        "view": state.view,
        "views": [{"id": v, "label": VIEW_LABELS[v], "active": v == state.view} for v in VIEWS],
        "kpis": {
            "objective_annual": settings.objective_annual,
            "debt_total": totals.debt_total,
            "revenue_total": totals.revenue_total,
            "ratio": totals.ratio,
            "critical_count": totals.critical_count,
        },
        "priorities": {
            "rows": [taxpayer_row(t, settings) for t in priorities.top],
            "impact": priorities.impact,
            "impact_pct": pct_objective(priorities.impact, settings.objective_annual),
        },
        "filters": {
            "query": state.query,
            "segment": state.segment_filter,
            "status": state.status_filter,
            "segment_options": [ALL] + list(settings.segment_names),
            "status_options": [ALL] + list(STATUSES),
        },
        "reference": {"year": settings.reference.year, "total": settings.reference.total},
        "content": project_view(settings, data, state),
        "overlay": project_overlay(settings, data, state.selected_id),
        "sync": sync or {},
    }
