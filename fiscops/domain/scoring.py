"""Scoring engine - aggregate totals, decision index and priority ranking"""

import math
from typing import List

from fiscops.domain.models import Priorities, ReferenceRow, SegmentRow, Taxpayer, Totals
from fiscops.domain.settings import DashboardSettings, ScoringWeights, Thresholds

DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_THRESHOLDS = Thresholds()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_critical(taxpayer: Taxpayer, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> bool:
    """Debt OR age at or above its threshold"""
    return (
        (taxpayer.debt or 0) >= thresholds.critical_debt
        or (taxpayer.age_days or 0) >= thresholds.critical_age_days
    )


def compute_totals(taxpayers: List[Taxpayer], thresholds: Thresholds = DEFAULT_THRESHOLDS) -> Totals:
    """
    Aggregate the portfolio.

    Ratio is debt over revenue in percent, 0 when there is no revenue at all.
    """
    debt_total = sum(t.debt or 0 for t in taxpayers)
    revenue_total = sum(t.revenue or 0 for t in taxpayers)
    ratio = (debt_total / revenue_total) * 100 if revenue_total else 0.0
    critical_count = sum(1 for t in taxpayers if is_critical(t, thresholds))

    return Totals(
        debt_total=debt_total,
        revenue_total=revenue_total,
        ratio=ratio,
        critical_count=critical_count,
    )


def decision_index(taxpayer: Taxpayer, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """
    Score a case from 0 (no urgency) to 100 (act now).

    Scoring weights (defaults):
    - 60 points: debt, linear up to 50M
    - 40 points: age of the debt, linear up to 90 days

    Each component is clamped to its own range before summing.
    """
    debt = taxpayer.debt or 0
    age = taxpayer.age_days or 0

    debt_component = _clamp(debt / weights.debt_scale * weights.debt_weight, 0, weights.debt_weight)
    age_component = _clamp(age / weights.age_scale_days * weights.age_weight, 0, weights.age_weight)

    return _round_half_up(_clamp(debt_component + age_component, 0, 100))


def top_priorities(
    taxpayers: List[Taxpayer],
    n: int = 10,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Priorities:
    """Highest (index, debt) first; sorted() keeps the input order among exact ties"""
    ranked = sorted(
        taxpayers,
        key=lambda t: (decision_index(t, weights), t.debt or 0),
        reverse=True,
    )
    top = ranked[:n]
    return Priorities(top=top, impact=sum(t.debt or 0 for t in top))


def segment_for(sector: str, settings: DashboardSettings) -> str:
    """
    Classify a sector into a segment by keyword.

    Matching is case-insensitive and works both ways (keyword in sector or
    sector in keyword). Segments are tried in declared order, first hit wins.
    Overlapping keywords can pick an unexpected segment; that is accepted.
    """
    text = str(sector or "").strip().lower()
    if not text:
        return settings.fallback_segment

    for name in settings.segment_names:
        definition = settings.segment_definitions.get(name)
        if definition is None:
            continue
        for keyword in definition.keywords:
            key = keyword.lower()
            if key in text or text in key:
                return name

    return settings.fallback_segment


def pct_objective(amount: float, objective: float) -> float:
    """Share of the annual objective, in percent with two decimals"""
    if not objective:
        return 0.0
    return _round_half_up(max(0, amount or 0) / objective * 10000) / 100


def recommendation(index: int, thresholds: Thresholds = DEFAULT_THRESHOLDS) -> str:
    if index >= thresholds.immediate_index:
        return "Action immédiate requise"
    return "Suivi standard"


def segment_breakdown(taxpayers: List[Taxpayer], settings: DashboardSettings) -> List[SegmentRow]:
    """Dossiers, debt and critical count per segment, in declared order"""
    rows = []
    for name in settings.segment_names:
        members = [t for t in taxpayers if t.segment == name]
        debt = sum(t.debt or 0 for t in members)
        rows.append(
            SegmentRow(
                segment=name,
                label=settings.segment_label(name),
                dossiers=len(members),
                debt=debt,
                critical_count=sum(1 for t in members if is_critical(t, settings.thresholds)),
                pct_objective=pct_objective(debt, settings.objective_annual),
            )
        )
    return rows


def reference_comparison(taxpayers: List[Taxpayer], settings: DashboardSettings) -> List[ReferenceRow]:
    """Outstanding debt of each segment against what it collected in the reference year"""
    rows = []
    for name in settings.segment_names:
        debt = sum(t.debt or 0 for t in taxpayers if t.segment == name)
        reference = settings.reference.segment_totals.get(name, 0)
        rows.append(
            ReferenceRow(
                segment=name,
                label=settings.segment_label(name),
                debt=debt,
                reference=reference,
                pct_of_reference=pct_objective(debt, reference),
            )
        )
    return rows
