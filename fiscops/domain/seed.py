"""Synthetic portfolio used on first run and as a fallback when loading fails"""

import random
from typing import List, Optional

from fiscops.domain.models import COMPANY_TYPES, RecordData, Taxpayer
from fiscops.domain.scoring import segment_for
from fiscops.domain.settings import DEFAULT_SETTINGS, DashboardSettings

SEED_SIZE = 120

SEED_SECTORS = [
    "BTP", "Commerce", "Restaurant", "Hôtel", "Logistique", "Industrie",
    "Transport", "Pharmacie", "Clinique", "Notaire", "Communication", "Nettoyage",
]
SEED_STATUSES = ["Normal", "Normal", "Normal", "Critique", "En cours"]


def _revenue(rng: random.Random) -> float:
    """Three revenue bands (large, medium, small) with +/-40% spread"""
    draw = rng.random()
    if draw < 0.2:
        base = 1_200_000_000
    elif rng.random() < 0.5:
        base = 180_000_000
    else:
        base = 25_000_000
    return base * (0.6 + rng.random())


def seed_taxpayers(
    count: int = SEED_SIZE,
    settings: DashboardSettings = DEFAULT_SETTINGS,
    rng: Optional[random.Random] = None,
) -> List[Taxpayer]:
    rng = rng or random.Random()
    taxpayers = []

    for i in range(count):
        sector = SEED_SECTORS[i % len(SEED_SECTORS)]
        revenue = _revenue(rng)
        # Debt is 2-14% of revenue, never above it
        debt = max(0.0, revenue * (0.02 + rng.random() * 0.12))

        taxpayers.append(
            Taxpayer(
                id=f"T{i + 1:04d}",
                name=f"Contribuable {i + 1}",
                sector=sector,
                company_type=COMPANY_TYPES[i % len(COMPANY_TYPES)],
                revenue=round(revenue),
                debt=round(debt),
                age_days=int(10 + rng.random() * 220),
                status=SEED_STATUSES[i % len(SEED_STATUSES)],
                segment=segment_for(sector, settings),
                notes="",
            )
        )

    return taxpayers


def seed_data(settings: DashboardSettings = DEFAULT_SETTINGS, rng: Optional[random.Random] = None) -> RecordData:
    """Fresh dataset: 120 taxpayers, empty action log, empty week plan"""
    return RecordData(taxpayers=seed_taxpayers(SEED_SIZE, settings, rng), actions_log=[], week_plan={})
