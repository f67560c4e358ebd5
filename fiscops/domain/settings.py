"""Dashboard settings: built-in defaults and merging of persisted overrides"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field, model_validator


class SegmentDefinition(BaseModel):
    """Display label and sector keywords of a segment (IFU)"""

    label: str
    keywords: List[str] = Field(default_factory=list)


class ReferenceTotals(BaseModel):
    """Collections of the prior year, used as a yardstick"""

    year: str = "2025"
    total: float = 82_022_587_928
    segment_totals: Dict[str, float] = Field(default_factory=dict)
    spontaneous: float = 78_204_558_091
    enforced: float = 3_818_992_397


class Thresholds(BaseModel):
    critical_debt: float = 50_000_000
    critical_age_days: int = 90
    immediate_index: int = 80


class ScoringWeights(BaseModel):
    """Normalization constants of the decision index"""

    debt_scale: float = Field(50_000_000, gt=0)
    age_scale_days: float = Field(90, gt=0)
    debt_weight: float = Field(60, ge=0)
    age_weight: float = Field(40, ge=0)


class UiSettings(BaseModel):
    page_size: int = Field(25, gt=0)


class DashboardSettings(BaseModel):
    """Everything the operator can tune about the dashboard"""

    center_name: str = "Centre des impôts d'Owendo"
    period_label: str = "Exercice 2026"
    objective_annual: float = Field(120_000_000_000, gt=0)
    segment_names: List[str]
    segment_definitions: Dict[str, SegmentDefinition]
    reference: ReferenceTotals = Field(default_factory=ReferenceTotals)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    ui: UiSettings = Field(default_factory=UiSettings)

    @model_validator(mode="after")
    def _check_segments(self) -> "DashboardSettings":
        if not self.segment_names:
            raise ValueError("at least one segment is required")
        return self

    @property
    def fallback_segment(self) -> str:
        """Catch-all segment: the last one declared"""
        return self.segment_names[-1]

    def segment_label(self, segment: str) -> str:
        definition = self.segment_definitions.get(segment)
        return definition.label if definition else ""


DEFAULT_SETTINGS = DashboardSettings(
    segment_names=["IFU 1", "IFU 2", "IFU 3", "IFU 4", "IFU 5"],
    segment_definitions={
        "IFU 1": SegmentDefinition(label="BTP", keywords=["BTP", "Construction", "Travaux publics"]),
        "IFU 2": SegmentDefinition(
            label="Commerce / Restauration",
            keywords=["Restaurant", "Hôtel", "Tourisme", "Décoration", "Commerce", "Boulangerie"],
        ),
        "IFU 3": SegmentDefinition(
            label="Industrie / Ressources",
            keywords=["Forêt", "Bois", "Logistique", "Industrie", "Pétrole", "Mine", "Transport"],
        ),
        "IFU 4": SegmentDefinition(
            label="Réglementé / Santé / Éducation",
            keywords=["Notaire", "Avocat", "École", "Immobilier", "Établissement privé", "Pharmacie", "Clinique"],
        ),
        "IFU 5": SegmentDefinition(
            label="Services divers",
            keywords=[
                "Communication", "Laverie", "Pressing", "Télécommunication", "Pompes funèbres",
                "Gardiennage", "Sécurité", "Placement", "Location d'engins", "Nettoyage",
            ],
        ),
    },
    reference=ReferenceTotals(
        segment_totals={
            "IFU 1": 7_818_798_832,
            "IFU 2": 6_435_389_081,
            "IFU 3": 36_545_071_977,
            "IFU 4": 21_079_669_793,
            "IFU 5": 10_143_658_245,
        },
    ),
)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested mappings recursively; any other value replaces the base one"""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_settings(override: Dict[str, Any] | None) -> DashboardSettings:
    """
    Apply a partial, persisted override on top of the defaults.

    Raises:
        pydantic.ValidationError: when the merged result is not valid
    """
    base = DEFAULT_SETTINGS.model_dump()
    if not override:
        return DashboardSettings.model_validate(base)
    return DashboardSettings.model_validate(deep_merge(base, override))
