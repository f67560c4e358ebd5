"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

STATUSES = ["Normal", "Critique", "En cours", "Payé"]
DEFAULT_STATUS = "Normal"
COMPANY_TYPES = ["PME", "TPE", "GE"]


@dataclass
class Taxpayer:
    """Taxpayer case followed by the center"""

    id: str
    name: str
    sector: str
    company_type: str
    revenue: float
    debt: float
    age_days: int
    status: str
    segment: str
    notes: str = ""
    last_action_at: Optional[str] = None


@dataclass(frozen=True)
class Action:
    """Entry of the append-only action log"""

    id: str
    type: str
    taxpayer_id: str
    at: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RecordData:
    """Everything persisted for one center"""

    taxpayers: List[Taxpayer] = field(default_factory=list)
    actions_log: List[Action] = field(default_factory=list)
    week_plan: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Totals:
    """Aggregate metrics over the portfolio"""

    debt_total: float
    revenue_total: float
    ratio: float  # debt / revenue, percent
    critical_count: int


@dataclass
class Priorities:
    """Top-ranked taxpayers and the debt they represent"""

    top: List[Taxpayer]
    impact: float


@dataclass
class SegmentRow:
    """Per-segment aggregate for the IFU view"""

    segment: str
    label: str
    dossiers: int
    debt: float
    critical_count: int
    pct_objective: float


@dataclass
class ReferenceRow:
    """Current debt of a segment against the reference year"""

    segment: str
    label: str
    debt: float
    reference: float
    pct_of_reference: float


@dataclass
class SyncResult:
    """Outcome of one persisted write"""

    ok: bool
    backend: str
    written: int = 0
    failed_chunks: List[int] = field(default_factory=list)
    error: Optional[str] = None
