"""One-page summary report and its PDF rendering"""

import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from fiscops.domain.models import Priorities, Totals
from fiscops.domain.scoring import decision_index, pct_objective
from fiscops.domain.settings import DashboardSettings
from fiscops.utils.formatting import fmt_fcfa

REPORT_TITLE = "FiscOps - Rapport 1 page"
MAX_REPORT_ITEMS = 8
DISCLAIMER = (
    "Les décisions présentées dans ce rapport sont basées sur des indicateurs "
    "objectifs calculés automatiquement par le système."
)


@dataclass
class ReportItem:
    name: str
    segment: str
    debt: float
    index: int

    def line(self) -> str:
        return f"• {self.name} - {self.segment} - {fmt_fcfa(self.debt)} - Indice {self.index}/100"


@dataclass
class Report:
    """Fixed layout content, already formatted"""

    title: str
    center_line: str
    objective_line: str
    totals_line: str
    impact_line: str
    items: List[ReportItem] = field(default_factory=list)
    disclaimer: str = DISCLAIMER

    def lines(self) -> List[str]:
        return [
            self.title,
            self.center_line,
            self.objective_line,
            self.totals_line,
            "Priorités",
            self.impact_line,
            *[item.line() for item in self.items],
            self.disclaimer,
        ]


def build_report(settings: DashboardSettings, totals: Totals, priorities: Priorities) -> Report:
    """Format the already computed figures, no new business logic here"""
    impact_pct = pct_objective(priorities.impact, settings.objective_annual)
    items = [
        ReportItem(
            name=t.name,
            segment=t.segment,
            debt=t.debt,
            index=decision_index(t, settings.scoring),
        )
        for t in priorities.top[:MAX_REPORT_ITEMS]
    ]

    return Report(
        title=REPORT_TITLE,
        center_line=f"{settings.center_name} • {settings.period_label}",
        objective_line=(
            f"Objectif annuel : {fmt_fcfa(settings.objective_annual)} "
            f"(réf. {settings.reference.year} : {fmt_fcfa(settings.reference.total)})"
        ),
        totals_line=f"Dette totale : {fmt_fcfa(totals.debt_total)} • Dettes critiques : {totals.critical_count}",
        impact_line=f"Impact potentiel estimé : +{fmt_fcfa(priorities.impact)} ({impact_pct}%)",
        items=items,
    )


def render_pdf(report: Report) -> BytesIO:
    """A4 document, returned rewound and ready to stream"""
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        title=report.title,
        leftMargin=1.4 * cm,
        rightMargin=1.4 * cm,
        topMargin=1.6 * cm,
        bottomMargin=1.6 * cm,
    )
    styles = getSampleStyleSheet()
    body = styles["BodyText"]

    story = [
        Paragraph(escape(report.title), styles["Heading2"]),
        Paragraph(escape(report.center_line), body),
        Paragraph(escape(report.objective_line), body),
        Paragraph(escape(report.totals_line), body),
        Spacer(1, 8),
        Paragraph("<b>Priorités</b>", body),
        Paragraph(escape(report.impact_line), body),
    ]
    story += [Paragraph(escape(item.line()), body) for item in report.items]
    story += [Spacer(1, 8), Paragraph(f"<i>{escape(report.disclaimer)}</i>", body)]

    doc.build(story)
    buf.seek(0)
    return buf


def report_filename(center_id: str) -> str:
    """FiscOps_Rapport_<center>.pdf, center reduced to filename-safe characters"""
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", center_id).strip("_") or "centre"
    return f"FiscOps_Rapport_{safe}.pdf"
