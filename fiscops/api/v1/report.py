"""/v1/report - one-page summary, as text lines or as a PDF download"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from fiscops.api.dependencies import get_loaded_dashboard
from fiscops.api.v1.schemas import ReportResponse
from fiscops.domain.scoring import compute_totals, top_priorities
from fiscops.reporting.report import Report, build_report, render_pdf, report_filename
from fiscops.ui.controller import Dashboard

router = APIRouter()


def _current_report(dashboard: Dashboard) -> Report:
    settings = dashboard.settings
    totals = compute_totals(dashboard.data.taxpayers, settings.thresholds)
    priorities = top_priorities(dashboard.data.taxpayers, 10, settings.scoring)
    return build_report(settings, totals, priorities)


@router.get("/report", response_model=ReportResponse)
async def get_report(dashboard: Dashboard = Depends(get_loaded_dashboard)):
    return ReportResponse(filename=report_filename(dashboard.center_id), lines=_current_report(dashboard).lines())


@router.get("/report/pdf")
async def download_report(dashboard: Dashboard = Depends(get_loaded_dashboard)) -> StreamingResponse:
    """Report rendered as a single A4 page"""
    buffer = render_pdf(_current_report(dashboard))
    filename = report_filename(dashboard.center_id)

    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
