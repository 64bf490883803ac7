"""
Report Routes

GET /reports/stats - Placement statistics (computed on demand)
GET /reports/stats.csv - Statistics as a three-section CSV
POST /reports/generate - AI narrative report (rotates keys on failure)
GET /reports/latest - Last report as markdown + HTML
GET /reports/latest.md - Download last report as markdown
"""

from fastapi import APIRouter, HTTPException, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.services.session import AnalysisSession, get_session
from app.services.stats_service import compute_stats
from app.services.report_service import build_stats_csv
from app.utils.markdown_render import render_report_html
from app.schemas.schemas import AggregateStats, ReportResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


def _require_results(session: AnalysisSession):
    results = session.results()
    if not results:
        raise HTTPException(status_code=404, detail="No processed data available to generate a report.")
    return results


@router.get("/stats", response_model=AggregateStats)
async def get_stats(session: AnalysisSession = Depends(get_session)):
    """Placement rate, recruiters by hires and salary distribution."""
    return compute_stats(session.results())


@router.get("/stats.csv")
async def download_stats(session: AnalysisSession = Depends(get_session)):
    stats = compute_stats(_require_results(session))
    return Response(
        content=build_stats_csv(stats),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="college_placement_report_data.csv"'}
    )


@router.post("/generate", response_model=ReportResponse)
async def generate_report(session: AnalysisSession = Depends(get_session)):
    """
    Ask the AI for the college report.
    Starts at the active key and moves through the rest on key failures.
    """
    _require_results(session)
    markdown = await run_in_threadpool(session.generate_report)
    return ReportResponse(
        markdown=markdown,
        html=render_report_html(markdown),
        generated_at=session.report_generated_at
    )


@router.get("/latest", response_model=ReportResponse)
async def latest_report(session: AnalysisSession = Depends(get_session)):
    if not session.report:
        raise HTTPException(status_code=404, detail="No report generated yet")
    return ReportResponse(
        markdown=session.report,
        html=render_report_html(session.report),
        generated_at=session.report_generated_at
    )


@router.get("/latest.md")
async def download_report(session: AnalysisSession = Depends(get_session)):
    if not session.report:
        raise HTTPException(status_code=404, detail="No report generated yet")
    return Response(
        content=session.report,
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="college_placement_report.md"'}
    )
