"""
Analysis Routes

POST /analysis/upload - Upload roster CSV and start a run
GET /analysis/status - Run status and progress
GET /analysis/results - Processed rows so far (partial while running)
GET /analysis/results.csv - Download processed rows
POST /analysis/abort - Stop the run before its next batch
POST /analysis/resume - Continue a stopped run (keeps earlier results)
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from app.services.session import AnalysisSession, get_session
from app.utils.csv_io import load_records, parse_csv_text, read_upload, records_to_csv
from app.schemas.schemas import MessageResponse, ResultRow, ResultsResponse, RunStatusResponse

router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.post("/upload", response_model=RunStatusResponse, status_code=202)
async def upload_and_analyze(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Student roster CSV"),
    session: AnalysisSession = Depends(get_session)
):
    """
    Upload a roster and analyze it in the background.

    Process:
    1. Parse CSV (rows without first/last name are skipped)
    2. Claim the session (409 if a run is active)
    3. Batches go to the AI service while /analysis/status reports progress
    """
    text, filename = await read_upload(file)
    records = load_records(parse_csv_text(text))

    session.begin_run(records, filename)
    background_tasks.add_task(session.execute_run, 0)
    return session.status()


@router.get("/status", response_model=RunStatusResponse)
async def get_status(session: AnalysisSession = Depends(get_session)):
    """Progress never exceeds total and only moves forward during a run."""
    return session.status()


@router.get("/results", response_model=ResultsResponse)
async def get_results(session: AnalysisSession = Depends(get_session)):
    """Processed rows in input order. Available even if the run stopped early."""
    rows = [
        ResultRow(
            name=p.record.full_name,
            linkedin_url=p.record.linkedin_url,
            placed_role=p.placement.placed_role,
            placed_company=p.placement.placed_company,
            estimated_salary=p.placement.estimated_salary,
            salary_justification=p.placement.salary_justification,
            salary_confidence=p.placement.salary_confidence
        ) for p in session.results()
    ]
    return ResultsResponse(results=rows, total=len(rows), status=session.run_status)


@router.get("/results.csv")
async def download_results(session: AnalysisSession = Depends(get_session)):
    """Download processed rows as CSV."""
    results = session.results()
    if not results:
        raise HTTPException(status_code=404, detail="No processed data to download.")

    filename = f"processed_{session.filename or 'placements.csv'}"
    if not filename.lower().endswith(".csv"):
        filename += ".csv"
    return Response(
        content=records_to_csv(results),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/abort", response_model=MessageResponse)
async def abort_run(session: AnalysisSession = Depends(get_session)):
    """Request a stop; the batch in flight still completes."""
    if not session.abort():
        raise HTTPException(status_code=400, detail="No analysis run in progress")
    return MessageResponse(message="Abort requested. The run stops after the current batch.")


@router.post("/resume", response_model=RunStatusResponse, status_code=202)
async def resume_run(
    background_tasks: BackgroundTasks,
    session: AnalysisSession = Depends(get_session)
):
    """
    Continue a stopped run from the first unprocessed record.
    Typical use: all keys were exhausted, a new key was added in settings.
    """
    start_index = session.begin_resume()
    background_tasks.add_task(session.execute_run, start_index)
    return session.status()
