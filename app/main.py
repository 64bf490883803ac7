"""
AI Placement Analyzer - Main Application

FastAPI backend with:
- CSV roster upload and batch AI analysis (API key rotation)
- Placement statistics and CSV exports
- AI-written college report (markdown + HTML)
- Candidate list lookup on the recruiting platform
- Frontend served from /frontend

Run: uvicorn app.main:app --reload
"""

import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, JSONResponse

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import (
    CandidateSearchError,
    CredentialFailure,
    CredentialMissing,
    CredentialsExhausted,
    InferenceFailure,
    InputInvalid,
    PlacementError,
    RunInProgress,
    TransportFailure,
)
from app.core.logging import configure_logging
from app.services.session import AnalysisSession, get_session

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "public")

# Most specific first
ERROR_STATUS = [
    (InputInvalid, 400),
    (CredentialMissing, 400),
    (RunInProgress, 409),
    (CredentialsExhausted, 502),
    (CredentialFailure, 502),
    (TransportFailure, 503),
    (InferenceFailure, 502),
    (CandidateSearchError, 502),
]

# Create FastAPI app
app = FastAPI(
    title="AI Placement Analyzer",
    description="""
    Analyze student placements and generate college reports with AI.

    ## Features
    - **Credentials**: Ordered API keys, rotated on invalid key / rate limit
    - **Analysis**: CSV upload, batched AI inference, live progress, partial results
    - **Reports**: Placement statistics, recruiter ranking, salary distribution, AI narrative
    - **Candidates**: Candidate list lookup on the recruiting platform
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PlacementError)
async def placement_error_handler(request: Request, exc: PlacementError):
    """Turn pipeline errors into readable messages for the UI."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)),
        500
    )
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.detail}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "error": type(exc).__name__}
    )


# Include API routes
app.include_router(api_router, prefix="/api")

# Serve static files (for any additional assets)
if os.path.exists(FRONTEND_DIR):
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")


# Serve frontend for root path
@app.get("/", tags=["Frontend"])
async def serve_frontend():
    """Serve the frontend."""
    index_path = os.path.join(FRONTEND_DIR, "index.html")
    if os.path.exists(index_path):
        return FileResponse(index_path)
    return {"status": "healthy", "app": "AI Placement Analyzer", "message": "Frontend not found. API is running."}


@app.get("/health", tags=["Health"])
async def health_check(session: AnalysisSession = Depends(get_session)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "credentials": len(session.pool),
        "run_status": session.run_status.value,
        "ai_model": settings.ai_model
    }
