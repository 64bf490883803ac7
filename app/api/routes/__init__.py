"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.credential_routes import router as credential_router
from app.api.routes.analysis_routes import router as analysis_router
from app.api.routes.report_routes import router as report_router
from app.api.routes.candidate_routes import router as candidate_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(credential_router)
api_router.include_router(analysis_router)
api_router.include_router(report_router)
api_router.include_router(candidate_router)
