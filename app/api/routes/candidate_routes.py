"""
Candidate Routes

GET /candidates/lists - Candidate lists from the recruiting platform
GET /candidates/lists/{list_id} - Candidate profiles in a list
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from app.services.candidate_service import CandidateSearchClient, get_candidate_client
from app.schemas.schemas import CandidateListResponse, CandidateSearchResponse

router = APIRouter(prefix="/candidates", tags=["Candidates"])


@router.get("/lists", response_model=CandidateListResponse)
async def get_candidate_lists(client: CandidateSearchClient = Depends(get_candidate_client)):
    lists = await run_in_threadpool(client.list_candidate_lists)
    return CandidateListResponse(lists=lists, total=len(lists))


@router.get("/lists/{list_id}", response_model=CandidateSearchResponse)
async def get_candidates(list_id: str, client: CandidateSearchClient = Depends(get_candidate_client)):
    candidates = await run_in_threadpool(client.fetch_candidates, list_id)
    return CandidateSearchResponse(candidates=candidates, total=len(candidates))
