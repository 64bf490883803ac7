"""
Candidate Search Service - recruiting SaaS lookup.

Simple fetch, no retry, no shared state with the placement pipeline:
- GET {base}/lists                   -> [{"id", "name"}]
- GET {base}/lists/{list_id}/search  -> {"hits": {"hits": [{"_id", "_source": {...}}]}}
Bearer auth with settings.candidate_api_key.
"""

import logging
from typing import List
from urllib.parse import quote

import requests

from app.core.config import get_settings
from app.core.exceptions import CandidateSearchError
from app.schemas.schemas import CandidateListInfo, CandidateResponse

logger = logging.getLogger(__name__)

AVATAR_URL = "https://ui-avatars.com/api/?name={first}+{last}&background=random"


def to_candidate(hit: dict) -> CandidateResponse:
    """Flatten one search hit; missing pictures get a generated avatar."""
    source = hit.get("_source") or {}
    first = source.get("first_name") or ""
    last = source.get("last_name") or ""
    return CandidateResponse(
        id=str(hit.get("_id", "")),
        first_name=first,
        last_name=last,
        title=source.get("title"),
        location=source.get("location"),
        linkedin_profile=source.get("linkedin_profile"),
        picture=source.get("picture") or AVATAR_URL.format(first=quote(first), last=quote(last)),
    )


class CandidateSearchClient:

    def __init__(self, base_url: str = None, api_key: str = None, session: requests.Session = None):
        settings = get_settings()
        self.base_url = (base_url or settings.candidate_api_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.candidate_api_key
        self.timeout = settings.candidate_api_timeout_seconds
        self.session = session or requests.Session()

    def _get(self, path: str) -> dict:
        if not self.base_url:
            raise CandidateSearchError("Candidate search is not configured.")

        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self.session.get(f"{self.base_url}{path}", headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Candidate search request {path} failed: {e}")
            raise CandidateSearchError(f"Candidate search failed: {e}") from e
        except ValueError as e:
            raise CandidateSearchError("Candidate search returned invalid JSON.") from e

    def list_candidate_lists(self) -> List[CandidateListInfo]:
        data = self._get("/lists")
        items = data.get("lists", []) if isinstance(data, dict) else data
        return [
            CandidateListInfo(id=str(item.get("id")), name=item.get("name") or str(item.get("id")))
            for item in items or []
            if isinstance(item, dict) and item.get("id") is not None
        ]

    def fetch_candidates(self, list_id: str) -> List[CandidateResponse]:
        data = self._get(f"/lists/{quote(str(list_id), safe='')}/search")
        hits = data.get("hits", []) if isinstance(data, dict) else []
        # Elasticsearch-style {"hits": {"hits": [...]}} or a flat list
        if isinstance(hits, dict):
            hits = hits.get("hits", [])
        return [to_candidate(hit) for hit in hits if isinstance(hit, dict)]


def get_candidate_client() -> CandidateSearchClient:
    return CandidateSearchClient()
