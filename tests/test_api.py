"""
HTTP-level tests for the FastAPI app.

The application session is replaced through dependency_overrides with one
backed by FakeInference and a temporary credential file. TestClient runs
background tasks before returning, so an upload has finished by the time
the next request is made.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import CandidateSearchError, RateLimited
from app.main import app
from app.schemas.schemas import CandidateListInfo, CandidateResponse
from app.services.candidate_service import get_candidate_client
from app.services.credential_pool import CredentialPool
from app.services.session import AnalysisSession, get_session
from tests.helpers import FakeInference, SAMPLE_CSV


def _upload(client, text=SAMPLE_CSV, filename="roster.csv"):
    return client.post(
        "/api/analysis/upload",
        files={"file": (filename, text.encode("utf-8"), "text/csv")},
    )


@pytest.fixture
def make_session(credential_store):
    def build(keys=("key-one", "key-two"), inference=None, batch_size=15):
        return AnalysisSession(
            inference=inference or FakeInference(),
            store=credential_store,
            pool=CredentialPool(list(keys)),
            batch_size=batch_size,
            resume_cursor=False,
        )
    return build


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def client(session):
    app.dependency_overrides[get_session] = lambda: session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _client_for(session):
    app.dependency_overrides[get_session] = lambda: session
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["credentials"] == 2
    assert body["run_status"] == "idle"


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class TestCredentialRoutes:

    def test_list_is_masked(self, client):
        body = client.get("/api/credentials").json()
        assert body == {"keys": ["****-one", "****-two"], "active_index": 0, "total": 2}

    def test_add_persists(self, client, credential_store):
        response = client.post("/api/credentials", json={"api_key": " key-three "})
        assert response.status_code == 201
        assert response.json()["total"] == 3
        assert credential_store.load() == ["key-one", "key-two", "key-three"]

    def test_add_rejects_empty_key(self, client):
        assert client.post("/api/credentials", json={"api_key": ""}).status_code == 422

    def test_replace(self, client, credential_store):
        response = client.put("/api/credentials", json={"api_keys": ["new-key-1", "", "new-key-2"]})
        assert response.status_code == 200
        assert response.json()["total"] == 2
        assert credential_store.load() == ["new-key-1", "new-key-2"]

    def test_remove(self, client):
        response = client.delete("/api/credentials/0")
        assert response.status_code == 200
        assert response.json()["keys"] == ["****-two"]

    def test_remove_unknown_index(self, client):
        assert client.delete("/api/credentials/9").status_code == 404

    def test_changes_blocked_while_running(self, client, session):
        session._acquire()
        assert client.put("/api/credentials", json={"api_keys": ["x"]}).status_code == 409
        assert client.delete("/api/credentials/0").status_code == 409
        # appending is allowed so a stuck run can be resumed
        assert client.post("/api/credentials", json={"api_key": "key-three"}).status_code == 201


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

class TestAnalysisRoutes:

    def test_upload_runs_to_completion(self, client, session):
        response = _upload(client)
        assert response.status_code == 202
        assert response.json()["filename"] == "roster.csv"
        assert response.json()["progress"]["total"] == 2

        status = client.get("/api/analysis/status").json()
        assert status["status"] == "completed"
        assert status["progress"] == {"completed": 2, "total": 2}
        assert status["processed"] == 2
        assert status["error"] is None

        results = client.get("/api/analysis/results").json()
        assert results["total"] == 2
        assert [r["name"] for r in results["results"]] == ["Priya Sharma", "Rahul Verma"]
        assert results["results"][0]["placed_company"] == "Acme Corp"
        assert [c[0] for c in session.inference.calls] == ["key-one"]

    def test_results_csv(self, client):
        _upload(client)
        response = client.get("/api/analysis/results.csv")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="processed_roster.csv"' in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0].startswith("first_name,last_name,headline")
        assert "placedCompany" in lines[0]
        assert len(lines) == 3

    def test_results_csv_before_any_run(self, client):
        assert client.get("/api/analysis/results.csv").status_code == 404

    def test_rejects_non_csv(self, client):
        response = _upload(client, filename="roster.xlsx")
        assert response.status_code == 400

    def test_rejects_roster_without_names(self, client):
        response = _upload(client, text="first_name,last_name\nA,\n")
        assert response.status_code == 400
        assert response.json()["error"] == "InputInvalid"

    def test_rejects_run_without_credentials(self, make_session):
        client = _client_for(make_session(keys=()))
        response = _upload(client)
        assert response.status_code == 400
        assert response.json()["error"] == "CredentialMissing"

    def test_second_run_conflicts(self, client, session):
        session._acquire()
        response = _upload(client)
        assert response.status_code == 409
        assert response.json()["error"] == "RunInProgress"

    def test_abort_without_run(self, client):
        assert client.post("/api/analysis/abort").status_code == 400

    def test_abort_while_running(self, client, session):
        session._acquire()
        assert client.post("/api/analysis/abort").json()["success"] is True

    def test_abort_while_report_is_generated(self, client, session):
        session._acquire("report")
        assert client.post("/api/analysis/abort").status_code == 400
        assert client.put("/api/credentials", json={"api_keys": ["x"]}).status_code == 409

    def test_resume_with_nothing_left(self, client):
        _upload(client)
        response = client.post("/api/analysis/resume")
        assert response.status_code == 400
        assert response.json()["detail"] == "Nothing left to resume."

    def test_exhausted_run_resumes_after_adding_a_key(self, make_session):
        inference = FakeInference(bad_keys={"key-one": RateLimited()})
        session = make_session(keys=("key-one",), inference=inference, batch_size=1)
        client = _client_for(session)

        _upload(client)
        status = client.get("/api/analysis/status").json()
        assert status["status"] == "failed"
        assert status["processed"] == 0
        assert "All configured API keys failed" in status["error"]

        client.post("/api/credentials", json={"api_key": "key-two"})
        response = client.post("/api/analysis/resume")
        assert response.status_code == 202

        status = client.get("/api/analysis/status").json()
        assert status["status"] == "completed"
        assert status["processed"] == 2
        assert status["credential_index"] == 1


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class TestReportRoutes:

    def test_stats_before_any_run(self, client):
        body = client.get("/api/reports/stats").json()
        assert body["total_students"] == 0
        assert body["placement_rate"] == "0.0"

    def test_stats_after_run(self, client):
        _upload(client)
        body = client.get("/api/reports/stats").json()
        assert body["total_placed"] == 2
        assert body["placement_rate"] == "100.0"
        assert body["recruiters"][0]["company"] == "Acme Corp"
        assert body["salary_brackets"]["8-12 LPA"] == 2

    def test_stats_csv(self, client):
        assert client.get("/api/reports/stats.csv").status_code == 404
        _upload(client)
        response = client.get("/api/reports/stats.csv")
        assert response.status_code == 200
        assert response.text.startswith("Key Placement Statistics\nStat,Value\n")

    def test_generate_requires_results(self, client):
        assert client.post("/api/reports/generate").status_code == 404

    def test_generate_and_fetch_latest(self, client, session):
        assert client.get("/api/reports/latest").status_code == 404

        _upload(client)
        response = client.post("/api/reports/generate")
        assert response.status_code == 200
        body = response.json()
        assert body["markdown"].startswith("# Placement Report")
        assert "<h1>Placement Report: Executive Summary</h1>" in body["html"]
        assert session.inference.report_calls == ["key-one"]

        latest = client.get("/api/reports/latest").json()
        assert latest["markdown"] == body["markdown"]

        download = client.get("/api/reports/latest.md")
        assert download.status_code == 200
        assert download.text == body["markdown"]

    def test_generate_with_exhausted_keys(self, make_session):
        inference = FakeInference()
        session = make_session(inference=inference)
        client = _client_for(session)
        _upload(client)

        inference.bad_keys = {"key-one": RateLimited(), "key-two": RateLimited()}
        response = client.post("/api/reports/generate")
        assert response.status_code == 502
        assert response.json()["error"] == "CredentialsExhausted"


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------

class FakeCandidateClient:

    def __init__(self, error=None):
        self.error = error

    def list_candidate_lists(self):
        if self.error:
            raise self.error
        return [CandidateListInfo(id="1", name="Batch 2023")]

    def fetch_candidates(self, list_id):
        if self.error:
            raise self.error
        return [CandidateResponse(id=f"{list_id}-a", first_name="Priya", picture="https://img.example.test/p.png")]


class TestCandidateRoutes:

    def test_lists(self, client):
        app.dependency_overrides[get_candidate_client] = lambda: FakeCandidateClient()
        body = client.get("/api/candidates/lists").json()
        assert body == {"lists": [{"id": "1", "name": "Batch 2023"}], "total": 1}

    def test_candidates(self, client):
        app.dependency_overrides[get_candidate_client] = lambda: FakeCandidateClient()
        body = client.get("/api/candidates/lists/7").json()
        assert body["total"] == 1
        assert body["candidates"][0]["id"] == "7-a"

    def test_upstream_failure(self, client):
        app.dependency_overrides[get_candidate_client] = lambda: FakeCandidateClient(CandidateSearchError())
        response = client.get("/api/candidates/lists")
        assert response.status_code == 502
        assert response.json()["detail"] == "Candidate search failed."
