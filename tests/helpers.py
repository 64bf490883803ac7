"""
Test helpers for the placement pipeline tests.

FakeInference stands in for the AI service: every call is recorded, and
failures are scripted either per credential (a key that always fails) or
per call (a queue of outcomes consumed in order).
"""

from __future__ import annotations

from collections import deque

from app.schemas.schemas import PlacementInfo, ProcessedRecord, StudentRecord


# ---------------------------------------------------------------------------
# Fake inference collaborator
# ---------------------------------------------------------------------------

class FakeInference:
    """
    Scripted stand-in for InferenceClient.

    bad_keys: credential -> exception raised on every call with that key
    outcomes: queue consumed one per call; None = success, an exception
              instance = raise it, "short" = return one placement too few
    """

    def __init__(self, bad_keys=None, outcomes=None, report="# Placement Report: Executive Summary\n\nAll good."):
        self.bad_keys = dict(bad_keys or {})
        self.outcomes = deque(outcomes or [])
        self.report = report
        self.calls: list[tuple[str, list[str]]] = []
        self.report_calls: list[str] = []

    def _next_outcome(self, credential):
        if credential in self.bad_keys:
            raise self.bad_keys[credential]
        outcome = self.outcomes.popleft() if self.outcomes else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def analyze_batch(self, records, credential):
        self.calls.append((credential, [r.full_name for r in records]))
        outcome = self._next_outcome(credential)
        placements = [placement_for(r) for r in records]
        if outcome == "short":
            return placements[:-1]
        return placements

    def generate_report(self, prompt, credential):
        self.report_calls.append(credential)
        self._next_outcome(credential)
        return self.report


def placement_for(record: StudentRecord) -> PlacementInfo:
    """Deterministic placement; the role echoes the name to check ordering."""
    return PlacementInfo(
        placed_role=f"Engineer ({record.full_name})",
        placed_company="Acme Corp",
        estimated_salary="8-10 LPA",
    )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_records(n: int) -> list[StudentRecord]:
    return [
        StudentRecord(first_name=f"Student{i:02d}", last_name="Test", columns={
            "first_name": f"Student{i:02d}",
            "last_name": "Test",
        })
        for i in range(n)
    ]


def processed(company: str, salary: str = "8-10 LPA", role: str = "Engineer") -> ProcessedRecord:
    """One processed row with the given placement fields."""
    return ProcessedRecord(
        record=StudentRecord(first_name="A", last_name="B"),
        placement=PlacementInfo(placed_role=role, placed_company=company, estimated_salary=salary),
    )


SAMPLE_CSV = (
    "first_name,last_name,headline,education_school_1,education_date_1,"
    "experience_title_0,experience_company_0,experience_from_0,experience_to_0\n"
    "Priya,Sharma,Software Engineer,IIT Delhi,2022,SDE,TechCorp,2022-06,Present\n"
    "Rahul,Verma,Analyst,NIT Trichy,2023,Data Analyst,DataWorks,2023-07,Present\n"
    ",,,,,,,,\n"
    "OnlyFirst,,,,,,,,\n"
)
