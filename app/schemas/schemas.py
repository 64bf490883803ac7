"""
Pydantic Schemas - Records, placement results and API contracts.

All schemas in one file for simplicity.
"""

import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


NOT_AVAILABLE = "N/A"
ERROR_MARKER = "Error"

# Prompt payload limits
MAX_EXPERIENCES = 5
MAX_DESCRIPTION_CHARS = 150

_EXPERIENCE_COLUMN = re.compile(r"^experience_(title|company|description|from|to)_(\d+)$")


# ============================================================
# ENUMS
# ============================================================

class RunStatus(str, Enum):
    idle = "idle"
    running = "running"
    completed = "completed"
    aborted = "aborted"
    failed = "failed"


# ============================================================
# STUDENT RECORDS
# ============================================================

class ExperienceEntry(BaseModel):
    title: str = ""
    company: str = ""
    description: str = ""
    date_from: str = ""
    date_to: str = ""


class StudentRecord(BaseModel):
    """
    One roster row, normalized.

    Indexed CSV columns (experience_title_0, experience_company_0, ...) are
    folded into `experiences` here, so nothing downstream deals with dynamic
    keys. `columns` keeps the raw row for CSV export.
    """
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    headline: Optional[str] = None
    company: Optional[str] = None
    linkedin_url: Optional[str] = None
    resume: Optional[str] = None
    education_school: Optional[str] = None
    education_date: Optional[str] = None
    notes: Optional[str] = None
    experiences: List[ExperienceEntry] = []
    columns: Dict[str, str] = {}

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StudentRecord":
        """Build a record from a parsed CSV row (header -> cell)."""
        clean = {
            str(key).strip(): ("" if value is None else str(value).strip())
            for key, value in row.items()
            if key is not None
        }

        def opt(name: str) -> Optional[str]:
            return clean.get(name) or None

        grouped: Dict[int, Dict[str, str]] = {}
        for key, value in clean.items():
            match = _EXPERIENCE_COLUMN.match(key)
            if match:
                grouped.setdefault(int(match.group(2)), {})[match.group(1)] = value

        experiences = [
            ExperienceEntry(
                title=fields.get("title", ""),
                company=fields.get("company", ""),
                description=fields.get("description", ""),
                date_from=fields.get("from", ""),
                date_to=fields.get("to", ""),
            )
            for _, fields in sorted(grouped.items())
            if fields.get("title")
        ]

        return cls(
            first_name=clean.get("first_name", ""),
            last_name=clean.get("last_name", ""),
            email=opt("email"),
            location=opt("location"),
            industry=opt("industry"),
            headline=opt("headline"),
            company=opt("company"),
            linkedin_url=opt("linkedin_url"),
            resume=opt("resume"),
            education_school=opt("education_school_1"),
            education_date=opt("education_date_1"),
            notes=opt("notes"),
            experiences=experiences,
            columns=clean,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_name(self) -> bool:
        return bool(self.first_name and self.last_name)

    def to_prompt_dict(self) -> dict:
        """Concise profile sent to the AI service."""
        return {
            "name": self.full_name,
            "headline": self.headline or NOT_AVAILABLE,
            "education": self.education_school or NOT_AVAILABLE,
            "graduation_date": self.education_date or NOT_AVAILABLE,
            "experiences": [
                {
                    "title": exp.title or NOT_AVAILABLE,
                    "company": exp.company or NOT_AVAILABLE,
                    "description": exp.description[:MAX_DESCRIPTION_CHARS] or NOT_AVAILABLE,
                    "from": exp.date_from or NOT_AVAILABLE,
                    "to": exp.date_to or NOT_AVAILABLE,
                }
                for exp in self.experiences[:MAX_EXPERIENCES]
            ],
        }


# ============================================================
# PLACEMENT RESULTS
# ============================================================

class PlacementInfo(BaseModel):
    """AI-inferred first job. Aliases are the wire names of the AI response."""
    model_config = ConfigDict(populate_by_name=True)

    placed_role: str = Field(..., alias="placedRole")
    placed_company: str = Field(..., alias="placedCompany")
    estimated_salary: str = Field(..., alias="estimatedSalary")
    salary_justification: Optional[str] = Field(None, alias="salaryJustification")
    salary_confidence: Optional[str] = Field(None, alias="salaryConfidence")

    @field_validator(
        "placed_role", "placed_company", "estimated_salary",
        "salary_justification", "salary_confidence",
        mode="before"
    )
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        # the model sometimes answers "estimatedSalary": 12
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    def error(cls, reason: str = "Processing Error") -> "PlacementInfo":
        # Company stays N/A so an error never counts as a placement
        return cls(
            placed_role=ERROR_MARKER,
            placed_company=NOT_AVAILABLE,
            estimated_salary=ERROR_MARKER,
            salary_justification=reason,
        )

    @property
    def is_error(self) -> bool:
        return self.placed_role == ERROR_MARKER


class ProcessedRecord(BaseModel):
    record: StudentRecord
    placement: PlacementInfo

    def to_row(self) -> Dict[str, str]:
        """Original columns plus placement columns (placement wins on collision)."""
        row = dict(self.record.columns)
        row.update(self.placement.model_dump(by_alias=True))
        return {key: ("" if value is None else value) for key, value in row.items()}


# ============================================================
# PROGRESS & STATS
# ============================================================

class ProgressState(BaseModel):
    completed: int = Field(0, ge=0)
    total: int = Field(0, ge=0)


class RecruiterCount(BaseModel):
    company: str
    hires: int
    average_salary_lpa: Optional[float] = None
    salary_display: str = "Not Disclosed"


class AggregateStats(BaseModel):
    total_students: int
    total_placed: int
    placement_rate: str
    unique_companies_count: int
    recruiters: List[RecruiterCount] = []
    salary_brackets: Dict[str, int]


# ============================================================
# CREDENTIAL SCHEMAS
# ============================================================

class CredentialAdd(BaseModel):
    api_key: str = Field(..., min_length=1)

class CredentialReplace(BaseModel):
    api_keys: List[str]

class CredentialList(BaseModel):
    keys: List[str]
    active_index: int
    total: int


# ============================================================
# ANALYSIS SCHEMAS
# ============================================================

class RunStatusResponse(BaseModel):
    status: RunStatus
    progress: ProgressState
    processed: int
    error: Optional[str] = None
    filename: Optional[str] = None
    credential_index: int
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

class ResultRow(BaseModel):
    name: str
    linkedin_url: Optional[str] = None
    placed_role: str
    placed_company: str
    estimated_salary: str
    salary_justification: Optional[str] = None
    salary_confidence: Optional[str] = None

class ResultsResponse(BaseModel):
    results: List[ResultRow]
    total: int
    status: RunStatus


# ============================================================
# REPORT SCHEMAS
# ============================================================

class ReportResponse(BaseModel):
    markdown: str
    html: str
    generated_at: datetime


# ============================================================
# CANDIDATE SEARCH SCHEMAS
# ============================================================

class CandidateListInfo(BaseModel):
    id: str
    name: str

class CandidateListResponse(BaseModel):
    lists: List[CandidateListInfo]
    total: int

class CandidateResponse(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    title: Optional[str] = None
    location: Optional[str] = None
    linkedin_profile: Optional[str] = None
    picture: str

class CandidateSearchResponse(BaseModel):
    candidates: List[CandidateResponse]
    total: int


# ============================================================
# COMMON
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
