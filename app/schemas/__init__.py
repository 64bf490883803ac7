"""
Schemas module - records, placement results and API request/response schemas.
"""

from app.schemas.schemas import (
    StudentRecord,
    ExperienceEntry,
    PlacementInfo,
    ProcessedRecord,
    ProgressState,
    AggregateStats,
    RunStatus,
)

__all__ = [
    "StudentRecord",
    "ExperienceEntry",
    "PlacementInfo",
    "ProcessedRecord",
    "ProgressState",
    "AggregateStats",
    "RunStatus",
]
