"""
Placement Statistics - pure aggregation over processed records.

No AI calls and no state: compute_stats() is recomputed on demand from the
current result set, and feeds the report prompt, the stats API and the
stats CSV export.

Salary handling:
- Salaries are free text from the AI ("8-10 LPA", "12 LPA", "N/A")
- All numbers are extracted; one number is used as-is, two or more
  give the mean of the first two (a low-high range)
- No number means "Not Disclosed"
"""

import re
from typing import Dict, List, Optional, Sequence

from app.schemas.schemas import AggregateStats, ProcessedRecord, RecruiterCount

NOT_DISCLOSED = "Not Disclosed"

# Ordered; each bracket includes its upper bound
SALARY_BRACKETS = [
    ("Below 3 LPA", 3),
    ("3-5 LPA", 5),
    ("5-8 LPA", 8),
    ("8-12 LPA", 12),
    ("12-18 LPA", 18),
    ("18-25 LPA", 25),
    ("25+ LPA", None),
]

_NOT_PLACED_MARKERS = {"not placed", "n/a"}
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_DIGIT_GROUP_COMMA = re.compile(r"(?<=\d),(?=\d)")


def parse_salary_to_lpa(salary: Optional[str]) -> Optional[float]:
    """
    Parse a free-text salary into a single LPA figure.

    Examples:
        "8-10 LPA" -> 9.0
        "12 LPA"   -> 12.0
        "N/A"      -> None
    """
    if not salary or not isinstance(salary, str):
        return None

    # "8,00,000" is one number, not three
    numbers = _NUMBER.findall(_DIGIT_GROUP_COMMA.sub("", salary))
    if not numbers:
        return None
    if len(numbers) == 1:
        return float(numbers[0])
    return (float(numbers[0]) + float(numbers[1])) / 2


def salary_bracket(lpa: Optional[float]) -> str:
    """Histogram bucket for a parsed salary."""
    if lpa is None:
        return NOT_DISCLOSED
    if lpa < SALARY_BRACKETS[0][1]:
        return SALARY_BRACKETS[0][0]
    for label, upper in SALARY_BRACKETS[1:]:
        if upper is None or lpa <= upper:
            return label
    return SALARY_BRACKETS[-1][0]


def is_placed(record: ProcessedRecord) -> bool:
    company = (record.placement.placed_company or "").strip()
    return bool(company) and company.lower() not in _NOT_PLACED_MARKERS


def empty_brackets() -> Dict[str, int]:
    brackets = {label: 0 for label, _ in SALARY_BRACKETS}
    brackets[NOT_DISCLOSED] = 0
    return brackets


def format_lpa(lpa: Optional[float]) -> str:
    if lpa is None:
        return NOT_DISCLOSED
    return f"{lpa:.1f} LPA"


def compute_stats(records: Sequence[ProcessedRecord]) -> AggregateStats:
    """
    Summarize a processed result set.

    Returns:
        AggregateStats with placement rate (one decimal, as a string),
        recruiters sorted by hires (ties keep first-seen order) and the
        salary histogram.
    """
    total_students = len(records)
    placed = [r for r in records if is_placed(r)]
    total_placed = len(placed)

    if total_students > 0:
        placement_rate = f"{100 * total_placed / total_students:.1f}"
    else:
        placement_rate = "0.0"

    hires: Dict[str, int] = {}
    salaries: Dict[str, List[float]] = {}
    brackets = empty_brackets()

    for record in placed:
        company = record.placement.placed_company.strip()
        hires[company] = hires.get(company, 0) + 1

        lpa = parse_salary_to_lpa(record.placement.estimated_salary)
        brackets[salary_bracket(lpa)] += 1
        if lpa is not None:
            salaries.setdefault(company, []).append(lpa)

    recruiters = []
    # sorted() is stable, dicts keep insertion order
    for company, count in sorted(hires.items(), key=lambda item: -item[1]):
        known = salaries.get(company)
        average = round(sum(known) / len(known), 2) if known else None
        recruiters.append(RecruiterCount(
            company=company,
            hires=count,
            average_salary_lpa=average,
            salary_display=format_lpa(average),
        ))

    return AggregateStats(
        total_students=total_students,
        total_placed=total_placed,
        placement_rate=placement_rate,
        unique_companies_count=len(recruiters),
        recruiters=recruiters,
        salary_brackets=brackets,
    )
