"""
College Report Service

- ReportOrchestrator: one narrative report from the AI service, rotating
  credentials exactly like the batch pipeline (single request per key)
- build_stats_csv: the three stacked tables of the stats download
"""

import io
import logging
from typing import Sequence

import pandas as pd

from app.core.exceptions import InputInvalid
from app.schemas.schemas import AggregateStats, ProcessedRecord
from app.services.credential_pool import CredentialPool, call_with_rotation
from app.services.stats_service import compute_stats

logger = logging.getLogger(__name__)


def build_report_prompt(stats: AggregateStats) -> str:
    """Prompt with the computed numbers baked in; the AI only writes prose."""
    recruiters_table = "\n".join(
        f"| {r.company} | {r.hires} | {r.salary_display} |" for r in stats.recruiters
    )
    salary_table = "\n".join(
        f"| {bracket} | {count} |" for bracket, count in stats.salary_brackets.items()
    )

    return f"""Based on the provided statistics, generate a comprehensive and well-structured college placement report in Markdown format.

Follow this structure precisely:

# Placement Report: Executive Summary
(Provide a brief, insightful paragraph summarizing the key takeaways from the placement season.)

## Key Placement Statistics
(Present the following stats clearly. You can use a list or a table.)
- Total Students Analyzed: {stats.total_students}
- Total Students Placed: {stats.total_placed}
- Placement Rate: {stats.placement_rate}%
- Number of Companies Recruiting: {stats.unique_companies_count}

## Recruiter Participation
(Provide a brief introductory sentence, then present the full list of companies in a markdown table, sorted with the company that hired the most at the top.)

**All Recruiting Companies:**
| Company | Number of Hires | Average Salary |
|---|---|---|
{recruiters_table}

## Salary Insights
(Provide a brief introductory sentence, then present the salary distribution in a markdown table.)

**Salary Distribution:**
| Salary Bracket (LPA) | Number of Students |
|---|---|
{salary_table}

## Concluding Remarks
(Write a concluding paragraph summarizing the overall success of the placements and any potential areas for future focus.)
"""


class ReportOrchestrator:
    """
    Usage:
        orchestrator = ReportOrchestrator(get_inference_client(), pool)
        markdown = orchestrator.generate(results)
    """

    def __init__(self, inference, pool: CredentialPool):
        self.inference = inference
        self.pool = pool

    def generate(self, records: Sequence[ProcessedRecord]) -> str:
        """
        Raises:
            InputInvalid: nothing processed yet
            CredentialMissing / CredentialsExhausted: no usable key
            TransportFailure / InferenceFailure: service error (not retried)
        """
        if not records:
            raise InputInvalid("No processed data available to generate a report.")

        stats = compute_stats(records)
        prompt = build_report_prompt(stats)
        logger.info(
            f"Generating report for {stats.total_students} students "
            f"(credential {self.pool.index + 1}/{len(self.pool)})"
        )
        return call_with_rotation(
            self.pool,
            lambda credential: self.inference.generate_report(prompt, credential),
            what="Report generation"
        )


def build_stats_csv(stats: AggregateStats) -> str:
    """
    Three tables stacked in one CSV:
    Key Placement Statistics / Recruiter Details / Salary Distribution
    """
    key_stats = pd.DataFrame([
        {"Stat": "Total Students Analyzed", "Value": stats.total_students},
        {"Stat": "Total Students Placed", "Value": stats.total_placed},
        {"Stat": "Placement Rate (%)", "Value": stats.placement_rate},
        {"Stat": "Number of Companies Recruiting", "Value": stats.unique_companies_count},
    ])
    recruiters = pd.DataFrame(
        [
            {
                "Company": r.company,
                "Number of Hires": r.hires,
                "Average Salary": r.salary_display,
            }
            for r in stats.recruiters
        ],
        columns=["Company", "Number of Hires", "Average Salary"]
    )
    salaries = pd.DataFrame(
        [
            {"Salary Bracket (LPA)": bracket, "Number of Students": count}
            for bracket, count in stats.salary_brackets.items()
        ]
    )

    buffer = io.StringIO()
    sections = [
        ("Key Placement Statistics", key_stats),
        ("Recruiter Details", recruiters),
        ("Salary Distribution", salaries),
    ]
    for i, (title, frame) in enumerate(sections):
        if i:
            buffer.write("\n")
        buffer.write(f"{title}\n")
        frame.to_csv(buffer, index=False, lineterminator="\n")
    return buffer.getvalue()
