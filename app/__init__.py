"""
AI Placement Analyzer
Infers students' first post-graduation jobs from a CSV roster with an AI
service, then aggregates placement statistics and a college report.

Architecture:
- Batch pipeline: fixed-size batches, one at a time, API key rotation
- Statistics: pure aggregation over processed rows
- Reports: AI narrative + CSV exports
"""

__version__ = "1.0.0"
__author__ = "Student"
