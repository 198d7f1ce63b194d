"""
Results Package

Stateless post-submission aggregation: totals, accuracy, completion rate,
grade and rollups by difficulty, topic and type.
"""

from .aggregator import (
    ItemOutcome,
    Outcome,
    QuestionResult,
    ResultsSummary,
    RollupStats,
    aggregate_results,
    classify,
)
from .grades import grade_for

__all__ = [
    "ItemOutcome",
    "Outcome",
    "QuestionResult",
    "ResultsSummary",
    "RollupStats",
    "aggregate_results",
    "classify",
    "grade_for",
]
