"""Grade band lookup for result percentages."""

from __future__ import annotations

from exam_toolkit.common.thresholds import GRADE_THRESHOLDS, GradeThresholds


def grade_for(percentage: float, thresholds: GradeThresholds = GRADE_THRESHOLDS) -> str:
    """
    Letter grade for a 0-100 percentage.

    Example:
        >>> grade_for(100.0), grade_for(79.9), grade_for(12.0)
        ('A+', 'B', 'F')
    """
    return thresholds.grade_for(percentage)
