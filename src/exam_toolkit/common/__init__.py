"""Common utilities shared across the toolkit."""

from __future__ import annotations

from .thresholds import (
    GRADE_THRESHOLDS,
    MEASUREMENT_THRESHOLDS,
    NOTATION_VARIANTS,
    PHRASING_STOPWORDS,
    UNIT_SYNONYMS,
    GradeThresholds,
    MeasurementThresholds,
)

__all__ = [
    "GRADE_THRESHOLDS",
    "MEASUREMENT_THRESHOLDS",
    "NOTATION_VARIANTS",
    "PHRASING_STOPWORDS",
    "UNIT_SYNONYMS",
    "GradeThresholds",
    "MeasurementThresholds",
]
