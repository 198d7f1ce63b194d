"""
Scoring Package

Pure answer validation with multi-alternative answers and partial credit.

Usage:
    from exam_toolkit.scoring import validate, ScoringConfig

    result = validate(item, SubmittedValue.from_text("Paris"))
    marks = result.marks_awarded(item.marks)
"""

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .engine import validate
from .normalize import answers_match, normalize_answer
from .result import ValidationResult

__all__ = [
    "DEFAULT_SCORING_CONFIG",
    "ScoringConfig",
    "ValidationResult",
    "answers_match",
    "normalize_answer",
    "validate",
]
