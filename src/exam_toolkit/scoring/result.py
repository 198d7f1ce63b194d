"""
Module: scoring.result

Purpose:
    ValidationResult - the output of the scoring engine for one
    (item, value) pair.

Dependencies:
    - dataclasses (std)
    - core.models.submissions.PartialCredit

Used By:
    - scoring.engine
    - session.engine (turns results into UserAnswer records)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from exam_toolkit.core.models.submissions import PartialCredit


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """
    Score for one submitted value (immutable).

    Attributes:
        is_correct: True only for full credit
        score: Fraction of the item's marks earned, 0..1
        partial_credit: Credited components (earned in marks)
        feedback: Candidate-facing feedback lines
        warnings: Non-fatal data problems found while scoring

    Invariants:
        - 0 <= score <= 1
        - is_correct implies score == 1
    """

    is_correct: bool
    score: float
    partial_credit: Tuple[PartialCredit, ...] = ()
    feedback: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within 0..1: {self.score}")
        if self.is_correct and self.score != 1.0:
            raise ValueError("is_correct requires a score of 1")

    def marks_awarded(self, marks: float) -> float:
        """Marks earned for an item worth `marks`, never above `marks`."""
        return min(marks, self.score * marks)

    @property
    def is_partial(self) -> bool:
        return 0.0 < self.score < 1.0
