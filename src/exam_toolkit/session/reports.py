"""
Module: session.reports

Purpose:
    Outbound value objects produced by a session: the submission result,
    the QA review report and the rejection returned when a QA review is
    completed too early.

Key Classes:
    - SubmissionResult: Snapshot + ResultsSummary handed to result sinks
    - QAReviewReport: Structured QA completion report
    - ReviewBlocked: Rejection for a guarded precondition
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Tuple

from exam_toolkit.results.aggregator import ResultsSummary

from .state import SessionSnapshot

REVIEW_INCOMPLETE_MESSAGE = "Review each question before completing the QA review."
REVIEW_WRONG_MODE_MESSAGE = "QA review can only be completed in QA mode."
REVIEW_CLOSED_MESSAGE = "This QA review has already been completed."


@dataclass(frozen=True)
class ReviewBlocked:
    """
    Rejection of complete_review(). Not an error: the session is unchanged.

    Attributes:
        message: User-facing explanation
        remaining: Question ids still to be visited
    """

    message: str
    remaining: Tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class SubmissionResult:
    """Everything a results presenter needs after an ordinary submission."""

    snapshot: SessionSnapshot
    summary: ResultsSummary

    def to_dict(self) -> dict:
        return {"session": self.snapshot.to_dict(), "results": self.summary.to_dict()}


@dataclass(frozen=True)
class QAReviewReport:
    """
    Report produced when a QA review is completed.

    Attributes:
        completed_at: Completion timestamp (timezone-aware)
        flagged_questions: Flagged question ids, paper order
        question_times: Longest time spent on any item of each answered question
        score: Percentage of questions answered, rounded
        time_elapsed: Seconds spent in the review
        answered_count: Questions with at least one attempted item
        total_questions: Questions in the paper
        visited_questions: Visited ids in visit order
        issues: Scoring problems found while reviewing
        recommendations: Follow-ups for the paper author
    """

    completed_at: datetime
    flagged_questions: Tuple[str, ...]
    question_times: Dict[str, int]
    score: int
    time_elapsed: int
    answered_count: int
    total_questions: int
    visited_questions: Tuple[str, ...]
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "completed": True,
            "completedAt": self.completed_at.isoformat(),
            "mode": "qa_review",
            "flaggedQuestions": list(self.flagged_questions),
            "questionTimes": dict(self.question_times),
            "score": self.score,
            "timeElapsed": self.time_elapsed,
            "answeredCount": self.answered_count,
            "totalQuestions": self.total_questions,
            "visitedQuestions": list(self.visited_questions),
            "issues": list(self.issues),
            "recommendations": list(self.recommendations),
        }
