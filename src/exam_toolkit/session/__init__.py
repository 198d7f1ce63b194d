"""
Session Package

The exam session state machine, its configuration, visitation tracking
and the reports it produces.

Usage:
    from exam_toolkit.session import ExamSession, SessionConfig, SessionMode

    session = ExamSession(paper, SessionConfig(mode=SessionMode.TIMED, duration_seconds=600))
    session.start()
    session.answer("q1", "B")
    result = session.submit()
"""

from .config import SessionConfig
from .diagnostics import DiagnosticsCollector, ScoringIssue
from .engine import (
    EXIT_IN_PROGRESS_MESSAGE,
    EXIT_QA_INCOMPLETE_MESSAGE,
    EXIT_QA_UNVISITED_MESSAGE,
    ExamSession,
)
from .reports import REVIEW_INCOMPLETE_MESSAGE, QAReviewReport, ReviewBlocked, SubmissionResult
from .state import SessionMode, SessionSnapshot, SessionState, SessionStatus
from .visitation import VisitationTracker

__all__ = [
    "SessionConfig",
    "DiagnosticsCollector",
    "ScoringIssue",
    "EXIT_IN_PROGRESS_MESSAGE",
    "EXIT_QA_INCOMPLETE_MESSAGE",
    "EXIT_QA_UNVISITED_MESSAGE",
    "ExamSession",
    "REVIEW_INCOMPLETE_MESSAGE",
    "QAReviewReport",
    "ReviewBlocked",
    "SubmissionResult",
    "SessionMode",
    "SessionSnapshot",
    "SessionState",
    "SessionStatus",
    "VisitationTracker",
]
