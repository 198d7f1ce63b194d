"""
Module: session.state

Purpose:
    Mutable per-run session state plus the enums describing mode and
    lifecycle status. One SessionState belongs to one ExamSession; there is
    no process-wide session.

Key Classes:
    - SessionMode: practice / timed / review / qa
    - SessionStatus: idle / running / paused / submitted
    - SessionState: Current index, answers, flags, visitation, timing
    - SessionSnapshot: Frozen copy handed to collaborators

Used By:
    - session.engine.ExamSession
    - session.reports.SubmissionResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Set, Tuple

from exam_toolkit.core.models.submissions import UserAnswer

from .visitation import VisitationTracker


class SessionMode(str, Enum):
    PRACTICE = "practice"
    TIMED = "timed"
    REVIEW = "review"
    QA = "qa"

    def __str__(self) -> str:
        return self.value


class SessionStatus(str, Enum):
    """Lifecycle: IDLE -> RUNNING <-> PAUSED -> SUBMITTED."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    SUBMITTED = "submitted"

    def __str__(self) -> str:
        return self.value

    @property
    def in_progress(self) -> bool:
        return self in (SessionStatus.RUNNING, SessionStatus.PAUSED)


@dataclass
class SessionState:
    """
    Mutable state of one run through a paper.

    Attributes:
        mode: Session mode (fixed for the run)
        visitation: Visited top-level questions
        status: Lifecycle status
        current_index: Index of the displayed question
        answers: Answer map keyed by composite answer key
        flagged: Flagged question ids
        elapsed_seconds: Ticks counted in timed mode
        start_times: Clock reading when each question / item was first shown
        started_at: Clock reading at start()
        submitted_at: Clock reading at submission or review completion
    """

    mode: SessionMode
    visitation: VisitationTracker
    status: SessionStatus = SessionStatus.IDLE
    current_index: int = 0
    answers: Dict[str, UserAnswer] = field(default_factory=dict)
    flagged: Set[str] = field(default_factory=set)
    elapsed_seconds: int = 0
    start_times: Dict[str, float] = field(default_factory=dict)
    started_at: Optional[float] = None
    submitted_at: Optional[float] = None

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            mode=self.mode,
            status=self.status,
            current_index=self.current_index,
            answers=dict(self.answers),
            flagged=tuple(sorted(self.flagged)),
            visited=self.visitation.visited,
            elapsed_seconds=self.elapsed_seconds,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Frozen copy of SessionState at a point in time."""

    mode: SessionMode
    status: SessionStatus
    current_index: int
    answers: Dict[str, UserAnswer]
    flagged: Tuple[str, ...]
    visited: Tuple[str, ...]
    elapsed_seconds: int

    def to_dict(self) -> dict:
        return {
            "mode": str(self.mode),
            "status": str(self.status),
            "currentIndex": self.current_index,
            "answers": {key: answer.to_dict() for key, answer in self.answers.items()},
            "flaggedQuestions": list(self.flagged),
            "visitedQuestions": list(self.visited),
            "elapsedSeconds": self.elapsed_seconds,
        }
