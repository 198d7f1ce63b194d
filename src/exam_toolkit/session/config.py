"""
Module: session.config

Purpose:
    Configuration dataclass for an exam session.

Key Classes:
    - SessionConfig: Mode, duration override, scoring leniency, tick interval

Used By:
    - session.engine.ExamSession
    - gui.session_controller.SessionController (tick_interval_ms)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from exam_toolkit.core.models.paper import Paper
from exam_toolkit.scoring.config import DEFAULT_SCORING_CONFIG, ScoringConfig

from .state import SessionMode


@dataclass(frozen=True)
class SessionConfig:
    """
    Configuration for one session (immutable).

    Attributes:
        mode: Session mode
        duration_seconds: Time limit override; None uses the paper's duration
        scoring: Scoring leniency passed to every validate() call
        tick_interval_ms: Host timer interval driving tick()

    Note:
        A non-positive duration is accepted and means untimed: auto-submit
        is disabled rather than failing.

    Example:
        >>> config = SessionConfig(mode=SessionMode.TIMED, duration_seconds=600)
        >>> config.effective_duration(paper)
        600
    """

    mode: SessionMode = SessionMode.PRACTICE
    duration_seconds: Optional[int] = None
    scoring: ScoringConfig = DEFAULT_SCORING_CONFIG
    tick_interval_ms: int = 1000

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not isinstance(self.mode, SessionMode):
            object.__setattr__(self, "mode", SessionMode(self.mode))
        if self.tick_interval_ms <= 0:
            raise ValueError(f"tick_interval_ms must be positive: {self.tick_interval_ms}")

    @property
    def is_timed(self) -> bool:
        return self.mode is SessionMode.TIMED

    def effective_duration(self, paper: Paper) -> Optional[int]:
        """
        Time limit in seconds, or None when the session is untimed.

        Only TIMED sessions have a limit. The config override wins over the
        paper's duration; zero or negative values mean untimed.
        """
        if not self.is_timed:
            return None
        duration = self.duration_seconds
        if duration is None:
            duration = paper.duration_seconds
        if duration is None or duration <= 0:
            return None
        return int(duration)
