"""
Module: session.diagnostics

Collects non-fatal scoring issues (malformed answer requirements, items
that cannot be scored) during a session. Issues are surfaced in the QA
review report so authors can fix the mark scheme.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class ScoringIssue:
    """A single scoring issue for one answer key."""
    answer_key: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"answerKey": self.answer_key, "message": self.message}

    def __str__(self) -> str:
        return f"{self.answer_key}: {self.message}"


class DiagnosticsCollector:
    """
    Collector for scoring issues.

    Repeated identical issues (the same key re-answered) are recorded once.
    """

    def __init__(self) -> None:
        self._issues: List[ScoringIssue] = []

    def add(self, answer_key: str, message: str) -> bool:
        """Record an issue. Returns False if it was already recorded."""
        issue = ScoringIssue(answer_key, message)
        if issue in self._issues:
            return False
        self._issues.append(issue)
        return True

    def clear(self) -> None:
        self._issues.clear()

    @property
    def issues(self) -> Tuple[ScoringIssue, ...]:
        return tuple(self._issues)

    def issue_count(self) -> int:
        return len(self._issues)

    def messages(self) -> List[str]:
        return [str(issue) for issue in self._issues]
