"""
Module: session.visitation

Purpose:
    Tracks which top-level questions have been displayed at least once.
    Drives QA completeness: a QA review can only be completed once every
    question has been visited.

Key Classes:
    - VisitationTracker: Monotonic, insertion-ordered visited set

Used By:
    - session.engine.ExamSession
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class VisitationTracker:
    """
    Insertion-ordered set of visited question ids.

    The set only grows until reset. Ids that are not top-level questions
    of the paper are ignored.

    Example:
        >>> tracker = VisitationTracker(["q1", "q2"])
        >>> tracker.visit("q1")
        True
        >>> tracker.is_complete
        False
    """

    def __init__(self, question_ids: Sequence[str]) -> None:
        self._question_ids: Tuple[str, ...] = tuple(question_ids)
        self._known = frozenset(self._question_ids)
        self._visited: Dict[str, None] = {}

    def visit(self, question_id: str) -> bool:
        """
        Mark a question visited.

        Returns:
            True if the id is a known question (already visited or not)
        """
        if question_id not in self._known:
            logger.debug(f"Ignoring visit to unknown question {question_id!r}")
            return False
        self._visited.setdefault(question_id, None)
        return True

    def reset(self, first: Optional[str] = None) -> None:
        """Clear the set, optionally seeding it with the first question."""
        self._visited.clear()
        if first is not None:
            self.visit(first)

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def visited(self) -> Tuple[str, ...]:
        """Visited ids in the order they were first visited."""
        return tuple(self._visited)

    @property
    def total(self) -> int:
        return len(self._question_ids)

    @property
    def is_complete(self) -> bool:
        return len(self._visited) == self.total

    @property
    def remaining(self) -> Tuple[str, ...]:
        """Unvisited ids in paper order."""
        return tuple(qid for qid in self._question_ids if qid not in self._visited)

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._visited

    def __len__(self) -> int:
        return len(self._visited)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._visited))

    def __repr__(self) -> str:
        return f"VisitationTracker({len(self)}/{self.total} visited)"
