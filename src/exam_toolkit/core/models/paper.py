"""
Module: paper

Purpose:
    Provides the Paper dataclass - the read-only input of a session. Holds
    the ordered top-level questions and resolves composite answer keys to
    answerable leaves.

Key Functions:
    - Paper.total_marks: Cached property, always calculated from leaves
    - Paper.iter_answerable(): Yield (key, leaf, path) for every leaf
    - Paper.resolve(question_id, part_id, subpart_id): Find an answerable leaf
    - Paper.item_for_key(key): Look up a leaf by composite key

Dependencies:
    - dataclasses (std)
    - functools (std)
    - .items.AnswerableItem
    - .submissions.answer_key

Used By:
    - session.engine.ExamSession
    - results.aggregator.aggregate_results
    - core.utils.serialization
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterator, NamedTuple, Optional, Tuple

from .items import AnswerableItem, Attachment, ItemLevel
from .submissions import answer_key

logger = logging.getLogger(__name__)


class AnswerableEntry(NamedTuple):
    """An answerable leaf together with its key and root-to-leaf path."""
    key: str
    item: AnswerableItem
    path: Tuple[AnswerableItem, ...]

    @property
    def question(self) -> AnswerableItem:
        return self.path[0]

    def inherited(self, attribute: str):
        """
        Nearest non-empty value of an attribute walking leaf -> question.

        Used for topic/difficulty, which authors often set only on the
        question.
        """
        for node in reversed(self.path):
            value = getattr(node, attribute)
            if value:
                return value
        return None


@dataclass(frozen=True)
class Paper:
    """
    Complete exam paper (immutable).

    Attributes:
        id: Paper identifier
        code: Paper code like "0620/12/M/J/2024"
        subject: Subject name
        questions: Ordered top-level questions
        duration_minutes: Time allowed, None for untimed papers
        declared_total_marks: Total stated by the source (checked, not trusted)
        attachments: Display-only paper-level attachments

    Invariants:
        - Every entry in questions is a QUESTION-level item
        - Question ids are unique
        - total_marks is always calculated from leaves
    """

    id: str
    code: str
    subject: str
    questions: Tuple[AnswerableItem, ...]
    duration_minutes: Optional[float] = None
    declared_total_marks: Optional[float] = None
    attachments: Tuple[Attachment, ...] = ()

    def __post_init__(self) -> None:
        """Validate paper on construction."""
        seen = set()
        for question in self.questions:
            if question.kind is not ItemLevel.QUESTION:
                raise ValueError(f"Top-level item {question.id} must be a question, got {question.kind}")
            if question.id in seen:
                raise ValueError(f"Duplicate question id {question.id!r} in paper {self.id}")
            seen.add(question.id)

        keys = set()
        for question in self.questions:
            for path in question.iter_leaf_paths():
                key = answer_key(*(node.id for node in path))
                if key in keys:
                    raise ValueError(
                        f"Paper {self.id}: answer key {key!r} is produced by more than one item"
                    )
                keys.add(key)

        if (
            self.declared_total_marks is not None
            and abs(self.declared_total_marks - self.total_marks) > 1e-9
        ):
            logger.warning(
                f"Paper {self.id}: declared total {self.declared_total_marks} "
                f"does not match calculated total {self.total_marks}; using calculated"
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Calculated Properties (NEVER stored)
    # ─────────────────────────────────────────────────────────────────────────

    @cached_property
    def total_marks(self) -> float:
        return sum(q.total_marks for q in self.questions)

    @cached_property
    def question_ids(self) -> Tuple[str, ...]:
        return tuple(q.id for q in self.questions)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def duration_seconds(self) -> Optional[int]:
        if self.duration_minutes is None:
            return None
        return int(self.duration_minutes * 60)

    @cached_property
    def _entries(self) -> Dict[str, AnswerableEntry]:
        entries: Dict[str, AnswerableEntry] = {}
        for question in self.questions:
            for path in question.iter_leaf_paths():
                ids = [node.id for node in path]
                key = answer_key(*ids)
                entries[key] = AnswerableEntry(key, path[-1], path)
        return entries

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def iter_answerable(self) -> Iterator[AnswerableEntry]:
        """Yield every answerable leaf in paper order."""
        yield from self._entries.values()

    def get_question(self, question_id: str) -> Optional[AnswerableItem]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def index_of(self, question_id: str) -> Optional[int]:
        try:
            return self.question_ids.index(question_id)
        except ValueError:
            return None

    def resolve(
        self,
        question_id: str,
        part_id: Optional[str] = None,
        subpart_id: Optional[str] = None,
    ) -> Optional[AnswerableItem]:
        """
        Resolve ids to an answerable leaf.

        Returns None when the ids name no item, or name a node that has
        children (a question with parts is never itself answerable).
        """
        if subpart_id is not None and part_id is None:
            return None
        entry = self._entries.get(answer_key(question_id, part_id, subpart_id))
        return entry.item if entry else None

    def entry_for_key(self, key: str) -> Optional[AnswerableEntry]:
        return self._entries.get(key)

    def item_for_key(self, key: str) -> Optional[AnswerableItem]:
        entry = self._entries.get(key)
        return entry.item if entry else None

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "code": self.code,
            "subject": self.subject,
            "questions": [q.to_dict() for q in self.questions],
        }
        if self.duration_minutes is not None:
            d["duration_minutes"] = self.duration_minutes
        if self.declared_total_marks is not None:
            d["total_marks"] = self.declared_total_marks
        if self.attachments:
            d["attachments"] = [a.to_dict() for a in self.attachments]
        return d

    def __repr__(self) -> str:
        return (
            f"Paper({self.id!r}, code={self.code!r}, "
            f"questions={self.question_count}, marks={self.total_marks})"
        )
