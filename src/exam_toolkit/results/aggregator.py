"""
Module: results.aggregator

Purpose:
    Derive post-submission statistics from a paper and its answer map.
    Stateless: the same inputs always produce the same ResultsSummary.

Key Functions:
    - aggregate_results(paper, answers): Build the ResultsSummary
    - classify(item, answer): correct / partial / incorrect / unattempted

Rollups:
    - by difficulty and topic (inherited from the nearest ancestor that sets
      them; leaves with neither are excluded)
    - by item type (always present)

Dependencies:
    - core.models (Paper, UserAnswer)
    - results.grades

Used By:
    - session.engine.ExamSession.submit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from exam_toolkit.core.models.items import AnswerableItem
from exam_toolkit.core.models.paper import Paper
from exam_toolkit.core.models.submissions import UserAnswer

from .grades import grade_for

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """Classification of one answerable leaf after submission."""
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"
    UNATTEMPTED = "unattempted"

    def __str__(self) -> str:
        return self.value


def classify(item: AnswerableItem, answer: Optional[UserAnswer]) -> Outcome:
    """Classify a leaf by its stored answer (missing or empty = unattempted)."""
    if answer is None or not answer.is_attempted:
        return Outcome.UNATTEMPTED
    if answer.is_correct:
        return Outcome.CORRECT
    if min(answer.marks_awarded, item.marks) > 0:
        return Outcome.PARTIAL
    return Outcome.INCORRECT


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Result Types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ItemOutcome:
    """Scored outcome of one answerable leaf."""

    key: str
    question_id: str
    outcome: Outcome
    marks: float
    earned_marks: float
    time_spent: int = 0

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "questionId": self.question_id,
            "outcome": str(self.outcome),
            "marks": self.marks,
            "earnedMarks": self.earned_marks,
            "timeSpent": self.time_spent,
        }


@dataclass(frozen=True, slots=True)
class RollupStats:
    """Counts and marks for one difficulty / topic / type bucket."""

    total: int = 0
    correct: int = 0
    partial: int = 0
    marks: float = 0.0
    earned_marks: float = 0.0

    @property
    def percentage(self) -> float:
        return _percent(self.earned_marks, self.marks)

    def add(self, outcome: ItemOutcome) -> RollupStats:
        """Return a new RollupStats including one more leaf."""
        return RollupStats(
            total=self.total + 1,
            correct=self.correct + (outcome.outcome is Outcome.CORRECT),
            partial=self.partial + (outcome.outcome is Outcome.PARTIAL),
            marks=self.marks + outcome.marks,
            earned_marks=self.earned_marks + outcome.earned_marks,
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "correct": self.correct,
            "partial": self.partial,
            "marks": self.marks,
            "earnedMarks": self.earned_marks,
            "percentage": self.percentage,
        }


@dataclass(frozen=True, slots=True)
class QuestionResult:
    """Marks for one top-level question, summed over its leaves."""

    question_id: str
    label: str
    marks: float
    earned_marks: float
    attempted: int
    leaf_count: int

    @property
    def percentage(self) -> float:
        return _percent(self.earned_marks, self.marks)

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "label": self.label,
            "marks": self.marks,
            "earnedMarks": self.earned_marks,
            "attempted": self.attempted,
            "leafCount": self.leaf_count,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class ResultsSummary:
    """
    Post-submission statistics (immutable).

    Attributes:
        total_marks: Marks available across all leaves
        earned_marks: Marks awarded, each leaf capped at its marks
        percentage: earned / total * 100 (0 when the paper carries no marks)
        accuracy: correct / attempted * 100 (0 when nothing was attempted)
        completion_rate: attempted / total leaves * 100
        grade: Letter grade for percentage
    """

    total_marks: float
    earned_marks: float
    percentage: float
    accuracy: float
    completion_rate: float
    grade: str
    total_items: int
    attempted: int
    correct: int
    partial: int
    incorrect: int
    unattempted: int
    by_difficulty: Dict[str, RollupStats] = field(default_factory=dict)
    by_topic: Dict[str, RollupStats] = field(default_factory=dict)
    by_type: Dict[str, RollupStats] = field(default_factory=dict)
    questions: Tuple[QuestionResult, ...] = ()
    items: Tuple[ItemOutcome, ...] = ()

    def to_dict(self) -> dict:
        return {
            "totalMarks": self.total_marks,
            "earnedMarks": self.earned_marks,
            "percentage": self.percentage,
            "accuracy": self.accuracy,
            "completionRate": self.completion_rate,
            "grade": self.grade,
            "totalItems": self.total_items,
            "attempted": self.attempted,
            "correct": self.correct,
            "partial": self.partial,
            "incorrect": self.incorrect,
            "unattempted": self.unattempted,
            "byDifficulty": {k: v.to_dict() for k, v in self.by_difficulty.items()},
            "byTopic": {k: v.to_dict() for k, v in self.by_topic.items()},
            "byType": {k: v.to_dict() for k, v in self.by_type.items()},
            "questions": [q.to_dict() for q in self.questions],
            "items": [i.to_dict() for i in self.items],
        }


# ─────────────────────────────────────────────────────────────────────────────
# Aggregation
# ─────────────────────────────────────────────────────────────────────────────

def aggregate_results(paper: Paper, answers: Mapping[str, UserAnswer]) -> ResultsSummary:
    """
    Aggregate an answer map into a ResultsSummary.

    Args:
        paper: The paper that was sat
        answers: Answer map keyed by composite answer key

    Returns:
        ResultsSummary. Keys that name no answerable item are ignored.

    Example:
        >>> summary = aggregate_results(paper, session.state.answers)
        >>> summary.grade
        'A+'
    """
    unknown = [key for key in answers if paper.entry_for_key(key) is None]
    if unknown:
        logger.warning(f"Paper {paper.id}: ignoring answers for unknown keys {unknown}")

    outcomes = []
    by_difficulty: Dict[str, RollupStats] = {}
    by_topic: Dict[str, RollupStats] = {}
    by_type: Dict[str, RollupStats] = {}

    for entry in paper.iter_answerable():
        answer = answers.get(entry.key)
        outcome = classify(entry.item, answer)
        earned = 0.0
        if outcome is not Outcome.UNATTEMPTED:
            earned = min(answer.marks_awarded, entry.item.marks)
        item_outcome = ItemOutcome(
            key=entry.key,
            question_id=entry.question.id,
            outcome=outcome,
            marks=entry.item.marks,
            earned_marks=earned,
            time_spent=answer.time_spent if answer is not None else 0,
        )
        outcomes.append(item_outcome)

        difficulty = entry.inherited("difficulty")
        if difficulty:
            _bump(by_difficulty, str(difficulty), item_outcome)
        topic = entry.inherited("topic")
        if topic:
            _bump(by_topic, topic, item_outcome)
        _bump(by_type, str(entry.item.type), item_outcome)

    questions = tuple(_question_result(q, outcomes) for q in paper.questions)

    counts = {o: 0 for o in Outcome}
    for item_outcome in outcomes:
        counts[item_outcome.outcome] += 1
    attempted = len(outcomes) - counts[Outcome.UNATTEMPTED]
    earned_marks = sum(o.earned_marks for o in outcomes)
    percentage = _percent(earned_marks, paper.total_marks)

    return ResultsSummary(
        total_marks=paper.total_marks,
        earned_marks=earned_marks,
        percentage=percentage,
        accuracy=_percent(counts[Outcome.CORRECT], attempted),
        completion_rate=_percent(attempted, len(outcomes)),
        grade=grade_for(percentage),
        total_items=len(outcomes),
        attempted=attempted,
        correct=counts[Outcome.CORRECT],
        partial=counts[Outcome.PARTIAL],
        incorrect=counts[Outcome.INCORRECT],
        unattempted=counts[Outcome.UNATTEMPTED],
        by_difficulty=by_difficulty,
        by_topic=by_topic,
        by_type=by_type,
        questions=questions,
        items=tuple(outcomes),
    )


def _bump(buckets: Dict[str, RollupStats], name: str, outcome: ItemOutcome) -> None:
    buckets[name] = buckets.get(name, RollupStats()).add(outcome)


def _question_result(question: AnswerableItem, outcomes: list) -> QuestionResult:
    own = [o for o in outcomes if o.question_id == question.id]
    return QuestionResult(
        question_id=question.id,
        label=question.label,
        marks=question.total_marks,
        earned_marks=sum(o.earned_marks for o in own),
        attempted=sum(1 for o in own if o.outcome is not Outcome.UNATTEMPTED),
        leaf_count=len(own),
    )
