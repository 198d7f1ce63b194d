"""
Module: items

Purpose:
    Provides AnswerableItem - the single recursive tree node used for
    questions, parts and subparts. A node without children is directly
    answerable; a node with children is answered only through them.

Key Functions:
    - AnswerableItem.iter_leaves(): Iterate over answerable leaves
    - AnswerableItem.iter_all(): Iterate over all nodes in tree order
    - AnswerableItem.find(item_id): Find a descendant by id
    - AnswerableItem.total_marks: Property calculating marks from leaves
    - AnswerableItem.to_dict(): Serialization

Dependencies:
    - dataclasses (std)
    - .options.Option
    - .answers.CorrectAnswer, AnswerRequirement

Used By:
    - core.models.paper.Paper
    - scoring.engine.validate
    - results.aggregator

Design Note:
    Question, part and subpart share one type so scoring is written once.
    The level is carried by ItemLevel; nesting deeper than subpart is
    rejected on construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

from .answers import AnswerRequirement, CorrectAnswer
from .options import Option


class ItemLevel(str, Enum):
    """Position of a node in the question hierarchy."""
    QUESTION = "question"  # Top-level question (e.g., "1")
    PART = "part"          # Part of a question (e.g., "(a)")
    SUBPART = "subpart"    # Subpart of a part (e.g., "(i)")

    def __str__(self) -> str:
        return self.value

    @property
    def child_level(self) -> Optional[ItemLevel]:
        if self is ItemLevel.QUESTION:
            return ItemLevel.PART
        if self is ItemLevel.PART:
            return ItemLevel.SUBPART
        return None


class ItemType(str, Enum):
    """How an item is answered."""
    MCQ = "mcq"
    TRUE_FALSE = "true_false"
    DESCRIPTIVE = "descriptive"

    def __str__(self) -> str:
        return self.value


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Attachment:
    """Already-resolved attachment, carried for display only."""

    id: str
    url: str
    type: str = ""
    name: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "url": self.url, "type": self.type, "name": self.name}


@dataclass(frozen=True, slots=True)
class AnswerableItem:
    """
    Question, part or subpart node (immutable tree structure).

    The tree structure is:
        Question ("1")
        ├── Part ("(a)")
        │   ├── Subpart ("(i)")  [answerable]
        │   └── Subpart ("(ii)") [answerable]
        └── Part ("(b)")         [answerable if no subparts]

    Attributes:
        id: Identifier, unique among siblings
        label: Ordinal label like "1", "(a)", "(ii)"
        kind: QUESTION, PART or SUBPART
        marks: Marks available (for a leaf, must be positive)
        type: mcq, true_false or descriptive
        text: Descriptive question text
        difficulty: Optional difficulty rating
        topic: Optional topic name
        unit_name: Optional syllabus unit name
        subtopics: Optional subtopic names
        options: Choices for mcq/true_false items, ordered by position
        correct_answers: Acceptable alternatives
        answer_requirement: How alternatives combine (None = single answer)
        answer_format: Free-form format hint from the authoring tool
        hint: Optional hint text
        explanation: Optional worked explanation
        requires_manual_marking: Flag for reviewer attention
        marking_criteria: Optional marking guidance text
        attachments: Display-only attachments
        children: Child nodes (parts of a question, subparts of a part)

    Invariants:
        - Children are exactly one level below this node
        - Subparts have no children
        - Leaf marks > 0
        - Sibling ids are unique
    """

    id: str
    label: str
    kind: ItemLevel
    marks: float
    type: ItemType = ItemType.DESCRIPTIVE
    text: str = ""
    difficulty: Optional[Difficulty] = None
    topic: Optional[str] = None
    unit_name: Optional[str] = None
    subtopics: Tuple[str, ...] = ()
    options: Tuple[Option, ...] = ()
    correct_answers: Tuple[CorrectAnswer, ...] = ()
    answer_requirement: Optional[AnswerRequirement] = None
    answer_format: Optional[str] = None
    hint: Optional[str] = None
    explanation: Optional[str] = None
    requires_manual_marking: bool = False
    marking_criteria: Optional[str] = None
    attachments: Tuple[Attachment, ...] = ()
    children: Tuple[AnswerableItem, ...] = ()

    def __post_init__(self) -> None:
        """Validate item tree on construction."""
        if not self.id:
            raise ValueError("Item id must not be empty")
        if self.marks < 0:
            raise ValueError(f"Marks cannot be negative for {self.id}: {self.marks}")
        if not self.children and self.marks <= 0:
            raise ValueError(f"Answerable item {self.id} must carry positive marks")

        expected = self.kind.child_level
        seen = set()
        for child in self.children:
            if expected is None or child.kind is not expected:
                raise ValueError(
                    f"{self.kind} {self.id} cannot contain a {child.kind} ({child.id})"
                )
            if child.id in seen:
                raise ValueError(f"Duplicate child id {child.id!r} under {self.id}")
            seen.add(child.id)

        positions = [opt.position for opt in self.options]
        if positions != sorted(positions):
            raise ValueError(f"Options of {self.id} must be ordered by position")

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_leaf(self) -> bool:
        """A leaf is directly answerable."""
        return len(self.children) == 0

    @property
    def total_marks(self) -> float:
        """
        Marks available for this node and all descendants.

        **IMPORTANT:** Parent marks are ALWAYS calculated from leaves, so a
        stale stored total on a parent can never leak into results.
        """
        if self.is_leaf:
            return self.marks
        return sum(child.total_marks for child in self.children)

    @property
    def leaf_count(self) -> int:
        if self.is_leaf:
            return 1
        return sum(child.leaf_count for child in self.children)

    @property
    def correct_options(self) -> Tuple[Option, ...]:
        return tuple(opt for opt in self.options if opt.is_correct)

    # ─────────────────────────────────────────────────────────────────────────
    # Iteration Methods
    # ─────────────────────────────────────────────────────────────────────────

    def iter_leaves(self) -> Iterator[AnswerableItem]:
        """Yield all answerable leaves in tree order."""
        if self.is_leaf:
            yield self
        else:
            for child in self.children:
                yield from child.iter_leaves()

    def iter_all(self) -> Iterator[AnswerableItem]:
        """Yield this node, then all descendants (pre-order)."""
        yield self
        for child in self.children:
            yield from child.iter_all()

    def iter_leaf_paths(self) -> Iterator[Tuple[AnswerableItem, ...]]:
        """
        Yield the root-to-leaf path for every leaf.

        Used to build composite answer keys and to inherit attributes
        (topic, difficulty) from ancestors.
        """
        if self.is_leaf:
            yield (self,)
            return
        for child in self.children:
            for path in child.iter_leaf_paths():
                yield (self,) + path

    # ─────────────────────────────────────────────────────────────────────────
    # Query Methods
    # ─────────────────────────────────────────────────────────────────────────

    def find(self, item_id: str) -> Optional[AnswerableItem]:
        """Find a direct child by id."""
        for child in self.children:
            if child.id == item_id:
                return child
        return None

    def find_option(self, selection: str) -> Optional[Option]:
        """
        Resolve an option by id or derived label (case-insensitive).

        Returns:
            Matching Option or None
        """
        wanted = selection.strip().casefold()
        for opt in self.options:
            if opt.id.casefold() == wanted:
                return opt
        for opt in self.options:
            if opt.label.casefold() == wanted:
                return opt
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "label": self.label,
            "kind": str(self.kind),
            "marks": self.marks,
            "type": str(self.type),
        }
        if self.text:
            d["text"] = self.text
        if self.difficulty is not None:
            d["difficulty"] = str(self.difficulty)
        if self.topic:
            d["topic"] = self.topic
        if self.unit_name:
            d["unit_name"] = self.unit_name
        if self.subtopics:
            d["subtopics"] = list(self.subtopics)
        if self.options:
            d["options"] = [opt.to_dict() for opt in self.options]
        if self.correct_answers:
            d["correct_answers"] = [ca.to_dict() for ca in self.correct_answers]
        if self.answer_requirement is not None:
            d["answer_requirement"] = str(self.answer_requirement)
        for key in ("answer_format", "hint", "explanation", "marking_criteria"):
            value = getattr(self, key)
            if value:
                d[key] = value
        if self.requires_manual_marking:
            d["requires_manual_marking"] = True
        if self.attachments:
            d["attachments"] = [a.to_dict() for a in self.attachments]
        if self.children:
            d["children"] = [child.to_dict() for child in self.children]
        return d

    def __repr__(self) -> str:
        child_str = f", children={len(self.children)}" if self.children else ""
        return f"AnswerableItem({self.id!r}, {self.kind.value}, marks={self.total_marks}{child_str})"
