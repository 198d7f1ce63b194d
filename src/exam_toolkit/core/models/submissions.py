"""
Module: submissions

Purpose:
    Candidate side of the answer model: the tagged SubmittedValue variant,
    the UserAnswer record the session stores per answerable item, and the
    composite answer key.

Key Functions:
    - answer_key(question_id, part_id, subpart_id): "q[-p[-s]]" key
    - SubmittedValue.coerce(raw): Wrap a raw host value in the tagged variant

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - scoring.engine (dispatches on SubmittedValue.kind)
    - session.engine (builds UserAnswer records)
    - results.aggregator
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


def answer_key(
    question_id: str,
    part_id: Optional[str] = None,
    subpart_id: Optional[str] = None,
) -> str:
    """
    Build the composite key for an answerable item.

    Example:
        >>> answer_key("q1"), answer_key("q1", "a"), answer_key("q1", "a", "ii")
        ('q1', 'q1-a', 'q1-a-ii')
    """
    if subpart_id is not None and part_id is None:
        raise ValueError("subpart_id requires part_id")
    if subpart_id is not None:
        return f"{question_id}-{part_id}-{subpart_id}"
    if part_id is not None:
        return f"{question_id}-{part_id}"
    return question_id


class ValueKind(str, Enum):
    """Shape of a submitted value."""
    TEXT = "text"              # Free text (descriptive, or a typed label)
    OPTION = "option"          # One or more option ids / labels
    STRUCTURED = "structured"  # Named slots (multi-blank, table, labelled lines)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class SubmittedValue:
    """
    Tagged variant for a candidate's raw answer.

    Only the field matching `kind` is meaningful. Structured fields are
    stored as an ordered tuple of (slot, value) pairs so the value stays
    hashable and immutable.

    Example:
        >>> SubmittedValue.from_text("Paris").kind
        <ValueKind.TEXT: 'text'>
        >>> SubmittedValue.from_options("B").option_ids
        ('B',)
    """

    kind: ValueKind
    text: str = ""
    option_ids: Tuple[str, ...] = ()
    fields: Tuple[Tuple[str, str], ...] = ()

    # ─────────────────────────────────────────────────────────────────────────
    # Factory Methods
    # ─────────────────────────────────────────────────────────────────────────

    @classmethod
    def from_text(cls, text: str) -> SubmittedValue:
        return cls(kind=ValueKind.TEXT, text=text)

    @classmethod
    def from_options(cls, *option_ids: str) -> SubmittedValue:
        return cls(kind=ValueKind.OPTION, option_ids=tuple(option_ids))

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> SubmittedValue:
        pairs = tuple(
            (str(slot), "" if value is None else str(value))
            for slot, value in fields.items()
        )
        return cls(kind=ValueKind.STRUCTURED, fields=pairs)

    @classmethod
    def empty(cls) -> SubmittedValue:
        return cls(kind=ValueKind.TEXT)

    @classmethod
    def coerce(cls, raw: Any) -> SubmittedValue:
        """
        Wrap a raw host value.

        str/number/bool -> TEXT, list/tuple/set -> OPTION, dict -> STRUCTURED,
        None -> empty TEXT. An existing SubmittedValue is returned unchanged.
        """
        if isinstance(raw, SubmittedValue):
            return raw
        if raw is None:
            return cls.empty()
        if isinstance(raw, bool):
            return cls.from_text("true" if raw else "false")
        if isinstance(raw, (str, int, float)):
            return cls.from_text(str(raw))
        if isinstance(raw, (list, tuple, set, frozenset)):
            return cls.from_options(*(str(v) for v in raw))
        if isinstance(raw, Mapping):
            return cls.from_fields(raw)
        raise TypeError(f"Unsupported answer value type: {type(raw).__name__}")

    # ─────────────────────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_empty(self) -> bool:
        if self.kind is ValueKind.TEXT:
            return not self.text.strip()
        if self.kind is ValueKind.OPTION:
            return not any(opt.strip() for opt in self.option_ids)
        return not any(value.strip() for _, value in self.fields)

    def field_map(self) -> Dict[str, str]:
        return dict(self.fields)

    def as_text(self) -> str:
        """Flatten to a single string (used for containment checks)."""
        if self.kind is ValueKind.TEXT:
            return self.text
        if self.kind is ValueKind.OPTION:
            return ", ".join(self.option_ids)
        return "\n".join(value for _, value in self.fields)

    def to_dict(self) -> dict:
        d: dict = {"kind": str(self.kind)}
        if self.kind is ValueKind.TEXT:
            d["text"] = self.text
        elif self.kind is ValueKind.OPTION:
            d["option_ids"] = list(self.option_ids)
        else:
            d["fields"] = dict(self.fields)
        return d


@dataclass(frozen=True, slots=True)
class PartialCredit:
    """A credited component of a partially correct answer (earned in marks)."""

    earned: float
    reason: str

    def to_dict(self) -> dict:
        return {"earned": self.earned, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class UserAnswer:
    """
    Stored answer for one answerable item (immutable; replaced on each write).

    Attributes:
        question_id: Top-level question id
        part_id: Part id, if the item is a part or subpart
        subpart_id: Subpart id, if the item is a subpart
        value: Raw submitted value
        is_correct: Derived - full marks awarded
        marks_awarded: Derived - 0 <= marks_awarded <= item marks
        time_spent: Seconds since the item (or its question) was started
        partial_credit: Explanations for partially credited answers

    Invariants:
        - marks_awarded >= 0 (upper bound checked by the session against the item)
    """

    question_id: str
    value: SubmittedValue
    is_correct: bool
    marks_awarded: float
    time_spent: int = 0
    part_id: Optional[str] = None
    subpart_id: Optional[str] = None
    partial_credit: Tuple[PartialCredit, ...] = ()

    def __post_init__(self) -> None:
        if self.marks_awarded < 0:
            raise ValueError(f"marks_awarded cannot be negative: {self.marks_awarded}")
        if self.time_spent < 0:
            raise ValueError(f"time_spent cannot be negative: {self.time_spent}")

    @property
    def key(self) -> str:
        return answer_key(self.question_id, self.part_id, self.subpart_id)

    @property
    def is_attempted(self) -> bool:
        return not self.value.is_empty

    def to_dict(self) -> dict:
        d: dict = {
            "question_id": self.question_id,
            "value": self.value.to_dict(),
            "is_correct": self.is_correct,
            "marks_awarded": self.marks_awarded,
            "time_spent": self.time_spent,
        }
        if self.part_id is not None:
            d["part_id"] = self.part_id
        if self.subpart_id is not None:
            d["subpart_id"] = self.subpart_id
        if self.partial_credit:
            d["partial_credit"] = [pc.to_dict() for pc in self.partial_credit]
        return d
