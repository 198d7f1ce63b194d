"""
Module: options

Purpose:
    Provides the Option dataclass for multiple-choice and true/false items,
    plus label_for() which derives display labels (A, B, ... Z, AA, AB, ...)
    from ordinal position.

Key Functions:
    - label_for(index): Derive a base-26 letter label from a 0-based position
    - Option.label: Calculated property, never stored

Dependencies:
    - dataclasses (std)

Used By:
    - core.models.items.AnswerableItem
    - scoring.engine (option matching by id or label)

Design Note:
    Labels are always derived from position so they stay consistent if
    options are reordered. Encoding continues past Z (AA, AB, ...) instead
    of wrapping back to A.
"""

from __future__ import annotations

from dataclasses import dataclass

_ALPHABET_LENGTH = 26


def label_for(index: int) -> str:
    """
    Derive the display label for a 0-based option position.

    Uses bijective base-26 so that 25 -> "Z" and 26 -> "AA".
    Negative indices are clamped to 0.

    Example:
        >>> label_for(0), label_for(25), label_for(26), label_for(27)
        ('A', 'Z', 'AA', 'AB')
    """
    remaining = max(index, 0)
    label = ""
    while True:
        label = chr(ord("A") + remaining % _ALPHABET_LENGTH) + label
        remaining = remaining // _ALPHABET_LENGTH - 1
        if remaining < 0:
            return label


@dataclass(frozen=True, slots=True)
class Option:
    """
    A selectable answer option (immutable).

    Attributes:
        id: Stable option identifier
        text: Display text
        is_correct: Whether selecting this option is (part of) the right answer
        position: 0-based ordinal position within the item

    Invariants:
        - position >= 0
    """

    id: str
    text: str
    is_correct: bool = False
    position: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Option id must not be empty")
        if self.position < 0:
            raise ValueError(f"Option position cannot be negative: {self.position}")

    @property
    def label(self) -> str:
        """Letter label derived from position (never stored)."""
        return label_for(self.position)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "is_correct": self.is_correct,
            "position": self.position,
        }

    def __repr__(self) -> str:
        mark = "*" if self.is_correct else ""
        return f"Option({self.label}{mark}, {self.id!r})"
