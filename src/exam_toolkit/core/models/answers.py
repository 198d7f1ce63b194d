"""
Module: answers

Purpose:
    Mark-scheme side of the answer model: the CorrectAnswer alternatives
    attached to an item, and the AnswerRequirement policy that says how
    several alternatives combine.

Key Classes:
    - AnswerRequirement: any_N_from / all_required / alternative policies
    - AnswerContext: Which slot of a multi-blank answer an alternative fills
    - MeasurementTolerance: Numeric tolerance for measured quantities
    - CorrectAnswer: One acceptable alternative

Key Functions:
    - describe_requirement(req): Human-readable policy description

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - core.models.items.AnswerableItem
    - scoring.engine
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AnswerRequirement(str, Enum):
    """How multiple CorrectAnswer alternatives combine for one item."""
    ANY_ONE_FROM = "any_one_from"
    ANY_TWO_FROM = "any_two_from"
    ANY_THREE_FROM = "any_three_from"
    BOTH_REQUIRED = "both_required"
    ALL_REQUIRED = "all_required"
    ALTERNATIVE_METHODS = "alternative_methods"
    ACCEPTABLE_VARIATIONS = "acceptable_variations"

    def __str__(self) -> str:
        return self.value

    @property
    def required_count(self) -> Optional[int]:
        """N for any_N_from policies, None otherwise."""
        return _ANY_COUNTS.get(self)

    @property
    def is_any_from(self) -> bool:
        return self in _ANY_COUNTS

    @property
    def is_all_required(self) -> bool:
        return self in (AnswerRequirement.BOTH_REQUIRED, AnswerRequirement.ALL_REQUIRED)

    @property
    def is_alternatives(self) -> bool:
        return self in (
            AnswerRequirement.ALTERNATIVE_METHODS,
            AnswerRequirement.ACCEPTABLE_VARIATIONS,
        )


_ANY_COUNTS = {
    AnswerRequirement.ANY_ONE_FROM: 1,
    AnswerRequirement.ANY_TWO_FROM: 2,
    AnswerRequirement.ANY_THREE_FROM: 3,
}

_REQUIREMENT_DESCRIPTIONS = {
    AnswerRequirement.ANY_ONE_FROM: "Any one response from the acceptable answers",
    AnswerRequirement.ANY_TWO_FROM: "Any two responses from the acceptable answers",
    AnswerRequirement.ANY_THREE_FROM: "Any three responses from the acceptable answers",
    AnswerRequirement.BOTH_REQUIRED: "All listed responses are required",
    AnswerRequirement.ALL_REQUIRED: "Every listed response is required",
    AnswerRequirement.ALTERNATIVE_METHODS: "Alternative methods accepted when working is clear",
    AnswerRequirement.ACCEPTABLE_VARIATIONS: "Acceptable phrasing variations allowed",
}


def describe_requirement(requirement: Optional[AnswerRequirement]) -> Optional[str]:
    """Return the reviewer-facing description of a requirement, or None."""
    if requirement is None:
        return None
    return _REQUIREMENT_DESCRIPTIONS[requirement]


@dataclass(frozen=True, slots=True)
class AnswerContext:
    """
    Free-form type/value/label triple describing which sub-element of a
    multi-blank answer an alternative satisfies.

    Example:
        >>> AnswerContext(type="label", value="option_a", label="A")
    """

    type: str = ""
    value: str = ""
    label: str = ""

    def slot_names(self) -> Tuple[str, ...]:
        """
        Candidate slot names this context can be addressed by.

        Includes value, label, and the trailing segment of an underscored
        value ("option_a" -> "a").
        """
        names = []
        for candidate in (self.value, self.label, self.value.split("_")[-1]):
            candidate = candidate.strip().casefold()
            if candidate and candidate not in names:
                names.append(candidate)
        return tuple(names)

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value, "label": self.label}


@dataclass(frozen=True, slots=True)
class MeasurementTolerance:
    """
    Acceptable numeric deviation for a measured answer.

    Attributes:
        tolerance: Absolute +/- window; None falls back to instrument default
        instrument: Measuring instrument name (ruler, balance, ...)
    """

    tolerance: Optional[float] = None
    instrument: Optional[str] = None

    def __post_init__(self) -> None:
        if self.tolerance is not None and self.tolerance < 0:
            raise ValueError(f"Measurement tolerance cannot be negative: {self.tolerance}")

    def to_dict(self) -> dict:
        d: dict = {}
        if self.tolerance is not None:
            d["tolerance"] = self.tolerance
        if self.instrument:
            d["instrument"] = self.instrument
        return d


@dataclass(frozen=True, slots=True)
class CorrectAnswer:
    """
    One acceptable alternative for an item (immutable).

    Attributes:
        answer: Expected answer text
        marks: Marks for this alternative (None = full item marks)
        alternative_id: Identifier used by linked_alternatives
        linked_alternatives: Alternatives that must be given together with this one
        unit: Required unit string, if any
        measurement: Numeric tolerance details, if any
        accepts_equivalent_phrasing: Allow looser wording match
        error_carried_forward: Allow reduced credit when only the unit is wrong
        context: Slot this alternative belongs to in a multi-blank answer
    """

    answer: str
    marks: Optional[float] = None
    alternative_id: Optional[str] = None
    linked_alternatives: Tuple[str, ...] = ()
    unit: Optional[str] = None
    measurement: Optional[MeasurementTolerance] = None
    accepts_equivalent_phrasing: bool = False
    error_carried_forward: bool = False
    context: Optional[AnswerContext] = None

    def __post_init__(self) -> None:
        if self.marks is not None and self.marks < 0:
            raise ValueError(f"Alternative marks cannot be negative: {self.marks}")

    def to_dict(self) -> dict:
        d: dict = {"answer": self.answer}
        if self.marks is not None:
            d["marks"] = self.marks
        if self.alternative_id is not None:
            d["alternative_id"] = self.alternative_id
        if self.linked_alternatives:
            d["linked_alternatives"] = list(self.linked_alternatives)
        if self.unit:
            d["unit"] = self.unit
        if self.measurement is not None:
            d["measurement_details"] = self.measurement.to_dict()
        if self.accepts_equivalent_phrasing:
            d["accepts_equivalent_phrasing"] = True
        if self.error_carried_forward:
            d["error_carried_forward"] = True
        if self.context is not None:
            d["context"] = self.context.to_dict()
        return d
