"""
Module: scoring.engine

Purpose:
    Score one submitted value against one answerable item. Pure function:
    the same (item, value, config) always yields the same ValidationResult.

Key Functions:
    - validate(item, value, config): Main entry point

Scoring Rules:
    - mcq / true_false with flagged options: option-set comparison
    - any_N_from: fully matched sub-answers / N (ECF does not fill a slot)
    - both_required / all_required: matched alternatives / total
    - alternative_methods / acceptable_variations / single answer: first full
      match wins
    - Units, numeric tolerance, equivalent phrasing and ECF are applied per
      alternative

Dependencies:
    - scoring.normalize
    - scoring.config.ScoringConfig
    - common.thresholds.MEASUREMENT_THRESHOLDS

Used By:
    - session.engine.ExamSession.answer
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, NamedTuple, Optional, Sequence, Set, Tuple

from exam_toolkit.common.thresholds import MEASUREMENT_THRESHOLDS
from exam_toolkit.core.models.answers import AnswerRequirement, CorrectAnswer, describe_requirement
from exam_toolkit.core.models.items import AnswerableItem, ItemType
from exam_toolkit.core.models.submissions import PartialCredit, SubmittedValue, ValueKind

from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .normalize import (
    answers_match,
    as_boolean,
    contains_phrase,
    is_known_unit,
    numbers_match,
    parse_quantity,
    phrasing_matches,
    units_match,
)
from .result import ValidationResult

logger = logging.getLogger(__name__)

_SUB_ANSWER_SPLIT = re.compile(r"[\n;]+")
_OPTION_SPLIT = re.compile(r"[,;\s]+")

ECF_REASON = "Correct value with missing or incorrect unit (error carried forward)"


class _Response(NamedTuple):
    """One sub-answer: an optional slot name and its equivalent spellings."""
    slot: Optional[str]
    candidates: Tuple[str, ...]


class _Match(NamedTuple):
    alternative: CorrectAnswer
    credit: float
    reason: Optional[str]


def validate(
    item: AnswerableItem,
    value: Any,
    config: Optional[ScoringConfig] = None,
) -> ValidationResult:
    """
    Score a submitted value for an answerable item.

    Args:
        item: Answerable (leaf) item
        value: SubmittedValue or a raw host value (see SubmittedValue.coerce)
        config: Scoring leniency; defaults to ScoringConfig()

    Returns:
        ValidationResult with score in [0, 1]. Malformed answer data
        degrades to a best-effort score with a warning, it never raises.

    Example:
        >>> result = validate(item, SubmittedValue.from_text("Paris"))
        >>> result.is_correct, result.score
        (True, 1.0)
    """
    config = config or DEFAULT_SCORING_CONFIG
    value = SubmittedValue.coerce(value)

    if not item.is_leaf:
        return _unscorable(item, f"Item {item.id} has children and is not directly answerable")
    if value.is_empty:
        return ValidationResult(is_correct=False, score=0.0, feedback=("No answer given.",))

    if item.type in (ItemType.MCQ, ItemType.TRUE_FALSE) and item.correct_options:
        return _score_options(item, value)
    if item.type is ItemType.TRUE_FALSE:
        boolean_result = _score_boolean(item, value)
        if boolean_result is not None:
            return boolean_result

    if not item.correct_answers:
        return _unscorable(item, f"Item {item.id} has no correct answers to score against")

    requirement = item.answer_requirement
    if requirement is not None and requirement.is_any_from:
        return _score_any_from(item, value, requirement, config)
    if requirement is not None and requirement.is_all_required:
        return _score_all_required(item, value, config)
    return _score_alternatives(item, value, config)


# ─────────────────────────────────────────────────────────────────────────────
# Option Scoring
# ─────────────────────────────────────────────────────────────────────────────

def _selections(value: SubmittedValue) -> List[str]:
    if value.kind is ValueKind.OPTION:
        raw = list(value.option_ids)
    elif value.kind is ValueKind.STRUCTURED:
        raw = [field_value for _, field_value in value.fields]
    else:
        raw = _OPTION_SPLIT.split(value.text)
    return [selection.strip() for selection in raw if selection.strip()]


def _score_options(item: AnswerableItem, value: SubmittedValue) -> ValidationResult:
    feedback: List[str] = []
    selected: List[str] = []
    for selection in _selections(value):
        option = item.find_option(selection)
        if option is None:
            feedback.append(f"Unrecognised option {selection!r}.")
        elif option.id not in selected:
            selected.append(option.id)

    correct_ids = {opt.id for opt in item.correct_options}
    hits = [opt_id for opt_id in selected if opt_id in correct_ids]
    wrong = [opt_id for opt_id in selected if opt_id not in correct_ids]
    requirement = item.answer_requirement
    warnings: List[str] = []

    if requirement is not None and requirement.is_any_from:
        required = requirement.required_count
        if len(correct_ids) < required:
            warnings.append(_degrade_warning(item, requirement, len(correct_ids)))
            required = len(correct_ids)
        score = min(len(hits), required) / required
    elif (requirement is not None and requirement.is_all_required) or len(correct_ids) > 1:
        required = len(correct_ids)
        score = max(0.0, min(1.0, (len(hits) - len(wrong)) / required))
    else:
        required = 1
        score = 1.0 if set(selected) == correct_ids else 0.0

    is_correct = score == 1.0
    partial: Tuple[PartialCredit, ...] = ()
    if 0.0 < score < 1.0:
        per_option = item.marks / required
        partial = tuple(
            PartialCredit(per_option, f"Selected correct option {item.find_option(opt_id).label}")
            for opt_id in hits[:required]
        )

    if is_correct:
        feedback.append("Correct.")
    else:
        labels = ", ".join(opt.label for opt in item.correct_options)
        feedback.append(f"Correct answer: {labels}.")
    return ValidationResult(is_correct, score, partial, tuple(feedback), tuple(warnings))


def _score_boolean(item: AnswerableItem, value: SubmittedValue) -> Optional[ValidationResult]:
    """True/false without flagged options; None when the key is not a boolean."""
    if not item.correct_answers:
        return None
    expected = as_boolean(item.correct_answers[0].answer)
    if expected is None:
        return None
    submitted = None
    for response in _responses(item, value, split=False):
        for candidate in response.candidates:
            submitted = as_boolean(candidate)
            if submitted is not None:
                break
        if submitted is not None:
            break
    if submitted == expected:
        return ValidationResult(True, 1.0, feedback=("Correct.",))
    return ValidationResult(False, 0.0, feedback=(f"Correct answer: {str(expected).lower()}.",))


# ─────────────────────────────────────────────────────────────────────────────
# Alternative Scoring
# ─────────────────────────────────────────────────────────────────────────────

def _score_any_from(
    item: AnswerableItem,
    value: SubmittedValue,
    requirement: AnswerRequirement,
    config: ScoringConfig,
) -> ValidationResult:
    alternatives = item.correct_answers
    required = requirement.required_count
    warnings: List[str] = []
    if len(alternatives) < required:
        warnings.append(_degrade_warning(item, requirement, len(alternatives)))
        required = len(alternatives)

    responses = _responses(item, value, split=required > 1)
    # Each slot is either filled or not, so the score stays a multiple of 1/N
    full = [m for m in _assign(alternatives, responses, value, config) if m.credit >= 1.0]
    matches = _drop_unlinked(full)[:required]

    score = len(matches) / required
    return _build_result(item, score, matches, required, warnings, requirement)


def _score_all_required(
    item: AnswerableItem,
    value: SubmittedValue,
    config: ScoringConfig,
) -> ValidationResult:
    alternatives = item.correct_answers
    responses = _responses(item, value, split=True)
    matches = _drop_unlinked(_assign(alternatives, responses, value, config))
    score = sum(m.credit for m in matches) / len(alternatives)
    return _build_result(item, score, matches, len(alternatives), [], item.answer_requirement)


def _score_alternatives(
    item: AnswerableItem,
    value: SubmittedValue,
    config: ScoringConfig,
) -> ValidationResult:
    """Logical OR over alternatives: the first full match wins, else the best partial."""
    responses = _responses(item, value, split=False)
    candidates: List[_Match] = []
    for alternative in item.correct_answers:
        match = _best_match(alternative, responses, config)
        if match is not None:
            candidates.append(match)
    candidates = _drop_unlinked(candidates)

    chosen: Optional[_Match] = None
    for match in candidates:
        if match.credit >= 1.0:
            chosen = match
            break
        if chosen is None or match.credit > chosen.credit:
            chosen = match

    if chosen is None:
        return _build_result(item, 0.0, [], 1, [], item.answer_requirement)

    score = chosen.credit
    if (
        item.answer_requirement is AnswerRequirement.ALTERNATIVE_METHODS
        and chosen.alternative.marks is not None
    ):
        score *= min(chosen.alternative.marks, item.marks) / item.marks
    return _build_result(item, score, [chosen._replace(credit=score)], 1, [], item.answer_requirement)


# ─────────────────────────────────────────────────────────────────────────────
# Matching Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _responses(item: AnswerableItem, value: SubmittedValue, split: bool) -> List[_Response]:
    """Break a submitted value into sub-answers."""
    if value.kind is ValueKind.STRUCTURED:
        return [
            _Response(slot.strip().casefold(), (field_value,))
            for slot, field_value in value.fields
            if field_value.strip()
        ]
    if value.kind is ValueKind.OPTION:
        return [
            _Response(None, _option_candidates(item, selection))
            for selection in value.option_ids
            if selection.strip()
        ]
    pieces = _SUB_ANSWER_SPLIT.split(value.text) if split else [value.text]
    return [_Response(None, _option_candidates(item, piece)) for piece in pieces if piece.strip()]


def _option_candidates(item: AnswerableItem, selection: str) -> Tuple[str, ...]:
    option = item.find_option(selection)
    if option is None:
        return (selection,)
    return (selection, option.text, option.label, option.id)


def _slot_matches(alternative: CorrectAnswer, response: _Response) -> bool:
    if alternative.context is None or response.slot is None:
        return True
    return response.slot in alternative.context.slot_names()


def _credit_for(text: str, alternative: CorrectAnswer, config: ScoringConfig) -> Tuple[float, Optional[str]]:
    """Credit (0..1) one spelling earns against one alternative."""
    expected = parse_quantity(alternative.answer)
    submitted = parse_quantity(text)
    measured = expected is not None and (
        alternative.unit is not None
        or alternative.measurement is not None
        or not expected.unit
        or is_known_unit(expected.unit)
    )
    expected_unit = (alternative.unit or expected.unit) if expected is not None else ""
    # Text after the number that is not a unit ("4 or 5") is compared as text
    unit_like = submitted is not None and (not submitted.unit or is_known_unit(submitted.unit))
    if measured and submitted is not None and (expected_unit or unit_like):
        if not numbers_match(submitted.value, expected.value, _tolerance(alternative, config)):
            return 0.0, None
        if not expected_unit or units_match(submitted.unit, expected_unit):
            return 1.0, None
        if alternative.error_carried_forward and unit_like:
            return config.ecf_credit_fraction, ECF_REASON
        return 0.0, None

    if answers_match(text, alternative.answer):
        return 1.0, None
    if alternative.accepts_equivalent_phrasing and phrasing_matches(
        text, alternative.answer, config.phrasing_keyword_ratio
    ):
        return 1.0, None
    return 0.0, None


def _tolerance(alternative: CorrectAnswer, config: ScoringConfig) -> float:
    measurement = alternative.measurement
    if measurement is None:
        return config.numeric_tolerance
    if measurement.tolerance is not None:
        return measurement.tolerance
    return MEASUREMENT_THRESHOLDS.tolerance_for(measurement.instrument)


def _response_credit(
    alternative: CorrectAnswer,
    response: _Response,
    config: ScoringConfig,
) -> Tuple[float, Optional[str]]:
    best: Tuple[float, Optional[str]] = (0.0, None)
    if not _slot_matches(alternative, response):
        return best
    for candidate in response.candidates:
        credit = _credit_for(candidate, alternative, config)
        if credit[0] > best[0]:
            best = credit
        if best[0] >= 1.0:
            break
    return best


def _best_match(
    alternative: CorrectAnswer,
    responses: Sequence[_Response],
    config: ScoringConfig,
) -> Optional[_Match]:
    best: Optional[_Match] = None
    for response in responses:
        credit, reason = _response_credit(alternative, response, config)
        if credit > 0 and (best is None or credit > best.credit):
            best = _Match(alternative, credit, reason)
        if best is not None and best.credit >= 1.0:
            break
    return best


def _assign(
    alternatives: Sequence[CorrectAnswer],
    responses: Sequence[_Response],
    value: SubmittedValue,
    config: ScoringConfig,
) -> List[_Match]:
    """
    Match sub-answers to distinct alternatives.

    Each sub-answer consumes at most one unused alternative (its best
    match). Alternatives still unmatched are then checked for whole-phrase
    containment in the flattened text, which catches several answers written
    on one line.
    """
    used: Set[int] = set()
    matches: List[Tuple[int, _Match]] = []
    for response in responses:
        best_index = None
        best_credit: Tuple[float, Optional[str]] = (0.0, None)
        for index, alternative in enumerate(alternatives):
            if index in used:
                continue
            credit = _response_credit(alternative, response, config)
            if credit[0] > best_credit[0]:
                best_index, best_credit = index, credit
            if best_credit[0] >= 1.0:
                break
        if best_index is not None:
            used.add(best_index)
            matches.append((best_index, _Match(alternatives[best_index], *best_credit)))

    flattened = value.as_text()
    for index, alternative in enumerate(alternatives):
        if index in used or alternative.context is not None:
            continue
        if contains_phrase(flattened, alternative.answer):
            used.add(index)
            matches.append((index, _Match(alternative, 1.0, None)))

    matches.sort(key=lambda pair: pair[0])
    return [match for _, match in matches]


def _drop_unlinked(matches: List[_Match]) -> List[_Match]:
    """Remove matches whose linked alternatives were not matched as well."""
    kept = list(matches)
    while True:
        matched_ids = {m.alternative.alternative_id for m in kept if m.alternative.alternative_id}
        filtered = [
            m for m in kept
            if all(link in matched_ids for link in m.alternative.linked_alternatives)
        ]
        if len(filtered) == len(kept):
            return filtered
        kept = filtered


# ─────────────────────────────────────────────────────────────────────────────
# Result Construction
# ─────────────────────────────────────────────────────────────────────────────

def _build_result(
    item: AnswerableItem,
    score: float,
    matches: Sequence[_Match],
    required: int,
    warnings: List[str],
    requirement: Optional[AnswerRequirement],
) -> ValidationResult:
    score = max(0.0, min(1.0, score))
    is_correct = score == 1.0

    partial: List[PartialCredit] = []
    for match in matches:
        earned = item.marks * match.credit / required
        if match.reason is not None:
            partial.append(PartialCredit(earned, match.reason))
        elif not is_correct and score > 0:
            partial.append(PartialCredit(earned, f"Matched {match.alternative.answer!r}"))

    if is_correct:
        feedback: Tuple[str, ...] = ("Correct.",)
    elif score > 0:
        feedback = (f"Partially correct: {len(matches)} of {required} required responses.",)
    else:
        feedback = ("Incorrect.",)
    if not is_correct:
        description = describe_requirement(requirement)
        if description:
            feedback += (description + ".",)

    return ValidationResult(is_correct, score, tuple(partial), feedback, tuple(warnings))


def _degrade_warning(item: AnswerableItem, requirement: AnswerRequirement, available: int) -> str:
    message = (
        f"Item {item.id}: {requirement} needs {requirement.required_count} "
        f"alternatives but only {available} available; scoring against {available}"
    )
    logger.warning(message)
    return message


def _unscorable(item: AnswerableItem, message: str) -> ValidationResult:
    logger.warning(message)
    return ValidationResult(False, 0.0, feedback=("This answer could not be scored.",), warnings=(message,))
