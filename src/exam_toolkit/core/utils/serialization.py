"""
Serialization Utilities

Provides to/from JSON utilities for paper models.

- Clean separation: `serialize_*` and `deserialize_*` functions
- Validation via schemas before deserialization
- Never store calculated values (total marks are recomputed on load; a
  declared total is kept only to be checked)
- Legacy spellings accepted on load: `tf` item type, 1-based option
  `order`, `parts`/`subparts` child lists, string durations
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..models.answers import AnswerContext, AnswerRequirement, CorrectAnswer, MeasurementTolerance
from ..models.items import AnswerableItem, Attachment, Difficulty, ItemLevel, ItemType
from ..models.options import Option, label_for
from ..models.paper import Paper
from ..schemas.validator import (
    PAPER_SCHEMA_VERSION,
    ValidationError,
    canonical_item_type,
    child_items,
    validate_paper,
)

logger = logging.getLogger(__name__)

_ROMAN_NUMERALS = (
    (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Paper Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_paper(paper: Paper) -> dict[str, Any]:
    """
    Serialize a Paper to a dictionary.

    The output can be written to JSON and will pass schema validation.
    """
    data = {"schema_version": PAPER_SCHEMA_VERSION}
    data.update(paper.to_dict())
    return data


def deserialize_paper(
    data: dict[str, Any],
    *,
    validate: bool = True,
    strict: bool = False,
) -> Paper:
    """
    Deserialize a Paper from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate before building models
        strict: Run full JSON Schema validation (requires validate=True)

    Returns:
        Paper instance

    Raises:
        ValidationError: If validate=True and data is invalid
        ValueError: If data cannot be turned into valid models
    """
    if validate:
        validate_paper(data, strict=strict)

    questions = tuple(
        _deserialize_item(question, ItemLevel.QUESTION, index)
        for index, question in enumerate(data["questions"])
    )

    return Paper(
        id=str(data["id"]),
        code=data.get("code", ""),
        subject=data.get("subject", ""),
        questions=questions,
        duration_minutes=_parse_duration(data.get("duration_minutes")),
        declared_total_marks=data.get("total_marks"),
        attachments=_deserialize_attachments(data.get("attachments", [])),
    )


def _deserialize_item(data: dict[str, Any], level: ItemLevel, index: int) -> AnswerableItem:
    """Deserialize a question / part / subpart node recursively."""
    child_level = level.child_level
    children = tuple(
        _deserialize_item(child, child_level, i)
        for i, child in enumerate(child_items(data))
    ) if child_level is not None else ()

    requirement = data.get("answer_requirement")

    return AnswerableItem(
        id=str(data["id"]),
        label=data.get("label") or _default_label(level, index),
        kind=level,
        marks=data["marks"],
        type=ItemType(canonical_item_type(data.get("type", "descriptive")) or "descriptive"),
        text=data.get("text", ""),
        difficulty=_parse_difficulty(data.get("difficulty"), data["id"]),
        topic=data.get("topic"),
        unit_name=data.get("unit_name"),
        subtopics=tuple(data.get("subtopics", [])),
        options=_deserialize_options(data.get("options", [])),
        correct_answers=tuple(_deserialize_answer(a) for a in data.get("correct_answers", [])),
        answer_requirement=AnswerRequirement(requirement) if requirement else None,
        answer_format=data.get("answer_format"),
        hint=data.get("hint"),
        explanation=data.get("explanation"),
        requires_manual_marking=bool(data.get("requires_manual_marking", False)),
        marking_criteria=data.get("marking_criteria"),
        attachments=_deserialize_attachments(data.get("attachments", [])),
        children=children,
    )


def _deserialize_options(raw: list[dict[str, Any]]) -> tuple[Option, ...]:
    """
    Build options ordered by position.

    `position` is 0-based; legacy `order` is 1-based. Options with neither
    keep their list order.
    """
    options = []
    for index, data in enumerate(raw):
        if "position" in data:
            position = data["position"]
        elif "order" in data:
            position = max(data["order"] - 1, 0)
        else:
            position = index
        options.append(Option(
            id=str(data.get("id") or label_for(position)),
            text=data.get("text", ""),
            is_correct=bool(data.get("is_correct", False)),
            position=position,
        ))
    return tuple(sorted(options, key=lambda opt: opt.position))


def _deserialize_answer(data: dict[str, Any]) -> CorrectAnswer:
    measurement = data.get("measurement_details") or data.get("measurement")
    context = data.get("context")
    alternative_id = data.get("alternative_id")
    return CorrectAnswer(
        answer=str(data["answer"]),
        marks=data.get("marks"),
        alternative_id=str(alternative_id) if alternative_id is not None else None,
        linked_alternatives=tuple(str(link) for link in data.get("linked_alternatives", [])),
        unit=data.get("unit") or None,
        measurement=MeasurementTolerance(
            tolerance=measurement.get("tolerance"),
            instrument=measurement.get("instrument"),
        ) if measurement else None,
        accepts_equivalent_phrasing=bool(data.get("accepts_equivalent_phrasing", False)),
        error_carried_forward=bool(data.get("error_carried_forward", False)),
        context=AnswerContext(
            type=context.get("type", ""),
            value=str(context.get("value", "")),
            label=str(context.get("label", "")),
        ) if context else None,
    )


def _deserialize_attachments(raw: list[dict[str, Any]]) -> tuple[Attachment, ...]:
    return tuple(
        Attachment(
            id=str(a["id"]),
            url=a["url"],
            type=a.get("type", ""),
            name=a.get("name", ""),
        )
        for a in raw
    )


def _parse_duration(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    return float(raw)


def _parse_difficulty(raw: Any, item_id: Any) -> Difficulty | None:
    if not raw:
        return None
    try:
        return Difficulty(str(raw).strip().lower())
    except ValueError:
        logger.warning(f"Item {item_id}: unknown difficulty {raw!r} ignored")
        return None


def _default_label(level: ItemLevel, index: int) -> str:
    if level is ItemLevel.QUESTION:
        return str(index + 1)
    if level is ItemLevel.PART:
        return f"({label_for(index).lower()})"
    return f"({_roman(index + 1)})"


def _roman(number: int) -> str:
    result = ""
    for value, numeral in _ROMAN_NUMERALS:
        while number >= value:
            result += numeral
            number -= value
    return result


# ─────────────────────────────────────────────────────────────────────────────
# JSON File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def load_paper(path: Path, *, validate: bool = True, strict: bool = False) -> Paper:
    """
    Load a paper from a JSON file.

    Args:
        path: Path to paper JSON
        validate: Whether to validate
        strict: Run full JSON Schema validation

    Returns:
        Paper instance

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If the file is not valid paper JSON
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Paper file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        paper = deserialize_paper(data, validate=validate, strict=strict)
    except ValidationError:
        raise
    except (json.JSONDecodeError, ValueError) as e:
        raise ValidationError(
            f"Error parsing paper {path.name}: {e}",
            path=str(path),
            errors=[str(e)]
        )

    logger.info(f"Loaded paper {paper.id} ({paper.question_count} questions, {paper.total_marks} marks)")
    return paper


def save_paper(paper: Paper, path: Path) -> None:
    """
    Save a paper to a JSON file.

    Args:
        paper: Paper instance to save
        path: Output path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(serialize_paper(paper), f, indent=2, ensure_ascii=False)
