"""
Schema Validation Utilities

Validates paper JSON data before it is turned into models.

Two levels:
- Basic checks (always): required fields, item types, marks, nesting depth
- Strict mode: full JSON Schema validation via `jsonschema`

Fail fast on any violation; a paper that loads is safe to run.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


# Schema version constants
PAPER_SCHEMA_VERSION = 1

# Accepted item types, including legacy spellings
ITEM_TYPES = ("mcq", "true_false", "descriptive")
ITEM_TYPE_ALIASES = {"tf": "true_false", "truefalse": "true_false", "text": "descriptive"}

ANSWER_REQUIREMENTS = (
    "any_one_from",
    "any_two_from",
    "any_three_from",
    "both_required",
    "all_required",
    "alternative_methods",
    "acceptable_variations",
)

# question -> part -> subpart
MAX_DEPTH = 3

# Child list keys, in lookup order
CHILD_KEYS = ("children", "parts", "subparts")


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _get_jsonschema():
    """Import jsonschema lazily (only strict mode needs it)."""
    import jsonschema
    return jsonschema


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def canonical_item_type(raw: Any) -> str | None:
    """Map a raw type string (including legacy aliases) to a known item type."""
    if not isinstance(raw, str):
        return None
    lowered = raw.strip().lower()
    lowered = ITEM_TYPE_ALIASES.get(lowered, lowered)
    return lowered if lowered in ITEM_TYPES else None


def child_items(data: dict[str, Any]) -> list:
    """Return the first non-empty child list under any accepted key."""
    for key in CHILD_KEYS:
        children = data.get(key)
        if children:
            return children
    return []


def validate_paper(data: dict[str, Any], *, strict: bool = False) -> None:
    """
    Validate paper data.

    Args:
        data: Paper dictionary to validate
        strict: If True, also run full JSON Schema validation

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Paper data must be an object")

    required = ["id", "questions"]
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path="",
            errors=[f"Missing field: {f}" for f in missing]
        )

    version = data.get("schema_version", PAPER_SCHEMA_VERSION)
    if version != PAPER_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported paper schema version: {version} (expected {PAPER_SCHEMA_VERSION})",
            path="schema_version"
        )

    questions = data["questions"]
    if not isinstance(questions, list):
        raise ValidationError("questions must be a list", path="questions")

    seen = set()
    for i, question in enumerate(questions):
        path = f"questions[{i}]"
        _validate_item(question, path, depth=1)
        if question["id"] in seen:
            raise ValidationError(f"Duplicate question id: {question['id']!r}", path=f"{path}.id")
        seen.add(question["id"])

    duration = data.get("duration_minutes")
    if duration is not None and not _is_number_like(duration):
        raise ValidationError(
            f"Invalid duration_minutes: {duration!r}",
            path="duration_minutes"
        )

    # Full schema validation in strict mode
    if strict:
        jsonschema = _get_jsonschema()
        schema = _load_schema("paper")
        try:
            jsonschema.validate(data, schema)
        except jsonschema.ValidationError as e:
            raise ValidationError(
                f"Schema validation failed: {e.message}",
                path=".".join(str(p) for p in e.absolute_path),
                errors=[e.message]
            )


def _validate_item(data: Any, path: str, depth: int) -> None:
    """Validate a question / part / subpart node recursively."""
    if not isinstance(data, dict):
        raise ValidationError("Item must be an object", path=path)

    required = ["id", "marks"]
    missing = [f for f in required if f not in data]
    if missing:
        raise ValidationError(
            f"Item missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing]
        )

    item_id = data["id"]
    if not isinstance(item_id, (str, int)) or str(item_id) == "":
        raise ValidationError(f"Invalid id: {item_id!r}", path=f"{path}.id")

    marks = data["marks"]
    if isinstance(marks, bool) or not isinstance(marks, (int, float)) or marks < 0:
        raise ValidationError(
            f"Invalid marks: {marks!r} (must be a non-negative number)",
            path=f"{path}.marks"
        )

    if "type" in data and canonical_item_type(data["type"]) is None:
        raise ValidationError(f"Invalid item type: {data['type']!r}", path=f"{path}.type")

    requirement = data.get("answer_requirement")
    if requirement is not None and requirement not in ANSWER_REQUIREMENTS:
        raise ValidationError(
            f"Invalid answer_requirement: {requirement!r}",
            path=f"{path}.answer_requirement"
        )

    for key in ("options", "correct_answers"):
        if key in data and not isinstance(data[key], list):
            raise ValidationError(f"{key} must be a list", path=f"{path}.{key}")

    children = child_items(data)
    if not isinstance(children, list):
        raise ValidationError("children must be a list", path=f"{path}.children")
    if children and depth >= MAX_DEPTH:
        raise ValidationError(
            "Subparts cannot contain further items",
            path=f"{path}.children"
        )
    if not children and marks <= 0:
        raise ValidationError(
            f"Answerable item must carry positive marks: {marks!r}",
            path=f"{path}.marks"
        )
    for i, child in enumerate(children):
        _validate_item(child, f"{path}.children[{i}]", depth + 1)


def _is_number_like(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip())
        except ValueError:
            return False
        return True
    return False
