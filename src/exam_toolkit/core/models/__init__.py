"""
Core Models Package

Immutable, validated data models shared by scoring, session and results.

**DESIGN RATIONALE:**

All static models in this package are frozen dataclasses. This ensures:
1. A loaded paper cannot be mutated by a running session
2. The same Paper can be shared across practice retries without reset
3. Scoring stays a pure function of (item, value)

| Concept | Type | Notes |
|---------|------|-------|
| Question / part / subpart | `AnswerableItem` | One recursive type, `kind` carries the level |
| Option label | `label_for()` | Derived from position, never stored |
| Mark scheme alternative | `CorrectAnswer` | Combined by `AnswerRequirement` |
| Candidate answer | `SubmittedValue` | Tagged text / option / structured variant |
"""

from .answers import AnswerContext, AnswerRequirement, CorrectAnswer, MeasurementTolerance
from .items import AnswerableItem, Attachment, Difficulty, ItemLevel, ItemType
from .options import Option, label_for
from .paper import AnswerableEntry, Paper
from .submissions import PartialCredit, SubmittedValue, UserAnswer, ValueKind, answer_key

__all__ = [
    "AnswerContext",
    "AnswerRequirement",
    "CorrectAnswer",
    "MeasurementTolerance",
    "AnswerableItem",
    "Attachment",
    "Difficulty",
    "ItemLevel",
    "ItemType",
    "Option",
    "label_for",
    "AnswerableEntry",
    "Paper",
    "PartialCredit",
    "SubmittedValue",
    "UserAnswer",
    "ValueKind",
    "answer_key",
]
