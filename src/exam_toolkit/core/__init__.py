"""
Exam Toolkit Core Package

Shared data models and utilities. These models are the single source of
truth for scoring, session and results.

**DESIGN PRINCIPLES:**

1. **Immutable Data Models**
   - Frozen dataclasses; a running session never mutates its paper

2. **Calculated Marks (Never Stored)**
   - `total_marks` always calculated from answerable leaves

3. **One Recursive Item Type**
   - Question, part and subpart share `AnswerableItem`
"""

from .models import AnswerableItem, CorrectAnswer, Option, Paper, SubmittedValue, UserAnswer

__all__ = [
    "AnswerableItem",
    "CorrectAnswer",
    "Option",
    "Paper",
    "SubmittedValue",
    "UserAnswer",
]
