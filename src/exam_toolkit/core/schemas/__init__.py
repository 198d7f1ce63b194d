"""
Schemas Package

JSON schema definitions and validation utilities for paper data.
"""

from .validator import (
    validate_paper,
    ValidationError,
    PAPER_SCHEMA_VERSION,
)

__all__ = [
    "validate_paper",
    "ValidationError",
    "PAPER_SCHEMA_VERSION",
]
