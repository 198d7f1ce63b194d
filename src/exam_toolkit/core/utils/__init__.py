"""
Utils Package

Serialization and loading functions for papers.
"""

from .serialization import (
    serialize_paper,
    deserialize_paper,
    load_paper,
    save_paper,
)

__all__ = [
    "serialize_paper",
    "deserialize_paper",
    "load_paper",
    "save_paper",
]
