"""
Module: scoring.normalize

Purpose:
    Text, notation, unit and number comparison helpers used by the scoring
    engine. All functions are pure.

Key Functions:
    - normalize_answer(text): Canonical form for equality comparison
    - answers_match(submitted, expected): Normalized / notation-aware equality
    - phrasing_matches(submitted, expected, ratio): Looser wording match
    - contains_phrase(text, phrase): Whole-phrase containment
    - parse_quantity(text): Split "5.2 cm" into (5.2, "cm")
    - canonical_unit(unit): Map a unit spelling to its canonical form
    - as_boolean(text): Interpret true/false style answers

Dependencies:
    - re (std)
    - common.thresholds: NOTATION_VARIANTS, UNIT_SYNONYMS, PHRASING_STOPWORDS

Used By:
    - scoring.engine
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, NamedTuple, Optional

from exam_toolkit.common.thresholds import NOTATION_VARIANTS, PHRASING_STOPWORDS, UNIT_SYNONYMS

_CURLY_QUOTES = str.maketrans({
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
})
_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCTUATION = re.compile(r"[.,;:!?]+$")
_WRAPPING_QUOTES = ("\"", "'")
_TOKEN = re.compile(r"\w+")
_QUANTITY = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)\s*(.*?)\s*$")

_TRUE_WORDS = frozenset({"true", "t", "yes", "y"})
_FALSE_WORDS = frozenset({"false", "f", "no", "n"})


def normalize_answer(text: str) -> str:
    """
    Canonical form of an answer for equality comparison.

    Trims, case-folds, collapses whitespace, unifies curly quotes and
    strips trailing punctuation and wrapping quotes.

    Example:
        >>> normalize_answer('  "Paris."  ')
        'paris'
    """
    result = _WHITESPACE.sub(" ", text.translate(_CURLY_QUOTES)).strip().casefold()
    previous = None
    while result != previous:
        previous = result
        result = _TRAILING_PUNCTUATION.sub("", result).strip()
        if len(result) >= 2 and result[0] == result[-1] and result[0] in _WRAPPING_QUOTES:
            result = result[1:-1].strip()
    return result


def _build_notation_index() -> Dict[str, str]:
    index: Dict[str, str] = {}
    for canonical, variants in NOTATION_VARIANTS.items():
        index[canonical] = canonical
        for variant in variants:
            index[normalize_answer(variant)] = canonical
    return index


_NOTATION_INDEX = _build_notation_index()


def canonical_notation(normalized: str) -> str:
    """Collapse a known notation variant (co₂, 2⁺, ...) to its canonical form."""
    return _NOTATION_INDEX.get(normalized, normalized)


def answers_match(submitted: str, expected: str) -> bool:
    """True when two answers are equal after normalization and notation folding."""
    left = normalize_answer(submitted)
    right = normalize_answer(expected)
    if not left or not right:
        return False
    return left == right or canonical_notation(left) == canonical_notation(right)


def contains_phrase(text: str, phrase: str) -> bool:
    """Whole-phrase containment of a normalized phrase inside normalized text."""
    haystack = normalize_answer(text)
    needle = normalize_answer(phrase)
    if not haystack or not needle:
        return False
    return re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", haystack) is not None


def keywords(text: str) -> FrozenSet[str]:
    """Content words of an answer (stopwords removed)."""
    tokens = _TOKEN.findall(normalize_answer(text))
    return frozenset(token for token in tokens if token not in PHRASING_STOPWORDS)


def phrasing_matches(submitted: str, expected: str, keyword_ratio: float) -> bool:
    """
    Looser comparison for alternatives that accept equivalent phrasing.

    Matches when either side contains the other as a whole phrase (and the
    contained side has at least one content word), or when the submission
    covers at least `keyword_ratio` of the expected content words.
    """
    if answers_match(submitted, expected):
        return True
    expected_words = keywords(expected)
    submitted_words = keywords(submitted)
    if not expected_words or not submitted_words:
        return False
    if contains_phrase(submitted, expected) or contains_phrase(expected, submitted):
        return True
    coverage = len(expected_words & submitted_words) / len(expected_words)
    return coverage >= keyword_ratio


# ─────────────────────────────────────────────────────────────────────────────
# Numbers and units
# ─────────────────────────────────────────────────────────────────────────────

class Quantity(NamedTuple):
    """Numeric answer with its (possibly empty) unit text."""
    value: float
    unit: str


def parse_quantity(text: str) -> Optional[Quantity]:
    """
    Split an answer into number and unit.

    Example:
        >>> parse_quantity("5.2 cm")
        Quantity(value=5.2, unit='cm')
        >>> parse_quantity("Paris") is None
        True
    """
    match = _QUANTITY.match(_TRAILING_PUNCTUATION.sub("", text.strip()))
    if match is None:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return Quantity(value, match.group(2))


def _unit_form(unit: str) -> str:
    return _WHITESPACE.sub("", unit).casefold()


def _build_unit_index() -> Dict[str, str]:
    index: Dict[str, str] = {}
    for canonical, spellings in UNIT_SYNONYMS.items():
        index[_unit_form(canonical)] = canonical
        for spelling in spellings:
            index[_unit_form(spelling)] = canonical
    return index


_UNIT_INDEX = _build_unit_index()


def canonical_unit(unit: str) -> str:
    """Canonical spelling of a unit; unknown units come back in comparable form."""
    form = _unit_form(unit)
    return _UNIT_INDEX.get(form, form)


def is_known_unit(unit: str) -> bool:
    return _unit_form(unit) in _UNIT_INDEX


def units_match(submitted: str, expected: str) -> bool:
    if not submitted or not expected:
        return False
    return canonical_unit(submitted) == canonical_unit(expected)


def numbers_match(submitted: float, expected: float, tolerance: float) -> bool:
    # Small epsilon so a tolerance of 0.05 accepts 5.05 vs 5.0
    return abs(submitted - expected) <= tolerance + 1e-9


def as_boolean(text: str) -> Optional[bool]:
    """Interpret a true/false style answer, None when it is neither."""
    normalized = normalize_answer(text)
    if normalized in _TRUE_WORDS:
        return True
    if normalized in _FALSE_WORDS:
        return False
    return None
