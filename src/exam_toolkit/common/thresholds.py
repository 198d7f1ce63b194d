"""Centralized threshold and lookup-table configuration.

This module contains the fixed thresholds and tables used by scoring and
results aggregation. Having these in one place makes tuning easier and
documents where each value comes from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple


@dataclass(frozen=True)
class GradeThresholds:
    """Percentage lower bounds for each grade band, highest first."""

    bands: Tuple[Tuple[float, str], ...] = (
        (90.0, "A+"),
        (80.0, "A"),
        (70.0, "B"),
        (60.0, "C"),
        (50.0, "D"),
    )
    fallback: str = "F"

    def grade_for(self, percentage: float) -> str:
        for lower_bound, grade in self.bands:
            if percentage >= lower_bound:
                return grade
        return self.fallback


@dataclass(frozen=True)
class MeasurementThresholds:
    """Default +/- tolerances per measuring instrument."""

    instrument_tolerances: Dict[str, float] = field(default_factory=lambda: {
        "ruler": 0.05,        # +/-0.5mm expressed in cm
        "vernier": 0.005,
        "micrometer": 0.0005,
        "balance": 0.01,      # g
        "stopwatch": 0.01,    # s
        "thermometer": 0.5,   # degrees C
        "ammeter": 0.01,      # A
        "voltmeter": 0.01,    # V
    })
    default_tolerance: float = 0.05

    def tolerance_for(self, instrument: str | None) -> float:
        if not instrument:
            return self.default_tolerance
        return self.instrument_tolerances.get(instrument.strip().lower(), self.default_tolerance)


# Canonical unit -> accepted spellings (all compared case-folded, spaces removed)
UNIT_SYNONYMS: Dict[str, FrozenSet[str]] = {
    "m/s": frozenset({"m/s", "ms-1", "ms⁻¹", "m.s-1", "m.s⁻¹", "metrespersecond", "meterspersecond"}),
    "m/s2": frozenset({"m/s2", "m/s²", "ms-2", "ms⁻²", "metrespersecondsquared"}),
    "kg": frozenset({"kg", "kilogram", "kilograms"}),
    "g": frozenset({"g", "gram", "grams"}),
    "m": frozenset({"m", "metre", "metres", "meter", "meters"}),
    "cm": frozenset({"cm", "centimetre", "centimetres", "centimeter", "centimeters"}),
    "mm": frozenset({"mm", "millimetre", "millimetres", "millimeter", "millimeters"}),
    "km": frozenset({"km", "kilometre", "kilometres", "kilometer", "kilometers"}),
    "s": frozenset({"s", "sec", "secs", "second", "seconds"}),
    "min": frozenset({"min", "mins", "minute", "minutes"}),
    "h": frozenset({"h", "hr", "hrs", "hour", "hours"}),
    "n": frozenset({"n", "newton", "newtons"}),
    "j": frozenset({"j", "joule", "joules"}),
    "w": frozenset({"w", "watt", "watts"}),
    "a": frozenset({"a", "amp", "amps", "ampere", "amperes"}),
    "v": frozenset({"v", "volt", "volts"}),
    "ohm": frozenset({"ohm", "ohms", "Ω", "ω"}),
    "pa": frozenset({"pa", "pascal", "pascals"}),
    "°c": frozenset({"°c", "c", "degc", "degreesc", "degreescelsius", "celsius"}),
    "k": frozenset({"k", "kelvin"}),
    "mol": frozenset({"mol", "mole", "moles"}),
    "cm3": frozenset({"cm3", "cm³", "cubiccentimetres", "cubiccentimeters"}),
    "dm3": frozenset({"dm3", "dm³"}),
}

# Equivalent notations accepted in place of a canonical (normalized) answer
NOTATION_VARIANTS: Dict[str, FrozenSet[str]] = {
    "2+": frozenset({"2⁺", "2 +", "+2"}),
    "2-": frozenset({"2⁻", "2 -", "-2"}),
    "3+": frozenset({"3⁺", "3 +", "+3"}),
    "3-": frozenset({"3⁻", "3 -", "-3"}),
    "h2o": frozenset({"h₂o", "water"}),
    "co2": frozenset({"co₂", "carbon dioxide"}),
    "o2": frozenset({"o₂", "oxygen"}),
}

# Words ignored when comparing equivalent phrasing
PHRASING_STOPWORDS: FrozenSet[str] = frozenset({
    "a", "an", "the", "of", "is", "are", "was", "were", "to", "in", "on",
    "it", "its", "and", "or", "by", "for", "with", "that", "this", "as", "be",
})


# Global instances for easy access
GRADE_THRESHOLDS = GradeThresholds()
MEASUREMENT_THRESHOLDS = MeasurementThresholds()
