"""
Module: scoring.config

Purpose:
    Configuration dataclass for the scoring engine.
    Immutable configuration with validation on construction.

Key Classes:
    - ScoringConfig: Tunable leniency for answer validation

Dependencies:
    - dataclasses (std)

Used By:
    - scoring.engine: validate()
    - session.config: SessionConfig
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    """
    Configuration for answer validation (immutable).

    Attributes:
        ecf_credit_fraction: Share of an alternative's credit awarded when the
            value is right but the unit is missing or wrong and the
            alternative allows error carried forward
        phrasing_keyword_ratio: Share of expected keywords that must appear
            for an equivalent-phrasing match
        numeric_tolerance: Absolute tolerance for numeric comparison when no
            measurement tolerance is given

    Invariants:
        - 0 <= ecf_credit_fraction <= 1
        - 0 < phrasing_keyword_ratio <= 1
        - numeric_tolerance >= 0

    Example:
        >>> ScoringConfig(ecf_credit_fraction=0.5).ecf_credit_fraction
        0.5
    """

    ecf_credit_fraction: float = 0.5
    phrasing_keyword_ratio: float = 0.6
    numeric_tolerance: float = 1e-9

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not 0.0 <= self.ecf_credit_fraction <= 1.0:
            raise ValueError(f"ecf_credit_fraction must be within 0..1: {self.ecf_credit_fraction}")
        if not 0.0 < self.phrasing_keyword_ratio <= 1.0:
            raise ValueError(f"phrasing_keyword_ratio must be within (0, 1]: {self.phrasing_keyword_ratio}")
        if self.numeric_tolerance < 0:
            raise ValueError(f"numeric_tolerance must be non-negative: {self.numeric_tolerance}")


DEFAULT_SCORING_CONFIG = ScoringConfig()
