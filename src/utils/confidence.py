"""Confidence helpers shared by the scorer, the result builder and the CLI.

Scores in this service are additive point sums (see
``src/services/scorer.py``) that can exceed 1.0 before they are turned into
a confidence.  This module keeps the conversion rules in one place:

1. **clamp_confidence** -- force a value into [0.0, 1.0].
2. **cap_confidence** -- apply a ceiling (the no-matrix cap) and clamp.
3. **round_confidence** -- the 3-decimal rounding used for persisted values.
4. **confidence_to_level** -- map a score to a display tier.
"""

from enum import Enum


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers for reports and API badges."""

    VERY_LOW = "very_low"    # < 0.2
    LOW = "low"              # 0.2 - 0.4
    MEDIUM = "medium"        # 0.4 - 0.6
    HIGH = "high"            # 0.6 - 0.8
    VERY_HIGH = "very_high"  # >= 0.8


def clamp_confidence(score: float) -> float:
    """Clamp *score* to [0.0, 1.0]."""
    return max(0.0, min(1.0, score))


def cap_confidence(score: float, ceiling: float) -> float:
    """Return *score* limited to *ceiling*, then clamped to [0.0, 1.0].

    Args:
        score: Raw additive score (may exceed 1.0).
        ceiling: Maximum usable confidence, e.g. 0.79 when neither matrix
            nor IFPI codes were read.

    Returns:
        The effective confidence.

    Raises:
        ValueError: If *ceiling* is outside [0.0, 1.0].
    """
    if not 0.0 <= ceiling <= 1.0:
        raise ValueError(f"ceiling must be within [0, 1], got {ceiling}")
    return clamp_confidence(min(score, ceiling))


def round_confidence(score: float, digits: int = 3) -> float:
    """Round a score the way scan results are persisted."""
    return round(score, digits)


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a human-readable level.

    Thresholds are evenly spaced at 0.2 intervals.
    """
    if score < 0.2:
        return ConfidenceLevel.VERY_LOW
    if score < 0.4:
        return ConfidenceLevel.LOW
    if score < 0.6:
        return ConfidenceLevel.MEDIUM
    if score < 0.8:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH
