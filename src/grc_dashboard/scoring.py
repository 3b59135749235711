"""
Risk scoring on the 5x5 probability/impact matrix.

Impact is the mean of five factor scores. The risk level buckets
probability x rounded impact into five tiers; matrix cell colours use a
coarser four-colour scale on the same product.
"""

import math
import numbers
from typing import NamedTuple

from grc_dashboard.errors import InvalidFieldValue
from grc_dashboard.models import LEVEL_CODES, RiskLevel

SCORE_MIN = 1
SCORE_MAX = 5

IMPACT_LABELS = {
    1: "Insignificant",
    2: "Small",
    3: "Moderate",
    4: "Large",
    5: "Catastrophic",
}

# (exclusive upper bound, level); anything at or above the last bound is Critical
LEVEL_THRESHOLDS = (
    (4, RiskLevel.SMALL),
    (8, RiskLevel.MODERATE),
    (15, RiskLevel.HIGH),
    (20, RiskLevel.LARGE),
)

RED = "#C00000"
ORANGE = "#F79646"
YELLOW = "#FFC000"
GREEN = "#92D050"


class LevelResult(NamedTuple):
    code: str
    level: RiskLevel

    @property
    def label(self) -> str:
        return self.level.value


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def derive_impact(*factors: int) -> float:
    """Mean of the five factor scores, unrounded."""
    if len(factors) != 5:
        raise TypeError(f"derive_impact expects 5 factors, got {len(factors)}")
    return sum(factors) / 5


def impact_label(impact: float) -> str:
    return IMPACT_LABELS.get(round_half_up(impact), "-")


def risk_score(probability: int, impact: float) -> int:
    """Calculate the matrix score: probability x rounded impact."""
    return probability * round_half_up(impact)


def risk_level(probability: int, impact: float) -> LevelResult:
    score = risk_score(probability, impact)
    for bound, level in LEVEL_THRESHOLDS:
        if score < bound:
            return LevelResult(LEVEL_CODES[level], level)
    return LevelResult(LEVEL_CODES[RiskLevel.CRITICAL], RiskLevel.CRITICAL)


def matrix_cell_color(probability: int, impact: float) -> str:
    score = risk_score(probability, impact)
    if score >= 15:
        return RED
    if score >= 8:
        return ORANGE
    if score >= 4:
        return YELLOW
    return GREEN


def validate_score(field: str, value) -> int:
    """Coerce a factor/probability input to an int in [1, 5] or reject it."""
    if isinstance(value, bool):
        raise InvalidFieldValue(field, value, "expected an integer")
    if isinstance(value, str):
        value = value.strip()
        if not value.lstrip("-").isdigit():
            raise InvalidFieldValue(field, value, "expected an integer")
        value = int(value)
    elif isinstance(value, numbers.Integral):
        value = int(value)
    elif isinstance(value, numbers.Real):
        if not float(value).is_integer():
            raise InvalidFieldValue(field, value, "expected an integer")
        value = int(value)
    else:
        raise InvalidFieldValue(field, value, "expected an integer")
    if not SCORE_MIN <= value <= SCORE_MAX:
        raise InvalidFieldValue(field, value, f"must be between {SCORE_MIN} and {SCORE_MAX}")
    return value
