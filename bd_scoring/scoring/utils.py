"""
Scoring Utilities
bd_scoring/scoring/utils.py

Precision-safe decimal math for aggregation and small helpers for the
piecewise breakpoint tables used by the pillars.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence, Tuple, TypeVar

N = TypeVar("N", float, Decimal)


def to_decimal(value: float, places: int = 4) -> Decimal:
    """Convert float to Decimal with explicit precision."""
    return Decimal(str(value)).quantize(
        Decimal(10) ** -places, rounding=ROUND_HALF_UP
    )


def clamp(value: N, min_val: N, max_val: N) -> N:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def weighted_sum(values: List[Decimal], weights: List[Decimal]) -> Decimal:
    """
    Σ(value_i × weight_i), quantized to 4 places.

    Summation runs in list order over quantized Decimals, so the result is
    identical no matter which thread produced the inputs.
    """
    if len(values) != len(weights):
        raise ValueError("values and weights must have same length")
    total = sum((v * w for v, w in zip(values, weights)), Decimal("0"))
    return total.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def weighted_mean(values: List[Decimal], weights: List[Decimal]) -> Decimal:
    """
    Calculate weighted mean.

    Formula: Σ(value_i × weight_i) / Σ(weight_i)
    Returns Decimal("0") if all weights are zero.
    """
    if len(values) != len(weights):
        raise ValueError("values and weights must have same length")

    total_weight = sum(weights, Decimal("0"))
    if total_weight == 0:
        return Decimal("0")

    numerator = sum((v * w for v, w in zip(values, weights)), Decimal("0"))
    return (numerator / total_weight).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


def score_at_least(value: float, table: Sequence[Tuple[float, float]], default: float) -> float:
    """
    First score whose threshold ``value`` meets or exceeds.

    ``table`` is ordered from highest threshold to lowest, e.g.
    ``[(24, 5.0), (18, 4.0), (12, 3.0)]``.
    """
    for threshold, score in table:
        if value >= threshold:
            return score
    return default


def score_at_most(value: float, table: Sequence[Tuple[float, float]], default: float) -> float:
    """
    First score whose ceiling ``value`` does not exceed.

    ``table`` is ordered from lowest ceiling to highest.
    """
    for ceiling, score in table:
        if value <= ceiling:
            return score
    return default


def contains_any(texts: Sequence[str], keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of any keyword in any text."""
    lowered = [t.lower() for t in texts]
    return any(k in t for t in lowered for k in keywords)


def count_matching(texts: Sequence[str], keywords: Sequence[str]) -> int:
    """Number of texts containing at least one keyword."""
    return sum(1 for t in texts if any(k in t.lower() for k in keywords))


def score_below(value: float, table: Sequence[Tuple[float, float]], default: float) -> float:
    """
    First score whose bound ``value`` is strictly under.

    ``table`` is ordered from lowest bound to highest.
    """
    for bound, score in table:
        if value < bound:
            return score
    return default
