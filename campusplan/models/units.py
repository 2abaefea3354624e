"""
Numeric helpers shared by every campus transform.
All of them are total: non-finite input resolves to a fallback instead of raising.
"""
import math


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp value into [minimum, maximum]."""
    return min(maximum, max(minimum, value))


def clamp_min(value: float, minimum: float) -> float:
    return max(minimum, value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def round_to(value: float, decimals: int = 2) -> float:
    """Round to a fixed number of decimals (half-up, not banker's rounding)."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def to_positive_int(value, fallback: int) -> int:
    """Coerce to an integer >= 1, or return fallback for non-finite input."""
    if not is_finite_number(value):
        return fallback
    return max(1, round_half_up(value))


def to_float(value, fallback: float) -> float:
    if not is_finite_number(value):
        return fallback
    return float(value)
