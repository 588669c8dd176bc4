"""Shared numeric helpers used across readiness modules."""
from __future__ import annotations

import math
from collections.abc import Iterable


def round_half_up(value: float, places: int = 2) -> float:
    """Round *value* to *places* decimals, halves rounding towards +inf.

    Python's ``round`` uses banker's rounding; reports are expected to match
    the conventional ``floor(x + 0.5)`` behaviour instead.
    """
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def weighted_mean(values: Iterable[float], weights: Iterable[float]) -> float:
    """Return sum(w*v) / sum(w), or 0.0 when the weights sum to zero."""
    total = weight_sum = 0.0
    for v, w in zip(values, weights, strict=True):
        total += v * w
        weight_sum += w
    if weight_sum == 0:
        return 0.0
    return total / weight_sum


def ceil_percent(count: int, percent: int) -> int:
    """Integer ``ceil(count * percent / 100)`` without float drift."""
    return -(-count * percent // 100)
