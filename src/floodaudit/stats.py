from __future__ import annotations

import math
import sys
from typing import Iterable, Sequence

import numpy as np

EPSILON = sys.float_info.epsilon


def average(values: Sequence[float]) -> float:
    """Arithmetic mean; ``0.0`` for an empty sequence."""

    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def median(values: Sequence[float]) -> float:
    """Median after numeric sort; even-length inputs average the middle pair."""

    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def percentage(matching: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return matching / total * 100.0


def is_near_zero(value: float) -> bool:
    return abs(value) < EPSILON


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def fsum(values: Iterable[float]) -> float:
    return math.fsum(values)


def format_fixed(value: float, decimals: int = 2) -> str:
    """Plain fixed-decimal rendering used in exported CSV cells."""

    return f"{value:.{decimals}f}"


def format_number(value: float, decimals: int = 2) -> str:
    """Thousands-separated rendering (``1,234,567.89``) for console output."""

    if not math.isfinite(value):
        return format_fixed(0.0, decimals)
    return f"{value:,.{decimals}f}"
