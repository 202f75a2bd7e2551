"""
Order-statistic winsorization.

Both rules sort a copy of the input, pick a lower and an upper order statistic,
and clamp every value into that band while keeping the input order and length.
They differ only in how the order statistics are indexed:

- ``winsorize`` (rank rule): lower = floor((n-1) * lower / 100),
  upper = ceil((n-1) * upper / 100). Used for portfolio averages.
- ``winsorize_by_count`` (count rule): lower = floor(n * lower / 100),
  upper = floor(n * upper / 100) - 1. Used for tercile totals.

The index arithmetic is exact, not interpolated: results are existing sample
values, never blends of two neighbours.
"""

import math
from typing import List, Sequence, Tuple, Union

import numpy as np

Number = Union[int, float]


def symmetric_bounds(percentile: Number) -> Tuple[Number, Number]:
    """Tail percentile -> (lower, upper) pair, e.g. 5 -> (5, 95)."""
    return percentile, 100 - percentile


def _validate_percentiles(lower: Number, upper: Number) -> None:
    if not 0 <= lower <= 100 or not 0 <= upper <= 100:
        raise ValueError(f"Percentiles must be within [0, 100], got ({lower}, {upper})")
    if lower > upper:
        raise ValueError(f"Lower percentile {lower} exceeds upper percentile {upper}")


def _clamp(values: Sequence[Number], lower_idx: int, upper_idx: int) -> List[float]:
    n = len(values)
    arr = np.asarray(values, dtype=float)
    ordered = np.sort(arr)

    lower_bound = ordered[min(max(lower_idx, 0), n - 1)]
    upper_bound = ordered[min(max(upper_idx, 0), n - 1)]

    # max(lower, min(upper, v)): the lower bound wins if the band is inverted
    return np.maximum(lower_bound, np.minimum(upper_bound, arr)).tolist()


def winsorize(values: Sequence[Number], lower_percentile: Number, upper_percentile: Number) -> List[float]:
    """
    Clamp values to the rank-indexed lower/upper order statistics.

    Args:
        values: Sequence of numbers in any order
        lower_percentile: Lower tail percentile (0-100)
        upper_percentile: Upper tail percentile (0-100)

    Returns:
        List with the same length and order as ``values``

    Example:
        >>> winsorize(list(range(1, 101)), 5, 95)[:2]
        [5.0, 5.0]
    """
    _validate_percentiles(lower_percentile, upper_percentile)
    n = len(values)
    if n == 0:
        return []
    if n == 1:
        return [float(values[0])]

    lower_idx = math.floor((n - 1) * lower_percentile / 100)
    upper_idx = math.ceil((n - 1) * upper_percentile / 100)
    return _clamp(values, lower_idx, upper_idx)


def winsorize_by_count(
    values: Sequence[Number], lower_percentile: Number, upper_percentile: Number
) -> List[float]:
    """Clamp values to the count-indexed lower/upper order statistics."""
    _validate_percentiles(lower_percentile, upper_percentile)
    n = len(values)
    if n == 0:
        return []
    if n == 1:
        return [float(values[0])]

    lower_idx = math.floor(n * lower_percentile / 100)
    upper_idx = math.floor(n * upper_percentile / 100) - 1
    return _clamp(values, lower_idx, upper_idx)
