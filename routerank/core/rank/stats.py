"""
Numeric helpers for ranking statistics.

Sums go through math.fsum so that results computed over partitions in any
order agree to within float tolerance.
"""

import math
from typing import Iterable, Optional

import numpy as np


def std_dev(values: Iterable[float], mean: Optional[float] = None) -> float:
    """
    Population standard deviation (divides by n, not n - 1).

    Args:
        values: Observations
        mean: Centre to measure deviation from; defaults to the arithmetic mean

    Returns:
        Standard deviation, 0.0 for no values
    """
    arr = np.asarray(list(values), dtype=np.float64)
    if arr.size == 0:
        return 0.0
    centre = math.fsum(arr) / arr.size if mean is None else mean
    return math.sqrt(math.fsum((arr - centre) ** 2) / arr.size)


def geometric_mean(*values: float) -> float:
    """n-th root of the product of values; NaN when the product is negative."""
    if not values:
        return 0.0
    product = math.prod(values)
    if product < 0.0:
        return math.nan
    return product ** (1.0 / len(values))


def combine_stddev(a: float, b: float) -> float:
    # Assumes the two samples are independent; an approximation when merging.
    return math.sqrt(a * a + b * b)
