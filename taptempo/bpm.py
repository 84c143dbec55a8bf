"""Tempo estimation from tap offsets.

Every estimator takes non-decreasing offsets in milliseconds (first entry 0)
and returns BPM. Fewer than two offsets raise InsufficientDataError.
Degenerate spans (all taps at the same millisecond) are not errors: the
result is `inf` or `nan` and callers decide how to show it.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence

import numpy as np

from taptempo.errors import InsufficientDataError

MS_PER_MINUTE = 60_000


def _require_two(offsets: Sequence[int]) -> None:
    if len(offsets) < 2:
        raise InsufficientDataError()


def _divide(numerator: int, denominator: int) -> float:
    # int / int rounds once; a zero denominator falls through to inf/nan
    if denominator:
        return numerator / denominator
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(numerator) / np.float64(denominator))


def direct_count(offsets: Sequence[int]) -> float:
    """Count intervals between the first and last tap.

    Output:
    - (n - 1) * 60000 / (last - first) BPM; `inf` for a zero span.
    """
    _require_two(offsets)
    delta = int(offsets[-1]) - int(offsets[0])
    # n - 1 so only one of start/end is counted
    count = len(offsets) - 1
    return _divide(count * MS_PER_MINUTE, delta)


def simple_regression(offsets: Sequence[int]) -> float:
    """Least-squares slope of beat index against offset.

    The slope is Cov(i, x) / Var(x) in beats per millisecond, computed as
    (n*Σi·x - Σi*Σx) / (n*Σx² - (Σx)²). Numerator and denominator stay in
    Python ints, so only the final division rounds and long sessions lose no
    precision. Output is `nan` when every offset is identical.
    """
    _require_two(offsets)
    sum_x = 0
    sum_x_squared = 0
    sum_xy = 0
    for idx, value in enumerate(offsets):
        x = int(value)
        sum_x += x
        sum_x_squared += x * x
        sum_xy += idx * x

    n = len(offsets)
    sum_y = n * (n - 1) // 2

    numerator = MS_PER_MINUTE * (n * sum_xy - sum_x * sum_y)
    denominator = n * sum_x_squared - sum_x * sum_x
    return _divide(numerator, denominator)


def pairwise_bpm(offsets: Sequence[int]) -> np.ndarray:
    """Tempo (j - i) * 60000 / (x_j - x_i) for every pair of taps i < j.

    Pairs with equal offsets yield `inf` and are kept.
    """
    x = np.asarray(offsets, dtype=np.int64)
    i, j = np.triu_indices(len(x), k=1)
    with np.errstate(divide="ignore"):
        return ((j - i) * MS_PER_MINUTE).astype(np.float64) / (x[j] - x[i]).astype(np.float64)


def thiel_sen(offsets: Sequence[int]) -> float:
    """Median of all pairwise slopes, as BPM.

    The median is found by rank selection (`np.partition`), not a full sort.
    For an even number of pairs the two central order statistics are
    averaged.
    """
    _require_two(offsets)
    tempos = pairwise_bpm(offsets)
    mid = tempos.size // 2
    if tempos.size % 2:
        median = np.partition(tempos, mid)[mid]
    else:
        selected = np.partition(tempos, (mid - 1, mid))
        median = (selected[mid - 1] + selected[mid]) / 2
    return float(median)


ESTIMATORS: Dict[str, Callable[[Sequence[int]], float]] = {
    "direct": direct_count,
    "lin_reg": simple_regression,
    "thiel_sen": thiel_sen,
}
