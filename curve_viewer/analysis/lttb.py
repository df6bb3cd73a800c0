"""Largest-Triangle-Three-Buckets downsampling.

Returns indices into the original arrays, so callers can pick X, Y (and any
parallel array) consistently.  Pure function.
"""

from __future__ import annotations

import math
from typing import List, Sequence

import numpy as np


def lttb_indices(xs: Sequence[float], ys: Sequence[float], threshold: int) -> List[int]:
    """
    Select ``threshold`` indices that preserve the visual shape of (xs, ys).

    Parameters
    ----------
    xs, ys : array-like
        Parallel coordinates, length N.
    threshold : int
        Target number of points.  ``threshold >= N`` or ``threshold <= 2``
        returns every index.

    Returns
    -------
    list of int
        Starts with 0 and ends with N-1.

    Notes
    - The N-2 interior points are split into threshold-2 buckets of floating
      width ``(N-2)/(threshold-2)``.
    - In each bucket the point maximizing the triangle area with the previous
      pick and the next bucket's centroid is kept; the first maximum wins.
    - NaN areas never win (a bucket of NaN areas keeps its first index).
    - Buckets start one past the floored boundary, so the last bucket can
      be ``[N-1]`` alone and N-1 then appears twice.
    """
    x = np.asarray(xs, dtype=np.float64).reshape(-1)
    y = np.asarray(ys, dtype=np.float64).reshape(-1)
    n = int(x.size)
    if y.size != n:
        raise ValueError(f"xs and ys must have the same length, got {n} and {y.size}")
    if threshold >= n or threshold <= 2:
        return list(range(n))

    bucket_size = (n - 2) / (threshold - 2)
    sampled = [0]
    prev = 0

    with np.errstate(invalid="ignore", over="ignore"):
        for i in range(threshold - 2):
            range_start = math.floor((i + 1) * bucket_size) + 1
            range_end = min(math.floor((i + 2) * bucket_size) + 1, n)

            next_start = math.floor((i + 2) * bucket_size) + 1
            next_end = min(math.floor((i + 3) * bucket_size) + 1, n)
            if next_end > next_start:
                # cumsum sums left to right (mean() uses pairwise summation)
                count = next_end - next_start
                avg_x = float(np.cumsum(x[next_start:next_end])[-1]) / count
                avg_y = float(np.cumsum(y[next_start:next_end])[-1]) / count
            else:
                avg_x = avg_y = 0.0

            best = range_start
            if range_end > range_start:
                prev_x = x[prev]
                prev_y = y[prev]
                bx = x[range_start:range_end]
                by = y[range_start:range_end]
                area = np.abs((prev_x - avg_x) * (by - prev_y) - (prev_x - bx) * (avg_y - prev_y))
                area = np.where(np.isnan(area), -np.inf, area)
                best = range_start + int(np.argmax(area))

            sampled.append(best)
            prev = best

    sampled.append(n - 1)
    return sampled


def downsample(xs: Sequence[float], ys: Sequence[float], threshold: int):
    """Return the downsampled ``(xs, ys)`` arrays."""
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    idx = lttb_indices(x, y, threshold)
    if len(idx) == x.size:
        return x, y
    sel = np.asarray(idx, dtype=np.intp)
    return x[sel], y[sel]
