"""
Statistics over one scalar per file.

This module provides:
- compute_stats: count/min/max/mean/population std
- compute_histogram: fixed-width bins keeping member indices
- pearson_r: Pearson correlation coefficient
- linear_regression: ordinary least squares slope/intercept
- to_precision: significant-digit formatting used for bin labels
- format_number: shortest display form of a number

Degenerate input (empty, fewer than 2 pairs, zero variance) gives ``None``;
NaN or infinity is never returned.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Stats:
    count: int
    min: float
    max: float
    mean: float
    std_dev: float


@dataclass(frozen=True)
class HistogramBin:
    label: str
    count: int
    indices: Tuple[int, ...]
    start: float
    end: float


@dataclass(frozen=True)
class Regression:
    slope: float
    intercept: float

    def predict(self, x):
        return self.slope * np.asarray(x, dtype=np.float64) + self.intercept


def _finite_or_none(v: float) -> Optional[float]:
    return v if math.isfinite(v) else None


def to_precision(value: float, digits: int = 4) -> str:
    """
    Format with ``digits`` significant digits.

    Fixed notation unless the decimal exponent is below -6 or at least
    ``digits``, then ``1.235e+5`` style.  Ties round away from zero.
    """
    v = float(value)
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "Infinity" if v > 0 else "-Infinity"
    if v == 0:
        return "0" if digits == 1 else "0." + "0" * (digits - 1)

    d = Decimal(v)
    e = d.adjusted()
    r = d.quantize(Decimal(1).scaleb(e - digits + 1), rounding=ROUND_HALF_UP)
    if r.adjusted() > e:  # 9.9996 -> 10.00
        e = r.adjusted()
        r = r.quantize(Decimal(1).scaleb(e - digits + 1), rounding=ROUND_HALF_UP)

    if e < -6 or e >= digits:
        mantissa = r.scaleb(-e)
        sign = "+" if e >= 0 else "-"
        return f"{mantissa:.{digits - 1}f}e{sign}{abs(e)}"
    return f"{r:.{max(0, digits - 1 - e)}f}"


# ----------------------------------------------------------------------
# Summary statistics and histogram
# ----------------------------------------------------------------------

def _clean(values: Sequence[float]) -> np.ndarray:
    a = np.asarray(values, dtype=np.float64).reshape(-1)
    return a[np.isfinite(a)]


def _mean_std(a: np.ndarray) -> Tuple[float, float]:
    """Mean and population std; rescales by max |a| when the sums overflow."""
    n = a.size
    with np.errstate(over="ignore", invalid="ignore"):
        mean = float(a.sum()) / n
        variance = float(((a - mean) ** 2).sum()) / n
    if math.isfinite(mean) and math.isfinite(variance):
        return mean, math.sqrt(variance)
    s = float(np.abs(a).max())
    b = a / s
    mean_s = float(b.sum()) / n
    std_s = math.sqrt(float(((b - mean_s) ** 2).sum()) / n)
    return mean_s * s, std_s * s


def compute_stats(values: Sequence[float]) -> Optional[Stats]:
    """Summary of the finite values; the std deviation divides by N (population)."""
    a = _clean(values)
    n = int(a.size)
    if n == 0:
        return None
    mean, std_dev = _mean_std(a)
    return Stats(count=n, min=float(a.min()), max=float(a.max()), mean=mean, std_dev=std_dev)


def compute_histogram(values: Sequence[float], bin_count: int = 10, label_digits: int = 4) -> List[HistogramBin]:
    """
    Fixed-width histogram.

    Parameters
    ----------
    values : sequence of float
        NaN and infinite entries are skipped.  Bin ``indices`` are positions
        in ``values``.
    bin_count : int
        Number of bins B.  A value equal to the maximum is clamped into the
        last bin.
    label_digits : int
        Significant digits of the lower-edge label.

    Returns
    -------
    list of HistogramBin
        Empty for no values.  When all values are equal, a single bin labelled
        with that value holds every index.
    """
    if bin_count < 1:
        raise ValueError(f"bin_count must be >= 1, got {bin_count}")
    a = np.asarray(values, dtype=np.float64).reshape(-1)
    positions = np.flatnonzero(np.isfinite(a))
    if positions.size == 0:
        return []
    v = a[positions]
    lo = float(v.min())
    hi = float(v.max())

    if lo == hi:
        label = format_number(lo)
        return [HistogramBin(label, int(v.size), tuple(int(p) for p in positions), lo, hi)]

    # hi - lo can overflow for values near the float limits
    scale = 1.0 if math.isfinite(hi - lo) else max(abs(lo), abs(hi))
    lo_s = lo / scale
    width_s = (hi / scale - lo_s) / bin_count
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = np.floor((v / scale - lo_s) / width_s)
    # width_s underflows to 0 only for subnormal spans
    raw = np.nan_to_num(raw, nan=0.0, posinf=bin_count - 1, neginf=0.0)
    idx = np.clip(raw, 0, bin_count - 1).astype(np.int64)
    members: List[List[int]] = [[] for _ in range(bin_count)]
    for pos, b in zip(positions.tolist(), idx.tolist()):
        members[b].append(pos)

    bins = []
    for i in range(bin_count):
        start = (lo_s + i * width_s) * scale
        bins.append(HistogramBin(
            label=to_precision(start, label_digits),
            count=len(members[i]),
            indices=tuple(members[i]),
            start=start,
            end=hi if i == bin_count - 1 else (lo_s + (i + 1) * width_s) * scale,
        ))
    return bins


def format_number(v: float) -> str:
    """
    Shortest display form, as JavaScript's ``String(number)`` writes it.

    ``7`` for 7.0, ``2.5`` for 2.5, ``1e-7`` for 1e-07, ``1e+21`` for 1e21.
    Fixed notation is used for decimal exponents from -6 to 20.
    """
    v = float(v)
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "Infinity" if v > 0 else "-Infinity"
    if v == 0:
        return "0"
    sign = "-" if v < 0 else ""
    # repr gives the shortest round-tripping digits
    _, digit_tuple, exp = Decimal(repr(abs(v))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exp + k  # position of the decimal point relative to the digits
    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + digits
    e = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


# ----------------------------------------------------------------------
# Correlation and regression
# ----------------------------------------------------------------------

def _pairs(xs: Sequence[float], ys: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    x = np.asarray(xs, dtype=np.float64).reshape(-1)
    y = np.asarray(ys, dtype=np.float64).reshape(-1)
    if x.size != y.size:
        raise ValueError(f"xs and ys must have the same length, got {x.size} and {y.size}")
    return x, y


def pearson_r(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    x, y = _pairs(xs, ys)
    n = x.size
    if n < 2:
        return None
    dx = x - float(x.sum()) / n
    dy = y - float(y.sum()) / n
    denom = math.sqrt(float((dx * dx).sum()) * float((dy * dy).sum()))
    if denom == 0 or not math.isfinite(denom):
        return None
    return _finite_or_none(float((dx * dy).sum()) / denom)


def linear_regression(xs: Sequence[float], ys: Sequence[float]) -> Optional[Regression]:
    x, y = _pairs(xs, ys)
    n = x.size
    if n < 2:
        return None
    mx = float(x.sum()) / n
    my = float(y.sum()) / n
    dx = x - mx
    den = float((dx * dx).sum())
    if den == 0 or not math.isfinite(den):
        return None
    slope = float((dx * (y - my)).sum()) / den
    intercept = my - slope * mx
    if not (math.isfinite(slope) and math.isfinite(intercept)):
        return None
    return Regression(slope=slope, intercept=intercept)
