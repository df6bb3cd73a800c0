"""Point-string decoding.

The ``<points>`` element of a curve is a parser stop node: its content reaches
us as raw markup (``<point x="0.1" y="2.5"/>...``) and is scanned with a
regular expression instead of being expanded into thousands of XML nodes.
"""

from __future__ import annotations

import re
from itertools import islice
from typing import Any, Tuple

import numpy as np


POINT_PATTERN = re.compile(r'x="([^"]+)"\s+y="([^"]+)"')


def _to_float(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return float("nan")


def decode_points(raw: Any, n_points: Any) -> Tuple[np.ndarray, np.ndarray]:
    """
    Extract up to ``n_points`` ordered (x, y) pairs from raw point markup.

    Parameters
    ----------
    raw : str
        Text containing ``x="<num>" y="<num>"`` substrings.  Anything that is
        not a string yields an empty series.
    n_points : int
        Declared point count.  Scanning stops after this many matches.

    Returns
    -------
    (xs, ys) : tuple of float64 arrays
        Truncated to the number of pairs actually found (never padded).
        A pair whose text is not a number decodes to NaN.

    This function never raises.
    """
    try:
        declared = int(n_points)
    except (TypeError, ValueError):
        declared = 0
    if declared <= 0 or not isinstance(raw, str) or not raw:
        return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)

    xs = np.empty(declared, dtype=np.float64)
    ys = np.empty(declared, dtype=np.float64)
    i = 0
    for m in islice(POINT_PATTERN.finditer(raw), declared):
        xs[i] = _to_float(m.group(1))
        ys[i] = _to_float(m.group(2))
        i += 1

    if i != declared:
        return xs[:i].copy(), ys[:i].copy()
    return xs, ys
