"""
Cross-file set/actual value tables.

Rows are joined across files by ``row_number``.  Deactivated rows (status 256)
never contribute to unions, series or correlation pairs.

This module provides:
- parse_numeric: leading-number parse of a textual value
- find_value: first active row with a given row number
- collect_descriptions: row_number -> description union (last write wins)
- collect_value_descriptors: every (kind, row_number, description) seen
- value_table: pandas DataFrame, one row per row_number, one column per file
- value_series: one float per file for a row (NaN when missing)
- correlation_pairs: files with a numeric value for both rows
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from curve_viewer.models.files import ImportedFile
from curve_viewer.models.values import VALUE_KINDS, ValueRow, is_nok

_NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")


def parse_numeric(text: str) -> float:
    """Parse the leading number of ``text`` (``"12.5 mm"`` -> 12.5); NaN if none."""
    if text is None:
        return float("nan")
    m = _NUMERIC_PREFIX.match(str(text))
    if m is None:
        return float("nan")
    token = m.group(1)
    if token.lstrip("+-") == "Infinity":
        return -math.inf if token.startswith("-") else math.inf
    return float(token)


def _check_kind(kind: str) -> None:
    if kind not in VALUE_KINDS:
        raise ValueError(f"Unknown value kind {kind!r}; expected one of {VALUE_KINDS}.")


def find_value(file: ImportedFile, kind: str, row_number: int) -> Optional[ValueRow]:
    for v in file.values(kind):
        if v.row_number == row_number and not v.is_deactivated:
            return v
    return None


# ----------------------------------------------------------------------
# Unions
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ValueDescriptor:
    kind: str
    row_number: float
    description: str
    unit: str = ""

    @property
    def key(self) -> str:
        return f"{self.kind}|{self.row_number}|{self.description}"


def collect_descriptions(files: Iterable[ImportedFile], kind: str) -> List[Tuple[int, str]]:
    """
    ``(row_number, description)`` pairs sorted by row number.

    When a row number appears more than once (across files or within one
    file) the last description seen wins.
    """
    _check_kind(kind)
    by_row: Dict[int, str] = {}
    for f in files:
        for v in f.values(kind):
            if v.is_deactivated:
                continue
            by_row[v.row_number] = v.description
    return sorted(by_row.items(), key=lambda kv: kv[0])


def collect_value_descriptors(files: Iterable[ImportedFile]) -> List[ValueDescriptor]:
    """Distinct (kind, row_number, description) in first-seen order, set rows first per file."""
    seen = set()
    out: List[ValueDescriptor] = []
    for f in files:
        for kind in VALUE_KINDS:
            for v in f.values(kind):
                if v.is_deactivated:
                    continue
                d = ValueDescriptor(kind, v.row_number, v.description, v.unit)
                if d.key in seen:
                    continue
                seen.add(d.key)
                out.append(d)
    return out


def value_table(files: Sequence[ImportedFile], kind: str, field: str = "value") -> pd.DataFrame:
    """
    Union table of one value kind.

    Index is ``row_number`` (sorted); column ``description`` comes from
    :func:`collect_descriptions`, then one column per file (named by the file
    label, suffixed ``#2``, ``#3``... on collisions) holding ``field`` of the
    first row with that number (``None`` when the file has none).
    """
    _check_kind(kind)
    if field not in ("value", "status", "unit"):
        raise ValueError(f"field must be 'value', 'status' or 'unit', got {field!r}")
    rows = collect_descriptions(files, kind)
    row_numbers = [r for r, _ in rows]
    table = pd.DataFrame({"description": [d for _, d in rows]}, index=pd.Index(row_numbers, name="row_number"))

    used: Dict[str, int] = {}
    for f in files:
        name = f.label
        used[name] = used.get(name, 0) + 1
        if used[name] > 1:
            name = f"{name}#{used[name]}"
        first: Dict[int, ValueRow] = {}
        for v in f.values(kind):
            first.setdefault(v.row_number, v)
        table[name] = [getattr(first[r], field) if r in first else None for r in row_numbers]
    return table


# ----------------------------------------------------------------------
# Series and pairing
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ValuePoint:
    file: ImportedFile
    row: Optional[ValueRow]
    value: float

    @property
    def label(self) -> str:
        return self.file.label

    @property
    def is_nok(self) -> bool:
        return self.row is not None and self.row.is_nok


def value_points(files: Sequence[ImportedFile], kind: str, row_number: int) -> List[ValuePoint]:
    """One point per file, in file order (NaN when absent, deactivated or not numeric)."""
    _check_kind(kind)
    out = []
    for f in files:
        row = find_value(f, kind, row_number)
        out.append(ValuePoint(f, row, parse_numeric(row.value) if row is not None else float("nan")))
    return out


def value_series(files: Sequence[ImportedFile], kind: str, row_number: int) -> pd.Series:
    """Numeric value per file as a Series indexed by file label."""
    pts = value_points(files, kind, row_number)
    return pd.Series([p.value for p in pts], index=[p.label for p in pts], dtype="float64", name=row_number)


def numeric_index_map(points: Sequence[ValuePoint]) -> List[int]:
    """Position in ``points`` of each numeric (non-NaN) value, in order."""
    return [i for i, p in enumerate(points) if not math.isnan(p.value)]


@dataclass(frozen=True)
class CorrelationPoint:
    x: float
    y: float
    label: str
    is_nok: bool


def correlation_pairs(
    files: Sequence[ImportedFile],
    subject: Tuple[str, int],
    other: Tuple[str, int],
) -> List[CorrelationPoint]:
    """
    Pair row ``subject`` (y) with row ``other`` (x) file by file.

    Only files with an active, numeric value for both rows contribute.  A pair
    is NOK when either value's status is NOK.
    """
    y_kind, y_row = subject
    x_kind, x_row = other
    _check_kind(y_kind)
    _check_kind(x_kind)
    out: List[CorrelationPoint] = []
    for f in files:
        yv = find_value(f, y_kind, y_row)
        xv = find_value(f, x_kind, x_row)
        if yv is None or xv is None:
            continue
        y = parse_numeric(yv.value)
        x = parse_numeric(xv.value)
        if math.isnan(x) or math.isnan(y):
            continue
        out.append(CorrelationPoint(x=x, y=y, label=f.label, is_nok=is_nok(yv.status) or is_nok(xv.status)))
    return out


def pair_arrays(points: Sequence[CorrelationPoint]) -> Tuple[np.ndarray, np.ndarray]:
    return (
        np.array([p.x for p in points], dtype=np.float64),
        np.array([p.y for p in points], dtype=np.float64),
    )
