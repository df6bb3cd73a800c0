from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from curve_viewer.models.curves import CurveChannel


@dataclass(frozen=True)
class AxisRange:
    min_x: float
    max_x: float
    min_y: float
    max_y: float


DEFAULT_RANGE = AxisRange(0.0, 1.0, 0.0, 1.0)


def aggregate_ranges(channels: Iterable[CurveChannel]) -> AxisRange:
    """
    Union of the declared coordinate-system bounds (min of mins, max of maxes).

    The point arrays are not scanned.  No channels gives ``[0, 1] x [0, 1]``.
    """
    chans = list(channels)
    if not chans:
        return DEFAULT_RANGE
    return AxisRange(
        min_x=min(ch.coord_system.min_x for ch in chans),
        max_x=max(ch.coord_system.max_x for ch in chans),
        min_y=min(ch.coord_system.min_y for ch in chans),
        max_y=max(ch.coord_system.max_y for ch in chans),
    )


def unique_x_axes(channels: Iterable[CurveChannel]) -> List[str]:
    """Distinct non-empty X axis names, first-seen order."""
    return list(dict.fromkeys(ch.x_name for ch in channels if ch.x_name))


def unique_y_axes(channels: Iterable[CurveChannel]) -> List[str]:
    """Distinct non-empty Y axis names, first-seen order."""
    return list(dict.fromkeys(ch.y_name for ch in channels if ch.y_name))
