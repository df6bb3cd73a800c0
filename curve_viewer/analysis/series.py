"""Plot-ready series from resolved channel instances.

Builds, for the instances returned by ``resolve_visible_channels``:

- one :class:`PlotSeries` per instance, X shifted by the file's sync offset and
  optionally LTTB-downsampled;
- the element primitives (lines, windows, circles) that pass the global and
  per-instance element toggles, shifted by the same offset;
- the Y axes (one per axis identity) with ranges aggregated from the declared
  coordinate systems, and the X range including offsets.

Nothing here mutates channel data; shifted arrays are new arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from curve_viewer.analysis.axes import DEFAULT_RANGE, AxisRange, aggregate_ranges
from curve_viewer.analysis.lttb import lttb_indices
from curve_viewer.analysis.visibility import (
    ChannelInstance,
    ChannelVisibility,
    GlobalVisibility,
    VisibilityMap,
    element_key,
)
from curve_viewer.models.curves import CurveChannel


# ----------------------------------------------------------------------
# Primitives
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class LineSegment:
    x0: float
    y0: float
    x1: float
    y1: float
    color: int
    thickness: int
    style: int
    name: str
    key: str


@dataclass(frozen=True)
class WindowRect:
    x_min: float
    y_min: float
    x_max: float
    y_max: float
    color: int
    thickness: int
    style: int
    is_filled: bool
    name: str
    key: str


@dataclass(frozen=True)
class CircleMark:
    cx: float
    cy: float
    radius: float
    color: int
    thickness: int
    is_filled: bool
    name: str
    key: str


@dataclass(frozen=True)
class PlotSeries:
    name: str
    instance: ChannelInstance
    x: np.ndarray
    y: np.ndarray
    axis: str
    offset: float
    show_points: bool
    lines: Tuple[LineSegment, ...] = ()
    windows: Tuple[WindowRect, ...] = ()
    circles: Tuple[CircleMark, ...] = ()

    @property
    def channel(self) -> CurveChannel:
        return self.instance.channel


@dataclass(frozen=True)
class YAxisSpec:
    name: str
    unit: str
    range: AxisRange
    color: int


@dataclass(frozen=True)
class PlotModel:
    x_axis: str
    x_unit: str
    x_range: Tuple[float, float]
    y_axes: Tuple[YAxisSpec, ...]
    series: Tuple[PlotSeries, ...]

    def axis_index(self, name: str) -> int:
        for i, a in enumerate(self.y_axes):
            if a.name == name:
                return i
        return -1


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def shift_points(xs, offset: float) -> np.ndarray:
    """New array ``xs + offset``."""
    return np.asarray(xs, dtype=np.float64) + float(offset)


def series_name(instance: ChannelInstance) -> str:
    ch = instance.channel
    return f"{instance.file.label} - {ch.description or ch.y_name}"


def _element_name(group_description: str, item_description: str) -> str:
    if item_description:
        return f"{group_description} - {item_description}"
    return group_description


def offset_x_range(instances: Sequence[ChannelInstance], offsets: Optional[Mapping[str, float]] = None) -> Tuple[float, float]:
    """Declared X range of the instances with each file's offset added."""
    if not instances:
        return DEFAULT_RANGE.min_x, DEFAULT_RANGE.max_x
    offsets = offsets or {}
    lo = min(i.channel.coord_system.min_x + offsets.get(i.file.id, 0.0) for i in instances)
    hi = max(i.channel.coord_system.max_x + offsets.get(i.file.id, 0.0) for i in instances)
    return float(lo), float(hi)


def visible_elements(
    channel: CurveChannel,
    entry: Optional[ChannelVisibility],
    global_visibility: Optional[GlobalVisibility] = None,
    offset: float = 0.0,
) -> Tuple[Tuple[LineSegment, ...], Tuple[WindowRect, ...], Tuple[CircleMark, ...]]:
    """
    Element primitives to draw for one channel instance.

    A family is drawn when the global toggles allow it and the instance's
    element flag is on; single groups/items are dropped when their drill-down
    key is hidden.  X coordinates are shifted by ``offset``; windows are
    normalized to min/max corners.
    """
    gv = global_visibility or GlobalVisibility()
    ge = channel.graphic_elements

    def _on(kind: str) -> bool:
        return gv.kind_enabled(kind) and (entry is None or entry.element_visible(kind))

    def _hidden(key: str) -> bool:
        return entry is not None and entry.is_hidden(key)

    lines: List[LineSegment] = []
    if _on("lines"):
        for gi, grp in enumerate(ge.line_groups):
            if _hidden(element_key("lines", gi)):
                continue
            for ii, ln in enumerate(grp.lines):
                key = element_key("lines", gi, ii)
                if _hidden(key):
                    continue
                lines.append(LineSegment(
                    ln.start_x + offset, ln.start_y, ln.end_x + offset, ln.end_y,
                    grp.color, grp.thickness, grp.style,
                    _element_name(grp.description, ln.description), key,
                ))

    windows: List[WindowRect] = []
    if _on("windows"):
        for gi, grp in enumerate(ge.window_groups):
            if _hidden(element_key("windows", gi)):
                continue
            for ii, w in enumerate(grp.windows):
                key = element_key("windows", gi, ii)
                if _hidden(key):
                    continue
                (x0, x1), (y0, y1) = w.x_bounds, w.y_bounds
                windows.append(WindowRect(
                    x0 + offset, y0, x1 + offset, y1,
                    grp.color, grp.thickness, grp.style, grp.is_filled,
                    _element_name(grp.description, w.description), key,
                ))

    circles: List[CircleMark] = []
    if _on("circles"):
        for gi, grp in enumerate(ge.circle_groups):
            if _hidden(element_key("circles", gi)):
                continue
            for ii, c in enumerate(grp.circles):
                key = element_key("circles", gi, ii)
                if _hidden(key):
                    continue
                circles.append(CircleMark(
                    c.center_x + offset, c.center_y, c.radius,
                    grp.color, grp.thickness, grp.is_filled,
                    _element_name(grp.description, c.description), key,
                ))

    return tuple(lines), tuple(windows), tuple(circles)


# ----------------------------------------------------------------------
# Model
# ----------------------------------------------------------------------

def build_plot_model(
    instances: Sequence[ChannelInstance],
    visibility: Optional[VisibilityMap] = None,
    global_visibility: Optional[GlobalVisibility] = None,
    offsets: Optional[Mapping[str, float]] = None,
    downsample_threshold: Optional[int] = None,
    x_axis: str = "",
) -> PlotModel:
    """
    Assemble everything a renderer needs for the given (already resolved) instances.

    ``downsample_threshold`` applies LTTB to series longer than the threshold;
    ``None`` keeps every point.
    """
    gv = global_visibility or GlobalVisibility()
    offsets = offsets or {}

    by_axis: Dict[str, List[CurveChannel]] = {}
    for inst in instances:
        by_axis.setdefault(inst.channel.axis_identity, []).append(inst.channel)
    y_axes = tuple(
        YAxisSpec(name=name, unit=chans[0].y_unit, range=aggregate_ranges(chans), color=chans[0].line_color)
        for name, chans in by_axis.items()
    )

    series: List[PlotSeries] = []
    for inst in instances:
        ch = inst.channel
        off = float(offsets.get(inst.file.id, 0.0))
        xs, ys = ch.points_x, ch.points_y
        if downsample_threshold is not None and ch.n_points > downsample_threshold:
            sel = np.asarray(lttb_indices(xs, ys, downsample_threshold), dtype=np.intp)
            xs, ys = xs[sel], ys[sel]
        entry = visibility.get(inst.key) if visibility is not None else None
        lines, windows, circles = visible_elements(ch, entry, gv, off)
        series.append(PlotSeries(
            name=series_name(inst),
            instance=inst,
            x=shift_points(xs, off),
            y=np.array(ys, dtype=np.float64),
            axis=ch.axis_identity,
            offset=off,
            show_points=ch.are_points_visible and gv.show_points,
            lines=lines,
            windows=windows,
            circles=circles,
        ))

    x_unit = instances[0].channel.x_unit if instances else ""
    return PlotModel(
        x_axis=x_axis or (instances[0].channel.x_name if instances else ""),
        x_unit=x_unit,
        x_range=offset_x_range(instances, offsets),
        y_axes=y_axes,
        series=tuple(series),
    )
