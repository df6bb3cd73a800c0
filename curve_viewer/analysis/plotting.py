"""Matplotlib rendering of a :class:`~curve_viewer.analysis.series.PlotModel`.

The caller owns the figure and backend; these helpers only draw on the Axes
they are given.
"""

from __future__ import annotations

from typing import List, Sequence

from matplotlib.patches import Rectangle

from curve_viewer.analysis.colors import int_color_to_hex, int_color_to_rgba, line_style_to_mpl
from curve_viewer.analysis.series import PlotModel, PlotSeries
from curve_viewer.analysis.stats import HistogramBin, Regression

# outward shift (points) of each extra right-hand Y spine
_SPINE_STEP = 60


def _axis_label(name: str, unit: str) -> str:
    return f"{name} [{unit}]" if unit else name


def _draw_elements(ax, s: PlotSeries) -> None:
    for ln in s.lines:
        ax.plot(
            [ln.x0, ln.x1], [ln.y0, ln.y1],
            color=int_color_to_hex(ln.color),
            lw=ln.thickness,
            linestyle=line_style_to_mpl(ln.style),
            label="_" + ln.name,
            zorder=3,
        )
    for w in s.windows:
        ax.add_patch(Rectangle(
            (w.x_min, w.y_min), w.x_max - w.x_min, w.y_max - w.y_min,
            edgecolor=int_color_to_hex(w.color),
            facecolor=int_color_to_rgba(w.color, 0.2) if w.is_filled else "none",
            lw=w.thickness,
            linestyle=line_style_to_mpl(w.style),
            zorder=3,
        ))
    if s.circles:
        ax.scatter(
            [c.cx for c in s.circles], [c.cy for c in s.circles],
            s=[(2 * c.radius) ** 2 for c in s.circles],
            edgecolors=[int_color_to_hex(c.color) for c in s.circles],
            facecolors=[int_color_to_hex(c.color) if c.is_filled else "none" for c in s.circles],
            linewidths=[c.thickness for c in s.circles],
            zorder=4,
        )


def draw_plot_model(ax, model: PlotModel, legend: bool = True) -> List:
    """Draw every series of ``model``.

    Parameters
    ----------
    ax : matplotlib Axes
        Hosts the first Y axis; further Y axes are ``ax.twinx()`` with their
        right spine shifted outward.
    model : PlotModel
    legend : bool
        Add a legend of the curve names on ``ax``.

    Returns
    -------
    list of Axes
        One per entry of ``model.y_axes`` (just ``[ax]`` when there are none).
    """
    axes = [ax]
    for i, y_axis in enumerate(model.y_axes):
        if i > 0:
            twin = ax.twinx()
            if i > 1:
                twin.spines["right"].set_position(("outward", _SPINE_STEP * (i - 1)))
            axes.append(twin)
        target = axes[i]
        target.set_ylabel(_axis_label(y_axis.name, y_axis.unit), color=int_color_to_hex(y_axis.color))
        if y_axis.range.max_y > y_axis.range.min_y:
            target.set_ylim(y_axis.range.min_y, y_axis.range.max_y)

    handles = []
    for s in model.series:
        idx = model.axis_index(s.axis)
        target = axes[idx] if idx >= 0 else ax
        ch = s.channel
        if ch.is_line_visible:
            (h,) = target.plot(
                s.x, s.y,
                color=int_color_to_hex(ch.line_color),
                lw=ch.line_thickness,
                linestyle=line_style_to_mpl(ch.line_style),
                marker="o" if s.show_points else None,
                ms=3,
                mfc=int_color_to_hex(ch.points_color),
                mec=int_color_to_hex(ch.points_color),
                label=s.name,
                zorder=2,
            )
            handles.append(h)
        elif s.show_points:
            handles.append(target.scatter(s.x, s.y, s=9, color=int_color_to_hex(ch.points_color), label=s.name))
        _draw_elements(target, s)

    lo, hi = model.x_range
    if hi > lo:
        ax.set_xlim(lo, hi)
    ax.set_xlabel(_axis_label(model.x_axis, model.x_unit))
    ax.grid(True, alpha=0.3)
    if legend and handles:
        ax.legend(handles=handles, fontsize=8, loc="best")
    return axes


def plot_histogram(ax, bins: Sequence[HistogramBin], title: str = "") -> None:
    """Bar chart of histogram counts, labelled by lower edge."""
    pos = list(range(len(bins)))
    ax.bar(pos, [b.count for b in bins], color="tab:blue", alpha=0.8)
    ax.set_xticks(pos)
    ax.set_xticklabels([b.label for b in bins], rotation=45, ha="right", fontsize=8)
    ax.set_ylabel("count")
    if title:
        ax.set_title(title)


def plot_correlation(ax, xs, ys, nok=None, regression: Regression = None, labels=("x", "y")) -> None:
    """Scatter of paired values (NOK points in red) with an optional fit line."""
    nok = list(nok) if nok is not None else [False] * len(xs)
    ok_x = [x for x, bad in zip(xs, nok) if not bad]
    ok_y = [y for y, bad in zip(ys, nok) if not bad]
    bad_x = [x for x, bad in zip(xs, nok) if bad]
    bad_y = [y for y, bad in zip(ys, nok) if bad]
    ax.scatter(ok_x, ok_y, s=16, color="tab:blue", label="OK", zorder=3)
    if bad_x:
        ax.scatter(bad_x, bad_y, s=16, color="tab:red", label="NOK", zorder=3)
    if regression is not None and len(xs) > 1:
        lo, hi = min(xs), max(xs)
        ax.plot([lo, hi], list(regression.predict([lo, hi])), "--", color="grey", lw=1.0, label="fit")
    ax.set_xlabel(labels[0])
    ax.set_ylabel(labels[1])
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize=8)
