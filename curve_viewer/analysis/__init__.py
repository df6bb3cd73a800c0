"""Analysis layer: pure functions over imported files.

Design principle:
  - Ingest produces immutable :class:`~curve_viewer.models.files.ImportedFile` objects.
  - Analysis never modifies them; X offsets, downsampling and element
    filtering are applied to copies when plot series are built.
"""

from .axes import AxisRange, aggregate_ranges, unique_x_axes, unique_y_axes
from .lttb import downsample, lttb_indices
from .series import PlotModel, PlotSeries, build_plot_model
from .stats import compute_histogram, compute_stats, linear_regression, pearson_r, to_precision
from .sync import SyncResult, compute_sync_offsets, find_threshold_crossing
from .values import correlation_pairs, value_series, value_table
from .visibility import VisibilityMap, resolve_visible_channels, toggle_instances, tri_state

__all__ = [
    "AxisRange",
    "aggregate_ranges",
    "unique_x_axes",
    "unique_y_axes",
    "downsample",
    "lttb_indices",
    "PlotModel",
    "PlotSeries",
    "build_plot_model",
    "compute_histogram",
    "compute_stats",
    "linear_regression",
    "pearson_r",
    "to_precision",
    "SyncResult",
    "compute_sync_offsets",
    "find_threshold_crossing",
    "correlation_pairs",
    "value_series",
    "value_table",
    "VisibilityMap",
    "resolve_visible_channels",
    "toggle_instances",
    "tri_state",
]
