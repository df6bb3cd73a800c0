"""X-axis synchronization across files.

Every file gets one additive X offset computed from its master channel (the
first channel on the active X axis whose y name or description equals the
master axis):

- ``xmin``:        offset = -min(master x)
- ``xmax``:        offset = -max(master x)
- ``ythreshold``:  offset = -x at the first crossing of the threshold

A file that cannot be synchronized gets offset 0 and an error message; the
rest of the batch is unaffected.  Channel data is never modified here, the
offsets are applied at render time (see ``analysis.series``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from curve_viewer.analysis.stats import format_number
from curve_viewer.models.curves import CurveChannel
from curve_viewer.models.files import ImportedFile
from curve_viewer.models.session import SyncMode, SyncState
from curve_viewer.progress import CancelToken, ProgressCallback, is_cancelled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    offsets: Dict[str, float] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()
    cancelled: bool = False

    def apply_to(self, state: SyncState) -> None:
        state.apply(self.offsets, self.errors)


def find_master_channel(file: ImportedFile, master_axis: str, active_x_axis: str) -> Optional[CurveChannel]:
    for ch in file.curves:
        if ch.x_name == active_x_axis and (ch.y_name == master_axis or ch.description == master_axis):
            return ch
    return None


def find_threshold_crossing(xs: Sequence[float], ys: Sequence[float], threshold: float) -> Optional[float]:
    """
    X position where Y first reaches ``threshold``.

    An exact hit returns that sample's X.  Otherwise the first consecutive pair
    that strictly straddles the threshold is linearly interpolated.  ``None``
    when the series never reaches it.
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    if x.size == 0:
        return None
    if y[0] == threshold:
        return float(x[0])
    if x.size < 2:
        return None

    y0 = y[:-1]
    y1 = y[1:]
    hit = (y1 == threshold) | ((y0 < threshold) & (y1 > threshold)) | ((y0 > threshold) & (y1 < threshold))
    idx = np.flatnonzero(hit)
    if idx.size == 0:
        return None
    i = int(idx[0]) + 1
    if y[i] == threshold:
        return float(x[i])
    ratio = (threshold - y[i - 1]) / (y[i] - y[i - 1])
    return float(x[i - 1] + ratio * (x[i] - x[i - 1]))


def _file_offset(
    ch: CurveChannel, mode: SyncMode, threshold: float, label: str
) -> Tuple[float, Optional[str]]:
    if mode in (SyncMode.XMIN, SyncMode.XMAX):
        finite = ch.points_x[~np.isnan(ch.points_x)]
        if finite.size == 0:
            return 0.0, f"{label}: Master channel has no numeric X values"
        extreme = finite.min() if mode is SyncMode.XMIN else finite.max()
        return -float(extreme), None

    crossing = find_threshold_crossing(ch.points_x, ch.points_y, threshold)
    if crossing is None:
        return 0.0, f"{label}: Y-threshold {format_number(threshold)} not crossed"
    return -crossing, None


def compute_sync_offsets(
    files: Sequence[ImportedFile],
    mode,
    master_axis: str,
    active_x_axis: str,
    threshold: float = 0.0,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancelToken] = None,
) -> SyncResult:
    """
    Compute one X offset per file.

    ``on_progress(i, total, message)`` fires before each file and
    ``(total, total, "Done")`` at the end.  If ``cancel`` is set between two
    files, the offsets computed so far are returned with ``cancelled=True``.

    Raises
    ------
    ValueError
        For ``mode="off"`` or an unknown mode.
    """
    mode = SyncMode.parse(mode)
    if mode is SyncMode.OFF:
        raise ValueError("Sync mode 'off' has no offsets to compute; reset the sync state instead.")

    offsets: Dict[str, float] = {}
    errors: List[str] = []
    total = len(files)

    for i, f in enumerate(files):
        if is_cancelled(cancel):
            logger.info("Sync cancelled after %d of %d files", i, total)
            return SyncResult(offsets, tuple(errors), cancelled=True)
        label = f.label
        if on_progress is not None:
            on_progress(i, total, f"Calculating offset for {label}…")

        ch = find_master_channel(f, master_axis, active_x_axis)
        if ch is None or ch.n_points == 0:
            offsets[f.id] = 0.0
            errors.append(f'{label}: No master channel found for Y-axis "{master_axis}"')
            continue

        offset, err = _file_offset(ch, mode, float(threshold), label)
        offsets[f.id] = offset
        if err is not None:
            errors.append(err)

    if on_progress is not None:
        on_progress(total, total, "Done")
    for e in errors:
        logger.warning(e)
    return SyncResult(offsets, tuple(errors))


# ----------------------------------------------------------------------
# Master axis candidates
# ----------------------------------------------------------------------

def _axes_on(file: ImportedFile, active_x_axis: str) -> List[str]:
    return list(dict.fromkeys(ch.axis_identity for ch in file.curves if ch.x_name == active_x_axis))


def all_y_axes(files: Iterable[ImportedFile], active_x_axis: str) -> List[str]:
    """Every Y axis identity on the active X axis in any file (xmin/xmax candidates)."""
    out: Dict[str, None] = {}
    for f in files:
        for name in _axes_on(f, active_x_axis):
            out.setdefault(name, None)
    return list(out)


def common_y_axes(files: Sequence[ImportedFile], active_x_axis: str) -> List[str]:
    """Y axis identities present in every file (ythreshold candidates), first-file order."""
    if not files:
        return []
    per_file = [set(_axes_on(f, active_x_axis)) for f in files]
    return [name for name in _axes_on(files[0], active_x_axis) if all(name in s for s in per_file)]
