"""
Inspect curve files from the command line.

Imports every ``.xml`` / ``.zpg`` found under the given paths and prints a
summary per file.  Optionally computes sync offsets for one master Y axis and
statistics for one set/actual value row (histogram, and correlation against a
second row).

Examples
--------
$ python -m curve_viewer.scripts.inspect_curves data/ --workers 4
$ python -m curve_viewer.scripts.inspect_curves data/ --sync ythreshold --master Force --threshold 50
$ python -m curve_viewer.scripts.inspect_curves data/ --value actual:3 --correlate set:1 --bins 20
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from curve_viewer.analysis.axes import unique_x_axes
from curve_viewer.analysis.stats import (
    compute_histogram,
    compute_stats,
    format_number,
    linear_regression,
    pearson_r,
    to_precision,
)
from curve_viewer.analysis.sync import compute_sync_offsets
from curve_viewer.analysis.values import correlation_pairs, pair_arrays, value_points
from curve_viewer.config import ViewerConfig
from curve_viewer.ingest.discovery import expand_paths
from curve_viewer.ingest.importer import ImportReport, import_files
from curve_viewer.ingest.pool import parse_files_parallel
from curve_viewer.models.files import ImportedFile
from curve_viewer.models.values import VALUE_KINDS

logger = logging.getLogger(__name__)


def parse_value_ref(text: str) -> Tuple[str, float]:
    """``"actual:3"`` -> ``("actual", 3)``; ``"set:2.5"`` -> ``("set", 2.5)``."""
    kind, sep, row = str(text).partition(":")
    kind = kind.strip().lower()
    if not sep or kind not in VALUE_KINDS:
        raise ValueError(f"Expected 'set:ROW' or 'actual:ROW', got {text!r}")
    try:
        n = float(row)
    except ValueError:
        raise ValueError(f"Row number must be a number, got {row!r}") from None
    if not math.isfinite(n):
        raise ValueError(f"Row number must be finite, got {row!r}")
    return kind, int(n) if n.is_integer() else n


def _progress(current: int, total: int, message: str) -> None:
    logger.debug("[%d/%d] %s", current, total, message)


def _print_files(files: Sequence[ImportedFile]) -> None:
    for f in files:
        print(f"{f.label}  ({f.filename})")
        print(f"  channels: {f.n_channels}  set values: {len(f.set_values)}  actual values: {len(f.actual_values)}")
        for ch in f.curves:
            name = ch.description or ch.y_name
            print(f"    - {name} [{ch.y_unit}] vs {ch.x_name} [{ch.x_unit}]: {ch.n_points} points")
        for w in f.warnings:
            print(f"  [warn] {w}")


def _print_sync(files: Sequence[ImportedFile], mode: str, master: str, threshold: float, x_axis: Optional[str]) -> None:
    if x_axis is None:
        axes = unique_x_axes(ch for f in files for ch in f.curves)
        if not axes:
            print("[warn] no X axis available for sync")
            return
        x_axis = axes[0]
    result = compute_sync_offsets(files, mode, master, x_axis, threshold, on_progress=_progress)
    print(f"\nSync ({mode}, master {master!r}, x axis {x_axis!r}):")
    for f in files:
        print(f"  {f.label}: offset {format_number(result.offsets.get(f.id, 0.0))}")
    for e in result.errors:
        print(f"  [error] {e}")


def _print_values(files: Sequence[ImportedFile], subject: Tuple[str, float], other: Optional[Tuple[str, float]], bins: int, digits: int) -> None:
    kind, row = subject
    points = value_points(files, kind, row)
    values = [p.value for p in points]
    stats = compute_stats(values)
    print(f"\nValue {kind}:{row}:")
    if stats is None:
        print("  no numeric values")
        return
    print(
        f"  n={stats.count}  min={to_precision(stats.min, digits)}  max={to_precision(stats.max, digits)}  "
        f"mean={to_precision(stats.mean, digits)}  std={to_precision(stats.std_dev, digits)}"
    )
    n_nok = sum(1 for p in points if p.is_nok)
    if n_nok:
        print(f"  NOK: {n_nok}")
    for b in compute_histogram(values, bins, digits):
        print(f"  {b.label:>12}  {'#' * b.count} ({b.count})")

    if other is None:
        return
    pairs = correlation_pairs(files, subject, other)
    xs, ys = pair_arrays(pairs)
    r = pearson_r(xs, ys)
    reg = linear_regression(xs, ys)
    print(f"  correlation with {other[0]}:{other[1]}: n={len(pairs)}  r={'n/a' if r is None else to_precision(r, digits)}")
    if reg is not None:
        print(f"  fit: y = {to_precision(reg.slope, digits)} * x + {to_precision(reg.intercept, digits)}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse
    import textwrap

    p = argparse.ArgumentParser(
        prog="python -m curve_viewer.scripts.inspect_curves",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Import curve files (.xml or .zpg) and print per-file summaries.

            Directories are scanned recursively; files starting with '~' are ignored.
            """
        ),
    )
    p.add_argument("paths", nargs="+", help="Files or directories")
    p.add_argument("--workers", type=int, default=None, help="Parse in parallel with N workers (default: sequential)")
    p.add_argument("--executor", choices=("thread", "process"), default="thread", help="Worker kind for --workers")
    p.add_argument("--batch-size", type=int, default=50, help="Files per progress batch")
    p.add_argument("--sync", choices=("xmin", "xmax", "ythreshold"), default=None, help="Compute X sync offsets")
    p.add_argument("--master", default=None, help="Master Y axis for --sync")
    p.add_argument("--threshold", type=float, default=0.0, help="Y threshold for --sync ythreshold")
    p.add_argument("--x-axis", default=None, help="Active X axis name (default: first one found)")
    p.add_argument("--value", default=None, help="Value row to summarize, e.g. 'actual:3'")
    p.add_argument("--correlate", default=None, help="Second value row to correlate with --value, e.g. 'set:1'")
    p.add_argument("--bins", type=int, default=10, help="Histogram bins (2-100)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")

    ns = p.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=getattr(logging, str(ns.log_level).upper(), logging.WARNING),
                        format="%(levelname)s %(name)s: %(message)s")

    if ns.sync and not ns.master:
        p.error("--sync requires --master")
    if ns.correlate and not ns.value:
        p.error("--correlate requires --value")
    try:
        subject = parse_value_ref(ns.value) if ns.value else None
        other = parse_value_ref(ns.correlate) if ns.correlate else None
        cfg = ViewerConfig(
            batch_size=ns.batch_size,
            workers=ns.workers,
            executor=ns.executor,
            histogram_bins=ns.bins,
        )
    except ValueError as exc:
        p.error(str(exc))

    try:
        paths = expand_paths(ns.paths, cfg.extensions)
    except FileNotFoundError as exc:
        print(f"[error] {exc}")
        return 1
    if not paths:
        print("[error] no .xml or .zpg files found")
        return 1

    if ns.workers is not None:
        report: ImportReport = parse_files_parallel(paths, config=cfg, on_progress=_progress)
    else:
        report = import_files(paths, cfg, on_progress=_progress)

    print(report.summary())
    for s in report.skipped:
        print(f"[skip] {s.path}: {s.reason}")
    files: List[ImportedFile] = list(report.files)
    if not files:
        return 1

    _print_files(files)
    if ns.sync:
        _print_sync(files, ns.sync, ns.master, ns.threshold, ns.x_axis)
    if subject is not None:
        _print_values(files, subject, other, cfg.histogram_bins, cfg.label_digits)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
