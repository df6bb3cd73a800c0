"""Curve Viewer -- Python tooling for machine-measurement curve files.

Measurement stations write one XML document per part (optionally zipped into a
``.zpg`` container).  Each document carries multi-channel X/Y curves with
annotated lines, windows and circles plus tabular set/actual values.

This package provides tools for:
- Discovering and importing ``.xml`` / ``.zpg`` curve files (sequentially or
  through a bounded worker pool)
- Aggregating declared axis ranges and resolving which channel instances a
  plot must render
- Downsampling dense series with Largest-Triangle-Three-Buckets
- Synchronizing files on a common X reference (extrema or threshold crossing)
- Summary statistics, histograms, Pearson correlation and linear regression
  over set/actual value rows across files

Key principles:
- Parsed data is immutable: offsets and visibility never touch channel arrays
- Per-file failures are reported, never fatal for a batch
- Degenerate statistics are ``None``, never NaN/inf

Main subpackages:
- models: Data models (ImportedFile, CurveChannel, ValueRow, groups, session state)
- ingest: Point decoding, XML parsing, archive extraction, discovery, import, worker pool
- analysis: Axes, visibility, LTTB, sync, statistics, value tables, plotting helpers
"""

__all__ = []
