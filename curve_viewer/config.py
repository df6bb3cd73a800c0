"""Viewer configuration -- bundles every tunable of the import and analysis layers.

A ViewerConfig groups the knobs that change how files are imported and how
series/statistics are prepared.  It can be:

- Constructed with defaults (``ViewerConfig()``)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON session files
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple


MIN_HISTOGRAM_BINS = 2
MAX_HISTOGRAM_BINS = 100

_EXECUTORS = ("thread", "process")


def default_worker_count() -> int:
    """CPU count minus one slot for the orchestrating process, at least 1."""
    return max(1, (os.cpu_count() or 2) - 1)


@dataclass(frozen=True)
class ViewerConfig:
    """Frozen configuration for import, sync and statistics.

    Fields
    ------
    batch_size : int
        Files per sub-batch; progress and ``on_batch`` fire once per sub-batch.
    workers : int or None
        Parallel parse slots.  ``None`` means ``cpu_count - 1`` (minimum 1).
    min_chunk_size : int
        Lower bound on the number of files handed to one worker request.
    executor : str
        ``"thread"`` or ``"process"`` (concurrent.futures executor kind).
    histogram_bins : int
        Default bin count for value histograms (2..100).
    label_digits : int
        Significant digits of histogram bin labels.
    downsample_threshold : int
        Target point count for LTTB when preparing plot series.
    extensions : tuple of str
        Lower-case file suffixes accepted by discovery and import.
    """

    batch_size: int = 50
    workers: Optional[int] = None
    min_chunk_size: int = 5
    executor: str = "thread"

    histogram_bins: int = 10
    label_digits: int = 4

    downsample_threshold: int = 2000

    extensions: Tuple[str, ...] = (".xml", ".zpg")

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.min_chunk_size < 1:
            raise ValueError(f"min_chunk_size must be >= 1, got {self.min_chunk_size}")
        if self.executor not in _EXECUTORS:
            raise ValueError(f"executor must be one of {_EXECUTORS}, got {self.executor!r}")
        if not (MIN_HISTOGRAM_BINS <= self.histogram_bins <= MAX_HISTOGRAM_BINS):
            raise ValueError(
                f"histogram_bins must be in [{MIN_HISTOGRAM_BINS}, {MAX_HISTOGRAM_BINS}], "
                f"got {self.histogram_bins}"
            )
        if self.label_digits < 1:
            raise ValueError(f"label_digits must be >= 1, got {self.label_digits}")

    @property
    def pool_size(self) -> int:
        return self.workers if self.workers is not None else default_worker_count()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict (tuples become lists)."""
        d = asdict(self)
        d["extensions"] = list(d["extensions"])
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ViewerConfig:
        """Reconstruct from a dict (e.g. loaded from JSON)."""
        d = dict(d)  # shallow copy
        if "extensions" in d and not isinstance(d["extensions"], tuple):
            d["extensions"] = tuple(str(e).lower() for e in d["extensions"])
        return cls(**d)
