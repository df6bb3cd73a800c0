from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from curve_viewer.models.curves import CurveChannel
from curve_viewer.models.values import VALUE_KINDS, ValueRow


@dataclass(frozen=True)
class HeaderInfo:
    """Per-file metadata.  ``date`` is kept as written in the file."""
    machine_desc: str = ""
    machine_short_desc: str = ""
    module_desc: str = ""
    module_short_desc: str = ""
    name_of_measure_point: str = ""
    id_string: str = ""
    type: str = ""
    variant: str = ""
    is_ionio_classification_on: bool = False
    is_marked: bool = False
    data_possibly_incorrect: bool = False
    diagram_title: str = ""
    date: str = ""


@dataclass(frozen=True, eq=False)
class ImportedFile:
    """
    Aggregate root of one parsed curve document.

    Created once at import time and never mutated; collections only add or
    remove whole files by id.
    """
    id: str
    filename: str
    header: HeaderInfo
    curves: Tuple[CurveChannel, ...] = ()
    set_values: Tuple[ValueRow, ...] = ()
    actual_values: Tuple[ValueRow, ...] = ()
    imported_at: float = 0.0
    warnings: Tuple[str, ...] = ()

    @property
    def label(self) -> str:
        """Display label: the part id string, else the file name."""
        return self.header.id_string or self.filename

    @property
    def n_channels(self) -> int:
        return len(self.curves)

    def get_channel(self, channel_id: str) -> Optional[CurveChannel]:
        for ch in self.curves:
            if ch.id == channel_id:
                return ch
        return None

    def values(self, kind: str) -> Tuple[ValueRow, ...]:
        if kind == "set":
            return self.set_values
        if kind == "actual":
            return self.actual_values
        raise ValueError(f"Unknown value kind {kind!r}; expected one of {VALUE_KINDS}.")
