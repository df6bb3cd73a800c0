"""Mutable session state: the imported file collection and the sync state.

Both follow a single-writer model.  The file collection only appends or
removes whole files by id; the sync offsets are replaced wholesale on apply
and cleared wholesale on reset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from curve_viewer.models.curves import CurveChannel
from curve_viewer.models.files import ImportedFile


class SyncMode(str, Enum):
    OFF = "off"
    XMIN = "xmin"
    XMAX = "xmax"
    YTHRESHOLD = "ythreshold"

    @classmethod
    def parse(cls, value) -> "SyncMode":
        if isinstance(value, SyncMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown sync mode {value!r}; expected one of: {valid}.") from None


@dataclass
class FileCollection:
    files: List[ImportedFile] = field(default_factory=list)

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def add(self, new_files: Iterable[ImportedFile]) -> int:
        """Append files whose id is not present yet.  Returns the number added."""
        existing = {f.id for f in self.files}
        added = 0
        for f in new_files:
            if f.id in existing:
                continue
            self.files.append(f)
            existing.add(f.id)
            added += 1
        return added

    def remove(self, file_id: str) -> None:
        self.files = [f for f in self.files if f.id != file_id]

    def clear(self) -> None:
        self.files = []

    def get_file(self, file_id: str) -> Optional[ImportedFile]:
        for f in self.files:
            if f.id == file_id:
                return f
        return None

    def get_channel(self, file_id: str, channel_id: str) -> Optional[CurveChannel]:
        f = self.get_file(file_id)
        return f.get_channel(channel_id) if f is not None else None

    def all_channels(self) -> List[CurveChannel]:
        return [ch for f in self.files for ch in f.curves]


@dataclass
class SyncState:
    mode: SyncMode = SyncMode.OFF
    master_y_axis: str = ""
    threshold: float = 0.0
    offsets: Dict[str, float] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def apply(self, offsets: Dict[str, float], errors: Iterable[str] = ()) -> None:
        """Replace the whole offset map (no merge with previous offsets)."""
        self.offsets = dict(offsets)
        self.errors = list(errors)

    def reset(self) -> None:
        self.mode = SyncMode.OFF
        self.offsets = {}
        self.errors = []

    def offset_for(self, file_id: str) -> float:
        return float(self.offsets.get(file_id, 0.0))

    @property
    def is_active(self) -> bool:
        return bool(self.offsets)
