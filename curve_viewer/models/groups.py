"""User-defined channel groups.

A group is a named bag of (file_id, channel_id) references with an active
flag.  References are not owned: removing a file leaves dangling references
behind, and the visibility resolver simply skips them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence


UNGROUPED = "ungrouped"


@dataclass(frozen=True)
class ChannelRef:
    file_id: str
    channel_id: str


@dataclass
class ChannelGroup:
    id: str
    name: str
    channels: List[ChannelRef] = field(default_factory=list)
    is_active: bool = True

    def contains(self, file_id: str, channel_id: str) -> bool:
        return ChannelRef(file_id, channel_id) in self.channels


@dataclass
class GroupCollection:
    """Ordered list of groups with the editing operations of the group panel.

    Every operation addressing an unknown group id is a no-op, except
    :meth:`get` which returns ``None``.
    """
    groups: List[ChannelGroup] = field(default_factory=list)

    def __iter__(self):
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    def get(self, group_id: str) -> Optional[ChannelGroup]:
        for g in self.groups:
            if g.id == group_id:
                return g
        return None

    def create(self, name: str, channels: Iterable[ChannelRef] = (), group_id: Optional[str] = None) -> str:
        gid = group_id or str(uuid.uuid4())
        self.groups.append(ChannelGroup(id=gid, name=name, channels=list(channels), is_active=True))
        return gid

    def remove(self, group_id: str) -> None:
        self.groups = [g for g in self.groups if g.id != group_id]

    def clear(self) -> None:
        self.groups = []

    def rename(self, group_id: str, new_name: str) -> None:
        g = self.get(group_id)
        if g is not None:
            g.name = new_name

    def add_channels(self, group_id: str, channels: Iterable[ChannelRef]) -> None:
        """Append references not already present (by file and channel id)."""
        g = self.get(group_id)
        if g is None:
            return
        for ref in channels:
            if ref not in g.channels:
                g.channels.append(ref)

    def remove_channel(self, group_id: str, file_id: str, channel_id: str) -> None:
        g = self.get(group_id)
        if g is not None:
            g.channels = [c for c in g.channels if not (c.file_id == file_id and c.channel_id == channel_id)]

    def remove_file(self, group_id: str, file_id: str) -> None:
        g = self.get(group_id)
        if g is not None:
            g.channels = [c for c in g.channels if c.file_id != file_id]

    def move_channel(self, from_group_id: str, to_group_id: str, ref: ChannelRef) -> None:
        src = self.get(from_group_id)
        dst = self.get(to_group_id)
        if src is not None:
            src.channels = [c for c in src.channels if c != ref]
        if dst is not None:
            dst.channels.append(ref)

    def reorder(self, group_ids: Sequence[str]) -> None:
        """Keep only the listed groups, in the listed order."""
        by_id = {g.id: g for g in self.groups}
        self.groups = [by_id[gid] for gid in group_ids if gid in by_id]

    def toggle_active(self, group_id: str) -> None:
        g = self.get(group_id)
        if g is not None:
            g.is_active = not g.is_active

    def set_active(self, group_id: str, active: bool) -> None:
        g = self.get(group_id)
        if g is not None:
            g.is_active = bool(active)

    def active_groups(self) -> List[ChannelGroup]:
        return [g for g in self.groups if g.is_active]
