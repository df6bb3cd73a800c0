"""Per-instance channel visibility and plot-list resolution.

The same physical channel can be plotted once per group it belongs to (plus
once as an ungrouped selection), and each of those instances has its own
visibility.  Instances are identified by a :class:`VisibilityKey`
``(group_id, file_id, channel_id)``.

The :class:`VisibilityMap` is sparse: a key without an entry is fully visible.
Entries are created on the first write and replaced (never mutated) on later
writes.

Functions
---------
- expand_instances : active groups + ungrouped selection -> instances
- resolve_visible_channels : expand_instances filtered by X axis and visibility
- tri_state / toggle_instances : group/file level checkbox logic
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

from curve_viewer.models.curves import CurveChannel
from curve_viewer.models.files import ImportedFile
from curve_viewer.models.groups import UNGROUPED, ChannelGroup, ChannelRef

logger = logging.getLogger(__name__)

ELEMENT_KINDS = ("lines", "windows", "circles")


class VisibilityKey(NamedTuple):
    group_id: str
    file_id: str
    channel_id: str


def element_key(kind: str, group_index: int, item_index: Optional[int] = None) -> str:
    """Drill-down key of an element group (``"windows-2"``) or item (``"windows-2-0"``)."""
    if kind not in ELEMENT_KINDS:
        raise ValueError(f"Unknown element kind {kind!r}; expected one of {ELEMENT_KINDS}.")
    if item_index is None:
        return f"{kind}-{group_index}"
    return f"{kind}-{group_index}-{item_index}"


@dataclass(frozen=True)
class ElementVisibility:
    lines: bool = True
    windows: bool = True
    circles: bool = True


@dataclass(frozen=True)
class ChannelVisibility:
    key: VisibilityKey
    visible: bool = True
    elements: ElementVisibility = field(default_factory=ElementVisibility)
    hidden_element_groups: FrozenSet[str] = frozenset()

    def element_visible(self, kind: str) -> bool:
        return bool(getattr(self.elements, kind))

    def is_hidden(self, key: str) -> bool:
        return key in self.hidden_element_groups


@dataclass
class GlobalVisibility:
    """Plot-wide element toggles (apply on top of per-instance settings)."""
    all_elements: bool = True
    lines: bool = True
    windows: bool = True
    circles: bool = True
    show_points: bool = False

    def toggle_all_elements(self) -> None:
        v = not self.all_elements
        self.all_elements = self.lines = self.windows = self.circles = v

    def kind_enabled(self, kind: str) -> bool:
        return self.all_elements and bool(getattr(self, kind))


class VisibilityMap:
    """Sparse map VisibilityKey -> ChannelVisibility, default visible."""

    def __init__(self, entries: Iterable[ChannelVisibility] = ()):
        self._entries: Dict[VisibilityKey, ChannelVisibility] = {}
        for e in entries:
            self._entries[e.key] = e

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key) -> bool:
        return VisibilityKey(*key) in self._entries

    def __iter__(self) -> Iterator[ChannelVisibility]:
        return iter(self._entries.values())

    def get(self, key) -> Optional[ChannelVisibility]:
        return self._entries.get(VisibilityKey(*key))

    def is_visible(self, key) -> bool:
        entry = self.get(key)
        return entry.visible if entry is not None else True

    def _upsert(self, key: VisibilityKey, **changes) -> ChannelVisibility:
        current = self._entries.get(key) or ChannelVisibility(key=key)
        updated = replace(current, **changes)
        self._entries[key] = updated
        return updated

    def set_channel_visible(self, key, visible: bool) -> None:
        self._upsert(VisibilityKey(*key), visible=bool(visible))

    def set_many_visible(self, keys: Iterable, visible: bool) -> None:
        """One entry per key; entries of other keys are left untouched."""
        for k in keys:
            self._upsert(VisibilityKey(*k), visible=bool(visible))

    def set_element_visible(self, key, kind: str, visible: bool) -> None:
        if kind not in ELEMENT_KINDS:
            raise ValueError(f"Unknown element kind {kind!r}; expected one of {ELEMENT_KINDS}.")
        k = VisibilityKey(*key)
        current = self._entries.get(k) or ChannelVisibility(key=k)
        self._upsert(k, elements=replace(current.elements, **{kind: bool(visible)}))

    def set_element_group_visible(self, key, group_key: str, visible: bool) -> None:
        """Show/hide one element group or item by its drill-down key."""
        k = VisibilityKey(*key)
        current = self._entries.get(k) or ChannelVisibility(key=k)
        hidden: Set[str] = set(current.hidden_element_groups)
        if visible:
            hidden.discard(group_key)
        else:
            hidden.add(group_key)
        self._upsert(k, hidden_element_groups=frozenset(hidden))

    def init_entries(self, keys: Iterable) -> int:
        """Create default entries for unseen keys only.  Returns the number created."""
        created = 0
        for raw in keys:
            k = VisibilityKey(*raw)
            if k not in self._entries:
                self._entries[k] = ChannelVisibility(key=k)
                created += 1
        return created

    def clear(self) -> None:
        self._entries.clear()


# ----------------------------------------------------------------------
# Resolution
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ChannelInstance:
    channel: CurveChannel
    file: ImportedFile
    group_id: str

    @property
    def key(self) -> VisibilityKey:
        return VisibilityKey(self.group_id, self.file.id, self.channel.id)


SelectionItem = Union[ChannelRef, Tuple[str, str]]


def _pair(item: SelectionItem) -> Tuple[str, str]:
    if isinstance(item, ChannelRef):
        return item.file_id, item.channel_id
    file_id, channel_id = item
    return file_id, channel_id


def expand_instances(
    files: Sequence[ImportedFile],
    groups: Iterable[ChannelGroup],
    selection: Iterable[SelectionItem] = (),
) -> List[ChannelInstance]:
    """
    All renderable instances before visibility filtering.

    1. Active groups, in order; dangling references are dropped.
    2. Ungrouped selection under group id ``"ungrouped"``, unless the same
       (file, channel) pair already comes from an active group.
    Each (group, file, channel) appears at most once.
    """
    by_file = {f.id: f for f in files}
    out: List[ChannelInstance] = []
    seen: Set[VisibilityKey] = set()
    covered: Set[Tuple[str, str]] = set()

    def _lookup(file_id: str, channel_id: str):
        f = by_file.get(file_id)
        ch = f.get_channel(channel_id) if f is not None else None
        return f, ch

    for g in groups:
        if not g.is_active:
            continue
        for ref in g.channels:
            f, ch = _lookup(ref.file_id, ref.channel_id)
            if f is None or ch is None:
                logger.debug("Group %s: dangling reference %s/%s", g.id, ref.file_id, ref.channel_id)
                continue
            key = VisibilityKey(g.id, f.id, ch.id)
            if key in seen:
                continue
            seen.add(key)
            covered.add((f.id, ch.id))
            out.append(ChannelInstance(ch, f, g.id))

    for item in selection:
        file_id, channel_id = _pair(item)
        if (file_id, channel_id) in covered:
            continue
        key = VisibilityKey(UNGROUPED, file_id, channel_id)
        if key in seen:
            continue
        f, ch = _lookup(file_id, channel_id)
        if f is None or ch is None:
            continue
        seen.add(key)
        out.append(ChannelInstance(ch, f, UNGROUPED))

    return out


def resolve_visible_channels(
    files: Sequence[ImportedFile],
    groups: Iterable[ChannelGroup],
    selection: Iterable[SelectionItem] = (),
    visibility: Optional[VisibilityMap] = None,
    x_axis: Optional[str] = None,
) -> List[ChannelInstance]:
    """Instances to render: expanded, restricted to ``x_axis`` (if given), visible."""
    instances = expand_instances(files, groups, selection)
    if x_axis is not None:
        instances = [i for i in instances if i.channel.x_name == x_axis]
    if visibility is None:
        return instances
    return [i for i in instances if visibility.is_visible(i.key)]


# ----------------------------------------------------------------------
# Group / file level toggles
# ----------------------------------------------------------------------

class TriState(str, Enum):
    ALL = "all"
    NONE = "none"
    MIXED = "mixed"


def tri_state(instances: Iterable[ChannelInstance], visibility: VisibilityMap) -> TriState:
    """Fold member visibility: all visible, none visible, or mixed."""
    members = list(instances)
    n_visible = sum(1 for i in members if visibility.is_visible(i.key))
    if n_visible == len(members):
        return TriState.ALL
    if n_visible == 0:
        return TriState.NONE
    return TriState.MIXED


def toggle_instances(instances: Iterable[ChannelInstance], visibility: VisibilityMap) -> bool:
    """Hide all members if all are visible, else show all.  Returns the new state."""
    members = list(instances)
    new_visible = tri_state(members, visibility) is not TriState.ALL
    visibility.set_many_visible((i.key for i in members), new_visible)
    return new_visible


def instances_in_group(instances: Iterable[ChannelInstance], group_id: str) -> List[ChannelInstance]:
    return [i for i in instances if i.group_id == group_id]


def instances_in_file(
    instances: Iterable[ChannelInstance], file_id: str, group_id: Optional[str] = None
) -> List[ChannelInstance]:
    return [
        i for i in instances
        if i.file.id == file_id and (group_id is None or i.group_id == group_id)
    ]


def instances_with_description(instances: Iterable[ChannelInstance], description: str) -> List[ChannelInstance]:
    """Instances whose label (description, else y name) equals ``description``."""
    return [i for i in instances if (i.channel.description or i.channel.y_name) == description]
