from .curves import (
    CircleGroup,
    CoordSystem,
    CurveChannel,
    GraphicCircle,
    GraphicElements,
    GraphicLine,
    GraphicWindow,
    LineGroup,
    WindowGroup,
)
from .files import HeaderInfo, ImportedFile
from .groups import UNGROUPED, ChannelGroup, ChannelRef, GroupCollection
from .session import FileCollection, SyncMode, SyncState
from .values import ActualValue, SetValue, ValueRow

__all__ = [
    "CircleGroup",
    "CoordSystem",
    "CurveChannel",
    "GraphicCircle",
    "GraphicElements",
    "GraphicLine",
    "GraphicWindow",
    "LineGroup",
    "WindowGroup",
    "HeaderInfo",
    "ImportedFile",
    "UNGROUPED",
    "ChannelGroup",
    "ChannelRef",
    "GroupCollection",
    "FileCollection",
    "SyncMode",
    "SyncState",
    "ActualValue",
    "SetValue",
    "ValueRow",
]
