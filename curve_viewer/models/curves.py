from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class CoordSystem:
    """Declared axis bounds of a curve.

    These come from the file, not from the sampled points, and may exceed the
    actual data range (e.g. a configured measurement window).
    """
    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0
    min_z: float = 0.0
    max_z: float = 0.0
    origin_x: float = 0.0
    origin_y: float = 0.0
    origin_z: float = 0.0
    color: int = 0


# ----------------------------------------------------------------------
# Graphic elements (group -> item, no style inheritance)
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class GraphicLine:
    description: str
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    layer: float = 0


@dataclass(frozen=True)
class GraphicWindow:
    """Axis-aligned rectangle given by two opposite corners (any order)."""
    description: str
    point1_x: float
    point1_y: float
    point2_x: float
    point2_y: float
    layer: float = 0

    @property
    def x_bounds(self) -> Tuple[float, float]:
        return min(self.point1_x, self.point2_x), max(self.point1_x, self.point2_x)

    @property
    def y_bounds(self) -> Tuple[float, float]:
        return min(self.point1_y, self.point2_y), max(self.point1_y, self.point2_y)


@dataclass(frozen=True)
class GraphicCircle:
    description: str
    center_x: float
    center_y: float
    radius: float = 5.0
    layer: float = 0


@dataclass(frozen=True)
class LineGroup:
    description: str = ""
    group_description: str = ""
    color: int = 0
    thickness: int = 1
    style: int = 1
    lines: Tuple[GraphicLine, ...] = ()


@dataclass(frozen=True)
class WindowGroup:
    description: str = ""
    group_description: str = ""
    color: int = 0
    thickness: int = 1
    style: int = 1
    is_filled: bool = False
    windows: Tuple[GraphicWindow, ...] = ()


@dataclass(frozen=True)
class CircleGroup:
    description: str = ""
    group_description: str = ""
    color: int = 0
    thickness: int = 1
    style: int = 1
    is_filled: bool = False
    circles: Tuple[GraphicCircle, ...] = ()


@dataclass(frozen=True)
class GraphicElements:
    line_groups: Tuple[LineGroup, ...] = ()
    window_groups: Tuple[WindowGroup, ...] = ()
    circle_groups: Tuple[CircleGroup, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.line_groups or self.window_groups or self.circle_groups)


# ----------------------------------------------------------------------
# Channel
# ----------------------------------------------------------------------

def _frozen_array(a) -> np.ndarray:
    arr = np.array(a, dtype=np.float64, copy=True).reshape(-1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class CurveChannel:
    """
    One measured X/Y series of an imported file.

    Notes
    - points_x / points_y are read-only float64 arrays of equal length.
    - coord_system holds the declared bounds, never derived from the points.
    - Equality is identity: two parses of the same document give distinct channels.
    """
    id: str
    file_id: str
    description: str = ""
    group_description: str = ""
    x_name: str = ""
    y_name: str = ""
    z_name: str = ""
    x_unit: str = ""
    y_unit: str = ""
    z_unit: str = ""
    x_precision: int = 3
    y_precision: int = 3
    z_precision: int = 3
    line_color: int = 0
    points_color: int = 0
    line_thickness: int = 2
    line_style: int = 1
    is_line_visible: bool = True
    are_points_visible: bool = False
    coord_system: CoordSystem = field(default_factory=CoordSystem)
    points_x: np.ndarray = field(default_factory=lambda: _frozen_array(()))
    points_y: np.ndarray = field(default_factory=lambda: _frozen_array(()))
    graphic_elements: GraphicElements = field(default_factory=GraphicElements)

    def __post_init__(self) -> None:
        px = _frozen_array(self.points_x)
        py = _frozen_array(self.points_y)
        if px.shape != py.shape:
            raise ValueError(
                f"Channel {self.id!r}: points_x has {px.size} values but points_y has {py.size}."
            )
        object.__setattr__(self, "points_x", px)
        object.__setattr__(self, "points_y", py)

    @property
    def n_points(self) -> int:
        return int(self.points_x.size)

    @property
    def axis_identity(self) -> str:
        """Name a channel is grouped under on the Y side (y_name, else description)."""
        return self.y_name or self.description
