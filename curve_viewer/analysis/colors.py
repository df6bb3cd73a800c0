"""Packed RGB integers and line-style codes from curve files -> matplotlib styles.

Colors are stored as ``R * 65536 + G * 256 + B``.  Line styles are codes
1..10 (1 solid, 2-4 dotted, 5-10 dashed); unknown codes draw solid.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

_DASHES = {
    2: (2, 2),
    3: (2, 4),
    4: (2, 8),
    5: (6, 4),
    6: (10, 4),
    7: (14, 4),
    8: (6, 8),
    9: (6, 14),
    10: (10, 10),
}


def int_color_to_rgb(color: Optional[float]) -> Tuple[int, int, int]:
    if color is None:
        return 0, 0, 0
    n = abs(int(round(color)))
    return (n >> 16) & 0xFF, (n >> 8) & 0xFF, n & 0xFF


def int_color_to_hex(color: Optional[float]) -> str:
    r, g, b = int_color_to_rgb(color)
    return f"#{r:02x}{g:02x}{b:02x}"


def int_color_to_rgba(color: Optional[float], alpha: float = 1.0) -> Tuple[float, float, float, float]:
    """Matplotlib RGBA tuple (components in 0..1)."""
    r, g, b = int_color_to_rgb(color)
    return r / 255.0, g / 255.0, b / 255.0, float(alpha)


def line_style_to_dash(style: int) -> Optional[Tuple[int, int]]:
    """On/off dash pattern for a style code, ``None`` for solid."""
    return _DASHES.get(style)


def line_style_to_mpl(style: int) -> Union[str, Tuple[int, Tuple[int, int]]]:
    """Value for matplotlib's ``linestyle=`` argument."""
    dash = line_style_to_dash(style)
    return "-" if dash is None else (0, dash)
