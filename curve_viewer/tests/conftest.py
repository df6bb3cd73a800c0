from __future__ import annotations

import io
import zipfile
from typing import Dict, Iterable, Optional, Sequence, Tuple

import pytest

from curve_viewer.models.curves import CoordSystem, CurveChannel
from curve_viewer.models.files import HeaderInfo, ImportedFile
from curve_viewer.models.values import STATUS_OK, ValueRow


# ----------------------------------------------------------------------
# XML documents
# ----------------------------------------------------------------------

def curve_xml(
    description: str = "Force",
    x_name: str = "Distance",
    y_name: str = "Force",
    points: Sequence[Tuple[float, float]] = ((0, 0), (1, 10), (2, 20)),
    n_points: Optional[int] = None,
    coord: Tuple[float, float, float, float] = (0, 2, 0, 20),
    extra: str = "",
) -> str:
    pts = "".join(f'<point x="{x}" y="{y}"/>' for x, y in points)
    n = len(points) if n_points is None else n_points
    return (
        "<curve>"
        f"<description>{description}</description>"
        f"<xName>{x_name}</xName><yName>{y_name}</yName>"
        "<xUnit>mm</xUnit><yUnit>N</yUnit>"
        f"<noOfPoints>{n}</noOfPoints>"
        f"<coordSystemMinX>{coord[0]}</coordSystemMinX><coordSystemMaxX>{coord[1]}</coordSystemMaxX>"
        f"<coordSystemMinY>{coord[2]}</coordSystemMinY><coordSystemMaxY>{coord[3]}</coordSystemMaxY>"
        f"<points>{pts}</points>"
        f"{extra}"
        "</curve>"
    )


def value_xml(tag: str, row: float, value: str, status: int = 0, description: str = "") -> str:
    return (
        f"<{tag}><description>{description or f'row {row}'}</description>"
        f"<status>{status}</status><value>{value}</value><rowNumber>{row}</rowNumber>"
        f"<unit>mm</unit></{tag}>"
    )


def document_xml(
    curves: Iterable[str] = (),
    set_values: Iterable[str] = (),
    actual_values: Iterable[str] = (),
    id_string: str = "PART-1",
    flat: bool = False,
) -> str:
    header = f"<header><idString>{id_string}</idString><machineDesc>Press 3</machineDesc></header>"
    body = (
        f"<curves>{''.join(curves)}</curves>"
        f"<setValues><plc>{''.join(set_values)}</plc></setValues>"
        f"<actualValues><plc>{''.join(actual_values)}</plc></actualValues>"
    )
    if flat:
        # header fields sit directly in the body element
        return f"<body><idString>{id_string}</idString>{body}</body>"
    return f"<data>{header}<body>{body}</body></data>"


def zpg_bytes(entries: Dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, text in entries.items():
            zf.writestr(name, text)
    return buf.getvalue()


# ----------------------------------------------------------------------
# In-memory models
# ----------------------------------------------------------------------

def make_channel(
    ch_id: str,
    file_id: str,
    xs=(0.0, 1.0, 2.0),
    ys=(0.0, 10.0, 20.0),
    x_name: str = "Distance",
    y_name: str = "Force",
    description: str = "",
    coord: Tuple[float, float, float, float] = (0.0, 2.0, 0.0, 20.0),
    **kw,
) -> CurveChannel:
    return CurveChannel(
        id=ch_id,
        file_id=file_id,
        description=description,
        x_name=x_name,
        y_name=y_name,
        coord_system=CoordSystem(min_x=coord[0], max_x=coord[1], min_y=coord[2], max_y=coord[3]),
        points_x=xs,
        points_y=ys,
        **kw,
    )


def make_row(row: int, value: str, status: int = STATUS_OK, description: str = "") -> ValueRow:
    return ValueRow(description=description or f"row {row}", status=status, value=value, row_number=row)


def make_file(
    file_id: str,
    channels: Sequence[CurveChannel] = (),
    set_values: Sequence[ValueRow] = (),
    actual_values: Sequence[ValueRow] = (),
    id_string: str = "",
    filename: Optional[str] = None,
) -> ImportedFile:
    return ImportedFile(
        id=file_id,
        filename=filename or f"{file_id}.xml",
        header=HeaderInfo(id_string=id_string),
        curves=tuple(channels),
        set_values=tuple(set_values),
        actual_values=tuple(actual_values),
    )


@pytest.fixture
def two_files():
    """Two files with one Force-vs-Distance channel each (x starts at 3 and 5)."""
    f1 = make_file("f1", [make_channel("c1", "f1", xs=(3, 4, 5), ys=(0, 5, 10))])
    f2 = make_file("f2", [make_channel("c2", "f2", xs=(5, 6, 7), ys=(0, 5, 10))])
    return f1, f2
