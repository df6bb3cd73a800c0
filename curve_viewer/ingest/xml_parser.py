"""Curve document parser.

Turns one XML curve document into an :class:`ImportedFile`.

Two stages:

1. ``xml_to_tree`` converts the XML into nested dicts (attributes under
   ``@_name``, element text as ``str``, repeated children as lists).  The
   ``points`` element is a stop node and stays raw markup.  Children whose
   path matches :data:`ARRAY_RULES` are always lists, even when the document
   holds a single occurrence.
2. ``parse_document`` maps the tree onto the typed model, tolerating both the
   nested (``data.body``) and the flat document shape.

Numeric and boolean fields are tolerant: missing or unparsable values fall
back to a per-field default instead of failing the file.  Only malformed XML
raises (:class:`DocumentParseError`).
"""

from __future__ import annotations

import logging
import math
import re
import threading
import time
import uuid
import xml.etree.ElementTree as ET
from itertools import count
from typing import Any, Dict, List, Optional, Tuple, Union

from curve_viewer.errors import DocumentParseError
from curve_viewer.ingest.points import decode_points
from curve_viewer.models.curves import (
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
from curve_viewer.models.files import HeaderInfo, ImportedFile
from curve_viewer.models.values import (
    BLACK,
    STATUS_DEACTIVATED,
    STATUS_NOK,
    STATUS_OK,
    WHITE,
    ValueRow,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Array coercion rules and stop nodes
# ----------------------------------------------------------------------

# (kind, path) -- "exact" matches the full dotted path, "suffix" its ending.
ARRAY_RULES: Tuple[Tuple[str, str], ...] = (
    ("exact", "data.body.curves.curve"),
    ("exact", "data.body.setValues.plc.setValue"),
    ("exact", "data.body.actualValues.plc.actualValue"),
    ("suffix", ".linegroup"),
    ("suffix", ".windowgroup"),
    ("suffix", ".circlegroup"),
    ("suffix", ".lines.line"),
    ("suffix", ".windows.window"),
    ("suffix", ".circles.circle"),
)

STOP_NODES = frozenset({"points"})

_ATTR_PREFIX = "@_"
_TEXT_KEY = "#text"


def is_array_path(path: str) -> bool:
    for kind, rule in ARRAY_RULES:
        if kind == "exact" and path == rule:
            return True
        if kind == "suffix" and path.endswith(rule):
            return True
    return False


class IdGenerator:
    """Identifier service, one instance per import session.

    With no prefix, ids are random UUID4 strings.  With a prefix, ids are
    sequential (``"<prefix>-1"``, ``"<prefix>-2"``, ...), which gives
    reproducible ids for scripted sessions.
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix
        self._counter = count(1)
        self._lock = threading.Lock()
        self.issued = 0

    def next_id(self) -> str:
        with self._lock:
            self.issued += 1
            if self.prefix is None:
                return str(uuid.uuid4())
            return f"{self.prefix}-{next(self._counter)}"


# ----------------------------------------------------------------------
# XML -> nested dicts
# ----------------------------------------------------------------------

def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


_RAW_ATTR = "cv-raw"

# <points ...>inner</points> or <points .../>, optionally namespace-prefixed
_STOP_RE = re.compile(
    r"<((?:[\w.-]+:)?(?:%s))(?=[\s/>])[^>]*?(?:/>|>(.*?)</\1\s*>)" % "|".join(sorted(STOP_NODES)),
    re.DOTALL,
)


def _cut_stop_nodes(text: str) -> Tuple[str, List[str]]:
    """Replace every stop node by an empty placeholder element.

    Returns the rewritten text and the raw inner markup of each stop node,
    indexed by the placeholder's ``cv-raw`` attribute.
    """
    raws: List[str] = []

    def _sub(m) -> str:
        raws.append((m.group(2) or "").strip())
        return f'<{m.group(1).rsplit(":", 1)[-1]} {_RAW_ATTR}="{len(raws) - 1}"/>'

    return _STOP_RE.sub(_sub, text), raws


def _raw_of(elem: ET.Element, raws: List[str]) -> str:
    try:
        return raws[int(elem.get(_RAW_ATTR, ""))]
    except (ValueError, IndexError):
        # element the pre-parse cut did not match
        return (elem.text or "").strip()


def _convert(elem: ET.Element, path: str, raws: List[str]) -> Any:
    attrs = {_ATTR_PREFIX + _local(k): v for k, v in elem.attrib.items()}
    children = list(elem)
    text = (elem.text or "").strip()

    if not children and not attrs:
        return text

    node: Dict[str, Any] = dict(attrs)
    grouped: Dict[str, List[Any]] = {}
    for child in children:
        tag = _local(child.tag)
        child_path = f"{path}.{tag}"
        if tag in STOP_NODES:
            value: Any = _raw_of(child, raws)
        else:
            value = _convert(child, child_path, raws)
        grouped.setdefault(tag, []).append(value)

    for tag, values in grouped.items():
        if len(values) > 1 or is_array_path(f"{path}.{tag}"):
            node[tag] = values
        else:
            node[tag] = values[0]

    if text:
        node[_TEXT_KEY] = text
    return node


def xml_to_tree(text: str) -> Dict[str, Any]:
    """Parse XML text into ``{root_tag: converted_root}``.

    Stop nodes are cut out of ``text`` before parsing, so their content is
    never built into elements.
    """
    stripped, raws = _cut_stop_nodes(text)
    try:
        root = ET.fromstring(stripped)
    except ET.ParseError as e:
        raise DocumentParseError(f"Malformed XML: {e}") from e
    tag = _local(root.tag)
    if tag in STOP_NODES:
        return {tag: _raw_of(root, raws)}
    return {tag: _convert(root, tag, raws)}


# ----------------------------------------------------------------------
# Field helpers (missing / unparsable -> default)
# ----------------------------------------------------------------------

def _scalar(v: Any) -> Any:
    if isinstance(v, dict):
        return v.get(_TEXT_KEY)
    if isinstance(v, list):
        return _scalar(v[0]) if v else None
    return v


def _str(v: Any) -> str:
    v = _scalar(v)
    if v is None:
        return ""
    return str(v)


def _num(v: Any, default: float = 0.0) -> float:
    v = _scalar(v)
    if v is None:
        return default
    s = str(v).strip()
    if not s:
        return 0.0
    try:
        n = float(s)
    except ValueError:
        return default
    return default if math.isnan(n) else n


def _int(v: Any, default: int = 0) -> int:
    n = _num(v, float(default))
    if not math.isfinite(n):
        return default
    return int(n)


def _key_number(v: Any, default: int = 0) -> Union[int, float]:
    """Join keys keep fractions (``3.5`` stays apart from row 3); integral values stay ``int``."""
    n = _num(v, float(default))
    if not math.isfinite(n):
        return default
    return int(n) if n.is_integer() else n


def _bool(v: Any, default: bool = False) -> bool:
    v = _scalar(v)
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() == "true"


def _mapping(v: Any) -> Dict[str, Any]:
    return v if isinstance(v, dict) else {}


def _as_list(v: Any) -> List[Dict[str, Any]]:
    if v is None or v == "":
        return []
    items = v if isinstance(v, list) else [v]
    return [_mapping(item) for item in items]


def _pick(container: Dict[str, Any], key: str, fallback: Dict[str, Any]) -> Dict[str, Any]:
    v = container.get(key)
    if isinstance(v, dict) and v:
        return v
    return fallback


def map_value_status(raw_status: int) -> int:
    """Normalize legacy status codes: 0 -> 501 (OK), 1 -> 256 (deactivated), 2 -> 502 (NOK).

    Every other code (500, 503, 504, future codes) passes through unchanged.
    """
    if raw_status == 0:
        return STATUS_OK
    if raw_status == 1:
        return STATUS_DEACTIVATED
    if raw_status == 2:
        return STATUS_NOK
    return raw_status


# ----------------------------------------------------------------------
# Sections
# ----------------------------------------------------------------------

def _parse_header(h: Dict[str, Any]) -> HeaderInfo:
    return HeaderInfo(
        machine_desc=_str(h.get("machineDesc")),
        machine_short_desc=_str(h.get("machineShortDesc")),
        module_desc=_str(h.get("moduleDesc")),
        module_short_desc=_str(h.get("moduleShortDesc")),
        name_of_measure_point=_str(h.get("nameOfMeasurePoint")),
        id_string=_str(h.get("idString")),
        type=_str(h.get("type")),
        variant=_str(h.get("variant")),
        is_ionio_classification_on=_bool(h.get("isIONIOClassificationOn")),
        is_marked=_bool(h.get("isMarked")),
        data_possibly_incorrect=_bool(h.get("dataPossiblyIncorrect")),
        diagram_title=_str(h.get("diagramTitle")),
        date=_str(h.get("date")),
    )


def _point_attr(p: Any, axis: str) -> float:
    return _num(_mapping(p).get(_ATTR_PREFIX + axis))


def _group_items(grp: Dict[str, Any], container: str, item: str) -> List[Dict[str, Any]]:
    return _as_list(_mapping(grp.get(container)).get(item))


def _plc_groups(section: Any, key: str) -> List[Dict[str, Any]]:
    plc = _mapping(_mapping(section).get("plc"))
    return _as_list(plc.get(key))


def _parse_line_groups(section: Any) -> Tuple[LineGroup, ...]:
    out = []
    for grp in _plc_groups(section, "linegroup"):
        lines = tuple(
            GraphicLine(
                description=_str(ln.get("description")),
                start_x=_point_attr(ln.get("start-point"), "x"),
                start_y=_point_attr(ln.get("start-point"), "y"),
                end_x=_point_attr(ln.get("end-point"), "x"),
                end_y=_point_attr(ln.get("end-point"), "y"),
                layer=_key_number(ln.get("layer")),
            )
            for ln in _group_items(grp, "lines", "line")
        )
        out.append(LineGroup(
            description=_str(grp.get("description")),
            group_description=_str(grp.get("groupDescription")),
            color=_int(grp.get("color")),
            thickness=_int(grp.get("thickness"), 1),
            style=_int(grp.get("style"), 1),
            lines=lines,
        ))
    return tuple(out)


def _parse_window_groups(section: Any) -> Tuple[WindowGroup, ...]:
    out = []
    for grp in _plc_groups(section, "windowgroup"):
        windows = tuple(
            GraphicWindow(
                description=_str(w.get("description")),
                point1_x=_point_attr(w.get("point1"), "x"),
                point1_y=_point_attr(w.get("point1"), "y"),
                point2_x=_point_attr(w.get("point2"), "x"),
                point2_y=_point_attr(w.get("point2"), "y"),
                layer=_key_number(w.get("layer")),
            )
            for w in _group_items(grp, "windows", "window")
        )
        out.append(WindowGroup(
            description=_str(grp.get("description")),
            group_description=_str(grp.get("groupDescription")),
            color=_int(grp.get("color")),
            thickness=_int(grp.get("thickness"), 1),
            style=_int(grp.get("style"), 1),
            is_filled=_bool(grp.get("isFilled")),
            windows=windows,
        ))
    return tuple(out)


def _parse_circle_groups(section: Any) -> Tuple[CircleGroup, ...]:
    out = []
    for grp in _plc_groups(section, "circlegroup"):
        circles = tuple(
            GraphicCircle(
                description=_str(c.get("description")),
                center_x=_point_attr(c.get("center-point"), "x"),
                center_y=_point_attr(c.get("center-point"), "y"),
                radius=_num(c.get("radius"), 5.0),
                layer=_key_number(c.get("layer")),
            )
            for c in _group_items(grp, "circles", "circle")
        )
        out.append(CircleGroup(
            description=_str(grp.get("description")),
            group_description=_str(grp.get("groupDescription")),
            color=_int(grp.get("color")),
            thickness=_int(grp.get("thickness"), 1),
            style=_int(grp.get("style"), 1),
            is_filled=_bool(grp.get("isFilled")),
            circles=circles,
        ))
    return tuple(out)


def _parse_coord_system(c: Dict[str, Any]) -> CoordSystem:
    return CoordSystem(
        min_x=_num(c.get("coordSystemMinX")),
        max_x=_num(c.get("coordSystemMaxX")),
        min_y=_num(c.get("coordSystemMinY")),
        max_y=_num(c.get("coordSystemMaxY")),
        min_z=_num(c.get("coordSystemMinZ")),
        max_z=_num(c.get("coordSystemMaxZ")),
        origin_x=_num(c.get("coordSystemOriginX")),
        origin_y=_num(c.get("coordSystemOriginY")),
        origin_z=_num(c.get("coordSystemOriginZ")),
        color=_int(c.get("coordSystemColor")),
    )


def _parse_curves(section: Any, file_id: str, ids: IdGenerator, warnings: List[str]) -> Tuple[CurveChannel, ...]:
    out = []
    for idx, c in enumerate(_as_list(_mapping(section).get("curve"))):
        declared = _int(c.get("noOfPoints"))
        xs, ys = decode_points(c.get("points"), declared)
        description = _str(c.get("description"))
        if xs.size != declared:
            msg = f"Curve {idx} ({description or 'unnamed'}): declared {declared} points, decoded {xs.size}."
            warnings.append(msg)
            logger.debug(msg)

        out.append(CurveChannel(
            id=ids.next_id(),
            file_id=file_id,
            description=description,
            group_description=_str(c.get("groupDescription")),
            x_name=_str(c.get("xName")),
            y_name=_str(c.get("yName")),
            z_name=_str(c.get("zName")),
            x_unit=_str(c.get("xUnit")),
            y_unit=_str(c.get("yUnit")),
            z_unit=_str(c.get("zUnit")),
            x_precision=_int(c.get("xPrecision"), 3),
            y_precision=_int(c.get("yPrecision"), 3),
            z_precision=_int(c.get("zPrecision"), 3),
            line_color=_int(c.get("lineColor")),
            points_color=_int(c.get("pointsColor")),
            line_thickness=_int(c.get("lineThickness"), 2),
            line_style=_int(c.get("lineStyle"), 1),
            is_line_visible=_bool(c.get("isLineVisible"), True),
            are_points_visible=_bool(c.get("arePointsVisible")),
            coord_system=_parse_coord_system(c),
            points_x=xs,
            points_y=ys,
            graphic_elements=GraphicElements(
                line_groups=_parse_line_groups(c.get("lines")),
                window_groups=_parse_window_groups(c.get("windows")),
                circle_groups=_parse_circle_groups(c.get("circles")),
            ),
        ))
    return tuple(out)


def _parse_value_rows(section: Any, key: str) -> Tuple[ValueRow, ...]:
    return tuple(
        ValueRow(
            description=_str(v.get("description")),
            status=map_value_status(_int(v.get("status"))),
            value=_str(v.get("value")),
            row_number=_key_number(v.get("rowNumber")),
            unit=_str(v.get("unit")),
            data_type=_int(v.get("dataType")),
            precision=_int(v.get("precision")),
            text_color_description=_int(v.get("textColorDescription"), BLACK),
            back_color_description=_int(v.get("backColorDescription"), WHITE),
            text_color_unit=_int(v.get("textColorUnit"), BLACK),
            back_color_unit=_int(v.get("backColorUnit"), WHITE),
            text_color_value=_int(v.get("textColorValue"), BLACK),
            back_color_value=_int(v.get("backColorValue"), WHITE),
        )
        for v in _plc_groups(section, key)
    )


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def parse_document(
    text: str,
    filename: str,
    ids: Optional[IdGenerator] = None,
    imported_at: Optional[float] = None,
) -> ImportedFile:
    """
    Parse one curve document.

    Parameters
    ----------
    text : str
        XML text (already decoded).
    filename : str
        Display name stored on the result.
    ids : IdGenerator, optional
        Session id service; a fresh UUID generator is used when omitted.
    imported_at : float, optional
        Epoch seconds; defaults to ``time.time()``.

    Raises
    ------
    DocumentParseError
        If the XML is not well-formed.
    """
    ids = ids or IdGenerator()
    tree = xml_to_tree(text)

    data = _pick(tree, "data", tree)
    body = _pick(data, "body", data)
    header = _pick(data, "header", body)

    file_id = ids.next_id()
    warnings: List[str] = []
    curves = _parse_curves(body.get("curves"), file_id, ids, warnings)

    f = ImportedFile(
        id=file_id,
        filename=filename,
        header=_parse_header(header),
        curves=curves,
        set_values=_parse_value_rows(body.get("setValues"), "setValue"),
        actual_values=_parse_value_rows(body.get("actualValues"), "actualValue"),
        imported_at=time.time() if imported_at is None else float(imported_at),
        warnings=tuple(warnings),
    )
    logger.debug(
        "Parsed %s: %d curves, %d set values, %d actual values",
        filename, len(f.curves), len(f.set_values), len(f.actual_values),
    )
    return f
