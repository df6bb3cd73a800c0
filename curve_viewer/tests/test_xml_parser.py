import pytest

from conftest import curve_xml, document_xml, value_xml
from curve_viewer.analysis.values import find_value
from curve_viewer.errors import DocumentParseError
from curve_viewer.ingest.xml_parser import IdGenerator, is_array_path, map_value_status, parse_document, xml_to_tree
from curve_viewer.models.values import STATUS_DEACTIVATED, STATUS_NOK, STATUS_NOK_UPPER, STATUS_OK


class TestXmlToTree:
    def test_single_curve_is_still_a_list(self):
        tree = xml_to_tree(document_xml([curve_xml()]))
        curves = tree["data"]["body"]["curves"]["curve"]
        assert isinstance(curves, list)
        assert len(curves) == 1

    def test_points_stay_raw_markup(self):
        tree = xml_to_tree(document_xml([curve_xml(points=[(1, 2)])]))
        raw = tree["data"]["body"]["curves"]["curve"][0]["points"]
        assert isinstance(raw, str)
        assert 'x="1"' in raw and 'y="2"' in raw

    def test_points_text_is_taken_verbatim_from_source(self):
        raw = '<point x="1"   y="2" /><point y="4" x="3"></point>'
        tree = xml_to_tree(f"<curve><noOfPoints>2</noOfPoints><points>\n  {raw}\n</points></curve>")
        # not re-serialized: spacing and attribute order survive
        assert tree["curve"]["points"] == raw
        assert tree["curve"]["noOfPoints"] == "2"

    def test_points_content_is_not_parsed_as_xml(self):
        tree = xml_to_tree('<curve><points><point x="1" y="2"/> & junk <</points><name>a</name></curve>')
        assert tree["curve"]["points"].startswith('<point x="1" y="2"/>')
        assert tree["curve"]["name"] == "a"

    def test_empty_and_prefixed_points(self):
        tree = xml_to_tree(
            '<c xmlns:m="urn:m"><a><points/></a><b><m:points x="0"><point x="5" y="6"/></m:points></b></c>'
        )
        assert tree["c"]["a"]["points"] == ""
        assert tree["c"]["b"]["points"] == '<point x="5" y="6"/>'

    def test_attributes_are_prefixed(self):
        tree = xml_to_tree('<root><start-point x="1" y="2"/></root>')
        assert tree["root"]["start-point"] == {"@_x": "1", "@_y": "2"}

    def test_malformed_xml_raises(self):
        with pytest.raises(DocumentParseError):
            xml_to_tree("<data><body></data>")

    def test_array_rules(self):
        assert is_array_path("data.body.curves.curve")
        assert is_array_path("x.lines.plc.linegroup")
        assert is_array_path("anything.windows.window")
        assert not is_array_path("data.body.curves")


class TestParseDocument:
    def test_nested_document(self):
        text = document_xml(
            [curve_xml(), curve_xml(description="Torque", y_name="Torque")],
            set_values=[value_xml("setValue", 1, "12.5")],
            actual_values=[value_xml("actualValue", 3, "7", status=2)],
        )
        f = parse_document(text, "part.xml", ids=IdGenerator("t"))
        assert f.filename == "part.xml"
        assert f.label == "PART-1"
        assert f.header.machine_desc == "Press 3"
        assert f.n_channels == 2
        ch = f.curves[0]
        assert ch.file_id == f.id
        assert ch.x_name == "Distance" and ch.y_unit == "N"
        assert list(ch.points_y) == [0.0, 10.0, 20.0]
        assert ch.coord_system.max_y == 20.0
        assert f.set_values[0].value == "12.5"
        assert f.set_values[0].status == STATUS_OK
        assert f.actual_values[0].status == STATUS_NOK
        assert f.warnings == ()

    def test_flat_document_shape(self):
        text = document_xml([curve_xml()], id_string="FLAT", flat=True)
        f = parse_document(text, "flat.xml")
        assert f.label == "FLAT"
        assert f.n_channels == 1

    def test_ids_are_distinct(self):
        ids = IdGenerator("s")
        f = parse_document(document_xml([curve_xml(), curve_xml()]), "a.xml", ids=ids)
        all_ids = [f.id] + [c.id for c in f.curves]
        assert len(set(all_ids)) == 3
        assert ids.issued == 3

    def test_point_count_mismatch_is_a_warning(self):
        f = parse_document(document_xml([curve_xml(points=[(0, 0), (1, 1)], n_points=5)]), "a.xml")
        assert f.curves[0].n_points == 2
        assert len(f.warnings) == 1
        assert "declared 5" in f.warnings[0]

    def test_defaults_for_missing_fields(self):
        f = parse_document("<data><body><curves><curve><noOfPoints>0</noOfPoints></curve></curves></body></data>", "m.xml")
        ch = f.curves[0]
        assert ch.line_thickness == 2
        assert ch.line_style == 1
        assert ch.is_line_visible is True
        assert ch.are_points_visible is False
        assert ch.x_precision == 3
        assert ch.n_points == 0
        assert f.label == "m.xml"
        assert f.set_values == () and f.actual_values == ()

    def test_graphic_elements(self):
        extra = (
            "<lines><plc><linegroup><description>Limits</description><color>255</color>"
            "<lines><line><description>upper</description>"
            '<start-point x="0" y="15"/><end-point x="2" y="15"/></line></lines>'
            "</linegroup></plc></lines>"
            "<windows><plc><windowgroup><description>Win</description><isFilled>true</isFilled>"
            '<windows><window><point1 x="2" y="5"/><point2 x="1" y="0"/></window></windows>'
            "</windowgroup></plc></windows>"
            "<circles><plc><circlegroup><description>Marks</description>"
            '<circles><circle><center-point x="1" y="10"/></circle></circles>'
            "</circlegroup></plc></circles>"
        )
        f = parse_document(document_xml([curve_xml(extra=extra)]), "g.xml")
        ge = f.curves[0].graphic_elements
        assert not ge.is_empty
        line = ge.line_groups[0].lines[0]
        assert (line.start_x, line.start_y, line.end_x, line.end_y) == (0, 15, 2, 15)
        assert ge.line_groups[0].color == 255
        win = ge.window_groups[0]
        assert win.is_filled is True
        assert win.windows[0].x_bounds == (1.0, 2.0)
        circle = ge.circle_groups[0].circles[0]
        assert circle.radius == 5.0
        assert (circle.center_x, circle.center_y) == (1.0, 10.0)

    def test_fractional_row_numbers_are_kept(self):
        text = document_xml(
            actual_values=[value_xml("actualValue", 3, "1"), value_xml("actualValue", 3.5, "2")],
        )
        f = parse_document(text, "r.xml")
        rows = [v.row_number for v in f.actual_values]
        assert rows == [3, 3.5]
        assert isinstance(rows[0], int)
        assert find_value(f, "actual", 3).value == "1"
        assert find_value(f, "actual", 3.5).value == "2"

    def test_fractional_layer_is_kept(self):
        extra = (
            "<lines><plc><linegroup><lines><line><layer>1.5</layer>"
            '<start-point x="0" y="1"/><end-point x="1" y="1"/></line>'
            "<line><layer>2</layer></line></lines></linegroup></plc></lines>"
        )
        f = parse_document(document_xml([curve_xml(extra=extra)]), "l.xml")
        assert [ln.layer for ln in f.curves[0].graphic_elements.line_groups[0].lines] == [1.5, 2]


@pytest.mark.parametrize(
    "raw, expected",
    [(0, STATUS_OK), (1, STATUS_DEACTIVATED), (2, STATUS_NOK), (503, STATUS_NOK_UPPER), (500, 500), (777, 777)],
)
def test_map_value_status(raw, expected):
    assert map_value_status(raw) == expected


def test_id_generator_without_prefix_gives_uuids():
    ids = IdGenerator()
    a, b = ids.next_id(), ids.next_id()
    assert a != b
    assert len(a) == 36
