"""Tests for the geometry types and draw.io XML model classes."""

import pytest

from canvas_router.models import (
    Diagram,
    DrawioFile,
    Geometry,
    Point,
    Rect,
    Side,
)


# ---- Geometry types ----

def test_rect_edges_and_centre() -> None:
    r = Rect(10, 20, 100, 50)
    assert (r.left, r.top, r.right, r.bottom) == (10, 20, 110, 70)
    assert (r.cx, r.cy) == (60, 45)


def test_rect_negative_size_rejected() -> None:
    with pytest.raises(ValueError):
        Rect(0, 0, -1, 10)
    with pytest.raises(ValueError):
        Rect(0, 0, 10, -1)


def test_rect_zero_area_allowed() -> None:
    r = Rect(5, 5, 0, 0)
    assert r.side_midpoint(Side.LEFT) == Point(5, 5)


def test_rect_expanded() -> None:
    assert Rect(10, 10, 20, 20).expanded(5) == Rect(5, 5, 30, 30)


def test_rect_side_midpoints() -> None:
    r = Rect(0, 0, 100, 50)
    assert r.side_midpoint(Side.TOP) == Point(50, 0)
    assert r.side_midpoint(Side.RIGHT) == Point(100, 25)
    assert r.side_midpoint(Side.BOTTOM) == Point(50, 50)
    assert r.side_midpoint(Side.LEFT) == Point(0, 25)


def test_rect_corners_clockwise() -> None:
    assert Rect(0, 0, 10, 5).corners() == [
        Point(0, 0), Point(10, 0), Point(10, 5), Point(0, 5),
    ]
    assert len(Rect(0, 0, 10, 5).edges()) == 4


def test_rect_intersects() -> None:
    a = Rect(0, 0, 100, 50)
    assert a.intersects(Rect(50, 25, 100, 50))
    assert not a.intersects(Rect(200, 0, 100, 50))
    assert a.intersects(Rect(100, 50, 10, 10))


def test_rect_contains_point_includes_boundary() -> None:
    r = Rect(0, 0, 10, 10)
    assert r.contains_point(5, 5)
    assert r.contains_point(10, 10)
    assert not r.contains_point(11, 5)


def test_point_distance() -> None:
    assert Point(0, 0).distance_to(Point(6, 8)) == 10


# ---- XML model ----

def test_minimal_file() -> None:
    """A minimal DrawioFile produces valid XML with structural cells."""
    df = DrawioFile()
    xml = df.to_xml()
    assert '<?xml version="1.0"' in xml
    assert "<mxfile" in xml
    assert '<mxCell id="0"' in xml
    assert '<mxCell id="1" parent="0"' in xml


def test_unbounded_page() -> None:
    assert 'page="0"' in DrawioFile().to_xml()


def test_add_vertex() -> None:
    df = DrawioFile()
    d = df.diagram
    cid = d.add_vertex("Hello", 100, 200, 120, 60)
    xml = df.to_xml()
    assert f'id="{cid}"' in xml
    assert 'value="Hello"' in xml
    assert 'vertex="1"' in xml
    assert 'x="100"' in xml
    assert 'y="200"' in xml


def test_add_vertex_duplicate_id() -> None:
    d = Diagram()
    d.add_vertex("A", 0, 0, cell_id="a")
    with pytest.raises(ValueError):
        d.add_vertex("B", 0, 0, cell_id="a")


def test_next_id_skips_taken_ids() -> None:
    d = Diagram()
    d.add_vertex("A", 0, 0, cell_id="2")
    assert d.add_vertex("B", 0, 0) == "3"


def test_fractional_coordinates() -> None:
    g = Geometry(x=10.5, y=1 / 3, width=100, height=50)
    el = g.to_element()
    assert el.get("x") == "10.5"
    assert el.get("y") == "0.33"
    assert el.get("width") == "100"


def test_large_coordinates_not_in_exponent_form() -> None:
    assert Point(1_000_000, -2_500_000).to_element().get("x") == "1000000"


def test_point_element() -> None:
    p = Point(42, 99)
    el = p.to_element("sourcePoint")
    assert el.get("x") == "42"
    assert el.get("as") == "sourcePoint"


def test_remove_cell_cascades_to_children() -> None:
    d = Diagram()
    gid = d.add_vertex("Group", 0, 0, 300, 200)
    cid = d.add_vertex("Child", 10, 10, parent=gid)
    assert d.remove_cell(gid) is True
    assert d.find_cell(gid) is None
    assert d.find_cell(cid) is None
    assert d.remove_cell(gid) is False


# ---- Layers and connector rendering ----

def test_connectors_layer_created_once() -> None:
    d = Diagram()
    lid = d.connectors_layer
    assert d.connectors_layer == lid
    layers = [c for c in d.cells if c.parent == "0"]
    assert [layer.value for layer in layers] == ["", "Connectors"]


def test_add_segment() -> None:
    d = Diagram()
    sid = d.add_segment(Point(0, 0), Point(50, 0), "endArrow=none;")
    cell = d.find_cell(sid)
    assert cell.edge
    assert cell.parent == d.connectors_layer
    assert d.is_connector_cell(cell)
    el = cell.to_element()
    assert el.find("mxGeometry").get("relative") == "1"
    assert el.find("mxGeometry/mxPoint[@as='targetPoint']").get("x") == "50"


def test_add_arrowhead_points_along_heading() -> None:
    d = Diagram()
    hid = d.add_arrowhead(Point(100, 100), 90, 10, "triangle;")
    cell = d.find_cell(hid)
    assert cell.style == "triangle;rotation=90;"
    assert cell.connectable is False
    # Pointing south: the box sits above the tip
    assert cell.geometry.x == pytest.approx(95)
    assert cell.geometry.y == pytest.approx(90)
    assert 'connectable="0"' in DrawioFile(d).to_xml()


def test_hidden_cell() -> None:
    d = Diagram()
    sid = d.add_segment(Point(0, 0), Point(50, 0), "endArrow=none;", visible=False)
    assert d.find_cell(sid).to_element().get("visible") == "0"
    d.set_cell_visible(sid, True)
    assert d.find_cell(sid).to_element().get("visible") is None


def test_vertex_is_not_connector_cell() -> None:
    d = Diagram()
    vid = d.add_vertex("A", 0, 0)
    d.add_segment(Point(0, 0), Point(50, 0), "endArrow=none;")
    assert not d.is_connector_cell(d.find_cell(vid))


# ---- mxfile attributes ----

def test_mxfile_attributes() -> None:
    """DrawioFile includes modified, agent, version in XML."""
    xml = DrawioFile().to_xml()
    assert 'agent="canvas-router/1.0"' in xml
    assert 'version=' in xml
    assert 'modified=' in xml
    assert 'host="canvas-router"' in xml
