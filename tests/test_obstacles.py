"""Tests for region lookup and obstacle collection."""

from canvas_router.models import Diagram, Point, Rect
from canvas_router.obstacles import DiagramLayout, collect_obstacles, snapshot_regions


def _fresh_diagram() -> Diagram:
    return Diagram(name="Test")


def test_list_regions_skips_structural_cells() -> None:
    d = _fresh_diagram()
    a = d.add_vertex("A", 0, 0, 100, 50)
    b = d.add_vertex("B", 300, 0, 100, 50)
    assert DiagramLayout(d).list_regions() == [a, b]


def test_connector_cells_are_not_regions() -> None:
    d = _fresh_diagram()
    a = d.add_vertex("A", 0, 0, 100, 50)
    seg = d.add_segment(Point(0, 0), Point(10, 0), "endArrow=none;")
    head = d.add_arrowhead(Point(10, 0), 0, 10, "triangle;")
    layout = DiagramLayout(d)
    assert layout.list_regions() == [a]
    assert layout.get_region_rect(seg) is None
    assert layout.get_region_rect(head) is None
    assert layout.get_region_rect(d.connectors_layer) is None


def test_get_region_rect() -> None:
    d = _fresh_diagram()
    a = d.add_vertex("A", 10, 20, 100, 50)
    assert DiagramLayout(d).get_region_rect(a) == Rect(10, 20, 100, 50)


def test_get_region_rect_unknown() -> None:
    assert DiagramLayout(_fresh_diagram()).get_region_rect("missing") is None


def test_nested_region_uses_absolute_coordinates() -> None:
    d = _fresh_diagram()
    group = d.add_vertex("Group", 50, 50, 300, 200)
    child = d.add_vertex("Child", 20, 40, 80, 30, parent=group)
    assert DiagramLayout(d).get_region_rect(child) == Rect(70, 90, 80, 30)


def test_snapshot_regions() -> None:
    d = _fresh_diagram()
    a = d.add_vertex("A", 0, 0, 100, 50)
    b = d.add_vertex("B", 300, 0, 100, 50)
    assert snapshot_regions(DiagramLayout(d)) == {
        a: Rect(0, 0, 100, 50),
        b: Rect(300, 0, 100, 50),
    }


def test_snapshot_is_detached_from_later_moves() -> None:
    d = _fresh_diagram()
    a = d.add_vertex("A", 0, 0, 100, 50)
    regions = snapshot_regions(DiagramLayout(d))
    d.find_cell(a).geometry.x = 500
    assert regions[a] == Rect(0, 0, 100, 50)


def test_collect_obstacles_excludes_endpoints_and_pads() -> None:
    regions = {
        "src": Rect(0, 0, 100, 50),
        "tgt": Rect(300, 0, 100, 50),
        "mid": Rect(150, -10, 50, 70),
    }
    assert collect_obstacles("src", "tgt", regions) == [Rect(145, -15, 60, 80)]


def test_collect_obstacles_custom_padding() -> None:
    regions = {"src": Rect(0, 0, 10, 10), "other": Rect(50, 50, 10, 10)}
    assert collect_obstacles("src", "tgt", regions, padding=0) == [Rect(50, 50, 10, 10)]
