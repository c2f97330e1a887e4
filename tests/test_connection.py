"""Tests for connections, their rendering and the connection registry."""

import logging

import pytest

from canvas_router.connection import (
    Connection,
    ConnectionRegistry,
    ConnectionRemovedError,
    ConnectionState,
)
from canvas_router.models import Diagram, Point, Rect, Side
from canvas_router.obstacles import DiagramLayout


def _setup() -> tuple:
    d = Diagram(name="Test")
    layout = DiagramLayout(d)
    registry = ConnectionRegistry(layout)
    a = d.add_vertex("A", 0, 0, 100, 50)
    b = d.add_vertex("B", 300, 0, 100, 50)
    return d, layout, registry, a, b


def _connect(d: Diagram, layout: DiagramLayout, registry: ConnectionRegistry,
             source: str, target: str) -> Connection:
    return Connection(source, target, layout=layout, surface=d, registry=registry)


def _connector_cells(d: Diagram) -> list:
    return [c for c in d.cells if d.is_connector_cell(c)]


class TestCreate:
    def test_positions_on_creation(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        assert conn.state is ConnectionState.POSITIONED
        assert conn.path == (Point(100, 25), Point(300, 25))
        assert conn in registry
        assert registry.all_connections() == [conn]

    def test_renders_segments_and_arrowhead(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        assert len(conn.handles) == 2
        segment, head = (d.find_cell(cid) for cid in conn.handles)
        assert segment.edge
        assert segment.geometry.source_point == Point(100, 25)
        assert segment.geometry.target_point == Point(300, 25)
        assert "strokeColor=#4CAF50" in segment.style
        assert head.vertex
        assert head.style.startswith("triangle;")
        assert head.style.endswith("rotation=0;")
        assert (head.geometry.x, head.geometry.y) == (290, 20)
        assert _connector_cells(d) == [segment, head]

    def test_touching_views_render_only_arrowhead(self) -> None:
        d, layout, registry, a, _ = _setup()
        touching = d.add_vertex("T", 100, 0, 100, 50)
        conn = _connect(d, layout, registry, a, touching)
        assert conn.path == (Point(100, 25), Point(100, 25))
        assert len(conn.handles) == 1
        head = d.find_cell(conn.handles[0])
        assert head.vertex
        assert head.style.endswith("rotation=0;")
        assert (head.geometry.x, head.geometry.y) == (90, 20)

    def test_arrowhead_points_into_top_side_of_view_below(self) -> None:
        d, layout, registry, a, _ = _setup()
        below = d.add_vertex("T", 0, 50, 100, 50)
        conn = _connect(d, layout, registry, a, below)
        assert conn.route.end_side is Side.TOP
        assert d.find_cell(conn.handles[-1]).style.endswith("rotation=90;")
        assert len(conn.handles) == 1

    def test_one_segment_per_leg(self) -> None:
        d, layout, registry, a, b = _setup()
        d.add_vertex("C", 150, -10, 50, 70)
        conn = _connect(d, layout, registry, a, b)
        assert len(conn.handles) == len(conn.path)

    def test_self_connection_rejected(self) -> None:
        d, layout, registry, a, _ = _setup()
        with pytest.raises(ValueError):
            _connect(d, layout, registry, a, a)
        assert len(registry) == 0

    def test_missing_endpoint_stays_uninitialized(self, caplog: pytest.LogCaptureFixture) -> None:
        d, layout, registry, a, _ = _setup()
        with caplog.at_level(logging.WARNING, logger="canvas-router"):
            conn = _connect(d, layout, registry, a, "missing")
        assert conn.state is ConnectionState.UNINITIALIZED
        assert conn.handles == []
        assert conn.path is None
        assert conn in registry
        assert "'missing' not found" in caplog.text


class TestUpdate:
    def test_follows_moved_region(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        d.find_cell(b).geometry.y = 300
        assert conn.update_position() is True
        assert conn.path[0] == Point(100, 25)
        assert conn.path[-1] == Point(300, 325)

    def test_idempotent(self) -> None:
        d, layout, registry, a, b = _setup()
        d.add_vertex("C", 150, -10, 50, 70)
        conn = _connect(d, layout, registry, a, b)
        first = conn.path
        conn.update_position()
        assert conn.path == first

    def test_rerender_replaces_cells(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        old = list(conn.handles)
        conn.update_position()
        assert all(d.find_cell(cid) is None for cid in old)
        assert len(_connector_cells(d)) == len(conn.handles)

    def test_uses_supplied_snapshot(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        snapshot = {a: Rect(0, 0, 100, 50), b: Rect(0, 200, 100, 50)}
        conn.update_position(snapshot)
        assert conn.path == (Point(50, 50), Point(50, 200))

    def test_missing_target_leaves_rendering_untouched(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        handles = list(conn.handles)
        path = conn.path
        d.remove_cell(b)
        with caplog.at_level(logging.WARNING, logger="canvas-router"):
            assert conn.update_position() is False
        assert conn.handles == handles
        assert all(d.find_cell(cid) is not None for cid in handles)
        assert conn.path == path
        assert conn in registry
        assert f"region '{b}' not found" in caplog.text

    def test_other_regions_are_avoided(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        d.add_vertex("C", 150, -10, 50, 70)
        conn.update_position()
        assert not conn.intersects(Rect(145, -15, 60, 80))


class TestVisibility:
    def test_hide_and_show(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        path = conn.path
        conn.set_visible(False)
        assert not conn.visible
        assert all(not d.find_cell(cid).visible for cid in conn.handles)
        assert conn.path == path
        conn.set_visible(True)
        assert all(d.find_cell(cid).visible for cid in conn.handles)

    def test_hidden_connection_stays_hidden_after_update(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        conn.set_visible(False)
        d.find_cell(b).geometry.y = 300
        conn.update_position()
        assert all(not d.find_cell(cid).visible for cid in conn.handles)
        assert d.to_element().find(".//mxCell[@edge='1']").get("visible") == "0"


class TestRemove:
    def test_remove_erases_and_unregisters(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        conn.remove()
        assert conn.state is ConnectionState.REMOVED
        assert conn not in registry.all_connections()
        assert conn not in registry.connections_intersecting(a)
        assert conn not in registry.connections_intersecting(b)
        assert _connector_cells(d) == []

    def test_remove_twice(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        conn.remove()
        conn.remove()
        assert conn.removed

    def test_use_after_remove_raises(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        conn.remove()
        with pytest.raises(ConnectionRemovedError):
            conn.update_position()
        with pytest.raises(ConnectionRemovedError):
            conn.set_visible(False)


class TestRegistry:
    def test_connections_intersecting(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        c = d.add_vertex("C", 180, 0, 20, 50)
        far = d.add_vertex("D", 180, 300, 20, 50)
        assert registry.connections_intersecting(c) == [conn]
        assert registry.connections_intersecting(far) == []

    def test_connections_intersecting_uses_padding(self) -> None:
        d, layout, registry, a, b = _setup()
        conn = _connect(d, layout, registry, a, b)
        near = d.add_vertex("C", 180, 28, 20, 20)
        assert registry.connections_intersecting(near) == [conn]
        assert ConnectionRegistry(layout, padding=0).intersecting_rect(Rect(180, 28, 20, 20)) == []

    def test_connections_intersecting_unknown_region(self) -> None:
        d, layout, registry, a, b = _setup()
        _connect(d, layout, registry, a, b)
        assert registry.connections_intersecting("missing") == []

    def test_find_and_connections_for(self) -> None:
        d, layout, registry, a, b = _setup()
        c = d.add_vertex("C", 0, 300, 100, 50)
        ab = _connect(d, layout, registry, a, b)
        bc = _connect(d, layout, registry, b, c)
        assert registry.find(a, b) is ab
        assert registry.find(b, a) is None
        assert registry.connections_for(b) == [ab, bc]
        assert registry.connections_for(c) == [bc]

    def test_registries_are_independent(self) -> None:
        d1, layout1, registry1, a1, b1 = _setup()
        d2, layout2, registry2, a2, b2 = _setup()
        conn = _connect(d1, layout1, registry1, a1, b1)
        assert conn in registry1
        assert conn not in registry2
        assert len(registry2) == 0

    def test_iteration_tolerates_removal(self) -> None:
        d, layout, registry, a, b = _setup()
        c = d.add_vertex("C", 0, 300, 100, 50)
        _connect(d, layout, registry, a, b)
        _connect(d, layout, registry, b, c)
        for conn in registry:
            conn.remove()
        assert len(registry) == 0
