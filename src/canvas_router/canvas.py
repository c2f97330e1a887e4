"""
Canvas session: views, connections and update cycles.

A ``Canvas`` wires the routing core to a draw.io page.  Each change to a
view runs one *update cycle*: regions are snapshotted once and every
affected connection is recomputed against that same snapshot.
"""

from __future__ import annotations

import logging
from typing import Optional

from canvas_router.connection import Connection, ConnectionRegistry
from canvas_router.models import Diagram, DrawioFile
from canvas_router.obstacles import DiagramLayout, snapshot_regions
from canvas_router.router import ConnectorRouter, RoutingConfig
from canvas_router.styles import ConnectorStyle, ViewStyle

logger = logging.getLogger("canvas-router")

DUPLICATE_GAP = 50


class UnknownViewError(KeyError):
    """Raised when a view ID does not exist on the canvas."""

    def __init__(self, view_id: str) -> None:
        self.view_id = view_id
        self.message = f"view '{view_id}' not found."
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class Canvas:
    """An unbounded canvas of views connected by routed connectors."""

    def __init__(
        self,
        name: str = "Canvas",
        config: Optional[RoutingConfig] = None,
        connector_style: Optional[ConnectorStyle] = None,
    ) -> None:
        self.file = DrawioFile()
        self.diagram: Diagram = self.file.diagram
        self.diagram.name = name
        self.layout = DiagramLayout(self.diagram)
        self.router = ConnectorRouter(config)
        self.connector_style = connector_style or ConnectorStyle()
        self.registry = ConnectionRegistry(self.layout, self.router.config.obstacle_padding)

    @property
    def name(self) -> str:
        return self.diagram.name

    def to_xml(self) -> str:
        return self.file.to_xml()

    # ----- views -----

    def _view_cell(self, view_id: str):
        cell = self.diagram.find_cell(view_id)
        if cell is None or view_id not in self.layout.list_regions():
            raise UnknownViewError(view_id)
        return cell

    def view_ids(self) -> list[str]:
        return self.layout.list_regions()

    def add_view(
        self,
        label: str,
        x: float,
        y: float,
        width: float = 120,
        height: float = 60,
        style: str = ViewStyle.DEFAULT,
        view_id: Optional[str] = None,
    ) -> str:
        """Add a view; connectors it lands on are re-routed around it."""
        view_id = self.diagram.add_vertex(label, x, y, width, height, style, cell_id=view_id)
        if len(self.registry):
            self.region_moved(view_id)
        return view_id

    def move_view(self, view_id: str, x: float, y: float) -> list[Connection]:
        geom = self._view_cell(view_id).geometry
        geom.x, geom.y = x, y
        return self.region_moved(view_id)

    def resize_view(self, view_id: str, width: float, height: float) -> list[Connection]:
        if width < 0 or height < 0:
            raise ValueError(f"View size must be non-negative, got {width}x{height}.")
        geom = self._view_cell(view_id).geometry
        geom.width, geom.height = width, height
        return self.region_moved(view_id)

    def duplicate_view(self, view_id: str, gap: float = DUPLICATE_GAP) -> tuple[str, Connection]:
        """Copy a view to the right of the original and connect the two."""
        cell = self._view_cell(view_id)
        rect = self.layout.get_region_rect(view_id)
        new_id = self.add_view(
            cell.value, rect.right + gap, rect.y,
            rect.width, rect.height, cell.style,
        )
        return new_id, self.connect(view_id, new_id)

    def delete_view(self, view_id: str) -> int:
        """Delete a view and every connection attached to it.

        Returns the number of connections removed.
        """
        self._view_cell(view_id)
        attached = self.registry.connections_for(view_id)
        for conn in attached:
            conn.remove()
        self.diagram.remove_cell(view_id)
        return len(attached)

    # ----- connections -----

    def connect(self, source_id: str, target_id: str) -> Connection:
        self._view_cell(source_id)
        self._view_cell(target_id)
        existing = self.registry.find(source_id, target_id)
        if existing is not None:
            return existing
        return Connection(
            source_id, target_id,
            layout=self.layout,
            surface=self.diagram,
            registry=self.registry,
            router=self.router,
            style=self.connector_style,
        )

    def find_connection(self, source_id: str, target_id: str) -> Optional[Connection]:
        return self.registry.find(source_id, target_id)

    def disconnect(self, source_id: str, target_id: str) -> bool:
        conn = self.registry.find(source_id, target_id)
        if conn is None:
            return False
        conn.remove()
        return True

    def set_connection_visible(self, source_id: str, target_id: str, visible: bool) -> bool:
        conn = self.registry.find(source_id, target_id)
        if conn is None:
            return False
        conn.set_visible(visible)
        return True

    # ----- update cycles -----

    def region_moved(self, view_id: str) -> list[Connection]:
        """Recompute connections affected by a change to *view_id*.

        Affected means attached to the view, or currently routed through
        it.  All of them share one region snapshot.
        """
        regions = snapshot_regions(self.layout)
        affected = self.registry.connections_for(view_id)
        rect = regions.get(view_id)
        if rect is not None:
            for conn in self.registry.intersecting_rect(rect.expanded(self.registry.padding)):
                if conn not in affected:
                    affected.append(conn)
        for conn in affected:
            conn.update_position(regions)
        logger.debug("View %s moved: recomputed %d connection(s)", view_id, len(affected))
        return affected

    def refresh(self) -> list[Connection]:
        """Recompute every connection (e.g. after the viewport is resized)."""
        regions = snapshot_regions(self.layout)
        connections = self.registry.all_connections()
        for conn in connections:
            conn.update_position(regions)
        return connections
