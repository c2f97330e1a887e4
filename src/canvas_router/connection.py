"""
Connections between views and the registry that tracks them.

A ``Connection`` owns one routed path and the cells that render it.  The
``ConnectionRegistry`` is an explicitly owned object (one per canvas), so
independent canvases never share connection state.

Lifecycle::

    UNINITIALIZED --update_position()--> POSITIONED --remove()--> REMOVED
                                          ^    |
                                          +----+  (every later update)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, Mapping, Optional, Protocol

from canvas_router.geometry import Path, heading, path_intersects_rect
from canvas_router.models import Point, Rect, Side
from canvas_router.obstacles import LayoutQuery, collect_obstacles, snapshot_regions
from canvas_router.router import ConnectorRouter, Route
from canvas_router.styles import ConnectorStyle

logger = logging.getLogger("canvas-router")

# Arrowhead heading for a path that enters through each side
_INWARD_HEADING = {Side.TOP: 90.0, Side.RIGHT: 180.0, Side.BOTTOM: -90.0, Side.LEFT: 0.0}


class ConnectionState(Enum):
    UNINITIALIZED = "uninitialized"
    POSITIONED = "positioned"
    REMOVED = "removed"


class ConnectionRemovedError(RuntimeError):
    """Raised when a removed connection is asked to do anything but remove()."""


class ConnectorSurface(Protocol):
    """Rendering capability consumed by connections (``Diagram`` implements it)."""

    def add_segment(self, start: Point, end: Point, style: str, visible: bool = True) -> str: ...

    def add_arrowhead(
        self, tip: Point, heading: float, size: float, style: str, visible: bool = True,
    ) -> str: ...

    def set_cell_visible(self, cell_id: str, visible: bool) -> None: ...

    def remove_cell(self, cell_id: str) -> bool: ...


class Connection:
    """A directed connector from one region to another."""

    def __init__(
        self,
        source_id: str,
        target_id: str,
        layout: LayoutQuery,
        surface: ConnectorSurface,
        registry: ConnectionRegistry,
        router: Optional[ConnectorRouter] = None,
        style: Optional[ConnectorStyle] = None,
    ) -> None:
        if source_id == target_id:
            raise ValueError(f"Cannot connect region '{source_id}' to itself.")
        self._source_id = source_id
        self._target_id = target_id
        self.layout = layout
        self.surface = surface
        self.registry = registry
        self.router = router or ConnectorRouter()
        self.style = style or ConnectorStyle()
        self.state = ConnectionState.UNINITIALIZED
        self.route: Optional[Route] = None
        self.handles: list[str] = []
        self._visible = True

        registry.add(self)
        self.update_position()

    def __repr__(self) -> str:
        return f"Connection({self._source_id!r} -> {self._target_id!r}, {self.state.value})"

    # ----- accessors -----

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def target_id(self) -> str:
        return self._target_id

    @property
    def path(self) -> Optional[Path]:
        return self.route.path if self.route else None

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def removed(self) -> bool:
        return self.state is ConnectionState.REMOVED

    def touches(self, region_id: str) -> bool:
        return region_id in (self._source_id, self._target_id)

    # ----- operations -----

    def update_position(self, regions: Optional[Mapping[str, Rect]] = None) -> bool:
        """Recompute the path and re-render it.

        *regions* is the update cycle's snapshot; when omitted, regions are
        queried live.  Returns False (and leaves the rendering untouched)
        when either endpoint cannot currently be located.
        """
        if self.removed:
            raise ConnectionRemovedError(f"{self!r} has been removed.")
        if regions is None:
            regions = snapshot_regions(self.layout)

        source = regions.get(self._source_id)
        target = regions.get(self._target_id)
        if source is None or target is None:
            missing = self._source_id if source is None else self._target_id
            logger.warning(
                "Connection %s -> %s: region '%s' not found; skipping update",
                self._source_id, self._target_id, missing,
            )
            return False

        obstacles = collect_obstacles(
            self._source_id, self._target_id, regions,
            self.router.config.obstacle_padding,
        )
        self.route = self.router.route(source, target, obstacles)
        self._render()
        self.state = ConnectionState.POSITIONED
        return True

    def set_visible(self, visible: bool) -> None:
        """Show or hide the rendered connector without recomputing it."""
        if self.removed:
            raise ConnectionRemovedError(f"{self!r} has been removed.")
        self._visible = visible
        for cid in self.handles:
            self.surface.set_cell_visible(cid, visible)

    def remove(self) -> None:
        """Erase the rendering and leave the registry. Safe to call twice."""
        if self.removed:
            return
        self._erase()
        self.registry.discard(self)
        self.state = ConnectionState.REMOVED

    def intersects(self, rect: Rect) -> bool:
        path = self.path
        return path is not None and path_intersects_rect(path, rect)

    # ----- rendering -----

    def _erase(self) -> None:
        for cid in self.handles:
            self.surface.remove_cell(cid)
        self.handles = []

    def _render(self) -> None:
        self._erase()
        path = self.route.path
        segment_style = self.style.segment()
        for i in range(len(path) - 1):
            if path[i] == path[i + 1]:
                continue
            self.handles.append(
                self.surface.add_segment(path[i], path[i + 1], segment_style, self._visible)
            )
        tail, tip = path[-2], path[-1]
        if tail == tip:
            # Touching views: no segment, the arrowhead points into the target side
            direction = _INWARD_HEADING[self.route.end_side or Side.LEFT]
        else:
            direction = heading(tail, tip)
        self.handles.append(self.surface.add_arrowhead(
            tip, direction, self.style.arrow_size,
            self.style.arrowhead(), self._visible,
        ))


class ConnectionRegistry:
    """All live connections of one canvas."""

    def __init__(self, layout: LayoutQuery, padding: float = 5) -> None:
        self.layout = layout
        self.padding = padding
        self._connections: list[Connection] = []

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections))

    def __contains__(self, connection: object) -> bool:
        return any(c is connection for c in self._connections)

    def add(self, connection: Connection) -> None:
        if connection not in self:
            self._connections.append(connection)

    def discard(self, connection: Connection) -> None:
        self._connections = [c for c in self._connections if c is not connection]

    def all_connections(self) -> list[Connection]:
        return list(self._connections)

    def find(self, source_id: str, target_id: str) -> Optional[Connection]:
        for c in self._connections:
            if c.source_id == source_id and c.target_id == target_id:
                return c
        return None

    def connections_for(self, region_id: str) -> list[Connection]:
        """Connections with *region_id* as source or target."""
        return [c for c in self._connections if c.touches(region_id)]

    def intersecting_rect(self, rect: Rect) -> list[Connection]:
        """Connections whose current path touches *rect*."""
        return [c for c in self._connections if c.intersects(rect)]

    def connections_intersecting(self, region_id: str) -> list[Connection]:
        """Connections whose current path crosses the region's padded rect.

        Used to limit recomputation after a move to the connections the
        moved region actually got in the way of.
        """
        rect = self.layout.get_region_rect(region_id)
        if rect is None:
            return []
        return self.intersecting_rect(rect.expanded(self.padding))
