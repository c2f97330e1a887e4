"""
Region lookup and obstacle collection.

The routing core never inspects the canvas directly: it asks a
``LayoutQuery`` for region rectangles.  ``DiagramLayout`` answers those
questions from a draw.io ``Diagram`` where every vertex cell outside the
connectors layer is a region.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol

from canvas_router.models import Diagram, Rect

DEFAULT_OBSTACLE_PADDING = 5.0


class LayoutQuery(Protocol):
    """Read-only view of where regions currently are."""

    def get_region_rect(self, region_id: str) -> Optional[Rect]:
        """Current rectangle of a region in document coordinates, or None."""
        ...

    def list_regions(self) -> list[str]:
        """IDs of every live region."""
        ...


class DiagramLayout:
    """``LayoutQuery`` backed by the vertex cells of a draw.io diagram."""

    def __init__(self, diagram: Diagram) -> None:
        self.diagram = diagram

    def _is_region(self, cell) -> bool:
        return (
            cell.vertex
            and cell.geometry is not None
            and not cell.geometry.relative
            and not self.diagram.is_connector_cell(cell)
        )

    def list_regions(self) -> list[str]:
        return [c.id for c in self.diagram.cells if self._is_region(c)]

    def get_region_rect(self, region_id: str) -> Optional[Rect]:
        cell = self.diagram.find_cell(region_id)
        if cell is None or not self._is_region(cell):
            return None
        x, y = self._absolute_origin(cell.parent)
        geom = cell.geometry
        return Rect(x + geom.x, y + geom.y, geom.width, geom.height)

    def _absolute_origin(self, parent_id: str) -> tuple[float, float]:
        """Sum the offsets of container ancestors (children are parent-relative)."""
        ox, oy = 0.0, 0.0
        visited: set[str] = set()
        current = parent_id
        while current and current not in ("0", "1") and current not in visited:
            visited.add(current)
            parent = self.diagram.find_cell(current)
            if parent is None:
                break
            if parent.geometry is not None and not parent.geometry.relative:
                ox += parent.geometry.x
                oy += parent.geometry.y
            current = parent.parent
        return ox, oy


def snapshot_regions(layout: LayoutQuery) -> dict[str, Rect]:
    """Query every live region once.

    All connections recomputed within one update cycle share this
    snapshot so that they agree on where a region in motion is.
    """
    regions: dict[str, Rect] = {}
    for region_id in layout.list_regions():
        rect = layout.get_region_rect(region_id)
        if rect is not None:
            regions[region_id] = rect
    return regions


def collect_obstacles(
    source_id: str,
    target_id: str,
    regions: Mapping[str, Rect],
    padding: float = DEFAULT_OBSTACLE_PADDING,
) -> list[Rect]:
    """Every region except source and target, padded outward by *padding*."""
    return [
        rect.expanded(padding)
        for region_id, rect in regions.items()
        if region_id != source_id and region_id != target_id
    ]
