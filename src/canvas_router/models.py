"""
Core geometry and draw.io XML model classes for the canvas.

Views are vertex cells of an mxGraphModel page; rendered connectors are
edge segments and arrowhead cells on a dedicated layer, so a canvas can be
exported as a ``.drawio`` file at any time.
"""

from __future__ import annotations

import html as _html
import math
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Side(Enum):
    """Side of a rectangle. Declaration order is the anchor iteration order."""
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


# ---------------------------------------------------------------------------
# Geometry data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    """A 2-D coordinate in document space (already scroll-adjusted)."""
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def to_element(self, role: Optional[str] = None) -> ET.Element:
        el = ET.Element("mxPoint", attrib={"x": _fmt(self.x), "y": _fmt(self.y)})
        if role:
            el.set("as", role)
        return el


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle: top-left corner plus size."""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Rect size must be non-negative, got {self.width}x{self.height}."
            )

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    def expanded(self, margin: float) -> Rect:
        """Return a copy grown outward by *margin* on every side."""
        return Rect(self.x - margin, self.y - margin,
                    self.width + 2 * margin, self.height + 2 * margin)

    def side_midpoint(self, side: Side) -> Point:
        if side is Side.TOP:
            return Point(self.cx, self.y)
        if side is Side.RIGHT:
            return Point(self.right, self.cy)
        if side is Side.BOTTOM:
            return Point(self.cx, self.bottom)
        return Point(self.x, self.cy)

    def corners(self) -> list[Point]:
        """Corners clockwise from top-left."""
        return [
            Point(self.x, self.y),
            Point(self.right, self.y),
            Point(self.right, self.bottom),
            Point(self.x, self.bottom),
        ]

    def edges(self) -> list[tuple[Point, Point]]:
        """The four boundary edges as point pairs."""
        c = self.corners()
        return [(c[i], c[(i + 1) % 4]) for i in range(4)]

    def intersects(self, other: Rect) -> bool:
        """Check if two rectangles overlap, shared boundary included."""
        return not (
            self.right < other.x
            or other.right < self.x
            or self.bottom < other.y
            or other.bottom < self.y
        )

    def contains_point(self, px: float, py: float) -> bool:
        """Check if a point is inside this rectangle, boundary included."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom


@dataclass(frozen=True)
class Anchor:
    """A perimeter attachment point tagged with the side it sits on."""
    point: Point
    side: Side


# ---------------------------------------------------------------------------
# draw.io cell model
# ---------------------------------------------------------------------------

@dataclass
class Geometry:
    """Geometry of an mxCell (position + size for vertices, relative for edges)."""
    x: float = 0
    y: float = 0
    width: float = 120
    height: float = 60
    relative: bool = False
    source_point: Optional[Point] = None
    target_point: Optional[Point] = None

    def to_element(self) -> ET.Element:
        attrib: dict[str, str] = {"as": "geometry"}
        if self.relative:
            attrib["relative"] = "1"
        else:
            attrib["x"] = _fmt(self.x)
            attrib["y"] = _fmt(self.y)
            attrib["width"] = _fmt(self.width)
            attrib["height"] = _fmt(self.height)
        el = ET.Element("mxGeometry", attrib=attrib)
        if self.source_point:
            el.append(self.source_point.to_element("sourcePoint"))
        if self.target_point:
            el.append(self.target_point.to_element("targetPoint"))
        return el


@dataclass
class MxCell:
    """A single mxCell element — vertex, edge, or structural cell."""
    id: str
    value: str = ""
    style: str = ""
    parent: str = "1"
    vertex: bool = False
    edge: bool = False
    connectable: Optional[bool] = None
    visible: bool = True
    geometry: Optional[Geometry] = None

    def to_element(self) -> ET.Element:
        attrib: dict[str, str] = {"id": self.id}
        if self.value:
            # Unescape pre-escaped HTML so ET.tostring escapes exactly once.
            attrib["value"] = _html.unescape(self.value)
        if self.style:
            attrib["style"] = self.style
        if self.parent:
            attrib["parent"] = self.parent
        if self.vertex:
            attrib["vertex"] = "1"
        if self.edge:
            attrib["edge"] = "1"
        if self.connectable is not None and not self.connectable:
            attrib["connectable"] = "0"
        if not self.visible:
            attrib["visible"] = "0"
        el = ET.Element("mxCell", attrib=attrib)
        if self.geometry:
            el.append(self.geometry.to_element())
        return el


@dataclass
class Diagram:
    """A single canvas page inside an mxfile.

    Besides the usual builder helpers, a diagram acts as the rendering
    surface for connectors: segments and arrowheads are parented to a
    ``Connectors`` layer that is created on first use.
    """
    name: str = "Page-1"
    id: str = field(default_factory=lambda: _uid())
    cells: list[MxCell] | None = None
    # mxGraphModel settings; the canvas is unbounded so page mode is off
    dx: int = 1354
    dy: int = 981
    grid: bool = True
    grid_size: int = 10
    page: bool = False
    background: str = "none"

    # internal state
    _next_id: int = field(default=2, init=False, repr=False)
    _connectors_layer: Optional[str] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        # Ensure structural cells 0 and 1 always exist
        if self.cells is None:
            self.cells = [
                MxCell(id="0", parent=""),
                MxCell(id="1", parent="0"),
            ]

    def next_id(self) -> str:
        """Generate a sequential cell ID, skipping IDs already in use."""
        taken = {c.id for c in self.cells}
        cid = str(self._next_id)
        while cid in taken:
            self._next_id += 1
            cid = str(self._next_id)
        self._next_id += 1
        return cid

    def find_cell(self, cell_id: str) -> MxCell | None:
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        return None

    # ----- builder helpers -----

    def add_vertex(
        self,
        value: str,
        x: float,
        y: float,
        width: float = 120,
        height: float = 60,
        style: str = "rounded=1;whiteSpace=wrap;html=1;",
        parent: str = "1",
        cell_id: Optional[str] = None,
    ) -> str:
        cid = cell_id or self.next_id()
        if self.find_cell(cid) is not None:
            raise ValueError(f"Cell ID '{cid}' already exists.")
        cell = MxCell(
            id=cid,
            value=value,
            style=style,
            parent=parent,
            vertex=True,
            geometry=Geometry(x=x, y=y, width=width, height=height),
        )
        self.cells.append(cell)
        return cid

    def add_layer(self, name: str) -> str:
        """Add a new layer (an mxCell whose parent is the root cell '0')."""
        cid = self.next_id()
        self.cells.append(MxCell(id=cid, value=name, parent="0"))
        return cid

    @property
    def connectors_layer(self) -> str:
        """ID of the layer holding rendered connector cells."""
        if self._connectors_layer is None:
            self._connectors_layer = self.add_layer("Connectors")
        return self._connectors_layer

    def is_connector_cell(self, cell: MxCell) -> bool:
        return self._connectors_layer is not None and cell.parent == self._connectors_layer

    def remove_cell(self, cell_id: str) -> bool:
        """Remove a cell and, recursively, every cell parented to it."""
        doomed = {cell_id}
        changed = True
        while changed:
            changed = False
            for c in self.cells:
                if c.parent in doomed and c.id not in doomed:
                    doomed.add(c.id)
                    changed = True
        before = len(self.cells)
        self.cells = [c for c in self.cells if c.id not in doomed]
        return len(self.cells) != before

    def set_cell_visible(self, cell_id: str, visible: bool) -> None:
        cell = self.find_cell(cell_id)
        if cell is not None:
            cell.visible = visible

    # ----- connector rendering -----

    def add_segment(self, start: Point, end: Point, style: str, visible: bool = True) -> str:
        """Render one connector segment as a free-standing edge cell."""
        cid = self.next_id()
        geom = Geometry(relative=True, source_point=start, target_point=end)
        self.cells.append(MxCell(
            id=cid,
            style=style,
            parent=self.connectors_layer,
            edge=True,
            visible=visible,
            geometry=geom,
        ))
        return cid

    def add_arrowhead(
        self,
        tip: Point,
        heading: float,
        size: float,
        style: str,
        visible: bool = True,
    ) -> str:
        """Render an arrowhead whose tip touches *tip*.

        *heading* is the direction of travel in degrees (0 = east, 90 =
        south). draw.io rotates shapes about their centre, so the box is
        centred half a size back from the tip along the heading.
        """
        rad = math.radians(heading)
        cx = tip.x - math.cos(rad) * size / 2
        cy = tip.y - math.sin(rad) * size / 2
        cid = self.next_id()
        self.cells.append(MxCell(
            id=cid,
            style=style.rstrip(";") + f";rotation={heading:g};",
            parent=self.connectors_layer,
            vertex=True,
            connectable=False,
            visible=visible,
            geometry=Geometry(x=cx - size / 2, y=cy - size / 2, width=size, height=size),
        ))
        return cid

    def to_element(self) -> ET.Element:
        graph_attrs: dict[str, str] = {
            "dx": str(self.dx),
            "dy": str(self.dy),
            "grid": "1" if self.grid else "0",
            "gridSize": str(self.grid_size),
            "page": "1" if self.page else "0",
            "background": self.background,
        }
        model = ET.Element("mxGraphModel", attrib=graph_attrs)
        root = ET.SubElement(model, "root")
        for cell in self.cells:
            root.append(cell.to_element())

        diagram = ET.Element("diagram", attrib={"name": self.name, "id": self.id})
        diagram.append(model)
        return diagram


@dataclass
class DrawioFile:
    """Top-level mxfile container holding the canvas page."""
    diagram: Diagram = field(default_factory=Diagram)
    host: str = "canvas-router"
    type: str = "device"
    agent: str = "canvas-router/1.0"
    version: str = "24.7.17"

    def to_xml(self) -> str:
        import datetime
        mxfile = ET.Element(
            "mxfile",
            attrib={
                "host": self.host,
                "modified": datetime.datetime.now(datetime.timezone.utc).strftime(
                    "%Y-%m-%dT%H:%M:%S.000Z"
                ),
                "agent": self.agent,
                "version": self.version,
                "type": self.type,
                "compressed": "false",
            },
        )
        mxfile.append(self.diagram.to_element())
        ET.indent(mxfile, space="  ")
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(
            mxfile, encoding="unicode"
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _uid() -> str:
    return uuid.uuid4().hex[:12]


def _fmt(value: float) -> str:
    """Format a coordinate without a trailing '.0' for integral values."""
    return str(int(value)) if float(value).is_integer() else str(round(value, 2))
