"""
Candidate path strategies.

Each strategy turns a ``RouteRequest`` into zero or more polylines from the
source anchor to the target anchor.  Strategies only propose paths; the
router normalises and validates every candidate and scores the survivors, so
adding or reordering strategies cannot change how candidates are ranked.

Strategies, in the order the router tries them:
- direct            — the straight anchor-to-anchor segment
- l_shape           — one right-angle bend, both orientations
- z_shape           — two bends through the midpoint on either axis
- visibility_graph  — bounded breadth-first search over padded waypoints
- corner_offset     — detours through corners pushed outward from both rects
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Sequence

from canvas_router.geometry import Path, distance, segment_is_clear
from canvas_router.models import Anchor, Point, Rect, Side


@dataclass(frozen=True)
class RouteRequest:
    """Everything a strategy may look at for one routing call."""
    source: Rect
    target: Rect
    start: Anchor
    end: Anchor
    obstacles: Sequence[Rect]


class PathStrategy:
    """Base class for candidate generators."""

    name = "strategy"
    # When a candidate from this strategy validates, stop trying the others.
    short_circuit = False

    def generate(self, request: RouteRequest) -> list[Path]:
        raise NotImplementedError


class DirectStrategy(PathStrategy):
    name = "direct"
    short_circuit = True

    def generate(self, request: RouteRequest) -> list[Path]:
        return [(request.start.point, request.end.point)]


class LShapeStrategy(PathStrategy):
    name = "l_shape"

    def generate(self, request: RouteRequest) -> list[Path]:
        a, b = request.start.point, request.end.point
        return [
            (a, Point(b.x, a.y), b),
            (a, Point(a.x, b.y), b),
        ]


class ZShapeStrategy(PathStrategy):
    name = "z_shape"

    def generate(self, request: RouteRequest) -> list[Path]:
        a, b = request.start.point, request.end.point
        mid_x = (a.x + b.x) / 2
        mid_y = (a.y + b.y) / 2
        return [
            (a, Point(mid_x, a.y), Point(mid_x, b.y), b),
            (a, Point(a.x, mid_y), Point(b.x, mid_y), b),
        ]


class VisibilityGraphStrategy(PathStrategy):
    """Breadth-first search over a visibility graph of padded waypoints.

    Waypoints are the corners and side midpoints of the source, target and
    every nearby obstacle, each grown by ``spacing``.  Only waypoints inside
    the search window (the bounding box of source and target grown by
    ``search_margin``) are kept, and only obstacles touching the window are
    tested.  Two nodes are adjacent when the segment between them touches no
    obstacle.  The search is capped at ``max_hops`` segments and stops after
    ``max_completions`` paths reach the target; neighbours are expanded
    closest-to-target first.  This bounds the cost of a call during dragging
    at the price of optimality: the result is not guaranteed to be the
    shortest path in the graph.
    """

    name = "visibility_graph"

    def __init__(
        self,
        spacing: float = 30,
        max_hops: int = 4,
        max_completions: int = 5,
        search_margin: float = 250,
    ) -> None:
        self.spacing = spacing
        self.max_hops = max_hops
        self.max_completions = max_completions
        self.search_margin = search_margin

    def window(self, request: RouteRequest) -> Rect:
        src, tgt = request.source, request.target
        left, top = min(src.left, tgt.left), min(src.top, tgt.top)
        right, bottom = max(src.right, tgt.right), max(src.bottom, tgt.bottom)
        return Rect(left, top, right - left, bottom - top).expanded(self.search_margin)

    def nearby_obstacles(self, request: RouteRequest) -> list[Rect]:
        window = self.window(request)
        return [obs for obs in request.obstacles if obs.intersects(window)]

    def waypoints(self, request: RouteRequest) -> list[Point]:
        window = self.window(request)
        obstacles = self.nearby_obstacles(request)
        candidates: list[Point] = []
        for rect in [request.source, request.target, *obstacles]:
            grown = rect.expanded(self.spacing)
            candidates.extend(grown.corners())
            candidates.extend(grown.side_midpoint(side) for side in Side)
        # Keep first occurrence, drop points buried in an obstacle
        unique = dict.fromkeys(candidates)
        return [
            p for p in unique
            if window.contains_point(p.x, p.y)
            and not any(obs.contains_point(p.x, p.y) for obs in obstacles)
        ]

    def generate(self, request: RouteRequest) -> list[Path]:
        a, b = request.start.point, request.end.point
        # Segments between window nodes stay inside the window
        obstacles = self.nearby_obstacles(request)
        nodes: list[Point] = [a, b] + [
            p for p in self.waypoints(request) if p != a and p != b
        ]
        goal = 1
        adjacency: dict[int, list[int]] = {}
        clear: dict[tuple[int, int], bool] = {}

        def is_clear(i: int, j: int) -> bool:
            key = (i, j) if i < j else (j, i)
            if key not in clear:
                clear[key] = segment_is_clear(nodes[i], nodes[j], obstacles)
            return clear[key]

        def neighbours(i: int) -> list[int]:
            # Edges are discovered lazily; most searches stop early.
            if i not in adjacency:
                found = [j for j in range(len(nodes)) if j != i and is_clear(i, j)]
                found.sort(key=lambda j: distance(nodes[j], b))
                adjacency[i] = found
            return adjacency[i]

        completions: list[Path] = []
        visited = {0}
        queue: deque[tuple[int, tuple[int, ...]]] = deque([(0, (0,))])
        while queue and len(completions) < self.max_completions:
            current, trail = queue.popleft()
            hops = len(trail) - 1
            if hops >= self.max_hops:
                continue
            for nb in neighbours(current):
                if nb == goal:
                    completions.append(tuple(nodes[i] for i in trail + (goal,)))
                    if len(completions) >= self.max_completions:
                        break
                    continue
                # A node reached on the last allowed hop cannot finish the path
                if nb in visited or hops + 1 >= self.max_hops:
                    continue
                visited.add(nb)
                queue.append((nb, trail + (nb,)))
        return completions


class CornerOffsetStrategy(PathStrategy):
    """Four-point detours ``[A, source corner, target corner, B]``.

    Corners of both rectangles are pushed diagonally outward by each offset
    in turn; a pairing is proposed only when the corner-to-corner leg is
    clear.
    """

    name = "corner_offset"

    def __init__(self, offsets: Sequence[float] = (50, 75, 100)) -> None:
        self.offsets = tuple(offsets)

    def generate(self, request: RouteRequest) -> list[Path]:
        a, b = request.start.point, request.end.point
        paths: list[Path] = []
        for offset in self.offsets:
            src_corners = request.source.expanded(offset).corners()
            tgt_corners = request.target.expanded(offset).corners()
            for sc in src_corners:
                for tc in tgt_corners:
                    if segment_is_clear(sc, tc, request.obstacles):
                        paths.append((a, sc, tc, b))
        return paths


def default_strategies(
    spacing: float = 30,
    max_hops: int = 4,
    max_completions: int = 5,
    corner_offsets: Sequence[float] = (50, 75, 100),
    search_margin: float = 250,
) -> list[PathStrategy]:
    """The standard strategy chain in evaluation order."""
    return [
        DirectStrategy(),
        LShapeStrategy(),
        ZShapeStrategy(),
        VisibilityGraphStrategy(spacing, max_hops, max_completions, search_margin),
        CornerOffsetStrategy(corner_offsets),
    ]
