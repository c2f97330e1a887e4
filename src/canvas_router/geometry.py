"""
Geometry primitives shared by every routing strategy.

Segment/rectangle intersection is the single correctness check used by all
candidate generators and by the path validator, so it errs on the side of
reporting contact: touching or running along a rectangle's boundary counts
as an intersection.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from canvas_router.models import Point, Rect

Path = tuple[Point, ...]

_EPS = 1e-9


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------

def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return a.distance_to(b)


def path_length(path: Sequence[Point]) -> float:
    """Total Euclidean length of a polyline."""
    return sum(distance(path[i], path[i + 1]) for i in range(len(path) - 1))


def heading(a: Point, b: Point) -> float:
    """Direction of travel from *a* to *b* in degrees (0 = east, 90 = south)."""
    return math.degrees(math.atan2(b.y - a.y, b.x - a.x))


# ---------------------------------------------------------------------------
# Intersection tests
# ---------------------------------------------------------------------------

def orientation(p: Point, q: Point, r: Point) -> int:
    """Turn direction of p -> q -> r: 0 collinear, 1 clockwise, 2 counter-clockwise."""
    val = (q.y - p.y) * (r.x - q.x) - (q.x - p.x) * (r.y - q.y)
    if abs(val) < _EPS:
        return 0
    return 1 if val > 0 else 2


def _on_segment(p: Point, q: Point, r: Point) -> bool:
    """Whether q lies within the bounding box of segment p-r (q collinear)."""
    return (
        min(p.x, r.x) - _EPS <= q.x <= max(p.x, r.x) + _EPS
        and min(p.y, r.y) - _EPS <= q.y <= max(p.y, r.y) + _EPS
    )


def segments_intersect(p1: Point, q1: Point, p2: Point, q2: Point) -> bool:
    """Standard orientation test for segments p1-q1 and p2-q2."""
    o1 = orientation(p1, q1, p2)
    o2 = orientation(p1, q1, q2)
    o3 = orientation(p2, q2, p1)
    o4 = orientation(p2, q2, q1)

    if o1 != o2 and o3 != o4:
        return True

    # Collinear special cases
    if o1 == 0 and _on_segment(p1, p2, q1):
        return True
    if o2 == 0 and _on_segment(p1, q2, q1):
        return True
    if o3 == 0 and _on_segment(p2, p1, q2):
        return True
    if o4 == 0 and _on_segment(p2, q1, q2):
        return True
    return False


def segment_intersects_rect(a: Point, b: Point, rect: Rect) -> bool:
    """True if either endpoint is inside *rect* or the segment crosses an edge."""
    if rect.contains_point(a.x, a.y) or rect.contains_point(b.x, b.y):
        return True
    # Cheap reject: segment bounding box entirely outside the rect
    if (max(a.x, b.x) < rect.x or min(a.x, b.x) > rect.right
            or max(a.y, b.y) < rect.y or min(a.y, b.y) > rect.bottom):
        return False
    return any(segments_intersect(a, b, e1, e2) for e1, e2 in rect.edges())


def segment_is_clear(a: Point, b: Point, obstacles: Iterable[Rect]) -> bool:
    """True if segment a-b touches none of the obstacles."""
    return not any(segment_intersects_rect(a, b, obs) for obs in obstacles)


def path_intersects_rect(path: Sequence[Point], rect: Rect) -> bool:
    return any(
        segment_intersects_rect(path[i], path[i + 1], rect)
        for i in range(len(path) - 1)
    )


def count_hits(path: Sequence[Point], obstacles: Iterable[Rect]) -> int:
    """Number of obstacles the polyline touches."""
    return sum(1 for obs in obstacles if path_intersects_rect(path, obs))


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def normalize_path(points: Iterable[Point]) -> Path:
    """Drop consecutive duplicate points."""
    result: list[Point] = []
    for pt in points:
        if not result or result[-1] != pt:
            result.append(pt)
    return tuple(result)
