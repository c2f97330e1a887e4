"""
Connector router: anchor selection, candidate generation, validation and
scoring.

Cost contract: every strategy is ranked by the same formula::

    cost = length * (1 + bend_penalty * (segments - 1))

so a slightly longer but straighter path beats a much-bent shorter one.
When no candidate clears every obstacle the router falls back to a
best-effort search that always returns *some* path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from canvas_router.anchors import select_anchors
from canvas_router.geometry import (
    Path,
    count_hits,
    normalize_path,
    path_length,
    segment_is_clear,
)
from canvas_router.models import Anchor, Point, Rect, Side
from canvas_router.strategies import PathStrategy, RouteRequest, default_strategies

logger = logging.getLogger("canvas-router")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class RoutingConfig:
    """Tuning knobs for connector routing."""
    # Obstacles
    obstacle_padding: float = 5         # Clearance kept around unrelated views

    # Visibility graph
    waypoint_spacing: float = 30        # Distance of waypoints from rect edges
    max_hops: int = 4                   # Max segments in a searched path
    max_completions: int = 5            # Paths collected before the search stops
    search_margin: float = 250          # Window grown around both rects for waypoints

    # Corner detours
    corner_offsets: tuple[float, ...] = (50, 75, 100)

    # Scoring
    bend_penalty: float = 0.2           # Cost multiplier per extra segment

    # Best-effort fallback sampling around each anchor's side
    fallback_clearances: tuple[float, ...] = (20, 40, 80)
    fallback_fractions: tuple[float, ...] = field(
        default_factory=lambda: (-0.5, 0.0, 0.25, 0.5, 0.75, 1.0, 1.5)
    )


@dataclass(frozen=True)
class Route:
    """The selected path plus how it was obtained."""
    path: Path
    strategy: str
    cost: float
    fallback: bool = False
    end_side: Optional[Side] = None      # Side of the target the path enters


# ---------------------------------------------------------------------------
# Validation and scoring
# ---------------------------------------------------------------------------

def is_path_clear(path: Sequence[Point], obstacles: Sequence[Rect]) -> bool:
    """A path is valid iff none of its segments touches an obstacle."""
    return all(
        segment_is_clear(path[i], path[i + 1], obstacles)
        for i in range(len(path) - 1)
    )


def path_cost(path: Sequence[Point], bend_penalty: float = 0.2) -> float:
    segments = len(path) - 1
    return path_length(path) * (1 + bend_penalty * (segments - 1))


def select_best(
    candidates: Sequence[tuple[Path, str]],
    bend_penalty: float = 0.2,
) -> Optional[tuple[Path, str, float]]:
    """Lowest-cost candidate; ties keep the earliest one."""
    best: Optional[tuple[Path, str, float]] = None
    for path, name in candidates:
        cost = path_cost(path, bend_penalty)
        if best is None or cost < best[2]:
            best = (path, name, cost)
    return best


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

class ConnectorRouter:
    """Computes connector paths between two rectangles."""

    def __init__(
        self,
        config: Optional[RoutingConfig] = None,
        strategies: Optional[list[PathStrategy]] = None,
    ) -> None:
        self.config = config or RoutingConfig()
        cfg = self.config
        self.strategies = strategies if strategies is not None else default_strategies(
            spacing=cfg.waypoint_spacing,
            max_hops=cfg.max_hops,
            max_completions=cfg.max_completions,
            corner_offsets=cfg.corner_offsets,
            search_margin=cfg.search_margin,
        )

    def candidates(self, request: RouteRequest) -> list[tuple[Path, str]]:
        """Run the strategy chain and return the validated candidate pool.

        A short-circuiting strategy (the direct segment) that yields a valid
        path ends the chain and becomes the sole candidate.
        """
        pool: list[tuple[Path, str]] = []
        for strategy in self.strategies:
            for raw in strategy.generate(request):
                path = normalize_path(raw)
                if len(path) < 2 or not is_path_clear(path, request.obstacles):
                    continue
                if strategy.short_circuit:
                    return [(path, strategy.name)]
                pool.append((path, strategy.name))
        return pool

    def route(self, source: Rect, target: Rect, obstacles: Sequence[Rect]) -> Route:
        start, end = select_anchors(source, target)
        a, b = start.point, end.point
        if a == b:
            # Touching rects share an anchor; there is nothing to route.
            return Route((a, b), "direct", 0.0, end_side=end.side)

        request = RouteRequest(source, target, start, end, tuple(obstacles))
        best = select_best(self.candidates(request), self.config.bend_penalty)
        if best is not None:
            path, name, cost = best
            return Route(path, name, cost, end_side=end.side)

        logger.debug("No obstacle-free candidate between %s and %s; using fallback", a, b)
        return self.best_effort(request)

    # ----- fallback -----

    def _side_samples(self, rect: Rect, anchor: Anchor) -> list[Point]:
        """Points just outside the anchor's side, extended past both ends."""
        cfg = self.config
        samples: list[Point] = []
        for d in cfg.fallback_clearances:
            for f in cfg.fallback_fractions:
                if anchor.side is Side.TOP:
                    samples.append(Point(rect.x + f * rect.width, rect.y - d))
                elif anchor.side is Side.BOTTOM:
                    samples.append(Point(rect.x + f * rect.width, rect.bottom + d))
                elif anchor.side is Side.LEFT:
                    samples.append(Point(rect.x - d, rect.y + f * rect.height))
                else:
                    samples.append(Point(rect.right + d, rect.y + f * rect.height))
        return samples

    def best_effort(self, request: RouteRequest) -> Route:
        """Last-resort routing; connectivity wins over strict avoidance.

        Tries every ``[A, source sample, target sample, B]`` detour and keeps
        the shortest valid one.  If none validates, an L-bend is forced
        through whichever corner touches fewer obstacles.
        """
        a, b = request.start.point, request.end.point
        obstacles = request.obstacles
        best: Optional[Path] = None
        best_len = float("inf")
        target_samples = self._side_samples(request.target, request.end)
        for s in self._side_samples(request.source, request.start):
            if not segment_is_clear(a, s, obstacles):
                continue
            for t in target_samples:
                path = normalize_path((a, s, t, b))
                length = path_length(path)
                if length < best_len and is_path_clear(path, obstacles):
                    best, best_len = path, length
        if best is not None:
            return Route(best, "fallback_search", path_cost(best, self.config.bend_penalty), True,
                         request.end.side)

        forced = [
            normalize_path((a, Point(a.x, b.y), b)),
            normalize_path((a, Point(b.x, a.y), b)),
        ]
        path = min(forced, key=lambda p: count_hits(p, obstacles))
        logger.debug("Forcing L-bend through %s (%d obstacle hit(s))",
                     path[1] if len(path) > 2 else b, count_hits(path, obstacles))
        return Route(path, "forced_bend", path_cost(path, self.config.bend_penalty), True,
                     request.end.side)
