"""Anchor selection: which side midpoints a connector attaches to."""

from __future__ import annotations

from canvas_router.geometry import distance
from canvas_router.models import Anchor, Rect, Side


def side_anchors(rect: Rect) -> list[Anchor]:
    """The four side-midpoint anchors of *rect*, in TOP, RIGHT, BOTTOM, LEFT order."""
    return [Anchor(rect.side_midpoint(side), side) for side in Side]


def select_anchors(source: Rect, target: Rect) -> tuple[Anchor, Anchor]:
    """Pick the closest (source, target) anchor pair over all 16 combinations.

    Ties keep the first pair in iteration order, so the result is
    deterministic for identical inputs.
    """
    pairs = [(src, tgt) for src in side_anchors(source) for tgt in side_anchors(target)]
    # min() keeps the first of equally distant pairs
    return min(pairs, key=lambda pair: distance(pair[0].point, pair[1].point))
