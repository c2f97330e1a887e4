"""
Style builder and presets for views and rendered connectors.

Provides a fluent API to compose draw.io style strings plus the handful of
presets the canvas uses: view boxes and the connector stroke / arrowhead.
"""

from __future__ import annotations

from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Style builder
# ---------------------------------------------------------------------------

class StyleBuilder:
    """Fluent builder for semicolon-delimited draw.io style strings."""

    def __init__(self, base: str = "") -> None:
        self._parts: dict[str, str] = {}
        self._prefix: str = ""
        if base:
            self._parse(base)

    def _parse(self, raw: str) -> None:
        tokens = [t.strip() for t in raw.split(";") if t.strip()]
        for tok in tokens:
            if "=" in tok:
                k, v = tok.split("=", 1)
                self._parts[k] = v
            else:
                # Shape name prefix like "triangle", "ellipse", etc.
                self._prefix = tok

    def get(self, key: str) -> str | None:
        return self._parts.get(key)

    # -- appearance --

    def fill_color(self, color: str) -> StyleBuilder:
        self._parts["fillColor"] = color
        return self

    def stroke_color(self, color: str) -> StyleBuilder:
        self._parts["strokeColor"] = color
        return self

    def stroke_width(self, width: float) -> StyleBuilder:
        self._parts["strokeWidth"] = f"{width:g}"
        return self

    def html(self) -> StyleBuilder:
        self._parts["html"] = "1"
        return self

    # -- edge specifics --

    def end_arrow(self, arrow: str) -> StyleBuilder:
        self._parts["endArrow"] = arrow
        return self

    # -- arbitrary key --

    def set(self, key: str, value: str) -> StyleBuilder:
        self._parts[key] = value
        return self

    # -- build --

    def build(self) -> str:
        parts: list[str] = []
        if self._prefix:
            parts.append(self._prefix)
        for k, v in self._parts.items():
            parts.append(f"{k}={v}")
        return ";".join(parts) + ";"


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

class ViewStyle:
    """Style strings for view boxes."""

    DEFAULT = "rounded=1;whiteSpace=wrap;html=1;"
    PLAIN = "rounded=0;whiteSpace=wrap;html=1;"
    BLUE = "rounded=1;whiteSpace=wrap;html=1;fillColor=#dae8fc;strokeColor=#6c8ebf;"
    GREEN = "rounded=1;whiteSpace=wrap;html=1;fillColor=#d5e8d4;strokeColor=#82b366;"
    GRAY = "rounded=1;whiteSpace=wrap;html=1;fillColor=#f5f5f5;strokeColor=#666666;fontColor=#333333;"


@dataclass
class ConnectorStyle:
    """Appearance of rendered connectors."""
    stroke_color: str = "#4CAF50"
    stroke_width: float = 2
    arrow_size: float = 10

    def segment(self) -> str:
        return (
            StyleBuilder()
            .end_arrow("none")
            .html()
            .stroke_color(self.stroke_color)
            .stroke_width(self.stroke_width)
            .build()
        )

    def arrowhead(self) -> str:
        # draw.io's triangle points east before rotation
        return (
            StyleBuilder("triangle")
            .html()
            .fill_color(self.stroke_color)
            .stroke_color(self.stroke_color)
            .build()
        )
