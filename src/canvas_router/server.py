"""
Canvas Router MCP Server — arrange views and route connectors via Model
Context Protocol.

Exposes 3 tools that let an LLM agent lay out rectangular views on an
unbounded canvas and connect them with arrows that route around every
other view.  Canvases are exported as draw.io XML.

Tools:
  1. canvas    — lifecycle: create, list, get_xml, save, refresh, delete
  2. view      — content:   add, move, resize, duplicate, delete
  3. connector — routing:   connect, remove, show, hide, list, route, intersecting
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from canvas_router.canvas import Canvas, UnknownViewError
from canvas_router.connection import Connection
from canvas_router.styles import ViewStyle
from canvas_router.validation import (
    ValidationError,
    validate_action,
    validate_endpoints,
    validate_file_path,
    validate_list,
    validate_non_empty_string,
    validate_non_negative_number,
    validate_number,
    validate_view_dict,
    _CANVAS_ACTIONS,
    _CONNECTOR_ACTIONS,
    _VIEW_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging — suppress routine FastMCP INFO messages that editors show
# as warnings (they go to stderr).
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("canvas-router")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "canvas-router",
    instructions=(
        "MCP server for arranging views on a canvas and connecting them with\n"
        "arrows that avoid every other view.\n\n"
        "=== ONLY 3 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. canvas(action, ...) — lifecycle: create, list, get_xml, save,\n"
        "   refresh, delete.\n"
        "2. view(action, ...) — content: add, move, resize, duplicate, delete.\n"
        "3. connector(action, ...) — routing: connect, remove, show, hide,\n"
        "   list, route, intersecting.\n\n"
        "=== RULES ===\n"
        "- ALL coordinates are absolute canvas positions in pixels.\n"
        "- Connectors re-route automatically whenever a view moves or resizes.\n"
        "- Deleting a view deletes every connector attached to it.\n"
        "- view(action='duplicate') places a copy 50px to the right and\n"
        "  connects the original to it.\n"
    ),
)

# In-memory canvas registry: name -> Canvas
# Guarded by _canvases_lock for thread-safety.
_canvases: dict[str, Canvas] = {}
_canvases_lock = threading.Lock()


def _get_canvas(name: str) -> Canvas | None:
    with _canvases_lock:
        return _canvases.get(name)


def _connection_info(conn: Connection) -> dict[str, Any]:
    route = conn.route
    return {
        "source_id": conn.source_id,
        "target_id": conn.target_id,
        "state": conn.state.value,
        "visible": conn.visible,
        "strategy": route.strategy if route else None,
        "fallback": route.fallback if route else None,
        "cost": round(route.cost, 2) if route else None,
        "path": [[p.x, p.y] for p in route.path] if route else [],
    }


# ===================================================================
# TOOL 1: canvas — lifecycle
# ===================================================================

@mcp.tool()
def canvas(action: str, name: str = "", file_path: str = "") -> str:
    """Canvas lifecycle management.

    Actions:
      create  — Create a new empty canvas. Params: name.
      list    — List all in-memory canvases. No params needed.
      get_xml — Get the draw.io XML of a canvas. Params: name.
      save    — Save the canvas to a .drawio file. Params: name, file_path.
      refresh — Re-route every connector (e.g. after the viewport changed).
                Params: name.
      delete  — Drop a canvas from memory. Params: name.

    Args:
        action: One of: create, list, get_xml, save, refresh, delete.
        name: Canvas name (used as key in memory).
        file_path: Absolute path for save.

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "canvas", _CANVAS_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        with _canvases_lock:
            items = list(_canvases.items())
        result = [
            {"name": n, "views": len(c.view_ids()), "connectors": len(c.registry)}
            for n, c in items
        ]
        return json.dumps(result, indent=2)

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "create":
        with _canvases_lock:
            _canvases[name] = Canvas(name)
        return f"Canvas '{name}' created."

    c = _get_canvas(name)
    if c is None:
        return f"Error: canvas '{name}' not found."

    if action == "get_xml":
        return c.to_xml()

    elif action == "save":
        try:
            file_path = validate_file_path(file_path, "file_path")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(c.to_xml(), encoding="utf-8")
        return f"Canvas saved to {path.resolve()}"

    elif action == "refresh":
        updated = c.refresh()
        return f"Re-routed {len(updated)} connector(s)."

    else:  # delete
        with _canvases_lock:
            _canvases.pop(name, None)
        return f"Canvas '{name}' deleted."


# ===================================================================
# TOOL 2: view — content
# ===================================================================

@mcp.tool()
def view(
    action: str,
    canvas_name: str = "",
    views: list[dict[str, Any]] | None = None,
    view_id: str = "",
    x: float = 0,
    y: float = 0,
    width: float = 120,
    height: float = 60,
    gap: float = 50,
) -> str:
    """Add, move, resize, duplicate or delete views.

    Actions:
      add       — Add one or more views. Params: views (list of
                  {label?, x, y, width?, height?, style_preset?, view_id?}).
      move      — Move a view. Params: view_id, x, y.
      resize    — Resize a view. Params: view_id, width, height.
      duplicate — Copy a view 'gap' px to its right and connect the two.
                  Params: view_id, gap.
      delete    — Delete a view and its connectors. Params: view_id.

    Args:
        action: One of the actions listed above.
        canvas_name: Target canvas name.
        views: List of view dicts for add.
        view_id: Target view for move/resize/duplicate/delete.
        x: New left position for move.
        y: New top position for move.
        width: New width for resize.
        height: New height for resize.
        gap: Horizontal gap for duplicate.

    Returns:
        JSON result, or an "Error: ..." message.
    """
    try:
        action = validate_action(action, "view", _VIEW_ACTIONS)
        canvas_name = validate_non_empty_string(canvas_name, "canvas_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    c = _get_canvas(canvas_name)
    if c is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "add":
        items = views or []
        try:
            validate_list(items, "views", min_length=1)
            for i, v in enumerate(items):
                validate_view_dict(v, i)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        ids: list[str] = []
        try:
            for v in items:
                ids.append(c.add_view(
                    v.get("label", ""), v["x"], v["y"],
                    v.get("width", 120), v.get("height", 60),
                    _resolve_view_style(v.get("style_preset", "")),
                    v.get("view_id") or None,
                ))
        except ValueError as exc:
            return f"Error: {exc}"
        return json.dumps(ids)

    try:
        view_id = validate_non_empty_string(view_id, "view_id")
        if action == "move":
            validate_number(x, "x")
            validate_number(y, "y")
            updated = c.move_view(view_id, x, y)
            return json.dumps({"view_id": view_id, "rerouted": len(updated)})
        elif action == "resize":
            validate_non_negative_number(width, "width")
            validate_non_negative_number(height, "height")
            updated = c.resize_view(view_id, width, height)
            return json.dumps({"view_id": view_id, "rerouted": len(updated)})
        elif action == "duplicate":
            validate_non_negative_number(gap, "gap")
            new_id, conn = c.duplicate_view(view_id, gap)
            return json.dumps({"view_id": new_id, "connector": _connection_info(conn)})
        else:  # delete
            removed = c.delete_view(view_id)
            return json.dumps({"deleted": view_id, "connectors_removed": removed})
    except (ValidationError, UnknownViewError) as exc:
        return f"Error: {exc.message}"


# ===================================================================
# TOOL 3: connector — routing
# ===================================================================

@mcp.tool()
def connector(
    action: str,
    canvas_name: str = "",
    source_id: str = "",
    target_id: str = "",
    view_id: str = "",
) -> str:
    """Create, inspect and manage routed connectors.

    Actions:
      connect      — Connect two views. Params: source_id, target_id.
      remove       — Remove a connector. Params: source_id, target_id.
      show         — Show a hidden connector. Params: source_id, target_id.
      hide         — Hide a connector without re-routing. Params: source_id, target_id.
      list         — List all connectors with their paths.
      route        — Get one connector's path and strategy. Params: source_id, target_id.
      intersecting — Connectors whose path crosses a view. Params: view_id.

    Args:
        action: One of the actions listed above.
        canvas_name: Target canvas name.
        source_id: Source view ID.
        target_id: Target view ID.
        view_id: View ID for intersecting.

    Returns:
        JSON result, or an "Error: ..." message.
    """
    try:
        action = validate_action(action, "connector", _CONNECTOR_ACTIONS)
        canvas_name = validate_non_empty_string(canvas_name, "canvas_name")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    c = _get_canvas(canvas_name)
    if c is None:
        return f"Error: canvas '{canvas_name}' not found."

    if action == "list":
        return json.dumps([_connection_info(conn) for conn in c.registry], indent=2)

    if action == "intersecting":
        try:
            view_id = validate_non_empty_string(view_id, "view_id")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        hits = c.registry.connections_intersecting(view_id)
        return json.dumps([
            {"source_id": conn.source_id, "target_id": conn.target_id} for conn in hits
        ])

    try:
        source_id, target_id = validate_endpoints(source_id, target_id)
        if action == "connect":
            conn = c.connect(source_id, target_id)
            return json.dumps(_connection_info(conn))
    except (ValidationError, UnknownViewError) as exc:
        return f"Error: {exc.message}"

    if action == "remove":
        if not c.disconnect(source_id, target_id):
            return f"Error: no connector {source_id} -> {target_id}."
        return f"Connector {source_id} -> {target_id} removed."

    if action in ("show", "hide"):
        if not c.set_connection_visible(source_id, target_id, action == "show"):
            return f"Error: no connector {source_id} -> {target_id}."
        return f"Connector {source_id} -> {target_id} {'shown' if action == 'show' else 'hidden'}."

    # route
    conn = c.find_connection(source_id, target_id)
    if conn is None:
        return f"Error: no connector {source_id} -> {target_id}."
    return json.dumps(_connection_info(conn))


# ===================================================================
# Helpers
# ===================================================================

def _resolve_view_style(preset_name: str) -> str:
    if not preset_name:
        return ViewStyle.DEFAULT
    val = getattr(ViewStyle, preset_name.strip().upper().replace(" ", "_"), None)
    if val and isinstance(val, str):
        return val
    if "=" in preset_name or ";" in preset_name:
        return preset_name
    logger.warning("Unknown view preset '%s', using DEFAULT", preset_name)
    return ViewStyle.DEFAULT


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
