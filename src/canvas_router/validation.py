"""
Input validation for canvas-router MCP server tool parameters.

Provides reusable validators that produce clear error messages for all
parameters received from LLM callers.
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
) -> float:
    """Validate a numeric value and optional lower bound."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    return val


def validate_non_negative_number(value: Any, field_name: str) -> float:
    """Validate that a number is >= 0."""
    return validate_number(value, field_name, min_val=0)


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_file_path(value: Any, field_name: str) -> str:
    """Validate that a file path is a non-empty string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty file path string.")
    return value.strip()


# ---------------------------------------------------------------------------
# Composite / domain validators
# ---------------------------------------------------------------------------

_CANVAS_ACTIONS = {"CREATE", "LIST", "GET_XML", "SAVE", "REFRESH", "DELETE"}
_VIEW_ACTIONS = {"ADD", "MOVE", "RESIZE", "DUPLICATE", "DELETE"}
_CONNECTOR_ACTIONS = {
    "CONNECT", "REMOVE", "SHOW", "HIDE", "LIST", "ROUTE", "INTERSECTING",
}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Validate the action parameter for a tool."""
    if not isinstance(value, str) or not value.strip():
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    normalized = value.strip().upper()
    if normalized not in allowed:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"Unknown {tool_name} action '{value}'. Valid actions: {choices}."
        )
    return normalized.lower()


def validate_view_dict(v: Any, index: int) -> None:
    """Validate a single view dict from the views list."""
    if not isinstance(v, dict):
        raise ValidationError(f"View at index {index} must be a dict/object.")
    if "label" in v and not isinstance(v["label"], str):
        raise ValidationError(f"View at index {index}: 'label' must be a string.")
    for key in ("x", "y"):
        if key not in v:
            raise ValidationError(f"View at index {index} missing required key '{key}'.")
        if not isinstance(v[key], (int, float)) or isinstance(v[key], bool):
            raise ValidationError(f"View at index {index}: '{key}' must be a number.")
    for key in ("width", "height"):
        if key in v:
            if not isinstance(v[key], (int, float)) or isinstance(v[key], bool):
                raise ValidationError(f"View at index {index}: '{key}' must be a number.")
            if v[key] < 0:
                raise ValidationError(f"View at index {index}: '{key}' must be >= 0.")
    if "style_preset" in v and not isinstance(v["style_preset"], str):
        raise ValidationError(f"View at index {index}: 'style_preset' must be a string.")
    if "view_id" in v and (not isinstance(v["view_id"], str) or not v["view_id"].strip()):
        raise ValidationError(f"View at index {index}: 'view_id' must be a non-empty string.")


def validate_endpoints(source_id: Any, target_id: Any) -> tuple[str, str]:
    """Validate a connector's source/target pair (self-loops are rejected)."""
    source = validate_non_empty_string(source_id, "source_id")
    target = validate_non_empty_string(target_id, "target_id")
    if source == target:
        raise ValidationError(
            "'source_id' and 'target_id' must be different (self-loops not supported)."
        )
    return source, target
