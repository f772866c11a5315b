"""
Input validation for note board MCP server tool parameters.

Provides reusable validators that produce clear error messages for all
parameters received from LLM callers.
"""

from __future__ import annotations

import math
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


def validate_string(value: Any, field_name: str, *, allow_empty: bool = True) -> str:
    """Ensure *value* is a string (optionally non-empty)."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    if not allow_empty and not value.strip():
        raise ValidationError(f"'{field_name}' must not be empty.")
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
) -> float:
    """Validate a finite numeric value and optional range."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    val = float(value)
    if not math.isfinite(val):
        raise ValidationError(f"'{field_name}' must be a finite number, got {val}.")
    if min_val is not None and val < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {val}."
        )
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_positive_number(value: Any, field_name: str) -> float:
    """Validate that a number is positive (> 0)."""
    return validate_number(value, field_name, min_val=0.001)


def validate_bool(value: Any, field_name: str) -> bool:
    """Ensure *value* is a boolean."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a boolean, got {type(value).__name__}."
        )
    return value


def validate_enum(value: Any, field_name: str, allowed: set[str]) -> str:
    """Validate that a string value is one of the allowed choices (case-insensitive)."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}."
        )
    normalized = value.strip().upper()
    if normalized not in {a.upper() for a in allowed}:
        choices = ", ".join(sorted(allowed))
        raise ValidationError(
            f"'{field_name}' must be one of [{choices}], got '{value}'."
        )
    return normalized


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


# ---------------------------------------------------------------------------
# Composite / domain validators
# ---------------------------------------------------------------------------

_BOARD_ACTIONS = {
    "OPEN", "LIST", "ADD_NOTE", "EDIT_CONTENT", "DELETE_NOTES",
    "CHANGE_COLOR", "CLEAR", "ARRANGE",
}
_POINTER_ACTIONS = {"DOWN", "MOVE", "UP", "DOUBLE_CLICK", "WHEEL", "KEY"}
_VIEW_ACTIONS = {"ZOOM", "PAN", "RESET", "NAVIGATE_MINIMAP", "RESIZE"}
_INSPECT_ACTIONS = {"FRAME", "MINIMAP", "OVERLAPS", "INFO"}

_NOTE_COLORS = {"YELLOW", "BLUE", "GREEN", "RED", "PURPLE", "GRAY"}
_HIT_TARGETS = {"BACKGROUND", "NOTE_BODY", "RESIZE_HANDLE"}
_POINTER_BUTTONS = {"PRIMARY", "MIDDLE", "SECONDARY"}


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
    return value.strip().lower()


def validate_note_color(value: Any) -> str:
    """Validate a note colour name (yellow, blue, ...)."""
    return validate_enum(value, "color", _NOTE_COLORS)


def validate_hit_target(value: Any) -> str:
    """Validate the hit-test target of a pointer-down."""
    return validate_enum(value, "target", _HIT_TARGETS)


def validate_pointer_button(value: Any) -> str:
    """Validate a pointer button name."""
    return validate_enum(value, "button", _POINTER_BUTTONS)


def validate_note_ids(value: Any, field_name: str = "note_ids") -> list[str]:
    """Validate a non-empty list of note id strings."""
    validate_list(value, field_name, min_length=1)
    ids: list[str] = []
    for i, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(
                f"'{field_name}' item at index {i} must be a non-empty string."
            )
        ids.append(item.strip())
    return ids


def validate_viewport_size(width: Any, height: Any) -> tuple[float, float]:
    """Validate a viewport size in pixels."""
    return (
        validate_positive_number(width, "width"),
        validate_positive_number(height, "height"),
    )
