"""
Gesture states and raw input events for the canvas engine.

A gesture is one pointer-down -> move -> up interaction. Exactly one gesture
state is active at a time; :func:`classify_pointer_down` decides which one a
pointer-down starts, in the priority order resize > drag > pan > select.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Optional, Union

from noteboard_mcp.models import Point, Rect


# ---------------------------------------------------------------------------
# Input events
# ---------------------------------------------------------------------------

class HitTarget(Enum):
    """What a pointer-down landed on, as reported by the surface hit test."""
    BACKGROUND = "background"
    NOTE_BODY = "note_body"
    RESIZE_HANDLE = "resize_handle"


class PointerButton(Enum):
    PRIMARY = "primary"
    MIDDLE = "middle"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class Modifiers:
    """Modifier keys held during an input event.

    select -- toggles selection membership (shift)
    pan    -- pan key held (space)
    zoom   -- turns wheel input into zoom (ctrl / meta)
    """
    select: bool = False
    pan: bool = False
    zoom: bool = False


@dataclass(frozen=True)
class PointerDown:
    screen: Point
    target: HitTarget = HitTarget.BACKGROUND
    note_id: Optional[str] = None
    button: PointerButton = PointerButton.PRIMARY
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass(frozen=True)
class PointerMove:
    screen: Point


@dataclass(frozen=True)
class PointerUp:
    screen: Point


@dataclass(frozen=True)
class Wheel:
    screen: Point
    delta_x: float = 0
    delta_y: float = 0
    modifiers: Modifiers = field(default_factory=Modifiers)


@dataclass(frozen=True)
class KeyDown:
    key: str
    text_input_focused: bool = False


DELETE_KEYS = frozenset({"Delete", "Backspace"})


# ---------------------------------------------------------------------------
# Gesture states
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    name: str = field(default="idle", init=False)


@dataclass(frozen=True)
class Dragging:
    anchor_id: str
    grab_offset: Point  # pointer world position minus anchor top-left
    anchor_position: Optional[Point] = None  # where the anchor would be now, moved or not
    name: str = field(default="dragging", init=False)


@dataclass(frozen=True)
class Resizing:
    note_id: str
    start_pointer_world: Point
    start_width: float
    start_height: float
    name: str = field(default="resizing", init=False)


@dataclass(frozen=True)
class RubberBandSelecting:
    origin_world: Point
    box: Rect
    base_selection: frozenset[str] = frozenset()  # kept when the select modifier is held
    name: str = field(default="selecting", init=False)


@dataclass(frozen=True)
class Panning:
    last_pointer_screen: Point
    name: str = field(default="panning", init=False)


GestureState = Union[Idle, Dragging, Resizing, RubberBandSelecting, Panning]

IDLE = Idle()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class GestureKind(Enum):
    NONE = "none"
    RESIZE = "resize"
    DRAG = "drag"
    PAN = "pan"
    SELECT = "select"


def is_pan_trigger(event: PointerDown) -> bool:
    return event.modifiers.pan or event.button == PointerButton.MIDDLE


def classify_pointer_down(
    event: PointerDown,
    current: GestureState,
    known_note_ids: Collection[str],
) -> GestureKind:
    """Decide which gesture a pointer-down starts.

    Gestures only start from :class:`Idle`. Hits on notes that are not loaded
    fall back to the background rules.
    """
    if not isinstance(current, Idle):
        return GestureKind.NONE

    on_note = event.note_id is not None and event.note_id in known_note_ids
    if on_note and event.target == HitTarget.RESIZE_HANDLE:
        return GestureKind.RESIZE
    if on_note and event.target == HitTarget.NOTE_BODY:
        return GestureKind.DRAG
    if is_pan_trigger(event):
        return GestureKind.PAN
    if event.target == HitTarget.BACKGROUND:
        return GestureKind.SELECT
    return GestureKind.NONE
