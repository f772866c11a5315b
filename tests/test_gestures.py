"""Tests for pointer-down classification."""

import pytest

from noteboard_mcp.gestures import (
    IDLE,
    Dragging,
    GestureKind,
    HitTarget,
    Modifiers,
    Panning,
    PointerButton,
    PointerDown,
    RubberBandSelecting,
    classify_pointer_down,
)
from noteboard_mcp.models import Point, Rect

_KNOWN = {"a", "b"}


def _down(target: HitTarget = HitTarget.BACKGROUND, note_id=None, **kw) -> PointerDown:
    return PointerDown(screen=Point(0, 0), target=target, note_id=note_id, **kw)


@pytest.mark.parametrize("event, expected", [
    (_down(HitTarget.RESIZE_HANDLE, "a"), GestureKind.RESIZE),
    (_down(HitTarget.NOTE_BODY, "a"), GestureKind.DRAG),
    (_down(), GestureKind.SELECT),
    (_down(modifiers=Modifiers(pan=True)), GestureKind.PAN),
    (_down(button=PointerButton.MIDDLE), GestureKind.PAN),
    (_down(modifiers=Modifiers(select=True)), GestureKind.SELECT),
])
def test_classification(event: PointerDown, expected: GestureKind) -> None:
    assert classify_pointer_down(event, IDLE, _KNOWN) == expected


def test_resize_and_drag_win_over_pan() -> None:
    pan = Modifiers(pan=True)
    assert classify_pointer_down(
        _down(HitTarget.RESIZE_HANDLE, "a", modifiers=pan), IDLE, _KNOWN
    ) == GestureKind.RESIZE
    assert classify_pointer_down(
        _down(HitTarget.NOTE_BODY, "b", button=PointerButton.MIDDLE), IDLE, _KNOWN
    ) == GestureKind.DRAG


def test_unknown_note_is_ignored() -> None:
    assert classify_pointer_down(
        _down(HitTarget.NOTE_BODY, "gone"), IDLE, _KNOWN
    ) == GestureKind.NONE
    # a pan trigger still pans
    assert classify_pointer_down(
        _down(HitTarget.NOTE_BODY, "gone", modifiers=Modifiers(pan=True)), IDLE, _KNOWN
    ) == GestureKind.PAN


@pytest.mark.parametrize("active", [
    Dragging("a", Point(0, 0)),
    Panning(Point(0, 0)),
    RubberBandSelecting(Point(0, 0), Rect(0, 0, 0, 0)),
])
def test_nothing_starts_while_a_gesture_is_active(active) -> None:
    assert classify_pointer_down(_down(HitTarget.NOTE_BODY, "a"), active, _KNOWN) == GestureKind.NONE
    assert classify_pointer_down(_down(), active, _KNOWN) == GestureKind.NONE


def test_state_names() -> None:
    assert IDLE.name == "idle"
    assert Dragging("a", Point(1, 2)).name == "dragging"
    assert Panning(Point(0, 0)).name == "panning"
