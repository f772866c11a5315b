"""
Selection and manipulation engine for one open board.

Consumes raw input events (pointer down/move/up, wheel, key) in screen
coordinates and turns them into note drags, resizes, rubber-band selection,
panning and zooming. All changes are applied to the in-memory notes first;
store writes go through a :class:`WriteQueue` and never block input handling.

Gesture lifecycle:
  pointer_down -> classify_pointer_down -> _start_<kind>
  pointer_move -> _move_<state>
  pointer_up   -> _finish_<state> -> Idle
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from noteboard_mcp.gestures import (
    DELETE_KEYS,
    IDLE,
    Dragging,
    GestureKind,
    GestureState,
    HitTarget,
    Idle,
    KeyDown,
    Panning,
    PointerDown,
    PointerMove,
    PointerUp,
    Resizing,
    RubberBandSelecting,
    Wheel,
    classify_pointer_down,
)
from noteboard_mcp.layout import ArrangeConfig, auto_arrange, notes_in_box
from noteboard_mcp.minimap import MinimapConfig, MinimapProjection, MinimapProjector
from noteboard_mcp.models import (
    DEFAULT_NOTE_COLOR,
    DEFAULT_NOTE_HEIGHT,
    DEFAULT_NOTE_WIDTH,
    MAX_SCALE,
    MIN_NOTE_HEIGHT,
    MIN_NOTE_WIDTH,
    MIN_SCALE,
    Note,
    NoteColor,
    Point,
    Rect,
    ViewState,
    max_z_index,
    now_ms,
)
from noteboard_mcp.persistence import DEFAULT_DEBOUNCE_SECONDS, NoteStore, WriteQueue
from noteboard_mcp.viewport import DEFAULT_ZOOM_SENSITIVITY, ViewportTransform

logger = logging.getLogger("noteboard-mcp.engine")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class EngineConfig:
    """Configuration for the canvas engine."""
    # Note limits
    min_width: float = MIN_NOTE_WIDTH
    min_height: float = MIN_NOTE_HEIGHT
    new_note_width: float = DEFAULT_NOTE_WIDTH
    new_note_height: float = DEFAULT_NOTE_HEIGHT

    # View
    zoom_sensitivity: float = DEFAULT_ZOOM_SENSITIVITY
    min_scale: float = MIN_SCALE
    max_scale: float = MAX_SCALE
    initial_scale: float = 1.0
    initial_offset: tuple[float, float] = (300, 10)
    viewport_width: float = 1280
    viewport_height: float = 800

    # Persistence
    content_debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS

    # Sub-component configs
    arrange: ArrangeConfig = field(default_factory=ArrangeConfig)
    minimap: MinimapConfig = field(default_factory=MinimapConfig)

    def initial_view(self) -> ViewState:
        return ViewState(scale=self.initial_scale, offset=Point(*self.initial_offset))


# ---------------------------------------------------------------------------
# Frame snapshot
# ---------------------------------------------------------------------------

@dataclass
class Frame:
    """Everything a surface needs to draw one frame."""
    board_id: Optional[str]
    notes: list[Note]
    view: ViewState
    selection: set[str]
    selection_box: Optional[Rect]
    gesture: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "board_id": self.board_id,
            "notes": [n.to_dict() for n in self.notes],
            "view": self.view.to_dict(),
            "selection": sorted(self.selection),
            "selection_box": self.selection_box.to_dict() if self.selection_box else None,
            "gesture": self.gesture,
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class CanvasEngine:
    """Owns the notes, selection, view and active gesture of one board."""

    def __init__(
        self,
        store: NoteStore,
        config: Optional[EngineConfig] = None,
        write_queue: Optional[WriteQueue] = None,
    ) -> None:
        self.store = store
        self.config = config or EngineConfig()
        self.writes = write_queue or WriteQueue(self.config.content_debounce_seconds)
        self.transform = ViewportTransform(
            self.config.initial_view(),
            sensitivity=self.config.zoom_sensitivity,
            min_scale=self.config.min_scale,
            max_scale=self.config.max_scale,
        )
        self.minimap = MinimapProjector(self.config.minimap)
        self.viewport_width = self.config.viewport_width
        self.viewport_height = self.config.viewport_height
        self.board_id: Optional[str] = None
        self.notes: dict[str, Note] = {}
        self.selection: set[str] = set()
        self.gesture: GestureState = IDLE

    # ----- board lifecycle -----

    def open_board(self, board_id: str) -> int:
        """Load *board_id* and reset view, selection and gesture.

        Returns the number of notes loaded.
        """
        self.writes.flush()
        self.board_id = board_id
        self.notes = {}
        self.selection = set()
        self.gesture = IDLE
        self.transform.reset(self.config.initial_view())
        try:
            loaded = self.store.list_notes(board_id)
        except Exception as exc:
            logger.warning("Failed to load notes for board '%s': %s", board_id, exc)
            loaded = []
        for note in loaded:
            self.notes[note.id] = note
        logger.debug("Opened board '%s' with %d notes", board_id, len(self.notes))
        return len(self.notes)

    def set_viewport_size(self, width: float, height: float) -> None:
        self.viewport_width = width
        self.viewport_height = height

    @property
    def view(self) -> ViewState:
        return self.transform.view

    @property
    def screen_center(self) -> Point:
        return Point(self.viewport_width / 2, self.viewport_height / 2)

    # ----- event dispatch -----

    def handle(self, event: PointerDown | PointerMove | PointerUp | Wheel | KeyDown) -> None:
        if isinstance(event, PointerDown):
            self.pointer_down(event)
        elif isinstance(event, PointerMove):
            self.pointer_move(event)
        elif isinstance(event, PointerUp):
            self.pointer_up(event)
        elif isinstance(event, Wheel):
            self.wheel(event)
        elif isinstance(event, KeyDown):
            self.key_down(event)

    def pointer_down(self, event: PointerDown) -> GestureKind:
        kind = classify_pointer_down(event, self.gesture, self.notes.keys())
        if kind == GestureKind.RESIZE:
            self._start_resize(event)
        elif kind == GestureKind.DRAG:
            self._start_drag(event)
        elif kind == GestureKind.PAN:
            self.gesture = Panning(event.screen)
        elif kind == GestureKind.SELECT:
            self._start_select(event)
        if kind != GestureKind.NONE:
            logger.debug("Gesture started: %s", self.gesture.name)
        return kind

    def pointer_move(self, event: PointerMove) -> None:
        if not self._ensure_gesture_target():
            return
        g = self.gesture
        if isinstance(g, Resizing):
            self._move_resize(g, event.screen)
        elif isinstance(g, Dragging):
            self._move_drag(g, event.screen)
        elif isinstance(g, Panning):
            self.transform.pan_by(event.screen - g.last_pointer_screen)
            self.gesture = Panning(event.screen)
        elif isinstance(g, RubberBandSelecting):
            self._move_select(g, event.screen)

    def pointer_up(self, event: PointerUp) -> None:
        if self._ensure_gesture_target():
            g = self.gesture
            if isinstance(g, Resizing):
                self._finish_resize(g)
            elif isinstance(g, Dragging):
                self._finish_drag()
        if not isinstance(self.gesture, Idle):
            logger.debug("Gesture finished: %s", self.gesture.name)
        self.gesture = IDLE

    def wheel(self, event: Wheel) -> None:
        """Zoom around the pointer when the zoom modifier is held, else pan."""
        if event.modifiers.zoom:
            self.transform.zoom_at(event.screen, -event.delta_y)
        else:
            self.transform.pan_by(Point(-event.delta_x, -event.delta_y))

    def key_down(self, event: KeyDown) -> int:
        if event.key not in DELETE_KEYS or event.text_input_focused:
            return 0
        return self.delete_selected()

    # ----- resize -----

    def _start_resize(self, event: PointerDown) -> None:
        note = self.notes[event.note_id]
        self.gesture = Resizing(
            note_id=note.id,
            start_pointer_world=self.transform.to_world(event.screen),
            start_width=note.width,
            start_height=note.height,
        )

    def _move_resize(self, g: Resizing, screen: Point) -> None:
        delta = self.transform.to_world(screen) - g.start_pointer_world
        note = self.notes[g.note_id]
        note.width = max(self.config.min_width, g.start_width + delta.x)
        note.height = max(self.config.min_height, g.start_height + delta.y)

    def _finish_resize(self, g: Resizing) -> None:
        note = self.notes[g.note_id]
        note.updated_at = now_ms()
        nid, x, y, w, h = note.id, note.x, note.y, note.width, note.height
        self.writes.submit(
            f"geometry of note {nid}",
            lambda: self.store.update_geometry(nid, x, y, w, h),
        )

    # ----- drag -----

    def _start_drag(self, event: PointerDown) -> None:
        nid = event.note_id
        note = self.notes[nid]
        if event.modifiers.select:
            if nid in self.selection:
                self.selection.discard(nid)
            else:
                self.selection.add(nid)
        elif nid not in self.selection:
            self.selection = {nid}

        note.z_index = max_z_index(list(self.notes.values())) + 1
        grab = self.transform.to_world(event.screen) - note.position
        self.gesture = Dragging(anchor_id=nid, grab_offset=grab, anchor_position=note.position)

    def _move_drag(self, g: Dragging, screen: Point) -> None:
        last = g.anchor_position if g.anchor_position is not None else self.notes[g.anchor_id].position
        new_pos = self.transform.to_world(screen) - g.grab_offset
        delta = new_pos - last
        for nid in self.selection:
            note = self.notes.get(nid)
            if note is not None:
                note.x += delta.x
                note.y += delta.y
        self.gesture = Dragging(
            anchor_id=g.anchor_id,
            grab_offset=g.grab_offset,
            anchor_position=new_pos,
        )

    def _finish_drag(self) -> None:
        stamp = now_ms()
        for nid in sorted(self.selection):
            note = self.notes.get(nid)
            if note is None:
                continue
            note.updated_at = stamp
            self._persist_position(note)

    def _persist_position(self, note: Note) -> None:
        nid, x, y, z = note.id, note.x, note.y, note.z_index
        self.writes.submit(
            f"position of note {nid}",
            lambda: self.store.update_position(nid, x, y, z),
        )

    # ----- rubber band -----

    def _start_select(self, event: PointerDown) -> None:
        if not event.modifiers.select:
            self.selection = set()
        origin = self.transform.to_world(event.screen)
        self.gesture = RubberBandSelecting(
            origin_world=origin,
            box=Rect(origin.x, origin.y, 0, 0),
            base_selection=frozenset(self.selection),
        )

    def _move_select(self, g: RubberBandSelecting, screen: Point) -> None:
        box = Rect.from_points(g.origin_world, self.transform.to_world(screen))
        self.gesture = RubberBandSelecting(
            origin_world=g.origin_world,
            box=box,
            base_selection=g.base_selection,
        )
        self.selection = set(g.base_selection) | notes_in_box(list(self.notes.values()), box)

    # ----- guards -----

    def _ensure_gesture_target(self) -> bool:
        """Drop back to Idle if the note the gesture works on is gone."""
        g = self.gesture
        target: Optional[str] = None
        if isinstance(g, Resizing):
            target = g.note_id
        elif isinstance(g, Dragging):
            target = g.anchor_id
        if target is not None and target not in self.notes:
            logger.debug("Gesture target %s vanished, cancelling %s", target, g.name)
            self.gesture = IDLE
            return False
        return True

    # ----- note actions -----

    def add_note(
        self,
        color: NoteColor = DEFAULT_NOTE_COLOR,
        at_screen: Optional[Point] = None,
    ) -> Optional[Note]:
        """Create a note centred on *at_screen* (default: the viewport centre)."""
        if self.board_id is None:
            return None
        center = self.transform.to_world(at_screen or self.screen_center)
        x = center.x - self.config.new_note_width / 2
        y = center.y - self.config.new_note_height / 2
        try:
            note = self.store.create_note(self.board_id, x, y, color)
        except Exception as exc:
            logger.warning("Failed to create note on board '%s': %s", self.board_id, exc)
            return None
        self.notes[note.id] = note
        return note

    def double_click(self, screen: Point, target: HitTarget = HitTarget.BACKGROUND) -> Optional[Note]:
        """Double click on empty background adds a default note there."""
        if target != HitTarget.BACKGROUND or isinstance(self.gesture, Panning):
            return None
        return self.add_note(DEFAULT_NOTE_COLOR, at_screen=screen)

    def edit_content(self, note_id: str, text: str) -> bool:
        note = self.notes.get(note_id)
        if note is None:
            return False
        note.content = text
        note.updated_at = now_ms()
        self.writes.submit_debounced(
            note_id,
            f"content of note {note_id}",
            lambda: self.store.update_content(note_id, text),
        )
        return True

    def change_color(self, note_id: str, color: NoteColor) -> bool:
        note = self.notes.get(note_id)
        if note is None:
            return False
        note.color = color
        logger.info("Colour of note %s changed to %s (not persisted)", note_id, color.value)
        return True

    def delete_notes(self, note_ids: list[str]) -> int:
        removed = [nid for nid in note_ids if nid in self.notes]
        for nid in removed:
            del self.notes[nid]
            self.selection.discard(nid)
            self.writes.discard(nid)
            self.writes.submit(
                f"deletion of note {nid}",
                lambda nid=nid: self.store.delete_note(nid),
            )
        self._ensure_gesture_target()
        return len(removed)

    def delete_note(self, note_id: str) -> bool:
        return self.delete_notes([note_id]) == 1

    def delete_selected(self) -> int:
        if not self.selection:
            return 0
        count = self.delete_notes(sorted(self.selection))
        self.selection = set()
        return count

    def clear_board(self) -> int:
        if self.board_id is None:
            return 0
        count = len(self.notes)
        for nid in self.notes:
            self.writes.discard(nid)
        self.notes = {}
        self.selection = set()
        self.gesture = IDLE
        board_id = self.board_id
        self.writes.submit(
            f"all notes of board {board_id}",
            lambda: self.store.delete_all(board_id),
        )
        return count

    def arrange(self) -> int:
        """Re-pack every note with the auto-arrange layout and persist positions."""
        if not self.notes:
            return 0
        self.gesture = IDLE
        arranged = auto_arrange(list(self.notes.values()), self.config.arrange)
        stamp = now_ms()
        for placed in arranged:
            note = self.notes[placed.id]
            note.x, note.y = placed.x, placed.y
            note.updated_at = stamp
            self._persist_position(note)
        return len(arranged)

    # ----- view actions -----

    def project_minimap(self) -> MinimapProjection:
        return self.minimap.project(
            list(self.notes.values()),
            self.transform,
            self.viewport_width,
            self.viewport_height,
        )

    def navigate_minimap(self, minimap_point: Point) -> Point:
        """Centre the view on the world point under a minimap click."""
        world = self.project_minimap().to_world(minimap_point)
        self.transform.center_on(world, self.screen_center)
        return world

    def reset_view(self) -> None:
        self.transform.reset(self.config.initial_view())

    # ----- output -----

    def frame(self) -> Frame:
        g = self.gesture
        return Frame(
            board_id=self.board_id,
            notes=sorted(self.notes.values(), key=lambda n: n.z_index),
            view=ViewState(self.view.scale, self.view.offset),
            selection=set(self.selection),
            selection_box=g.box if isinstance(g, RubberBandSelecting) else None,
            gesture=g.name,
        )
