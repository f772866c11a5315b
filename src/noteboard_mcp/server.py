"""
Note board MCP Server — drive an infinite-canvas note board via Model Context Protocol.

Exposes 4 tools that act as the board's input surface: callers send raw
pointer, wheel and key events in screen pixels and get back the frame the
board would draw.

Tools:
  1. board    — notes: open a board, list, add, edit, recolour, delete, clear, arrange
  2. pointer  — input:  pointer down/move/up, double click, wheel, key
  3. view     — camera: zoom, pan, reset, minimap navigation, viewport size
  4. inspect  — read-only: frame snapshot, minimap projection, overlaps, info
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from noteboard_mcp.engine import CanvasEngine, EngineConfig
from noteboard_mcp.gestures import (
    HitTarget,
    KeyDown,
    Modifiers,
    PointerButton,
    PointerDown,
    PointerMove,
    PointerUp,
    Wheel,
)
from noteboard_mcp.layout import find_overlapping_notes
from noteboard_mcp.models import NoteColor, Point
from noteboard_mcp.persistence import InMemoryNoteStore
from noteboard_mcp.validation import (
    ValidationError,
    validate_action,
    validate_bool,
    validate_hit_target,
    validate_non_empty_string,
    validate_note_color,
    validate_note_ids,
    validate_number,
    validate_pointer_button,
    validate_string,
    validate_viewport_size,
    _BOARD_ACTIONS,
    _INSPECT_ACTIONS,
    _POINTER_ACTIONS,
    _VIEW_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging: suppress routine FastMCP INFO messages that editors show
# as warnings (they go to stderr).
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("noteboard-mcp")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "noteboard-mcp",
    instructions=(
        "MCP server for an infinite-canvas note board.\n\n"
        "=== ONLY 4 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. board(action, ...) — notes: open, list, add_note, edit_content,\n"
        "   delete_notes, change_color, clear, arrange.\n"
        "2. pointer(action, ...) — input: down, move, up, double_click, wheel, key.\n"
        "3. view(action, ...) — camera: zoom, pan, reset, navigate_minimap, resize.\n"
        "4. inspect(action, ...) — read-only: frame, minimap, overlaps, info.\n\n"
        "=== RULES ===\n"
        "- Open a board first: board(action='open', board='ideas').\n"
        "- Pointer and wheel coordinates are SCREEN pixels; note positions are\n"
        "  WORLD units. screen = world * scale + offset.\n"
        "- A gesture is pointer down -> move(s) -> up. Only one runs at a time.\n"
        "- pointer down on a note: target='note_body' (drag) or\n"
        "  target='resize_handle' (resize), with note_id.\n"
        "- pointer down on target='background' starts a selection box, or a pan\n"
        "  when space=true or button='middle'.\n"
        "- shift=true toggles a note in/out of the selection, or adds a box\n"
        "  selection to the existing one.\n"
        "- wheel with ctrl=true zooms around the pointer; otherwise it pans.\n"
        "- key='Delete' removes every selected note.\n"
        "- board(action='arrange') packs all notes into tidy rows.\n"
    ),
)

# In-memory board registry: board id -> CanvasEngine
# Guarded by _engines_lock for thread-safety.
_store = InMemoryNoteStore()
_engines: dict[str, CanvasEngine] = {}
_engines_lock = threading.Lock()
_config = EngineConfig()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("noteboard://guide/gestures")
def gesture_guide() -> str:
    """Return the gesture priority rules as a reference."""
    return (
        "Pointer-down classification (first match wins, only from idle):\n"
        "  1. resize_handle on a loaded note  -> resize (min 150 x 120)\n"
        "  2. note_body on a loaded note      -> drag (moves the whole selection)\n"
        "  3. space held or middle button     -> pan\n"
        "  4. background                      -> rubber-band selection\n"
        "Wheel input never starts a gesture: ctrl zooms (0.1x .. 5x), plain pans.\n"
    )


@mcp.resource("noteboard://colors")
def color_catalog() -> str:
    """Return all available note colours."""
    return "Available note colours:\n" + "\n".join(f"  {c.value}" for c in NoteColor)


# ===================================================================
# TOOL 1: board (notes and board lifecycle)
# ===================================================================

@mcp.tool()
def board(
    action: str,
    board: str = "",
    note_id: str = "",
    note_ids: Optional[list[str]] = None,
    color: str = "yellow",
    text: str = "",
    x: Optional[float] = None,
    y: Optional[float] = None,
) -> str:
    """Board and note management.

    Actions:
      open          — Open (or reload) a board; resets view and selection. Params: board.
      list          — List open boards with their note counts. No params needed.
      add_note      — Add a note centred on screen point (x, y), or the viewport
                      centre when omitted. Params: board, color, x, y.
      edit_content  — Replace a note's text (saved after a short quiet period).
                      Params: board, note_id, text.
      delete_notes  — Delete notes. Params: board, note_ids.
      change_color  — Recolour a note. Params: board, note_id, color.
      clear         — Delete every note on the board. Params: board.
      arrange       — Pack all notes into non-overlapping rows. Params: board.

    Args:
        action: One of: open, list, add_note, edit_content, delete_notes,
                change_color, clear, arrange.
        board: Board id.
        note_id: Target note id.
        note_ids: Target note ids for delete_notes.
        color: yellow, blue, green, red, purple or gray.
        text: Note content for edit_content.
        x: Screen x for add_note.
        y: Screen y for add_note.

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "board", _BOARD_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        with _engines_lock:
            result = [
                {"board": bid, "notes": len(eng.notes), "selected": len(eng.selection)}
                for bid, eng in sorted(_engines.items())
            ]
        return json.dumps(result, indent=2)

    try:
        board = validate_non_empty_string(board, "board")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "open":
        with _engines_lock:
            eng = _engines.get(board)
            if eng is None:
                eng = CanvasEngine(_store, _config)
                _engines[board] = eng
            count = eng.open_board(board)
        return f"Board '{board}' opened with {count} note(s)."

    eng = _get_engine(board)
    if eng is None:
        return f"Error: board '{board}' is not open."

    if action == "add_note":
        try:
            fill = NoteColor[validate_note_color(color)]
            at = _optional_point(x, y)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            note = eng.add_note(fill, at_screen=at)
        if note is None:
            return "Error: note could not be created."
        return json.dumps(note.to_dict(), indent=2)

    elif action == "edit_content":
        try:
            note_id = validate_non_empty_string(note_id, "note_id")
            text = validate_string(text, "text")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            ok = eng.edit_content(note_id, text)
        if not ok:
            return f"Error: note '{note_id}' not found."
        return f"Content of note '{note_id}' updated."

    elif action == "delete_notes":
        try:
            ids = validate_note_ids(note_ids)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            removed = eng.delete_notes(ids)
        return f"Deleted {removed} note(s)."

    elif action == "change_color":
        try:
            note_id = validate_non_empty_string(note_id, "note_id")
            fill = NoteColor[validate_note_color(color)]
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            ok = eng.change_color(note_id, fill)
        if not ok:
            return f"Error: note '{note_id}' not found."
        return f"Note '{note_id}' is now {fill.value}."

    elif action == "clear":
        with _engines_lock:
            removed = eng.clear_board()
        return f"Cleared {removed} note(s) from board '{board}'."

    elif action == "arrange":
        with _engines_lock:
            count = eng.arrange()
        return f"Arranged {count} note(s)."

    else:
        return f"Error: unknown board action '{action}'."


# ===================================================================
# TOOL 2: pointer (raw input events)
# ===================================================================

@mcp.tool()
def pointer(
    action: str,
    board: str = "",
    x: float = 0,
    y: float = 0,
    target: str = "background",
    note_id: str = "",
    button: str = "primary",
    shift: bool = False,
    space: bool = False,
    ctrl: bool = False,
    delta_x: float = 0,
    delta_y: float = 0,
    key: str = "",
    text_focus: bool = False,
) -> str:
    """Feed one input event to a board and return the resulting frame.

    Actions:
      down          — Pointer pressed at screen (x, y). Params: target, note_id,
                      button, shift, space.
      move          — Pointer moved to screen (x, y).
      up            — Pointer released at screen (x, y).
      double_click  — Double click at screen (x, y); adds a note on background.
      wheel         — Scroll at (x, y) by (delta_x, delta_y); ctrl zooms.
      key           — Key pressed. Params: key ('Delete' / 'Backspace'),
                      text_focus (true while a text field has focus).

    Args:
        action: One of: down, move, up, double_click, wheel, key.
        board: Board id.
        x: Screen x in pixels.
        y: Screen y in pixels.
        target: background, note_body or resize_handle (down only).
        note_id: Note under the pointer (down only).
        button: primary, middle or secondary (down only).
        shift: Selection modifier held.
        space: Pan modifier held.
        ctrl: Zoom modifier held (wheel only).
        delta_x: Horizontal scroll amount.
        delta_y: Vertical scroll amount.
        key: Key name for the key action.
        text_focus: Whether a text input currently has focus.

    Returns:
        JSON frame: notes, view, selection, selection_box, gesture.
    """
    try:
        action = validate_action(action, "pointer", _POINTER_ACTIONS)
        board = validate_non_empty_string(board, "board")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    eng = _get_engine(board)
    if eng is None:
        return f"Error: board '{board}' is not open."

    try:
        screen = Point(validate_number(x, "x"), validate_number(y, "y"))
        modifiers = Modifiers(
            select=validate_bool(shift, "shift"),
            pan=validate_bool(space, "space"),
            zoom=validate_bool(ctrl, "ctrl"),
        )
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "down":
        try:
            hit = HitTarget[validate_hit_target(target)]
            btn = PointerButton[validate_pointer_button(button)]
            validate_string(note_id, "note_id")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        event = PointerDown(
            screen=screen,
            target=hit,
            note_id=note_id.strip() or None,
            button=btn,
            modifiers=modifiers,
        )
        with _engines_lock:
            eng.pointer_down(event)

    elif action == "move":
        with _engines_lock:
            eng.pointer_move(PointerMove(screen))

    elif action == "up":
        with _engines_lock:
            eng.pointer_up(PointerUp(screen))

    elif action == "double_click":
        try:
            hit = HitTarget[validate_hit_target(target)]
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            eng.double_click(screen, hit)

    elif action == "wheel":
        try:
            dx = validate_number(delta_x, "delta_x")
            dy = validate_number(delta_y, "delta_y")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            eng.wheel(Wheel(screen, dx, dy, modifiers))

    elif action == "key":
        try:
            key = validate_non_empty_string(key, "key")
            focused = validate_bool(text_focus, "text_focus")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            eng.key_down(KeyDown(key, focused))

    return _frame_json(eng)


# ===================================================================
# TOOL 3: view (camera control)
# ===================================================================

@mcp.tool()
def view(
    action: str,
    board: str = "",
    x: float = 0,
    y: float = 0,
    delta: float = 0,
    width: float = 0,
    height: float = 0,
) -> str:
    """Viewport control.

    Actions:
      zoom              — Zoom around screen (x, y) by delta (positive zooms in).
      pan               — Move the view by (x, y) screen pixels.
      reset             — Restore the initial scale and offset.
      navigate_minimap  — Centre the view on the world point under minimap
                          pixel (x, y).
      resize            — Set the viewport size in pixels. Params: width, height.

    Args:
        action: One of: zoom, pan, reset, navigate_minimap, resize.
        board: Board id.
        x: Screen / minimap x, or pan dx.
        y: Screen / minimap y, or pan dy.
        delta: Zoom amount (wheel units, sensitivity 0.001 per unit).
        width: Viewport width in pixels (resize).
        height: Viewport height in pixels (resize).

    Returns:
        JSON view state.
    """
    try:
        action = validate_action(action, "view", _VIEW_ACTIONS)
        board = validate_non_empty_string(board, "board")
        point = Point(validate_number(x, "x"), validate_number(y, "y"))
    except ValidationError as exc:
        return f"Error: {exc.message}"
    eng = _get_engine(board)
    if eng is None:
        return f"Error: board '{board}' is not open."

    result: dict[str, Any] = {}
    if action == "zoom":
        try:
            amount = validate_number(delta, "delta")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            eng.transform.zoom_at(point, amount)

    elif action == "pan":
        with _engines_lock:
            eng.transform.pan_by(point)

    elif action == "reset":
        with _engines_lock:
            eng.reset_view()

    elif action == "navigate_minimap":
        with _engines_lock:
            world = eng.navigate_minimap(point)
        result["world"] = world.to_dict()

    elif action == "resize":
        try:
            w, h = validate_viewport_size(width, height)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            eng.set_viewport_size(w, h)
        result["viewport"] = {"width": w, "height": h}

    with _engines_lock:
        result["view"] = eng.view.to_dict()
    return json.dumps(result, indent=2)


# ===================================================================
# TOOL 4: inspect (read-only queries)
# ===================================================================

@mcp.tool()
def inspect(
    action: str,
    board: str = "",
    margin: float = 0,
) -> str:
    """Read-only inspection of a board.

    Actions:
      frame     — Current notes, view, selection, selection box and gesture.
      minimap   — Minimap projection: scale, bounds, note and viewport rects.
      overlaps  — Pairs of notes closer than margin. Params: margin.
      info      — Board summary (note count, selection, gesture, scale).

    Args:
        action: One of: frame, minimap, overlaps, info.
        board: Board id.
        margin: Minimum gap for overlap checks.

    Returns:
        JSON data or formatted text.
    """
    try:
        action = validate_action(action, "inspect", _INSPECT_ACTIONS)
        board = validate_non_empty_string(board, "board")
    except ValidationError as exc:
        return f"Error: {exc.message}"
    eng = _get_engine(board)
    if eng is None:
        return f"Error: board '{board}' is not open."

    if action == "frame":
        return _frame_json(eng)

    elif action == "minimap":
        with _engines_lock:
            projection = eng.project_minimap()
        return json.dumps(projection.to_dict(), indent=2)

    elif action == "overlaps":
        try:
            gap = validate_number(margin, "margin", min_val=0)
        except ValidationError as exc:
            return f"Error: {exc.message}"
        with _engines_lock:
            overlaps = find_overlapping_notes(list(eng.notes.values()), margin=gap)
        if not overlaps:
            return "No overlaps found. Board is clean!"
        return json.dumps([{"note_a": a, "note_b": b} for a, b in overlaps], indent=2)

    elif action == "info":
        with _engines_lock:
            summary = {
                "board": board,
                "notes": len(eng.notes),
                "selected": len(eng.selection),
                "gesture": eng.gesture.name,
                "scale": eng.view.scale,
                "viewport": {"width": eng.viewport_width, "height": eng.viewport_height},
            }
        return json.dumps(summary, indent=2)

    else:
        return f"Error: unknown inspect action '{action}'. Use: frame, minimap, overlaps, info."


# ===================================================================
# Internal helpers
# ===================================================================

def _get_engine(board: str) -> Optional[CanvasEngine]:
    with _engines_lock:
        return _engines.get(board)


def _optional_point(x: Optional[float], y: Optional[float]) -> Optional[Point]:
    if x is None and y is None:
        return None
    if x is None or y is None:
        raise ValidationError("'x' and 'y' must be given together.")
    return Point(validate_number(x, "x"), validate_number(y, "y"))


def _frame_json(eng: CanvasEngine) -> str:
    with _engines_lock:
        frame = eng.frame().to_dict()
    return json.dumps(frame, indent=2)


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
