"""
Note persistence boundary.

The canvas engine never waits on storage. It applies every change to its
in-memory notes first and hands the write to a :class:`WriteQueue`, which runs
it on a background worker. Content edits are coalesced per note id behind a
quiet-period timer so a burst of keystrokes results in a single write.

Failed writes are logged and dropped: the in-memory state stays as it is and
nothing is retried.
"""

from __future__ import annotations

import logging
import queue
import threading
import uuid
from typing import Callable, Optional, Protocol

from noteboard_mcp.models import (
    DEFAULT_NOTE_HEIGHT,
    DEFAULT_NOTE_WIDTH,
    Note,
    NoteColor,
    max_z_index,
    now_ms,
)

logger = logging.getLogger("noteboard-mcp.persistence")

DEFAULT_DEBOUNCE_SECONDS = 1.0

Write = Callable[[], None]
Runner = Callable[[Write], None]


# ---------------------------------------------------------------------------
# Store protocol
# ---------------------------------------------------------------------------

class NoteStore(Protocol):
    """Durable storage for notes, keyed by note id and scoped by board id."""

    def list_notes(self, board_id: str) -> list[Note]: ...

    def create_note(self, board_id: str, x: float, y: float, color: NoteColor) -> Note: ...

    def update_geometry(self, note_id: str, x: float, y: float, width: float, height: float) -> None: ...

    def update_position(self, note_id: str, x: float, y: float, z_index: int) -> None: ...

    def update_content(self, note_id: str, text: str) -> None: ...

    def delete_note(self, note_id: str) -> None: ...

    def delete_all(self, board_id: str) -> None: ...


class NoteNotFoundError(KeyError):
    """Raised by a store when a write names an unknown note."""


def _uid() -> str:
    return uuid.uuid4().hex[:12]


class InMemoryNoteStore:
    """Thread-safe, process-local :class:`NoteStore`."""

    def __init__(self) -> None:
        self._notes: dict[str, Note] = {}
        self._lock = threading.Lock()

    def list_notes(self, board_id: str) -> list[Note]:
        with self._lock:
            return [n.copy() for n in self._notes.values() if n.board_id == board_id]

    def create_note(self, board_id: str, x: float, y: float, color: NoteColor) -> Note:
        with self._lock:
            siblings = [n for n in self._notes.values() if n.board_id == board_id]
            stamp = now_ms()
            note = Note(
                id=_uid(),
                board_id=board_id,
                x=x,
                y=y,
                width=DEFAULT_NOTE_WIDTH,
                height=DEFAULT_NOTE_HEIGHT,
                color=color,
                z_index=max_z_index(siblings) + 1,
                created_at=stamp,
                updated_at=stamp,
            )
            self._notes[note.id] = note
            return note.copy()

    def _get(self, note_id: str) -> Note:
        note = self._notes.get(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    def update_geometry(self, note_id: str, x: float, y: float, width: float, height: float) -> None:
        with self._lock:
            note = self._get(note_id)
            note.x, note.y, note.width, note.height = x, y, width, height
            note.updated_at = now_ms()

    def update_position(self, note_id: str, x: float, y: float, z_index: int) -> None:
        with self._lock:
            note = self._get(note_id)
            note.x, note.y, note.z_index = x, y, z_index
            note.updated_at = now_ms()

    def update_content(self, note_id: str, text: str) -> None:
        with self._lock:
            note = self._get(note_id)
            note.content = text
            note.updated_at = now_ms()

    def delete_note(self, note_id: str) -> None:
        with self._lock:
            self._notes.pop(note_id, None)

    def delete_all(self, board_id: str) -> None:
        with self._lock:
            for nid in [n.id for n in self._notes.values() if n.board_id == board_id]:
                del self._notes[nid]

    def clear(self) -> None:
        with self._lock:
            self._notes.clear()


# ---------------------------------------------------------------------------
# Write queue
# ---------------------------------------------------------------------------

class _BackgroundWorker:
    """Single daemon thread that runs writes in submission order."""

    def __init__(self) -> None:
        self._queue: queue.Queue[Write] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def __call__(self, write: Write) -> None:
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._loop, name="noteboard-writer", daemon=True
                )
                self._thread.start()
        self._queue.put(write)

    def _loop(self) -> None:
        while True:
            write = self._queue.get()
            try:
                write()
            finally:
                self._queue.task_done()

    def join(self) -> None:
        self._queue.join()


class WriteQueue:
    """Dispatches store writes off the input path.

    ``submit`` runs a write as soon as the worker gets to it.
    ``submit_debounced`` holds the latest write per key until no newer one
    has arrived for ``debounce_seconds``.
    """

    def __init__(
        self,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        runner: Optional[Runner] = None,
    ) -> None:
        self._debounce_seconds = max(0.0, float(debounce_seconds))
        self._worker: Optional[_BackgroundWorker] = None
        if runner is None:
            self._worker = _BackgroundWorker()
            runner = self._worker
        self._runner = runner
        self._lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}
        self._pending: dict[str, tuple[str, Write]] = {}

    def submit(self, description: str, write: Write) -> None:
        self._runner(lambda: self._execute(description, write))

    def submit_debounced(self, key: str, description: str, write: Write) -> None:
        with self._lock:
            existing = self._timers.pop(key, None)
            if existing is not None:
                existing.cancel()
            self._pending[key] = (description, write)
            timer = threading.Timer(self._debounce_seconds, self._fire, args=(key,))
            timer.daemon = True
            self._timers[key] = timer
        timer.start()

    def pending_keys(self) -> set[str]:
        with self._lock:
            return set(self._pending)

    def discard(self, key: str) -> None:
        """Drop a pending debounced write without running it."""
        with self._lock:
            timer = self._timers.pop(key, None)
            self._pending.pop(key, None)
        if timer is not None:
            timer.cancel()

    def flush(self) -> None:
        """Dispatch every pending debounced write now."""
        with self._lock:
            timers = list(self._timers.values())
            pending = list(self._pending.values())
            self._timers.clear()
            self._pending.clear()
        for timer in timers:
            timer.cancel()
        for description, write in pending:
            self.submit(description, write)

    def join(self) -> None:
        """Block until the background worker is idle."""
        if self._worker is not None:
            self._worker.join()

    def _fire(self, key: str) -> None:
        with self._lock:
            self._timers.pop(key, None)
            entry = self._pending.pop(key, None)
        if entry is None:
            return
        description, write = entry
        self.submit(description, write)

    def _execute(self, description: str, write: Write) -> None:
        try:
            write()
        except Exception as exc:
            logger.warning("Failed to persist %s: %s", description, exc)
        else:
            logger.debug("Persisted %s", description)
