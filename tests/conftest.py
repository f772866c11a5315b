"""Shared fixtures for engine-level tests."""

import pytest

from noteboard_mcp.engine import CanvasEngine, EngineConfig
from noteboard_mcp.models import NoteColor
from noteboard_mcp.persistence import InMemoryNoteStore, WriteQueue


@pytest.fixture
def store() -> InMemoryNoteStore:
    return InMemoryNoteStore()


@pytest.fixture
def seed(store):
    """Create a note with the given geometry in the store and return its id."""

    def factory(x: float, y: float, width: float = 240, height: float = 180,
                board_id: str = "b1") -> str:
        note = store.create_note(board_id, x, y, NoteColor.YELLOW)
        store.update_geometry(note.id, x, y, width, height)
        return note.id

    return factory


@pytest.fixture
def sync_writes() -> WriteQueue:
    """Write queue that runs writes inline instead of on a worker thread."""
    return WriteQueue(debounce_seconds=1.0, runner=lambda write: write())


@pytest.fixture
def make_engine(store, sync_writes):
    """Build an engine on an open board whose screen and world coordinates coincide."""

    def factory(board_id: str = "b1", **config) -> CanvasEngine:
        config.setdefault("initial_offset", (0, 0))
        eng = CanvasEngine(store, EngineConfig(**config), write_queue=sync_writes)
        eng.open_board(board_id)
        return eng

    return factory
