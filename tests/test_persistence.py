"""Tests for the in-memory note store and the write queue."""

import logging

import pytest

from noteboard_mcp.models import NoteColor
from noteboard_mcp.persistence import InMemoryNoteStore, NoteNotFoundError, WriteQueue


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    created: list = []

    def __init__(self, interval, function, args=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.cancelled = False
        self.started = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function(*self.args)


@pytest.fixture
def fake_timers(monkeypatch):
    FakeTimer.created = []
    monkeypatch.setattr("noteboard_mcp.persistence.threading.Timer", FakeTimer)
    return FakeTimer.created


@pytest.fixture
def ran() -> list:
    return []


@pytest.fixture
def writes(ran) -> WriteQueue:
    return WriteQueue(debounce_seconds=1.0, runner=lambda write: write())


# ===================================================================
# InMemoryNoteStore
# ===================================================================

class TestInMemoryNoteStore:

    def test_create_assigns_defaults(self) -> None:
        store = InMemoryNoteStore()
        a = store.create_note("b1", 10, 20, NoteColor.BLUE)
        b = store.create_note("b1", 0, 0, NoteColor.YELLOW)
        assert (a.width, a.height) == (240, 180)
        assert (a.x, a.y) == (10, 20)
        assert a.content == ""
        assert a.z_index == 1
        assert b.z_index == 2
        assert a.id != b.id

    def test_z_index_is_per_board(self) -> None:
        store = InMemoryNoteStore()
        store.create_note("b1", 0, 0, NoteColor.YELLOW)
        other = store.create_note("b2", 0, 0, NoteColor.YELLOW)
        assert other.z_index == 1

    def test_returned_notes_are_copies(self) -> None:
        store = InMemoryNoteStore()
        note = store.create_note("b1", 0, 0, NoteColor.YELLOW)
        note.x = 999
        [listed] = store.list_notes("b1")
        assert listed.x == 0
        listed.x = 555
        assert store.list_notes("b1")[0].x == 0

    def test_updates(self) -> None:
        store = InMemoryNoteStore()
        nid = store.create_note("b1", 0, 0, NoteColor.YELLOW).id
        store.update_geometry(nid, 5, 6, 300, 200)
        store.update_position(nid, 50, 60, 7)
        store.update_content(nid, "hello")
        [n] = store.list_notes("b1")
        assert (n.x, n.y, n.width, n.height, n.z_index, n.content) == (50, 60, 300, 200, 7, "hello")

    def test_update_unknown_note_raises(self) -> None:
        store = InMemoryNoteStore()
        with pytest.raises(NoteNotFoundError):
            store.update_content("nope", "x")

    def test_delete(self) -> None:
        store = InMemoryNoteStore()
        a = store.create_note("b1", 0, 0, NoteColor.YELLOW).id
        store.create_note("b1", 0, 0, NoteColor.YELLOW)
        store.create_note("b2", 0, 0, NoteColor.YELLOW)
        store.delete_note(a)
        store.delete_note(a)  # idempotent
        assert len(store.list_notes("b1")) == 1
        store.delete_all("b1")
        assert store.list_notes("b1") == []
        assert len(store.list_notes("b2")) == 1


# ===================================================================
# WriteQueue
# ===================================================================

class TestWriteQueue:

    def test_submit_runs_through_runner(self, writes, ran) -> None:
        writes.submit("first", lambda: ran.append(1))
        writes.submit("second", lambda: ran.append(2))
        assert ran == [1, 2]

    def test_debounce_keeps_only_latest(self, writes, ran, fake_timers) -> None:
        writes.submit_debounced("n1", "edit", lambda: ran.append("h"))
        writes.submit_debounced("n1", "edit", lambda: ran.append("he"))
        writes.submit_debounced("n1", "edit", lambda: ran.append("hey"))
        assert ran == []
        assert writes.pending_keys() == {"n1"}
        assert [t.cancelled for t in fake_timers] == [True, True, False]
        assert all(t.started and t.daemon for t in fake_timers)
        assert fake_timers[-1].interval == 1.0
        for t in fake_timers:
            t.fire()
        assert ran == ["hey"]
        assert writes.pending_keys() == set()

    def test_debounce_is_per_key(self, writes, ran, fake_timers) -> None:
        writes.submit_debounced("n1", "edit", lambda: ran.append("a"))
        writes.submit_debounced("n2", "edit", lambda: ran.append("b"))
        assert not any(t.cancelled for t in fake_timers)
        fake_timers[1].fire()
        fake_timers[0].fire()
        assert ran == ["b", "a"]

    def test_flush_runs_pending_writes(self, writes, ran, fake_timers) -> None:
        writes.submit_debounced("n1", "edit", lambda: ran.append("a"))
        writes.flush()
        assert ran == ["a"]
        assert fake_timers[0].cancelled
        # a late timer callback finds nothing to do
        fake_timers[0].function(*fake_timers[0].args)
        assert ran == ["a"]

    def test_discard_drops_pending_write(self, writes, ran, fake_timers) -> None:
        writes.submit_debounced("n1", "edit", lambda: ran.append("a"))
        writes.discard("n1")
        writes.discard("unknown")
        fake_timers[0].function(*fake_timers[0].args)
        assert ran == []

    def test_failed_write_is_logged_not_raised(self, writes, ran, caplog) -> None:
        def boom() -> None:
            raise RuntimeError("disk full")

        with caplog.at_level(logging.WARNING, logger="noteboard-mcp.persistence"):
            writes.submit("content of note n1", boom)
            writes.submit("next", lambda: ran.append("ok"))
        assert "Failed to persist content of note n1: disk full" in caplog.text
        assert ran == ["ok"]

    def test_background_worker_runs_in_order(self) -> None:
        queue = WriteQueue()
        seen: list[int] = []
        for i in range(20):
            queue.submit(f"write {i}", lambda i=i: seen.append(i))
        queue.join()
        assert seen == list(range(20))
