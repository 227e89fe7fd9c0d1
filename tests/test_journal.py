"""Tests for undo logs and the atomic journal."""

from __future__ import annotations

import pytest

from gatedreward.events import Event, TransactionalEventBus
from gatedreward.journal import AtomicJournal, Checkpointable, UndoLog


class Box:
    """Tiny checkpointable value holder."""

    def __init__(self, value: int = 0) -> None:
        self.value = value
        self._undo = UndoLog()

    def set(self, value: int) -> None:
        previous = self.value
        self.value = value
        self._undo.record(lambda: setattr(self, "value", previous))

    def checkpoint(self) -> int:
        return self._undo.checkpoint()

    def restore(self, mark: int) -> None:
        self._undo.restore(mark)

    def release(self, mark: int) -> None:
        self._undo.release(mark)


# ---------------------------------------------------------------------------
# UndoLog
# ---------------------------------------------------------------------------


class TestUndoLog:
    def test_record_ignored_without_checkpoint(self):
        log = UndoLog()
        log.record(lambda: None)
        assert len(log) == 0
        assert not log.active

    def test_restore_undoes_in_reverse(self):
        box = Box(1)
        mark = box.checkpoint()
        box.set(2)
        box.set(3)
        box.restore(mark)
        assert box.value == 1

    def test_release_keeps_writes(self):
        box = Box(1)
        mark = box.checkpoint()
        box.set(5)
        box.release(mark)
        assert box.value == 5

    def test_nested_restore_only_inner(self):
        box = Box(0)
        outer = box.checkpoint()
        box.set(1)
        inner = box.checkpoint()
        box.set(2)
        box.restore(inner)
        assert box.value == 1
        box.restore(outer)
        assert box.value == 0

    def test_outer_restore_after_inner_release(self):
        box = Box(0)
        outer = box.checkpoint()
        inner = box.checkpoint()
        box.set(7)
        box.release(inner)
        box.restore(outer)
        assert box.value == 0

    def test_log_cleared_when_outermost_closes(self):
        log = UndoLog()
        mark = log.checkpoint()
        log.record(lambda: None)
        log.release(mark)
        assert len(log) == 0

    def test_restore_without_checkpoint_raises(self):
        with pytest.raises(RuntimeError):
            UndoLog().restore(0)
        with pytest.raises(RuntimeError):
            UndoLog().release(0)

    def test_atomic_context_manager(self):
        box = Box(0)
        with pytest.raises(KeyError):
            with box._undo.atomic():
                box.set(9)
                raise KeyError("boom")
        assert box.value == 0


# ---------------------------------------------------------------------------
# AtomicJournal
# ---------------------------------------------------------------------------


class TestAtomicJournal:
    def _journal(self, *boxes: Box) -> tuple[AtomicJournal, list[Event], TransactionalEventBus]:
        bus = TransactionalEventBus()
        received: list[Event] = []
        bus.subscribe("*", received.append)
        return AtomicJournal(lambda: list(boxes), bus), received, bus

    def test_box_is_checkpointable(self):
        assert isinstance(Box(), Checkpointable)

    def test_commit_keeps_state_and_flushes_events(self):
        a, b = Box(), Box()
        journal, received, bus = self._journal(a, b)
        with journal.transaction("op"):
            a.set(1)
            b.set(2)
            bus.emit(Event(event_type="x.done", source="t"))
        assert (a.value, b.value) == (1, 2)
        assert len(received) == 1

    def test_failure_restores_every_participant(self):
        a, b = Box(10), Box(20)
        journal, received, bus = self._journal(a, b)
        with pytest.raises(ValueError):
            with journal.transaction("op"):
                a.set(11)
                bus.emit(Event(event_type="x.done", source="t"))
                b.set(21)
                raise ValueError("fail")
        assert (a.value, b.value) == (10, 20)
        assert received == []
        assert not bus.in_transaction

    def test_nested_failure_keeps_outer_events(self):
        a = Box()
        journal, received, bus = self._journal(a)
        with journal.transaction("outer"):
            a.set(1)
            bus.emit(Event(event_type="x.outer", source="t"))
            with pytest.raises(ValueError):
                with journal.transaction("inner"):
                    a.set(2)
                    bus.emit(Event(event_type="x.inner", source="t"))
                    raise ValueError("inner")
        assert a.value == 1
        assert [e.event_type for e in received] == ["x.outer"]

    def test_participants_resolved_per_transaction(self):
        first, second = Box(), Box()
        current = [first]
        bus = TransactionalEventBus()
        journal = AtomicJournal(lambda: list(current), bus)
        current[0] = second
        with pytest.raises(RuntimeError):
            with journal.transaction("op"):
                second.set(3)
                raise RuntimeError("x")
        assert second.value == 0

    def test_read_opens_no_checkpoint(self):
        a = Box(4)
        journal, _, bus = self._journal(a)
        with pytest.raises(ValueError):
            with journal.read():
                assert not a._undo.active
                assert not bus.in_transaction
                raise ValueError("read failed")
        assert a.value == 4
