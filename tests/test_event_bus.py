"""Tests for the event bus and its transactional wrapper."""

from __future__ import annotations

import pytest

from gatedreward.events import (
    ALL_EVENT_TYPES,
    EVENT_HOLDER_ADDED,
    Event,
    InMemoryEventBus,
    TransactionalEventBus,
)


class TestEvent:
    """Tests for the Event dataclass."""

    def test_event_creation(self) -> None:
        """Event creates with required fields and sensible defaults."""
        event = Event(event_type="holder.added", source="ledger")
        assert event.event_type == "holder.added"
        assert event.source == "ledger"
        assert event.payload == {}
        assert event.timestamp is not None
        assert event.event_id.startswith("evt-")

    def test_event_types_are_unique(self) -> None:
        assert len(set(ALL_EVENT_TYPES)) == len(ALL_EVENT_TYPES)


class TestInMemoryEventBus:
    """Tests for the synchronous in-process event bus."""

    def test_emit_and_subscribe(self) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []
        bus.subscribe("holder.*", received.append)

        event = Event(event_type=EVENT_HOLDER_ADDED, source="ledger")
        bus.emit(event)

        assert received == [event]

    def test_pattern_matching_glob(self) -> None:
        bus = InMemoryEventBus()
        holder_events: list[Event] = []
        all_events: list[Event] = []
        bus.subscribe("holder.*", holder_events.append)
        bus.subscribe("*", all_events.append)

        bus.emit(Event(event_type="holder.added", source="a"))
        bus.emit(Event(event_type="tokens.distributed", source="b"))

        assert len(holder_events) == 1
        assert len(all_events) == 2

    def test_failing_handler_does_not_block_others(self) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []

        def boom(event: Event) -> None:
            raise RuntimeError("handler crashed")

        bus.subscribe("*", boom)
        bus.subscribe("*", received.append)
        bus.emit(Event(event_type="holder.added", source="a"))
        assert len(received) == 1

    def test_unsubscribe(self) -> None:
        bus = InMemoryEventBus()
        received: list[Event] = []
        bus.subscribe("*", received.append)
        bus.unsubscribe(received.append)
        bus.emit(Event(event_type="holder.added", source="a"))
        assert received == []


class TestTransactionalEventBus:
    """Events are held back until the outermost transaction commits."""

    def _bus(self) -> tuple[TransactionalEventBus, list[Event]]:
        bus = TransactionalEventBus()
        received: list[Event] = []
        bus.subscribe("*", received.append)
        return bus, received

    def test_passthrough_outside_transaction(self) -> None:
        bus, received = self._bus()
        bus.emit(Event(event_type="holder.added", source="a"))
        assert len(received) == 1

    def test_commit_flushes_in_order(self) -> None:
        bus, received = self._bus()
        bus.begin()
        bus.emit(Event(event_type="holder.added", source="a"))
        bus.emit(Event(event_type="holder.removed", source="a"))
        assert received == []
        assert len(bus.pending) == 2
        bus.commit()
        assert [e.event_type for e in received] == ["holder.added", "holder.removed"]
        assert bus.pending == []

    def test_rollback_drops_events(self) -> None:
        bus, received = self._bus()
        mark = bus.begin()
        bus.emit(Event(event_type="holder.added", source="a"))
        bus.rollback(mark)
        assert received == []
        assert not bus.in_transaction

    def test_nested_only_outer_commit_flushes(self) -> None:
        bus, received = self._bus()
        bus.begin()
        bus.emit(Event(event_type="holder.added", source="outer"))
        inner = bus.begin()
        bus.emit(Event(event_type="holder.added", source="inner"))
        bus.rollback(inner)
        assert received == []
        bus.commit()
        assert [e.source for e in received] == ["outer"]

    def test_commit_delivers_every_event_despite_failures(self) -> None:
        class ExplodingBus(InMemoryEventBus):
            def emit(self, event: Event) -> None:
                if event.source == "bad":
                    raise RuntimeError("inner bus down")
                super().emit(event)

        inner = ExplodingBus()
        received: list[Event] = []
        inner.subscribe("*", received.append)
        bus = TransactionalEventBus(inner)
        bus.begin()
        bus.emit(Event(event_type="holder.added", source="bad"))
        bus.emit(Event(event_type="holder.added", source="good"))
        bus.commit()
        assert [e.source for e in received] == ["good"]
        assert not bus.in_transaction

    def test_commit_outside_transaction_raises(self) -> None:
        bus, _ = self._bus()
        with pytest.raises(RuntimeError):
            bus.commit()
        with pytest.raises(RuntimeError):
            bus.rollback()
