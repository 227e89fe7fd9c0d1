"""Tests for the holder directory and its balance-change hook."""

import pytest

from gatedreward.credential import MultiTokenStore
from gatedreward.events import Event, InMemoryEventBus
from gatedreward.exceptions import HolderCapacityExceededError
from gatedreward.ledger import HolderDirectory, HolderState


def _setup(max_holders=10, gating_id=0):
    store = MultiTokenStore()
    bus = InMemoryEventBus()
    events: list[Event] = []
    bus.subscribe("holder.*", events.append)
    directory = HolderDirectory(store, gating_id=gating_id, max_holders=max_holders, events=bus)
    store.subscribe(directory.on_balance_changed)
    return store, directory, events


def _consistent(directory: HolderDirectory, store: MultiTokenStore) -> None:
    holders = directory.holders()
    assert len(holders) == len(set(holders))
    assert set(holders) == set(store.accounts(directory.gating_id))
    for slot, holder in enumerate(holders):
        assert directory._slots[holder] == slot


class TestMembership:
    def test_mint_adds_holder(self):
        store, directory, events = _setup()
        store.mint("alice", 0, 5)
        assert directory.is_holder("alice")
        assert directory.state("alice") is HolderState.HOLDER
        assert directory.count == 1
        assert [e.event_type for e in events] == ["holder.added"]
        assert events[0].payload == {"holder": "alice", "holder_count": 1}

    def test_second_mint_does_not_duplicate(self):
        store, directory, events = _setup()
        store.mint("alice", 0, 5)
        store.mint("alice", 0, 1)
        assert directory.count == 1
        assert len(events) == 1

    def test_burn_to_zero_removes(self):
        store, directory, events = _setup()
        store.mint("alice", 0, 5)
        store.burn("alice", 0, 5)
        assert directory.state("alice") is HolderState.NON_HOLDER
        assert directory.count == 0
        assert events[-1].event_type == "holder.removed"

    def test_partial_burn_keeps_holder(self):
        store, directory, _ = _setup()
        store.mint("alice", 0, 5)
        store.burn("alice", 0, 4)
        assert directory.is_holder("alice")

    def test_full_transfer_moves_membership(self):
        store, directory, _ = _setup()
        store.mint("alice", 0, 10)
        store.transfer("alice", "alice", "bob", 0, 10)
        assert directory.holders() == ("bob",)

    def test_partial_transfer_adds_recipient(self):
        store, directory, _ = _setup()
        store.mint("alice", 0, 10)
        store.transfer("alice", "alice", "bob", 0, 4)
        assert set(directory) == {"alice", "bob"}

    def test_other_ids_ignored(self):
        store, directory, events = _setup()
        store.mint("alice", 7, 5)
        assert directory.count == 0
        assert events == []

    def test_swap_and_pop_keeps_slots_consistent(self):
        store, directory, _ = _setup()
        for name in ("a", "b", "c", "d"):
            store.mint(name, 0, 1)
        store.burn("b", 0, 1)
        _consistent(directory, store)
        assert directory.holders() == ("a", "d", "c")
        store.burn("c", 0, 1)
        _consistent(directory, store)

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            HolderDirectory(MultiTokenStore(), max_holders=0)


class TestCapacity:
    def test_new_holder_beyond_cap_rejected(self):
        store, directory, events = _setup(max_holders=2)
        store.mint("alice", 0, 1)
        store.mint("bob", 0, 1)
        with pytest.raises(HolderCapacityExceededError) as exc_info:
            store.mint("carol", 0, 1)
        assert exc_info.value.holder == "carol"
        assert store.balance_of("carol", 0) == 0
        assert directory.count == 2
        assert directory.is_full
        assert len(events) == 2

    def test_existing_holder_can_still_receive_at_cap(self):
        store, directory, _ = _setup(max_holders=1)
        store.mint("alice", 0, 1)
        store.mint("alice", 0, 1)
        assert store.balance_of("alice", 0) == 2

    def test_full_transfer_to_new_holder_at_cap_rejected(self):
        store, directory, events = _setup(max_holders=1)
        store.mint("alice", 0, 3)
        with pytest.raises(HolderCapacityExceededError):
            store.transfer("alice", "alice", "bob", 0, 3)
        assert store.balance_of("alice", 0) == 3
        assert store.balance_of("bob", 0) == 0
        assert directory.holders() == ("alice",)
        assert [e.event_type for e in events] == ["holder.added"]

    def test_full_transfer_to_existing_holder_at_cap(self):
        store, directory, _ = _setup(max_holders=2)
        store.mint("alice", 0, 3)
        store.mint("bob", 0, 1)
        store.transfer("alice", "alice", "bob", 0, 3)
        assert directory.holders() == ("bob",)
        assert store.balance_of("bob", 0) == 4

    def test_partial_transfer_to_new_holder_at_cap_rejected(self):
        store, directory, _ = _setup(max_holders=1)
        store.mint("alice", 0, 3)
        with pytest.raises(HolderCapacityExceededError):
            store.transfer("alice", "alice", "bob", 0, 1)
        assert store.balance_of("alice", 0) == 3
        assert store.balance_of("bob", 0) == 0
        assert directory.holders() == ("alice",)
