"""Tests for chat_pipe.store.FragmentStore."""

import threading
import uuid

import pytest

from chat_pipe.store import FragmentStore

ALEX = uuid.UUID("00000000-0000-0000-0000-00000000000a")
BLAKE = uuid.UUID("00000000-0000-0000-0000-00000000000b")


class TestBasics:
    def test_get_absent(self, store: FragmentStore) -> None:
        assert store.get(ALEX) is None
        assert store.counter(ALEX) is None

    def test_put_and_get(self, store: FragmentStore) -> None:
        store.put(ALEX, "hello")
        assert store.get(ALEX) == "hello"
        assert ALEX in store
        assert len(store) == 1

    def test_put_replaces(self, store: FragmentStore) -> None:
        store.put(ALEX, "hello")
        store.put(ALEX, "hello world")
        assert store.get(ALEX) == "hello world"

    def test_put_empty_rejected(self, store: FragmentStore) -> None:
        with pytest.raises(ValueError):
            store.put(ALEX, "")

    def test_put_leaves_counter_alone(self, store: FragmentStore) -> None:
        store.put(ALEX, "a")
        assert store.counter(ALEX) == 0
        store.increment_counter(ALEX)
        store.put(ALEX, "ab")
        assert store.counter(ALEX) == 1

    def test_keys_are_independent(self, store: FragmentStore) -> None:
        store.put(ALEX, "a")
        store.put(BLAKE, "b")
        store.invalidate(ALEX)
        assert store.get(BLAKE) == "b"

    def test_invalid_construction(self) -> None:
        with pytest.raises(ValueError):
            FragmentStore(ttl=0)
        with pytest.raises(ValueError):
            FragmentStore(max_size=0)


class TestCounter:
    def test_increment_starts_at_one(self, store: FragmentStore) -> None:
        assert store.increment_counter(ALEX) == 1
        assert store.increment_counter(ALEX) == 2

    def test_counter_placeholder_is_not_a_buffer(self, store: FragmentStore) -> None:
        store.increment_counter(ALEX)
        assert store.get(ALEX) is None
        assert ALEX not in store
        assert store.snapshot() == {}

    def test_counter_hidden_until_text_is_pending(self, store: FragmentStore) -> None:
        """get() and counter() always agree on whether the user has state."""
        store.increment_counter(ALEX)
        assert store.get(ALEX) is None
        assert store.counter(ALEX) is None
        store.put(ALEX, "a")
        assert store.counter(ALEX) == 1

    def test_increment_then_put(self, store: FragmentStore) -> None:
        store.increment_counter(ALEX)
        store.put(ALEX, "a")
        assert store.snapshot() == {ALEX: ("a", 1)}


class TestCoupledRemoval:
    def test_invalidate_drops_counter(self, store: FragmentStore) -> None:
        store.increment_counter(ALEX)
        store.put(ALEX, "a")
        store.invalidate(ALEX)
        assert store.get(ALEX) is None
        assert store.counter(ALEX) is None

    def test_invalidate_absent_is_noop(self, store: FragmentStore) -> None:
        store.invalidate(ALEX)
        store.invalidate(ALEX)
        assert len(store) == 0

    def test_expiry_drops_both(self, store: FragmentStore, clock) -> None:
        store.increment_counter(ALEX)
        store.put(ALEX, "a")
        clock.advance(600)
        assert store.get(ALEX) is None
        assert store.counter(ALEX) is None

    def test_put_resets_expiry(self, store: FragmentStore, clock) -> None:
        store.put(ALEX, "a")
        clock.advance(500)
        store.put(ALEX, "ab")
        clock.advance(500)
        assert store.get(ALEX) == "ab"

    def test_increment_does_not_reset_expiry(self, store: FragmentStore, clock) -> None:
        store.put(ALEX, "a")
        clock.advance(500)
        store.increment_counter(ALEX)
        clock.advance(100)
        assert store.counter(ALEX) is None

    def test_purge_expired(self, store: FragmentStore, clock) -> None:
        store.put(ALEX, "a")
        clock.advance(300)
        store.put(BLAKE, "b")
        clock.advance(300)
        assert store.purge_expired() == 1
        assert store.snapshot() == {BLAKE: ("b", 0)}
        assert store.purge_expired() == 0

    def test_purge_removes_stale_placeholder(self, store: FragmentStore, clock) -> None:
        store.increment_counter(ALEX)
        clock.advance(601)
        assert store.purge_expired() == 1
        assert store.counter(ALEX) is None

    def test_size_eviction_drops_oldest(self, clock) -> None:
        store = FragmentStore(ttl=600, max_size=2, clock=clock)
        for user in (ALEX, BLAKE):
            store.increment_counter(user)
            store.put(user, "x")
        carol = uuid.uuid4()
        store.increment_counter(carol)
        store.put(carol, "y")
        assert store.get(ALEX) is None
        assert store.counter(ALEX) is None
        assert store.counter(BLAKE) == 1
        assert len(store) == 2


class TestAbsorb:
    def test_copies_live_entries(self, clock) -> None:
        target = FragmentStore(ttl=600, clock=clock)
        source = FragmentStore(ttl=600, clock=clock)
        source.increment_counter(ALEX)
        source.increment_counter(ALEX)
        source.put(ALEX, "pending")
        target.absorb(source)
        assert target.snapshot() == {ALEX: ("pending", 2)}

    def test_absorbed_entries_get_fresh_ttl(self, store: FragmentStore, clock) -> None:
        store.put(ALEX, "a")
        clock.advance(500)
        fresh = FragmentStore(ttl=600, clock=clock)
        fresh.absorb(store)
        clock.advance(500)
        assert fresh.get(ALEX) == "a"
        assert store.get(ALEX) is None


def test_concurrent_purge_and_invalidate_keep_pairs_consistent(clock) -> None:
    """Racing removals on the same keys never fault and leave nothing behind."""
    store = FragmentStore(ttl=1, clock=clock)
    users = [uuid.uuid4() for _ in range(200)]
    for user in users:
        store.increment_counter(user)
        store.put(user, "x")
    clock.advance(1)

    def invalidate_all() -> None:
        for user in users:
            store.invalidate(user)

    threads = [threading.Thread(target=invalidate_all) for _ in range(4)]
    threads.append(threading.Thread(target=store.purge_expired))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for user in users:
        assert store.get(user) is None
        assert store.counter(user) is None
