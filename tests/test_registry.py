"""Tests for atomsync.relay.registry — values, subscribers and cleanup."""

from __future__ import annotations

import threading

from atomsync._types import ABSENT
from atomsync.relay.registry import AtomRecord, AtomRegistry


class _Handle:
    """Identity-hashed stand-in for a session."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"_Handle({self.name})"


class TestAtomRecord:
    """AtomRecord dataclass."""

    def test_new_record_is_empty(self) -> None:
        record = AtomRecord("k")
        assert record.value is ABSENT
        assert record.is_empty

    def test_record_with_value_not_empty(self) -> None:
        assert not AtomRecord("k", value=None).is_empty


class TestSubscribe:
    """subscribe — lazy creation and catch-up value."""

    def test_unknown_key_returns_absent(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        assert registry.subscribe(a, "k") is ABSENT
        assert "k" in registry
        assert registry.subscribers("k") == frozenset({a})

    def test_returns_current_value(self, registry: AtomRegistry) -> None:
        registry.write("k", 5)
        assert registry.subscribe(_Handle("a"), "k") == 5

    def test_null_value_is_not_absent(self, registry: AtomRegistry) -> None:
        registry.write("k", None)
        assert registry.subscribe(_Handle("a"), "k") is None

    def test_idempotent(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        registry.subscribe(a, "k")
        assert registry.subscriber_count("k") == 1
        assert registry.subscriptions_of(a) == frozenset({"k"})

    def test_keys_are_flat(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "chat")
        recipients = registry.write("chat/general", 1)
        assert recipients == frozenset()


class TestUnsubscribe:
    """unsubscribe — removal and no-op cases."""

    def test_removes_subscriber(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        assert registry.unsubscribe(a, "k") is True
        assert registry.subscribers("k") == frozenset()

    def test_never_subscribed_is_noop(self, registry: AtomRegistry) -> None:
        assert registry.unsubscribe(_Handle("a"), "never") is False
        assert len(registry) == 0

    def test_other_subscribers_kept(self, registry: AtomRegistry) -> None:
        a, b = _Handle("a"), _Handle("b")
        registry.subscribe(a, "k")
        registry.subscribe(b, "k")
        registry.unsubscribe(a, "k")
        assert registry.subscribers("k") == frozenset({b})

    def test_empty_record_collected(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        registry.unsubscribe(a, "k")
        assert "k" not in registry

    def test_valued_record_kept(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        registry.write("k", 1)
        registry.unsubscribe(a, "k")
        assert registry.get("k") == 1


class TestWrite:
    """write — last-write-wins and recipient snapshots."""

    def test_creates_record_lazily(self, registry: AtomRegistry) -> None:
        assert registry.write("fresh", {"x": 1}) == frozenset()
        assert registry.get("fresh") == {"x": 1}

    def test_last_write_wins(self, registry: AtomRegistry) -> None:
        registry.write("k", 1)
        registry.write("k", 2)
        assert registry.get("k") == 2

    def test_returns_all_subscribers_including_writer(self, registry: AtomRegistry) -> None:
        a, b = _Handle("a"), _Handle("b")
        registry.subscribe(a, "k")
        registry.subscribe(b, "k")
        assert registry.write("k", 1) == frozenset({a, b})

    def test_snapshot_not_affected_by_later_changes(self, registry: AtomRegistry) -> None:
        a, b = _Handle("a"), _Handle("b")
        registry.subscribe(a, "k")
        snapshot = registry.write("k", 1)
        registry.subscribe(b, "k")
        assert snapshot == frozenset({a})

    def test_get_absent(self, registry: AtomRegistry) -> None:
        assert registry.get("missing") is ABSENT


class TestDropSession:
    """drop_session — unconditional cleanup of every subscription."""

    def test_removes_from_every_key(self, registry: AtomRegistry) -> None:
        a, b = _Handle("a"), _Handle("b")
        for key in ("k1", "k2", "k3"):
            registry.subscribe(a, key)
        registry.subscribe(b, "k2")

        assert registry.drop_session(a) == 3
        assert registry.subscriptions_of(a) == frozenset()
        assert registry.subscribers("k2") == frozenset({b})
        assert registry.keys() == frozenset({"k2"})

    def test_idempotent(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        assert registry.drop_session(a) == 1
        assert registry.drop_session(a) == 0

    def test_unknown_session(self, registry: AtomRegistry) -> None:
        assert registry.drop_session(_Handle("ghost")) == 0

    def test_values_survive(self, registry: AtomRegistry) -> None:
        a = _Handle("a")
        registry.subscribe(a, "k")
        registry.write("k", "v")
        registry.drop_session(a)
        assert registry.get("k") == "v"

    def test_no_growth_with_churn(self, registry: AtomRegistry) -> None:
        for i in range(200):
            handle = _Handle(str(i))
            registry.subscribe(handle, "room")
            registry.subscribe(handle, f"user/{i}")
            registry.drop_session(handle)
        assert registry.stats() == {
            "atoms": 0,
            "atoms_with_value": 0,
            "sessions": 0,
            "subscriptions": 0,
        }


class TestConcurrency:
    """Injected guard and thread safety."""

    def test_uses_injected_lock(self) -> None:
        entered = 0

        class CountingLock:
            def __init__(self) -> None:
                self._lock = threading.Lock()

            def __enter__(self) -> None:
                nonlocal entered
                entered += 1
                self._lock.acquire()

            def __exit__(self, *exc_info: object) -> None:
                self._lock.release()

        registry = AtomRegistry(lock=CountingLock())
        registry.subscribe(_Handle("a"), "k")
        registry.write("k", 1)
        assert entered == 2

    def test_concurrent_subscribe_and_drop(self) -> None:
        registry = AtomRegistry()
        handles = [_Handle(str(i)) for i in range(32)]

        def churn(handle: _Handle) -> None:
            for n in range(100):
                registry.subscribe(handle, f"k{n % 5}")
                registry.write(f"k{n % 5}", n)
            registry.drop_session(handle)

        threads = [threading.Thread(target=churn, args=(h,)) for h in handles]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stats = registry.stats()
        assert stats["sessions"] == 0
        assert stats["subscriptions"] == 0
        for n in range(5):
            assert registry.subscribers(f"k{n}") == frozenset()

    def test_stats_counts(self, registry: AtomRegistry) -> None:
        a, b = _Handle("a"), _Handle("b")
        registry.subscribe(a, "k1")
        registry.subscribe(b, "k1")
        registry.subscribe(b, "k2")
        registry.write("k1", 0)
        assert registry.stats() == {
            "atoms": 2,
            "atoms_with_value": 1,
            "sessions": 2,
            "subscriptions": 3,
        }
