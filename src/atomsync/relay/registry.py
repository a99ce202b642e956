"""Atom registry — process-wide table of atom values and their subscribers.

The registry is the single source of truth for fan-out.  It exclusively
owns every ``AtomRecord``: sessions hold only the keys they subscribed to
and never touch subscriber sets or stored values directly.

Records are created lazily on first subscribe or first write.  A record
with no subscribers and no stored value is logically absent and is deleted
as soon as it reaches that state.

Thread Safety:
    Every operation runs under a single injected guard (``threading.Lock``
    by default).  No I/O ever happens while the guard is held: ``write``
    returns a snapshot of the recipients and the caller pushes after the
    guard is released.

"""

from __future__ import annotations

import threading
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from atomsync._types import ABSENT, Absent

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from atomsync._types import AtomKey, AtomValue


@dataclass(slots=True)
class AtomRecord:
    """One atom: its latest value and the sessions subscribed to it.

    Attributes:
        key: Atom key.
        value: Latest written value, or ``ABSENT`` before the first write.
        subscribers: Sessions that receive fan-out for this key.

    """

    key: AtomKey
    value: AtomValue | Absent = ABSENT
    subscribers: set[Hashable] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        """True when the record carries no value and no subscribers."""
        return self.value is ABSENT and not self.subscribers


class AtomRegistry:
    """Maps atom keys to latest values and subscriber sets.

    Sessions are identified by any hashable handle (the relay passes its
    ``Session`` objects).  A per-session key index keeps ``drop_session``
    proportional to that session's subscriptions, not to the atom count.

    Args:
        lock: Concurrency guard serializing all operations.  Defaults to a
            fresh ``threading.Lock``.

    """

    def __init__(self, lock: AbstractContextManager[Any] | None = None) -> None:
        self._records: dict[AtomKey, AtomRecord] = {}
        self._session_keys: dict[Hashable, set[AtomKey]] = {}
        self._lock = lock if lock is not None else threading.Lock()

    # ----- Mutations -----

    def subscribe(self, session: Hashable, key: AtomKey) -> AtomValue | Absent:
        """Register *session* as a subscriber of *key*.

        Subscribing twice is idempotent.

        Returns:
            The current value for catch-up delivery, or ``ABSENT`` if the
            key has never been written.

        """
        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = self._records[key] = AtomRecord(key)
            record.subscribers.add(session)
            self._session_keys.setdefault(session, set()).add(key)
            return record.value

    def unsubscribe(self, session: Hashable, key: AtomKey) -> bool:
        """Remove *session* from *key*'s subscribers.

        Unsubscribing from a key the session never subscribed to is a no-op.

        Returns:
            True if a subscription was removed.

        """
        with self._lock:
            keys = self._session_keys.get(session)
            if keys is None or key not in keys:
                return False
            keys.discard(key)
            if not keys:
                del self._session_keys[session]
            self._detach(session, key)
            return True

    def write(self, key: AtomKey, value: AtomValue) -> frozenset[Hashable]:
        """Store *value* for *key* (last write wins) and return its recipients.

        The returned snapshot is taken in the same critical section as the
        store, so every recipient of this write sees exactly this subscriber
        set.  The caller pushes to them after this method returns.

        """
        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = self._records[key] = AtomRecord(key)
            record.value = value
            return frozenset(record.subscribers)

    def drop_session(self, session: Hashable) -> int:
        """Remove *session* from every record it subscribed to.

        Idempotent: dropping an unknown or already-dropped session is a no-op.

        Returns:
            Number of subscriptions removed.

        """
        with self._lock:
            keys = self._session_keys.pop(session, None)
            if not keys:
                return 0
            for key in keys:
                self._detach(session, key)
            return len(keys)

    def _detach(self, session: Hashable, key: AtomKey) -> None:
        """Remove one subscription and collect the record if it became empty.

        Caller must hold the guard.
        """
        record = self._records.get(key)
        if record is None:
            return
        record.subscribers.discard(session)
        if record.is_empty:
            del self._records[key]

    # ----- Introspection -----

    def get(self, key: AtomKey) -> AtomValue | Absent:
        """Return the stored value for *key*, or ``ABSENT``."""
        with self._lock:
            record = self._records.get(key)
            return record.value if record is not None else ABSENT

    def subscribers(self, key: AtomKey) -> frozenset[Hashable]:
        """Snapshot of *key*'s subscribers (no lock held on return)."""
        with self._lock:
            record = self._records.get(key)
            return frozenset(record.subscribers) if record is not None else frozenset()

    def subscriber_count(self, key: AtomKey) -> int:
        """Number of sessions subscribed to *key*."""
        with self._lock:
            record = self._records.get(key)
            return len(record.subscribers) if record is not None else 0

    def subscriptions_of(self, session: Hashable) -> frozenset[AtomKey]:
        """Keys *session* is currently subscribed to."""
        with self._lock:
            return frozenset(self._session_keys.get(session, ()))

    def keys(self) -> frozenset[AtomKey]:
        """All keys that currently have a record."""
        with self._lock:
            return frozenset(self._records)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def stats(self) -> dict[str, int]:
        """Return summary counts: atoms, valued atoms, sessions, subscriptions."""
        with self._lock:
            return {
                "atoms": len(self._records),
                "atoms_with_value": sum(
                    1 for r in self._records.values() if r.value is not ABSENT
                ),
                "sessions": len(self._session_keys),
                "subscriptions": sum(len(k) for k in self._session_keys.values()),
            }
