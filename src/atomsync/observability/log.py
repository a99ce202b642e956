"""Event log — bounded, thread-safe store of relay events.

Keeps the most recent ``RelayEvent`` objects in a ring buffer and answers
filtered queries by event type, time, atom key and session.

Thread Safety:
    All methods are protected by a ``threading.Lock``.

"""

import threading
from collections import Counter, deque
from typing import Any

from atomsync.observability.events import RelayEvent


def _matches(
    event: RelayEvent,
    event_type: type | None,
    since_ns: int,
    key: str | None,
    session_id: str | None,
) -> bool:
    if event_type is not None and not isinstance(event, event_type):
        return False
    if since_ns and event.timestamp_ns < since_ns:
        return False
    # Session lifecycle events carry no key and never match a key filter.
    if key is not None and getattr(event, "key", None) != key:
        return False
    return session_id is None or event.session_id == session_id


class EventLog:
    """Ring buffer of relay events; the oldest are evicted when full.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[RelayEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: RelayEvent) -> None:
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        key: str | None = None,
        session_id: str | None = None,
        limit: int = 100,
    ) -> list[RelayEvent]:
        """Return up to *limit* matching events, most recent first.

        Args:
            event_type: Only events of this class.
            since_ns: Only events at or after this monotonic timestamp.
            key: Only atom events for this exact key.
            session_id: Only events for this session.
            limit: Maximum number of events to return.

        """
        with self._lock:
            snapshot = list(self._events)
        results: list[RelayEvent] = []
        for event in reversed(snapshot):
            if len(results) >= limit:
                break
            if _matches(event, event_type, since_ns, key, session_id):
                results.append(event)
        return results

    def count(self, event_type: type) -> int:
        """Number of retained events of *event_type*."""
        with self._lock:
            return sum(1 for event in self._events if isinstance(event, event_type))

    def recent(self, n: int = 20) -> list[RelayEvent]:
        """Return the *n* newest events, oldest first."""
        with self._lock:
            return list(self._events)[-n:]

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Totals per event class name, plus capacity."""
        with self._lock:
            by_type = Counter(type(event).__name__ for event in self._events)
            total = len(self._events)
        return {"total": total, "max_events": self._max_events, "by_type": dict(by_type)}
