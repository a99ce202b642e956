"""Relay observability — unified event model for sessions and atom traffic.

Records:
- **Sessions**: connection open and close, with cleanup counts
- **Atoms**: subscribe, leave and write/fan-out events
- **Faults**: discarded frames and dropped pushes

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production.

Quick Start:
    >>> from atomsync.observability import EventLog, RelayCollector
    >>> log = EventLog()
    >>> collector = RelayCollector(log)
    >>> # Pass collector to RelayServer(config, collector=collector)

"""

from atomsync.observability.collector import RelayCollector
from atomsync.observability.events import (
    AtomLeft,
    AtomSubscribed,
    AtomWritten,
    FrameDiscarded,
    PushDropped,
    RelayEvent,
    SessionClosed,
    SessionOpened,
    now_ns,
)
from atomsync.observability.log import EventLog

__all__ = [
    "AtomLeft",
    "AtomSubscribed",
    "AtomWritten",
    "EventLog",
    "FrameDiscarded",
    "PushDropped",
    "RelayCollector",
    "RelayEvent",
    "SessionClosed",
    "SessionOpened",
    "now_ns",
]
