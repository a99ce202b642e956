"""Unified event model for relay observability.

Defines event types for session lifecycle, atom traffic and discarded
frames.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal, TypeAlias


# ---------------------------------------------------------------------------
# Session lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionOpened:
    """A client connection was accepted and bound to a session.

    Attributes:
        session_id: Relay-assigned session identifier.
        peer: Remote address of the client, as reported by the transport.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    peer: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SessionClosed:
    """A session ended and was removed from every atom it subscribed to.

    Attributes:
        session_id: Relay-assigned session identifier.
        reason: Why the session ended.
        subscriptions_dropped: Number of atom subscriptions cleaned up.
        frames_received: Frames read from the transport over the session's life.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    reason: Literal["disconnect", "transport_error", "stalled", "shutdown"]
    subscriptions_dropped: int
    frames_received: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Atom traffic events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AtomSubscribed:
    """A session subscribed to an atom.

    Attributes:
        session_id: Subscribing session.
        key: Atom key.
        caught_up: True if the current value was delivered immediately.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    key: str
    caught_up: bool
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class AtomLeft:
    """A session asked to unsubscribe from an atom.

    Attributes:
        session_id: Leaving session.
        key: Atom key.
        was_subscribed: False when the leave was a no-op.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    key: str
    was_subscribed: bool
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class AtomWritten:
    """A session wrote a new value and the relay fanned it out.

    Attributes:
        session_id: Writing session.
        key: Atom key.
        recipients: Number of sessions the value was pushed to (writer included).
        duration_ms: Time from decode to fan-out enqueue completion.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    key: str
    recipients: int
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Fault events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FrameDiscarded:
    """An inbound frame could not be decoded and was dropped.

    The connection stays open.

    Attributes:
        session_id: Session that received the frame.
        reason: ``malformed`` or ``unknown_type``.
        detail: Decoder error message.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    reason: Literal["malformed", "unknown_type"]
    detail: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PushDropped:
    """A push could not be enqueued because the session's queue was full.

    Attributes:
        session_id: Stalled session (it is closed right after).
        key: Atom key of the dropped push.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    key: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

RelayEvent: TypeAlias = (
    SessionOpened
    | SessionClosed
    | AtomSubscribed
    | AtomLeft
    | AtomWritten
    | FrameDiscarded
    | PushDropped
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
