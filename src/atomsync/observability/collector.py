"""Relay collector — the single recording surface for relay events.

Sessions and the relay server call the ``record_*`` methods; each builds
the matching frozen event and appends it to the ``EventLog``.  Faults are
also echoed as one line on stderr.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

import sys

from atomsync.observability.events import (
    AtomLeft,
    AtomSubscribed,
    AtomWritten,
    FrameDiscarded,
    PushDropped,
    SessionClosed,
    SessionOpened,
    now_ns,
)
from atomsync.observability.log import EventLog


class RelayCollector:
    """Unified event collector for the relay.

    Args:
        log: The EventLog to store events in.
        verbose: Also print session open/close lines to stderr.

    """

    __slots__ = ("_log", "_verbose")

    def __init__(self, log: EventLog | None = None, *, verbose: bool = False) -> None:
        self._log = log if log is not None else EventLog()
        self._verbose = verbose

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Session lifecycle -----

    def record_session_opened(self, session_id: str, *, peer: str = "") -> None:
        self._log.append(SessionOpened(session_id=session_id, peer=peer, timestamp_ns=now_ns()))
        if self._verbose:
            print(f"  Session {session_id} connected from {peer or '?'}", file=sys.stderr)

    def record_session_closed(
        self,
        session_id: str,
        *,
        reason: str = "disconnect",
        subscriptions_dropped: int = 0,
        frames_received: int = 0,
    ) -> None:
        self._log.append(
            SessionClosed(
                session_id=session_id,
                reason=reason,  # type: ignore[arg-type]
                subscriptions_dropped=subscriptions_dropped,
                frames_received=frames_received,
                timestamp_ns=now_ns(),
            )
        )
        if self._verbose:
            print(
                f"  Session {session_id} closed ({reason}, "
                f"{subscriptions_dropped} subscriptions dropped)",
                file=sys.stderr,
            )

    # ----- Atom traffic -----

    def record_subscribe(self, session_id: str, key: str, *, caught_up: bool) -> None:
        self._log.append(
            AtomSubscribed(
                session_id=session_id, key=key, caught_up=caught_up, timestamp_ns=now_ns(),
            )
        )

    def record_leave(self, session_id: str, key: str, *, was_subscribed: bool) -> None:
        self._log.append(
            AtomLeft(
                session_id=session_id,
                key=key,
                was_subscribed=was_subscribed,
                timestamp_ns=now_ns(),
            )
        )

    def record_write(
        self,
        session_id: str,
        key: str,
        *,
        recipients: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        self._log.append(
            AtomWritten(
                session_id=session_id,
                key=key,
                recipients=recipients,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Faults -----

    def record_discard(self, session_id: str, *, reason: str, detail: str) -> None:
        """Record a dropped inbound frame. Always printed to stderr."""
        self._log.append(
            FrameDiscarded(
                session_id=session_id,
                reason=reason,  # type: ignore[arg-type]
                detail=detail,
                timestamp_ns=now_ns(),
            )
        )
        print(f"  Frame discarded ({session_id}): {detail}", file=sys.stderr)

    def record_push_dropped(self, session_id: str, key: str) -> None:
        """Record a push lost to a full session queue. Always printed to stderr."""
        self._log.append(PushDropped(session_id=session_id, key=key, timestamp_ns=now_ns()))
        print(f"  Push dropped ({session_id}): queue full for {key!r}", file=sys.stderr)
