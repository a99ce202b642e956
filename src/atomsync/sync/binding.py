"""Remote binding — keeps one LocalAtom in sync with one relay atom.

The binding is an explicit subscription object:

- ``activate()`` subscribes to the key on the relay and starts watching the
  local atom.
- Remote pushes are applied to the local atom without being published back.
- Local changes are compared to the previous value with the binding's
  equality predicate; only real changes are published.  This is what stops
  a value from echoing forever between clients.
- ``deactivate()`` leaves the key and stops watching.

The relay echoes every write back to its writer.  The echo arrives equal to
the local value and is dropped by the same predicate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from atomsync.sync.equality import structurally_equal

if TYPE_CHECKING:
    from collections.abc import Callable

    from atomsync._types import AtomKey, EqualsFunc
    from atomsync.sync.client import SyncClient
    from atomsync.sync.local import LocalAtom


def atom_key(first: str, *parts: str) -> AtomKey:
    """Build a composite key such as ``"Messages/Channel A/General Chat"``."""
    return "/".join((first, *parts))


class RemoteBinding:
    """Binds a LocalAtom to a remote atom key through a SyncClient.

    Args:
        client: Connection shared by every binding of this client.
        key: Remote atom key.
        atom: Local value to keep in sync.
        equals: Predicate deciding whether a local set is a real change.

    """

    __slots__ = ("_applying", "_unlisten", "_unwatch", "atom", "client", "equals", "key")

    def __init__(
        self,
        client: SyncClient,
        key: AtomKey,
        atom: LocalAtom,
        *,
        equals: EqualsFunc = structurally_equal,
    ) -> None:
        self.client = client
        self.key = key
        self.atom = atom
        self.equals = equals
        self._applying = False
        self._unlisten: Callable[[], None] | None = None
        self._unwatch: Callable[[], None] | None = None

    def __repr__(self) -> str:
        state = "active" if self.active else "inactive"
        return f"RemoteBinding({self.key!r}, {state})"

    @property
    def active(self) -> bool:
        return self._unlisten is not None

    def activate(self) -> None:
        """Start syncing.  Calling it on an active binding does nothing."""
        if self.active:
            return
        self._unlisten = self.client.listen(self.key, self._apply_remote)
        self._unwatch = self.atom.subscribe(self._on_local_change)

    def deactivate(self) -> None:
        """Stop syncing and leave the key.  Idempotent."""
        if not self.active:
            return
        unwatch, unlisten = self._unwatch, self._unlisten
        self._unwatch = self._unlisten = None
        if unwatch is not None:
            unwatch()
        if unlisten is not None:
            unlisten()

    def __enter__(self) -> RemoteBinding:
        self.activate()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.deactivate()

    def _apply_remote(self, value: Any) -> None:
        if self.equals(value, self.atom.get()):
            return
        self._applying = True
        try:
            self.atom.set(value)
        finally:
            self._applying = False

    def _on_local_change(self, new: Any, old: Any) -> None:
        if self._applying or self.equals(new, old):
            return
        self.client.publish(self.key, new)
