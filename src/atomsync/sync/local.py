"""Local reactive value — the client-side state a remote atom mirrors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Callable

# listener(new_value, old_value)
ChangeListener: TypeAlias = "Callable[[Any, Any], None]"


class LocalAtom:
    """A mutable value that notifies listeners on every ``set``.

    Listeners run synchronously, in subscription order, with
    ``(new_value, old_value)``.  Listeners are notified even when the new
    value equals the old one; deciding what counts as a change is up to
    each listener.

    Args:
        default: Initial value.

    """

    __slots__ = ("_listeners", "_value")

    def __init__(self, default: Any = None) -> None:
        self._value = default
        self._listeners: list[ChangeListener] = []

    def __repr__(self) -> str:
        return f"LocalAtom({self._value!r})"

    @property
    def value(self) -> Any:
        return self._value

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        old = self._value
        self._value = value
        for listener in list(self._listeners):
            listener(value, old)

    def update(self, fn: Callable[[Any], Any]) -> None:
        """Set the value to ``fn(current)``."""
        self.set(fn(self._value))

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            # Remove by identity so a listener added twice is removed once.
            for i, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[i]
                    return

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
