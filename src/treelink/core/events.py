from __future__ import annotations

"""
Synchronous Event Hooks.

Minimal observer primitive used by nodes, trees and the link coordinator.
Listeners run on the caller's thread, in subscription order, before
`emit` returns.
"""

from typing import Any, Callable, List

Listener = Callable[..., None]


class EventHook:
    """
    Ordered list of callbacks fired together.

    A listener subscribed twice is only called once. Listeners added or
    removed while an emission is running take effect on the next emission.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Listener:
        """Register a listener and return it (usable as a decorator)."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def emit(self, *args: Any) -> None:
        for listener in list(self._listeners):
            listener(*args)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"EventHook({self.name!r}, listeners={len(self._listeners)})"
