"""Synchronous change notification, one subscriber list per topic."""

from __future__ import annotations

from typing import Callable

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class Notifier:
    """Calls zero-argument listeners in registration order.

    Topics are plain strings; a topic exists once something subscribes
    to or publishes on it.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def subscribe(self, topic: str, listener: Listener) -> Unsubscribe:
        """Register ``listener`` and return a callable that removes it.

        Unsubscribing removes exactly this registration, even if the same
        function was registered more than once. Calling it twice is harmless.
        """
        token = _Registration(listener)
        self._listeners.setdefault(topic, []).append(token)

        def unsubscribe() -> None:
            listeners = self._listeners.get(topic, [])
            if token in listeners:
                listeners.remove(token)

        return unsubscribe

    def publish(self, topic: str) -> None:
        # Snapshot so listeners may (un)subscribe while being notified.
        for listener in list(self._listeners.get(topic, [])):
            listener()


class _Registration:
    """Identity wrapper so duplicate registrations stay distinguishable."""

    __slots__ = ("_fn",)

    def __init__(self, fn: Listener) -> None:
        self._fn = fn

    def __call__(self) -> None:
        self._fn()
