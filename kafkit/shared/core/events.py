"""Typed pub/sub emitters for push-based invalidation."""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Emitter(Generic[T]):
    """Synchronous event emitter.

    Usage:
        changed = Emitter[str | None]("connections_changed")
        unsubscribe = changed.subscribe(lambda value: ...)
        changed.fire("conn-id")
        unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def fire(self, value: T) -> None:
        # A failing listener must not prevent the others from hearing about the change.
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("listener for %s failed", self.name)

    def clear(self) -> None:
        self._listeners.clear()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


# Fired with the affected connection id (or None for bulk changes).
connections_changed: Emitter[str | None] = Emitter("connections_changed")
