"""Snapshot publication for presentation-layer subscribers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateChannel(Generic[T]):
    """Holds the latest immutable snapshot and notifies listeners on publish.

    Listeners run on the publishing thread; a listener that raises is logged
    and does not prevent delivery to the others.
    """

    def __init__(self, initial: T):
        self._current = initial
        self._listeners: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> T:
        return self._current

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, snapshot: T) -> None:
        with self._lock:
            self._current = snapshot
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener failed")
