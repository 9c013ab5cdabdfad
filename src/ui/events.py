"""
Local entry-changed notifications.
Owned by the page so form, cells and grid share one channel without a
global bus. Notifications carry no payload.
"""

import threading
from typing import Callable, List

from util.logging import logger

Listener = Callable[[], None]


class EntryEvents:
    """Explicit observer list for 'entries changed' notifications."""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that unsubscribes it."""
        if not callable(listener):
            raise ValueError(f"Listener must be callable: {listener}")

        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self) -> None:
        """Call every listener; a failing listener does not stop the rest."""
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Entry change listener failed: {e}")
