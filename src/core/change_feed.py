"""
Change feed over the schedule change log.

Channels bind callbacks to (event, table) filters and receive every
INSERT/UPDATE/DELETE committed after they subscribe, from any connection.
Polling runs on a daemon thread while at least one channel is subscribed.
"""

import threading
from typing import Callable, List, Optional, Tuple

from util.logging import logger

from . import dao
from .config import get_change_feed_poll_interval, get_change_log_retention, is_change_feed_enabled
from .db import CHANGE_EVENTS
from .errors import StoreError
from .schema import ChangeEvent

ANY_EVENT = "*"

ChangeCallback = Callable[[ChangeEvent], None]


class Channel:
    """A named set of (event, table, callback) bindings on a change feed."""

    def __init__(self, feed: "ChangeFeed", name: str):
        self.feed = feed
        self.name = name
        self._bindings: List[Tuple[str, str, ChangeCallback]] = []
        self.subscribed = False

    def on(self, event: str, table: str, callback: ChangeCallback) -> "Channel":
        """Bind a callback to an event type ('*' for all) on a table."""
        if event != ANY_EVENT and event not in CHANGE_EVENTS:
            raise ValueError(f"Unknown change event: {event}")
        if not callable(callback):
            raise ValueError(f"Channel callback must be callable: {callback}")

        self._bindings.append((event, table, callback))
        return self

    def subscribe(self) -> "Channel":
        """Start receiving events."""
        self.feed._attach(self)
        return self

    def filters(self):
        return [{"event": event, "table": table} for event, table, _ in self._bindings]

    def dispatch(self, change: ChangeEvent) -> int:
        """Deliver a change to every matching binding; return how many fired."""
        fired = 0
        for event, table, callback in list(self._bindings):
            if table != change.table:
                continue
            if event != ANY_EVENT and event != change.event_type:
                continue
            callback(change)
            fired += 1
        return fired


class ChangeFeed:
    """Polling change feed shared by every channel opened on it."""

    def __init__(self, poll_interval: Optional[float] = None, background: Optional[bool] = None):
        self.poll_interval = poll_interval if poll_interval is not None else get_change_feed_poll_interval()
        if self.poll_interval <= 0:
            raise ValueError(f"Poll interval must be > 0: {self.poll_interval}")

        self.background = is_change_feed_enabled() if background is None else background
        self._channels: List[Channel] = []
        self._lock = threading.RLock()
        self._last_seq: Optional[int] = None
        self._thread: Optional[threading.Thread] = None
        self._shutdown_event: Optional[threading.Event] = None

    def channel(self, name: str) -> Channel:
        """Create an unsubscribed channel on this feed."""
        return Channel(self, name)

    def channels(self) -> List[str]:
        """Return the names of subscribed channels."""
        with self._lock:
            return [channel.name for channel in self._channels]

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _attach(self, channel: Channel) -> None:
        with self._lock:
            if channel.subscribed:
                return
            if self._last_seq is None:
                # Only changes committed after the first subscription are delivered
                self._last_seq = dao.latest_change_seq()
            self._channels.append(channel)
            channel.subscribed = True

        logger.log_subscription(channel.name, "subscribed", channel.filters())

        if self.background:
            self.start()

    def remove_channel(self, channel: Channel) -> None:
        """Release a channel. The poll thread stops with the last channel."""
        with self._lock:
            if channel not in self._channels:
                return
            self._channels.remove(channel)
            channel.subscribed = False
            remaining = len(self._channels)
            if remaining == 0:
                # The next subscriber starts from changes committed after it subscribes
                self._last_seq = None

        logger.log_subscription(channel.name, "removed")

        if remaining == 0:
            self.stop()

    def poll(self) -> int:
        """Deliver every change committed since the last poll; return the number of changes."""
        with self._lock:
            if self._last_seq is None:
                self._last_seq = dao.latest_change_seq()
            since = self._last_seq

        changes = dao.list_changes_since(since)
        if not changes:
            return 0

        with self._lock:
            self._last_seq = changes[-1].seq
            channels = list(self._channels)

        for change in changes:
            for channel in channels:
                try:
                    if channel.dispatch(change):
                        logger.log_change_event(channel.name, change.event_type, change.entry_id, change.seq)
                except Exception as e:
                    # Error isolation - one failing callback must not starve the others
                    logger.error(f"Change feed callback on channel '{channel.name}' failed: {e}")

        dao.prune_changes(changes[-1].seq, get_change_log_retention())
        return len(changes)

    def start(self) -> None:
        """Start the background poll thread if it is not already running."""
        with self._lock:
            if self.running:
                return

            self._shutdown_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._shutdown_event,),
                name="schedule-change-feed",
                daemon=True
            )
            self._thread.start()

        logger.info(f"Change feed started (every {self.poll_interval}s)")

    def _run(self, shutdown_event: threading.Event) -> None:
        while not shutdown_event.wait(self.poll_interval):
            try:
                self.poll()
            except StoreError as e:
                logger.warning(f"Change feed poll failed: {e}")

    def stop(self) -> None:
        """Stop the background poll thread."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._shutdown_event.set()
            self._thread = None
            self._shutdown_event = None

        if thread is not threading.current_thread():
            thread.join(timeout=self.poll_interval + 1.0)

        logger.info("Change feed stopped")
