"""
Schedule grid state and the resync-on-signal model.

The grid keeps a flat list of entries. Any change feed event or local
entry-changed notification triggers a full refetch that replaces the list
wholesale; event payloads are ignored. Rows and cells are derived from the
list on demand.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from util.logging import logger

from ..core import dao
from ..core.change_feed import ANY_EVENT, Channel, ChangeFeed
from ..core.errors import StoreError
from ..core.schema import DAYS, TABLE_NAME, TIME_SLOTS, ScheduleEntry
from .events import EntryEvents

CHANNEL_NAME = "table-db-changes"

CellKey = Tuple[str, str, str]  # (person, time_slot, day)


@dataclass
class GridRow:
    person: str
    time_slot: str
    first_for_person: bool
    cells: Dict[str, List[ScheduleEntry]]  # day -> entries


class ScheduleGrid:
    """Person x time slot x day view over the current entries."""

    def __init__(self, initial_entries: Iterable[ScheduleEntry] = (), store=dao,
                 feed: Optional[ChangeFeed] = None, events: Optional[EntryEvents] = None):
        self.entries: List[ScheduleEntry] = list(initial_entries)
        self.store = store
        self.feed = feed
        self.events = events
        self.loading = False
        self._channel: Optional[Channel] = None
        self._unsubscribe_local: Optional[Callable[[], None]] = None
        self._listeners: List[Callable[[], None]] = []
        self._refetch_lock = threading.Lock()

    # Lifecycle

    @property
    def mounted(self) -> bool:
        return self._channel is not None or self._unsubscribe_local is not None

    def mount(self) -> None:
        """Subscribe to the change feed and the local entry-changed channel."""
        if self.mounted:
            return

        if self.feed is not None:
            self._channel = (
                self.feed.channel(CHANNEL_NAME)
                .on(ANY_EVENT, TABLE_NAME, self._on_change)
                .subscribe()
            )

        if self.events is not None:
            self._unsubscribe_local = self.events.subscribe(self.refetch)

    def unmount(self) -> None:
        """Release the change feed channel and the local subscription."""
        if self._channel is not None:
            self.feed.remove_channel(self._channel)
            self._channel = None

        if self._unsubscribe_local is not None:
            self._unsubscribe_local()
            self._unsubscribe_local = None

    def on_change(self, listener: Callable[[], None]) -> None:
        """Register a listener called after every refetch."""
        self._listeners.append(listener)

    def _on_change(self, change) -> None:
        self.refetch()

    # Synchronization

    def refetch(self) -> List[ScheduleEntry]:
        """Replace entries with a fresh listing; keep the old list if the store fails."""
        with self._refetch_lock:
            self.loading = True
            try:
                self.entries = list(self.store.list_entries())
            except StoreError as e:
                logger.error(f"Error fetching entries: {e.message}")
            finally:
                self.loading = False

        for listener in list(self._listeners):
            listener()

        return self.entries

    # Derived views

    @property
    def persons(self) -> List[str]:
        return _persons(self.entries)

    @property
    def days(self) -> List[str]:
        return list(DAYS)

    @property
    def time_slots(self) -> List[str]:
        return list(TIME_SLOTS)

    def cell_entries(self, person: str, time_slot: str, day: str) -> List[ScheduleEntry]:
        entries = self.entries
        return [
            entry for entry in entries
            if entry.person == person and entry.time_slot == time_slot and entry.day == day
        ]

    def rows(self) -> List[GridRow]:
        """One row per (person, time slot), with a cell per day."""
        # Refetches swap the list from other threads; derive everything from one snapshot
        entries = self.entries
        buckets = _buckets(entries)
        rows = []
        for person in _persons(entries):
            for index, time_slot in enumerate(TIME_SLOTS):
                rows.append(GridRow(
                    person=person,
                    time_slot=time_slot,
                    first_for_person=index == 0,
                    cells={day: buckets[(person, time_slot, day)] for day in DAYS}
                ))
        return rows

    def buckets(self) -> Dict[CellKey, List[ScheduleEntry]]:
        """Map every renderable (person, time_slot, day) triple to its entries, in list order."""
        return _buckets(self.entries)

    def renderable_entries(self) -> List[ScheduleEntry]:
        return [entry for entry in self.entries if entry.day in DAYS and entry.time_slot in TIME_SLOTS]


def _persons(entries: List[ScheduleEntry]) -> List[str]:
    return sorted({entry.person for entry in entries})


def _buckets(entries: List[ScheduleEntry]) -> Dict[CellKey, List[ScheduleEntry]]:
    buckets: Dict[CellKey, List[ScheduleEntry]] = {
        (person, time_slot, day): []
        for person in _persons(entries)
        for time_slot in TIME_SLOTS
        for day in DAYS
    }
    for entry in entries:
        key = (entry.person, entry.time_slot, entry.day)
        # Entries outside the fixed axes are not renderable
        if key in buckets:
            buckets[key].append(entry)
    return buckets
