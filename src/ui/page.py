"""
Schedule page: the common parent that owns the local entry-changed channel
and wires the form, the grid and its cells to the same store and feed.
"""

from typing import Callable, List, Optional

from util.logging import logger

from ..core import dao
from ..core.change_feed import ChangeFeed
from ..core.errors import StoreError
from ..core.schema import ScheduleEntry
from .cell import TableCell
from .events import EntryEvents
from .form import EntryForm
from .grid import ScheduleGrid

TITLE = "Schedule Table Manager"


def load_snapshot(store=dao) -> List[ScheduleEntry]:
    """Initial entries for the grid; an empty list if the store fails."""
    try:
        return list(store.list_entries())
    except StoreError as e:
        logger.error(f"Initial schedule load failed: {e.message}")
        return []


class SchedulePage:
    """Form and grid sharing one store, one change feed and one notification channel."""

    def __init__(self, store=dao, feed: Optional[ChangeFeed] = None,
                 alert: Optional[Callable[[str], None]] = None):
        self.store = store
        self.feed = feed
        self.alert = alert
        self.events = EntryEvents()
        self.form = EntryForm(store=store, events=self.events)
        self.grid = ScheduleGrid(load_snapshot(store), store=store, feed=feed, events=self.events)

    def open(self) -> None:
        self.grid.mount()

    def close(self) -> None:
        self.grid.unmount()

    def cell(self, person: str, time_slot: str, day: str) -> TableCell:
        return TableCell(
            self.grid.cell_entries(person, time_slot, day),
            store=self.store,
            events=self.events,
            alert=self.alert
        )

    def __enter__(self) -> "SchedulePage":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
