"""
Cell rendering for one (person, time_slot, day) intersection and the
per-entry delete action.

Delete state machine: idle -> confirming -> deleting -> idle, or idle with
an error when the store fails.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from util.logging import logger

from ..core import dao
from ..core.errors import StoreError
from ..core.schema import ScheduleEntry
from .events import EntryEvents

CONFIRM_DELETE_MESSAGE = "Are you sure you want to delete this entry?"
DELETE_FAILED_MESSAGE = "Failed to delete entry"

# Entry type -> display style
TYPE_STYLES = {
    "Meeting": "white on purple",
    "Task": "white on blue",
    "Reminder": "black on yellow",
    "KPI": "white on grey30",
}
DEFAULT_TYPE_STYLE = "white on green"


def style_for_type(entry_type: str) -> str:
    return TYPE_STYLES.get(entry_type, DEFAULT_TYPE_STYLE)


class DeleteState(str, Enum):
    IDLE = "idle"
    CONFIRMING = "confirming"
    DELETING = "deleting"


@dataclass
class CellItem:
    entry_id: str
    title: str
    context: str
    type: str
    badge: str
    tooltip: str
    style: str


def to_cell_item(entry: ScheduleEntry) -> CellItem:
    return CellItem(
        entry_id=entry.id,
        title=entry.title,
        context=entry.context,
        type=entry.type,
        badge=entry.type[:1],
        tooltip=f"{entry.title} - {entry.context} ({entry.type})",
        style=style_for_type(entry.type)
    )


class TableCell:
    """Pre-filtered entries of one grid cell plus their delete actions."""

    def __init__(self, entries: List[ScheduleEntry], store=dao, events: Optional[EntryEvents] = None,
                 alert: Optional[Callable[[str], None]] = None):
        self.entries = list(entries)
        self.store = store
        self.events = events
        self.alert = alert
        self._states: Dict[str, DeleteState] = {}
        self.errors: Dict[str, str] = {}

    def items(self) -> List[CellItem]:
        return [to_cell_item(entry) for entry in self.entries]

    def state(self, entry_id: str) -> DeleteState:
        return self._states.get(entry_id, DeleteState.IDLE)

    def is_disabled(self, entry_id: str) -> bool:
        """The delete trigger is disabled while its delete is outstanding."""
        return self.state(entry_id) == DeleteState.DELETING

    def begin_delete(self, entry_id: str) -> bool:
        """Move an idle entry to confirming; return False if it is busy."""
        if self.state(entry_id) != DeleteState.IDLE:
            return False
        self.errors.pop(entry_id, None)
        self._states[entry_id] = DeleteState.CONFIRMING
        return True

    def confirm_delete(self, entry_id: str, accepted: bool) -> bool:
        """Resolve the confirmation; delete when accepted. Return True if the entry was deleted."""
        if self.state(entry_id) != DeleteState.CONFIRMING:
            return False

        if not accepted:
            self._states.pop(entry_id, None)
            return False

        self._states[entry_id] = DeleteState.DELETING
        try:
            self.store.delete_entry(entry_id)
        except StoreError as e:
            logger.error(f"Error deleting entry {entry_id}: {e.message}")
            self._fail(entry_id)
            return False
        except Exception as e:
            logger.error(f"Unexpected error deleting entry {entry_id}: {e}")
            self._fail(entry_id)
            return False
        finally:
            self._states.pop(entry_id, None)

        if self.events is not None:
            self.events.notify()
        return True

    def _fail(self, entry_id: str) -> None:
        self.errors[entry_id] = DELETE_FAILED_MESSAGE
        if self.alert is not None:
            self.alert(DELETE_FAILED_MESSAGE)

    def request_delete(self, entry_id: str, confirm: Callable[[str], bool]) -> bool:
        """Run the whole delete sequence with a synchronous confirmation callback."""
        if not self.begin_delete(entry_id):
            return False
        return self.confirm_delete(entry_id, bool(confirm(CONFIRM_DELETE_MESSAGE)))
