"""
Entry form state: six required fields, inline error, transient success
indicator and the local notification that asks the grid to refetch.
"""

import time
from typing import Callable, Dict, Optional

from util.logging import logger

from ..core import dao
from ..core.config import get_success_message_duration
from ..core.errors import StoreError, ValidationError
from ..core.schema import FIELD_CHOICES, REQUIRED_FIELDS, ScheduleEntry, validate_entry_fields
from .events import EntryEvents

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def empty_form_data() -> Dict[str, str]:
    return {name: "" for name in REQUIRED_FIELDS}


def field_options(name: str):
    """Return the allowed values for an enumerated field, or None for free text."""
    return FIELD_CHOICES[name]


class EntryForm:
    """Form that validates locally and inserts one entry per submit."""

    def __init__(self, store=dao, events: Optional[EntryEvents] = None,
                 success_duration: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.events = events
        self.success_duration = success_duration if success_duration is not None else get_success_message_duration()
        self._clock = clock
        self.data = empty_form_data()
        self.error: Optional[str] = None
        self.is_submitting = False
        self._success_until: Optional[float] = None

    def set_field(self, name: str, value: str) -> None:
        if name not in self.data:
            raise KeyError(f"Unknown form field: {name}")
        self.data[name] = value if value is not None else ""

    @property
    def success(self) -> bool:
        """True while the success indicator is visible."""
        return self._success_until is not None and self._clock() < self._success_until

    def submit(self) -> Optional[ScheduleEntry]:
        """
        Validate and insert the current form data.

        Returns the created entry, or None when validation or the store
        failed; `error` then holds the message to show.
        """
        self.is_submitting = True
        self.error = None

        try:
            try:
                values = validate_entry_fields(self.data)
            except ValidationError as e:
                self.error = e.message
                return None

            try:
                entry = self.store.create_entry(values)
            except StoreError as e:
                logger.error(f"Error adding entry: {e.message}")
                self.error = e.message
                return None
            except Exception as e:
                logger.error(f"Unexpected error adding entry: {e}")
                self.error = UNEXPECTED_ERROR_MESSAGE
                return None

            self.data = empty_form_data()
            self._success_until = self._clock() + self.success_duration

            if self.events is not None:
                self.events.notify()

            return entry
        finally:
            self.is_submitting = False
