"""
Schedule record types and the fixed enumerations shared by validation,
form options and grid axes.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import ValidationError

TABLE_NAME = "schedule_entries"

PERSONS = ["Nilson", "Louis", "Jaden"]

CONTEXTS = [
    "SSCPMR testing",
    "EMS Migration",
    "Team Activities",
    "Training",
    "Software Demo",
    "Documentation",
    "Management",
    "Security",
    "Maintenance",
    "Development",
    "Reporting",
    "Certification",
]

DAYS = ["1", "2", "3", "4", "5", "TBD"]

ENTRY_TYPES = ["Meeting", "Task", "Reminder", "KPI"]

TIME_SLOTS = ["Reminder", "AM", "PM"]

# Field name -> allowed values (None means free text)
FIELD_CHOICES: Dict[str, Optional[List[str]]] = {
    "title": None,
    "person": PERSONS,
    "context": CONTEXTS,
    "day": DAYS,
    "type": ENTRY_TYPES,
    "time_slot": TIME_SLOTS,
}

REQUIRED_FIELDS = list(FIELD_CHOICES.keys())

FIELD_LABELS = {
    "title": "Title",
    "person": "Person",
    "context": "Context",
    "day": "Day",
    "type": "Type",
    "time_slot": "Time Slot",
}

MISSING_FIELDS_MESSAGE = "Please fill all required fields"


@dataclass
class ScheduleEntry:
    id: str
    title: str
    person: str
    context: str
    day: str
    type: str
    time_slot: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary for JSON serialization."""
        data = asdict(self)
        data['created_at'] = self.created_at.isoformat()
        return data

    def fields(self) -> Dict[str, str]:
        """Return the six semantic fields."""
        return {name: getattr(self, name) for name in REQUIRED_FIELDS}


@dataclass
class ChangeEvent:
    seq: int
    table: str
    event_type: str  # INSERT, UPDATE, DELETE
    entry_id: str
    committed_at: datetime


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_field(name: str, value: Any) -> str:
    """
    Validate a single field and return the value to store.

    Enumerated values are stripped before the membership check; free text
    is stored exactly as submitted.
    """
    if name not in FIELD_CHOICES:
        raise ValidationError(f"Unknown field: {name}")

    normalized = _normalize(value)
    if not normalized:
        raise ValidationError(f"{FIELD_LABELS[name]} is required")

    choices = FIELD_CHOICES[name]
    if choices is None:
        return str(value)
    if normalized not in choices:
        raise ValidationError(f"Invalid {FIELD_LABELS[name]}: {normalized}")

    return normalized


def validate_entry_fields(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate a complete set of entry fields.

    All six fields must be non-empty; the message for any missing field is
    the same so the form can show a single inline error.
    """
    if any(not _normalize(data.get(name)) for name in REQUIRED_FIELDS):
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    return {name: validate_field(name, data[name]) for name in REQUIRED_FIELDS}


def validate_patch(patch: Dict[str, Any]) -> Dict[str, str]:
    """Validate a partial update; only semantic fields may be changed."""
    if not patch:
        raise ValidationError("No fields to update")

    return {name: validate_field(name, value) for name, value in patch.items()}
