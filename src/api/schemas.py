"""
Request/response models for the schedule HTTP API.
Field rules come from src.core.schema so the API, the form and the grid
axes agree on the allowed values.
"""

from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime

from ..core.errors import ValidationError
from ..core.schema import validate_field


def _check(field: str, v):
    try:
        return validate_field(field, v)
    except ValidationError as e:
        raise ValueError(e.message)


class ScheduleEntryCreate(BaseModel):
    title: str
    person: str
    context: str
    day: str
    type: str
    time_slot: str

    @field_validator('title', 'person', 'context', 'day', 'type', 'time_slot', mode='before')
    @classmethod
    def field_must_be_valid(cls, v, info):
        return _check(info.field_name, v)


class ScheduleEntryUpdate(BaseModel):
    title: Optional[str] = None
    person: Optional[str] = None
    context: Optional[str] = None
    day: Optional[str] = None
    type: Optional[str] = None
    time_slot: Optional[str] = None

    @field_validator('title', 'person', 'context', 'day', 'type', 'time_slot', mode='before')
    @classmethod
    def field_must_be_valid_when_set(cls, v, info):
        if v is None:
            return v
        return _check(info.field_name, v)


class ScheduleEntryResponse(BaseModel):
    id: str
    title: str
    person: str
    context: str
    day: str
    type: str
    time_slot: str
    created_at: datetime


class DeleteResponse(BaseModel):
    success: bool


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    entry_count: int
