import datetime as dt
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field

from moafinder.events.models import EventStatus
from moafinder.events.recurrence import (
    EventType,
    MonthlyMode,
    RecurrenceDescriptor,
    WeekIndex,
    Weekday,
    descriptor_from_fields,
)

TIME_OF_DAY = r"^([01]\d|2[0-3]):[0-5]\d$"


def _event_type(value):
    # Lets the enum resolve the German aliases before pydantic sees the value.
    if isinstance(value, str):
        return EventType(value)
    return value


EventTypeField = Annotated[EventType, BeforeValidator(_event_type)]


class RecurrenceFields(BaseModel):
    """Flat recurrence fields as submitted by the event forms.

    Which of them are required depends on ``event_type`` (and
    ``monthly_mode``); the combination is checked when the descriptor is
    built, not here.
    """

    days_of_week: list[Weekday] | None = None
    monthly_mode: MonthlyMode | None = None
    monthly_day_of_month: int | None = None
    monthly_week_index: WeekIndex | None = None
    monthly_weekday: Weekday | None = None
    repeat_until: date | None = None

    def to_descriptor(self, event_type: EventType) -> RecurrenceDescriptor:
        return descriptor_from_fields(event_type, **self.model_dump())


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=70)
    subtitle: str | None = Field(None, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    event_type: EventTypeField = EventType.ONCE
    recurrence: RecurrenceFields | None = None
    start_date: date
    end_date: date | None = None
    time_from: str | None = Field(None, pattern=TIME_OF_DAY)
    time_to: str | None = Field(None, pattern=TIME_OF_DAY)
    location_id: uuid.UUID
    organizer_id: uuid.UUID | None = None
    tag_ids: list[uuid.UUID] = Field(default_factory=list)
    is_accessible: bool = False
    cost_is_free: bool = False
    cost_details: str | None = Field(None, max_length=255)
    registration_required: bool = False
    registration_details: str | None = Field(None, max_length=255)
    status: EventStatus | None = None
    expiry_date: date | None = None

    def to_descriptor(self) -> RecurrenceDescriptor:
        return (self.recurrence or RecurrenceFields()).to_descriptor(self.event_type)


class EventUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=70)
    subtitle: str | None = Field(None, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=1000)
    event_type: EventTypeField | None = None
    recurrence: RecurrenceFields | None = None
    start_date: date | None = None
    end_date: date | None = None
    time_from: str | None = Field(None, pattern=TIME_OF_DAY)
    time_to: str | None = Field(None, pattern=TIME_OF_DAY)
    location_id: uuid.UUID | None = None
    organizer_id: uuid.UUID | None = None
    tag_ids: list[uuid.UUID] | None = None
    is_accessible: bool | None = None
    cost_is_free: bool | None = None
    cost_details: str | None = Field(None, max_length=255)
    registration_required: bool | None = None
    registration_details: str | None = Field(None, max_length=255)
    status: EventStatus | None = None
    expiry_date: date | None = None


class RecurrenceResponse(BaseModel):
    days_of_week: list[Weekday] | None = None
    monthly_mode: MonthlyMode | None = None
    monthly_day_of_month: int | None = None
    monthly_week_index: WeekIndex | None = None
    monthly_weekday: Weekday | None = None
    repeat_until: date | None = None


class EventResponse(BaseModel):
    id: uuid.UUID
    title: str
    subtitle: str | None = None
    description: str
    event_type: EventType
    recurrence: RecurrenceResponse | None = None
    recurrence_label: str
    start_date: date
    end_date: date | None = None
    time_from: str | None = None
    time_to: str | None = None
    next_occurrence: date | None = None
    location_id: uuid.UUID
    organizer_id: uuid.UUID
    tag_ids: list[uuid.UUID]
    is_accessible: bool
    cost_is_free: bool
    cost_details: str | None = None
    registration_required: bool
    registration_details: str | None = None
    status: EventStatus
    expiry_date: date | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime


class OccurrenceResponse(BaseModel):
    event_id: uuid.UUID
    title: str
    date: dt.date
    time_from: str | None = None
    time_to: str | None = None
    location_id: uuid.UUID


@dataclass
class EventFilters:
    tag: str | None = None
    location_id: uuid.UUID | None = None
    organizer_id: uuid.UUID | None = None
    is_accessible: bool | None = None
    is_free: bool | None = None
    q: str | None = None
    date_from: date | None = None
    date_to: date | None = None
