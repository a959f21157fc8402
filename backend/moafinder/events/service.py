from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta

from sqlalchemy import and_, or_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import (
    Policy,
    Subject,
    any_of,
    authenticated,
    ensure_allowed,
    filter_writable,
    in_organization,
    is_admin,
    is_staff,
)
from moafinder.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from moafinder.core.pagination import PaginationParams, count_query
from moafinder.events.labels import describe_recurrence, format_time_label
from moafinder.events.models import Event, EventStatus, event_tags
from moafinder.events.recurrence import (
    EventType,
    OnceRecurrence,
    RecurrenceDescriptor,
    compute_expiry_date,
    descriptor_to_fields,
    next_occurrence,
    occurrences_between,
)
from moafinder.events.schemas import (
    EventCreate,
    EventFilters,
    EventResponse,
    EventUpdate,
    OccurrenceResponse,
    RecurrenceFields,
    RecurrenceResponse,
)
from moafinder.locations.service import get_location
from moafinder.organizations.service import get_organization
from moafinder.tags.models import Tag
from moafinder.tags.service import get_tags_by_ids

logger = logging.getLogger(__name__)

EVENT_POLICY = Policy(
    name="event",
    read=any_of(is_staff, in_organization("organizer_id")),
    create=authenticated,
    update=any_of(is_staff, in_organization("organizer_id")),
    delete=any_of(is_staff, in_organization("organizer_id")),
    fields={
        "status": is_staff,
        "organizer_id": is_admin,
    },
)

# Statuses an organizer may pick when submitting a listing.
SUBMISSION_STATUSES = {EventStatus.DRAFT, EventStatus.PENDING}


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


def is_listed(event: Event, today: date) -> bool:
    """Approved and not yet expired: visible to everyone."""
    return event.status == EventStatus.APPROVED and (
        event.expiry_date is None or event.expiry_date >= today
    )


def can_read_event(subject: Subject | None, event: Event, today: date) -> bool:
    return is_listed(event, today) or EVENT_POLICY.allows("read", subject, event)


def visibility_clause(subject: Subject | None, today: date):
    """SQL counterpart of :func:`can_read_event` for list queries."""
    listed = and_(
        Event.status == EventStatus.APPROVED,
        or_(Event.expiry_date.is_(None), Event.expiry_date >= today),
    )
    if is_staff(subject):
        return true()
    if authenticated(subject) and subject.organization_ids:
        return or_(listed, Event.organizer_id.in_(list(subject.organization_ids)))
    return listed


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------


def event_to_response(event: Event, today: date, horizon_end: date) -> EventResponse:
    descriptor = event.recurrence
    recurrence = None
    if not isinstance(descriptor, OnceRecurrence):
        fields = descriptor_to_fields(descriptor)
        fields.pop("event_type")
        recurrence = RecurrenceResponse(**fields)

    return EventResponse(
        id=event.id,
        title=event.title,
        subtitle=event.subtitle,
        description=event.description,
        event_type=event.event_type,
        recurrence=recurrence,
        recurrence_label=describe_recurrence(
            descriptor, format_time_label(event.time_from, event.time_to)
        ),
        start_date=event.start_date,
        end_date=event.end_date,
        time_from=event.time_from,
        time_to=event.time_to,
        next_occurrence=next_occurrence(event.start_date, descriptor, today, horizon_end),
        location_id=event.location_id,
        organizer_id=event.organizer_id,
        tag_ids=event.tag_ids,
        is_accessible=event.is_accessible,
        cost_is_free=event.cost_is_free,
        cost_details=event.cost_details,
        registration_required=event.registration_required,
        registration_details=event.registration_details,
        status=event.status,
        expiry_date=event.expiry_date,
        created_by=event.created_by,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def resolve_window(
    date_from: date | None,
    date_to: date | None,
    today: date,
    default_days: int,
    max_days: int,
) -> tuple[date, date]:
    """Fill in a missing window bound and cap the window length.

    A missing start means today, a missing end means ``default_days`` after
    the start.
    """
    window_start = date_from or today
    window_end = date_to or window_start + timedelta(days=default_days)
    if window_end < window_start:
        raise ValidationError("date_to must not be before date_from.")
    if (window_end - window_start).days > max_days:
        raise ValidationError(f"Date windows are limited to {max_days} days.")
    return window_start, window_end


def occurs_within(event: Event, window_start: date, window_end: date) -> date | None:
    """First occurrence of ``event`` inside the window, if any."""
    return next(
        occurrences_between(event.start_date, event.recurrence, window_start, window_end),
        None,
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFoundError("Event", str(event_id))
    return event


async def get_visible_event(
    db: AsyncSession, subject: Subject | None, event_id: uuid.UUID, today: date
) -> Event:
    event = await get_event(db, event_id)
    # Hidden events look the same as missing ones.
    if not can_read_event(subject, event, today):
        raise NotFoundError("Event", str(event_id))
    return event


def _default_organizer(subject: Subject) -> uuid.UUID:
    if len(subject.organization_ids) == 1:
        return next(iter(subject.organization_ids))
    raise ValidationError("organizer_id is required.")


def _check_dates(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date.")


async def create_event(
    db: AsyncSession, subject: Subject | None, data: EventCreate
) -> Event:
    ensure_allowed(EVENT_POLICY, "create", subject)
    descriptor = data.to_descriptor()
    _check_dates(data.start_date, data.end_date)

    organizer_id = data.organizer_id or _default_organizer(subject)
    if not is_staff(subject) and organizer_id not in subject.organization_ids:
        raise ForbiddenError("Events can only be submitted for your own organizations.")
    await get_organization(db, organizer_id)
    await get_location(db, data.location_id)

    status = data.status or EventStatus.PENDING
    if not is_staff(subject) and status not in SUBMISSION_STATUSES:
        logger.info("Organizer %s requested status %s; keeping pending", subject.id, status.value)
        status = EventStatus.PENDING

    event = Event(
        title=data.title,
        subtitle=data.subtitle,
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        time_from=data.time_from,
        time_to=data.time_to,
        location_id=data.location_id,
        organizer_id=organizer_id,
        is_accessible=data.is_accessible,
        cost_is_free=data.cost_is_free,
        cost_details=data.cost_details,
        registration_required=data.registration_required,
        registration_details=data.registration_details,
        status=status,
        expiry_date=data.expiry_date
        or compute_expiry_date(data.start_date, data.end_date, descriptor.repeat_until),
        created_by=subject.id,
    )
    event.recurrence = descriptor
    event.tags = await get_tags_by_ids(db, list(dict.fromkeys(data.tag_ids)))
    db.add(event)
    await db.commit()
    logger.info("Created event %s (%s) with status %s", event.id, event.event_type.value, status.value)
    return await get_event(db, event.id)


def _merged_descriptor(event: Event, update_data: dict) -> RecurrenceDescriptor:
    event_type = update_data.get("event_type") or event.event_type
    fields = descriptor_to_fields(event.recurrence)
    fields.pop("event_type")
    fields.update(update_data.get("recurrence") or {})
    return RecurrenceFields(**fields).to_descriptor(EventType(event_type))


async def update_event(
    db: AsyncSession, subject: Subject | None, event_id: uuid.UUID, data: EventUpdate
) -> Event:
    event = await get_event(db, event_id)
    ensure_allowed(EVENT_POLICY, "update", subject, event)
    update_data = filter_writable(
        EVENT_POLICY, subject, event, data.model_dump(exclude_unset=True)
    )

    if "event_type" in update_data or "recurrence" in update_data:
        event.recurrence = _merged_descriptor(event, update_data)
    update_data.pop("event_type", None)
    update_data.pop("recurrence", None)

    tag_ids = update_data.pop("tag_ids", None)
    if tag_ids is not None:
        event.tags = await get_tags_by_ids(db, list(dict.fromkeys(tag_ids)))
    if update_data.get("location_id") is not None:
        await get_location(db, update_data["location_id"])
    if update_data.get("organizer_id") is not None:
        await get_organization(db, update_data["organizer_id"])

    for field, value in update_data.items():
        if value is None and not Event.__table__.c[field].nullable:
            continue
        setattr(event, field, value)
    _check_dates(event.start_date, event.end_date)

    await db.commit()
    return await get_event(db, event.id)


async def delete_event(db: AsyncSession, subject: Subject | None, event_id: uuid.UUID) -> None:
    event = await get_event(db, event_id)
    ensure_allowed(EVENT_POLICY, "delete", subject, event)
    await db.delete(event)
    await db.commit()
    logger.info("Deleted event %s", event_id)


def _apply_filters(query, filters: EventFilters):
    if filters.tag:
        tagged = (
            select(event_tags.c.event_id)
            .join(Tag, Tag.id == event_tags.c.tag_id)
            .where(Tag.slug == filters.tag)
        )
        query = query.where(Event.id.in_(tagged))
    if filters.location_id is not None:
        query = query.where(Event.location_id == filters.location_id)
    if filters.organizer_id is not None:
        query = query.where(Event.organizer_id == filters.organizer_id)
    if filters.is_accessible is not None:
        query = query.where(Event.is_accessible == filters.is_accessible)
    if filters.is_free is not None:
        query = query.where(Event.cost_is_free == filters.is_free)
    if filters.q:
        pattern = f"%{filters.q.strip()}%"
        query = query.where(
            or_(
                Event.title.ilike(pattern),
                Event.subtitle.ilike(pattern),
                Event.description.ilike(pattern),
            )
        )
    return query


async def list_events(
    db: AsyncSession,
    subject: Subject | None,
    filters: EventFilters,
    today: date,
    pagination: PaginationParams,
    default_days: int,
    max_days: int,
) -> tuple[list[Event], int]:
    """List visible events matching ``filters``.

    Without a date window events are ordered by start date and paged in SQL.
    With a window only events that actually occur inside it are kept, ordered
    by their first occurrence there.
    """
    query = _apply_filters(select(Event).where(visibility_clause(subject, today)), filters)

    if filters.date_from is None and filters.date_to is None:
        total_count = await db.scalar(count_query(query)) or 0
        query = pagination.apply(query.order_by(Event.start_date.asc(), Event.title.asc()))
        result = await db.execute(query)
        return list(result.scalars().all()), total_count

    window_start, window_end = resolve_window(
        filters.date_from, filters.date_to, today, default_days, max_days
    )
    result = await db.execute(query.where(Event.start_date <= window_end))
    matching = []
    for event in result.scalars().all():
        first = occurs_within(event, window_start, window_end)
        if first is not None:
            matching.append((first, event.title, event))
    matching.sort(key=lambda item: (item[0], item[1]))
    events = [event for _, _, event in matching]
    return pagination.slice(events), len(events)


async def list_occurrences(
    db: AsyncSession,
    subject: Subject | None,
    event_id: uuid.UUID,
    today: date,
    date_from: date | None,
    date_to: date | None,
    default_days: int,
    max_days: int,
) -> list[date]:
    event = await get_visible_event(db, subject, event_id, today)
    if date_from is None:
        date_from = max(today, event.start_date)
        # Only an explicitly inverted window is an error.
        if date_to is not None and date_to < date_from:
            return []
    window_start, window_end = resolve_window(date_from, date_to, today, default_days, max_days)
    return list(occurrences_between(event.start_date, event.recurrence, window_start, window_end))


async def list_upcoming(
    db: AsyncSession,
    subject: Subject | None,
    today: date,
    days: int,
) -> list[OccurrenceResponse]:
    """Every occurrence of the visible events in the next ``days`` days,
    in calendar order."""
    window_end = today + timedelta(days=days)
    result = await db.execute(
        select(Event).where(visibility_clause(subject, today), Event.start_date <= window_end)
    )
    entries: list[OccurrenceResponse] = []
    for event in result.scalars().all():
        for day in occurrences_between(event.start_date, event.recurrence, today, window_end):
            entries.append(
                OccurrenceResponse(
                    event_id=event.id,
                    title=event.title,
                    date=day,
                    time_from=event.time_from,
                    time_to=event.time_to,
                    location_id=event.location_id,
                )
            )
    entries.sort(key=lambda entry: (entry.date, entry.time_from or "", entry.title))
    return entries


async def archive_expired_events(db: AsyncSession, today: date) -> int:
    """Move approved events whose expiry date has passed to the archive."""
    result = await db.execute(
        update(Event)
        .where(
            Event.status == EventStatus.APPROVED,
            Event.expiry_date.is_not(None),
            Event.expiry_date < today,
        )
        .values(status=EventStatus.ARCHIVED)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
