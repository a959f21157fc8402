import uuid
from datetime import date, timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.config import Settings
from moafinder.core.access import Subject
from moafinder.core.pagination import PaginationParams, build_pagination_meta, get_pagination
from moafinder.dependencies import get_db, get_optional_subject, get_settings, get_subject
from moafinder.events.schemas import EventCreate, EventFilters, EventUpdate
from moafinder.events.service import (
    create_event,
    delete_event,
    event_to_response,
    get_visible_event,
    list_events,
    list_occurrences,
    list_upcoming,
    update_event,
)

router = APIRouter()


def _horizon(settings: Settings) -> tuple[date, date]:
    today = settings.today()
    return today, today + timedelta(days=settings.default_horizon_days)


@router.get("")
async def get_events(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    subject: Annotated[Optional[Subject], Depends(get_optional_subject)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    tag: Optional[str] = Query(None, description="Tag slug"),
    location_id: Optional[uuid.UUID] = Query(None),
    organizer_id: Optional[uuid.UUID] = Query(None),
    is_accessible: Optional[bool] = Query(None),
    is_free: Optional[bool] = Query(None),
    q: Optional[str] = Query(None, max_length=100),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
) -> dict:
    filters = EventFilters(
        tag=tag,
        location_id=location_id,
        organizer_id=organizer_id,
        is_accessible=is_accessible,
        is_free=is_free,
        q=q,
        date_from=date_from,
        date_to=date_to,
    )
    today, horizon_end = _horizon(settings)
    events, total_count = await list_events(
        db,
        subject,
        filters,
        today,
        pagination,
        settings.default_horizon_days,
        settings.max_horizon_days,
    )
    return {
        "data": [event_to_response(e, today, horizon_end) for e in events],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.post("", status_code=201)
async def add_event(
    body: EventCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    event = await create_event(db, subject, body)
    return {"data": event_to_response(event, *_horizon(settings))}


@router.get("/upcoming")
async def get_upcoming_occurrences(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    subject: Annotated[Optional[Subject], Depends(get_optional_subject)],
    days: int = Query(14, ge=1, le=366),
) -> dict:
    entries = await list_upcoming(db, subject, settings.today(), days)
    return {"data": entries}


@router.get("/{event_id}")
async def get_single_event(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    subject: Annotated[Optional[Subject], Depends(get_optional_subject)],
) -> dict:
    today, horizon_end = _horizon(settings)
    event = await get_visible_event(db, subject, event_id, today)
    return {"data": event_to_response(event, today, horizon_end)}


@router.get("/{event_id}/occurrences")
async def get_event_occurrences(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    subject: Annotated[Optional[Subject], Depends(get_optional_subject)],
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
) -> dict:
    dates = await list_occurrences(
        db,
        subject,
        event_id,
        settings.today(),
        date_from,
        date_to,
        settings.default_horizon_days,
        settings.max_horizon_days,
    )
    return {"data": dates}


@router.put("/{event_id}")
async def edit_event(
    event_id: uuid.UUID,
    body: EventUpdate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict:
    event = await update_event(db, subject, event_id, body)
    return {"data": event_to_response(event, *_horizon(settings))}


@router.delete("/{event_id}")
async def remove_event(
    event_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await delete_event(db, subject, event_id)
    return {"data": {"message": "Event deleted"}}
