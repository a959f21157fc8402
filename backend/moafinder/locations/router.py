import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Subject
from moafinder.core.pagination import PaginationParams, build_pagination_meta, get_pagination
from moafinder.dependencies import get_db, get_subject
from moafinder.locations.schemas import LocationCreate, LocationResponse, LocationUpdate
from moafinder.locations.service import (
    create_location,
    delete_location,
    get_location,
    list_locations,
    update_location,
)

router = APIRouter()


@router.get("")
async def get_locations(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    organization_id: Optional[uuid.UUID] = Query(None),
) -> dict:
    locations, total_count = await list_locations(db, organization_id, pagination)
    return {
        "data": [LocationResponse.model_validate(loc) for loc in locations],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.post("", status_code=201)
async def add_location(
    body: LocationCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    location = await create_location(db, subject, body)
    return {"data": LocationResponse.model_validate(location)}


@router.get("/{location_id}")
async def get_single_location(
    location_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    location = await get_location(db, location_id)
    return {"data": LocationResponse.model_validate(location)}


@router.put("/{location_id}")
async def edit_location(
    location_id: uuid.UUID,
    body: LocationUpdate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    location = await update_location(db, subject, location_id, body)
    return {"data": LocationResponse.model_validate(location)}


@router.delete("/{location_id}")
async def remove_location(
    location_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await delete_location(db, subject, location_id)
    return {"data": {"message": "Location deleted"}}
