from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import (
    Policy,
    Subject,
    allow,
    any_of,
    ensure_allowed,
    filter_writable,
    has_organization,
    is_admin,
    is_staff,
    shares_organization,
)
from moafinder.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from moafinder.core.pagination import PaginationParams, count_query
from moafinder.locations.models import Location, location_organizations
from moafinder.locations.schemas import LocationCreate, LocationUpdate
from moafinder.organizations.service import get_organizations_by_ids

LOCATION_POLICY = Policy(
    name="location",
    read=allow,
    create=any_of(is_staff, has_organization),
    update=any_of(is_admin, shares_organization("organization_ids")),
    delete=any_of(is_admin, shares_organization("organization_ids")),
    fields={"organization_ids": is_admin},
)

_REQUIRED_FIELDS = ("name", "short_name", "street", "number", "postal_code", "city")


async def create_location(
    db: AsyncSession, subject: Subject | None, data: LocationCreate
) -> Location:
    ensure_allowed(LOCATION_POLICY, "create", subject)

    organization_ids = list(dict.fromkeys(data.organization_ids))
    if not organization_ids:
        organization_ids = sorted(subject.organization_ids, key=str)
    elif not is_staff(subject) and not set(organization_ids) <= subject.organization_ids:
        raise ForbiddenError("Locations can only be assigned to your own organizations.")
    if not organization_ids:
        raise ValidationError("A location needs at least one organization.")

    location = Location(**data.model_dump(exclude={"organization_ids"}))
    location.organizations = await get_organizations_by_ids(db, organization_ids)
    db.add(location)
    await db.commit()
    return await get_location(db, location.id)


async def list_locations(
    db: AsyncSession,
    organization_id: uuid.UUID | None = None,
    pagination: PaginationParams | None = None,
) -> tuple[list[Location], int]:
    query = select(Location)
    if organization_id is not None:
        owned = select(location_organizations.c.location_id).where(
            location_organizations.c.organization_id == organization_id
        )
        query = query.where(Location.id.in_(owned))

    total_count = await db.scalar(count_query(query)) or 0

    query = query.order_by(Location.short_name.asc())
    if pagination is not None:
        query = pagination.apply(query)
    result = await db.execute(query)
    return list(result.scalars().all()), total_count


async def get_location(db: AsyncSession, location_id: uuid.UUID) -> Location:
    result = await db.execute(
        select(Location)
        .where(Location.id == location_id)
        .execution_options(populate_existing=True)
    )
    location = result.scalar_one_or_none()
    if location is None:
        raise NotFoundError("Location", str(location_id))
    return location


async def update_location(
    db: AsyncSession,
    subject: Subject | None,
    location_id: uuid.UUID,
    data: LocationUpdate,
) -> Location:
    location = await get_location(db, location_id)
    ensure_allowed(LOCATION_POLICY, "update", subject, location)
    update_data = filter_writable(
        LOCATION_POLICY, subject, location, data.model_dump(exclude_unset=True)
    )

    organization_ids = update_data.pop("organization_ids", None)
    if organization_ids is not None:
        if not organization_ids:
            raise ValidationError("A location needs at least one organization.")
        location.organizations = await get_organizations_by_ids(
            db, list(dict.fromkeys(organization_ids))
        )
    for field, value in update_data.items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(location, field, value)
    await db.commit()
    return await get_location(db, location.id)


async def delete_location(
    db: AsyncSession, subject: Subject | None, location_id: uuid.UUID
) -> None:
    location = await get_location(db, location_id)
    ensure_allowed(LOCATION_POLICY, "delete", subject, location)
    await db.delete(location)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Location is still used by events.") from None
