from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.auth.models import User
from moafinder.core.access import (
    Policy,
    Subject,
    allow,
    any_of,
    authenticated,
    ensure_allowed,
    filter_writable,
    is_admin,
    is_staff,
    owns,
)
from moafinder.core.exceptions import ConflictError, NotFoundError
from moafinder.core.pagination import PaginationParams, count_query
from moafinder.locations.models import location_organizations
from moafinder.organizations.models import MembershipRequest, MembershipStatus, Organization
from moafinder.organizations.schemas import (
    MembershipDecision,
    MembershipRequestCreate,
    OrganizationCreate,
    OrganizationUpdate,
)

logger = logging.getLogger(__name__)

ORGANIZATION_POLICY = Policy(
    name="organization",
    read=allow,
    create=is_admin,
    update=any_of(is_staff, owns("owner_id")),
    delete=is_admin,
    fields={
        "approved": is_staff,
        "owner_id": is_admin,
    },
)

MEMBERSHIP_POLICY = Policy(
    name="membership request",
    read=any_of(is_staff, owns("user_id")),
    create=authenticated,
    update=is_staff,
    delete=owns("user_id"),
)


async def create_organization(
    db: AsyncSession, subject: Subject | None, data: OrganizationCreate
) -> Organization:
    ensure_allowed(ORGANIZATION_POLICY, "create", subject)
    organization = Organization(**data.model_dump(), owner_id=subject.id)
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


async def list_organizations(
    db: AsyncSession,
    approved: bool | None = None,
    pagination: PaginationParams | None = None,
) -> tuple[list[Organization], int]:
    query = select(Organization)
    if approved is not None:
        query = query.where(Organization.approved == approved)

    total_count = await db.scalar(count_query(query)) or 0

    query = query.order_by(Organization.name.asc())
    if pagination is not None:
        query = pagination.apply(query)
    result = await db.execute(query)
    return list(result.scalars().all()), total_count


async def get_organization(db: AsyncSession, organization_id: uuid.UUID) -> Organization:
    organization = await db.get(Organization, organization_id)
    if organization is None:
        raise NotFoundError("Organization", str(organization_id))
    return organization


async def get_organizations_by_ids(
    db: AsyncSession, organization_ids: list[uuid.UUID]
) -> list[Organization]:
    if not organization_ids:
        return []
    result = await db.execute(select(Organization).where(Organization.id.in_(organization_ids)))
    organizations = list(result.scalars().all())
    missing = set(organization_ids) - {org.id for org in organizations}
    if missing:
        raise NotFoundError("Organization", str(sorted(missing, key=str)[0]))
    return organizations


async def update_organization(
    db: AsyncSession,
    subject: Subject | None,
    organization_id: uuid.UUID,
    data: OrganizationUpdate,
) -> Organization:
    organization = await get_organization(db, organization_id)
    ensure_allowed(ORGANIZATION_POLICY, "update", subject, organization)
    update_data = filter_writable(
        ORGANIZATION_POLICY, subject, organization, data.model_dump(exclude_unset=True)
    )
    for field, value in update_data.items():
        if value is None and field in ("name", "email", "city", "approved"):
            continue
        setattr(organization, field, value)
    await db.commit()
    await db.refresh(organization)
    return organization


async def _locations_only_run_by(db: AsyncSession, organization_id: uuid.UUID) -> list[uuid.UUID]:
    links = location_organizations.c
    linked = select(links.location_id).where(links.organization_id == organization_id)
    result = await db.execute(
        select(links.location_id)
        .where(links.location_id.in_(linked))
        .group_by(links.location_id)
        .having(func.count() == 1)
    )
    return list(result.scalars().all())


async def delete_organization(
    db: AsyncSession, subject: Subject | None, organization_id: uuid.UUID
) -> None:
    organization = await get_organization(db, organization_id)
    ensure_allowed(ORGANIZATION_POLICY, "delete", subject, organization)
    orphaned = await _locations_only_run_by(db, organization_id)
    if orphaned:
        raise ConflictError(
            f"Organization is the only organization of {len(orphaned)} location(s); "
            "assign them another organization first."
        )
    await db.delete(organization)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Organization still organizes events.") from None


# ---------------------------------------------------------------------------
# Membership requests
# ---------------------------------------------------------------------------


async def request_membership(
    db: AsyncSession,
    subject: Subject | None,
    organization_id: uuid.UUID,
    data: MembershipRequestCreate,
) -> MembershipRequest:
    ensure_allowed(MEMBERSHIP_POLICY, "create", subject)
    await get_organization(db, organization_id)
    if organization_id in subject.organization_ids:
        raise ConflictError("You are already a member of this organization.")

    pending = await db.execute(
        select(MembershipRequest.id).where(
            MembershipRequest.organization_id == organization_id,
            MembershipRequest.user_id == subject.id,
            MembershipRequest.status == MembershipStatus.PENDING,
        )
    )
    if pending.first() is not None:
        raise ConflictError("You already have a pending request for this organization.")

    membership = MembershipRequest(
        organization_id=organization_id,
        user_id=subject.id,
        message=data.message,
    )
    db.add(membership)
    await db.commit()
    await db.refresh(membership)
    logger.info("User %s asked to join organization %s", subject.id, organization_id)
    return membership


async def list_membership_requests(
    db: AsyncSession,
    subject: Subject | None,
    organization_id: uuid.UUID,
    status: MembershipStatus | None = None,
    pagination: PaginationParams | None = None,
) -> tuple[list[MembershipRequest], int]:
    """Requests for one organization; visible to staff and the organization's owner."""
    organization = await get_organization(db, organization_id)
    ensure_allowed(ORGANIZATION_POLICY, "update", subject, organization)

    query = select(MembershipRequest).where(MembershipRequest.organization_id == organization_id)
    if status is not None:
        query = query.where(MembershipRequest.status == status)

    total_count = await db.scalar(count_query(query)) or 0

    query = query.order_by(MembershipRequest.created_at.asc())
    if pagination is not None:
        query = pagination.apply(query)
    result = await db.execute(query)
    return list(result.scalars().all()), total_count


async def get_membership_request(
    db: AsyncSession, organization_id: uuid.UUID, request_id: uuid.UUID
) -> MembershipRequest:
    membership = await db.get(MembershipRequest, request_id)
    if membership is None or membership.organization_id != organization_id:
        raise NotFoundError("MembershipRequest", str(request_id))
    return membership


async def decide_membership(
    db: AsyncSession,
    subject: Subject | None,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
    decision: MembershipDecision,
) -> MembershipRequest:
    membership = await get_membership_request(db, organization_id, request_id)
    ensure_allowed(MEMBERSHIP_POLICY, "update", subject, membership)
    if membership.status is not MembershipStatus.PENDING:
        raise ConflictError(f"Request was already {membership.status.value}.")

    approved = decision.action == "approve"
    membership.status = MembershipStatus.APPROVED if approved else MembershipStatus.REJECTED
    membership.decided_by_id = subject.id
    membership.decided_at = datetime.now(timezone.utc)

    if approved:
        user = await db.get(User, membership.user_id)
        # Members without a primary organization get this one.
        if user is not None and user.organization_id is None:
            user.organization_id = organization_id

    await db.commit()
    await db.refresh(membership)
    logger.info(
        "Membership request %s for organization %s %s by %s",
        request_id,
        organization_id,
        membership.status.value,
        subject.id,
    )
    return membership


async def withdraw_membership_request(
    db: AsyncSession,
    subject: Subject | None,
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
) -> None:
    membership = await get_membership_request(db, organization_id, request_id)
    ensure_allowed(MEMBERSHIP_POLICY, "delete", subject, membership)
    if membership.status is not MembershipStatus.PENDING:
        raise ConflictError("Only pending requests can be withdrawn.")
    await db.delete(membership)
    await db.commit()
