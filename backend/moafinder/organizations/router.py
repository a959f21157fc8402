import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.core.access import Subject
from moafinder.core.pagination import PaginationParams, build_pagination_meta, get_pagination
from moafinder.dependencies import get_db, get_subject
from moafinder.organizations.models import MembershipStatus
from moafinder.organizations.schemas import (
    MembershipDecision,
    MembershipRequestCreate,
    MembershipRequestResponse,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from moafinder.organizations.service import (
    create_organization,
    decide_membership,
    delete_organization,
    get_organization,
    list_membership_requests,
    list_organizations,
    request_membership,
    update_organization,
    withdraw_membership_request,
)

router = APIRouter()


@router.get("")
async def get_organizations(
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    approved: Optional[bool] = Query(None),
) -> dict:
    organizations, total_count = await list_organizations(db, approved, pagination)
    return {
        "data": [OrganizationResponse.model_validate(o) for o in organizations],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.post("", status_code=201)
async def add_organization(
    body: OrganizationCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    organization = await create_organization(db, subject, body)
    return {"data": OrganizationResponse.model_validate(organization)}


@router.get("/{organization_id}")
async def get_single_organization(
    organization_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    organization = await get_organization(db, organization_id)
    return {"data": OrganizationResponse.model_validate(organization)}


@router.put("/{organization_id}")
async def edit_organization(
    organization_id: uuid.UUID,
    body: OrganizationUpdate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    organization = await update_organization(db, subject, organization_id, body)
    return {"data": OrganizationResponse.model_validate(organization)}


@router.delete("/{organization_id}")
async def remove_organization(
    organization_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await delete_organization(db, subject, organization_id)
    return {"data": {"message": "Organization deleted"}}


@router.post("/{organization_id}/membership-requests", status_code=201)
async def ask_to_join(
    organization_id: uuid.UUID,
    body: MembershipRequestCreate,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    membership = await request_membership(db, subject, organization_id, body)
    return {"data": MembershipRequestResponse.model_validate(membership)}


@router.get("/{organization_id}/membership-requests")
async def get_membership_requests(
    organization_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    status: Optional[MembershipStatus] = Query(None),
) -> dict:
    requests, total_count = await list_membership_requests(
        db, subject, organization_id, status, pagination
    )
    return {
        "data": [MembershipRequestResponse.model_validate(r) for r in requests],
        "meta": build_pagination_meta(total_count, pagination),
    }


@router.put("/{organization_id}/membership-requests/{request_id}")
async def handle_membership_request(
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
    body: MembershipDecision,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    membership = await decide_membership(db, subject, organization_id, request_id, body)
    return {"data": MembershipRequestResponse.model_validate(membership)}


@router.delete("/{organization_id}/membership-requests/{request_id}")
async def withdraw_request(
    organization_id: uuid.UUID,
    request_id: uuid.UUID,
    subject: Annotated[Subject, Depends(get_subject)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await withdraw_membership_request(db, subject, organization_id, request_id)
    return {"data": {"message": "Membership request withdrawn"}}
