import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from moafinder.organizations.models import MembershipStatus


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    contact_person: str | None = Field(None, max_length=255)
    street: str | None = Field(None, max_length=255)
    number: str | None = Field(None, max_length=20)
    postal_code: str | None = Field(None, max_length=10)
    city: str = Field("Berlin", max_length=100)
    website: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)


class OrganizationUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    contact_person: str | None = Field(None, max_length=255)
    street: str | None = Field(None, max_length=255)
    number: str | None = Field(None, max_length=20)
    postal_code: str | None = Field(None, max_length=10)
    city: str | None = Field(None, max_length=100)
    website: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    approved: bool | None = None
    owner_id: uuid.UUID | None = None


class OrganizationResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID | None = None
    name: str
    email: str
    contact_person: str | None = None
    street: str | None = None
    number: str | None = None
    postal_code: str | None = None
    city: str
    website: str | None = None
    phone: str | None = None
    approved: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MembershipRequestCreate(BaseModel):
    message: str | None = Field(None, max_length=1000)


class MembershipDecision(BaseModel):
    action: Literal["approve", "reject"]


class MembershipRequestResponse(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    status: MembershipStatus
    message: str | None = None
    decided_by_id: uuid.UUID | None = None
    decided_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
