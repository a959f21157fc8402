import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class LocationCreate(BaseModel):
    organization_ids: list[uuid.UUID] = Field(default_factory=list)
    name: str = Field(min_length=1, max_length=255)
    short_name: str = Field(min_length=1, max_length=40)
    description: str | None = Field(None, max_length=1000)
    street: str = Field(min_length=1, max_length=255)
    number: str = Field(min_length=1, max_length=20)
    postal_code: str = Field(min_length=1, max_length=10)
    city: str = Field("Berlin", max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    map_x: float | None = Field(None, ge=0, le=100)
    map_y: float | None = Field(None, ge=0, le=100)
    opening_hours: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    homepage: str | None = Field(None, max_length=500)


class LocationUpdate(BaseModel):
    organization_ids: list[uuid.UUID] | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    short_name: str | None = Field(None, min_length=1, max_length=40)
    description: str | None = Field(None, max_length=1000)
    street: str | None = Field(None, min_length=1, max_length=255)
    number: str | None = Field(None, min_length=1, max_length=20)
    postal_code: str | None = Field(None, min_length=1, max_length=10)
    city: str | None = Field(None, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    map_x: float | None = Field(None, ge=0, le=100)
    map_y: float | None = Field(None, ge=0, le=100)
    opening_hours: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    homepage: str | None = Field(None, max_length=500)


class LocationResponse(BaseModel):
    id: uuid.UUID
    organization_ids: list[uuid.UUID]
    name: str
    short_name: str
    description: str | None = None
    street: str
    number: str
    postal_code: str
    city: str
    latitude: float | None = None
    longitude: float | None = None
    map_x: float | None = None
    map_y: float | None = None
    opening_hours: str | None = None
    email: str | None = None
    homepage: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
