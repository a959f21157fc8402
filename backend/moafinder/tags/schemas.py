import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from moafinder.tags.models import TagCategory

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"
SLUG = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=100, pattern=SLUG)
    category: TagCategory | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)


class TagUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, min_length=1, max_length=100, pattern=SLUG)
    category: TagCategory | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)


class TagResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    category: TagCategory | None = None
    color: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
