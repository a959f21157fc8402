import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from moafinder.auth.models import DEFAULT_ROLE, Role
from moafinder.auth.utils import is_strong_password

PASSWORD_RULES = (
    "Password must be at least 12 characters and include upper, lower, "
    "number, and special character."
)


def _check_password(value: str) -> str:
    if not is_strong_password(value):
        raise ValueError(PASSWORD_RULES)
    return value


StrongPassword = Annotated[str, Field(max_length=128), AfterValidator(_check_password)]


class UserCreate(BaseModel):
    email: EmailStr
    password: StrongPassword
    name: str | None = Field(None, max_length=255)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str | None = None
    role: Role
    organization_id: uuid.UUID | None = None
    disabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    password: StrongPassword | None = None
    # Required whenever ``password`` is set.
    current_password: str | None = None


class AdminUserCreate(UserCreate):
    role: Role = DEFAULT_ROLE
    organization_id: uuid.UUID | None = None


class AdminUserUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)
    role: Role | None = None
    organization_id: uuid.UUID | None = None
    disabled: bool | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefreshRequest(BaseModel):
    refresh_token: str
