import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.auth.models import Role, User
from moafinder.auth.schemas import (
    AdminUserCreate,
    AdminUserUpdate,
    TokenRefreshRequest,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from moafinder.auth.service import (
    admin_update_user,
    authenticate_user,
    create_user,
    get_user,
    list_users,
    refresh_tokens,
    register_user,
    revoke_refresh_token,
    update_profile,
)
from moafinder.config import Settings
from moafinder.dependencies import get_current_user, get_db, get_settings, require_role

router = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role([Role.ADMIN]))]


def _user_payload(user: User) -> dict:
    return {"data": UserResponse.model_validate(user)}


@router.post("/register", status_code=201)
async def register(user_data: UserCreate, db: DbSession) -> dict:
    user = await register_user(db, user_data)
    return _user_payload(user)


@router.post("/login")
async def login(credentials: UserLogin, db: DbSession, settings: AppSettings) -> dict:
    tokens = await authenticate_user(db, credentials.email, credentials.password, settings)
    return {"data": tokens}


@router.post("/refresh")
async def refresh(body: TokenRefreshRequest, db: DbSession, settings: AppSettings) -> dict:
    tokens = await refresh_tokens(db, body.refresh_token, settings)
    return {"data": tokens}


@router.post("/logout")
async def logout(body: TokenRefreshRequest, db: DbSession, _: CurrentUser) -> dict:
    await revoke_refresh_token(db, body.refresh_token)
    return {"data": {"message": "Logged out successfully"}}


@router.get("/me")
async def get_me(current_user: CurrentUser) -> dict:
    return _user_payload(current_user)


@router.put("/me")
async def update_me(updates: UserUpdate, current_user: CurrentUser, db: DbSession) -> dict:
    user = await update_profile(db, current_user, updates)
    return _user_payload(user)


@router.get("/users")
async def get_users(_: AdminUser, db: DbSession) -> dict:
    users = await list_users(db)
    return {"data": [UserResponse.model_validate(u) for u in users]}


@router.post("/users", status_code=201)
async def add_user(body: AdminUserCreate, _: AdminUser, db: DbSession) -> dict:
    user = await create_user(db, body)
    return _user_payload(user)


@router.put("/users/{user_id}")
async def edit_user(
    user_id: uuid.UUID,
    body: AdminUserUpdate,
    _: AdminUser,
    db: DbSession,
) -> dict:
    user = await admin_update_user(db, user_id, body)
    return _user_payload(user)


@router.get("/users/{user_id}")
async def read_user(user_id: uuid.UUID, _: AdminUser, db: DbSession) -> dict:
    return _user_payload(await get_user(db, user_id))
