from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.auth.models import DEFAULT_ROLE, RefreshToken, User
from moafinder.auth.schemas import (
    AdminUserCreate,
    AdminUserUpdate,
    TokenResponse,
    UserCreate,
    UserUpdate,
)
from moafinder.auth.utils import (
    REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_token,
    verify_password,
)
from moafinder.config import Settings
from moafinder.core.exceptions import ConflictError, NotFoundError, ValidationError
from moafinder.organizations.models import Organization

logger = logging.getLogger(__name__)


async def _ensure_unique_email(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise ConflictError(f"A user with email {email} already exists.")


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """Self-service sign-up. The role is always the default organizer role."""
    await _ensure_unique_email(db, user_data.email)

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        name=user_data.name,
        role=DEFAULT_ROLE,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def create_user(db: AsyncSession, user_data: AdminUserCreate) -> User:
    """Admin-created account with an explicit role and organization."""
    await _ensure_unique_email(db, user_data.email)
    if user_data.organization_id is not None:
        await _get_organization(db, user_data.organization_id)

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        name=user_data.name,
        role=user_data.role,
        organization_id=user_data.organization_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", str(user_id))
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def update_profile(db: AsyncSession, user: User, updates: UserUpdate) -> User:
    if updates.password is not None:
        if not updates.current_password or not verify_password(
            updates.current_password, user.hashed_password
        ):
            raise ValidationError("Current password is incorrect.", code="INVALID_PASSWORD")
        user.hashed_password = hash_password(updates.password)
        # Sessions opened with the old password end here.
        await db.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user.id, RefreshToken.revoked == False)  # noqa: E712
            .values(revoked=True)
        )
        logger.info("User %s changed their password", user.id)
    if updates.name is not None:
        user.name = updates.name
    await db.commit()
    await db.refresh(user)
    return user


async def admin_update_user(
    db: AsyncSession, user_id: uuid.UUID, updates: AdminUserUpdate
) -> User:
    user = await get_user(db, user_id)
    update_data = updates.model_dump(exclude_unset=True)
    if update_data.get("organization_id") is not None:
        await _get_organization(db, update_data["organization_id"])
    for field, value in update_data.items():
        if field in ("role", "disabled") and value is None:
            continue
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user


async def _get_organization(db: AsyncSession, organization_id: uuid.UUID) -> Organization:
    organization = await db.get(Organization, organization_id)
    if organization is None:
        raise NotFoundError("Organization", str(organization_id))
    return organization


async def _issue_tokens(db: AsyncSession, user: User, settings: Settings) -> TokenResponse:
    access_token = create_access_token(user.id, user.role.value, settings)
    refresh_token = create_refresh_token(user.id, settings)

    db.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=datetime.now(timezone.utc)
            + timedelta(days=settings.refresh_token_expire_days),
        )
    )
    await db.commit()
    return TokenResponse(access_token=access_token, refresh_token=refresh_token)


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
    settings: Settings,
) -> TokenResponse:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.hashed_password):
        raise ValidationError("Invalid email or password.")

    if user.disabled:
        logger.warning("Login attempt for disabled user %s", user.id)
        raise ValidationError("Account is disabled.")

    return await _issue_tokens(db, user, settings)


async def refresh_tokens(
    db: AsyncSession,
    refresh_token: str,
    settings: Settings,
) -> TokenResponse:
    token_data = decode_token(refresh_token, settings, expected_type=REFRESH)
    if token_data is None:
        raise ValidationError("Invalid or expired refresh token.")

    result = await db.execute(
        select(RefreshToken).where(
            RefreshToken.token_hash == hash_token(refresh_token),
            RefreshToken.revoked == False,  # noqa: E712
        )
    )
    stored_token = result.scalar_one_or_none()
    if stored_token is None:
        raise ValidationError("Refresh token not found or already revoked.")

    expires_at = stored_token.expires_at
    if expires_at.tzinfo is None:
        # SQLite drops the offset on the way back.
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < datetime.now(timezone.utc):
        raise ValidationError("Refresh token has expired.")

    stored_token.revoked = True

    result = await db.execute(select(User).where(User.id == token_data.sub))
    user = result.scalar_one_or_none()
    if user is None or user.disabled:
        raise ValidationError("User not found or disabled.")

    return await _issue_tokens(db, user, settings)


async def revoke_refresh_token(db: AsyncSession, refresh_token: str) -> None:
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_token(refresh_token))
    )
    stored_token = result.scalar_one_or_none()
    if stored_token:
        stored_token.revoked = True
        await db.commit()
