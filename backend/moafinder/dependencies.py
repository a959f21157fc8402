from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from moafinder.auth.models import Role, User
from moafinder.auth.utils import decode_token
from moafinder.config import Settings
from moafinder.core.access import Subject
from moafinder.organizations.models import MembershipRequest, MembershipStatus, Organization

security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncSession:
    async with request.app.state.session_factory() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def _user_from_token(db: AsyncSession, raw_token: str, settings: Settings) -> User:
    token_data = decode_token(raw_token, settings)
    if token_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    result = await db.execute(select(User).where(User.id == token_data.sub))
    user = result.scalar_one_or_none()

    if user is None or user.disabled:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or disabled",
        )
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    return await _user_from_token(db, credentials.credentials, settings)


async def get_optional_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security_optional)],
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[User]:
    """Resolve the caller if a bearer token was sent; public endpoints allow
    anonymous access."""
    if credentials is None:
        return None
    return await _user_from_token(db, credentials.credentials, settings)


async def build_subject(db: AsyncSession, user: User) -> Subject:
    """Snapshot a user's role and organizations (assigned, owned or joined)."""
    owned = await db.execute(select(Organization.id).where(Organization.owner_id == user.id))
    joined = await db.execute(
        select(MembershipRequest.organization_id).where(
            MembershipRequest.user_id == user.id,
            MembershipRequest.status == MembershipStatus.APPROVED,
        )
    )
    organization_ids = set(owned.scalars().all()) | set(joined.scalars().all())
    if user.organization_id is not None:
        organization_ids.add(user.organization_id)
    return Subject(
        id=user.id,
        role=user.role,
        organization_ids=frozenset(organization_ids),
        disabled=user.disabled,
    )


async def get_subject(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Subject:
    return await build_subject(db, user)


async def get_optional_subject(
    user: Annotated[Optional[User], Depends(get_optional_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[Subject]:
    if user is None:
        return None
    return await build_subject(db, user)


def require_role(allowed_roles: list[Role]):
    """Dependency factory that checks if the current user has one of the allowed roles."""

    async def check_role(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return check_role
