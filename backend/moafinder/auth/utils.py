from __future__ import annotations

import hashlib
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from moafinder.config import Settings

MIN_PASSWORD_LENGTH = 12
_PASSWORD_CLASSES = (r"[A-Z]", r"[a-z]", r"[0-9]", r"[^A-Za-z0-9]")

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPayload:
    sub: uuid.UUID
    kind: str
    role: str | None
    exp: datetime


def is_strong_password(value: object) -> bool:
    """At least 12 characters with upper, lower, digit and special character."""
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        return False
    return all(re.search(pattern, value) for pattern in _PASSWORD_CLASSES)


def hash_password(password: str) -> str:
    salted = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return salted.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def _encode(
    user_id: uuid.UUID, kind: str, lifetime: timedelta, settings: Settings, **claims
) -> str:
    claims.update(
        sub=str(user_id),
        type=kind,
        exp=datetime.now(timezone.utc) + lifetime,
    )
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(user_id: uuid.UUID, role: str, settings: Settings) -> str:
    lifetime = timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(user_id, ACCESS, lifetime, settings, role=role)


def create_refresh_token(user_id: uuid.UUID, settings: Settings) -> str:
    lifetime = timedelta(days=settings.refresh_token_expire_days)
    # jti keeps two tokens issued in the same second distinct
    return _encode(user_id, REFRESH, lifetime, settings, jti=uuid.uuid4().hex)


def decode_token(
    token: str, settings: Settings, expected_type: str = ACCESS
) -> TokenPayload | None:
    """Verified payload of ``token``, or None when it is invalid, expired or of another type."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        if claims.get("type") != expected_type:
            return None
        return TokenPayload(
            sub=uuid.UUID(claims["sub"]),
            kind=claims["type"],
            role=claims.get("role"),
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except (JWTError, ValueError, KeyError):
        return None


def hash_token(token: str) -> str:
    """SHA-256 digest under which a refresh token is stored."""
    return hashlib.sha256(token.encode()).hexdigest()
