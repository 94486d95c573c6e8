"""Password hashing and JWT access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from hr_system.auth.permissions import AuthUser
from hr_system.config import get_settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

AUTH_COOKIE_NAME = "auth-token"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def token_lifetime(remember_me: bool = False) -> timedelta:
    settings = get_settings()
    if remember_me:
        return timedelta(days=settings.remember_me_days)
    return timedelta(hours=settings.access_token_hours)


def create_access_token(user: AuthUser, expires_delta: timedelta | None = None) -> str:
    """Create a signed access token for ``user``.

    The token carries the role and permission list so that permission checks
    do not need a database round trip.
    """
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or token_lifetime())
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "permissions": list(user.permissions),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AuthUser | None:
    """Return the token's user, or None for an invalid or expired token."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        return None
    return AuthUser(
        id=user_id,
        email=payload.get("email", ""),
        name=payload.get("name", ""),
        role=payload.get("role", ""),
        permissions=list(payload.get("permissions") or []),
    )
