"""Authentication and authorization helpers."""

from hr_system.auth.permissions import AuthUser, has_permission
from hr_system.auth.security import (
    AUTH_COOKIE_NAME,
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

__all__ = [
    "AUTH_COOKIE_NAME",
    "AuthUser",
    "create_access_token",
    "decode_access_token",
    "get_password_hash",
    "has_permission",
    "verify_password",
]
