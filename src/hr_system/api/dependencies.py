"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hr_system.auth.permissions import AuthUser, has_any_permission, has_permission
from hr_system.auth.security import AUTH_COOKIE_NAME, decode_access_token
from hr_system.database import init_db

# HTTP Bearer token security; the auth cookie is the fallback
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back on close.
    """
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthUser:
    """Authenticated user from the Authorization header or the auth cookie."""
    token = credentials.credentials if credentials else request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = decode_access_token(token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_permission(permission: str) -> Callable:
    """Dependency factory: 401 without a valid token, 403 without ``permission``."""

    async def checker(user: Annotated[AuthUser, Depends(get_current_user)]) -> AuthUser:
        if not has_permission(user, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return user

    return checker


def require_any_permission(*permissions: str) -> Callable:
    """Like ``require_permission``, satisfied by any one of ``permissions``."""

    async def checker(user: Annotated[AuthUser, Depends(get_current_user)]) -> AuthUser:
        if not has_any_permission(user, permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: one of {', '.join(permissions)}",
            )
        return user

    return checker


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]


def parse_scope(value: str | None, none_token: str) -> tuple[UUID | None, bool]:
    """Parse a filter that is either an id or ``none_token`` (meaning "no reference").

    Returns ``(id, is_none)``.
    """
    if value is None or value == "":
        return None, False
    if value == none_token:
        return None, True
    try:
        return UUID(value), False
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid id: {value}",
        )
