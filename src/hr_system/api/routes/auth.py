"""Login, logout and the current user's own account."""

from fastapi import APIRouter, HTTPException, Response, status

from hr_system.api.dependencies import CurrentUser, DbSession
from hr_system.api.schemas import (
    ApiResponse,
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    TokenUserResponse,
    UserResponse,
)
from hr_system.auth.permissions import AuthUser
from hr_system.auth.security import AUTH_COOKIE_NAME, create_access_token, token_lifetime
from hr_system.config import get_settings
from hr_system.services import AccountLockedError, AuthenticationError, UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    responses={401: {"model": ErrorResponse}, 423: {"model": ErrorResponse}},
)
async def login(db: DbSession, payload: LoginRequest, response: Response) -> ApiResponse[LoginResponse]:
    """Exchange email and password for an access token (also set as a cookie)."""
    service = UserService(db)
    try:
        user = await service.authenticate(payload.email, payload.password)
    except (AuthenticationError, AccountLockedError):
        # keep the failed-attempt counter
        await db.commit()
        raise
    await db.commit()

    lifetime = token_lifetime(payload.remember_me)
    token = create_access_token(
        AuthUser(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            permissions=list(user.permissions or []),
        ),
        expires_delta=lifetime,
    )
    max_age = int(lifetime.total_seconds())
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        secure=not get_settings().debug,
        samesite="strict",
    )
    return ApiResponse[LoginResponse](
        data=LoginResponse(user=UserResponse.model_validate(user), token=token, expires_in=max_age),
        message="Logged in successfully",
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the auth cookie."""
    response.delete_cookie(AUTH_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


@router.get("/verify", response_model=ApiResponse[TokenUserResponse])
async def verify(user: CurrentUser) -> ApiResponse[TokenUserResponse]:
    """Return the identity carried by the current token."""
    return ApiResponse[TokenUserResponse](
        data=TokenUserResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            permissions=user.permissions,
            is_admin=user.is_admin,
        )
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserResponse],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def profile(db: DbSession, current: CurrentUser) -> ApiResponse[UserResponse]:
    """The current user's account."""
    user = await UserService(db).get_user(current.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ApiResponse[UserResponse](data=UserResponse.model_validate(user))


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def change_password(
    db: DbSession, current: CurrentUser, payload: ChangePasswordRequest
) -> MessageResponse:
    """Change the current user's password after verifying the old one."""
    await UserService(db).change_password(
        current.id, payload.current_password, payload.new_password
    )
    await db.commit()
    return MessageResponse(message="Password changed successfully")
