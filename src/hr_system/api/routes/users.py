"""User administration endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import CurrentUser, DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    UserCreate,
    UserResponse,
    UserStatsResponse,
    UserUpdate,
)
from hr_system.models.enums import UserRole, UserStatus
from hr_system.services import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=ListResponse[UserResponse],
    dependencies=[Depends(require_permission("users_view"))],
)
async def list_users(
    db: DbSession,
    search: str | None = None,
    role: UserRole | None = None,
    status_filter: Annotated[UserStatus | None, Query(alias="status")] = None,
) -> ListResponse[UserResponse]:
    """List users, newest first."""
    users = await UserService(db).list_users(
        search=search,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
    )
    items = [UserResponse.model_validate(u) for u in users]
    return ListResponse[UserResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("users_add"))],
)
async def create_user(db: DbSession, payload: UserCreate) -> ApiResponse[UserResponse]:
    user = await UserService(db).create_user(payload.model_dump())
    await db.commit()
    return ApiResponse[UserResponse](
        data=UserResponse.model_validate(user), message="User created successfully"
    )


@router.get(
    "/stats",
    response_model=ApiResponse[UserStatsResponse],
    dependencies=[Depends(require_permission("users_view"))],
)
async def user_stats(db: DbSession) -> ApiResponse[UserStatsResponse]:
    stats = await UserService(db).statistics()
    return ApiResponse[UserStatsResponse](data=UserStatsResponse(**stats))


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("users_view"))],
)
async def get_user(
    db: DbSession, user_id: Annotated[UUID, Path()]
) -> ApiResponse[UserResponse]:
    user = await UserService(db).get_user(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return ApiResponse[UserResponse](data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("users_edit"))],
)
async def update_user(
    db: DbSession, user_id: Annotated[UUID, Path()], payload: UserUpdate
) -> ApiResponse[UserResponse]:
    """Update a user. Omitted fields are left unchanged."""
    user = await UserService(db).update_user(user_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse[UserResponse](
        data=UserResponse.model_validate(user), message="User updated successfully"
    )


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("users_delete"))],
)
async def delete_user(
    db: DbSession, current: CurrentUser, user_id: Annotated[UUID, Path()]
) -> MessageResponse:
    """Delete a user. Users cannot delete themselves."""
    await UserService(db).delete_user(user_id, current.id)
    await db.commit()
    return MessageResponse(message="User deleted successfully")
