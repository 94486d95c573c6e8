"""Institution subscription endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from hr_system.services import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

can_view = [Depends(require_permission("institutions_view"))]
can_edit = [Depends(require_permission("institutions_edit"))]


@router.get("", response_model=ListResponse[SubscriptionResponse], dependencies=can_view)
async def list_subscriptions(
    db: DbSession, institution_id: UUID | None = None
) -> ListResponse[SubscriptionResponse]:
    rows = await SubscriptionService(db).list_subscriptions(institution_id)
    items = [SubscriptionResponse.from_row(r) for r in rows]
    return ListResponse[SubscriptionResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[SubscriptionResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def create_subscription(
    db: DbSession, payload: SubscriptionCreate
) -> ApiResponse[SubscriptionResponse]:
    """Create a subscription; its status follows from the expiry date."""
    row = await SubscriptionService(db).create_subscription(payload.model_dump())
    await db.commit()
    return ApiResponse[SubscriptionResponse](
        data=SubscriptionResponse.from_row(row), message="Subscription created successfully"
    )


@router.get("/expiring", response_model=ListResponse[SubscriptionResponse], dependencies=can_view)
async def expiring_subscriptions(
    db: DbSession, days: Annotated[int, Query(ge=0, le=3650)] = 30
) -> ListResponse[SubscriptionResponse]:
    rows = await SubscriptionService(db).expiring(days)
    items = [SubscriptionResponse.from_row(r) for r in rows]
    return ListResponse[SubscriptionResponse](data=items, count=len(items))


@router.get(
    "/{subscription_id}",
    response_model=ApiResponse[SubscriptionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_subscription(
    db: DbSession, subscription_id: Annotated[UUID, Path()]
) -> ApiResponse[SubscriptionResponse]:
    row = await SubscriptionService(db).get_subscription(subscription_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
    return ApiResponse[SubscriptionResponse](data=SubscriptionResponse.from_row(row))


@router.put(
    "/{subscription_id}",
    response_model=ApiResponse[SubscriptionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def update_subscription(
    db: DbSession, subscription_id: Annotated[UUID, Path()], payload: SubscriptionUpdate
) -> ApiResponse[SubscriptionResponse]:
    row = await SubscriptionService(db).update_subscription(
        subscription_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ApiResponse[SubscriptionResponse](
        data=SubscriptionResponse.from_row(row), message="Subscription updated successfully"
    )


@router.delete(
    "/{subscription_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def delete_subscription(
    db: DbSession, subscription_id: Annotated[UUID, Path()]
) -> MessageResponse:
    await SubscriptionService(db).delete_subscription(subscription_id)
    await db.commit()
    return MessageResponse(message="Subscription deleted successfully")
