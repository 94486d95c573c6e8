"""Leave request endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import CurrentUser, DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    LeaveApproveRequest,
    LeaveCreate,
    LeaveResponse,
    LeaveStatsItem,
    LeaveUpdate,
    ListResponse,
    MessageResponse,
    RejectRequest,
)
from hr_system.models.enums import LeaveStatus, LeaveType
from hr_system.services import LeaveService

router = APIRouter(prefix="/leaves", tags=["leaves"])

can_view = [Depends(require_permission("leaves_view"))]
can_approve = [Depends(require_permission("leaves_approve"))]


@router.get("", response_model=ListResponse[LeaveResponse], dependencies=can_view)
async def list_leaves(
    db: DbSession,
    employee_id: UUID | None = None,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
    status_filter: Annotated[LeaveStatus | None, Query(alias="status")] = None,
    leave_type: LeaveType | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ListResponse[LeaveResponse]:
    rows = await LeaveService(db).list_leaves(
        employee_id=employee_id,
        institution_id=institution_id,
        branch_id=branch_id,
        status=status_filter.value if status_filter else None,
        leave_type=leave_type.value if leave_type else None,
        date_from=date_from,
        date_to=date_to,
    )
    items = [LeaveResponse.from_row(r) for r in rows]
    return ListResponse[LeaveResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[LeaveResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("leaves_request"))],
)
async def create_leave(db: DbSession, payload: LeaveCreate) -> ApiResponse[LeaveResponse]:
    """Request leave. The request starts pending."""
    row = await LeaveService(db).create_leave(payload.model_dump())
    await db.commit()
    return ApiResponse[LeaveResponse](
        data=LeaveResponse.from_row(row), message="Leave request created successfully"
    )


@router.get("/pending-count", response_model=ApiResponse[int], dependencies=can_view)
async def pending_leave_count(db: DbSession) -> ApiResponse[int]:
    return ApiResponse[int](data=await LeaveService(db).pending_count())


@router.get(
    "/stats/{employee_id}",
    response_model=ListResponse[LeaveStatsItem],
    dependencies=can_view,
)
async def employee_leave_stats(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> ListResponse[LeaveStatsItem]:
    """Approved leave per type for one employee in a year."""
    stats = await LeaveService(db).employee_stats(employee_id, year)
    items = [LeaveStatsItem(**s) for s in stats]
    return ListResponse[LeaveStatsItem](data=items, count=len(items))


@router.get(
    "/{leave_id}",
    response_model=ApiResponse[LeaveResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_leave(db: DbSession, leave_id: Annotated[UUID, Path()]) -> ApiResponse[LeaveResponse]:
    row = await LeaveService(db).get_leave(leave_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave request not found")
    return ApiResponse[LeaveResponse](data=LeaveResponse.from_row(row))


@router.put(
    "/{leave_id}",
    response_model=ApiResponse[LeaveResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("leaves_request"))],
)
async def update_leave(
    db: DbSession, leave_id: Annotated[UUID, Path()], payload: LeaveUpdate
) -> ApiResponse[LeaveResponse]:
    row = await LeaveService(db).update_leave(leave_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse[LeaveResponse](
        data=LeaveResponse.from_row(row), message="Leave request updated successfully"
    )


@router.delete(
    "/{leave_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("leaves_cancel"))],
)
async def delete_leave(db: DbSession, leave_id: Annotated[UUID, Path()]) -> MessageResponse:
    await LeaveService(db).delete_leave(leave_id)
    await db.commit()
    return MessageResponse(message="Leave request deleted successfully")


@router.post(
    "/{leave_id}/approve",
    response_model=ApiResponse[LeaveResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def approve_leave(
    db: DbSession,
    user: CurrentUser,
    leave_id: Annotated[UUID, Path()],
    payload: LeaveApproveRequest | None = None,
) -> ApiResponse[LeaveResponse]:
    approved_by = (payload.approved_by if payload else None) or user.name or user.email
    row = await LeaveService(db).approve_leave(leave_id, approved_by)
    await db.commit()
    return ApiResponse[LeaveResponse](
        data=LeaveResponse.from_row(row), message="Leave request approved"
    )


@router.post(
    "/{leave_id}/reject",
    response_model=ApiResponse[LeaveResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def reject_leave(
    db: DbSession, leave_id: Annotated[UUID, Path()], payload: RejectRequest
) -> ApiResponse[LeaveResponse]:
    """Reject a pending request. A reason is required."""
    row = await LeaveService(db).reject_leave(leave_id, payload.reason)
    await db.commit()
    return ApiResponse[LeaveResponse](
        data=LeaveResponse.from_row(row), message="Leave request rejected"
    )
