"""Reward and deduction endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import CurrentUser, DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    CompensationCreate,
    CompensationMonthlySummary,
    CompensationResponse,
    CompensationStatsResponse,
    CompensationUpdate,
    ErrorResponse,
    ListResponse,
    MessageResponse,
)
from hr_system.models.enums import CompensationType
from hr_system.services import CompensationService

router = APIRouter(prefix="/compensations", tags=["compensations"])

can_view = [Depends(require_permission("compensations_view"))]


@router.get("", response_model=ListResponse[CompensationResponse], dependencies=can_view)
async def list_compensations(
    db: DbSession,
    employee_id: UUID | None = None,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
    compensation_type: Annotated[CompensationType | None, Query(alias="type")] = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ListResponse[CompensationResponse]:
    rows = await CompensationService(db).list_compensations(
        employee_id=employee_id,
        institution_id=institution_id,
        branch_id=branch_id,
        compensation_type=compensation_type.value if compensation_type else None,
        date_from=date_from,
        date_to=date_to,
    )
    items = [CompensationResponse.from_row(r) for r in rows]
    return ListResponse[CompensationResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[CompensationResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("compensations_add"))],
)
async def create_compensation(
    db: DbSession, user: CurrentUser, payload: CompensationCreate
) -> ApiResponse[CompensationResponse]:
    data = payload.model_dump()
    data["created_by"] = data.get("created_by") or user.name or user.email
    row = await CompensationService(db).create_compensation(data)
    await db.commit()
    return ApiResponse[CompensationResponse](
        data=CompensationResponse.from_row(row), message="Compensation created successfully"
    )


@router.get(
    "/stats", response_model=ApiResponse[CompensationStatsResponse], dependencies=can_view
)
async def compensation_stats(
    db: DbSession,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ApiResponse[CompensationStatsResponse]:
    stats = await CompensationService(db).statistics(
        institution_id=institution_id,
        branch_id=branch_id,
        date_from=date_from,
        date_to=date_to,
    )
    return ApiResponse[CompensationStatsResponse](data=CompensationStatsResponse(**stats))


@router.get(
    "/monthly-summary",
    response_model=ListResponse[CompensationMonthlySummary],
    dependencies=can_view,
)
async def monthly_summary(
    db: DbSession,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
) -> ListResponse[CompensationMonthlySummary]:
    """Per-month totals for a year (the current year by default)."""
    summary = await CompensationService(db).monthly_summary(
        year or date.today().year, institution_id=institution_id, branch_id=branch_id
    )
    items = [CompensationMonthlySummary(**s) for s in summary]
    return ListResponse[CompensationMonthlySummary](data=items, count=len(items))


@router.get(
    "/{compensation_id}",
    response_model=ApiResponse[CompensationResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_compensation(
    db: DbSession, compensation_id: Annotated[UUID, Path()]
) -> ApiResponse[CompensationResponse]:
    row = await CompensationService(db).get_compensation(compensation_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Compensation not found")
    return ApiResponse[CompensationResponse](data=CompensationResponse.from_row(row))


@router.put(
    "/{compensation_id}",
    response_model=ApiResponse[CompensationResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("compensations_edit"))],
)
async def update_compensation(
    db: DbSession, compensation_id: Annotated[UUID, Path()], payload: CompensationUpdate
) -> ApiResponse[CompensationResponse]:
    row = await CompensationService(db).update_compensation(
        compensation_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ApiResponse[CompensationResponse](
        data=CompensationResponse.from_row(row), message="Compensation updated successfully"
    )


@router.delete(
    "/{compensation_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("compensations_delete"))],
)
async def delete_compensation(
    db: DbSession, compensation_id: Annotated[UUID, Path()]
) -> MessageResponse:
    await CompensationService(db).delete_compensation(compensation_id)
    await db.commit()
    return MessageResponse(message="Compensation deleted successfully")
