"""Salary advance endpoints, including installment deductions."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import CurrentUser, DbSession, require_permission
from hr_system.api.schemas import (
    AdvanceApproveRequest,
    AdvanceCreate,
    AdvanceDeductionResponse,
    AdvanceResponse,
    AdvanceStatsResponse,
    AdvanceUpdate,
    ApiResponse,
    DeductionPreviewResponse,
    ErrorResponse,
    InstallmentResponse,
    ListResponse,
    ManualDeductionRequest,
    ManualDeductionResponse,
    MessageResponse,
    MonthlyDeductionResponse,
    RejectRequest,
)
from hr_system.calculators import PayCalculator
from hr_system.models.enums import AdvanceStatus
from hr_system.services import AdvanceDeductionService, AdvanceService

router = APIRouter(prefix="/advances", tags=["advances"])

can_view = [Depends(require_permission("advances_view"))]
can_approve = [Depends(require_permission("advances_approve"))]
can_disburse = [Depends(require_permission("advances_disburse"))]


# ============================================================================
# Advance CRUD
# ============================================================================


@router.get("", response_model=ListResponse[AdvanceResponse], dependencies=can_view)
async def list_advances(
    db: DbSession,
    employee_id: UUID | None = None,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
    status_filter: Annotated[AdvanceStatus | None, Query(alias="status")] = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ListResponse[AdvanceResponse]:
    """List advances, newest request first."""
    rows = await AdvanceService(db).list_advances(
        employee_id=employee_id,
        institution_id=institution_id,
        branch_id=branch_id,
        status=status_filter.value if status_filter else None,
        date_from=date_from,
        date_to=date_to,
    )
    items = [AdvanceResponse.from_row(r) for r in rows]
    return ListResponse[AdvanceResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[AdvanceResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("advances_request"))],
)
async def create_advance(db: DbSession, payload: AdvanceCreate) -> ApiResponse[AdvanceResponse]:
    """Request an advance. It starts pending with the full amount outstanding."""
    row = await AdvanceService(db).create_advance(payload.model_dump())
    await db.commit()
    return ApiResponse[AdvanceResponse](
        data=AdvanceResponse.from_row(row), message="Advance created successfully"
    )


@router.get("/stats", response_model=ApiResponse[AdvanceStatsResponse], dependencies=can_view)
async def advance_stats(
    db: DbSession,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> ApiResponse[AdvanceStatsResponse]:
    stats = await AdvanceService(db).statistics(
        institution_id=institution_id,
        branch_id=branch_id,
        date_from=date_from,
        date_to=date_to,
    )
    return ApiResponse[AdvanceStatsResponse](data=AdvanceStatsResponse(**stats))


# ============================================================================
# Installment deductions
# ============================================================================


@router.get(
    "/preview-deductions",
    response_model=ApiResponse[DeductionPreviewResponse],
    dependencies=can_view,
)
async def preview_deductions(
    db: DbSession,
    institution_id: UUID | None = None,
    branch_id: UUID | None = None,
) -> ApiResponse[DeductionPreviewResponse]:
    """Installments the next payroll run would take, per employee."""
    preview = await AdvanceDeductionService(db).preview(institution_id, branch_id)
    return ApiResponse[DeductionPreviewResponse](
        data=DeductionPreviewResponse.model_validate(preview)
    )


@router.get(
    "/auto-deduct",
    response_model=ApiResponse[MonthlyDeductionResponse],
    dependencies=can_view,
)
async def monthly_deduction(
    db: DbSession, employee_id: UUID
) -> ApiResponse[MonthlyDeductionResponse]:
    """An employee's active advances and the total due this month."""
    installments = await AdvanceDeductionService(db).active_installments(employee_id)
    total = PayCalculator.total_installments(installments)
    return ApiResponse[MonthlyDeductionResponse](
        data=MonthlyDeductionResponse(
            employee_id=employee_id,
            monthly_deduction=total,
            active_advances=[InstallmentResponse.model_validate(i) for i in installments],
        )
    )


@router.post(
    "/auto-deduct",
    response_model=ApiResponse[ManualDeductionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_disburse,
)
async def process_deductions(
    db: DbSession, payload: ManualDeductionRequest
) -> ApiResponse[ManualDeductionResponse]:
    """Take this month's installments for one employee against an existing payroll run."""
    total, deductions = await AdvanceDeductionService(db).process_manual(
        payload.payroll_run_id, payload.employee_id
    )
    await db.commit()
    return ApiResponse[ManualDeductionResponse](
        data=ManualDeductionResponse(
            total_deduction=total,
            deductions_count=len(deductions),
            deductions=[AdvanceDeductionResponse.model_validate(d) for d in deductions],
        ),
        message=f"Processed {len(deductions)} deduction(s)",
    )


# ============================================================================
# Single advance
# ============================================================================


@router.get(
    "/{advance_id}",
    response_model=ApiResponse[AdvanceResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_advance(
    db: DbSession, advance_id: Annotated[UUID, Path()]
) -> ApiResponse[AdvanceResponse]:
    row = await AdvanceService(db).get_advance(advance_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Advance not found")
    return ApiResponse[AdvanceResponse](data=AdvanceResponse.from_row(row))


@router.put(
    "/{advance_id}",
    response_model=ApiResponse[AdvanceResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def update_advance(
    db: DbSession, advance_id: Annotated[UUID, Path()], payload: AdvanceUpdate
) -> ApiResponse[AdvanceResponse]:
    """Update an advance. A new amount recomputes the remaining balance."""
    row = await AdvanceService(db).update_advance(
        advance_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ApiResponse[AdvanceResponse](
        data=AdvanceResponse.from_row(row), message="Advance updated successfully"
    )


@router.delete(
    "/{advance_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def delete_advance(db: DbSession, advance_id: Annotated[UUID, Path()]) -> MessageResponse:
    await AdvanceService(db).delete_advance(advance_id)
    await db.commit()
    return MessageResponse(message="Advance deleted successfully")


@router.post(
    "/{advance_id}/approve",
    response_model=ApiResponse[AdvanceResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def approve_advance(
    db: DbSession,
    user: CurrentUser,
    advance_id: Annotated[UUID, Path()],
    payload: AdvanceApproveRequest | None = None,
) -> ApiResponse[AdvanceResponse]:
    """Approve a pending advance. The approver defaults to the current user."""
    approved_by = (payload.approved_by if payload else None) or user.name or user.email
    row = await AdvanceService(db).approve_advance(advance_id, approved_by)
    await db.commit()
    return ApiResponse[AdvanceResponse](
        data=AdvanceResponse.from_row(row), message="Advance approved successfully"
    )


@router.post(
    "/{advance_id}/reject",
    response_model=ApiResponse[AdvanceResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_approve,
)
async def reject_advance(
    db: DbSession, advance_id: Annotated[UUID, Path()], payload: RejectRequest
) -> ApiResponse[AdvanceResponse]:
    row = await AdvanceService(db).reject_advance(advance_id, payload.reason)
    await db.commit()
    return ApiResponse[AdvanceResponse](
        data=AdvanceResponse.from_row(row), message="Advance rejected"
    )


@router.post(
    "/{advance_id}/pay",
    response_model=ApiResponse[AdvanceResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_disburse,
)
async def mark_advance_paid(
    db: DbSession, advance_id: Annotated[UUID, Path()]
) -> ApiResponse[AdvanceResponse]:
    """Settle an approved advance in full."""
    row = await AdvanceService(db).mark_paid(advance_id)
    await db.commit()
    return ApiResponse[AdvanceResponse](
        data=AdvanceResponse.from_row(row), message="Advance marked as paid"
    )


@router.get(
    "/{advance_id}/deductions",
    response_model=ListResponse[AdvanceDeductionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def advance_deductions(
    db: DbSession, advance_id: Annotated[UUID, Path()]
) -> ListResponse[AdvanceDeductionResponse]:
    """Installments taken from an advance, most recent first."""
    rows = await AdvanceDeductionService(db).history(advance_id)
    items = [AdvanceDeductionResponse.from_row(r) for r in rows]
    return ListResponse[AdvanceDeductionResponse](data=items, count=len(items))
