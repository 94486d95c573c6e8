"""Payroll endpoints: calculation preview, runs, statistics and export."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import (
    AdvanceDeductionResponse,
    ApiResponse,
    EmployeePayResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
    PayrollCalculateRequest,
    PayrollCalculationResponse,
    PayrollEntryResponse,
    PayrollRunCreate,
    PayrollRunDetailResponse,
    PayrollRunResponse,
    PayrollStatsResponse,
    PayrollSummaryResponse,
)
from hr_system.calculators.pay_calculator import MONTH_PATTERN
from hr_system.models.enums import PayrollRunStatus
from hr_system.services import AdvanceDeductionService, PayrollProcessingError, PayrollService

router = APIRouter(prefix="/payroll", tags=["payroll"])

can_view = [Depends(require_permission("payroll_view"))]
can_calculate = [Depends(require_permission("payroll_calculate"))]


# ============================================================================
# Calculation and runs
# ============================================================================


@router.post(
    "/calculate",
    response_model=ApiResponse[PayrollCalculationResponse],
    responses={400: {"model": ErrorResponse}},
    dependencies=can_calculate,
)
async def calculate_payroll(
    db: DbSession, payload: PayrollCalculateRequest
) -> ApiResponse[PayrollCalculationResponse]:
    """Preview a month's payroll without writing anything."""
    results, summary = await PayrollService(db).calculate(payload.month, payload.institution_id)
    return ApiResponse[PayrollCalculationResponse](
        data=PayrollCalculationResponse(
            month=payload.month,
            institution_id=payload.institution_id,
            calculations=[EmployeePayResponse.model_validate(r) for r in results],
            summary=PayrollSummaryResponse.model_validate(summary),
        )
    )


@router.get("", response_model=ListResponse[PayrollRunResponse], dependencies=can_view)
async def list_payroll_runs(
    db: DbSession,
    institution_id: UUID | None = None,
    status_filter: Annotated[PayrollRunStatus | None, Query(alias="status")] = None,
    month_from: Annotated[str | None, Query(pattern=MONTH_PATTERN.pattern)] = None,
    month_to: Annotated[str | None, Query(pattern=MONTH_PATTERN.pattern)] = None,
) -> ListResponse[PayrollRunResponse]:
    """List payroll runs, latest month first."""
    rows = await PayrollService(db).list_runs(
        institution_id=institution_id,
        status=status_filter.value if status_filter else None,
        month_from=month_from,
        month_to=month_to,
    )
    items = [PayrollRunResponse.from_row(r) for r in rows]
    return ListResponse[PayrollRunResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[PayrollRunResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    dependencies=can_calculate,
)
async def create_payroll_run(
    db: DbSession, payload: PayrollRunCreate
) -> ApiResponse[PayrollRunResponse]:
    """Run payroll for a month: write entries, take advance installments, set totals."""
    service = PayrollService(db)
    try:
        run = await service.create_run(payload.month, payload.institution_id, payload.notes)
    except PayrollProcessingError:
        # persist the failed run
        await db.commit()
        raise
    await db.commit()

    row = await service.get_run(run.id)
    return ApiResponse[PayrollRunResponse](
        data=PayrollRunResponse.from_row(row), message="Payroll run completed successfully"
    )


@router.get("/stats", response_model=ApiResponse[PayrollStatsResponse], dependencies=can_view)
async def payroll_stats(
    db: DbSession,
    institution_id: UUID | None = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> ApiResponse[PayrollStatsResponse]:
    """Totals over completed runs."""
    stats = await PayrollService(db).statistics(institution_id=institution_id, year=year)
    return ApiResponse[PayrollStatsResponse](data=PayrollStatsResponse(**stats))


@router.get(
    "/export/all",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    dependencies=can_view,
)
async def export_all_payroll_runs(
    db: DbSession,
    institution_id: UUID | None = None,
    start_month: Annotated[str | None, Query(pattern=MONTH_PATTERN.pattern)] = None,
    end_month: Annotated[str | None, Query(pattern=MONTH_PATTERN.pattern)] = None,
    export_format: Annotated[
        Literal["detailed", "summary"], Query(alias="format")
    ] = "detailed",
) -> Response:
    """Download every completed run in a month range as one CSV."""
    content = await PayrollService(db).export_all_csv(
        institution_id=institution_id,
        month_from=start_month,
        month_to=end_month,
        export_format=export_format,
    )
    filename = f"payroll-{export_format}-{start_month or 'all'}-{end_month or 'all'}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{run_id}",
    response_model=ApiResponse[PayrollRunDetailResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_payroll_run(
    db: DbSession, run_id: Annotated[UUID, Path()]
) -> ApiResponse[PayrollRunDetailResponse]:
    """A payroll run with one entry per employee."""
    service = PayrollService(db)
    row = await service.get_run(run_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payroll run not found")
    detail = PayrollRunDetailResponse.from_row(row)
    detail.entries = [PayrollEntryResponse.from_row(e) for e in await service.get_entries(run_id)]
    return ApiResponse[PayrollRunDetailResponse](data=detail)


@router.delete(
    "/{run_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("payroll_edit"))],
)
async def delete_payroll_run(db: DbSession, run_id: Annotated[UUID, Path()]) -> MessageResponse:
    """Delete a run, giving back the advance installments it took."""
    await PayrollService(db).delete_run(run_id)
    await db.commit()
    return MessageResponse(message="Payroll run deleted successfully")


@router.get(
    "/{run_id}/export",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}},
        404: {"model": ErrorResponse},
    },
    dependencies=can_view,
)
async def export_payroll_run(db: DbSession, run_id: Annotated[UUID, Path()]) -> Response:
    """Download a run's entries as CSV."""
    content = await PayrollService(db).export_csv(run_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="payroll-{run_id}.csv"'},
    )


@router.get(
    "/{run_id}/deductions",
    response_model=ListResponse[AdvanceDeductionResponse],
    dependencies=can_view,
)
async def payroll_advance_deductions(
    db: DbSession, run_id: Annotated[UUID, Path()], employee_id: UUID
) -> ListResponse[AdvanceDeductionResponse]:
    """Advance installments a run took from one employee."""
    deductions = await AdvanceDeductionService(db).for_payroll(employee_id, run_id)
    items = [AdvanceDeductionResponse.model_validate(d) for d in deductions]
    return ListResponse[AdvanceDeductionResponse](data=items, count=len(items))
