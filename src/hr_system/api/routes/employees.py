"""Employee endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import DbSession, parse_scope, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    EmployeeArchiveResponse,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeTransferRequest,
    EmployeeUpdate,
    ErrorResponse,
    ListResponse,
)
from hr_system.models.enums import ArchiveReason
from hr_system.services import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])

NONE = "none"

can_view = [Depends(require_permission("employees_view"))]
can_edit = [Depends(require_permission("employees_edit"))]


# ============================================================================
# Employee CRUD
# ============================================================================


@router.get("", response_model=ListResponse[EmployeeResponse], dependencies=can_view)
async def list_employees(
    db: DbSession,
    institution_id: Annotated[
        str | None, Query(description='Institution id, or "none" for unsponsored employees')
    ] = None,
    branch_id: Annotated[
        str | None, Query(description='Branch id, or "none" for employees without a branch')
    ] = None,
    status_filter: Annotated[
        str | None, Query(alias="status", description='Employee status, or "all"')
    ] = None,
    search: str | None = None,
) -> ListResponse[EmployeeResponse]:
    """List employees. Only active employees unless ``status`` says otherwise."""
    inst_id, no_institution = parse_scope(institution_id, NONE)
    br_id, no_branch = parse_scope(branch_id, NONE)
    rows = await EmployeeService(db).list_employees(
        institution_id=inst_id,
        no_institution=no_institution,
        branch_id=br_id,
        no_branch=no_branch,
        status=status_filter,
        search=search,
    )
    items = [EmployeeResponse.from_row(r) for r in rows]
    return ListResponse[EmployeeResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[EmployeeResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("employees_add"))],
)
async def create_employee(db: DbSession, payload: EmployeeCreate) -> ApiResponse[EmployeeResponse]:
    row = await EmployeeService(db).create_employee(payload.model_dump())
    await db.commit()
    return ApiResponse[EmployeeResponse](
        data=EmployeeResponse.from_row(row), message="Employee created successfully"
    )


@router.get(
    "/expiring-documents",
    response_model=ListResponse[EmployeeResponse],
    dependencies=can_view,
)
async def expiring_documents(
    db: DbSession, days: Annotated[int, Query(ge=0, le=3650)] = 30
) -> ListResponse[EmployeeResponse]:
    """Active employees with an iqama, permit, contract, insurance or health
    certificate that has expired or expires within ``days``."""
    rows = await EmployeeService(db).expiring_documents(days)
    items = [EmployeeResponse.from_row(r) for r in rows]
    return ListResponse[EmployeeResponse](data=items, count=len(items))


@router.get("/unsponsored", response_model=ListResponse[EmployeeResponse], dependencies=can_view)
async def unsponsored_employees(db: DbSession) -> ListResponse[EmployeeResponse]:
    rows = await EmployeeService(db).unsponsored()
    items = [EmployeeResponse.from_row(r) for r in rows]
    return ListResponse[EmployeeResponse](data=items, count=len(items))


@router.get(
    "/{employee_id}",
    response_model=ApiResponse[EmployeeResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_employee(
    db: DbSession, employee_id: Annotated[UUID, Path()]
) -> ApiResponse[EmployeeResponse]:
    row = await EmployeeService(db).get_employee(employee_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return ApiResponse[EmployeeResponse](data=EmployeeResponse.from_row(row))


@router.put(
    "/{employee_id}",
    response_model=ApiResponse[EmployeeResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def update_employee(
    db: DbSession, employee_id: Annotated[UUID, Path()], payload: EmployeeUpdate
) -> ApiResponse[EmployeeResponse]:
    """Update an employee. Setting status to active clears the archive fields."""
    row = await EmployeeService(db).update_employee(
        employee_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ApiResponse[EmployeeResponse](
        data=EmployeeResponse.from_row(row), message="Employee updated successfully"
    )


@router.delete(
    "/{employee_id}",
    response_model=ApiResponse[EmployeeArchiveResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("employees_delete"))],
)
async def archive_employee(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    reason: ArchiveReason = ArchiveReason.TERMINATED,
) -> ApiResponse[EmployeeArchiveResponse]:
    """Archive an employee. Records are never hard-deleted."""
    employee = await EmployeeService(db).archive_employee(employee_id, reason.value)
    await db.commit()
    return ApiResponse[EmployeeArchiveResponse](
        data=EmployeeArchiveResponse.model_validate(employee),
        message="Employee archived successfully",
    )


@router.post(
    "/{employee_id}/transfer",
    response_model=ApiResponse[EmployeeResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def transfer_employee(
    db: DbSession, employee_id: Annotated[UUID, Path()], payload: EmployeeTransferRequest
) -> ApiResponse[EmployeeResponse]:
    """Move an employee to another institution, or to none with an unsponsored reason."""
    row = await EmployeeService(db).transfer_institution(
        employee_id, payload.institution_id, payload.unsponsored_reason
    )
    await db.commit()
    return ApiResponse[EmployeeResponse](
        data=EmployeeResponse.from_row(row), message="Employee transferred successfully"
    )
