"""Branch endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import DbSession, parse_scope, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    BranchCreate,
    BranchResponse,
    BranchTransferRequest,
    BranchUpdate,
    EmployeeResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
)
from hr_system.models.enums import BranchStatus
from hr_system.services import BranchService

router = APIRouter(prefix="/branches", tags=["branches"])

INDEPENDENT = "independent"

can_view = [Depends(require_permission("branches_view"))]


@router.get("", response_model=ListResponse[BranchResponse], dependencies=can_view)
async def list_branches(
    db: DbSession,
    institution_id: Annotated[
        str | None, Query(description='Institution id, or "independent" for branches without one')
    ] = None,
    status_filter: Annotated[BranchStatus, Query(alias="status")] = BranchStatus.ACTIVE,
) -> ListResponse[BranchResponse]:
    scope_id, independent = parse_scope(institution_id, INDEPENDENT)
    rows = await BranchService(db).list_branches(
        institution_id=scope_id, independent=independent, status=status_filter.value
    )
    items = [BranchResponse.from_row(r) for r in rows]
    return ListResponse[BranchResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[BranchResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("branches_add"))],
)
async def create_branch(db: DbSession, payload: BranchCreate) -> ApiResponse[BranchResponse]:
    row = await BranchService(db).create_branch(payload.model_dump())
    await db.commit()
    return ApiResponse[BranchResponse](
        data=BranchResponse.from_row(row), message="Branch created successfully"
    )


@router.post(
    "/transfer",
    response_model=ApiResponse[EmployeeResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("employees_edit"))],
)
async def transfer_employee(
    db: DbSession, payload: BranchTransferRequest
) -> ApiResponse[EmployeeResponse]:
    """Move an employee to a branch; a null branch id removes them from any branch."""
    employee = await BranchService(db).transfer_employee(payload.employee_id, payload.branch_id)
    await db.commit()
    return ApiResponse[EmployeeResponse](
        data=EmployeeResponse.model_validate(employee), message="Employee transferred successfully"
    )


@router.get(
    "/{branch_id}",
    response_model=ApiResponse[BranchResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_branch(
    db: DbSession, branch_id: Annotated[UUID, Path()]
) -> ApiResponse[BranchResponse]:
    row = await BranchService(db).get_branch(branch_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    return ApiResponse[BranchResponse](data=BranchResponse.from_row(row))


@router.put(
    "/{branch_id}",
    response_model=ApiResponse[BranchResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("branches_edit"))],
)
async def update_branch(
    db: DbSession, branch_id: Annotated[UUID, Path()], payload: BranchUpdate
) -> ApiResponse[BranchResponse]:
    row = await BranchService(db).update_branch(branch_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse[BranchResponse](
        data=BranchResponse.from_row(row), message="Branch updated successfully"
    )


@router.delete(
    "/{branch_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("branches_delete"))],
)
async def delete_branch(db: DbSession, branch_id: Annotated[UUID, Path()]) -> MessageResponse:
    """Delete a branch. Its employees stay, without a branch."""
    detached = await BranchService(db).delete_branch(branch_id)
    await db.commit()
    return MessageResponse(message=f"Branch deleted; {detached} employee(s) unassigned")


@router.get(
    "/{branch_id}/employees",
    response_model=ListResponse[EmployeeResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def list_branch_employees(
    db: DbSession, branch_id: Annotated[UUID, Path()]
) -> ListResponse[EmployeeResponse]:
    """Active employees of a branch."""
    service = BranchService(db)
    if await service.get_branch(branch_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    employees = await service.list_employees(branch_id)
    items = [EmployeeResponse.model_validate(e) for e in employees]
    return ListResponse[EmployeeResponse](data=items, count=len(items))
