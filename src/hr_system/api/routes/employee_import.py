"""Employee bulk upload: template download, file parsing and batch import."""

from pathlib import Path
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    EmployeeImportRequest,
    ErrorResponse,
    ImportIssueResponse,
    ImportPreviewResponse,
    ImportResultResponse,
    ImportRowResponse,
    InstitutionOption,
    ListResponse,
)
from hr_system.services import EmployeeImportService

router = APIRouter(prefix="/employees/bulk-upload", tags=["employees"])

ALLOWED_EXTENSIONS = {".csv", ".tsv", ".txt"}

can_add = [Depends(require_permission("employees_add"))]


@router.get(
    "/template",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}, "text/tab-separated-values": {}}}},
    dependencies=can_add,
)
async def download_template(
    file_format: Annotated[Literal["csv", "tsv"], Query(alias="format")] = "csv",
) -> Response:
    """Blank sheet with the expected headers and one example row."""
    delimiter = "\t" if file_format == "tsv" else ","
    media_type = "text/tab-separated-values" if file_format == "tsv" else "text/csv"
    return Response(
        content=EmployeeImportService.template(delimiter),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="employees-template.{file_format}"'
        },
    )


@router.get("/institutions", response_model=ListResponse[InstitutionOption], dependencies=can_add)
async def institution_options(db: DbSession) -> ListResponse[InstitutionOption]:
    """Values accepted in the sheet's Institution column."""
    options = await EmployeeImportService(db).institution_options()
    items = [InstitutionOption(**option) for option in options]
    return ListResponse[InstitutionOption](data=items, count=len(items))


@router.post(
    "/parse",
    response_model=ApiResponse[ImportPreviewResponse],
    responses={400: {"model": ErrorResponse}},
    dependencies=can_add,
)
async def parse_upload(
    db: DbSession, file: Annotated[UploadFile, File()]
) -> ApiResponse[ImportPreviewResponse]:
    """Read an uploaded sheet and report each row's problems. Nothing is saved."""
    extension = Path(file.filename or "").suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload a .csv, .tsv or .txt file",
        )
    preview = await EmployeeImportService(db).parse(await file.read())

    rows = [
        ImportRowResponse(
            row=row.row,
            has_errors=row.has_errors,
            errors=[ImportIssueResponse.model_validate(issue) for issue in row.errors],
            **row.values,
        )
        for row in preview.rows
    ]
    return ApiResponse[ImportPreviewResponse](
        data=ImportPreviewResponse(
            rows=rows,
            errors=[ImportIssueResponse.model_validate(issue) for issue in preview.errors],
            total_rows=preview.total_rows,
            valid_rows=preview.valid_rows,
            error_rows=preview.error_rows,
        )
    )


@router.post(
    "",
    response_model=ApiResponse[ImportResultResponse],
    responses={400: {"model": ErrorResponse}},
    dependencies=can_add,
)
async def import_employees(
    db: DbSession, payload: EmployeeImportRequest
) -> ApiResponse[ImportResultResponse]:
    """Create or update employees by file number; failing rows are skipped and reported."""
    records = [record.model_dump() for record in payload.employees]
    result = await EmployeeImportService(db).import_employees(records)
    await db.commit()
    return ApiResponse[ImportResultResponse](
        data=ImportResultResponse.model_validate(result),
        message=f"Imported {result.created + result.updated} of {result.processed} employee(s)",
    )
