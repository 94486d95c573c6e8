"""Downloadable form endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status

from hr_system.api.dependencies import CurrentUser, DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    FormCreate,
    FormDownloadResponse,
    FormResponse,
    FormStatsResponse,
    FormUpdate,
    ListResponse,
    MessageResponse,
)
from hr_system.models.enums import FormCategory
from hr_system.services import FormService

router = APIRouter(prefix="/forms", tags=["forms"])

# Any signed-in user may browse and download; managing forms is a settings task.
can_manage = [Depends(require_permission("system_settings"))]


@router.get("", response_model=ListResponse[FormResponse])
async def list_forms(
    db: DbSession,
    _: CurrentUser,
    category: FormCategory | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> ListResponse[FormResponse]:
    """List forms ordered by category, then title."""
    forms = await FormService(db).list_forms(
        category=category.value if category else None, is_active=is_active, search=search
    )
    items = [FormResponse.model_validate(f) for f in forms]
    return ListResponse[FormResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[FormResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=can_manage,
)
async def create_form(db: DbSession, payload: FormCreate) -> ApiResponse[FormResponse]:
    form = await FormService(db).create_form(payload.model_dump())
    await db.commit()
    return ApiResponse[FormResponse](
        data=FormResponse.model_validate(form), message="Form created successfully"
    )


@router.get("/stats", response_model=ApiResponse[FormStatsResponse])
async def form_stats(db: DbSession, _: CurrentUser) -> ApiResponse[FormStatsResponse]:
    stats = await FormService(db).statistics()
    return ApiResponse[FormStatsResponse](data=FormStatsResponse(**stats))


@router.get(
    "/{form_id}",
    response_model=ApiResponse[FormResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_form(
    db: DbSession, _: CurrentUser, form_id: Annotated[UUID, Path()]
) -> ApiResponse[FormResponse]:
    form = await FormService(db).get_form(form_id)
    if form is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Form not found")
    return ApiResponse[FormResponse](data=FormResponse.model_validate(form))


@router.put(
    "/{form_id}",
    response_model=ApiResponse[FormResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_manage,
)
async def update_form(
    db: DbSession, form_id: Annotated[UUID, Path()], payload: FormUpdate
) -> ApiResponse[FormResponse]:
    form = await FormService(db).update_form(form_id, payload.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse[FormResponse](
        data=FormResponse.model_validate(form), message="Form updated successfully"
    )


@router.delete(
    "/{form_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=can_manage,
)
async def delete_form(db: DbSession, form_id: Annotated[UUID, Path()]) -> MessageResponse:
    await FormService(db).delete_form(form_id)
    await db.commit()
    return MessageResponse(message="Form deleted successfully")


@router.post(
    "/{form_id}/download",
    response_model=ApiResponse[FormDownloadResponse],
    responses={404: {"model": ErrorResponse}},
)
async def download_form(
    db: DbSession, _: CurrentUser, form_id: Annotated[UUID, Path()]
) -> ApiResponse[FormDownloadResponse]:
    """Count a download and return where to fetch the file."""
    form = await FormService(db).register_download(form_id)
    await db.commit()
    return ApiResponse[FormDownloadResponse](data=FormDownloadResponse.model_validate(form))
