"""Institution endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    InstitutionCreate,
    InstitutionDocumentCreate,
    InstitutionDocumentResponse,
    InstitutionExpiryStats,
    InstitutionResponse,
    InstitutionUpdate,
    ListResponse,
    MessageResponse,
    SubscriptionResponse,
)
from hr_system.services import InstitutionService

router = APIRouter(prefix="/institutions", tags=["institutions"])

can_view = [Depends(require_permission("institutions_view"))]


# ============================================================================
# Institution CRUD
# ============================================================================


@router.get("", response_model=ListResponse[InstitutionResponse], dependencies=can_view)
async def list_institutions(db: DbSession) -> ListResponse[InstitutionResponse]:
    """Institutions that are not inactive, with their active employee count."""
    rows = await InstitutionService(db).list_institutions()
    items = [InstitutionResponse.from_row(r) for r in rows]
    return ListResponse[InstitutionResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[InstitutionResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_permission("institutions_add"))],
)
async def create_institution(
    db: DbSession, payload: InstitutionCreate
) -> ApiResponse[InstitutionResponse]:
    row = await InstitutionService(db).create_institution(payload.model_dump())
    await db.commit()
    return ApiResponse[InstitutionResponse](
        data=InstitutionResponse.from_row(row), message="Institution created successfully"
    )


@router.get("/expiring", response_model=ListResponse[InstitutionResponse], dependencies=can_view)
async def expiring_institutions(
    db: DbSession, days: Annotated[int, Query(ge=0, le=3650)] = 30
) -> ListResponse[InstitutionResponse]:
    """Active institutions whose license or commercial record expires within ``days``."""
    institutions = await InstitutionService(db).expiring_licenses(days)
    items = [InstitutionResponse.model_validate(i) for i in institutions]
    return ListResponse[InstitutionResponse](data=items, count=len(items))


@router.get(
    "/expiry-stats",
    response_model=ListResponse[InstitutionExpiryStats],
    dependencies=can_view,
)
async def institution_expiry_stats(db: DbSession) -> ListResponse[InstitutionExpiryStats]:
    stats = await InstitutionService(db).expiry_stats()
    items = [InstitutionExpiryStats(**s) for s in stats]
    return ListResponse[InstitutionExpiryStats](data=items, count=len(items))


@router.get(
    "/{institution_id}",
    response_model=ApiResponse[InstitutionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def get_institution(
    db: DbSession, institution_id: Annotated[UUID, Path()]
) -> ApiResponse[InstitutionResponse]:
    row = await InstitutionService(db).get_institution(institution_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Institution not found")
    return ApiResponse[InstitutionResponse](data=InstitutionResponse.from_row(row))


@router.put(
    "/{institution_id}",
    response_model=ApiResponse[InstitutionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("institutions_edit"))],
)
async def update_institution(
    db: DbSession, institution_id: Annotated[UUID, Path()], payload: InstitutionUpdate
) -> ApiResponse[InstitutionResponse]:
    row = await InstitutionService(db).update_institution(
        institution_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return ApiResponse[InstitutionResponse](
        data=InstitutionResponse.from_row(row), message="Institution updated successfully"
    )


@router.delete(
    "/{institution_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("institutions_delete"))],
)
async def delete_institution(
    db: DbSession, institution_id: Annotated[UUID, Path()]
) -> MessageResponse:
    """Delete an institution; its employees and branches are kept, unlinked."""
    await InstitutionService(db).delete_institution(institution_id)
    await db.commit()
    return MessageResponse(message="Institution deleted successfully")


# ============================================================================
# Documents and subscriptions
# ============================================================================


@router.get(
    "/{institution_id}/documents",
    response_model=ListResponse[InstitutionDocumentResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def list_institution_documents(
    db: DbSession, institution_id: Annotated[UUID, Path()]
) -> ListResponse[InstitutionDocumentResponse]:
    documents = await InstitutionService(db).list_documents(institution_id)
    items = [InstitutionDocumentResponse.model_validate(d) for d in documents]
    return ListResponse[InstitutionDocumentResponse](data=items, count=len(items))


@router.post(
    "/{institution_id}/documents",
    response_model=ApiResponse[InstitutionDocumentResponse],
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("institutions_edit"))],
)
async def add_institution_document(
    db: DbSession,
    institution_id: Annotated[UUID, Path()],
    payload: InstitutionDocumentCreate,
) -> ApiResponse[InstitutionDocumentResponse]:
    document = await InstitutionService(db).add_document(institution_id, payload.model_dump())
    await db.commit()
    return ApiResponse[InstitutionDocumentResponse](
        data=InstitutionDocumentResponse.model_validate(document),
        message="Document added successfully",
    )


@router.get(
    "/{institution_id}/subscriptions",
    response_model=ListResponse[SubscriptionResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_view,
)
async def list_institution_subscriptions(
    db: DbSession, institution_id: Annotated[UUID, Path()]
) -> ListResponse[SubscriptionResponse]:
    subscriptions = await InstitutionService(db).list_subscriptions(institution_id)
    items = [SubscriptionResponse.model_validate(s) for s in subscriptions]
    return ListResponse[SubscriptionResponse](data=items, count=len(items))
