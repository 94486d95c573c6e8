"""Employee and institution documents behind one endpoint."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    DocumentCreate,
    DocumentRenewRequest,
    DocumentResponse,
    ErrorResponse,
    ListResponse,
    MessageResponse,
)
from hr_system.services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])

can_edit = [Depends(require_permission("employees_edit"))]


@router.get(
    "",
    response_model=ListResponse[DocumentResponse],
    dependencies=[Depends(require_permission("employees_view"))],
)
async def list_documents(
    db: DbSession,
    entity_type: Literal["employee", "institution"] | None = None,
    entity_id: UUID | None = None,
    document_type: str | None = None,
    expiring: bool = False,
    days: Annotated[int, Query(ge=0, le=3650)] = 30,
    expired: bool = False,
) -> ListResponse[DocumentResponse]:
    """List documents; ``expiring`` limits to those expiring within ``days``."""
    records = await DocumentService(db).list_documents(
        entity_type=entity_type,
        entity_id=entity_id,
        document_type=document_type,
        expiring_days=days if expiring else None,
        expired=expired,
    )
    items = [DocumentResponse.model_validate(r) for r in records]
    return ListResponse[DocumentResponse](data=items, count=len(items))


@router.post(
    "",
    response_model=ApiResponse[DocumentResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def create_document(db: DbSession, payload: DocumentCreate) -> ApiResponse[DocumentResponse]:
    record = await DocumentService(db).create_document(
        payload.entity_type,
        payload.entity_id,
        payload.model_dump(exclude={"entity_type", "entity_id"}),
    )
    await db.commit()
    return ApiResponse[DocumentResponse](
        data=DocumentResponse.model_validate(record), message="Document uploaded successfully"
    )


@router.get(
    "/{document_id}",
    response_model=ApiResponse[DocumentResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("employees_view"))],
)
async def get_document(
    db: DbSession, document_id: Annotated[UUID, Path()]
) -> ApiResponse[DocumentResponse]:
    record = await DocumentService(db).get_document(document_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return ApiResponse[DocumentResponse](data=DocumentResponse.model_validate(record))


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def delete_document(db: DbSession, document_id: Annotated[UUID, Path()]) -> MessageResponse:
    await DocumentService(db).delete_document(document_id)
    await db.commit()
    return MessageResponse(message="Document deleted successfully")


@router.post(
    "/{document_id}/renew",
    response_model=ApiResponse[DocumentResponse],
    responses={404: {"model": ErrorResponse}},
    dependencies=can_edit,
)
async def renew_document(
    db: DbSession, document_id: Annotated[UUID, Path()], payload: DocumentRenewRequest
) -> ApiResponse[DocumentResponse]:
    """Set a new expiry date on an employee document."""
    record = await DocumentService(db).renew_document(document_id, payload.expiry_date)
    await db.commit()
    return ApiResponse[DocumentResponse](
        data=DocumentResponse.model_validate(record), message="Document renewed successfully"
    )
