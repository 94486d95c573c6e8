"""Permission catalogue endpoints."""

from fastapi import APIRouter

from hr_system.api.dependencies import CurrentUser
from hr_system.api.schemas import (
    ApiResponse,
    PermissionCatalogueResponse,
    PermissionResponse,
    PermissionValidateRequest,
    PermissionValidateResponse,
)
from hr_system.auth.permissions import (
    AVAILABLE_PERMISSIONS,
    PERMISSION_CATEGORIES,
    filter_allowed_permissions,
    validate_permissions,
)

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get("", response_model=ApiResponse[PermissionCatalogueResponse])
async def list_permissions(_: CurrentUser) -> ApiResponse[PermissionCatalogueResponse]:
    """All permissions grouped by category."""
    catalogue = PermissionCatalogueResponse(
        permissions=[
            PermissionResponse(id=p.id, name=p.name, category=p.category, is_high=p.is_high)
            for p in AVAILABLE_PERMISSIONS
        ],
        categories=PERMISSION_CATEGORIES,
    )
    return ApiResponse[PermissionCatalogueResponse](data=catalogue)


@router.post("/validate", response_model=ApiResponse[PermissionValidateResponse])
async def validate(
    _: CurrentUser, payload: PermissionValidateRequest
) -> ApiResponse[PermissionValidateResponse]:
    """Split ids into valid, invalid and high-risk; with a role, also what it may hold."""
    result = validate_permissions(payload.permissions)
    allowed = None
    if payload.role is not None:
        allowed = filter_allowed_permissions(payload.role, payload.permissions)
    return ApiResponse[PermissionValidateResponse](
        data=PermissionValidateResponse(**result, allowed=allowed)
    )
