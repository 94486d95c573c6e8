"""System dashboard endpoint."""

from fastapi import APIRouter, Depends

from hr_system.api.dependencies import DbSession, require_permission
from hr_system.api.schemas import ApiResponse, SystemStatsResponse
from hr_system.services import SystemService

router = APIRouter(prefix="/system", tags=["system"])


@router.get(
    "/stats",
    response_model=ApiResponse[SystemStatsResponse],
    dependencies=[Depends(require_permission("system_settings"))],
)
async def system_stats(db: DbSession) -> ApiResponse[SystemStatsResponse]:
    """Counters for users, employees, documents and pending work."""
    stats = await SystemService(db).stats()
    return ApiResponse[SystemStatsResponse](data=SystemStatsResponse(**stats))
