"""Report endpoints: on-screen preview and CSV download."""

from fastapi import APIRouter, Depends, Response

from hr_system.api.dependencies import DbSession, require_any_permission, require_permission
from hr_system.api.schemas import (
    ApiResponse,
    ErrorResponse,
    ReportColumnResponse,
    ReportFiltersSchema,
    ReportPreviewResponse,
    ReportRequest,
)
from hr_system.models import utcnow
from hr_system.services import ReportFilters, ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


def _filters(schema: ReportFiltersSchema) -> ReportFilters:
    return ReportFilters(**schema.model_dump())


@router.post(
    "/preview",
    response_model=ApiResponse[ReportPreviewResponse],
    responses={400: {"model": ErrorResponse}},
    dependencies=[Depends(require_permission("reports_view"))],
)
async def preview_report(
    db: DbSession, payload: ReportRequest
) -> ApiResponse[ReportPreviewResponse]:
    """Report rows as JSON, keyed by column."""
    report = await ReportService(db).build(payload.report_type, _filters(payload.filters))
    return ApiResponse[ReportPreviewResponse](
        data=ReportPreviewResponse(
            report_type=report.report_type.value,
            columns=[ReportColumnResponse(key=key, label=label) for key, label in report.columns],
            rows=report.rows,
            count=len(report.rows),
            generated_at=utcnow(),
        )
    )


@router.post(
    "/generate",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}},
        400: {"model": ErrorResponse},
    },
    dependencies=[Depends(require_any_permission("reports_generate", "reports_export"))],
)
async def generate_report(db: DbSession, payload: ReportRequest) -> Response:
    """Download a report as CSV."""
    report, content = await ReportService(db).generate(
        payload.report_type, _filters(payload.filters)
    )
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )
