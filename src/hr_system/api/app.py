"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hr_system import __version__
from hr_system.api.routes import (
    advances_router,
    auth_router,
    branches_router,
    compensations_router,
    documents_router,
    employee_import_router,
    employees_router,
    forms_router,
    health_router,
    institutions_router,
    leaves_router,
    payroll_router,
    permissions_router,
    reports_router,
    subscriptions_router,
    system_router,
    users_router,
)
from hr_system.config import get_settings
from hr_system.database import create_tables, dispose_db, init_db
from hr_system.services import ServiceError

logger = logging.getLogger(__name__)

API_ROUTERS = (
    auth_router,
    users_router,
    permissions_router,
    institutions_router,
    subscriptions_router,
    branches_router,
    # before employees_router so /employees/bulk-upload is not read as an id
    employee_import_router,
    employees_router,
    documents_router,
    advances_router,
    compensations_router,
    payroll_router,
    leaves_router,
    forms_router,
    reports_router,
    system_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Startup
    init_db()
    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables created")
    yield
    # Shutdown
    await dispose_db()


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HR System API",
        description="Institutions, employees, branches, payroll, advances, leave and forms",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Pydantic validation failures become 400 with per-field details."""
        details = [
            {
                "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid input data", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        response = _error(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error(exc.status_code, exc.message, exc.details)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return _error(status.HTTP_409_CONFLICT, "Record conflicts with existing data")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")

    # Include routers
    app.include_router(health_router)
    for router in API_ROUTERS:
        app.include_router(router, prefix="/api")

    return app


# Default app instance for uvicorn
app = create_app()
