"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_consolidation import __version__
from payroll_consolidation.api.routes import (
    employees_router,
    exports_router,
    health_router,
    payroll_router,
    payslips_router,
    presets_router,
    records_router,
)
from payroll_consolidation.collaborators import EmployeeDirectory, InMemoryEmployeeDirectory
from payroll_consolidation.database import dispose_db, init_db
from payroll_consolidation.errors import (
    NotFoundError,
    PayrollError,
    PayslipImmutableError,
    PreconditionError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)


def status_for(exc: PayrollError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, ValidationFailedError):
        return 422
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (PreconditionError, PayslipImmutableError)):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app(directory: EmployeeDirectory | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Consolidation API",
        description="Earning records, adjustments, consolidation and payslips",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.directory = directory or InMemoryEmployeeDirectory()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_exception_handler(
        request: Request, exc: PayrollError
    ) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        status_code = status_for(exc)
        logger.info(
            "%s %s rejected with %s: %s", request.method, request.url.path, exc.code, exc
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        records_router,
        employees_router,
        payroll_router,
        payslips_router,
        presets_router,
        exports_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
