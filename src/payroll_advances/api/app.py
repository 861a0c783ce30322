"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_advances.api.routes import (
    advances_router,
    employees_router,
    health_router,
    salary_records_router,
)
from payroll_advances.database import dispose_db, init_db
from payroll_advances.exceptions import (
    ConcurrencyConflictError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PayrollAdvanceError,
    PermissionDeniedError,
    ValidationError,
)
from payroll_advances.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Most specific first; subclasses of InvalidStateError map with their parent.
ERROR_STATUS: list[tuple[type[PayrollAdvanceError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
]


def status_for_error(exc: PayrollAdvanceError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    configure_logging()
    init_db()
    logger.info("Payroll advances API started")
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Payroll Advances API",
        description="Salary advances with automatic FIFO payroll deduction",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PayrollAdvanceError)
    async def payroll_error_handler(
        request: Request, exc: PayrollAdvanceError
    ) -> JSONResponse:
        """Map engine errors to HTTP status codes."""
        status_code = status_for_error(exc)
        if status_code >= status.HTTP_409_CONFLICT:
            logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)
        return JSONResponse(status_code=status_code, content=exc.to_dict())

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

    app.include_router(health_router)
    app.include_router(advances_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")
    app.include_router(salary_records_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
