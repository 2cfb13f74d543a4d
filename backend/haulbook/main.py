"""
FastAPI Application Entry Point.

This is the main application file for the Haulbook Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.haulbook.core.config import settings
from backend.haulbook.core.observability import ObservabilityMiddleware, configure_logging
from backend.haulbook.api.v1.router import router as api_v1_router
from backend.haulbook.db.session import engine, Base
from backend.haulbook.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.haulbook.models.audit_log import AuditLog
from backend.haulbook.models.rate_version import RateVersion
from backend.haulbook.models.ledger_transaction import LedgerTransaction
from backend.haulbook.models.opening_balance import AccountOpeningBalance
from backend.haulbook.models.party import Party
from backend.haulbook.models.trip_record import TripRecord  # After Party (FK)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    3. Disposes the engine's connection pool on shutdown.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Rate versioning, running ledgers and account summaries for haulage operations",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Haulbook Backend API",
        "docs": "/docs",
        "health": "/health",
    }
