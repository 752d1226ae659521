"""
Snytra - Main Application Entry Point
Restaurant reservations, waitlist and subscription entitlements
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import structlog

from snytra.core.config import get_settings
from snytra.core.exceptions import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from snytra.api import (
    auth, reservations, waitlist, tables, reservation_settings,
    subscription_plans, feature_access, subscriptions, webhooks
)

settings = get_settings()

logging.basicConfig(format="%(message)s", level=logging.DEBUG if settings.DEBUG else logging.INFO)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Initializing Snytra backend", environment=settings.ENVIRONMENT)
    # Tables are created by Alembic migrations, not auto-generated
    logger.info("Database managed by Alembic migrations")

    yield

    # Shutdown
    logger.info("Shutting down Snytra backend")


# Create FastAPI application
app = FastAPI(
    title="Snytra API",
    description="Restaurant reservations, waitlist and subscription entitlements",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure middleware stack
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every error leaves as {"error": ..., "success": false}
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Include routers
prefix = settings.API_V1_PREFIX
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
app.include_router(reservations.router, prefix=f"{prefix}/reservations", tags=["reservations"])
app.include_router(waitlist.router, prefix=f"{prefix}/waitlist", tags=["waitlist"])
app.include_router(tables.router, prefix=f"{prefix}/tables", tags=["tables"])
app.include_router(reservation_settings.router, prefix=f"{prefix}/reservation-settings", tags=["reservation-settings"])
app.include_router(subscription_plans.router, prefix=f"{prefix}/subscription-plans", tags=["subscription-plans"])
app.include_router(feature_access.router, prefix=f"{prefix}/feature-access", tags=["feature-access"])
app.include_router(subscriptions.router, prefix=f"{prefix}/subscriptions", tags=["subscriptions"])
app.include_router(webhooks.router, prefix=f"{prefix}/webhooks", tags=["webhooks"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "snytra-api"}


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Snytra API",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "snytra.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level="info",
    )
