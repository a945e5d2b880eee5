"""Main FastAPI application for the refpoints API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from refpoints import __version__
from refpoints.api.rate_limit import limiter
from refpoints.api.v1.campaigns import router as campaigns_router
from refpoints.api.v1.customers import router as customers_router
from refpoints.api.v1.transactions import router as transactions_router
from refpoints.errors import (
    InsufficientPointsError,
    InvalidCampaignSettingsError,
    InvalidReferralCodeError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    PurchaseNotEligibleError,
    RefpointsError,
)
from refpoints.logging_config import configure_logging, get_logger
from refpoints.settings import settings
from refpoints.storage.db import db

logger = get_logger(__name__)

# Domain error -> HTTP status; first match wins
ERROR_STATUS_CODES: list[tuple[type[RefpointsError], int]] = [
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (InvalidStatusError, 400),
    (InsufficientPointsError, 400),
    (InvalidReferralCodeError, 400),
    (PurchaseNotEligibleError, 422),
    (InvalidCampaignSettingsError, 422),
]


def status_code_for(exc: RefpointsError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    configure_logging()
    logger.info("app_starting", env=settings.env)

    db.create_tables()

    yield

    # Shutdown
    logger.info("app_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    # Hide API docs in production
    is_production = settings.env == "production"

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Referral rewards for shops and their customers",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    # Block wildcard in production
    if is_production and "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        allowed_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(RefpointsError)
    async def domain_error_handler(request: Request, exc: RefpointsError):
        code = status_code_for(exc)
        logger.warning(
            "request_failed",
            path=request.url.path,
            error=type(exc).__name__,
            status_code=code,
        )
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    # Include v1 API routers
    app.include_router(campaigns_router, prefix="/api/v1")
    app.include_router(customers_router, prefix="/api/v1")
    app.include_router(transactions_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": __version__,
            "env": settings.env,
        }

    return app


# Create app instance
app = create_app()
