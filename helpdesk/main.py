"""
Helpdesk Workflow Service - Main FastAPI Application

Configures middleware, routes, the approval rate limiter and lifecycle
handlers.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import Settings, settings as default_settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .repositories.mongo_client import create_indexes, close_connection, health_check
from .services.rate_limiter import RateLimiter
from .utils.logger import setup_logging, get_logger

logger = get_logger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:  create MongoDB indexes
    Shutdown: clear rate limit windows, close the MongoDB client
    """
    logger.info("Starting Helpdesk Workflow Service...")

    try:
        create_indexes()
    except Exception as e:
        # The API still serves; /health reports the database as unhealthy
        logger.error(f"Failed to create indexes: {e}")

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down...")
    app.state.rate_limiter.reset_all()
    close_connection()
    logger.info("Application shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings override (tests); defaults to the cached settings
    """
    cfg = app_settings or default_settings
    setup_logging(cfg)

    application = FastAPI(
        title="Helpdesk Workflow Service",
        description="Ticket intake, rule-based assignment and multi-stage approvals",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if cfg.docs_enabled else None,
        redoc_url="/api/redoc" if cfg.docs_enabled else None,
        openapi_url="/api/openapi.json" if cfg.docs_enabled else None,
    )

    application.state.settings = cfg
    application.state.rate_limiter = RateLimiter(
        max_requests=cfg.approval_rate_limit_requests,
        window_seconds=cfg.approval_rate_limit_window_seconds,
    )

    _configure_middleware(application, cfg)
    register_error_handlers(application)
    _configure_routes(application, cfg)

    return application


def _configure_middleware(app: FastAPI, cfg: Settings) -> None:
    # allow_credentials must be False when allowing all origins
    allow_all = cfg.cors_origins.strip() == "*"

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else cfg.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id", "Retry-After"],
    )
    app.add_middleware(CorrelationIdMiddleware)


def _configure_routes(app: FastAPI, cfg: Settings) -> None:
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health():
        """Application health including database connectivity"""
        mongo_health = health_check()
        return {
            "status": "healthy" if mongo_health.get("status") == "healthy" else "degraded",
            "version": API_VERSION,
            "environment": cfg.environment,
            "mongo": mongo_health
        }


app = create_app()
