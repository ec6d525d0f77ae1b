"""
Cadence - Main Application.

FastAPI application for tag governance with feature-flagged modules.
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cadence import __version__
from cadence.config import get_settings
from cadence.exceptions import CadenceException
from cadence.schemas import ErrorResponse, HealthResponse

# Import module routers
from cadence.modules import (
    analytics_router,
    audit_router,
    hierarchy_router,
    notifications_router,
    permissions_router,
    templates_router,
    versions_router,
)

# Configure standard logging
logging.basicConfig(
    level=get_settings().app_log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("cadence")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        f"Starting Cadence API v{__version__} "
        f"[env={settings.app_env}] "
        f"[storage={settings.governance.storage_backend}] "
        f"[features={settings.features.to_dict()}]"
    )
    yield
    logger.info("Shutting down Cadence API")


# Create FastAPI application
app = FastAPI(
    title="Cadence API",
    description="Tag governance for the Cadence music app: hierarchy, permissions, templates, audit, versions and correlation analytics.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    response = await call_next(request)

    logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

    return response


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(CadenceException)
async def cadence_exception_handler(request: Request, exc: CadenceException):
    """Handle Cadence custom exceptions."""
    request_id_str = getattr(request.state, "request_id", None)
    request_id = None
    if request_id_str:
        try:
            request_id = UUID(request_id_str)
        except (ValueError, TypeError):
            pass

    if exc.status_code >= 500:
        logger.error(f"CadenceException: {exc.code} - {exc.message} - {exc.details}")
    else:
        logger.warning(f"CadenceException: {exc.code} - {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.code,
                "message": exc.message,
                "details": exc.details if exc.status_code < 500 else None,
                "request_id": str(request_id) if request_id else None,
            }
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id_str = getattr(request.state, "request_id", None)

    # Log the full traceback
    logger.error(f"Unhandled exception on {request.url.path}")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if get_settings().app_debug else "An unexpected error occurred",
                "request_id": request_id_str,
            }
        },
    )


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=__version__,
        features=settings.features.to_dict(),
        storage_backend=settings.governance.storage_backend,
        app_env=settings.app_env,
        is_production=settings.is_production,
    )


# =============================================================================
# Register Module Routers
# =============================================================================

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

# Fixed /tags/<name> prefixes go before the /tags/{tag}/... routes
for module_router in (
    templates_router,
    analytics_router,
    audit_router,
    hierarchy_router,
    permissions_router,
    versions_router,
    notifications_router,
):
    app.include_router(module_router, responses=ERROR_RESPONSES)


# =============================================================================
# Root Endpoint
# =============================================================================


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint redirect to docs."""
    return {"message": "Welcome to Cadence API", "docs": "/docs"}
