"""
Auth Core - FastAPI Application

Main entry point for the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authcore.api.v1 import router as api_v1_router
from authcore.core.config import settings
from authcore.core.database import close_db, init_db
from authcore.core.logging import configure_logging
from authcore.core.store import close_store, get_store
from authcore.services.errors import AuthError, StoreUnavailableError


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting auth core", extra={"environment": settings.ENVIRONMENT})
    if settings.is_development:
        await init_db()
    yield
    logger.info("Shutting down auth core")
    await close_store()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Auth Core",
    description="Passwordless one-time code sign-in with rotating refresh tokens.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Accept", "Authorization", "Content-Type"],
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render credential errors the routes do not handle themselves."""
    headers = {}
    if isinstance(exc, StoreUnavailableError):
        logger.error("Credential store unavailable", extra={"path": request.url.path})
        headers["Retry-After"] = "1"
        detail = "Service temporarily unavailable."
    else:
        detail = "Authentication failed."
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail, "code": exc.code.value},
        headers=headers,
    )


# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Health status, store reachability and environment info.
    """
    try:
        store_ok = await get_store().ping()
    except StoreUnavailableError:
        store_ok = False
    return {
        "status": "healthy" if store_ok else "degraded",
        "store": "up" if store_ok else "down",
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
    }
