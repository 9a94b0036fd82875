"""
Atelier API - Main FastAPI Application Entry Point

Painting portfolio and storefront backend.
Combines the public gallery and admin routers, the error mapping and the
application context into a single FastAPI application.

Run with:
    uvicorn atelier.api.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from atelier.api.routes_admin import router as admin_router
from atelier.api.routes_gallery import router as gallery_router
from atelier.config import ADMIN_HOME, FRONTEND_URL, LOG_LEVEL, LOGIN_VIEW
from atelier.context import AppContext
from atelier.errors import (
    AtelierError,
    AuthRequired,
    EmailDeliveryError,
    NotFoundError,
    PersistenceError,
    UploadError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

def _status_for(exc: AtelierError) -> int:
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, AuthRequired):
        return 401
    if isinstance(exc, UploadError):
        return 413 if exc.too_large else 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (PersistenceError, EmailDeliveryError)):
        return 502
    return 400


async def atelier_error_handler(request: Request, exc: AtelierError):
    """Structured JSON for the application's own error taxonomy."""
    status_code = _status_for(exc)
    content = {
        "error": type(exc).__name__,
        "message": exc.message,
        "detail": str(exc) if status_code < 500 else None,
    }
    if isinstance(exc, ValidationError):
        content["fields"] = exc.fields
    elif isinstance(exc, AuthRequired):
        content["redirect"] = LOGIN_VIEW
    elif isinstance(exc, NotFoundError):
        content["link"] = ADMIN_HOME

    logger.warning("[api] %s %s: %s | Path: %s", status_code, type(exc).__name__, exc, request.url.path)
    return JSONResponse(status_code=status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions and return structured JSON error responses."""
    logger.error("[api] ERROR %s: %s | Path: %s", type(exc).__name__, exc, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": type(exc).__name__,
            "message": "An unexpected error occurred. Please try again.",
            "detail": None,
        },
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(ctx: AppContext | None = None) -> FastAPI:
    """Build the app around *ctx*; the real clients are wired when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if app.state.context is None:
            app.state.context = AppContext.from_env()
        app.state.context.init()
        yield
        app.state.context.teardown()

    app = FastAPI(
        title="Atelier API",
        description="Painting portfolio and storefront",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.context = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AtelierError, atelier_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(gallery_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root():
        """Root endpoint returning basic API information."""
        return {
            "name": "Atelier API",
            "version": "0.1.0",
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring and load balancers."""
        return {"status": "healthy"}

    return app


app = create_app()


# ---------------------------------------------------------------------------
# Convenience: run directly with `python -m atelier.api.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run("atelier.api.main:app", host="0.0.0.0", port=8000, reload=True)
