"""
GitHub Access Console API Server

Entry point for the FastAPI application.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.core import database
from app.core.config import get_settings
from app.core.errors import error_response, register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.api.v1 import router as api_v1_router

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="GitHub Access Console",
        description="Access control and audit trail for GitHub organizations.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware (last added is outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    # API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint for startup probes."""
        try:
            await database.ping()
        except (SQLAlchemyError, OSError):
            log.exception("ready.database_unreachable")
            return error_response(503, "DATABASE_UNAVAILABLE", "Database is unreachable")
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("Access console starting", debug=settings.debug)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("Access console shutting down")
        await database.engine.dispose()

    return app


app = create_app()


def run() -> None:
    """CLI entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
