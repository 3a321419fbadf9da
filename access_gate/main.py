"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, preflight, CORS, rate limiting)
- Service lifecycle (key-value store, outbound HTTP client)

Middleware order, outermost first:
logging -> preflight -> CORS -> rate limit -> router

OPTIONS never reaches CORSMiddleware: Starlette answers real preflights with
a body ("OK") and rejects unlisted request headers, while every OPTIONS here
gets an empty 200 carrying the static CORS headers.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from access_gate.api import endpoints
from access_gate.core.service_manager import initialize_services, shutdown_services
from access_gate.core.setting import Settings, get_settings
from access_gate.middleware.logging import add_logging_middleware, configure_logging
from access_gate.middleware.rate_limit import add_rate_limit_middleware

CORS_ALLOW_ORIGINS = ["*"]
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type"]

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": ", ".join(CORS_ALLOW_ORIGINS),
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        app_settings: Settings to use (defaults to the environment)
    """
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title="Access Gate",
        description="Verified, allow-listed redirect service",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = app_settings
    app.state.services = None

    # Registered innermost first
    add_rate_limit_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    @app.middleware("http")
    async def answer_preflight(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=PREFLIGHT_HEADERS)
        return await call_next(request)

    add_logging_middleware(app)

    app.include_router(endpoints.router)

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup."""
        configure_logging(app_settings.LOG_LEVEL)
        await initialize_services(app, app_settings)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        await shutdown_services(app)

    return app


app = create_app()
