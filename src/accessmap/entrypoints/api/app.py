"""FastAPI application definition."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from accessmap import __version__

from .deps import Settings, get_settings, lifespan, settings
from .errors import register_error_handlers
from .middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .routes import api_router

app = FastAPI(
    title="accessmap",
    description="Multi-level resource access resolution and sharing",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    RateLimitMiddleware,
    config=RateLimitConfig(
        requests_per_minute=settings.rate_limit_per_minute,
        burst_size=settings.rate_limit_burst,
    ),
    enabled=settings.rate_limit_enabled,
)

app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include API routes
app.include_router(api_router, prefix=settings.api_base_path)


@app.get("/health")
async def health_check(
    request: Request,
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, Any]:
    """Health check endpoint."""
    started_at = getattr(request.app.state, "started_at", None)
    uptime = time.monotonic() - started_at if started_at is not None else 0.0
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(uptime, 3),
        "version": __version__,
        "environment": app_settings.environment,
    }
