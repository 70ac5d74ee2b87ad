"""API middleware."""

from accessmap.entrypoints.api.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from accessmap.entrypoints.api.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)

__all__ = [
    "RateLimitConfig",
    "RateLimitMiddleware",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
]
