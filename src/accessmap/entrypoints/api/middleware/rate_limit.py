"""Per-client rate limiting middleware."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from accessmap.core.exceptions import AccessMapError, ErrorCode

logger = structlog.get_logger()

EXEMPT_PATHS = frozenset({"/health", "/healthz", "/ready"})
WINDOW_SECONDS = 60.0


@dataclass
class RateLimitBucket:
    """Token bucket for one client."""

    tokens: float
    last_update: float
    max_tokens: int
    refill_rate: float  # tokens per second

    def refill(self, now: float) -> None:
        """Add the tokens earned since the last update."""
        elapsed = max(0.0, now - self.last_update)
        self.tokens = min(float(self.max_tokens), self.tokens + elapsed * self.refill_rate)
        self.last_update = now

    def consume(self, tokens: int = 1) -> bool:
        """Take tokens if available. Returns False when the client is over its limit."""
        self.refill(time.monotonic())
        if self.tokens < tokens:
            return False
        self.tokens -= tokens
        return True

    def seconds_until_available(self, tokens: int = 1) -> int:
        """Whole seconds until `tokens` can be consumed, at least 1."""
        deficit = tokens - self.tokens
        if deficit <= 0 or self.refill_rate <= 0:
            return 1
        return max(1, math.ceil(deficit / self.refill_rate))


@dataclass
class RateLimitConfig:
    """Rate limit configuration."""

    requests_per_minute: int = 100
    burst_size: int = 20

    @property
    def refill_rate(self) -> float:
        """Tokens added per second."""
        return self.requests_per_minute / WINDOW_SECONDS

    @property
    def idle_seconds(self) -> float:
        """Seconds after which an untouched bucket is full again and can be dropped."""
        if self.refill_rate <= 0:
            return WINDOW_SECONDS
        return max(WINDOW_SECONDS, self.burst_size / self.refill_rate)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token-bucket rate limiting keyed by client IP address.

    Buckets are created on a client's first request. Whenever a new bucket
    is created, buckets that have been idle long enough to refill completely
    are evicted, so memory is bounded by the number of recently active clients.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: RateLimitConfig | None = None,
        enabled: bool = True,
    ) -> None:
        """Initialize rate limit middleware.

        Args:
            app: The ASGI application.
            config: Rate limiting configuration.
            enabled: Whether rate limiting is enabled.
        """
        super().__init__(app)
        self.config = config or RateLimitConfig()
        self.enabled = enabled
        self.buckets: dict[str, RateLimitBucket] = {}

    def _create_bucket(self, now: float | None = None) -> RateLimitBucket:
        return RateLimitBucket(
            tokens=float(self.config.burst_size),
            last_update=time.monotonic() if now is None else now,
            max_tokens=self.config.burst_size,
            refill_rate=self.config.refill_rate,
        )

    def _get_identifier(self, request: Request) -> str:
        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def bucket_for(self, identifier: str) -> RateLimitBucket:
        """Get the bucket for a client, creating it on first use."""
        bucket = self.buckets.get(identifier)
        if bucket is None:
            now = time.monotonic()
            self.evict_idle(now)
            bucket = self.buckets[identifier] = self._create_bucket(now)
        return bucket

    def evict_idle(self, now: float) -> int:
        """Drop buckets untouched for longer than the idle window.

        Returns:
            Number of buckets evicted.
        """
        cutoff = now - self.config.idle_seconds
        stale = [key for key, bucket in self.buckets.items() if bucket.last_update < cutoff]
        for key in stale:
            del self.buckets[key]
        if stale:
            logger.debug("rate_limit_buckets_evicted", count=len(stale))
        return len(stale)

    def _limited_response(self, bucket: RateLimitBucket) -> JSONResponse:
        retry_after = bucket.seconds_until_available()
        error = AccessMapError(
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message="Rate limit exceeded. Please slow down.",
            details={"retry_after": retry_after},
        )
        return JSONResponse(
            status_code=429,
            content=error.to_dict(),
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(self.config.requests_per_minute),
                "X-RateLimit-Remaining": "0",
            },
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request with rate limiting."""
        if not self.enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        identifier = self._get_identifier(request)
        bucket = self.bucket_for(identifier)

        if not bucket.consume():
            logger.warning("rate_limit_exceeded", identifier=identifier, path=request.url.path)
            return self._limited_response(bucket)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.config.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(int(bucket.tokens))
        return response

    def reset(self, identifier: str | None = None) -> None:
        """Reset rate limit for an identifier or all."""
        if identifier:
            self.buckets.pop(identifier, None)
        else:
            self.buckets.clear()
