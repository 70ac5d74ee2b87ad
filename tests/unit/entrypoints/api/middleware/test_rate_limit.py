"""Unit tests for rate limit middleware."""

from __future__ import annotations

import json
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from accessmap.entrypoints.api.middleware.rate_limit import (
    RateLimitBucket,
    RateLimitConfig,
    RateLimitMiddleware,
)


class TestRateLimitBucket:
    """Tests for RateLimitBucket."""

    def test_consume_success(self) -> None:
        """Test successful token consumption."""
        bucket = RateLimitBucket(
            tokens=10.0,
            last_update=time.monotonic(),
            max_tokens=10,
            refill_rate=1.0,
        )

        assert bucket.consume(1) is True
        assert bucket.tokens < 10

    def test_consume_failure(self) -> None:
        """Test failed token consumption when empty."""
        bucket = RateLimitBucket(
            tokens=0.0,
            last_update=time.monotonic(),
            max_tokens=10,
            refill_rate=0.001,
        )

        assert bucket.consume(1) is False

    def test_consume_refills_over_time(self) -> None:
        """Test that tokens refill over time."""
        bucket = RateLimitBucket(
            tokens=0.0,
            last_update=time.monotonic() - 5,
            max_tokens=10,
            refill_rate=1.0,
        )

        assert bucket.consume(1) is True

    def test_refill_caps_at_max(self) -> None:
        """Test that refill doesn't exceed max."""
        bucket = RateLimitBucket(
            tokens=0.0,
            last_update=time.monotonic() - 100,
            max_tokens=10,
            refill_rate=1.0,
        )

        bucket.consume(0)

        assert bucket.tokens <= bucket.max_tokens

    def test_seconds_until_available(self) -> None:
        bucket = RateLimitBucket(tokens=0.25, last_update=0.0, max_tokens=10, refill_rate=0.5)

        assert bucket.seconds_until_available() == 2

    def test_seconds_until_available_when_tokens_remain(self) -> None:
        bucket = RateLimitBucket(tokens=3.0, last_update=0.0, max_tokens=10, refill_rate=0.5)

        assert bucket.seconds_until_available() == 1


class TestRateLimitConfig:
    """Tests for RateLimitConfig."""

    def test_default_values(self) -> None:
        config = RateLimitConfig()

        assert config.requests_per_minute == 100
        assert config.burst_size == 20
        assert config.idle_seconds == 60.0

    def test_idle_window_covers_full_refill(self) -> None:
        config = RateLimitConfig(requests_per_minute=6, burst_size=30)

        assert config.idle_seconds == 300.0


class TestRateLimitMiddleware:
    """Tests for RateLimitMiddleware."""

    @pytest.fixture
    def mock_app(self) -> MagicMock:
        """Return a mock app."""
        return MagicMock()

    @pytest.fixture
    def middleware(self, mock_app: MagicMock) -> RateLimitMiddleware:
        """Return a rate limit middleware."""
        return RateLimitMiddleware(mock_app)

    @pytest.fixture
    def strict_middleware(self, mock_app: MagicMock) -> RateLimitMiddleware:
        """Return a middleware allowing two requests."""
        return RateLimitMiddleware(
            mock_app,
            config=RateLimitConfig(requests_per_minute=1, burst_size=2),
        )

    @staticmethod
    def _request(path: str = "/api/users", host: str = "127.0.0.1") -> MagicMock:
        request = MagicMock()
        request.client = MagicMock()
        request.client.host = host
        request.url.path = path
        return request

    def test_create_bucket(self, middleware: RateLimitMiddleware) -> None:
        bucket = middleware._create_bucket()

        assert bucket.max_tokens == middleware.config.burst_size
        assert bucket.refill_rate == middleware.config.requests_per_minute / 60.0

    def test_identifier_is_client_ip(self, middleware: RateLimitMiddleware) -> None:
        assert middleware._get_identifier(self._request(host="10.0.0.1")) == "ip:10.0.0.1"

    def test_identifier_without_client(self, middleware: RateLimitMiddleware) -> None:
        request = self._request()
        request.client = None

        assert middleware._get_identifier(request) == "ip:unknown"

    async def test_passes_and_sets_headers(self, middleware: RateLimitMiddleware) -> None:
        request = self._request()
        response = MagicMock()
        response.headers = {}
        call_next = AsyncMock(return_value=response)

        result = await middleware.dispatch(request, call_next)

        call_next.assert_called_once_with(request)
        assert result.headers["X-RateLimit-Limit"] == "100"

    async def test_skips_health_checks(self, strict_middleware: RateLimitMiddleware) -> None:
        call_next = AsyncMock(return_value=MagicMock())

        for _ in range(5):
            await strict_middleware.dispatch(self._request("/health"), call_next)

        assert call_next.call_count == 5
        assert strict_middleware.buckets == {}

    async def test_returns_429_when_limited(self, strict_middleware: RateLimitMiddleware) -> None:
        response = MagicMock()
        response.headers = {}
        call_next = AsyncMock(return_value=response)

        await strict_middleware.dispatch(self._request(), call_next)
        await strict_middleware.dispatch(self._request(), call_next)
        result = await strict_middleware.dispatch(self._request(), call_next)

        assert result.status_code == 429
        assert result.headers["Retry-After"] == "60"
        body = json.loads(result.body)
        assert body["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert call_next.call_count == 2

    async def test_clients_limited_separately(
        self, strict_middleware: RateLimitMiddleware
    ) -> None:
        response = MagicMock()
        response.headers = {}
        call_next = AsyncMock(return_value=response)

        for _ in range(3):
            await strict_middleware.dispatch(self._request(host="10.0.0.1"), call_next)
        result = await strict_middleware.dispatch(self._request(host="10.0.0.2"), call_next)

        assert result is response

    async def test_disabled(self, mock_app: MagicMock) -> None:
        middleware = RateLimitMiddleware(
            mock_app, config=RateLimitConfig(burst_size=0), enabled=False
        )
        call_next = AsyncMock(return_value=MagicMock())

        await middleware.dispatch(self._request(), call_next)

        call_next.assert_called_once()

    def test_reset(self, strict_middleware: RateLimitMiddleware) -> None:
        strict_middleware.bucket_for("ip:1").consume()
        strict_middleware.bucket_for("ip:2").consume()

        strict_middleware.reset("ip:1")
        assert list(strict_middleware.buckets) == ["ip:2"]

        strict_middleware.reset()
        assert strict_middleware.buckets == {}

    def test_new_client_evicts_idle_buckets(self, middleware: RateLimitMiddleware) -> None:
        idle = middleware.bucket_for("ip:10.0.0.1")
        active = middleware.bucket_for("ip:10.0.0.2")
        idle.last_update -= middleware.config.idle_seconds + 1

        middleware.bucket_for("ip:10.0.0.3")

        assert "ip:10.0.0.1" not in middleware.buckets
        assert middleware.buckets["ip:10.0.0.2"] is active
        assert "ip:10.0.0.3" in middleware.buckets

    def test_known_client_does_not_trigger_eviction(
        self, middleware: RateLimitMiddleware
    ) -> None:
        idle = middleware.bucket_for("ip:10.0.0.1")
        middleware.bucket_for("ip:10.0.0.2")
        idle.last_update -= middleware.config.idle_seconds + 1

        middleware.bucket_for("ip:10.0.0.2")

        assert middleware.buckets["ip:10.0.0.1"] is idle

    async def test_bucket_count_bounded_by_active_clients(
        self, middleware: RateLimitMiddleware
    ) -> None:
        response = MagicMock()
        response.headers = {}
        call_next = AsyncMock(return_value=response)

        for i in range(50):
            await middleware.dispatch(self._request(host=f"10.0.1.{i}"), call_next)
            middleware.buckets[f"ip:10.0.1.{i}"].last_update -= (
                middleware.config.idle_seconds + 1
            )

        assert len(middleware.buckets) == 1
