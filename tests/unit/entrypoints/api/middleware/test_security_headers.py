"""Unit tests for security headers middleware."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.responses import Response

from accessmap.entrypoints.api.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)


def _request(scheme: str = "http", headers: dict[str, str] | None = None) -> MagicMock:
    request = MagicMock()
    request.url.scheme = scheme
    request.headers = headers or {}
    return request


class TestSecurityHeadersConfig:
    """Tests for SecurityHeadersConfig."""

    def test_default_policy(self) -> None:
        config = SecurityHeadersConfig()

        assert config.content_security_policy.startswith("default-src 'self'; ")
        assert "style-src 'self' 'unsafe-inline'" in config.content_security_policy

    def test_custom_directives(self) -> None:
        config = SecurityHeadersConfig(csp_directives=("default-src 'none'",))

        assert config.content_security_policy == "default-src 'none'"


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.fixture
    def middleware(self) -> SecurityHeadersMiddleware:
        """Return a security headers middleware."""
        return SecurityHeadersMiddleware(MagicMock())

    async def test_adds_headers(self, middleware: SecurityHeadersMiddleware) -> None:
        call_next = AsyncMock(return_value=Response("ok"))

        result = await middleware.dispatch(_request(), call_next)

        assert result.headers["X-Content-Type-Options"] == "nosniff"
        assert result.headers["X-Frame-Options"] == "DENY"
        assert result.headers["Referrer-Policy"] == "no-referrer"
        assert result.headers["Content-Security-Policy"] == (
            SecurityHeadersConfig().content_security_policy
        )
        assert "Strict-Transport-Security" not in result.headers

    async def test_keeps_headers_set_by_route(
        self, middleware: SecurityHeadersMiddleware
    ) -> None:
        route_response = Response("ok", headers={"X-Frame-Options": "SAMEORIGIN"})
        call_next = AsyncMock(return_value=route_response)

        result = await middleware.dispatch(_request(), call_next)

        assert result.headers["X-Frame-Options"] == "SAMEORIGIN"

    async def test_hsts_over_https(self, middleware: SecurityHeadersMiddleware) -> None:
        call_next = AsyncMock(return_value=Response("ok"))

        result = await middleware.dispatch(_request(scheme="https"), call_next)

        assert result.headers["Strict-Transport-Security"].startswith("max-age=15552000")

    async def test_hsts_behind_tls_proxy(self, middleware: SecurityHeadersMiddleware) -> None:
        call_next = AsyncMock(return_value=Response("ok"))
        request = _request(headers={"X-Forwarded-Proto": "HTTPS"})

        result = await middleware.dispatch(request, call_next)

        assert "Strict-Transport-Security" in result.headers

    async def test_extra_headers(self) -> None:
        middleware = SecurityHeadersMiddleware(
            MagicMock(),
            config=SecurityHeadersConfig(extra_headers={"Permissions-Policy": "camera=()"}),
        )
        call_next = AsyncMock(return_value=Response("ok"))

        result = await middleware.dispatch(_request(), call_next)

        assert result.headers["Permissions-Policy"] == "camera=()"
