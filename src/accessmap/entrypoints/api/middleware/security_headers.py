"""Security headers middleware."""

from __future__ import annotations

from dataclasses import dataclass, field

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

DEFAULT_CSP_DIRECTIVES = (
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "base-uri 'self'",
    "frame-ancestors 'none'",
    "object-src 'none'",
)


@dataclass
class SecurityHeadersConfig:
    """Security header configuration."""

    csp_directives: tuple[str, ...] = DEFAULT_CSP_DIRECTIVES
    frame_options: str = "DENY"
    referrer_policy: str = "no-referrer"
    hsts_max_age: int = 15552000
    extra_headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_security_policy(self) -> str:
        """CSP header value."""
        return "; ".join(self.csp_directives)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds browser security headers to every response."""

    def __init__(self, app: ASGIApp, config: SecurityHeadersConfig | None = None) -> None:
        """Initialize security headers middleware.

        Args:
            app: The ASGI application.
            config: Header configuration.
        """
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()
        self.headers = {
            "Content-Security-Policy": self.config.content_security_policy,
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": self.config.frame_options,
            "Referrer-Policy": self.config.referrer_policy,
            **self.config.extra_headers,
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request and add security headers to the response."""
        response = await call_next(request)

        for name, value in self.headers.items():
            response.headers.setdefault(name, value)

        # HSTS only makes sense over HTTPS, including behind a TLS-terminating proxy
        forwarded_proto = request.headers.get("X-Forwarded-Proto", "")
        if request.url.scheme == "https" or forwarded_proto.lower() == "https":
            response.headers.setdefault(
                "Strict-Transport-Security",
                f"max-age={self.config.hsts_max_age}; includeSubDomains",
            )

        return response
