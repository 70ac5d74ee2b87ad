"""Tests for API exception handlers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from accessmap.core.exceptions import (
    AccessMapError,
    ConflictError,
    ErrorCode,
    NotFoundError,
    StorageError,
    ValidationError,
)
from accessmap.entrypoints.api.errors import register_error_handlers, status_for


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (NotFoundError("User", "x"), 404),
        (ValidationError("limit", "too small"), 400),
        (ConflictError(), 409),
        (StorageError("fetch_all"), 500),
        (AccessMapError(ErrorCode.RATE_LIMIT_EXCEEDED, "slow down"), 429),
    ],
)
def test_status_for(error: AccessMapError, status: int) -> None:
    assert status_for(error) == status


def _app(production: bool) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)
    app.state.settings = MagicMock(is_production=production)

    @app.get("/storage")
    async def storage() -> None:
        raise StorageError("fetch_all", OSError("connection refused"))

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("kaput")

    return app


class TestServerErrors:
    """500 responses hide details in production."""

    def test_storage_error_detailed_in_development(self) -> None:
        client = TestClient(_app(production=False))

        response = client.get("/storage")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "DATABASE_ERROR"
        assert "connection refused" in response.json()["error"]["message"]

    def test_storage_error_generic_in_production(self) -> None:
        client = TestClient(_app(production=True))

        response = client.get("/storage")

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "Internal server error"

    def test_unhandled_exception(self) -> None:
        client = TestClient(_app(production=True), raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"
        assert response.json()["error"]["message"] == "Internal server error"

    def test_unknown_route(self) -> None:
        client = TestClient(_app(production=False))

        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"
