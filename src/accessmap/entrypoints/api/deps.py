"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request

from accessmap.adapters.db.app_db import AppDatabase
from accessmap.adapters.sharing import InMemorySharingRepository, PostgresSharingRepository
from accessmap.core.sharing import (
    AccessResolver,
    DirectoryService,
    SharingRepository,
    ShareService,
)
from accessmap.demo.seed import seed_database, seed_repository

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/accessmap")
        self.app_database_url = os.getenv("APP_DATABASE_URL", self.database_url)
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.api_base_path = os.getenv("API_BASE_PATH", "/api").rstrip("/")
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGIN", "http://localhost:3000").split(",")
            if origin.strip()
        ]

        # Rate limiting
        self.rate_limit_enabled = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
        self.rate_limit_per_minute = int(os.getenv("RATE_LIMIT_PER_MINUTE", "100"))
        self.rate_limit_burst = int(os.getenv("RATE_LIMIT_BURST", "20"))

        # Connection pool
        self.db_pool_min_size = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
        self.db_pool_max_size = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
        self.db_command_timeout = float(os.getenv("DB_COMMAND_TIMEOUT", "60"))

        # Storage backend: "postgres" or "memory"
        self.storage = os.getenv("ACCESSMAP_STORAGE", "postgres").lower()
        self.demo_mode = os.getenv("ACCESSMAP_DEMO_MODE", "").lower() == "true"

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production mode."""
        return self.environment == "production"


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Storage backend selection and connection pool setup
    - Demo data seeding (ACCESSMAP_DEMO_MODE=true)
    - Pool teardown on shutdown
    """
    app_db: AppDatabase | None = None
    repo: SharingRepository

    if settings.storage == "memory":
        memory_repo = InMemorySharingRepository()
        if settings.demo_mode:
            seed_repository(memory_repo)
        repo = memory_repo
    else:
        app_db = AppDatabase(
            settings.app_database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
        if settings.demo_mode:
            await seed_database(settings.app_database_url)
        await app_db.connect()
        repo = PostgresSharingRepository(app_db)

    # Store in app state
    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.app_db = app_db
    app.state.repository = repo

    logger.info(
        "app_started",
        storage=settings.storage,
        environment=settings.environment,
        demo_mode=settings.demo_mode,
    )

    yield

    if app_db is not None:
        await app_db.close()


def get_settings(request: Request) -> Settings:
    """Get settings from app state.

    Args:
        request: The current request.

    Returns:
        The loaded Settings.
    """
    app_settings: Settings = request.app.state.settings
    return app_settings


def get_repository(request: Request) -> SharingRepository:
    """Get the sharing repository from app state.

    Args:
        request: The current request.

    Returns:
        The configured SharingRepository.
    """
    repo: SharingRepository = request.app.state.repository
    return repo


def get_access_resolver(
    repo: Annotated[SharingRepository, Depends(get_repository)],
) -> AccessResolver:
    """Build an AccessResolver over the app repository."""
    return AccessResolver(repo)


def get_share_service(
    repo: Annotated[SharingRepository, Depends(get_repository)],
) -> ShareService:
    """Build a ShareService over the app repository."""
    return ShareService(repo)


def get_directory_service(
    repo: Annotated[SharingRepository, Depends(get_repository)],
) -> DirectoryService:
    """Build a DirectoryService over the app repository."""
    return DirectoryService(repo)
