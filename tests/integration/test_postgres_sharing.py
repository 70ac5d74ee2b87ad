"""Integration tests for the PostgreSQL sharing repository with a real database."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator

import pytest

from accessmap.adapters.db.app_db import AppDatabase
from accessmap.adapters.sharing.postgres import PostgresSharingRepository
from accessmap.core.exceptions import ShareAlreadyExistsError
from accessmap.core.sharing import AccessReason, AccessResolver, ShareService, ShareTarget
from accessmap.demo.seed import (
    BOB_ID,
    DEV_TOOLS_ID,
    FINANCIAL_REPORTS_ID,
    HANDBOOK_ID,
    JOHN_ID,
    PROJECT_DOCS_ID,
    seed_database,
)

DATABASE_URL = os.getenv("TEST_DATABASE_URL", "postgresql://localhost/accessmap_test")


@pytest.mark.integration
class TestPostgresSharingIntegration:
    """Resolver and share service against the seeded schema."""

    @pytest.fixture
    async def db(self) -> AsyncGenerator[AppDatabase, None]:
        """Create the schema, seed it, and connect."""
        db = AppDatabase(dsn=DATABASE_URL)
        try:
            await seed_database(DATABASE_URL)
            await db.connect()
        except Exception as e:
            pytest.skip(f"Database not available: {e}")
        yield db
        await db.close()

    @pytest.fixture
    def repo(self, db: AppDatabase) -> PostgresSharingRepository:
        """Repository over the test database."""
        return PostgresSharingRepository(db)

    async def test_access_list(self, repo: PostgresSharingRepository) -> None:
        result = await AccessResolver(repo).resolve_resource_access_list(PROJECT_DOCS_ID)

        assert [(u.user.name, u.reason) for u in result.users] == [
            ("Jane Smith", AccessReason.DIRECT),
            ("John Doe", AccessReason.DIRECT),
        ]
        assert result.metadata.direct_shares == 2

    async def test_user_resources(self, repo: PostgresSharingRepository) -> None:
        result = await AccessResolver(repo).resolve_user_resources(JOHN_ID)

        reasons = {r.resource.id: r.reason for r in result.resources}
        assert reasons[HANDBOOK_ID] is AccessReason.GLOBAL
        assert reasons[DEV_TOOLS_ID] is AccessReason.GROUP
        assert reasons[PROJECT_DOCS_ID] is AccessReason.DIRECT

    async def test_check_access_group(self, repo: PostgresSharingRepository) -> None:
        result = await AccessResolver(repo).check_access(BOB_ID, FINANCIAL_REPORTS_ID)

        assert result.reason is AccessReason.GROUP
        assert result.granted_at is not None

    async def test_concurrent_duplicate_share_has_one_winner(
        self, repo: PostgresSharingRepository
    ) -> None:
        service = ShareService(repo)
        target = ShareTarget.user(BOB_ID)

        results = await asyncio.gather(
            *(service.create_share(PROJECT_DOCS_ID, target) for _ in range(3)),
            return_exceptions=True,
        )

        created = [r for r in results if not isinstance(r, BaseException)]
        try:
            assert len(created) == 1
            assert all(
                isinstance(r, ShareAlreadyExistsError)
                for r in results
                if isinstance(r, BaseException)
            )
        finally:
            for share in created:
                await service.revoke_share(PROJECT_DOCS_ID, share.id)
