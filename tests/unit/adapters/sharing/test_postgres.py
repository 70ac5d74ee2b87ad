"""Tests for the PostgreSQL sharing repository."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from accessmap.adapters.sharing.postgres import PostgresSharingRepository
from accessmap.core.exceptions import ConflictError, ShareAlreadyExistsError
from accessmap.core.sharing import SharingRepository, ShareTarget, ShareType


@pytest.fixture
def repository(mock_db: MagicMock) -> PostgresSharingRepository:
    """Create repository with mock database."""
    return PostgresSharingRepository(mock_db)


def _user_row(name: str = "Jane Smith") -> dict[str, object]:
    return {
        "id": uuid4(),
        "name": name,
        "email": f"{name.split()[0].lower()}@example.com",
        "created_at": datetime.now(UTC),
    }


def _resource_row(is_global: bool = False) -> dict[str, object]:
    return {
        "id": uuid4(),
        "name": "Financial Reports",
        "description": None,
        "is_global": is_global,
        "created_at": datetime.now(UTC),
    }


def test_satisfies_protocol(repository: PostgresSharingRepository) -> None:
    assert isinstance(repository, SharingRepository)


class TestUsers:
    """Tests for user queries."""

    async def test_get_user(self, repository: PostgresSharingRepository, mock_db: MagicMock) -> None:
        row = _user_row()
        mock_db.fetch_one = AsyncMock(return_value=row)

        user = await repository.get_user(row["id"])  # type: ignore[arg-type]

        assert user is not None
        assert user.name == "Jane Smith"

    async def test_get_user_not_found(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.fetch_one = AsyncMock(return_value=None)

        assert await repository.get_user(uuid4()) is None

    async def test_list_users_passes_window(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.fetch_all = AsyncMock(return_value=[_user_row("A"), _user_row("B")])

        users = await repository.list_users(limit=10, offset=20)

        assert [u.name for u in users] == ["A", "B"]
        args = mock_db.fetch_all.call_args[0]
        assert "ORDER BY u.name" in args[0]
        assert args[1:] == (10, 20)

    async def test_create_user_duplicate_email(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.execute_returning = AsyncMock(side_effect=asyncpg.UniqueViolationError("dup"))

        with pytest.raises(ConflictError):
            await repository.create_user("Jane", "jane@example.com")


class TestMemberships:
    """Tests for membership statements."""

    async def test_add_member_inserted(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value="INSERT 0 1")

        assert await repository.add_member(uuid4(), uuid4()) is True

    async def test_add_member_existing(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value="INSERT 0 0")

        assert await repository.add_member(uuid4(), uuid4()) is False

    async def test_get_user_group_ids(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        group_id = uuid4()
        mock_db.fetch_all = AsyncMock(return_value=[{"group_id": group_id}])

        assert await repository.get_user_group_ids(uuid4()) == [group_id]


class TestResources:
    """Tests for resource queries."""

    async def test_list_global_only(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.fetch_all = AsyncMock(return_value=[_resource_row(is_global=True)])

        resources = await repository.list_resources(global_only=True)

        assert resources[0].is_global is True
        assert mock_db.fetch_all.call_args[0][1:] == (None, 0, True)

    async def test_update_without_fields_reads_current(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        row = _resource_row()
        mock_db.fetch_one = AsyncMock(return_value=row)

        resource = await repository.update_resource(row["id"])  # type: ignore[arg-type]

        assert resource is not None
        mock_db.execute_returning.assert_not_called()

    async def test_update_builds_set_clause(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        row = _resource_row(is_global=True)
        mock_db.execute_returning = AsyncMock(return_value=row)

        await repository.update_resource(row["id"], name="New", is_global=True)  # type: ignore[arg-type]

        query, *params = mock_db.execute_returning.call_args[0]
        assert "name = $2" in query
        assert "is_global = $3" in query
        assert params == [row["id"], "New", True]

    async def test_update_clears_description(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        row = _resource_row()
        mock_db.execute_returning = AsyncMock(return_value=row)

        await repository.update_resource(
            row["id"], description="ignored", clear_description=True  # type: ignore[arg-type]
        )

        query, *params = mock_db.execute_returning.call_args[0]
        assert "description = NULL" in query
        assert params == [row["id"]]

    async def test_delete_missing(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.execute = AsyncMock(return_value="DELETE 0")

        assert await repository.delete_resource(uuid4()) is False


class TestShares:
    """Tests for share statements."""

    async def test_create_share(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        resource_id = uuid4()
        group_id = uuid4()
        mock_db.execute_returning = AsyncMock(
            return_value={
                "id": uuid4(),
                "resource_id": resource_id,
                "share_type": "group",
                "target_id": group_id,
                "created_at": datetime.now(UTC),
            }
        )

        share = await repository.create_share(resource_id, ShareTarget.group(group_id))

        assert share.share_type is ShareType.GROUP
        assert share.target_id == group_id
        assert mock_db.execute_returning.call_args[0][1:] == (resource_id, "group", group_id)

    async def test_create_share_duplicate(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        mock_db.execute_returning = AsyncMock(side_effect=asyncpg.UniqueViolationError("dup"))

        with pytest.raises(ShareAlreadyExistsError):
            await repository.create_share(uuid4(), ShareTarget.user(uuid4()))

    async def test_count_resource_shares(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        resource_id = uuid4()
        mock_db.fetch_val = AsyncMock(return_value=3)

        count = await repository.count_resource_shares(resource_id, ShareType.USER)

        assert count == 3
        assert mock_db.fetch_val.call_args[0][1:] == (resource_id, "user")

    async def test_find_group_share_time_passes_array(
        self, repository: PostgresSharingRepository, mock_db: MagicMock
    ) -> None:
        granted = datetime.now(UTC)
        group_ids = (uuid4(), uuid4())
        mock_db.fetch_val = AsyncMock(return_value=granted)

        result = await repository.find_group_share_time(uuid4(), group_ids)

        assert result == granted
        query, _, ids = mock_db.fetch_val.call_args[0]
        assert "MIN(created_at)" in query
        assert ids == list(group_ids)
