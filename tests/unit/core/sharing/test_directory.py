"""Tests for the directory service."""

from __future__ import annotations

from uuid import uuid4

import pytest

from accessmap.core.exceptions import (
    ConflictError,
    MembershipExistsError,
    NotFoundError,
    ValidationError,
)
from accessmap.core.sharing import DirectoryService
from tests.fixtures.domain_objects import Scenario


@pytest.fixture
def directory(scenario: Scenario) -> DirectoryService:
    """Directory service over the scenario repository."""
    return DirectoryService(scenario.repo)


class TestUsers:
    """Tests for user operations."""

    async def test_list_users_paginates(self, directory: DirectoryService) -> None:
        users, total = await directory.list_users(limit=2, offset=1)

        assert [u.name for u in users] == ["Bob", "Carol"]
        assert total == 4

    async def test_create_user(self, directory: DirectoryService) -> None:
        user = await directory.create_user("Erin", "erin@example.com")

        assert (await directory.get_user(user.id)).email == "erin@example.com"

    async def test_duplicate_email(self, directory: DirectoryService) -> None:
        with pytest.raises(ConflictError):
            await directory.create_user("Alice Two", "alice@example.com")

    async def test_blank_name(self, directory: DirectoryService) -> None:
        with pytest.raises(ValidationError):
            await directory.create_user("  ", "blank@example.com")

    async def test_get_missing_user(self, directory: DirectoryService) -> None:
        with pytest.raises(NotFoundError):
            await directory.get_user(uuid4())

    async def test_user_groups(self, directory: DirectoryService, scenario: Scenario) -> None:
        groups = await directory.get_user_groups(scenario.alice.id)

        assert [g.name for g in groups] == ["Team"]


class TestGroups:
    """Tests for group operations."""

    async def test_add_member(self, directory: DirectoryService, scenario: Scenario) -> None:
        await directory.add_user_to_group(scenario.carol.id, scenario.team.id)

        members = await directory.get_group_users(scenario.team.id)
        assert [u.name for u in members] == ["Alice", "Bob", "Carol"]

    async def test_add_existing_member(
        self, directory: DirectoryService, scenario: Scenario
    ) -> None:
        with pytest.raises(MembershipExistsError):
            await directory.add_user_to_group(scenario.alice.id, scenario.team.id)

    async def test_add_missing_user(self, directory: DirectoryService, scenario: Scenario) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await directory.add_user_to_group(uuid4(), scenario.team.id)

        assert exc_info.value.kind == "User"

    async def test_remove_member(self, directory: DirectoryService, scenario: Scenario) -> None:
        await directory.remove_user_from_group(scenario.bob.id, scenario.team.id)

        members = await directory.get_group_users(scenario.team.id)
        assert [u.name for u in members] == ["Alice"]

    async def test_remove_non_member_is_noop(
        self, directory: DirectoryService, scenario: Scenario
    ) -> None:
        await directory.remove_user_from_group(scenario.dave.id, scenario.team.id)

        assert len(await directory.get_group_users(scenario.team.id)) == 2

    async def test_create_group(self, directory: DirectoryService) -> None:
        group = await directory.create_group("Ops", "Operations")

        assert (await directory.get_group(group.id)).description == "Operations"


class TestResources:
    """Tests for resource operations."""

    async def test_list_resources(self, directory: DirectoryService) -> None:
        resources, total = await directory.list_resources(limit=10)

        assert [r.name for r in resources] == ["Handbook", "Notes", "Roadmap"]
        assert total == 3

    async def test_list_global(self, directory: DirectoryService) -> None:
        resources = await directory.list_global_resources()

        assert [r.name for r in resources] == ["Handbook"]

    async def test_update_resource(self, directory: DirectoryService, scenario: Scenario) -> None:
        updated = await directory.update_resource(scenario.notes.id, is_global=True)

        assert updated.is_global is True
        assert updated.name == "Notes"

    async def test_update_missing(self, directory: DirectoryService) -> None:
        with pytest.raises(NotFoundError):
            await directory.update_resource(uuid4(), name="Nope")

    async def test_delete_removes_shares(
        self, directory: DirectoryService, scenario: Scenario
    ) -> None:
        await directory.delete_resource(scenario.notes.id)

        assert scenario.notes.id not in scenario.repo.resources
        assert scenario.notes_share.id not in scenario.repo.shares

    async def test_delete_missing(self, directory: DirectoryService) -> None:
        with pytest.raises(NotFoundError):
            await directory.delete_resource(uuid4())
