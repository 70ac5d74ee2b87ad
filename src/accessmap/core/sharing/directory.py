"""User, group and resource management."""

from uuid import UUID

import structlog

from accessmap.core.exceptions import MembershipExistsError, NotFoundError, ValidationError
from accessmap.core.sharing.repository import SharingRepository
from accessmap.core.sharing.types import Group, Resource, User

logger = structlog.get_logger()


class DirectoryService:
    """Operations on the entities shares refer to."""

    def __init__(self, repo: SharingRepository) -> None:
        """Initialize with a sharing repository."""
        self._repo = repo

    # Users
    async def get_user(self, user_id: UUID) -> User:
        """Get a user or raise NotFoundError."""
        user = await self._repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(self, limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
        """List one page of users and the total count."""
        users = await self._repo.list_users(limit=limit, offset=offset)
        total = await self._repo.count_users()
        return users, total

    async def create_user(self, name: str, email: str) -> User:
        """Create a user."""
        if not name.strip():
            raise ValidationError("name", "must not be blank")
        user = await self._repo.create_user(name=name, email=email)
        logger.info("user_created", user_id=str(user.id))
        return user

    async def get_user_groups(self, user_id: UUID) -> list[Group]:
        """List the groups a user belongs to."""
        await self.get_user(user_id)
        return await self._repo.list_user_groups(user_id)

    # Groups
    async def get_group(self, group_id: UUID) -> Group:
        """Get a group or raise NotFoundError."""
        group = await self._repo.get_group(group_id)
        if group is None:
            raise NotFoundError("Group", group_id)
        return group

    async def list_groups(self, limit: int = 50, offset: int = 0) -> list[Group]:
        """List one page of groups."""
        return await self._repo.list_groups(limit=limit, offset=offset)

    async def create_group(self, name: str, description: str | None = None) -> Group:
        """Create a group."""
        if not name.strip():
            raise ValidationError("name", "must not be blank")
        group = await self._repo.create_group(name=name, description=description)
        logger.info("group_created", group_id=str(group.id))
        return group

    async def add_user_to_group(self, user_id: UUID, group_id: UUID) -> None:
        """Add a user to a group.

        Raises:
            NotFoundError: If the user or group does not exist.
            MembershipExistsError: If the user is already a member.
        """
        await self.get_user(user_id)
        await self.get_group(group_id)
        if not await self._repo.add_member(group_id, user_id):
            raise MembershipExistsError(user_id, group_id)
        logger.info("group_member_added", group_id=str(group_id), user_id=str(user_id))

    async def remove_user_from_group(self, user_id: UUID, group_id: UUID) -> None:
        """Remove a user from a group. Removing a non-member is a no-op."""
        await self.get_group(group_id)
        removed = await self._repo.remove_member(group_id, user_id)
        if removed:
            logger.info("group_member_removed", group_id=str(group_id), user_id=str(user_id))

    async def get_group_users(self, group_id: UUID) -> list[User]:
        """List members of a group."""
        await self.get_group(group_id)
        return await self._repo.list_group_members(group_id)

    # Resources
    async def get_resource(self, resource_id: UUID) -> Resource:
        """Get a resource or raise NotFoundError."""
        resource = await self._repo.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)
        return resource

    async def list_resources(
        self, limit: int = 50, offset: int = 0
    ) -> tuple[list[Resource], int]:
        """List one page of resources and the total count."""
        resources = await self._repo.list_resources(limit=limit, offset=offset)
        total = await self._repo.count_resources()
        return resources, total

    async def list_global_resources(self) -> list[Resource]:
        """List every global resource."""
        return await self._repo.list_resources(global_only=True)

    async def create_resource(
        self,
        name: str,
        description: str | None = None,
        is_global: bool = False,
    ) -> Resource:
        """Create a resource."""
        if not name.strip():
            raise ValidationError("name", "must not be blank")
        resource = await self._repo.create_resource(
            name=name, description=description, is_global=is_global
        )
        logger.info("resource_created", resource_id=str(resource.id), is_global=is_global)
        return resource

    async def update_resource(
        self,
        resource_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_global: bool | None = None,
        clear_description: bool = False,
    ) -> Resource:
        """Update a resource.

        None fields are left unchanged. Pass `clear_description` to remove
        the description.

        Existing shares are kept when a resource becomes global; they stop
        contributing to access until the flag is cleared.
        """
        if name is not None and not name.strip():
            raise ValidationError("name", "must not be blank")
        resource = await self._repo.update_resource(
            resource_id,
            name=name,
            description=description,
            is_global=is_global,
            clear_description=clear_description,
        )
        if resource is None:
            raise NotFoundError("Resource", resource_id)
        return resource

    async def delete_resource(self, resource_id: UUID) -> None:
        """Delete a resource and its shares."""
        if not await self._repo.delete_resource(resource_id):
            raise NotFoundError("Resource", resource_id)
        logger.info("resource_deleted", resource_id=str(resource_id))
