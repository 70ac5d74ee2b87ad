"""Sharing repository protocol for storage operations."""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from accessmap.core.sharing.types import (
    Group,
    Membership,
    Resource,
    ResourceShare,
    ShareTarget,
    ShareType,
    User,
)


@runtime_checkable
class SharingRepository(Protocol):
    """Protocol for sharing storage operations.

    Implementations provide actual storage access (PostgreSQL, in-memory).
    Listing methods return rows ordered by name unless stated otherwise.
    Storage failures surface as StorageError.
    """

    # User operations
    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def list_users(self, limit: int | None = None, offset: int = 0) -> list[User]:
        """List users ordered by name."""
        ...

    async def count_users(self) -> int:
        """Count all users."""
        ...

    async def create_user(self, name: str, email: str) -> User:
        """Create a user. Raises ConflictError on duplicate email."""
        ...

    # Group operations
    async def get_group(self, group_id: UUID) -> Group | None:
        """Get group by ID."""
        ...

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        """List groups ordered by name."""
        ...

    async def create_group(self, name: str, description: str | None = None) -> Group:
        """Create a group."""
        ...

    async def add_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Add a user to a group. Returns False if already a member."""
        ...

    async def remove_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Remove a user from a group. Returns False if not a member."""
        ...

    async def list_group_members(self, group_id: UUID) -> list[User]:
        """List users in a group ordered by name."""
        ...

    async def list_user_groups(self, user_id: UUID) -> list[Group]:
        """List groups a user belongs to ordered by name."""
        ...

    async def get_user_group_ids(self, user_id: UUID) -> list[UUID]:
        """Get IDs of the groups a user belongs to."""
        ...

    async def list_memberships(self) -> list[Membership]:
        """List every membership row."""
        ...

    # Resource operations
    async def get_resource(self, resource_id: UUID) -> Resource | None:
        """Get resource by ID."""
        ...

    async def list_resources(
        self,
        limit: int | None = None,
        offset: int = 0,
        global_only: bool = False,
    ) -> list[Resource]:
        """List resources ordered by name."""
        ...

    async def count_resources(self, global_only: bool = False) -> int:
        """Count resources, optionally only global ones."""
        ...

    async def create_resource(
        self,
        name: str,
        description: str | None = None,
        is_global: bool = False,
    ) -> Resource:
        """Create a resource."""
        ...

    async def update_resource(
        self,
        resource_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_global: bool | None = None,
        clear_description: bool = False,
    ) -> Resource | None:
        """Update resource fields. Returns None if not found.

        None fields are left unchanged. `clear_description` sets the
        description to NULL.
        """
        ...

    async def delete_resource(self, resource_id: UUID) -> bool:
        """Delete a resource and its shares."""
        ...

    # Share operations
    async def create_share(self, resource_id: UUID, target: ShareTarget) -> ResourceShare:
        """Insert a share. Raises ShareAlreadyExistsError on a duplicate grant."""
        ...

    async def get_share(self, share_id: UUID) -> ResourceShare | None:
        """Get share by ID."""
        ...

    async def delete_share(self, share_id: UUID) -> bool:
        """Delete a share."""
        ...

    async def list_shares(self) -> list[ResourceShare]:
        """List every share row."""
        ...

    async def list_resource_shares(self, resource_id: UUID) -> list[ResourceShare]:
        """List shares on one resource ordered by creation time."""
        ...

    async def list_shares_for_targets(
        self, user_id: UUID, group_ids: Sequence[UUID]
    ) -> list[ResourceShare]:
        """List shares naming the user directly or any of the given groups."""
        ...

    async def count_resource_shares(self, resource_id: UUID, share_type: ShareType) -> int:
        """Count share rows of one kind on a resource."""
        ...

    async def find_direct_share_time(self, resource_id: UUID, user_id: UUID) -> datetime | None:
        """Creation time of the share naming the user on the resource, if any."""
        ...

    async def find_group_share_time(
        self, resource_id: UUID, group_ids: Sequence[UUID]
    ) -> datetime | None:
        """Earliest creation time of a share naming any of the groups, if any."""
        ...

    async def list_direct_share_users(self, resource_id: UUID) -> list[User]:
        """Users named by user-type shares on the resource."""
        ...

    async def list_group_share_users(self, resource_id: UUID) -> list[User]:
        """Members of groups named by group-type shares on the resource.

        May contain the same user more than once.
        """
        ...
