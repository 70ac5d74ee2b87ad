"""In-memory sharing repository.

This repository is useful for:
- Unit and property testing of the resolver without a database
- Demo mode, seeded with sample data at startup
- Development without database setup

It enforces the same uniqueness rules as the PostgreSQL schema.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TypeVar
from uuid import UUID, uuid4

from accessmap.core.exceptions import ConflictError, ShareAlreadyExistsError
from accessmap.core.sharing.types import (
    Group,
    Membership,
    Resource,
    ResourceShare,
    ShareTarget,
    ShareType,
    User,
)

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(UTC)


class InMemorySharingRepository:
    """Dictionary-backed implementation of SharingRepository.

    Attributes:
        users: Users by ID.
        groups: Groups by ID.
        memberships: Memberships keyed by (user_id, group_id).
        resources: Resources by ID.
        shares: Shares by ID.
    """

    def __init__(self) -> None:
        """Initialize empty tables."""
        self.users: dict[UUID, User] = {}
        self.groups: dict[UUID, Group] = {}
        self.memberships: dict[tuple[UUID, UUID], Membership] = {}
        self.resources: dict[UUID, Resource] = {}
        self.shares: dict[UUID, ResourceShare] = {}

    @staticmethod
    def _page(items: list[T], limit: int | None, offset: int) -> list[T]:
        end = None if limit is None else offset + limit
        return items[offset:end]

    # User operations
    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return self.users.get(user_id)

    async def list_users(self, limit: int | None = None, offset: int = 0) -> list[User]:
        """List users ordered by name."""
        ordered = sorted(self.users.values(), key=lambda u: (u.name, str(u.id)))
        return self._page(ordered, limit, offset)

    async def count_users(self) -> int:
        """Count all users."""
        return len(self.users)

    async def create_user(self, name: str, email: str) -> User:
        """Create a user."""
        if any(u.email == email for u in self.users.values()):
            raise ConflictError(
                f"User with email '{email}' already exists", details={"email": email}
            )
        user = User(id=uuid4(), name=name, email=email, created_at=_now())
        self.users[user.id] = user
        return user

    # Group operations
    async def get_group(self, group_id: UUID) -> Group | None:
        """Get group by ID."""
        return self.groups.get(group_id)

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        """List groups ordered by name."""
        ordered = sorted(self.groups.values(), key=lambda g: (g.name, str(g.id)))
        return self._page(ordered, limit, offset)

    async def create_group(self, name: str, description: str | None = None) -> Group:
        """Create a group."""
        group = Group(id=uuid4(), name=name, description=description, created_at=_now())
        self.groups[group.id] = group
        return group

    async def add_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Add a user to a group."""
        key = (user_id, group_id)
        if key in self.memberships:
            return False
        self.memberships[key] = Membership(user_id=user_id, group_id=group_id, joined_at=_now())
        return True

    async def remove_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Remove a user from a group."""
        return self.memberships.pop((user_id, group_id), None) is not None

    async def list_group_members(self, group_id: UUID) -> list[User]:
        """List users in a group."""
        members = [
            self.users[m.user_id]
            for m in self.memberships.values()
            if m.group_id == group_id and m.user_id in self.users
        ]
        return sorted(members, key=lambda u: (u.name, str(u.id)))

    async def list_user_groups(self, user_id: UUID) -> list[Group]:
        """List groups a user belongs to."""
        groups = [
            self.groups[m.group_id]
            for m in self.memberships.values()
            if m.user_id == user_id and m.group_id in self.groups
        ]
        return sorted(groups, key=lambda g: (g.name, str(g.id)))

    async def get_user_group_ids(self, user_id: UUID) -> list[UUID]:
        """Get group IDs for a user."""
        return [m.group_id for m in self.memberships.values() if m.user_id == user_id]

    async def list_memberships(self) -> list[Membership]:
        """List every membership row."""
        return list(self.memberships.values())

    # Resource operations
    async def get_resource(self, resource_id: UUID) -> Resource | None:
        """Get resource by ID."""
        return self.resources.get(resource_id)

    async def list_resources(
        self,
        limit: int | None = None,
        offset: int = 0,
        global_only: bool = False,
    ) -> list[Resource]:
        """List resources ordered by name."""
        ordered = sorted(
            (r for r in self.resources.values() if r.is_global or not global_only),
            key=lambda r: (r.name, str(r.id)),
        )
        return self._page(ordered, limit, offset)

    async def count_resources(self, global_only: bool = False) -> int:
        """Count resources."""
        return sum(1 for r in self.resources.values() if r.is_global or not global_only)

    async def create_resource(
        self,
        name: str,
        description: str | None = None,
        is_global: bool = False,
    ) -> Resource:
        """Create a resource."""
        resource = Resource(
            id=uuid4(),
            name=name,
            description=description,
            is_global=is_global,
            created_at=_now(),
        )
        self.resources[resource.id] = resource
        return resource

    async def update_resource(
        self,
        resource_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_global: bool | None = None,
        clear_description: bool = False,
    ) -> Resource | None:
        """Update resource fields."""
        resource = self.resources.get(resource_id)
        if resource is None:
            return None
        if name is not None:
            resource.name = name
        if clear_description:
            resource.description = None
        elif description is not None:
            resource.description = description
        if is_global is not None:
            resource.is_global = is_global
        return resource

    async def delete_resource(self, resource_id: UUID) -> bool:
        """Delete a resource and its shares."""
        if self.resources.pop(resource_id, None) is None:
            return False
        for share_id in [s.id for s in self.shares.values() if s.resource_id == resource_id]:
            del self.shares[share_id]
        return True

    # Share operations
    async def create_share(self, resource_id: UUID, target: ShareTarget) -> ResourceShare:
        """Insert a share, rejecting duplicate grants."""
        for share in self.shares.values():
            if share.resource_id == resource_id and share.target == target:
                raise ShareAlreadyExistsError(resource_id, target.kind.value, target.id)
        share = ResourceShare(id=uuid4(), resource_id=resource_id, target=target, created_at=_now())
        self.shares[share.id] = share
        return share

    async def get_share(self, share_id: UUID) -> ResourceShare | None:
        """Get share by ID."""
        return self.shares.get(share_id)

    async def delete_share(self, share_id: UUID) -> bool:
        """Delete a share."""
        return self.shares.pop(share_id, None) is not None

    async def list_shares(self) -> list[ResourceShare]:
        """List every share row."""
        return list(self.shares.values())

    async def list_resource_shares(self, resource_id: UUID) -> list[ResourceShare]:
        """List shares on one resource."""
        shares = [s for s in self.shares.values() if s.resource_id == resource_id]
        return sorted(shares, key=lambda s: (s.created_at, str(s.id)))

    async def list_shares_for_targets(
        self, user_id: UUID, group_ids: Sequence[UUID]
    ) -> list[ResourceShare]:
        """List shares naming the user or any of the groups."""
        targets = {ShareTarget.user(user_id)} | {ShareTarget.group(g) for g in group_ids}
        return [s for s in self.shares.values() if s.target in targets]

    async def count_resource_shares(self, resource_id: UUID, share_type: ShareType) -> int:
        """Count share rows of one kind on a resource."""
        return sum(
            1
            for s in self.shares.values()
            if s.resource_id == resource_id and s.share_type is share_type
        )

    async def find_direct_share_time(self, resource_id: UUID, user_id: UUID) -> datetime | None:
        """Creation time of the user's direct share, if any."""
        target = ShareTarget.user(user_id)
        for share in self.shares.values():
            if share.resource_id == resource_id and share.target == target:
                return share.created_at
        return None

    async def find_group_share_time(
        self, resource_id: UUID, group_ids: Sequence[UUID]
    ) -> datetime | None:
        """Earliest creation time of a share naming any of the groups."""
        targets = {ShareTarget.group(g) for g in group_ids}
        times = [
            s.created_at
            for s in self.shares.values()
            if s.resource_id == resource_id and s.target in targets
        ]
        return min(times) if times else None

    async def list_direct_share_users(self, resource_id: UUID) -> list[User]:
        """Users named by user-type shares on the resource."""
        return [
            self.users[s.target_id]
            for s in self.shares.values()
            if s.resource_id == resource_id
            and s.share_type is ShareType.USER
            and s.target_id in self.users
        ]

    async def list_group_share_users(self, resource_id: UUID) -> list[User]:
        """Members of groups named by group-type shares on the resource."""
        shared_groups = {
            s.target_id
            for s in self.shares.values()
            if s.resource_id == resource_id and s.share_type is ShareType.GROUP
        }
        return [
            self.users[m.user_id]
            for m in self.memberships.values()
            if m.group_id in shared_groups and m.user_id in self.users
        ]
