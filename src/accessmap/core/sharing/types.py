"""Sharing domain types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class ShareType(str, Enum):
    """Kind of entity a share targets."""

    USER = "user"
    GROUP = "group"


class AccessReason(str, Enum):
    """Why a user has access to a resource.

    Declared in display precedence order: global, then direct, then group.
    """

    GLOBAL = "global"
    DIRECT = "direct"
    GROUP = "group"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ShareTarget:
    """Tagged reference to a share grantee."""

    kind: ShareType
    id: UUID

    @classmethod
    def user(cls, user_id: UUID) -> ShareTarget:
        """Target a single user."""
        return cls(ShareType.USER, user_id)

    @classmethod
    def group(cls, group_id: UUID) -> ShareTarget:
        """Target every member of a group."""
        return cls(ShareType.GROUP, group_id)


@dataclass
class User:
    """A user of the system."""

    id: UUID
    name: str
    email: str
    created_at: datetime


@dataclass
class Group:
    """A named collection of users."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime


@dataclass
class Membership:
    """A user's membership in a group."""

    user_id: UUID
    group_id: UUID
    joined_at: datetime


@dataclass
class Resource:
    """A shareable resource."""

    id: UUID
    name: str
    description: str | None
    is_global: bool
    created_at: datetime


@dataclass
class ResourceShare:
    """A grant on a resource (ACL entry)."""

    id: UUID
    resource_id: UUID
    target: ShareTarget
    created_at: datetime

    @property
    def share_type(self) -> ShareType:
        """Get the kind of grantee."""
        return self.target.kind

    @property
    def target_id(self) -> UUID:
        """Get the grantee ID."""
        return self.target.id


@dataclass
class Page:
    """Pagination window and the size of the windowed set."""

    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        """Whether items remain past this window."""
        return self.offset + self.limit < self.total


@dataclass
class UserAccess:
    """A user with the reason they can reach a resource."""

    user: User
    reason: AccessReason


@dataclass
class AccessListMetadata:
    """Counts reported alongside a resource access list.

    ``direct_shares`` and ``group_shares`` count share rows, not users.
    """

    total_users: int
    direct_shares: int
    group_shares: int
    is_global: bool


@dataclass
class ResourceAccessList:
    """Everyone who can access one resource."""

    resource: Resource
    users: list[UserAccess]
    metadata: AccessListMetadata


@dataclass
class ResourceAccess:
    """A resource with the reason a user can reach it."""

    resource: Resource
    reason: AccessReason
    granted_at: datetime | None = None


@dataclass
class UserResources:
    """One page of the resources a user can access."""

    user: User
    resources: list[ResourceAccess]
    pagination: Page


@dataclass
class AccessCheckResult:
    """Outcome of a single user/resource access check."""

    has_access: bool
    reason: AccessReason | None = None
    granted_at: datetime | None = None


@dataclass
class ResourceUsage:
    """Per-resource reporting row."""

    resource: Resource
    user_count: int
    direct_shares: int
    group_shares: int


@dataclass
class ResourceStatsSummary:
    """Summary for resource statistics.

    ``avg_users_per_resource`` is computed over the returned page only.
    """

    total_resources: int
    global_resources: int
    total_unique_users: int
    avg_users_per_resource: float


@dataclass
class ResourceStatistics:
    """A page of resource usage rows."""

    resources: list[ResourceUsage]
    pagination: Page
    summary: ResourceStatsSummary


@dataclass
class UserUsage:
    """Per-user reporting row.

    ``direct_resources`` and ``group_resources`` are raw share counts and may
    overlap each other; ``resource_count`` is deduplicated.
    """

    user: User
    resource_count: int
    direct_resources: int
    group_resources: int
    global_resources: int


@dataclass
class UserStatsSummary:
    """Summary for user statistics (page-local average)."""

    total_users: int
    total_resources: int
    avg_resources_per_user: float


@dataclass
class UserStatistics:
    """A page of user usage rows."""

    users: list[UserUsage]
    pagination: Page
    summary: UserStatsSummary

