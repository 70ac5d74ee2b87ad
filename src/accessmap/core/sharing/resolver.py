"""Access resolution across direct, group and global grants.

The resolver is stateless: every call reads committed state through the
repository and derives access on demand. Nothing computed here is stored.

Reason precedence for display is global, then direct, then group. Access
itself is the union of all three paths, deduplicated by entity ID before
anything is counted.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

import structlog

from accessmap.core.exceptions import ErrorCode, NotFoundError, ValidationError
from accessmap.core.sharing.repository import SharingRepository
from accessmap.core.sharing.types import (
    AccessCheckResult,
    AccessListMetadata,
    AccessReason,
    Page,
    Resource,
    ResourceAccess,
    ResourceAccessList,
    ResourceShare,
    ResourceStatistics,
    ResourceStatsSummary,
    ResourceUsage,
    ShareType,
    SortOrder,
    User,
    UserAccess,
    UserResources,
    UserStatistics,
    UserStatsSummary,
    UserUsage,
)

logger = structlog.get_logger()

T = TypeVar("T")

USER_RESOURCE_SORTS = frozenset({"name", "createdAt"})
RESOURCE_STAT_SORTS = frozenset({"name", "createdAt", "userCount"})
USER_STAT_SORTS = frozenset({"name", "email", "createdAt", "resourceCount"})

_SORT_ALIASES = {
    "created_at": "createdAt",
    "user_count": "userCount",
    "resource_count": "resourceCount",
}


def resolve_sort(
    sort: str | None,
    order: SortOrder | str | None,
    allowed: frozenset[str],
) -> tuple[str, SortOrder]:
    """Normalize a sort request against an allow-list.

    Unrecognized fields fall back to name ascending rather than erroring.
    """
    field = _SORT_ALIASES.get(sort or "", sort or "")
    if field not in allowed:
        return "name", SortOrder.ASC
    try:
        direction = SortOrder(order) if order is not None else SortOrder.ASC
    except ValueError:
        direction = SortOrder.ASC
    return field, direction


def validate_window(limit: int, offset: int) -> None:
    """Reject out-of-range pagination."""
    if limit < 1:
        raise ValidationError("limit", "must be at least 1", code=ErrorCode.INVALID_PAGINATION)
    if offset < 0:
        raise ValidationError("offset", "must not be negative", code=ErrorCode.INVALID_PAGINATION)


def window(items: Sequence[T], limit: int, offset: int) -> list[T]:
    """Slice one page out of an already filtered and ordered list."""
    return list(items[offset : offset + limit])


def page_mean(values: Iterable[int]) -> float:
    """Arithmetic mean, 0 for no values."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def merge_user_access(direct: Iterable[User], group_members: Iterable[User]) -> list[UserAccess]:
    """Union direct and group grantees, one entry per user.

    A user reached both ways is reported as ``direct``. The result is ordered
    by display name.
    """
    merged: dict[UUID, UserAccess] = {}
    for user in direct:
        merged.setdefault(user.id, UserAccess(user=user, reason=AccessReason.DIRECT))
    for user in group_members:
        merged.setdefault(user.id, UserAccess(user=user, reason=AccessReason.GROUP))
    return sorted(merged.values(), key=lambda access: (access.user.name, str(access.user.id)))


def classify_resource(
    resource: Resource,
    direct_grants: dict[UUID, datetime],
    group_grants: dict[UUID, datetime],
) -> ResourceAccess | None:
    """Apply global -> direct -> group precedence to one resource."""
    if resource.is_global:
        return ResourceAccess(resource=resource, reason=AccessReason.GLOBAL)
    if resource.id in direct_grants:
        return ResourceAccess(
            resource=resource,
            reason=AccessReason.DIRECT,
            granted_at=direct_grants[resource.id],
        )
    if resource.id in group_grants:
        return ResourceAccess(
            resource=resource,
            reason=AccessReason.GROUP,
            granted_at=group_grants[resource.id],
        )
    return None


def _earliest_grants(shares: Iterable[ResourceShare]) -> dict[UUID, datetime]:
    """Map resource ID to the earliest share creation time."""
    grants: dict[UUID, datetime] = {}
    for share in shares:
        current = grants.get(share.resource_id)
        if current is None or share.created_at < current:
            grants[share.resource_id] = share.created_at
    return grants


def _sorted(
    items: list[T],
    field: str,
    order: SortOrder,
    keys: dict[str, Callable[[T], Any]],
    name_key: Callable[[T], str],
) -> list[T]:
    """Sort by the chosen field, breaking ties by name ascending."""
    if field == "name":
        return sorted(items, key=name_key, reverse=order is SortOrder.DESC)
    by_name = sorted(items, key=name_key)
    return sorted(by_name, key=keys[field], reverse=order is SortOrder.DESC)


class AccessResolver:
    """Computes who can access what, and why."""

    def __init__(self, repo: SharingRepository) -> None:
        """Initialize with a sharing repository.

        Args:
            repo: Storage used for every lookup.
        """
        self._repo = repo

    async def resolve_resource_access_list(self, resource_id: UUID) -> ResourceAccessList:
        """Get every user with access to a resource.

        Args:
            resource_id: Resource to resolve.

        Returns:
            The resource, its reason-tagged users ordered by name, and share
            counts.

        Raises:
            NotFoundError: If the resource does not exist.
        """
        resource = await self._repo.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)

        if resource.is_global:
            # Global access is authoritative; share rows are not consulted.
            users = await self._repo.list_users()
            return ResourceAccessList(
                resource=resource,
                users=[UserAccess(user=u, reason=AccessReason.GLOBAL) for u in users],
                metadata=AccessListMetadata(
                    total_users=len(users),
                    direct_shares=0,
                    group_shares=0,
                    is_global=True,
                ),
            )

        direct = await self._repo.list_direct_share_users(resource_id)
        group_members = await self._repo.list_group_share_users(resource_id)
        users_with_access = merge_user_access(direct, group_members)

        direct_count = await self._repo.count_resource_shares(resource_id, ShareType.USER)
        group_count = await self._repo.count_resource_shares(resource_id, ShareType.GROUP)

        logger.debug(
            "resource_access_resolved",
            resource_id=str(resource_id),
            total_users=len(users_with_access),
        )
        return ResourceAccessList(
            resource=resource,
            users=users_with_access,
            metadata=AccessListMetadata(
                total_users=len(users_with_access),
                direct_shares=direct_count,
                group_shares=group_count,
                is_global=False,
            ),
        )

    async def resolve_user_resources(
        self,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        sort: str | None = "name",
        order: SortOrder | str | None = SortOrder.ASC,
    ) -> UserResources:
        """Get one page of the resources a user can access.

        Pagination windows the access-filtered list, so ``total`` is the
        number of resources the user can actually reach.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If the window is out of range.
        """
        validate_window(limit, offset)
        field, direction = resolve_sort(sort, order, USER_RESOURCE_SORTS)

        user = await self._repo.get_user(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        group_ids = await self._repo.get_user_group_ids(user_id)
        resources = await self._repo.list_resources()
        shares = await self._repo.list_shares_for_targets(user_id, group_ids)

        member_of = set(group_ids)
        direct_grants = _earliest_grants(
            s for s in shares if s.share_type is ShareType.USER and s.target_id == user_id
        )
        group_grants = _earliest_grants(
            s for s in shares if s.share_type is ShareType.GROUP and s.target_id in member_of
        )

        accessible = [
            access
            for access in (
                classify_resource(resource, direct_grants, group_grants) for resource in resources
            )
            if access is not None
        ]
        accessible = _sorted(
            accessible,
            field,
            direction,
            keys={"createdAt": lambda a: a.resource.created_at},
            name_key=lambda a: a.resource.name,
        )

        return UserResources(
            user=user,
            resources=window(accessible, limit, offset),
            pagination=Page(total=len(accessible), limit=limit, offset=offset),
        )

    async def check_access(self, user_id: UUID, resource_id: UUID) -> AccessCheckResult:
        """Check whether one user can access one resource.

        Stops at the first rule that grants access. A resource that does not
        exist grants nothing instead of raising.
        """
        resource = await self._repo.get_resource(resource_id)
        if resource is None:
            return AccessCheckResult(has_access=False)

        if resource.is_global:
            return AccessCheckResult(has_access=True, reason=AccessReason.GLOBAL)

        granted_at = await self._repo.find_direct_share_time(resource_id, user_id)
        if granted_at is not None:
            return AccessCheckResult(
                has_access=True, reason=AccessReason.DIRECT, granted_at=granted_at
            )

        group_ids = await self._repo.get_user_group_ids(user_id)
        if group_ids:
            granted_at = await self._repo.find_group_share_time(resource_id, group_ids)
            if granted_at is not None:
                return AccessCheckResult(
                    has_access=True, reason=AccessReason.GROUP, granted_at=granted_at
                )

        return AccessCheckResult(has_access=False)

    async def resource_statistics(
        self,
        limit: int = 50,
        offset: int = 0,
        min_users: int = 0,
        sort: str | None = "name",
        order: SortOrder | str | None = SortOrder.ASC,
    ) -> ResourceStatistics:
        """Per-resource user counts for reporting.

        ``min_users`` filters the computed rows before the page is cut, and
        the summary average covers only the returned page.
        """
        validate_window(limit, offset)
        if min_users < 0:
            raise ValidationError("minUsers", "must not be negative")
        field, direction = resolve_sort(sort, order, RESOURCE_STAT_SORTS)

        resources = await self._repo.list_resources()
        total_users = await self._repo.count_users()
        shares = await self._repo.list_shares()
        memberships = await self._repo.list_memberships()

        members_by_group: dict[UUID, set[UUID]] = defaultdict(set)
        for membership in memberships:
            members_by_group[membership.group_id].add(membership.user_id)

        shares_by_resource: dict[UUID, list[ResourceShare]] = defaultdict(list)
        for share in shares:
            shares_by_resource[share.resource_id].append(share)

        rows: list[ResourceUsage] = []
        for resource in resources:
            if resource.is_global:
                rows.append(
                    ResourceUsage(
                        resource=resource,
                        user_count=total_users,
                        direct_shares=0,
                        group_shares=0,
                    )
                )
                continue

            direct_users: set[UUID] = set()
            group_users: set[UUID] = set()
            direct_count = 0
            group_count = 0
            for share in shares_by_resource[resource.id]:
                if share.share_type is ShareType.USER:
                    direct_users.add(share.target_id)
                    direct_count += 1
                else:
                    group_users |= members_by_group[share.target_id]
                    group_count += 1

            rows.append(
                ResourceUsage(
                    resource=resource,
                    user_count=len(direct_users | group_users),
                    direct_shares=direct_count,
                    group_shares=group_count,
                )
            )

        filtered = [row for row in rows if row.user_count >= min_users]
        filtered = _sorted(
            filtered,
            field,
            direction,
            keys={
                "createdAt": lambda r: r.resource.created_at,
                "userCount": lambda r: r.user_count,
            },
            name_key=lambda r: r.resource.name,
        )
        page = window(filtered, limit, offset)

        return ResourceStatistics(
            resources=page,
            pagination=Page(total=len(filtered), limit=limit, offset=offset),
            summary=ResourceStatsSummary(
                total_resources=len(resources),
                global_resources=sum(1 for r in resources if r.is_global),
                total_unique_users=total_users,
                avg_users_per_resource=page_mean(row.user_count for row in page),
            ),
        )

    async def user_statistics(
        self,
        limit: int = 50,
        offset: int = 0,
        min_resources: int = 0,
        sort: str | None = "name",
        order: SortOrder | str | None = SortOrder.ASC,
    ) -> UserStatistics:
        """Per-user resource counts for reporting.

        ``resource_count`` is deduplicated; ``direct_resources`` and
        ``group_resources`` are raw share counts and may overlap.
        """
        validate_window(limit, offset)
        if min_resources < 0:
            raise ValidationError("minResources", "must not be negative")
        field, direction = resolve_sort(sort, order, USER_STAT_SORTS)

        users = await self._repo.list_users()
        resources = await self._repo.list_resources()
        shares = await self._repo.list_shares()
        memberships = await self._repo.list_memberships()

        global_ids = {r.id for r in resources if r.is_global}
        global_count = len(global_ids)

        groups_by_user: dict[UUID, list[UUID]] = defaultdict(list)
        for membership in memberships:
            groups_by_user[membership.user_id].append(membership.group_id)

        shares_by_user: dict[UUID, list[ResourceShare]] = defaultdict(list)
        shares_by_group: dict[UUID, list[ResourceShare]] = defaultdict(list)
        for share in shares:
            if share.share_type is ShareType.USER:
                shares_by_user[share.target_id].append(share)
            else:
                shares_by_group[share.target_id].append(share)

        rows: list[UserUsage] = []
        for user in users:
            direct = shares_by_user[user.id]
            via_groups = [s for g in groups_by_user[user.id] for s in shares_by_group[g]]
            # Stray shares on global resources are already covered by global_count.
            unique = {s.resource_id for s in direct} | {s.resource_id for s in via_groups}
            rows.append(
                UserUsage(
                    user=user,
                    resource_count=len(unique - global_ids) + global_count,
                    direct_resources=len(direct),
                    group_resources=len(via_groups),
                    global_resources=global_count,
                )
            )

        filtered = [row for row in rows if row.resource_count >= min_resources]
        filtered = _sorted(
            filtered,
            field,
            direction,
            keys={
                "email": lambda r: r.user.email,
                "createdAt": lambda r: r.user.created_at,
                "resourceCount": lambda r: r.resource_count,
            },
            name_key=lambda r: r.user.name,
        )
        page = window(filtered, limit, offset)

        return UserStatistics(
            users=page,
            pagination=Page(total=len(filtered), limit=limit, offset=offset),
            summary=UserStatsSummary(
                total_users=len(users),
                total_resources=len(resources),
                avg_resources_per_user=page_mean(row.resource_count for row in page),
            ),
        )
