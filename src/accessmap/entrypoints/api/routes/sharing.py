"""Access resolution and sharing API routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from accessmap.core.sharing import (
    AccessReason,
    AccessResolver,
    ResourceAccess,
    ResourceUsage,
    ShareService,
    ShareTarget,
    ShareType,
    UserAccess,
    UserUsage,
)
from accessmap.entrypoints.api.deps import get_access_resolver, get_share_service
from accessmap.entrypoints.api.schemas import (
    CamelModel,
    PaginationResponse,
    ResourceResponse,
    ShareResponse,
    UserResponse,
)

router = APIRouter(tags=["sharing"])

# Annotated types for dependency injection
ResolverDep = Annotated[AccessResolver, Depends(get_access_resolver)]
ShareServiceDep = Annotated[ShareService, Depends(get_share_service)]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Maximum number of items")]
OffsetQuery = Annotated[int, Query(ge=0, description="Number of items to skip")]


class UserAccessResponse(UserResponse):
    """A user together with how they reach the resource."""

    access_type: AccessReason

    @classmethod
    def from_access(cls, access: UserAccess) -> UserAccessResponse:
        """Build from a resolved user access."""
        user = access.user
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
            access_type=access.reason,
        )


class AccessListMetadataResponse(CamelModel):
    """Counts describing an access list."""

    total_users: int
    direct_shares: int
    group_shares: int
    is_global: bool


class ResourceAccessListResponse(CamelModel):
    """Everyone who can access a resource."""

    resource: ResourceResponse
    users: list[UserAccessResponse]
    metadata: AccessListMetadataResponse


class ResourceAccessResponse(ResourceResponse):
    """A resource together with how the user reaches it."""

    access_type: AccessReason
    granted_at: datetime | None = None

    @classmethod
    def from_access(cls, access: ResourceAccess) -> ResourceAccessResponse:
        """Build from a resolved resource access."""
        resource = access.resource
        return cls(
            id=resource.id,
            name=resource.name,
            description=resource.description,
            is_global=resource.is_global,
            created_at=resource.created_at,
            access_type=access.reason,
            granted_at=access.granted_at,
        )


class UserResourcesResponse(CamelModel):
    """One page of the resources a user can access."""

    user: UserResponse
    resources: list[ResourceAccessResponse]
    pagination: PaginationResponse


class AccessCheckResponse(CamelModel):
    """Result of a single access check."""

    has_access: bool
    access_type: AccessReason | None = None
    granted_at: datetime | None = None


class ResourceUsageResponse(ResourceResponse):
    """A resource with its user counts."""

    user_count: int
    direct_shares: int
    group_shares: int

    @classmethod
    def from_usage(cls, usage: ResourceUsage) -> ResourceUsageResponse:
        """Build from a resource statistics row."""
        resource = usage.resource
        return cls(
            id=resource.id,
            name=resource.name,
            description=resource.description,
            is_global=resource.is_global,
            created_at=resource.created_at,
            user_count=usage.user_count,
            direct_shares=usage.direct_shares,
            group_shares=usage.group_shares,
        )


class ResourceStatsSummaryResponse(CamelModel):
    """Totals across all resources."""

    total_resources: int
    global_resources: int
    total_unique_users: int
    avg_users_per_resource: float


class ResourceStatsResponse(CamelModel):
    """Resource statistics page."""

    resources: list[ResourceUsageResponse]
    pagination: PaginationResponse
    summary: ResourceStatsSummaryResponse


class UserUsageResponse(UserResponse):
    """A user with their resource counts."""

    resource_count: int
    direct_resources: int
    group_resources: int
    global_resources: int

    @classmethod
    def from_usage(cls, usage: UserUsage) -> UserUsageResponse:
        """Build from a user statistics row."""
        user = usage.user
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            created_at=user.created_at,
            resource_count=usage.resource_count,
            direct_resources=usage.direct_resources,
            group_resources=usage.group_resources,
            global_resources=usage.global_resources,
        )


class UserStatsSummaryResponse(CamelModel):
    """Totals across all users."""

    total_users: int
    total_resources: int
    avg_resources_per_user: float


class UserStatsResponse(CamelModel):
    """User statistics page."""

    users: list[UserUsageResponse]
    pagination: PaginationResponse
    summary: UserStatsSummaryResponse


class ShareCreate(CamelModel):
    """Share creation request."""

    share_type: ShareType
    target_id: UUID


class ShareListResponse(CamelModel):
    """Shares on one resource."""

    shares: list[ShareResponse]
    total: int


@router.get("/resource/{resource_id}/access-list", response_model=ResourceAccessListResponse)
async def get_resource_access_list(
    resource_id: UUID,
    resolver: ResolverDep,
) -> ResourceAccessListResponse:
    """List every user who can access a resource and why."""
    result = await resolver.resolve_resource_access_list(resource_id)
    meta = result.metadata
    return ResourceAccessListResponse(
        resource=ResourceResponse.from_domain(result.resource),
        users=[UserAccessResponse.from_access(u) for u in result.users],
        metadata=AccessListMetadataResponse(
            total_users=meta.total_users,
            direct_shares=meta.direct_shares,
            group_shares=meta.group_shares,
            is_global=meta.is_global,
        ),
    )


@router.get("/user/{user_id}/resources", response_model=UserResourcesResponse)
async def get_user_resources(
    user_id: UUID,
    resolver: ResolverDep,
    limit: LimitQuery = 50,
    offset: OffsetQuery = 0,
    sort: str | None = None,
    order: str | None = None,
) -> UserResourcesResponse:
    """List the resources a user can access.

    ``sort`` accepts ``name`` or ``createdAt``; ``order`` accepts ``asc`` or
    ``desc``. Anything else sorts by name ascending.
    """
    result = await resolver.resolve_user_resources(
        user_id, limit=limit, offset=offset, sort=sort, order=order
    )
    return UserResourcesResponse(
        user=UserResponse.from_domain(result.user),
        resources=[ResourceAccessResponse.from_access(r) for r in result.resources],
        pagination=PaginationResponse.from_page(result.pagination),
    )


@router.get("/user/{user_id}/access-check/{resource_id}", response_model=AccessCheckResponse)
async def check_access(
    user_id: UUID,
    resource_id: UUID,
    resolver: ResolverDep,
) -> AccessCheckResponse:
    """Check whether a user can access a resource."""
    result = await resolver.check_access(user_id, resource_id)
    return AccessCheckResponse(
        has_access=result.has_access,
        access_type=result.reason,
        granted_at=result.granted_at,
    )


@router.get("/resources/stats", response_model=ResourceStatsResponse)
async def get_resource_stats(
    resolver: ResolverDep,
    limit: LimitQuery = 50,
    offset: OffsetQuery = 0,
    min_users: Annotated[int, Query(alias="minUsers", ge=0)] = 0,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> ResourceStatsResponse:
    """Per-resource user counts.

    ``avgUsersPerResource`` is the mean over the returned page only.
    """
    result = await resolver.resource_statistics(
        limit=limit, offset=offset, min_users=min_users, sort=sort_by, order=sort_order
    )
    summary = result.summary
    return ResourceStatsResponse(
        resources=[ResourceUsageResponse.from_usage(r) for r in result.resources],
        pagination=PaginationResponse.from_page(result.pagination),
        summary=ResourceStatsSummaryResponse(
            total_resources=summary.total_resources,
            global_resources=summary.global_resources,
            total_unique_users=summary.total_unique_users,
            avg_users_per_resource=summary.avg_users_per_resource,
        ),
    )


@router.get("/users/with-resource-count", response_model=UserStatsResponse)
async def get_users_with_resource_count(
    resolver: ResolverDep,
    limit: LimitQuery = 50,
    offset: OffsetQuery = 0,
    min_resources: Annotated[int, Query(alias="minResources", ge=0)] = 0,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> UserStatsResponse:
    """Per-user resource counts.

    ``avgResourcesPerUser`` is the mean over the returned page only.
    """
    result = await resolver.user_statistics(
        limit=limit,
        offset=offset,
        min_resources=min_resources,
        sort=sort_by,
        order=sort_order,
    )
    summary = result.summary
    return UserStatsResponse(
        users=[UserUsageResponse.from_usage(u) for u in result.users],
        pagination=PaginationResponse.from_page(result.pagination),
        summary=UserStatsSummaryResponse(
            total_users=summary.total_users,
            total_resources=summary.total_resources,
            avg_resources_per_user=summary.avg_resources_per_user,
        ),
    )


@router.get("/resource/{resource_id}/shares", response_model=ShareListResponse)
async def list_resource_shares(
    resource_id: UUID,
    service: ShareServiceDep,
) -> ShareListResponse:
    """List the shares on a resource."""
    shares = await service.list_shares(resource_id)
    return ShareListResponse(
        shares=[ShareResponse.from_domain(s) for s in shares],
        total=len(shares),
    )


@router.post(
    "/resource/{resource_id}/shares",
    response_model=ShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_share(
    resource_id: UUID,
    body: ShareCreate,
    service: ShareServiceDep,
) -> ShareResponse:
    """Share a resource with a user or a group."""
    target = ShareTarget(kind=body.share_type, id=body.target_id)
    share = await service.create_share(resource_id, target)
    return ShareResponse.from_domain(share)


@router.delete(
    "/resource/{resource_id}/shares/{share_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def revoke_share(
    resource_id: UUID,
    share_id: UUID,
    service: ShareServiceDep,
) -> Response:
    """Revoke a share."""
    await service.revoke_share(resource_id, share_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
