"""Groups API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field

from accessmap.core.sharing import DirectoryService
from accessmap.entrypoints.api.deps import get_directory_service
from accessmap.entrypoints.api.schemas import CamelModel, GroupResponse, UserResponse

router = APIRouter(prefix="/groups", tags=["groups"])

DirectoryDep = Annotated[DirectoryService, Depends(get_directory_service)]


class GroupCreate(CamelModel):
    """Group creation request."""

    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class GroupMemberAdd(CamelModel):
    """Add member request."""

    user_id: UUID


class GroupListResponse(CamelModel):
    """Response for listing groups."""

    groups: list[GroupResponse]
    total: int


class GroupMembersResponse(CamelModel):
    """Members of a group."""

    users: list[UserResponse]
    total: int


@router.get("", response_model=GroupListResponse)
async def list_groups(
    directory: DirectoryDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> GroupListResponse:
    """List groups ordered by name."""
    groups = await directory.list_groups(limit=limit, offset=offset)
    return GroupListResponse(groups=[GroupResponse.from_domain(g) for g in groups], total=len(groups))


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(body: GroupCreate, directory: DirectoryDep) -> GroupResponse:
    """Create a group."""
    group = await directory.create_group(name=body.name, description=body.description)
    return GroupResponse.from_domain(group)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(group_id: UUID, directory: DirectoryDep) -> GroupResponse:
    """Get a group by ID."""
    return GroupResponse.from_domain(await directory.get_group(group_id))


@router.get("/{group_id}/members", response_model=GroupMembersResponse)
async def get_group_members(group_id: UUID, directory: DirectoryDep) -> GroupMembersResponse:
    """List members of a group."""
    users = await directory.get_group_users(group_id)
    return GroupMembersResponse(users=[UserResponse.from_domain(u) for u in users], total=len(users))


@router.post("/{group_id}/members", status_code=status.HTTP_201_CREATED)
async def add_group_member(
    group_id: UUID,
    body: GroupMemberAdd,
    directory: DirectoryDep,
) -> dict[str, str]:
    """Add a user to a group."""
    await directory.add_user_to_group(body.user_id, group_id)
    return {"status": "added"}


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_group_member(
    group_id: UUID,
    user_id: UUID,
    directory: DirectoryDep,
) -> Response:
    """Remove a user from a group."""
    await directory.remove_user_from_group(user_id, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
