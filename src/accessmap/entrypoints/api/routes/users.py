"""Users API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr, Field

from accessmap.core.sharing import DirectoryService, Page
from accessmap.entrypoints.api.deps import get_directory_service
from accessmap.entrypoints.api.schemas import (
    CamelModel,
    GroupResponse,
    PaginationResponse,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["users"])

DirectoryDep = Annotated[DirectoryService, Depends(get_directory_service)]


class UserCreate(CamelModel):
    """User creation request."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr


class UserListResponse(CamelModel):
    """Response for listing users."""

    users: list[UserResponse]
    pagination: PaginationResponse


class UserGroupsResponse(CamelModel):
    """Groups a user belongs to."""

    groups: list[GroupResponse]
    total: int


@router.get("", response_model=UserListResponse)
async def list_users(
    directory: DirectoryDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> UserListResponse:
    """List users ordered by name."""
    users, total = await directory.list_users(limit=limit, offset=offset)
    return UserListResponse(
        users=[UserResponse.from_domain(u) for u in users],
        pagination=PaginationResponse.from_page(Page(total=total, limit=limit, offset=offset)),
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, directory: DirectoryDep) -> UserResponse:
    """Create a user. Emails are unique."""
    user = await directory.create_user(name=body.name, email=str(body.email))
    return UserResponse.from_domain(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, directory: DirectoryDep) -> UserResponse:
    """Get a user by ID."""
    return UserResponse.from_domain(await directory.get_user(user_id))


@router.get("/{user_id}/groups", response_model=UserGroupsResponse)
async def get_user_groups(user_id: UUID, directory: DirectoryDep) -> UserGroupsResponse:
    """List the groups a user belongs to."""
    groups = await directory.get_user_groups(user_id)
    return UserGroupsResponse(
        groups=[GroupResponse.from_domain(g) for g in groups],
        total=len(groups),
    )
