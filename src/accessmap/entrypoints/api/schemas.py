"""Shared API response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from accessmap.core.sharing import Group, Page, Resource, ResourceShare, ShareType, User


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(CamelModel):
    """User response."""

    id: UUID
    name: str
    email: str
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> UserResponse:
        """Build from a domain user."""
        return cls(id=user.id, name=user.name, email=user.email, created_at=user.created_at)


class GroupResponse(CamelModel):
    """Group response."""

    id: UUID
    name: str
    description: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, group: Group) -> GroupResponse:
        """Build from a domain group."""
        return cls(
            id=group.id,
            name=group.name,
            description=group.description,
            created_at=group.created_at,
        )


class ResourceResponse(CamelModel):
    """Resource response."""

    id: UUID
    name: str
    description: str | None = None
    is_global: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, resource: Resource) -> ResourceResponse:
        """Build from a domain resource."""
        return cls(
            id=resource.id,
            name=resource.name,
            description=resource.description,
            is_global=resource.is_global,
            created_at=resource.created_at,
        )


class ShareResponse(CamelModel):
    """Resource share response."""

    id: UUID
    resource_id: UUID
    share_type: ShareType
    target_id: UUID
    created_at: datetime

    @classmethod
    def from_domain(cls, share: ResourceShare) -> ShareResponse:
        """Build from a domain share."""
        return cls(
            id=share.id,
            resource_id=share.resource_id,
            share_type=share.share_type,
            target_id=share.target_id,
            created_at=share.created_at,
        )


class PaginationResponse(CamelModel):
    """Pagination window."""

    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def from_page(cls, page: Page) -> PaginationResponse:
        """Build from a resolved page."""
        return cls(total=page.total, limit=page.limit, offset=page.offset, has_more=page.has_more)
