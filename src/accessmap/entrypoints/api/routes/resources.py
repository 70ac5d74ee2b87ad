"""Resources API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field

from accessmap.core.sharing import DirectoryService, Page
from accessmap.entrypoints.api.deps import get_directory_service
from accessmap.entrypoints.api.schemas import CamelModel, PaginationResponse, ResourceResponse

router = APIRouter(prefix="/resources", tags=["resources"])

DirectoryDep = Annotated[DirectoryService, Depends(get_directory_service)]


class ResourceCreate(CamelModel):
    """Resource creation request."""

    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    is_global: bool = False


class ResourceUpdate(CamelModel):
    """Resource update request.

    Omitted fields are left unchanged. An explicit `"description": null`
    clears the description; `null` for `name` or `isGlobal` is treated as
    omitted since neither column is nullable.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    is_global: bool | None = None


class ResourceListResponse(CamelModel):
    """Response for listing resources."""

    resources: list[ResourceResponse]
    pagination: PaginationResponse


class GlobalResourceListResponse(CamelModel):
    """Every global resource."""

    resources: list[ResourceResponse]
    total: int


@router.get("", response_model=ResourceListResponse)
async def list_resources(
    directory: DirectoryDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ResourceListResponse:
    """List resources ordered by name."""
    resources, total = await directory.list_resources(limit=limit, offset=offset)
    return ResourceListResponse(
        resources=[ResourceResponse.from_domain(r) for r in resources],
        pagination=PaginationResponse.from_page(Page(total=total, limit=limit, offset=offset)),
    )


@router.get("/global", response_model=GlobalResourceListResponse)
async def list_global_resources(directory: DirectoryDep) -> GlobalResourceListResponse:
    """List resources every user can access."""
    resources = await directory.list_global_resources()
    return GlobalResourceListResponse(
        resources=[ResourceResponse.from_domain(r) for r in resources],
        total=len(resources),
    )


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(body: ResourceCreate, directory: DirectoryDep) -> ResourceResponse:
    """Create a resource."""
    resource = await directory.create_resource(
        name=body.name, description=body.description, is_global=body.is_global
    )
    return ResourceResponse.from_domain(resource)


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(resource_id: UUID, directory: DirectoryDep) -> ResourceResponse:
    """Get a resource by ID."""
    return ResourceResponse.from_domain(await directory.get_resource(resource_id))


@router.patch("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: UUID,
    body: ResourceUpdate,
    directory: DirectoryDep,
) -> ResourceResponse:
    """Update a resource."""
    resource = await directory.update_resource(
        resource_id,
        name=body.name,
        description=body.description,
        is_global=body.is_global,
        clear_description="description" in body.model_fields_set and body.description is None,
    )
    return ResourceResponse.from_domain(resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(resource_id: UUID, directory: DirectoryDep) -> Response:
    """Delete a resource and its shares."""
    await directory.delete_resource(resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
