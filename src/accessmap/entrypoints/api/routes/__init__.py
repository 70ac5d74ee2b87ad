"""API route modules."""

from fastapi import APIRouter

from accessmap.entrypoints.api.routes.groups import router as groups_router
from accessmap.entrypoints.api.routes.resources import router as resources_router
from accessmap.entrypoints.api.routes.sharing import router as sharing_router
from accessmap.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

# Sharing first: "/resources/stats" and "/users/with-resource-count" must
# match before the "/{id}" routes.
api_router.include_router(sharing_router)
api_router.include_router(users_router)
api_router.include_router(groups_router)
api_router.include_router(resources_router)

__all__ = ["api_router"]
