"""SQLAlchemy models for the application database."""
from accessmap.models.base import BaseModel, metadata
from accessmap.models.membership import user_groups
from accessmap.models.user import User
from accessmap.models.group import Group
from accessmap.models.resource import Resource
from accessmap.models.resource_share import ResourceShare, ShareType

__all__ = [
    "BaseModel",
    "metadata",
    "user_groups",
    "User",
    "Group",
    "Resource",
    "ResourceShare",
    "ShareType",
]
