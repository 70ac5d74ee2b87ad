"""Sharing core domain."""

from accessmap.core.sharing.directory import DirectoryService
from accessmap.core.sharing.repository import SharingRepository
from accessmap.core.sharing.resolver import AccessResolver
from accessmap.core.sharing.shares import ShareService
from accessmap.core.sharing.types import (
    AccessCheckResult,
    AccessListMetadata,
    AccessReason,
    Group,
    Membership,
    Page,
    Resource,
    ResourceAccess,
    ResourceAccessList,
    ResourceShare,
    ResourceStatistics,
    ResourceStatsSummary,
    ResourceUsage,
    ShareTarget,
    ShareType,
    SortOrder,
    User,
    UserAccess,
    UserResources,
    UserStatistics,
    UserStatsSummary,
    UserUsage,
)

__all__ = [
    # Services
    "AccessResolver",
    "DirectoryService",
    "ShareService",
    "SharingRepository",
    # Types
    "AccessCheckResult",
    "AccessListMetadata",
    "AccessReason",
    "Group",
    "Membership",
    "Page",
    "Resource",
    "ResourceAccess",
    "ResourceAccessList",
    "ResourceShare",
    "ResourceStatistics",
    "ResourceStatsSummary",
    "ResourceUsage",
    "ShareTarget",
    "ShareType",
    "SortOrder",
    "User",
    "UserAccess",
    "UserResources",
    "UserStatistics",
    "UserStatsSummary",
    "UserUsage",
]
