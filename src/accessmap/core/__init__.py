"""Core domain - Pure business logic with zero storage dependencies."""

from .exceptions import (
    AccessMapError,
    ConflictError,
    ErrorCode,
    InternalError,
    MembershipExistsError,
    NotFoundError,
    ShareAlreadyExistsError,
    StorageError,
    ValidationError,
)

__all__ = [
    "AccessMapError",
    "ConflictError",
    "ErrorCode",
    "InternalError",
    "MembershipExistsError",
    "NotFoundError",
    "ShareAlreadyExistsError",
    "StorageError",
    "ValidationError",
]
