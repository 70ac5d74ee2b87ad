"""Error definitions for the access resolution domain.

All errors carry a standardized code so the HTTP boundary can map them
to status codes without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_UUID = "INVALID_UUID"
    INVALID_PAGINATION = "INVALID_PAGINATION"

    # Lookup errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    SHARE_NOT_FOUND = "SHARE_NOT_FOUND"

    # Conflicts
    CONFLICT = "CONFLICT"
    SHARE_ALREADY_EXISTS = "SHARE_ALREADY_EXISTS"
    MEMBERSHIP_ALREADY_EXISTS = "MEMBERSHIP_ALREADY_EXISTS"

    # System errors
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


_NOT_FOUND_CODES = {
    "Resource": ErrorCode.RESOURCE_NOT_FOUND,
    "User": ErrorCode.USER_NOT_FOUND,
    "Group": ErrorCode.GROUP_NOT_FOUND,
    "Share": ErrorCode.SHARE_NOT_FOUND,
}


class AccessMapError(Exception):
    """Base exception for all domain errors.

    Attributes:
        code: Standardized error code.
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details if self.details else None,
            }
        }


class NotFoundError(AccessMapError):
    """An explicitly requested primary entity does not exist."""

    def __init__(self, kind: str, entity_id: UUID | str) -> None:
        """Initialize not found error."""
        super().__init__(
            code=_NOT_FOUND_CODES.get(kind, ErrorCode.RESOURCE_NOT_FOUND),
            message=f"{kind} with ID '{entity_id}' not found",
            details={"kind": kind, "id": str(entity_id)},
        )
        self.kind = kind
        self.entity_id = entity_id


class ValidationError(AccessMapError):
    """Input failed validation."""

    def __init__(
        self,
        field: str,
        reason: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        """Initialize validation error."""
        super().__init__(
            code=code,
            message=f"Invalid {field}: {reason}",
            details={"field": field, "reason": reason},
        )
        self.field = field
        self.reason = reason


class ConflictError(AccessMapError):
    """A uniqueness invariant rejected the write."""

    def __init__(
        self,
        message: str = "Conflicting record already exists",
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.CONFLICT,
    ) -> None:
        """Initialize conflict error."""
        super().__init__(code=code, message=message, details=details)


class ShareAlreadyExistsError(ConflictError):
    """The same grant already exists on the resource.

    Callers racing to create the same share may treat this as benign.
    """

    def __init__(self, resource_id: UUID, share_type: str, target_id: UUID) -> None:
        """Initialize duplicate share error."""
        super().__init__(
            message=f"Resource '{resource_id}' is already shared with {share_type} '{target_id}'",
            details={
                "resource_id": str(resource_id),
                "share_type": share_type,
                "target_id": str(target_id),
            },
            code=ErrorCode.SHARE_ALREADY_EXISTS,
        )


class MembershipExistsError(ConflictError):
    """The user is already a member of the group."""

    def __init__(self, user_id: UUID, group_id: UUID) -> None:
        """Initialize duplicate membership error."""
        super().__init__(
            message=f"User '{user_id}' is already a member of group '{group_id}'",
            details={"user_id": str(user_id), "group_id": str(group_id)},
            code=ErrorCode.MEMBERSHIP_ALREADY_EXISTS,
        )


class StorageError(AccessMapError):
    """The storage layer failed. Not retried."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        """Initialize storage error."""
        message = f"Storage operation failed: {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(
            code=ErrorCode.DATABASE_ERROR,
            message=message,
            details={"operation": operation},
        )
        self.operation = operation
        self.cause = cause


class InternalError(AccessMapError):
    """Unanticipated failure."""

    def __init__(self, message: str = "Internal error") -> None:
        """Initialize internal error."""
        super().__init__(code=ErrorCode.INTERNAL_ERROR, message=message)
