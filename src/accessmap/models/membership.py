"""User <-> group membership table."""

from sqlalchemy import Column, DateTime, ForeignKey, Table, func
from sqlalchemy.dialects.postgresql import UUID

from accessmap.models.base import metadata

# Composite primary key: a user joins a group at most once.
user_groups = Table(
    "user_groups",
    metadata,
    Column(
        "user_id",
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "group_id",
        UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
    Column("joined_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)
