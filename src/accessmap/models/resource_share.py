"""Resource share model."""

import enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.models.base import BaseModel

if TYPE_CHECKING:
    from accessmap.models.resource import Resource


class ShareType(str, enum.Enum):
    """Kind of entity a share targets."""

    USER = "user"
    GROUP = "group"


class ResourceShare(BaseModel):
    """A grant of a resource to a user or a group.

    ``target_id`` points at ``users`` or ``groups`` depending on
    ``share_type``. No single foreign key can express that, so the target
    is validated before insert.
    """

    __tablename__ = "resource_shares"

    resource_id: Mapped[UUID] = mapped_column(
        ForeignKey("resources.id", ondelete="CASCADE"), nullable=False
    )
    share_type: Mapped[str] = mapped_column(String(10), nullable=False)
    target_id: Mapped[UUID] = mapped_column(nullable=False)

    # Relationships
    resource: Mapped["Resource"] = relationship("Resource", back_populates="shares")

    __table_args__ = (
        UniqueConstraint(
            "resource_id",
            "share_type",
            "target_id",
            name="uq_resource_shares_resource_target",
        ),
        CheckConstraint("share_type IN ('user', 'group')", name="share_type_valid"),
        Index("ix_resource_shares_target", "share_type", "target_id"),
    )
