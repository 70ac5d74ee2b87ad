"""Resource model."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.models.base import BaseModel

if TYPE_CHECKING:
    from accessmap.models.resource_share import ResourceShare


class Resource(BaseModel):
    """A shareable resource.

    ``is_global`` grants every user access and overrides all shares.
    """

    __tablename__ = "resources"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_global: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False, index=True
    )

    # Relationships
    shares: Mapped[list["ResourceShare"]] = relationship(
        "ResourceShare",
        back_populates="resource",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
