"""Group model."""

from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.models.base import BaseModel
from accessmap.models.membership import user_groups

if TYPE_CHECKING:
    from accessmap.models.user import User


class Group(BaseModel):
    """A named collection of users."""

    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    members: Mapped[list["User"]] = relationship(
        "User", secondary=user_groups, back_populates="groups"
    )
