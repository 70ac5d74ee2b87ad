"""User model."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.models.base import BaseModel
from accessmap.models.membership import user_groups

if TYPE_CHECKING:
    from accessmap.models.group import Group


class User(BaseModel):
    """A user in the system."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Relationships
    groups: Mapped[list["Group"]] = relationship(
        "Group", secondary=user_groups, back_populates="members"
    )
