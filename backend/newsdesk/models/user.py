"""
User model.

Credentials live with the identity provider; this table only carries what
authorization needs.
"""
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, Enum, String
from sqlalchemy.orm import relationship

from newsdesk.models.base import Base, BaseModel


class UserStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Base, BaseModel):
    """An authenticated principal."""

    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    is_super_admin = Column(Boolean, default=False, nullable=False)
    status = Column(
        Enum(UserStatus),
        default=UserStatus.ACTIVE,
        nullable=False,
    )

    # Relationships
    site_grants = relationship(
        "SiteAccessGrant",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}{' (super admin)' if self.is_super_admin else ''}>"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
