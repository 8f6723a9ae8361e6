"""
Site and per-site access grant models.
"""
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from newsdesk.models.base import Base, BaseModel, SiteMixin


class SiteRole(str, PyEnum):
    SITE_ADMIN = "SITE_ADMIN"
    EDITOR = "EDITOR"


class Site(Base, BaseModel):
    """A brand the system publishes announcements under."""

    __tablename__ = "sites"
    __table_args__ = (
        # At most one default site, enforced by the store
        Index(
            "uq_sites_single_default",
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default"),
        ),
    )

    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    primary_color = Column(String(7), nullable=False, default="#ED1C24")
    logo_path = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    # Relationships
    grants = relationship(
        "SiteAccessGrant",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    associations = relationship(
        "SiteAssociation",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Site {self.name} ({self.slug})>"


class SiteAccessGrant(Base, BaseModel, SiteMixin):
    """Role a user holds on one site. No row means no access."""

    __tablename__ = "site_access_grants"
    __table_args__ = (
        UniqueConstraint("user_id", "site_id", name="uq_site_access_grants_user_site"),
    )

    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(
        Enum(SiteRole),
        default=SiteRole.EDITOR,
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="site_grants")
    site = relationship("Site", back_populates="grants")

    def __repr__(self) -> str:
        return f"<SiteAccessGrant {self.user_id} -> {self.site_id} ({self.role.value})>"
