"""
Announcement and syndication models.
"""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
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


class Announcement(Base, BaseModel):
    """A news item that can be syndicated to several sites."""

    __tablename__ = "announcements"

    title = Column(String(200), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300), nullable=True)
    image_path = Column(String(500), nullable=True)
    is_pinned = Column(Boolean, default=False, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    takedown_at = Column(DateTime(timezone=True), nullable=True)
    author_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    updated_by_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    associations = relationship(
        "SiteAssociation",
        back_populates="announcement",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Announcement {self.slug}>"


class SiteAssociation(Base, BaseModel, SiteMixin):
    """Syndication of an announcement to one site.

    Exactly one row per announcement carries ``is_primary``; the partial
    unique index rejects a second one at the storage layer.
    """

    __tablename__ = "site_associations"
    __table_args__ = (
        UniqueConstraint(
            "announcement_id", "site_id", name="uq_site_associations_announcement_site"
        ),
        Index(
            "uq_site_associations_single_primary",
            "announcement_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary"),
        ),
    )

    announcement_id = Column(
        UUID(as_uuid=True),
        ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_primary = Column(Boolean, default=False, nullable=False)

    # Relationships
    announcement = relationship("Announcement", back_populates="associations")
    site = relationship("Site", back_populates="associations")

    def __repr__(self) -> str:
        flag = " primary" if self.is_primary else ""
        return f"<SiteAssociation {self.announcement_id} @ {self.site_id}{flag}>"
