"""
Announcement schemas.

Requests are validated here, at the boundary; the orchestrator only ever
looks at ``site_ids`` and ``primary_site_id`` among the optional fields.
"""
from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from newsdesk.schemas.common import BaseSchema, IDSchema, TimestampSchema
from newsdesk.schemas.site import SiteSummary

TARGET_FIELDS = {"site_ids", "primary_site_id"}


class SyndicationTargets(BaseSchema):
    """Optional explicit syndication targets."""

    site_ids: list[UUID] | None = None
    primary_site_id: UUID | None = None

    @field_validator("site_ids")
    @classmethod
    def dedupe_site_ids(cls, value: list[UUID] | None) -> list[UUID] | None:
        if not value:
            # Empty list means "not given", same as omitting it
            return None
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def primary_in_targets(self):
        if self.primary_site_id is None:
            return self
        if self.site_ids is None:
            raise ValueError("primary_site_id requires site_ids")
        if self.primary_site_id not in self.site_ids:
            raise ValueError("primary_site_id must be one of site_ids")
        return self


class AnnouncementPayload(BaseSchema):
    """Content fields of a new announcement."""

    title: str = Field(min_length=3, max_length=200)
    content: str = Field(min_length=10, max_length=100000)
    image_path: str | None = None
    is_pinned: bool = False
    is_published: bool = False
    scheduled_at: datetime | None = None
    takedown_at: datetime | None = None


class AnnouncementPatch(BaseSchema):
    """Content fields of an update; only the fields sent are applied."""

    title: str | None = Field(default=None, min_length=3, max_length=200)
    content: str | None = Field(default=None, min_length=10, max_length=100000)
    image_path: str | None = None
    is_pinned: bool | None = None
    is_published: bool | None = None
    scheduled_at: datetime | None = None
    takedown_at: datetime | None = None


class AnnouncementCreate(AnnouncementPayload, SyndicationTargets):
    """Create announcement request."""


class AnnouncementUpdate(AnnouncementPatch, SyndicationTargets):
    """Update announcement request."""


class SiteAssociationResponse(BaseSchema):
    site: SiteSummary
    is_primary: bool


class AnnouncementResponse(IDSchema, TimestampSchema):
    """Announcement with its syndication."""

    title: str
    slug: str
    content: str
    excerpt: str | None
    image_path: str | None
    is_pinned: bool
    is_published: bool
    scheduled_at: datetime | None
    takedown_at: datetime | None
    author_id: UUID | None
    sites: list[SiteAssociationResponse] = []
    primary_site_id: UUID | None = None


class AnnouncementListItem(IDSchema, TimestampSchema):
    title: str
    slug: str
    excerpt: str | None
    is_pinned: bool
    is_published: bool


class CanonicalUrlResponse(BaseSchema):
    announcement_id: UUID
    site_id: UUID
    canonical_url: str | None
