"""
Site and grant schemas.
"""
from uuid import UUID

from pydantic import Field, field_validator

from newsdesk.models.site import SiteRole
from newsdesk.schemas.common import BaseSchema, IDSchema, TimestampSchema

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def clean_slug(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class SiteCreate(BaseSchema):
    """Create site request."""

    name: str = Field(min_length=2, max_length=100)
    slug: str = Field(min_length=2, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    primary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    logo_path: str | None = None
    is_active: bool = True
    is_default: bool = False
    clone_from_site_id: UUID | None = None

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, value):
        return clean_slug(value)


class SiteUpdate(BaseSchema):
    """Update site request."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    slug: str | None = Field(default=None, min_length=2, max_length=50, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, max_length=500)
    primary_color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    logo_path: str | None = None
    is_active: bool | None = None
    is_default: bool | None = None

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, value):
        return clean_slug(value)


class SiteResponse(IDSchema, TimestampSchema):
    """Site response."""

    name: str
    slug: str
    description: str | None
    primary_color: str
    logo_path: str | None
    is_active: bool
    is_default: bool


class SiteSummary(BaseSchema):
    id: UUID
    name: str
    slug: str


class GrantCreate(BaseSchema):
    """Grant (or change) a user's role on a site."""

    user_id: UUID
    role: SiteRole


class GrantResponse(IDSchema, TimestampSchema):
    user_id: UUID
    site_id: UUID
    role: SiteRole
