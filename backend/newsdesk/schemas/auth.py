"""
Caller identity schemas.
"""
from uuid import UUID

from newsdesk.models.site import SiteRole
from newsdesk.models.user import UserStatus
from newsdesk.schemas.common import BaseSchema, IDSchema, TimestampSchema


class UserResponse(IDSchema, TimestampSchema):
    """User response schema."""

    email: str
    name: str
    is_super_admin: bool
    status: UserStatus


class SiteAccessEntry(BaseSchema):
    site_id: UUID
    site_slug: str
    site_name: str
    role: SiteRole


class CurrentUserResponse(UserResponse):
    """Caller with their per-site grants, resolved at request time."""

    site_access: list[SiteAccessEntry] = []
