"""
Pydantic schemas for the Newsdesk API.
"""
from newsdesk.schemas.common import (
    BaseSchema,
    IDSchema,
    TimestampSchema,
    PaginatedResponse,
    MessageResponse,
    ErrorResponse,
)
from newsdesk.schemas.auth import (
    UserResponse,
    SiteAccessEntry,
    CurrentUserResponse,
)
from newsdesk.schemas.site import (
    SiteCreate,
    SiteUpdate,
    SiteResponse,
    SiteSummary,
    GrantCreate,
    GrantResponse,
)
from newsdesk.schemas.announcement import (
    AnnouncementPayload,
    AnnouncementPatch,
    AnnouncementCreate,
    AnnouncementUpdate,
    AnnouncementResponse,
    AnnouncementListItem,
    SiteAssociationResponse,
    CanonicalUrlResponse,
)
from newsdesk.schemas.audit_log import ActivityLogResponse

__all__ = [
    # Common
    "BaseSchema",
    "IDSchema",
    "TimestampSchema",
    "PaginatedResponse",
    "MessageResponse",
    "ErrorResponse",
    # Auth
    "UserResponse",
    "SiteAccessEntry",
    "CurrentUserResponse",
    # Site
    "SiteCreate",
    "SiteUpdate",
    "SiteResponse",
    "SiteSummary",
    "GrantCreate",
    "GrantResponse",
    # Announcement
    "AnnouncementPayload",
    "AnnouncementPatch",
    "AnnouncementCreate",
    "AnnouncementUpdate",
    "AnnouncementResponse",
    "AnnouncementListItem",
    "SiteAssociationResponse",
    "CanonicalUrlResponse",
    # Audit
    "ActivityLogResponse",
]
