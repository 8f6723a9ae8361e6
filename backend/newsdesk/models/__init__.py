"""
SQLAlchemy models for Newsdesk.
"""
from newsdesk.models.base import Base, BaseModel
from newsdesk.models.user import User, UserStatus
from newsdesk.models.site import Site, SiteAccessGrant, SiteRole
from newsdesk.models.announcement import Announcement, SiteAssociation
from newsdesk.models.activity_log import ActivityLog, AuditSeverity

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserStatus",
    "Site",
    "SiteAccessGrant",
    "SiteRole",
    "Announcement",
    "SiteAssociation",
    "ActivityLog",
    "AuditSeverity",
]
