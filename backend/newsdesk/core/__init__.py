"""
Core utilities for Newsdesk.
"""
from newsdesk.core.security import (
    AccessLevel,
    create_access_token,
    decode_token,
    level_for_role,
    can_access,
    can_edit,
    can_admin,
)
from newsdesk.core.deps import (
    get_current_user,
    get_current_active_user,
    require_super_admin,
    get_audit_sink,
    CurrentUser,
    SuperAdmin,
    Audit,
)

__all__ = [
    "AccessLevel",
    "create_access_token",
    "decode_token",
    "level_for_role",
    "can_access",
    "can_edit",
    "can_admin",
    "get_current_user",
    "get_current_active_user",
    "require_super_admin",
    "get_audit_sink",
    "CurrentUser",
    "SuperAdmin",
    "Audit",
]
