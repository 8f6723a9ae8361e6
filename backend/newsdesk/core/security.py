"""
Token handling and the access level policy.

Tokens are issued by the identity provider and carry only the subject id.
Roles are never embedded; they are resolved per call by ``AccessService``.
"""
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any

from jose import JWTError, jwt

from newsdesk.config import settings
from newsdesk.models.site import SiteRole


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return encoded_jwt


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return payload
    except JWTError:
        return None


class AccessLevel(IntEnum):
    """Effective privilege of a user on a site, totally ordered."""

    NONE = 0
    EDITOR = 1
    SITE_ADMIN = 2
    SUPER_ADMIN = 3


ROLE_LEVELS = {
    SiteRole.EDITOR: AccessLevel.EDITOR,
    SiteRole.SITE_ADMIN: AccessLevel.SITE_ADMIN,
}


def level_for_role(role: SiteRole | None) -> AccessLevel:
    """Map a stored grant role to its level; no grant is NONE."""
    if role is None:
        return AccessLevel.NONE
    return ROLE_LEVELS.get(role, AccessLevel.NONE)


def can_access(level: AccessLevel) -> bool:
    return level > AccessLevel.NONE


def can_edit(level: AccessLevel) -> bool:
    return level >= AccessLevel.EDITOR


def can_admin(level: AccessLevel) -> bool:
    return level >= AccessLevel.SITE_ADMIN
