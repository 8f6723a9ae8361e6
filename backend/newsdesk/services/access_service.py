"""
Access resolver: effective level of a user on a site.

Every call goes to the role store. Nothing is cached between calls, so a
revoked grant takes effect on the very next check.
"""
import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.exceptions import PermissionDenied
from newsdesk.core.security import (
    AccessLevel,
    can_access,
    can_admin,
    can_edit,
    level_for_role,
)
from newsdesk.services.role_store import RoleStore

logger = logging.getLogger(__name__)


class AccessService:
    """Resolves and enforces per-site privilege."""

    def __init__(self, db: AsyncSession, role_store: RoleStore | None = None):
        self.db = db
        self.roles = role_store or RoleStore(db)

    async def resolve_role(self, user_id: UUID, site_id: UUID) -> AccessLevel:
        """Resolve the caller's level on a site.

        A super admin short-circuits before any grant lookup. Unknown users,
        unknown sites and missing grants all resolve to ``AccessLevel.NONE``.
        """
        is_super_admin = await self.roles.get_super_admin_flag(user_id)
        if is_super_admin is None:
            return AccessLevel.NONE
        if is_super_admin:
            return AccessLevel.SUPER_ADMIN

        role = await self.roles.get_role(user_id, site_id)
        return level_for_role(role)

    async def is_super_admin(self, user_id: UUID) -> bool:
        return bool(await self.roles.get_super_admin_flag(user_id))

    async def can_access_site(self, user_id: UUID, site_id: UUID) -> bool:
        return can_access(await self.resolve_role(user_id, site_id))

    async def can_edit_on_site(self, user_id: UUID, site_id: UUID) -> bool:
        return can_edit(await self.resolve_role(user_id, site_id))

    async def can_admin_site(self, user_id: UUID, site_id: UUID) -> bool:
        return can_admin(await self.resolve_role(user_id, site_id))

    async def require_super_admin(self, user_id: UUID, action: str = "perform this action") -> None:
        if not await self.is_super_admin(user_id):
            logger.info(f"Denied super admin action '{action}' for user {user_id}")
            raise PermissionDenied(detail=f"Only a super admin can {action}")

    async def require_admin_on_site(self, user_id: UUID, site_id: UUID) -> None:
        if not await self.can_admin_site(user_id, site_id):
            logger.info(f"Denied admin on site {site_id} for user {user_id}")
            raise PermissionDenied(site_id)

    async def require_edit_on_sites(self, user_id: UUID, site_ids: Iterable[UUID]) -> None:
        """Check edit rights on every site; the first failing site aborts."""
        for site_id in site_ids:
            if not await self.can_edit_on_site(user_id, site_id):
                logger.info(f"Denied edit on site {site_id} for user {user_id}")
                raise PermissionDenied(site_id)
