"""
Role store: persisted (user, site) grants and the global super admin flag.

Plain data access. Policy lives in ``AccessService`` and ``SiteService``.
"""
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.exceptions import integrity_guard
from newsdesk.models.site import Site, SiteAccessGrant, SiteRole
from newsdesk.models.user import User


class RoleStore:
    """Data access for users' privilege records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_super_admin_flag(self, user_id: UUID) -> bool | None:
        """Return the user's global flag, or None when the user does not exist."""
        result = await self.db.execute(
            select(User.is_super_admin).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_grant(self, user_id: UUID, site_id: UUID) -> SiteAccessGrant | None:
        result = await self.db.execute(
            select(SiteAccessGrant).where(
                SiteAccessGrant.user_id == user_id,
                SiteAccessGrant.site_id == site_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_role(self, user_id: UUID, site_id: UUID) -> SiteRole | None:
        result = await self.db.execute(
            select(SiteAccessGrant.role).where(
                SiteAccessGrant.user_id == user_id,
                SiteAccessGrant.site_id == site_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_site_grants(self, site_id: UUID) -> list[SiteAccessGrant]:
        result = await self.db.execute(
            select(SiteAccessGrant)
            .where(SiteAccessGrant.site_id == site_id)
            .order_by(SiteAccessGrant.created_at)
        )
        return list(result.scalars().all())

    async def save_grant(
        self,
        user_id: UUID,
        site_id: UUID,
        role: SiteRole,
    ) -> SiteAccessGrant:
        """Insert or update the single grant for (user, site)."""
        grant = await self.get_grant(user_id, site_id)
        if grant is None:
            grant = SiteAccessGrant(user_id=user_id, site_id=site_id, role=role)
            self.db.add(grant)
        else:
            grant.role = role

        with integrity_guard(f"Grant for user {user_id} on site {site_id} changed concurrently"):
            await self.db.flush()
        await self.db.refresh(grant)
        return grant

    async def delete_grant(self, user_id: UUID, site_id: UUID) -> bool:
        result = await self.db.execute(
            delete(SiteAccessGrant).where(
                SiteAccessGrant.user_id == user_id,
                SiteAccessGrant.site_id == site_id,
            )
        )
        return result.rowcount > 0

    async def delete_site_grants(self, site_id: UUID) -> int:
        result = await self.db.execute(
            delete(SiteAccessGrant).where(SiteAccessGrant.site_id == site_id)
        )
        return result.rowcount

    async def list_user_site_roles(self, user_id: UUID) -> list[tuple[Site, SiteRole]]:
        """(site, role) pairs of a user's grants, ordered by site name."""
        result = await self.db.execute(
            select(Site, SiteAccessGrant.role)
            .join(SiteAccessGrant, SiteAccessGrant.site_id == Site.id)
            .where(SiteAccessGrant.user_id == user_id)
            .order_by(Site.name)
        )
        return [(site, role) for site, role in result.all()]
