"""
Site registry.

Site CRUD, the single default site, the active/inactive lifecycle and the
per-site grant administration. Deletion cascades explicitly through the
syndication manager and the role store so each step is logged. Each write
commits its own unit of work before the audit record goes out."""
import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.core.exceptions import (
    DuplicateSlug,
    EntityNotFound,
    ProtectedEntity,
    integrity_guard,
)
from newsdesk.models.site import Site, SiteAccessGrant, SiteRole
from newsdesk.models.user import User
from newsdesk.schemas.site import SiteCreate, SiteUpdate
from newsdesk.services.access_service import AccessService
from newsdesk.services.audit_log_service import AuditEntry, AuditSink, emit_audit
from newsdesk.services.syndication_service import DetachResult, SyndicationService

logger = logging.getLogger(__name__)

NON_NULL_FIELDS = ("name", "slug", "primary_color", "is_active")


class SiteService:
    """Service for site operations."""

    def __init__(
        self,
        db: AsyncSession,
        access: AccessService | None = None,
        audit_sink: AuditSink | None = None,
    ):
        self.db = db
        self.access = access or AccessService(db)
        self.syndication = SyndicationService(db)
        self.audit_sink = audit_sink

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, site_id: UUID) -> Site | None:
        result = await self.db.execute(select(Site).where(Site.id == site_id))
        return result.scalar_one_or_none()

    async def get_default_site(self) -> Site | None:
        result = await self.db.execute(select(Site).where(Site.is_default.is_(True)))
        return result.scalar_one_or_none()

    async def count_sites(self) -> int:
        result = await self.db.execute(select(func.count(Site.id)))
        return result.scalar()

    async def list_accessible_sites(
        self,
        caller_id: UUID,
        include_inactive: bool = False,
    ) -> list[Site]:
        """Sites visible to the caller, ordered by name.

        Super admins see every site (inactive ones only on request). Other
        users see the active sites they hold a grant on.
        """
        if await self.access.is_super_admin(caller_id):
            query = select(Site)
            if not include_inactive:
                query = query.where(Site.is_active.is_(True))
        else:
            query = (
                select(Site)
                .join(SiteAccessGrant, SiteAccessGrant.site_id == Site.id)
                .where(
                    SiteAccessGrant.user_id == caller_id,
                    Site.is_active.is_(True),
                )
            )
        result = await self.db.execute(query.order_by(Site.name))
        return list(result.scalars().all())

    async def get_default_site_for_user(self, caller_id: UUID) -> Site | None:
        """First accessible site, else the system default."""
        sites = await self.list_accessible_sites(caller_id)
        if sites:
            return sites[0]
        return await self.get_default_site()

    async def _get_or_raise(self, site_id: UUID) -> Site:
        site = await self.get_by_id(site_id)
        if not site:
            raise EntityNotFound("Site")
        return site

    async def _ensure_slug_free(self, slug: str, exclude_site_id: UUID | None = None) -> None:
        query = select(Site.id).where(Site.slug == slug)
        if exclude_site_id:
            query = query.where(Site.id != exclude_site_id)
        result = await self.db.execute(query)
        if result.first() is not None:
            raise DuplicateSlug(slug)

    async def _clear_default(self, keep_site_id: UUID | None = None) -> None:
        query = update(Site).where(Site.is_default.is_(True))
        if keep_site_id:
            query = query.where(Site.id != keep_site_id)
        await self.db.execute(
            query.values(is_default=False).execution_options(synchronize_session="fetch")
        )

    async def _make_default(self, site: Site) -> None:
        await self._clear_default(keep_site_id=site.id)
        site.is_default = True
        with integrity_guard("Default site was changed concurrently"):
            await self.db.flush()

    async def _commit(self) -> None:
        """Commit the unit of work. Audit records are only emitted after this."""
        try:
            with integrity_guard("Site registry changed concurrently"):
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_site(self, caller_id: UUID, data: SiteCreate) -> Site:
        """Create a site. Super admin only."""
        await self.access.require_super_admin(caller_id, "create sites")
        await self._ensure_slug_free(data.slug)

        description = data.description
        primary_color = data.primary_color
        logo_path = data.logo_path
        if data.clone_from_site_id:
            source = await self.get_by_id(data.clone_from_site_id)
            if source:
                description = description if description is not None else source.description
                primary_color = primary_color or source.primary_color
                logo_path = logo_path if logo_path is not None else source.logo_path
            else:
                logger.info(f"Clone source site {data.clone_from_site_id} not found, using defaults")

        if data.is_default:
            await self._clear_default()

        site = Site(
            name=data.name,
            slug=data.slug,
            description=description,
            primary_color=primary_color or settings.DEFAULT_SITE_COLOR,
            logo_path=logo_path,
            is_active=data.is_active,
            is_default=data.is_default,
        )
        self.db.add(site)
        with integrity_guard(f"Site '{data.slug}' was created concurrently"):
            await self.db.flush()
        await self.db.refresh(site)
        await self._commit()

        logger.info(f"Site {site.slug} ({site.id}) created by {caller_id}")
        await self._audit("CREATE", site.id, caller_id, {"name": site.name, "slug": site.slug})
        return site

    async def update_site(self, caller_id: UUID, site_id: UUID, data: SiteUpdate) -> Site:
        """Update a site. Requires admin rights on it; default changes need a super admin."""
        await self.access.require_admin_on_site(caller_id, site_id)
        site = await self._get_or_raise(site_id)

        update_data = data.model_dump(exclude_unset=True)
        is_default = update_data.pop("is_default", None)
        if is_default is not None and is_default != site.is_default:
            await self.access.require_super_admin(caller_id, "change the default site")

        if update_data.get("slug") and update_data["slug"] != site.slug:
            await self._ensure_slug_free(update_data["slug"], exclude_site_id=site_id)

        for field, value in update_data.items():
            if value is None and field in NON_NULL_FIELDS:
                continue
            setattr(site, field, value)

        with integrity_guard(f"Site {site_id} was modified concurrently"):
            await self.db.flush()

        if is_default is True and not site.is_default:
            await self._make_default(site)
        elif is_default is False and site.is_default:
            site.is_default = False
            await self.db.flush()

        await self.db.refresh(site)
        await self._commit()
        await self._audit("UPDATE", site.id, caller_id, data.model_dump(exclude_unset=True))
        return site

    async def set_default_site(self, caller_id: UUID, site_id: UUID) -> Site:
        """Make a site the system default. Super admin only.

        The previous default is cleared and the new one set in the same
        transaction, clear first, so two defaults are never visible.
        """
        await self.access.require_super_admin(caller_id, "change the default site")
        site = await self._get_or_raise(site_id)
        if site.is_default:
            return site

        await self._make_default(site)
        await self.db.refresh(site)
        await self._commit()

        logger.info(f"Default site is now {site.slug} ({site.id})")
        await self._audit("SET_DEFAULT", site.id, caller_id, {"is_default": True})
        return site

    async def deactivate_site(self, caller_id: UUID, site_id: UUID) -> Site:
        """Soft-disable a site."""
        await self.access.require_admin_on_site(caller_id, site_id)
        site = await self._get_or_raise(site_id)
        site.is_active = False
        await self.db.flush()
        await self.db.refresh(site)
        await self._commit()

        logger.info(f"Site {site.slug} ({site.id}) deactivated by {caller_id}")
        await self._audit("DEACTIVATE", site.id, caller_id, {"is_active": False})
        return site

    async def delete_site(self, caller_id: UUID, site_id: UUID) -> DetachResult:
        """Delete a site and cascade to its associations and grants.

        The default site and the last remaining site are protected.
        """
        await self.access.require_super_admin(caller_id, "delete sites")
        site = await self._get_or_raise(site_id)

        if site.is_default:
            raise ProtectedEntity("Cannot delete the default site")
        if await self.count_sites() <= 1:
            raise ProtectedEntity("Cannot delete the last site")

        detached = await self.syndication.detach_site(site_id)
        logger.info(
            f"Site {site.slug}: removed {detached.removed} association(s), "
            f"moved {len(detached.reassigned_primary)} primary, "
            f"unpublished {len(detached.unsyndicated)} announcement(s)"
        )
        grants_removed = await self.access.roles.delete_site_grants(site_id)
        logger.info(f"Site {site.slug}: removed {grants_removed} grant(s)")

        slug = site.slug
        await self.db.delete(site)
        await self.db.flush()
        await self._commit()

        logger.info(f"Site {slug} ({site_id}) deleted by {caller_id}")
        await self._audit(
            "DELETE",
            site_id,
            caller_id,
            {
                "slug": slug,
                "associations_removed": detached.removed,
                "grants_removed": grants_removed,
                "unsyndicated": detached.unsyndicated,
            },
        )
        return detached

    # ------------------------------------------------------------------
    # Grant administration
    # ------------------------------------------------------------------

    async def list_site_grants(self, caller_id: UUID, site_id: UUID) -> list[SiteAccessGrant]:
        await self.access.require_admin_on_site(caller_id, site_id)
        return await self.access.roles.list_site_grants(site_id)

    async def grant_role(
        self,
        caller_id: UUID,
        site_id: UUID,
        user_id: UUID,
        role: SiteRole,
    ) -> SiteAccessGrant:
        """Give (or change) a user's role on a site.

        Allowed for super admins and the site's SITE_ADMINs.
        """
        await self.access.require_admin_on_site(caller_id, site_id)
        await self._get_or_raise(site_id)
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        if result.scalar_one_or_none() is None:
            raise EntityNotFound("User")

        grant = await self.access.roles.save_grant(user_id, site_id, role)
        await self._commit()
        logger.info(f"User {user_id} granted {role.value} on site {site_id} by {caller_id}")
        await self._audit(
            "GRANT", site_id, caller_id, {"user_id": user_id, "role": role.value},
            entity_type="SITE_ACCESS",
        )
        return grant

    async def revoke_role(self, caller_id: UUID, site_id: UUID, user_id: UUID) -> bool:
        await self.access.require_admin_on_site(caller_id, site_id)
        revoked = await self.access.roles.delete_grant(user_id, site_id)
        if revoked:
            await self._commit()
            logger.info(f"User {user_id} lost access to site {site_id} (by {caller_id})")
            await self._audit(
                "REVOKE", site_id, caller_id, {"user_id": user_id},
                entity_type="SITE_ACCESS",
            )
        return revoked

    async def _audit(
        self,
        action: str,
        site_id: UUID,
        caller_id: UUID,
        changes: dict,
        entity_type: str = "SITE",
    ) -> None:
        await emit_audit(
            self.audit_sink,
            AuditEntry(
                action=action,
                entity_type=entity_type,
                entity_id=site_id,
                user_id=caller_id,
                site_id=site_id,
                changes=changes,
            ),
        )
