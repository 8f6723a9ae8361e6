"""
Syndication manager.

Owns the announcement <-> site associations. The association set of an
announcement is only ever replaced as a whole, so a reader sees either the
old set or the new one, each with exactly one primary row.
"""
import logging
from dataclasses import dataclass, field
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.config import settings
from newsdesk.core.exceptions import (
    InvalidSyndication,
    InvariantViolation,
    NoSitesAvailable,
    integrity_guard,
)
from newsdesk.models.announcement import Announcement, SiteAssociation
from newsdesk.models.site import Site

logger = logging.getLogger(__name__)


def build_canonical_url(site_slug: str, announcement_slug: str) -> str:
    """Public path of an announcement on a site."""
    base = settings.CANONICAL_BASE_URL.rstrip("/")
    return f"{base}/site/{site_slug}/{announcement_slug}"


@dataclass
class DetachResult:
    """Outcome of removing one site from every syndication set."""

    removed: int = 0
    reassigned_primary: list[UUID] = field(default_factory=list)
    unsyndicated: list[UUID] = field(default_factory=list)


class SyndicationService:
    """Service for announcement syndication."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_associations(self, announcement_id: UUID) -> list[SiteAssociation]:
        """Associations of an announcement, primary first."""
        result = await self.db.execute(
            select(SiteAssociation)
            .where(SiteAssociation.announcement_id == announcement_id)
            .order_by(SiteAssociation.is_primary.desc(), SiteAssociation.created_at)
        )
        associations = list(result.scalars().all())
        self._check_single_primary(announcement_id, associations)
        return associations

    async def get_associations_with_sites(
        self,
        announcement_id: UUID,
    ) -> list[tuple[SiteAssociation, Site]]:
        result = await self.db.execute(
            select(SiteAssociation, Site)
            .join(Site, Site.id == SiteAssociation.site_id)
            .where(SiteAssociation.announcement_id == announcement_id)
            .order_by(SiteAssociation.is_primary.desc(), Site.name)
        )
        rows = [(association, site) for association, site in result.all()]
        self._check_single_primary(announcement_id, [a for a, _ in rows])
        return rows

    async def get_site_ids(self, announcement_id: UUID) -> list[UUID]:
        return [a.site_id for a in await self.get_associations(announcement_id)]

    async def get_primary_site(self, announcement_id: UUID) -> Site | None:
        """The canonical site of an announcement, None when unsyndicated."""
        for association, site in await self.get_associations_with_sites(announcement_id):
            if association.is_primary:
                return site
        return None

    def _check_single_primary(
        self,
        announcement_id: UUID,
        associations: Sequence[SiteAssociation],
    ) -> None:
        if not associations:
            return
        primaries = sum(1 for a in associations if a.is_primary)
        if primaries != 1:
            logger.error(
                f"Syndication invariant broken for announcement {announcement_id}: "
                f"{primaries} primary associations out of {len(associations)}"
            )
            raise InvariantViolation(
                f"Announcement {announcement_id} has {primaries} primary sites"
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set_syndication(
        self,
        announcement_id: UUID,
        site_ids: Sequence[UUID],
        primary_site_id: UUID,
    ) -> list[SiteAssociation]:
        """Replace the whole association set of an announcement."""
        targets = list(dict.fromkeys(site_ids))
        if not targets:
            raise InvalidSyndication("At least one target site is required")
        if primary_site_id not in targets:
            raise InvalidSyndication(f"Primary site {primary_site_id} is not a target site")

        result = await self.db.execute(select(Site.id).where(Site.id.in_(targets)))
        known = set(result.scalars().all())
        for site_id in targets:
            if site_id not in known:
                raise InvalidSyndication(f"Site {site_id} does not exist")

        await self.db.execute(
            delete(SiteAssociation).where(SiteAssociation.announcement_id == announcement_id)
        )
        associations = [
            SiteAssociation(
                announcement_id=announcement_id,
                site_id=site_id,
                is_primary=site_id == primary_site_id,
            )
            for site_id in targets
        ]
        self.db.add_all(associations)

        with integrity_guard(f"Syndication of announcement {announcement_id} changed concurrently"):
            await self.db.flush()

        logger.info(
            f"Announcement {announcement_id} syndicated to {len(targets)} site(s), "
            f"primary {primary_site_id}"
        )
        return associations

    async def clear(self, announcement_id: UUID) -> int:
        """Drop every association of an announcement (announcement deletion)."""
        result = await self.db.execute(
            delete(SiteAssociation).where(SiteAssociation.announcement_id == announcement_id)
        )
        return result.rowcount

    async def detach_site(self, site_id: UUID) -> DetachResult:
        """Remove a site from all syndication sets.

        Announcements whose primary was this site have it moved to the oldest
        remaining site, with the site name breaking ties. Announcements left
        without any association are unpublished, since they have nowhere to be
        shown.
        """
        result = await self.db.execute(
            select(SiteAssociation.announcement_id, SiteAssociation.is_primary)
            .where(SiteAssociation.site_id == site_id)
        )
        affected = result.all()
        outcome = DetachResult(removed=len(affected))
        if not affected:
            return outcome

        await self.db.execute(
            delete(SiteAssociation).where(SiteAssociation.site_id == site_id)
        )

        for announcement_id, was_primary in affected:
            remaining_result = await self.db.execute(
                select(SiteAssociation)
                .join(Site, Site.id == SiteAssociation.site_id)
                .where(SiteAssociation.announcement_id == announcement_id)
                .order_by(Site.created_at, Site.name)
            )
            remaining = list(remaining_result.scalars().all())

            if not remaining:
                await self.db.execute(
                    update(Announcement)
                    .where(Announcement.id == announcement_id)
                    .values(is_published=False)
                )
                outcome.unsyndicated.append(announcement_id)
                logger.warning(
                    f"Announcement {announcement_id} lost its last site {site_id} and was unpublished"
                )
            elif was_primary:
                remaining[0].is_primary = True
                outcome.reassigned_primary.append(announcement_id)
                logger.info(
                    f"Primary of announcement {announcement_id} moved to site {remaining[0].site_id}"
                )

        with integrity_guard(f"Syndication touching site {site_id} changed concurrently"):
            await self.db.flush()
        return outcome

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    async def find_fallback_site(self) -> Site:
        """Default site if active, else the oldest active site."""
        result = await self.db.execute(
            select(Site).where(Site.is_default.is_(True), Site.is_active.is_(True))
        )
        site = result.scalar_one_or_none()
        if site:
            return site

        result = await self.db.execute(
            select(Site)
            .where(Site.is_active.is_(True))
            .order_by(Site.created_at, Site.name)
            .limit(1)
        )
        site = result.scalar_one_or_none()
        if site:
            return site

        logger.warning("No active site available as syndication fallback")
        raise NoSitesAvailable()

    async def resolve_site_targets(
        self,
        site_ids: Sequence[UUID] | None = None,
        primary_site_id: UUID | None = None,
    ) -> tuple[list[UUID], UUID]:
        """Final (targets, primary) for a mutation.

        Explicit ids win. Without them the fallback site is the only target.
        The primary defaults to the first target.
        """
        if site_ids:
            targets = list(dict.fromkeys(site_ids))
        elif primary_site_id is not None:
            raise InvalidSyndication("primary_site_id requires site_ids")
        else:
            fallback = await self.find_fallback_site()
            targets = [fallback.id]

        primary = primary_site_id or targets[0]
        if primary not in targets:
            raise InvalidSyndication(f"Primary site {primary} is not a target site")
        return targets, primary

    # ------------------------------------------------------------------
    # Canonical links
    # ------------------------------------------------------------------

    async def resolve_canonical_url(
        self,
        announcement_id: UUID,
        requesting_site_id: UUID,
    ) -> str | None:
        """Canonical link for an announcement viewed on a site.

        None when the requesting site is the primary one (or the announcement
        is not syndicated anywhere); otherwise the primary site's path.
        """
        primary_site = await self.get_primary_site(announcement_id)
        if primary_site is None or primary_site.id == requesting_site_id:
            return None

        result = await self.db.execute(
            select(Announcement.slug).where(Announcement.id == announcement_id)
        )
        announcement_slug = result.scalar_one_or_none()
        if announcement_slug is None:
            return None
        return build_canonical_url(primary_site.slug, announcement_slug)
