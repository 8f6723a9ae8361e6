"""
Content mutation orchestrator.

Entry point for announcement create/update/delete. Every target site is
checked before anything is written; the content save and the syndication
replace are then committed together or not at all.
"""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.exceptions import EntityNotFound, InvalidSyndication
from newsdesk.models.announcement import Announcement
from newsdesk.schemas.announcement import (
    TARGET_FIELDS,
    AnnouncementPatch,
    AnnouncementPayload,
)
from newsdesk.services.access_service import AccessService
from newsdesk.services.announcement_service import AnnouncementService
from newsdesk.services.audit_log_service import AuditEntry, AuditSink, emit_audit
from newsdesk.services.syndication_service import SyndicationService

logger = logging.getLogger(__name__)


class AnnouncementOrchestrator:
    """Sequences permission checks, content persistence and syndication."""

    def __init__(
        self,
        db: AsyncSession,
        access: AccessService | None = None,
        audit_sink: AuditSink | None = None,
    ):
        self.db = db
        self.access = access or AccessService(db)
        self.content = AnnouncementService(db)
        self.syndication = SyndicationService(db)
        self.audit_sink = audit_sink

    async def create_or_update(
        self,
        caller_id: UUID,
        payload: AnnouncementPayload | AnnouncementPatch,
        site_ids: list[UUID] | None = None,
        primary_site_id: UUID | None = None,
        announcement_id: UUID | None = None,
    ) -> Announcement:
        """Create an announcement, or update the one given by ``announcement_id``.

        Without ``site_ids`` a new announcement goes to the fallback site and an
        existing one keeps its current syndication. The caller must be able
        to edit on every target site, and on every site an update removes.
        """
        existing: Announcement | None = None
        current_site_ids: list[UUID] = []
        current_primary: UUID | None = None

        if announcement_id is not None:
            existing = await self.content.get_by_id(announcement_id)
            if existing is None:
                raise EntityNotFound("Announcement")
            associations = await self.syndication.get_associations(announcement_id)
            current_site_ids = [a.site_id for a in associations]
            current_primary = next(
                (a.site_id for a in associations if a.is_primary), None
            )

        if not site_ids and primary_site_id is not None:
            raise InvalidSyndication("primary_site_id requires site_ids")

        if not site_ids and current_site_ids:
            targets, primary = current_site_ids, current_primary
        else:
            targets, primary = await self.syndication.resolve_site_targets(
                site_ids, primary_site_id
            )

        removed = [site_id for site_id in current_site_ids if site_id not in targets]
        await self.access.require_edit_on_sites(caller_id, [*targets, *removed])

        data = payload.model_dump(
            exclude_unset=existing is not None, exclude=TARGET_FIELDS
        )
        try:
            if existing is None:
                announcement = await self.content.create(data, author_id=caller_id)
            else:
                announcement = await self.content.update(existing, data, editor_id=caller_id)
            announcement_id = announcement.id
            await self.syndication.set_syndication(announcement_id, targets, primary)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        action = "CREATE" if existing is None else "UPDATE"
        logger.info(
            f"Announcement {announcement_id} {action.lower()}d by {caller_id} "
            f"on {len(targets)} site(s)"
        )
        await emit_audit(
            self.audit_sink,
            AuditEntry(
                action=action,
                entity_type="ANNOUNCEMENT",
                entity_id=announcement_id,
                user_id=caller_id,
                site_id=primary,
                changes={
                    "title": announcement.title,
                    "site_ids": targets,
                    "primary_site_id": primary,
                },
            ),
        )
        return announcement

    async def delete(self, caller_id: UUID, announcement_id: UUID) -> None:
        """Delete an announcement. Requires edit rights on all its sites."""
        announcement = await self.content.get_by_id(announcement_id)
        if announcement is None:
            raise EntityNotFound("Announcement")

        site_ids = await self.syndication.get_site_ids(announcement_id)
        if site_ids:
            await self.access.require_edit_on_sites(caller_id, site_ids)
        else:
            # Unsyndicated leftovers are only reachable by super admins
            await self.access.require_super_admin(caller_id, "delete unsyndicated announcements")

        title = announcement.title
        try:
            await self.syndication.clear(announcement_id)
            await self.content.delete(announcement_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Announcement {announcement_id} deleted by {caller_id}")
        await emit_audit(
            self.audit_sink,
            AuditEntry(
                action="DELETE",
                entity_type="ANNOUNCEMENT",
                entity_id=announcement_id,
                user_id=caller_id,
                site_id=site_ids[0] if site_ids else None,
                changes={"title": title, "site_ids": site_ids},
            ),
        )
