"""
Announcement endpoints.

Writes go through the orchestrator, which checks the caller's edit rights
on every target site before touching anything.
"""
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.deps import Audit, CurrentUser, get_db
from newsdesk.core.exceptions import EntityNotFound, PermissionDenied
from newsdesk.models.announcement import Announcement
from newsdesk.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    CanonicalUrlResponse,
    SiteAssociationResponse,
)
from newsdesk.schemas.common import ErrorResponse, MessageResponse
from newsdesk.schemas.site import SiteSummary
from newsdesk.services.access_service import AccessService
from newsdesk.services.announcement_orchestrator import AnnouncementOrchestrator
from newsdesk.services.announcement_service import AnnouncementService
from newsdesk.services.syndication_service import SyndicationService

router = APIRouter(prefix="/announcements", tags=["Announcements"])


async def _build_response(db: AsyncSession, announcement: Announcement) -> AnnouncementResponse:
    rows = await SyndicationService(db).get_associations_with_sites(announcement.id)
    response = AnnouncementResponse.model_validate(announcement)
    response.sites = [
        SiteAssociationResponse(
            site=SiteSummary.model_validate(site),
            is_primary=association.is_primary,
        )
        for association, site in rows
    ]
    response.primary_site_id = next(
        (association.site_id for association, _ in rows if association.is_primary), None
    )
    return response


async def _require_read_access(db: AsyncSession, caller_id: UUID, announcement_id: UUID) -> None:
    """Super admins, or callers with access to one of the announcement's sites."""
    access = AccessService(db)
    if await access.is_super_admin(caller_id):
        return
    site_ids = await SyndicationService(db).get_site_ids(announcement_id)
    for site_id in site_ids:
        if await access.can_access_site(caller_id, site_id):
            return
    raise PermissionDenied(site_ids[0] if site_ids else None)


@router.post(
    "",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def create_announcement(
    data: AnnouncementCreate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Create an announcement and syndicate it."""
    orchestrator = AnnouncementOrchestrator(db, audit_sink=audit)
    announcement = await orchestrator.create_or_update(
        current_user.id,
        data,
        site_ids=data.site_ids,
        primary_site_id=data.primary_site_id,
    )
    return await _build_response(db, announcement)


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get an announcement with its sites."""
    announcement = await AnnouncementService(db).get_by_id(announcement_id)
    if not announcement:
        raise EntityNotFound("Announcement")

    await _require_read_access(db, current_user.id, announcement_id)
    return await _build_response(db, announcement)


@router.patch(
    "/{announcement_id}",
    response_model=AnnouncementResponse,
    responses={403: {"model": ErrorResponse}},
)
async def update_announcement(
    announcement_id: UUID,
    data: AnnouncementUpdate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Update an announcement; sending ``site_ids`` replaces its syndication."""
    orchestrator = AnnouncementOrchestrator(db, audit_sink=audit)
    announcement = await orchestrator.create_or_update(
        current_user.id,
        data,
        site_ids=data.site_ids,
        primary_site_id=data.primary_site_id,
        announcement_id=announcement_id,
    )
    return await _build_response(db, announcement)


@router.delete("/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(
    announcement_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Delete an announcement from every site."""
    orchestrator = AnnouncementOrchestrator(db, audit_sink=audit)
    await orchestrator.delete(current_user.id, announcement_id)
    return MessageResponse(message="Announcement deleted successfully")


@router.get("/{announcement_id}/canonical", response_model=CanonicalUrlResponse)
async def get_canonical_url(
    announcement_id: UUID,
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Canonical link for the announcement as shown on ``site_id``.

    ``canonical_url`` is null when ``site_id`` is the primary site.
    """
    if not await AnnouncementService(db).get_by_id(announcement_id):
        raise EntityNotFound("Announcement")
    await _require_read_access(db, current_user.id, announcement_id)

    canonical_url = await SyndicationService(db).resolve_canonical_url(announcement_id, site_id)
    return CanonicalUrlResponse(
        announcement_id=announcement_id,
        site_id=site_id,
        canonical_url=canonical_url,
    )
