"""
Site management endpoints.
"""
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.deps import Audit, CurrentUser, get_db
from newsdesk.core.exceptions import EntityNotFound, PermissionDenied
from newsdesk.schemas.announcement import AnnouncementListItem
from newsdesk.schemas.common import MessageResponse, PaginatedResponse
from newsdesk.schemas.site import SiteCreate, SiteResponse, SiteUpdate
from newsdesk.services.announcement_service import AnnouncementService
from newsdesk.services.site_service import SiteService

router = APIRouter(prefix="/sites", tags=["Sites"])


@router.get("", response_model=list[SiteResponse])
async def list_sites(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    include_inactive: bool = False,
):
    """List the sites visible to the current user."""
    service = SiteService(db)
    sites = await service.list_accessible_sites(current_user.id, include_inactive)
    return [SiteResponse.model_validate(s) for s in sites]


@router.get("/default", response_model=SiteResponse)
async def get_default_site(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """The site the current user lands on."""
    service = SiteService(db)
    site = await service.get_default_site_for_user(current_user.id)
    if not site:
        raise EntityNotFound("Site")
    return SiteResponse.model_validate(site)


@router.post("", response_model=SiteResponse, status_code=status.HTTP_201_CREATED)
async def create_site(
    data: SiteCreate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Create a new site."""
    service = SiteService(db, audit_sink=audit)
    site = await service.create_site(current_user.id, data)
    return SiteResponse.model_validate(site)


@router.get("/{site_id}", response_model=SiteResponse)
async def get_site(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get a site by ID."""
    service = SiteService(db)
    if not await service.access.can_access_site(current_user.id, site_id):
        raise PermissionDenied(site_id)

    site = await service.get_by_id(site_id)
    if not site:
        raise EntityNotFound("Site")

    return SiteResponse.model_validate(site)


@router.patch("/{site_id}", response_model=SiteResponse)
async def update_site(
    site_id: UUID,
    data: SiteUpdate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Update a site."""
    service = SiteService(db, audit_sink=audit)
    site = await service.update_site(current_user.id, site_id, data)
    return SiteResponse.model_validate(site)


@router.post("/{site_id}/default", response_model=SiteResponse)
async def set_default_site(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Make a site the system default."""
    service = SiteService(db, audit_sink=audit)
    site = await service.set_default_site(current_user.id, site_id)
    return SiteResponse.model_validate(site)


@router.post("/{site_id}/deactivate", response_model=SiteResponse)
async def deactivate_site(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Soft-disable a site."""
    service = SiteService(db, audit_sink=audit)
    site = await service.deactivate_site(current_user.id, site_id)
    return SiteResponse.model_validate(site)


@router.delete("/{site_id}", response_model=MessageResponse)
async def delete_site(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Delete a site and detach it from every announcement."""
    service = SiteService(db, audit_sink=audit)
    detached = await service.delete_site(current_user.id, site_id)
    return MessageResponse(
        message=(
            f"Site deleted successfully ({detached.removed} syndication(s) removed, "
            f"{len(detached.unsyndicated)} announcement(s) unpublished)"
        )
    )


@router.get("/{site_id}/announcements", response_model=PaginatedResponse[AnnouncementListItem])
async def list_site_announcements(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    published_only: bool = True,
):
    """List announcements syndicated to a site, pinned first."""
    service = SiteService(db)
    if not await service.access.can_access_site(current_user.id, site_id):
        raise PermissionDenied(site_id)

    announcements, total = await AnnouncementService(db).list_for_site(
        site_id, page, per_page, published_only
    )

    return PaginatedResponse.create(
        items=[AnnouncementListItem.model_validate(a) for a in announcements],
        total=total,
        page=page,
        per_page=per_page,
    )
