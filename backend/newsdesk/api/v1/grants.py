"""
Per-site access grant endpoints.
"""
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.deps import Audit, CurrentUser, get_db
from newsdesk.core.exceptions import NotFoundError
from newsdesk.schemas.common import MessageResponse
from newsdesk.schemas.site import GrantCreate, GrantResponse
from newsdesk.services.site_service import SiteService

router = APIRouter(prefix="/sites/{site_id}/grants", tags=["Grants"])


@router.get("", response_model=list[GrantResponse])
async def list_grants(
    site_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List who has access to a site."""
    service = SiteService(db)
    grants = await service.list_site_grants(current_user.id, site_id)
    return [GrantResponse.model_validate(g) for g in grants]


@router.put("", response_model=GrantResponse)
async def grant_role(
    site_id: UUID,
    data: GrantCreate,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Grant a role on the site, replacing any existing one."""
    service = SiteService(db, audit_sink=audit)
    grant = await service.grant_role(current_user.id, site_id, data.user_id, data.role)
    return GrantResponse.model_validate(grant)


@router.delete("/{user_id}", response_model=MessageResponse)
async def revoke_role(
    site_id: UUID,
    user_id: UUID,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    audit: Audit,
):
    """Revoke a user's access to the site."""
    service = SiteService(db, audit_sink=audit)
    revoked = await service.revoke_role(current_user.id, site_id, user_id)

    if not revoked:
        raise NotFoundError("Grant")

    return MessageResponse(message="Access revoked successfully")
