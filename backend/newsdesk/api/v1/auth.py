"""
Caller identity endpoints.

Tokens are issued by the identity provider; this API only reads them.
"""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.core.deps import CurrentUser, get_db
from newsdesk.schemas.auth import CurrentUserResponse, SiteAccessEntry
from newsdesk.services.role_store import RoleStore

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CurrentUserResponse:
    """Get current user information with the site grants as stored right now."""
    site_roles = await RoleStore(db).list_user_site_roles(current_user.id)

    response = CurrentUserResponse.model_validate(current_user)
    response.site_access = [
        SiteAccessEntry(
            site_id=site.id,
            site_slug=site.slug,
            site_name=site.name,
            role=role,
        )
        for site, role in site_roles
    ]
    return response
