"""
Unit tests for the site registry.

Covers:
- Single default site across create/update/set-default
- Deletion guard for the default and the last site
- Explicit cascade to syndication and grants
- Visibility rules for listing
- Grant administration
"""
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from newsdesk.core.exceptions import (
    DuplicateSlug,
    EntityNotFound,
    PermissionDenied,
    ProtectedEntity,
)
from newsdesk.models.announcement import Announcement, SiteAssociation
from newsdesk.models.site import Site, SiteAccessGrant, SiteRole
from newsdesk.schemas.site import SiteCreate, SiteUpdate
from newsdesk.services.site_service import SiteService
from newsdesk.services.syndication_service import SyndicationService

from conftest import (
    EDITOR_ID,
    OUTSIDER_ID,
    SITE_A_ID,
    SITE_ADMIN_ID,
    SITE_B_ID,
    SUPER_ADMIN_ID,
)


async def count_defaults(db) -> int:
    result = await db.execute(select(func.count(Site.id)).where(Site.is_default.is_(True)))
    return result.scalar()


async def count_sites(db) -> int:
    result = await db.execute(select(func.count(Site.id)))
    return result.scalar()


class TestCreateSite:
    """Test site creation."""

    @pytest.mark.asyncio
    async def test_super_admin_creates_site(self, db_session_with_data, mock_audit_sink):
        service = SiteService(db_session_with_data, audit_sink=mock_audit_sink)

        site = await service.create_site(
            SUPER_ADMIN_ID, SiteCreate(name="Gamma", slug="  Gamma ")
        )

        assert site.slug == "gamma"
        assert site.primary_color == "#ED1C24"
        assert site.is_active is True
        assert site.is_default is False
        mock_audit_sink.record.assert_awaited_once()
        assert mock_audit_sink.record.await_args.args[0].action == "CREATE"

    @pytest.mark.asyncio
    async def test_failed_commit_is_not_audited(self, db_session_with_data, mock_audit_sink):
        db = db_session_with_data
        service = SiteService(db, audit_sink=mock_audit_sink)
        failing = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error")))

        with patch.object(db, "commit", failing):
            with pytest.raises(OperationalError):
                await service.create_site(SUPER_ADMIN_ID, SiteCreate(name="Gamma", slug="gamma"))

        mock_audit_sink.record.assert_not_awaited()
        assert await count_sites(db) == 2

    @pytest.mark.asyncio
    async def test_site_admin_cannot_create(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.create_site(SITE_ADMIN_ID, SiteCreate(name="Gamma", slug="gamma"))

    @pytest.mark.asyncio
    async def test_duplicate_slug_rejected_even_if_inactive(self, db_session_with_data):
        service = SiteService(db_session_with_data)
        await service.deactivate_site(SUPER_ADMIN_ID, SITE_B_ID)

        with pytest.raises(DuplicateSlug):
            await service.create_site(SUPER_ADMIN_ID, SiteCreate(name="Beta 2", slug="beta"))

    @pytest.mark.asyncio
    async def test_create_as_default_moves_the_flag(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        site = await service.create_site(
            SUPER_ADMIN_ID, SiteCreate(name="Gamma", slug="gamma", is_default=True)
        )

        assert site.is_default is True
        assert await count_defaults(db_session_with_data) == 1
        default = await service.get_default_site()
        assert default.id == site.id

    @pytest.mark.asyncio
    async def test_clone_copies_branding(self, db_session_with_data):
        service = SiteService(db_session_with_data)
        await service.update_site(
            SUPER_ADMIN_ID,
            SITE_A_ID,
            SiteUpdate(primary_color="#112233", description="Alpha news"),
        )

        clone = await service.create_site(
            SUPER_ADMIN_ID,
            SiteCreate(name="Alpha Kids", slug="alpha-kids", clone_from_site_id=SITE_A_ID),
        )

        assert clone.primary_color == "#112233"
        assert clone.description == "Alpha news"
        assert clone.is_default is False


class TestDefaultSite:
    """Test the single default site invariant."""

    @pytest.mark.asyncio
    async def test_set_default_sequence_keeps_one_default(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        for site_id in (SITE_B_ID, SITE_A_ID, SITE_B_ID, SITE_B_ID):
            await service.set_default_site(SUPER_ADMIN_ID, site_id)
            assert await count_defaults(db_session_with_data) == 1
            default = await service.get_default_site()
            assert default.id == site_id

    @pytest.mark.asyncio
    async def test_set_default_requires_super_admin(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.set_default_site(SITE_ADMIN_ID, SITE_B_ID)

    @pytest.mark.asyncio
    async def test_update_moves_the_default(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        site = await service.update_site(SUPER_ADMIN_ID, SITE_B_ID, SiteUpdate(is_default=True))

        assert site.is_default is True
        assert await count_defaults(db_session_with_data) == 1

    @pytest.mark.asyncio
    async def test_site_admin_cannot_take_default(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.update_site(
                SITE_ADMIN_ID, SITE_B_ID, SiteUpdate(name="Beta!", is_default=True)
            )

        site = await service.get_by_id(SITE_B_ID)
        assert site.name == "Beta"


class TestUpdateSite:
    """Test site updates."""

    @pytest.mark.asyncio
    async def test_site_admin_updates_own_site(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        site = await service.update_site(SITE_ADMIN_ID, SITE_B_ID, SiteUpdate(name="Beta News"))

        assert site.name == "Beta News"

    @pytest.mark.asyncio
    async def test_editor_cannot_update(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.update_site(EDITOR_ID, SITE_A_ID, SiteUpdate(name="Mine"))

    @pytest.mark.asyncio
    async def test_slug_collision(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(DuplicateSlug):
            await service.update_site(SUPER_ADMIN_ID, SITE_B_ID, SiteUpdate(slug="alpha"))


class TestDeleteSite:
    """Test the deletion guard and cascade."""

    @pytest.mark.asyncio
    async def test_default_site_is_protected(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(ProtectedEntity):
            await service.delete_site(SUPER_ADMIN_ID, SITE_A_ID)

        assert await count_sites(db_session_with_data) == 2

    @pytest.mark.asyncio
    async def test_last_site_is_protected(self, db_session_with_data):
        service = SiteService(db_session_with_data)
        await service.delete_site(SUPER_ADMIN_ID, SITE_B_ID)
        # Take the flag off A so only the last-site rule can apply
        await service.update_site(SUPER_ADMIN_ID, SITE_A_ID, SiteUpdate(is_default=False))

        with pytest.raises(ProtectedEntity):
            await service.delete_site(SUPER_ADMIN_ID, SITE_A_ID)

        assert await count_sites(db_session_with_data) == 1

    @pytest.mark.asyncio
    async def test_delete_requires_super_admin(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.delete_site(SITE_ADMIN_ID, SITE_B_ID)

    @pytest.mark.asyncio
    async def test_missing_site(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(EntityNotFound):
            await service.delete_site(SUPER_ADMIN_ID, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_cascade_to_associations_and_grants(self, db_session_with_data):
        db = db_session_with_data
        both = Announcement(title="Both", slug="both", content="Shown on both sites")
        only_b = Announcement(
            title="Only B", slug="only-b", content="Shown on B only", is_published=True
        )
        db.add_all([both, only_b])
        await db.flush()
        syndication = SyndicationService(db)
        await syndication.set_syndication(both.id, [SITE_B_ID, SITE_A_ID], SITE_B_ID)
        await syndication.set_syndication(only_b.id, [SITE_B_ID], SITE_B_ID)

        result = await SiteService(db).delete_site(SUPER_ADMIN_ID, SITE_B_ID)

        assert result.removed == 2
        assert result.reassigned_primary == [both.id]
        assert result.unsyndicated == [only_b.id]
        assert await SiteService(db).get_by_id(SITE_B_ID) is None

        primary = await syndication.get_primary_site(both.id)
        assert primary.id == SITE_A_ID
        assert await syndication.get_associations(only_b.id) == []
        await db.refresh(only_b)
        assert only_b.is_published is False

        grants = await db.execute(
            select(func.count(SiteAccessGrant.id)).where(SiteAccessGrant.site_id == SITE_B_ID)
        )
        assert grants.scalar() == 0
        rows = await db.execute(
            select(func.count(SiteAssociation.id)).where(SiteAssociation.site_id == SITE_B_ID)
        )
        assert rows.scalar() == 0


class TestListSites:
    """Test visibility rules."""

    @pytest.mark.asyncio
    async def test_super_admin_sees_all_active(self, db_session_with_data):
        service = SiteService(db_session_with_data)
        await service.deactivate_site(SUPER_ADMIN_ID, SITE_B_ID)

        active = await service.list_accessible_sites(SUPER_ADMIN_ID)
        everything = await service.list_accessible_sites(SUPER_ADMIN_ID, include_inactive=True)

        assert [s.id for s in active] == [SITE_A_ID]
        assert [s.id for s in everything] == [SITE_A_ID, SITE_B_ID]

    @pytest.mark.asyncio
    async def test_user_sees_granted_active_sites(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        assert [s.id for s in await service.list_accessible_sites(EDITOR_ID)] == [SITE_A_ID]
        assert [s.id for s in await service.list_accessible_sites(SITE_ADMIN_ID)] == [SITE_B_ID]
        assert await service.list_accessible_sites(OUTSIDER_ID) == []

    @pytest.mark.asyncio
    async def test_inactive_site_hidden_from_users(self, db_session_with_data):
        service = SiteService(db_session_with_data)
        await service.deactivate_site(SITE_ADMIN_ID, SITE_B_ID)

        sites = await service.list_accessible_sites(SITE_ADMIN_ID, include_inactive=True)

        assert sites == []

    @pytest.mark.asyncio
    async def test_default_site_for_user(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        assert (await service.get_default_site_for_user(SITE_ADMIN_ID)).id == SITE_B_ID
        assert (await service.get_default_site_for_user(OUTSIDER_ID)).id == SITE_A_ID


class TestGrants:
    """Test grant administration."""

    @pytest.mark.asyncio
    async def test_site_admin_grants_editor(self, db_session_with_data, mock_audit_sink):
        service = SiteService(db_session_with_data, audit_sink=mock_audit_sink)

        grant = await service.grant_role(SITE_ADMIN_ID, SITE_B_ID, OUTSIDER_ID, SiteRole.EDITOR)

        assert grant.role == SiteRole.EDITOR
        assert await service.access.can_edit_on_site(OUTSIDER_ID, SITE_B_ID)
        entry = mock_audit_sink.record.await_args.args[0]
        assert entry.entity_type == "SITE_ACCESS"
        assert entry.action == "GRANT"

    @pytest.mark.asyncio
    async def test_grant_is_upserted(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        await service.grant_role(SUPER_ADMIN_ID, SITE_A_ID, EDITOR_ID, SiteRole.SITE_ADMIN)
        grants = await service.list_site_grants(SUPER_ADMIN_ID, SITE_A_ID)

        editor_grants = [g for g in grants if g.user_id == EDITOR_ID]
        assert len(editor_grants) == 1
        assert editor_grants[0].role == SiteRole.SITE_ADMIN

    @pytest.mark.asyncio
    async def test_editor_cannot_grant(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await service.grant_role(EDITOR_ID, SITE_A_ID, OUTSIDER_ID, SiteRole.EDITOR)

    @pytest.mark.asyncio
    async def test_grant_to_unknown_user(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        with pytest.raises(EntityNotFound):
            await service.grant_role(SUPER_ADMIN_ID, SITE_A_ID, uuid.uuid4(), SiteRole.EDITOR)

    @pytest.mark.asyncio
    async def test_revoke(self, db_session_with_data):
        service = SiteService(db_session_with_data)

        assert await service.revoke_role(SUPER_ADMIN_ID, SITE_A_ID, EDITOR_ID) is True
        assert await service.revoke_role(SUPER_ADMIN_ID, SITE_A_ID, EDITOR_ID) is False
        assert not await service.access.can_access_site(EDITOR_ID, SITE_A_ID)
