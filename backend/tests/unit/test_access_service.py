"""
Unit tests for the access resolver.
"""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from newsdesk.core.exceptions import PermissionDenied
from newsdesk.core.security import AccessLevel
from newsdesk.models.site import SiteRole
from newsdesk.services.access_service import AccessService
from newsdesk.services.role_store import RoleStore

from conftest import (
    EDITOR_ID,
    OUTSIDER_ID,
    SITE_A_ID,
    SITE_ADMIN_ID,
    SITE_B_ID,
    SUPER_ADMIN_ID,
)


class TestResolveRole:
    """Test role resolution against the database."""

    @pytest.mark.asyncio
    async def test_editor_on_granted_site(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        assert await access.resolve_role(EDITOR_ID, SITE_A_ID) == AccessLevel.EDITOR
        assert await access.resolve_role(EDITOR_ID, SITE_B_ID) == AccessLevel.NONE

    @pytest.mark.asyncio
    async def test_site_admin(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        assert await access.resolve_role(SITE_ADMIN_ID, SITE_B_ID) == AccessLevel.SITE_ADMIN
        assert await access.can_admin_site(SITE_ADMIN_ID, SITE_B_ID)
        assert not await access.can_admin_site(SITE_ADMIN_ID, SITE_A_ID)

    @pytest.mark.asyncio
    async def test_super_admin_overrides_on_site_without_grants(self, db_session_with_data):
        """A super admin can edit and administer any site, even one nobody holds a grant on."""
        access = AccessService(db_session_with_data)
        ungranted_site = uuid.uuid4()

        assert await access.resolve_role(SUPER_ADMIN_ID, ungranted_site) == AccessLevel.SUPER_ADMIN
        assert await access.can_edit_on_site(SUPER_ADMIN_ID, ungranted_site)
        assert await access.can_admin_site(SUPER_ADMIN_ID, ungranted_site)

    @pytest.mark.asyncio
    async def test_unknown_user_resolves_to_none(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        assert await access.resolve_role(uuid.uuid4(), SITE_A_ID) == AccessLevel.NONE
        assert not await access.can_access_site(uuid.uuid4(), SITE_A_ID)

    @pytest.mark.asyncio
    async def test_unknown_site_resolves_to_none(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        assert await access.resolve_role(EDITOR_ID, uuid.uuid4()) == AccessLevel.NONE

    @pytest.mark.asyncio
    async def test_revoked_grant_applies_on_next_call(self, db_session_with_data):
        access = AccessService(db_session_with_data)
        assert await access.can_edit_on_site(EDITOR_ID, SITE_A_ID)

        await access.roles.delete_grant(EDITOR_ID, SITE_A_ID)

        assert not await access.can_edit_on_site(EDITOR_ID, SITE_A_ID)


class TestResolveRoleShortCircuit:
    """Test lookups made by the resolver, with a mocked role store."""

    @pytest.fixture
    def role_store(self):
        store = MagicMock(spec=RoleStore)
        store.get_super_admin_flag = AsyncMock(return_value=False)
        store.get_role = AsyncMock(return_value=SiteRole.EDITOR)
        return store

    @pytest.mark.asyncio
    async def test_super_admin_skips_grant_lookup(self, role_store):
        role_store.get_super_admin_flag.return_value = True
        access = AccessService(AsyncMock(), role_store=role_store)

        level = await access.resolve_role(uuid.uuid4(), uuid.uuid4())

        assert level == AccessLevel.SUPER_ADMIN
        role_store.get_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_every_call_reads_the_store(self, role_store):
        access = AccessService(AsyncMock(), role_store=role_store)
        user_id, site_id = uuid.uuid4(), uuid.uuid4()

        await access.can_edit_on_site(user_id, site_id)
        await access.can_edit_on_site(user_id, site_id)

        assert role_store.get_role.await_count == 2


class TestRequireChecks:
    """Test the raising variants used by the services."""

    @pytest.mark.asyncio
    async def test_first_failing_site_is_named(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        with pytest.raises(PermissionDenied) as exc_info:
            await access.require_edit_on_sites(EDITOR_ID, [SITE_A_ID, SITE_B_ID])

        assert exc_info.value.site_id == SITE_B_ID
        assert exc_info.value.to_dict()["site_id"] == str(SITE_B_ID)

    @pytest.mark.asyncio
    async def test_all_sites_allowed(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        await access.require_edit_on_sites(SUPER_ADMIN_ID, [SITE_A_ID, SITE_B_ID])

    @pytest.mark.asyncio
    async def test_require_super_admin(self, db_session_with_data):
        access = AccessService(db_session_with_data)

        with pytest.raises(PermissionDenied):
            await access.require_super_admin(OUTSIDER_ID, "create sites")
        await access.require_super_admin(SUPER_ADMIN_ID, "create sites")
