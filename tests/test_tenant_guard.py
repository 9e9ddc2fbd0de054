"""
Tests for workspace membership checks.
"""
import uuid

import pytest
from django.contrib.auth.models import AnonymousUser

from inventory.exceptions import InsufficientRole, NotAMember
from inventory.models import Role, role_satisfies
from inventory.services import TenantGuard

pytestmark = pytest.mark.permissions


class TestRoleRanking:
    """Test the role hierarchy."""

    @pytest.mark.parametrize('role,required,expected', [
        (Role.OWNER, Role.ADMIN, True),
        (Role.ADMIN, Role.ADMIN, True),
        (Role.MEMBER, Role.ADMIN, False),
        (Role.READ_ONLY, Role.MEMBER, False),
        (Role.READ_ONLY, Role.READ_ONLY, True),
        (Role.READ_ONLY, None, True),
    ])
    def test_role_satisfies(self, role, required, expected):
        assert role_satisfies(role, required) is expected


class TestAuthorize:
    """Test TenantGuard.authorize."""

    def test_owner_gets_context(self, user, workspace):
        ctx = TenantGuard().authorize(user, workspace.pk)
        assert ctx.workspace == workspace
        assert ctx.principal == user
        assert ctx.role == Role.OWNER
        assert ctx.is_owner

    def test_accepts_string_workspace_id(self, user, workspace):
        ctx = TenantGuard().authorize(user, str(workspace.pk), Role.OWNER)
        assert ctx.workspace_id == workspace.pk

    def test_non_member_is_rejected(self, other_user, workspace):
        with pytest.raises(NotAMember):
            TenantGuard().authorize(other_user, workspace.pk)

    def test_unknown_workspace_looks_like_non_member(self, user):
        with pytest.raises(NotAMember) as excinfo:
            TenantGuard().authorize(user, uuid.uuid4())
        assert excinfo.value.code == 'not_found'
        assert excinfo.value.http_status == 404

    def test_malformed_workspace_id(self, user):
        with pytest.raises(NotAMember):
            TenantGuard().authorize(user, 'not-a-uuid')

    def test_anonymous_principal(self, workspace):
        with pytest.raises(NotAMember):
            TenantGuard().authorize(AnonymousUser(), workspace.pk)
        with pytest.raises(NotAMember):
            TenantGuard().authorize(None, workspace.pk)

    def test_read_only_member_cannot_write(self, other_user, workspace, add_member):
        add_member(other_user, Role.READ_ONLY)
        guard = TenantGuard()

        assert guard.authorize(other_user, workspace.pk, Role.READ_ONLY).role == Role.READ_ONLY
        with pytest.raises(InsufficientRole) as excinfo:
            guard.authorize(other_user, workspace.pk, Role.MEMBER)
        assert excinfo.value.http_status == 403
        assert excinfo.value.details == {'required_role': 'member', 'role': 'read_only'}

    def test_membership_in_one_workspace_does_not_open_another(self, service, user, other_user, workspace):
        foreign = service.create_workspace(other_user, 'Office')
        with pytest.raises(NotAMember):
            TenantGuard().authorize(user, foreign.pk)
