"""
Unit tests for principals and authorization guards.
"""

import pytest

from codex_cms.auth import ApiKeyPermission, Capability, Principal, Role
from codex_cms.auth.guards import AccessPolicy, authorize
from codex_cms.kernel.errors import AuthenticationRequired, AuthorizationDenied

pytestmark = pytest.mark.unit

EDIT = AccessPolicy(Capability.CONTENT_EDIT, ApiKeyPermission.WRITE)
SESSION_ONLY = AccessPolicy(Capability.CONTENT_VIEW, None)


class TestPrincipal:
    def test_session_principal(self):
        principal = Principal.session(user_id="usr_1", role=Role.EDITOR)
        assert principal.is_session
        assert principal.subject_id == "session:usr_1"
        assert principal.editor_id == "usr_1"

    def test_api_key_principal_has_no_editor(self):
        principal = Principal.api_key(user_id="usr_1", permission_level=ApiKeyPermission.WRITE, key_id="key_1")
        assert not principal.is_session
        assert principal.subject_id == "key:key_1"
        assert principal.editor_id is None

    def test_scales_never_cross(self):
        # A session principal is checked against its role, whatever level the policy names.
        author = Principal.session(user_id="usr_1", role=Role.AUTHOR)
        assert not author.allows(Capability.CONTENT_EDIT, ApiKeyPermission.READ)

    def test_audit_log(self):
        log = Principal.session(user_id="usr_1", role=Role.ADMIN).to_audit_log()
        assert log["auth_type"] == "session"
        assert log["role"] == "ADMIN"
        assert log["permission_level"] is None


class TestAuthorize:
    def test_missing_principal_is_unauthenticated(self):
        with pytest.raises(AuthenticationRequired):
            authorize(None, EDIT)

    def test_insufficient_role_is_forbidden(self, author):
        with pytest.raises(AuthorizationDenied) as exc_info:
            authorize(author, EDIT)
        assert exc_info.value.meta == {"required": "content.edit"}

    def test_sufficient_role_passes_through(self, editor):
        assert authorize(editor, EDIT) is editor

    def test_api_key_level_checked(self, read_key, write_key):
        with pytest.raises(AuthorizationDenied):
            authorize(read_key, EDIT)
        assert authorize(write_key, EDIT) is write_key

    def test_session_only_policy_rejects_api_keys(self, admin_key, author):
        with pytest.raises(AuthorizationDenied):
            authorize(admin_key, SESSION_ONLY)
        assert authorize(author, SESSION_ONLY) is author
