# =============================================================================
# tests/unit/test_identity.py
# Unit Tests for identity, roles and data scope
# =============================================================================

from unittest.mock import MagicMock


def supabase_with_profile(user_id="u-1", profile=None):
    client = MagicMock()
    client.auth.get_user.return_value = MagicMock(user=MagicMock(id=user_id))
    query = client.table.return_value
    query.select.return_value = query
    query.eq.return_value = query
    query.limit.return_value = query
    query.execute.return_value = MagicMock(data=[profile] if profile else [])
    return client


class TestScope:

    def test_staff_scoped_to_own_records(self):
        from parlor_core.auth import Identity, Role, Scope, scope_for

        identity = Identity(user_id="u-1", role=Role.STAFF, parlor_id="p-1")

        assert scope_for(identity) == Scope(tenant_id="p-1", owner_id="u-1")

    def test_admin_sees_whole_parlor(self):
        from parlor_core.auth import Identity, Role, Scope, scope_for

        identity = Identity(user_id="u-2", role=Role.ADMIN, parlor_id="p-1")

        # admins cannot switch parlor
        assert scope_for(identity, parlor_id="p-9") == Scope(tenant_id="p-1")

    def test_super_admin_picks_parlor(self):
        from parlor_core.auth import Identity, Role, Scope, scope_for

        identity = Identity(user_id="u-3", role=Role.SUPER_ADMIN, parlor_id="p-1")

        assert scope_for(identity, parlor_id="p-9") == Scope(tenant_id="p-9")
        assert scope_for(identity) == Scope(tenant_id="p-1")

    def test_anonymous(self):
        from parlor_core.auth import Scope, scope_for

        assert scope_for(None) == Scope()


class TestRoles:

    def test_parse_role(self):
        from parlor_core.auth import Role, parse_role

        assert parse_role("Admin") == Role.ADMIN
        assert parse_role(" super_admin ") == Role.SUPER_ADMIN

    def test_unknown_role_is_least_privileged(self):
        from parlor_core.auth import Role, parse_role

        assert parse_role("owner") == Role.STAFF
        assert parse_role(None) == Role.STAFF


class TestResolveIdentity:

    def test_resolves_from_profile(self):
        from parlor_core.auth import Identity, Role, resolve_identity

        client = supabase_with_profile(
            "u-1", {"id": "u-1", "name": "Sipho", "role": "admin", "parlor_id": "p-1"}
        )

        identity = resolve_identity(client)

        assert identity == Identity(user_id="u-1", role=Role.ADMIN, parlor_id="p-1", name="Sipho")
        client.table.assert_called_with("users")

    def test_missing_profile(self):
        from parlor_core.auth import resolve_identity

        assert resolve_identity(supabase_with_profile("u-1", None)) is None

    def test_not_signed_in(self):
        from parlor_core.auth import resolve_identity

        client = MagicMock()
        client.auth.get_user.return_value = None

        assert resolve_identity(client) is None

    def test_auth_failure_is_anonymous(self):
        from parlor_core.auth import resolve_identity

        client = MagicMock()
        client.auth.get_user.side_effect = RuntimeError("invalid JWT")

        assert resolve_identity(client) is None

    def test_no_client(self):
        from parlor_core.auth import resolve_identity

        assert resolve_identity(None) is None


class TestSignIn:

    def test_sign_in_resolves_identity(self):
        from parlor_core.auth import Role, sign_in

        client = supabase_with_profile("u-1", {"id": "u-1", "role": "staff", "parlor_id": "p-1"})

        identity = sign_in(client, "staff@example.co.za", "secret")

        client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "staff@example.co.za", "password": "secret"}
        )
        assert identity.role == Role.STAFF

    def test_refused_credentials(self):
        from parlor_core.auth import sign_in

        client = MagicMock()
        client.auth.sign_in_with_password.side_effect = RuntimeError("Invalid login credentials")

        assert sign_in(client, "x@example.co.za", "wrong") is None


class TestVisibility:

    def test_staff_sees_only_own(self, sample_tasks):
        from parlor_core.auth import Identity, visible_to

        staff = Identity(user_id="u-staff")

        assert [t["id"] for t in visible_to(staff, sample_tasks, "assigned_to")] == ["t1", "t2"]

    def test_admin_sees_all(self, sample_tasks):
        from parlor_core.auth import Identity, Role, visible_to

        admin = Identity(user_id="u-admin", role=Role.ADMIN)

        assert visible_to(admin, sample_tasks, "assigned_to") == sample_tasks

    def test_collection_without_owner(self, sample_cases):
        from parlor_core.auth import Identity, visible_to

        assert visible_to(Identity(user_id="u-staff"), sample_cases, None) == sample_cases
