# =============================================================================
# tests/unit/test_remote_client.py
# Unit Tests for Supabase / Offline collection clients
# =============================================================================

import pytest
import httpx
from unittest.mock import MagicMock
from postgrest.exceptions import APIError


def make_client(*batches):
    """Supabase mock whose query builder returns itself; execute() yields batches in order"""
    query = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "order", "range", "limit"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [MagicMock(data=batch) for batch in batches]

    client = MagicMock()
    client.table.return_value = query
    return client, query


def api_error(code, message="request failed"):
    return APIError({"message": message, "code": code, "hint": None, "details": None})


def http_status_error(status):
    request = httpx.Request("GET", "https://example.supabase.co/rest/v1/cases")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestSupabaseList:

    def test_list_applies_scope_and_order(self):
        from parlor_core.auth import Scope
        from parlor_core.models import CLIENTS
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([{"id": "a"}])
        remote = SupabaseCollectionClient(client, CLIENTS, Scope(tenant_id="p1", owner_id="u1"))

        rows = remote.list()

        assert rows == [{"id": "a"}]
        client.table.assert_called_with("clients")
        query.eq.assert_any_call("parlor_id", "p1")
        query.eq.assert_any_call("user_id", "u1")
        query.order.assert_called_with("created_at", desc=True)

    def test_unscoped_list_has_no_filters(self):
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([])

        assert SupabaseCollectionClient(client, CASES).list() == []
        query.eq.assert_not_called()

    def test_list_paginates(self, monkeypatch):
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        monkeypatch.setattr(SupabaseCollectionClient, "BATCH_SIZE", 2)
        client, query = make_client([{"id": "a"}, {"id": "b"}], [{"id": "c"}])

        rows = SupabaseCollectionClient(client, CASES).list()

        assert [r["id"] for r in rows] == ["a", "b", "c"]
        query.range.assert_any_call(0, 1)
        query.range.assert_any_call(2, 3)


class TestSupabaseWrites:

    def test_insert_strips_server_columns_and_adds_tenant(self):
        from parlor_core.auth import Scope
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([{"id": "srv-1", "name": "A", "parlor_id": "p1"}])
        remote = SupabaseCollectionClient(client, CASES, Scope(tenant_id="p1"))

        row = remote.insert({"id": "local-1", "created_at": "x", "updated_at": "y", "name": "A"})

        assert row["id"] == "srv-1"
        query.insert.assert_called_once_with({"name": "A", "parlor_id": "p1"})

    def test_insert_sets_owner_for_owner_scoped_collection(self):
        from parlor_core.auth import Scope
        from parlor_core.models import TASKS
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([{"id": "t1"}])
        remote = SupabaseCollectionClient(client, TASKS, Scope(tenant_id="p1", owner_id="u1"))

        remote.insert({"title": "Register death"})

        query.insert.assert_called_once_with({"title": "Register death", "parlor_id": "p1", "assigned_to": "u1"})

    def test_insert_without_row_is_rejected(self):
        from parlor_core.errors import RemoteRejected
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, _ = make_client([])

        with pytest.raises(RemoteRejected):
            SupabaseCollectionClient(client, CASES).insert({"name": "A"})

    def test_update_targets_id_and_stamps_updated_at(self):
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([{"id": "c1", "status": "closed"}])

        row = SupabaseCollectionClient(client, CASES).update("c1", {"id": "c1", "status": "closed"})

        assert row == {"id": "c1", "status": "closed"}
        payload = query.update.call_args[0][0]
        assert payload["status"] == "closed"
        assert "id" not in payload
        assert "updated_at" in payload
        query.eq.assert_any_call("id", "c1")

    def test_update_of_missing_row_is_not_found(self):
        from parlor_core.errors import NotFound
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, _ = make_client([])

        with pytest.raises(NotFound) as exc_info:
            SupabaseCollectionClient(client, CASES).update("c9", {"status": "closed"})

        assert exc_info.value.details["entity_id"] == "c9"

    def test_delete_of_missing_row_is_not_found(self):
        from parlor_core.errors import NotFound
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, _ = make_client([])

        with pytest.raises(NotFound):
            SupabaseCollectionClient(client, CASES).delete("c9")

    def test_delete(self):
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client([{"id": "c1"}])

        assert SupabaseCollectionClient(client, CASES).delete("c1") is None
        query.delete.assert_called_once()


class TestErrorTranslation:
    """Every library failure becomes a RemoteError"""

    def _remote_raising(self, error):
        from parlor_core.models import CASES
        from parlor_core.offline import SupabaseCollectionClient

        client, query = make_client()
        query.execute.side_effect = error
        return SupabaseCollectionClient(client, CASES)

    def test_constraint_violation_is_rejected(self):
        from parlor_core.errors import RemoteRejected

        remote = self._remote_raising(api_error("23503", "violates foreign key constraint"))

        with pytest.raises(RemoteRejected) as exc_info:
            remote.insert({"name": "A"})

        assert exc_info.value.details["remote_code"] == "23503"
        assert exc_info.value.operation == "insert"
        assert exc_info.value.collection == "cases"

    def test_expired_jwt_is_unavailable(self):
        from parlor_core.errors import RemoteUnavailable

        remote = self._remote_raising(api_error("PGRST301", "JWT expired"))

        with pytest.raises(RemoteUnavailable):
            remote.list()

    def test_no_rows_on_update_is_not_found(self):
        from parlor_core.errors import NotFound

        remote = self._remote_raising(api_error("PGRST116", "no rows"))

        with pytest.raises(NotFound):
            remote.update("c1", {"status": "closed"})

    def test_no_rows_on_list_is_rejected(self):
        from parlor_core.errors import RemoteRejected

        remote = self._remote_raising(api_error("PGRST116", "no rows"))

        with pytest.raises(RemoteRejected):
            remote.list()

    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("read timed out"),
        OSError("network is unreachable"),
    ])
    def test_network_failures_are_unavailable(self, error):
        from parlor_core.errors import RemoteUnavailable

        remote = self._remote_raising(error)

        with pytest.raises(RemoteUnavailable) as exc_info:
            remote.list()

        assert not exc_info.value.explicit_offline

    @pytest.mark.parametrize("status", [401, 429, 500, 503])
    def test_transient_statuses_are_unavailable(self, status):
        from parlor_core.errors import RemoteUnavailable

        remote = self._remote_raising(http_status_error(status))

        with pytest.raises(RemoteUnavailable):
            remote.list()

    def test_bad_request_status_is_rejected(self):
        from parlor_core.errors import RemoteRejected

        remote = self._remote_raising(http_status_error(400))

        with pytest.raises(RemoteRejected) as exc_info:
            remote.insert({"name": "A"})

        assert exc_info.value.details["remote_code"] == "400"

    def test_404_on_delete_is_not_found(self):
        from parlor_core.errors import NotFound

        remote = self._remote_raising(http_status_error(404))

        with pytest.raises(NotFound):
            remote.delete("c1")

    def test_unexpected_error_is_rejected(self):
        from parlor_core.errors import RemoteRejected

        remote = self._remote_raising(RuntimeError("unexpected payload"))

        with pytest.raises(RemoteRejected):
            remote.list()


class TestRealtime:

    def test_subscribe_and_unsubscribe(self):
        from parlor_core.models import PAYMENTS
        from parlor_core.offline import SupabaseCollectionClient

        client = MagicMock()
        channel = client.channel.return_value
        callback = MagicMock()

        unsubscribe = SupabaseCollectionClient(client, PAYMENTS).subscribe(callback)

        channel.on_postgres_changes.assert_called_once_with(
            "*", schema="public", table="payments", callback=callback
        )
        channel.on_postgres_changes.return_value.subscribe.assert_called_once()

        unsubscribe()
        client.remove_channel.assert_called_once_with(channel)

    def test_sync_client_without_realtime_returns_noop(self):
        from parlor_core.models import PAYMENTS
        from parlor_core.offline import SupabaseCollectionClient

        client = MagicMock()
        client.channel.side_effect = NotImplementedError

        unsubscribe = SupabaseCollectionClient(client, PAYMENTS).subscribe(MagicMock())

        assert unsubscribe() is None
        client.remove_channel.assert_not_called()


class TestOfflineClient:

    @pytest.mark.parametrize("call", [
        lambda c: c.list(),
        lambda c: c.insert({"name": "A"}),
        lambda c: c.update("c1", {"name": "B"}),
        lambda c: c.delete("c1"),
    ])
    def test_every_call_fails_fast_as_explicit_offline(self, call):
        from parlor_core.errors import RemoteUnavailable
        from parlor_core.models import CASES
        from parlor_core.offline import OfflineCollectionClient

        with pytest.raises(RemoteUnavailable) as exc_info:
            call(OfflineCollectionClient(CASES))

        assert exc_info.value.explicit_offline
