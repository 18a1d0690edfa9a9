# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import uuid
import pytest
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from parlor_core.auth import Scope
from parlor_core.errors import NotFound, RemoteRejected, RemoteUnavailable
from parlor_core.models import CASES, CollectionSpec
from parlor_core.offline import LocalCacheStore, ReconcilingRepository
from parlor_core.offline.remote_client import RemoteCollectionClient


FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# FAKE REMOTE
# =============================================================================

class FakeCollectionClient(RemoteCollectionClient):
    """
    In-memory backend collection.

    Failures are injected per operation ("list", "insert", "update",
    "delete") and raised on every call until cleared.
    """

    def __init__(
        self,
        collection: CollectionSpec = CASES,
        scope: Optional[Scope] = None,
        rows: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(collection, scope)
        self.rows = [dict(r) for r in rows or []]
        self.failures: Dict[str, Exception] = {}
        self.calls: List[str] = []
        self.subscribers = []

    def fail(self, operation: str, error: Exception) -> None:
        self.failures[operation] = error

    def fail_all(self, error: Exception) -> None:
        for operation in ("list", "insert", "update", "delete"):
            self.failures[operation] = error

    def recover(self) -> None:
        self.failures.clear()

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]

    def _index(self, entity_id: str) -> int:
        for i, row in enumerate(self.rows):
            if str(row.get("id")) == str(entity_id):
                return i
        return -1

    def list(self, filters=None):
        self._check("list")
        return [dict(r) for r in self.rows]

    def insert(self, record):
        self._check("insert")
        row = {
            **record,
            "id": str(uuid.uuid4()),
            "created_at": FIXED_NOW.isoformat(),
            "updated_at": FIXED_NOW.isoformat(),
        }
        self.rows.insert(0, row)
        return dict(row)

    def update(self, entity_id, changes):
        self._check("update")
        index = self._index(entity_id)
        if index < 0:
            raise NotFound(f"{self.name} record {entity_id} not found", entity_id=entity_id)
        self.rows[index] = {**self.rows[index], **changes, "updated_at": FIXED_NOW.isoformat()}
        return dict(self.rows[index])

    def delete(self, entity_id):
        self._check("delete")
        index = self._index(entity_id)
        if index < 0:
            raise NotFound(f"{self.name} record {entity_id} not found", entity_id=entity_id)
        del self.rows[index]

    def subscribe(self, callback):
        self.subscribers.append(callback)
        return lambda: self.subscribers.remove(callback)

    def emit(self, payload: Dict[str, Any]) -> None:
        for callback in list(self.subscribers):
            callback(payload)


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def store(tmp_path):
    """File-backed cache store in a temporary directory"""
    cache = LocalCacheStore(tmp_path / "parlor_cache.db")
    cache.initialize()
    yield cache
    cache.close()


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW"""
    return lambda: FIXED_NOW


@pytest.fixture
def make_remote():
    """Factory for FakeCollectionClient instances"""
    def _make(collection=CASES, scope=None, rows=None):
        return FakeCollectionClient(collection, scope, rows)
    return _make


@pytest.fixture
def make_repository(store, fixed_clock, make_remote):
    """Factory returning (repository, fake remote) sharing the test store"""
    def _make(collection=CASES, scope=None, rows=None, remote=None, **kwargs):
        remote = remote or make_remote(collection, scope, rows)
        repository = ReconcilingRepository(remote, store, clock=fixed_clock, **kwargs)
        return repository, remote
    return _make


@pytest.fixture
def unavailable():
    """Transient backend failure"""
    return RemoteUnavailable("connection refused", collection="cases")


@pytest.fixture
def rejected():
    """Backend refusal (e.g. foreign key violation)"""
    return RemoteRejected(
        'insert or update on table "cases" violates foreign key constraint',
        remote_code="23503",
        collection="cases",
    )


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_cases():
    return [
        {"id": "c1", "name": "Thandiwe Mokoena", "status": "ongoing", "service_type": "burial",
         "assigned_director": "Sipho Dlamini", "client_id": "cl1", "created_at": "2024-03-02T09:00:00+00:00"},
        {"id": "c2", "name": "Johan van der Merwe", "status": "quote", "service_type": "cremation",
         "assigned_director": "Anna Botha", "client_id": "cl2", "created_at": "2024-02-20T09:00:00+00:00"},
        {"id": "c3", "name": "Lerato Nkosi", "status": "closed", "service_type": "memorial",
         "assigned_director": "Sipho Dlamini", "client_id": "cl1", "created_at": "2024-01-11T09:00:00+00:00"},
        {"id": "c4", "name": "Pieter Smit", "status": "ongoing", "service_type": "cremation",
         "assigned_director": "Anna Botha", "client_id": "cl3", "created_at": "2024-03-10T09:00:00+00:00"},
    ]


@pytest.fixture
def sample_clients():
    return [
        {"id": "cl1", "name": "Nomsa Mokoena", "email": "nomsa@example.co.za", "phone": "082 555 0101",
         "user_id": "u-staff", "created_at": "2024-03-01T08:00:00+00:00"},
        {"id": "cl2", "name": "Elsa van der Merwe", "email": "ELSA@example.co.za", "phone": "083 555 0202",
         "user_id": "u-admin", "created_at": "2024-02-18T08:00:00+00:00"},
        {"id": "cl3", "name": "Karel Smit", "email": "karel@example.co.za", "phone": "084 555 0303",
         "user_id": "u-staff", "created_at": "2024-03-09T08:00:00+00:00"},
    ]


@pytest.fixture
def sample_tasks():
    return [
        {"id": "t1", "title": "Register death", "type": "legal", "priority": "high",
         "status": "pending", "due_date": "2024-03-10", "assigned_to": "u-staff", "case_id": "c1"},
        {"id": "t2", "title": "Book venue", "type": "ceremonial", "priority": "medium",
         "status": "in-progress", "due_date": "2024-03-20", "assigned_to": "u-staff", "case_id": "c1"},
        {"id": "t3", "title": "Collect ashes", "type": "cremation", "priority": "low",
         "status": "completed", "due_date": "2024-03-01", "assigned_to": "u-admin", "case_id": "c4"},
        {"id": "t4", "title": "Order headstone", "type": "burial", "priority": "urgent",
         "status": "overdue", "due_date": "2024-03-05", "assigned_to": "u-admin", "case_id": "c1"},
    ]


@pytest.fixture
def sample_payments():
    return [
        {"id": "p1", "amount": 25000, "method": "eft", "status": "completed",
         "description": "Burial package deposit", "transaction_id": "EFT-1001",
         "created_at": "2024-03-03T10:00:00+00:00"},
        {"id": "p2", "amount": 15000, "method": "card", "status": "completed",
         "description": "Cremation service", "transaction_id": "CARD-2002",
         "created_at": "2024-02-25T10:00:00+00:00"},
        {"id": "p3", "amount": 5000, "method": "snapscan", "status": "pending",
         "description": "Flowers and catering", "transaction_id": None,
         "created_at": "2024-03-12T10:00:00+00:00"},
        {"id": "p4", "amount": 2000, "method": "easypay", "status": "failed",
         "description": "Memorial booklet", "transaction_id": "EP-3003",
         "created_at": "2024-03-13T10:00:00+00:00"},
    ]


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace the Streamlit module used by the UI-facing helpers"""
    import parlor_core.errors.handlers as handlers
    import parlor_core.ui.notifications as notifications

    mock_st = MagicMock()
    mock_st.session_state = {}

    monkeypatch.setattr(handlers, "st", mock_st)
    monkeypatch.setattr(notifications, "st", mock_st)
    return mock_st


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client
