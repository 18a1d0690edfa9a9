# =============================================================================
# parlor_core/offline/remote_client.py
# Remote Collection Clients (Supabase / Offline)
# =============================================================================
"""
RemoteCollectionClient - CRUD access to one backend collection.

A client is bound to a collection and a Scope (tenant + optional owner) when
it is built; callers never pass tenancy around. Every failure leaves the
client as one of three typed errors:

- RemoteUnavailable: network down, timeout, expired/missing credentials
- RemoteRejected:    the backend refused the request (validation, RLS, FK)
- NotFound:          update/delete targeted an id the backend does not have

Clients never retry; the repository decides what a failure means.

Implementations:
- SupabaseCollectionClient: supabase-py query builder
- OfflineCollectionClient:  null strategy used when no backend is configured
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

import httpx
from postgrest.exceptions import APIError

from parlor_core.auth import Scope
from parlor_core.errors import NotFound, RemoteError, RemoteRejected, RemoteUnavailable
from parlor_core.logging import get_logger
from parlor_core.models import CollectionSpec

logger = get_logger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]
Unsubscribe = Callable[[], None]

# PostgREST codes that mean "your credentials are not usable", not "bad request"
AUTH_FAILURE_CODES = {"PGRST301", "PGRST302", "401", "403"}
NO_ROWS_CODE = "PGRST116"
# HTTP statuses treated as transient
UNAVAILABLE_STATUSES = {401, 403, 408, 429, 500, 502, 503, 504}

# Columns the backend owns on insert
SERVER_ASSIGNED = ("id", "created_at", "updated_at")


def _noop() -> None:
    return None


class RemoteCollectionClient(ABC):
    """Capability interface over one tenant-scoped backend collection."""

    def __init__(self, collection: CollectionSpec, scope: Optional[Scope] = None):
        self.collection = collection
        self.scope = scope or Scope()

    @property
    def name(self) -> str:
        return self.collection.name

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return every record in scope, optionally narrowed by equality filters."""

    @abstractmethod
    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return the stored row (with server id/timestamps)."""

    @abstractmethod
    def update(self, entity_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Update a record and return the stored row."""

    @abstractmethod
    def delete(self, entity_id: str) -> None:
        """Delete a record."""

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        """
        Register for backend change notifications on this collection.

        Delivery is at-least-once with no ordering guarantee. The default
        implementation has no change feed and returns a no-op unsubscribe.
        """
        return _noop


class OfflineCollectionClient(RemoteCollectionClient):
    """Null client for local-only mode: every call fails fast."""

    def _fail(self, operation: str):
        raise RemoteUnavailable(
            "No backend configured",
            explicit_offline=True,
            collection=self.name,
            operation=operation,
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self._fail("list")

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        self._fail("insert")

    def update(self, entity_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        self._fail("update")

    def delete(self, entity_id: str) -> None:
        self._fail("delete")


class SupabaseCollectionClient(RemoteCollectionClient):
    """
    Supabase (PostgREST) implementation.

    Usage:
        client = SupabaseCollectionClient(supabase, CASES, Scope(tenant_id="p-1"))
        rows = client.list()
    """

    BATCH_SIZE = 1000  # PostgREST default max rows per request

    def __init__(self, client, collection: CollectionSpec, scope: Optional[Scope] = None):
        super().__init__(collection, scope)
        self._client = client

    def _table(self):
        return self._client.table(self.collection.table)

    def _apply_scope(self, query, owner: bool = True):
        if self.scope.tenant_id:
            query = query.eq(self.collection.tenant_column, self.scope.tenant_id)
        if owner and self.scope.owner_id and self.collection.owner_column:
            query = query.eq(self.collection.owner_column, self.scope.owner_id)
        return query

    # =========================================================================
    # CRUD
    # =========================================================================

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        offset = 0

        with self._translate_errors("list"):
            while True:
                query = self._apply_scope(self._table().select("*"))
                for column, value in (filters or {}).items():
                    query = query.eq(column, value)
                query = query.order(self.collection.order_by, desc=self.collection.descending)
                response = query.range(offset, offset + self.BATCH_SIZE - 1).execute()

                batch = response.data or []
                rows.extend(batch)
                if len(batch) < self.BATCH_SIZE:
                    break
                offset += self.BATCH_SIZE

        logger.debug(f"Fetched {len(rows)} rows from {self.collection.table}")
        return rows

    def insert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in record.items() if k not in SERVER_ASSIGNED}
        if self.scope.tenant_id:
            payload.setdefault(self.collection.tenant_column, self.scope.tenant_id)
        if self.scope.owner_id and self.collection.owner_column:
            payload.setdefault(self.collection.owner_column, self.scope.owner_id)

        with self._translate_errors("insert"):
            response = self._table().insert(payload).execute()

        rows = response.data or []
        if not rows:
            raise RemoteRejected(
                "Insert returned no row",
                collection=self.name,
                operation="insert",
            )
        return rows[0]

    def update(self, entity_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()

        with self._translate_errors("update", entity_id):
            query = self._table().update(payload).eq("id", entity_id)
            response = self._apply_scope(query, owner=False).execute()

        rows = response.data or []
        if not rows:
            raise NotFound(
                f"{self.name} record {entity_id} not found",
                entity_id=entity_id,
                collection=self.name,
                operation="update",
            )
        return rows[0]

    def delete(self, entity_id: str) -> None:
        with self._translate_errors("delete", entity_id):
            query = self._table().delete().eq("id", entity_id)
            response = self._apply_scope(query, owner=False).execute()

        if not (response.data or []):
            raise NotFound(
                f"{self.name} record {entity_id} not found",
                entity_id=entity_id,
                collection=self.name,
                operation="delete",
            )

    # =========================================================================
    # CHANGE FEED
    # =========================================================================

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        """Subscribe to postgres_changes on this table via Supabase Realtime."""
        table = self.collection.table
        try:
            channel = self._client.channel(f"realtime {table}")
            channel.on_postgres_changes(
                "*",
                schema="public",
                table=table,
                callback=callback,
            ).subscribe()
        except NotImplementedError:
            logger.warning(
                f"Realtime is not available on this Supabase client; "
                f"no change notifications for {table}"
            )
            return _noop

        def unsubscribe() -> None:
            self._client.remove_channel(channel)

        logger.info(f"Subscribed to realtime changes on {table}")
        return unsubscribe

    # =========================================================================
    # ERROR TRANSLATION
    # =========================================================================

    @contextmanager
    def _translate_errors(self, operation: str, entity_id: Optional[str] = None) -> Iterator[None]:
        """Convert every backend/library exception into a RemoteError."""
        context = {"collection": self.name, "operation": operation}
        try:
            yield
        except RemoteError:
            raise
        except APIError as e:
            code = str(e.code) if e.code is not None else None
            message = e.message or str(e)
            if code in AUTH_FAILURE_CODES:
                raise RemoteUnavailable(f"Backend rejected credentials: {message}", **context) from e
            if code == NO_ROWS_CODE and entity_id is not None:
                raise NotFound(f"{self.name} record {entity_id} not found", entity_id=entity_id, **context) from e
            raise RemoteRejected(message, remote_code=code, **context) from e
        except httpx.TimeoutException as e:
            raise RemoteUnavailable(f"Backend request timed out: {e}", **context) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in UNAVAILABLE_STATUSES:
                raise RemoteUnavailable(f"Backend returned HTTP {status}", **context) from e
            if status == 404 and entity_id is not None:
                raise NotFound(f"{self.name} record {entity_id} not found", entity_id=entity_id, **context) from e
            raise RemoteRejected(f"Backend returned HTTP {status}", remote_code=str(status), **context) from e
        except (httpx.TransportError, OSError) as e:
            raise RemoteUnavailable(f"Backend unreachable: {e}", **context) from e
        except Exception as e:
            logger.exception(f"Unexpected error from backend during {self.name}.{operation}")
            raise RemoteRejected(f"Unexpected backend error: {e}", **context) from e
