# =============================================================================
# parlor_core/offline/repository.py
# Reconciling Repository - one consistent view per collection
# =============================================================================
"""
ReconcilingRepository - the single API screens use to read and write records.

It composes a RemoteCollectionClient with the LocalCacheStore:

- load():   backend first; merge with the cached snapshot; fall back to the
            cached snapshot verbatim when the backend fails
- create(): backend first; on failure keep the record locally under a
            client-generated "local-..." id
- update(): pessimistic (backend first, optional local fallback) or
            optimistic (apply locally, roll back only on a confirmed refusal)
- delete(): backend must confirm before the record leaves the local view

No method raises for backend failures: loads return a LoadResult and writes
return exactly one WriteResult whose status/message is what the UI shows.

Usage:
------
repo = ReconcilingRepository(SupabaseCollectionClient(client, CASES, scope), store)
result = repo.load()
if result.warning:
    st.info(result.message)

outcome = repo.create({"name": "Ezile Qhama", "status": "quote"})
notify_write_result(outcome)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from parlor_core.errors import NotFound, ParlorError, RemoteError, RemoteRejected, RemoteUnavailable
from parlor_core.logging import LogContext, get_logger
from parlor_core.offline.cache_store import LocalCacheStore, cache_key
from parlor_core.offline.reconcile import (
    find_index,
    is_local_id,
    merge_snapshots,
    new_local_id,
    utc_now_iso,
)
from parlor_core.offline.remote_client import RemoteCollectionClient, Unsubscribe

logger = get_logger(__name__)

Record = Dict[str, Any]
RemoteChangeCallback = Callable[[str, Dict[str, Any]], None]


# =============================================================================
# RESULTS
# =============================================================================

class SaveStatus(str, Enum):
    """Terminal outcome of a write."""
    SAVED = "saved"                                  # backend confirmed
    SAVED_LOCALLY = "saved_locally"                  # local-only mode, no backend configured
    SAVED_LOCALLY_OFFLINE = "saved_locally_offline"  # backend failed, kept locally
    DELETED = "deleted"
    FAILED = "failed"


class LoadSource(str, Enum):
    REMOTE = "remote"
    CACHE = "cache"


@dataclass
class WriteResult:
    """
    Outcome of create/update/delete.

    Truthy for every status except FAILED.
    """
    status: SaveStatus
    entity: Optional[Record] = None
    error: Optional[ParlorError] = None
    operation: str = ""
    collection: str = ""

    def __bool__(self) -> bool:
        return self.status != SaveStatus.FAILED

    @property
    def success(self) -> bool:
        return bool(self)

    @property
    def is_local(self) -> bool:
        """True when the change exists only in the local cache."""
        return self.status in (SaveStatus.SAVED_LOCALLY, SaveStatus.SAVED_LOCALLY_OFFLINE)

    @property
    def message(self) -> str:
        """The one user-facing notification for this outcome."""
        if self.status == SaveStatus.SAVED:
            return "Saved"
        if self.status == SaveStatus.DELETED:
            return "Deleted"
        if self.status == SaveStatus.SAVED_LOCALLY:
            return "Saved locally"
        if self.status == SaveStatus.SAVED_LOCALLY_OFFLINE:
            if isinstance(self.error, RemoteRejected):
                return f"Saved locally (offline mode). The server rejected the change: {self.error.message}"
            return "Saved locally (offline mode). The server could not be reached."
        return _failure_message(self.operation, self.error)

    @classmethod
    def saved(cls, entity: Record, operation: str, collection: str) -> WriteResult:
        return cls(SaveStatus.SAVED, entity=entity, operation=operation, collection=collection)

    @classmethod
    def deleted(cls, entity: Optional[Record], operation: str, collection: str) -> WriteResult:
        return cls(SaveStatus.DELETED, entity=entity, operation=operation, collection=collection)

    @classmethod
    def local(
        cls,
        entity: Record,
        error: Optional[ParlorError],
        operation: str,
        collection: str,
    ) -> WriteResult:
        """Kept locally; tagged by whether local-only mode was chosen or forced."""
        explicit = error is None or (isinstance(error, RemoteUnavailable) and error.explicit_offline)
        status = SaveStatus.SAVED_LOCALLY if explicit else SaveStatus.SAVED_LOCALLY_OFFLINE
        return cls(status, entity=entity, error=error, operation=operation, collection=collection)

    @classmethod
    def failed(
        cls,
        error: ParlorError,
        operation: str,
        collection: str,
        entity: Optional[Record] = None,
    ) -> WriteResult:
        return cls(SaveStatus.FAILED, entity=entity, error=error, operation=operation, collection=collection)


def _failure_message(operation: str, error: Optional[ParlorError]) -> str:
    action = {"create": "save", "update": "update", "delete": "delete"}.get(operation, operation or "save")
    if isinstance(error, NotFound):
        return f"Could not {action}: the record no longer exists on the server."
    if isinstance(error, RemoteUnavailable):
        if error.explicit_offline:
            return f"Could not {action}: this action needs a connection to the server."
        return f"Could not {action}: the server could not be reached."
    if isinstance(error, RemoteRejected):
        return f"Could not {action}: the server rejected the change: {error.message}"
    if error is not None:
        return f"Could not {action}: {error.message}"
    return f"Could not {action}."


@dataclass
class LoadResult:
    """Records returned by load() and where they came from."""
    entities: List[Record] = field(default_factory=list)
    source: LoadSource = LoadSource.REMOTE
    warning: Optional[RemoteError] = None

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.entities)

    @property
    def from_cache(self) -> bool:
        return self.source == LoadSource.CACHE

    @property
    def message(self) -> Optional[str]:
        """Non-blocking notice for the UI, or None when data is live."""
        if self.warning is None:
            return None
        if isinstance(self.warning, RemoteUnavailable):
            if self.warning.explicit_offline:
                return "Working offline: showing locally saved data."
            return "Working offline: the server could not be reached, showing saved data."
        return f"Showing saved data: the server refused the request ({self.warning.message})."


# =============================================================================
# REPOSITORY
# =============================================================================

class ReconcilingRepository:
    """
    Remote-authoritative, cache-backed view of one collection.

    Args:
        remote: Client for the collection (live or offline strategy)
        cache: Shared snapshot store
        key: Snapshot key (default derived from collection + scope)
        optimistic_updates: Default update policy (default from the collection)
        clock: Returns "now" as an aware datetime; injectable for tests
    """

    def __init__(
        self,
        remote: RemoteCollectionClient,
        cache: LocalCacheStore,
        key: Optional[str] = None,
        optimistic_updates: Optional[bool] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.remote = remote
        self.cache = cache
        self.collection = remote.collection
        owner = remote.scope.owner_id if self.collection.owner_column else None
        self.key = key or cache_key(self.collection.name, remote.scope.tenant_id, owner)
        self.optimistic_updates = (
            self.collection.optimistic_updates if optimistic_updates is None else optimistic_updates
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._view: Optional[List[Record]] = None
        self._subscriptions: List[Unsubscribe] = []

    @property
    def name(self) -> str:
        return self.collection.name

    @property
    def entities(self) -> List[Record]:
        """Current in-memory view (copy)."""
        return list(self._current())

    def get(self, entity_id: str) -> Optional[Record]:
        view = self._current()
        index = find_index(view, entity_id)
        return view[index] if index >= 0 else None

    # =========================================================================
    # LOAD
    # =========================================================================

    def load(self) -> LoadResult:
        """
        Fetch the collection, reconcile with the cache and persist the result.

        Returns:
            LoadResult with source REMOTE, or CACHE plus the backend error
        """
        with LogContext(logger, f"Loading {self.name}"):
            try:
                remote_rows = self.remote.list()
            except RemoteError as e:
                self._log_remote_failure("load", e)
                cached = self.cache.load(self.key)
                self._view = list(cached)
                return LoadResult(entities=cached, source=LoadSource.CACHE, warning=e)

            merged = self._mutate(lambda cached: merge_snapshots(remote_rows, cached))
            logger.info(f"Loaded {len(merged)} {self.name} ({len(remote_rows)} from server)")
            return LoadResult(entities=list(merged), source=LoadSource.REMOTE)

    # =========================================================================
    # CREATE
    # =========================================================================

    def create(self, data: Record) -> WriteResult:
        """
        Create a record on the backend, or locally if the backend fails.
        """
        now = utc_now_iso(self._clock())
        fallback = {**data, "id": new_local_id(), "created_at": now, "updated_at": now}

        with LogContext(logger, f"Creating {self.name} record"):
            try:
                saved = self.remote.insert(dict(data))
            except RemoteError as e:
                self._log_remote_failure("create", e)
                self._mutate(lambda rows: [fallback] + rows)
                return WriteResult.local(fallback, e, "create", self.name)

            self._mutate(lambda rows: [saved] + [r for r in rows if str(r.get("id")) != str(saved.get("id"))])
            logger.info(f"Created {self.name} record {saved.get('id')}")
            return WriteResult.saved(saved, "create", self.name)

    # =========================================================================
    # UPDATE
    # =========================================================================

    def update(
        self,
        entity_id: str,
        changes: Record,
        optimistic: Optional[bool] = None,
        local_fallback: bool = True,
    ) -> WriteResult:
        """
        Apply changes to a record.

        Args:
            entity_id: Record id
            changes: Columns to change
            optimistic: Override the repository's update policy for this call
            local_fallback: Pessimistic path only; keep the change locally when
                the backend is unreachable or refuses it

        Returns:
            WriteResult
        """
        use_optimistic = self.optimistic_updates if optimistic is None else optimistic
        previous = self.get(entity_id)

        with LogContext(logger, f"Updating {self.name} record {entity_id}"):
            if is_local_id(entity_id):
                return self._update_local_only(entity_id, changes, previous)
            if use_optimistic:
                return self._update_optimistic(entity_id, changes, previous)
            return self._update_pessimistic(entity_id, changes, previous, local_fallback)

    def _update_local_only(self, entity_id: str, changes: Record, previous: Optional[Record]) -> WriteResult:
        # Records created offline have no backend row to update
        if previous is None:
            return WriteResult.failed(self._not_found(entity_id, "update"), "update", self.name)
        updated = self._patched(previous, changes)
        self._replace(entity_id, updated)
        return WriteResult.local(updated, None, "update", self.name)

    def _update_optimistic(self, entity_id: str, changes: Record, previous: Optional[Record]) -> WriteResult:
        if previous is None:
            error = self._not_found(entity_id, "update")
            logger.error(f"Cannot update unknown {self.name} record {entity_id}")
            return WriteResult.failed(error, "update", self.name)

        optimistic_row = self._patched(previous, changes)
        self._replace(entity_id, optimistic_row)

        try:
            saved = self.remote.update(entity_id, changes)
        except RemoteUnavailable as e:
            self._log_remote_failure("update", e)
            return WriteResult.local(optimistic_row, e, "update", self.name)
        except RemoteError as e:
            # Confirmed refusal: undo the local change
            self._log_remote_failure("update", e)
            self._replace(entity_id, previous)
            logger.info(f"Rolled back {self.name} record {entity_id}")
            return WriteResult.failed(e, "update", self.name, entity=previous)

        self._replace(entity_id, saved)
        return WriteResult.saved(saved, "update", self.name)

    def _update_pessimistic(
        self,
        entity_id: str,
        changes: Record,
        previous: Optional[Record],
        local_fallback: bool,
    ) -> WriteResult:
        try:
            saved = self.remote.update(entity_id, changes)
        except NotFound as e:
            self._log_remote_failure("update", e)
            return WriteResult.failed(e, "update", self.name, entity=previous)
        except RemoteError as e:
            self._log_remote_failure("update", e)
            if not local_fallback or previous is None:
                return WriteResult.failed(e, "update", self.name, entity=previous)
            local_row = self._patched(previous, changes)
            self._replace(entity_id, local_row)
            return WriteResult.local(local_row, e, "update", self.name)

        self._replace(entity_id, saved)
        return WriteResult.saved(saved, "update", self.name)

    # =========================================================================
    # DELETE
    # =========================================================================

    def delete(self, entity_id: str) -> WriteResult:
        """
        Delete a record. The local view changes only after the backend confirms.
        """
        previous = self.get(entity_id)

        with LogContext(logger, f"Deleting {self.name} record {entity_id}"):
            if is_local_id(entity_id):
                if previous is None:
                    return WriteResult.failed(self._not_found(entity_id, "delete"), "delete", self.name)
                self._remove(entity_id)
                return WriteResult.deleted(previous, "delete", self.name)

            try:
                self.remote.delete(entity_id)
            except RemoteError as e:
                self._log_remote_failure("delete", e)
                return WriteResult.failed(e, "delete", self.name, entity=previous)

            self._remove(entity_id)
            logger.info(f"Deleted {self.name} record {entity_id}")
            return WriteResult.deleted(previous or {"id": entity_id}, "delete", self.name)

    # =========================================================================
    # CHANGE NOTIFICATIONS
    # =========================================================================

    def on_remote_change(self, callback: RemoteChangeCallback) -> Unsubscribe:
        """
        Call callback(collection_name, payload) whenever the backend reports a
        change on this collection. Typically used to trigger load().

        Returns:
            Function that cancels the subscription
        """
        def handler(payload: Dict[str, Any]) -> None:
            try:
                callback(self.name, payload)
            except Exception as e:
                logger.error(f"Error in {self.name} change callback: {e}", exc_info=True)

        unsubscribe = self.remote.subscribe(handler)
        self._subscriptions.append(unsubscribe)
        return unsubscribe

    def close(self) -> None:
        """Cancel every change subscription made through this repository."""
        while self._subscriptions:
            unsubscribe = self._subscriptions.pop()
            try:
                unsubscribe()
            except Exception as e:
                logger.warning(f"Error unsubscribing from {self.name} changes: {e}")

    def reset(self) -> None:
        """Forget the in-memory view and the stored snapshot for this key."""
        self._view = None
        self.cache.reset(self.key)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _current(self) -> List[Record]:
        if self._view is None:
            self._view = list(self.cache.load(self.key))
        return self._view

    def _mutate(self, change: Callable[[List[Record]], List[Record]]) -> List[Record]:
        """
        Apply change to the stored snapshot, not to this repository's copy:
        other sessions sharing the store may have written since our last load.
        """
        self._view = self.cache.update(self.key, change, default=self._current())
        return self._view

    def _replace(self, entity_id: str, record: Record) -> None:
        def change(rows: List[Record]) -> List[Record]:
            view = list(rows)
            index = find_index(view, entity_id)
            if index >= 0:
                view[index] = record
            else:
                view.insert(0, record)
            return view

        self._mutate(change)

    def _remove(self, entity_id: str) -> None:
        self._mutate(lambda rows: [r for r in rows if str(r.get("id")) != str(entity_id)])

    def _patched(self, previous: Record, changes: Record) -> Record:
        return {
            **previous,
            **changes,
            "id": previous["id"],
            "updated_at": utc_now_iso(self._clock()),
        }

    def _not_found(self, entity_id: str, operation: str) -> NotFound:
        return NotFound(
            f"{self.name} record {entity_id} not found",
            entity_id=entity_id,
            collection=self.name,
            operation=operation,
        )

    def _log_remote_failure(self, operation: str, error: RemoteError) -> None:
        if isinstance(error, RemoteUnavailable):
            if error.explicit_offline:
                logger.info(f"{self.name}.{operation}: local-only mode")
            else:
                logger.warning(f"{self.name}.{operation}: backend unavailable: {error.message}")
        else:
            logger.error(f"{self.name}.{operation}: backend refused request: {error}")
