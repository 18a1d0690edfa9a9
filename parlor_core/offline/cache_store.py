# =============================================================================
# parlor_core/offline/cache_store.py
# Local SQLite Cache for Collection Snapshots
# =============================================================================
"""
LocalCacheStore - durable key/value storage of collection snapshots.

Each snapshot is the full ordered list of records of one collection, stored
as a single JSON blob under a key such as "cases:parlor-1". The store never
raises to its callers: unreadable snapshots load as empty and failed writes
leave the previous snapshot in place.

Usage:
------
store = LocalCacheStore(Path("local_data/parlor_cache.db"))
store.initialize()

key = cache_key("cases", tenant_id="parlor-1")
store.save(key, [{"id": "r1", "name": "A"}])
store.load(key)   # [{"id": "r1", "name": "A"}]
"""

from __future__ import annotations
import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from parlor_core.errors import CacheCorrupt
from parlor_core.logging import get_logger

logger = get_logger(__name__)

MEMORY = ":memory:"

SCHEMA = """
    CREATE TABLE IF NOT EXISTS cache_snapshots (
        cache_key TEXT PRIMARY KEY,
        payload TEXT NOT NULL,
        entity_count INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL
    )
"""


def cache_key(
    collection: str,
    tenant_id: Optional[str] = None,
    owner_id: Optional[str] = None,
) -> str:
    """
    Build the deterministic snapshot key for a collection.

    Distinct collections always map to distinct keys; tenant and owner
    narrow the key further so scoped views never overwrite each other.
    """
    if not collection:
        raise ValueError("collection name is required for a cache key")
    parts = [collection]
    if tenant_id:
        parts.append(str(tenant_id))
    if owner_id:
        parts.append(str(owner_id))
    return ":".join(parts)


class LocalCacheStore:
    """
    SQLite-backed snapshot store shared by every collection in the process.
    """

    def __init__(self, db_path: Union[Path, str] = MEMORY):
        """
        Args:
            db_path: Path to the SQLite file, or ":memory:" for a throwaway store
        """
        self.db_path = str(db_path)
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Open the connection lazily; one connection keeps :memory: stores alive."""
        if self._connection is None:
            if self.db_path != MEMORY:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        return self._connection

    def initialize(self) -> None:
        """Create the snapshot table if needed."""
        if self._initialized:
            return

        with self._lock:
            conn = self._get_connection()
            conn.execute(SCHEMA)
            conn.commit()
        self._initialized = True
        logger.info(f"Local cache initialized at: {self.db_path}")

    # =========================================================================
    # SNAPSHOT OPERATIONS
    # =========================================================================

    def load(self, key: str) -> List[Dict[str, Any]]:
        """
        Load the snapshot stored under key.

        Returns:
            The stored records in order, or [] when nothing usable is stored
        """
        try:
            self.initialize()
            with self._lock:
                payload = self._read(key)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error reading cache snapshot {key}: {e}")
            return []

        return self._decode_or_empty(key, payload)

    def save(self, key: str, entities: Sequence[Dict[str, Any]]) -> None:
        """
        Replace the snapshot stored under key.

        Values must be JSON-native; a snapshot holding anything else is not
        written. Failures (serialization, disk full, locked database) are
        logged and leave the previous snapshot untouched.
        """
        payload = self._encode(key, entities)
        if payload is None:
            return

        try:
            self.initialize()
            with self._lock:
                self._write(key, payload, len(entities))
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error writing cache snapshot {key}: {e}")
            self._rollback()
            return

        logger.debug(f"Cached {len(entities)} records under {key}")

    def update(
        self,
        key: str,
        mutate: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]],
        default: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read-modify-write one snapshot while holding the store lock.

        Every session sharing this store sees the changes of the others, so
        writers must start from the stored snapshot rather than from their
        own copy of it.

        Args:
            key: Snapshot key
            mutate: Receives the stored records, returns the new snapshot
            default: Records to start from when the store cannot be read

        Returns:
            The new snapshot, also when it could not be persisted
        """
        fallback = list(default or [])
        entities: Optional[List[Dict[str, Any]]] = None
        try:
            self.initialize()
            with self._lock:
                try:
                    stored = self._read(key)
                except (sqlite3.Error, OSError) as e:
                    # Unreadable store: skip the write so no stored record is lost
                    logger.error(f"Error reading cache snapshot {key}: {e}")
                    return mutate(fallback)

                current = fallback if stored is None else self._decode_or_empty(key, stored)
                entities = mutate(current)
                payload = self._encode(key, entities)
                if payload is not None:
                    self._write(key, payload, len(entities))
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error writing cache snapshot {key}: {e}")
            self._rollback()
            return entities if entities is not None else mutate(fallback)

        return entities

    def keys(self) -> List[str]:
        """List stored snapshot keys."""
        self.initialize()
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT cache_key FROM cache_snapshots ORDER BY cache_key"
            ).fetchall()
        return [row[0] for row in rows]

    def reset(self, key: Optional[str] = None) -> None:
        """Delete one snapshot, or every snapshot when key is None."""
        self.initialize()
        with self._lock:
            conn = self._get_connection()
            if key is None:
                conn.execute("DELETE FROM cache_snapshots")
            else:
                conn.execute("DELETE FROM cache_snapshots WHERE cache_key = ?", (key,))
            conn.commit()
        logger.info(f"Cache reset: {key or 'all snapshots'}")

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
        self._initialized = False

    # =========================================================================
    # INTERNALS
    # =========================================================================

    # _read/_write expect the caller to hold self._lock

    def _read(self, key: str) -> Optional[str]:
        row = self._get_connection().execute(
            "SELECT payload FROM cache_snapshots WHERE cache_key = ?",
            (key,),
        ).fetchone()
        return None if row is None else row[0]

    def _write(self, key: str, payload: str, count: int) -> None:
        conn = self._get_connection()
        conn.execute(
            """
            INSERT INTO cache_snapshots (cache_key, payload, entity_count, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                payload = excluded.payload,
                entity_count = excluded.entity_count,
                updated_at = excluded.updated_at
            """,
            (key, payload, count, datetime.now(timezone.utc).isoformat()),
        )
        conn.commit()

    @staticmethod
    def _encode(key: str, entities: Sequence[Dict[str, Any]]) -> Optional[str]:
        try:
            return json.dumps(list(entities))
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot serialize snapshot {key}: {e}")
            return None

    def _decode_or_empty(self, key: str, payload: Optional[str]) -> List[Dict[str, Any]]:
        if payload is None:
            return []
        try:
            return self._decode(key, payload)
        except CacheCorrupt as e:
            logger.warning(f"Discarding unreadable cache snapshot: {e}")
            return []

    @staticmethod
    def _decode(key: str, payload: str) -> List[Dict[str, Any]]:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise CacheCorrupt(f"Invalid JSON: {e}", cache_key=key) from e

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise CacheCorrupt("Snapshot is not a list of records", cache_key=key)
        return data

    def _rollback(self) -> None:
        if self._connection is None:
            return
        try:
            self._connection.rollback()
        except sqlite3.Error as e:
            logger.debug(f"Rollback after failed cache write also failed: {e}")
