# =============================================================================
# parlor_core/offline/reconcile.py
# Remote/Local Snapshot Reconciliation
# =============================================================================
"""
Merge rules used on every successful load:

1. Identity is the record "id" and nothing else; timestamps are not compared.
2. The backend is authoritative: a remote record replaces every field of a
   cached record with the same id.
3. Cached records the backend did not return are kept, after the remote ones,
   in their cached order. This is how records created while offline survive a
   reload.

Known data loss: an offline edit to a record that already exists remotely is
dropped as soon as the backend returns that id again.
"""

from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set

from parlor_core.logging import get_logger

logger = get_logger(__name__)

LOCAL_ID_PREFIX = "local-"


def new_local_id() -> str:
    """Client-generated id for records created without the backend."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def is_local_id(entity_id: Optional[str]) -> bool:
    """True if the id was generated locally and has no backend counterpart."""
    return isinstance(entity_id, str) and entity_id.startswith(LOCAL_ID_PREFIX)


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp for created_at/updated_at columns."""
    return (now or datetime.now(timezone.utc)).isoformat()


def _unique_by_id(records: Iterable[Dict[str, Any]], seen: Set[str], source: str) -> List[Dict[str, Any]]:
    unique: List[Dict[str, Any]] = []
    for record in records:
        entity_id = record.get("id")
        if entity_id is None:
            logger.warning(f"Dropping {source} record without id: {record}")
            continue
        key = str(entity_id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def merge_snapshots(
    remote: Iterable[Dict[str, Any]],
    cached: Iterable[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Merge a fresh remote list with the cached snapshot.

    Args:
        remote: Records returned by the backend
        cached: Records from the local snapshot

    Returns:
        Remote records (first occurrence per id) followed by cached records
        whose id the backend did not return
    """
    seen: Set[str] = set()
    merged = _unique_by_id(remote, seen, "remote")
    remote_count = len(merged)
    merged.extend(_unique_by_id(cached, seen, "cached"))

    kept = len(merged) - remote_count
    if kept:
        logger.debug(f"Kept {kept} cached records not present remotely")
    return merged


def find_index(records: List[Dict[str, Any]], entity_id: str) -> int:
    """Position of the record with this id, or -1."""
    for index, record in enumerate(records):
        if str(record.get("id")) == str(entity_id):
            return index
    return -1
