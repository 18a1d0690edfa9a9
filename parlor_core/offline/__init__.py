# =============================================================================
# parlor_core/offline/__init__.py
# Offline-Capable Record Store for LoveDone Parlor
# =============================================================================
"""
Offline-capable record store.

Architecture:
------------
┌──────────────────────────────────────────────────────────┐
│              ReconcilingRepository (per collection)       │
│        load / create / update / delete / on_change        │
└──────────────────────────────────────────────────────────┘
              │                              │
              ▼                              ▼
┌──────────────────────────┐   ┌──────────────────────────┐
│  RemoteCollectionClient  │   │     LocalCacheStore      │
│ Supabase | Offline (null)│   │  SQLite JSON snapshots   │
└──────────────────────────┘   └──────────────────────────┘

Usage:
------
from parlor_core.offline import LocalCacheStore, build_repository

store = LocalCacheStore(settings.cache_path)
cases = build_repository("cases", store, scope, supabase_client)
result = cases.load()
"""

from parlor_core.offline.cache_store import LocalCacheStore, cache_key
from parlor_core.offline.reconcile import merge_snapshots, new_local_id, is_local_id
from parlor_core.offline.remote_client import (
    RemoteCollectionClient,
    SupabaseCollectionClient,
    OfflineCollectionClient,
)
from parlor_core.offline.repository import (
    ReconcilingRepository,
    WriteResult,
    LoadResult,
    SaveStatus,
    LoadSource,
)
from parlor_core.offline.factory import (
    ParlorRepositories,
    build_remote_client,
    build_repository,
    build_parlor_repositories,
    build_parlor_directory,
)

__all__ = [
    # Local cache
    "LocalCacheStore",
    "cache_key",
    # Reconciliation
    "merge_snapshots",
    "new_local_id",
    "is_local_id",
    # Remote clients
    "RemoteCollectionClient",
    "SupabaseCollectionClient",
    "OfflineCollectionClient",
    # Repository (main API)
    "ReconcilingRepository",
    "WriteResult",
    "LoadResult",
    "SaveStatus",
    "LoadSource",
    # Construction
    "ParlorRepositories",
    "build_remote_client",
    "build_repository",
    "build_parlor_repositories",
    "build_parlor_directory",
]
