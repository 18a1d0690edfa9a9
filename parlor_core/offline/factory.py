# =============================================================================
# parlor_core/offline/factory.py
# Repository Construction
# =============================================================================
"""
Builds one ReconcilingRepository per collection.

Whether the backend is used is decided here, once: a configured Supabase
client yields SupabaseCollectionClient instances, no client yields
OfflineCollectionClient instances. Screens never branch on configuration.
"""

from __future__ import annotations
import sqlite3
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from parlor_core.auth import Scope
from parlor_core.config import Settings
from parlor_core.logging import get_logger
from parlor_core.models import COLLECTIONS, PARLORS, CollectionSpec, get_collection
from parlor_core.offline.cache_store import LocalCacheStore
from parlor_core.offline.remote_client import (
    OfflineCollectionClient,
    RemoteCollectionClient,
    SupabaseCollectionClient,
)
from parlor_core.offline.repository import ReconcilingRepository

logger = get_logger(__name__)


def build_remote_client(
    collection: CollectionSpec,
    scope: Scope,
    supabase_client=None,
) -> RemoteCollectionClient:
    """Live client when a Supabase client is given, offline client otherwise."""
    if supabase_client is None:
        return OfflineCollectionClient(collection, scope)
    return SupabaseCollectionClient(supabase_client, collection, scope)


def build_repository(
    collection: str,
    cache: LocalCacheStore,
    scope: Optional[Scope] = None,
    supabase_client=None,
) -> ReconcilingRepository:
    """
    Build the repository for one collection.

    Args:
        collection: Collection name ("cases", "clients", "tasks", "payments")
        cache: Shared snapshot store
        scope: Tenant/owner scope (default: unscoped)
        supabase_client: Supabase client, or None for local-only mode
    """
    spec = get_collection(collection)
    remote = build_remote_client(spec, scope or Scope(), supabase_client)
    return ReconcilingRepository(remote, cache)


@dataclass
class ParlorRepositories:
    """All repositories for one signed-in session."""
    scope: Scope
    cache: LocalCacheStore
    online: bool
    repositories: Dict[str, ReconcilingRepository] = field(default_factory=dict)

    def __getitem__(self, name: str) -> ReconcilingRepository:
        return self.repositories[name]

    @property
    def cases(self) -> ReconcilingRepository:
        return self.repositories["cases"]

    @property
    def clients(self) -> ReconcilingRepository:
        return self.repositories["clients"]

    @property
    def tasks(self) -> ReconcilingRepository:
        return self.repositories["tasks"]

    @property
    def payments(self) -> ReconcilingRepository:
        return self.repositories["payments"]

    @property
    def plans(self) -> ReconcilingRepository:
        return self.repositories["plans"]

    @property
    def service_types(self) -> ReconcilingRepository:
        return self.repositories["service_types"]

    def close(self) -> None:
        for repository in self.repositories.values():
            repository.close()


def build_parlor_repositories(
    settings: Settings,
    scope: Scope,
    supabase_client=None,
    cache: Optional[LocalCacheStore] = None,
    collections: Optional[Iterable[str]] = None,
) -> ParlorRepositories:
    """
    Build repositories for every collection of a parlor.

    Args:
        settings: Resolved settings (cache path, offline flag)
        scope: Tenant/owner scope of the signed-in user
        supabase_client: Supabase client; ignored when settings force offline
        cache: Existing store to share (default: one at settings.cache_path)
        collections: Subset of collection names (default: all)
    """
    if cache is None:
        cache = LocalCacheStore(settings.cache_path)
    try:
        cache.initialize()
    except (sqlite3.Error, OSError) as e:
        # Pages still work; loads fall back to empty and writes stay in memory
        logger.error(f"Local cache unavailable at {cache.db_path}: {e}")

    client = supabase_client if settings.is_supabase_configured else None
    names = list(collections or COLLECTIONS)

    repositories = {
        name: build_repository(name, cache, scope, client)
        for name in names
    }

    logger.info(
        f"Built repositories for {names} "
        f"(tenant={scope.tenant_id}, mode={'online' if client is not None else 'local-only'})"
    )
    return ParlorRepositories(scope=scope, cache=cache, online=client is not None, repositories=repositories)


def build_parlor_directory(
    settings: Settings,
    supabase_client=None,
    cache: Optional[LocalCacheStore] = None,
) -> ReconcilingRepository:
    """
    Repository over the parlors table itself, for the super-admin picker.

    It is unscoped, so its snapshot is shared by every super admin on the
    device.
    """
    client = supabase_client if settings.is_supabase_configured else None
    remote = build_remote_client(PARLORS, Scope(), client)
    return ReconcilingRepository(remote, cache or LocalCacheStore(settings.cache_path))
