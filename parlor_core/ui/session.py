# =============================================================================
# parlor_core/ui/session.py
# Per-session wiring: settings, Supabase client, identity, repositories
# =============================================================================
"""
Everything a page needs is built once per browser session and kept in
st.session_state. The SQLite cache store is shared by every session of the
process through st.cache_resource.

Usage (top of every page):
    from parlor_core.ui import init_state, get_repositories

    init_state()
    repos = get_repositories()
    result = repos.cases.load()
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional

import streamlit as st

from parlor_core.auth import Identity, scope_for, sign_in, sign_out
from parlor_core.config import Settings, load_settings
from parlor_core.data import get_supabase_client
from parlor_core.errors import safe_execute
from parlor_core.logging import get_logger, setup_logging
from parlor_core.offline import (
    LocalCacheStore,
    ParlorRepositories,
    build_parlor_directory,
    build_parlor_repositories,
)
from parlor_core.views import parlor_choices

logger = get_logger(__name__)

# Central registry for session-state keys used across the app.
SESSION_DEFAULTS = {
    "settings": None,
    "supabase_client": None,
    "identity": None,
    "selected_parlor": None,
    "parlor_choices": None,
    "repositories": None,
    "remote_changes": None,
    "watched_repositories": None,
    "debug_mode": False,
}


def init_state() -> None:
    """Initialize session state with defaults (idempotent across reruns)."""
    if "settings" not in st.session_state:
        setup_logging(log_to_file=False)
    for key, value in SESSION_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value


@st.cache_resource
def get_cache_store(db_path: str) -> LocalCacheStore:
    """Process-wide snapshot store (one SQLite connection per file)."""
    return LocalCacheStore(Path(db_path))


def get_settings() -> Settings:
    """
    Settings of this session. Malformed configuration is reported once and
    the session runs local-only on defaults.
    """
    if st.session_state.get("settings") is None:
        st.session_state["settings"] = safe_execute(load_settings, default=Settings())
    return st.session_state["settings"]


def get_client():
    """
    Supabase client of this session, or None in local-only mode.

    Each session owns its client because the Supabase Auth session lives on it.
    """
    if st.session_state.get("supabase_client") is None:
        st.session_state["supabase_client"] = get_supabase_client(get_settings())
    return st.session_state["supabase_client"]


def get_identity() -> Optional[Identity]:
    return st.session_state.get("identity")


def login(email: str, password: str) -> Optional[Identity]:
    """Sign in and reset repositories so they are rebuilt for the new scope."""
    identity = sign_in(get_client(), email, password)
    if identity is not None:
        st.session_state["identity"] = identity
        _drop_repositories()
    return identity


def logout() -> None:
    sign_out(st.session_state.get("supabase_client"))
    _drop_repositories()
    for key, value in SESSION_DEFAULTS.items():
        if key not in ("settings", "debug_mode"):
            st.session_state[key] = value


def select_parlor(parlor_id: Optional[str]) -> None:
    """Switch parlor (super admins only; others are pinned to their own)."""
    if parlor_id != st.session_state.get("selected_parlor"):
        st.session_state["selected_parlor"] = parlor_id
        _drop_repositories()


def get_parlor_choices(refresh: bool = False) -> Dict[str, str]:
    """
    Parlor names mapped to ids for the super-admin picker, loaded once per
    session. Offline, the last saved directory is used.
    """
    if refresh or st.session_state.get("parlor_choices") is None:
        settings = get_settings()
        directory = build_parlor_directory(
            settings,
            supabase_client=get_client(),
            cache=get_cache_store(str(settings.cache_path)),
        )
        result = directory.load()
        if result.warning is not None:
            logger.warning(f"Parlor list from saved data: {result.message}")
        st.session_state["parlor_choices"] = parlor_choices(result.entities)
    return st.session_state["parlor_choices"]


def get_repositories() -> ParlorRepositories:
    """
    Repositories for the current identity and parlor.

    Built on first use and whenever sign-in or the selected parlor changes.
    """
    repos: Optional[ParlorRepositories] = st.session_state.get("repositories")
    scope = scope_for(get_identity(), st.session_state.get("selected_parlor"))

    if repos is not None and repos.scope == scope:
        return repos

    _drop_repositories()
    settings = get_settings()
    repos = build_parlor_repositories(
        settings,
        scope,
        supabase_client=get_client(),
        cache=get_cache_store(str(settings.cache_path)),
    )
    st.session_state["repositories"] = repos
    return repos


def _drop_repositories() -> None:
    repos: Optional[ParlorRepositories] = st.session_state.get("repositories")
    if repos is not None:
        repos.close()
    st.session_state["repositories"] = None


def watch_remote_changes(repos: ParlorRepositories) -> list:
    """
    Record backend change notifications for every collection of repos.

    Notifications arrive on the realtime thread, so the callback only appends
    the collection name to a list; pages offer a refresh when it is non-empty.
    """
    if st.session_state.get("watched_repositories") is not repos:
        changes: list = []
        for repo in repos.repositories.values():
            repo.on_remote_change(lambda name, payload: changes.append(name))
        st.session_state["remote_changes"] = changes
        st.session_state["watched_repositories"] = repos
    return st.session_state["remote_changes"]
