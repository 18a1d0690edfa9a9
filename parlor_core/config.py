# =============================================================================
# parlor_core/config.py
# Application Settings for LoveDone Parlor
# =============================================================================
"""
Settings are read from environment variables first and Streamlit secrets
second, so the same code runs under `streamlit run`, in scripts and in tests.

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [parlor]
    request_timeout = 10
    cache_path = "local_data/parlor_cache.db"
    offline = false
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import streamlit as st

from parlor_core.errors import ConfigurationError
from parlor_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CACHE_PATH = Path(__file__).parent.parent / "local_data" / "parlor_cache.db"
DEFAULT_REQUEST_TIMEOUT = 10.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    cache_path: Path = DEFAULT_CACHE_PATH
    offline: bool = False

    @property
    def is_supabase_configured(self) -> bool:
        """True when a backend should be used (credentials present, offline not forced)."""
        return bool(self.supabase_url and self.supabase_key) and not self.offline


def _read_secrets() -> Mapping[str, Any]:
    """Return Streamlit secrets as a mapping, or {} when none are configured."""
    try:
        return {section: dict(values) for section, values in st.secrets.items()}
    except Exception as e:
        # st.secrets raises its own not-found error when secrets.toml is missing
        logger.debug(f"Streamlit secrets not available: {e}")
        return {}


def _parse_bool(raw: Any, key: str) -> bool:
    if isinstance(raw, bool):
        return raw
    value = str(raw).strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigurationError(f"Invalid boolean for {key}: {raw!r}", config_key=key, expected_type="bool")


def _parse_timeout(raw: Any, key: str) -> float:
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid timeout for {key}: {raw!r}", config_key=key, expected_type="float")
    if timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {timeout}", config_key=key, expected_type="float")
    return timeout


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    secrets: Optional[Mapping[str, Any]] = None,
) -> Settings:
    """
    Build Settings from the environment and Streamlit secrets.

    Args:
        environ: Environment mapping (default: os.environ)
        secrets: Secrets mapping (default: st.secrets)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a value is present but malformed
    """
    environ = os.environ if environ is None else environ
    secrets = _read_secrets() if secrets is None else secrets

    supabase_secrets = secrets.get("supabase", {}) or {}
    parlor_secrets = secrets.get("parlor", {}) or {}

    url = environ.get("SUPABASE_URL") or supabase_secrets.get("url")
    key = environ.get("SUPABASE_KEY") or supabase_secrets.get("key")

    raw_timeout = environ.get("PARLOR_REQUEST_TIMEOUT", parlor_secrets.get("request_timeout"))
    timeout = (
        _parse_timeout(raw_timeout, "PARLOR_REQUEST_TIMEOUT")
        if raw_timeout is not None
        else DEFAULT_REQUEST_TIMEOUT
    )

    raw_cache_path = environ.get("PARLOR_CACHE_PATH") or parlor_secrets.get("cache_path")
    cache_path = Path(raw_cache_path) if raw_cache_path else DEFAULT_CACHE_PATH

    raw_offline = environ.get("PARLOR_OFFLINE", parlor_secrets.get("offline", False))
    offline = _parse_bool(raw_offline, "PARLOR_OFFLINE")

    settings = Settings(
        supabase_url=url or None,
        supabase_key=key or None,
        request_timeout=timeout,
        cache_path=cache_path,
        offline=offline,
    )

    if not settings.is_supabase_configured:
        logger.info("Supabase not configured or offline forced; running in local-only mode")

    return settings
