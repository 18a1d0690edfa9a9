# =============================================================================
# parlor_core/data/supabase_client.py
# Supabase Client Configuration for LoveDone Parlor
# =============================================================================

from __future__ import annotations
from typing import Optional

from supabase import Client, ClientOptions, create_client

from parlor_core.config import Settings
from parlor_core.errors import ConfigurationError
from parlor_core.logging import get_logger

logger = get_logger(__name__)


def get_supabase_client(settings: Settings) -> Optional[Client]:
    """
    Initialize and return a Supabase client for the given settings.

    The PostgREST timeout is taken from settings.request_timeout; an expired
    request surfaces from the collection client as RemoteUnavailable.

    Returns:
        Supabase client instance, or None when the backend is not configured
        (local-only mode)

    Raises:
        ConfigurationError: If the credentials are rejected by the client library
    """
    if not settings.is_supabase_configured:
        return None

    options = ClientOptions(postgrest_client_timeout=settings.request_timeout)
    try:
        client: Client = create_client(settings.supabase_url, settings.supabase_key, options=options)
    except Exception as e:
        # create_client validates url/key format before any network call
        raise ConfigurationError(
            f"Failed to initialize Supabase client: {e}",
            config_key="supabase",
        ) from e

    logger.info(f"Supabase client created (timeout={settings.request_timeout}s)")
    return client

