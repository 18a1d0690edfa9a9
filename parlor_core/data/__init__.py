from parlor_core.data.supabase_client import get_supabase_client

__all__ = ["get_supabase_client"]
