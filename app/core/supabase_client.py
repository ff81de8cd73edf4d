# app/core/supabase_client.py
from functools import lru_cache

from supabase import Client, create_client

from app.core.config import get_settings


@lru_cache
def supabase_admin() -> Client:
    """
    Service-role Supabase client, shared by all storage calls.

    Only the backend holds the service key; the admin UI uploads through
    /uploads instead of talking to Storage itself.

    Raises:
        RuntimeError: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is unset.
    """
    settings = get_settings()
    if not (settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY):
        raise RuntimeError("Storage needs SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
