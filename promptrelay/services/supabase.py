"""Supabase client wrapper for the content cache table."""

import logging

from supabase import Client, create_client
from supabase.lib.client_options import SyncClientOptions

from promptrelay.config import Settings, get_settings
from promptrelay.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

_supabase_client: Client | None = None


def _create_supabase_client(settings: Settings) -> Client:
    """Create a new Supabase client with custom timeout settings."""
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for the supabase cache backend"
        )
    options = SyncClientOptions(postgrest_client_timeout=30)
    return create_client(
        settings.supabase_url,
        settings.supabase_service_key,
        options=options,
    )


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get Supabase client instance, creating new one if needed."""
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = _create_supabase_client(settings or get_settings())
        logger.info("[CACHE] Supabase client created")
    return _supabase_client
