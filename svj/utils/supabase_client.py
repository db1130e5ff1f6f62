"""Supabase client singletons (anon + service-role)."""

from functools import lru_cache

import httpx
from supabase.lib.client_options import SyncClientOptions

from svj.config import settings
from supabase import Client, create_client


def _create(key: str) -> Client:
    """Build a client with bounded connection pools and timeouts from settings."""
    max_connections = max(10, settings.supabase_http_max_connections)
    keepalive = max(5, min(max_connections, settings.supabase_http_max_keepalive_connections))
    timeout_seconds = max(1, settings.supabase_postgrest_timeout_seconds)

    options = SyncClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=timeout_seconds,
        storage_client_timeout=timeout_seconds,
        function_client_timeout=max(1, settings.functions_timeout_seconds),
        httpx_client=httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=keepalive,
            ),
        ),
    )
    return create_client(settings.supabase_url, key, options=options)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Return the anon-key client used to validate member sessions."""
    return _create(settings.supabase_anon_key)


@lru_cache(maxsize=1)
def get_service_client() -> Client:
    """Return the service-role client (bypasses RLS).

    Voting-link resolution and submission run with this client because the
    recipient of an emailed link has no session of their own.
    """
    return _create(settings.supabase_service_key)
