"""FastAPI dependency injection helpers."""

from __future__ import annotations

import threading
import time
from functools import lru_cache
from typing import Any

from fastapi import Depends, Header

from svj.clients.voting_client import VotingClient
from svj.config import settings
from svj.services.common import SupabaseService
from svj.services.mailer import BrevoMailer, Mailer
from svj.services.snapshot import snapshot_member
from svj.utils.errors import ForbiddenError, StoreUnavailableError, UnauthorizedError
from svj.utils.supabase_client import get_service_client, get_supabase_client
from supabase import Client

MANAGER_ROLES = {"admin", "chairman"}

_token_cache: dict[str, tuple[float, Any]] = {}
_cache_lock = threading.Lock()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    """Return a cache value when present and not expired."""
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
    max_entries: int,
) -> None:
    """Store a bounded cache value with TTL."""
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        bounded_max_entries = max(1, max_entries)
        if len(cache) >= bounded_max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def get_authenticated_user(authorization: str = Header(None)) -> Any:
    """Extract and validate a Supabase JWT from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    cached_user = _cache_get(_token_cache, token)
    if cached_user is not None:
        return cached_user

    supabase = get_supabase_client()

    try:
        response = supabase.auth.get_user(token)
        if not response or not response.user:
            raise UnauthorizedError("Invalid token")
        _cache_set(
            _token_cache,
            token,
            response.user,
            settings.auth_token_cache_ttl_seconds,
            settings.auth_token_cache_max_entries,
        )
        return response.user
    except UnauthorizedError:
        raise
    except Exception as exc:
        raise UnauthorizedError("Invalid or expired token") from exc


def get_current_user_email(user: Any) -> str:
    """Extract and normalize the authenticated user's email."""
    raw_email = getattr(user, "email", None)
    if not isinstance(raw_email, str) or not raw_email.strip():
        raise UnauthorizedError("Authenticated user email is required")
    return raw_email.strip().lower()


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()


def get_current_member(
    user: Any = Depends(get_authenticated_user),
    client: Client = Depends(get_db_client),
) -> dict[str, Any]:
    """Return the active member row behind the session, carrying its role."""
    email = get_current_user_email(user)
    db = SupabaseService(client)
    try:
        member = db.find_one("members", {"email": email, "is_active": True})
    except StoreUnavailableError:
        # Listing views can still serve the snapshot roster to its members.
        member = snapshot_member(email) if settings.enable_snapshot_fallback else None
        if member is None:
            raise
    if member is None:
        raise ForbiddenError("No active member account for this login")
    return member


def require_manager(member: dict[str, Any] = Depends(get_current_member)) -> dict[str, Any]:
    """Allow only building administrators and chairmen."""
    if member.get("role") not in MANAGER_ROLES:
        raise ForbiddenError("Only administrators can manage voting")
    return member


def ensure_building_access(member: dict[str, Any], building_id: str) -> None:
    """Admins see every building; everyone else only their own."""
    if member.get("role") == "admin":
        return
    if str(member.get("building_id")) != str(building_id):
        raise ForbiddenError("You are not a member of this building")


@lru_cache(maxsize=1)
def get_mailer() -> Mailer:
    """Return the shared email provider client."""
    return BrevoMailer()


@lru_cache(maxsize=1)
def get_voting_client() -> VotingClient:
    """Return the voting client used by the public voting page."""
    return VotingClient(get_service_client())


def close_shared_clients() -> None:
    """Close HTTP pools of the cached mailer and voting client."""
    for factory in (get_mailer, get_voting_client):
        if factory.cache_info().currsize:
            http = getattr(factory(), "http", None)
            if http is not None:
                http.close()
        factory.cache_clear()
