"""Fixed roster shown by listing views while the database is unreachable."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from svj.config import settings
from svj.utils.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

SNAPSHOT_BUILDING_ID = "550e8400-e29b-41d4-a716-446655440001"
SNAPSHOT_TIMESTAMP = "2024-01-01T00:00:00+00:00"

SNAPSHOT_BUILDINGS: list[dict[str, Any]] = [
    {
        "id": SNAPSHOT_BUILDING_ID,
        "name": "Bytový dům Náměstí míru 12",
        "address": "Náměstí míru 12, 120 00 Praha 2",
        "description": "Historický bytový dům v centru Prahy s 24 bytovými jednotkami.",
        "is_active": True,
        "created_at": SNAPSHOT_TIMESTAMP,
        "updated_at": SNAPSHOT_TIMESTAMP,
    }
]

SNAPSHOT_MEMBERS: list[dict[str, Any]] = [
    {
        "id": "550e8400-e29b-41d4-a716-446655440011",
        "building_id": SNAPSHOT_BUILDING_ID,
        "email": "predseda@svj-namestimiru.cz",
        "first_name": "Jan",
        "last_name": "Novák",
        "phone": "+420 777 123 456",
        "unit_number": "1",
        "ownership_share": 4.2,
        "role": "chairman",
        "is_active": True,
        "created_at": SNAPSHOT_TIMESTAMP,
        "updated_at": SNAPSHOT_TIMESTAMP,
    },
    {
        "id": "550e8400-e29b-41d4-a716-446655440012",
        "building_id": SNAPSHOT_BUILDING_ID,
        "email": "marie.svobodova@email.cz",
        "first_name": "Marie",
        "last_name": "Svobodová",
        "phone": None,
        "unit_number": "2",
        "ownership_share": 3.8,
        "role": "member",
        "is_active": True,
        "created_at": SNAPSHOT_TIMESTAMP,
        "updated_at": SNAPSHOT_TIMESTAMP,
    },
]

SNAPSHOT_VOTES: list[dict[str, Any]] = []


def with_snapshot_fallback(
    load: Callable[[], list[dict[str, Any]]],
    snapshot: list[dict[str, Any]],
    label: str,
) -> list[dict[str, Any]]:
    """Run a read query, serving ``snapshot`` when the store is down."""
    try:
        return load()
    except StoreUnavailableError:
        if not settings.enable_snapshot_fallback:
            raise
        logger.warning("Store unavailable, serving snapshot %s", label)
        return copy.deepcopy(snapshot)


def snapshot_member(email: str) -> dict[str, Any] | None:
    """Return the snapshot member signed in as ``email``, if any."""
    for row in SNAPSHOT_MEMBERS:
        if row["email"] == email and row["is_active"]:
            return copy.deepcopy(row)
    return None
