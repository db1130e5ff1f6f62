"""Building roster service."""

from __future__ import annotations

from typing import Any

from svj.services.common import SupabaseService, matches_search
from svj.services.snapshot import SNAPSHOT_BUILDINGS, with_snapshot_fallback
from svj.utils.csv_io import buildings_to_csv
from svj.utils.time import now_utc
from supabase import Client

BUILDING_SEARCH_FIELDS = ("name", "address")


class BuildingService:
    """Building CRUD and export."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_buildings(self, search: str | None = None) -> list[dict[str, Any]]:
        """Return buildings newest first, filtered by name/address."""
        buildings = with_snapshot_fallback(
            lambda: self.db.select_many("buildings", order_by="created_at", descending=True),
            SNAPSHOT_BUILDINGS,
            "buildings",
        )
        return [row for row in buildings if matches_search(row, BUILDING_SEARCH_FIELDS, search)]

    def get(self, building_id: str) -> dict[str, Any]:
        """Return one building."""
        return self.db.select_one("buildings", {"id": building_id}, not_found_label="Building")

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert a building."""
        return self.db.insert_one("buildings", payload)

    def update(self, building_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Patch a building and stamp ``updated_at``."""
        current = self.get(building_id)
        data = {**payload, "updated_at": now_utc().isoformat()}
        rows = self.db.update("buildings", {"id": building_id}, data)
        return rows[0] if rows else {**current, **data}

    def delete(self, building_id: str) -> None:
        """Delete a building. Members and votes are left to the database's rules."""
        self.get(building_id)
        self.db.delete("buildings", {"id": building_id})

    def export_csv(self, search: str | None = None) -> str:
        """Return the (filtered) building list as CSV."""
        return buildings_to_csv(self.list_buildings(search))
