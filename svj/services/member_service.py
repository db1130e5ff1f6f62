"""Member roster service."""

from __future__ import annotations

import logging
from typing import Any

from svj.services.common import SupabaseService, matches_search
from svj.services.snapshot import SNAPSHOT_MEMBERS, with_snapshot_fallback
from svj.utils.csv_io import members_to_csv, parse_member_rows
from svj.utils.errors import ConflictError, MemberNotFoundError
from svj.utils.time import now_utc
from supabase import Client

MEMBER_SEARCH_FIELDS = ("first_name", "last_name", "email", "unit_number")
logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Lower-case and trim an email used as a login identity."""
    return email.strip().lower()


class MemberService:
    """Member CRUD, lookup by email, and CSV import/export."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_members(self, building_id: str, search: str | None = None) -> list[dict[str, Any]]:
        """Return a building's members, filtered by name, email or unit."""
        members = with_snapshot_fallback(
            lambda: self.db.select_many(
                "members",
                filters={"building_id": building_id},
                order_by="created_at",
                descending=True,
            ),
            [row for row in SNAPSHOT_MEMBERS if row["building_id"] == building_id],
            "members",
        )
        return [row for row in members if matches_search(row, MEMBER_SEARCH_FIELDS, search)]

    def get(self, member_id: str) -> dict[str, Any]:
        """Return one member."""
        return self.db.select_one(
            "members",
            {"id": member_id},
            not_found_error=MemberNotFoundError(),
        )

    def get_by_email(self, email: str, building_id: str | None = None) -> dict[str, Any] | None:
        """Return the first member with this email, optionally within a building."""
        filters: dict[str, Any] = {"email": normalize_email(email)}
        if building_id:
            filters["building_id"] = building_id
        return self.db.find_one("members", filters)

    def _ensure_unique_email(
        self,
        building_id: str,
        email: str,
        member_id: str | None = None,
    ) -> None:
        existing = self.get_by_email(email, building_id)
        if existing and str(existing["id"]) != str(member_id):
            raise ConflictError("A member with this email already exists in the building")

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert a member, keeping emails unique per building."""
        data = {**payload, "email": normalize_email(payload["email"])}
        self._ensure_unique_email(data["building_id"], data["email"])
        return self.db.insert_one("members", data)

    def update(self, member_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Patch a member and stamp ``updated_at``."""
        current = self.get(member_id)
        data = dict(payload)
        if data.get("email"):
            data["email"] = normalize_email(data["email"])
            self._ensure_unique_email(current["building_id"], data["email"], member_id)
        data["updated_at"] = now_utc().isoformat()
        rows = self.db.update("members", {"id": member_id}, data)
        return rows[0] if rows else {**current, **data}

    def delete(self, member_id: str) -> None:
        """Delete a member."""
        self.get(member_id)
        self.db.delete("members", {"id": member_id})

    def clear_building(self, building_id: str) -> int:
        """Delete every member of a building and return how many were removed."""
        removed = self.db.delete("members", {"building_id": building_id})
        logger.info("Cleared %s members from building %s", len(removed), building_id)
        return len(removed)

    def import_csv(self, building_id: str, csv_data: str) -> list[dict[str, Any]]:
        """Insert members parsed from header-free CSV lines."""
        rows = parse_member_rows(csv_data, building_id)
        for row in rows:
            row["email"] = normalize_email(row["email"])
        inserted = self.db.insert_many("members", rows)
        logger.info("Imported %s members into building %s", len(inserted), building_id)
        return inserted

    def export_csv(self, building_id: str, search: str | None = None) -> str:
        """Return the (filtered) member list as CSV."""
        return members_to_csv(self.list_members(building_id, search))
