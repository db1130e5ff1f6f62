"""Plain comma-separated import/export for rosters.

Fields are split and joined on commas with no quoting or escaping.
"""

from __future__ import annotations

from typing import Any

MEMBER_IMPORT_COLUMNS = (
    "email",
    "first_name",
    "last_name",
    "phone",
    "unit_number",
    "ownership_share",
)
MEMBER_EXPORT_HEADERS = ("Email", "Jméno", "Příjmení", "Telefon", "Jednotka", "Podíl", "Role")
BUILDING_EXPORT_HEADERS = ("Název", "Adresa", "Popis", "Aktivní")


def _parse_share(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        return 0.0


def parse_member_rows(csv_data: str, building_id: str) -> list[dict[str, Any]]:
    """Parse header-free six-column member lines into insert payloads.

    Lines without an email are skipped; missing trailing columns become empty.
    """
    members: list[dict[str, Any]] = []
    for line in csv_data.splitlines():
        values = [value.strip() for value in line.split(",")]
        values += [""] * (len(MEMBER_IMPORT_COLUMNS) - len(values))
        row = dict(zip(MEMBER_IMPORT_COLUMNS, values))
        if not row["email"]:
            continue
        members.append(
            {
                "building_id": building_id,
                "email": row["email"],
                "first_name": row["first_name"],
                "last_name": row["last_name"],
                "phone": row["phone"],
                "unit_number": row["unit_number"],
                "ownership_share": _parse_share(row["ownership_share"]),
                "role": "member",
                "is_active": True,
            }
        )
    return members


def members_to_csv(members: list[dict[str, Any]]) -> str:
    """Render members with a Czech header line."""
    lines = [",".join(MEMBER_EXPORT_HEADERS)]
    for member in members:
        lines.append(
            ",".join(
                str(value)
                for value in (
                    member.get("email", ""),
                    member.get("first_name", ""),
                    member.get("last_name", ""),
                    member.get("phone") or "",
                    member.get("unit_number", ""),
                    member.get("ownership_share", 0),
                    member.get("role", "member"),
                )
            )
        )
    return "\n".join(lines)


def buildings_to_csv(buildings: list[dict[str, Any]]) -> str:
    """Render buildings with a Czech header line and Ano/Ne flags."""
    lines = [",".join(BUILDING_EXPORT_HEADERS)]
    for building in buildings:
        lines.append(
            ",".join(
                [
                    str(building.get("name", "")),
                    str(building.get("address", "")),
                    str(building.get("description") or ""),
                    "Ano" if building.get("is_active") else "Ne",
                ]
            )
        )
    return "\n".join(lines)
