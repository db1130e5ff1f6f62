"""Building endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from svj.dependencies import (
    ensure_building_access,
    get_current_member,
    get_db_client,
    require_manager,
)
from svj.schemas.building import BuildingCreate, BuildingUpdate
from svj.services.building_service import BuildingService
from svj.utils.errors import ForbiddenError
from supabase import Client

router = APIRouter()


def _require_admin(member: dict[str, Any]) -> None:
    if member.get("role") != "admin":
        raise ForbiddenError("Only administrators can manage buildings")


@router.get("")
def list_buildings(
    search: str | None = Query(default=None),
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """List buildings visible to the current member."""
    buildings = BuildingService(client).list_buildings(search)
    if member.get("role") != "admin":
        buildings = [row for row in buildings if str(row["id"]) == str(member["building_id"])]
    return {"buildings": buildings}


@router.get("/export", response_class=PlainTextResponse)
def export_buildings(
    search: str | None = Query(default=None),
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> PlainTextResponse:
    """Download buildings as CSV."""
    _require_admin(member)
    content = BuildingService(client).export_csv(search)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="budovy-export.csv"'},
    )


@router.post("")
def create_building(
    payload: BuildingCreate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Create a building."""
    _require_admin(member)
    building = BuildingService(client).create(payload.model_dump())
    return {"building": building}


@router.get("/{building_id}")
def get_building(
    building_id: str,
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one building."""
    ensure_building_access(member, building_id)
    return {"building": BuildingService(client).get(building_id)}


@router.patch("/{building_id}")
def update_building(
    building_id: str,
    payload: BuildingUpdate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update building details."""
    ensure_building_access(member, building_id)
    building = BuildingService(client).update(
        building_id,
        payload.model_dump(exclude_unset=True),
    )
    return {"building": building}


@router.delete("/{building_id}")
def delete_building(
    building_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete a building."""
    _require_admin(member)
    BuildingService(client).delete(building_id)
    return {"success": True}
