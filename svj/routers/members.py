"""Member endpoints."""

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
from svj.schemas.member import MemberCreate, MemberImportRequest, MemberUpdate
from svj.services.member_service import MemberService
from svj.utils.errors import MemberNotFoundError
from supabase import Client

router = APIRouter()


def _member_in_building(service: MemberService, building_id: str, member_id: str) -> dict:
    member = service.get(member_id)
    if str(member["building_id"]) != str(building_id):
        raise MemberNotFoundError()
    return member


@router.get("")
def list_members(
    building_id: str,
    search: str | None = Query(default=None),
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """List a building's members."""
    ensure_building_access(member, building_id)
    members = MemberService(client).list_members(building_id, search)
    return {"members": members}


@router.get("/export", response_class=PlainTextResponse)
def export_members(
    building_id: str,
    search: str | None = Query(default=None),
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> PlainTextResponse:
    """Download a building's members as CSV."""
    ensure_building_access(member, building_id)
    content = MemberService(client).export_csv(building_id, search)
    return PlainTextResponse(
        content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="clenove-export.csv"'},
    )


@router.post("")
def create_member(
    building_id: str,
    payload: MemberCreate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Add a member to a building."""
    ensure_building_access(member, building_id)
    created = MemberService(client).create({**payload.model_dump(), "building_id": building_id})
    return {"member": created}


@router.post("/import")
def import_members(
    building_id: str,
    payload: MemberImportRequest,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Import members from header-free CSV text."""
    ensure_building_access(member, building_id)
    imported = MemberService(client).import_csv(building_id, payload.csv_data)
    return {"members": imported, "count": len(imported)}


@router.delete("")
def clear_members(
    building_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Remove every member of a building."""
    ensure_building_access(member, building_id)
    count = MemberService(client).clear_building(building_id)
    return {"count": count}


@router.get("/{member_id}")
def get_member(
    building_id: str,
    member_id: str,
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one member."""
    ensure_building_access(member, building_id)
    return {"member": _member_in_building(MemberService(client), building_id, member_id)}


@router.patch("/{member_id}")
def update_member(
    building_id: str,
    member_id: str,
    payload: MemberUpdate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update a member."""
    ensure_building_access(member, building_id)
    service = MemberService(client)
    _member_in_building(service, building_id, member_id)
    updated = service.update(member_id, payload.model_dump(exclude_unset=True))
    return {"member": updated}


@router.delete("/{member_id}")
def delete_member(
    building_id: str,
    member_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete a member."""
    ensure_building_access(member, building_id)
    service = MemberService(client)
    _member_in_building(service, building_id, member_id)
    service.delete(member_id)
    return {"success": True}
