"""Vote endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from svj.dependencies import (
    ensure_building_access,
    get_current_member,
    get_db_client,
    get_mailer,
    require_manager,
)
from svj.schemas.vote import VoteCreate, VoteUpdate
from svj.schemas.voting import BallotSubmitRequest, answers_to_rows
from svj.services.distribution_service import DistributionService
from svj.services.email_service import EmailService
from svj.services.link_service import LinkService
from svj.services.mailer import Mailer
from svj.services.tally_service import TallyService
from svj.services.vote_service import VoteService
from svj.utils.errors import ForbiddenError, VoteNotFoundError
from supabase import Client

router = APIRouter()


def _vote_in_building(service: VoteService, building_id: str, vote_id: str) -> dict:
    vote = service.get(vote_id)
    if str(vote["building_id"]) != str(building_id):
        raise VoteNotFoundError()
    return vote


@router.get("")
def list_votes(
    building_id: str,
    status: str | None = Query(default=None),
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """List a building's votes."""
    ensure_building_access(member, building_id)
    return {"votes": VoteService(client).list_votes(building_id, status)}


@router.post("")
def create_vote(
    building_id: str,
    payload: VoteCreate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Create a draft vote."""
    ensure_building_access(member, building_id)
    vote = VoteService(client).create(
        {**payload.model_dump(mode="json"), "building_id": building_id},
        created_by=str(member["id"]),
    )
    return {"vote": vote}


@router.get("/{vote_id}")
def get_vote(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return a vote with the current member's voting status."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    vote = _vote_in_building(service, building_id, vote_id)
    return {"vote": vote, "has_voted": service.has_voted(vote_id, str(member["id"]))}


@router.patch("/{vote_id}")
def update_vote(
    building_id: str,
    vote_id: str,
    payload: VoteUpdate,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update a vote."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    vote = service.update(vote_id, payload.model_dump(mode="json", exclude_unset=True))
    return {"vote": vote}


@router.post("/{vote_id}/activate")
def activate_vote(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Open a draft vote and email voting links to every active member."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    return service.activate(vote_id, DistributionService(client, mailer=mailer))


@router.post("/{vote_id}/complete")
def complete_vote(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Close an active vote."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    return {"vote": service.transition(vote_id, "completed")}


@router.post("/{vote_id}/cancel")
def cancel_vote(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Cancel a draft or active vote."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    return {"vote": service.transition(vote_id, "cancelled")}


@router.post("/{vote_id}/reminders")
def send_reminders(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Re-send voting links to members who have not voted."""
    ensure_building_access(member, building_id)
    _vote_in_building(VoteService(client), building_id, vote_id)
    return DistributionService(client, mailer=mailer).send_reminders(vote_id)


@router.get("/{vote_id}/results")
def vote_results(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return per-question option counts."""
    ensure_building_access(member, building_id)
    _vote_in_building(VoteService(client), building_id, vote_id)
    return {"results": TallyService(client).results(vote_id)}


@router.get("/{vote_id}/progress")
def vote_progress(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return participation statistics with voted and pending members."""
    ensure_building_access(member, building_id)
    _vote_in_building(VoteService(client), building_id, vote_id)
    return {"progress": TallyService(client).progress(vote_id)}


@router.get("/{vote_id}/user-votes")
def list_user_votes(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return raw answer rows of a vote."""
    ensure_building_access(member, building_id)
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    return {"user_votes": service.user_votes(vote_id)}


@router.get("/{vote_id}/delivery-logs")
def list_delivery_logs(
    building_id: str,
    vote_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Return the email delivery audit trail of a vote."""
    ensure_building_access(member, building_id)
    _vote_in_building(VoteService(client), building_id, vote_id)
    return {"logs": EmailService(client, mailer=mailer).delivery_logs(vote_id)}


@router.get("/{vote_id}/members/{member_id}/links")
def list_member_links(
    building_id: str,
    vote_id: str,
    member_id: str,
    member: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return every link issued to one member for a vote."""
    ensure_building_access(member, building_id)
    _vote_in_building(VoteService(client), building_id, vote_id)
    return {"links": LinkService(client).links_for_member(vote_id, member_id)}


@router.post("/{vote_id}/ballot")
def submit_ballot(
    building_id: str,
    vote_id: str,
    payload: BallotSubmitRequest,
    member: dict[str, Any] = Depends(get_current_member),
    client: Client = Depends(get_db_client),
) -> dict:
    """Record the signed-in member's answers."""
    if str(member.get("building_id")) != str(building_id):
        raise ForbiddenError("You can only vote in your own building")
    service = VoteService(client)
    _vote_in_building(service, building_id, vote_id)
    rows = service.submit_member_vote(vote_id, str(member["id"]), answers_to_rows(payload.answers))
    return {"success": True, "user_votes": rows}
