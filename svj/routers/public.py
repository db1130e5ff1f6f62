"""Public voting page reached from an emailed link (no session)."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from svj.clients.voting_client import VotingClient
from svj.dependencies import get_voting_client
from svj.schemas.voting import BallotSubmitRequest, answers_to_rows
from svj.services.voting_service import voting_screen

router = APIRouter()


@router.get("/{token}")
def voting_page(
    token: str,
    voting: VotingClient = Depends(get_voting_client),
) -> dict:
    """Return the screen to show for a voting token."""
    return voting_screen(lambda: voting.get_voting_data(token))


@router.post("/{token}")
def submit_ballot(
    token: str,
    payload: BallotSubmitRequest,
    voting: VotingClient = Depends(get_voting_client),
) -> dict:
    """Submit the ballot; failures leave the link usable for a retry."""
    return voting.submit_vote(token, answers_to_rows(payload.answers))
