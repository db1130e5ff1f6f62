"""Serverless-style voting endpoints (``/functions/v1/<name>``).

Status codes follow the public contract of each route: ``get-voting-data``
keeps 404/410/400 for invalid, expired and inactive links, the other routes
answer every domain failure with 400. Store outages stay 503 so callers can
fall back to direct access.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from svj.dependencies import get_db_client, get_mailer, require_manager
from svj.schemas.voting import (
    DistributeRequest,
    EmailVoteRequest,
    SendVotingEmailRequest,
    VotingDataRequest,
    answers_to_rows,
)
from svj.services.distribution_service import DistributionService
from svj.services.email_service import EmailService
from svj.services.mailer import Mailer
from svj.services.voting_service import VotingService
from svj.utils.errors import AppError, InvalidInputError, StoreUnavailableError
from supabase import Client

router = APIRouter()

RESOLVE_ERROR_CODES = {"LINK_INVALID", "LINK_EXPIRED", "VOTE_NOT_ACTIVE"}


def _as_route_error(exc: AppError, keep: set[str] | None = None) -> AppError:
    if isinstance(exc, StoreUnavailableError) or exc.code in (keep or set()):
        return exc
    return exc.with_status(400)


def _resolve(token: str | None, client: Client) -> dict:
    if not token:
        raise InvalidInputError("Token is required").with_status(400)
    try:
        data = VotingService(client).resolve(token)
    except AppError as exc:
        raise _as_route_error(exc, RESOLVE_ERROR_CODES) from None
    return {"success": True, **data}


@router.get("/get-voting-data")
def get_voting_data_query(
    token: str | None = Query(default=None),
    client: Client = Depends(get_db_client),
) -> dict:
    """Resolve a voting token passed in the query string."""
    return _resolve(token, client)


@router.post("/get-voting-data")
def get_voting_data(
    payload: VotingDataRequest | None = None,
    token: str | None = Query(default=None),
    client: Client = Depends(get_db_client),
) -> dict:
    """Resolve a voting token passed in the body (or query string)."""
    return _resolve((payload.token if payload else None) or token, client)


@router.post("/process-email-vote")
def process_email_vote(
    payload: EmailVoteRequest,
    client: Client = Depends(get_db_client),
) -> dict:
    """Record answers for a token and consume its link."""
    try:
        result = VotingService(client).submit(payload.token, answers_to_rows(payload.answers))
    except AppError as exc:
        raise _as_route_error(exc) from None
    return {"success": True, "message": "Vote recorded successfully", **result}


@router.post("/send-voting-email")
def send_voting_email(
    payload: SendVotingEmailRequest,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Email one member a fresh voting link."""
    service = EmailService(client, mailer=mailer)
    try:
        return service.send_voting_email(
            vote_id=payload.vote_id,
            member_id=payload.member_id,
            template_id=payload.template_id,
        )
    except AppError as exc:
        raise _as_route_error(exc) from None


@router.post("/distribute-voting-emails")
def distribute_voting_emails(
    payload: DistributeRequest,
    _: dict[str, Any] = Depends(require_manager),
    client: Client = Depends(get_db_client),
    mailer: Mailer = Depends(get_mailer),
) -> dict:
    """Email voting links to the selected (or all active) members."""
    service = DistributionService(client, mailer=mailer)
    try:
        return service.distribute(
            vote_id=payload.vote_id,
            member_ids=payload.member_ids,
            template_id=payload.template_id,
        )
    except AppError as exc:
        raise _as_route_error(exc) from None
