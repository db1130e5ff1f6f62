"""Voting-link resolution and ballot submission.

Both operations re-run the same link checks so a resolve result is never
trusted by a later submit:

1. an active link with the exact token exists,
2. the link is not past ``expires_at``,
3. the vote behind it is ``active``.

Submission then refuses members that already have any recorded answer for the
vote and hands the write to the ``record_email_vote`` Postgres function, which
consumes the link and inserts the answers in one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from svj.services.common import SupabaseService
from svj.services.link_service import LINKS_TABLE
from svj.utils.errors import (
    AlreadyVotedError,
    AppError,
    InvalidInputError,
    LinkExpiredError,
    LinkInvalidError,
    MemberNotFoundError,
    VoteNotActiveError,
    VoteNotFoundError,
)
from svj.utils.time import now_utc, parse_timestamp
from supabase import Client

logger = logging.getLogger(__name__)

SCREEN_STATES: dict[str, tuple[str, str]] = {
    "LINK_INVALID": ("invalid", "error"),
    "LINK_EXPIRED": ("expired", "error"),
    "VOTE_NOT_ACTIVE": ("not_active", "info"),
}


def check_link(
    link: dict[str, Any] | None,
    vote: dict[str, Any] | None,
    now: datetime,
) -> None:
    """Raise the first failing link precondition, in a fixed order."""
    if not link or not link.get("is_active"):
        raise LinkInvalidError()
    if now > parse_timestamp(link["expires_at"]):
        raise LinkExpiredError()
    if vote is None:
        raise VoteNotFoundError()
    if vote.get("status") != "active":
        raise VoteNotActiveError()


def voting_screen(resolve: Callable[[], dict[str, Any]]) -> dict[str, Any]:
    """Describe what the public voting page shows for a resolve attempt.

    Already-voted and not-yet-active are informational; invalid and expired
    links are errors.
    """
    try:
        data = resolve()
    except AppError as exc:
        state, severity = SCREEN_STATES.get(exc.code, ("invalid", "error"))
        return {"state": state, "severity": severity, "message": exc.message}

    if data.get("hasVoted"):
        return {
            "state": "already_voted",
            "severity": "info",
            "message": "You have already voted",
            **data,
        }
    return {"state": "ballot", "severity": "info", "message": "", **data}


class VotingService:
    """Token-based ballot access for members without a session."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _load_link(self, token: str, now: datetime) -> tuple[dict[str, Any], dict[str, Any]]:
        if not token or not token.strip():
            raise LinkInvalidError()
        link = self.db.find_one(LINKS_TABLE, {"token": token.strip(), "is_active": True})
        vote = None
        if link is not None:
            vote = self.db.find_one("votes", {"id": link["vote_id"]})
        check_link(link, vote, now)
        return link, vote  # type: ignore[return-value]

    def has_voted(self, vote_id: str, member_id: str) -> bool:
        """Return whether the member has any recorded answer for the vote."""
        return self.db.exists("user_votes", {"vote_id": vote_id, "member_id": member_id})

    def resolve(self, token: str, now: datetime | None = None) -> dict[str, Any]:
        """Validate a token and return the ballot it grants access to."""
        moment = now or now_utc()
        link, vote = self._load_link(token, moment)

        member = self.db.select_one(
            "members",
            {"id": link["member_id"]},
            not_found_error=MemberNotFoundError(),
        )
        building = self.db.find_one("buildings", {"id": vote["building_id"]})
        has_voted = self.has_voted(str(link["vote_id"]), str(link["member_id"]))

        return {
            "vote": vote,
            "member": member,
            "building": building,
            "hasVoted": has_voted,
            "linkId": link["id"],
        }

    def submit(
        self,
        token: str,
        answers: list[dict[str, Any]],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Record a member's answers and consume the link."""
        moment = now or now_utc()
        link, vote = self._load_link(token, moment)
        vote_id = str(link["vote_id"])
        member_id = str(link["member_id"])

        if self.has_voted(vote_id, member_id):
            raise AlreadyVotedError()

        member = self.db.select_one(
            "members",
            {"id": member_id},
            not_found_error=MemberNotFoundError(),
        )

        rows = self.db.rpc(
            "record_email_vote",
            {
                "p_link_id": link["id"],
                "p_used_at": moment.isoformat(),
                "p_answers": [
                    {
                        "question_id": answer["question_id"],
                        "option_ids": list(answer["option_ids"]),
                    }
                    for answer in answers
                ],
            },
        )
        payload = rows[0] if isinstance(rows, list) and rows else rows
        if not payload or not payload.get("success"):
            self._raise_for_reason(str((payload or {}).get("reason") or ""))

        try:
            self.db.rpc("increment_votes_received", {"vote_id": vote_id})
        except AppError as exc:
            logger.warning("Failed to update voting session for %s: %s", vote_id, exc.message)

        logger.info("Recorded %s answers for vote %s", len(answers), vote_id)
        return {"vote": vote, "member": member}

    @staticmethod
    def _raise_for_reason(reason: str) -> None:
        if reason == "link_inactive":
            raise LinkInvalidError()
        if reason == "already_voted":
            raise AlreadyVotedError()
        raise InvalidInputError("Failed to record vote")
