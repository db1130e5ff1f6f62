"""Ballot creation, lifecycle transitions and in-app voting."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from svj.services.common import SupabaseService
from svj.services.distribution_service import DistributionService
from svj.services.snapshot import SNAPSHOT_VOTES, with_snapshot_fallback
from svj.utils.errors import (
    AlreadyVotedError,
    AppError,
    ConflictError,
    InvalidInputError,
    VoteNotActiveError,
    VoteNotFoundError,
)
from svj.utils.time import now_utc, parse_timestamp
from supabase import Client

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "draft": {"active", "cancelled"},
    "active": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}
logger = logging.getLogger(__name__)


def clean_questions(questions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop blank questions and options and assign missing ids.

    Every remaining question must keep at least two options.
    """
    cleaned: list[dict[str, Any]] = []
    for question in questions:
        text = str(question.get("question") or "").strip()
        if not text:
            continue

        options = []
        for option in question.get("options") or []:
            option_text = str(option.get("text") or "").strip()
            if option_text:
                options.append({"id": str(option.get("id") or uuid.uuid4()), "text": option_text})
        if len(options) < 2:
            raise InvalidInputError(f"Question '{text}' needs at least two options")

        cleaned.append(
            {
                "id": str(question.get("id") or uuid.uuid4()),
                "question": text,
                "type": question.get("type") or "single",
                "options": options,
            }
        )

    if not cleaned:
        raise InvalidInputError("A vote needs at least one question")
    return cleaned


class VoteService:
    """Vote management for administrators and signed-in members."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_votes(self, building_id: str, status: str | None = None) -> list[dict[str, Any]]:
        """Return a building's votes newest first."""
        filters: dict[str, Any] = {"building_id": building_id}
        if status:
            filters["status"] = status
        return with_snapshot_fallback(
            lambda: self.db.select_many(
                "votes",
                filters=filters,
                order_by="created_at",
                descending=True,
            ),
            SNAPSHOT_VOTES,
            "votes",
        )

    def get(self, vote_id: str) -> dict[str, Any]:
        """Return one vote."""
        return self.db.select_one("votes", {"id": vote_id}, not_found_error=VoteNotFoundError())

    def create(self, payload: dict[str, Any], created_by: str) -> dict[str, Any]:
        """Create a draft vote."""
        data = dict(payload)
        data["questions"] = clean_questions(data.get("questions") or [])
        data["status"] = "draft"
        data["created_by"] = created_by
        vote = self.db.insert_one("votes", data)
        logger.info("Created vote %s in building %s", vote.get("id"), data.get("building_id"))
        return vote

    def update(self, vote_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Patch a vote; questions can only change while it is a draft."""
        current = self.get(vote_id)
        data = dict(payload)
        start = data.get("start_date") or current.get("start_date")
        end = data.get("end_date") or current.get("end_date")
        if start and end and parse_timestamp(end) <= parse_timestamp(start):
            raise InvalidInputError("end_date must be after start_date")
        if "questions" in data:
            if current["status"] != "draft":
                raise ConflictError("Questions can only be edited on a draft vote")
            data["questions"] = clean_questions(data["questions"] or [])
        data["updated_at"] = now_utc().isoformat()
        rows = self.db.update("votes", {"id": vote_id}, data)
        return rows[0] if rows else {**current, **data}

    def transition(self, vote_id: str, status: str) -> dict[str, Any]:
        """Move a vote to ``status`` when the lifecycle allows it."""
        current = self.get(vote_id)
        if status not in ALLOWED_TRANSITIONS.get(current["status"], set()):
            raise ConflictError(
                f"Cannot change vote from {current['status']} to {status}",
                code="INVALID_TRANSITION",
            )
        rows = self.db.update(
            "votes",
            {"id": vote_id},
            {"status": status, "updated_at": now_utc().isoformat()},
        )
        return rows[0] if rows else {**current, "status": status}

    def activate(self, vote_id: str, distribution: DistributionService) -> dict[str, Any]:
        """Open a draft vote and email every active member a voting link.

        Distribution problems are logged; the vote stays active.
        """
        vote = self.transition(vote_id, "active")
        try:
            outcome = distribution.distribute(vote_id)
        except AppError:
            logger.exception("Failed to send voting emails for vote %s", vote_id)
            outcome = None
        return {"vote": vote, "distribution": outcome}

    def user_votes(self, vote_id: str) -> list[dict[str, Any]]:
        """Return every recorded answer row of a vote."""
        return self.db.select_many(
            "user_votes",
            filters={"vote_id": vote_id},
            order_by="created_at",
        )

    def has_voted(self, vote_id: str, member_id: str) -> bool:
        """Return whether a member recorded any answer for a vote."""
        return self.db.exists("user_votes", {"vote_id": vote_id, "member_id": member_id})

    def submit_member_vote(
        self,
        vote_id: str,
        member_id: str,
        answers: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Record answers for a signed-in member voting inside the app."""
        vote = self.get(vote_id)
        if vote["status"] != "active":
            raise VoteNotActiveError()
        if self.has_voted(vote_id, member_id):
            raise AlreadyVotedError()

        rows = self.db.insert_many(
            "user_votes",
            [
                {
                    "vote_id": vote_id,
                    "member_id": member_id,
                    "question_id": answer["question_id"],
                    "option_ids": list(answer["option_ids"]),
                }
                for answer in answers
            ],
        )
        try:
            self.db.rpc("increment_votes_received", {"vote_id": vote_id})
        except AppError as exc:
            logger.warning("Failed to update voting session for %s: %s", vote_id, exc.message)
        return rows
