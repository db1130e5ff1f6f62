"""Vote results and participation progress."""

from __future__ import annotations

from typing import Any

from svj.services.common import SupabaseService, group_by
from svj.utils.errors import VoteNotFoundError
from supabase import Client


def compute_results(
    vote: dict[str, Any],
    user_votes: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Count answers per question option.

    ``total_votes`` is the number of answer rows for the question; an option
    is counted once per row whose ``option_ids`` contains it.
    """
    rows_by_question = group_by(
        [row for row in user_votes if str(row["vote_id"]) == str(vote["id"])],
        "question_id",
    )

    results: list[dict[str, Any]] = []
    for question in vote.get("questions") or []:
        responses = rows_by_question.get(str(question["id"]), [])
        options = [
            {
                "id": option["id"],
                "text": option["text"],
                "count": sum(
                    1
                    for response in responses
                    if str(option["id"]) in {str(value) for value in response["option_ids"] or []}
                ),
            }
            for option in question.get("options") or []
        ]
        results.append(
            {
                "question_id": question["id"],
                "question": question["question"],
                "type": question.get("type", "single"),
                "options": options,
                "total_votes": len(responses),
            }
        )
    return results


def compute_progress(
    members: list[dict[str, Any]],
    user_votes: list[dict[str, Any]],
    vote_id: str,
) -> dict[str, Any]:
    """Split members into voted and pending for one vote."""
    voted_ids = {
        str(row["member_id"]) for row in user_votes if str(row["vote_id"]) == str(vote_id)
    }
    voted = [member for member in members if str(member["id"]) in voted_ids]
    pending = [member for member in members if str(member["id"]) not in voted_ids]

    total = len(members)
    rate = len(voted) / total * 100 if total else 0
    return {
        "total_members": total,
        "voted_members": len(voted),
        "pending_members": len(pending),
        "participation_rate": rate,
        "voted": voted,
        "pending": pending,
    }


class TallyService:
    """Fetch vote data and project it into results and progress."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _vote(self, vote_id: str) -> dict[str, Any]:
        return self.db.select_one("votes", {"id": vote_id}, not_found_error=VoteNotFoundError())

    def _user_votes(self, vote_id: str) -> list[dict[str, Any]]:
        return self.db.select_many("user_votes", filters={"vote_id": vote_id})

    def results(self, vote_id: str) -> list[dict[str, Any]]:
        """Return per-question option counts for a vote."""
        vote = self._vote(vote_id)
        return compute_results(vote, self._user_votes(vote_id))

    def progress(self, vote_id: str) -> dict[str, Any]:
        """Return participation statistics over the building's active members."""
        vote = self._vote(vote_id)
        members = self.db.select_many(
            "members",
            filters={"building_id": vote["building_id"], "is_active": True},
            order_by="unit_number",
        )
        return compute_progress(members, self._user_votes(vote_id), vote_id)
