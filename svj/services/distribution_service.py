"""Fan-out of voting emails across a building's members."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from svj.services.common import SupabaseService
from svj.services.email_service import EmailService
from svj.services.mailer import Mailer
from svj.services.tally_service import compute_progress
from svj.services.template_service import TemplateService
from svj.utils.errors import AppError
from svj.utils.time import now_utc
from supabase import Client

SESSIONS_TABLE = "voting_sessions"
logger = logging.getLogger(__name__)


class DistributionService:
    """Send personalized links to many members with per-member isolation."""

    def __init__(self, client: Client, mailer: Mailer | None = None) -> None:
        self.db = SupabaseService(client)
        self.email = EmailService(client, mailer=mailer)
        self.templates = TemplateService(client)

    def _target_members(
        self,
        building_id: str,
        member_ids: list[str] | None,
    ) -> list[dict[str, Any]]:
        filters = {"building_id": building_id, "is_active": True}
        if member_ids:
            return self.db.select_in("members", "id", member_ids, filters=filters)
        return self.db.select_many("members", filters=filters, order_by="unit_number")

    def distribute(
        self,
        vote_id: str,
        member_ids: list[str] | None = None,
        template_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Email every target member a fresh link; one failure never stops the rest."""
        moment = now or now_utc()
        vote, building = self.email.load_vote(vote_id)
        members = self._target_members(str(vote["building_id"]), member_ids)
        template = self.templates.resolve(template_id, category="voting")

        results: list[dict[str, Any]] = []
        for member in members:
            entry: dict[str, Any] = {"memberId": member["id"], "email": member["email"]}
            try:
                sent = self.email.deliver(vote, building, member, template, now=moment)
            except (AppError, httpx.HTTPError) as exc:
                reason = exc.message if isinstance(exc, AppError) else str(exc)
                logger.warning("Voting email to %s failed: %s", member["email"], reason)
                results.append({**entry, "success": False, "error": reason})
                continue
            results.append(
                {**entry, "success": True, "error": None, "votingLink": sent["votingLink"]}
            )

        sent_count = sum(1 for result in results if result["success"])
        self._record_session(vote_id, len(members), sent_count)
        logger.info(
            "Distributed vote %s: %s of %s emails sent",
            vote_id,
            sent_count,
            len(members),
        )
        return {
            "success": True,
            "totalMembers": len(members),
            "emailsSent": sent_count,
            "results": results,
        }

    def send_reminders(self, vote_id: str, now: datetime | None = None) -> dict[str, Any]:
        """Re-send links to members who have not voted yet."""
        moment = now or now_utc()
        vote, _ = self.email.load_vote(vote_id)
        members = self._target_members(str(vote["building_id"]), None)
        user_votes = self.db.select_many("user_votes", filters={"vote_id": vote_id})
        pending_ids = [
            str(member["id"]) for member in compute_progress(members, user_votes, vote_id)["pending"]
        ]

        outcome: dict[str, Any] = {
            "success": True,
            "totalMembers": 0,
            "emailsSent": 0,
            "results": [],
        }
        if pending_ids:
            reminder = self.templates.default_for_category("reminder")
            template_id = reminder["id"] if reminder else None
            outcome = self.distribute(vote_id, pending_ids, template_id, now=moment)

        try:
            self.db.update(
                SESSIONS_TABLE,
                {"vote_id": vote_id},
                {"last_reminder_sent": moment.isoformat()},
            )
        except AppError as exc:
            logger.warning("Failed to stamp reminder time for %s: %s", vote_id, exc.message)
        return outcome

    def _record_session(self, vote_id: str, total_members: int, emails_sent: int) -> None:
        try:
            session = self.db.find_one(SESSIONS_TABLE, {"vote_id": vote_id})
            if session is None:
                self.db.insert_one(
                    SESSIONS_TABLE,
                    {
                        "vote_id": vote_id,
                        "total_members": total_members,
                        "emails_sent": emails_sent,
                        "votes_received": 0,
                    },
                )
            else:
                self.db.update(
                    SESSIONS_TABLE,
                    {"vote_id": vote_id},
                    {"emails_sent": int(session.get("emails_sent") or 0) + emails_sent},
                )
        except AppError as exc:
            logger.warning("Failed to update voting session for %s: %s", vote_id, exc.message)
