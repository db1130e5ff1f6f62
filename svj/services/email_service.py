"""Personalized voting email delivery."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from svj.config import settings
from svj.services.common import SupabaseService
from svj.services.link_service import LinkService
from svj.services.mailer import BrevoMailer, DeliveryResult, Mailer
from svj.services.template_service import TemplateService, render_template
from svj.utils.errors import AppError, MemberNotFoundError, SendFailedError, VoteNotFoundError
from svj.utils.time import format_cs_date, now_utc
from supabase import Client

DELIVERY_LOGS_TABLE = "email_delivery_logs"
logger = logging.getLogger(__name__)


def member_full_name(member: dict[str, Any]) -> str:
    """Return ``first last`` for a member row."""
    return f"{member.get('first_name', '')} {member.get('last_name', '')}".strip()


def build_variables(
    vote: dict[str, Any],
    member: dict[str, Any],
    building: dict[str, Any] | None,
    voting_link: str,
) -> dict[str, str]:
    """Return the fixed variable set available to voting templates."""
    return {
        "recipient_name": member_full_name(member),
        "vote_title": vote.get("title") or "",
        "vote_description": vote.get("description") or "",
        "vote_start_date": format_cs_date(vote.get("start_date")),
        "vote_end_date": format_cs_date(vote.get("end_date")),
        "voting_link": voting_link,
        "building_name": (building or {}).get("name") or "",
    }


class EmailService:
    """Issue a link, render a template and send it to one member."""

    def __init__(self, client: Client, mailer: Mailer | None = None) -> None:
        self.db = SupabaseService(client)
        self.links = LinkService(client)
        self.templates = TemplateService(client)
        self.mailer = mailer or BrevoMailer()

    def load_vote(self, vote_id: str) -> tuple[dict[str, Any], dict[str, Any] | None]:
        """Return a vote and its building."""
        vote = self.db.select_one("votes", {"id": vote_id}, not_found_error=VoteNotFoundError())
        building = self.db.find_one("buildings", {"id": vote["building_id"]})
        return vote, building

    def send_voting_email(
        self,
        vote_id: str,
        member_id: str,
        template_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Send one member a fresh voting link."""
        vote, building = self.load_vote(vote_id)
        member = self.db.select_one(
            "members",
            {"id": member_id},
            not_found_error=MemberNotFoundError(),
        )
        template = self.templates.resolve(template_id, category="voting")
        return self.deliver(vote, building, member, template, now=now)

    def deliver(
        self,
        vote: dict[str, Any],
        building: dict[str, Any] | None,
        member: dict[str, Any],
        template: dict[str, Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Issue a link for ``member`` and mail it using ``template``."""
        moment = now or now_utc()
        link = self.links.issue_link(str(vote["id"]), str(member["id"]), now=moment)
        voting_link = settings.voting_link_url(link["token"])

        variables = build_variables(vote, member, building, voting_link)
        subject = render_template(template["subject"], variables)
        content = render_template(template["content"], variables, escape=True)

        result = self.mailer.send_email(
            from_addr=settings.from_email,
            from_name=settings.from_name,
            to_addr=member["email"],
            to_name=member_full_name(member),
            subject=subject,
            html_body=content,
        )
        self._log_delivery(vote, member, template, subject, result, moment)

        if not result.success:
            raise SendFailedError(result.error or "Email delivery failed")

        return {
            "success": True,
            "messageId": result.message_id,
            "votingLink": voting_link,
        }

    def _log_delivery(
        self,
        vote: dict[str, Any],
        member: dict[str, Any],
        template: dict[str, Any],
        subject: str,
        result: DeliveryResult,
        moment: datetime,
    ) -> None:
        try:
            self.db.insert_one(
                DELIVERY_LOGS_TABLE,
                {
                    "vote_id": vote["id"],
                    "member_id": member["id"],
                    "template_id": template["id"],
                    "recipient_email": member["email"],
                    "subject": subject,
                    "status": "sent" if result.success else "failed",
                    "error_message": None if result.success else result.error,
                    "sent_at": moment.isoformat() if result.success else None,
                },
            )
        except AppError as exc:
            logger.warning("Failed to log email delivery to %s: %s", member["email"], exc.message)

    def delivery_logs(self, vote_id: str) -> list[dict[str, Any]]:
        """Return the delivery audit trail of a vote, newest first."""
        return self.db.select_many(
            DELIVERY_LOGS_TABLE,
            filters={"vote_id": vote_id},
            order_by="created_at",
            descending=True,
        )
