"""Personalized voting link issuance."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any

from svj.config import settings
from svj.services.common import SupabaseService
from svj.utils.errors import AppError, IssuanceFailedError
from svj.utils.time import epoch_millis, now_utc
from supabase import Client

LINKS_TABLE = "personalized_voting_links"
logger = logging.getLogger(__name__)


def generate_token(now: datetime | None = None) -> str:
    """Return an unguessable token with a millisecond timestamp suffix."""
    moment = now or now_utc()
    return f"{uuid.uuid4()}-{epoch_millis(moment)}"


class LinkService:
    """Mint single-use, time-boxed voting links."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def issue_link(
        self,
        vote_id: str,
        member_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Persist a fresh active link for one (vote, member) pair.

        Earlier unconsumed links for the same pair stay valid.
        """
        moment = now or now_utc()
        expires_at = moment + timedelta(days=settings.voting_link_ttl_days)
        payload = {
            "vote_id": vote_id,
            "member_id": member_id,
            "token": generate_token(moment),
            "is_active": True,
            "expires_at": expires_at.isoformat(),
            "used_at": None,
        }
        try:
            link = self.db.insert_one(LINKS_TABLE, payload)
        except AppError as exc:
            logger.warning("Voting link insert failed for member %s: %s", member_id, exc.message)
            raise IssuanceFailedError() from exc

        logger.debug("Issued voting link %s for vote %s", link.get("id"), vote_id)
        return link

    def links_for_member(self, vote_id: str, member_id: str) -> list[dict[str, Any]]:
        """Return every link ever issued to a member for a vote."""
        return self.db.select_many(
            LINKS_TABLE,
            filters={"vote_id": vote_id, "member_id": member_id},
            order_by="created_at",
            descending=True,
        )
