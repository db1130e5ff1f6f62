"""Voting client with a serverless primary path and a direct-store fallback.

Both paths end in :class:`~svj.services.voting_service.VotingService`, so the
link checks are identical whichever one serves the request. Domain errors
returned by the primary path are raised as-is; only an unreachable or failing
(5xx) primary path is retried directly against the store.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from svj.config import settings
from svj.services.voting_service import VotingService
from svj.utils.errors import error_from_payload
from supabase import Client

logger = logging.getLogger(__name__)


class PrimaryPathUnavailable(Exception):
    """The serverless route could not serve the request."""


class VotingClient:
    """Call the voting routes, falling back to direct store access."""

    def __init__(
        self,
        client: Client,
        http_client: httpx.Client | None = None,
        functions_url: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self.voting = VotingService(client)
        self.functions_url = (functions_url or settings.functions_url).rstrip("/")
        self.api_key = api_key or settings.supabase_anon_key
        self.http = http_client or httpx.Client(
            timeout=httpx.Timeout(max(1, settings.functions_timeout_seconds)),
        )

    def invoke(
        self,
        name: str,
        body: dict[str, Any],
        access_token: str | None = None,
    ) -> dict[str, Any]:
        """POST a JSON body to one serverless route and return its JSON reply.

        ``access_token`` is the caller's session JWT for routes that require a
        signed-in user; public routes authenticate with the anon key alone.
        """
        try:
            response = self.http.post(
                f"{self.functions_url}/{name}",
                json=body,
                headers={
                    "Authorization": f"Bearer {access_token or self.api_key}",
                    "apikey": self.api_key,
                },
            )
        except httpx.HTTPError as exc:
            raise PrimaryPathUnavailable(str(exc)) from exc

        if response.status_code >= 500:
            raise PrimaryPathUnavailable(f"{name} returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise PrimaryPathUnavailable(f"{name} returned a non-JSON body") from exc

        if response.is_error:
            raise error_from_payload(payload, response.status_code)
        return payload

    def get_voting_data(self, token: str) -> dict[str, Any]:
        """Resolve a voting token."""
        try:
            return self.invoke("get-voting-data", {"token": token})
        except PrimaryPathUnavailable as exc:
            logger.warning("get-voting-data failed, falling back to direct query: %s", exc)
        return {"success": True, **self.voting.resolve(token)}

    def submit_vote(self, token: str, answers: list[dict[str, Any]]) -> dict[str, Any]:
        """Submit answers for a voting token.

        ``answers`` items carry ``question_id`` and ``option_ids``.
        """
        body = {
            "token": token,
            "answers": [
                {"questionId": answer["question_id"], "optionIds": list(answer["option_ids"])}
                for answer in answers
            ],
        }
        try:
            return self.invoke("process-email-vote", body)
        except PrimaryPathUnavailable as exc:
            logger.warning("process-email-vote failed, falling back to direct write: %s", exc)
        result = self.voting.submit(token, answers)
        return {"success": True, "message": "Vote recorded successfully", **result}

    def send_voting_email(
        self,
        vote_id: str,
        member_id: str,
        access_token: str,
        template_id: str | None = None,
    ) -> dict[str, Any]:
        """Ask the serverless layer to email one member a link, as the signed-in manager."""
        return self.invoke(
            "send-voting-email",
            {"voteId": vote_id, "memberId": member_id, "templateId": template_id},
            access_token=access_token,
        )

    def distribute_voting_emails(
        self,
        vote_id: str,
        access_token: str,
        member_ids: list[str] | None = None,
        template_id: str | None = None,
    ) -> dict[str, Any]:
        """Ask the serverless layer to email links to many members, as the signed-in manager."""
        return self.invoke(
            "distribute-voting-emails",
            {"voteId": vote_id, "memberIds": member_ids, "templateId": template_id},
            access_token=access_token,
        )
