"""Serverless-style voting route tests."""

from __future__ import annotations

from datetime import timedelta

from svj.utils.time import now_utc
from tests.fakes import add_link

BALLOT = {
    "answers": [
        {"questionId": "q1", "optionIds": ["yes"]},
        {"questionId": "q2", "optionIds": ["a", "c"]},
    ]
}


def _link(db, scenario, token: str = "route-token", member_index: int = 1, **kwargs):
    kwargs.setdefault("expires_at", now_utc() + timedelta(days=30))
    return add_link(
        db,
        scenario["vote"]["id"],
        scenario["members"][member_index]["id"],
        token,
        **kwargs,
    )


def test_get_voting_data_returns_ballot(api, db, scenario) -> None:
    """Valid tokens return the vote, member, building and voted flag."""
    _link(db, scenario)

    response = api.post("/functions/v1/get-voting-data", json={"token": "route-token"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["vote"]["id"] == scenario["vote"]["id"]
    assert payload["member"]["email"] == "member2@example.cz"
    assert payload["building"]["name"] == scenario["building"]["name"]
    assert payload["hasVoted"] is False


def test_get_voting_data_accepts_query_token(api, db, scenario) -> None:
    """The token can also be passed as a query parameter."""
    _link(db, scenario)

    response = api.get("/functions/v1/get-voting-data", params={"token": "route-token"})

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_get_voting_data_status_codes(api, db, scenario) -> None:
    """Invalid, expired and inactive links keep distinct status codes."""
    _link(db, scenario, token="expired", expires_at=now_utc() - timedelta(seconds=1))
    _link(db, scenario, token="valid")

    missing = api.post("/functions/v1/get-voting-data", json={})
    unknown = api.post("/functions/v1/get-voting-data", json={"token": "nope"})
    expired = api.post("/functions/v1/get-voting-data", json={"token": "expired"})
    db.rows("votes", id=scenario["vote"]["id"])[0]["status"] = "completed"
    inactive = api.post("/functions/v1/get-voting-data", json={"token": "valid"})

    assert missing.status_code == 400
    assert (unknown.status_code, unknown.json()["code"]) == (404, "LINK_INVALID")
    assert (expired.status_code, expired.json()["code"]) == (410, "LINK_EXPIRED")
    assert (inactive.status_code, inactive.json()["code"]) == (400, "VOTE_NOT_ACTIVE")


def test_process_email_vote_records_once(api, db, scenario) -> None:
    """The first submission succeeds; any later one is refused with 400."""
    _link(db, scenario)
    _link(db, scenario, token="spare-token")

    first = api.post("/functions/v1/process-email-vote", json={"token": "route-token", **BALLOT})
    reused = api.post("/functions/v1/process-email-vote", json={"token": "route-token", **BALLOT})
    spare = api.post("/functions/v1/process-email-vote", json={"token": "spare-token", **BALLOT})

    assert first.status_code == 200
    assert first.json()["message"] == "Vote recorded successfully"
    assert (reused.status_code, reused.json()["code"]) == (400, "LINK_INVALID")
    assert (spare.status_code, spare.json()["code"]) == (400, "ALREADY_VOTED")
    assert len(db.rows("user_votes")) == 2


def test_process_email_vote_rejects_empty_ballot(api, db, scenario) -> None:
    """At least one answer is required."""
    _link(db, scenario)

    response = api.post(
        "/functions/v1/process-email-vote",
        json={"token": "route-token", "answers": []},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_INPUT"
    assert db.rows("user_votes") == []


def test_store_outage_is_reported_as_unavailable(api, db, scenario) -> None:
    """Transport failures answer 503 so callers can fall back."""
    db.unavailable.add("personalized_voting_links")

    response = api.post("/functions/v1/get-voting-data", json={"token": "route-token"})

    assert response.status_code == 503
    assert response.json()["code"] == "STORE_UNAVAILABLE"


def test_send_voting_email_route(api, db, scenario, mailer) -> None:
    """Managers can email a single member a link."""
    member = scenario["members"][3]

    response = api.post(
        "/functions/v1/send-voting-email",
        json={"voteId": scenario["vote"]["id"], "memberId": member["id"]},
    )

    assert response.status_code == 200
    assert response.json()["votingLink"].endswith(
        db.rows("personalized_voting_links", member_id=member["id"])[0]["token"]
    )
    assert mailer.sent[0]["to"] == member["email"]


def test_send_voting_email_failure_is_400(api, db, scenario, mailer) -> None:
    """Delivery failures are reported with status 400."""
    member = scenario["members"][3]
    mailer.fail_for.add(member["email"])

    response = api.post(
        "/functions/v1/send-voting-email",
        json={"voteId": scenario["vote"]["id"], "memberId": member["id"]},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "SEND_FAILED"


def test_distribute_route_sends_to_all_active_members(api, db, scenario, mailer) -> None:
    """Distribution without ids reaches every active member."""
    response = api.post(
        "/functions/v1/distribute-voting-emails",
        json={"voteId": scenario["vote"]["id"]},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["totalMembers"] == 5
    assert payload["emailsSent"] == 5
    assert len(mailer.sent) == 5


def test_distribution_requires_manager(api, db, scenario, mailer) -> None:
    """Ordinary members cannot send voting emails."""
    api.login.email = "member2@example.cz"

    response = api.post(
        "/functions/v1/distribute-voting-emails",
        json={"voteId": scenario["vote"]["id"]},
    )

    assert response.status_code == 403
    assert mailer.sent == []
