"""Voting link issuance tests."""

from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from svj.services.link_service import LinkService, generate_token
from svj.utils.errors import IssuanceFailedError
from svj.utils.time import epoch_millis, parse_timestamp
from tests.fakes import NOW


def test_generate_token_has_uuid_and_millisecond_suffix() -> None:
    """Tokens are a random UUID followed by the issue time in milliseconds."""
    token = generate_token(NOW)

    head, _, suffix = token.rpartition("-")
    assert str(uuid.UUID(head)) == head
    assert int(suffix) == epoch_millis(NOW)
    assert generate_token(NOW) != token


def test_issue_link_persists_active_link_with_ttl(db, scenario) -> None:
    """New links are active, unused and expire after thirty days."""
    vote_id = scenario["vote"]["id"]
    member_id = scenario["members"][0]["id"]

    link = LinkService(db).issue_link(vote_id, member_id, now=NOW)

    assert link["is_active"] is True
    assert link["used_at"] is None
    assert parse_timestamp(link["expires_at"]) == NOW + timedelta(days=30)
    assert db.rows("personalized_voting_links", token=link["token"])


def test_reissue_keeps_earlier_links_valid(db, scenario) -> None:
    """Issuing again adds a link; the older one stays active."""
    service = LinkService(db)
    vote_id = scenario["vote"]["id"]
    member_id = scenario["members"][0]["id"]

    first = service.issue_link(vote_id, member_id, now=NOW)
    second = service.issue_link(vote_id, member_id, now=NOW + timedelta(minutes=5))

    links = service.links_for_member(vote_id, member_id)
    assert [link["id"] for link in links] == [second["id"], first["id"]]
    assert all(link["is_active"] for link in links)


def test_issue_link_reports_storage_failure(db, scenario) -> None:
    """A failed insert surfaces as an issuance failure."""
    db.unavailable.add("personalized_voting_links")

    with pytest.raises(IssuanceFailedError):
        LinkService(db).issue_link(scenario["vote"]["id"], scenario["members"][0]["id"], now=NOW)
