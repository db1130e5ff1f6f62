"""Voting email delivery and fan-out tests."""

from __future__ import annotations

import pytest

from svj.config import settings
from svj.services.distribution_service import DistributionService
from svj.services.email_service import EmailService, build_variables
from svj.utils.errors import SendFailedError, TemplateNotFoundError
from tests.fakes import NOW, StubMailer, seed_building


def test_build_variables_formats_czech_dates() -> None:
    """Template variables carry the member name and d. m. yyyy dates."""
    vote = {
        "title": "Oprava střechy",
        "description": None,
        "start_date": "2026-02-05T00:00:00Z",
        "end_date": "2026-03-20T10:00:00+00:00",
    }
    member = {"first_name": "Eva", "last_name": "Dvořáková"}

    variables = build_variables(vote, member, {"name": "SVJ Lipová"}, "https://x/vote/t")

    assert variables == {
        "recipient_name": "Eva Dvořáková",
        "vote_title": "Oprava střechy",
        "vote_description": "",
        "vote_start_date": "5. 2. 2026",
        "vote_end_date": "20. 3. 2026",
        "voting_link": "https://x/vote/t",
        "building_name": "SVJ Lipová",
    }


def test_send_voting_email_issues_link_and_renders_template(db, scenario, mailer) -> None:
    """One email carries a freshly issued link inside the rendered template."""
    member = scenario["members"][1]

    result = EmailService(db, mailer=mailer).send_voting_email(
        scenario["vote"]["id"], member["id"], now=NOW
    )

    link = db.rows("personalized_voting_links", member_id=member["id"])[0]
    assert result["success"] is True
    assert result["messageId"] == "<msg-1@brevo>"
    assert result["votingLink"] == settings.voting_link_url(link["token"])
    sent = mailer.sent[0]
    assert sent["to"] == member["email"]
    assert sent["subject"] == "Hlasování: Oprava střechy"
    assert result["votingLink"] in sent["html"]
    assert "Člen2 Novák" in sent["html"]
    assert "{{" not in sent["html"]


def test_html_body_escapes_member_values(db, scenario, mailer) -> None:
    """Values inserted into the HTML body are escaped; the subject is plain text."""
    member = db.rows("members", id=scenario["members"][1]["id"])[0]
    member["first_name"] = "<b>Eva</b>"
    db.rows("votes", id=scenario["vote"]["id"])[0]["title"] = "Fasáda & okna"

    EmailService(db, mailer=mailer).send_voting_email(scenario["vote"]["id"], member["id"], now=NOW)

    sent = mailer.sent[0]
    assert "&lt;b&gt;Eva&lt;/b&gt;" in sent["html"]
    assert "Fasáda &amp; okna" in sent["html"]
    assert sent["subject"] == "Hlasování: Fasáda & okna"


def test_failed_send_is_logged_and_raised(db, scenario) -> None:
    """Provider failures raise and leave a failed delivery log entry."""
    member = scenario["members"][1]
    mailer = StubMailer(fail_for={member["email"]})

    with pytest.raises(SendFailedError):
        EmailService(db, mailer=mailer).send_voting_email(
            scenario["vote"]["id"], member["id"], now=NOW
        )

    logs = db.rows("email_delivery_logs", member_id=member["id"])
    assert logs[0]["status"] == "failed"
    assert logs[0]["error_message"] == "mailbox unavailable"
    assert logs[0]["sent_at"] is None


def test_distribute_isolates_member_failures(db) -> None:
    """One rejected address does not stop the other members' emails."""
    scenario = seed_building(db, member_count=3)
    failing = scenario["members"][1]
    mailer = StubMailer(fail_for={failing["email"]})

    outcome = DistributionService(db, mailer=mailer).distribute(scenario["vote"]["id"], now=NOW)

    assert outcome["success"] is True
    assert outcome["totalMembers"] == 3
    assert outcome["emailsSent"] == 2
    by_member = {result["memberId"]: result for result in outcome["results"]}
    assert by_member[failing["id"]]["success"] is False
    assert by_member[failing["id"]]["error"] == "mailbox unavailable"
    assert "votingLink" not in by_member[failing["id"]]
    assert all(
        by_member[member["id"]]["success"]
        for member in scenario["members"]
        if member["id"] != failing["id"]
    )

    statuses = sorted(log["status"] for log in db.rows("email_delivery_logs"))
    assert statuses == ["failed", "sent", "sent"]
    session = db.rows("voting_sessions", vote_id=scenario["vote"]["id"])[0]
    assert session["total_members"] == 3
    assert session["emails_sent"] == 2


def test_distribute_to_selected_members_accumulates_session(db, scenario, mailer) -> None:
    """Explicit member ids narrow the audience; repeated runs add to the sent count."""
    service = DistributionService(db, mailer=mailer)
    vote_id = scenario["vote"]["id"]
    chosen = [scenario["members"][2]["id"], scenario["members"][4]["id"]]

    service.distribute(vote_id, now=NOW)
    outcome = service.distribute(vote_id, member_ids=chosen, now=NOW)

    assert outcome["totalMembers"] == 2
    assert {result["memberId"] for result in outcome["results"]} == set(chosen)
    assert db.rows("voting_sessions", vote_id=vote_id)[0]["emails_sent"] == 7


def test_distribute_skips_inactive_members(db, scenario, mailer) -> None:
    """Deactivated members never receive voting links."""
    db.rows("members", id=scenario["members"][3]["id"])[0]["is_active"] = False

    outcome = DistributionService(db, mailer=mailer).distribute(scenario["vote"]["id"], now=NOW)

    assert outcome["totalMembers"] == 4
    assert scenario["members"][3]["email"] not in {message["to"] for message in mailer.sent}


def test_distribute_requires_a_template(db, scenario, mailer) -> None:
    """Without an explicit template or a default, nothing is sent."""
    db.tables["email_templates"] = []

    with pytest.raises(TemplateNotFoundError):
        DistributionService(db, mailer=mailer).distribute(scenario["vote"]["id"], now=NOW)

    assert mailer.sent == []
    assert db.rows("personalized_voting_links") == []


def test_distribute_uses_explicit_template(db, scenario, mailer) -> None:
    """A chosen template wins over the category default."""
    custom = db.add(
        "email_templates",
        {
            "name": "Krátká pozvánka",
            "category": "voting",
            "subject": "{{building_name}}: {{vote_title}}",
            "content": "<a href='{{voting_link}}'>Hlasovat</a>",
            "is_default": False,
        },
    )

    DistributionService(db, mailer=mailer).distribute(
        scenario["vote"]["id"],
        member_ids=[scenario["members"][0]["id"]],
        template_id=custom["id"],
        now=NOW,
    )

    assert mailer.sent[0]["subject"] == "Bytový dům Vinohradská 8: Oprava střechy"


def test_reminders_target_pending_members(db, scenario, mailer) -> None:
    """Reminders go only to members without answers and stamp the session."""
    vote_id = scenario["vote"]["id"]
    voted = scenario["members"][0]
    db.add(
        "user_votes",
        {"vote_id": vote_id, "member_id": voted["id"], "question_id": "q1", "option_ids": ["yes"]},
    )
    db.add(
        "email_templates",
        {
            "name": "Připomínka",
            "category": "reminder",
            "subject": "Připomínka: {{vote_title}}",
            "content": "<a href='{{voting_link}}'>Hlasovat</a>",
            "is_default": True,
        },
    )
    db.add("voting_sessions", {"vote_id": vote_id, "emails_sent": 5, "votes_received": 1})

    outcome = DistributionService(db, mailer=mailer).send_reminders(vote_id, now=NOW)

    assert outcome["emailsSent"] == 4
    assert voted["email"] not in {message["to"] for message in mailer.sent}
    assert all(message["subject"] == "Připomínka: Oprava střechy" for message in mailer.sent)
    assert db.rows("voting_sessions")[0]["last_reminder_sent"] == NOW.isoformat()


def test_reminders_with_everyone_voted_send_nothing(db, mailer) -> None:
    """No pending members means no emails."""
    scenario = seed_building(db, member_count=1)
    db.add(
        "user_votes",
        {
            "vote_id": scenario["vote"]["id"],
            "member_id": scenario["members"][0]["id"],
            "question_id": "q1",
            "option_ids": ["no"],
        },
    )

    outcome = DistributionService(db, mailer=mailer).send_reminders(scenario["vote"]["id"], now=NOW)

    assert outcome["emailsSent"] == 0
    assert mailer.sent == []
