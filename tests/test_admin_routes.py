"""Administration route tests (buildings, members, votes, templates)."""

from __future__ import annotations

NEW_VOTE = {
    "title": "Výměna výtahu",
    "description": "Schválení dodavatele",
    "start_date": "2026-04-01T00:00:00Z",
    "end_date": "2026-04-30T00:00:00Z",
    "questions": [
        {"question": "Souhlasíte?", "options": [{"text": "Ano"}, {"text": "Ne"}]},
    ],
}


def test_vote_lifecycle_over_http(api, db, scenario, mailer) -> None:
    """Create, activate (emails sent), vote in app, then read progress and results."""
    building_id = scenario["building"]["id"]
    base = f"/buildings/{building_id}/votes"

    created = api.post(base, json=NEW_VOTE)
    assert created.status_code == 200
    vote = created.json()["vote"]
    assert vote["status"] == "draft"

    activated = api.post(f"{base}/{vote['id']}/activate").json()
    assert activated["vote"]["status"] == "active"
    assert activated["distribution"]["emailsSent"] == 5
    assert len(mailer.sent) == 5

    question_id = vote["questions"][0]["id"]
    option_id = vote["questions"][0]["options"][0]["id"]
    ballot = api.post(
        f"{base}/{vote['id']}/ballot",
        json={"answers": [{"questionId": question_id, "optionIds": [option_id]}]},
    )
    assert ballot.status_code == 200

    progress = api.get(f"{base}/{vote['id']}/progress").json()["progress"]
    assert progress["voted_members"] == 1
    assert progress["participation_rate"] == 20

    results = api.get(f"{base}/{vote['id']}/results").json()["results"]
    assert results[0]["options"][0]["count"] == 1

    detail = api.get(f"{base}/{vote['id']}").json()
    assert detail["has_voted"] is True

    completed = api.post(f"{base}/{vote['id']}/complete")
    assert completed.json()["vote"]["status"] == "completed"
    reopened = api.post(f"{base}/{vote['id']}/complete")
    assert (reopened.status_code, reopened.json()["code"]) == (409, "INVALID_TRANSITION")


def test_vote_end_must_follow_start(api, scenario) -> None:
    """Votes ending before they start are rejected."""
    payload = {**NEW_VOTE, "end_date": "2026-03-01T00:00:00Z"}

    response = api.post(f"/buildings/{scenario['building']['id']}/votes", json=payload)

    assert response.status_code == 422


def test_delivery_logs_and_member_links(api, db, scenario, mailer) -> None:
    """Managers can audit deliveries and the links issued to a member."""
    base = f"/buildings/{scenario['building']['id']}/votes/{scenario['vote']['id']}"
    member_id = scenario["members"][2]["id"]
    api.post(
        "/functions/v1/send-voting-email",
        json={"voteId": scenario["vote"]["id"], "memberId": member_id},
    )

    logs = api.get(f"{base}/delivery-logs").json()["logs"]
    links = api.get(f"{base}/members/{member_id}/links").json()["links"]

    assert [log["status"] for log in logs] == ["sent"]
    assert len(links) == 1
    assert links[0]["is_active"] is True


def test_members_cannot_see_other_buildings(api, db, scenario) -> None:
    """Non-admin members are limited to their own building."""
    other = db.add("buildings", {"name": "Jiný dům", "address": "Jinde 1", "is_active": True})

    visible = api.get("/buildings").json()["buildings"]
    response = api.get(f"/buildings/{other['id']}/members")

    assert [row["id"] for row in visible] == [scenario["building"]["id"]]
    assert response.status_code == 403


def test_member_import_and_export(api, db, scenario) -> None:
    """CSV import adds members; export returns a CSV download."""
    base = f"/buildings/{scenario['building']['id']}/members"

    imported = api.post(base + "/import", json={"csv_data": "nova@example.cz,Nová,Členka,,42,2"})
    exported = api.get(base + "/export")

    assert imported.json()["count"] == 1
    assert exported.headers["content-type"].startswith("text/csv")
    assert exported.text.splitlines()[0] == "Email,Jméno,Příjmení,Telefon,Jednotka,Podíl,Role"
    assert "nova@example.cz" in exported.text


def test_template_routes(api, db, scenario) -> None:
    """Templates can be duplicated and previewed."""
    template_id = scenario["template"]["id"]

    duplicated = api.post(f"/templates/{template_id}/duplicate").json()["template"]
    preview = api.post(
        f"/templates/{template_id}/preview",
        json={"variables": {"vote_title": "Výtah"}},
    ).json()["preview"]

    assert duplicated["name"].endswith("(kopie)")
    assert preview["subject"] == "Hlasování: Výtah"


def test_one_sided_date_patch_is_checked_against_stored_dates(api, db, scenario) -> None:
    """Moving only the end date before the stored start is refused."""
    url = f"/buildings/{scenario['building']['id']}/votes/{scenario['vote']['id']}"

    rejected = api.patch(url, json={"end_date": "2026-01-01T00:00:00+00:00"})
    accepted = api.patch(url, json={"end_date": "2026-04-01T00:00:00+00:00"})

    assert (rejected.status_code, rejected.json()["code"]) == (422, "INVALID_INPUT")
    assert accepted.status_code == 200
    assert db.rows("votes", id=scenario["vote"]["id"])[0]["end_date"].startswith("2026-04-01")
