import uuid
from datetime import datetime, timezone

from research_office import models, notify
from .conftest import (
    client,
    make_ibc_application,
    make_research_activity,
    make_scientist,
    receive_event,
    TestingSessionLocal,
)


def _patch(client, app_id, **payload):
    return client.patch(f"/api/ibc-applications/{app_id}", json=payload)


def _advance_to_under_review(client, app_id):
    for target in ("vetted", "under_review"):
        resp = _patch(client, app_id, workflow_status=target)
        assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_assigns_sequential_numbers(client):
    first = make_ibc_application(client)
    second = make_ibc_application(client)
    year = datetime.now(timezone.utc).year
    assert first["ibc_number"].startswith(f"IBC-{year}-")
    assert len(first["ibc_number"].split("-")[-1]) == 3
    first_seq = int(first["ibc_number"].split("-")[-1])
    second_seq = int(second["ibc_number"].split("-")[-1])
    assert second_seq == first_seq + 1


def test_create_as_draft_or_submitted(client):
    draft = make_ibc_application(client, is_draft=True)
    assert draft["workflow_status"] == "draft"
    assert draft["status"] == "Draft"
    assert draft["submission_date"] is None

    submitted = make_ibc_application(client)
    assert submitted["workflow_status"] == "submitted"
    assert submitted["status"] == "Submitted"
    assert submitted["submission_date"] is not None


def test_risk_level_follows_biosafety_level(client):
    low = make_ibc_application(client, biosafety_level="BSL-1")
    high = make_ibc_application(client, biosafety_level="BSL-3")
    assert low["risk_level"] == "low"
    assert high["risk_level"] == "high"
    resp = _patch(client, low["id"], biosafety_level="BSL-2")
    assert resp.json()["risk_level"] == "moderate"


def test_create_with_missing_research_activity_creates_nothing(client):
    pi = make_scientist(client)
    missing = str(uuid.uuid4())
    title = f"Orphan {uuid.uuid4().hex[:6]}"
    resp = client.post(
        "/api/ibc-applications",
        json={
            "title": title,
            "principal_investigator_id": pi["id"],
            "biosafety_level": "BSL-2",
            "research_activity_ids": [missing],
        },
    )
    assert resp.status_code == 404
    assert missing in resp.json()["detail"]
    db = TestingSessionLocal()
    try:
        assert db.query(models.IbcApplication).filter_by(title=title).count() == 0
    finally:
        db.close()


def test_create_with_unknown_pi_returns_404(client):
    resp = client.post(
        "/api/ibc-applications",
        json={"title": "x", "principal_investigator_id": str(uuid.uuid4()), "biosafety_level": "BSL-1"},
    )
    assert resp.status_code == 404


def test_create_links_research_activities(client):
    first = make_research_activity(client)
    second = make_research_activity(client)
    app = make_ibc_application(client, research_activity_ids=[first["id"], second["id"]])
    linked = {activity["id"] for activity in app["research_activities"]}
    assert linked == {first["id"], second["id"]}

    resp = client.get("/api/ibc-applications", params={"research_activity_id": first["id"]})
    assert [row["id"] for row in resp.json()] == [app["id"]]


def test_status_change_writes_both_fields_and_a_comment(client):
    app = make_ibc_application(client)
    resp = _patch(client, app["id"], status="Vetted")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "Vetted"
    assert body["workflow_status"] == "vetted"
    assert body["vetted_date"] is not None

    comments = client.get(f"/api/ibc-applications/{app['id']}/comments").json()
    status_changes = [c for c in comments if c["comment_type"] == "status_change"]
    assert len(status_changes) == 1
    assert status_changes[0]["comment"] == "Status changed from Submitted to Vetted"
    assert status_changes[0]["status_from"] == "submitted"
    assert status_changes[0]["status_to"] == "vetted"


def test_invalid_transition_is_rejected_without_side_effects(client):
    app = make_ibc_application(client)
    resp = _patch(client, app["id"], workflow_status="active")
    assert resp.status_code == 400
    assert "Submitted" in resp.json()["detail"]

    current = client.get(f"/api/ibc-applications/{app['id']}").json()
    assert current["workflow_status"] == "submitted"
    assert client.get(f"/api/ibc-applications/{app['id']}/comments").json() == []
    assert notify.EMAIL_OUTBOX == []


def test_disagreeing_status_fields_are_rejected(client):
    app = make_ibc_application(client)
    resp = _patch(client, app["id"], status="Vetted", workflow_status="draft")
    assert resp.status_code == 400


def test_unknown_status_is_rejected(client):
    app = make_ibc_application(client)
    resp = _patch(client, app["id"], status="Approved")
    assert resp.status_code == 400


def test_submission_date_survives_resubmission(client):
    app = make_ibc_application(client)
    original = app["submission_date"]
    assert _patch(client, app["id"], is_draft=True).json()["workflow_status"] == "draft"
    resubmitted = _patch(client, app["id"], is_draft=False).json()
    assert resubmitted["workflow_status"] == "submitted"
    assert resubmitted["submission_date"] == original


def test_supplied_milestone_wins_over_stamp(client):
    app = make_ibc_application(client)
    resp = _patch(client, app["id"], workflow_status="vetted", vetted_date="2023-06-01T09:00:00")
    assert resp.json()["vetted_date"].startswith("2023-06-01T09:00:00")


def test_status_change_sends_email_and_event(client):
    pi = make_scientist(client)
    app = make_ibc_application(client, pi=pi, additional_notification_email="biosafety@example.com")
    with client.websocket_connect("/ws/workflows/ibc") as websocket:
        _patch(client, app["id"], workflow_status="vetted")
        event = receive_event(websocket)

    recipients = [to for to, _, _ in notify.EMAIL_OUTBOX]
    assert recipients == [pi["email"], "biosafety@example.com"]
    assert "Vetted" in notify.EMAIL_OUTBOX[0][1]

    assert event == {
        "kind": "ibc",
        "application_id": app["id"],
        "number": app["ibc_number"],
        "status_from": "submitted",
        "status_to": "vetted",
    }


def test_plain_edit_does_not_notify(client):
    app = make_ibc_application(client)
    with client.websocket_connect("/ws/workflows/ibc") as websocket:
        resp = _patch(client, app["id"], title="Renamed protocol")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed protocol"
        assert notify.EMAIL_OUTBOX == []
        _patch(client, app["id"], workflow_status="vetted")
        # the first event on the channel is the later status change
        assert receive_event(websocket)["status_to"] == "vetted"


def test_review_comments_become_office_comment(client):
    app = make_ibc_application(client)
    _patch(client, app["id"], review_comments="Please attach the SOP")
    comments = client.get(f"/api/ibc-applications/{app['id']}/comments").json()
    assert [(c["comment_type"], c["comment"]) for c in comments] == [
        ("office_comment", "Please attach the SOP")
    ]


def test_reviewer_approval_activates_application(client):
    app = make_ibc_application(client)
    _advance_to_under_review(client, app["id"])
    reviewer = make_scientist(client)
    resp = client.post(
        f"/api/ibc-applications/{app['id']}/reviewer-feedback",
        json={"comments": "Containment plan is sound", "recommendation": "approve", "reviewer_id": reviewer["id"]},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["application"]["workflow_status"] == "active"
    assert body["application"]["approval_date"] is not None
    assert "Active" in body["message"]

    comments = client.get(f"/api/ibc-applications/{app['id']}/comments").json()
    feedback = [c for c in comments if c["comment_type"] == "reviewer_feedback"]
    assert feedback[0]["recommendation"] == "approve"
    assert feedback[0]["author_name"] == reviewer["name"]
    assert comments[-1]["comment_type"] == "status_change"


def test_reviewer_revisions_return_to_vetted_and_abstain_keeps_status(client):
    app = make_ibc_application(client)
    _advance_to_under_review(client, app["id"])
    resp = client.post(
        f"/api/ibc-applications/{app['id']}/reviewer-feedback",
        json={"comments": "Abstaining, conflict of interest", "recommendation": "abstain"},
    )
    assert resp.json()["application"]["workflow_status"] == "under_review"

    resp = client.post(
        f"/api/ibc-applications/{app['id']}/reviewer-feedback",
        json={"comments": "Clarify waste handling", "recommendation": "minor_revisions"},
    )
    assert resp.json()["application"]["workflow_status"] == "vetted"


def test_reviewer_feedback_requires_under_review(client):
    app = make_ibc_application(client)
    resp = client.post(
        f"/api/ibc-applications/{app['id']}/reviewer-feedback",
        json={"comments": "Too early", "recommendation": "approve"},
    )
    assert resp.status_code == 400
    assert client.get(f"/api/ibc-applications/{app['id']}/comments").json() == []


def test_terminal_states_accept_no_transitions(client):
    app = make_ibc_application(client)
    _advance_to_under_review(client, app["id"])
    assert _patch(client, app["id"], workflow_status="expired").status_code == 200
    for target in ("draft", "submitted", "vetted", "under_review", "active"):
        assert _patch(client, app["id"], workflow_status=target).status_code == 400


def test_comments_are_ordered_by_sequence(client):
    app = make_ibc_application(client)
    _patch(client, app["id"], workflow_status="vetted")
    client.post(f"/api/ibc-applications/{app['id']}/pi-comment", json={"comment": "Updated SOP attached"})
    _patch(client, app["id"], workflow_status="under_review")
    comments = client.get(f"/api/ibc-applications/{app['id']}/comments").json()
    assert [c["sequence"] for c in comments] == [1, 2, 3]
    assert [c["comment_type"] for c in comments] == ["status_change", "pi_response", "status_change"]


def test_pi_comment_requires_text(client):
    pi = make_scientist(client)
    app = make_ibc_application(client, pi=pi)
    resp = client.post(f"/api/ibc-applications/{app['id']}/pi-comment", json={"comment": "   "})
    assert resp.status_code == 400

    resp = client.post(f"/api/ibc-applications/{app['id']}/pi-comment", json={"comment": "Done"})
    assert resp.status_code == 201
    assert resp.json()["author_type"] == "pi"
    assert resp.json()["author_name"] == pi["name"]


def test_research_activity_links(client):
    app = make_ibc_application(client)
    activity = make_research_activity(client)
    url = f"/api/ibc-applications/{app['id']}/research-activities"

    resp = client.post(url, json={"research_activity_id": activity["id"]})
    assert resp.status_code == 201
    assert resp.json()["id"] == activity["id"]
    assert client.post(url, json={"research_activity_id": activity["id"]}).status_code == 409
    assert client.post(url, json={"research_activity_id": str(uuid.uuid4())}).status_code == 404
    assert [a["id"] for a in client.get(url).json()] == [activity["id"]]

    assert client.delete(f"{url}/{activity['id']}").status_code == 204
    assert client.delete(f"{url}/{activity['id']}").status_code == 404
    assert client.get(url).json() == []


def test_replacing_research_activities_via_patch(client):
    first = make_research_activity(client)
    second = make_research_activity(client)
    app = make_ibc_application(client, research_activity_ids=[first["id"]])
    resp = _patch(client, app["id"], research_activity_ids=[second["id"]])
    assert [a["id"] for a in resp.json()["research_activities"]] == [second["id"]]


def test_personnel(client):
    app = make_ibc_application(client)
    member = make_scientist(client)
    url = f"/api/ibc-applications/{app['id']}/personnel"
    resp = client.post(url, json={"scientist_id": member["id"], "role": "Lab Manager"})
    assert resp.status_code == 201
    member_id = resp.json()["id"]
    assert resp.json()["scientist"]["id"] == member["id"]
    assert client.post(url, json={"scientist_id": member["id"], "role": "Lab Manager"}).status_code == 409
    assert client.post(url, json={"scientist_id": str(uuid.uuid4()), "role": "Tech"}).status_code == 404
    assert len(client.get(url).json()) == 1
    assert client.delete(f"{url}/{member_id}").status_code == 204
    assert client.get(url).json() == []


def test_filters_accept_labels(client):
    draft = make_ibc_application(client, is_draft=True)
    resp = client.get("/api/ibc-applications", params={"status": "Draft"})
    assert resp.status_code == 200
    assert draft["id"] in [row["id"] for row in resp.json()]
    assert all(row["workflow_status"] == "draft" for row in resp.json())
    assert client.get("/api/ibc-applications", params={"status": "bogus"}).status_code == 400


def test_delete_application_removes_trail(client):
    app = make_ibc_application(client)
    _patch(client, app["id"], workflow_status="vetted")
    assert client.delete(f"/api/ibc-applications/{app['id']}").status_code == 204
    assert client.get(f"/api/ibc-applications/{app['id']}").status_code == 404
    db = TestingSessionLocal()
    try:
        assert db.query(models.IbcApplicationComment).filter_by(application_id=uuid.UUID(app["id"])).count() == 0
    finally:
        db.close()


def test_supplied_ibc_number_is_kept_and_duplicates_conflict(client):
    number = f"IBC-LEGACY-{uuid.uuid4().hex[:6]}"
    app = make_ibc_application(client, ibc_number=number)
    assert app["ibc_number"] == number
    pi = make_scientist(client)
    resp = client.post(
        "/api/ibc-applications",
        json={"title": "dup", "principal_investigator_id": pi["id"], "biosafety_level": "BSL-1", "ibc_number": number},
    )
    assert resp.status_code == 409


def test_repeating_the_same_status_is_idempotent(client):
    app = make_ibc_application(client)
    assert _patch(client, app["id"], status="Vetted").status_code == 200
    resp = _patch(client, app["id"], status="vetted")
    assert resp.status_code == 200
    comments = client.get(f"/api/ibc-applications/{app['id']}/comments").json()
    assert len([c for c in comments if c["comment_type"] == "status_change"]) == 1
    assert len(notify.EMAIL_OUTBOX) == 1


def test_draft_round_trips_through_fetch(client):
    draft = make_ibc_application(client, is_draft=True)
    fetched = client.get(f"/api/ibc-applications/{draft['id']}").json()
    assert (fetched["status"], fetched["workflow_status"]) == ("Draft", "draft")


def test_null_on_required_field_is_a_validation_error(client):
    app = make_ibc_application(client)
    for field in ("title", "biosafety_level", "principal_investigator_id"):
        resp = _patch(client, app["id"], **{field: None})
        assert resp.status_code == 400, field
        assert f"{field} cannot be null" in resp.json()["detail"]
    assert client.get(f"/api/ibc-applications/{app['id']}").json()["title"] == app["title"]


def test_null_on_optional_field_clears_it(client):
    app = make_ibc_application(client, short_title="LVP")
    resp = _patch(client, app["id"], short_title=None)
    assert resp.status_code == 200
    assert resp.json()["short_title"] is None
