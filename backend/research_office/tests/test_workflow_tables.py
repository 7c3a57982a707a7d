from datetime import date, datetime, timezone

import pytest

from research_office.workflows import TransitionError, UnknownStateError
from research_office.workflows import ibc, irb, publication


def test_ibc_labels_and_keys_resolve_case_insensitively():
    assert ibc.normalize("Under Review") == "under_review"
    assert ibc.normalize("under_review") == "under_review"
    assert ibc.normalize("ACTIVE") == "active"
    with pytest.raises(UnknownStateError):
        ibc.normalize("approved")


def test_ibc_transition_table():
    assert ibc.can_transition("draft", "submitted")
    assert ibc.can_transition("submitted", "draft")
    assert ibc.can_transition("under_review", "vetted")
    assert not ibc.can_transition("draft", "active")
    for terminal in ("active", "expired"):
        assert ibc.VALID_TRANSITIONS[terminal] == set()
    with pytest.raises(TransitionError) as excinfo:
        ibc.validate_transition("draft", "active")
    assert "Draft" in str(excinfo.value) and "Active" in str(excinfo.value)


def test_ibc_milestones_respect_existing_and_supplied_values():
    now = datetime(2024, 3, 1, tzinfo=timezone.utc)
    earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert ibc.milestone_updates("submitted", now=now, existing={}, supplied={}) == {"submission_date": now}
    assert ibc.milestone_updates(
        "submitted", now=now, existing={"submission_date": earlier}, supplied={}
    ) == {}
    assert ibc.milestone_updates(
        "vetted", now=now, existing={"vetted_date": earlier}, supplied={}
    ) == {"vetted_date": now}
    assert ibc.milestone_updates(
        "active", now=now, existing={}, supplied={"approval_date": earlier}
    ) == {}


@pytest.mark.parametrize(
    "level,expected",
    [("BSL-1", "low"), ("BSL-2", "moderate"), ("bsl-3", "high"), ("BSL-4", "high"), ("ABSL-2", "moderate"), (None, "moderate")],
)
def test_ibc_risk_level_from_biosafety_level(level, expected):
    assert ibc.derive_risk_level(level) == expected


def test_ibc_reviewer_outcomes():
    assert ibc.reviewer_outcome("approve") == "active"
    assert ibc.reviewer_outcome("reject") == "expired"
    assert ibc.reviewer_outcome("minor_revisions") == "vetted"
    assert ibc.reviewer_outcome("major_revisions") == "vetted"
    assert ibc.reviewer_outcome("abstain") is None


def test_irb_transition_table_and_review_actions():
    assert irb.can_transition("revisions_requested", "resubmitted")
    assert irb.can_transition("resubmitted", "triage_complete")
    assert not irb.can_transition("submitted", "approved")
    assert irb.normalize("Ready for Decision") == "ready_for_decision"
    assert irb.review_target("triage", "looks complete", []) == "triage_complete"
    assert irb.review_target("assign_reviewers", None, ["r1"]) == "under_review"
    with pytest.raises(irb.ReviewActionError):
        irb.review_target("approve", "  ", [])
    with pytest.raises(irb.ReviewActionError):
        irb.review_target("assign_reviewers", None, [])
    with pytest.raises(TransitionError):
        irb.validate_creation_state("approved")


def test_irb_approval_stamps_initial_approval_date_once():
    now = datetime(2024, 5, 2, 12, tzinfo=timezone.utc)
    assert irb.milestone_updates("approved", now=now, existing={}, supplied={}) == {
        "initial_approval_date": date(2024, 5, 2)
    }
    assert irb.milestone_updates(
        "approved", now=now, existing={"initial_approval_date": date(2023, 1, 1)}, supplied={}
    ) == {}
    assert irb.milestone_updates("resubmitted", now=now, existing={}, supplied={}) == {}


def test_publication_transition_message_names_both_statuses():
    with pytest.raises(TransitionError) as excinfo:
        publication.validate_transition("Concept", "Published")
    assert str(excinfo.value) == 'Invalid status transition from "Concept" to "Published"'
    publication.validate_transition(None, "Complete Draft")


def test_publication_gating_accumulates_every_failure():
    errors = publication.gating_errors("Published", {"doi": " ", "publication_date": None})
    assert errors == ["Publication date and DOI are required for Published status"]
    errors = publication.gating_errors(
        "Submitted for review with pre-publication",
        {"prepublication_url": "https://biorxiv.org/x", "prepublication_site": ""},
    )
    assert len(errors) == 1
    with pytest.raises(publication.GatingError) as excinfo:
        publication.validate_gating("Under review", {"journal": ""})
    assert "Journal name is required" in str(excinfo.value)
    assert publication.gating_errors("Complete Draft", {"authors": "A. Author"}) == []
