"""IRB application lifecycle state machine.

States: draft → submitted → triage_complete → under_review → ready_for_decision
        → approved | rejected, with revisions_requested ↔ resubmitted loops,
        approved → expired | closed, and withdrawal before triage.
"""

from __future__ import annotations

from datetime import date, datetime

from . import TransitionError, WorkflowError, resolve_state

DRAFT = "draft"
SUBMITTED = "submitted"
RESUBMITTED = "resubmitted"
TRIAGE_COMPLETE = "triage_complete"
UNDER_REVIEW = "under_review"
READY_FOR_DECISION = "ready_for_decision"
REVISIONS_REQUESTED = "revisions_requested"
APPROVED = "approved"
REJECTED = "rejected"
EXPIRED = "expired"
CLOSED = "closed"
WITHDRAWN = "withdrawn"

STATUS_LABELS: dict[str, str] = {
    DRAFT: "Draft",
    SUBMITTED: "Submitted",
    RESUBMITTED: "Resubmitted",
    TRIAGE_COMPLETE: "Triage Complete",
    UNDER_REVIEW: "Under Review",
    READY_FOR_DECISION: "Ready for Decision",
    REVISIONS_REQUESTED: "Revisions Requested",
    APPROVED: "Approved",
    REJECTED: "Rejected",
    EXPIRED: "Expired",
    CLOSED: "Closed",
    WITHDRAWN: "Withdrawn",
}

VALID_TRANSITIONS: dict[str, set[str]] = {
    DRAFT: {SUBMITTED, WITHDRAWN},
    SUBMITTED: {TRIAGE_COMPLETE, REVISIONS_REQUESTED, WITHDRAWN},
    RESUBMITTED: {TRIAGE_COMPLETE, REVISIONS_REQUESTED, WITHDRAWN},
    TRIAGE_COMPLETE: {UNDER_REVIEW},
    UNDER_REVIEW: {READY_FOR_DECISION, REVISIONS_REQUESTED},
    READY_FOR_DECISION: {APPROVED, REJECTED, REVISIONS_REQUESTED},
    REVISIONS_REQUESTED: {RESUBMITTED, WITHDRAWN},
    APPROVED: {EXPIRED, CLOSED},
    REJECTED: set(),  # terminal
    EXPIRED: set(),  # terminal
    CLOSED: set(),  # terminal
    WITHDRAWN: set(),  # terminal
}

CREATION_STATES = {DRAFT, SUBMITTED}

# states counted as waiting on the office
PENDING_STATES = {SUBMITTED, RESUBMITTED}

REVIEW_ACTIONS: dict[str, str] = {
    "triage": TRIAGE_COMPLETE,
    "assign_reviewers": UNDER_REVIEW,
    "ready_for_decision": READY_FOR_DECISION,
    "request_revisions": REVISIONS_REQUESTED,
    "approve": APPROVED,
    "reject": REJECTED,
}

ACTIONS_WITHOUT_COMMENT = {"assign_reviewers"}


class ReviewActionError(WorkflowError):
    """Raised when a review action is missing required input."""


def label_for(state: str) -> str:
    return STATUS_LABELS[state]


def normalize(value: str) -> str:
    return resolve_state(value, STATUS_LABELS, "IRB")


def can_transition(current: str, target: str) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: str, target: str) -> None:
    """Raise TransitionError if ``target`` is not reachable from ``current``."""
    if not can_transition(current, target):
        allowed = sorted(VALID_TRANSITIONS.get(current, set()))
        raise TransitionError(
            current,
            target,
            f"Cannot transition IRB application from '{label_for(current)}' to "
            f"'{label_for(target)}'. Allowed transitions from '{label_for(current)}': "
            f"{[label_for(state) for state in allowed]}",
        )


def validate_creation_state(state: str) -> None:
    if state not in CREATION_STATES:
        raise TransitionError(
            DRAFT,
            state,
            f"IRB applications can only be created as 'Draft' or 'Submitted', not '{label_for(state)}'",
        )


def review_target(action: str, comments: str | None, reviewer_ids: list) -> str:
    """Resolve a review action to its target state, checking its inputs."""
    if action not in REVIEW_ACTIONS:
        raise ReviewActionError(f"Unknown review action '{action}'")
    if action not in ACTIONS_WITHOUT_COMMENT and not (comments or "").strip():
        raise ReviewActionError(f"Comments are required for the '{action}' action")
    if action == "assign_reviewers" and not reviewer_ids:
        raise ReviewActionError("At least one reviewer is required to assign reviewers")
    return REVIEW_ACTIONS[action]


def milestone_updates(
    target: str,
    *,
    now: datetime,
    existing: dict[str, datetime | date | None],
    supplied: dict[str, datetime | date | None],
) -> dict[str, datetime | date]:
    """Return milestone columns to stamp on entering ``target``.

    Resubmission keeps the original submission date.
    """
    if target == SUBMITTED:
        column, value = "submission_date", now
    elif target == APPROVED:
        column, value = "initial_approval_date", now.date()
    else:
        return {}
    if supplied.get(column) is not None or existing.get(column) is not None:
        return {}
    return {column: value}
