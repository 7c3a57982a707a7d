"""IBC application lifecycle state machine.

States: draft → submitted → vetted → under_review → active | expired
        also: submitted → draft (PI recall), under_review → vetted (revisions)
"""

from __future__ import annotations

from datetime import datetime

from . import TransitionError, resolve_state

DRAFT = "draft"
SUBMITTED = "submitted"
VETTED = "vetted"
UNDER_REVIEW = "under_review"
ACTIVE = "active"
EXPIRED = "expired"

STATUS_LABELS: dict[str, str] = {
    DRAFT: "Draft",
    SUBMITTED: "Submitted",
    VETTED: "Vetted",
    UNDER_REVIEW: "Under Review",
    ACTIVE: "Active",
    EXPIRED: "Expired",
}

VALID_TRANSITIONS: dict[str, set[str]] = {
    DRAFT: {SUBMITTED},
    SUBMITTED: {VETTED, DRAFT},
    VETTED: {UNDER_REVIEW},
    UNDER_REVIEW: {ACTIVE, EXPIRED, VETTED},
    ACTIVE: set(),  # terminal
    EXPIRED: set(),  # terminal
}

# milestone column stamped when a state is entered
MILESTONES: dict[str, str] = {
    SUBMITTED: "submission_date",
    VETTED: "vetted_date",
    UNDER_REVIEW: "under_review_date",
    ACTIVE: "approval_date",
}

# milestones that keep their first value across re-entry
STAMP_ONCE = {"submission_date"}

REVIEWER_OUTCOMES: dict[str, str | None] = {
    "approve": ACTIVE,
    "reject": EXPIRED,
    "minor_revisions": VETTED,
    "major_revisions": VETTED,
    "abstain": None,
}

_RISK_BY_BIOSAFETY_LEVEL = {
    "BSL-1": "low",
    "BSL-2": "moderate",
    "BSL-3": "high",
    "BSL-4": "high",
}


def label_for(state: str) -> str:
    return STATUS_LABELS[state]


def initial_state(is_draft: bool) -> str:
    return DRAFT if is_draft else SUBMITTED


def normalize(value: str) -> str:
    """Accept either a state key or its display label."""
    return resolve_state(value, STATUS_LABELS, "IBC")


def can_transition(current: str, target: str) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: str, target: str) -> None:
    """Raise TransitionError if ``target`` is not reachable from ``current``."""
    if not can_transition(current, target):
        allowed = sorted(VALID_TRANSITIONS.get(current, set()))
        raise TransitionError(
            current,
            target,
            f"Cannot transition IBC application from '{label_for(current)}' to "
            f"'{label_for(target)}'. Allowed transitions from '{label_for(current)}': "
            f"{[label_for(state) for state in allowed]}",
        )


def milestone_updates(
    target: str,
    *,
    now: datetime,
    existing: dict[str, datetime | None],
    supplied: dict[str, datetime | None],
) -> dict[str, datetime]:
    """Return the milestone columns to stamp on entering ``target``.

    A value supplied with the same request wins over the stamp, and
    ``submission_date`` is only stamped when the application has none.
    """
    column = MILESTONES.get(target)
    if column is None or supplied.get(column) is not None:
        return {}
    if column in STAMP_ONCE and existing.get(column) is not None:
        return {}
    return {column: now}


def derive_risk_level(biosafety_level: str | None) -> str:
    """BSL-1 is low, BSL-2 moderate, BSL-3 and BSL-4 high, anything else moderate."""
    key = (biosafety_level or "").strip().upper().replace(" ", "-")
    return _RISK_BY_BIOSAFETY_LEVEL.get(key, "moderate")


def reviewer_outcome(recommendation: str) -> str | None:
    """Target state driven by a reviewer recommendation, None for no change."""
    return REVIEWER_OUTCOMES[recommendation]
