"""Manuscript status state machine with field gating.

Concept → Complete Draft → Vetted for submission →
  Submitted for review (with | without pre-publication) →
  Under review → Accepted/In Press → Published
"""

from __future__ import annotations

from typing import Any, Mapping

from . import TransitionError, WorkflowError

CONCEPT = "Concept"
COMPLETE_DRAFT = "Complete Draft"
VETTED = "Vetted for submission"
SUBMITTED_WITH_PREPUB = "Submitted for review with pre-publication"
SUBMITTED_WITHOUT_PREPUB = "Submitted for review without pre-publication"
UNDER_REVIEW = "Under review"
ACCEPTED = "Accepted/In Press"
PUBLISHED = "Published"

STATUSES = [
    CONCEPT,
    COMPLETE_DRAFT,
    VETTED,
    SUBMITTED_WITH_PREPUB,
    SUBMITTED_WITHOUT_PREPUB,
    UNDER_REVIEW,
    ACCEPTED,
    PUBLISHED,
]

VALID_TRANSITIONS: dict[str, set[str]] = {
    CONCEPT: {COMPLETE_DRAFT},
    COMPLETE_DRAFT: {VETTED},
    VETTED: {SUBMITTED_WITH_PREPUB, SUBMITTED_WITHOUT_PREPUB},
    SUBMITTED_WITH_PREPUB: {UNDER_REVIEW},
    SUBMITTED_WITHOUT_PREPUB: {UNDER_REVIEW},
    UNDER_REVIEW: {ACCEPTED},
    ACCEPTED: {PUBLISHED},
    PUBLISHED: set(),  # terminal
}

# statuses counted as output in bibliometric reports, legacy spellings included
PUBLISHED_STATUSES = {PUBLISHED, ACCEPTED, "In Press", "published"}

# set by the IP office through a plain edit, never as part of a status change
IP_OFFICE_FLAG = "vetted_for_submission_by_ip_office"


class GatingError(WorkflowError):
    """Raised when the merged record lacks fields the target status requires."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def current_status(stored: str | None) -> str:
    return stored or CONCEPT


def validate_transition(current: str | None, target: str) -> None:
    current = current_status(current)
    if target not in VALID_TRANSITIONS.get(current, set()):
        raise TransitionError(
            current,
            target,
            f'Invalid status transition from "{current}" to "{target}"',
        )


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def gating_errors(target: str, record: Mapping[str, Any]) -> list[str]:
    """Collect every requirement ``record`` fails for ``target``."""
    errors: list[str] = []
    if target == COMPLETE_DRAFT and _blank(record.get("authors")):
        errors.append("Authorship field is required for Complete Draft status")
    if target == VETTED and not record.get(IP_OFFICE_FLAG):
        errors.append(
            "IP office approval is required for Vetted for submission status. "
            "Please update this in the publication edit form."
        )
    if target == SUBMITTED_WITH_PREPUB and (
        _blank(record.get("prepublication_url")) or _blank(record.get("prepublication_site"))
    ):
        errors.append("Prepublication URL and site are required for pre-publication submission")
    if target in (UNDER_REVIEW, ACCEPTED) and _blank(record.get("journal")):
        errors.append("Journal name is required for this status")
    if target == PUBLISHED and (record.get("publication_date") is None or _blank(record.get("doi"))):
        errors.append("Publication date and DOI are required for Published status")
    return errors


def validate_gating(target: str, record: Mapping[str, Any]) -> None:
    errors = gating_errors(target, record)
    if errors:
        raise GatingError(errors)
