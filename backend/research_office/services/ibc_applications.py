"""IBC application orchestration: creation, status changes and the comment trail."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models, schemas
from ..audit import record_ibc_comment
from ..logging_config import get_logger
from ..workflows import ibc as workflow
from . import Conflict, InvalidRequest, NotFound, StatusChange, require
from .numbering import next_application_number, reserve_supplied_number

# purpose: drive IBC applications through the biosafety review lifecycle
# inputs: SQLAlchemy session, validated IBC payloads
# outputs: flushed IbcApplication rows with status_change comments appended
# status: active
# depends_on: research_office.workflows.ibc, research_office.audit

logger = get_logger(__name__)

_CONTROL_FIELDS = {"status", "workflow_status", "is_draft", "review_comments", "research_activity_ids"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_application(db: Session, application_id: UUID) -> models.IbcApplication:
    return require(db, models.IbcApplication, application_id, "IBC application")


def _require_research_activities(db: Session, ids: Iterable[UUID]) -> list[models.ResearchActivity]:
    activities = []
    for activity_id in dict.fromkeys(ids):
        activity = db.get(models.ResearchActivity, activity_id)
        if activity is None:
            raise NotFound(f"Research activity {activity_id} not found")
        activities.append(activity)
    return activities


def list_applications(
    db: Session,
    *,
    research_activity_id: UUID | None = None,
    status: str | None = None,
    workflow_status: str | None = None,
) -> Sequence[models.IbcApplication]:
    """Return applications newest first, optionally filtered."""

    query = db.query(models.IbcApplication)
    if research_activity_id is not None:
        query = query.join(models.IbcApplication.research_activity_links).filter(
            models.IbcApplicationResearchActivity.research_activity_id == research_activity_id
        )
    for value in (status, workflow_status):
        if value:
            query = query.filter(models.IbcApplication.workflow_status == workflow.normalize(value))
    return query.order_by(models.IbcApplication.created_at.desc()).all()


def create_application(db: Session, payload: schemas.IbcApplicationCreate) -> models.IbcApplication:
    """Create an application with its research activity links in one unit of work."""

    require(db, models.Scientist, payload.principal_investigator_id, "Principal investigator")
    activities = _require_research_activities(db, payload.research_activity_ids)

    state = workflow.initial_state(payload.is_draft)
    if payload.ibc_number:
        reserve_supplied_number(db, "IBC", payload.ibc_number)
    data = payload.model_dump(exclude={"research_activity_ids", "is_draft", "ibc_number", "risk_level"})
    application = models.IbcApplication(
        **data,
        ibc_number=payload.ibc_number or next_application_number(db, "IBC"),
        risk_level=payload.risk_level or workflow.derive_risk_level(payload.biosafety_level),
        status=workflow.label_for(state),
        workflow_status=state,
    )
    if state == workflow.SUBMITTED:
        application.submission_date = _utcnow()
    db.add(application)
    db.flush()
    for activity in activities:
        db.add(
            models.IbcApplicationResearchActivity(
                ibc_application_id=application.id,
                research_activity_id=activity.id,
            )
        )
    db.flush()
    db.refresh(application)
    logger.info(
        "ibc_application_created",
        application_id=str(application.id),
        ibc_number=application.ibc_number,
        workflow_status=state,
    )
    return application


def _transition(
    db: Session,
    application: models.IbcApplication,
    target: str,
    *,
    supplied: dict | None = None,
    author_name: str | None = None,
    author_id: UUID | None = None,
) -> StatusChange:
    current = application.workflow_status
    workflow.validate_transition(current, target)
    existing = {column: getattr(application, column) for column in workflow.MILESTONES.values()}
    stamps = workflow.milestone_updates(target, now=_utcnow(), existing=existing, supplied=supplied or {})
    for column, value in stamps.items():
        setattr(application, column, value)
    application.workflow_status = target
    application.status = workflow.label_for(target)
    change = StatusChange(current, target, workflow.label_for(current), workflow.label_for(target))
    record_ibc_comment(
        db,
        application,
        "status_change",
        f"Status changed from {change.label_from} to {change.label_to}",
        author_type="system" if author_name is None else "office",
        author_name=author_name,
        author_id=author_id,
        status_from=current,
        status_to=target,
    )
    logger.info(
        "ibc_status_changed",
        application_id=str(application.id),
        status_from=current,
        status_to=target,
    )
    return change


def _requested_state(application: models.IbcApplication, payload: schemas.IbcApplicationUpdate) -> str | None:
    status = workflow.normalize(payload.status) if payload.status else None
    workflow_status = workflow.normalize(payload.workflow_status) if payload.workflow_status else None
    if status and workflow_status and status != workflow_status:
        raise InvalidRequest(
            f"status '{payload.status}' and workflow_status '{payload.workflow_status}' disagree"
        )
    target = status or workflow_status
    if target is None and payload.is_draft is not None:
        if payload.is_draft:
            target = workflow.DRAFT
        elif application.workflow_status == workflow.DRAFT:
            target = workflow.SUBMITTED
    return target


def update_application(
    db: Session,
    application: models.IbcApplication,
    payload: schemas.IbcApplicationUpdate,
) -> StatusChange | None:
    """Apply a partial update; returns the status change when one happened."""

    target = _requested_state(application, payload)
    data = payload.model_dump(exclude_unset=True, exclude=_CONTROL_FIELDS)
    if data.get("principal_investigator_id") is not None:
        require(db, models.Scientist, data["principal_investigator_id"], "Principal investigator")
    if "biosafety_level" in data and "risk_level" not in data:
        data["risk_level"] = workflow.derive_risk_level(data["biosafety_level"])
    for key, value in data.items():
        setattr(application, key, value)

    if payload.research_activity_ids is not None:
        replace_research_activities(db, application, payload.research_activity_ids)

    change = None
    if target is not None and target != application.workflow_status:
        supplied = {column: data.get(column) for column in workflow.MILESTONES.values()}
        change = _transition(db, application, target, supplied=supplied)

    if payload.review_comments and payload.review_comments.strip():
        record_ibc_comment(
            db,
            application,
            "office_comment",
            payload.review_comments.strip(),
            author_type="office",
            author_name="IBC Office",
        )
    application.updated_at = _utcnow()
    db.flush()
    return change


def submit_reviewer_feedback(
    db: Session,
    application: models.IbcApplication,
    payload: schemas.IbcReviewerFeedback,
) -> tuple[str, StatusChange | None]:
    """Record a reviewer recommendation and drive the resulting transition."""

    if application.workflow_status != workflow.UNDER_REVIEW:
        raise InvalidRequest(
            "Reviewer feedback can only be submitted while the application is Under Review "
            f"(current status: {workflow.label_for(application.workflow_status)})"
        )
    comments = payload.comments.strip()
    if not comments:
        raise InvalidRequest("Reviewer comments are required")
    reviewer_name = "IBC Reviewer"
    if payload.reviewer_id is not None:
        reviewer_name = require(db, models.Scientist, payload.reviewer_id, "Reviewer").name

    record_ibc_comment(
        db,
        application,
        "reviewer_feedback",
        comments,
        author_type="reviewer",
        author_name=reviewer_name,
        author_id=payload.reviewer_id,
        recommendation=payload.recommendation,
    )
    target = workflow.reviewer_outcome(payload.recommendation)
    change = None
    if target is not None:
        change = _transition(
            db,
            application,
            target,
            author_name=reviewer_name,
            author_id=payload.reviewer_id,
        )
        message = f"Reviewer feedback recorded; application is now {change.label_to}"
    else:
        message = "Reviewer feedback recorded; status unchanged"
    application.updated_at = _utcnow()
    db.flush()
    return message, change


def add_pi_comment(db: Session, application: models.IbcApplication, comment: str) -> models.IbcApplicationComment:
    text = (comment or "").strip()
    if not text:
        raise InvalidRequest("Comment is required")
    pi = application.principal_investigator
    return record_ibc_comment(
        db,
        application,
        "pi_response",
        text,
        author_type="pi",
        author_name=pi.name if pi else None,
        author_id=application.principal_investigator_id,
    )


def list_comments(db: Session, application: models.IbcApplication) -> Sequence[models.IbcApplicationComment]:
    return (
        db.query(models.IbcApplicationComment)
        .filter(models.IbcApplicationComment.application_id == application.id)
        .order_by(models.IbcApplicationComment.created_at.asc(), models.IbcApplicationComment.sequence.asc())
        .all()
    )


def replace_research_activities(db: Session, application: models.IbcApplication, ids: list[UUID]) -> None:
    activities = _require_research_activities(db, ids)
    wanted = {activity.id for activity in activities}
    for link in list(application.research_activity_links):
        if link.research_activity_id not in wanted:
            application.research_activity_links.remove(link)
    linked = {link.research_activity_id for link in application.research_activity_links}
    for activity in activities:
        if activity.id not in linked:
            application.research_activity_links.append(
                models.IbcApplicationResearchActivity(research_activity_id=activity.id)
            )
    db.flush()


def link_research_activity(
    db: Session,
    application: models.IbcApplication,
    research_activity_id: UUID,
) -> models.IbcApplicationResearchActivity:
    _require_research_activities(db, [research_activity_id])
    existing = (
        db.query(models.IbcApplicationResearchActivity)
        .filter_by(ibc_application_id=application.id, research_activity_id=research_activity_id)
        .first()
    )
    if existing is not None:
        raise Conflict("Research activity is already linked to this application")
    link = models.IbcApplicationResearchActivity(
        ibc_application_id=application.id,
        research_activity_id=research_activity_id,
    )
    db.add(link)
    db.flush()
    return link


def unlink_research_activity(db: Session, application: models.IbcApplication, research_activity_id: UUID) -> None:
    link = (
        db.query(models.IbcApplicationResearchActivity)
        .filter_by(ibc_application_id=application.id, research_activity_id=research_activity_id)
        .first()
    )
    if link is None:
        raise NotFound("Research activity link not found")
    db.delete(link)
    db.flush()


def add_team_member(
    db: Session,
    application: models.IbcApplication,
    payload: schemas.ProtocolTeamMemberCreate,
) -> models.ProtocolTeamMember:
    require(db, models.Scientist, payload.scientist_id, "Scientist")
    duplicate = (
        db.query(models.ProtocolTeamMember)
        .filter_by(ibc_application_id=application.id, scientist_id=payload.scientist_id, role=payload.role)
        .first()
    )
    if duplicate is not None:
        raise Conflict("Scientist already holds this role on the protocol team")
    member = models.ProtocolTeamMember(
        ibc_application_id=application.id,
        scientist_id=payload.scientist_id,
        role=payload.role,
        responsibilities=payload.responsibilities,
    )
    db.add(member)
    db.flush()
    db.refresh(member)
    return member


def remove_team_member(db: Session, application: models.IbcApplication, member_id: UUID) -> None:
    member = db.get(models.ProtocolTeamMember, member_id)
    if member is None or member.ibc_application_id != application.id:
        raise NotFound("Team member not found")
    db.delete(member)
    db.flush()


def delete_application(db: Session, application: models.IbcApplication) -> None:
    """Remove the application together with its links, comments and team."""
    db.delete(application)
    db.flush()
    logger.info("ibc_application_deleted", application_id=str(application.id))
