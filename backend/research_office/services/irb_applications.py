"""IRB application orchestration: creation, office review actions and the comment trail."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models, schemas
from ..audit import record_irb_comment
from ..logging_config import get_logger
from ..workflows import irb as workflow
from . import Conflict, InvalidRequest, NotFound, StatusChange, require
from .numbering import next_application_number, reserve_supplied_number

# purpose: drive IRB protocols from submission through board decision
# inputs: SQLAlchemy session, validated IRB payloads and review actions
# outputs: flushed IrbApplication rows, reviewer assignments and comment entries
# status: active
# depends_on: research_office.workflows.irb, research_office.audit

logger = get_logger(__name__)

_CONTROL_FIELDS = {"status", "workflow_status", "submission_comment"}
_MILESTONE_COLUMNS = ("submission_date", "initial_approval_date")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_application(db: Session, application_id: UUID) -> models.IrbApplication:
    return require(db, models.IrbApplication, application_id, "IRB application")


def list_applications(
    db: Session,
    *,
    research_activity_id: UUID | None = None,
    workflow_status: str | None = None,
) -> Sequence[models.IrbApplication]:
    query = db.query(models.IrbApplication)
    if research_activity_id is not None:
        query = query.filter(models.IrbApplication.research_activity_id == research_activity_id)
    if workflow_status:
        query = query.filter(models.IrbApplication.workflow_status == workflow.normalize(workflow_status))
    return query.order_by(models.IrbApplication.created_at.desc()).all()


def create_application(db: Session, payload: schemas.IrbApplicationCreate) -> models.IrbApplication:
    require(db, models.ResearchActivity, payload.research_activity_id, "Research activity")
    pi = require(db, models.Scientist, payload.principal_investigator_id, "Principal investigator")
    state = workflow.normalize(payload.workflow_status)
    workflow.validate_creation_state(state)

    if payload.irb_number:
        reserve_supplied_number(db, "IRB", payload.irb_number)
    data = payload.model_dump(exclude={"irb_number", "workflow_status", "submission_comment"})
    application = models.IrbApplication(
        **data,
        irb_number=payload.irb_number or next_application_number(db, "IRB"),
        status=workflow.label_for(state),
        workflow_status=state,
    )
    if state == workflow.SUBMITTED:
        application.submission_date = _utcnow()
    db.add(application)
    db.flush()
    if payload.submission_comment and payload.submission_comment.strip():
        record_irb_comment(
            db,
            application,
            "submission_comment",
            payload.submission_comment.strip(),
            author_type="pi",
            author_name=pi.name,
            author_id=pi.id,
        )
    db.refresh(application)
    logger.info(
        "irb_application_created",
        application_id=str(application.id),
        irb_number=application.irb_number,
        workflow_status=state,
    )
    return application


def _transition(
    db: Session,
    application: models.IrbApplication,
    target: str,
    *,
    supplied: dict | None = None,
    author_name: str | None = None,
    author_id: UUID | None = None,
) -> StatusChange:
    current = application.workflow_status
    workflow.validate_transition(current, target)
    existing = {column: getattr(application, column) for column in _MILESTONE_COLUMNS}
    stamps = workflow.milestone_updates(target, now=_utcnow(), existing=existing, supplied=supplied or {})
    for column, value in stamps.items():
        setattr(application, column, value)
    application.workflow_status = target
    application.status = workflow.label_for(target)
    change = StatusChange(current, target, workflow.label_for(current), workflow.label_for(target))
    record_irb_comment(
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
        "irb_status_changed",
        application_id=str(application.id),
        status_from=current,
        status_to=target,
    )
    return change


def update_application(
    db: Session,
    application: models.IrbApplication,
    payload: schemas.IrbApplicationUpdate,
) -> StatusChange | None:
    status = workflow.normalize(payload.status) if payload.status else None
    workflow_status = workflow.normalize(payload.workflow_status) if payload.workflow_status else None
    if status and workflow_status and status != workflow_status:
        raise InvalidRequest(
            f"status '{payload.status}' and workflow_status '{payload.workflow_status}' disagree"
        )
    target = status or workflow_status

    data = payload.model_dump(exclude_unset=True, exclude=_CONTROL_FIELDS)
    if data.get("research_activity_id") is not None:
        require(db, models.ResearchActivity, data["research_activity_id"], "Research activity")
    if data.get("principal_investigator_id") is not None:
        require(db, models.Scientist, data["principal_investigator_id"], "Principal investigator")
    for key, value in data.items():
        setattr(application, key, value)

    change = None
    if target is not None and target != application.workflow_status:
        supplied = {column: data.get(column) for column in _MILESTONE_COLUMNS}
        change = _transition(db, application, target, supplied=supplied)

    if payload.submission_comment and payload.submission_comment.strip():
        pi = application.principal_investigator
        record_irb_comment(
            db,
            application,
            "submission_comment",
            payload.submission_comment.strip(),
            author_type="pi",
            author_name=pi.name if pi else None,
            author_id=application.principal_investigator_id,
        )
    application.updated_at = _utcnow()
    db.flush()
    return change


def _assign_reviewers(db: Session, application: models.IrbApplication, reviewer_ids: list[UUID]) -> None:
    existing = {assignment.scientist_id for assignment in application.reviewer_assignments}
    # at most one primary per application, across every assignment round
    has_primary = any(a.reviewer_role == "primary" for a in application.reviewer_assignments)
    for scientist_id in dict.fromkeys(reviewer_ids):
        require(db, models.Scientist, scientist_id, "Reviewer")
        if scientist_id in existing:
            continue
        role = "secondary" if has_primary else "primary"
        has_primary = True
        application.reviewer_assignments.append(
            models.IrbReviewerAssignment(
                scientist_id=scientist_id,
                reviewer_role=role,
                assigned_at=_utcnow(),
            )
        )
    db.flush()


def apply_review_action(
    db: Session,
    application: models.IrbApplication,
    payload: schemas.IrbReviewActionPayload,
) -> StatusChange:
    """Run an office or board action and record its comment and status change."""

    target = workflow.review_target(payload.action, payload.comments, payload.reviewer_ids)
    workflow.validate_transition(application.workflow_status, target)

    author_name = "IRB Office"
    if payload.reviewer_id is not None:
        author_name = require(db, models.Scientist, payload.reviewer_id, "Reviewer").name
    if payload.action == "assign_reviewers":
        _assign_reviewers(db, application, payload.reviewer_ids)

    comment = (payload.comments or "").strip()
    if not comment:
        names = [assignment.scientist.name for assignment in application.reviewer_assignments]
        comment = f"Reviewers assigned: {', '.join(names)}"
    record_irb_comment(
        db,
        application,
        "review_comment",
        comment,
        author_type="office",
        author_name=author_name,
        author_id=payload.reviewer_id,
        recommendation=payload.action,
    )
    change = _transition(
        db,
        application,
        target,
        author_name=author_name,
        author_id=payload.reviewer_id,
    )
    application.updated_at = _utcnow()
    db.flush()
    return change


def list_comments(db: Session, application: models.IrbApplication) -> Sequence[models.IrbApplicationComment]:
    return (
        db.query(models.IrbApplicationComment)
        .filter(models.IrbApplicationComment.application_id == application.id)
        .order_by(models.IrbApplicationComment.created_at.asc(), models.IrbApplicationComment.sequence.asc())
        .all()
    )


def list_reviewers(db: Session, application: models.IrbApplication) -> Sequence[models.IrbReviewerAssignment]:
    return (
        db.query(models.IrbReviewerAssignment)
        .filter(models.IrbReviewerAssignment.application_id == application.id)
        .order_by(models.IrbReviewerAssignment.assigned_at.asc())
        .all()
    )


def add_team_member(
    db: Session,
    application: models.IrbApplication,
    payload: schemas.ProtocolTeamMemberCreate,
) -> models.ProtocolTeamMember:
    require(db, models.Scientist, payload.scientist_id, "Scientist")
    duplicate = (
        db.query(models.ProtocolTeamMember)
        .filter_by(irb_application_id=application.id, scientist_id=payload.scientist_id, role=payload.role)
        .first()
    )
    if duplicate is not None:
        raise Conflict("Scientist already holds this role on the protocol team")
    member = models.ProtocolTeamMember(
        irb_application_id=application.id,
        scientist_id=payload.scientist_id,
        role=payload.role,
        responsibilities=payload.responsibilities,
    )
    db.add(member)
    db.flush()
    db.refresh(member)
    return member


def remove_team_member(db: Session, application: models.IrbApplication, member_id: UUID) -> None:
    member = db.get(models.ProtocolTeamMember, member_id)
    if member is None or member.irb_application_id != application.id:
        raise NotFound("Team member not found")
    db.delete(member)
    db.flush()


def delete_application(db: Session, application: models.IrbApplication) -> None:
    db.delete(application)
    db.flush()
    logger.info("irb_application_deleted", application_id=str(application.id))
