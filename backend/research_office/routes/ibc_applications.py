from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import ibc_applications as service
from .common import announce_status_change, commit, service_errors

# purpose: HTTP surface for the IBC biosafety application workflow
# status: active

router = APIRouter(prefix="/api/ibc-applications", tags=["ibc-applications"])


def _get_application_or_404(db: Session, application_id: UUID) -> models.IbcApplication:
    with service_errors(db):
        return service.get_application(db, application_id)


async def _announce(application: models.IbcApplication, change):
    pi = application.principal_investigator
    await announce_status_change(
        "ibc",
        application_id=application.id,
        number=application.ibc_number,
        title=application.title,
        change=change,
        recipients=[pi.email if pi else None, application.additional_notification_email],
    )


@router.post("", response_model=schemas.IbcApplicationOut, status_code=status.HTTP_201_CREATED)
def create_ibc_application(payload: schemas.IbcApplicationCreate, db: Session = Depends(get_db)):
    with service_errors(db):
        application = service.create_application(db, payload)
    commit(db, application)
    return application


@router.get("", response_model=list[schemas.IbcApplicationOut])
def list_ibc_applications(
    research_activity_id: UUID | None = None,
    status: str | None = None,
    workflow_status: str | None = None,
    db: Session = Depends(get_db),
):
    with service_errors(db):
        return service.list_applications(
            db,
            research_activity_id=research_activity_id,
            status=status,
            workflow_status=workflow_status,
        )


@router.get("/{application_id}", response_model=schemas.IbcApplicationOut)
def get_ibc_application(application_id: UUID, db: Session = Depends(get_db)):
    return _get_application_or_404(db, application_id)


@router.patch("/{application_id}", response_model=schemas.IbcApplicationOut)
async def update_ibc_application(
    application_id: UUID,
    payload: schemas.IbcApplicationUpdate,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        change = service.update_application(db, application, payload)
    commit(db, application)
    if change is not None:
        await _announce(application, change)
    return application


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ibc_application(application_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    service.delete_application(db, application)
    commit(db)


@router.get("/{application_id}/research-activities", response_model=list[schemas.ResearchActivitySummary])
def list_linked_research_activities(application_id: UUID, db: Session = Depends(get_db)):
    return _get_application_or_404(db, application_id).research_activities


@router.post(
    "/{application_id}/research-activities",
    response_model=schemas.ResearchActivitySummary,
    status_code=status.HTTP_201_CREATED,
)
def link_research_activity(
    application_id: UUID,
    payload: schemas.ResearchActivityLinkCreate,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        link = service.link_research_activity(db, application, payload.research_activity_id)
    commit(db, link)
    return link.research_activity


@router.delete(
    "/{application_id}/research-activities/{activity_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def unlink_research_activity(application_id: UUID, activity_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        service.unlink_research_activity(db, application, activity_id)
    commit(db)


@router.post("/{application_id}/reviewer-feedback", response_model=schemas.IbcReviewerFeedbackOut)
async def submit_reviewer_feedback(
    application_id: UUID,
    payload: schemas.IbcReviewerFeedback,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        message, change = service.submit_reviewer_feedback(db, application, payload)
    commit(db, application)
    if change is not None:
        await _announce(application, change)
    return {"message": message, "application": application}


@router.get("/{application_id}/comments", response_model=list[schemas.IbcCommentOut])
def list_ibc_comments(application_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    return service.list_comments(db, application)


@router.post(
    "/{application_id}/pi-comment",
    response_model=schemas.IbcCommentOut,
    status_code=status.HTTP_201_CREATED,
)
def add_pi_comment(application_id: UUID, payload: schemas.PiCommentCreate, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        comment = service.add_pi_comment(db, application, payload.comment)
    commit(db, comment)
    return comment


@router.get("/{application_id}/personnel", response_model=list[schemas.ProtocolTeamMemberOut])
def list_personnel(application_id: UUID, db: Session = Depends(get_db)):
    return _get_application_or_404(db, application_id).team_members


@router.post(
    "/{application_id}/personnel",
    response_model=schemas.ProtocolTeamMemberOut,
    status_code=status.HTTP_201_CREATED,
)
def add_personnel(
    application_id: UUID,
    payload: schemas.ProtocolTeamMemberCreate,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        member = service.add_team_member(db, application, payload)
    commit(db, member)
    return member


@router.delete("/{application_id}/personnel/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_personnel(application_id: UUID, member_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        service.remove_team_member(db, application, member_id)
    commit(db)
