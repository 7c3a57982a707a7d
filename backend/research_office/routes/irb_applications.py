from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import irb_applications as service
from .common import announce_status_change, commit, service_errors

# purpose: HTTP surface for IRB protocol submission, review actions and decisions
# status: active

router = APIRouter(prefix="/api/irb-applications", tags=["irb-applications"])


def _get_application_or_404(db: Session, application_id: UUID) -> models.IrbApplication:
    with service_errors(db):
        return service.get_application(db, application_id)


async def _announce(application: models.IrbApplication, change):
    pi = application.principal_investigator
    await announce_status_change(
        "irb",
        application_id=application.id,
        number=application.irb_number,
        title=application.title,
        change=change,
        recipients=[pi.email if pi else None, application.additional_notification_email],
    )


@router.post("", response_model=schemas.IrbApplicationOut, status_code=status.HTTP_201_CREATED)
def create_irb_application(payload: schemas.IrbApplicationCreate, db: Session = Depends(get_db)):
    with service_errors(db):
        application = service.create_application(db, payload)
    commit(db, application)
    return application


@router.get("", response_model=list[schemas.IrbApplicationOut])
def list_irb_applications(
    research_activity_id: UUID | None = None,
    workflow_status: str | None = None,
    db: Session = Depends(get_db),
):
    with service_errors(db):
        return service.list_applications(
            db,
            research_activity_id=research_activity_id,
            workflow_status=workflow_status,
        )


@router.get("/{application_id}", response_model=schemas.IrbApplicationOut)
def get_irb_application(application_id: UUID, db: Session = Depends(get_db)):
    return _get_application_or_404(db, application_id)


@router.patch("/{application_id}", response_model=schemas.IrbApplicationOut)
async def update_irb_application(
    application_id: UUID,
    payload: schemas.IrbApplicationUpdate,
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
def delete_irb_application(application_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    service.delete_application(db, application)
    commit(db)


@router.post("/{application_id}/review", response_model=schemas.IrbApplicationOut)
async def review_irb_application(
    application_id: UUID,
    payload: schemas.IrbReviewActionPayload,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        change = service.apply_review_action(db, application, payload)
    commit(db, application)
    await _announce(application, change)
    return application


@router.get("/{application_id}/comments", response_model=list[schemas.IrbCommentOut])
def list_irb_comments(application_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    return service.list_comments(db, application)


@router.get("/{application_id}/reviewers", response_model=list[schemas.IrbReviewerOut])
def list_irb_reviewers(application_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    return service.list_reviewers(db, application)


@router.get("/{application_id}/team-members", response_model=list[schemas.ProtocolTeamMemberOut])
def list_team_members(application_id: UUID, db: Session = Depends(get_db)):
    return _get_application_or_404(db, application_id).team_members


@router.post(
    "/{application_id}/team-members",
    response_model=schemas.ProtocolTeamMemberOut,
    status_code=status.HTTP_201_CREATED,
)
def add_team_member(
    application_id: UUID,
    payload: schemas.ProtocolTeamMemberCreate,
    db: Session = Depends(get_db),
):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        member = service.add_team_member(db, application, payload)
    commit(db, member)
    return member


@router.delete("/{application_id}/team-members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_team_member(application_id: UUID, member_id: UUID, db: Session = Depends(get_db)):
    application = _get_application_or_404(db, application_id)
    with service_errors(db):
        service.remove_team_member(db, application, member_id)
    commit(db)
