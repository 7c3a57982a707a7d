from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

router = APIRouter(prefix="/api/research-activities", tags=["research-activities"])

_SCIENTIST_FIELDS = ("lead_scientist_id", "budget_holder_id", "line_manager_id")


def _check_references(db: Session, data: dict):
    if data.get("project_id") is not None:
        get_or_404(db, models.Project, data["project_id"], "Project")
    for field in _SCIENTIST_FIELDS:
        if data.get(field) is not None:
            get_or_404(db, models.Scientist, data[field], "Scientist")


@router.post("", response_model=schemas.ResearchActivityOut, status_code=status.HTTP_201_CREATED)
def create_research_activity(payload: schemas.ResearchActivityCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    _check_references(db, data)
    activity = models.ResearchActivity(**data)
    db.add(activity)
    commit(db, activity)
    return activity


@router.get("", response_model=list[schemas.ResearchActivityOut])
def list_research_activities(project_id: UUID | None = None, db: Session = Depends(get_db)):
    query = db.query(models.ResearchActivity)
    if project_id is not None:
        query = query.filter(models.ResearchActivity.project_id == project_id)
    return query.order_by(models.ResearchActivity.sdr_number.asc()).all()


@router.get("/{activity_id}", response_model=schemas.ResearchActivityOut)
def get_research_activity(activity_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.ResearchActivity, activity_id, "Research activity")


@router.patch("/{activity_id}", response_model=schemas.ResearchActivityOut)
def update_research_activity(
    activity_id: UUID,
    payload: schemas.ResearchActivityUpdate,
    db: Session = Depends(get_db),
):
    activity = get_or_404(db, models.ResearchActivity, activity_id, "Research activity")
    data = payload.model_dump(exclude_unset=True)
    _check_references(db, data)
    for key, value in data.items():
        setattr(activity, key, value)
    commit(db, activity)
    return activity


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_research_activity(activity_id: UUID, db: Session = Depends(get_db)):
    activity = get_or_404(db, models.ResearchActivity, activity_id, "Research activity")
    db.delete(activity)
    commit(db)


@router.get("/{activity_id}/members", response_model=list[schemas.ResearchActivityMemberOut])
def list_members(activity_id: UUID, db: Session = Depends(get_db)):
    activity = get_or_404(db, models.ResearchActivity, activity_id, "Research activity")
    return activity.members


@router.post(
    "/{activity_id}/members",
    response_model=schemas.ResearchActivityMemberOut,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    activity_id: UUID,
    payload: schemas.ResearchActivityMemberCreate,
    db: Session = Depends(get_db),
):
    get_or_404(db, models.ResearchActivity, activity_id, "Research activity")
    get_or_404(db, models.Scientist, payload.scientist_id, "Scientist")
    existing = (
        db.query(models.ResearchActivityMember)
        .filter_by(research_activity_id=activity_id, scientist_id=payload.scientist_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Scientist is already a team member")
    member = models.ResearchActivityMember(research_activity_id=activity_id, **payload.model_dump())
    db.add(member)
    commit(db, member)
    return member


@router.delete("/{activity_id}/members/{scientist_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(activity_id: UUID, scientist_id: UUID, db: Session = Depends(get_db)):
    member = (
        db.query(models.ResearchActivityMember)
        .filter_by(research_activity_id=activity_id, scientist_id=scientist_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    db.delete(member)
    commit(db)
