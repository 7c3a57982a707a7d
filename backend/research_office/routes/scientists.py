from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import SIDRA_DEFAULT_YEARS
from ..database import get_db
from ..services import bibliometrics
from .common import commit, get_or_404, service_errors

router = APIRouter(prefix="/api/scientists", tags=["scientists"])
directory_router = APIRouter(prefix="/api", tags=["scientists"])


def derive_initials(name: str, first_name: str | None = None, last_name: str | None = None) -> str:
    if first_name and last_name:
        return (first_name[0] + last_name[0]).upper()
    parts = [part for part in name.replace(".", " ").split() if part]
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[-1][0]).upper()


@router.post("", response_model=schemas.ScientistOut, status_code=status.HTTP_201_CREATED)
def create_scientist(payload: schemas.ScientistCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    if not data.get("profile_image_initials"):
        data["profile_image_initials"] = derive_initials(payload.name, payload.first_name, payload.last_name)
    if payload.supervisor_id is not None:
        get_or_404(db, models.Scientist, payload.supervisor_id, "Supervisor")
    scientist = models.Scientist(**data)
    db.add(scientist)
    commit(db, scientist)
    return scientist


@router.get("", response_model=list[schemas.ScientistOut])
def list_scientists(db: Session = Depends(get_db)):
    return db.query(models.Scientist).order_by(models.Scientist.name.asc()).all()


@router.post("/sidra-scores", response_model=list[schemas.SidraScore])
def calculate_sidra_scores(payload: schemas.SidraScoreRequest, db: Session = Depends(get_db)):
    return bibliometrics.sidra_scores(db, payload)


@router.get("/{scientist_id}", response_model=schemas.ScientistOut)
def get_scientist(scientist_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Scientist, scientist_id, "Scientist")


@router.patch("/{scientist_id}", response_model=schemas.ScientistOut)
def update_scientist(scientist_id: UUID, payload: schemas.ScientistUpdate, db: Session = Depends(get_db)):
    scientist = get_or_404(db, models.Scientist, scientist_id, "Scientist")
    data = payload.model_dump(exclude_unset=True)
    if data.get("supervisor_id") is not None:
        get_or_404(db, models.Scientist, data["supervisor_id"], "Supervisor")
    for key, value in data.items():
        setattr(scientist, key, value)
    if "name" in data and "profile_image_initials" not in data:
        scientist.profile_image_initials = derive_initials(scientist.name, scientist.first_name, scientist.last_name)
    commit(db, scientist)
    return scientist


@router.delete("/{scientist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_scientist(scientist_id: UUID, db: Session = Depends(get_db)):
    scientist = get_or_404(db, models.Scientist, scientist_id, "Scientist")
    db.delete(scientist)
    commit(db)


@router.get("/{scientist_id}/research-activities", response_model=list[schemas.ResearchActivityOut])
def list_scientist_research_activities(scientist_id: UUID, db: Session = Depends(get_db)):
    get_or_404(db, models.Scientist, scientist_id, "Scientist")
    member_activity_ids = db.query(models.ResearchActivityMember.research_activity_id).filter(
        models.ResearchActivityMember.scientist_id == scientist_id
    )
    return (
        db.query(models.ResearchActivity)
        .filter(
            or_(
                models.ResearchActivity.lead_scientist_id == scientist_id,
                models.ResearchActivity.id.in_(member_activity_ids),
            )
        )
        .order_by(models.ResearchActivity.sdr_number.asc())
        .all()
    )


@router.get("/{scientist_id}/publications", response_model=list[schemas.ScientistPublicationOut])
def list_scientist_publications(
    scientist_id: UUID,
    years: int = Query(SIDRA_DEFAULT_YEARS, ge=1),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        return bibliometrics.scientist_publications(db, scientist_id, years)


@router.get("/{scientist_id}/authorship-stats", response_model=schemas.AuthorshipStats)
def get_authorship_stats(
    scientist_id: UUID,
    years: int = Query(SIDRA_DEFAULT_YEARS, ge=1),
    db: Session = Depends(get_db),
):
    with service_errors(db):
        return bibliometrics.authorship_stats(db, scientist_id, years)


@directory_router.get("/staff", response_model=list[schemas.ScientistOut])
def list_staff(db: Session = Depends(get_db)):
    return (
        db.query(models.Scientist)
        .filter(models.Scientist.is_staff.is_(True))
        .order_by(models.Scientist.last_name.asc(), models.Scientist.name.asc())
        .all()
    )


@directory_router.get("/principal-investigators", response_model=list[schemas.ScientistOut])
def list_principal_investigators(db: Session = Depends(get_db)):
    return (
        db.query(models.Scientist)
        .filter(models.Scientist.is_staff.is_(False))
        .order_by(models.Scientist.last_name.asc(), models.Scientist.name.asc())
        .all()
    )
