from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _check_references(db: Session, data: dict):
    if data.get("program_id") is not None:
        get_or_404(db, models.Program, data["program_id"], "Program")
    if data.get("principal_investigator_id") is not None:
        get_or_404(db, models.Scientist, data["principal_investigator_id"], "Principal investigator")


@router.post("", response_model=schemas.ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(payload: schemas.ProjectCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    _check_references(db, data)
    project = models.Project(**data)
    db.add(project)
    commit(db, project)
    return project


@router.get("", response_model=list[schemas.ProjectOut])
def list_projects(program_id: UUID | None = None, db: Session = Depends(get_db)):
    query = db.query(models.Project)
    if program_id is not None:
        query = query.filter(models.Project.program_id == program_id)
    return query.order_by(models.Project.project_id.asc()).all()


@router.get("/{project_id}", response_model=schemas.ProjectOut)
def get_project(project_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Project, project_id, "Project")


@router.patch("/{project_id}", response_model=schemas.ProjectOut)
def update_project(project_id: UUID, payload: schemas.ProjectUpdate, db: Session = Depends(get_db)):
    project = get_or_404(db, models.Project, project_id, "Project")
    data = payload.model_dump(exclude_unset=True)
    _check_references(db, data)
    for key, value in data.items():
        setattr(project, key, value)
    commit(db, project)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: UUID, db: Session = Depends(get_db)):
    project = get_or_404(db, models.Project, project_id, "Project")
    if project.research_activities:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Project still has research activities")
    db.delete(project)
    commit(db)


@router.get("/{project_id}/research-activities", response_model=list[schemas.ResearchActivityOut])
def list_project_research_activities(project_id: UUID, db: Session = Depends(get_db)):
    get_or_404(db, models.Project, project_id, "Project")
    return (
        db.query(models.ResearchActivity)
        .filter(models.ResearchActivity.project_id == project_id)
        .order_by(models.ResearchActivity.sdr_number.asc())
        .all()
    )
