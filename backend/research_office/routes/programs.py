from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

router = APIRouter(prefix="/api/programs", tags=["programs"])

_LEAD_FIELDS = ("program_director_id", "research_co_lead_id", "clinical_co_lead_1_id", "clinical_co_lead_2_id")


def _check_leads(db: Session, data: dict):
    for field in _LEAD_FIELDS:
        if data.get(field) is not None:
            get_or_404(db, models.Scientist, data[field], "Scientist")


@router.post("", response_model=schemas.ProgramOut, status_code=status.HTTP_201_CREATED)
def create_program(payload: schemas.ProgramCreate, db: Session = Depends(get_db)):
    data = payload.model_dump()
    _check_leads(db, data)
    program = models.Program(**data)
    db.add(program)
    commit(db, program)
    return program


@router.get("", response_model=list[schemas.ProgramOut])
def list_programs(db: Session = Depends(get_db)):
    return db.query(models.Program).order_by(models.Program.program_id.asc()).all()


@router.get("/{program_id}", response_model=schemas.ProgramOut)
def get_program(program_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Program, program_id, "Program")


@router.patch("/{program_id}", response_model=schemas.ProgramOut)
def update_program(program_id: UUID, payload: schemas.ProgramUpdate, db: Session = Depends(get_db)):
    program = get_or_404(db, models.Program, program_id, "Program")
    data = payload.model_dump(exclude_unset=True)
    _check_leads(db, data)
    for key, value in data.items():
        setattr(program, key, value)
    commit(db, program)
    return program


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_program(program_id: UUID, db: Session = Depends(get_db)):
    program = get_or_404(db, models.Program, program_id, "Program")
    if program.projects:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Program still has projects")
    db.delete(program)
    commit(db)


@router.get("/{program_id}/projects", response_model=list[schemas.ProjectOut])
def list_program_projects(program_id: UUID, db: Session = Depends(get_db)):
    get_or_404(db, models.Program, program_id, "Program")
    return (
        db.query(models.Project)
        .filter(models.Project.program_id == program_id)
        .order_by(models.Project.project_id.asc())
        .all()
    )
