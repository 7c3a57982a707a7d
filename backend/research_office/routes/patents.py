from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

router = APIRouter(prefix="/api/patents", tags=["patents"])


@router.post("", response_model=schemas.PatentOut, status_code=status.HTTP_201_CREATED)
def create_patent(payload: schemas.PatentCreate, db: Session = Depends(get_db)):
    if payload.research_activity_id is not None:
        get_or_404(db, models.ResearchActivity, payload.research_activity_id, "Research activity")
    patent = models.Patent(**payload.model_dump())
    db.add(patent)
    commit(db, patent)
    return patent


@router.get("", response_model=list[schemas.PatentOut])
def list_patents(research_activity_id: UUID | None = None, db: Session = Depends(get_db)):
    query = db.query(models.Patent)
    if research_activity_id is not None:
        query = query.filter(models.Patent.research_activity_id == research_activity_id)
    return query.order_by(models.Patent.created_at.desc()).all()


@router.get("/{patent_id}", response_model=schemas.PatentOut)
def get_patent(patent_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Patent, patent_id, "Patent")


@router.patch("/{patent_id}", response_model=schemas.PatentOut)
def update_patent(patent_id: UUID, payload: schemas.PatentUpdate, db: Session = Depends(get_db)):
    patent = get_or_404(db, models.Patent, patent_id, "Patent")
    data = payload.model_dump(exclude_unset=True)
    if data.get("research_activity_id") is not None:
        get_or_404(db, models.ResearchActivity, data["research_activity_id"], "Research activity")
    for key, value in data.items():
        setattr(patent, key, value)
    commit(db, patent)
    return patent


@router.delete("/{patent_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patent(patent_id: UUID, db: Session = Depends(get_db)):
    patent = get_or_404(db, models.Patent, patent_id, "Patent")
    db.delete(patent)
    commit(db)
