from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

router = APIRouter(prefix="/api/journal-impact-factors", tags=["journal-impact-factors"])


@router.get("", response_model=list[schemas.JournalImpactFactorOut])
def list_impact_factors(
    search: str | None = None,
    year: int | None = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    query = db.query(models.JournalImpactFactor)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(models.JournalImpactFactor.journal_name).like(pattern),
                func.lower(models.JournalImpactFactor.abbreviated_journal).like(pattern),
            )
        )
    if year is not None:
        query = query.filter(models.JournalImpactFactor.year == year)
    return (
        query.order_by(
            models.JournalImpactFactor.impact_factor.desc(),
            models.JournalImpactFactor.journal_name.asc(),
        )
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/history", response_model=list[schemas.JournalImpactFactorOut])
def impact_factor_history(journal: str = Query(...), db: Session = Depends(get_db)):
    name = journal.strip().lower()
    return (
        db.query(models.JournalImpactFactor)
        .filter(
            or_(
                func.lower(models.JournalImpactFactor.journal_name) == name,
                func.lower(models.JournalImpactFactor.abbreviated_journal) == name,
            )
        )
        .order_by(models.JournalImpactFactor.year.asc())
        .all()
    )


@router.post("/bulk", response_model=schemas.BulkUpsertResult)
def bulk_upsert_impact_factors(
    payload: list[schemas.JournalImpactFactorCreate],
    db: Session = Depends(get_db),
):
    created = updated = 0
    for entry in payload:
        row = (
            db.query(models.JournalImpactFactor)
            .filter_by(journal_name=entry.journal_name, year=entry.year)
            .one_or_none()
        )
        if row is None:
            db.add(models.JournalImpactFactor(**entry.model_dump()))
            created += 1
        else:
            for key, value in entry.model_dump().items():
                setattr(row, key, value)
            updated += 1
        db.flush()
    commit(db)
    return {"created": created, "updated": updated}


@router.post("", response_model=schemas.JournalImpactFactorOut, status_code=status.HTTP_201_CREATED)
def create_impact_factor(payload: schemas.JournalImpactFactorCreate, db: Session = Depends(get_db)):
    row = models.JournalImpactFactor(**payload.model_dump())
    db.add(row)
    commit(db, row)
    return row


@router.get("/{factor_id}", response_model=schemas.JournalImpactFactorOut)
def get_impact_factor(factor_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.JournalImpactFactor, factor_id, "Journal impact factor")


@router.patch("/{factor_id}", response_model=schemas.JournalImpactFactorOut)
def update_impact_factor(
    factor_id: UUID,
    payload: schemas.JournalImpactFactorUpdate,
    db: Session = Depends(get_db),
):
    row = get_or_404(db, models.JournalImpactFactor, factor_id, "Journal impact factor")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, value)
    commit(db, row)
    return row


@router.delete("/{factor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_impact_factor(factor_id: UUID, db: Session = Depends(get_db)):
    row = get_or_404(db, models.JournalImpactFactor, factor_id, "Journal impact factor")
    db.delete(row)
    commit(db)
