from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import DEADLINE_WINDOW_DAYS
from ..database import get_db
from ..workflows import ibc as ibc_workflow
from ..workflows import irb as irb_workflow

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

_RECENT_SOURCES = (
    ("research_activity", models.ResearchActivity),
    ("publication", models.Publication),
    ("patent", models.Patent),
    ("irb_application", models.IrbApplication),
    ("ibc_application", models.IbcApplication),
)


@router.get("/stats", response_model=schemas.DashboardStats)
def dashboard_stats(db: Session = Depends(get_db)):
    pending_irb = (
        db.query(models.IrbApplication)
        .filter(models.IrbApplication.workflow_status.in_(irb_workflow.PENDING_STATES))
        .count()
    )
    pending_ibc = (
        db.query(models.IbcApplication)
        .filter(models.IbcApplication.workflow_status == ibc_workflow.SUBMITTED)
        .count()
    )
    return {
        "active_research_activities": db.query(models.ResearchActivity)
        .filter(models.ResearchActivity.status == "active")
        .count(),
        "publications": db.query(models.Publication).count(),
        "patents": db.query(models.Patent).count(),
        "pending_applications": pending_irb + pending_ibc,
    }


@router.get("/recent-activities", response_model=list[schemas.RecentActivity])
def recent_activities(limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    items = []
    for kind, model in _RECENT_SOURCES:
        rows = db.query(model).order_by(model.updated_at.desc()).limit(limit).all()
        for row in rows:
            items.append(
                {
                    "kind": kind,
                    "id": row.id,
                    "title": row.title,
                    "status": row.status,
                    "timestamp": row.updated_at or row.created_at,
                }
            )
    items.sort(key=lambda item: item["timestamp"], reverse=True)
    return items[:limit]


@router.get("/upcoming-deadlines", response_model=list[schemas.UpcomingDeadline])
def upcoming_deadlines(db: Session = Depends(get_db)):
    today = date.today()
    horizon = today + timedelta(days=DEADLINE_WINDOW_DAYS)
    deadlines = []
    for kind, model, number_column in (
        ("irb_application", models.IrbApplication, "irb_number"),
        ("ibc_application", models.IbcApplication, "ibc_number"),
    ):
        rows = (
            db.query(model)
            .filter(model.expiration_date.isnot(None))
            .filter(model.expiration_date >= today, model.expiration_date <= horizon)
            .all()
        )
        for row in rows:
            deadlines.append(
                {
                    "kind": kind,
                    "id": row.id,
                    "number": getattr(row, number_column),
                    "title": row.title,
                    "expiration_date": row.expiration_date,
                    "days_remaining": (row.expiration_date - today).days,
                }
            )
    deadlines.sort(key=lambda item: item["expiration_date"])
    return deadlines
