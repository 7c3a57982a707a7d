from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

# purpose: committee rosters for the IBC and IRB boards
# status: active


def _board_router(prefix: str, tag: str, model, create_schema, update_schema, out_schema, label: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create_member(payload: create_schema, db: Session = Depends(get_db)):
        get_or_404(db, models.Scientist, payload.scientist_id, "Scientist")
        member = model(**payload.model_dump())
        db.add(member)
        commit(db, member)
        return member

    @router.get("", response_model=list[out_schema])
    def list_members(db: Session = Depends(get_db)):
        return db.query(model).order_by(model.term_end_date.asc()).all()

    @router.get("/active", response_model=list[out_schema])
    def list_active_members(db: Session = Depends(get_db)):
        return (
            db.query(model)
            .filter(model.is_active.is_(True), model.term_end_date >= date.today())
            .order_by(model.role.asc(), model.term_end_date.asc())
            .all()
        )

    @router.get("/{member_id}", response_model=out_schema)
    def get_member(member_id: UUID, db: Session = Depends(get_db)):
        return get_or_404(db, model, member_id, label)

    @router.patch("/{member_id}", response_model=out_schema)
    def update_member(member_id: UUID, payload: update_schema, db: Session = Depends(get_db)):
        member = get_or_404(db, model, member_id, label)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(member, key, value)
        commit(db, member)
        return member

    @router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_member(member_id: UUID, db: Session = Depends(get_db)):
        member = get_or_404(db, model, member_id, label)
        db.delete(member)
        commit(db)

    return router


ibc_router = _board_router(
    "/api/ibc-board-members",
    "ibc-board-members",
    models.IbcBoardMember,
    schemas.IbcBoardMemberCreate,
    schemas.IbcBoardMemberUpdate,
    schemas.IbcBoardMemberOut,
    "IBC board member",
)

irb_router = _board_router(
    "/api/irb-board-members",
    "irb-board-members",
    models.IrbBoardMember,
    schemas.IrbBoardMemberCreate,
    schemas.IrbBoardMemberUpdate,
    schemas.IrbBoardMemberOut,
    "IRB board member",
)
