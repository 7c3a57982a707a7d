from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from .common import commit, get_or_404

buildings_router = APIRouter(prefix="/api/buildings", tags=["facilities"])
rooms_router = APIRouter(prefix="/api/rooms", tags=["facilities"])


@buildings_router.post("", response_model=schemas.BuildingOut, status_code=status.HTTP_201_CREATED)
def create_building(payload: schemas.BuildingCreate, db: Session = Depends(get_db)):
    building = models.Building(**payload.model_dump())
    db.add(building)
    commit(db, building)
    return building


@buildings_router.get("", response_model=list[schemas.BuildingOut])
def list_buildings(db: Session = Depends(get_db)):
    return db.query(models.Building).order_by(models.Building.name.asc()).all()


@buildings_router.get("/{building_id}", response_model=schemas.BuildingOut)
def get_building(building_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Building, building_id, "Building")


@buildings_router.patch("/{building_id}", response_model=schemas.BuildingOut)
def update_building(building_id: UUID, payload: schemas.BuildingUpdate, db: Session = Depends(get_db)):
    building = get_or_404(db, models.Building, building_id, "Building")
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(building, key, value)
    commit(db, building)
    return building


@buildings_router.delete("/{building_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_building(building_id: UUID, db: Session = Depends(get_db)):
    building = get_or_404(db, models.Building, building_id, "Building")
    if building.rooms:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Building still has rooms")
    db.delete(building)
    commit(db)


@rooms_router.post("", response_model=schemas.RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(payload: schemas.RoomCreate, db: Session = Depends(get_db)):
    get_or_404(db, models.Building, payload.building_id, "Building")
    if payload.room_supervisor_id is not None:
        get_or_404(db, models.Scientist, payload.room_supervisor_id, "Scientist")
    room = models.Room(**payload.model_dump())
    db.add(room)
    commit(db, room)
    return room


@rooms_router.get("", response_model=list[schemas.RoomOut])
def list_rooms(building_id: UUID | None = None, db: Session = Depends(get_db)):
    query = db.query(models.Room)
    if building_id is not None:
        query = query.filter(models.Room.building_id == building_id)
    return query.order_by(models.Room.room_number.asc()).all()


@rooms_router.get("/{room_id}", response_model=schemas.RoomOut)
def get_room(room_id: UUID, db: Session = Depends(get_db)):
    return get_or_404(db, models.Room, room_id, "Room")


@rooms_router.patch("/{room_id}", response_model=schemas.RoomOut)
def update_room(room_id: UUID, payload: schemas.RoomUpdate, db: Session = Depends(get_db)):
    room = get_or_404(db, models.Room, room_id, "Room")
    data = payload.model_dump(exclude_unset=True)
    if data.get("building_id") is not None:
        get_or_404(db, models.Building, data["building_id"], "Building")
    if data.get("room_supervisor_id") is not None:
        get_or_404(db, models.Scientist, data["room_supervisor_id"], "Scientist")
    for key, value in data.items():
        setattr(room, key, value)
    commit(db, room)
    return room


@rooms_router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(room_id: UUID, db: Session = Depends(get_db)):
    room = get_or_404(db, models.Room, room_id, "Room")
    db.delete(room)
    commit(db)
