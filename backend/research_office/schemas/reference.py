"""Pydantic schemas for board rosters, facilities, role permissions and journal metrics."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import PartialUpdate
from .people import ScientistSummary

BoardRole = Literal["member", "chair", "deputy_chair"]
AccessLevel = Literal["hide", "view", "edit"]


class BoardMemberBase(BaseModel):
    scientist_id: UUID
    role: BoardRole = "member"
    expertise: list[str] = Field(default_factory=list)
    appointment_date: date | None = None
    term_end_date: date
    is_active: bool = True


class BoardMemberUpdate(PartialUpdate):
    required_fields = ("role", "term_end_date")

    role: BoardRole | None = None
    expertise: list[str] | None = None
    appointment_date: date | None = None
    term_end_date: date | None = None
    is_active: bool | None = None


class IbcBoardMemberCreate(BoardMemberBase):
    biosafety_training: list[str] = Field(default_factory=list)


class IbcBoardMemberUpdate(BoardMemberUpdate):
    biosafety_training: list[str] | None = None


class IbcBoardMemberOut(IbcBoardMemberCreate):
    id: UUID
    created_at: datetime | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class IrbBoardMemberCreate(BoardMemberBase):
    pass


class IrbBoardMemberUpdate(BoardMemberUpdate):
    pass


class IrbBoardMemberOut(BoardMemberBase):
    id: UUID
    created_at: datetime | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class BuildingCreate(BaseModel):
    name: str
    description: str | None = None
    address: str | None = None


class BuildingUpdate(PartialUpdate):
    required_fields = ("name",)

    name: str | None = None
    description: str | None = None
    address: str | None = None


class BuildingOut(BuildingCreate):
    id: UUID
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RoomCreate(BaseModel):
    building_id: UUID
    room_number: str
    floor: str | None = None
    biosafety_level: str | None = None
    capacity: int | None = None
    room_supervisor_id: UUID | None = None


class RoomUpdate(PartialUpdate):
    required_fields = ("building_id", "room_number")

    building_id: UUID | None = None
    room_number: str | None = None
    floor: str | None = None
    biosafety_level: str | None = None
    capacity: int | None = None
    room_supervisor_id: UUID | None = None


class RoomOut(RoomCreate):
    id: UUID
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RolePermissionCreate(BaseModel):
    job_title: str
    navigation_item: str
    access_level: AccessLevel = "view"


class RolePermissionOut(RolePermissionCreate):
    id: UUID
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class AccessLevelOut(BaseModel):
    job_title: str
    navigation_item: str
    access_level: AccessLevel


class JournalImpactFactorCreate(BaseModel):
    journal_name: str
    abbreviated_journal: str | None = None
    year: int
    issn: str | None = None
    eissn: str | None = None
    impact_factor: float
    five_year_jif: float | None = None
    quartile: str | None = None
    rank: int | None = None


class JournalImpactFactorUpdate(PartialUpdate):
    required_fields = ("journal_name", "year", "impact_factor")

    journal_name: str | None = None
    abbreviated_journal: str | None = None
    year: int | None = None
    issn: str | None = None
    eissn: str | None = None
    impact_factor: float | None = None
    five_year_jif: float | None = None
    quartile: str | None = None
    rank: int | None = None


class JournalImpactFactorOut(JournalImpactFactorCreate):
    id: UUID
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class BulkUpsertResult(BaseModel):
    created: int
    updated: int


class DashboardStats(BaseModel):
    active_research_activities: int
    publications: int
    patents: int
    pending_applications: int


class RecentActivity(BaseModel):
    kind: str
    id: UUID
    title: str
    status: str | None = None
    timestamp: datetime


class UpcomingDeadline(BaseModel):
    kind: str
    id: UUID
    number: str
    title: str
    expiration_date: date
    days_remaining: int


class PubMedQuery(BaseModel):
    query: str
    limit: int = 5


class PubMedArticle(BaseModel):
    id: str
    title: str


class CrossRefWork(BaseModel):
    doi: str
    title: str
    journal: str | None = None
    authors: str | None = None
    volume: str | None = None
    issue: str | None = None
    pages: str | None = None
    publication_date: date | None = None
    publication_type: str | None = None
