"""Pydantic schemas for publications, authorship and manuscript history."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import PartialUpdate
from .people import ScientistSummary


class PublicationBase(BaseModel):
    research_activity_id: UUID | None = None
    title: str
    abstract: str | None = None
    authors: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None
    pages: str | None = None
    doi: str | None = None
    pmid: str | None = None
    publication_date: date | None = None
    publication_type: str | None = None
    prepublication_url: str | None = None
    prepublication_site: str | None = None


class PublicationCreate(PublicationBase):
    status: str = "Concept"


class PublicationUpdate(PartialUpdate):
    """Plain field edits; status changes go through the status endpoint."""

    required_fields = ("title", "vetted_for_submission_by_ip_office")

    research_activity_id: UUID | None = None
    title: str | None = None
    abstract: str | None = None
    authors: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None
    pages: str | None = None
    doi: str | None = None
    pmid: str | None = None
    publication_date: date | None = None
    publication_type: str | None = None
    prepublication_url: str | None = None
    prepublication_site: str | None = None
    vetted_for_submission_by_ip_office: bool | None = None
    changed_by: UUID | None = None


class PublicationStatusFields(BaseModel):
    """Fields that may be filled in alongside a status change."""

    authors: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None
    pages: str | None = None
    doi: str | None = None
    pmid: str | None = None
    publication_date: date | None = None
    publication_type: str | None = None
    prepublication_url: str | None = None
    prepublication_site: str | None = None

    # vetted_for_submission_by_ip_office is rejected here
    model_config = ConfigDict(extra="forbid")


class FieldChange(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class PublicationStatusUpdate(BaseModel):
    status: str
    changed_by: UUID
    changes: list[FieldChange] = Field(default_factory=list)
    updated_fields: PublicationStatusFields | None = None


class PublicationOut(PublicationBase):
    id: UUID
    status: str
    vetted_for_submission_by_ip_office: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ManuscriptHistoryOut(BaseModel):
    id: UUID
    publication_id: UUID
    from_status: str | None = None
    to_status: str | None = None
    changed_field: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    changed_by: UUID | None = None
    change_reason: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicationAuthorCreate(BaseModel):
    scientist_id: UUID
    authorship_type: str
    author_position: int | None = None


class PublicationAuthorOut(BaseModel):
    id: UUID
    publication_id: UUID
    scientist_id: UUID
    authorship_type: str
    author_position: int | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class PublicationImport(BaseModel):
    doi: str | None = None
    pmid: str | None = None
    research_activity_id: UUID | None = None

    @model_validator(mode="after")
    def _require_identifier(self):
        if not (self.doi or self.pmid):
            raise ValueError("Either doi or pmid is required")
        if self.doi and self.pmid:
            raise ValueError("Provide either doi or pmid, not both")
        return self
