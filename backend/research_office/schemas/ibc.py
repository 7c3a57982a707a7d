"""Pydantic schemas for IBC applications and their review trail."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import PartialUpdate
from .people import ResearchActivitySummary, ScientistSummary

ReviewerRecommendation = Literal["approve", "reject", "minor_revisions", "major_revisions", "abstain"]


class IbcApplicationBase(BaseModel):
    title: str
    short_title: str | None = None
    cayuse_protocol_number: str | None = None
    principal_investigator_id: UUID
    additional_notification_email: str | None = None
    biosafety_level: str
    risk_level: str | None = None
    biological_agents: list[str] = Field(default_factory=list)
    recombinant_dna: bool = False
    human_materials: bool = False
    animal_work: bool = False
    description: str | None = None
    documents: list[dict[str, Any]] = Field(default_factory=list)
    form_data: dict[str, Any] = Field(default_factory=dict)
    submission_type: str = "initial"
    version: int = 1
    expiration_date: date | None = None


class IbcApplicationCreate(IbcApplicationBase):
    """Payload for a new application; the server assigns number and status."""

    ibc_number: str | None = None
    research_activity_ids: list[UUID] = Field(default_factory=list)
    is_draft: bool = False


class IbcApplicationUpdate(PartialUpdate):
    """Partial update, optionally driving a status transition."""

    required_fields = (
        "title",
        "principal_investigator_id",
        "biosafety_level",
        "risk_level",
        "submission_type",
        "version",
    )

    title: str | None = None
    short_title: str | None = None
    cayuse_protocol_number: str | None = None
    principal_investigator_id: UUID | None = None
    additional_notification_email: str | None = None
    biosafety_level: str | None = None
    risk_level: str | None = None
    biological_agents: list[str] | None = None
    recombinant_dna: bool | None = None
    human_materials: bool | None = None
    animal_work: bool | None = None
    description: str | None = None
    documents: list[dict[str, Any]] | None = None
    form_data: dict[str, Any] | None = None
    submission_type: str | None = None
    version: int | None = None
    expiration_date: date | None = None
    submission_date: datetime | None = None
    vetted_date: datetime | None = None
    under_review_date: datetime | None = None
    approval_date: datetime | None = None
    status: str | None = None
    workflow_status: str | None = None
    is_draft: bool | None = None
    review_comments: str | None = None
    research_activity_ids: list[UUID] | None = None


class IbcApplicationOut(IbcApplicationBase):
    id: UUID
    ibc_number: str
    risk_level: str
    status: str
    workflow_status: str
    submission_date: datetime | None = None
    vetted_date: datetime | None = None
    under_review_date: datetime | None = None
    approval_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    principal_investigator: ScientistSummary | None = None
    research_activities: list[ResearchActivitySummary] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class IbcCommentOut(BaseModel):
    id: UUID
    application_id: UUID
    sequence: int
    comment_type: str
    author_type: str
    author_name: str | None = None
    author_id: UUID | None = None
    comment: str
    recommendation: str | None = None
    status_from: str | None = None
    status_to: str | None = None
    is_internal: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IbcReviewerFeedback(BaseModel):
    comments: str
    recommendation: ReviewerRecommendation
    reviewer_id: UUID | None = None


class IbcReviewerFeedbackOut(BaseModel):
    message: str
    application: IbcApplicationOut


class PiCommentCreate(BaseModel):
    comment: str


class ResearchActivityLinkCreate(BaseModel):
    research_activity_id: UUID


class ProtocolTeamMemberCreate(BaseModel):
    scientist_id: UUID
    role: str
    responsibilities: str | None = None


class ProtocolTeamMemberOut(BaseModel):
    id: UUID
    scientist_id: UUID
    role: str
    responsibilities: str | None = None
    created_at: datetime | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)
