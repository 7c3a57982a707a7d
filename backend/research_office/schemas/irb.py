"""Pydantic schemas for IRB applications, reviewers and the comment trail."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .common import PartialUpdate
from .people import ResearchActivitySummary, ScientistSummary

ReviewAction = Literal[
    "triage",
    "assign_reviewers",
    "ready_for_decision",
    "request_revisions",
    "approve",
    "reject",
]


class IrbApplicationBase(BaseModel):
    research_activity_id: UUID
    title: str
    short_title: str | None = None
    principal_investigator_id: UUID
    additional_notification_email: str | None = None
    irb_net_number: str | None = None
    old_number: str | None = None
    protocol_type: str | None = None
    is_interventional: bool = False
    risk_level: str | None = None
    expected_participants: int | None = None
    funding_source: str | None = None
    description: str | None = None
    documents: list[dict[str, Any]] = Field(default_factory=list)
    form_data: dict[str, Any] = Field(default_factory=dict)
    submission_type: str | None = "initial"
    version: int | None = 1
    initial_approval_date: date | None = None
    expiration_date: date | None = None


class IrbApplicationCreate(IrbApplicationBase):
    irb_number: str | None = None
    workflow_status: str = "draft"
    submission_comment: str | None = None


class IrbApplicationUpdate(PartialUpdate):
    required_fields = ("research_activity_id", "title", "principal_investigator_id")

    research_activity_id: UUID | None = None
    title: str | None = None
    short_title: str | None = None
    principal_investigator_id: UUID | None = None
    additional_notification_email: str | None = None
    irb_net_number: str | None = None
    old_number: str | None = None
    protocol_type: str | None = None
    is_interventional: bool | None = None
    risk_level: str | None = None
    expected_participants: int | None = None
    funding_source: str | None = None
    description: str | None = None
    documents: list[dict[str, Any]] | None = None
    form_data: dict[str, Any] | None = None
    submission_type: str | None = None
    version: int | None = None
    submission_date: datetime | None = None
    initial_approval_date: date | None = None
    expiration_date: date | None = None
    status: str | None = None
    workflow_status: str | None = None
    submission_comment: str | None = None


class IrbApplicationOut(IrbApplicationBase):
    id: UUID
    irb_number: str
    status: str
    workflow_status: str
    submission_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    principal_investigator: ScientistSummary | None = None
    research_activity: ResearchActivitySummary | None = None

    model_config = ConfigDict(from_attributes=True)


class IrbReviewActionPayload(BaseModel):
    action: ReviewAction
    comments: str | None = None
    reviewer_ids: list[UUID] = Field(default_factory=list)
    reviewer_id: UUID | None = None


class IrbCommentOut(BaseModel):
    id: UUID
    application_id: UUID
    sequence: int
    comment_type: str
    author_type: str
    author_name: str | None = None
    author_id: UUID | None = None
    comment: str
    recommendation: str | None = None
    workflow_status: str | None = None
    status_from: str | None = None
    status_to: str | None = None
    is_internal: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IrbReviewerOut(BaseModel):
    id: UUID
    scientist_id: UUID
    reviewer_role: str
    assigned_at: datetime | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)
