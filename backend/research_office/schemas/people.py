"""Pydantic schemas for scientists, programs, projects, research activities and patents."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from .common import PartialUpdate

ResearchActivityStatus = Literal["planning", "active", "completed", "on_hold"]


class ScientistSummary(BaseModel):
    id: UUID
    name: str
    email: str
    department: str | None = None
    job_title: str | None = None
    profile_image_initials: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ScientistBase(BaseModel):
    name: str
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    email: EmailStr
    staff_id: str | None = None
    department: str | None = None
    job_title: str | None = None
    bio: str | None = None
    profile_image_initials: str | None = None
    is_staff: bool = False
    supervisor_id: UUID | None = None


class ScientistCreate(ScientistBase):
    pass


class ScientistUpdate(PartialUpdate):
    required_fields = ("name", "email")

    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    email: EmailStr | None = None
    staff_id: str | None = None
    department: str | None = None
    job_title: str | None = None
    bio: str | None = None
    profile_image_initials: str | None = None
    is_staff: bool | None = None
    supervisor_id: UUID | None = None


class ScientistOut(ScientistBase):
    id: UUID
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProgramBase(BaseModel):
    program_id: str
    name: str
    description: str | None = None
    program_director_id: UUID | None = None
    research_co_lead_id: UUID | None = None
    clinical_co_lead_1_id: UUID | None = None
    clinical_co_lead_2_id: UUID | None = None


class ProgramCreate(ProgramBase):
    pass


class ProgramUpdate(PartialUpdate):
    required_fields = ("program_id", "name")

    program_id: str | None = None
    name: str | None = None
    description: str | None = None
    program_director_id: UUID | None = None
    research_co_lead_id: UUID | None = None
    clinical_co_lead_1_id: UUID | None = None
    clinical_co_lead_2_id: UUID | None = None


class ProgramOut(ProgramBase):
    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProjectBase(BaseModel):
    project_id: str
    program_id: UUID | None = None
    name: str
    description: str | None = None
    principal_investigator_id: UUID | None = None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(PartialUpdate):
    required_fields = ("project_id", "name")

    project_id: str | None = None
    program_id: UUID | None = None
    name: str | None = None
    description: str | None = None
    principal_investigator_id: UUID | None = None


class ProjectOut(ProjectBase):
    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ResearchActivitySummary(BaseModel):
    id: UUID
    sdr_number: str
    title: str
    short_title: str | None = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class ResearchActivityBase(BaseModel):
    sdr_number: str
    project_id: UUID | None = None
    title: str
    short_title: str | None = None
    description: str | None = None
    status: ResearchActivityStatus = "planning"
    start_date: date | None = None
    end_date: date | None = None
    lead_scientist_id: UUID | None = None
    budget_holder_id: UUID | None = None
    line_manager_id: UUID | None = None
    additional_notification_email: str | None = None
    sidra_branch: str | None = None
    budget_source: str | None = None
    objectives: str | None = None


class ResearchActivityCreate(ResearchActivityBase):
    pass


class ResearchActivityUpdate(PartialUpdate):
    required_fields = ("sdr_number", "title", "status")

    sdr_number: str | None = None
    project_id: UUID | None = None
    title: str | None = None
    short_title: str | None = None
    description: str | None = None
    status: ResearchActivityStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    lead_scientist_id: UUID | None = None
    budget_holder_id: UUID | None = None
    line_manager_id: UUID | None = None
    additional_notification_email: str | None = None
    sidra_branch: str | None = None
    budget_source: str | None = None
    objectives: str | None = None


class ResearchActivityOut(ResearchActivityBase):
    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ResearchActivityMemberCreate(BaseModel):
    scientist_id: UUID
    role: str | None = None


class ResearchActivityMemberOut(BaseModel):
    id: UUID
    research_activity_id: UUID
    scientist_id: UUID
    role: str | None = None
    scientist: ScientistSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class PatentBase(BaseModel):
    research_activity_id: UUID | None = None
    title: str
    inventors: str
    filing_date: date | None = None
    grant_date: date | None = None
    patent_number: str | None = None
    status: str
    description: str | None = None


class PatentCreate(PatentBase):
    pass


class PatentUpdate(PartialUpdate):
    required_fields = ("title", "inventors", "status")

    research_activity_id: UUID | None = None
    title: str | None = None
    inventors: str | None = None
    filing_date: date | None = None
    grant_date: date | None = None
    patent_number: str | None = None
    status: str | None = None
    description: str | None = None


class PatentOut(PatentBase):
    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
