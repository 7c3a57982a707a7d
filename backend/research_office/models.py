import uuid
import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Text,
    Float,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Scientist(Base):
    __tablename__ = "scientists"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    first_name = Column(String)
    last_name = Column(String)
    title = Column(String)
    email = Column(String, unique=True, nullable=False)
    staff_id = Column(String, unique=True)
    department = Column(String)
    job_title = Column(String)
    bio = Column(Text)
    profile_image_initials = Column(String)
    is_staff = Column(Boolean, default=False)
    supervisor_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    supervisor = relationship("Scientist", remote_side=[id])


class Program(Base):
    __tablename__ = "programs"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    program_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text)
    program_director_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    research_co_lead_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    clinical_co_lead_1_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    clinical_co_lead_2_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    projects = relationship("Project", back_populates="program")


class Project(Base):
    __tablename__ = "projects"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(String, unique=True, nullable=False)
    program_id = Column(UUID(as_uuid=True), ForeignKey("programs.id"))
    name = Column(String, nullable=False)
    description = Column(Text)
    principal_investigator_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    program = relationship("Program", back_populates="projects")
    research_activities = relationship("ResearchActivity", back_populates="project")


class ResearchActivity(Base):
    __tablename__ = "research_activities"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sdr_number = Column(String, unique=True, nullable=False)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"))
    title = Column(String, nullable=False)
    short_title = Column(String)
    description = Column(Text)
    status = Column(String, nullable=False, default="planning")
    start_date = Column(Date)
    end_date = Column(Date)
    lead_scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    budget_holder_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    line_manager_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    additional_notification_email = Column(String)
    sidra_branch = Column(String)
    budget_source = Column(String)
    objectives = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    project = relationship("Project", back_populates="research_activities")
    members = relationship(
        "ResearchActivityMember",
        back_populates="research_activity",
        cascade="all, delete-orphan",
    )


class ResearchActivityMember(Base):
    __tablename__ = "research_activity_members"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    research_activity_id = Column(UUID(as_uuid=True), ForeignKey("research_activities.id"), nullable=False)
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    role = Column(String)

    research_activity = relationship("ResearchActivity", back_populates="members")
    scientist = relationship("Scientist")

    __table_args__ = (sa.UniqueConstraint("research_activity_id", "scientist_id"),)


class Publication(Base):
    __tablename__ = "publications"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    research_activity_id = Column(UUID(as_uuid=True), ForeignKey("research_activities.id"))
    title = Column(String, nullable=False)
    abstract = Column(Text)
    authors = Column(Text)
    journal = Column(String)
    volume = Column(String)
    issue = Column(String)
    pages = Column(String)
    doi = Column(String)
    pmid = Column(String)
    publication_date = Column(Date)
    publication_type = Column(String)
    status = Column(String, default="Concept")
    # purpose: IP office sign-off gating the "Vetted for submission" transition
    vetted_for_submission_by_ip_office = Column(Boolean, default=False, nullable=False)
    prepublication_url = Column(String)
    prepublication_site = Column(String)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    research_activity = relationship("ResearchActivity")
    author_links = relationship(
        "PublicationAuthor",
        back_populates="publication",
        cascade="all, delete-orphan",
        order_by="PublicationAuthor.author_position",
    )
    history = relationship(
        "ManuscriptHistory",
        back_populates="publication",
        cascade="all, delete-orphan",
        order_by="ManuscriptHistory.created_at.desc()",
    )


class PublicationAuthor(Base):
    __tablename__ = "publication_authors"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    publication_id = Column(UUID(as_uuid=True), ForeignKey("publications.id"), nullable=False)
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    authorship_type = Column(String, nullable=False)
    author_position = Column(Integer)

    publication = relationship("Publication", back_populates="author_links")
    scientist = relationship("Scientist")

    __table_args__ = (sa.UniqueConstraint("publication_id", "scientist_id"),)


class ManuscriptHistory(Base):
    __tablename__ = "manuscript_history"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    publication_id = Column(UUID(as_uuid=True), ForeignKey("publications.id"), nullable=False)
    sequence = Column(Integer, nullable=False, default=1)
    from_status = Column(String)
    to_status = Column(String)
    changed_field = Column(String)
    old_value = Column(Text)
    new_value = Column(Text)
    changed_by = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    change_reason = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    publication = relationship("Publication", back_populates="history")


class Patent(Base):
    __tablename__ = "patents"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    research_activity_id = Column(UUID(as_uuid=True), ForeignKey("research_activities.id"))
    title = Column(String, nullable=False)
    inventors = Column(Text, nullable=False)
    filing_date = Column(Date)
    grant_date = Column(Date)
    patent_number = Column(String)
    status = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


class NumberSequence(Base):
    __tablename__ = "number_sequences"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    prefix = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)

    __table_args__ = (sa.UniqueConstraint("prefix", "year"),)


class IbcApplication(Base):
    __tablename__ = "ibc_applications"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ibc_number = Column(String, unique=True, nullable=False)
    cayuse_protocol_number = Column(String)
    title = Column(String, nullable=False)
    short_title = Column(String)
    principal_investigator_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    additional_notification_email = Column(String)
    biosafety_level = Column(String, nullable=False)
    risk_level = Column(String, nullable=False)
    biological_agents = Column(JSON, default=list)
    recombinant_dna = Column(Boolean, default=False)
    human_materials = Column(Boolean, default=False)
    animal_work = Column(Boolean, default=False)
    description = Column(Text)
    documents = Column(JSON, default=list)
    form_data = Column(JSON, default=dict)
    # purpose: display label and state key of one workflow state, always written together
    status = Column(String, nullable=False)
    workflow_status = Column(String, nullable=False, default="draft")
    submission_type = Column(String, nullable=False, default="initial")
    version = Column(Integer, nullable=False, default=1)
    submission_date = Column(DateTime)
    vetted_date = Column(DateTime)
    under_review_date = Column(DateTime)
    approval_date = Column(DateTime)
    expiration_date = Column(Date)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    principal_investigator = relationship("Scientist")
    research_activity_links = relationship(
        "IbcApplicationResearchActivity",
        back_populates="application",
        cascade="all, delete-orphan",
    )
    comments = relationship(
        "IbcApplicationComment",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="(IbcApplicationComment.created_at, IbcApplicationComment.sequence)",
    )
    team_members = relationship(
        "ProtocolTeamMember",
        back_populates="ibc_application",
        cascade="all, delete-orphan",
    )

    @property
    def research_activities(self):
        return [link.research_activity for link in self.research_activity_links]


class IbcApplicationResearchActivity(Base):
    __tablename__ = "ibc_application_research_activities"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ibc_application_id = Column(UUID(as_uuid=True), ForeignKey("ibc_applications.id"), nullable=False)
    research_activity_id = Column(UUID(as_uuid=True), ForeignKey("research_activities.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    application = relationship("IbcApplication", back_populates="research_activity_links")
    research_activity = relationship("ResearchActivity")

    __table_args__ = (sa.UniqueConstraint("ibc_application_id", "research_activity_id"),)


class IbcApplicationComment(Base):
    __tablename__ = "ibc_application_comments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(UUID(as_uuid=True), ForeignKey("ibc_applications.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    comment_type = Column(String, nullable=False)
    author_type = Column(String, nullable=False)
    author_name = Column(String)
    author_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    comment = Column(Text, nullable=False)
    recommendation = Column(String)
    status_from = Column(String)
    status_to = Column(String)
    is_internal = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    application = relationship("IbcApplication", back_populates="comments")


class IrbApplication(Base):
    __tablename__ = "irb_applications"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    research_activity_id = Column(UUID(as_uuid=True), ForeignKey("research_activities.id"), nullable=False)
    irb_number = Column(String, unique=True, nullable=False)
    irb_net_number = Column(String)
    old_number = Column(String)
    title = Column(String, nullable=False)
    short_title = Column(String)
    principal_investigator_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    additional_notification_email = Column(String)
    protocol_type = Column(String)
    is_interventional = Column(Boolean, default=False)
    risk_level = Column(String)
    expected_participants = Column(Integer)
    funding_source = Column(String)
    description = Column(Text)
    documents = Column(JSON, default=list)
    form_data = Column(JSON, default=dict)
    status = Column(String, nullable=False)
    workflow_status = Column(String, nullable=False, default="draft")
    submission_type = Column(String, default="initial")
    version = Column(Integer, default=1)
    submission_date = Column(DateTime)
    initial_approval_date = Column(Date)
    expiration_date = Column(Date)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    research_activity = relationship("ResearchActivity")
    principal_investigator = relationship("Scientist")
    comments = relationship(
        "IrbApplicationComment",
        back_populates="application",
        cascade="all, delete-orphan",
        order_by="(IrbApplicationComment.created_at, IrbApplicationComment.sequence)",
    )
    reviewer_assignments = relationship(
        "IrbReviewerAssignment",
        back_populates="application",
        cascade="all, delete-orphan",
    )
    team_members = relationship(
        "ProtocolTeamMember",
        back_populates="irb_application",
        cascade="all, delete-orphan",
    )


class IrbApplicationComment(Base):
    __tablename__ = "irb_application_comments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(UUID(as_uuid=True), ForeignKey("irb_applications.id"), nullable=False)
    sequence = Column(Integer, nullable=False)
    comment_type = Column(String, nullable=False)
    author_type = Column(String, nullable=False)
    author_name = Column(String)
    author_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    comment = Column(Text, nullable=False)
    recommendation = Column(String)
    workflow_status = Column(String)
    status_from = Column(String)
    status_to = Column(String)
    is_internal = Column(Boolean, default=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    application = relationship("IrbApplication", back_populates="comments")


class IrbReviewerAssignment(Base):
    __tablename__ = "irb_reviewer_assignments"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(UUID(as_uuid=True), ForeignKey("irb_applications.id"), nullable=False)
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    reviewer_role = Column(String, nullable=False, default="primary")
    assigned_at = Column(DateTime, default=_utcnow)

    application = relationship("IrbApplication", back_populates="reviewer_assignments")
    scientist = relationship("Scientist")

    __table_args__ = (sa.UniqueConstraint("application_id", "scientist_id"),)


class ProtocolTeamMember(Base):
    __tablename__ = "protocol_team_members"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    irb_application_id = Column(UUID(as_uuid=True), ForeignKey("irb_applications.id"))
    ibc_application_id = Column(UUID(as_uuid=True), ForeignKey("ibc_applications.id"))
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    role = Column(String, nullable=False)
    responsibilities = Column(Text)
    created_at = Column(DateTime, default=_utcnow)

    irb_application = relationship("IrbApplication", back_populates="team_members")
    ibc_application = relationship("IbcApplication", back_populates="team_members")
    scientist = relationship("Scientist")


class IbcBoardMember(Base):
    __tablename__ = "ibc_board_members"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    role = Column(String, nullable=False)
    expertise = Column(JSON, default=list)
    biosafety_training = Column(JSON, default=list)
    appointment_date = Column(Date)
    term_end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    scientist = relationship("Scientist")


class IrbBoardMember(Base):
    __tablename__ = "irb_board_members"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scientist_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"), nullable=False)
    role = Column(String, nullable=False)
    expertise = Column(JSON, default=list)
    appointment_date = Column(Date)
    term_end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    scientist = relationship("Scientist")


class Building(Base):
    __tablename__ = "buildings"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text)
    address = Column(String)
    created_at = Column(DateTime, default=_utcnow)

    rooms = relationship("Room", back_populates="building")


class Room(Base):
    __tablename__ = "rooms"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    building_id = Column(UUID(as_uuid=True), ForeignKey("buildings.id"), nullable=False)
    room_number = Column(String, nullable=False)
    floor = Column(String)
    biosafety_level = Column(String)
    capacity = Column(Integer)
    room_supervisor_id = Column(UUID(as_uuid=True), ForeignKey("scientists.id"))
    created_at = Column(DateTime, default=_utcnow)

    building = relationship("Building", back_populates="rooms")

    __table_args__ = (sa.UniqueConstraint("building_id", "room_number"),)


class RolePermission(Base):
    __tablename__ = "role_permissions"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_title = Column(String, nullable=False)
    navigation_item = Column(String, nullable=False)
    access_level = Column(String, nullable=False, default="view")
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (sa.UniqueConstraint("job_title", "navigation_item"),)


class JournalImpactFactor(Base):
    __tablename__ = "journal_impact_factors"
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    journal_name = Column(String, nullable=False)
    abbreviated_journal = Column(String)
    year = Column(Integer, nullable=False)
    issn = Column(String)
    eissn = Column(String)
    impact_factor = Column(Float, nullable=False)
    five_year_jif = Column(Float)
    quartile = Column(String)
    rank = Column(Integer)
    created_at = Column(DateTime, default=_utcnow)

    __table_args__ = (sa.UniqueConstraint("journal_name", "year"),)
