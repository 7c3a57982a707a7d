"""Pydantic schemas consolidating the research office API contracts."""

# purpose: aggregate request and response schemas for FastAPI surfaces and services
# status: active

from .people import (
    PatentCreate,
    PatentOut,
    PatentUpdate,
    ProgramCreate,
    ProgramOut,
    ProgramUpdate,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    ResearchActivityCreate,
    ResearchActivityMemberCreate,
    ResearchActivityMemberOut,
    ResearchActivityOut,
    ResearchActivitySummary,
    ResearchActivityUpdate,
    ScientistCreate,
    ScientistOut,
    ScientistSummary,
    ScientistUpdate,
)
from .ibc import (
    IbcApplicationCreate,
    IbcApplicationOut,
    IbcApplicationUpdate,
    IbcCommentOut,
    IbcReviewerFeedback,
    IbcReviewerFeedbackOut,
    PiCommentCreate,
    ProtocolTeamMemberCreate,
    ProtocolTeamMemberOut,
    ResearchActivityLinkCreate,
)
from .irb import (
    IrbApplicationCreate,
    IrbApplicationOut,
    IrbApplicationUpdate,
    IrbCommentOut,
    IrbReviewActionPayload,
    IrbReviewerOut,
)
from .publications import (
    FieldChange,
    ManuscriptHistoryOut,
    PublicationAuthorCreate,
    PublicationAuthorOut,
    PublicationCreate,
    PublicationImport,
    PublicationOut,
    PublicationStatusFields,
    PublicationStatusUpdate,
    PublicationUpdate,
)
from .reference import (
    AccessLevelOut,
    BuildingCreate,
    BuildingOut,
    BuildingUpdate,
    BulkUpsertResult,
    CrossRefWork,
    DashboardStats,
    IbcBoardMemberCreate,
    IbcBoardMemberOut,
    IbcBoardMemberUpdate,
    IrbBoardMemberCreate,
    IrbBoardMemberOut,
    IrbBoardMemberUpdate,
    JournalImpactFactorCreate,
    JournalImpactFactorOut,
    JournalImpactFactorUpdate,
    PubMedArticle,
    PubMedQuery,
    RecentActivity,
    RolePermissionCreate,
    RolePermissionOut,
    RoomCreate,
    RoomOut,
    RoomUpdate,
    UpcomingDeadline,
)
from .bibliometrics import (
    AuthorshipStats,
    ScientistPublicationOut,
    SidraPaper,
    SidraScore,
    SidraScoreRequest,
)
