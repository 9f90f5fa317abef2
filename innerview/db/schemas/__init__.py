"""
Domain-split Pydantic schemas with a single aggregator.

Callers use `from innerview.db import schemas` and reference
`schemas.StudentCreate` etc.
"""

from .common import (
    ApiModel,
    MessageResponse,
    UserSummary,
    StudentSummary,
    InterventionStatus,
    MeetingStatus,
    ReferralStatus,
    ReferralPriority,
    CommunicationType,
    CommunicationStatus,
    NotificationType,
    ScreeningStatus,
    RiskLevel,
    InstrumentCategory,
    IndicatorType,
    DifficultyCategory,
    DifficultySeverity,
    InterventionTier,
    InterventionArea,
    Frequency,
    Platform,
)
from .users import (
    UserBase,
    UserCreate,
    UserUpdate,
    User,
    LoginRequest,
    RefreshRequest,
    AuthUser,
    AuthResponse,
)
from .schools import (
    SchoolNetworkCreate,
    SchoolNetworkUpdate,
    SchoolNetwork,
    SchoolCreate,
    SchoolUpdate,
    School,
)
from .students import (
    StudentCreate,
    StudentUpdate,
    Student,
    StudentDetail,
    AssessmentCreate,
    AssessmentUpdate,
    Assessment,
    InterventionCreate,
    InterventionUpdate,
    Intervention,
)
from .catalogue import (
    LearningDifficultyCreate,
    LearningDifficultyUpdate,
    LearningDifficulty,
    LearningDifficultyDetail,
    StudentDifficultyAssign,
    StudentDifficulty,
    ProtocolStepBase,
    ProtocolStepInput,
    ProtocolStep,
    InterventionProtocolCreate,
    InterventionProtocolUpdate,
    InterventionProtocol,
    ProtocolDuplicate,
    BaseInterventionCreate,
    BaseInterventionUpdate,
    BaseIntervention,
    BaseInterventionListItem,
    BaseInterventionDetail,
    DifficultyAssociation,
    DifficultyIntervention,
)
from .screenings import (
    ScreeningIndicatorCreate,
    ScreeningIndicator,
    ScreeningInstrumentCreate,
    ScreeningInstrumentUpdate,
    ScreeningInstrument,
    ScreeningInstrumentListItem,
    ScreeningInstrumentDetail,
    ScreeningCreate,
    ScreeningUpdate,
    Screening,
    ScreeningDetail,
    ScreeningResultCreate,
    ScreeningResultUpdate,
    ScreeningResultBatch,
    BatchResultItem,
    ScreeningResult,
)
from .teams import (
    TeamMemberInput,
    TeamCreate,
    TeamUpdate,
    TeamStudentAdd,
    TeamMember,
    StudentTeamLink,
    Team,
    TeamListItem,
    TeamDetail,
    MeetingCreate,
    MeetingUpdate,
    ParticipantInput,
    AttendanceUpdate,
    MeetingParticipant,
    Meeting,
    MeetingDetail,
    ReferralCreate,
    ReferralUpdate,
    Referral,
)
from .communications import CommunicationCreate, CommunicationUpdate, Communication
from .notifications import (
    NotificationCreate,
    Notification,
    NotificationListResponse,
    NotificationStatsResponse,
    MarkAllReadResponse,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog
from .integrations import (
    IntegrationCreate,
    IntegrationUpdate,
    IntegrationListItem,
    Integration,
    ClassSync,
    SyncResult,
    AuthUrlResponse,
    WebhookCreate,
    WebhookUpdate,
    Webhook,
    WebhookTrigger,
    LtiDeploymentCreate,
    LtiDeployment,
    LtiLoginRequest,
    LtiLaunchRequest,
    LtiLaunchResult,
)
