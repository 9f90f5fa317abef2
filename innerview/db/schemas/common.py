import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for request/response bodies exchanged as camelCase JSON.

    Both alias and field names are accepted on input; responses are rendered
    with aliases by FastAPI.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        validate_default=True,
    )


class MessageResponse(ApiModel):
    message: str


class InterventionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MeetingStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReferralStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ReferralPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class CommunicationType(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    LETTER = "LETTER"
    PHONE = "PHONE"
    MEETING = "MEETING"


class CommunicationStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    READ = "READ"
    FAILED = "FAILED"


class NotificationType(str, Enum):
    SYSTEM = "SYSTEM"
    INTERVENTION = "INTERVENTION"
    ASSESSMENT = "ASSESSMENT"
    MEETING = "MEETING"
    REFERRAL = "REFERRAL"
    MESSAGE = "MESSAGE"


class ScreeningStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class InstrumentCategory(str, Enum):
    ACADEMIC = "ACADEMIC"
    BEHAVIORAL = "BEHAVIORAL"
    SOCIO_EMOTIONAL = "SOCIO_EMOTIONAL"
    COGNITIVE = "COGNITIVE"
    LANGUAGE = "LANGUAGE"
    MOTOR = "MOTOR"
    ATTENTION = "ATTENTION"
    OTHER = "OTHER"


class IndicatorType(str, Enum):
    LIKERT_SCALE = "LIKERT_SCALE"
    YES_NO = "YES_NO"
    NUMERIC = "NUMERIC"
    PERCENTAGE = "PERCENTAGE"


class DifficultyCategory(str, Enum):
    READING = "READING"
    WRITING = "WRITING"
    MATH = "MATH"
    ATTENTION = "ATTENTION"
    BEHAVIOR = "BEHAVIOR"
    LANGUAGE = "LANGUAGE"
    SOCIO_EMOTIONAL = "SOCIO_EMOTIONAL"
    OTHER = "OTHER"


class DifficultySeverity(str, Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"


class InterventionTier(str, Enum):
    TIER_1 = "TIER_1"
    TIER_2 = "TIER_2"
    TIER_3 = "TIER_3"


class InterventionArea(str, Enum):
    READING = "READING"
    WRITING = "WRITING"
    MATH = "MATH"
    ATTENTION = "ATTENTION"
    BEHAVIOR = "BEHAVIOR"
    SOCIO_EMOTIONAL = "SOCIO_EMOTIONAL"
    ORGANIZATION = "ORGANIZATION"
    OTHER = "OTHER"


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class Platform(str, Enum):
    GOOGLE_CLASSROOM = "GOOGLE_CLASSROOM"
    MICROSOFT_TEAMS = "MICROSOFT_TEAMS"
    LTI = "LTI"


class UserSummary(ApiModel):
    id: uuid.UUID
    name: str
    email: str
    role: Optional[str] = None


class StudentSummary(ApiModel):
    id: uuid.UUID
    name: str
    grade: Optional[str] = None
    date_of_birth: Optional[date] = None


class TimestampedModel(ApiModel):
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
