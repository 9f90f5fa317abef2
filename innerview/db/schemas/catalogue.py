import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import Field

from .common import (
    ApiModel,
    TimestampedModel,
    StudentSummary,
    DifficultyCategory,
    DifficultySeverity,
    InterventionTier,
    InterventionArea,
    Frequency,
)


# === Learning difficulties ===

class LearningDifficultyBase(ApiModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    symptoms: Optional[str] = None
    category: DifficultyCategory


class LearningDifficultyCreate(LearningDifficultyBase):
    pass


class LearningDifficultyUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    symptoms: Optional[str] = None
    category: Optional[DifficultyCategory] = None


class LearningDifficulty(LearningDifficultyBase, TimestampedModel):
    id: uuid.UUID
    category: str


class StudentDifficultyAssign(ApiModel):
    student_id: uuid.UUID
    difficulty_id: uuid.UUID
    severity: DifficultySeverity = DifficultySeverity.MODERATE
    notes: Optional[str] = None


class StudentDifficulty(ApiModel):
    id: uuid.UUID
    student_id: uuid.UUID
    difficulty_id: uuid.UUID
    severity: str
    notes: Optional[str] = None
    identified_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None
    difficulty: Optional[LearningDifficulty] = None


class LearningDifficultyDetail(LearningDifficulty):
    students: List[StudentDifficulty] = []


# === Protocols ===

class ProtocolStepBase(ApiModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    order: int = Field(ge=0)
    estimated_time: Optional[int] = None
    materials: Optional[str] = None


class ProtocolStepInput(ProtocolStepBase):
    id: Optional[uuid.UUID] = None


class ProtocolStep(ProtocolStepBase):
    id: uuid.UUID


class InterventionProtocolBase(ApiModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    estimated_duration: Optional[int] = None


class InterventionProtocolCreate(InterventionProtocolBase):
    base_intervention_id: uuid.UUID
    steps: List[ProtocolStepBase] = []


class InterventionProtocolUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    base_intervention_id: Optional[uuid.UUID] = None
    steps: Optional[List[ProtocolStepInput]] = None


class ProtocolDuplicate(ApiModel):
    name: Optional[str] = None


class InterventionProtocol(InterventionProtocolBase, TimestampedModel):
    id: uuid.UUID
    base_intervention_id: uuid.UUID
    steps: List[ProtocolStep] = []


# === Base interventions ===

class BaseInterventionBase(ApiModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    objective: str = Field(min_length=1)
    tier: InterventionTier
    area: InterventionArea
    estimated_time: Optional[int] = None
    frequency: Optional[Frequency] = None
    materials: Optional[str] = None
    scientific_evidence: Optional[str] = None
    evidence_source: Optional[str] = None
    active: bool = True


class BaseInterventionCreate(BaseInterventionBase):
    pass


class BaseInterventionUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    objective: Optional[str] = None
    tier: Optional[InterventionTier] = None
    area: Optional[InterventionArea] = None
    estimated_time: Optional[int] = None
    frequency: Optional[Frequency] = None
    materials: Optional[str] = None
    scientific_evidence: Optional[str] = None
    evidence_source: Optional[str] = None
    active: Optional[bool] = None


class BaseIntervention(BaseInterventionBase, TimestampedModel):
    id: uuid.UUID
    tier: str
    area: str
    frequency: Optional[str] = None


class ProtocolSummary(ApiModel):
    id: uuid.UUID
    name: str


class BaseInterventionListItem(BaseIntervention):
    protocols: List[ProtocolSummary] = []


class LinkedStudentIntervention(ApiModel):
    id: uuid.UUID
    type: str
    status: str
    start_date: datetime
    student: Optional[StudentSummary] = None


class BaseInterventionDetail(BaseIntervention):
    protocols: List[InterventionProtocol] = []
    interventions: List[LinkedStudentIntervention] = []


class DifficultyAssociation(ApiModel):
    difficulty_id: uuid.UUID
    intervention_id: uuid.UUID
    effectiveness: int = Field(default=3, ge=1, le=5)
    notes: Optional[str] = None


class DifficultyIntervention(ApiModel):
    id: uuid.UUID
    difficulty_id: uuid.UUID
    base_intervention_id: uuid.UUID
    effectiveness: int
    notes: Optional[str] = None
    difficulty: Optional[LearningDifficulty] = None
    base_intervention: Optional[BaseIntervention] = None
