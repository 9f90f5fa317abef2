import uuid
from datetime import date, datetime
from typing import Optional, List
from pydantic import Field

from .common import ApiModel, TimestampedModel, InterventionStatus, UserSummary, StudentSummary


class StudentBase(ApiModel):
    name: str = Field(min_length=1)
    grade: str = Field(min_length=1)
    date_of_birth: date


class StudentCreate(StudentBase):
    user_id: Optional[uuid.UUID] = None
    school_id: Optional[uuid.UUID] = None


class StudentUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    grade: Optional[str] = Field(default=None, min_length=1)
    date_of_birth: Optional[date] = None
    user_id: Optional[uuid.UUID] = None
    school_id: Optional[uuid.UUID] = None


class Student(StudentBase, TimestampedModel):
    id: uuid.UUID
    user_id: uuid.UUID
    school_id: Optional[uuid.UUID] = None
    user: Optional[UserSummary] = None


class AssessmentBase(ApiModel):
    date: datetime
    type: str = Field(min_length=1)
    score: float = Field(ge=0, le=100)
    notes: Optional[str] = None


class AssessmentCreate(AssessmentBase):
    student_id: uuid.UUID


class AssessmentUpdate(ApiModel):
    date: Optional[datetime] = None
    type: Optional[str] = Field(default=None, min_length=1)
    score: Optional[float] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None


class Assessment(AssessmentBase, TimestampedModel):
    id: uuid.UUID
    student_id: uuid.UUID
    student: Optional[StudentSummary] = None


class InterventionBase(ApiModel):
    start_date: datetime
    end_date: Optional[datetime] = None
    type: str = Field(min_length=1)
    description: str = Field(min_length=1)
    status: InterventionStatus = InterventionStatus.ACTIVE
    notes: Optional[str] = None


class InterventionCreate(InterventionBase):
    student_id: uuid.UUID
    base_intervention_id: Optional[uuid.UUID] = None


class InterventionUpdate(ApiModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    type: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    status: Optional[InterventionStatus] = None
    notes: Optional[str] = None
    base_intervention_id: Optional[uuid.UUID] = None


class Intervention(InterventionBase, TimestampedModel):
    id: uuid.UUID
    status: str
    student_id: uuid.UUID
    base_intervention_id: Optional[uuid.UUID] = None
    student: Optional[StudentSummary] = None


class StudentDetail(Student):
    assessments: List[Assessment] = []
    interventions: List[Intervention] = []
