import uuid
from datetime import datetime
from typing import Optional
from pydantic import Field

from .common import ApiModel, TimestampedModel, StudentSummary, UserSummary, CommunicationType, CommunicationStatus


class CommunicationBase(ApiModel):
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    contact_info: Optional[str] = None


class CommunicationCreate(CommunicationBase):
    student_id: uuid.UUID
    type: CommunicationType
    status: CommunicationStatus = CommunicationStatus.DRAFT


class CommunicationUpdate(ApiModel):
    subject: Optional[str] = Field(default=None, min_length=1)
    message: Optional[str] = None
    type: Optional[CommunicationType] = None
    status: Optional[CommunicationStatus] = None
    contact_info: Optional[str] = None


class Communication(CommunicationBase, TimestampedModel):
    id: uuid.UUID
    type: str
    status: str
    student_id: uuid.UUID
    user_id: uuid.UUID
    sent_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None
    user: Optional[UserSummary] = None
