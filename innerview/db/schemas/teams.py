import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import Field

from innerview.utils.role_permissions import TeamRole
from .common import (
    ApiModel,
    TimestampedModel,
    UserSummary,
    StudentSummary,
    MeetingStatus,
    ReferralStatus,
    ReferralPriority,
)


# === Teams ===

class TeamMemberInput(ApiModel):
    user_id: uuid.UUID
    role: TeamRole = TeamRole.TEACHER


class TeamBase(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    active: bool = True
    school_id: Optional[uuid.UUID] = None


class TeamCreate(TeamBase):
    members: List[TeamMemberInput] = []
    member_ids: List[uuid.UUID] = []
    student_ids: List[uuid.UUID] = []


class TeamUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    active: Optional[bool] = None
    school_id: Optional[uuid.UUID] = None


class TeamStudentAdd(ApiModel):
    student_id: uuid.UUID


class TeamMember(ApiModel):
    id: uuid.UUID
    team_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    active: bool
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    user: Optional[UserSummary] = None


class StudentTeamLink(ApiModel):
    id: uuid.UUID
    team_id: uuid.UUID
    student_id: uuid.UUID
    active: bool
    assigned_at: Optional[datetime] = None
    removed_at: Optional[datetime] = None
    student: Optional[StudentSummary] = None


class Team(TeamBase, TimestampedModel):
    id: uuid.UUID


class TeamListItem(Team):
    members_count: int = 0
    students_count: int = 0


class TeamDetail(Team):
    members: List[TeamMember] = []
    students: List[StudentTeamLink] = []
    meetings_count: int = 0
    referrals_count: int = 0


# === Meetings ===

class MeetingBase(ApiModel):
    title: str = Field(min_length=1)
    date: datetime
    location: Optional[str] = None
    notes: Optional[str] = None
    summary: Optional[str] = None


class MeetingCreate(MeetingBase):
    team_id: Optional[uuid.UUID] = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    participant_ids: List[uuid.UUID] = []


class MeetingUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    date: Optional[datetime] = None
    location: Optional[str] = None
    status: Optional[MeetingStatus] = None
    notes: Optional[str] = None
    summary: Optional[str] = None
    team_id: Optional[uuid.UUID] = None


class ParticipantInput(ApiModel):
    user_id: uuid.UUID
    role: Optional[str] = None


class AttendanceUpdate(ApiModel):
    attended: bool


class MeetingParticipant(ApiModel):
    id: uuid.UUID
    meeting_id: uuid.UUID
    user_id: uuid.UUID
    role: Optional[str] = None
    attended: bool
    user: Optional[UserSummary] = None


class TeamSummary(ApiModel):
    id: uuid.UUID
    name: str


class Meeting(MeetingBase, TimestampedModel):
    id: uuid.UUID
    status: str
    team_id: Optional[uuid.UUID] = None
    team: Optional[TeamSummary] = None
    participants: List[MeetingParticipant] = []


# === Referrals ===

class ReferralBase(ApiModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    external_service_name: Optional[str] = None
    external_service_contact: Optional[str] = None
    notes: Optional[str] = None


class ReferralCreate(ReferralBase):
    student_id: uuid.UUID
    assigned_to_id: Optional[uuid.UUID] = None
    priority: ReferralPriority = ReferralPriority.MEDIUM
    status: ReferralStatus = ReferralStatus.PENDING
    team_id: Optional[uuid.UUID] = None
    meeting_id: Optional[uuid.UUID] = None


class ReferralUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    assigned_to_id: Optional[uuid.UUID] = None
    priority: Optional[ReferralPriority] = None
    status: Optional[ReferralStatus] = None
    external_service_name: Optional[str] = None
    external_service_contact: Optional[str] = None
    notes: Optional[str] = None
    team_id: Optional[uuid.UUID] = None
    meeting_id: Optional[uuid.UUID] = None


class Referral(ReferralBase, TimestampedModel):
    id: uuid.UUID
    student_id: uuid.UUID
    assigned_to_id: Optional[uuid.UUID] = None
    created_by_id: uuid.UUID
    priority: str
    status: str
    team_id: Optional[uuid.UUID] = None
    meeting_id: Optional[uuid.UUID] = None
    student: Optional[StudentSummary] = None
    assigned_to: Optional[UserSummary] = None
    created_by: Optional[UserSummary] = None


class MeetingDetail(Meeting):
    referrals: List[Referral] = []
