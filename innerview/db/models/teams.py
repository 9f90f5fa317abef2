import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class RtiTeam(Base):
    __tablename__ = 'rti_teams'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    school_id = Column(UUID(as_uuid=True), ForeignKey('schools.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    school = relationship("School", back_populates="teams")
    members = relationship("RtiTeamMember", back_populates="team", cascade="all, delete-orphan")
    students = relationship("StudentTeam", back_populates="team", cascade="all, delete-orphan")
    meetings = relationship("RtiMeeting", back_populates="team")
    referrals = relationship("Referral", back_populates="team")


class RtiTeamMember(Base):
    __tablename__ = 'rti_team_members'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(UUID(as_uuid=True), ForeignKey('rti_teams.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(20), nullable=False, default='TEACHER')
    active = Column(Boolean, nullable=False, default=True)
    joined_at = Column(DateTime(timezone=True), default=now_utc)
    left_at = Column(DateTime(timezone=True), nullable=True)

    team = relationship("RtiTeam", back_populates="members")
    user = relationship("User")

    __table_args__ = (
        Index('ix_rti_team_members_user_id_active', 'user_id', 'active'),
        UniqueConstraint('team_id', 'user_id', name='uq_rti_team_members_pair'),
    )


class StudentTeam(Base):
    __tablename__ = 'student_teams'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(UUID(as_uuid=True), ForeignKey('rti_teams.id', ondelete='CASCADE'), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    assigned_at = Column(DateTime(timezone=True), default=now_utc)
    removed_at = Column(DateTime(timezone=True), nullable=True)

    team = relationship("RtiTeam", back_populates="students")
    student = relationship("Student", back_populates="team_links")

    __table_args__ = (
        UniqueConstraint('team_id', 'student_id', name='uq_student_teams_pair'),
    )


class RtiMeeting(Base):
    __tablename__ = 'rti_meetings'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default='SCHEDULED')  # SCHEDULED|IN_PROGRESS|COMPLETED|CANCELLED
    notes = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey('rti_teams.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    team = relationship("RtiTeam", back_populates="meetings")
    participants = relationship("MeetingParticipant", back_populates="meeting", cascade="all, delete-orphan")
    referrals = relationship("Referral", back_populates="meeting")

    __table_args__ = (
        Index('ix_rti_meetings_team_id_date', 'team_id', 'date'),
    )


class MeetingParticipant(Base):
    __tablename__ = 'meeting_participants'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    meeting_id = Column(UUID(as_uuid=True), ForeignKey('rti_meetings.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(String, nullable=True)
    attended = Column(Boolean, nullable=False, default=False)

    meeting = relationship("RtiMeeting", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('meeting_id', 'user_id', name='uq_meeting_participants_pair'),
    )


class Referral(Base):
    __tablename__ = 'referrals'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    assigned_to_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    priority = Column(String(10), nullable=False, default='MEDIUM')  # LOW|MEDIUM|HIGH|URGENT
    status = Column(String(20), nullable=False, default='PENDING')  # PENDING|IN_PROGRESS|COMPLETED|CANCELLED
    external_service_name = Column(String, nullable=True)
    external_service_contact = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    team_id = Column(UUID(as_uuid=True), ForeignKey('rti_teams.id', ondelete='SET NULL'), nullable=True)
    meeting_id = Column(UUID(as_uuid=True), ForeignKey('rti_meetings.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    student = relationship("Student", back_populates="referrals")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    created_by = relationship("User", foreign_keys=[created_by_id])
    team = relationship("RtiTeam", back_populates="referrals")
    meeting = relationship("RtiMeeting", back_populates="referrals")

    __table_args__ = (
        Index('ix_referrals_team_id_status', 'team_id', 'status'),
        Index('ix_referrals_assigned_to_id', 'assigned_to_id'),
        Index('ix_referrals_created_by_id', 'created_by_id'),
    )
