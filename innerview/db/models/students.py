import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Float, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Student(Base):
    __tablename__ = 'students'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    grade = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=False)
    # Responsible staff member
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    school_id = Column(UUID(as_uuid=True), ForeignKey('schools.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    user = relationship("User", back_populates="students")
    school = relationship("School", back_populates="students")
    assessments = relationship("Assessment", back_populates="student", cascade="all, delete-orphan", order_by="Assessment.date.desc()")
    interventions = relationship("Intervention", back_populates="student", cascade="all, delete-orphan", order_by="Intervention.start_date.desc()")
    team_links = relationship("StudentTeam", back_populates="student", cascade="all, delete-orphan")
    screenings = relationship("Screening", back_populates="student", cascade="all, delete-orphan")
    difficulties = relationship("StudentDifficulty", back_populates="student", cascade="all, delete-orphan")
    referrals = relationship("Referral", back_populates="student", cascade="all, delete-orphan")
    communications = relationship("TutorCommunication", back_populates="student", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_students_user_id', 'user_id'),
        Index('ix_students_school_id', 'school_id'),
    )


class Assessment(Base):
    __tablename__ = 'assessments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(DateTime(timezone=True), nullable=False)
    type = Column(String, nullable=False)
    score = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    student = relationship("Student", back_populates="assessments")

    __table_args__ = (
        Index('ix_assessments_student_id_date', 'student_id', 'date'),
        CheckConstraint('score >= 0 AND score <= 100', name='ck_assessments_score_range'),
    )


class Intervention(Base):
    __tablename__ = 'interventions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    type = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default='ACTIVE')  # ACTIVE|COMPLETED|CANCELLED
    notes = Column(Text, nullable=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    base_intervention_id = Column(UUID(as_uuid=True), ForeignKey('base_interventions.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    student = relationship("Student", back_populates="interventions")
    base_intervention = relationship("BaseIntervention", back_populates="interventions")

    __table_args__ = (
        Index('ix_interventions_student_id_status', 'student_id', 'status'),
        Index('ix_interventions_base_intervention_id', 'base_intervention_id'),
    )
