import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class LearningDifficulty(Base):
    __tablename__ = 'learning_difficulties'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    symptoms = Column(Text, nullable=True)
    category = Column(String(30), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    students = relationship("StudentDifficulty", back_populates="difficulty")
    interventions = relationship("DifficultyIntervention", back_populates="difficulty", cascade="all, delete-orphan")


class StudentDifficulty(Base):
    __tablename__ = 'student_difficulties'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    difficulty_id = Column(UUID(as_uuid=True), ForeignKey('learning_difficulties.id'), nullable=False)
    severity = Column(String(20), nullable=False, default='MODERATE')  # MILD|MODERATE|SEVERE
    notes = Column(Text, nullable=True)
    identified_at = Column(DateTime(timezone=True), default=now_utc)

    student = relationship("Student", back_populates="difficulties")
    difficulty = relationship("LearningDifficulty", back_populates="students")

    __table_args__ = (
        UniqueConstraint('student_id', 'difficulty_id', name='uq_student_difficulties_pair'),
    )


class BaseIntervention(Base):
    __tablename__ = 'base_interventions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    objective = Column(Text, nullable=False)
    tier = Column(String(10), nullable=False)  # TIER_1|TIER_2|TIER_3
    area = Column(String(30), nullable=False)
    estimated_time = Column(Integer, nullable=True)  # minutes per session
    frequency = Column(String(20), nullable=True)
    materials = Column(Text, nullable=True)
    scientific_evidence = Column(Text, nullable=True)
    evidence_source = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    protocols = relationship("InterventionProtocol", back_populates="base_intervention", cascade="all, delete-orphan")
    difficulties = relationship("DifficultyIntervention", back_populates="base_intervention", cascade="all, delete-orphan")
    interventions = relationship("Intervention", back_populates="base_intervention")

    __table_args__ = (
        Index('ix_base_interventions_tier', 'tier'),
        Index('ix_base_interventions_area', 'area'),
    )


class DifficultyIntervention(Base):
    __tablename__ = 'difficulty_interventions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    difficulty_id = Column(UUID(as_uuid=True), ForeignKey('learning_difficulties.id', ondelete='CASCADE'), nullable=False)
    base_intervention_id = Column(UUID(as_uuid=True), ForeignKey('base_interventions.id', ondelete='CASCADE'), nullable=False)
    effectiveness = Column(Integer, nullable=False, default=3)
    notes = Column(Text, nullable=True)

    difficulty = relationship("LearningDifficulty", back_populates="interventions")
    base_intervention = relationship("BaseIntervention", back_populates="difficulties")

    __table_args__ = (
        UniqueConstraint('difficulty_id', 'base_intervention_id', name='uq_difficulty_interventions_pair'),
        CheckConstraint('effectiveness >= 1 AND effectiveness <= 5', name='ck_difficulty_interventions_effectiveness'),
    )


class InterventionProtocol(Base):
    __tablename__ = 'intervention_protocols'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    estimated_duration = Column(Integer, nullable=True)  # weeks
    base_intervention_id = Column(UUID(as_uuid=True), ForeignKey('base_interventions.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    base_intervention = relationship("BaseIntervention", back_populates="protocols")
    steps = relationship(
        "ProtocolStep",
        back_populates="protocol",
        cascade="all, delete-orphan",
        order_by="ProtocolStep.order",
    )


class ProtocolStep(Base):
    __tablename__ = 'protocol_steps'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    protocol_id = Column(UUID(as_uuid=True), ForeignKey('intervention_protocols.id', ondelete='CASCADE'), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    order = Column(Integer, nullable=False)
    estimated_time = Column(Integer, nullable=True)
    materials = Column(Text, nullable=True)

    protocol = relationship("InterventionProtocol", back_populates="steps")

    __table_args__ = (
        Index('ix_protocol_steps_protocol_id_order', 'protocol_id', 'order'),
    )
