import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class ScreeningInstrument(Base):
    __tablename__ = 'screening_instruments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(30), nullable=False)
    age_range = Column(String, nullable=True)
    administration_time = Column(String, nullable=True)
    instructions = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    indicators = relationship("ScreeningIndicator", back_populates="instrument", cascade="all, delete-orphan")
    screenings = relationship("Screening", back_populates="instrument")


class ScreeningIndicator(Base):
    __tablename__ = 'screening_indicators'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)  # LIKERT_SCALE|YES_NO|NUMERIC|PERCENTAGE
    min_value = Column(Float, nullable=False)
    max_value = Column(Float, nullable=False)
    cutoff = Column(Float, nullable=True)
    instrument_id = Column(UUID(as_uuid=True), ForeignKey('screening_instruments.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    instrument = relationship("ScreeningInstrument", back_populates="indicators")
    results = relationship("ScreeningResult", back_populates="indicator")

    __table_args__ = (
        Index('ix_screening_indicators_instrument_id', 'instrument_id'),
    )


class Screening(Base):
    __tablename__ = 'screenings'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default='IN_PROGRESS')  # IN_PROGRESS|COMPLETED|CANCELLED
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    applied_by_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    instrument_id = Column(UUID(as_uuid=True), ForeignKey('screening_instruments.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    student = relationship("Student", back_populates="screenings")
    applied_by = relationship("User")
    instrument = relationship("ScreeningInstrument", back_populates="screenings")
    results = relationship("ScreeningResult", back_populates="screening", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_screenings_student_id_applied_at', 'student_id', 'applied_at'),
        Index('ix_screenings_status', 'status'),
    )


class ScreeningResult(Base):
    __tablename__ = 'screening_results'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    value = Column(Float, nullable=False)
    risk_level = Column(String(20), nullable=True)  # LOW|MODERATE|HIGH|VERY_HIGH
    notes = Column(Text, nullable=True)
    screening_id = Column(UUID(as_uuid=True), ForeignKey('screenings.id', ondelete='CASCADE'), nullable=False)
    indicator_id = Column(UUID(as_uuid=True), ForeignKey('screening_indicators.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    screening = relationship("Screening", back_populates="results")
    indicator = relationship("ScreeningIndicator", back_populates="results")

    __table_args__ = (
        UniqueConstraint('screening_id', 'indicator_id', name='uq_screening_results_pair'),
    )
