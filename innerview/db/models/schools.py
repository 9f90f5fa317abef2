import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class SchoolNetwork(Base):
    __tablename__ = 'school_networks'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    code = Column(String, nullable=True, unique=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    schools = relationship("School", back_populates="network")


class School(Base):
    __tablename__ = 'schools'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True, unique=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    network_id = Column(UUID(as_uuid=True), ForeignKey('school_networks.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    network = relationship("SchoolNetwork", back_populates="schools")
    users = relationship("User", back_populates="school")
    students = relationship("Student", back_populates="school")
    teams = relationship("RtiTeam", back_populates="school")

    __table_args__ = (
        Index('ix_schools_network_id', 'network_id'),
    )
