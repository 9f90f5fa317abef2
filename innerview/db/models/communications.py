import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class TutorCommunication(Base):
    __tablename__ = 'tutor_communications'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # EMAIL|SMS|LETTER|PHONE|MEETING
    status = Column(String(20), nullable=False, default='DRAFT')  # DRAFT|SENT|DELIVERED|READ|FAILED
    contact_info = Column(String, nullable=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    student = relationship("Student", back_populates="communications")
    user = relationship("User")

    __table_args__ = (
        Index('ix_tutor_communications_student_id', 'student_id'),
        Index('ix_tutor_communications_user_id_created_at', 'user_id', 'created_at'),
    )
