import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default='TEACHER')  # 'ADMIN'|'TEACHER'|'SPECIALIST'
    school_id = Column(UUID(as_uuid=True), ForeignKey('schools.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    school = relationship("School", back_populates="users")
    students = relationship("Student", back_populates="user")

    __table_args__ = (
        CheckConstraint("role in ('ADMIN','TEACHER','SPECIALIST')", name='ck_users_role'),
    )
