import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class PlatformIntegration(Base):
    __tablename__ = 'platform_integrations'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    platform = Column(String(30), nullable=False)  # GOOGLE_CLASSROOM|MICROSOFT_TEAMS|LTI
    name = Column(String, nullable=False)
    client_id = Column(String, nullable=False)
    client_secret = Column(String, nullable=False)
    redirect_uri = Column(String, nullable=True)
    scopes = Column(Text, nullable=True)  # comma separated
    tenant_id = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    # OAuth tokens obtained through the consent flow
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    class_syncs = relationship("ClassSync", back_populates="integration", cascade="all, delete-orphan")
    user_syncs = relationship("UserSync", back_populates="integration", cascade="all, delete-orphan")
    webhooks = relationship("Webhook", back_populates="integration", cascade="all, delete-orphan")
    lti_deployments = relationship("LtiDeployment", back_populates="integration", cascade="all, delete-orphan")


class ClassSync(Base):
    __tablename__ = 'class_syncs'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    external_class_id = Column(String, nullable=False)
    class_name = Column(String, nullable=False)
    integration_id = Column(UUID(as_uuid=True), ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False)
    last_synced_at = Column(DateTime(timezone=True), default=now_utc)

    integration = relationship("PlatformIntegration", back_populates="class_syncs")
    users = relationship("UserSync", back_populates="class_sync")

    __table_args__ = (
        Index('ix_class_syncs_integration_external', 'integration_id', 'external_class_id', unique=True),
    )


class UserSync(Base):
    __tablename__ = 'user_syncs'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    external_user_id = Column(String, nullable=False)
    email = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String(20), nullable=False, default='STUDENT')
    integration_id = Column(UUID(as_uuid=True), ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False)
    class_sync_id = Column(UUID(as_uuid=True), ForeignKey('class_syncs.id', ondelete='SET NULL'), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), default=now_utc)

    integration = relationship("PlatformIntegration", back_populates="user_syncs")
    class_sync = relationship("ClassSync", back_populates="users")

    __table_args__ = (
        Index('ix_user_syncs_integration_external', 'integration_id', 'external_user_id', 'class_sync_id', unique=True),
    )


class Webhook(Base):
    __tablename__ = 'webhooks'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    url = Column(String, nullable=False)
    events = Column(Text, nullable=False)  # comma separated event names
    secret = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    integration_id = Column(UUID(as_uuid=True), ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    integration = relationship("PlatformIntegration", back_populates="webhooks")

    @property
    def event_list(self):
        return [e.strip() for e in (self.events or "").split(",") if e.strip()]


class LtiDeployment(Base):
    __tablename__ = 'lti_deployments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    deployment_id = Column(String, nullable=False, unique=True)
    issuer = Column(String, nullable=False)
    client_id = Column(String, nullable=False)
    auth_login_url = Column(String, nullable=False)
    auth_token_url = Column(String, nullable=False)
    keyset_url = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    integration_id = Column(UUID(as_uuid=True), ForeignKey('platform_integrations.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    integration = relationship("PlatformIntegration", back_populates="lti_deployments")
    launch_states = relationship("LtiLaunchState", back_populates="deployment", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_lti_deployments_issuer_client', 'issuer', 'client_id'),
    )


class LtiLaunchState(Base):
    __tablename__ = 'lti_launch_states'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    state = Column(String, nullable=False, unique=True)
    nonce = Column(String, nullable=False)
    deployment_id = Column(UUID(as_uuid=True), ForeignKey('lti_deployments.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    consumed_at = Column(DateTime(timezone=True), nullable=True)

    deployment = relationship("LtiDeployment", back_populates="launch_states")
