"""
Audit logging helpers and enums.

Persists normalized audit records for staff-facing mutations; includes
convenience wrappers per target type.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from innerview.db import schemas
from innerview.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Users
    USER_CREATE = "user_create"
    USER_UPDATE = "user_update"
    USER_DELETE = "user_delete"
    USER_ROLE_CHANGE = "user_role_change"
    # Teams
    TEAM_CREATE = "team_create"
    TEAM_UPDATE = "team_update"
    TEAM_DELETE = "team_delete"
    TEAM_MEMBER_ADD = "team_member_add"
    TEAM_MEMBER_REMOVE = "team_member_remove"
    # Integrations
    INTEGRATION_CREATE = "integration_create"
    INTEGRATION_UPDATE = "integration_update"
    INTEGRATION_DELETE = "integration_delete"
    INTEGRATION_CONNECT = "integration_connect"
    INTEGRATION_SYNC = "integration_sync"
    # Webhooks
    WEBHOOK_CREATE = "webhook_create"
    WEBHOOK_UPDATE = "webhook_update"
    WEBHOOK_DELETE = "webhook_delete"
    WEBHOOK_TRIGGER = "webhook_trigger"
    # LTI
    LTI_DEPLOYMENT_CREATE = "lti_deployment_create"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper.

    Stores plain string values for action and status so filters match
    regardless of how the caller passed them.
    """
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log, actor_user_id=actor_user_id)


__all__ = ["AuditAction", "AuditStatus", "log"]


def log_user(db: Session, *, actor_user_id: uuid.UUID, user_id: uuid.UUID, action: AuditAction, email: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
    payload = dict(metadata or {})
    if email:
        payload["email"] = email
    return log(
        db,
        action=action,
        target_type="user",
        target_id=user_id,
        actor_user_id=actor_user_id,
        metadata=payload or None,
    )


def log_team(db: Session, *, actor_user_id: uuid.UUID, team_id: uuid.UUID, action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="team",
        target_id=team_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


def log_integration(db: Session, *, actor_user_id: Optional[uuid.UUID], integration_id: uuid.UUID, action: AuditAction, status: AuditStatus | str = AuditStatus.SUCCESS, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        status=status,
        target_type="integration",
        target_id=integration_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


def log_webhook(db: Session, *, actor_user_id: uuid.UUID, webhook_id: Optional[uuid.UUID], action: AuditAction, metadata: Optional[Dict[str, Any]] = None):
    return log(
        db,
        action=action,
        target_type="webhook",
        target_id=webhook_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


__all__.extend(["log_user", "log_team", "log_integration", "log_webhook"])
