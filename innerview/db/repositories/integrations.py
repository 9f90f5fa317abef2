"""
LMS integration repository functions.

Platform integrations with their OAuth token columns, synced classes and
users, outbound webhooks, LTI deployments and persisted LTI launch state.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from innerview.db import schemas, models
from innerview.db.models import now_utc


# === Integrations ===

def get_integration(db: Session, integration_id: uuid.UUID):
    return db.query(models.PlatformIntegration).filter(models.PlatformIntegration.id == integration_id).first()


def get_integrations(db: Session, platform: Optional[str] = None):
    query = db.query(models.PlatformIntegration)
    if platform:
        query = query.filter(models.PlatformIntegration.platform == platform)
    return query.order_by(models.PlatformIntegration.created_at.desc()).all()


def create_integration(db: Session, integration: schemas.IntegrationCreate):
    db_integration = models.PlatformIntegration(**integration.model_dump())
    db.add(db_integration)
    db.commit()
    db.refresh(db_integration)
    return db_integration


def update_integration(db: Session, db_integration: models.PlatformIntegration, integration: schemas.IntegrationUpdate):
    for key, value in integration.model_dump(exclude_unset=True).items():
        setattr(db_integration, key, value)
    db.commit()
    db.refresh(db_integration)
    return db_integration


def delete_integration(db: Session, db_integration: models.PlatformIntegration):
    # syncs, webhooks and LTI deployments go with it through relationship cascades
    db.delete(db_integration)
    db.commit()


def store_tokens(
    db: Session,
    db_integration: models.PlatformIntegration,
    access_token: str,
    refresh_token: Optional[str],
    expires_at: Optional[datetime],
):
    db_integration.access_token = access_token
    if refresh_token:
        db_integration.refresh_token = refresh_token
    db_integration.token_expires_at = expires_at
    db.commit()
    db.refresh(db_integration)
    return db_integration


# === Class / user sync ===

def upsert_class_sync(db: Session, integration_id: uuid.UUID, external_class_id: str, class_name: str):
    class_sync = (
        db.query(models.ClassSync)
        .filter(
            models.ClassSync.integration_id == integration_id,
            models.ClassSync.external_class_id == external_class_id,
        )
        .first()
    )
    if class_sync:
        class_sync.class_name = class_name
        class_sync.last_synced_at = now_utc()
    else:
        class_sync = models.ClassSync(
            integration_id=integration_id,
            external_class_id=external_class_id,
            class_name=class_name,
        )
        db.add(class_sync)
    db.flush()
    return class_sync


def upsert_user_sync(
    db: Session,
    integration_id: uuid.UUID,
    class_sync_id: uuid.UUID,
    external_user_id: str,
    email: str,
    name: Optional[str] = None,
    role: str = "STUDENT",
):
    user_sync = (
        db.query(models.UserSync)
        .filter(
            models.UserSync.integration_id == integration_id,
            models.UserSync.class_sync_id == class_sync_id,
            models.UserSync.external_user_id == external_user_id,
        )
        .first()
    )
    if user_sync:
        user_sync.email = email
        user_sync.name = name
        user_sync.role = role
        user_sync.last_synced_at = now_utc()
    else:
        user_sync = models.UserSync(
            integration_id=integration_id,
            class_sync_id=class_sync_id,
            external_user_id=external_user_id,
            email=email,
            name=name,
            role=role,
        )
        db.add(user_sync)
    db.flush()
    return user_sync


def get_class_syncs_with_counts(db: Session, integration_id: uuid.UUID):
    users_count = func.count(models.UserSync.id).label("users_count")
    return (
        db.query(models.ClassSync, users_count)
        .outerjoin(models.UserSync, models.UserSync.class_sync_id == models.ClassSync.id)
        .filter(models.ClassSync.integration_id == integration_id)
        .group_by(models.ClassSync.id)
        .order_by(models.ClassSync.class_name)
        .all()
    )


# === Webhooks ===

def get_webhook(db: Session, webhook_id: uuid.UUID):
    return db.query(models.Webhook).filter(models.Webhook.id == webhook_id).first()


def get_webhooks(db: Session, integration_id: uuid.UUID):
    return (
        db.query(models.Webhook)
        .filter(models.Webhook.integration_id == integration_id)
        .order_by(models.Webhook.created_at)
        .all()
    )


def get_active_webhooks(db: Session):
    return db.query(models.Webhook).filter(models.Webhook.active.is_(True)).order_by(models.Webhook.created_at).all()


def _join_events(events) -> str:
    seen = []
    for event in events:
        event = event.strip()
        if event and event not in seen:
            seen.append(event)
    return ",".join(seen)


def create_webhook(db: Session, webhook: schemas.WebhookCreate, secret: str):
    db_webhook = models.Webhook(
        integration_id=webhook.integration_id,
        url=webhook.url,
        events=_join_events(webhook.events),
        secret=secret,
    )
    db.add(db_webhook)
    db.commit()
    db.refresh(db_webhook)
    return db_webhook


def update_webhook(db: Session, db_webhook: models.Webhook, webhook: schemas.WebhookUpdate):
    update_data = webhook.model_dump(exclude_unset=True)
    if "events" in update_data and update_data["events"] is not None:
        update_data["events"] = _join_events(update_data["events"])
    for key, value in update_data.items():
        if value is not None:
            setattr(db_webhook, key, value)
    db.commit()
    db.refresh(db_webhook)
    return db_webhook


def delete_webhook(db: Session, db_webhook: models.Webhook):
    db.delete(db_webhook)
    db.commit()


# === LTI ===

def get_lti_deployment_by_deployment_id(db: Session, deployment_id: str):
    return db.query(models.LtiDeployment).filter(models.LtiDeployment.deployment_id == deployment_id).first()


def find_active_lti_deployment(db: Session, issuer: str, client_id: str, deployment_id: Optional[str] = None):
    query = db.query(models.LtiDeployment).filter(
        models.LtiDeployment.issuer == issuer,
        models.LtiDeployment.client_id == client_id,
        models.LtiDeployment.active.is_(True),
    )
    if deployment_id:
        query = query.filter(models.LtiDeployment.deployment_id == deployment_id)
    return query.first()


def get_lti_deployments(db: Session, integration_id: uuid.UUID):
    return (
        db.query(models.LtiDeployment)
        .filter(models.LtiDeployment.integration_id == integration_id)
        .order_by(models.LtiDeployment.created_at)
        .all()
    )


def create_lti_deployment(db: Session, deployment: schemas.LtiDeploymentCreate):
    db_deployment = models.LtiDeployment(**deployment.model_dump())
    db.add(db_deployment)
    db.commit()
    db.refresh(db_deployment)
    return db_deployment


def create_launch_state(db: Session, deployment_id: uuid.UUID, state: str, nonce: str, expires_at: datetime):
    launch_state = models.LtiLaunchState(
        deployment_id=deployment_id,
        state=state,
        nonce=nonce,
        expires_at=expires_at,
    )
    db.add(launch_state)
    db.commit()
    db.refresh(launch_state)
    return launch_state


def get_launch_state(db: Session, state: str):
    return db.query(models.LtiLaunchState).filter(models.LtiLaunchState.state == state).first()


def consume_launch_state(db: Session, launch_state: models.LtiLaunchState):
    launch_state.consumed_at = now_utc()
    db.commit()
    db.refresh(launch_state)
    return launch_state
