"""
Outbound webhook registration and manual dispatch (ADMIN only).
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import require_roles
from innerview.db import schemas
from innerview.db.repositories import integrations as integration_repo
from innerview.audit import AuditAction, log_webhook
from innerview.services.webhook_service import WebhookService
from innerview.utils.role_permissions import ADMIN_ONLY
from innerview.utils.token_crypto import generate_hex_secret

router = APIRouter(
    prefix="/integrations/webhooks",
    tags=["webhooks"],
    dependencies=[Depends(require_roles(ADMIN_ONLY))],
)


def _get_or_404(db: Session, webhook_id: uuid.UUID):
    webhook = integration_repo.get_webhook(db, webhook_id)
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return webhook


@router.post("/", response_model=schemas.Webhook, status_code=status.HTTP_201_CREATED)
def create_webhook(
    payload: schemas.WebhookCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    if not integration_repo.get_integration(db, payload.integration_id):
        raise HTTPException(status_code=404, detail="Integration not found")
    webhook = integration_repo.create_webhook(db, payload, secret=payload.secret or generate_hex_secret(32))
    log_webhook(db, actor_user_id=user.id, webhook_id=webhook.id, action=AuditAction.WEBHOOK_CREATE, metadata={
        "url": webhook.url,
        "events": webhook.event_list,
    })
    return webhook


@router.post("/trigger")
def trigger_webhooks(
    payload: schemas.WebhookTrigger,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    """Dispatch ``event`` synchronously and return the delivery summary."""
    user, _ctx = user_context
    result = WebhookService(db).trigger_event(payload.event, payload.data)
    log_webhook(db, actor_user_id=user.id, webhook_id=None, action=AuditAction.WEBHOOK_TRIGGER, metadata={
        "event": payload.event,
        "total": result.get("totalWebhooks", 0),
        "succeeded": result.get("successCount", 0),
    })
    return result


@router.get("/{integration_id}", response_model=List[schemas.Webhook])
def list_webhooks(
    integration_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    if not integration_repo.get_integration(db, integration_id):
        raise HTTPException(status_code=404, detail="Integration not found")
    return integration_repo.get_webhooks(db, integration_id)


@router.patch("/{webhook_id}", response_model=schemas.Webhook)
def update_webhook(
    webhook_id: uuid.UUID,
    payload: schemas.WebhookUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    webhook = integration_repo.update_webhook(db, _get_or_404(db, webhook_id), payload)
    log_webhook(db, actor_user_id=user.id, webhook_id=webhook.id, action=AuditAction.WEBHOOK_UPDATE, metadata={
        "fields": sorted(payload.model_dump(exclude_unset=True).keys()),
    })
    return webhook


@router.delete("/{webhook_id}", response_model=schemas.MessageResponse)
def delete_webhook(
    webhook_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    webhook = _get_or_404(db, webhook_id)
    integration_repo.delete_webhook(db, webhook)
    log_webhook(db, actor_user_id=user.id, webhook_id=webhook_id, action=AuditAction.WEBHOOK_DELETE)
    return {"message": "Webhook deleted"}
