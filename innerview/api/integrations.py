"""
LMS platform integration endpoints (ADMIN only).

Client secrets and OAuth tokens are never returned.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import require_roles
from innerview.db import schemas
from innerview.db.repositories import integrations as integration_repo
from innerview.audit import AuditAction, log_integration
from innerview.utils.role_permissions import ADMIN_ONLY

router = APIRouter(prefix="/integrations", tags=["integrations"])


def _connected(integration) -> dict:
    return {"connected": bool(integration.access_token)}


def _list_item(integration) -> schemas.IntegrationListItem:
    return schemas.IntegrationListItem.model_validate(integration).model_copy(update=_connected(integration))


def _detail(integration) -> schemas.Integration:
    return schemas.Integration.model_validate(integration).model_copy(update=_connected(integration))


def _get_or_404(db: Session, integration_id: uuid.UUID):
    integration = integration_repo.get_integration(db, integration_id)
    if not integration:
        raise HTTPException(status_code=404, detail="Integration not found")
    return integration


@router.get("/", response_model=List[schemas.IntegrationListItem])
def list_integrations(
    platform: Optional[schemas.Platform] = None,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    return [_list_item(i) for i in integration_repo.get_integrations(db, platform=platform.value if platform else None)]


@router.post("/", response_model=schemas.Integration, status_code=status.HTTP_201_CREATED)
def create_integration(
    payload: schemas.IntegrationCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    integration = integration_repo.create_integration(db, payload)
    log_integration(db, actor_user_id=user.id, integration_id=integration.id, action=AuditAction.INTEGRATION_CREATE, metadata={
        "platform": integration.platform,
        "name": integration.name,
    })
    return _detail(integration)


@router.get("/{integration_id}", response_model=schemas.Integration)
def get_integration(
    integration_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    return _detail(_get_or_404(db, integration_id))


@router.api_route("/{integration_id}", methods=["PUT", "PATCH"], response_model=schemas.Integration)
def update_integration(
    integration_id: uuid.UUID,
    payload: schemas.IntegrationUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    integration = integration_repo.update_integration(db, _get_or_404(db, integration_id), payload)
    # field names only, never values
    log_integration(db, actor_user_id=user.id, integration_id=integration.id, action=AuditAction.INTEGRATION_UPDATE, metadata={
        "fields": sorted(payload.model_dump(exclude_unset=True).keys()),
    })
    return _detail(integration)


@router.delete("/{integration_id}", response_model=schemas.MessageResponse)
def delete_integration(
    integration_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    integration = _get_or_404(db, integration_id)
    platform = integration.platform
    integration_repo.delete_integration(db, integration)
    log_integration(db, actor_user_id=user.id, integration_id=integration_id, action=AuditAction.INTEGRATION_DELETE, metadata={
        "platform": platform,
    })
    return {"message": "Integration deleted"}


@router.get("/{integration_id}/classes", response_model=List[schemas.ClassSync])
def list_synced_classes(
    integration_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    _get_or_404(db, integration_id)
    return [
        schemas.ClassSync.model_validate(class_sync).model_copy(update={"users_count": users_count})
        for class_sync, users_count in integration_repo.get_class_syncs_with_counts(db, integration_id)
    ]
