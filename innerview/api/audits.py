"""
Audit log API endpoints.

Audit entries are readable by administrators only.
"""
from typing import Optional, List
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.db import schemas
from innerview.db.repositories import audits as audit_repo
from innerview.api.deps import require_roles
from innerview.utils.role_permissions import ADMIN_ONLY

router = APIRouter(prefix="/audits", tags=["audits"])


@router.get("/", response_model=List[schemas.AuditLog])
def list_audit_logs(
    action_type: Optional[str] = None,
    target_type: Optional[str] = None,
    actor_user_id: Optional[uuid.UUID] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    return audit_repo.get_audit_logs(
        db,
        actor_user_id=actor_user_id,
        action_type=action_type,
        target_type=target_type,
        status=status_filter,
        skip=skip,
        limit=limit,
    )
