"""
OAuth consent and roster sync endpoints for Google Classroom and
Microsoft Teams. Both platforms share the same route shape.
"""
from typing import Type
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import require_roles
from innerview.db import schemas
from innerview.audit import AuditAction, AuditStatus, log_integration
from innerview.services.lms_sync import LmsSyncService
from innerview.services.google_classroom_service import GoogleClassroomService
from innerview.services.microsoft_teams_service import MicrosoftTeamsService
from innerview.utils.feature_flags import lms_sync_enabled
from innerview.utils.role_permissions import ADMIN_ONLY


def _require_lms_sync():
    if not lms_sync_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="LMS sync is currently disabled")


def build_platform_router(prefix: str, tag: str, service_cls: Type[LmsSyncService]) -> APIRouter:
    platform_router = APIRouter(
        prefix=f"/integrations/{prefix}",
        tags=[tag],
        dependencies=[Depends(_require_lms_sync)],
    )

    @platform_router.get("/auth-url/{integration_id}", response_model=schemas.AuthUrlResponse)
    def get_auth_url(
        integration_id: str,
        db: Session = Depends(get_db),
        user_context=Depends(require_roles(ADMIN_ONLY)),
    ):
        return service_cls(db).get_auth_url(integration_id)

    @platform_router.get("/callback")
    def auth_callback(
        code: str,
        state: str,
        db: Session = Depends(get_db),
        user_context=Depends(require_roles(ADMIN_ONLY)),
    ):
        user, _ctx = user_context
        service = service_cls(db)
        result = service.handle_auth_callback(code, state)
        integration = service.get_integration(state)
        log_integration(db, actor_user_id=user.id, integration_id=integration.id, action=AuditAction.INTEGRATION_CONNECT, metadata={
            "platform": integration.platform,
        })
        return result

    @platform_router.post("/sync/{integration_id}", response_model=schemas.SyncResult)
    def sync(
        integration_id: str,
        db: Session = Depends(get_db),
        user_context=Depends(require_roles(ADMIN_ONLY)),
    ):
        user, _ctx = user_context
        service = service_cls(db)
        result = service.sync(integration_id)
        integration = service.get_integration(integration_id)
        log_integration(
            db,
            actor_user_id=user.id,
            integration_id=integration.id,
            action=AuditAction.INTEGRATION_SYNC,
            status=AuditStatus.SUCCESS if result["success"] else AuditStatus.FAILURE,
            metadata={
                "classes": result.get("classesCount", 0),
                "students": result.get("studentsCount", 0),
                "error": result.get("error"),
            },
        )
        return result

    return platform_router


google_router = build_platform_router("google", "google-classroom", GoogleClassroomService)
microsoft_router = build_platform_router("microsoft", "microsoft-teams", MicrosoftTeamsService)
