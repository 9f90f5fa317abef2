"""
LTI 1.3 endpoints.

Deployment management is ADMIN only; login initiation and launch are
called by the LMS platform and are public.
"""
from typing import Any, Dict, List
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import require_roles
from innerview.db import schemas
from innerview.db.repositories import integrations as integration_repo
from innerview.audit import AuditAction, log_integration
from innerview.services.lti_service import LtiService
from innerview.utils.feature_flags import lti_enabled
from innerview.utils.role_permissions import ADMIN_ONLY

router = APIRouter(prefix="/integrations/lti", tags=["lti"])


def _require_lti():
    if not lti_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="LTI is currently disabled")


async def _request_fields(request: Request) -> Dict[str, Any]:
    """Merge query parameters with a form or JSON body."""
    fields: Dict[str, Any] = dict(request.query_params)
    if request.method == "POST":
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                body = await request.json()
            except ValueError:
                raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Malformed JSON body")
            if isinstance(body, dict):
                fields.update(body)
        elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            fields.update({key: value for key, value in form.items() if isinstance(value, str)})
    return fields


def _parse(model_cls, fields: Dict[str, Any]):
    try:
        return model_cls.model_validate(fields)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )


@router.post("/deployments", response_model=schemas.LtiDeployment, status_code=status.HTTP_201_CREATED)
def create_deployment(
    payload: schemas.LtiDeploymentCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    user, _ctx = user_context
    integration = integration_repo.get_integration(db, payload.integration_id)
    if not integration or integration.platform != schemas.Platform.LTI.value:
        raise HTTPException(status_code=404, detail="LTI integration not found")
    if integration_repo.get_lti_deployment_by_deployment_id(db, payload.deployment_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Deployment id already registered")
    deployment = integration_repo.create_lti_deployment(db, payload)
    log_integration(db, actor_user_id=user.id, integration_id=integration.id, action=AuditAction.LTI_DEPLOYMENT_CREATE, metadata={
        "deployment_id": deployment.deployment_id,
        "issuer": deployment.issuer,
    })
    return deployment


@router.get("/deployments/{integration_id}", response_model=List[schemas.LtiDeployment])
def list_deployments(
    integration_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    if not integration_repo.get_integration(db, integration_id):
        raise HTTPException(status_code=404, detail="Integration not found")
    return integration_repo.get_lti_deployments(db, integration_id)


@router.api_route("/login", methods=["GET", "POST"], response_model=schemas.AuthUrlResponse, dependencies=[Depends(_require_lti)])
async def lti_login(request: Request, db: Session = Depends(get_db)):
    """OIDC third-party login initiation."""
    params = _parse(schemas.LtiLoginRequest, await _request_fields(request))
    return await run_in_threadpool(LtiService(db).handle_login_request, params)


@router.post("/launch", response_model=schemas.LtiLaunchResult, dependencies=[Depends(_require_lti)])
async def lti_launch(request: Request, db: Session = Depends(get_db)):
    payload = _parse(schemas.LtiLaunchRequest, await _request_fields(request))
    return await run_in_threadpool(LtiService(db).handle_launch, payload.id_token, payload.state)
