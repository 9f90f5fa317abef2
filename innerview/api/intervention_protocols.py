"""
Intervention protocol endpoints. Steps are always returned ordered.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import catalogue as catalogue_repo
from innerview.utils.role_permissions import TEAM_MANAGERS

router = APIRouter(prefix="/intervention-protocols", tags=["intervention-protocols"])


def _ensure_base_intervention(db: Session, base_intervention_id: Optional[uuid.UUID]) -> None:
    if base_intervention_id and not catalogue_repo.get_base_intervention(db, base_intervention_id):
        raise HTTPException(status_code=404, detail="Base intervention not found")


def _get_or_404(db: Session, protocol_id: uuid.UUID):
    protocol = catalogue_repo.get_protocol(db, protocol_id)
    if not protocol:
        raise HTTPException(status_code=404, detail="Intervention protocol not found")
    return protocol


@router.post("/", response_model=schemas.InterventionProtocol, status_code=status.HTTP_201_CREATED)
def create_protocol(
    payload: schemas.InterventionProtocolCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    _ensure_base_intervention(db, payload.base_intervention_id)
    return catalogue_repo.create_protocol(db, payload)


@router.get("/", response_model=List[schemas.InterventionProtocol])
def list_protocols(
    base_intervention_id: Optional[uuid.UUID] = Query(default=None, alias="baseInterventionId"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return catalogue_repo.get_protocols(db, base_intervention_id=base_intervention_id)


@router.get("/base-intervention/{base_intervention_id}", response_model=List[schemas.InterventionProtocol])
def list_for_base_intervention(
    base_intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _ensure_base_intervention(db, base_intervention_id)
    return catalogue_repo.get_protocols(db, base_intervention_id=base_intervention_id)


@router.get("/{protocol_id}", response_model=schemas.InterventionProtocol)
def get_protocol(
    protocol_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return _get_or_404(db, protocol_id)


@router.patch("/{protocol_id}", response_model=schemas.InterventionProtocol)
def update_protocol(
    protocol_id: uuid.UUID,
    payload: schemas.InterventionProtocolUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    protocol = _get_or_404(db, protocol_id)
    _ensure_base_intervention(db, payload.base_intervention_id)
    return catalogue_repo.update_protocol(db, protocol, payload)


@router.post("/{protocol_id}/duplicate", response_model=schemas.InterventionProtocol, status_code=status.HTTP_201_CREATED)
def duplicate_protocol(
    protocol_id: uuid.UUID,
    payload: Optional[schemas.ProtocolDuplicate] = Body(default=None),
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    protocol = _get_or_404(db, protocol_id)
    return catalogue_repo.duplicate_protocol(db, protocol, name=payload.name if payload else None)


@router.delete("/{protocol_id}", response_model=schemas.MessageResponse)
def delete_protocol(
    protocol_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    protocol = _get_or_404(db, protocol_id)
    catalogue_repo.delete_protocol(db, protocol)
    return {"message": "Intervention protocol deleted"}
