"""
Student intervention endpoints, including the complete/cancel transitions.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import students as student_repo
from innerview.db.repositories import catalogue as catalogue_repo
from innerview.services.webhook_service import (
    dispatch_event_background,
    EVENT_INTERVENTION_CREATED,
    EVENT_INTERVENTION_COMPLETED,
)
from innerview.utils.role_permissions import CONTENT_EDITORS

router = APIRouter(prefix="/interventions", tags=["interventions"])


def _ensure_base_intervention(db: Session, base_intervention_id: Optional[uuid.UUID]) -> None:
    if base_intervention_id and not catalogue_repo.get_base_intervention(db, base_intervention_id):
        raise HTTPException(status_code=404, detail="Base intervention not found")


def _event_data(intervention) -> dict:
    return schemas.Intervention.model_validate(intervention).model_dump(mode="json", by_alias=True)


@router.post("/", response_model=schemas.Intervention, status_code=status.HTTP_201_CREATED)
def create_intervention(
    payload: schemas.InterventionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    _ensure_base_intervention(db, payload.base_intervention_id)
    intervention = student_repo.create_intervention(db, payload)
    background_tasks.add_task(dispatch_event_background, EVENT_INTERVENTION_CREATED, _event_data(intervention))
    return intervention


@router.get("/", response_model=List[schemas.Intervention])
def list_interventions(
    status_filter: Optional[schemas.InterventionStatus] = Query(default=None, alias="status"),
    student_id: Optional[uuid.UUID] = Query(default=None, alias="studentId"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return student_repo.get_interventions(
        db,
        student_id=student_id,
        status=status_filter.value if status_filter else None,
        skip=skip,
        limit=limit,
    )


@router.get("/student/{student_id}", response_model=List[schemas.Intervention])
def list_student_interventions(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return student_repo.get_interventions(db, student_id=student_id)


@router.get("/{intervention_id}", response_model=schemas.Intervention)
def get_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    intervention = student_repo.get_intervention(db, intervention_id)
    if not intervention:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return intervention


@router.patch("/{intervention_id}/complete", response_model=schemas.Intervention)
def complete_intervention(
    intervention_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    intervention = student_repo.set_intervention_status(db, intervention_id, schemas.InterventionStatus.COMPLETED.value)
    if not intervention:
        raise HTTPException(status_code=404, detail="Intervention not found")
    background_tasks.add_task(dispatch_event_background, EVENT_INTERVENTION_COMPLETED, _event_data(intervention))
    return intervention


@router.patch("/{intervention_id}/cancel", response_model=schemas.Intervention)
def cancel_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    intervention = student_repo.set_intervention_status(db, intervention_id, schemas.InterventionStatus.CANCELLED.value)
    if not intervention:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return intervention


@router.patch("/{intervention_id}", response_model=schemas.Intervention)
def update_intervention(
    intervention_id: uuid.UUID,
    payload: schemas.InterventionUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _ensure_base_intervention(db, payload.base_intervention_id)
    intervention = student_repo.update_intervention(db, intervention_id, payload)
    if not intervention:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return intervention


@router.delete("/{intervention_id}", response_model=schemas.MessageResponse)
def delete_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(CONTENT_EDITORS)),
):
    if not student_repo.delete_intervention(db, intervention_id):
        raise HTTPException(status_code=404, detail="Intervention not found")
    return {"message": "Intervention deleted"}
