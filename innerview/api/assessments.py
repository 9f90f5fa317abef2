"""
Assessment endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import students as student_repo
from innerview.services.webhook_service import dispatch_event_background, EVENT_ASSESSMENT_CREATED
from innerview.utils.role_permissions import CONTENT_EDITORS

router = APIRouter(prefix="/assessments", tags=["assessments"])


@router.post("/", response_model=schemas.Assessment, status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: schemas.AssessmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    assessment = student_repo.create_assessment(db, payload)
    out = schemas.Assessment.model_validate(assessment)
    background_tasks.add_task(dispatch_event_background, EVENT_ASSESSMENT_CREATED, out.model_dump(mode="json", by_alias=True))
    return out


@router.get("/", response_model=List[schemas.Assessment])
def list_assessments(
    student_id: Optional[uuid.UUID] = Query(default=None, alias="studentId"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return student_repo.get_assessments(db, student_id=student_id, skip=skip, limit=limit)


@router.get("/student/{student_id}", response_model=List[schemas.Assessment])
def list_student_assessments(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return student_repo.get_assessments(db, student_id=student_id)


@router.get("/{assessment_id}", response_model=schemas.Assessment)
def get_assessment(
    assessment_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    assessment = student_repo.get_assessment(db, assessment_id)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessment


@router.patch("/{assessment_id}", response_model=schemas.Assessment)
def update_assessment(
    assessment_id: uuid.UUID,
    payload: schemas.AssessmentUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    assessment = student_repo.update_assessment(db, assessment_id, payload)
    if not assessment:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessment


@router.delete("/{assessment_id}", response_model=schemas.MessageResponse)
def delete_assessment(
    assessment_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(CONTENT_EDITORS)),
):
    if not student_repo.delete_assessment(db, assessment_id):
        raise HTTPException(status_code=404, detail="Assessment not found")
    return {"message": "Assessment deleted"}
