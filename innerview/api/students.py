"""
Student endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import students as student_repo
from innerview.db.repositories import users as user_repo
from innerview.db.repositories import schools as school_repo
from innerview.services.webhook_service import dispatch_event_background, EVENT_STUDENT_CREATED
from innerview.utils.role_permissions import CONTENT_EDITORS

router = APIRouter(prefix="/students", tags=["students"])


def _check_references(db: Session, user_id: Optional[uuid.UUID], school_id: Optional[uuid.UUID]) -> None:
    if user_id and not user_repo.get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    if school_id and not school_repo.get_school(db, school_id):
        raise HTTPException(status_code=404, detail="School not found")


@router.post("/", response_model=schemas.Student, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: schemas.StudentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    _check_references(db, payload.user_id, payload.school_id)
    student = student_repo.create_student(db, payload, user_id=user.id)
    out = schemas.Student.model_validate(student)
    background_tasks.add_task(dispatch_event_background, EVENT_STUDENT_CREATED, out.model_dump(mode="json", by_alias=True))
    return out


@router.get("/", response_model=List[schemas.Student])
def list_students(
    user_id: Optional[uuid.UUID] = Query(default=None, alias="userId"),
    school_id: Optional[uuid.UUID] = Query(default=None, alias="schoolId"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return student_repo.get_students(db, user_id=user_id, school_id=school_id, skip=skip, limit=limit)


@router.get("/{student_id}", response_model=schemas.StudentDetail)
def get_student(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    student = student_repo.get_student_detail(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.patch("/{student_id}", response_model=schemas.Student)
def update_student(
    student_id: uuid.UUID,
    payload: schemas.StudentUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _check_references(db, payload.user_id, payload.school_id)
    student = student_repo.update_student(db, student_id, payload)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.delete("/{student_id}", response_model=schemas.MessageResponse)
def delete_student(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(CONTENT_EDITORS)),
):
    if not student_repo.delete_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return {"message": "Student deleted"}
