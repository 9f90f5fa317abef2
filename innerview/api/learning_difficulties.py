"""
Learning difficulty catalogue and student assignment endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import catalogue as catalogue_repo
from innerview.db.repositories import students as student_repo
from innerview.utils.role_permissions import TEAM_MANAGERS

router = APIRouter(prefix="/learning-difficulties", tags=["learning-difficulties"])


@router.post("/", response_model=schemas.LearningDifficulty, status_code=status.HTTP_201_CREATED)
def create_difficulty(
    payload: schemas.LearningDifficultyCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    return catalogue_repo.create_difficulty(db, payload)


@router.get("/", response_model=List[schemas.LearningDifficulty])
def list_difficulties(
    category: Optional[schemas.DifficultyCategory] = None,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return catalogue_repo.get_difficulties(db, category=category.value if category else None)


@router.post("/assign-student", response_model=schemas.StudentDifficulty, status_code=status.HTTP_201_CREATED)
def assign_student(
    payload: schemas.StudentDifficultyAssign,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    if not catalogue_repo.get_difficulty(db, payload.difficulty_id):
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    if catalogue_repo.get_student_difficulty(db, payload.student_id, payload.difficulty_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Student already has this learning difficulty",
        )
    return catalogue_repo.assign_student_difficulty(db, payload)


@router.get("/student/{student_id}", response_model=List[schemas.StudentDifficulty])
def list_student_difficulties(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return catalogue_repo.get_student_difficulties(db, student_id)


@router.get("/{difficulty_id}", response_model=schemas.LearningDifficultyDetail)
def get_difficulty(
    difficulty_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    difficulty = catalogue_repo.get_difficulty_detail(db, difficulty_id)
    if not difficulty:
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    return difficulty


@router.patch("/{difficulty_id}", response_model=schemas.LearningDifficulty)
def update_difficulty(
    difficulty_id: uuid.UUID,
    payload: schemas.LearningDifficultyUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    difficulty = catalogue_repo.update_difficulty(db, difficulty_id, payload)
    if not difficulty:
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    return difficulty


@router.delete("/{difficulty_id}", response_model=schemas.MessageResponse)
def delete_difficulty(
    difficulty_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    if not catalogue_repo.get_difficulty(db, difficulty_id):
        raise HTTPException(status_code=404, detail="Learning difficulty not found")
    if catalogue_repo.count_students_with_difficulty(db, difficulty_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Learning difficulty is still assigned to students",
        )
    catalogue_repo.delete_difficulty(db, difficulty_id)
    return {"message": "Learning difficulty deleted"}
