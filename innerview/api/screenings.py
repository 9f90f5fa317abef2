"""
Screening session endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context
from innerview.db import schemas
from innerview.db.repositories import screenings as screening_repo
from innerview.db.repositories import students as student_repo
from innerview.services import screening_service

router = APIRouter(prefix="/screenings", tags=["screenings"])


@router.post("/", response_model=schemas.Screening, status_code=status.HTTP_201_CREATED)
def create_screening(
    payload: schemas.ScreeningCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    if not screening_repo.get_instrument(db, payload.instrument_id):
        raise HTTPException(status_code=404, detail="Screening instrument not found")
    return screening_repo.create_screening(db, payload, applied_by_id=user.id)


@router.get("/", response_model=List[schemas.Screening])
def list_screenings(
    student_id: Optional[uuid.UUID] = Query(default=None, alias="studentId"),
    applied_by_id: Optional[uuid.UUID] = Query(default=None, alias="appliedById"),
    instrument_id: Optional[uuid.UUID] = Query(default=None, alias="instrumentId"),
    status_filter: Optional[schemas.ScreeningStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return screening_repo.get_screenings(
        db,
        student_id=student_id,
        applied_by_id=applied_by_id,
        instrument_id=instrument_id,
        status=status_filter.value if status_filter else None,
    )


@router.get("/statistics/general")
def screening_statistics(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return screening_service.statistics(db)


@router.get("/student/{student_id}")
def student_screening_results(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Completed screenings of a student grouped by instrument category."""
    student = student_repo.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return screening_service.student_results_by_category(db, student)


@router.get("/{screening_id}", response_model=schemas.ScreeningDetail)
def get_screening(
    screening_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    screening = screening_repo.get_screening_detail(db, screening_id)
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening


@router.patch("/{screening_id}", response_model=schemas.Screening)
def update_screening(
    screening_id: uuid.UUID,
    payload: schemas.ScreeningUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    screening = screening_repo.get_screening(db, screening_id)
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening_repo.update_screening(db, screening, payload)


@router.delete("/{screening_id}", response_model=schemas.MessageResponse)
def delete_screening(
    screening_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    screening = screening_repo.get_screening(db, screening_id)
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    screening_repo.delete_screening(db, screening)
    return {"message": "Screening deleted"}
