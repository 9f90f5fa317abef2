"""
Screening result endpoints.

Results are unique per screening/indicator pair; posting an existing pair
updates it.
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

router = APIRouter(prefix="/screening-results", tags=["screening-results"])


def _get_screening(db: Session, screening_id: uuid.UUID):
    screening = screening_repo.get_screening(db, screening_id)
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening


@router.post("/", response_model=schemas.ScreeningResult, status_code=status.HTTP_201_CREATED)
def create_result(
    payload: schemas.ScreeningResultCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    screening = _get_screening(db, payload.screening_id)
    indicator = screening_repo.get_indicator(db, payload.indicator_id)
    if not indicator:
        raise HTTPException(status_code=404, detail="Screening indicator not found")
    return screening_service.save_result(
        db, screening, indicator, payload.value, risk_level=payload.risk_level, notes=payload.notes
    )


@router.post("/batch/{screening_id}", response_model=List[schemas.ScreeningResult])
def create_results_batch(
    screening_id: uuid.UUID,
    payload: schemas.ScreeningResultBatch,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    screening = _get_screening(db, screening_id)
    return screening_service.save_batch(db, screening, payload.results)


@router.get("/", response_model=List[schemas.ScreeningResult])
def list_results(
    screening_id: Optional[uuid.UUID] = Query(default=None, alias="screeningId"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    return screening_repo.get_results(db, screening_id=screening_id)


@router.get("/student/{student_id}")
def student_results(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    if not student_repo.get_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return screening_service.completed_screenings_with_flags(db, student_id)


@router.get("/{result_id}", response_model=schemas.ScreeningResult)
def get_result(
    result_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    result = screening_repo.get_result(db, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Screening result not found")
    return result


@router.patch("/{result_id}", response_model=schemas.ScreeningResult)
def update_result(
    result_id: uuid.UUID,
    payload: schemas.ScreeningResultUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    result = screening_repo.get_result(db, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Screening result not found")
    return screening_repo.update_result(db, result, payload)


@router.delete("/{result_id}", response_model=schemas.MessageResponse)
def delete_result(
    result_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    result = screening_repo.get_result(db, result_id)
    if not result:
        raise HTTPException(status_code=404, detail="Screening result not found")
    screening_repo.delete_result(db, result)
    return {"message": "Screening result deleted"}
