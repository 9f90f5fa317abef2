"""
Tutor/guardian communication log endpoints.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context
from innerview.db import schemas
from innerview.db.repositories import referrals as communication_repo
from innerview.db.repositories import students as student_repo
from innerview.utils.role_permissions import is_admin

router = APIRouter(prefix="/communications", tags=["communications"])


def _get_owned_or_404(db: Session, communication_id: uuid.UUID, user):
    communication = communication_repo.get_communication(db, communication_id)
    if not communication or (not is_admin(user.role) and communication.user_id != user.id):
        raise HTTPException(status_code=404, detail="Communication not found")
    return communication


@router.post("/", response_model=schemas.Communication, status_code=status.HTTP_201_CREATED)
def create_communication(
    payload: schemas.CommunicationCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not student_repo.get_student(db, payload.student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return communication_repo.create_communication(db, payload, user_id=user.id)


@router.get("/", response_model=List[schemas.Communication])
def list_communications(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return communication_repo.get_communications(db, user_id=None if is_admin(user.role) else user.id)


@router.get("/student/{student_id}", response_model=List[schemas.Communication])
def list_student_communications(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not student_repo.get_student(db, student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return communication_repo.get_communications(
        db,
        user_id=None if is_admin(user.role) else user.id,
        student_id=student_id,
    )


@router.get("/{communication_id}", response_model=schemas.Communication)
def get_communication(
    communication_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return _get_owned_or_404(db, communication_id, user)


@router.patch("/{communication_id}", response_model=schemas.Communication)
def update_communication(
    communication_id: uuid.UUID,
    payload: schemas.CommunicationUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    communication = _get_owned_or_404(db, communication_id, user)
    return communication_repo.update_communication(db, communication, payload)


@router.delete("/{communication_id}", response_model=schemas.MessageResponse)
def delete_communication(
    communication_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    communication = _get_owned_or_404(db, communication_id, user)
    communication_repo.delete_communication(db, communication)
    return {"message": "Communication deleted"}
