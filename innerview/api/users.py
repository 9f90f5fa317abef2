"""
Users API endpoints.

Staff account management: ADMIN creates and removes accounts, staff may
update their own profile.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.repositories import users as user_repo
from innerview.db.repositories import schools as school_repo
from innerview.db.repositories import students as student_repo
from innerview.audit import AuditAction, log_user
from innerview.utils.role_permissions import ADMIN_ONLY, TEAM_MANAGERS, validate_role, is_admin

router = APIRouter(prefix="/users", tags=["users"])


def _validated_role(role: Optional[str]) -> Optional[str]:
    if role is None:
        return None
    try:
        validate_role(role)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return role


def _ensure_school(db: Session, school_id: Optional[uuid.UUID]) -> None:
    if school_id and not school_repo.get_school(db, school_id):
        raise HTTPException(status_code=404, detail="School not found")


@router.post("/", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    admin, _ctx = user_context
    _validated_role(payload.role)
    if user_repo.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    _ensure_school(db, payload.school_id)
    user = user_repo.create_user(db, payload)
    log_user(db, actor_user_id=admin.id, user_id=user.id, action=AuditAction.USER_CREATE, email=user.email, metadata={"role": user.role})
    return user


@router.get("/", response_model=List[schemas.User])
def list_users(
    role: Optional[str] = None,
    school_id: Optional[uuid.UUID] = Query(default=None, alias="schoolId"),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    return user_repo.get_users(db, role=role, school_id=school_id, skip=skip, limit=limit)


@router.get("/{user_id}", response_model=schemas.User)
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user = user_repo.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=schemas.User)
def update_user(
    user_id: uuid.UUID,
    payload: schemas.UserUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    current, _ctx = user_context
    acting_admin = is_admin(current.role)
    if not acting_admin and current.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")

    target = user_repo.get_user(db, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    if payload.role is not None and payload.role != target.role:
        if not acting_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can change roles")
        _validated_role(payload.role)

    if payload.email and payload.email != target.email:
        existing = user_repo.get_user_by_email(db, payload.email)
        if existing and existing.id != target.id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    _ensure_school(db, payload.school_id)

    old_role = target.role
    user = user_repo.update_user(db, user_id, payload)
    changed = sorted(k for k in payload.model_dump(exclude_unset=True) if k != "password")
    log_user(db, actor_user_id=current.id, user_id=user.id, action=AuditAction.USER_UPDATE, metadata={"fields": changed})
    if user.role != old_role:
        log_user(db, actor_user_id=current.id, user_id=user.id, action=AuditAction.USER_ROLE_CHANGE, metadata={"old_role": old_role, "new_role": user.role})
    return user


@router.delete("/{user_id}", response_model=schemas.MessageResponse)
def delete_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(ADMIN_ONLY)),
):
    admin, _ctx = user_context
    if admin.id == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove your own account")
    user = user_repo.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if student_repo.count_students_for_user(db, user_id) > 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is still responsible for students")
    if user_repo.count_authored_records(db, user_id) > 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User still owns referrals, screenings or communications")
    email = user.email
    user_repo.delete_user(db, user_id)
    log_user(db, actor_user_id=admin.id, user_id=user_id, action=AuditAction.USER_DELETE, email=email)
    return {"message": "User removed"}
