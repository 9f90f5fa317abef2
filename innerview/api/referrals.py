"""
Referral endpoints.

Callers see referrals they created or are assigned to; ADMIN sees all.
Assigning a referral to someone else notifies the assignee.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context
from innerview.db import schemas
from innerview.db.repositories import referrals as referral_repo
from innerview.db.repositories import students as student_repo
from innerview.db.repositories import users as user_repo
from innerview.db.repositories import teams as team_repo
from innerview.db.repositories import meetings as meeting_repo
from innerview.services.notification_service import get_notification_service
from innerview.services.webhook_service import dispatch_event_background, EVENT_REFERRAL_CREATED
from innerview.utils.role_permissions import is_admin

router = APIRouter(prefix="/referrals", tags=["referrals"])


def _check_references(db: Session, payload) -> None:
    data = payload.model_dump(exclude_unset=True)
    if data.get("student_id") and not student_repo.get_student(db, data["student_id"]):
        raise HTTPException(status_code=404, detail="Student not found")
    if data.get("assigned_to_id") and not user_repo.get_user(db, data["assigned_to_id"]):
        raise HTTPException(status_code=404, detail="User not found")
    if data.get("team_id") and not team_repo.get_team(db, data["team_id"]):
        raise HTTPException(status_code=404, detail="Team not found")
    if data.get("meeting_id") and not meeting_repo.get_meeting(db, data["meeting_id"]):
        raise HTTPException(status_code=404, detail="Meeting not found")


def _notify_assignee(db: Session, referral, actor) -> None:
    if referral.assigned_to_id is None or referral.assigned_to_id == actor.id:
        return
    assignee = user_repo.get_user(db, referral.assigned_to_id)
    if assignee:
        get_notification_service(db).notify_referral_assigned(referral, assignee, actor)


def _get_visible_or_404(db: Session, referral_id: uuid.UUID, user):
    referral = referral_repo.get_referral(db, referral_id)
    if not referral:
        raise HTTPException(status_code=404, detail="Referral not found")
    if not is_admin(user.role) and user.id not in (referral.created_by_id, referral.assigned_to_id):
        raise HTTPException(status_code=404, detail="Referral not found")
    return referral


@router.post("/", response_model=schemas.Referral, status_code=status.HTTP_201_CREATED)
def create_referral(
    payload: schemas.ReferralCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    _check_references(db, payload)
    referral = referral_repo.create_referral(db, payload, created_by_id=user.id)
    referral = referral_repo.get_referral(db, referral.id)
    _notify_assignee(db, referral, user)
    out = schemas.Referral.model_validate(referral)
    background_tasks.add_task(dispatch_event_background, EVENT_REFERRAL_CREATED, out.model_dump(mode="json", by_alias=True))
    return out


@router.get("/", response_model=List[schemas.Referral])
def list_referrals(
    status_filter: Optional[schemas.ReferralStatus] = Query(default=None, alias="status"),
    team_id: Optional[uuid.UUID] = Query(default=None, alias="teamId"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return referral_repo.get_referrals(
        db,
        visible_to_user_id=None if is_admin(user.role) else user.id,
        status=status_filter.value if status_filter else None,
        team_id=team_id,
    )


@router.get("/{referral_id}", response_model=schemas.Referral)
def get_referral(
    referral_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return _get_visible_or_404(db, referral_id, user)


@router.patch("/{referral_id}", response_model=schemas.Referral)
def update_referral(
    referral_id: uuid.UUID,
    payload: schemas.ReferralUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    referral = _get_visible_or_404(db, referral_id, user)
    _check_references(db, payload)
    previous_assignee = referral.assigned_to_id
    referral = referral_repo.update_referral(db, referral, payload)
    if referral.assigned_to_id != previous_assignee:
        _notify_assignee(db, referral, user)
    return referral


@router.delete("/{referral_id}", response_model=schemas.MessageResponse)
def delete_referral(
    referral_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    referral = _get_visible_or_404(db, referral_id, user)
    referral_repo.delete_referral(db, referral)
    return {"message": "Referral deleted"}
