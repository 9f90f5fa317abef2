"""
RTI meeting endpoints, participants and attendance.
"""
from typing import List, Optional
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from innerview.db.database import get_db
from innerview.api.deps import get_current_user_context, require_roles
from innerview.db import schemas
from innerview.db.models import now_utc
from innerview.db.repositories import meetings as meeting_repo
from innerview.db.repositories import teams as team_repo
from innerview.db.repositories import users as user_repo
from innerview.services.notification_service import get_notification_service
from innerview.utils.role_permissions import TEAM_MANAGERS, is_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["meetings"])


def _get_meeting_or_404(db: Session, meeting_id: uuid.UUID):
    meeting = meeting_repo.get_meeting(db, meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


def _ensure_team(db: Session, team_id: Optional[uuid.UUID]) -> None:
    if team_id and not team_repo.get_team(db, team_id):
        raise HTTPException(status_code=404, detail="Team not found")


@router.post("/", response_model=schemas.Meeting, status_code=status.HTTP_201_CREATED)
def create_meeting(
    payload: schemas.MeetingCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    organizer, _ctx = user_context
    _ensure_team(db, payload.team_id)
    participant_ids = list(dict.fromkeys(payload.participant_ids))
    users = user_repo.get_users_by_ids(db, participant_ids)
    found = {u.id for u in users}
    missing = [str(i) for i in participant_ids if i not in found]
    if missing:
        raise HTTPException(status_code=404, detail=f"User not found: {', '.join(missing)}")

    meeting = meeting_repo.create_meeting(db, payload, participant_ids=participant_ids)
    notified = get_notification_service(db).notify_meeting_participants(meeting, users, organizer_id=organizer.id)
    logger.info("meeting_created: id=%s participants=%d notified=%d", meeting.id, len(participant_ids), len(notified))
    return meeting_repo.get_meeting_detail(db, meeting.id)


@router.get("/", response_model=List[schemas.Meeting])
def list_meetings(
    team_id: Optional[uuid.UUID] = Query(default=None, alias="teamId"),
    user_id: Optional[uuid.UUID] = Query(default=None, alias="userId"),
    status_filter: Optional[schemas.MeetingStatus] = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if user_id is None and not is_admin(user.role):
        user_id = user.id
    return meeting_repo.get_meetings(
        db,
        team_id=team_id,
        participant_user_id=user_id,
        status=status_filter.value if status_filter else None,
    )


@router.get("/upcoming/me", response_model=List[schemas.Meeting])
def my_upcoming_meetings(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    return meeting_repo.get_upcoming_meetings(db, now=now_utc(), participant_user_id=user.id, limit=5)


@router.get("/{meeting_id}", response_model=schemas.MeetingDetail)
def get_meeting(
    meeting_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    meeting = meeting_repo.get_meeting_detail(db, meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


@router.patch("/{meeting_id}", response_model=schemas.Meeting)
def update_meeting(
    meeting_id: uuid.UUID,
    payload: schemas.MeetingUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    meeting = _get_meeting_or_404(db, meeting_id)
    _ensure_team(db, payload.team_id)
    return meeting_repo.update_meeting(db, meeting, payload)


@router.delete("/{meeting_id}", response_model=schemas.MessageResponse)
def delete_meeting(
    meeting_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(require_roles(TEAM_MANAGERS)),
):
    meeting = _get_meeting_or_404(db, meeting_id)
    meeting_repo.delete_meeting(db, meeting)
    return {"message": "Meeting deleted"}


# === Participants ===

@router.get("/{meeting_id}/participants", response_model=List[schemas.MeetingParticipant])
def list_participants(
    meeting_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_meeting_or_404(db, meeting_id)
    return meeting_repo.get_participants(db, meeting_id)


@router.post("/{meeting_id}/participants", response_model=schemas.MeetingParticipant, status_code=status.HTTP_201_CREATED)
def add_participant(
    meeting_id: uuid.UUID,
    payload: schemas.ParticipantInput,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_meeting_or_404(db, meeting_id)
    if not user_repo.get_user(db, payload.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return meeting_repo.upsert_participant(db, meeting_id, payload.user_id, payload.role)


@router.delete("/{meeting_id}/participants/{user_id}", response_model=schemas.MessageResponse)
def remove_participant(
    meeting_id: uuid.UUID,
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_meeting_or_404(db, meeting_id)
    participant = meeting_repo.get_participant(db, meeting_id, user_id)
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    meeting_repo.remove_participant(db, participant)
    return {"message": "Participant removed"}


@router.put("/{meeting_id}/participants/{user_id}/attendance", response_model=schemas.MeetingParticipant)
def set_attendance(
    meeting_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: schemas.AttendanceUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    _get_meeting_or_404(db, meeting_id)
    participant = meeting_repo.get_participant(db, meeting_id, user_id)
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    return meeting_repo.set_attendance(db, participant, payload.attended)
