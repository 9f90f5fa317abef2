"""
RTI meeting repository functions, including participants and attendance.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Iterable
from sqlalchemy.orm import Session, joinedload, selectinload

from innerview.db import schemas, models

UPCOMING_STATUSES = (schemas.MeetingStatus.SCHEDULED.value, schemas.MeetingStatus.IN_PROGRESS.value)


def _meeting_query(db: Session):
    return db.query(models.RtiMeeting).options(
        joinedload(models.RtiMeeting.team),
        selectinload(models.RtiMeeting.participants).joinedload(models.MeetingParticipant.user),
    )


def get_meeting(db: Session, meeting_id: uuid.UUID):
    return db.query(models.RtiMeeting).filter(models.RtiMeeting.id == meeting_id).first()


def get_meeting_detail(db: Session, meeting_id: uuid.UUID):
    return (
        _meeting_query(db)
        .options(selectinload(models.RtiMeeting.referrals))
        .filter(models.RtiMeeting.id == meeting_id)
        .first()
    )


def get_meetings(
    db: Session,
    team_id: Optional[uuid.UUID] = None,
    participant_user_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
):
    query = _meeting_query(db)
    if team_id:
        query = query.filter(models.RtiMeeting.team_id == team_id)
    if participant_user_id:
        query = query.filter(
            models.RtiMeeting.participants.any(models.MeetingParticipant.user_id == participant_user_id)
        )
    if status:
        query = query.filter(models.RtiMeeting.status == status)
    return query.order_by(models.RtiMeeting.date.desc()).all()


def get_upcoming_meetings(
    db: Session,
    now: datetime,
    team_id: Optional[uuid.UUID] = None,
    participant_user_id: Optional[uuid.UUID] = None,
    limit: int = 5,
):
    query = _meeting_query(db).filter(
        models.RtiMeeting.date >= now,
        models.RtiMeeting.status.in_(UPCOMING_STATUSES),
    )
    if team_id:
        query = query.filter(models.RtiMeeting.team_id == team_id)
    if participant_user_id:
        query = query.filter(
            models.RtiMeeting.participants.any(models.MeetingParticipant.user_id == participant_user_id)
        )
    return query.order_by(models.RtiMeeting.date.asc()).limit(limit).all()


def create_meeting(db: Session, meeting: schemas.MeetingCreate, participant_ids: Iterable[uuid.UUID]):
    db_meeting = models.RtiMeeting(**meeting.model_dump(exclude={"participant_ids"}))
    db_meeting.participants = [models.MeetingParticipant(user_id=user_id) for user_id in participant_ids]
    db.add(db_meeting)
    db.commit()
    db.refresh(db_meeting)
    return db_meeting


def update_meeting(db: Session, db_meeting: models.RtiMeeting, meeting: schemas.MeetingUpdate):
    for key, value in meeting.model_dump(exclude_unset=True).items():
        setattr(db_meeting, key, value)
    db.commit()
    db.refresh(db_meeting)
    return db_meeting


def delete_meeting(db: Session, db_meeting: models.RtiMeeting):
    db.query(models.Referral).filter(models.Referral.meeting_id == db_meeting.id).update({"meeting_id": None})
    db.delete(db_meeting)
    db.commit()


def get_participant(db: Session, meeting_id: uuid.UUID, user_id: uuid.UUID):
    return (
        db.query(models.MeetingParticipant)
        .options(joinedload(models.MeetingParticipant.user))
        .filter(models.MeetingParticipant.meeting_id == meeting_id, models.MeetingParticipant.user_id == user_id)
        .first()
    )


def get_participants(db: Session, meeting_id: uuid.UUID):
    return (
        db.query(models.MeetingParticipant)
        .options(joinedload(models.MeetingParticipant.user))
        .filter(models.MeetingParticipant.meeting_id == meeting_id)
        .all()
    )


def upsert_participant(db: Session, meeting_id: uuid.UUID, user_id: uuid.UUID, role: Optional[str]):
    participant = get_participant(db, meeting_id, user_id)
    if participant:
        participant.role = role
    else:
        participant = models.MeetingParticipant(meeting_id=meeting_id, user_id=user_id, role=role)
        db.add(participant)
    db.commit()
    db.refresh(participant)
    return participant


def remove_participant(db: Session, participant: models.MeetingParticipant):
    db.delete(participant)
    db.commit()


def set_attendance(db: Session, participant: models.MeetingParticipant, attended: bool):
    participant.attended = attended
    db.commit()
    db.refresh(participant)
    return participant
