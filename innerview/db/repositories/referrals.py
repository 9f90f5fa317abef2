"""
Referral and tutor communication repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from innerview.db import schemas, models


# === Referrals ===

def _referral_query(db: Session):
    return db.query(models.Referral).options(
        joinedload(models.Referral.student),
        joinedload(models.Referral.assigned_to),
        joinedload(models.Referral.created_by),
    )


def get_referral(db: Session, referral_id: uuid.UUID):
    return _referral_query(db).filter(models.Referral.id == referral_id).first()


def get_referrals(db: Session, visible_to_user_id: Optional[uuid.UUID] = None, status: Optional[str] = None, team_id: Optional[uuid.UUID] = None):
    query = _referral_query(db)
    if visible_to_user_id:
        query = query.filter(
            or_(
                models.Referral.created_by_id == visible_to_user_id,
                models.Referral.assigned_to_id == visible_to_user_id,
            )
        )
    if status:
        query = query.filter(models.Referral.status == status)
    if team_id:
        query = query.filter(models.Referral.team_id == team_id)
    return query.order_by(models.Referral.created_at.desc()).all()


def create_referral(db: Session, referral: schemas.ReferralCreate, created_by_id: uuid.UUID):
    db_referral = models.Referral(**referral.model_dump(), created_by_id=created_by_id)
    db.add(db_referral)
    db.commit()
    db.refresh(db_referral)
    return db_referral


def update_referral(db: Session, db_referral: models.Referral, referral: schemas.ReferralUpdate):
    for key, value in referral.model_dump(exclude_unset=True).items():
        setattr(db_referral, key, value)
    db.commit()
    db.refresh(db_referral)
    return db_referral


def delete_referral(db: Session, db_referral: models.Referral):
    db.delete(db_referral)
    db.commit()


# === Tutor communications ===

def _communication_query(db: Session):
    return db.query(models.TutorCommunication).options(
        joinedload(models.TutorCommunication.student),
        joinedload(models.TutorCommunication.user),
    )


def get_communication(db: Session, communication_id: uuid.UUID):
    return _communication_query(db).filter(models.TutorCommunication.id == communication_id).first()


def get_communications(db: Session, user_id: Optional[uuid.UUID] = None, student_id: Optional[uuid.UUID] = None):
    query = _communication_query(db)
    if user_id:
        query = query.filter(models.TutorCommunication.user_id == user_id)
    if student_id:
        query = query.filter(models.TutorCommunication.student_id == student_id)
    return query.order_by(models.TutorCommunication.created_at.desc()).all()


def create_communication(db: Session, communication: schemas.CommunicationCreate, user_id: uuid.UUID):
    db_communication = models.TutorCommunication(**communication.model_dump(), user_id=user_id)
    if db_communication.status == schemas.CommunicationStatus.SENT.value:
        db_communication.sent_at = models.now_utc()
    db.add(db_communication)
    db.commit()
    db.refresh(db_communication)
    return db_communication


def update_communication(db: Session, db_communication: models.TutorCommunication, communication: schemas.CommunicationUpdate):
    update_data = communication.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_communication, key, value)
    if update_data.get("status") == schemas.CommunicationStatus.SENT.value and db_communication.sent_at is None:
        db_communication.sent_at = models.now_utc()
    db.commit()
    db.refresh(db_communication)
    return db_communication


def delete_communication(db: Session, db_communication: models.TutorCommunication):
    db.delete(db_communication)
    db.commit()
