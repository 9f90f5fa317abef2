"""
User repository functions.

Staff accounts: lookup by id/email, creation with hashed passwords, partial
updates and deletion.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from innerview.db import schemas, models
from innerview.utils.token_crypto import hash_password


def get_user(db: Session, user_id: uuid.UUID):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    normalized = (email or "").strip().lower()
    return db.query(models.User).filter(func.lower(models.User.email) == normalized).first()


def get_users(db: Session, role: Optional[str] = None, school_id: Optional[uuid.UUID] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if school_id:
        query = query.filter(models.User.school_id == school_id)
    return query.order_by(models.User.name).offset(skip).limit(limit).all()


def get_users_by_ids(db: Session, user_ids):
    ids = list(user_ids)
    if not ids:
        return []
    return db.query(models.User).filter(models.User.id.in_(ids)).all()


def create_user(db: Session, user: schemas.UserCreate):
    data = user.model_dump(exclude={"password"})
    db_user = models.User(**data, password_hash=hash_password(user.password))
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: uuid.UUID, user: schemas.UserUpdate):
    db_user = get_user(db, user_id)
    if db_user:
        update_data = user.model_dump(exclude_unset=True)
        password = update_data.pop("password", None)
        if password:
            db_user.password_hash = hash_password(password)
        for key, value in update_data.items():
            setattr(db_user, key, value)
        db.commit()
        db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: uuid.UUID):
    db_user = get_user(db, user_id)
    if db_user:
        db.delete(db_user)
        db.commit()
        return True
    return False


def count_authored_records(db: Session, user_id: uuid.UUID) -> int:
    """Referrals, screenings and communications that keep a non-null link to the user."""
    return (
        db.query(models.Referral).filter(models.Referral.created_by_id == user_id).count()
        + db.query(models.Screening).filter(models.Screening.applied_by_id == user_id).count()
        + db.query(models.TutorCommunication).filter(models.TutorCommunication.user_id == user_id).count()
    )
