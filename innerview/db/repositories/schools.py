"""
School and school network repository functions.

List/detail helpers return `(entity, counts)` pairs so the API layer can
render aggregate counts without lazy loading every relationship.
"""
from __future__ import annotations

import uuid
from typing import Optional, Dict
from sqlalchemy import func
from sqlalchemy.orm import Session

from innerview.db import schemas, models


# === Networks ===

def get_network(db: Session, network_id: uuid.UUID):
    return db.query(models.SchoolNetwork).filter(models.SchoolNetwork.id == network_id).first()


def get_networks(db: Session, skip: int = 0, limit: int = 100):
    return db.query(models.SchoolNetwork).order_by(models.SchoolNetwork.name).offset(skip).limit(limit).all()


def count_schools_in_network(db: Session, network_id: uuid.UUID) -> int:
    return db.query(func.count(models.School.id)).filter(models.School.network_id == network_id).scalar() or 0


def create_network(db: Session, network: schemas.SchoolNetworkCreate):
    db_network = models.SchoolNetwork(**network.model_dump())
    db.add(db_network)
    db.commit()
    db.refresh(db_network)
    return db_network


def update_network(db: Session, network_id: uuid.UUID, network: schemas.SchoolNetworkUpdate):
    db_network = get_network(db, network_id)
    if db_network:
        for key, value in network.model_dump(exclude_unset=True).items():
            setattr(db_network, key, value)
        db.commit()
        db.refresh(db_network)
    return db_network


def delete_network(db: Session, network_id: uuid.UUID):
    db_network = get_network(db, network_id)
    if db_network:
        db.delete(db_network)
        db.commit()
        return True
    return False


# === Schools ===

def get_school(db: Session, school_id: uuid.UUID):
    return db.query(models.School).filter(models.School.id == school_id).first()


def get_schools(db: Session, network_id: Optional[uuid.UUID] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.School)
    if network_id:
        query = query.filter(models.School.network_id == network_id)
    return query.order_by(models.School.name).offset(skip).limit(limit).all()


def school_counts(db: Session, school_id: uuid.UUID) -> Dict[str, int]:
    users = db.query(func.count(models.User.id)).filter(models.User.school_id == school_id).scalar() or 0
    students = db.query(func.count(models.Student.id)).filter(models.Student.school_id == school_id).scalar() or 0
    teams = db.query(func.count(models.RtiTeam.id)).filter(models.RtiTeam.school_id == school_id).scalar() or 0
    return {"users_count": users, "students_count": students, "teams_count": teams}


def create_school(db: Session, school: schemas.SchoolCreate):
    db_school = models.School(**school.model_dump())
    db.add(db_school)
    db.commit()
    db.refresh(db_school)
    return db_school


def update_school(db: Session, school_id: uuid.UUID, school: schemas.SchoolUpdate):
    db_school = get_school(db, school_id)
    if db_school:
        for key, value in school.model_dump(exclude_unset=True).items():
            setattr(db_school, key, value)
        db.commit()
        db.refresh(db_school)
    return db_school


def delete_school(db: Session, school_id: uuid.UUID):
    db_school = get_school(db, school_id)
    if not db_school:
        return False
    # Detach dependents; their school_id columns are nullable
    db.query(models.User).filter(models.User.school_id == school_id).update({"school_id": None})
    db.query(models.Student).filter(models.Student.school_id == school_id).update({"school_id": None})
    db.query(models.RtiTeam).filter(models.RtiTeam.school_id == school_id).update({"school_id": None})
    db.delete(db_school)
    db.commit()
    return True
