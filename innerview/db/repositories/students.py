"""
Student, assessment and intervention repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session, joinedload

from innerview.db import schemas, models
from innerview.db.models import now_utc


# === Students ===

def get_student(db: Session, student_id: uuid.UUID):
    return db.query(models.Student).filter(models.Student.id == student_id).first()


def get_student_detail(db: Session, student_id: uuid.UUID):
    return (
        db.query(models.Student)
        .options(
            joinedload(models.Student.user),
            joinedload(models.Student.assessments),
            joinedload(models.Student.interventions),
        )
        .filter(models.Student.id == student_id)
        .first()
    )


def get_students(db: Session, user_id: Optional[uuid.UUID] = None, school_id: Optional[uuid.UUID] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.Student).options(joinedload(models.Student.user))
    if user_id:
        query = query.filter(models.Student.user_id == user_id)
    if school_id:
        query = query.filter(models.Student.school_id == school_id)
    return query.order_by(models.Student.name).offset(skip).limit(limit).all()


def get_students_by_ids(db: Session, student_ids):
    ids = list(student_ids)
    if not ids:
        return []
    return db.query(models.Student).filter(models.Student.id.in_(ids)).all()


def count_students_for_user(db: Session, user_id: uuid.UUID) -> int:
    return db.query(models.Student).filter(models.Student.user_id == user_id).count()


def create_student(db: Session, student: schemas.StudentCreate, user_id: uuid.UUID):
    data = student.model_dump()
    data["user_id"] = data.get("user_id") or user_id
    db_student = models.Student(**data)
    db.add(db_student)
    db.commit()
    db.refresh(db_student)
    return db_student


def update_student(db: Session, student_id: uuid.UUID, student: schemas.StudentUpdate):
    db_student = get_student(db, student_id)
    if db_student:
        for key, value in student.model_dump(exclude_unset=True).items():
            setattr(db_student, key, value)
        db.commit()
        db.refresh(db_student)
    return db_student


def delete_student(db: Session, student_id: uuid.UUID):
    db_student = get_student(db, student_id)
    if db_student:
        # ORM cascades remove assessments, interventions, team links,
        # screenings (with results), difficulty links, referrals and communications
        db.delete(db_student)
        db.commit()
        return True
    return False


# === Assessments ===

def get_assessment(db: Session, assessment_id: uuid.UUID):
    return (
        db.query(models.Assessment)
        .options(joinedload(models.Assessment.student))
        .filter(models.Assessment.id == assessment_id)
        .first()
    )


def get_assessments(db: Session, student_id: Optional[uuid.UUID] = None, skip: int = 0, limit: int = 100):
    query = db.query(models.Assessment).options(joinedload(models.Assessment.student))
    if student_id:
        query = query.filter(models.Assessment.student_id == student_id)
    return query.order_by(models.Assessment.date.desc()).offset(skip).limit(limit).all()


def create_assessment(db: Session, assessment: schemas.AssessmentCreate):
    db_assessment = models.Assessment(**assessment.model_dump())
    db.add(db_assessment)
    db.commit()
    db.refresh(db_assessment)
    return db_assessment


def update_assessment(db: Session, assessment_id: uuid.UUID, assessment: schemas.AssessmentUpdate):
    db_assessment = get_assessment(db, assessment_id)
    if db_assessment:
        for key, value in assessment.model_dump(exclude_unset=True).items():
            setattr(db_assessment, key, value)
        db.commit()
        db.refresh(db_assessment)
    return db_assessment


def delete_assessment(db: Session, assessment_id: uuid.UUID):
    db_assessment = get_assessment(db, assessment_id)
    if db_assessment:
        db.delete(db_assessment)
        db.commit()
        return True
    return False


# === Interventions ===

def get_intervention(db: Session, intervention_id: uuid.UUID):
    return (
        db.query(models.Intervention)
        .options(joinedload(models.Intervention.student))
        .filter(models.Intervention.id == intervention_id)
        .first()
    )


def get_interventions(
    db: Session,
    student_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.Intervention).options(joinedload(models.Intervention.student))
    if student_id:
        query = query.filter(models.Intervention.student_id == student_id)
    if status:
        query = query.filter(models.Intervention.status == status)
    return query.order_by(models.Intervention.start_date.desc()).offset(skip).limit(limit).all()


def create_intervention(db: Session, intervention: schemas.InterventionCreate):
    db_intervention = models.Intervention(**intervention.model_dump())
    db.add(db_intervention)
    db.commit()
    db.refresh(db_intervention)
    return db_intervention


def update_intervention(db: Session, intervention_id: uuid.UUID, intervention: schemas.InterventionUpdate):
    db_intervention = get_intervention(db, intervention_id)
    if db_intervention:
        for key, value in intervention.model_dump(exclude_unset=True).items():
            setattr(db_intervention, key, value)
        db.commit()
        db.refresh(db_intervention)
    return db_intervention


def set_intervention_status(db: Session, intervention_id: uuid.UUID, status: str):
    db_intervention = get_intervention(db, intervention_id)
    if db_intervention:
        db_intervention.status = status
        if status == schemas.InterventionStatus.COMPLETED.value:
            db_intervention.end_date = now_utc()
        db.commit()
        db.refresh(db_intervention)
    return db_intervention


def delete_intervention(db: Session, intervention_id: uuid.UUID):
    db_intervention = get_intervention(db, intervention_id)
    if db_intervention:
        db.delete(db_intervention)
        db.commit()
        return True
    return False
