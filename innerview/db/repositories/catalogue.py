"""
Intervention catalogue repository functions.

Covers learning difficulties (and their student links), the base
intervention catalogue, difficulty/intervention effectiveness links and
intervention protocols with ordered steps.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session, joinedload, selectinload

from innerview.db import schemas, models


# === Learning difficulties ===

def get_difficulty(db: Session, difficulty_id: uuid.UUID):
    return db.query(models.LearningDifficulty).filter(models.LearningDifficulty.id == difficulty_id).first()


def get_difficulty_detail(db: Session, difficulty_id: uuid.UUID):
    return (
        db.query(models.LearningDifficulty)
        .options(selectinload(models.LearningDifficulty.students).joinedload(models.StudentDifficulty.student))
        .filter(models.LearningDifficulty.id == difficulty_id)
        .first()
    )


def get_difficulties(db: Session, category: Optional[str] = None):
    query = db.query(models.LearningDifficulty)
    if category:
        query = query.filter(models.LearningDifficulty.category == category)
    return query.order_by(models.LearningDifficulty.name).all()


def create_difficulty(db: Session, difficulty: schemas.LearningDifficultyCreate):
    db_difficulty = models.LearningDifficulty(**difficulty.model_dump())
    db.add(db_difficulty)
    db.commit()
    db.refresh(db_difficulty)
    return db_difficulty


def update_difficulty(db: Session, difficulty_id: uuid.UUID, difficulty: schemas.LearningDifficultyUpdate):
    db_difficulty = get_difficulty(db, difficulty_id)
    if db_difficulty:
        for key, value in difficulty.model_dump(exclude_unset=True).items():
            setattr(db_difficulty, key, value)
        db.commit()
        db.refresh(db_difficulty)
    return db_difficulty


def count_students_with_difficulty(db: Session, difficulty_id: uuid.UUID) -> int:
    return db.query(models.StudentDifficulty).filter(models.StudentDifficulty.difficulty_id == difficulty_id).count()


def delete_difficulty(db: Session, difficulty_id: uuid.UUID):
    db_difficulty = get_difficulty(db, difficulty_id)
    if db_difficulty:
        db.delete(db_difficulty)
        db.commit()
        return True
    return False


def get_student_difficulty(db: Session, student_id: uuid.UUID, difficulty_id: uuid.UUID):
    return (
        db.query(models.StudentDifficulty)
        .filter(
            models.StudentDifficulty.student_id == student_id,
            models.StudentDifficulty.difficulty_id == difficulty_id,
        )
        .first()
    )


def assign_student_difficulty(db: Session, assignment: schemas.StudentDifficultyAssign):
    link = models.StudentDifficulty(**assignment.model_dump())
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def get_student_difficulties(db: Session, student_id: uuid.UUID):
    return (
        db.query(models.StudentDifficulty)
        .options(joinedload(models.StudentDifficulty.difficulty))
        .filter(models.StudentDifficulty.student_id == student_id)
        .all()
    )


# === Base interventions ===

def get_base_intervention(db: Session, base_intervention_id: uuid.UUID):
    return db.query(models.BaseIntervention).filter(models.BaseIntervention.id == base_intervention_id).first()


def get_base_intervention_detail(db: Session, base_intervention_id: uuid.UUID):
    return (
        db.query(models.BaseIntervention)
        .options(
            selectinload(models.BaseIntervention.protocols).selectinload(models.InterventionProtocol.steps),
            selectinload(models.BaseIntervention.interventions).joinedload(models.Intervention.student),
        )
        .filter(models.BaseIntervention.id == base_intervention_id)
        .first()
    )


def get_base_interventions(
    db: Session,
    include_inactive: bool = False,
    tier: Optional[str] = None,
    area: Optional[str] = None,
):
    query = db.query(models.BaseIntervention).options(selectinload(models.BaseIntervention.protocols))
    if not include_inactive:
        query = query.filter(models.BaseIntervention.active.is_(True))
    if tier:
        query = query.filter(models.BaseIntervention.tier == tier)
    if area:
        query = query.filter(models.BaseIntervention.area == area)
    return query.order_by(models.BaseIntervention.name).all()


def create_base_intervention(db: Session, base_intervention: schemas.BaseInterventionCreate):
    db_item = models.BaseIntervention(**base_intervention.model_dump())
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def update_base_intervention(db: Session, base_intervention_id: uuid.UUID, base_intervention: schemas.BaseInterventionUpdate):
    db_item = get_base_intervention(db, base_intervention_id)
    if db_item:
        for key, value in base_intervention.model_dump(exclude_unset=True).items():
            setattr(db_item, key, value)
        db.commit()
        db.refresh(db_item)
    return db_item


def count_student_interventions_for_base(db: Session, base_intervention_id: uuid.UUID) -> int:
    return db.query(models.Intervention).filter(models.Intervention.base_intervention_id == base_intervention_id).count()


def deactivate_base_intervention(db: Session, db_item: models.BaseIntervention):
    db_item.active = False
    db.commit()
    db.refresh(db_item)
    return db_item


def delete_base_intervention(db: Session, db_item: models.BaseIntervention):
    db.delete(db_item)
    db.commit()


def get_difficulty_link(db: Session, base_intervention_id: uuid.UUID, difficulty_id: uuid.UUID):
    return (
        db.query(models.DifficultyIntervention)
        .filter(
            models.DifficultyIntervention.base_intervention_id == base_intervention_id,
            models.DifficultyIntervention.difficulty_id == difficulty_id,
        )
        .first()
    )


def upsert_difficulty_link(db: Session, association: schemas.DifficultyAssociation):
    link = get_difficulty_link(db, association.intervention_id, association.difficulty_id)
    if link:
        link.effectiveness = association.effectiveness
        link.notes = association.notes
    else:
        link = models.DifficultyIntervention(
            difficulty_id=association.difficulty_id,
            base_intervention_id=association.intervention_id,
            effectiveness=association.effectiveness,
            notes=association.notes,
        )
        db.add(link)
    db.commit()
    db.refresh(link)
    return link


def delete_difficulty_link(db: Session, link: models.DifficultyIntervention):
    db.delete(link)
    db.commit()


def get_links_for_intervention(db: Session, base_intervention_id: uuid.UUID):
    return (
        db.query(models.DifficultyIntervention)
        .options(joinedload(models.DifficultyIntervention.difficulty))
        .filter(models.DifficultyIntervention.base_intervention_id == base_intervention_id)
        .order_by(models.DifficultyIntervention.effectiveness.desc())
        .all()
    )


def get_links_for_difficulty(db: Session, difficulty_id: uuid.UUID):
    return (
        db.query(models.DifficultyIntervention)
        .options(joinedload(models.DifficultyIntervention.base_intervention))
        .filter(models.DifficultyIntervention.difficulty_id == difficulty_id)
        .order_by(models.DifficultyIntervention.effectiveness.desc())
        .all()
    )


# === Protocols ===

def get_protocol(db: Session, protocol_id: uuid.UUID):
    return (
        db.query(models.InterventionProtocol)
        .options(selectinload(models.InterventionProtocol.steps))
        .filter(models.InterventionProtocol.id == protocol_id)
        .first()
    )


def get_protocols(db: Session, base_intervention_id: Optional[uuid.UUID] = None):
    query = db.query(models.InterventionProtocol).options(selectinload(models.InterventionProtocol.steps))
    if base_intervention_id:
        query = query.filter(models.InterventionProtocol.base_intervention_id == base_intervention_id)
    return query.order_by(models.InterventionProtocol.name).all()


def _step_from(step: schemas.ProtocolStepBase) -> models.ProtocolStep:
    return models.ProtocolStep(**step.model_dump(exclude={"id"}))


def create_protocol(db: Session, protocol: schemas.InterventionProtocolCreate):
    data = protocol.model_dump(exclude={"steps"})
    db_protocol = models.InterventionProtocol(**data)
    db_protocol.steps = [_step_from(step) for step in protocol.steps]
    db.add(db_protocol)
    db.commit()
    db.refresh(db_protocol)
    return db_protocol


def update_protocol(db: Session, db_protocol: models.InterventionProtocol, protocol: schemas.InterventionProtocolUpdate):
    """Apply a partial update.

    Steps carrying an ``id`` that belongs to this protocol are updated in
    place; steps without one are appended. Steps not mentioned are kept.
    """
    update_data = protocol.model_dump(exclude_unset=True, exclude={"steps"})
    for key, value in update_data.items():
        setattr(db_protocol, key, value)
    if protocol.steps is not None:
        existing = {step.id: step for step in db_protocol.steps}
        for step in protocol.steps:
            if step.id is not None and step.id in existing:
                target = existing[step.id]
                for key, value in step.model_dump(exclude={"id"}).items():
                    setattr(target, key, value)
            else:
                db_protocol.steps.append(_step_from(step))
    db.commit()
    db.refresh(db_protocol)
    return db_protocol


def duplicate_protocol(db: Session, db_protocol: models.InterventionProtocol, name: Optional[str] = None):
    copy = models.InterventionProtocol(
        name=name or f"Copy of {db_protocol.name}",
        description=db_protocol.description,
        estimated_duration=db_protocol.estimated_duration,
        base_intervention_id=db_protocol.base_intervention_id,
    )
    copy.steps = [
        models.ProtocolStep(
            title=step.title,
            description=step.description,
            order=step.order,
            estimated_time=step.estimated_time,
            materials=step.materials,
        )
        for step in db_protocol.steps
    ]
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


def delete_protocol(db: Session, db_protocol: models.InterventionProtocol):
    db.delete(db_protocol)
    db.commit()
