"""
Screening repository functions.

Instruments and their indicators, screening sessions, and per-indicator
results (unique per screening/indicator pair, written as upserts).
"""
from __future__ import annotations

import uuid
from typing import Optional, Iterable
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from innerview.db import schemas, models


# === Instruments ===

def get_instrument(db: Session, instrument_id: uuid.UUID):
    return db.query(models.ScreeningInstrument).filter(models.ScreeningInstrument.id == instrument_id).first()


def get_instrument_detail(db: Session, instrument_id: uuid.UUID):
    return (
        db.query(models.ScreeningInstrument)
        .options(
            selectinload(models.ScreeningInstrument.indicators),
            selectinload(models.ScreeningInstrument.screenings).joinedload(models.Screening.student),
        )
        .filter(models.ScreeningInstrument.id == instrument_id)
        .first()
    )


def get_instruments(db: Session, include_inactive: bool = False):
    query = db.query(models.ScreeningInstrument).options(selectinload(models.ScreeningInstrument.indicators))
    if not include_inactive:
        query = query.filter(models.ScreeningInstrument.active.is_(True))
    return query.order_by(models.ScreeningInstrument.name).all()


def create_instrument(db: Session, instrument: schemas.ScreeningInstrumentCreate):
    db_instrument = models.ScreeningInstrument(**instrument.model_dump())
    db.add(db_instrument)
    db.commit()
    db.refresh(db_instrument)
    return db_instrument


def update_instrument(db: Session, instrument_id: uuid.UUID, instrument: schemas.ScreeningInstrumentUpdate):
    db_instrument = get_instrument(db, instrument_id)
    if db_instrument:
        for key, value in instrument.model_dump(exclude_unset=True).items():
            setattr(db_instrument, key, value)
        db.commit()
        db.refresh(db_instrument)
    return db_instrument


def count_screenings_for_instrument(db: Session, instrument_id: uuid.UUID) -> int:
    return db.query(models.Screening).filter(models.Screening.instrument_id == instrument_id).count()


def deactivate_instrument(db: Session, db_instrument: models.ScreeningInstrument):
    db_instrument.active = False
    db.commit()
    db.refresh(db_instrument)
    return db_instrument


def delete_instrument(db: Session, db_instrument: models.ScreeningInstrument):
    # indicators are removed through the relationship cascade
    db.delete(db_instrument)
    db.commit()


# === Indicators ===

def get_indicator(db: Session, indicator_id: uuid.UUID):
    return db.query(models.ScreeningIndicator).filter(models.ScreeningIndicator.id == indicator_id).first()


def get_indicators(db: Session, instrument_id: uuid.UUID):
    return (
        db.query(models.ScreeningIndicator)
        .filter(models.ScreeningIndicator.instrument_id == instrument_id)
        .order_by(models.ScreeningIndicator.name)
        .all()
    )


def get_indicators_by_ids(db: Session, indicator_ids: Iterable[uuid.UUID]):
    ids = list(indicator_ids)
    if not ids:
        return []
    return db.query(models.ScreeningIndicator).filter(models.ScreeningIndicator.id.in_(ids)).all()


def create_indicator(db: Session, indicator: schemas.ScreeningIndicatorCreate):
    db_indicator = models.ScreeningIndicator(**indicator.model_dump())
    db.add(db_indicator)
    db.commit()
    db.refresh(db_indicator)
    return db_indicator


def count_results_for_indicator(db: Session, indicator_id: uuid.UUID) -> int:
    return db.query(models.ScreeningResult).filter(models.ScreeningResult.indicator_id == indicator_id).count()


def delete_indicator(db: Session, db_indicator: models.ScreeningIndicator):
    db.delete(db_indicator)
    db.commit()


# === Screenings ===

def _screening_query(db: Session):
    return db.query(models.Screening).options(
        joinedload(models.Screening.student),
        joinedload(models.Screening.applied_by),
        joinedload(models.Screening.instrument),
        selectinload(models.Screening.results).joinedload(models.ScreeningResult.indicator),
    )


def get_screening(db: Session, screening_id: uuid.UUID):
    return db.query(models.Screening).filter(models.Screening.id == screening_id).first()


def get_screening_detail(db: Session, screening_id: uuid.UUID):
    return (
        _screening_query(db)
        .options(joinedload(models.Screening.instrument).selectinload(models.ScreeningInstrument.indicators))
        .filter(models.Screening.id == screening_id)
        .first()
    )


def get_screenings(
    db: Session,
    student_id: Optional[uuid.UUID] = None,
    applied_by_id: Optional[uuid.UUID] = None,
    instrument_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
):
    query = _screening_query(db)
    if student_id:
        query = query.filter(models.Screening.student_id == student_id)
    if applied_by_id:
        query = query.filter(models.Screening.applied_by_id == applied_by_id)
    if instrument_id:
        query = query.filter(models.Screening.instrument_id == instrument_id)
    if status:
        query = query.filter(models.Screening.status == status)
    return query.order_by(models.Screening.applied_at.desc()).all()


def get_completed_screenings_for_student(db: Session, student_id: uuid.UUID):
    return (
        _screening_query(db)
        .filter(
            models.Screening.student_id == student_id,
            models.Screening.status == schemas.ScreeningStatus.COMPLETED.value,
        )
        .order_by(models.Screening.applied_at.desc())
        .all()
    )


def create_screening(db: Session, screening: schemas.ScreeningCreate, applied_by_id: uuid.UUID):
    data = screening.model_dump(exclude_none=True)
    db_screening = models.Screening(**data, applied_by_id=applied_by_id)
    db.add(db_screening)
    db.commit()
    db.refresh(db_screening)
    return db_screening


def update_screening(db: Session, db_screening: models.Screening, screening: schemas.ScreeningUpdate):
    for key, value in screening.model_dump(exclude_unset=True).items():
        setattr(db_screening, key, value)
    db.commit()
    db.refresh(db_screening)
    return db_screening


def delete_screening(db: Session, db_screening: models.Screening):
    # results are removed through the relationship cascade
    db.delete(db_screening)
    db.commit()


def count_by_status(db: Session):
    rows = db.query(models.Screening.status, func.count(models.Screening.id)).group_by(models.Screening.status).all()
    return {status: count for status, count in rows}


def count_by_category(db: Session):
    rows = (
        db.query(models.ScreeningInstrument.category, func.count(models.Screening.id))
        .join(models.Screening, models.Screening.instrument_id == models.ScreeningInstrument.id)
        .group_by(models.ScreeningInstrument.category)
        .all()
    )
    return {category: count for category, count in rows}


def top_screened_students(db: Session, limit: int = 5):
    count_col = func.count(models.Screening.id).label("screenings_count")
    return (
        db.query(models.Student.id, models.Student.name, count_col)
        .join(models.Screening, models.Screening.student_id == models.Student.id)
        .group_by(models.Student.id, models.Student.name)
        .order_by(count_col.desc(), models.Student.name)
        .limit(limit)
        .all()
    )


# === Results ===

def get_result(db: Session, result_id: uuid.UUID):
    return (
        db.query(models.ScreeningResult)
        .options(joinedload(models.ScreeningResult.indicator))
        .filter(models.ScreeningResult.id == result_id)
        .first()
    )


def get_results(db: Session, screening_id: Optional[uuid.UUID] = None):
    query = db.query(models.ScreeningResult).options(joinedload(models.ScreeningResult.indicator))
    if screening_id:
        query = query.filter(models.ScreeningResult.screening_id == screening_id)
    return query.order_by(models.ScreeningResult.created_at).all()


def _get_result_pair(db: Session, screening_id: uuid.UUID, indicator_id: uuid.UUID):
    return (
        db.query(models.ScreeningResult)
        .filter(
            models.ScreeningResult.screening_id == screening_id,
            models.ScreeningResult.indicator_id == indicator_id,
        )
        .first()
    )


def stage_result(db: Session, screening_id: uuid.UUID, indicator_id: uuid.UUID, value: float, risk_level: Optional[str], notes: Optional[str]):
    """Insert or update the result for a screening/indicator pair without committing."""
    result = _get_result_pair(db, screening_id, indicator_id)
    if result:
        result.value = value
        result.risk_level = risk_level
        result.notes = notes
    else:
        result = models.ScreeningResult(
            screening_id=screening_id,
            indicator_id=indicator_id,
            value=value,
            risk_level=risk_level,
            notes=notes,
        )
        db.add(result)
    db.flush()
    return result


def update_result(db: Session, db_result: models.ScreeningResult, result: schemas.ScreeningResultUpdate):
    for key, value in result.model_dump(exclude_unset=True).items():
        setattr(db_result, key, value)
    db.commit()
    db.refresh(db_result)
    return db_result


def delete_result(db: Session, db_result: models.ScreeningResult):
    db.delete(db_result)
    db.commit()


def count_results_for_screening(db: Session, screening_id: uuid.UUID) -> int:
    return db.query(models.ScreeningResult).filter(models.ScreeningResult.screening_id == screening_id).count()
