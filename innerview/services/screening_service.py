"""
Screening result scoring and per-student aggregation.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Session

from innerview.db import models, schemas
from innerview.db.repositories import screenings as screening_repo

logger = logging.getLogger(__name__)


def is_above_cutoff(value: float, cutoff: Optional[float]) -> bool:
    return cutoff is not None and value >= cutoff


def derive_risk_level(indicator: models.ScreeningIndicator, value: float, supplied: Optional[str] = None) -> Optional[str]:
    """Use the supplied level, otherwise LOW at or above the cutoff and HIGH below it."""
    if supplied:
        return supplied
    if indicator.cutoff is None:
        return None
    if is_above_cutoff(value, indicator.cutoff):
        return schemas.RiskLevel.LOW.value
    return schemas.RiskLevel.HIGH.value


def ensure_indicator_in_instrument(screening: models.Screening, indicator: models.ScreeningIndicator) -> None:
    if indicator.instrument_id != screening.instrument_id:
        raise HTTPException(
            status_code=400,
            detail=f"Indicator {indicator.id} does not belong to the screening instrument",
        )


def save_result(db: Session, screening: models.Screening, indicator: models.ScreeningIndicator, value: float,
                risk_level: Optional[str] = None, notes: Optional[str] = None) -> models.ScreeningResult:
    ensure_indicator_in_instrument(screening, indicator)
    result = screening_repo.stage_result(
        db, screening.id, indicator.id, value, derive_risk_level(indicator, value, risk_level), notes
    )
    db.commit()
    db.refresh(result)
    return result


def save_batch(db: Session, screening: models.Screening, items: Sequence[schemas.BatchResultItem]) -> List[models.ScreeningResult]:
    """Upsert every item in one transaction.

    All indicators are checked before anything is written. The screening is
    marked COMPLETED once each indicator of its instrument has a result.
    """
    indicators = {i.id: i for i in screening_repo.get_indicators_by_ids(db, [item.indicator_id for item in items])}
    for item in items:
        indicator = indicators.get(item.indicator_id)
        if indicator is None:
            raise HTTPException(status_code=404, detail=f"Indicator {item.indicator_id} not found")
        ensure_indicator_in_instrument(screening, indicator)

    try:
        results = [
            screening_repo.stage_result(
                db,
                screening.id,
                item.indicator_id,
                item.value,
                derive_risk_level(indicators[item.indicator_id], item.value, item.risk_level),
                item.notes,
            )
            for item in items
        ]
        expected = len(screening_repo.get_indicators(db, screening.instrument_id))
        if screening_repo.count_results_for_screening(db, screening.id) >= expected:
            screening.status = schemas.ScreeningStatus.COMPLETED.value
        db.commit()
    except Exception:
        db.rollback()
        raise
    for result in results:
        db.refresh(result)
    logger.info("screening_batch_saved: screening=%s results=%d status=%s", screening.id, len(results), screening.status)
    return results


def _result_row(result: models.ScreeningResult) -> Dict[str, Any]:
    cutoff = result.indicator.cutoff if result.indicator else None
    return {
        "id": result.id,
        "indicatorId": result.indicator_id,
        "indicator": result.indicator.name if result.indicator else None,
        "value": result.value,
        "cutoff": cutoff,
        "riskLevel": result.risk_level,
        "aboveCutoff": is_above_cutoff(result.value, cutoff),
    }


def _screening_row(screening: models.Screening) -> Dict[str, Any]:
    return {
        "id": screening.id,
        "appliedAt": screening.applied_at,
        "instrumentId": screening.instrument_id,
        "instrument": screening.instrument.name if screening.instrument else None,
        "category": screening.instrument.category if screening.instrument else None,
        "results": [_result_row(r) for r in screening.results],
    }


def completed_screenings_with_flags(db: Session, student_id: uuid.UUID) -> List[Dict[str, Any]]:
    return [_screening_row(s) for s in screening_repo.get_completed_screenings_for_student(db, student_id)]


def student_results_by_category(db: Session, student: models.Student) -> Dict[str, Any]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in completed_screenings_with_flags(db, student.id):
        grouped.setdefault(row["category"], []).append(row)
    return {
        "student": {"id": student.id, "name": student.name, "grade": student.grade},
        "resultsByCategory": grouped,
    }


def statistics(db: Session) -> Dict[str, Any]:
    return {
        "byStatus": screening_repo.count_by_status(db),
        "byCategory": screening_repo.count_by_category(db),
        "topStudents": [
            {"studentId": student_id, "name": name, "screeningsCount": count}
            for student_id, name, count in screening_repo.top_screened_students(db, limit=5)
        ],
    }
