import pytest
from fastapi import HTTPException

from innerview.db import models, schemas
from innerview.services import screening_service


@pytest.fixture
def setup(db_session, teacher, student_factory, instrument_factory):
    instrument = instrument_factory(indicators=[("Fluency", 40.0), ("Comprehension", 50.0), ("Notes only", None)])
    student = student_factory(teacher)
    screening = models.Screening(student_id=student.id, applied_by_id=teacher.id, instrument_id=instrument.id)
    db_session.add(screening)
    db_session.commit()
    db_session.refresh(screening)
    indicators = {i.name: i for i in instrument.indicators}
    return screening, indicators, student


def test_derive_risk_level():
    indicator = models.ScreeningIndicator(cutoff=40.0)
    assert screening_service.derive_risk_level(indicator, 40.0) == "LOW"
    assert screening_service.derive_risk_level(indicator, 39.9) == "HIGH"
    assert screening_service.derive_risk_level(indicator, 10.0, supplied="VERY_HIGH") == "VERY_HIGH"
    assert screening_service.derive_risk_level(models.ScreeningIndicator(cutoff=None), 10.0) is None


def test_is_above_cutoff():
    assert screening_service.is_above_cutoff(50, 50) is True
    assert screening_service.is_above_cutoff(49, 50) is False
    assert screening_service.is_above_cutoff(49, None) is False


def test_save_result_upserts(db_session, setup):
    screening, indicators, _ = setup
    first = screening_service.save_result(db_session, screening, indicators["Fluency"], 30.0)
    second = screening_service.save_result(db_session, screening, indicators["Fluency"], 45.0, notes="retest")

    assert first.id == second.id
    assert second.value == 45.0
    assert second.risk_level == "LOW"
    assert db_session.query(models.ScreeningResult).count() == 1


def test_save_result_rejects_foreign_indicator(db_session, setup, instrument_factory):
    screening, _, _ = setup
    other = instrument_factory(name="Behavior", indicators=[("Outbursts", 3.0)])
    with pytest.raises(HTTPException) as exc:
        screening_service.save_result(db_session, screening, other.indicators[0], 1.0)
    assert exc.value.status_code == 400


def test_save_batch_completes_screening(db_session, setup):
    screening, indicators, _ = setup
    items = [
        schemas.BatchResultItem(indicator_id=indicators["Fluency"].id, value=20),
        schemas.BatchResultItem(indicator_id=indicators["Comprehension"].id, value=70),
    ]
    screening_service.save_batch(db_session, screening, items)
    assert screening.status == "IN_PROGRESS"

    results = screening_service.save_batch(db_session, screening, [
        schemas.BatchResultItem(indicator_id=indicators["Notes only"].id, value=1),
    ])
    assert results[0].risk_level is None
    assert screening.status == "COMPLETED"


def test_save_batch_is_all_or_nothing(db_session, setup, instrument_factory):
    screening, indicators, _ = setup
    other = instrument_factory(name="Behavior", indicators=[("Outbursts", 3.0)])
    items = [
        schemas.BatchResultItem(indicator_id=indicators["Fluency"].id, value=20),
        schemas.BatchResultItem(indicator_id=other.indicators[0].id, value=1),
    ]
    with pytest.raises(HTTPException) as exc:
        screening_service.save_batch(db_session, screening, items)
    assert exc.value.status_code == 400
    assert db_session.query(models.ScreeningResult).count() == 0


def test_results_by_category_and_statistics(db_session, setup):
    screening, indicators, student = setup
    screening_service.save_batch(db_session, screening, [
        schemas.BatchResultItem(indicator_id=i.id, value=45) for i in indicators.values()
    ])

    grouped = screening_service.student_results_by_category(db_session, student)
    assert grouped["student"]["name"] == student.name
    [row] = grouped["resultsByCategory"]["ACADEMIC"]
    flags = {r["indicator"]: r["aboveCutoff"] for r in row["results"]}
    assert flags == {"Fluency": True, "Comprehension": False, "Notes only": False}

    stats = screening_service.statistics(db_session)
    assert stats["byStatus"] == {"COMPLETED": 1}
    assert stats["byCategory"] == {"ACADEMIC": 1}
    assert stats["topStudents"][0]["screeningsCount"] == 1
