import os
import uuid
from datetime import date, datetime, UTC
from functools import lru_cache

import pytest
from fastapi.testclient import TestClient

# Keep outbound side effects off unless a test opts back in
os.environ.setdefault("FEATURE_EMAIL_NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("FEATURE_WEBHOOKS_ENABLED", "false")
os.environ.setdefault("PYTEST_RUNNING", "1")

from innerview.api.main import app
from innerview.api.auth import create_token
from innerview.db import models
from innerview.db.database import engine, SessionLocal, get_db
from innerview.utils.feature_flags import refresh_feature_flag_cache
from innerview.utils.token_crypto import hash_password

TEST_PASSWORD = "password123"


@lru_cache(maxsize=1)
def _password_hash() -> str:
    return hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def _feature_flags(monkeypatch):
    monkeypatch.setenv("FEATURE_EMAIL_NOTIFICATIONS_ENABLED", "false")
    monkeypatch.setenv("FEATURE_WEBHOOKS_ENABLED", "false")
    monkeypatch.delenv("DEV_MODE", raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture(autouse=True)
def db_session():
    """Fresh schema per test; the app shares this session through get_db."""
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    def _override_get_db():
        yield session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield session
    finally:
        app.dependency_overrides.pop(get_db, None)
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_token(user)}"}
    return _headers


@pytest.fixture
def user_factory(db_session):
    def _create(role="TEACHER", email=None, name=None, school_id=None):
        user = models.User(
            email=email or f"{role.lower()}_{uuid.uuid4().hex[:8]}@school.test",
            name=name or f"{role.title()} User",
            password_hash=_password_hash(),
            role=role,
            school_id=school_id,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def admin(user_factory):
    return user_factory(role="ADMIN", name="Ada Admin")


@pytest.fixture
def teacher(user_factory):
    return user_factory(role="TEACHER", name="Tom Teacher")


@pytest.fixture
def specialist(user_factory):
    return user_factory(role="SPECIALIST", name="Sam Specialist")


@pytest.fixture
def school_factory(db_session):
    def _create(name="Lincoln Elementary", network_id=None, **kwargs):
        school = models.School(name=name, network_id=network_id, **kwargs)
        db_session.add(school)
        db_session.commit()
        db_session.refresh(school)
        return school
    return _create


@pytest.fixture
def student_factory(db_session):
    def _create(user, name="Maria Silva", grade="3", date_of_birth=date(2016, 4, 12), school_id=None):
        student = models.Student(
            name=name,
            grade=grade,
            date_of_birth=date_of_birth,
            user_id=user.id,
            school_id=school_id,
        )
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student
    return _create


@pytest.fixture
def assessment_factory(db_session):
    def _create(student, score, when=None, type="Reading fluency"):
        assessment = models.Assessment(
            student_id=student.id,
            score=score,
            type=type,
            date=when or datetime.now(UTC),
        )
        db_session.add(assessment)
        db_session.commit()
        db_session.refresh(assessment)
        return assessment
    return _create


@pytest.fixture
def intervention_factory(db_session):
    def _create(student, status="ACTIVE", start_date=None, end_date=None, type="Reading", base_intervention_id=None):
        intervention = models.Intervention(
            student_id=student.id,
            start_date=start_date or datetime.now(UTC),
            end_date=end_date,
            type=type,
            description="Small group phonics",
            status=status,
            base_intervention_id=base_intervention_id,
        )
        db_session.add(intervention)
        db_session.commit()
        db_session.refresh(intervention)
        return intervention
    return _create


@pytest.fixture
def team_factory(db_session):
    def _create(name="Grade 3 RTI Team", members=(), students=(), school_id=None):
        team = models.RtiTeam(name=name, school_id=school_id)
        db_session.add(team)
        db_session.flush()
        for user, role in members:
            db_session.add(models.RtiTeamMember(team_id=team.id, user_id=user.id, role=role))
        for student in students:
            db_session.add(models.StudentTeam(team_id=team.id, student_id=student.id))
        db_session.commit()
        db_session.refresh(team)
        return team
    return _create


@pytest.fixture
def instrument_factory(db_session):
    def _create(name="Reading Screener", category="ACADEMIC", indicators=()):
        instrument = models.ScreeningInstrument(name=name, description="Universal screener", category=category)
        db_session.add(instrument)
        db_session.flush()
        for indicator_name, cutoff in indicators:
            db_session.add(models.ScreeningIndicator(
                name=indicator_name,
                type="NUMERIC",
                min_value=0,
                max_value=100,
                cutoff=cutoff,
                instrument_id=instrument.id,
            ))
        db_session.commit()
        db_session.refresh(instrument)
        return instrument
    return _create


@pytest.fixture
def integration_factory(db_session):
    def _create(platform="GOOGLE_CLASSROOM", name="District Classroom", **kwargs):
        integration = models.PlatformIntegration(
            platform=platform,
            name=name,
            client_id=kwargs.pop("client_id", "client-123"),
            client_secret=kwargs.pop("client_secret", "shh-secret"),
            redirect_uri=kwargs.pop("redirect_uri", "https://api.school.test/callback"),
            **kwargs,
        )
        db_session.add(integration)
        db_session.commit()
        db_session.refresh(integration)
        return integration
    return _create
