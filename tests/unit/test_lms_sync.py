from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from fastapi import HTTPException

from innerview.db import models
from innerview.services.google_classroom_service import GoogleClassroomService
from innerview.services.microsoft_teams_service import MicrosoftTeamsService


def _json_response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


@pytest.fixture
def google(integration_factory):
    return integration_factory(
        platform="GOOGLE_CLASSROOM",
        scopes="https://www.googleapis.com/auth/classroom.courses.readonly, https://www.googleapis.com/auth/classroom.rosters.readonly",
    )


@pytest.fixture
def connected_google(db_session, google):
    google.access_token = "ya29.token"
    google.refresh_token = "1//refresh"
    google.token_expires_at = datetime.now(UTC) + timedelta(hours=1)
    db_session.commit()
    return google


def test_google_auth_url(db_session, google):
    url = GoogleClassroomService(db_session).get_auth_url(str(google.id))["authUrl"]
    query = parse_qs(urlparse(url).query)
    assert query["state"] == [str(google.id)]
    assert query["access_type"] == ["offline"]
    assert query["scope"][0].split(" ")[1].endswith("rosters.readonly")


def test_wrong_platform_is_not_found(db_session, google):
    with pytest.raises(HTTPException) as exc:
        MicrosoftTeamsService(db_session).get_auth_url(str(google.id))
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException):
        GoogleClassroomService(db_session).get_auth_url("not-a-uuid")


def test_microsoft_requires_tenant(db_session, integration_factory):
    integration = integration_factory(platform="MICROSOFT_TEAMS", name="Teams")
    with pytest.raises(HTTPException) as exc:
        MicrosoftTeamsService(db_session).get_auth_url(integration.id)
    assert "Tenant" in exc.value.detail

    integration.tenant_id = "contoso"
    db_session.commit()
    url = MicrosoftTeamsService(db_session).get_auth_url(integration.id)["authUrl"]
    assert url.startswith("https://login.microsoftonline.com/contoso/oauth2/v2.0/authorize?")


def test_callback_stores_tokens(db_session, google):
    token = _json_response({"access_token": "new-access", "refresh_token": "new-refresh", "expires_in": 3600})
    with patch("innerview.services.lms_sync.requests.post", return_value=token) as post:
        result = GoogleClassroomService(db_session).handle_auth_callback("auth-code", str(google.id))

    assert result == {"success": True}
    assert post.call_args.kwargs["data"]["grant_type"] == "authorization_code"
    db_session.refresh(google)
    assert google.access_token == "new-access"
    assert google.refresh_token == "new-refresh"
    assert google.token_expires_at is not None


def test_callback_token_failure_is_400(db_session, google):
    with patch("innerview.services.lms_sync.requests.post", return_value=_json_response({}, status_code=401)):
        with pytest.raises(HTTPException) as exc:
            GoogleClassroomService(db_session).handle_auth_callback("bad", str(google.id))
    assert exc.value.status_code == 400


def test_sync_requires_connection(db_session, google):
    with pytest.raises(HTTPException) as exc:
        GoogleClassroomService(db_session).sync(google.id)
    assert exc.value.detail == "Integration is not connected"


def test_google_sync_upserts_roster(db_session, connected_google):
    pages = {
        "courses": [
            _json_response({"courses": [{"id": "c1", "name": "Math 3A"}], "nextPageToken": "p2"}),
            _json_response({"courses": [{"id": "c2", "name": "Reading 3B"}]}),
        ],
    }

    def fake_get(url, headers=None, params=None, timeout=None):
        assert headers["Authorization"] == "Bearer ya29.token"
        if url.endswith("/courses"):
            return pages["courses"].pop(0)
        return _json_response({"students": [
            {"userId": "u1", "profile": {"id": "u1", "emailAddress": "ana@school.test", "name": {"fullName": "Ana"}}},
            {"userId": "u2", "profile": {"id": "u2"}},
        ]})

    service = GoogleClassroomService(db_session)
    with patch("innerview.services.lms_sync.requests.get", side_effect=fake_get):
        result = service.sync(connected_google.id)

    assert result == {"success": True, "classesCount": 2, "studentsCount": 2}
    assert db_session.query(models.ClassSync).count() == 2
    assert db_session.query(models.UserSync).count() == 2

    # Second sync updates in place
    pages["courses"] = [_json_response({"courses": [{"id": "c1", "name": "Math 3A (renamed)"}]})]
    with patch("innerview.services.lms_sync.requests.get", side_effect=fake_get):
        service.sync(connected_google.id)
    assert db_session.query(models.ClassSync).count() == 2
    names = {c.class_name for c in db_session.query(models.ClassSync).all()}
    assert "Math 3A (renamed)" in names


def test_sync_provider_failure_returns_result(db_session, connected_google):
    with patch("innerview.services.lms_sync.requests.get", side_effect=requests.ConnectionError("boom")):
        result = GoogleClassroomService(db_session).sync(connected_google.id)
    assert result["success"] is False
    assert "boom" in result["error"]


def test_expired_token_is_refreshed(db_session, connected_google):
    connected_google.token_expires_at = datetime.now(UTC) - timedelta(minutes=1)
    db_session.commit()
    token = _json_response({"access_token": "refreshed", "expires_in": 3600})

    with patch("innerview.services.lms_sync.requests.post", return_value=token) as post:
        access = GoogleClassroomService(db_session).get_access_token(connected_google)

    assert access == "refreshed"
    assert post.call_args.kwargs["data"]["grant_type"] == "refresh_token"


def test_microsoft_sync_keeps_students_only(db_session, integration_factory):
    integration = integration_factory(platform="MICROSOFT_TEAMS", name="Teams", tenant_id="contoso", access_token="graph-token")

    def fake_get(url, headers=None, params=None, timeout=None):
        if url.endswith("/education/classes"):
            return _json_response({"value": [{"id": "k1", "displayName": "Science"}]})
        return _json_response({"value": [
            {"id": "m1", "mail": "kid@school.test", "displayName": "Kid", "primaryRole": "student"},
            {"id": "m2", "mail": "teach@school.test", "displayName": "Teach", "primaryRole": "teacher"},
        ]})

    with patch("innerview.services.lms_sync.requests.get", side_effect=fake_get):
        result = MicrosoftTeamsService(db_session).sync(integration.id)

    assert result == {"success": True, "classesCount": 1, "studentsCount": 1}
