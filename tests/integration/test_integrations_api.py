from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from innerview.db import models
from innerview.utils.feature_flags import refresh_feature_flag_cache
from innerview.utils.token_crypto import sign_payload


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def lms_flag(monkeypatch):
    def _set(value):
        monkeypatch.setenv("FEATURE_LMS_SYNC_ENABLED", value)
        refresh_feature_flag_cache()
    return _set


# === Integrations ===

def test_integration_crud_hides_secrets(client, admin, auth_headers, db_session):
    headers = auth_headers(admin)
    created = client.post("/api/integrations/", json={
        "platform": "GOOGLE_CLASSROOM",
        "name": "District Classroom",
        "clientId": "abc",
        "clientSecret": "very-secret",
        "scopes": "classroom.courses.readonly,classroom.rosters.readonly",
    }, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["connected"] is False
    assert "clientSecret" not in body and "accessToken" not in body

    for method in (client.put, client.patch):
        r = method(f"/api/integrations/{body['id']}", json={"name": "Renamed", "clientSecret": "rotated"}, headers=headers)
        assert r.status_code == 200
        assert r.json()["name"] == "Renamed"

    update_audit = db_session.query(models.AuditLog).filter_by(action_type="integration_update").first()
    assert update_audit.metadata_json == {"fields": ["client_secret", "name"]}

    listed = client.get("/api/integrations/?platform=GOOGLE_CLASSROOM", headers=headers).json()
    assert [i["name"] for i in listed] == ["Renamed"]

    assert client.delete(f"/api/integrations/{body['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/integrations/{body['id']}", headers=headers).status_code == 404


def test_integrations_are_admin_only(client, specialist, auth_headers):
    assert client.get("/api/integrations/", headers=auth_headers(specialist)).status_code == 403
    assert client.get("/api/integrations/webhooks/00000000-0000-0000-0000-000000000000", headers=auth_headers(specialist)).status_code == 403


# === Webhooks ===

def test_webhook_registration_and_trigger(client, admin, integration_factory, auth_headers):
    integration = integration_factory()
    headers = auth_headers(admin)
    created = client.post("/api/integrations/webhooks/", json={
        "integrationId": str(integration.id),
        "url": "https://hooks.school.test/rti",
        "events": ["student.created", "referral.created"],
    }, headers=headers)
    assert created.status_code == 201
    webhook = created.json()
    assert webhook["events"] == ["student.created", "referral.created"]
    assert len(webhook["secret"]) == 64

    with patch("innerview.services.webhook_service.requests.post", return_value=_response(200)) as post:
        result = client.post("/api/integrations/webhooks/trigger", json={
            "event": "student.created", "data": {"id": "s-1"},
        }, headers=headers).json()

    assert result["success"] is True
    assert result["totalWebhooks"] == 1
    kwargs = post.call_args.kwargs
    assert kwargs["headers"]["X-Webhook-Event"] == "student.created"
    assert kwargs["headers"]["X-Webhook-Signature"] == sign_payload(webhook["secret"], kwargs["data"])

    quiet = client.post("/api/integrations/webhooks/trigger", json={"event": "meeting.created"}, headers=headers).json()
    assert quiet["message"] == "No webhooks registered for event"


def test_webhook_rejects_non_http_url(client, admin, integration_factory, auth_headers):
    integration = integration_factory()
    r = client.post("/api/integrations/webhooks/", json={
        "integrationId": str(integration.id), "url": "ftp://files.school.test", "events": ["student.created"],
    }, headers=auth_headers(admin))
    assert r.status_code == 422


def test_webhook_update_list_delete(client, admin, integration_factory, auth_headers):
    integration = integration_factory()
    headers = auth_headers(admin)
    webhook = client.post("/api/integrations/webhooks/", json={
        "integrationId": str(integration.id), "url": "https://hooks.school.test/a", "events": ["student.created"],
        "secret": "shared",
    }, headers=headers).json()
    assert webhook["secret"] == "shared"

    updated = client.patch(f"/api/integrations/webhooks/{webhook['id']}", json={"active": False}, headers=headers)
    assert updated.json()["active"] is False
    assert len(client.get(f"/api/integrations/webhooks/{integration.id}", headers=headers).json()) == 1

    assert client.delete(f"/api/integrations/webhooks/{webhook['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/integrations/webhooks/{webhook['id']}", headers=headers).status_code == 404


def test_domain_event_dispatched_when_enabled(client, teacher, integration_factory, db_session, auth_headers, monkeypatch):
    integration = integration_factory()
    db_session.add(models.Webhook(
        integration_id=integration.id,
        url="https://hooks.school.test/students",
        events="student.created",
        secret="s3cret",
    ))
    db_session.commit()
    monkeypatch.setenv("FEATURE_WEBHOOKS_ENABLED", "true")
    refresh_feature_flag_cache()

    with patch("innerview.services.webhook_service.requests.post", return_value=_response(200)) as post:
        r = client.post("/api/students/", json={
            "name": "Lucas Rocha", "grade": "2", "dateOfBirth": "2017-09-01",
        }, headers=auth_headers(teacher))
    assert r.status_code == 201
    assert post.call_count == 1
    assert post.call_args.kwargs["headers"]["X-Webhook-Event"] == "student.created"


# === LMS ===

def test_lms_routes_503_when_disabled(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("false")
    integration = integration_factory()
    r = client.get(f"/api/integrations/google/auth-url/{integration.id}", headers=auth_headers(admin))
    assert r.status_code == 503
    assert r.json()["detail"] == "LMS sync is currently disabled"


def test_google_auth_url(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("true")
    integration = integration_factory(scopes="a.readonly,b.readonly")
    r = client.get(f"/api/integrations/google/auth-url/{integration.id}", headers=auth_headers(admin))
    assert r.status_code == 200
    query = parse_qs(urlparse(r.json()["authUrl"]).query)
    assert query["state"] == [str(integration.id)]
    assert query["scope"] == ["a.readonly b.readonly"]
    assert query["access_type"] == ["offline"]


def test_google_auth_url_wrong_platform(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("true")
    integration = integration_factory(platform="MICROSOFT_TEAMS", tenant_id="tenant-1")
    r = client.get(f"/api/integrations/google/auth-url/{integration.id}", headers=auth_headers(admin))
    assert r.status_code == 404


def test_microsoft_requires_tenant(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("true")
    integration = integration_factory(platform="MICROSOFT_TEAMS")
    r = client.get(f"/api/integrations/microsoft/auth-url/{integration.id}", headers=auth_headers(admin))
    assert r.status_code == 404
    assert r.json()["detail"] == "Tenant id not configured for integration"


def test_google_callback_and_sync(client, admin, integration_factory, auth_headers, lms_flag, db_session):
    lms_flag("true")
    integration = integration_factory()
    headers = auth_headers(admin)

    token = _response(200, {"access_token": "at-1", "refresh_token": "rt-1", "expires_in": 3600})
    with patch("innerview.services.lms_sync.requests.post", return_value=token):
        r = client.get(f"/api/integrations/google/callback?code=abc&state={integration.id}", headers=headers)
    assert r.json() == {"success": True}
    assert client.get(f"/api/integrations/{integration.id}", headers=headers).json()["connected"] is True

    def _get(url, **kwargs):
        if url.endswith("/courses"):
            return _response(200, {"courses": [{"id": "c1", "name": "3rd grade reading"}]})
        return _response(200, {"students": [
            {"userId": "u1", "profile": {"id": "u1", "emailAddress": "ana@school.test", "name": {"fullName": "Ana"}}},
            {"userId": "u2", "profile": {"id": "u2"}},
        ]})

    with patch("innerview.services.lms_sync.requests.get", side_effect=_get):
        result = client.post(f"/api/integrations/google/sync/{integration.id}", headers=headers).json()
    assert result == {"success": True, "classesCount": 1, "studentsCount": 1, "error": None}

    classes = client.get(f"/api/integrations/{integration.id}/classes", headers=headers).json()
    assert classes[0]["className"] == "3rd grade reading"
    assert classes[0]["usersCount"] == 1

    sync_audit = db_session.query(models.AuditLog).filter_by(action_type="integration_sync").one()
    assert sync_audit.status == "success"


def test_google_callback_token_failure(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("true")
    integration = integration_factory()
    with patch("innerview.services.lms_sync.requests.post", return_value=_response(400)):
        r = client.get(f"/api/integrations/google/callback?code=bad&state={integration.id}", headers=auth_headers(admin))
    assert r.status_code == 400
    assert r.json()["detail"] == "Token request failed"


def test_sync_requires_connection(client, admin, integration_factory, auth_headers, lms_flag):
    lms_flag("true")
    integration = integration_factory()
    r = client.post(f"/api/integrations/google/sync/{integration.id}", headers=auth_headers(admin))
    assert r.status_code == 400
    assert r.json()["detail"] == "Integration is not connected"


def test_sync_provider_failure_is_reported(client, admin, integration_factory, auth_headers, lms_flag, db_session):
    lms_flag("true")
    integration = integration_factory(
        platform="MICROSOFT_TEAMS",
        tenant_id="tenant-1",
        access_token="at-1",
        token_expires_at=datetime.now(UTC) + timedelta(hours=1),
    )
    with patch("innerview.services.lms_sync.requests.get", return_value=_response(500)):
        result = client.post(f"/api/integrations/microsoft/sync/{integration.id}", headers=auth_headers(admin)).json()
    assert result["success"] is False
    assert result["classesCount"] == 0
    audit = db_session.query(models.AuditLog).filter_by(action_type="integration_sync").one()
    assert audit.status == "failure"


# === LTI ===

def _lti_integration(client, admin, integration_factory, auth_headers):
    integration = integration_factory(platform="LTI", name="Canvas")
    r = client.post("/api/integrations/lti/deployments", json={
        "integrationId": str(integration.id),
        "deploymentId": "dep-9",
        "issuer": "https://canvas.school.test",
        "clientId": "lti-9",
        "authLoginUrl": "https://canvas.school.test/auth",
        "authTokenUrl": "https://canvas.school.test/token",
        "keysetUrl": "https://canvas.school.test/jwks",
    }, headers=auth_headers(admin))
    return integration, r


def test_lti_deployment_registration(client, admin, integration_factory, auth_headers):
    integration, r = _lti_integration(client, admin, integration_factory, auth_headers)
    assert r.status_code == 201
    assert r.json()["active"] is True

    dup = client.post("/api/integrations/lti/deployments", json={
        "integrationId": str(integration.id),
        "deploymentId": "dep-9",
        "issuer": "https://canvas.school.test",
        "clientId": "lti-9",
        "authLoginUrl": "https://canvas.school.test/auth",
        "authTokenUrl": "https://canvas.school.test/token",
        "keysetUrl": "https://canvas.school.test/jwks",
    }, headers=auth_headers(admin))
    assert dup.status_code == 409

    listed = client.get(f"/api/integrations/lti/deployments/{integration.id}", headers=auth_headers(admin))
    assert [d["deploymentId"] for d in listed.json()] == ["dep-9"]


def test_lti_deployment_needs_lti_integration(client, admin, integration_factory, auth_headers):
    google = integration_factory()
    r = client.post("/api/integrations/lti/deployments", json={
        "integrationId": str(google.id),
        "deploymentId": "dep-x",
        "issuer": "https://canvas.school.test",
        "clientId": "lti-9",
        "authLoginUrl": "https://canvas.school.test/auth",
        "authTokenUrl": "https://canvas.school.test/token",
        "keysetUrl": "https://canvas.school.test/jwks",
    }, headers=auth_headers(admin))
    assert r.status_code == 404


@pytest.mark.parametrize("method", ["get", "post"])
def test_lti_login_is_public(client, admin, integration_factory, auth_headers, method):
    _lti_integration(client, admin, integration_factory, auth_headers)
    params = {
        "iss": "https://canvas.school.test",
        "login_hint": "learner-1",
        "target_link_uri": "https://api.school.test/api/integrations/lti/launch",
        "client_id": "lti-9",
        "lti_deployment_id": "dep-9",
    }
    if method == "get":
        r = client.get("/api/integrations/lti/login", params=params)
    else:
        r = client.post("/api/integrations/lti/login", data=params)
    assert r.status_code == 200
    query = parse_qs(urlparse(r.json()["authUrl"]).query)
    assert query["login_hint"] == ["learner-1"]
    assert query["state"] and query["nonce"]


def test_lti_login_missing_fields(client):
    r = client.post("/api/integrations/lti/login", json={"iss": "https://canvas.school.test"})
    assert r.status_code == 422


def test_lti_launch_unknown_state(client):
    r = client.post("/api/integrations/lti/launch", data={"id_token": "x.y.z", "state": "nope"})
    assert r.status_code == 401


def test_lti_routes_503_when_disabled(client, monkeypatch):
    monkeypatch.setenv("FEATURE_LTI_ENABLED", "false")
    refresh_feature_flag_cache()
    r = client.post("/api/integrations/lti/launch", data={"id_token": "x", "state": "y"})
    assert r.status_code == 503
    assert r.json()["detail"] == "LTI is currently disabled"


def test_lti_login_malformed_json_is_422(client):
    r = client.post(
        "/api/integrations/lti/login",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 422
    assert r.json()["message"] == "Malformed JSON body"


def test_lti_launch_runs_service_in_threadpool(client, monkeypatch):
    calls = []

    async def _run(func, *args):
        calls.append((func.__name__, args))
        return {"sub": "learner-1", "roles": []}

    monkeypatch.setattr("innerview.api.lti.run_in_threadpool", _run)
    r = client.post("/api/integrations/lti/launch", data={"id_token": "tok", "state": "st"})
    assert r.status_code == 200
    assert r.json()["sub"] == "learner-1"
    assert calls == [("handle_launch", ("tok", "st"))]
