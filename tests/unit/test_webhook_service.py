import json
from unittest.mock import MagicMock, patch

import requests

from innerview.db import models
from innerview.services.webhook_service import (
    EVENT_HEADER,
    SIGNATURE_HEADER,
    WebhookService,
    build_payload,
    dispatch_event_background,
)
from innerview.utils.feature_flags import refresh_feature_flag_cache
from innerview.utils.token_crypto import verify_signature


def _webhook(db, integration, url, events, active=True, secret="hook-secret"):
    hook = models.Webhook(url=url, events=events, secret=secret, active=active, integration_id=integration.id)
    db.add(hook)
    db.commit()
    db.refresh(hook)
    return hook


def _response(status_code):
    resp = MagicMock()
    resp.status_code = status_code
    return resp


def test_build_payload_shape():
    body = json.loads(build_payload("student.created", {"id": "s1"}))
    assert body["event"] == "student.created"
    assert body["data"] == {"id": "s1"}
    assert body["timestamp"]


def test_trigger_event_without_subscribers(db_session):
    result = WebhookService(db_session).trigger_event("student.created", {})
    assert result == {"success": True, "message": "No webhooks registered for event", "event": "student.created"}


def test_trigger_event_filters_by_event_and_active(db_session, integration_factory):
    integration = integration_factory()
    _webhook(db_session, integration, "https://a.test/hook", "student.created, referral.created")
    _webhook(db_session, integration, "https://b.test/hook", "assessment.created")
    _webhook(db_session, integration, "https://c.test/hook", "student.created", active=False)

    with patch("innerview.services.webhook_service.requests.post", return_value=_response(200)) as post:
        result = WebhookService(db_session).trigger_event("student.created", {"id": "s1"})

    assert post.call_count == 1
    assert post.call_args.args[0] == "https://a.test/hook"
    assert result["totalWebhooks"] == 1
    assert result["successCount"] == 1
    assert result["success"] is True


def test_trigger_event_signs_body(db_session, integration_factory):
    integration = integration_factory()
    _webhook(db_session, integration, "https://a.test/hook", "referral.created", secret="topsecret")

    with patch("innerview.services.webhook_service.requests.post", return_value=_response(204)) as post:
        WebhookService(db_session).trigger_event("referral.created", {"id": "r1"})

    kwargs = post.call_args.kwargs
    assert kwargs["headers"][EVENT_HEADER] == "referral.created"
    assert verify_signature("topsecret", kwargs["data"], kwargs["headers"][SIGNATURE_HEADER])


def test_partial_failure_is_collected(db_session, integration_factory):
    integration = integration_factory()
    ok = _webhook(db_session, integration, "https://ok.test/hook", "student.created")
    bad = _webhook(db_session, integration, "https://bad.test/hook", "student.created")
    down = _webhook(db_session, integration, "https://down.test/hook", "student.created")

    def fake_post(url, **kwargs):
        if "down" in url:
            raise requests.ConnectionError("connection refused")
        return _response(500 if "bad" in url else 200)

    with patch("innerview.services.webhook_service.requests.post", side_effect=fake_post):
        result = WebhookService(db_session).trigger_event("student.created", {})

    by_id = {r["webhookId"]: r for r in result["results"]}
    assert by_id[str(ok.id)]["success"] is True
    assert by_id[str(bad.id)] == {"webhookId": str(bad.id), "success": False, "statusCode": 500}
    assert by_id[str(down.id)]["success"] is False
    assert "connection refused" in by_id[str(down.id)]["error"]
    assert result["successCount"] == 1
    assert result["success"] is True


def test_all_failures_report_unsuccessful(db_session, integration_factory):
    integration = integration_factory()
    _webhook(db_session, integration, "https://bad.test/hook", "student.created")

    with patch("innerview.services.webhook_service.requests.post", return_value=_response(503)):
        result = WebhookService(db_session).trigger_event("student.created", {})

    assert result["success"] is False
    assert result["successCount"] == 0


def test_dispatch_background_respects_flag(monkeypatch):
    monkeypatch.setenv("FEATURE_WEBHOOKS_ENABLED", "false")
    refresh_feature_flag_cache()
    with patch("innerview.services.webhook_service.WebhookService") as svc:
        assert dispatch_event_background("student.created", {}) is None
    svc.assert_not_called()
