import asyncio
from unittest.mock import AsyncMock, patch

from innerview.services.email_service import EmailService, EmailServiceConfig


def _service(monkeypatch, **env):
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return EmailService(EmailServiceConfig())


def test_config_validation(monkeypatch):
    config = _service(monkeypatch, SMTP_USE_SSL="true", SMTP_USE_TLS="true").config
    assert "Cannot use both SSL and TLS simultaneously" in config.validate()


def test_render_referral_template(monkeypatch):
    service = _service(monkeypatch)
    html, text = service.render_template("referral_assigned", {
        "user_name": "Sam",
        "created_by_name": "Tom",
        "referral_title": "Speech <evaluation>",
        "student_name": "Ana",
        "priority": "HIGH",
        "referral_url": "https://rti.school.test/referrals/1",
    })
    assert "Sam" in html
    assert "Speech &lt;evaluation&gt;" in html
    assert "https://rti.school.test/referrals/1" in text


def test_render_meeting_template(monkeypatch):
    html, text = _service(monkeypatch).render_template("meeting_invitation", {
        "user_name": "Sam",
        "meeting_title": "Tier 2 review",
        "meeting_date": "March 04, 2030 15:00",
        "location": "Room 12",
        "meeting_url": "https://rti.school.test/meetings/1",
    })
    assert "Tier 2 review" in html
    assert "Room 12" in text


def test_html_to_text(monkeypatch):
    service = _service(monkeypatch)
    assert service._html_to_text("<p>Hello&amp;   <b>bye</b></p>") == "Hello& bye"


def test_send_email_reports_smtp_errors(monkeypatch):
    service = _service(monkeypatch, SMTP_HOST="smtp.school.test")
    with patch.object(service, "_send_via_smtp", AsyncMock(side_effect=OSError("refused"))):
        result = asyncio.run(service.send_email("a@school.test", "Hi", "<p>Hi</p>", "Hi"))
    assert result["success"] is False
    assert "refused" in result["error"]


def test_send_email_success(monkeypatch):
    service = _service(monkeypatch, SMTP_HOST="smtp.school.test")
    sent = AsyncMock(return_value={"success": True, "message_id": ""})
    with patch.object(service, "_send_via_smtp", sent):
        result = asyncio.run(service.send_email("a@school.test", "Hi", "<p>Hi</p>"))
    assert result["success"] is True
    message = sent.await_args.args[0]
    assert message["To"] == "a@school.test"
    assert message["From"] == "Innerview <noreply@innerview.app>"
