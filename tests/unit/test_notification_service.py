from datetime import datetime, UTC
from unittest.mock import AsyncMock, MagicMock

from innerview.db import models
from innerview.services.notification_service import NotificationService, TEMPLATE_REFERRAL_ASSIGNED
from innerview.utils.feature_flags import refresh_feature_flag_cache


def _email_service(success=True):
    svc = MagicMock()
    svc.render_template.return_value = ("<p>hi</p>", "hi")
    svc.send_email = AsyncMock(return_value={"success": success})
    return svc


def test_create_list_and_counts(db_session, teacher):
    service = NotificationService(db_session, email_service=_email_service())
    first = service.create_notification(teacher.id, "Hello", "World", metadata={"k": "v"})
    service.create_notification(teacher.id, "Second", "Message", type="MEETING")

    assert first.type == "SYSTEM"
    assert first.get_metadata() == {"k": "v"}
    assert service.get_total_count(teacher.id) == 2
    assert service.get_unread_count(teacher.id) == 2

    assert service.mark_notification_read(first.id, teacher.id) is True
    assert service.get_unread_count(teacher.id) == 1
    assert [n.title for n in service.get_user_notifications(teacher.id, unread_only=True)] == ["Second"]

    assert service.mark_all_read(teacher.id) == 1
    assert service.get_unread_count(teacher.id) == 0


def test_ownership_is_enforced(db_session, teacher, specialist):
    service = NotificationService(db_session, email_service=_email_service())
    note = service.create_notification(teacher.id, "Private", "Only mine")

    assert service.mark_notification_read(note.id, specialist.id) is False
    assert service.delete_notification(note.id, specialist.id) is False
    assert service.delete_notification(note.id, teacher.id) is True
    assert service.get_total_count(teacher.id) == 0


def test_email_skipped_when_flag_off(db_session):
    email = _email_service()
    result = NotificationService(db_session, email_service=email).send_email_notification(
        "a@school.test", "Subject", TEMPLATE_REFERRAL_ASSIGNED, {}
    )
    assert result == {"success": False, "skipped": True}
    email.render_template.assert_not_called()


def test_email_sent_synchronously_when_enabled(db_session, monkeypatch):
    monkeypatch.setenv("FEATURE_EMAIL_NOTIFICATIONS_ENABLED", "true")
    refresh_feature_flag_cache()
    email = _email_service()

    result = NotificationService(db_session, email_service=email, background=False).send_email_notification(
        "a@school.test", "Subject", TEMPLATE_REFERRAL_ASSIGNED, {"user_name": "Ana"}
    )

    assert result == {"success": True}
    email.send_email.assert_awaited_once()
    assert email.send_email.await_args.kwargs["to_email"] == "a@school.test"


def test_email_failure_is_reported_not_raised(db_session, monkeypatch):
    monkeypatch.setenv("FEATURE_EMAIL_NOTIFICATIONS_ENABLED", "true")
    refresh_feature_flag_cache()
    email = _email_service()
    email.send_email = AsyncMock(side_effect=OSError("smtp down"))

    result = NotificationService(db_session, email_service=email, background=False).send_email_notification(
        "a@school.test", "Subject", TEMPLATE_REFERRAL_ASSIGNED, {}
    )
    assert result["success"] is False
    assert "smtp down" in result["error"]


def test_notify_referral_assigned(db_session, teacher, specialist, student_factory):
    student = student_factory(teacher, name="Ana")
    referral = models.Referral(
        title="Speech evaluation", description="Articulation", student_id=student.id,
        created_by_id=teacher.id, assigned_to_id=specialist.id, priority="HIGH",
    )
    db_session.add(referral)
    db_session.commit()
    db_session.refresh(referral)

    result = NotificationService(db_session, email_service=_email_service()).notify_referral_assigned(referral, specialist, teacher)

    note = result["in_app_notification"]
    assert note.user_id == specialist.id
    assert note.type == "REFERRAL"
    assert "Speech evaluation" in note.message and "Ana" in note.message
    assert note.link == f"/referrals/{referral.id}"


def test_notify_meeting_participants_skips_organizer(db_session, teacher, specialist, admin):
    meeting = models.RtiMeeting(title="Tier 2 review", date=datetime(2030, 3, 4, 15, 0, tzinfo=UTC))
    db_session.add(meeting)
    db_session.commit()

    notes = NotificationService(db_session, email_service=_email_service()).notify_meeting_participants(
        meeting, [teacher, specialist, admin], organizer_id=admin.id
    )
    assert sorted(n.user_id for n in notes) == sorted([teacher.id, specialist.id])
    assert all(n.type == "MEETING" for n in notes)
    assert "March 04, 2030" in notes[0].message
