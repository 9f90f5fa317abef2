import uuid

from innerview.audit import AuditAction, AuditStatus, log, log_integration, log_user, log_webhook
from innerview.db import models
from innerview.db.repositories import audits as audit_repo


def test_log_persists_string_values(db_session, admin):
    entry = log(
        db_session,
        action=AuditAction.TEAM_CREATE,
        status=AuditStatus.SUCCESS,
        target_type="team",
        target_id=uuid.uuid4(),
        actor_user_id=admin.id,
        metadata={"name": "Grade 3"},
    )
    stored = db_session.get(models.AuditLog, entry.id)
    assert stored.action_type == "team_create"
    assert stored.status == "success"
    assert stored.metadata_json == {"name": "Grade 3"}


def test_log_user_adds_email(db_session, admin, teacher):
    entry = log_user(db_session, actor_user_id=admin.id, user_id=teacher.id, action=AuditAction.USER_CREATE, email=teacher.email)
    assert entry.target_type == "user"
    assert entry.metadata_json == {"email": teacher.email}


def test_failure_status_and_filters(db_session, admin):
    integration_id = uuid.uuid4()
    log_integration(db_session, actor_user_id=admin.id, integration_id=integration_id,
                    action=AuditAction.INTEGRATION_SYNC, status=AuditStatus.FAILURE, metadata={"error": "timeout"})
    log_webhook(db_session, actor_user_id=admin.id, webhook_id=None, action=AuditAction.WEBHOOK_TRIGGER)

    failures = audit_repo.get_audit_logs(db_session, status="failure")
    assert [f.action_type for f in failures] == ["integration_sync"]
    webhooks = audit_repo.get_audit_logs(db_session, target_type="webhook")
    assert len(webhooks) == 1 and webhooks[0].target_id is None
    assert len(audit_repo.get_audit_logs(db_session, actor_user_id=admin.id)) == 2
