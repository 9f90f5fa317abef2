"""
Outbound webhook dispatch.

Payloads are serialized once, signed with HMAC-SHA256 per webhook secret and
POSTed concurrently through a thread pool. Delivery failures are collected
into the aggregate result instead of being raised.
"""

import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from innerview.db import models
from innerview.db.repositories import integrations as integration_repo
from innerview.utils.feature_flags import webhooks_enabled
from innerview.utils.token_crypto import sign_payload, verify_signature

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"

# Domain events emitted by the RTI routers
EVENT_STUDENT_CREATED = "student.created"
EVENT_ASSESSMENT_CREATED = "assessment.created"
EVENT_INTERVENTION_CREATED = "intervention.created"
EVENT_INTERVENTION_COMPLETED = "intervention.completed"
EVENT_REFERRAL_CREATED = "referral.created"


def _timeout_seconds() -> float:
    return float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "5"))


def _max_workers() -> int:
    return max(int(os.getenv("WEBHOOK_MAX_WORKERS", "8")), 1)


def build_payload(event: str, data: Dict[str, Any]) -> bytes:
    payload = {
        "event": event,
        "timestamp": datetime.now(UTC).isoformat(),
        "data": data,
    }
    return json.dumps(payload, default=str).encode("utf-8")


class WebhookService:
    """Selects webhooks subscribed to an event and delivers signed payloads."""

    def __init__(self, db: Session, timeout: Optional[float] = None, max_workers: Optional[int] = None):
        self.db = db
        self.timeout = timeout if timeout is not None else _timeout_seconds()
        self.max_workers = max_workers or _max_workers()

    def webhooks_for_event(self, event: str) -> List[models.Webhook]:
        return [w for w in integration_repo.get_active_webhooks(self.db) if event in w.event_list]

    def _deliver(self, webhook_id: str, url: str, secret: str, event: str, body: bytes) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(secret, body),
            EVENT_HEADER: event,
        }
        try:
            response = requests.post(url, data=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("webhook_delivery_failed: webhook=%s url=%s error=%s", webhook_id, url, exc)
            return {"webhookId": webhook_id, "success": False, "error": str(exc)}

        success = 200 <= response.status_code < 300
        if not success:
            logger.warning(
                "webhook_delivery_failed: webhook=%s url=%s status=%s", webhook_id, url, response.status_code
            )
        return {"webhookId": webhook_id, "success": success, "statusCode": response.status_code}

    def trigger_event(self, event: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Deliver ``event`` to every active webhook subscribed to it.

        ``success`` is true when at least one delivery succeeded. Results keep
        the webhook order.
        """
        webhooks = self.webhooks_for_event(event)
        if not webhooks:
            return {"success": True, "message": "No webhooks registered for event", "event": event}

        body = build_payload(event, data)
        # plain tuples so worker threads never touch ORM instances
        targets = [(str(w.id), w.url, w.secret) for w in webhooks]
        workers = min(self.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._deliver, webhook_id, url, secret, event, body)
                for webhook_id, url, secret in targets
            ]
            results = [f.result() for f in futures]

        success_count = sum(1 for r in results if r["success"])
        logger.info("webhook_event_dispatched: event=%s total=%d success=%d", event, len(results), success_count)
        return {
            "success": success_count > 0,
            "event": event,
            "results": results,
            "totalWebhooks": len(results),
            "successCount": success_count,
        }


def dispatch_event_background(event: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Entry point for FastAPI ``BackgroundTasks``.

    Runs after the response with its own session, since the request session
    is closed by then.
    """
    if not webhooks_enabled():
        return None
    from innerview.db.database import SessionLocal

    db = SessionLocal()
    try:
        return WebhookService(db).trigger_event(event, data)
    except Exception:
        logger.exception("webhook_event_failed: event=%s", event)
        return None
    finally:
        db.close()


__all__ = [
    "WebhookService",
    "build_payload",
    "dispatch_event_background",
    "verify_signature",
    "SIGNATURE_HEADER",
    "EVENT_HEADER",
]
