"""
Shared OAuth2 and roster-sync flow for LMS platforms.

Subclasses supply the consent URL, token endpoint and the two roster calls
(classes, students per class); this module handles token exchange, refresh,
persistence and the ClassSync/UserSync upserts.
"""

import logging
import uuid
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Iterable, List, Optional

import requests
from fastapi import HTTPException
from sqlalchemy.orm import Session

from innerview.db import models
from innerview.db.models import ensure_aware
from innerview.db.repositories import integrations as integration_repo

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 15


class LmsSyncService:
    platform: str = ""
    label: str = "Integration"

    def __init__(self, db: Session, timeout: float = _DEFAULT_TIMEOUT):
        self.db = db
        self.timeout = timeout

    # --- hooks ---

    def build_auth_url(self, integration: models.PlatformIntegration) -> str:
        raise NotImplementedError

    def token_url(self, integration: models.PlatformIntegration) -> str:
        raise NotImplementedError

    def token_request_extras(self, integration: models.PlatformIntegration) -> Dict[str, str]:
        return {}

    def list_classes(self, access_token: str) -> List[Dict[str, str]]:
        """Return ``[{"id", "name"}]`` for the classes visible to the token."""
        raise NotImplementedError

    def list_students(self, access_token: str, class_id: str) -> List[Dict[str, Optional[str]]]:
        """Return ``[{"id", "email", "name"}]``; entries may lack an email."""
        raise NotImplementedError

    # --- shared flow ---

    def validate_integration(self, integration: models.PlatformIntegration) -> None:
        """Extra per-platform checks; raise HTTPException to reject."""

    def get_integration(self, integration_id) -> models.PlatformIntegration:
        try:
            integration_uuid = integration_id if isinstance(integration_id, uuid.UUID) else uuid.UUID(str(integration_id))
        except ValueError:
            raise HTTPException(status_code=404, detail=f"{self.label} integration not found")
        integration = integration_repo.get_integration(self.db, integration_uuid)
        if not integration or integration.platform != self.platform:
            raise HTTPException(status_code=404, detail=f"{self.label} integration not found")
        self.validate_integration(integration)
        return integration

    @staticmethod
    def scopes(integration: models.PlatformIntegration) -> List[str]:
        return [s.strip() for s in (integration.scopes or "").split(",") if s.strip()]

    def get_auth_url(self, integration_id) -> Dict[str, str]:
        integration = self.get_integration(integration_id)
        return {"authUrl": self.build_auth_url(integration)}

    def _request_token(self, integration: models.PlatformIntegration, grant: Dict[str, str]) -> Dict[str, Any]:
        data = {
            "client_id": integration.client_id,
            "client_secret": integration.client_secret,
            **self.token_request_extras(integration),
            **grant,
        }
        try:
            response = requests.post(self.token_url(integration), data=data, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("lms_token_request_failed: platform=%s integration=%s error=%s", self.platform, integration.id, exc)
            raise HTTPException(status_code=400, detail="Token request failed")
        if not payload.get("access_token"):
            raise HTTPException(status_code=400, detail="Token request failed")
        return payload

    def _store(self, integration: models.PlatformIntegration, payload: Dict[str, Any]) -> models.PlatformIntegration:
        expires_in = payload.get("expires_in")
        expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in)) if expires_in else None
        return integration_repo.store_tokens(
            self.db,
            integration,
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
        )

    def handle_auth_callback(self, code: str, state: str) -> Dict[str, Any]:
        """Exchange the authorization code; ``state`` carries the integration id."""
        integration = self.get_integration(state)
        payload = self._request_token(integration, {
            "code": code,
            "redirect_uri": integration.redirect_uri or "",
            "grant_type": "authorization_code",
        })
        self._store(integration, payload)
        logger.info("lms_connected: platform=%s integration=%s", self.platform, integration.id)
        return {"success": True}

    def get_access_token(self, integration: models.PlatformIntegration) -> str:
        if not integration.access_token:
            raise HTTPException(status_code=400, detail="Integration is not connected")
        expires_at = ensure_aware(integration.token_expires_at)
        if expires_at and expires_at <= datetime.now(UTC):
            if not integration.refresh_token:
                raise HTTPException(status_code=400, detail="Integration token expired")
            payload = self._request_token(integration, {
                "refresh_token": integration.refresh_token,
                "grant_type": "refresh_token",
            })
            integration = self._store(integration, payload)
        return integration.access_token

    def _get_json(self, url: str, access_token: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = requests.get(
            url,
            headers={"Authorization": f"Bearer {access_token}"},
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _upsert_roster(self, integration: models.PlatformIntegration, classes: Iterable[Dict[str, str]], access_token: str) -> Dict[str, int]:
        classes_count = 0
        students_count = 0
        for course in classes:
            class_sync = integration_repo.upsert_class_sync(
                self.db,
                integration_id=integration.id,
                external_class_id=course["id"],
                class_name=course.get("name") or "Untitled",
            )
            classes_count += 1
            for student in self.list_students(access_token, course["id"]):
                if not student.get("email"):
                    continue
                integration_repo.upsert_user_sync(
                    self.db,
                    integration_id=integration.id,
                    class_sync_id=class_sync.id,
                    external_user_id=student["id"],
                    email=student["email"],
                    name=student.get("name"),
                )
                students_count += 1
        return {"classesCount": classes_count, "studentsCount": students_count}

    def sync(self, integration_id) -> Dict[str, Any]:
        """Pull classes and enrolled students, upserting the local roster copy.

        Provider failures are logged and returned as ``success: false``.
        """
        integration = self.get_integration(integration_id)
        access_token = self.get_access_token(integration)
        try:
            counts = self._upsert_roster(integration, self.list_classes(access_token), access_token)
        except (requests.RequestException, ValueError, KeyError) as exc:
            self.db.rollback()
            logger.error("lms_sync_failed: platform=%s integration=%s error=%s", self.platform, integration.id, exc)
            return {"success": False, "classesCount": 0, "studentsCount": 0, "error": str(exc)}
        self.db.commit()
        logger.info(
            "lms_sync_complete: platform=%s integration=%s classes=%d students=%d",
            self.platform, integration.id, counts["classesCount"], counts["studentsCount"],
        )
        return {"success": True, **counts}
