"""Google Classroom OAuth consent and roster sync."""

from typing import Dict, List, Optional

from innerview.db import models
from innerview.db.schemas import Platform
from innerview.services.lms_sync import LmsSyncService
from innerview.utils.urls import with_query

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
CLASSROOM_API_URL = "https://classroom.googleapis.com/v1"


class GoogleClassroomService(LmsSyncService):
    platform = Platform.GOOGLE_CLASSROOM.value
    label = "Google Classroom"

    def build_auth_url(self, integration: models.PlatformIntegration) -> str:
        return with_query(GOOGLE_AUTH_URL, {
            "client_id": integration.client_id,
            "redirect_uri": integration.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes(integration)),
            "access_type": "offline",
            "prompt": "consent",
            "state": str(integration.id),
        })

    def token_url(self, integration: models.PlatformIntegration) -> str:
        return GOOGLE_TOKEN_URL

    def _paged(self, url: str, access_token: str, key: str, params: Optional[Dict[str, str]] = None) -> List[dict]:
        items: List[dict] = []
        query = dict(params or {})
        while True:
            data = self._get_json(url, access_token, params=query)
            items.extend(data.get(key) or [])
            page_token = data.get("nextPageToken")
            if not page_token:
                return items
            query["pageToken"] = page_token

    def list_classes(self, access_token: str) -> List[Dict[str, str]]:
        courses = self._paged(f"{CLASSROOM_API_URL}/courses", access_token, "courses", {"courseStates": "ACTIVE"})
        return [{"id": c["id"], "name": c.get("name")} for c in courses if c.get("id")]

    def list_students(self, access_token: str, class_id: str) -> List[Dict[str, Optional[str]]]:
        students = self._paged(f"{CLASSROOM_API_URL}/courses/{class_id}/students", access_token, "students")
        roster = []
        for student in students:
            profile = student.get("profile") or {}
            roster.append({
                "id": profile.get("id") or student.get("userId"),
                "email": profile.get("emailAddress"),
                "name": (profile.get("name") or {}).get("fullName"),
            })
        return roster
