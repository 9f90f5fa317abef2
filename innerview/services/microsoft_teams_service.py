"""Microsoft Teams (Graph education API) OAuth consent and roster sync."""

from typing import Dict, List, Optional

from fastapi import HTTPException

from innerview.db import models
from innerview.db.schemas import Platform
from innerview.services.lms_sync import LmsSyncService
from innerview.utils.urls import with_query

AUTHORITY_URL = "https://login.microsoftonline.com"
GRAPH_API_URL = "https://graph.microsoft.com/v1.0"


class MicrosoftTeamsService(LmsSyncService):
    platform = Platform.MICROSOFT_TEAMS.value
    label = "Microsoft Teams"

    def validate_integration(self, integration: models.PlatformIntegration) -> None:
        if not integration.tenant_id:
            raise HTTPException(status_code=404, detail="Tenant id not configured for integration")

    def _authority(self, integration: models.PlatformIntegration) -> str:
        return f"{AUTHORITY_URL}/{integration.tenant_id}"

    def build_auth_url(self, integration: models.PlatformIntegration) -> str:
        return with_query(f"{self._authority(integration)}/oauth2/v2.0/authorize", {
            "client_id": integration.client_id,
            "response_type": "code",
            "redirect_uri": integration.redirect_uri,
            "response_mode": "query",
            "scope": " ".join(self.scopes(integration)),
            "state": str(integration.id),
        })

    def token_url(self, integration: models.PlatformIntegration) -> str:
        return f"{self._authority(integration)}/oauth2/v2.0/token"

    def token_request_extras(self, integration: models.PlatformIntegration) -> Dict[str, str]:
        return {"scope": " ".join(self.scopes(integration))}

    def _paged(self, url: str, access_token: str) -> List[dict]:
        items: List[dict] = []
        next_url: Optional[str] = url
        while next_url:
            data = self._get_json(next_url, access_token)
            items.extend(data.get("value") or [])
            next_url = data.get("@odata.nextLink")
        return items

    def list_classes(self, access_token: str) -> List[Dict[str, str]]:
        classes = self._paged(f"{GRAPH_API_URL}/education/classes", access_token)
        return [{"id": c["id"], "name": c.get("displayName")} for c in classes if c.get("id")]

    def list_students(self, access_token: str, class_id: str) -> List[Dict[str, Optional[str]]]:
        members = self._paged(f"{GRAPH_API_URL}/education/classes/{class_id}/members", access_token)
        return [
            {"id": m.get("id"), "email": m.get("mail"), "name": m.get("displayName")}
            for m in members
            if m.get("primaryRole") == "student"
        ]
