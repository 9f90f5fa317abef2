"""
LTI 1.3 third-party login initiation and id_token validation.

State and nonce are persisted per login in ``lti_launch_states`` and expire
after ten minutes. Launches verify the RS256 signature against the platform
keyset, the audience and the issuer, then match the stored deployment and
nonce.
"""

import logging
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional, Tuple

import jwt
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from innerview.db import models, schemas
from innerview.db.models import ensure_aware
from innerview.db.repositories import integrations as integration_repo
from innerview.utils.token_crypto import generate_hex_secret
from innerview.utils.urls import with_query

logger = logging.getLogger(__name__)

STATE_TTL = timedelta(minutes=10)
ROLES_CLAIM = "https://purl.imsglobal.org/spec/lti/claim/roles"
CONTEXT_CLAIM = "https://purl.imsglobal.org/spec/lti/claim/context"
DEPLOYMENT_CLAIM = "https://purl.imsglobal.org/spec/lti/claim/deployment_id"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class LtiService:
    def __init__(self, db: Session):
        self.db = db

    def handle_login_request(self, params: schemas.LtiLoginRequest) -> Dict[str, str]:
        """Build the platform auth redirect for an OIDC login initiation."""
        deployment = integration_repo.find_active_lti_deployment(
            self.db, issuer=params.iss, client_id=params.client_id, deployment_id=params.deployment_id
        )
        if not deployment:
            raise HTTPException(status_code=404, detail="LTI deployment not found")

        state = generate_hex_secret(32)
        nonce = generate_hex_secret(16)
        integration_repo.create_launch_state(
            self.db,
            deployment_id=deployment.id,
            state=state,
            nonce=nonce,
            expires_at=datetime.now(UTC) + STATE_TTL,
        )

        auth_url = with_query(deployment.auth_login_url, {
            "scope": "openid",
            "response_type": "id_token",
            "client_id": deployment.client_id,
            "redirect_uri": params.target_link_uri,
            "login_hint": params.login_hint,
            "state": state,
            "nonce": nonce,
            "prompt": "none",
            "response_mode": "form_post",
            "lti_message_hint": params.lti_message_hint,
        })
        logger.info("lti_login: deployment=%s issuer=%s", deployment.deployment_id, deployment.issuer)
        return {"authUrl": auth_url}

    def _load_state(self, state: str) -> models.LtiLaunchState:
        launch_state = integration_repo.get_launch_state(self.db, state)
        if not launch_state or launch_state.consumed_at is not None:
            raise _unauthorized("Invalid state")
        if ensure_aware(launch_state.expires_at) <= datetime.now(UTC):
            raise _unauthorized("State expired")
        return launch_state

    def _verify(self, token: str) -> Tuple[models.LtiDeployment, Dict[str, Any]]:
        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError:
            raise _unauthorized("Invalid token")

        issuer = unverified.get("iss")
        audience = unverified.get("aud")
        if isinstance(audience, list):
            audience = audience[0] if audience else None
        if not issuer or not audience:
            raise _unauthorized("Invalid token")

        deployment = integration_repo.find_active_lti_deployment(
            self.db, issuer=issuer, client_id=audience, deployment_id=unverified.get(DEPLOYMENT_CLAIM)
        )
        if not deployment:
            raise HTTPException(status_code=404, detail="LTI deployment not found")

        try:
            signing_key = jwt.PyJWKClient(deployment.keyset_url).get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=deployment.client_id,
                issuer=deployment.issuer,
            )
        except jwt.PyJWKClientError as exc:
            logger.warning("lti_keyset_failed: url=%s error=%s", deployment.keyset_url, exc)
            raise _unauthorized("Unable to resolve signing key")
        except jwt.PyJWTError as exc:
            logger.warning("lti_token_rejected: issuer=%s error=%s", issuer, exc)
            raise _unauthorized("Invalid token")
        return deployment, claims

    @staticmethod
    def _user_data(claims: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "sub": claims.get("sub"),
            "name": claims.get("name"),
            "email": claims.get("email"),
            "roles": claims.get(ROLES_CLAIM) or [],
            "context": claims.get(CONTEXT_CLAIM) or {},
        }

    def handle_launch(self, id_token: str, state: str) -> Dict[str, Any]:
        """Validate a launch against the persisted state and consume it."""
        launch_state = self._load_state(state)
        deployment, claims = self._verify(id_token)
        if deployment.id != launch_state.deployment_id:
            raise _unauthorized("Deployment mismatch")
        if claims.get("nonce") != launch_state.nonce:
            raise _unauthorized("Invalid nonce")
        integration_repo.consume_launch_state(self.db, launch_state)
        return self._user_data(claims)

    def validate_token(self, token: str, expected_nonce: str, expected_state: str, state: Optional[str] = None) -> Dict[str, Any]:
        """Programmatic validation for callers that track state themselves."""
        if state is not None and state != expected_state:
            raise _unauthorized("Invalid state")
        _deployment, claims = self._verify(token)
        if claims.get("nonce") != expected_nonce:
            raise _unauthorized("Invalid nonce")
        return self._user_data(claims)
