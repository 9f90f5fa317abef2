from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException

from innerview.db import models, schemas
from innerview.services.lti_service import DEPLOYMENT_CLAIM, ROLES_CLAIM, LtiService

ISSUER = "https://lms.school.test"
CLIENT_ID = "lti-client-1"


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def deployment(db_session, integration_factory):
    integration = integration_factory(platform="LTI", name="Canvas")
    dep = models.LtiDeployment(
        deployment_id="dep-1",
        issuer=ISSUER,
        client_id=CLIENT_ID,
        auth_login_url="https://lms.school.test/auth",
        auth_token_url="https://lms.school.test/token",
        keyset_url="https://lms.school.test/jwks",
        integration_id=integration.id,
    )
    db_session.add(dep)
    db_session.commit()
    return dep


@pytest.fixture
def jwk_client(rsa_key):
    signing_key = MagicMock()
    signing_key.key = rsa_key.public_key()
    client = MagicMock()
    client.get_signing_key_from_jwt.return_value = signing_key
    with patch("innerview.services.lti_service.jwt.PyJWKClient", return_value=client) as factory:
        yield factory


def _login_params(**overrides):
    data = {
        "iss": ISSUER,
        "login_hint": "user-42",
        "target_link_uri": "https://api.school.test/api/integrations/lti/launch",
        "client_id": CLIENT_ID,
        "lti_deployment_id": "dep-1",
    }
    data.update(overrides)
    return schemas.LtiLoginRequest.model_validate(data)


def _id_token(rsa_key, nonce, **overrides):
    now = datetime.now(UTC)
    claims = {
        "iss": ISSUER,
        "aud": CLIENT_ID,
        "sub": "user-42",
        "name": "Maria Teacher",
        "email": "maria@school.test",
        "nonce": nonce,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        DEPLOYMENT_CLAIM: "dep-1",
        ROLES_CLAIM: ["http://purl.imsglobal.org/vocab/lis/v2/membership#Instructor"],
    }
    claims.update(overrides)
    return jwt.encode(claims, rsa_key, algorithm="RS256")


def _state_and_nonce(auth_url):
    query = parse_qs(urlparse(auth_url).query)
    return query["state"][0], query["nonce"][0]


def test_login_builds_redirect_and_persists_state(db_session, deployment):
    result = LtiService(db_session).handle_login_request(_login_params(lti_message_hint="ctx-9"))

    url = urlparse(result["authUrl"])
    query = parse_qs(url.query)
    assert url.netloc == "lms.school.test"
    assert query["client_id"] == [CLIENT_ID]
    assert query["response_mode"] == ["form_post"]
    assert query["lti_message_hint"] == ["ctx-9"]
    stored = db_session.query(models.LtiLaunchState).one()
    assert stored.state == query["state"][0]
    assert stored.nonce == query["nonce"][0]


def test_login_unknown_deployment_404(db_session, deployment):
    with pytest.raises(HTTPException) as exc:
        LtiService(db_session).handle_login_request(_login_params(iss="https://other.test"))
    assert exc.value.status_code == 404


def test_launch_round_trip_consumes_state(db_session, deployment, jwk_client, rsa_key):
    service = LtiService(db_session)
    state, nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])

    user = service.handle_launch(_id_token(rsa_key, nonce), state)

    assert user["sub"] == "user-42"
    assert user["email"] == "maria@school.test"
    assert user["roles"][0].endswith("#Instructor")
    jwk_client.assert_called_once_with("https://lms.school.test/jwks")

    # State is single use
    with pytest.raises(HTTPException) as exc:
        service.handle_launch(_id_token(rsa_key, nonce), state)
    assert exc.value.status_code == 401


def test_launch_rejects_wrong_nonce(db_session, deployment, jwk_client, rsa_key):
    service = LtiService(db_session)
    state, _nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])

    with pytest.raises(HTTPException) as exc:
        service.handle_launch(_id_token(rsa_key, "not-the-nonce"), state)
    assert exc.value.detail == "Invalid nonce"


def test_launch_rejects_expired_state(db_session, deployment, jwk_client, rsa_key):
    service = LtiService(db_session)
    state, nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])
    stored = db_session.query(models.LtiLaunchState).one()
    stored.expires_at = datetime.now(UTC) - timedelta(seconds=1)
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        service.handle_launch(_id_token(rsa_key, nonce), state)
    assert exc.value.detail == "State expired"


def test_launch_rejects_bad_signature(db_session, deployment, jwk_client):
    service = LtiService(db_session)
    state, nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    with pytest.raises(HTTPException) as exc:
        service.handle_launch(_id_token(other_key, nonce), state)
    assert exc.value.status_code == 401


def test_validate_token_checks_state_and_audience(db_session, deployment, jwk_client, rsa_key):
    service = LtiService(db_session)
    token = _id_token(rsa_key, "n-1")

    assert service.validate_token(token, expected_nonce="n-1", expected_state="s-1", state="s-1")["sub"] == "user-42"

    with pytest.raises(HTTPException):
        service.validate_token(token, expected_nonce="n-1", expected_state="s-1", state="s-2")

    with pytest.raises(HTTPException) as exc:
        service.validate_token(_id_token(rsa_key, "n-1", aud="someone-else"), expected_nonce="n-1", expected_state="s")
    assert exc.value.status_code == 404


def test_launch_garbage_token(db_session, deployment):
    service = LtiService(db_session)
    state, _nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])
    with pytest.raises(HTTPException) as exc:
        service.handle_launch("not-a-jwt", state)
    assert exc.value.detail == "Invalid token"


def test_launch_rejects_token_for_another_deployment(db_session, deployment, jwk_client, rsa_key):
    db_session.add(models.LtiDeployment(
        deployment_id="dep-2",
        issuer=ISSUER,
        client_id=CLIENT_ID,
        auth_login_url="https://lms.school.test/auth",
        auth_token_url="https://lms.school.test/token",
        keyset_url="https://lms.school.test/jwks",
        integration_id=deployment.integration_id,
    ))
    db_session.commit()
    service = LtiService(db_session)
    state, nonce = _state_and_nonce(service.handle_login_request(_login_params())["authUrl"])

    with pytest.raises(HTTPException) as exc:
        service.handle_launch(_id_token(rsa_key, nonce, **{DEPLOYMENT_CLAIM: "dep-2"}), state)
    assert exc.value.status_code == 401
    assert exc.value.detail == "Deployment mismatch"
    assert db_session.query(models.LtiLaunchState).one().consumed_at is None
