"""
Authentication helpers.

Issues HS256 access/refresh token pairs for staff accounts, verifies them,
and provisions the local development account used in DEV_MODE.
"""
import os
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional, Dict, Any

import jwt
from sqlalchemy.orm import Session

from innerview.db import models
from innerview.db.repositories import users as user_repo
from innerview.utils.role_permissions import ROLE_ADMIN
from innerview.utils.runtime import DEV_USER_EMAIL, DEV_USER_NAME
from innerview.utils.token_crypto import hash_password, generate_hex_secret

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

_DEV_SECRET = "innerview-dev-secret-change-me"


def _access_secret() -> str:
    return os.getenv("JWT_SECRET", _DEV_SECRET)


def _refresh_secret() -> str:
    return os.getenv("JWT_REFRESH_SECRET", _access_secret() + "-refresh")


def _access_ttl() -> int:
    return int(os.getenv("JWT_EXPIRATION", "3600"))


def _refresh_ttl() -> int:
    return int(os.getenv("JWT_REFRESH_EXPIRATION", "604800"))


def create_token(user: models.User, token_type: str = TOKEN_TYPE_ACCESS) -> str:
    now = datetime.now(UTC)
    ttl = _access_ttl() if token_type == TOKEN_TYPE_ACCESS else _refresh_ttl()
    secret = _access_secret() if token_type == TOKEN_TYPE_ACCESS else _refresh_secret()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, token_type: str = TOKEN_TYPE_ACCESS) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None for invalid, expired or mistyped tokens."""
    secret = _access_secret() if token_type == TOKEN_TYPE_ACCESS else _refresh_secret()
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
    if claims.get("type") != token_type or not claims.get("sub"):
        return None
    return claims


def issue_token_pair(user: models.User) -> Dict[str, Any]:
    return {
        "user": user,
        "access_token": create_token(user, TOKEN_TYPE_ACCESS),
        "refresh_token": create_token(user, TOKEN_TYPE_REFRESH),
    }


def get_or_create_dev_user(db: Session) -> models.User:
    user = user_repo.get_user_by_email(db, DEV_USER_EMAIL)
    if user:
        return user
    user = models.User(
        email=DEV_USER_EMAIL,
        name=DEV_USER_NAME,
        # random password: the account is only reachable through DEV_MODE
        password_hash=hash_password(generate_hex_secret(16)),
        role=ROLE_ADMIN,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("dev_user_created: email=%s", DEV_USER_EMAIL)
    return user


def build_user_context(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "school_id": user.school_id,
        "is_admin": user.role == ROLE_ADMIN,
    }

