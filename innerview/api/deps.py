"""
API dependency helpers.

Resolves the authenticated staff user from a bearer token and provides
role guards for routes.
"""
import uuid
import logging
from typing import Optional, Tuple, Dict, Any

from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from innerview.api.auth import decode_token, get_or_create_dev_user, build_user_context, TOKEN_TYPE_ACCESS
from innerview.db.database import get_db
from innerview.db.repositories import users as user_repo
from innerview.utils.role_permissions import role_allows
from innerview.utils.runtime import dev_mode_active

logger = logging.getLogger(__name__)

# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Tuple[Any, Dict[str, Any]]:
    token = _bearer_token(authorization)

    if token is None:
        if dev_mode_active():
            user = get_or_create_dev_user(db)
            return user, build_user_context(user)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    claims = decode_token(token, TOKEN_TYPE_ACCESS)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        user_id = uuid.UUID(claims["sub"])
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = user_repo.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token user")
    return user, build_user_context(user)


def require_roles(*roles: str):
    """Dependency factory: authenticated context restricted to ``roles``.

    Accepts role names or role groups such as ``TEAM_MANAGERS``.
    """
    allowed = set()
    for role in roles:
        if isinstance(role, str):
            allowed.add(getattr(role, "value", role))
        else:
            allowed.update(role)

    def _dependency(user_context=Depends(get_current_user_context)) -> Tuple[Any, Dict[str, Any]]:
        user, current_user = user_context
        if not role_allows(user.role, allowed):
            logger.warning("role_denied: user=%s role=%s allowed=%s", user.email, user.role, sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user, current_user

    return _dependency
