"""
Login, token refresh and current-user endpoints.
"""
import uuid
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from innerview.api.auth import decode_token, issue_token_pair, TOKEN_TYPE_REFRESH
from innerview.api.deps import get_current_user_context
from innerview.db import schemas
from innerview.db.database import get_db
from innerview.db.repositories import users as user_repo
from innerview.utils.token_crypto import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=schemas.AuthResponse)
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_email(db, credentials.email)
    # same response for unknown email and wrong password
    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("login_failed: email=%s", credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    logger.info("login_succeeded: user=%s", user.id)
    return issue_token_pair(user)


@router.post("/refresh", response_model=schemas.AuthResponse)
def refresh(body: schemas.RefreshRequest, db: Session = Depends(get_db)):
    claims = decode_token(body.refresh_token, TOKEN_TYPE_REFRESH)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    try:
        user = user_repo.get_user(db, uuid.UUID(claims["sub"]))
    except ValueError:
        user = None
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    return issue_token_pair(user)


@router.get("/me", response_model=schemas.User)
def me(user_context=Depends(get_current_user_context)):
    user, _current_user = user_context
    return user
