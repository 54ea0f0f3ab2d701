"""Password hashing, session tokens and the current-user dependencies."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from . import models
from .database import get_db
from .services import users as user_service

# purpose: issue and read the cookie-borne session used by the web client
# status: active

ALGORITHM = "HS256"
SESSION_COOKIE = "token"
SESSION_MAX_AGE = 60 * 60 * 24 * 7
DEFAULT_SECRET = "development-secret"

PLACEHOLDER_CONTRIBUTOR_ID = "temp_user"
PLACEHOLDER_REVIEWER_ID = "temp_reviewer"


def _secret_key() -> str:
    return os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET") or DEFAULT_SECRET


def roles_enforced() -> bool:
    return os.getenv("ENFORCE_ROLES") == "1"


def get_password_hash(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    payload = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=SESSION_MAX_AGE))
    payload["exp"] = expire
    return jwt.encode(payload, _secret_key(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, _secret_key(), algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=os.getenv("ENVIRONMENT") == "production",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/", httponly=True, samesite="lax")


def _read_token(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> models.User | None:
    """Return the session user, or None for anonymous requests."""

    token = _read_token(request)
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        return None
    return user_service.get_user(db, str(payload["sub"]))


def get_current_user(user: models.User | None = Depends(get_optional_user)) -> models.User:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def get_contributor(
    db: Session = Depends(get_db),
    user: models.User | None = Depends(get_optional_user),
) -> models.User:
    """Identity that owns a write.

    Without role enforcement anonymous writes fall back to a placeholder
    contributor account.
    """

    if user is not None:
        return user
    if roles_enforced():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_service.ensure_user(db, PLACEHOLDER_CONTRIBUTOR_ID)
