from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import models

# purpose: user persistence for login, admin management and placeholder identities
# status: active


def get_user(db: Session, user_id: str) -> models.User | None:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(models.User.email == email).first()


def list_users(db: Session) -> list[models.User]:
    return db.query(models.User).order_by(models.User.created_at.asc(), models.User.id.asc()).all()


def upsert_user(
    db: Session,
    *,
    user_id: str,
    email: str | None = None,
    role: str | None = None,
    password_hash: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> models.User:
    """Insert a user or update the supplied fields of an existing one."""

    user = db.get(models.User, user_id)
    if user is None:
        user = models.User(id=user_id, role=role or "user")
        db.add(user)
    elif role is not None:
        user.role = role
    if email is not None:
        user.email = email
    if password_hash is not None:
        user.password_hash = password_hash
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def update_user_role(db: Session, user_id: str, role: str) -> models.User | None:
    user = db.get(models.User, user_id)
    if user is None:
        return None
    user.role = role
    user.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def ensure_user(db: Session, user_id: str) -> models.User:
    """Return the user, creating a bare account with a dummy email if absent."""

    user = db.get(models.User, user_id)
    if user is not None:
        return user
    return upsert_user(db, user_id=user_id, email=f"{user_id}@example.com", role="user")
