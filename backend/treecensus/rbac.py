from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from . import models
from .auth import PLACEHOLDER_REVIEWER_ID, get_optional_user, roles_enforced
from .database import get_db
from .services import users as user_service

# purpose: role gates for review and admin routes
# status: active
# notes: gates only bite when ENFORCE_ROLES=1, otherwise the placeholder identity is used

REVIEWER_ROLES = ("supervisor", "admin")
ADMIN_ROLES = ("admin",)


def check_role(user: models.User | None, roles: list[str] | tuple[str, ...]) -> None:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if user.role not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_roles(*roles: str, placeholder_id: str | None = None):
    """Build a dependency returning the acting user for a gated route."""

    def dependency(
        db: Session = Depends(get_db),
        user: models.User | None = Depends(get_optional_user),
    ) -> models.User | None:
        if roles_enforced():
            check_role(user, roles)
            return user
        if user is not None:
            return user
        if placeholder_id:
            return user_service.ensure_user(db, placeholder_id)
        return None

    return dependency


require_reviewer = require_roles(*REVIEWER_ROLES, placeholder_id=PLACEHOLDER_REVIEWER_ID)
allow_reviewers = require_roles(*REVIEWER_ROLES)
require_admin = require_roles(*ADMIN_ROLES)


def ensure_can_view_user_trees(viewer: models.User | None, owner_id: str) -> None:
    """Users see their own trees; supervisors and admins see everyone's."""

    if not roles_enforced():
        return
    if viewer is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if viewer.id != owner_id and viewer.role not in REVIEWER_ROLES:
        raise HTTPException(status_code=403, detail="Forbidden")


def visible_status(viewer: models.User | None, requested: str | None) -> str | None:
    """Anonymous viewers only see approved trees when roles are enforced."""

    if roles_enforced() and viewer is None:
        if requested and requested != "approved":
            raise HTTPException(status_code=403, detail="Forbidden")
        return "approved"
    return requested
