import logging
import os

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from ..auth import (
    clear_session_cookie,
    create_access_token,
    get_current_user,
    get_password_hash,
    set_session_cookie,
    verify_password,
)
from ..database import get_db
from ..services import badges as badge_service
from ..services import trees as tree_service
from ..services import users as user_service
from .. import models, schemas

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
testing = os.getenv("TESTING") == "1"


def rate_limit(limit: str):
    if testing:
        def wrapper(func):
            return func
        return wrapper
    return limiter.limit(limit)


router = APIRouter(prefix="/api", tags=["auth"])


def sign_in(db: Session, email: str, password: str) -> tuple[models.User, bool]:
    """Authenticate by email, creating the account on first sight.

    Returns the user and whether it was just created.
    """

    user = user_service.get_user_by_email(db, email)
    if user is None:
        user = user_service.upsert_user(
            db,
            user_id=email,
            email=email,
            role="user",
            password_hash=get_password_hash(password),
        )
        logger.info("Created account %s on first login", user.id)
        return user, True
    if not user.password_hash:
        raise HTTPException(status_code=401, detail="Password not set for this account")
    if not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return user, False


def issue_session(response: Response, user: models.User) -> None:
    token = create_access_token({"sub": user.id, "role": user.role})
    set_session_cookie(response, token)


@router.post("/login", response_model=schemas.LoginOut)
@rate_limit("10/minute")
async def login(
    request: Request,
    response: Response,
    credentials: schemas.LoginRequest,
    db: Session = Depends(get_db),
):
    user, created = sign_in(db, credentials.email, credentials.password)
    issue_session(response, user)
    message = "Account created and signed in" if created else "Signed in"
    return {"message": message, "user": user}


@router.get("/logout")
async def logout():
    response = RedirectResponse(url="/", status_code=302)
    clear_session_cookie(response)
    return response


@router.get("/auth/user", response_model=schemas.UserProfileOut)
async def current_user_profile(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
):
    trees = tree_service.list_trees_by_user(db, user.id)
    profile = schemas.UserOut.model_validate(user).model_dump()
    return schemas.UserProfileOut(
        **profile,
        badges=[
            schemas.UserBadgeOut.model_validate(award)
            for award in badge_service.list_user_badges(db, user.id)
        ],
        tree_count=len(trees),
        approved_tree_count=sum(1 for tree in trees if tree.status == "approved"),
    )
