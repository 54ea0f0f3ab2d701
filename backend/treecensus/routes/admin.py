from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_password_hash
from ..database import get_db
from ..rbac import require_admin
from ..services import badges as badge_service
from ..services import users as user_service
from .. import models, schemas

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=list[schemas.UserOut])
async def list_users(
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    return user_service.list_users(db)


@router.post("/users", response_model=schemas.UserOut, status_code=201)
async def create_user(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    existing = user_service.get_user_by_email(db, user.email)
    if existing and existing.id != user.id:
        raise HTTPException(status_code=400, detail="Email already registered")
    return user_service.upsert_user(
        db,
        user_id=user.id,
        email=user.email,
        role=user.role,
        password_hash=get_password_hash(user.password) if user.password else None,
        first_name=user.first_name,
        last_name=user.last_name,
    )


@router.patch("/users/{user_id}/role", response_model=schemas.UserOut)
async def update_user_role(
    user_id: str,
    update: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    user = user_service.update_user_role(db, user_id, update.role)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.post("/award-education-badge/{user_id}", response_model=schemas.MessageOut)
async def award_education_badge(
    user_id: str,
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    user_service.ensure_user(db, user_id)
    _, created = badge_service.award_education_badge(db, user_id)
    if created:
        return {"message": "Education badge created and awarded successfully"}
    return {"message": "Education badge awarded successfully"}
