from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..rbac import require_admin
from ..services import badges as badge_service
from .. import models, schemas

router = APIRouter(prefix="/api/badges", tags=["badges"])


@router.get("", response_model=list[schemas.BadgeOut])
async def list_badges(db: Session = Depends(get_db)):
    return badge_service.list_badges(db)


@router.post("", response_model=schemas.BadgeOut, status_code=201)
async def create_badge(
    badge: schemas.BadgeCreate,
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    return badge_service.create_badge(db, badge)
