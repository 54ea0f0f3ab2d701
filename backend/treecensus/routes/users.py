from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_optional_user
from ..database import get_db
from ..rbac import ensure_can_view_user_trees, require_admin
from ..services import badges as badge_service
from ..services import trees as tree_service
from ..services import users as user_service
from .. import models, schemas

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/trees", response_model=list[schemas.TreeOut])
async def list_user_trees(
    user_id: str,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    ensure_can_view_user_trees(viewer, user_id)
    return tree_service.list_trees_by_user(db, user_id)


@router.get("/{user_id}/badges", response_model=list[schemas.UserBadgeOut])
async def list_user_badges(user_id: str, db: Session = Depends(get_db)):
    return badge_service.list_user_badges(db, user_id)


@router.post("/{user_id}/badges/{badge_id}", response_model=schemas.MessageOut)
async def award_badge(
    user_id: str,
    badge_id: int,
    db: Session = Depends(get_db),
    admin: models.User | None = Depends(require_admin),
):
    if not user_service.get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    if not badge_service.get_badge(db, badge_id):
        raise HTTPException(status_code=404, detail="Badge not found")
    if badge_service.award_badge(db, user_id, badge_id):
        return {"message": "Badge awarded successfully"}
    return {"message": "Badge already awarded"}
