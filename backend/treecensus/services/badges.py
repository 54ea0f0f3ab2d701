from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas

# purpose: badge catalog, awards and contribution milestone checks
# status: active

logger = logging.getLogger(__name__)

TREE_COUNT_MILESTONES = (50, 100, 200, 500)

EDUCATION_BADGE = {
    "name": "교육 이수",
    "description": "나무 세기 교육을 이수했습니다.",
    "type": "education",
    "requirement": 1,
}


def list_badges(db: Session) -> list[models.Badge]:
    return db.query(models.Badge).order_by(models.Badge.id.asc()).all()


def get_badge(db: Session, badge_id: int) -> models.Badge | None:
    return db.get(models.Badge, badge_id)


def create_badge(db: Session, payload: schemas.BadgeCreate) -> models.Badge:
    badge = models.Badge(
        name=payload.name,
        description=payload.description,
        type=payload.type,
        requirement=payload.requirement,
        icon=payload.icon,
    )
    db.add(badge)
    db.commit()
    db.refresh(badge)
    return badge


def get_badge_by_type_and_requirement(
    db: Session, badge_type: str, requirement: int
) -> models.Badge | None:
    return (
        db.query(models.Badge)
        .filter(models.Badge.type == badge_type, models.Badge.requirement == requirement)
        .order_by(models.Badge.id.asc())
        .first()
    )


def award_badge(db: Session, user_id: str, badge_id: int) -> bool:
    """Link a badge to a user. Returns False when the award already existed."""

    values = {"user_id": user_id, "badge_id": badge_id}
    dialect = db.get_bind().dialect.name
    if dialect in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = (
            insert(models.UserBadge)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        )
        result = db.execute(stmt)
        db.commit()
        created = bool(result.rowcount)
    else:
        try:
            with db.begin_nested():
                db.add(models.UserBadge(**values))
            db.commit()
            created = True
        except IntegrityError:
            db.rollback()
            created = False
    if created:
        logger.info("Awarded badge %s to user %s", badge_id, user_id)
    return created


def list_user_badges(db: Session, user_id: str) -> list[models.UserBadge]:
    return (
        db.query(models.UserBadge)
        .options(joinedload(models.UserBadge.badge))
        .filter(models.UserBadge.user_id == user_id)
        .order_by(models.UserBadge.awarded_at.asc(), models.UserBadge.id.asc())
        .all()
    )


def count_approved_trees(db: Session, user_id: str) -> int:
    return (
        db.query(func.count(models.Tree.id))
        .filter(models.Tree.contributor_id == user_id, models.Tree.status == "approved")
        .scalar()
        or 0
    )


def check_tree_count_badges(db: Session, user_id: str) -> list[int]:
    """Award every tree_count badge whose milestone the user's approved count meets.

    Returns the ids of badges newly awarded by this call.
    """

    tree_count = count_approved_trees(db, user_id)
    awarded: list[int] = []
    for milestone in TREE_COUNT_MILESTONES:
        if tree_count < milestone:
            continue
        badge = get_badge_by_type_and_requirement(db, "tree_count", milestone)
        if badge is None:
            continue
        if award_badge(db, user_id, badge.id):
            awarded.append(badge.id)
    return awarded


def award_education_badge(db: Session, user_id: str) -> tuple[models.Badge, bool]:
    """Award the education badge, creating the catalog entry first if needed.

    Returns the badge and whether it had to be created.
    """

    badge = get_badge_by_type_and_requirement(db, "education", 1)
    created = False
    if badge is None:
        badge = create_badge(db, schemas.BadgeCreate(**EDUCATION_BADGE))
        created = True
    award_badge(db, user_id, badge.id)
    return badge, created
