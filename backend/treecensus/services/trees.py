from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..storage import delete_photo
from . import badges as badge_service

# purpose: tree observations, the moderation queue and aggregate statistics
# status: active

logger = logging.getLogger(__name__)

RECENT_TREE_LIMIT = 5


class ReviewConflict(Exception):
    """Raised when a tree has already left the pending state."""


def _ordered(query):
    return query.order_by(models.Tree.created_at.desc(), models.Tree.id.desc())


def _search_clause(term: str):
    literal = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{literal}%"
    return or_(
        models.Tree.species.ilike(pattern, escape="\\"),
        models.Tree.notes.ilike(pattern, escape="\\"),
    )


def list_trees(
    db: Session,
    *,
    search: str | None = None,
    status: str | None = None,
    species: str | None = None,
    condition: str | None = None,
    contributor_id: str | None = None,
) -> list[models.Tree]:
    """Return trees newest first; blank filters are ignored."""

    query = db.query(models.Tree)
    if search:
        query = query.filter(_search_clause(search))
    if status:
        query = query.filter(models.Tree.status == status)
    if species:
        query = query.filter(models.Tree.species == species)
    if condition:
        query = query.filter(models.Tree.condition == condition)
    if contributor_id:
        query = query.filter(models.Tree.contributor_id == contributor_id)
    return _ordered(query).all()


def search_trees(db: Session, term: str) -> list[models.Tree]:
    return list_trees(db, search=term)


def list_trees_by_status(db: Session, status: str) -> list[models.Tree]:
    return list_trees(db, status=status)


def list_trees_by_user(db: Session, user_id: str) -> list[models.Tree]:
    return list_trees(db, contributor_id=user_id)


def get_tree(db: Session, tree_id: int) -> models.Tree | None:
    return db.get(models.Tree, tree_id)


def create_tree(
    db: Session,
    payload: schemas.TreeCreate,
    *,
    contributor_id: str,
    photo_url: str | None = None,
) -> models.Tree:
    """Persist a new pending observation, then run the milestone check."""

    tree = models.Tree(
        **payload.model_dump(),
        photo_url=photo_url,
        contributor_id=contributor_id,
        status="pending",
    )
    db.add(tree)
    try:
        db.commit()
    except Exception:
        db.rollback()
        # the row never landed, so the uploaded file has no owner
        delete_photo(photo_url)
        raise
    db.refresh(tree)
    logger.info("Tree %s submitted by %s", tree.id, contributor_id)

    # runs against the approved count, so a fresh pending tree rarely changes it
    badge_service.check_tree_count_badges(db, contributor_id)
    return tree


def review_tree(
    db: Session,
    tree_id: int,
    *,
    status: str,
    reviewer_id: str | None,
    notes: str | None = None,
) -> models.Tree | None:
    """Move a pending tree to approved or rejected.

    Returns None when the tree does not exist and raises ReviewConflict when
    it was already reviewed.
    """

    if status not in models.REVIEW_STATUSES:
        raise ValueError(f"Invalid review status: {status}")
    tree = db.get(models.Tree, tree_id)
    if tree is None:
        return None
    if tree.status != "pending":
        raise ReviewConflict(f"Tree {tree_id} is already {tree.status}")
    tree.status = status
    tree.reviewed_by = reviewer_id
    tree.reviewed_at = datetime.now(timezone.utc)
    tree.review_notes = notes
    db.commit()
    db.refresh(tree)
    logger.info("Tree %s %s by %s", tree.id, status, reviewer_id)
    return tree


def _healthy_percentage(excellent: int, approved: int) -> int:
    if approved <= 0:
        return 0
    # half-up rounding
    return int(math.floor(excellent * 100 / approved + 0.5))


def get_tree_stats(db: Session) -> schemas.TreeStats:
    approved = models.Tree.status == "approved"

    total_trees = db.query(func.count(models.Tree.id)).scalar() or 0
    approved_count = db.query(func.count(models.Tree.id)).filter(approved).scalar() or 0

    condition_rows = (
        db.query(models.Tree.condition, func.count(models.Tree.id))
        .filter(approved)
        .group_by(models.Tree.condition)
        .all()
    )
    species_rows = (
        db.query(models.Tree.species, func.count(models.Tree.id))
        .filter(approved)
        .group_by(models.Tree.species)
        .all()
    )
    contributors = (
        db.query(func.count(func.distinct(models.Tree.contributor_id))).filter(approved).scalar()
        or 0
    )
    recent = _ordered(db.query(models.Tree).filter(approved)).limit(RECENT_TREE_LIMIT).all()

    condition_distribution = {condition: int(count) for condition, count in condition_rows}
    species_distribution = {species: int(count) for species, count in species_rows}

    return schemas.TreeStats(
        total_trees=int(total_trees),
        species=len(species_distribution),
        contributors=int(contributors),
        healthy_percentage=_healthy_percentage(
            condition_distribution.get("excellent", 0), int(approved_count)
        ),
        species_distribution=species_distribution,
        condition_distribution=condition_distribution,
        recent_trees=[_recent_tree(tree) for tree in recent],
    )


def _recent_tree(tree: models.Tree) -> schemas.RecentTreeOut:
    fields = schemas.TreeOut.model_validate(tree).model_dump()
    return schemas.RecentTreeOut(**fields, contributor=tree.contributor_id)


def list_tree_species(db: Session) -> list[models.TreeSpecies]:
    return db.query(models.TreeSpecies).order_by(models.TreeSpecies.id.asc()).all()


def get_tree_species(db: Session, name: str) -> models.TreeSpecies | None:
    return db.query(models.TreeSpecies).filter(models.TreeSpecies.name == name).first()
