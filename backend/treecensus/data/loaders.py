"""Cached loaders and seeding for static reference catalogs."""

# purpose: expose the tree species catalog and milestone badge definitions
# status: active
# depends_on: json, pathlib

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from sqlalchemy.orm import Session

from .. import models, schemas
from ..services import badges as badge_service

_BASE_DIR = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> Any:
    """Return parsed JSON payload from disk."""

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=None)
def get_tree_species_catalog() -> tuple[dict[str, Any], ...]:
    """Return cached tree species reference entries."""

    payload = _load_json(_BASE_DIR / "tree_species.json")
    return tuple(payload)


@lru_cache(maxsize=None)
def get_milestone_badge_catalog() -> tuple[dict[str, Any], ...]:
    """Return cached tree_count badge definitions."""

    payload = _load_json(_BASE_DIR / "milestone_badges.json")
    return tuple(payload)


def seed_reference_data(db: Session) -> dict[str, int]:
    """Insert missing species and milestone badges; existing rows are left alone."""

    added_species = 0
    existing_species = {name for (name,) in db.query(models.TreeSpecies.name).all()}
    for entry in get_tree_species_catalog():
        if entry["name"] in existing_species:
            continue
        db.add(models.TreeSpecies(**entry))
        added_species += 1
    db.commit()

    added_badges = 0
    for entry in get_milestone_badge_catalog():
        if badge_service.get_badge_by_type_and_requirement(db, entry["type"], entry["requirement"]):
            continue
        badge_service.create_badge(db, schemas.BadgeCreate(**entry))
        added_badges += 1

    if added_species or added_badges:
        logger.info("Seeded %d species and %d badges", added_species, added_badges)
    return {"species": added_species, "badges": added_badges}
