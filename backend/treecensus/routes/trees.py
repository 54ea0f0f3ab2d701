import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from ..auth import get_contributor, get_optional_user
from ..database import get_db
from ..rbac import allow_reviewers, require_reviewer, visible_status
from ..services import trees as tree_service
from ..storage import InvalidPhoto, save_photo
from .. import models, schemas

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trees", tags=["trees"])

# browser FormData serialises unset fields as these strings
_EMPTY_FORM_VALUES = {"", "undefined", "null"}


async def read_tree_submission(request: Request) -> tuple[dict, UploadFile | None]:
    """Split a JSON or multipart submission into scalar fields and the photo."""

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            raw = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")
        if not isinstance(raw, dict):
            raise HTTPException(status_code=400, detail="Expected a JSON object")
        return raw, None

    form = await request.form()
    fields: dict = {}
    photo = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == "photo" and value.filename:
                photo = value
            continue
        if value.strip() in _EMPTY_FORM_VALUES:
            continue
        fields[key] = value
    return fields, photo


def parse_tree_submission(fields: dict) -> schemas.TreeCreate:
    try:
        return schemas.TreeCreate.model_validate(fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False))


@router.get("", response_model=list[schemas.TreeOut])
async def list_trees(
    search: str | None = None,
    status: str | None = None,
    species: str | None = None,
    condition: str | None = None,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    return tree_service.list_trees(
        db,
        search=search or None,
        status=visible_status(viewer, status or None),
        species=species or None,
        condition=condition or None,
    )


@router.get("/pending", response_model=list[schemas.TreeOut])
async def list_pending_trees(
    db: Session = Depends(get_db),
    reviewer: models.User | None = Depends(allow_reviewers),
):
    return tree_service.list_trees_by_status(db, "pending")


@router.get("/stats/overview", response_model=schemas.TreeStats)
async def tree_stats(db: Session = Depends(get_db)):
    return tree_service.get_tree_stats(db)


@router.get("/{tree_id}", response_model=schemas.TreeOut)
async def get_tree(
    tree_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    tree = tree_service.get_tree(db, tree_id)
    if not tree or visible_status(viewer, None) not in (None, tree.status):
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree


@router.post("", response_model=schemas.TreeOut, status_code=201)
async def create_tree(
    request: Request,
    db: Session = Depends(get_db),
    contributor: models.User = Depends(get_contributor),
):
    fields, photo = await read_tree_submission(request)
    payload = parse_tree_submission(fields)

    photo_url = None
    if photo is not None:
        try:
            photo_url = save_photo(await photo.read(), photo.filename, content_type=photo.content_type)
        except InvalidPhoto as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    return tree_service.create_tree(
        db, payload, contributor_id=contributor.id, photo_url=photo_url
    )


@router.patch("/{tree_id}/review", response_model=schemas.TreeOut)
async def review_tree(
    tree_id: int,
    review: schemas.TreeReview,
    db: Session = Depends(get_db),
    reviewer: models.User = Depends(require_reviewer),
):
    try:
        tree = tree_service.review_tree(
            db,
            tree_id,
            status=review.status,
            reviewer_id=reviewer.id if reviewer else None,
            notes=review.notes,
        )
    except tree_service.ReviewConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree
