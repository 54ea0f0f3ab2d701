"""Server-rendered pages for contributors and reviewers."""

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..auth import get_contributor, get_optional_user
from ..database import get_db
from ..rbac import allow_reviewers, require_reviewer, visible_status
from ..services import badges as badge_service
from ..services import trees as tree_service
from ..storage import InvalidPhoto, save_photo
from .. import models, presentation, schemas
from .auth import issue_session, sign_in
from .trees import read_tree_submission, parse_tree_submission

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.globals.update(
    condition_label=presentation.condition_label,
    condition_color=presentation.condition_color,
    status_labels=presentation.STATUS_LABELS,
    badge_icons=presentation.BADGE_ICONS,
    height_text=presentation.height_text,
    circumference_text=presentation.circumference_text,
)

router = APIRouter(tags=["pages"], include_in_schema=False)


def _render(request: Request, name: str, context: dict, status_code: int = 200):
    context.setdefault("viewer", None)
    context.setdefault("notice", presentation.NOTICES.get(request.query_params.get("notice", "")))
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _species_names(db: Session) -> list[str]:
    return [species.name for species in tree_service.list_tree_species(db)]


@router.get("/", response_class=HTMLResponse)
async def home_page(
    request: Request,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    stats = tree_service.get_tree_stats(db)
    return _render(request, "home.html", {"viewer": viewer, "stats": stats})


@router.get("/add-tree", response_class=HTMLResponse)
async def add_tree_page(
    request: Request,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    return _render(
        request,
        "add_tree.html",
        {"viewer": viewer, "species_names": _species_names(db), "values": {}, "errors": {}},
    )


@router.post("/add-tree", response_class=HTMLResponse)
async def submit_tree_page(
    request: Request,
    db: Session = Depends(get_db),
    contributor: models.User = Depends(get_contributor),
):
    fields, photo = await read_tree_submission(request)
    try:
        payload = parse_tree_submission(fields)
    except RequestValidationError as exc:
        return _render(
            request,
            "add_tree.html",
            {
                "species_names": _species_names(db),
                "values": fields,
                "errors": presentation.form_errors(list(exc.errors())),
            },
            status_code=400,
        )

    photo_url = None
    if photo is not None:
        try:
            photo_url = save_photo(await photo.read(), photo.filename, content_type=photo.content_type)
        except InvalidPhoto as exc:
            return _render(
                request,
                "add_tree.html",
                {
                    "species_names": _species_names(db),
                    "values": fields,
                    "errors": {"photo": str(exc)},
                },
                status_code=400,
            )
    tree_service.create_tree(db, payload, contributor_id=contributor.id, photo_url=photo_url)
    return RedirectResponse(url="/?notice=submitted", status_code=303)


@router.get("/trees", response_class=HTMLResponse)
async def tree_list_page(
    request: Request,
    search: str | None = None,
    status: str | None = None,
    species: str | None = None,
    condition: str | None = None,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    trees = tree_service.list_trees(
        db,
        search=search or None,
        status=visible_status(viewer, status or None),
        species=species or None,
        condition=condition or None,
    )
    filters = {
        "search": search or "",
        "status": status or "",
        "species": species or "",
        "condition": condition or "",
    }
    return _render(
        request,
        "tree_data.html",
        {
            "viewer": viewer,
            "trees": trees,
            "filters": filters,
            "species_names": _species_names(db),
            "conditions": models.TREE_CONDITIONS,
            "statuses": models.TREE_STATUSES,
        },
    )


@router.get("/map", response_class=HTMLResponse)
async def map_page(
    request: Request,
    condition: str | None = None,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    trees = tree_service.list_trees(db, status="approved", condition=condition or None)
    return _render(
        request,
        "map.html",
        {
            "viewer": viewer,
            "markers": presentation.tree_markers(trees),
            "center": presentation.map_center(trees),
            "legend": [
                (presentation.condition_label(c), presentation.condition_color(c))
                for c in models.TREE_CONDITIONS
            ],
        },
    )


@router.get("/statistics", response_class=HTMLResponse)
async def statistics_page(
    request: Request,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    stats = tree_service.get_tree_stats(db)
    return _render(
        request,
        "statistics.html",
        {
            "viewer": viewer,
            "stats": stats,
            "species_bars": presentation.species_bars(stats),
            "condition_rows": presentation.condition_rows(stats),
        },
    )


@router.get("/my-page", response_class=HTMLResponse)
async def my_page(
    request: Request,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_optional_user),
):
    try:
        user = viewer or get_contributor(db=db, user=None)
    except HTTPException:
        return RedirectResponse(url="/login", status_code=303)
    trees = tree_service.list_trees_by_user(db, user.id)
    return _render(
        request,
        "my_page.html",
        {
            "viewer": viewer,
            "user": user,
            "trees": trees,
            "approved_count": sum(1 for tree in trees if tree.status == "approved"),
            "species_counts": presentation.species_counts(trees),
            "badges": badge_service.list_user_badges(db, user.id),
            "stats": tree_service.get_tree_stats(db),
        },
    )


@router.get("/review", response_class=HTMLResponse)
async def review_queue_page(
    request: Request,
    db: Session = Depends(get_db),
    reviewer: models.User | None = Depends(allow_reviewers),
):
    return _render(
        request,
        "review.html",
        {"viewer": reviewer, "trees": tree_service.list_trees_by_status(db, "pending")},
    )


@router.post("/review/{tree_id}")
async def review_tree_page(
    tree_id: int,
    request: Request,
    db: Session = Depends(get_db),
    reviewer: models.User = Depends(require_reviewer),
):
    form = await request.form()
    status = form.get("status")
    if status not in models.REVIEW_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    try:
        tree = tree_service.review_tree(
            db,
            tree_id,
            status=status,
            reviewer_id=reviewer.id if reviewer else None,
            notes=(form.get("notes") or None),
        )
    except tree_service.ReviewConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return RedirectResponse(url="/review?notice=reviewed", status_code=303)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return _render(request, "login.html", {"viewer": None, "error": None, "email": ""})


@router.post("/login")
async def login_form(request: Request, db: Session = Depends(get_db)):
    form = await request.form()
    email = (form.get("email") or "").strip()
    try:
        credentials = schemas.LoginRequest(email=email, password=form.get("password") or "")
    except ValidationError:
        return _render(
            request,
            "login.html",
            {"viewer": None, "error": "이메일과 비밀번호를 확인해주세요.", "email": email},
            status_code=400,
        )
    try:
        user, _ = sign_in(db, credentials.email, credentials.password)
    except HTTPException as exc:
        return _render(
            request,
            "login.html",
            {"viewer": None, "error": exc.detail, "email": email},
            status_code=exc.status_code,
        )
    response = RedirectResponse(url="/my-page?notice=signed-in", status_code=303)
    issue_session(response, user)
    return response
