"""View helpers shared by the HTML pages: labels, marker data and chart rows."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from . import models, schemas

CONDITION_COLORS = {
    "excellent": "#10b981",
    "fair": "#f59e0b",
    "poor": "#ef4444",
}
CONDITION_LABELS = {
    "excellent": "우수",
    "fair": "보통",
    "poor": "나쁨",
}
CONDITION_EMOJI = {
    "excellent": "😊",
    "fair": "😐",
    "poor": "☹️",
}
STATUS_LABELS = {
    "pending": "검토 중",
    "approved": "승인",
    "rejected": "반려",
}
BADGE_ICONS = {
    "education": "🎓",
    "tree_count": "🌿",
}

NOTICES = {
    "submitted": "나무가 성공적으로 등록되었습니다. 검토 후 승인됩니다.",
    "reviewed": "검토 결과가 저장되었습니다.",
    "signed-in": "로그인되었습니다.",
}

DEFAULT_MAP_CENTER = (37.5665, 126.9780)


def condition_color(condition: str) -> str:
    return CONDITION_COLORS.get(condition, CONDITION_COLORS["poor"])


def condition_label(condition: str) -> str:
    return CONDITION_LABELS.get(condition, condition)


def height_text(tree: models.Tree) -> str | None:
    if tree.height_manual:
        return f"{tree.height_manual:g} m"
    if tree.height_floors:
        return f"{tree.height_floors}층 높이"
    return None


def circumference_text(tree: models.Tree) -> str | None:
    if tree.circumference_manual:
        return f"{tree.circumference_manual:g} cm"
    if tree.circumference_hands:
        return f"{tree.circumference_hands} 뼘"
    return None


def tree_marker(tree: models.Tree) -> dict[str, Any]:
    """Map one tree onto the data a Leaflet circle marker needs."""

    return {
        "id": tree.id,
        "lat": tree.latitude,
        "lng": tree.longitude,
        "color": condition_color(tree.condition),
        "title": f"{tree.species} 나무",
        "condition": f"{condition_label(tree.condition)} {CONDITION_EMOJI.get(tree.condition, '')}".strip(),
        "height": height_text(tree),
        "circumference": circumference_text(tree),
        "contributor": tree.contributor_id,
        "created": tree.created_at.date().isoformat() if tree.created_at else None,
        "photo": tree.photo_url,
    }


def tree_markers(trees: Iterable[models.Tree]) -> list[dict[str, Any]]:
    return [tree_marker(tree) for tree in trees]


def map_center(trees: list[models.Tree]) -> tuple[float, float]:
    if not trees:
        return DEFAULT_MAP_CENTER
    lat = sum(tree.latitude for tree in trees) / len(trees)
    lng = sum(tree.longitude for tree in trees) / len(trees)
    return (lat, lng)


def species_bars(stats: schemas.TreeStats, limit: int = 5) -> list[dict[str, Any]]:
    """Top species by approved count with their share of all trees."""

    ranked = sorted(stats.species_distribution.items(), key=lambda item: (-item[1], item[0]))
    bars = []
    for species, count in ranked[:limit]:
        percentage = (count / stats.total_trees * 100) if stats.total_trees else 0
        bars.append({"species": species, "count": count, "percentage": round(percentage, 1)})
    return bars


def condition_rows(stats: schemas.TreeStats) -> list[dict[str, Any]]:
    approved = sum(stats.condition_distribution.values())
    rows = []
    for condition in models.TREE_CONDITIONS:
        count = stats.condition_distribution.get(condition, 0)
        rows.append(
            {
                "condition": condition,
                "label": condition_label(condition),
                "emoji": CONDITION_EMOJI[condition],
                "color": condition_color(condition),
                "count": count,
                "percentage": round(count / approved * 100) if approved else 0,
            }
        )
    return rows


def species_counts(trees: Iterable[models.Tree]) -> list[tuple[str, int]]:
    return Counter(tree.species for tree in trees).most_common()


def form_errors(errors: list[dict[str, Any]]) -> dict[str, str]:
    """Flatten validation errors into field -> first message."""

    flattened: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = loc[-1] if loc else "__all__"
        flattened.setdefault(field, error.get("msg", "Invalid value"))
    return flattened
