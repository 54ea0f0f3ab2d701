"""Python client for the tree census API with a key-addressed response cache.

Reads go through :class:`QueryClient`, which caches decoded JSON by query key
(endpoint path plus the active, non-empty filter values). Mutations invalidate
the keys they affect so the next read goes back to the server.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import requests

from . import schemas

logger = logging.getLogger(__name__)

QueryKey = tuple[str, tuple[tuple[str, str], ...]]


class ApiError(Exception):
    """Raised for any non-2xx API response."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.payload = payload

    @property
    def is_unauthorized(self) -> bool:
        """True for the error shape that should send the user to the login flow."""

        return self.status_code == 401

    @property
    def field_errors(self) -> list[dict]:
        if isinstance(self.payload, dict):
            return list(self.payload.get("errors") or [])
        return []


def make_query_key(path: str, params: Mapping[str, Any] | None = None) -> QueryKey:
    active = tuple(
        sorted((name, str(value)) for name, value in (params or {}).items() if value not in (None, ""))
    )
    return (path, active)


class QueryClient:
    """Cache of GET responses addressed by query key."""

    def __init__(self, session=None, base_url: str = ""):
        self.session = session if session is not None else requests.Session()
        self.base_url = base_url.rstrip("/")
        self._cache: dict[QueryKey, Any] = {}

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def request(self, method: str, path: str, **kwargs) -> Any:
        response = self.session.request(method, self._url(path), **kwargs)
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            detail = payload.get("detail") if isinstance(payload, dict) else None
            message = detail if isinstance(detail, str) else (response.text or "Request failed")
            raise ApiError(response.status_code, message, payload)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def query(self, path: str, params: Mapping[str, Any] | None = None, *, refresh: bool = False) -> Any:
        key = make_query_key(path, params)
        if not refresh and key in self._cache:
            return self._cache[key]
        data = self.request("GET", path, params=dict(key[1]) or None)
        self._cache[key] = data
        return data

    def mutate(self, method: str, path: str, *, invalidate: Iterable[str] = (), **kwargs) -> Any:
        data = self.request(method, path, **kwargs)
        for prefix in invalidate:
            self.invalidate(prefix)
        return data

    def invalidate(self, prefix: str) -> int:
        """Drop every cached key whose path starts with ``prefix``."""

        stale = [key for key in self._cache if key[0].startswith(prefix)]
        for key in stale:
            del self._cache[key]
        if stale:
            logger.debug("Invalidated %d cached queries under %s", len(stale), prefix)
        return len(stale)

    def cached(self, path: str, params: Mapping[str, Any] | None = None) -> bool:
        return make_query_key(path, params) in self._cache

    def clear(self) -> None:
        self._cache.clear()


class TreeCensusClient:
    """High level operations used by pages, scripts and tests."""

    def __init__(self, base_url: str = "", session=None):
        self.queries = QueryClient(session=session, base_url=base_url)

    # trees

    def list_trees(
        self,
        *,
        search: str | None = None,
        status: str | None = None,
        species: str | None = None,
        condition: str | None = None,
    ) -> list[dict]:
        params = {"search": search, "status": status, "species": species, "condition": condition}
        return self.queries.query("/api/trees", params)

    def get_tree(self, tree_id: int) -> dict:
        return self.queries.query(f"/api/trees/{tree_id}")

    def pending_trees(self) -> list[dict]:
        return self.queries.query("/api/trees/pending")

    def stats(self) -> dict:
        return self.queries.query("/api/trees/stats/overview")

    def tree_species(self) -> list[dict]:
        return self.queries.query("/api/tree-species")

    def user_trees(self, user_id: str) -> list[dict]:
        return self.queries.query(f"/api/users/{user_id}/trees")

    def create_tree(
        self,
        tree: schemas.TreeCreate | Mapping[str, Any],
        *,
        photo: tuple[str, bytes, str] | None = None,
    ) -> dict:
        """Validate locally with the shared schema, then submit as multipart."""

        if not isinstance(tree, schemas.TreeCreate):
            tree = schemas.TreeCreate.model_validate(tree)
        fields = {
            name: _form_value(value)
            for name, value in tree.model_dump(by_alias=True, exclude_none=True).items()
        }
        files = {"photo": photo} if photo else None
        return self.queries.mutate(
            "POST",
            "/api/trees",
            data=fields,
            files=files,
            invalidate=("/api/trees", "/api/users"),
        )

    def review_tree(self, tree_id: int, status: str, notes: str | None = None) -> dict:
        review = schemas.TreeReview(status=status, notes=notes)
        return self.queries.mutate(
            "PATCH",
            f"/api/trees/{tree_id}/review",
            json=review.model_dump(by_alias=True, exclude_none=True),
            invalidate=("/api/trees", "/api/users"),
        )

    # badges

    def badges(self) -> list[dict]:
        return self.queries.query("/api/badges")

    def user_badges(self, user_id: str) -> list[dict]:
        return self.queries.query(f"/api/users/{user_id}/badges")

    def create_badge(self, badge: schemas.BadgeCreate | Mapping[str, Any]) -> dict:
        if not isinstance(badge, schemas.BadgeCreate):
            badge = schemas.BadgeCreate.model_validate(badge)
        return self.queries.mutate(
            "POST",
            "/api/badges",
            json=badge.model_dump(by_alias=True, exclude_none=True),
            invalidate=("/api/badges",),
        )

    def award_badge(self, user_id: str, badge_id: int) -> dict:
        return self.queries.mutate(
            "POST",
            f"/api/users/{user_id}/badges/{badge_id}",
            invalidate=(f"/api/users/{user_id}/badges", "/api/auth/user"),
        )

    # session

    def login(self, email: str, password: str) -> dict:
        credentials = schemas.LoginRequest(email=email, password=password)
        data = self.queries.mutate("POST", "/api/login", json=credentials.model_dump())
        # everything cached so far was fetched under the previous identity
        self.queries.clear()
        return data

    def logout(self) -> None:
        self.queries.request("GET", "/api/logout")
        self.queries.clear()

    def current_user(self) -> dict:
        return self.queries.query("/api/auth/user")


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
