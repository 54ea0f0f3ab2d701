"""Helpers for persisting uploaded tree photos on local disk."""

from __future__ import annotations

import os
import re
from pathlib import Path
from uuid import uuid4

# purpose: centralize photo writes and lookups for tree submissions
# status: active

UPLOAD_URL_PREFIX = "/uploads"
GENERIC_CONTENT_TYPE = "application/octet-stream"


class InvalidPhoto(ValueError):
    """Raised for uploads that are not acceptable photos."""


def get_upload_dir() -> str:
    """Return the configured upload directory, creating it when needed."""

    upload_dir = os.getenv("UPLOAD_DIR", "uploads")
    os.makedirs(upload_dir, exist_ok=True)
    return upload_dir


def _build_object_name(filename: str | None) -> str:
    base = os.path.basename(filename or "")
    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", base).strip("._") or "photo"
    return f"{uuid4().hex}_{safe_name}"


def save_photo(data: bytes, filename: str | None, *, content_type: str | None = None) -> str:
    """Write photo bytes to the upload directory and return its public URL."""

    if not data:
        raise InvalidPhoto("Empty photo upload")
    if content_type and not (content_type.startswith("image/") or content_type == GENERIC_CONTENT_TYPE):
        raise InvalidPhoto(f"Unsupported photo type: {content_type}")
    object_name = _build_object_name(filename)
    storage_path = os.path.join(get_upload_dir(), object_name)
    with open(storage_path, "wb") as handle:
        handle.write(data)
    return f"{UPLOAD_URL_PREFIX}/{object_name}"


def resolve_photo_path(name: str) -> Path | None:
    """Map a stored object name back to a file, refusing path traversal."""

    if not name or name != os.path.basename(name) or name.startswith("."):
        return None
    path = Path(get_upload_dir()) / name
    if not path.is_file():
        return None
    return path


def delete_photo(photo_url: str | None) -> None:
    """Remove a stored photo, used when the owning row could not be written."""

    if not photo_url or not photo_url.startswith(f"{UPLOAD_URL_PREFIX}/"):
        return
    path = resolve_photo_path(photo_url[len(UPLOAD_URL_PREFIX) + 1 :])
    if path is not None:
        path.unlink(missing_ok=True)
