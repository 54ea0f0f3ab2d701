from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from ..storage import resolve_photo_path

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.get("/{name}")
async def get_photo(name: str):
    path = resolve_photo_path(name)
    if path is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return FileResponse(path)
