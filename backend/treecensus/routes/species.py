from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import trees as tree_service
from .. import schemas

router = APIRouter(prefix="/api/tree-species", tags=["species"])


@router.get("", response_model=list[schemas.TreeSpeciesOut])
async def list_species(db: Session = Depends(get_db)):
    return tree_service.list_tree_species(db)


@router.get("/{name}", response_model=schemas.TreeSpeciesOut)
async def get_species(name: str, db: Session = Depends(get_db)):
    species = tree_service.get_tree_species(db, name)
    if not species:
        raise HTTPException(status_code=404, detail="Species not found")
    return species
