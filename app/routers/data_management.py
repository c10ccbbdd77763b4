"""
Season and data management API

Destructive operations; the nuclear reset requires a typed confirmation.
"""
from typing import List, Dict, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from database.supabase_client import ScoringDB
from database.storage import PhotoStorage
from topaz.models import BulkResult
from app.dependencies import get_db, get_storage

router = APIRouter(prefix="/api/data", tags=["Data Management"])

NUCLEAR_CONFIRMATION = "DELETE EVERYTHING"


class Confirmation(BaseModel):
    confirm: str


@router.post("/reset-medal-points")
async def reset_medal_points(db: ScoringDB = Depends(get_db)) -> Dict[str, Any]:
    return await db.reset_all_medal_points()


@router.get("/test-competitions")
async def test_competitions(db: ScoringDB = Depends(get_db)) -> List[Dict[str, Any]]:
    return await db.get_test_competitions()


@router.delete("/test-competitions", response_model=BulkResult)
async def delete_test_competitions(
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
):
    return await db.delete_test_competitions(storage=storage)


@router.post("/archive-all")
async def archive_all(db: ScoringDB = Depends(get_db)) -> Dict[str, int]:
    return {"archived": await db.archive_all_competitions()}


@router.post("/nuclear-reset", response_model=BulkResult)
async def nuclear_reset(
    body: Confirmation,
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
):
    if body.confirm != NUCLEAR_CONFIRMATION:
        raise HTTPException(status_code=400, detail=f'Type "{NUCLEAR_CONFIRMATION}" to confirm')
    return await db.nuclear_reset(storage=storage)
