"""
Competitions API
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from database.supabase_client import ScoringDB
from database.storage import PhotoStorage
from topaz.models import (
    Competition,
    CompetitionCreate,
    CompetitionUpdate,
    CompetitionStats,
    BulkResult,
)
from app.dependencies import get_db, get_storage

router = APIRouter(prefix="/api/competitions", tags=["Competitions"])


class BulkDeleteRequest(BaseModel):
    competition_ids: List[str]


@router.get("", response_model=List[Competition])
async def list_competitions(
    status: str = Query("all", description="active / completed / all"),
    include_archived: bool = Query(False),
    db: ScoringDB = Depends(get_db)
):
    """Competitions, newest first (archived hidden by default)"""
    return await db.get_all_competitions(status=status, include_archived=include_archived)


@router.get("/archived", response_model=List[Competition])
async def list_archived_competitions(db: ScoringDB = Depends(get_db)):
    return await db.get_archived_competitions()


@router.post("", response_model=Competition, status_code=201)
async def create_competition(body: CompetitionCreate, db: ScoringDB = Depends(get_db)):
    return await db.create_competition(body.model_dump())


@router.post("/bulk-delete", response_model=BulkResult)
async def bulk_delete_competitions(
    body: BulkDeleteRequest,
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
):
    return await db.bulk_delete_competitions(body.competition_ids, storage=storage)


@router.get("/{competition_id}", response_model=Competition)
async def get_competition(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_competition(competition_id)


@router.patch("/{competition_id}", response_model=Competition)
async def update_competition(
    competition_id: str,
    body: CompetitionUpdate,
    db: ScoringDB = Depends(get_db)
):
    return await db.update_competition(competition_id, body.model_dump(exclude_unset=True))


@router.delete("/{competition_id}", status_code=204)
async def delete_competition(
    competition_id: str,
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
):
    """Delete the competition with its photos, scores, entries, divisions and categories"""
    await db.get_competition(competition_id)
    await db.delete_competition(competition_id, storage=storage)


@router.post("/{competition_id}/archive", response_model=Competition)
async def archive_competition(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.archive_competition(competition_id)


@router.post("/{competition_id}/restore", response_model=Competition)
async def restore_competition(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.restore_competition(competition_id)


@router.get("/{competition_id}/stats", response_model=CompetitionStats)
async def competition_stats(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_competition_stats(competition_id)
