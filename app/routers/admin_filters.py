"""
Admin filter API

One filter per competition, shared by every judge screen.
"""
from fastapi import APIRouter, Depends

from database.supabase_client import ScoringDB
from topaz.models import AdminFilters
from app.dependencies import get_db

router = APIRouter(prefix="/api/competitions/{competition_id}/admin-filters", tags=["Admin Filters"])


@router.get("", response_model=AdminFilters)
async def get_admin_filters(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_admin_filters(competition_id)


@router.put("", response_model=AdminFilters)
async def update_admin_filters(competition_id: str, body: AdminFilters, db: ScoringDB = Depends(get_db)):
    return await db.update_admin_filters(competition_id, body.model_dump())


@router.delete("", response_model=AdminFilters)
async def clear_admin_filters(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.clear_admin_filters(competition_id)
