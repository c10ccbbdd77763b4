"""
Entries API
"""
from typing import List, Dict, Any

from fastapi import APIRouter, Depends, Query

from database.supabase_client import ScoringDB
from topaz.models import Entry, EntryCreate, EntryUpdate
from app.dependencies import get_db

router = APIRouter(prefix="/api", tags=["Entries"])


@router.get("/competitions/{competition_id}/entries")
async def list_entries(competition_id: str, db: ScoringDB = Depends(get_db)) -> List[Dict[str, Any]]:
    """Entries by entry number, with category and age division names"""
    return await db.get_competition_entries(competition_id)


@router.get("/competitions/{competition_id}/entries/next-number")
async def next_entry_number(competition_id: str, db: ScoringDB = Depends(get_db)) -> Dict[str, int]:
    return {"entry_number": await db.get_next_entry_number(competition_id)}


@router.post("/entries", response_model=Entry, status_code=201)
async def create_entry(body: EntryCreate, db: ScoringDB = Depends(get_db)):
    return await db.create_entry(body.model_dump())


@router.post("/entries/bulk", response_model=List[Entry], status_code=201)
async def bulk_create_entries(body: List[EntryCreate], db: ScoringDB = Depends(get_db)):
    return await db.bulk_create_entries([e.model_dump() for e in body])


@router.get("/entries/{entry_id}")
async def get_entry(entry_id: str, db: ScoringDB = Depends(get_db)) -> Dict[str, Any]:
    return await db.get_entry(entry_id)


@router.patch("/entries/{entry_id}", response_model=Entry)
async def update_entry(entry_id: str, body: EntryUpdate, db: ScoringDB = Depends(get_db)):
    return await db.update_entry(entry_id, body.model_dump(exclude_unset=True))


@router.delete("/entries/{entry_id}", status_code=204)
async def delete_entry(entry_id: str, db: ScoringDB = Depends(get_db)):
    await db.delete_entry(entry_id)


@router.post("/entries/{entry_id}/medal-points", response_model=Entry)
async def add_medal_points(
    entry_id: str,
    points: int = Query(1, ge=1),
    db: ScoringDB = Depends(get_db)
):
    """Add points to the entry's own medal counter"""
    return await db.add_medal_points(entry_id, points)
