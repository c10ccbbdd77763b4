"""
Results API
"""
from typing import Dict, Any

from fastapi import APIRouter, Depends, Query

from database.supabase_client import ScoringDB
from ranking.calculator import calculate_average_score, get_category_breakdown
from app.dependencies import get_db
from app.services.results import competition_results

router = APIRouter(prefix="/api", tags=["Results"])


@router.get("/competitions/{competition_id}/results")
async def get_results(
    competition_id: str,
    top: int = Query(4, ge=1, le=20, description="Top overall size"),
    db: ScoringDB = Depends(get_db)
) -> Dict[str, Any]:
    """Overall rankings, per-combination rankings, top overall and judge progress"""
    return await competition_results(db, competition_id, top=top)


@router.get("/entries/{entry_id}/breakdown")
async def entry_breakdown(entry_id: str, db: ScoringDB = Depends(get_db)) -> Dict[str, Any]:
    """Per sub-score totals and averages across the entry's judges"""
    entry = await db.get_entry(entry_id)
    scores = await db.get_entry_scores(entry_id)
    return {
        "entry": entry,
        "scores": scores,
        "average_score": calculate_average_score(scores),
        "breakdown": get_category_breakdown(scores),
    }
