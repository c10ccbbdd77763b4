"""
Medal program API
"""
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from database.supabase_client import ScoringDB
from topaz.models import LeaderboardEntry, MedalAward, MedalAwardSummary, BulkResult
from app.dependencies import get_db
from app.services.medals import award_medal_points_for_competition

router = APIRouter(prefix="/api", tags=["Medals"])


class WinnerList(BaseModel):
    entry_ids: List[str]


@router.post("/competitions/{competition_id}/medals/award", response_model=MedalAwardSummary)
async def award_competition_medals(competition_id: str, db: ScoringDB = Depends(get_db)):
    """Award one season point per first place in medal-program combinations"""
    return await award_medal_points_for_competition(db, competition_id)


@router.get("/competitions/{competition_id}/medals/awards", response_model=List[MedalAward])
async def competition_medal_awards(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_competition_medal_awards(competition_id)


@router.post("/medals/entries/award", response_model=BulkResult)
async def award_entry_points(body: WinnerList, db: ScoringDB = Depends(get_db)):
    """Add one point to each listed entry's own counter"""
    return await db.award_medal_points_to_winners(body.entry_ids)


@router.get("/medals/leaderboard", response_model=List[LeaderboardEntry])
async def season_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: ScoringDB = Depends(get_db)
):
    return await db.get_season_leaderboard(limit)


@router.get("/medals/participants/{participant_name}")
async def participant_details(participant_name: str, db: ScoringDB = Depends(get_db)) -> Dict[str, Any]:
    return await db.get_participant_details(participant_name)
