"""
Scores API
"""
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, Depends, Query, HTTPException

from database.supabase_client import ScoringDB, RecordNotFoundError
from topaz.models import Score, ScoreSubmit, ScoreUpdate, BulkResult
from app.dependencies import get_db
from app.services.results import judge_entries

router = APIRouter(prefix="/api", tags=["Scores"])


async def _check_judge(db: ScoringDB, competition_id: str, judge_number: int) -> None:
    competition = await db.get_competition(competition_id)
    judges_count = competition.get("judges_count") or 0
    if judge_number > judges_count:
        raise HTTPException(
            status_code=400,
            detail=f"Judge {judge_number} does not exist (competition has {judges_count} judges)"
        )


async def _check_entry(db: ScoringDB, competition_id: str, entry_id: str) -> None:
    entry = await db.get_entry(entry_id)
    if entry.get("competition_id") != competition_id:
        raise HTTPException(
            status_code=400,
            detail=f"Entry {entry_id} is not part of competition {competition_id}"
        )


@router.post("/scores", response_model=Score, status_code=201)
async def submit_score(body: ScoreSubmit, db: ScoringDB = Depends(get_db)):
    """
    Save one judge's score for one entry

    Re-submitting replaces the judge's previous score. Sub-scores must be
    0-25 with at most 2 decimals.
    """
    await _check_judge(db, body.competition_id, body.judge_number)
    await _check_entry(db, body.competition_id, body.entry_id)
    return await db.submit_score(body.model_dump())


@router.post("/scores/bulk", response_model=BulkResult)
async def bulk_create_scores(body: List[ScoreSubmit], db: ScoringDB = Depends(get_db)):
    """Insert many scores; rows for unknown or foreign entries are reported as failed"""
    rows, rejected = [], []
    for score in body:
        try:
            entry = await db.get_entry(score.entry_id)
        except RecordNotFoundError as e:
            rejected.append({"id": score.entry_id, "error": str(e)})
            continue
        if entry.get("competition_id") != score.competition_id:
            rejected.append({"id": score.entry_id, "error": f"Entry is not part of competition {score.competition_id}"})
            continue
        rows.append(score.model_dump())

    results = await db.bulk_create_scores(rows) if rows else {"success": [], "failed": []}
    results["failed"] = rejected + results["failed"]
    return results


@router.get("/scores/existing", response_model=Optional[Score])
async def existing_score(
    entry_id: str = Query(...),
    judge_number: int = Query(..., ge=1),
    db: ScoringDB = Depends(get_db)
):
    return await db.check_existing_score(entry_id, judge_number)


@router.patch("/scores/{score_id}", response_model=Score)
async def update_score(score_id: str, body: ScoreUpdate, db: ScoringDB = Depends(get_db)):
    return await db.update_score(score_id, body.model_dump(exclude_unset=True))


@router.delete("/scores/{score_id}", status_code=204)
async def delete_score(score_id: str, db: ScoringDB = Depends(get_db)):
    await db.delete_score(score_id)


@router.get("/entries/{entry_id}/scores", response_model=List[Score])
async def entry_scores(entry_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_entry_scores(entry_id)


@router.get("/competitions/{competition_id}/scores", response_model=List[Score])
async def competition_scores(competition_id: str, db: ScoringDB = Depends(get_db)):
    return await db.get_competition_scores(competition_id)


@router.get("/competitions/{competition_id}/judges/{judge_number}/scores", response_model=List[Score])
async def judge_scores(competition_id: str, judge_number: int, db: ScoringDB = Depends(get_db)):
    return await db.get_judge_scores(competition_id, judge_number)


@router.get("/competitions/{competition_id}/judges/{judge_number}/entries")
async def judge_entry_list(competition_id: str, judge_number: int, db: ScoringDB = Depends(get_db)) -> Dict[str, Any]:
    """Entries visible to the judge under the admin filter, with the judge's scores"""
    await _check_judge(db, competition_id, judge_number)
    return await judge_entries(db, competition_id, judge_number)
