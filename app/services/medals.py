"""
Season medal point awarding

One point per first place in a medal-program bucket (category + age
division + ability level + division type). Group entries credit every
named member; solo entries credit the competitor.
"""
from typing import Dict, Any, List

from loguru import logger

from database.supabase_client import ScoringDB
from ranking.calculator import ResultsCalculator, medal_recipients


async def award_medal_points_for_entry(db: ScoringDB, entry: Dict[str, Any], competition_id: str) -> List[Dict[str, Any]]:
    """Award the entry's recipients; returns only new awards"""
    awards = []

    for name in medal_recipients(entry):
        result = await db.award_point_to_participant(name, competition_id, entry["id"])
        if result["awarded"]:
            participant = result["participant"]
            awards.append({
                "name": name,
                "points": participant.get("total_points"),
                "level": participant.get("current_medal_level"),
            })

    return awards


async def award_medal_points_for_competition(db: ScoringDB, competition_id: str) -> Dict[str, Any]:
    """
    Award season points for every first-place medal-program entry

    Safe to run repeatedly: awards already recorded for a
    competition/entry/dancer are skipped.
    """
    logger.info(f"Awarding medal points for competition {competition_id}")

    competition = await db.get_competition(competition_id)
    entries = [
        e for e in await db.get_competition_entries(competition_id, with_names=False)
        if e.get("is_medal_program")
    ]
    if not entries:
        return {
            "total_awarded": 0,
            "first_place_count": 0,
            "summary": [],
            "message": "No medal program entries found",
        }

    scores = await db.get_competition_scores(competition_id)
    calculator = ResultsCalculator(competition=competition, entries=entries, scores=scores)
    winners = calculator.first_place_entries(medal_program_only=True)
    logger.info(f"Found {len(winners)} first place medal program entries")

    total_awarded = 0
    summary = []
    for entry in winners:
        awards = await award_medal_points_for_entry(db, entry, competition_id)
        total_awarded += len(awards)
        summary.append({
            "entry_id": entry["id"],
            "entry": entry.get("competitor_name"),
            "average_score": entry.get("average_score"),
            "awards": awards,
        })

    logger.info(f"Medal points awarded to {total_awarded} participants")
    return {
        "total_awarded": total_awarded,
        "first_place_count": len(winners),
        "summary": summary,
        "message": None,
    }
