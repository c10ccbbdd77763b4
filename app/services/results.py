"""
Competition results assembly

Loads one competition's rows from Supabase and hands them to the
ResultsCalculator.
"""
from typing import Dict, Any, List, Tuple

from loguru import logger

from database.supabase_client import ScoringDB
from ranking.calculator import (
    ResultsCalculator,
    apply_admin_filters,
    calculate_completion_percentage,
)


async def load_results(db: ScoringDB, competition_id: str) -> ResultsCalculator:
    """ResultsCalculator over a competition's current data"""
    competition = await db.get_competition(competition_id)
    entries = await db.get_competition_entries(competition_id, with_names=False)
    scores = await db.get_competition_scores(competition_id)
    categories = await db.get_categories(competition_id)
    age_divisions = await db.get_age_divisions(competition_id)

    return ResultsCalculator(
        competition=competition,
        entries=entries,
        scores=scores,
        categories=categories,
        age_divisions=age_divisions,
    )


async def competition_results(db: ScoringDB, competition_id: str, top: int = 4) -> Dict[str, Any]:
    """
    Results board payload

    Returns:
        {
            "competition": {...},
            "rankings": [entries with average_score, rank, category_rank],
            "groups": [{"category", "variety", "age_division", ..., "entries"}],
            "top_overall": [...],
            "judges": [{"judge_number", "judge_name", "scored", "total", "percentage"}],
            "completion": {"scored_entries", "total_entries", "percentage"}
        }
    """
    calculator = await load_results(db, competition_id)

    groups = []
    for key, group in sorted(calculator.group_rankings().items()):
        groups.append({"key": key, **group})

    ranked = calculator.entries_with_group_rank()
    scored = sum(1 for e in ranked if e["judges_scored"] > 0)

    logger.info(f"Results computed for {competition_id}: {len(ranked)} entries, {len(groups)} groups")

    return {
        "competition": calculator.competition,
        "rankings": ranked,
        "groups": groups,
        "top_overall": calculator.top_overall(top),
        "judges": [
            {
                "judge_number": p.judge_number,
                "judge_name": p.judge_name,
                "scored": p.scored,
                "total": p.total,
                "percentage": p.percentage,
            }
            for p in calculator.judge_progress()
        ],
        "completion": {
            "scored_entries": scored,
            "total_entries": len(ranked),
            "percentage": calculate_completion_percentage(scored, len(ranked)),
        },
    }


async def judge_entries(db: ScoringDB, competition_id: str, judge_number: int) -> Dict[str, Any]:
    """
    Entries a judge should see under the shared admin filter

    Each entry carries the judge's own score (or None).
    """
    filters = await db.get_admin_filters(competition_id)
    entries = await db.get_competition_entries(competition_id)
    own_scores = {s.get("entry_id"): s for s in await db.get_judge_scores(competition_id, judge_number)}

    visible: List[Dict[str, Any]] = []
    for entry in apply_admin_filters(entries, filters):
        visible.append({**entry, "my_score": own_scores.get(entry.get("id"))})

    scored = sum(1 for e in visible if e["my_score"])
    return {
        "filters": filters,
        "entries": visible,
        "scored": scored,
        "total": len(visible),
        "percentage": calculate_completion_percentage(scored, len(visible)),
    }


async def export_payload(db: ScoringDB, competition_id: str) -> Tuple:
    """
    Arguments for the complete workbook and JSON exports

    Returns:
        (competition, categories, age_divisions, entries, scores, rankings, medal_data)
    """
    calculator = await load_results(db, competition_id)

    medal_data = None
    if any(e.get("is_medal_program") for e in calculator.entries):
        medal_data = await db.get_season_leaderboard()

    return (
        calculator.competition,
        calculator.categories,
        calculator.age_divisions,
        calculator.entries,
        calculator.scores,
        calculator.ranked_entries,
        medal_data,
    )
