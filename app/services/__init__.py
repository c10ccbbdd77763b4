"""
Service layer: results assembly and medal awarding
"""
from .results import load_results, competition_results, judge_entries, export_payload
from .medals import award_medal_points_for_competition, award_medal_points_for_entry

__all__ = [
    "load_results",
    "competition_results",
    "judge_entries",
    "export_payload",
    "award_medal_points_for_competition",
    "award_medal_points_for_entry",
]
