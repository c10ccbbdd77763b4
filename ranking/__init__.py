"""
TOPAZ scoring and ranking

Judge totals, entry averages, rankings, exact-combination groups and
season medal levels.
"""
from .calculator import (
    ResultsCalculator,
    JudgeProgress,
    ScoreValidationError,
    calculate_total,
    calculate_score_total,
    validate_score,
    validate_all_scores,
    ensure_valid_scores,
    calculate_average_score,
    sort_by_average,
    calculate_rankings,
    calculate_top_overall,
    extract_variety_level,
    group_key,
    group_by_exact_combination,
    calculate_rankings_per_group,
    find_first_place_entries,
    get_category_breakdown,
    get_medal_level,
    get_next_medal_level,
    get_medal_type,
    calculate_completion_percentage,
    get_division_type_display_name,
    matches_division_type,
    apply_admin_filters,
    medal_recipients,
)

__all__ = [
    "ResultsCalculator",
    "JudgeProgress",
    "ScoreValidationError",
    "calculate_total",
    "calculate_score_total",
    "validate_score",
    "validate_all_scores",
    "ensure_valid_scores",
    "calculate_average_score",
    "sort_by_average",
    "calculate_rankings",
    "calculate_top_overall",
    "extract_variety_level",
    "group_key",
    "group_by_exact_combination",
    "calculate_rankings_per_group",
    "find_first_place_entries",
    "get_category_breakdown",
    "get_medal_level",
    "get_next_medal_level",
    "get_medal_type",
    "calculate_completion_percentage",
    "get_division_type_display_name",
    "matches_division_type",
    "apply_admin_filters",
    "medal_recipients",
]
