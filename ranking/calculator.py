"""
Scoring and ranking module

- Judge total: four sub-scores (0-25 each) summed to 0-100
- Entry result: mean of the judges' totals
- Rankings: average score desc, competitor name asc on ties
- Exact-combination groups: category + variety + age division + ability + division type
- Season medal levels: 25 / 35 / 50 points -> Bronze / Silver / Gold
"""
import re
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Dict, Any, Optional, Tuple

from topaz.config import (
    SCORE_FIELDS,
    MAX_SUBSCORE,
    MAX_TOTAL_SCORE,
    MAX_DECIMAL_PLACES,
    MEDAL_THRESHOLDS,
)


# =====================================================
# Constants
# =====================================================

MEDAL_TYPES = {1: "gold", 2: "silver", 3: "bronze"}

# Order in which next-level targets are reached
MEDAL_PROGRESSION = [
    ("None", "Bronze"),
    ("Bronze", "Silver"),
    ("Silver", "Gold"),
]

DIVISION_DISPLAY_NAMES = ["Solo", "Duo/Trio", "Small Group", "Large Group", "Production"]

UNKNOWN_CATEGORY = "Unknown"
NO_DIVISION = "No Division"
NO_VARIETY = "None"


class ScoreValidationError(ValueError):
    """Sub-scores failed validation"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


# =====================================================
# Score arithmetic and validation
# =====================================================

def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def calculate_total(technique: Any, creativity: Any, presentation: Any, appearance: Any) -> float:
    """Sum of the four sub-scores, rounded to 2 decimals (missing values count as 0)"""
    total = (
        _to_float(technique)
        + _to_float(creativity)
        + _to_float(presentation)
        + _to_float(appearance)
    )
    return round(total, 2)


def calculate_score_total(score: Dict[str, Any]) -> float:
    """calculate_total over a score dict"""
    return calculate_total(*(score.get(f) for f in SCORE_FIELDS))


def validate_score(value: Any) -> Optional[str]:
    """Validate one sub-score. Returns an error message or None."""
    if value is None or value == "":
        return "This field is required"
    if isinstance(value, bool):
        return "Score must be a number"

    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return "Score must be a number"

    if not number.is_finite():
        return "Score must be a number"
    if number < 0:
        return "Score cannot be negative"
    if number > MAX_SUBSCORE:
        return f"Score cannot exceed {MAX_SUBSCORE}"

    exponent = number.normalize().as_tuple().exponent
    if exponent < -MAX_DECIMAL_PLACES:
        return f"Score can have maximum {MAX_DECIMAL_PLACES} decimal places"

    return None


def validate_all_scores(scores: Dict[str, Any]) -> Tuple[bool, Dict[str, str]]:
    """
    Validate all four sub-scores

    Returns:
        (valid, errors) where errors maps field name (or "total") to a message
    """
    errors: Dict[str, str] = {}

    for name in SCORE_FIELDS:
        error = validate_score(scores.get(name))
        if error:
            errors[name] = error

    if not errors:
        total = calculate_total(*(scores.get(f) for f in SCORE_FIELDS))
        if total > MAX_TOTAL_SCORE:
            errors["total"] = f"Total score cannot exceed {MAX_TOTAL_SCORE}"

    return (not errors, errors)


def ensure_valid_scores(scores: Dict[str, Any]) -> Dict[str, float]:
    """Validate and coerce sub-scores to floats; raises ScoreValidationError"""
    valid, errors = validate_all_scores(scores)
    if not valid:
        raise ScoreValidationError(errors)
    return {name: float(scores[name]) for name in SCORE_FIELDS}


def calculate_average_score(scores: List[Dict[str, Any]]) -> float:
    """Mean of the judges' totals, rounded to 2 decimals (0 when unscored)"""
    if not scores:
        return 0.0

    total = sum(_to_float(s.get("total_score")) for s in scores)
    return round(total / len(scores), 2)


def format_score(score: Any) -> str:
    """Two-decimal display string"""
    try:
        return f"{float(score):.2f}"
    except (TypeError, ValueError):
        return "0.00"


def get_category_breakdown(scores: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Per sub-score totals, averages and raw values across judges"""
    breakdown = {name: {"total": 0.0, "average": 0.0, "scores": []} for name in SCORE_FIELDS}

    for score in scores or []:
        for name in SCORE_FIELDS:
            value = _to_float(score.get(name))
            breakdown[name]["scores"].append(value)
            breakdown[name]["total"] += value

    if scores:
        for name in SCORE_FIELDS:
            breakdown[name]["total"] = round(breakdown[name]["total"], 2)
            breakdown[name]["average"] = round(breakdown[name]["total"] / len(scores), 2)

    return breakdown


def calculate_completion_percentage(completed: int, total: int) -> int:
    """Share of entries scored, as a whole percentage"""
    if total <= 0:
        return 0
    return int(Decimal(completed * 100) / Decimal(total) + Decimal("0.5"))


# =====================================================
# Rankings
# =====================================================

def attach_scores(entries: List[Dict[str, Any]], scores: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy entries with their judges' scores under "scores" (ordered by judge)"""
    by_entry: Dict[Any, List[Dict[str, Any]]] = defaultdict(list)
    for score in scores:
        by_entry[score.get("entry_id")].append(score)

    attached = []
    for entry in entries:
        entry_scores = sorted(by_entry.get(entry.get("id"), []), key=lambda s: s.get("judge_number") or 0)
        attached.append({**entry, "scores": entry_scores})
    return attached


def ranking_sort_key(entry: Dict[str, Any]) -> Tuple[float, str, int]:
    """Average desc, then competitor name (case-insensitive), then entry number"""
    return (
        -_to_float(entry.get("average_score")),
        (entry.get("competitor_name") or "").casefold(),
        entry.get("entry_number") or 0,
    )


def sort_by_average(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(entries, key=ranking_sort_key)


def _assign_ranks(sorted_entries: List[Dict[str, Any]], rank_key: str) -> List[Dict[str, Any]]:
    """Competition ranking: equal averages share a rank, the next rank skips (1, 1, 3)"""
    previous = None
    rank = 0
    for position, entry in enumerate(sorted_entries, 1):
        average = _to_float(entry.get("average_score"))
        if previous is None or average != previous:
            rank = position
        entry[rank_key] = rank
        previous = average
    return sorted_entries


def with_averages(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Copy entries adding average_score and judges_scored from their "scores" """
    result = []
    for entry in entries:
        entry_scores = entry.get("scores") or []
        result.append({
            **entry,
            "average_score": calculate_average_score(entry_scores),
            "judges_scored": len(entry_scores),
        })
    return result


def calculate_rankings(entries_with_scores: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Overall rankings

    Args:
        entries_with_scores: entries carrying their judges' scores under "scores"

    Returns:
        entries sorted by average (ties: alphabetical) with average_score,
        judges_scored and rank set
    """
    if not entries_with_scores:
        return []

    ranked = sort_by_average(with_averages(entries_with_scores))
    return _assign_ranks(ranked, "rank")


def calculate_top_overall(entries: List[Dict[str, Any]], limit: int = 4) -> List[Dict[str, Any]]:
    """Highest averages across the whole competition"""
    return sort_by_average(entries)[:limit]


def get_medal_type(rank: Optional[int]) -> str:
    return MEDAL_TYPES.get(rank, "none")


# =====================================================
# Grouping
# =====================================================

def extract_variety_level(description: Optional[str]) -> str:
    """"Jazz | Variety A" -> "Variety A"; "None" when absent"""
    if not description:
        return NO_VARIETY

    parts = description.split("|")
    if len(parts) > 1 and parts[1].strip():
        return parts[1].strip()
    return NO_VARIETY


def get_division_type_display_name(division_type: Optional[str]) -> str:
    """Clean division type for display ("Solo" when empty)"""
    if not division_type:
        return "Solo"

    for name in DIVISION_DISPLAY_NAMES:
        if name in division_type:
            return name
    return division_type


def group_by_category(entries: List[Dict[str, Any]], categories: List[Dict[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
    """Entries keyed by category id"""
    names = {c.get("id"): c.get("name") for c in categories or []}
    groups: Dict[str, Dict[str, Any]] = {}

    for entry in entries or []:
        category_id = entry.get("category_id") or "uncategorized"
        if category_id not in groups:
            groups[category_id] = {
                "category_id": category_id,
                "category_name": names.get(category_id, "Uncategorized"),
                "entries": [],
            }
        groups[category_id]["entries"].append(entry)

    return groups


def group_by_age_division(entries: List[Dict[str, Any]], age_divisions: List[Dict[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
    """Entries keyed by age division id"""
    names = {d.get("id"): d.get("name") for d in age_divisions or []}
    groups: Dict[str, Dict[str, Any]] = {}

    for entry in entries or []:
        division_id = entry.get("age_division_id") or "uncategorized"
        if division_id not in groups:
            groups[division_id] = {
                "division_id": division_id,
                "division_name": names.get(division_id, "Uncategorized"),
                "entries": [],
            }
        groups[division_id]["entries"].append(entry)

    return groups


def group_key(
    entry: Dict[str, Any],
    category_map: Dict[Any, Dict[str, Any]],
    division_map: Dict[Any, Dict[str, Any]]
) -> Tuple[str, str, str, str, str]:
    """(category, variety, age division, ability level, division type) of an entry"""
    category = category_map.get(entry.get("category_id")) or {}
    division = division_map.get(entry.get("age_division_id")) or {}

    return (
        category.get("name") or UNKNOWN_CATEGORY,
        extract_variety_level(category.get("description")),
        division.get("name") or NO_DIVISION,
        entry.get("ability_level") or "Unknown",
        entry.get("dance_type") or "Solo",
    )


def group_by_exact_combination(
    entries: List[Dict[str, Any]],
    categories: List[Dict[str, Any]] = None,
    age_divisions: List[Dict[str, Any]] = None
) -> Dict[str, Dict[str, Any]]:
    """
    Group entries by category + variety + age division + ability level + division type

    Each group is ranked on its own (its own 1st, 2nd, 3rd place).
    """
    category_map = {c.get("id"): c for c in categories or []}
    division_map = {d.get("id"): d for d in age_divisions or []}
    groups: Dict[str, Dict[str, Any]] = {}

    for entry in entries or []:
        category_name, variety, division_name, ability, division_type = group_key(
            entry, category_map, division_map
        )
        key = f"{category_name}|{variety}|{division_name}|{ability}|{division_type}"
        if key not in groups:
            groups[key] = {
                "category": category_name,
                "category_id": entry.get("category_id"),
                "variety": variety,
                "age_division": division_name,
                "age_division_id": entry.get("age_division_id"),
                "ability_level": ability,
                "division_type": division_type,
                "entries": [],
            }
        groups[key]["entries"].append(entry)

    return groups


def calculate_rankings_per_group(groups: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Rank each group's entries separately (sets category_rank)"""
    ranked_groups = {}

    for key, group in groups.items():
        ranked_entries = sort_by_average([dict(e) for e in group["entries"]])
        _assign_ranks(ranked_entries, "category_rank")
        ranked_groups[key] = {**group, "entries": ranked_entries}

    return ranked_groups


def placement_key(entry: Dict[str, Any]) -> Tuple[Any, Any, Any, Any]:
    """Bucket in which a first place earns a medal point"""
    return (
        entry.get("category_id"),
        entry.get("age_division_id"),
        entry.get("ability_level"),
        entry.get("dance_type"),
    )


def find_first_place_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    First-place entry of every category/age/ability/division bucket

    Only entries with at least one judge score compete. Equal averages are
    broken alphabetically, so each bucket has exactly one winner.
    """
    buckets: Dict[Tuple, List[Dict[str, Any]]] = defaultdict(list)

    for entry in entries:
        if entry.get("judges_scored", len(entry.get("scores") or [])) <= 0:
            continue
        buckets[placement_key(entry)].append(entry)

    winners = [sort_by_average(bucket)[0] for bucket in buckets.values() if bucket]
    return sort_by_average(winners)


# =====================================================
# Admin filters
# =====================================================

def _normalize_division(value: Optional[str]) -> str:
    return re.sub(r"[_\s()]", "", (value or "").lower())


def matches_division_type(entry_type: Optional[str], filter_type: Optional[str]) -> bool:
    """Loose division-type match used by the shared judge filter"""
    if not filter_type or filter_type == "all":
        return True

    entry_norm = _normalize_division(entry_type)
    filter_norm = _normalize_division(filter_type)

    if "smallgroup" in filter_norm:
        return "smallgroup" in entry_norm
    if "largegroup" in filter_norm:
        return "largegroup" in entry_norm
    if "duo" in filter_norm and "trio" in filter_norm:
        return "duo" in entry_norm or "trio" in entry_norm
    if "duo" in filter_norm:
        return "duo" in entry_norm and "trio" not in entry_norm
    if "trio" in filter_norm:
        return "trio" in entry_norm
    if "solo" in filter_norm:
        return "solo" in entry_norm or not any(x in entry_norm for x in ("group", "duo", "trio"))

    return filter_norm in entry_norm


def apply_admin_filters(entries: List[Dict[str, Any]], filters: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Entries visible to judges under the shared admin filter"""
    if not filters:
        return list(entries)

    filtered = list(entries)

    category = filters.get("category_filter")
    if category and category != "all":
        filtered = [e for e in filtered if e.get("category_id") == category]

    division_type = filters.get("division_type_filter")
    if division_type and division_type != "all":
        filtered = [e for e in filtered if matches_division_type(e.get("dance_type"), division_type)]

    age_division = filters.get("age_division_filter")
    if age_division and age_division != "all":
        filtered = [e for e in filtered if e.get("age_division_id") == age_division]

    ability = filters.get("ability_filter")
    if ability and ability != "all":
        filtered = [e for e in filtered if e.get("ability_level") == ability]

    return filtered


# =====================================================
# Medal program
# =====================================================

def get_medal_level(points: int) -> str:
    """Season medal level for a point total"""
    for level, threshold in MEDAL_THRESHOLDS:
        if points >= threshold:
            return level
    return "None"


def get_next_medal_level(points: int) -> Tuple[str, int]:
    """
    Next medal level and points still needed

    Returns:
        ("Gold (Max)", 0) once Gold is reached
    """
    thresholds = {level: threshold for level, threshold in MEDAL_THRESHOLDS}
    current = get_medal_level(points)

    for level, next_level in MEDAL_PROGRESSION:
        if current == level:
            return next_level, max(thresholds[next_level] - points, 0)

    return "Gold (Max)", 0


def is_group_entry(entry: Dict[str, Any]) -> bool:
    dance_type = entry.get("dance_type")
    return bool(dance_type) and "solo" not in dance_type.lower()


def medal_recipients(entry: Dict[str, Any]) -> List[str]:
    """
    Dancers who earn a point when this entry places first

    Group entries award each named member; everything else awards the competitor.
    """
    members = entry.get("group_members") or []
    if is_group_entry(entry) and members:
        names = []
        for member in members:
            name = (member.get("name") or "").strip()
            if name and name not in names:
                names.append(name)
        return names

    name = (entry.get("competitor_name") or "").strip()
    return [name] if name else []


# =====================================================
# Competition results calculator
# =====================================================

@dataclass
class JudgeProgress:
    """Entries scored by one judge"""
    judge_number: int
    judge_name: str
    scored: int
    total: int

    @property
    def percentage(self) -> int:
        return calculate_completion_percentage(self.scored, self.total)


@dataclass
class ResultsCalculator:
    """Rankings over one competition's data"""
    competition: Dict[str, Any]
    entries: List[Dict[str, Any]]
    scores: List[Dict[str, Any]]
    categories: List[Dict[str, Any]] = field(default_factory=list)
    age_divisions: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        self._ranked = calculate_rankings(attach_scores(self.entries, self.scores))

    @property
    def ranked_entries(self) -> List[Dict[str, Any]]:
        return self._ranked

    def group_rankings(self) -> Dict[str, Dict[str, Any]]:
        groups = group_by_exact_combination(self._ranked, self.categories, self.age_divisions)
        return calculate_rankings_per_group(groups)

    def entries_with_group_rank(self) -> List[Dict[str, Any]]:
        """Overall ranking order with category_rank filled in"""
        group_ranks = {}
        for group in self.group_rankings().values():
            for entry in group["entries"]:
                group_ranks[entry.get("id")] = entry.get("category_rank")

        return [{**e, "category_rank": group_ranks.get(e.get("id"))} for e in self._ranked]

    def top_overall(self, limit: int = 4) -> List[Dict[str, Any]]:
        return calculate_top_overall([e for e in self._ranked if e["judges_scored"] > 0], limit)

    def first_place_entries(self, medal_program_only: bool = False) -> List[Dict[str, Any]]:
        entries = self._ranked
        if medal_program_only:
            entries = [e for e in entries if e.get("is_medal_program")]
        return find_first_place_entries(entries)

    def judge_name(self, judge_number: int) -> str:
        names = self.competition.get("judge_names") or []
        if 0 < judge_number <= len(names) and names[judge_number - 1]:
            return names[judge_number - 1]
        return f"Judge {judge_number}"

    def judge_progress(self) -> List[JudgeProgress]:
        judges_count = self.competition.get("judges_count") or 0
        scored_by_judge: Dict[int, set] = defaultdict(set)
        for score in self.scores:
            scored_by_judge[score.get("judge_number")].add(score.get("entry_id"))

        return [
            JudgeProgress(
                judge_number=n,
                judge_name=self.judge_name(n),
                scored=len(scored_by_judge.get(n, set())),
                total=len(self.entries),
            )
            for n in range(1, judges_count + 1)
        ]
