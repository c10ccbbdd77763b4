"""
JSON export for website integration
"""
import json
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple

from loguru import logger

from topaz.config import SCORE_FIELDS
from .excel import safe_competition_name


EXPORT_VERSION = "1.0"

COMPETITION_FIELDS = ["id", "name", "date", "venue", "judges_count", "judge_names", "status", "created_at", "updated_at"]
CATEGORY_FIELDS = ["id", "name", "description", "is_special_category", "competition_id"]
DIVISION_FIELDS = ["id", "name", "min_age", "max_age", "description", "competition_id"]
ENTRY_FIELDS = [
    "id", "entry_number", "competitor_name", "age", "category_id", "age_division_id",
    "ability_level", "dance_type", "studio_name", "teacher_name", "is_medal_program",
    "medal_points", "current_medal_level", "group_members", "photo_url",
    "created_at", "updated_at",
]
SCORE_EXPORT_FIELDS = ["id", "entry_id", "judge_number", *SCORE_FIELDS, "total_score", "notes", "created_at", "updated_at"]


def _pick(row: Dict[str, Any], fields: List[str]) -> Dict[str, Any]:
    return {name: row.get(name) for name in fields}


def build_export_document(
    competition: Dict[str, Any],
    categories: List[Dict[str, Any]],
    age_divisions: List[Dict[str, Any]],
    entries: List[Dict[str, Any]],
    scores: List[Dict[str, Any]],
    rankings: List[Dict[str, Any]],
    medal_data: Optional[List[Dict[str, Any]]] = None
) -> Dict[str, Any]:
    """Export document as a plain dict"""
    document = {
        "export_info": {
            "version": EXPORT_VERSION,
            "generated_at": datetime.now().isoformat(),
            "competition_id": competition.get("id"),
            "competition_name": competition.get("name"),
        },
        "competition": {
            **_pick(competition, COMPETITION_FIELDS),
            "judge_names": competition.get("judge_names") or [],
        },
        "categories": [_pick(c, CATEGORY_FIELDS) for c in categories],
        "age_divisions": [_pick(d, DIVISION_FIELDS) for d in age_divisions],
        "entries": [_pick(e, ENTRY_FIELDS) for e in entries],
        "scores": [_pick(s, SCORE_EXPORT_FIELDS) for s in scores],
        "rankings": [
            {
                "rank": entry.get("rank"),
                "entry_id": entry.get("id"),
                "entry_number": entry.get("entry_number"),
                "competitor_name": entry.get("competitor_name"),
                "average_score": entry.get("average_score", 0.0),
                "category_id": entry.get("category_id"),
                "age_division_id": entry.get("age_division_id"),
                "ability_level": entry.get("ability_level"),
                "division_type": entry.get("dance_type"),
            }
            for entry in rankings
        ],
    }

    if medal_data:
        document["medal_points"] = [
            {
                "participant_name": p.get("participant_name") or p.get("name"),
                "total_points": p.get("total_points") or 0,
                "current_medal_level": p.get("current_medal_level") or "None",
                "rank": p.get("rank"),
            }
            for p in medal_data
        ]

    return document


def json_filename(competition: Dict[str, Any]) -> str:
    return f"{safe_competition_name(competition)} - Data Export.json"


def export_json(*args, **kwargs) -> Tuple[bytes, str]:
    """build_export_document serialized (indent 2) with its filename"""
    document = build_export_document(*args, **kwargs)
    payload = json.dumps(document, ensure_ascii=False, indent=2, default=str).encode("utf-8")
    filename = json_filename(document["competition"])
    logger.info(f"JSON export built: {filename} ({len(payload)} bytes)")
    return payload, filename
