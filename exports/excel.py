"""
Excel exports (openpyxl)

- Results workbook: one row per entry with every judge's sub-scores
- Complete workbook: competition info, entries, scores, rankings, medal points
"""
import io
import re
from datetime import datetime, date
from typing import List, Dict, Any, Optional, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment
from openpyxl.utils import get_column_letter
from loguru import logger

from topaz.config import ABILITY_LEVEL_DESCRIPTIONS, SCORE_FIELDS
from ranking.calculator import extract_variety_level, format_score


XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TITLE = "TOPAZ 2.0 Competition Results"
HERITAGE = "Heritage Since 1972"

BOLD = Font(bold=True)
TITLE_FONT = Font(bold=True, size=14)


# =====================================================
# Helpers
# =====================================================

def _format_date(value: Any) -> str:
    if not value:
        return "N/A"
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def _lookup(rows: List[Dict[str, Any]]) -> Dict[Any, Dict[str, Any]]:
    return {row.get("id"): row for row in rows or []}


def _group_members_text(entry: Dict[str, Any], separator: str = ", ", age_label: str = "") -> str:
    members = entry.get("group_members") or []
    parts = []
    for member in members:
        name = member.get("name") or ""
        if member.get("age"):
            parts.append(f"{name} ({age_label}{member['age']})")
        else:
            parts.append(name)
    return separator.join(parts)


def _is_group(entry: Dict[str, Any]) -> bool:
    return bool(entry.get("group_members")) or "group" in (entry.get("dance_type") or "").lower()


def _set_widths(ws, widths: List[int]) -> None:
    for index, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(index)].width = width


def _append_table(ws, headers: List[str], rows: List[List[Any]], widths: List[int] = None) -> None:
    ws.append(headers)
    for cell in ws[ws.max_row]:
        cell.font = BOLD
    for row in rows:
        ws.append(row)
    ws.freeze_panes = "A2"
    if widths:
        _set_widths(ws, widths)


def _to_bytes(wb: Workbook) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def results_filename(competition: Dict[str, Any]) -> str:
    name = re.sub(r"\s+", "_", competition.get("name") or "Competition")
    when = _format_date(competition.get("date"))
    if when == "N/A":
        when = datetime.now().strftime("%Y-%m-%d")
    return f"TOPAZ_Results_{name}_{when}.xlsx"


def safe_competition_name(competition: Dict[str, Any]) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", competition.get("name") or "Competition")[:50]


def complete_filename(competition: Dict[str, Any]) -> str:
    return f"{safe_competition_name(competition)} - Complete Results.xlsx"


# =====================================================
# Results workbook
# =====================================================

def build_results_workbook(
    competition: Dict[str, Any],
    ranked_entries: List[Dict[str, Any]],
    scores: List[Dict[str, Any]],
    categories: List[Dict[str, Any]],
    age_divisions: List[Dict[str, Any]]
) -> Tuple[bytes, str]:
    """
    Results and Summary sheets

    Args:
        ranked_entries: entries carrying average_score, rank and category_rank

    Returns:
        (xlsx bytes, filename)
    """
    category_map = _lookup(categories)
    division_map = _lookup(age_divisions)

    scores_by_entry: Dict[Any, List[Dict[str, Any]]] = {}
    for score in scores:
        scores_by_entry.setdefault(score.get("entry_id"), []).append(score)

    judge_numbers = sorted({s.get("judge_number") for s in scores if s.get("judge_number")})

    headers = [
        "Entry Number", "Name", "Age", "Type", "Category", "Variety Level",
        "Age Division", "Ability Level", "Division Type", "Medal Program",
        "Medal Points", "Medal Level",
    ]
    for judge in judge_numbers:
        headers += [f"Judge {judge} - {field.capitalize()}" for field in SCORE_FIELDS]
        headers += [f"Judge {judge} - Total", f"Judge {judge} - Notes"]
    headers += ["Average Score", "Overall Rank", "Category Combination Rank", "Group Members"]

    rows = []
    for entry in ranked_entries:
        category = category_map.get(entry.get("category_id")) or {}
        division = division_map.get(entry.get("age_division_id")) or {}
        ability = entry.get("ability_level")
        medal = bool(entry.get("is_medal_program"))
        group = _is_group(entry)

        row = [
            entry.get("entry_number"),
            entry.get("competitor_name"),
            entry.get("age") or "N/A",
            "Group" if group else "Solo",
            category.get("name") or "Unknown",
            extract_variety_level(category.get("description")),
            division.get("name") or "N/A",
            ABILITY_LEVEL_DESCRIPTIONS.get(ability, ability) if ability else "N/A",
            entry.get("dance_type") or "Solo",
            "Yes" if medal else "No",
            (entry.get("medal_points") or 0) if medal else "N/A",
            (entry.get("current_medal_level") or "None") if medal else "N/A",
        ]

        by_judge = {s.get("judge_number"): s for s in scores_by_entry.get(entry.get("id"), [])}
        for judge in judge_numbers:
            score = by_judge.get(judge)
            if score:
                row += [score.get(field) for field in SCORE_FIELDS]
                row += [score.get("total_score"), score.get("notes") or ""]
            else:
                row += [""] * (len(SCORE_FIELDS) + 2)

        row += [
            format_score(entry.get("average_score")),
            entry.get("rank") or "N/A",
            entry.get("category_rank") or "N/A",
            _group_members_text(entry) if group else "",
        ]
        rows.append(row)

    wb = Workbook()
    ws = wb.active
    ws.title = "Results"
    widths = [12, 25, 8, 10, 20, 15, 15, 30, 20, 14, 12, 12]
    widths += [15, 15, 15, 15, 12, 40] * len(judge_numbers)
    widths += [14, 12, 24, 50]
    _append_table(ws, headers, rows, widths)

    summary = wb.create_sheet("Summary")
    summary.append([TITLE])
    summary["A1"].font = TITLE_FONT
    for row in (
        [],
        ["Competition Name:", competition.get("name") or "N/A"],
        ["Date:", _format_date(competition.get("date"))],
        ["Venue:", competition.get("venue") or "N/A"],
        ["Number of Judges:", competition.get("judges_count") or "N/A"],
        ["Total Entries:", len(ranked_entries)],
        [],
        ["Generated:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")],
        [],
        [HERITAGE],
    ):
        summary.append(row)
    _set_widths(summary, [20, 40])

    filename = results_filename(competition)
    logger.info(f"Results workbook built: {filename} ({len(rows)} entries)")
    return _to_bytes(wb), filename


# =====================================================
# Complete workbook
# =====================================================

def _competition_info_sheet(ws, competition, categories, age_divisions, entries, scores) -> None:
    ws.title = "Competition Info"
    ws.append([f"{TITLE} - Complete Export"])
    ws["A1"].font = TITLE_FONT

    def section(title: str, header: Optional[List[str]] = None):
        ws.append([])
        ws.append([title])
        ws.cell(row=ws.max_row, column=1).font = BOLD
        if header:
            ws.append(header)
            for cell in ws[ws.max_row]:
                cell.font = BOLD

    section("COMPETITION INFORMATION")
    ws.append(["Competition Name:", competition.get("name") or "N/A"])
    ws.append(["Date:", _format_date(competition.get("date"))])
    ws.append(["Venue:", competition.get("venue") or "N/A"])
    ws.append(["Number of Judges:", competition.get("judges_count") or "N/A"])

    section("JUDGES", ["Judge Number", "Judge Name"])
    names = competition.get("judge_names") or []
    for number in range(1, (competition.get("judges_count") or 0) + 1):
        name = names[number - 1] if number <= len(names) and names[number - 1] else f"Judge {number}"
        ws.append([number, name])

    section("CATEGORIES", ["Category Name", "Variety Level", "Special Category"])
    for category in categories:
        ws.append([
            category.get("name"),
            extract_variety_level(category.get("description")),
            "Yes" if category.get("is_special_category") else "No",
        ])

    section("AGE DIVISIONS", ["Division Name", "Min Age", "Max Age"])
    for division in age_divisions:
        ws.append([
            division.get("name"),
            division.get("min_age") if division.get("min_age") is not None else "N/A",
            division.get("max_age") if division.get("max_age") is not None else "N/A",
        ])

    section("EXPORT INFORMATION")
    ws.append(["Generated:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")])
    ws.append(["Total Entries:", len(entries)])
    ws.append(["Total Scores:", len(scores)])
    ws.append(["Total Categories:", len(categories)])
    ws.append(["Total Age Divisions:", len(age_divisions)])
    _set_widths(ws, [25, 30, 15])
    for row in ws.iter_rows(min_col=2, max_col=3):
        for cell in row:
            cell.alignment = Alignment(horizontal="left")


def build_complete_workbook(
    competition: Dict[str, Any],
    categories: List[Dict[str, Any]],
    age_divisions: List[Dict[str, Any]],
    entries: List[Dict[str, Any]],
    scores: List[Dict[str, Any]],
    rankings: List[Dict[str, Any]],
    medal_data: Optional[List[Dict[str, Any]]] = None
) -> Tuple[bytes, str]:
    """Every table of a competition in one workbook"""
    category_map = _lookup(categories)
    division_map = _lookup(age_divisions)
    entry_map = _lookup(entries)

    wb = Workbook()
    _competition_info_sheet(wb.active, competition, categories, age_divisions, entries, scores)

    entry_rows = []
    for entry in entries:
        medal = bool(entry.get("is_medal_program"))
        entry_rows.append([
            entry.get("entry_number"),
            entry.get("competitor_name"),
            entry.get("age") or "N/A",
            (category_map.get(entry.get("category_id")) or {}).get("name", "Unknown"),
            (division_map.get(entry.get("age_division_id")) or {}).get("name", "N/A"),
            entry.get("ability_level") or "N/A",
            entry.get("dance_type") or "N/A",
            entry.get("studio_name") or "",
            entry.get("teacher_name") or "",
            "Yes" if medal else "No",
            (entry.get("medal_points") or 0) if medal else "N/A",
            (entry.get("current_medal_level") or "None") if medal else "N/A",
            _group_members_text(entry, separator="; ", age_label="age "),
            entry.get("photo_url") or "",
            entry.get("id"),
        ])
    _append_table(
        wb.create_sheet("All Entries"),
        [
            "Entry Number", "Competitor Name", "Age", "Category", "Age Division",
            "Ability Level", "Division Type", "Studio Name", "Teacher Name",
            "Is Medal Program", "Medal Points", "Current Medal Level",
            "Group Members", "Photo URL", "Entry ID",
        ],
        entry_rows,
        [12, 30, 8, 25, 20, 15, 20, 25, 25, 15, 12, 15, 50, 60, 36],
    )

    judge_names = competition.get("judge_names") or []
    score_rows = []
    for score in scores:
        entry = entry_map.get(score.get("entry_id")) or {}
        number = score.get("judge_number") or 0
        judge_name = judge_names[number - 1] if 0 < number <= len(judge_names) and judge_names[number - 1] else f"Judge {number}"
        score_rows.append([
            entry.get("entry_number", "N/A"),
            entry.get("competitor_name", "N/A"),
            number,
            judge_name,
            *[score.get(field) for field in SCORE_FIELDS],
            score.get("total_score"),
            score.get("notes") or "",
            score.get("id"),
            score.get("entry_id"),
        ])
    _append_table(
        wb.create_sheet("All Scores"),
        [
            "Entry Number", "Entry Name", "Judge Number", "Judge Name",
            "Technique", "Creativity", "Presentation", "Appearance",
            "Total Score", "Notes", "Score ID", "Entry ID",
        ],
        score_rows,
        [12, 30, 12, 25, 12, 12, 15, 12, 12, 50, 36, 36],
    )

    ranking_rows = []
    for entry in rankings:
        ranking_rows.append([
            entry.get("rank"),
            entry.get("entry_number"),
            entry.get("competitor_name"),
            format_score(entry.get("average_score")),
            (category_map.get(entry.get("category_id")) or {}).get("name", "Unknown"),
            (division_map.get(entry.get("age_division_id")) or {}).get("name", "N/A"),
            entry.get("ability_level") or "N/A",
            entry.get("dance_type") or "N/A",
            entry.get("age") or "N/A",
            entry.get("studio_name") or "",
            entry.get("judges_scored", 0),
        ])
    _append_table(
        wb.create_sheet("Rankings"),
        [
            "Rank", "Entry Number", "Competitor Name", "Average Score", "Category",
            "Age Division", "Ability Level", "Division Type", "Age", "Studio Name",
            "Total Judges",
        ],
        ranking_rows,
        [8, 12, 30, 15, 25, 20, 15, 20, 8, 25, 12],
    )

    if medal_data:
        _append_table(
            wb.create_sheet("Medal Points"),
            ["Participant Name", "Total Points", "Current Medal Level", "Rank"],
            [
                [
                    p.get("participant_name") or p.get("name"),
                    p.get("total_points") or 0,
                    p.get("current_medal_level") or "None",
                    p.get("rank") or "N/A",
                ]
                for p in medal_data
            ],
            [30, 12, 15, 8],
        )

    filename = complete_filename(competition)
    logger.info(f"Complete workbook built: {filename}")
    return _to_bytes(wb), filename
