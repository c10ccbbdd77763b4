"""
Per-entry score sheet PDF (reportlab)
"""
import io
import re
from typing import List, Dict, Any, Optional, Tuple
from xml.sax.saxutils import escape

from loguru import logger
from reportlab.lib.colors import HexColor, white
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, HRFlowable

from topaz.config import SCORE_FIELDS, MAX_SUBSCORE, MAX_TOTAL_SCORE
from ranking.calculator import calculate_average_score, get_category_breakdown


PDF_MEDIA_TYPE = "application/pdf"

TEAL = "#14B8A6"
CYAN = "#06B6D4"
GOLD = "#FBBF24"
SILVER = "#D1D5DB"
BRONZE = "#FB923C"
LIGHT_GRAY = "#F3F4F6"
DARK_GRAY = "#1F2937"
NOTE_BACKGROUND = "#FFFBEB"
MEDAL_BACKGROUND = "#FEF3C7"

RANK_COLORS = {1: GOLD, 2: SILVER, 3: BRONZE}


def ordinal(rank: int) -> str:
    if 10 <= rank % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(rank % 10, "th")
    return f"{rank}{suffix}"


def judge_label(competition: Dict[str, Any], judge_number: int) -> str:
    names = competition.get("judge_names") or []
    if 0 < judge_number <= len(names) and names[judge_number - 1]:
        return names[judge_number - 1]
    return f"Judge {judge_number}"


def score_sheet_filename(entry: Dict[str, Any]) -> str:
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", entry.get("competitor_name") or "Competitor")
    return f"TOPAZ_ScoreSheet_Entry{entry.get('entry_number') or 0}_{safe_name}.pdf"


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        "HeaderWhite", parent=styles["Title"],
        textColor=white, fontSize=20, alignment=TA_CENTER, spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        "SubHeaderWhite", parent=styles["Normal"],
        textColor=white, fontSize=10, alignment=TA_CENTER,
    ))
    styles.add(ParagraphStyle(
        "SectionTitle", parent=styles["Heading2"],
        textColor=HexColor(DARK_GRAY), fontSize=13, spaceBefore=8, spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        "CardTitle", parent=styles["Heading3"], textColor=white, fontSize=14, spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        "CardText", parent=styles["Normal"], textColor=white, fontSize=9,
    ))
    styles.add(ParagraphStyle(
        "FooterText", parent=styles["Normal"],
        textColor=HexColor("#646464"), fontSize=8, alignment=TA_CENTER,
    ))
    return styles


def _score_table(entry_scores: List[Dict[str, Any]], competition: Dict[str, Any], width: float, highlight: str) -> Table:
    rows = [["Judge", "Technique", "Creativity", "Presentation", "Appearance", "Total"]]
    for score in entry_scores:
        rows.append([
            judge_label(competition, score.get("judge_number") or 0),
            *[f"{float(score.get(f) or 0):.1f} / {MAX_SUBSCORE}" for f in SCORE_FIELDS],
            f"{float(score.get('total_score') or 0):.1f} / {MAX_TOTAL_SCORE}",
        ])

    breakdown = get_category_breakdown(entry_scores)
    rows.append([
        "AVERAGE",
        *[f"{breakdown[f]['average']:.2f} / {MAX_SUBSCORE}" for f in SCORE_FIELDS],
        f"{calculate_average_score(entry_scores):.2f} / {MAX_TOTAL_SCORE}",
    ])

    table = Table(rows, colWidths=[width * 0.2] + [width * 0.16] * 5)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HexColor(TEAL)),
        ("TEXTCOLOR", (0, 0), (-1, 0), white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -2), [white, HexColor("#F9FAFB")]),
        ("BACKGROUND", (0, -1), (-1, -1), HexColor(highlight)),
        ("TEXTCOLOR", (0, -1), (-1, -1), white),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, HexColor("#DDDDDD")),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]))
    return table


def _analysis_table(entry_scores: List[Dict[str, Any]], competition: Dict[str, Any], width: float) -> Table:
    headers = ["Category"]
    for score in entry_scores:
        number = score.get("judge_number") or 0
        name = judge_label(competition, number)
        headers.append(name.split(" ")[0][:5] if not name.startswith("Judge ") else f"J{number}")
    headers.append("Avg")

    breakdown = get_category_breakdown(entry_scores)
    rows = [headers]
    for name in SCORE_FIELDS:
        rows.append([
            name.capitalize(),
            *[f"{value:.1f}" for value in breakdown[name]["scores"]],
            f"{breakdown[name]['average']:.2f}",
        ])

    first = width * 0.25
    rest = (width - first) / (len(headers) - 1)
    table = Table(rows, colWidths=[first] + [rest] * (len(headers) - 1))
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HexColor(CYAN)),
        ("TEXTCOLOR", (0, 0), (-1, 0), white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (-1, 1), (-1, -1), HexColor(LIGHT_GRAY)),
        ("FONTNAME", (-1, 1), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, HexColor("#DDDDDD")),
    ]))
    return table


def build_score_sheet(
    entry: Dict[str, Any],
    entry_scores: List[Dict[str, Any]],
    competition: Dict[str, Any],
    category: Optional[Dict[str, Any]] = None,
    age_division: Optional[Dict[str, Any]] = None
) -> Tuple[bytes, str]:
    """
    Official score sheet for one entry

    Args:
        entry: entry row; rank and category_rank are used when present
        entry_scores: the entry's judge scores

    Returns:
        (pdf bytes, filename)
    """
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=14 * mm,
        title=f"Score Sheet #{entry.get('entry_number')}",
    )
    styles = _styles()
    entry_scores = sorted(entry_scores, key=lambda s: s.get("judge_number") or 0)
    rank = entry.get("rank")
    highlight = RANK_COLORS.get(rank, TEAL)
    elements = []

    # Header
    header = Table([
        [Paragraph("TOPAZ 2.0", styles["HeaderWhite"])],
        [Paragraph("DANCE COMPETITION", styles["SubHeaderWhite"])],
        [Paragraph("Official Score Sheet &bull; Heritage Since 1972", styles["SubHeaderWhite"])],
    ], colWidths=[doc.width])
    header.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), HexColor(TEAL)),
        ("TOPPADDING", (0, 0), (-1, 0), 10),
        ("BOTTOMPADDING", (0, -1), (-1, -1), 8),
    ]))
    elements.append(header)
    elements.append(Spacer(1, 5 * mm))

    # Competition card
    details = [competition.get("date") and str(competition["date"])[:10], competition.get("venue")]
    competition_card = Table([
        [Paragraph(f"<b>{escape(competition.get('name') or 'Competition')}</b>", styles["Normal"])],
        [Paragraph(" &bull; ".join(escape(d) for d in details if d) or "&nbsp;", styles["Normal"])],
        [Paragraph(f"{competition.get('judges_count') or 0} Judges &bull; Entry #{entry.get('entry_number')}", styles["Normal"])],
    ], colWidths=[doc.width])
    competition_card.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), HexColor(LIGHT_GRAY)),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
    ]))
    elements.append(competition_card)
    elements.append(Spacer(1, 5 * mm))

    # Competitor card
    badges = [
        (category or {}).get("name"),
        (age_division or {}).get("name"),
        entry.get("ability_level"),
    ]
    lines = [
        [Paragraph(escape(entry.get("competitor_name") or "Competitor"), styles["CardTitle"])],
        [Paragraph(" &bull; ".join(escape(b) for b in badges if b) or "&nbsp;", styles["CardText"])],
    ]
    if entry.get("category_rank"):
        lines.append([Paragraph(f"{ordinal(entry['category_rank'])} Place in Category Combination", styles["CardText"])])
    if entry_scores:
        lines.append([Paragraph(f"Average: {calculate_average_score(entry_scores):.2f} / {MAX_TOTAL_SCORE}", styles["CardText"])])

    if rank:
        card = Table(
            [[Paragraph(f"<b>{ordinal(rank).upper()}</b>", styles["CardTitle"]), Table(lines)]],
            colWidths=[22 * mm, doc.width - 22 * mm],
        )
    else:
        card = Table(lines, colWidths=[doc.width])
    card.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), HexColor(highlight)),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
    ]))
    elements.append(card)
    elements.append(Spacer(1, 6 * mm))

    # Scores
    elements.append(Paragraph("Detailed Score Breakdown", styles["SectionTitle"]))
    if not entry_scores:
        elements.append(Paragraph("No scores available for this entry", styles["Normal"]))
    else:
        elements.append(_score_table(entry_scores, competition, doc.width, highlight))
        elements.append(Spacer(1, 6 * mm))
        elements.append(Paragraph("Category Analysis", styles["SectionTitle"]))
        elements.append(_analysis_table(entry_scores, competition, doc.width))

        notes = [s for s in entry_scores if (s.get("notes") or "").strip()]
        if notes:
            elements.append(Spacer(1, 6 * mm))
            elements.append(Paragraph("Judge Comments", styles["SectionTitle"]))
            for score in notes:
                note = Table([[Paragraph(
                    f"<b>{escape(judge_label(competition, score.get('judge_number') or 0))}:</b> {escape(score['notes'].strip())}",
                    styles["Normal"],
                )]], colWidths=[doc.width])
                note.setStyle(TableStyle([("BACKGROUND", (0, 0), (-1, -1), HexColor(NOTE_BACKGROUND))]))
                elements.append(note)
                elements.append(Spacer(1, 2 * mm))

    # Medal program
    level = entry.get("current_medal_level")
    if entry.get("is_medal_program") and ((entry.get("medal_points") or 0) > 0 or (level and level != "None")):
        text = f"Season Points: {entry.get('medal_points') or 0}"
        if level and level != "None":
            text = f"Current Level: {level} &bull; {text}"
        medal = Table([
            [Paragraph("<b>Medal Program Status</b>", styles["Normal"])],
            [Paragraph(text, styles["Normal"])],
        ], colWidths=[doc.width])
        medal.setStyle(TableStyle([("BACKGROUND", (0, 0), (-1, -1), HexColor(MEDAL_BACKGROUND))]))
        elements.append(Spacer(1, 6 * mm))
        elements.append(medal)

    # Footer
    elements.append(Spacer(1, 8 * mm))
    elements.append(HRFlowable(width="100%", color=HexColor(TEAL), thickness=0.5))
    elements.append(Paragraph(
        "TOPAZ 2.0 &bull; Heritage Since 1972 &bull; Official Competition Results",
        styles["FooterText"],
    ))

    doc.build(elements)
    filename = score_sheet_filename(entry)
    logger.info(f"Score sheet built: {filename}")
    return buf.getvalue(), filename
