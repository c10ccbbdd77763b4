"""
Export downloads
"""
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from database.supabase_client import ScoringDB
from exports.excel import build_results_workbook, build_complete_workbook, XLSX_MEDIA_TYPE
from exports.json_export import export_json
from exports.pdf import build_score_sheet, PDF_MEDIA_TYPE
from app.dependencies import get_db
from app.services.results import load_results, export_payload

router = APIRouter(prefix="/api", tags=["Exports"])


def _download(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.get("/competitions/{competition_id}/export/results.xlsx")
async def export_results_excel(competition_id: str, db: ScoringDB = Depends(get_db)):
    calculator = await load_results(db, competition_id)
    content, filename = build_results_workbook(
        calculator.competition,
        calculator.entries_with_group_rank(),
        calculator.scores,
        calculator.categories,
        calculator.age_divisions,
    )
    return _download(content, filename, XLSX_MEDIA_TYPE)


@router.get("/competitions/{competition_id}/export/complete.xlsx")
async def export_complete_excel(competition_id: str, db: ScoringDB = Depends(get_db)):
    content, filename = build_complete_workbook(*await export_payload(db, competition_id))
    return _download(content, filename, XLSX_MEDIA_TYPE)


@router.get("/competitions/{competition_id}/export/data.json")
async def export_data_json(competition_id: str, db: ScoringDB = Depends(get_db)):
    content, filename = export_json(*await export_payload(db, competition_id))
    return _download(content, filename, "application/json")


@router.get("/entries/{entry_id}/score-sheet.pdf")
async def export_score_sheet(entry_id: str, db: ScoringDB = Depends(get_db)):
    entry = await db.get_entry(entry_id)
    calculator = await load_results(db, entry["competition_id"])

    ranked = next((e for e in calculator.entries_with_group_rank() if e.get("id") == entry_id), entry)
    category = next((c for c in calculator.categories if c.get("id") == entry.get("category_id")), None)
    division = next((d for d in calculator.age_divisions if d.get("id") == entry.get("age_division_id")), None)

    content, filename = build_score_sheet(
        ranked,
        ranked.get("scores") or [],
        calculator.competition,
        category=category,
        age_division=division,
    )
    return _download(content, filename, PDF_MEDIA_TYPE)
