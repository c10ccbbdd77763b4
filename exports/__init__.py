"""
Competition exports: Excel workbooks, JSON document, PDF score sheets
"""
from .excel import build_results_workbook, build_complete_workbook, XLSX_MEDIA_TYPE
from .json_export import build_export_document, export_json
from .pdf import build_score_sheet, PDF_MEDIA_TYPE

__all__ = [
    "build_results_workbook",
    "build_complete_workbook",
    "build_export_document",
    "export_json",
    "build_score_sheet",
    "XLSX_MEDIA_TYPE",
    "PDF_MEDIA_TYPE",
]
