"""
Tests for Excel, JSON and PDF exports
"""

import io
import json
import pytest
from openpyxl import load_workbook

from ranking.calculator import ResultsCalculator
from exports.excel import (
    build_results_workbook,
    build_complete_workbook,
    results_filename,
    complete_filename,
    safe_competition_name,
)
from exports.json_export import build_export_document, export_json
from exports.pdf import build_score_sheet, ordinal, judge_label, score_sheet_filename


@pytest.fixture
def calculator(sample_competition, sample_entries, sample_scores, sample_categories, sample_age_divisions):
    return ResultsCalculator(
        competition=sample_competition,
        entries=sample_entries,
        scores=sample_scores,
        categories=sample_categories,
        age_divisions=sample_age_divisions,
    )


@pytest.fixture
def export_args(calculator):
    leaderboard = [{"participant_name": "Dana", "total_points": 26, "current_medal_level": "Bronze", "rank": 1}]
    return (
        calculator.competition,
        calculator.categories,
        calculator.age_divisions,
        calculator.entries,
        calculator.scores,
        calculator.ranked_entries,
        leaderboard,
    )


class TestFilenames:
    """Tests for download filenames"""

    def test_results_filename(self, sample_competition):
        assert results_filename(sample_competition) == "TOPAZ_Results_Spring_Showcase_2026-04-18.xlsx"

    def test_safe_name(self):
        assert safe_competition_name({"name": "Fall/Winter Gala!"}) == "Fall_Winter_Gala_"
        assert len(safe_competition_name({"name": "x" * 80})) == 50

    def test_complete_filename(self, sample_competition):
        assert complete_filename(sample_competition) == "Spring_Showcase - Complete Results.xlsx"

    def test_score_sheet_filename(self):
        entry = {"entry_number": 7, "competitor_name": "Mia Lee"}
        assert score_sheet_filename(entry) == "TOPAZ_ScoreSheet_Entry7_Mia_Lee.pdf"


class TestResultsWorkbook:
    """Tests for the results workbook"""

    def test_sheets_and_rows(self, calculator):
        content, filename = build_results_workbook(
            calculator.competition,
            calculator.entries_with_group_rank(),
            calculator.scores,
            calculator.categories,
            calculator.age_divisions,
        )
        wb = load_workbook(io.BytesIO(content))

        assert wb.sheetnames == ["Results", "Summary"]
        assert filename.endswith(".xlsx")

        rows = list(wb["Results"].iter_rows(values_only=True))
        headers = rows[0]
        assert headers[:2] == ("Entry Number", "Name")
        assert "Judge 1 - Technique" in headers
        assert "Judge 3 - Total" not in headers
        assert headers[-1] == "Group Members"
        assert len(rows) == 6

        first = dict(zip(headers, rows[1]))
        assert first["Name"] == "Starlight"
        assert first["Type"] == "Group"
        assert first["Variety Level"] == "Variety A"
        assert first["Average Score"] == "94.00"
        assert first["Overall Rank"] == 1
        assert first["Group Members"] == "Dana (9), Eve (10)"

        tap = dict(zip(headers, rows[4]))
        assert tap["Medal Program"] == "No"
        assert tap["Medal Points"] == "N/A"

    def test_summary_sheet(self, calculator):
        content, _ = build_results_workbook(calculator.competition, calculator.ranked_entries, [], [], [])
        summary = load_workbook(io.BytesIO(content))["Summary"]

        values = [row for row in summary.iter_rows(values_only=True)]
        assert values[0][0] == "TOPAZ 2.0 Competition Results"
        assert ("Competition Name:", "Spring Showcase") in values
        assert ("Total Entries:", 5) in values


class TestCompleteWorkbook:
    """Tests for the complete export workbook"""

    def test_all_sheets(self, export_args):
        content, filename = build_complete_workbook(*export_args)
        wb = load_workbook(io.BytesIO(content))

        assert wb.sheetnames == ["Competition Info", "All Entries", "All Scores", "Rankings", "Medal Points"]
        assert filename == "Spring_Showcase - Complete Results.xlsx"
        assert wb["All Scores"].max_row == 8
        assert wb["Rankings"]["C2"].value == "Starlight"
        assert wb["Medal Points"]["A2"].value == "Dana"

    def test_judge_names_in_scores(self, export_args):
        content, _ = build_complete_workbook(*export_args)
        scores = list(load_workbook(io.BytesIO(content))["All Scores"].iter_rows(values_only=True))

        judges = {row[3] for row in scores[1:]}
        assert judges == {"Alice", "Bob"}

    def test_no_medal_sheet_without_data(self, export_args):
        content, _ = build_complete_workbook(*export_args[:-1])
        assert "Medal Points" not in load_workbook(io.BytesIO(content)).sheetnames


class TestJsonExport:
    """Tests for the JSON data export"""

    def test_document_sections(self, export_args):
        document = build_export_document(*export_args)

        assert document["export_info"]["competition_id"] == "comp-1"
        assert len(document["entries"]) == 5
        assert len(document["scores"]) == 7
        assert document["rankings"][0]["entry_id"] == "e4"
        assert document["rankings"][0]["division_type"] == "Small Group"
        assert document["medal_points"][0]["participant_name"] == "Dana"

    def test_without_medal_data(self, export_args):
        document = build_export_document(*export_args[:-1])
        assert "medal_points" not in document

    def test_serialized(self, export_args):
        content, filename = export_json(*export_args)

        assert filename == "Spring_Showcase - Data Export.json"
        assert json.loads(content.decode("utf-8"))["competition"]["name"] == "Spring Showcase"


class TestScoreSheet:
    """Tests for the PDF score sheet"""

    @pytest.mark.parametrize("rank,expected", [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (22, "22nd")])
    def test_ordinal(self, rank, expected):
        assert ordinal(rank) == expected

    def test_judge_label(self, sample_competition):
        assert judge_label(sample_competition, 2) == "Bob"
        assert judge_label(sample_competition, 3) == "Judge 3"

    def test_pdf_with_scores(self, calculator, sample_categories, sample_age_divisions):
        entry = next(e for e in calculator.entries_with_group_rank() if e["id"] == "e4")
        scores = [dict(s, notes="Sharp formations") for s in entry["scores"]]

        content, filename = build_score_sheet(
            entry, scores, calculator.competition,
            category=sample_categories[0], age_division=sample_age_divisions[0],
        )

        assert content.startswith(b"%PDF")
        assert filename == "TOPAZ_ScoreSheet_Entry4_Starlight.pdf"

    def test_pdf_without_scores(self, sample_competition, sample_entries):
        content, _ = build_score_sheet(sample_entries[4], [], sample_competition)
        assert content.startswith(b"%PDF")
