"""
Tests for ScoringDB over the in-memory Supabase client

Tests cover:
1. Competition lifecycle (archive, cascade delete)
2. Categories, age divisions and entry numbering
3. Score validation, upsert and totals
4. Admin filters
5. Season medal participants
6. Data management
7. Change events published by writes
"""

import pytest

from database.supabase_client import DatabaseError, RecordNotFoundError
from ranking.calculator import ScoreValidationError
from topaz.models import ChangeType
from conftest import COMPETITION_ID


def _score(entry_id="e5", judge_number=1, each=20, **extra):
    return {
        "competition_id": COMPETITION_ID,
        "entry_id": entry_id,
        "judge_number": judge_number,
        "technique": each,
        "creativity": each,
        "presentation": each,
        "appearance": each,
        **extra,
    }


# =============================================================================
# Competitions
# =============================================================================

class TestCompetitions:
    """Tests for competition storage"""

    @pytest.mark.asyncio
    async def test_create_defaults(self, db, publisher):
        competition = await db.create_competition({"name": "Fall Classic"})

        assert competition["judges_count"] == 3
        assert competition["status"] == "active"
        assert competition["judge_names"] == []

        events = publisher.get_recent_events()
        assert events[-1].table == "competitions"
        assert events[-1].change_type == ChangeType.INSERT
        assert events[-1].competition_id == competition["id"]

    @pytest.mark.asyncio
    async def test_get_missing_competition(self, db):
        with pytest.raises(RecordNotFoundError):
            await db.get_competition("nope")

    @pytest.mark.asyncio
    async def test_list_hides_archived(self, db):
        first = await db.create_competition({"name": "A", "date": "2026-01-10"})
        second = await db.create_competition({"name": "B", "date": "2026-02-10"})
        await db.archive_competition(first["id"])

        active = await db.get_all_competitions()
        assert [c["id"] for c in active] == [second["id"]]

        everything = await db.get_all_competitions(include_archived=True)
        assert [c["id"] for c in everything] == [second["id"], first["id"]]

        archived = await db.get_archived_competitions()
        assert [c["id"] for c in archived] == [first["id"]]

        restored = await db.restore_competition(first["id"])
        assert restored["is_archived"] is False

    @pytest.mark.asyncio
    async def test_status_filter(self, db):
        await db.create_competition({"name": "Live"})
        await db.create_competition({"name": "Done", "status": "completed"})

        completed = await db.get_all_competitions(status="completed")
        assert [c["name"] for c in completed] == ["Done"]

    @pytest.mark.asyncio
    async def test_update_missing_competition(self, db):
        with pytest.raises(RecordNotFoundError):
            await db.update_competition("nope", {"name": "X"})

    @pytest.mark.asyncio
    async def test_delete_cascades(self, seeded_db, seeded_supabase):
        await seeded_db.delete_competition(COMPETITION_ID)

        for table in ("competitions", "categories", "age_divisions", "entries", "scores"):
            assert seeded_supabase.tables[table] == []

    @pytest.mark.asyncio
    async def test_delete_removes_photos(self, seeded_db, seeded_supabase, storage):
        url = storage.bucket.get_public_url(f"{COMPETITION_ID}/e1_1.jpg")
        storage.bucket.upload(f"{COMPETITION_ID}/e1_1.jpg", b"jpeg")
        await seeded_db.update_entry("e1", {"photo_url": url})

        await seeded_db.delete_competition(COMPETITION_ID, storage=storage)

        assert seeded_supabase.storage.files["entry-photos"] == {}

    @pytest.mark.asyncio
    async def test_delete_survives_photo_failure(self, seeded_db, seeded_supabase, storage):
        url = storage.bucket.get_public_url(f"{COMPETITION_ID}/e1_1.jpg")
        await seeded_db.update_entry("e1", {"photo_url": url})
        seeded_supabase.storage.fail = True

        await seeded_db.delete_competition(COMPETITION_ID, storage=storage)

        assert seeded_supabase.tables["competitions"] == []

    @pytest.mark.asyncio
    async def test_bulk_delete_reports_failures(self, seeded_db, seeded_supabase):
        other = await seeded_db.create_competition({"name": "Other"})
        seeded_supabase.fail_tables.add("scores")

        results = await seeded_db.bulk_delete_competitions([COMPETITION_ID, other["id"]])

        assert results["success"] == []
        assert len(results["failed"]) == 2

    @pytest.mark.asyncio
    async def test_stats(self, seeded_db):
        stats = await seeded_db.get_competition_stats(COMPETITION_ID)
        assert stats == {"total_entries": 5, "total_scores": 7, "total_categories": 2}

    @pytest.mark.asyncio
    async def test_query_failure_is_database_error(self, db, fake_supabase):
        fake_supabase.fail_tables.add("competitions")
        with pytest.raises(DatabaseError):
            await db.get_all_competitions()


# =============================================================================
# Categories, age divisions, entries
# =============================================================================

class TestEntries:
    """Tests for categories, age divisions and entries"""

    @pytest.mark.asyncio
    async def test_categories_sorted_by_name(self, seeded_db):
        await seeded_db.create_category({"competition_id": COMPETITION_ID, "name": "Ballet"})
        names = [c["name"] for c in await seeded_db.get_categories(COMPETITION_ID)]
        assert names == ["Ballet", "Jazz", "Tap"]

    @pytest.mark.asyncio
    async def test_age_divisions_sorted_by_min_age(self, seeded_db):
        await seeded_db.create_age_division({"competition_id": COMPETITION_ID, "name": "Mini", "min_age": 4, "max_age": 7})
        names = [d["name"] for d in await seeded_db.get_age_divisions(COMPETITION_ID)]
        assert names == ["Mini", "Junior", "Teen"]

    @pytest.mark.asyncio
    async def test_next_entry_number(self, seeded_db, db):
        assert await seeded_db.get_next_entry_number(COMPETITION_ID) == 6
        assert await db.get_next_entry_number("empty") == 1

    @pytest.mark.asyncio
    async def test_create_entry_assigns_number_and_defaults(self, seeded_db):
        entry = await seeded_db.create_entry({"competition_id": COMPETITION_ID, "competitor_name": "Nora"})

        assert entry["entry_number"] == 6
        assert entry["medal_points"] == 0
        assert entry["current_medal_level"] == "None"
        assert entry["group_members"] == []
        assert entry["is_medal_program"] is False

    @pytest.mark.asyncio
    async def test_bulk_entries_continue_numbering(self, seeded_db):
        created = await seeded_db.bulk_create_entries([
            {"competition_id": COMPETITION_ID, "competitor_name": "A"},
            {"competition_id": COMPETITION_ID, "competitor_name": "B", "entry_number": 50},
            {"competition_id": COMPETITION_ID, "competitor_name": "C"},
        ])
        assert [e["entry_number"] for e in created] == [6, 50, 7]

    @pytest.mark.asyncio
    async def test_entries_carry_names(self, seeded_db):
        entries = await seeded_db.get_competition_entries(COMPETITION_ID)

        assert [e["entry_number"] for e in entries] == [1, 2, 3, 4, 5]
        assert entries[0]["category"] == {"id": "cat-jazz", "name": "Jazz"}
        assert entries[0]["age_division"]["name"] == "Junior"

    @pytest.mark.asyncio
    async def test_entries_by_category(self, seeded_db):
        entries = await seeded_db.get_entries_by_category("cat-tap")
        assert [e["id"] for e in entries] == ["e3", "e5"]

    @pytest.mark.asyncio
    async def test_delete_entry_removes_scores(self, seeded_db, seeded_supabase):
        await seeded_db.delete_entry("e1")

        assert all(s["entry_id"] != "e1" for s in seeded_supabase.tables["scores"])
        with pytest.raises(RecordNotFoundError):
            await seeded_db.get_entry("e1")

    @pytest.mark.asyncio
    async def test_add_medal_points_updates_level(self, seeded_db):
        await seeded_db.update_entry("e1", {"medal_points": 24})
        entry = await seeded_db.add_medal_points("e1", 1)

        assert entry["medal_points"] == 25
        assert entry["current_medal_level"] == "Bronze"

    @pytest.mark.asyncio
    async def test_award_points_to_winners(self, seeded_db):
        results = await seeded_db.award_medal_points_to_winners(["e1", "missing"])

        assert results["success"] == ["e1"]
        assert results["failed"][0]["id"] == "missing"


# =============================================================================
# Scores
# =============================================================================

class TestScores:
    """Tests for score storage"""

    @pytest.mark.asyncio
    async def test_create_computes_total(self, seeded_db):
        score = await seeded_db.create_score(_score(each="21.25", notes="Clean turns"))

        assert score["total_score"] == 85.0
        assert score["technique"] == 21.25
        assert score["notes"] == "Clean turns"

    @pytest.mark.asyncio
    async def test_invalid_score_not_stored(self, seeded_db, seeded_supabase):
        with pytest.raises(ScoreValidationError) as exc_info:
            await seeded_db.create_score(_score(each=30))

        assert set(exc_info.value.errors) == {"technique", "creativity", "presentation", "appearance"}
        assert len(seeded_supabase.tables["scores"]) == 7

    @pytest.mark.asyncio
    async def test_submit_replaces_previous_score(self, seeded_db, publisher):
        first = await seeded_db.submit_score(_score(each=20))
        second = await seeded_db.submit_score(_score(each=22))

        scores = await seeded_db.get_entry_scores("e5")
        assert len(scores) == 1
        assert scores[0]["total_score"] == 88.0
        assert first["id"] == second["id"]

        kinds = [e.change_type for e in publisher.get_recent_events() if e.table == "scores"]
        assert kinds == [ChangeType.INSERT, ChangeType.UPDATE]

    @pytest.mark.asyncio
    async def test_update_recomputes_total(self, seeded_db):
        score = await seeded_db.update_score("score-e3-1", {"technique": 25})

        assert score["technique"] == 25.0
        assert score["total_score"] == 77.5

    @pytest.mark.asyncio
    async def test_update_notes_only(self, seeded_db):
        score = await seeded_db.update_score("score-e3-1", {"notes": "Great energy", "technique": None})

        assert score["notes"] == "Great energy"
        assert score["total_score"] == 70.0

    @pytest.mark.asyncio
    async def test_update_rejects_invalid(self, seeded_db):
        with pytest.raises(ScoreValidationError):
            await seeded_db.update_score("score-e3-1", {"creativity": 25.555})

    @pytest.mark.asyncio
    async def test_judge_scores(self, seeded_db):
        scores = await seeded_db.get_judge_scores(COMPETITION_ID, 2)
        assert [s["entry_id"] for s in scores] == ["e1", "e2", "e4"]

    @pytest.mark.asyncio
    async def test_check_existing(self, seeded_db):
        assert (await seeded_db.check_existing_score("e1", 1))["id"] == "score-e1-1"
        assert await seeded_db.check_existing_score("e1", 3) is None

    @pytest.mark.asyncio
    async def test_delete_score(self, seeded_db, publisher):
        await seeded_db.delete_score("score-e3-1")

        assert await seeded_db.get_entry_scores("e3") == []
        assert publisher.get_recent_events()[-1].change_type == ChangeType.DELETE

    @pytest.mark.asyncio
    async def test_bulk_scores_split_valid_and_invalid(self, seeded_db):
        results = await seeded_db.bulk_create_scores([
            _score("e5", 1, 20),
            _score("e5", 2, -1),
            _score("e3", 2, 18),
        ])

        assert len(results["success"]) == 2
        assert results["failed"][0]["id"] == "e5"


# =============================================================================
# Admin filters
# =============================================================================

class TestAdminFilterStorage:
    """Tests for the shared admin filter"""

    @pytest.mark.asyncio
    async def test_defaults(self, db):
        filters = await db.get_admin_filters(COMPETITION_ID)
        assert filters["division_type_filter"] == "all"
        assert filters["category_filter"] is None

    @pytest.mark.asyncio
    async def test_update_is_single_row(self, db, fake_supabase):
        await db.update_admin_filters(COMPETITION_ID, {"category_filter": "cat-jazz"})
        await db.update_admin_filters(COMPETITION_ID, {"category_filter": "cat-tap", "ability_filter": ""})

        assert len(fake_supabase.tables["admin_filters"]) == 1
        filters = await db.get_admin_filters(COMPETITION_ID)
        assert filters["category_filter"] == "cat-tap"
        assert filters["ability_filter"] == "all"

    @pytest.mark.asyncio
    async def test_clear(self, db):
        await db.update_admin_filters(COMPETITION_ID, {"category_filter": "cat-jazz"})
        cleared = await db.clear_admin_filters(COMPETITION_ID)
        assert cleared["category_filter"] is None


# =============================================================================
# Medal participants
# =============================================================================

class TestMedalParticipants:
    """Tests for season medal points"""

    @pytest.mark.asyncio
    async def test_award_once_per_entry(self, db):
        first = await db.award_point_to_participant("Dana ", COMPETITION_ID, "e4")
        again = await db.award_point_to_participant("Dana", COMPETITION_ID, "e4")

        assert first["awarded"] is True
        assert first["participant"]["total_points"] == 1
        assert again["awarded"] is False
        assert again["participant"]["total_points"] == 1

    @pytest.mark.asyncio
    async def test_level_up(self, db, fake_supabase):
        fake_supabase.seed("medal_participants", [
            {"participant_name": "Dana", "total_points": 34, "current_medal_level": "Bronze"},
        ])
        result = await db.award_point_to_participant("Dana", COMPETITION_ID, "e4")
        assert result["participant"]["current_medal_level"] == "Silver"

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, db):
        with pytest.raises(ValueError):
            await db.get_or_create_participant("  ")

    @pytest.mark.asyncio
    async def test_leaderboard(self, db, fake_supabase):
        fake_supabase.seed("medal_participants", [
            {"participant_name": "Low", "total_points": 3, "current_medal_level": "None"},
            {"participant_name": "Top", "total_points": 52, "current_medal_level": "Gold"},
            {"participant_name": "Mid", "total_points": 30, "current_medal_level": "Bronze"},
        ])
        board = await db.get_season_leaderboard()

        assert [(p["participant_name"], p["rank"]) for p in board] == [("Top", 1), ("Mid", 2), ("Low", 3)]
        assert board[0]["next_level"] == "Gold (Max)"
        assert board[1]["points_to_next"] == 5
        assert len(await db.get_season_leaderboard(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_participant_details(self, db):
        await db.award_point_to_participant("Dana", COMPETITION_ID, "e4")
        details = await db.get_participant_details("Dana")

        assert details["total_points"] == 1
        assert details["awards"][0]["entry_id"] == "e4"

        with pytest.raises(RecordNotFoundError):
            await db.get_participant_details("Nobody")


# =============================================================================
# Data management
# =============================================================================

class TestDataManagement:
    """Tests for season resets and bulk cleanup"""

    @pytest.mark.asyncio
    async def test_reset_medal_points(self, seeded_db, seeded_supabase):
        await seeded_db.award_point_to_participant("Bella", COMPETITION_ID, "e1")
        await seeded_db.add_medal_points("e1", 30)

        await seeded_db.reset_all_medal_points()

        assert seeded_supabase.tables["medal_awards"] == []
        assert seeded_supabase.tables["medal_participants"][0]["total_points"] == 0
        entry = await seeded_db.get_entry("e1")
        assert entry["medal_points"] == 0
        assert entry["current_medal_level"] == "None"

    @pytest.mark.asyncio
    async def test_test_competitions(self, db):
        await db.create_competition({"name": "Real Event"})
        flagged = await db.create_competition({"name": "Rehearsal", "is_test": True})
        named = await db.create_competition({"name": "TEST run"})

        found = {c["id"] for c in await db.get_test_competitions()}
        assert found == {flagged["id"], named["id"]}

        results = await db.delete_test_competitions()
        assert len(results["success"]) == 2
        assert [c["name"] for c in await db.get_all_competitions()] == ["Real Event"]

    @pytest.mark.asyncio
    async def test_archive_all(self, db):
        await db.create_competition({"name": "A"})
        await db.create_competition({"name": "B"})

        assert await db.archive_all_competitions() == 2
        assert await db.get_all_competitions() == []
        assert await db.archive_all_competitions() == 0

    @pytest.mark.asyncio
    async def test_nuclear_reset(self, seeded_db, seeded_supabase):
        seeded_supabase.seed("medal_participants", [
            {"participant_name": "Dana", "total_points": 12, "current_medal_level": "None"},
        ])

        results = await seeded_db.nuclear_reset()

        assert results["success"] == [COMPETITION_ID]
        assert seeded_supabase.tables["competitions"] == []
        assert seeded_supabase.tables["medal_participants"][0]["total_points"] == 0

    @pytest.mark.asyncio
    async def test_delete_all_when_empty(self, db):
        results = await db.delete_all_competitions()
        assert results["message"] == "No competitions to delete"

    @pytest.mark.asyncio
    async def test_stats_tolerate_failures(self, seeded_db, seeded_supabase):
        seeded_supabase.fail_tables.add("medal_participants")
        stats = await seeded_db.get_stats()

        assert stats["entries"] == 5
        assert stats["medal_participants"] == 0
