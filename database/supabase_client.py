"""
Supabase database client for the scoring service
"""
from typing import List, Optional, Dict, Any, Iterable
from supabase import create_client, Client
from loguru import logger

from topaz.config import supabase_config, app_config, Tables, SCORE_FIELDS
from topaz.models import ChangeType
from ranking.calculator import (
    calculate_score_total,
    ensure_valid_scores,
    get_medal_level,
    get_next_medal_level,
)


# Supabase refuses unfiltered update/delete; this id never exists
MATCH_ALL_ID = "00000000-0000-0000-0000-000000000000"

NOT_ARCHIVED = "is_archived.is.null,is_archived.eq.false"

DEFAULT_ADMIN_FILTERS = {
    "category_filter": None,
    "division_type_filter": "all",
    "age_division_filter": None,
    "ability_filter": "all",
}

ENTRY_DEFAULTS = {
    "category_id": None,
    "age_division_id": None,
    "age": None,
    "dance_type": None,
    "ability_level": None,
    "is_medal_program": False,
    "medal_points": 0,
    "current_medal_level": "None",
    "group_members": [],
    "studio_name": None,
    "teacher_name": None,
    "photo_url": None,
}


class DatabaseError(Exception):
    """Supabase request failed"""


class RecordNotFoundError(DatabaseError):
    """Requested row does not exist"""

    def __init__(self, table: str, record_id: Any):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table} {record_id} not found")


# Singleton client
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Shared Supabase client instance (singleton)
    """
    global _supabase_client
    if _supabase_client is None:
        if not supabase_config.supabase_url or not supabase_config.supabase_key:
            raise ValueError("Set the SUPABASE_URL and SUPABASE_KEY environment variables")
        _supabase_client = create_client(
            supabase_config.supabase_url,
            supabase_config.supabase_key
        )
    return _supabase_client


class ScoringDB:
    """Competition, entry, score and medal storage"""

    def __init__(self, client: Client = None, publisher=None):
        self.client: Client = client or get_supabase_client()
        self.publisher = publisher

    # ==================== Helpers ====================

    def _run(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"{action} failed: {e}")
            raise DatabaseError(f"{action} failed: {e}") from e

    def _first(self, table: str, record_id: Any, action: str) -> Dict[str, Any]:
        result = self._run(
            self.client.table(table).select("*").eq("id", record_id).limit(1),
            action
        )
        if not result.data:
            raise RecordNotFoundError(table, record_id)
        return result.data[0]

    def _count(self, table: str, column: str, value: Any) -> int:
        result = self._run(
            self.client.table(table).select("id", count="exact").eq(column, value),
            f"Count {table}"
        )
        return result.count or 0

    def _publish(
        self,
        table: str,
        change_type: ChangeType,
        competition_id: Optional[str],
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None
    ) -> None:
        if self.publisher:
            self.publisher.publish_change(table, change_type, competition_id, new=new, old=old)

    # ==================== Competitions ====================

    async def create_competition(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a competition (3 judges, active, unless given)"""
        row = {
            "name": data["name"],
            "date": str(data["date"]) if data.get("date") else None,
            "venue": data.get("venue"),
            "judges_count": data.get("judges_count") or app_config.default_judges_count,
            "judge_names": data.get("judge_names") or [],
            "status": data.get("status") or "active",
        }
        if data.get("is_test") is not None:
            row["is_test"] = data["is_test"]

        result = self._run(self.client.table(Tables.COMPETITIONS).insert(row), "Create competition")
        competition = result.data[0]
        logger.info(f"Competition created: {competition.get('name')} ({competition.get('id')})")
        self._publish(Tables.COMPETITIONS, ChangeType.INSERT, competition.get("id"), new=competition)
        return competition

    async def get_competition(self, competition_id: str) -> Dict[str, Any]:
        return self._first(Tables.COMPETITIONS, competition_id, "Fetch competition")

    async def get_all_competitions(self, status: str = "all", include_archived: bool = False) -> List[Dict[str, Any]]:
        """Competitions, newest date first"""
        query = self.client.table(Tables.COMPETITIONS).select("*").order("date", desc=True)

        if not include_archived:
            query = query.or_(NOT_ARCHIVED)
        if status and status != "all":
            query = query.eq("status", status)

        result = self._run(query, "List competitions")
        return result.data or []

    async def get_archived_competitions(self) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.COMPETITIONS).select("*").eq("is_archived", True).order("date", desc=True),
            "List archived competitions"
        )
        return result.data or []

    async def archive_competition(self, competition_id: str) -> Dict[str, Any]:
        return await self.update_competition(competition_id, {"is_archived": True})

    async def restore_competition(self, competition_id: str) -> Dict[str, Any]:
        return await self.update_competition(competition_id, {"is_archived": False})

    async def update_competition(self, competition_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        if "date" in updates and updates["date"] is not None:
            updates = {**updates, "date": str(updates["date"])}

        result = self._run(
            self.client.table(Tables.COMPETITIONS).update(updates).eq("id", competition_id),
            "Update competition"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.COMPETITIONS, competition_id)

        competition = result.data[0]
        logger.info(f"Competition updated: {competition_id}")
        self._publish(Tables.COMPETITIONS, ChangeType.UPDATE, competition_id, new=competition)
        return competition

    async def delete_competition(self, competition_id: str, storage=None) -> None:
        """
        Delete a competition and everything under it

        Order: entry photos (best effort), scores, entries, age divisions,
        categories, then the competition row.
        """
        logger.info(f"Deleting competition {competition_id}")

        if storage is not None:
            try:
                entries = self._run(
                    self.client.table(Tables.ENTRIES).select("photo_url").eq("competition_id", competition_id),
                    "Fetch entry photos"
                ).data or []
                paths = [
                    storage.path_from_url(e["photo_url"]) for e in entries if e.get("photo_url")
                ]
                paths = [p for p in paths if p]
                if paths:
                    await storage.delete_photos(paths)
            except Exception as e:
                logger.warning(f"Photo cleanup failed for competition {competition_id}: {e}")

        for table in (Tables.SCORES, Tables.ENTRIES, Tables.AGE_DIVISIONS, Tables.CATEGORIES):
            self._run(
                self.client.table(table).delete().eq("competition_id", competition_id),
                f"Delete {table}"
            )

        self._run(
            self.client.table(Tables.COMPETITIONS).delete().eq("id", competition_id),
            "Delete competition"
        )
        logger.info(f"Competition deleted: {competition_id}")
        self._publish(Tables.COMPETITIONS, ChangeType.DELETE, competition_id, old={"id": competition_id})

    async def bulk_delete_competitions(self, competition_ids: Iterable[str], storage=None) -> Dict[str, Any]:
        results = {"success": [], "failed": []}

        for competition_id in competition_ids:
            try:
                await self.delete_competition(competition_id, storage=storage)
                results["success"].append(competition_id)
            except DatabaseError as e:
                results["failed"].append({"id": competition_id, "error": str(e)})

        logger.info(f"Bulk delete: {len(results['success'])} deleted, {len(results['failed'])} failed")
        return results

    async def delete_all_competitions(self, storage=None) -> Dict[str, Any]:
        result = self._run(self.client.table(Tables.COMPETITIONS).select("id"), "List competition ids")
        ids = [row["id"] for row in result.data or []]
        if not ids:
            return {"success": [], "failed": [], "message": "No competitions to delete"}
        return await self.bulk_delete_competitions(ids, storage=storage)

    async def get_competition_stats(self, competition_id: str) -> Dict[str, int]:
        """Entry, score and category counts"""
        return {
            "total_entries": self._count(Tables.ENTRIES, "competition_id", competition_id),
            "total_scores": self._count(Tables.SCORES, "competition_id", competition_id),
            "total_categories": self._count(Tables.CATEGORIES, "competition_id", competition_id),
        }

    # ==================== Categories ====================

    async def create_category(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {
            "competition_id": data["competition_id"],
            "name": data["name"],
            "description": data.get("description"),
            "is_special_category": data.get("is_special_category", False),
        }
        result = self._run(self.client.table(Tables.CATEGORIES).insert(row), "Create category")
        category = result.data[0]
        logger.info(f"Category created: {category.get('name')}")
        self._publish(Tables.CATEGORIES, ChangeType.INSERT, category.get("competition_id"), new=category)
        return category

    async def get_categories(self, competition_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.CATEGORIES).select("*").eq("competition_id", competition_id).order("name"),
            "List categories"
        )
        return result.data or []

    async def get_category(self, category_id: str) -> Dict[str, Any]:
        return self._first(Tables.CATEGORIES, category_id, "Fetch category")

    async def update_category(self, category_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        result = self._run(
            self.client.table(Tables.CATEGORIES).update(updates).eq("id", category_id),
            "Update category"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.CATEGORIES, category_id)
        category = result.data[0]
        self._publish(Tables.CATEGORIES, ChangeType.UPDATE, category.get("competition_id"), new=category)
        return category

    async def delete_category(self, category_id: str) -> None:
        category = await self.get_category(category_id)
        self._run(self.client.table(Tables.CATEGORIES).delete().eq("id", category_id), "Delete category")
        logger.info(f"Category deleted: {category_id}")
        self._publish(Tables.CATEGORIES, ChangeType.DELETE, category.get("competition_id"), old=category)

    async def bulk_create_categories(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        result = self._run(self.client.table(Tables.CATEGORIES).insert(rows), "Bulk create categories")
        logger.info(f"Categories created: {len(result.data or [])}")
        return result.data or []

    # ==================== Age divisions ====================

    async def create_age_division(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {
            "competition_id": data["competition_id"],
            "name": data["name"],
            "min_age": data.get("min_age"),
            "max_age": data.get("max_age"),
            "description": data.get("description"),
        }
        result = self._run(self.client.table(Tables.AGE_DIVISIONS).insert(row), "Create age division")
        division = result.data[0]
        logger.info(f"Age division created: {division.get('name')}")
        self._publish(Tables.AGE_DIVISIONS, ChangeType.INSERT, division.get("competition_id"), new=division)
        return division

    async def get_age_divisions(self, competition_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.AGE_DIVISIONS).select("*").eq("competition_id", competition_id).order("min_age"),
            "List age divisions"
        )
        return result.data or []

    async def get_age_division(self, division_id: str) -> Dict[str, Any]:
        return self._first(Tables.AGE_DIVISIONS, division_id, "Fetch age division")

    async def update_age_division(self, division_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        result = self._run(
            self.client.table(Tables.AGE_DIVISIONS).update(updates).eq("id", division_id),
            "Update age division"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.AGE_DIVISIONS, division_id)
        division = result.data[0]
        self._publish(Tables.AGE_DIVISIONS, ChangeType.UPDATE, division.get("competition_id"), new=division)
        return division

    async def delete_age_division(self, division_id: str) -> None:
        division = await self.get_age_division(division_id)
        self._run(self.client.table(Tables.AGE_DIVISIONS).delete().eq("id", division_id), "Delete age division")
        logger.info(f"Age division deleted: {division_id}")
        self._publish(Tables.AGE_DIVISIONS, ChangeType.DELETE, division.get("competition_id"), old=division)

    async def bulk_create_age_divisions(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        result = self._run(self.client.table(Tables.AGE_DIVISIONS).insert(rows), "Bulk create age divisions")
        logger.info(f"Age divisions created: {len(result.data or [])}")
        return result.data or []

    # ==================== Entries ====================

    def _entry_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {key: data.get(key) if data.get(key) is not None else default for key, default in ENTRY_DEFAULTS.items()}
        row["competition_id"] = data["competition_id"]
        row["entry_number"] = data.get("entry_number")
        row["competitor_name"] = data["competitor_name"]
        return row

    async def get_next_entry_number(self, competition_id: str) -> int:
        """Highest entry number + 1 (1 for an empty competition)"""
        result = self._run(
            self.client.table(Tables.ENTRIES).select("entry_number")
            .eq("competition_id", competition_id)
            .order("entry_number", desc=True)
            .limit(1),
            "Fetch next entry number"
        )
        if result.data and result.data[0].get("entry_number") is not None:
            return result.data[0]["entry_number"] + 1
        return 1

    async def create_entry(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = self._entry_row(data)
        if row["entry_number"] is None:
            row["entry_number"] = await self.get_next_entry_number(row["competition_id"])

        result = self._run(self.client.table(Tables.ENTRIES).insert(row), "Create entry")
        entry = result.data[0]
        logger.info(f"Entry created: #{entry.get('entry_number')} {entry.get('competitor_name')}")
        self._publish(Tables.ENTRIES, ChangeType.INSERT, entry.get("competition_id"), new=entry)
        return entry

    async def _with_names(self, entries: List[Dict[str, Any]], competition_id: str) -> List[Dict[str, Any]]:
        """Attach category and age division summaries"""
        if not entries:
            return []
        categories = {c["id"]: c for c in await self.get_categories(competition_id)}
        divisions = {d["id"]: d for d in await self.get_age_divisions(competition_id)}

        attached = []
        for entry in entries:
            category = categories.get(entry.get("category_id"))
            division = divisions.get(entry.get("age_division_id"))
            attached.append({
                **entry,
                "category": {"id": category["id"], "name": category.get("name")} if category else None,
                "age_division": {
                    "id": division["id"],
                    "name": division.get("name"),
                    "min_age": division.get("min_age"),
                    "max_age": division.get("max_age"),
                } if division else None,
            })
        return attached

    async def get_competition_entries(self, competition_id: str, with_names: bool = True) -> List[Dict[str, Any]]:
        """Entries ordered by entry number"""
        result = self._run(
            self.client.table(Tables.ENTRIES).select("*").eq("competition_id", competition_id).order("entry_number"),
            "List entries"
        )
        entries = result.data or []
        if with_names:
            return await self._with_names(entries, competition_id)
        return entries

    async def get_entry(self, entry_id: str) -> Dict[str, Any]:
        entry = self._first(Tables.ENTRIES, entry_id, "Fetch entry")
        return (await self._with_names([entry], entry["competition_id"]))[0]

    async def get_entries_by_category(self, category_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.ENTRIES).select("*").eq("category_id", category_id).order("entry_number"),
            "List category entries"
        )
        return result.data or []

    async def get_entries_by_age_division(self, division_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.ENTRIES).select("*").eq("age_division_id", division_id).order("entry_number"),
            "List age division entries"
        )
        return result.data or []

    async def update_entry(self, entry_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        result = self._run(
            self.client.table(Tables.ENTRIES).update(updates).eq("id", entry_id),
            "Update entry"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.ENTRIES, entry_id)
        entry = result.data[0]
        logger.info(f"Entry updated: {entry_id}")
        self._publish(Tables.ENTRIES, ChangeType.UPDATE, entry.get("competition_id"), new=entry)
        return entry

    async def delete_entry(self, entry_id: str) -> None:
        entry = self._first(Tables.ENTRIES, entry_id, "Fetch entry")
        self._run(self.client.table(Tables.SCORES).delete().eq("entry_id", entry_id), "Delete entry scores")
        self._run(self.client.table(Tables.ENTRIES).delete().eq("id", entry_id), "Delete entry")
        logger.info(f"Entry deleted: {entry_id}")
        self._publish(Tables.ENTRIES, ChangeType.DELETE, entry.get("competition_id"), old=entry)

    async def bulk_create_entries(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert many entries; missing entry numbers continue from the highest"""
        if not rows:
            return []

        next_numbers: Dict[str, int] = {}
        prepared = []
        for data in rows:
            row = self._entry_row(data)
            if row["entry_number"] is None:
                competition_id = row["competition_id"]
                if competition_id not in next_numbers:
                    next_numbers[competition_id] = await self.get_next_entry_number(competition_id)
                row["entry_number"] = next_numbers[competition_id]
                next_numbers[competition_id] += 1
            prepared.append(row)

        result = self._run(self.client.table(Tables.ENTRIES).insert(prepared), "Bulk create entries")
        logger.info(f"Entries created: {len(result.data or [])}")
        for entry in result.data or []:
            self._publish(Tables.ENTRIES, ChangeType.INSERT, entry.get("competition_id"), new=entry)
        return result.data or []

    async def add_medal_points(self, entry_id: str, points: int = 1) -> Dict[str, Any]:
        """Add points to an entry and recompute its medal level"""
        entry = self._first(Tables.ENTRIES, entry_id, "Fetch entry")
        total = (entry.get("medal_points") or 0) + points
        return await self.update_entry(entry_id, {
            "medal_points": total,
            "current_medal_level": get_medal_level(total),
        })

    async def award_medal_points_to_winners(self, entry_ids: Iterable[str]) -> Dict[str, Any]:
        results = {"success": [], "failed": []}
        for entry_id in entry_ids:
            try:
                await self.add_medal_points(entry_id, 1)
                results["success"].append(entry_id)
            except DatabaseError as e:
                results["failed"].append({"id": entry_id, "error": str(e)})

        logger.info(f"Entry medal points: {len(results['success'])} awarded, {len(results['failed'])} failed")
        return results

    # ==================== Scores ====================

    def _score_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        values = ensure_valid_scores(data)
        row = {
            "competition_id": data["competition_id"],
            "entry_id": data["entry_id"],
            "judge_number": data["judge_number"],
            **values,
            "total_score": calculate_score_total(values),
        }
        if data.get("notes") is not None:
            row["notes"] = data["notes"]
        return row

    async def create_score(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a validated score (raises ScoreValidationError)"""
        row = self._score_row(data)
        result = self._run(self.client.table(Tables.SCORES).insert(row), "Create score")
        score = result.data[0]
        logger.info(f"Score created: entry {score.get('entry_id')} judge {score.get('judge_number')} = {score.get('total_score')}")
        self._publish(Tables.SCORES, ChangeType.INSERT, score.get("competition_id"), new=score)
        return score

    async def submit_score(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace one judge's score for one entry"""
        row = self._score_row(data)
        existing = await self.check_existing_score(row["entry_id"], row["judge_number"])

        result = self._run(
            self.client.table(Tables.SCORES).upsert(row, on_conflict="entry_id,judge_number"),
            "Submit score"
        )
        score = result.data[0]
        logger.info(f"Score submitted: entry {score.get('entry_id')} judge {score.get('judge_number')} = {score.get('total_score')}")
        self._publish(
            Tables.SCORES,
            ChangeType.UPDATE if existing else ChangeType.INSERT,
            score.get("competition_id"),
            new=score,
            old=existing,
        )
        return score

    async def get_entry_scores(self, entry_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.SCORES).select("*").eq("entry_id", entry_id).order("judge_number"),
            "List entry scores"
        )
        return result.data or []

    async def get_competition_scores(self, competition_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.SCORES).select("*")
            .eq("competition_id", competition_id)
            .order("entry_id")
            .order("judge_number"),
            "List competition scores"
        )
        return result.data or []

    async def get_judge_scores(self, competition_id: str, judge_number: int) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.SCORES).select("*")
            .eq("competition_id", competition_id)
            .eq("judge_number", judge_number)
            .order("entry_id"),
            "List judge scores"
        )
        return result.data or []

    async def update_score(self, score_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update a score; the total is recomputed from the merged sub-scores"""
        updates = {k: v for k, v in updates.items() if v is not None}

        if any(name in updates for name in SCORE_FIELDS):
            current = self._first(Tables.SCORES, score_id, "Fetch score")
            merged = {name: updates.get(name, current.get(name)) for name in SCORE_FIELDS}
            values = ensure_valid_scores(merged)
            updates = {**updates, **values, "total_score": calculate_score_total(values)}

        result = self._run(
            self.client.table(Tables.SCORES).update(updates).eq("id", score_id),
            "Update score"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.SCORES, score_id)
        score = result.data[0]
        logger.info(f"Score updated: {score_id} = {score.get('total_score')}")
        self._publish(Tables.SCORES, ChangeType.UPDATE, score.get("competition_id"), new=score)
        return score

    async def delete_score(self, score_id: str) -> None:
        score = self._first(Tables.SCORES, score_id, "Fetch score")
        self._run(self.client.table(Tables.SCORES).delete().eq("id", score_id), "Delete score")
        logger.info(f"Score deleted: {score_id}")
        self._publish(Tables.SCORES, ChangeType.DELETE, score.get("competition_id"), old=score)

    async def check_existing_score(self, entry_id: str, judge_number: int) -> Optional[Dict[str, Any]]:
        """The judge's score for the entry, or None"""
        result = self._run(
            self.client.table(Tables.SCORES).select("*")
            .eq("entry_id", entry_id)
            .eq("judge_number", judge_number)
            .limit(1),
            "Check existing score"
        )
        return result.data[0] if result.data else None

    async def bulk_create_scores(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Insert many scores; invalid ones are reported, valid ones inserted"""
        results = {"success": [], "failed": []}
        prepared = []

        for index, data in enumerate(rows):
            try:
                prepared.append(self._score_row(data))
            except ValueError as e:
                results["failed"].append({"id": data.get("entry_id", index), "error": str(e)})

        if prepared:
            result = self._run(self.client.table(Tables.SCORES).insert(prepared), "Bulk create scores")
            results["success"] = result.data or []
            for score in results["success"]:
                self._publish(Tables.SCORES, ChangeType.INSERT, score.get("competition_id"), new=score)

        logger.info(f"Scores created: {len(results['success'])}, rejected: {len(results['failed'])}")
        return results

    # ==================== Admin filters ====================

    async def get_admin_filters(self, competition_id: str) -> Dict[str, Any]:
        """Stored filters, or the defaults when none were saved"""
        result = self._run(
            self.client.table(Tables.ADMIN_FILTERS).select("*").eq("competition_id", competition_id).limit(1),
            "Fetch admin filters"
        )
        if result.data:
            return result.data[0]
        return {"competition_id": competition_id, **DEFAULT_ADMIN_FILTERS}

    async def update_admin_filters(self, competition_id: str, filters: Dict[str, Any]) -> Dict[str, Any]:
        row = {"competition_id": competition_id}
        for key, default in DEFAULT_ADMIN_FILTERS.items():
            value = filters.get(key)
            row[key] = value if value not in (None, "") else default

        result = self._run(
            self.client.table(Tables.ADMIN_FILTERS).upsert(row, on_conflict="competition_id"),
            "Update admin filters"
        )
        saved = result.data[0]
        logger.info(f"Admin filters updated for competition {competition_id}")
        self._publish(Tables.ADMIN_FILTERS, ChangeType.UPDATE, competition_id, new=saved)
        return saved

    async def clear_admin_filters(self, competition_id: str) -> Dict[str, Any]:
        return await self.update_admin_filters(competition_id, DEFAULT_ADMIN_FILTERS)

    # ==================== Medal participants ====================

    async def get_or_create_participant(self, participant_name: str) -> Dict[str, Any]:
        name = (participant_name or "").strip()
        if not name:
            raise ValueError("Participant name is required")

        result = self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).select("*").eq("participant_name", name).limit(1),
            "Fetch medal participant"
        )
        if result.data:
            return result.data[0]

        created = self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).insert({
                "participant_name": name,
                "total_points": 0,
                "current_medal_level": "None",
            }),
            "Create medal participant"
        )
        logger.info(f"Medal participant created: {name}")
        return created.data[0]

    async def award_point_to_participant(
        self,
        participant_name: str,
        competition_id: str,
        entry_id: str
    ) -> Dict[str, Any]:
        """
        Award one season point for a first place

        Returns:
            {"awarded": bool, "participant": row}; awarded is False when this
            competition/entry/name was already credited
        """
        name = (participant_name or "").strip()
        participant = await self.get_or_create_participant(name)

        existing = self._run(
            self.client.table(Tables.MEDAL_AWARDS).select("id")
            .eq("competition_id", competition_id)
            .eq("entry_id", entry_id)
            .eq("participant_name", name)
            .limit(1),
            "Check medal award"
        )
        if existing.data:
            logger.debug(f"Medal point already awarded: {name} (entry {entry_id})")
            return {"awarded": False, "participant": participant}

        award = self._run(
            self.client.table(Tables.MEDAL_AWARDS).insert({
                "participant_name": name,
                "competition_id": competition_id,
                "entry_id": entry_id,
                "points_awarded": 1,
            }),
            "Record medal award"
        ).data[0]

        total = (participant.get("total_points") or 0) + 1
        updated = self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).update({
                "total_points": total,
                "current_medal_level": get_medal_level(total),
            }).eq("id", participant["id"]),
            "Update medal participant"
        ).data[0]

        logger.info(f"Medal point awarded: {name} -> {total} ({updated.get('current_medal_level')})")
        self._publish(Tables.MEDAL_AWARDS, ChangeType.INSERT, competition_id, new=award)
        return {"awarded": True, "participant": updated}

    async def get_season_leaderboard(self, limit: int = None) -> List[Dict[str, Any]]:
        """Participants by points, with rank and progress to the next level"""
        result = self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).select("*")
            .order("total_points", desc=True)
            .limit(limit or app_config.leaderboard_size),
            "Fetch season leaderboard"
        )

        leaderboard = []
        for index, participant in enumerate(result.data or [], 1):
            points = participant.get("total_points") or 0
            next_level, points_to_next = get_next_medal_level(points)
            leaderboard.append({
                **participant,
                "rank": index,
                "next_level": next_level,
                "points_to_next": points_to_next,
            })
        return leaderboard

    async def get_competition_medal_awards(self, competition_id: str) -> List[Dict[str, Any]]:
        result = self._run(
            self.client.table(Tables.MEDAL_AWARDS).select("*")
            .eq("competition_id", competition_id)
            .order("awarded_at", desc=True),
            "Fetch competition medal awards"
        )
        return result.data or []

    async def get_participant_details(self, participant_name: str) -> Dict[str, Any]:
        name = (participant_name or "").strip()
        result = self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).select("*").eq("participant_name", name).limit(1),
            "Fetch medal participant"
        )
        if not result.data:
            raise RecordNotFoundError(Tables.MEDAL_PARTICIPANTS, name)

        awards = self._run(
            self.client.table(Tables.MEDAL_AWARDS).select("*")
            .eq("participant_name", name)
            .order("awarded_at", desc=True),
            "Fetch participant awards"
        )
        return {**result.data[0], "awards": awards.data or []}

    # ==================== Data management ====================

    async def reset_all_medal_points(self) -> Dict[str, Any]:
        """Season reset: clear awards, entry points and participant totals"""
        self._run(
            self.client.table(Tables.MEDAL_AWARDS).delete().neq("id", MATCH_ALL_ID),
            "Delete medal awards"
        )
        self._run(
            self.client.table(Tables.ENTRIES).update({"medal_points": 0, "current_medal_level": "None"})
            .eq("is_medal_program", True),
            "Reset entry medal points"
        )
        self._run(
            self.client.table(Tables.MEDAL_PARTICIPANTS).update({"total_points": 0, "current_medal_level": "None"})
            .neq("id", MATCH_ALL_ID),
            "Reset medal participants"
        )
        logger.info("All medal points reset")
        return {"message": "All medal points reset"}

    async def get_test_competitions(self) -> List[Dict[str, Any]]:
        """Competitions flagged is_test or with "test" in the name"""
        result = self._run(
            self.client.table(Tables.COMPETITIONS).select("id, name, date, is_test").order("date", desc=True),
            "List test competitions"
        )
        return [
            c for c in result.data or []
            if c.get("is_test") or "test" in (c.get("name") or "").lower()
        ]

    async def delete_test_competitions(self, storage=None) -> Dict[str, Any]:
        tests = await self.get_test_competitions()
        return await self.bulk_delete_competitions([c["id"] for c in tests], storage=storage)

    async def archive_all_competitions(self) -> int:
        result = self._run(
            self.client.table(Tables.COMPETITIONS).update({"is_archived": True}).or_(NOT_ARCHIVED),
            "Archive all competitions"
        )
        archived = len(result.data or [])
        logger.info(f"Competitions archived: {archived}")
        return archived

    async def nuclear_reset(self, storage=None) -> Dict[str, Any]:
        """Zero every participant and delete every competition"""
        try:
            self._run(
                self.client.table(Tables.MEDAL_PARTICIPANTS).update({"total_points": 0, "current_medal_level": "None"})
                .neq("id", MATCH_ALL_ID),
                "Reset medal participants"
            )
        except DatabaseError as e:
            logger.warning(f"Medal participant reset skipped: {e}")

        results = await self.delete_all_competitions(storage=storage)
        logger.warning(f"Nuclear reset: {len(results['success'])} competitions deleted")
        return results

    # ==================== Stats ====================

    async def get_stats(self) -> Dict[str, int]:
        """Row counts per table"""
        stats = {}

        tables = [Tables.COMPETITIONS, Tables.ENTRIES, Tables.SCORES, Tables.MEDAL_PARTICIPANTS]
        for table in tables:
            try:
                result = self.client.table(table).select("id", count="exact").execute()
                stats[table] = result.count or 0
            except Exception as e:
                logger.error(f"{table} count failed: {e}")
                stats[table] = 0

        return stats
