"""
Pytest configuration and fixtures for TOPAZ scoring tests

FakeSupabase keeps tables in memory and understands the subset of the
postgrest query builder that ScoringDB uses.
"""

import copy
import uuid
import itertools
import pytest
import sys
from collections import defaultdict
from datetime import datetime, timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


# =============================================================================
# In-memory Supabase
# =============================================================================

class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _matches_condition(row, condition):
    column, op, value = condition.split(".", 2)
    current = row.get(column)
    if op == "is" and value == "null":
        return current is None
    if op == "eq":
        if value == "true":
            return current is True
        if value == "false":
            return current is False
        return str(current) == value
    raise NotImplementedError(condition)


def _sort_value(value):
    return (value is None, value if value is not None else 0)


class FakeQuery:
    """Chainable query over one table"""

    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.orders = []
        self.limit_count = None
        self.count_mode = None

    # Actions
    def select(self, columns="*", count=None):
        self.action = "select"
        self.count_mode = count
        return self

    def insert(self, rows):
        self.action = "insert"
        self.payload = rows
        return self

    def update(self, values):
        self.action = "update"
        self.payload = values
        return self

    def upsert(self, rows, on_conflict=None):
        self.action = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def or_(self, conditions):
        parts = conditions.split(",")
        self.filters.append(lambda row: any(_matches_condition(row, c) for c in parts))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    # Execution
    def _matching(self):
        rows = self.db.tables[self.table_name]
        return [row for row in rows if all(f(row) for f in self.filters)]

    def execute(self):
        if self.table_name in self.db.fail_tables:
            raise RuntimeError(f"{self.table_name} unavailable")
        return getattr(self, f"_execute_{self.action}")()

    def _execute_select(self):
        rows = self._matching()
        for column, desc in reversed(self.orders):
            rows = sorted(rows, key=lambda r: _sort_value(r.get(column)), reverse=desc)
        count = len(rows)
        if self.limit_count is not None:
            rows = rows[:self.limit_count]
        return FakeResponse(copy.deepcopy(rows), count if self.count_mode else None)

    def _execute_insert(self):
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = [self.db.insert_row(self.table_name, row) for row in rows]
        return FakeResponse(copy.deepcopy(inserted))

    def _execute_update(self):
        updated = []
        for row in self._matching():
            row.update(copy.deepcopy(self.payload))
            row["updated_at"] = self.db.now()
            updated.append(row)
        return FakeResponse(copy.deepcopy(updated))

    def _execute_upsert(self):
        rows = self.payload if isinstance(self.payload, list) else [self.payload]
        keys = (self.on_conflict or "id").split(",")
        saved = []
        for row in rows:
            existing = next(
                (r for r in self.db.tables[self.table_name] if all(r.get(k) == row.get(k) for k in keys)),
                None
            )
            if existing:
                existing.update(copy.deepcopy(row))
                existing["updated_at"] = self.db.now()
                saved.append(existing)
            else:
                saved.append(self.db.insert_row(self.table_name, row))
        return FakeResponse(copy.deepcopy(saved))

    def _execute_delete(self):
        doomed = self._matching()
        self.db.tables[self.table_name] = [r for r in self.db.tables[self.table_name] if r not in doomed]
        return FakeResponse(copy.deepcopy(doomed))


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    @property
    def files(self):
        return self.storage.files[self.name]

    def upload(self, path, data, options=None):
        if self.storage.fail:
            raise RuntimeError("storage unavailable")
        self.files[path] = data
        self.storage.uploads.append((path, options))
        return {"path": path}

    def get_public_url(self, path):
        return f"https://test.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        if self.storage.fail:
            raise RuntimeError("storage unavailable")
        for path in paths:
            self.files.pop(path, None)
        return [{"name": p} for p in paths]

    def list(self, prefix):
        return [
            {"name": path.split("/", 1)[1], "metadata": {"size": len(data)}, "created_at": "2026-01-01T00:00:00"}
            for path, data in self.files.items()
            if path.startswith(f"{prefix}/")
        ]


class FakeStorage:
    def __init__(self):
        self.files = defaultdict(dict)
        self.uploads = []
        self.fail = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    """Supabase client stand-in for ScoringDB and PhotoStorage"""

    def __init__(self):
        self.tables = defaultdict(list)
        self.storage = FakeStorage()
        self.fail_tables = set()
        self._clock = itertools.count()

    def now(self):
        return (datetime(2026, 3, 1) + timedelta(seconds=next(self._clock))).isoformat()

    def table(self, name):
        return FakeQuery(self, name)

    def insert_row(self, table, row):
        stored = copy.deepcopy(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", self.now())
        if table == "medal_awards":
            stored.setdefault("awarded_at", self.now())
        self.tables[table].append(stored)
        return stored

    def seed(self, table, rows):
        return [self.insert_row(table, row) for row in rows]


# =============================================================================
# Sample competition
# =============================================================================

COMPETITION_ID = "comp-1"


def make_score(entry_id, judge_number, each, competition_id=COMPETITION_ID):
    """Score row with the same value for every sub-score"""
    return {
        "id": f"score-{entry_id}-{judge_number}",
        "competition_id": competition_id,
        "entry_id": entry_id,
        "judge_number": judge_number,
        "technique": each,
        "creativity": each,
        "presentation": each,
        "appearance": each,
        "total_score": round(each * 4, 2),
    }


@pytest.fixture(scope="function")
def sample_competition():
    return {
        "id": COMPETITION_ID,
        "name": "Spring Showcase",
        "date": "2026-04-18",
        "venue": "Civic Center",
        "judges_count": 3,
        "judge_names": ["Alice", "Bob", ""],
        "status": "active",
        "is_archived": False,
    }


@pytest.fixture(scope="function")
def sample_categories():
    return [
        {"id": "cat-jazz", "competition_id": COMPETITION_ID, "name": "Jazz", "description": "Jazz | Variety A", "is_special_category": False},
        {"id": "cat-tap", "competition_id": COMPETITION_ID, "name": "Tap", "description": None, "is_special_category": False},
    ]


@pytest.fixture(scope="function")
def sample_age_divisions():
    return [
        {"id": "div-junior", "competition_id": COMPETITION_ID, "name": "Junior", "min_age": 8, "max_age": 12},
        {"id": "div-teen", "competition_id": COMPETITION_ID, "name": "Teen", "min_age": 13, "max_age": 17},
    ]


@pytest.fixture(scope="function")
def sample_entries():
    """
    e4 (94) > e2 "anna" (85) = e1 "Bella" (85) > e3 (70) > e5 (unscored)

    e1, e2 and e4 are in the medal program; e4 is a small group.
    """
    base = {
        "competition_id": COMPETITION_ID,
        "age": 10,
        "group_members": [],
        "medal_points": 0,
        "current_medal_level": "None",
        "studio_name": "Topaz Studio",
        "teacher_name": "Ms. Kim",
        "photo_url": None,
    }
    return [
        {**base, "id": "e1", "entry_number": 1, "competitor_name": "Bella", "category_id": "cat-jazz",
         "age_division_id": "div-junior", "ability_level": "Beginning", "dance_type": "Solo", "is_medal_program": True},
        {**base, "id": "e2", "entry_number": 2, "competitor_name": "anna", "category_id": "cat-jazz",
         "age_division_id": "div-junior", "ability_level": "Beginning", "dance_type": "Solo", "is_medal_program": True},
        {**base, "id": "e3", "entry_number": 3, "competitor_name": "Cara", "category_id": "cat-tap",
         "age_division_id": "div-teen", "ability_level": "Advanced", "dance_type": "Solo", "is_medal_program": False},
        {**base, "id": "e4", "entry_number": 4, "competitor_name": "Starlight", "category_id": "cat-jazz",
         "age_division_id": "div-junior", "ability_level": "Beginning", "dance_type": "Small Group",
         "is_medal_program": True, "group_members": [{"name": "Dana", "age": 9}, {"name": "Eve", "age": 10}]},
        {**base, "id": "e5", "entry_number": 5, "competitor_name": "Unscored", "category_id": "cat-tap",
         "age_division_id": "div-teen", "ability_level": "Advanced", "dance_type": "Solo", "is_medal_program": False},
    ]


@pytest.fixture(scope="function")
def sample_scores():
    return [
        make_score("e1", 1, 22.5),
        make_score("e1", 2, 20),
        make_score("e2", 1, 21.25),
        make_score("e2", 2, 21.25),
        make_score("e3", 1, 17.5),
        make_score("e4", 1, 23.75),
        make_score("e4", 2, 23.25),
    ]


# =============================================================================
# Storage layer fixtures
# =============================================================================

@pytest.fixture(scope="function")
def fake_supabase():
    return FakeSupabase()


@pytest.fixture(scope="function")
def seeded_supabase(fake_supabase, sample_competition, sample_categories, sample_age_divisions,
                    sample_entries, sample_scores):
    fake_supabase.seed("competitions", [sample_competition])
    fake_supabase.seed("categories", sample_categories)
    fake_supabase.seed("age_divisions", sample_age_divisions)
    fake_supabase.seed("entries", sample_entries)
    fake_supabase.seed("scores", sample_scores)
    return fake_supabase


@pytest.fixture(scope="function")
def publisher():
    from change_feed.events import EventPublisher
    return EventPublisher(queue_size=8, event_log_size=50)


@pytest.fixture(scope="function")
def db(fake_supabase, publisher):
    from database.supabase_client import ScoringDB
    return ScoringDB(fake_supabase, publisher=publisher)


@pytest.fixture(scope="function")
def seeded_db(seeded_supabase, publisher):
    from database.supabase_client import ScoringDB
    return ScoringDB(seeded_supabase, publisher=publisher)


@pytest.fixture(scope="function")
def storage(fake_supabase):
    from database.storage import PhotoStorage
    return PhotoStorage(fake_supabase, bucket_name="entry-photos")


@pytest.fixture(scope="function")
def jpeg_bytes():
    """Small JPEG photo"""
    import io
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (64, 48), (20, 180, 160)).save(buffer, format="JPEG")
    return buffer.getvalue()


# =============================================================================
# API fixtures
# =============================================================================

@pytest.fixture(scope="function")
def api_client(seeded_db, publisher):
    """TestClient over the seeded in-memory database"""
    from fastapi.testclient import TestClient
    from database.storage import PhotoStorage
    from app.server import app
    from app.dependencies import get_db, get_storage, get_event_publisher

    app.dependency_overrides[get_db] = lambda: seeded_db
    app.dependency_overrides[get_storage] = lambda: PhotoStorage(seeded_db.client, bucket_name="entry-photos")
    app.dependency_overrides[get_event_publisher] = lambda: publisher

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
